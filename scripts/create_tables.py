import asyncio

from app.db.bootstrap import ensure_db_primitives
from app.db.session import engine, Base
import app.db.models  # registers MarketSentimentSnapshot


async def main():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    await ensure_db_primitives()
    await engine.dispose()
    print("snapshot tables created/verified")


if __name__ == "__main__":
    asyncio.run(main())
