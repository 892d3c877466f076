import time
from typing import Any


# In-process TTL cache for computed responses
_cache: dict[str, tuple[float, Any]] = {}


def get_cache(key: str, ttl: int) -> Any | None:
    """
    Return the cached value for `key` unless it is older than `ttl` seconds.
    """
    entry = _cache.get(key)
    if entry is None:
        return None

    stored_at, value = entry
    if time.monotonic() - stored_at > ttl:
        _cache.pop(key, None)
        return None

    return value


def set_cache(key: str, value: Any) -> None:
    _cache[key] = (time.monotonic(), value)


def clear_cache(key: str | None = None) -> None:
    if key is None:
        _cache.clear()
    else:
        _cache.pop(key, None)
