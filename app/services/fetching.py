"""Typed HTTP fetch that reports upstream failures as values instead of raising."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Generic, Optional, TypeVar

import httpx
from pydantic import ValidationError

from app.config.settings import get_settings

logger = logging.getLogger("fudcourt.fetch")

T = TypeVar("T")


@dataclass(frozen=True)
class FetchError:
    source: str
    url: str
    message: str
    status_code: Optional[int] = None

    def as_dict(self) -> dict[str, Any]:
        return {
            "source": self.source,
            "url": self.url,
            "message": self.message,
            "status_code": self.status_code,
        }


class MarketDataUnavailableError(RuntimeError):
    """One or more upstream sources could not supply data."""

    def __init__(self, errors: list[FetchError]) -> None:
        sources = ", ".join(e.source for e in errors) or "unknown"
        super().__init__(f"Market data unavailable from: {sources}")
        self.errors = errors


@dataclass(frozen=True)
class FetchResult(Generic[T]):
    value: Optional[T] = None
    error: Optional[FetchError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        if self.error is not None:
            raise MarketDataUnavailableError([self.error])
        return self.value  # type: ignore[return-value]


async def fetch_json(
    url: str,
    *,
    source: str,
    params: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
    parse: Callable[[Any], T] | None = None,
    client: httpx.AsyncClient | None = None,
    timeout: float | None = None,
) -> FetchResult[T]:
    """
    GET `url` and map the decoded JSON through `parse`.

    Transport errors, non-2xx statuses, undecodable bodies and parse failures
    are logged and returned as a FetchResult carrying a FetchError.
    """
    if timeout is None:
        timeout = get_settings().HTTP_TIMEOUT_SECONDS

    try:
        if client is None:
            async with httpx.AsyncClient(timeout=timeout) as own_client:
                response = await own_client.get(url, params=params, headers=headers)
        else:
            response = await client.get(url, params=params, headers=headers)
        response.raise_for_status()
        payload = response.json()
    except httpx.HTTPStatusError as exc:
        status = exc.response.status_code
        logger.warning("upstream error | source=%s | status=%s | url=%s", source, status, url)
        return FetchResult(error=FetchError(source, url, f"HTTP {status}", status))
    except httpx.HTTPError as exc:
        logger.warning("upstream unreachable | source=%s | url=%s | err=%s", source, url, exc)
        return FetchResult(error=FetchError(source, url, str(exc) or type(exc).__name__))
    except ValueError as exc:
        logger.warning("upstream sent invalid JSON | source=%s | url=%s", source, url)
        return FetchResult(error=FetchError(source, url, f"invalid JSON: {exc}"))

    if parse is None:
        return FetchResult(value=payload)

    try:
        return FetchResult(value=parse(payload))
    except (ValidationError, AttributeError, KeyError, IndexError, TypeError, ValueError) as exc:
        logger.warning("unexpected payload shape | source=%s | url=%s | err=%s", source, url, exc)
        return FetchResult(error=FetchError(source, url, f"unexpected payload: {exc}"))


def raise_for_failures(*results: FetchResult[Any]) -> None:
    errors = [r.error for r in results if r.error is not None]
    if errors:
        raise MarketDataUnavailableError(errors)
