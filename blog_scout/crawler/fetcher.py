# blog_scout/crawler/fetcher.py
"""
Fetcher module: HTTP GET with per-request timeout, retry/backoff and
transparent gzip decompression.
"""
from __future__ import annotations

import asyncio
import gzip
import logging
import random
import zlib
from dataclasses import replace
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Awaitable, Callable, Optional

from aiohttp import ClientError, ClientSession, ClientTimeout, InvalidURL

from blog_scout.config import FetchConfig
from blog_scout.crawler.models import FetchResponse
from blog_scout.errors import NetworkError, ParseError

__all__ = (
    "RetryingFetcher",
    "compute_backoff",
    "decompress_body",
    "is_retryable_status",
    "parse_retry_after",
)

_GZIP_MAGIC = b"\x1f\x8b"
_GZIP_TYPES = ("application/gzip", "application/x-gzip")

SleepFunc = Callable[[float], Awaitable[None]]


def is_retryable_status(status: int) -> bool:
    return status == 429 or status >= 500


def compute_backoff(
    attempt: int,
    base: float,
    cap: float,
    rng: Optional[random.Random] = None,
) -> float:
    """Delay before the request following *attempt* (1-based)."""
    jitter = (rng or random).uniform(0, base)
    return min(cap, base * 2 ** (attempt - 1) + jitter)


def parse_retry_after(value: Optional[str], now: Optional[datetime] = None) -> Optional[float]:
    """Parse a ``Retry-After`` header given either as seconds or as an HTTP-date."""
    if not value:
        return None
    value = value.strip()
    try:
        return max(0.0, float(value))
    except ValueError:
        pass
    try:
        when = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return None
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    now = now or datetime.now(timezone.utc)
    return max(0.0, (when - now).total_seconds())


def decompress_body(url: str, content_type: str, body: bytes) -> bytes:
    """Return *body* gunzipped when the URL, the type or the magic bytes say so.

    aiohttp already undoes ``Content-Encoding``; this covers ``.xml.gz`` files
    served as plain binary payloads.
    """
    looks_gzip = body[:2] == _GZIP_MAGIC
    declared = url.lower().split("?", 1)[0].endswith(".gz") or content_type in _GZIP_TYPES
    if not looks_gzip:
        # a ".gz" name over an already decoded body is common
        return body
    try:
        return gzip.decompress(body)
    except (OSError, EOFError, zlib.error) as exc:
        if declared:
            raise ParseError(f"corrupt gzip payload from {url}: {exc}") from exc
        return body


class RetryingFetcher:
    """Fetches URLs over a shared session, retrying transient failures.

    Retry state (the attempt number) lives on the stack of :meth:`fetch`, so
    one instance can serve any number of concurrent calls.
    """

    def __init__(
        self,
        session: ClientSession,
        config: Optional[FetchConfig] = None,
        *,
        sleep: SleepFunc = asyncio.sleep,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.session = session
        self.config = config or FetchConfig()
        self._sleep = sleep
        self._rng = rng
        self._timeout = ClientTimeout(total=self.config.timeout)
        self.logger = logging.getLogger("BlogScout")

    async def fetch(self, url: str) -> FetchResponse:
        """
        GET *url*, returning a :class:`FetchResponse` for any status below 400.

        Raises :class:`NetworkError` on a non-retryable status or when all
        attempts fail.
        """
        last_error: Optional[NetworkError] = None
        for attempt in range(1, self.config.max_attempts + 1):
            retry_after: Optional[float] = None
            try:
                response = await self._request(url)
            except InvalidURL as exc:
                raise NetworkError(url, f"invalid URL: {exc}") from exc
            except (ClientError, asyncio.TimeoutError) as exc:
                last_error = NetworkError(url, str(exc) or type(exc).__name__)
            else:
                if response.status < 400:
                    return response
                if not is_retryable_status(response.status):
                    raise NetworkError(url, f"HTTP {response.status}", status=response.status)
                last_error = NetworkError(url, f"HTTP {response.status}", status=response.status)
                retry_after = parse_retry_after(response.header("retry-after"))

            if attempt == self.config.max_attempts:
                break
            delay = self._next_delay(attempt, retry_after)
            self.logger.debug(
                "Retry %d/%d for %s after %.2f s (%s)",
                attempt, self.config.max_attempts - 1, url, delay, last_error,
            )
            await self._sleep(delay)

        assert last_error is not None
        self.logger.debug("Giving up on %s: %s", url, last_error)
        raise last_error

    async def _request(self, url: str) -> FetchResponse:
        async with self.session.get(url, timeout=self._timeout, allow_redirects=True) as resp:
            response = FetchResponse(
                url=str(resp.url),
                status=resp.status,
                headers={k.lower(): v for k, v in resp.headers.items()},
                body=await resp.read(),
            )
        if response.status >= 400:
            return response
        return replace(response, body=decompress_body(response.url, response.content_type, response.body))

    def _next_delay(self, attempt: int, retry_after: Optional[float]) -> float:
        if retry_after is not None:
            return min(retry_after, self.config.max_retry_after)
        return compute_backoff(attempt, self.config.backoff_base, self.config.backoff_cap, self._rng)
