# File: blog_scout/errors.py
"""Exception types raised inside BlogScout.

Only :class:`InvalidDomain` ever escapes a public call; network and parse
errors are absorbed by the discovery strategies and turned into a soft
"this channel produced nothing".
"""
from __future__ import annotations

from typing import Optional

__all__ = ("BlogScoutError", "InvalidDomain", "NetworkError", "ParseError")


class BlogScoutError(Exception):
    """Base class for all project errors."""


class InvalidDomain(BlogScoutError, ValueError):
    """The caller passed something that cannot be turned into a site origin."""

    def __init__(self, value: str) -> None:
        super().__init__(f"Invalid domain: {value!r}")
        self.value = value


class NetworkError(BlogScoutError):
    """A fetch failed for good: non-retryable status or retries exhausted."""

    def __init__(self, url: str, message: str, status: Optional[int] = None) -> None:
        super().__init__(f"{url}: {message}")
        self.url = url
        self.status = status


class ParseError(BlogScoutError):
    """A fetched document could not be read in its expected format."""
