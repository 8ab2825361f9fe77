# File: blog_scout/utils.py
"""blog_scout.utils: helpers for domain normalisation and URL lists."""

from __future__ import annotations

import re
from typing import Collection, List, Sequence
from urllib.parse import urlparse

from blog_scout.errors import InvalidDomain
from blog_scout.logger import logger

__all__: Sequence[str] = (
    "normalize_domain",
    "same_site",
    "remove_duplicates",
)

_HOST_RE = re.compile(r"^[a-z0-9]([a-z0-9-]*[a-z0-9])?(\.[a-z0-9]([a-z0-9-]*[a-z0-9])?)*$")


def normalize_domain(value: str) -> str:
    """Turn ``example.com`` or ``https://example.com/blog?x=1`` into ``https://example.com``.

    A secure scheme is assumed when none is given; only scheme, host and port
    are kept. Raises :class:`InvalidDomain` when nothing usable remains.
    """
    raw = (value or "").strip()
    if not raw:
        raise InvalidDomain(value)
    candidate = raw if "://" in raw else f"https://{raw}"

    try:
        parsed = urlparse(candidate)
    except ValueError as exc:
        raise InvalidDomain(value) from exc
    scheme = parsed.scheme.lower()
    host = (parsed.hostname or "").lower()
    if scheme not in ("http", "https") or not host or not _HOST_RE.match(host):
        raise InvalidDomain(value)
    try:
        port = parsed.port
    except ValueError as exc:
        raise InvalidDomain(value) from exc

    origin = f"{scheme}://{host}" if port is None else f"{scheme}://{host}:{port}"
    logger.debug("Normalized domain: %s -> %s", value, origin)
    return origin


def _bare_host(url: str) -> str:
    try:
        host = (urlparse(url).hostname or "").lower()
    except ValueError:
        return ""
    return host[4:] if host.startswith("www.") else host


def same_site(url: str, other: str) -> bool:
    """True when both URLs live on the same host, ignoring a ``www.`` prefix."""
    host = _bare_host(url)
    return bool(host) and host == _bare_host(other)


def remove_duplicates(urls: Collection[str]) -> List[str]:
    """Remove duplicate URLs by exact string match, keeping the first occurrence."""
    unique = list(dict.fromkeys(urls))
    removed = len(urls) - len(unique)
    if removed:
        logger.debug("Removed %d duplicate URLs", removed)
    return unique
