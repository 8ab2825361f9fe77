# File: blog_scout/classifier.py
"""Structural classification of URLs into "article" and "everything else".

Both lists are checked against the URL path only, in order, and the first
hit decides. Exclusions always run before inclusions, so a path matching
both (``/topics/skin-care`` is a hub *and* a slug) is excluded.
"""
from __future__ import annotations

import re
from typing import Pattern, Sequence, Tuple
from urllib.parse import urlparse

__all__ = ("EXCLUDE_PATTERNS", "INCLUDE_PATTERNS", "MALFORMED", "is_content_url", "match_reason")

MALFORMED = "malformed"

_UTILITY_PAGES = (
    "about", "about-us", "contact", "contact-us", "privacy", "privacy-policy",
    "terms", "terms-of-service", "terms-and-conditions", "cookie", "cookies",
    "cookie-policy", "legal", "imprint", "faq", "faqs", "help", "support",
    "pricing", "features", "login", "signin", "sign-in", "signup", "sign-up",
    "register", "cart", "checkout", "account", "search", "careers", "jobs",
    "team", "sitemap", "subscribe", "unsubscribe",
)
_HUB_PREFIXES = (
    "category", "categories", "tag", "tags", "topic", "topics", "author",
    "authors", "archive", "archives", "series",
)
_SECTION_PREFIXES = (
    "blog", "article", "articles", "post", "posts", "news", "insights",
    "learn", "resources", "guides", "guide", "stories", "health",
)

EXCLUDE_PATTERNS: Tuple[Tuple[str, Pattern[str]], ...] = (
    ("static asset", re.compile(
        r"\.(jpe?g|png|gif|svg|webp|ico|bmp|pdf|zip|gz|css|js|json|xml|txt|"
        r"mp3|mp4|webm|woff2?|ttf|eot)$", re.IGNORECASE)),
    ("cms internals", re.compile(
        r"/(wp-content|wp-includes|wp-admin|wp-json|cdn-cgi|feed|rss)(/|$)", re.IGNORECASE)),
    ("homepage", re.compile(r"^/?$")),
    ("utility page", re.compile(rf"/({'|'.join(_UTILITY_PAGES)})/?$", re.IGNORECASE)),
    ("pagination", re.compile(r"/page/\d+/?$", re.IGNORECASE)),
    ("category hub", re.compile(rf"^/({'|'.join(_HUB_PREFIXES)})/[^/]+/?$", re.IGNORECASE)),
    ("blog index", re.compile(rf"^/({'|'.join(_SECTION_PREFIXES)})/?$", re.IGNORECASE)),
)

INCLUDE_PATTERNS: Tuple[Tuple[str, Pattern[str]], ...] = (
    ("date stamped", re.compile(r"/\d{4}/\d{1,2}/[^/]")),
    ("content section", re.compile(rf"/({'|'.join(_SECTION_PREFIXES)})/[^/]+", re.IGNORECASE)),
    ("nested slug", re.compile(r"^/(?:[^/]+/)+[a-z0-9]+(?:-[a-z0-9]+)+/?$", re.IGNORECASE)),
    ("long slug", re.compile(r"/(?=[^/]*-)[a-z0-9-]{20,}/?$", re.IGNORECASE)),
)


def _first_match(path: str, patterns: Sequence[Tuple[str, Pattern[str]]]) -> str | None:
    for name, pattern in patterns:
        if pattern.search(path):
            return name
    return None


def match_reason(url: str) -> Tuple[bool, str | None]:
    """Return ``(is_content, pattern name)``; the name is ``None`` when nothing matched.

    URLs that cannot be parsed at all are reported as ``(False, "malformed")``.
    """
    try:
        path = urlparse(url).path or "/"
    except ValueError:
        return False, MALFORMED

    excluded = _first_match(path, EXCLUDE_PATTERNS)
    if excluded is not None:
        return False, excluded
    included = _first_match(path, INCLUDE_PATTERNS)
    return included is not None, included


def is_content_url(url: str) -> bool:
    """True when *url* structurally looks like a published article."""
    return match_reason(url)[0]
