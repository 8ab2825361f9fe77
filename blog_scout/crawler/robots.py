# blog_scout/crawler/robots.py
"""
Extraction of ``Sitemap:`` declarations from robots.txt.
"""
from __future__ import annotations

import re
from typing import List, Tuple
from urllib.parse import urljoin

__all__ = ("extract_sitemap_urls",)

_SITEMAP_RE = re.compile(r"^\s*sitemap\s*:\s*(\S+)", re.IGNORECASE)


def _prepare_lines(text: str) -> List[Tuple[str, str]]:
    """Split robots.txt into (directive, value) pairs, skipping blanks and comments."""
    lines: List[Tuple[str, str]] = []
    for raw in text.splitlines():
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        match = _SITEMAP_RE.match(line)
        if match:
            lines.append(("sitemap", match.group(1)))
    return lines


def extract_sitemap_urls(text: str, base_url: str) -> List[str]:
    """Return the sitemap locations declared in *text*, absolute and deduplicated.

    Sitemap lines are group-independent, so no user-agent matching is done.
    Lines whose location is not a parseable URL are skipped.
    """
    urls: List[str] = []
    for _directive, value in _prepare_lines(text):
        try:
            absolute = urljoin(base_url + "/", value)
        except ValueError:
            continue
        if absolute not in urls:
            urls.append(absolute)
    return urls
