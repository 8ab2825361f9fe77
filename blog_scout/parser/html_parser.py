# === FILE: blog_scout/parser/html_parser.py ===
"""HTML parsing utilities for BlogScout.

Only used by the HTML-sitemap discovery strategy, so the scope is narrow:

* title: document <title> text or ``""`` if absent.
* links: absolute, deduplicated URLs found in <a href="…"> tags, with
  query strings and fragments removed.
"""
from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from urllib.parse import urljoin, urlparse, urlunparse

from bs4 import BeautifulSoup

from blog_scout.logger import logger
from blog_scout.utils import same_site

__all__: Sequence[str] = ("ParsedPage", "parse_html")


@dataclass(slots=True)
class ParsedPage:
    """Lightweight representation of an HTML page."""

    url: str
    title: str
    links: list[str]

    # Convenience helpers ---------------------------------------------------
    def same_site_links(self) -> list[str]:
        """Return only links that point to *self.url*'s site (``www.`` ignored)."""
        return [u for u in self.links if same_site(u, self.url)]


def _normalize_url(url: str) -> str:
    """Very small URL canonicalisation (lower-case host, remove query/fragments)."""
    parsed = urlparse(url)
    return urlunparse((parsed.scheme.lower(), parsed.netloc.lower(), parsed.path or "/", "", "", ""))


def parse_html(html: str | bytes, base_url: str) -> ParsedPage:
    """Parse *html* fetched from *base_url* and collect its links."""
    soup = BeautifulSoup(html, "html.parser")

    title_tag = soup.find("title")
    title = title_tag.get_text(strip=True) if title_tag else ""

    seen: set[str] = set()
    links: list[str] = []
    for tag in soup.find_all("a", href=True):
        href = str(tag["href"]).strip()
        if not href or href.startswith(("mailto:", "javascript:", "tel:", "#")):
            continue
        try:
            abs_url = urljoin(base_url, href)
            if urlparse(abs_url).scheme not in ("http", "https"):
                continue
            abs_url = _normalize_url(abs_url)
        except ValueError:
            logger.debug("Skipping unparseable link %r on %s", href, base_url)
            continue
        if abs_url not in seen:
            seen.add(abs_url)
            links.append(abs_url)

    return ParsedPage(url=base_url, title=title, links=links)
