# File: blog_scout/parser/sitemap_parser.py
"""blog_scout.parser.sitemap_parser: parsing of sitemap.xml documents.

Two entry points:

* :func:`parse_sitemap` – strict XML parse of a ``<urlset>`` or a
  ``<sitemapindex>``; raises :class:`~blog_scout.errors.ParseError` on
  anything else.
* :func:`scan_locations` – permissive fallback that only looks for
  ``<loc>`` tags in the raw text.
"""
from __future__ import annotations

import html
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional, Union

from lxml import etree

from blog_scout.crawler.models import CandidateDocument, ChangeFrequency
from blog_scout.errors import ParseError

__all__ = ("SitemapDocument", "parse_sitemap", "scan_locations", "parse_lastmod", "looks_like_sitemap")

_LOC_RE = re.compile(r"<loc>\s*([^<]+?)\s*</loc>", re.IGNORECASE)
_SITEMAP_FILE_RE = re.compile(r"\.xml(\.gz)?$", re.IGNORECASE)


@dataclass(slots=True)
class SitemapDocument:
    """Parsed sitemap: page entries plus references to nested sitemaps."""

    entries: List[CandidateDocument] = field(default_factory=list)
    sitemaps: List[str] = field(default_factory=list)


def parse_lastmod(value: Optional[str]) -> Optional[datetime]:
    """Parse a W3C datetime (``2024-01-15`` or full ISO-8601); naive values are taken as UTC."""
    if not value:
        return None
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _parse_priority(value: Optional[str]) -> Optional[float]:
    if not value:
        return None
    try:
        priority = float(value.strip())
    except ValueError:
        return None
    return priority if 0.0 <= priority <= 1.0 else None


def looks_like_sitemap(url: str) -> bool:
    path = url.split("?", 1)[0]
    return "sitemap" in path.lower() and bool(_SITEMAP_FILE_RE.search(path))


def _child_text(element: etree._Element, name: str) -> Optional[str]:
    child = element.find(f"{{*}}{name}")
    if child is None or child.text is None:
        return None
    return child.text.strip() or None


def parse_sitemap(content: Union[bytes, str]) -> SitemapDocument:
    """Strictly parse *content* as a sitemap.

    Args:
        content: raw bytes (preferred, so the XML declaration decides the
            encoding) or already decoded text.

    Returns:
        :class:`SitemapDocument` with ``entries`` for a ``<urlset>`` or
        ``sitemaps`` for a ``<sitemapindex>``.
    """
    if isinstance(content, str):
        content = content.encode("utf-8")
    if not content.strip():
        raise ParseError("empty sitemap document")
    parser = etree.XMLParser(ns_clean=True, recover=False, resolve_entities=False, no_network=True)
    try:
        root = etree.fromstring(content, parser=parser)
    except etree.XMLSyntaxError as exc:
        raise ParseError(f"malformed sitemap XML: {exc}") from exc

    tag = etree.QName(root).localname.lower()
    document = SitemapDocument()
    if tag == "sitemapindex":
        for node in root.iterfind("{*}sitemap"):
            loc = _child_text(node, "loc")
            if loc:
                document.sitemaps.append(loc)
    elif tag == "urlset":
        for node in root.iterfind("{*}url"):
            loc = _child_text(node, "loc")
            if not loc:
                continue
            document.entries.append(
                CandidateDocument(
                    url=loc,
                    last_modified=parse_lastmod(_child_text(node, "lastmod")),
                    priority=_parse_priority(_child_text(node, "priority")),
                    change_frequency=ChangeFrequency.parse(_child_text(node, "changefreq")),
                )
            )
    else:
        raise ParseError(f"unexpected root element <{tag}>")
    return document


def scan_locations(text: str) -> SitemapDocument:
    """Pull every ``<loc>`` out of *text* without parsing it as XML.

    Locations that look like sitemap files are reported as nested sitemaps.
    """
    document = SitemapDocument()
    for match in _LOC_RE.finditer(text):
        loc = html.unescape(match.group(1)).strip()
        if not loc:
            continue
        if looks_like_sitemap(loc):
            document.sitemaps.append(loc)
        else:
            document.entries.append(CandidateDocument(url=loc))
    return document
