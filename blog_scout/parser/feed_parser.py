# File: blog_scout/parser/feed_parser.py
"""blog_scout.parser.feed_parser: link extraction from RSS/Atom feeds."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, List, Mapping, Optional, Union
from urllib.parse import urljoin

import feedparser

from blog_scout.crawler.models import CandidateDocument
from blog_scout.logger import logger

__all__ = ("parse_feed",)


def _struct_time_to_datetime(value: Any) -> Optional[datetime]:
    """Convert feedparser's ``*_parsed`` struct_time to an aware UTC datetime."""
    if not value:
        return None
    try:
        year, month, day, hour, minute, second = tuple(value)[:6]
        return datetime(year, month, day, hour, minute, second, tzinfo=timezone.utc)
    except (TypeError, ValueError):
        return None


def _entry_link(entry: Mapping[str, Any]) -> str:
    link = entry.get("link")
    if link:
        return str(link).strip()
    for candidate in entry.get("links") or []:
        if candidate.get("rel", "alternate") == "alternate" and candidate.get("href"):
            return str(candidate["href"]).strip()
    return ""


def parse_feed(content: Union[bytes, str], base_url: str = "") -> List[CandidateDocument]:
    """Return one :class:`CandidateDocument` per feed entry that carries a link.

    Malformed feeds are not an error: feedparser reports them via ``bozo``
    and whatever entries it managed to read are still returned.
    """
    parsed = feedparser.parse(content)
    documents: List[CandidateDocument] = []
    for entry in parsed.entries:
        link = _entry_link(entry)
        if not link:
            continue
        try:
            url = urljoin(base_url, link) if base_url else link
        except ValueError:
            logger.debug("Skipping feed entry with unparseable link %r", link)
            continue
        published = entry.get("published_parsed") or entry.get("updated_parsed")
        documents.append(
            CandidateDocument(
                url=url,
                last_modified=_struct_time_to_datetime(published),
            )
        )
    return documents
