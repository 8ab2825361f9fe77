# blog_scout/crawler/models.py
"""
Data models shared by the discovery engine.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple

_CHARSET_RE = re.compile(r"charset=([\w.:-]+)", re.IGNORECASE)


class Source(str, Enum):
    """Channel a discovery result came from."""

    SITEMAP = "sitemap"
    FEED = "feed"
    HTML = "html"
    MANUAL = "manual"


class ChangeFrequency(str, Enum):
    ALWAYS = "always"
    HOURLY = "hourly"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"
    NEVER = "never"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional[ChangeFrequency]:
        if not value:
            return None
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None


@dataclass(frozen=True, slots=True)
class CandidateDocument:
    """A URL found in a discovery document, with whatever metadata came along."""

    url: str
    last_modified: Optional[datetime] = None
    priority: Optional[float] = None
    change_frequency: Optional[ChangeFrequency] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "last_modified": self.last_modified.isoformat() if self.last_modified else None,
            "priority": self.priority,
            "change_frequency": self.change_frequency.value if self.change_frequency else None,
        }


@dataclass(frozen=True, slots=True)
class DiscoveryResult:
    """Outcome of one discovery call.

    ``posts`` never holds more entries than ``total_found``; the ordering is
    established by the engine before the result is built.
    """

    posts: Tuple[CandidateDocument, ...]
    total_found: int
    source: Source
    error: Optional[str] = None

    def __post_init__(self) -> None:
        if len(self.posts) > self.total_found:
            raise ValueError("posts cannot outnumber total_found")

    @property
    def urls(self) -> list[str]:
        return [post.url for post in self.posts]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "posts": [post.to_dict() for post in self.posts],
            "total_found": self.total_found,
            "source": self.source.value,
            "error": self.error,
        }


@dataclass(frozen=True, slots=True)
class FetchResponse:
    """Fetched document: final URL, status, lower-cased headers, decoded body bytes."""

    url: str
    status: int
    headers: Mapping[str, str] = field(default_factory=dict)
    body: bytes = b""

    def header(self, name: str, default: str = "") -> str:
        return self.headers.get(name.lower(), default)

    @property
    def content_type(self) -> str:
        return self.header("content-type").split(";", 1)[0].strip().lower()

    def text(self) -> str:
        match = _CHARSET_RE.search(self.header("content-type"))
        encoding = match.group(1) if match else "utf-8"
        try:
            return self.body.decode(encoding, errors="replace")
        except LookupError:
            return self.body.decode("utf-8", errors="replace")
