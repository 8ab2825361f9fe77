# File: blog_scout/aggregator.py
"""blog_scout.aggregator: combining discovery and batch outcomes into one report."""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

from blog_scout.crawler.models import DiscoveryResult
from blog_scout.scheduler import BatchResult


def _json_default(value: Any) -> Any:
    """Serialize what worker results typically contain."""
    if isinstance(value, datetime):
        return value.isoformat()
    if hasattr(value, "model_dump"):
        return value.model_dump(mode="json")
    if hasattr(value, "to_dict"):
        return value.to_dict()
    if hasattr(value, "__dataclass_fields__"):
        return {name: getattr(value, name) for name in value.__dataclass_fields__}
    return str(value)


@dataclass(slots=True)
class ScoutReport:
    """Everything one run produced for a domain."""

    domain: str
    discovery: DiscoveryResult
    batch: Optional[BatchResult] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "domain": self.domain,
            "discovery": self.discovery.to_dict(),
            "batch": self.batch.to_dict() if self.batch is not None else None,
        }

    def json(self, *, pretty: bool = False) -> str:
        """JSON representation of the report."""
        return json.dumps(
            self.to_dict(), ensure_ascii=False, indent=2 if pretty else None, default=_json_default
        )


def aggregate(domain: str, discovery: DiscoveryResult, batch: Optional[BatchResult] = None) -> ScoutReport:
    """Build a :class:`ScoutReport`; *batch* is omitted for discovery-only runs."""
    return ScoutReport(domain=domain, discovery=discovery, batch=batch)


__all__ = ["ScoutReport", "aggregate"]
