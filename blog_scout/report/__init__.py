# File: blog_scout/report/__init__.py
"""blog_scout.report: report writers used by the CLI."""

from __future__ import annotations

from blog_scout.report.json_report import render_json

__all__ = ["render_json"]
