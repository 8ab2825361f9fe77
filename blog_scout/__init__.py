# blog_scout/__init__.py
"""
BlogScout package initializer.
Defines package version and exposes the caller API.
"""
__version__ = "0.1.0"

from blog_scout.classifier import is_content_url
from blog_scout.discovery import DiscoveryEngine, discover, manual_posts
from blog_scout.engine import Engine
from blog_scout.scheduler import BatchResult, BatchScheduler, run_batch
from blog_scout.utils import normalize_domain

__all__ = [
    "__version__",
    "BatchResult",
    "BatchScheduler",
    "DiscoveryEngine",
    "Engine",
    "discover",
    "is_content_url",
    "manual_posts",
    "normalize_domain",
    "run_batch",
]
