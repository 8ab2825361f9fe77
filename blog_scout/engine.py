# File: blog_scout/engine.py
"""blog_scout.engine: discovery followed by batch analysis under one deadline."""

from __future__ import annotations

import asyncio
from typing import Optional

from blog_scout.aggregator import ScoutReport, aggregate
from blog_scout.config import ScoutConfig, load_config
from blog_scout.discovery import DiscoveryEngine
from blog_scout.logger import logger
from blog_scout.scheduler import BatchScheduler, ProgressSink, Worker

__all__ = ["Engine", "start_scout"]


class Engine:
    """Facade for the CLI and tests: config in, :class:`ScoutReport` out."""

    @staticmethod
    def load_config(path: Optional[str]) -> ScoutConfig:
        """Load settings from YAML/JSON."""
        return load_config(path)

    def __init__(self, config: Optional[ScoutConfig] = None) -> None:
        self.config = config or ScoutConfig()

    async def run(
        self,
        domain: str,
        worker: Optional[Worker] = None,
        *,
        limit: Optional[int] = None,
        timeout: Optional[float] = None,
        on_progress: Optional[ProgressSink] = None,
    ) -> ScoutReport:
        """Discover posts of *domain* and, when *worker* is given, analyze them.

        *timeout* bounds the whole operation: discovery and batch share the
        same deadline, and whatever finished before it is kept.
        """
        deadline = None if timeout is None else asyncio.get_running_loop().time() + timeout

        async with DiscoveryEngine(self.config.discovery) as engine:
            discovery = await engine.discover(domain, limit, deadline=deadline)

        if worker is None or not discovery.posts:
            if discovery.error:
                logger.warning("Nothing to analyze for %s: %s", domain, discovery.error)
            return aggregate(domain, discovery)

        scheduler = BatchScheduler(self.config.batch, on_progress=on_progress)
        batch = await scheduler.run(discovery.posts, worker, deadline=deadline)
        return aggregate(domain, discovery, batch)


async def start_scout(
    config: ScoutConfig,
    domain: str,
    worker: Optional[Worker] = None,
    **kwargs,
) -> ScoutReport:
    """Module-level shortcut, convenient to monkeypatch in CLI tests."""
    return await Engine(config).run(domain, worker, **kwargs)
