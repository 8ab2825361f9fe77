# File: tests/conftest.py
from __future__ import annotations

from collections.abc import AsyncIterator, Awaitable, Callable

import pytest
import pytest_asyncio
from aiohttp import web

from blog_scout.config import DiscoveryConfig, FetchConfig


@pytest.fixture()
def fetch_config() -> FetchConfig:
    """
    Fetch settings with tiny backoffs so retry tests stay fast.
    """
    return FetchConfig(
        timeout=2.0,
        max_attempts=3,
        backoff_base=0.01,
        backoff_cap=0.05,
        user_agent="TestAgent/1.0",
    )


@pytest.fixture()
def discovery_config(fetch_config: FetchConfig) -> DiscoveryConfig:
    return DiscoveryConfig(fetch=fetch_config, sitemap_concurrency=5, max_sitemap_depth=5)


@pytest_asyncio.fixture
async def serve(unused_tcp_port_factory) -> AsyncIterator[Callable[[web.Application], Awaitable[str]]]:
    """
    Start aiohttp apps on free ports; yields a coroutine returning the base URL.
    All started apps are cleaned up after the test.
    """
    runners: list[web.AppRunner] = []

    async def _serve(app: web.Application) -> str:
        runner = web.AppRunner(app)
        await runner.setup()
        port = unused_tcp_port_factory()
        site = web.TCPSite(runner, "127.0.0.1", port)
        await site.start()
        runners.append(runner)
        return f"http://127.0.0.1:{port}"

    yield _serve

    for runner in runners:
        await runner.cleanup()


def urlset(*entries: str) -> str:
    """Build a sitemap <urlset>; each entry is the inner XML of one <url>."""
    body = "".join(f"<url>{e}</url>" for e in entries)
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        f'<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">{body}</urlset>'
    )


def sitemapindex(*locs: str) -> str:
    body = "".join(f"<sitemap><loc>{loc}</loc></sitemap>" for loc in locs)
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        f'<sitemapindex xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">{body}</sitemapindex>'
    )
