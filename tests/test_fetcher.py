# File: tests/test_fetcher.py
from __future__ import annotations

import asyncio
import gzip
import random
from datetime import datetime, timedelta, timezone
from email.utils import format_datetime

import pytest
from aiohttp import ClientSession, web

from blog_scout.config import FetchConfig
from blog_scout.crawler.fetcher import (
    RetryingFetcher,
    compute_backoff,
    decompress_body,
    is_retryable_status,
    parse_retry_after,
)
from blog_scout.errors import NetworkError, ParseError


class SleepRecorder:
    """Stand-in for asyncio.sleep that only records the requested delays."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


def counting_app(handler_factory):
    calls = {"n": 0}
    app = web.Application()

    async def handler(request):
        calls["n"] += 1
        return await handler_factory(calls["n"], request)

    app.router.add_get("/doc", handler)
    return app, calls


# --------------------------------------------------------------------------- #
#                                Pure helpers                                 #
# --------------------------------------------------------------------------- #


@pytest.mark.parametrize("status,expected", [(429, True), (500, True), (503, True), (599, True),
                                             (404, False), (403, False), (400, False)])
def test_is_retryable_status(status, expected):
    assert is_retryable_status(status) is expected


def test_compute_backoff_doubles_and_caps():
    rng = random.Random(7)
    delays = [compute_backoff(n, base=1.0, cap=5.0, rng=rng) for n in range(1, 6)]
    assert 1.0 <= delays[0] <= 2.0
    assert 2.0 <= delays[1] <= 3.0
    assert 4.0 <= delays[2] <= 5.0
    assert delays[3] == delays[4] == 5.0


def test_parse_retry_after_seconds_and_date():
    assert parse_retry_after("120") == 120.0
    assert parse_retry_after(" 0 ") == 0.0
    assert parse_retry_after(None) is None
    assert parse_retry_after("soon") is None

    now = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)
    header = format_datetime(now + timedelta(seconds=30), usegmt=True)
    assert parse_retry_after(header, now=now) == pytest.approx(30.0)
    # dates in the past mean "retry now"
    assert parse_retry_after(format_datetime(now - timedelta(hours=1), usegmt=True), now=now) == 0.0


def test_decompress_body_variants():
    raw = b"<urlset/>"
    packed = gzip.compress(raw)
    assert decompress_body("https://x.test/sitemap.xml.gz", "application/x-gzip", packed) == raw
    # magic bytes are enough, whatever the name
    assert decompress_body("https://x.test/sitemap.xml", "text/xml", packed) == raw
    # a .gz name over plain XML is passed through
    assert decompress_body("https://x.test/sitemap.xml.gz", "text/xml", raw) == raw
    with pytest.raises(ParseError):
        decompress_body("https://x.test/sitemap.xml.gz", "application/gzip", packed[:10])


# --------------------------------------------------------------------------- #
#                              Against a server                               #
# --------------------------------------------------------------------------- #


@pytest.mark.asyncio()
async def test_permanent_503_stops_at_max_attempts(serve, fetch_config):
    async def always_503(n, _request):
        return web.Response(status=503)

    app, calls = counting_app(always_503)
    base = await serve(app)
    sleeper = SleepRecorder()

    async with ClientSession() as session:
        fetcher = RetryingFetcher(session, fetch_config, sleep=sleeper)
        with pytest.raises(NetworkError) as info:
            await fetcher.fetch(f"{base}/doc")

    assert calls["n"] == fetch_config.max_attempts
    assert info.value.status == 503
    assert len(sleeper.delays) == fetch_config.max_attempts - 1
    assert all(d <= fetch_config.backoff_cap for d in sleeper.delays)


@pytest.mark.asyncio()
async def test_retry_after_beats_computed_backoff(serve, fetch_config):
    async def throttled(n, _request):
        return web.Response(status=429, headers={"Retry-After": "7"})

    app, calls = counting_app(throttled)
    base = await serve(app)
    sleeper = SleepRecorder()

    async with ClientSession() as session:
        fetcher = RetryingFetcher(session, fetch_config, sleep=sleeper)
        with pytest.raises(NetworkError):
            await fetcher.fetch(f"{base}/doc")

    assert calls["n"] == 3
    assert sleeper.delays == [7.0, 7.0]


@pytest.mark.asyncio()
async def test_retry_after_is_bounded(serve):
    async def throttled(n, _request):
        if n == 1:
            return web.Response(status=503, headers={"Retry-After": "3600"})
        return web.Response(text="ok")

    app, _calls = counting_app(throttled)
    base = await serve(app)
    sleeper = SleepRecorder()
    config = FetchConfig(max_retry_after=2.5)

    async with ClientSession() as session:
        response = await RetryingFetcher(session, config, sleep=sleeper).fetch(f"{base}/doc")

    assert response.status == 200
    assert sleeper.delays == [2.5]


@pytest.mark.asyncio()
async def test_recovers_after_server_errors(serve, fetch_config):
    async def flaky(n, _request):
        if n <= 2:
            return web.Response(status=500)
        return web.Response(text="<h1>Recover</h1>", content_type="text/html")

    app, calls = counting_app(flaky)
    base = await serve(app)

    async with ClientSession() as session:
        response = await RetryingFetcher(session, fetch_config).fetch(f"{base}/doc")

    assert calls["n"] == 3
    assert response.status == 200
    assert response.content_type == "text/html"
    assert "Recover" in response.text()


@pytest.mark.asyncio()
async def test_client_error_status_is_not_retried(serve, fetch_config):
    async def missing(n, _request):
        return web.Response(status=404)

    app, calls = counting_app(missing)
    base = await serve(app)

    async with ClientSession() as session:
        with pytest.raises(NetworkError) as info:
            await RetryingFetcher(session, fetch_config).fetch(f"{base}/doc")

    assert calls["n"] == 1
    assert info.value.status == 404


@pytest.mark.asyncio()
async def test_request_timeout_is_retried(serve):
    async def slow(n, _request):
        await asyncio.sleep(1.0)
        return web.Response(text="late")

    app, calls = counting_app(slow)
    base = await serve(app)
    config = FetchConfig(timeout=0.2, max_attempts=2, backoff_base=0.01, backoff_cap=0.01)

    async with ClientSession() as session:
        with pytest.raises(NetworkError) as info:
            await RetryingFetcher(session, config).fetch(f"{base}/doc")

    assert calls["n"] == 2
    assert info.value.status is None


@pytest.mark.asyncio()
async def test_gzipped_sitemap_is_decompressed(serve, fetch_config):
    xml = b'<?xml version="1.0"?><urlset><url><loc>https://x.test/a</loc></url></urlset>'
    app = web.Application()

    async def handler(_request):
        return web.Response(body=gzip.compress(xml), content_type="application/x-gzip")

    app.router.add_get("/sitemap.xml.gz", handler)
    base = await serve(app)

    async with ClientSession() as session:
        response = await RetryingFetcher(session, fetch_config).fetch(f"{base}/sitemap.xml.gz")

    assert response.body == xml


@pytest.mark.asyncio()
async def test_unparseable_url_fails_without_retry(fetch_config):
    sleep = SleepRecorder()

    async with ClientSession() as session:
        with pytest.raises(NetworkError) as info:
            await RetryingFetcher(session, fetch_config, sleep=sleep).fetch("http://[broken/sitemap.xml")

    assert sleep.delays == []
    assert info.value.status is None


@pytest.mark.asyncio()
async def test_corrupt_gzip_declared_by_content_type(serve, fetch_config):
    app = web.Application()

    async def handler(_request):
        return web.Response(body=b"\x1f\x8bnot really gzip", content_type="application/gzip")

    app.router.add_get("/export", handler)
    base = await serve(app)

    async with ClientSession() as session:
        with pytest.raises(ParseError):
            await RetryingFetcher(session, fetch_config).fetch(f"{base}/export")
