# File: blog_scout/discovery.py
"""blog_scout.discovery: locating a site's articles.

Strategies are tried in priority order, the first one producing at least one
content URL wins:

1. XML sitemaps (robots.txt declarations plus well-known paths, nested
   indexes followed up to a depth cap);
2. RSS/Atom feeds;
3. human-facing HTML sitemap pages.

Every network or parse failure inside a strategy is soft: it is logged and
the strategy simply yields nothing.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, List, Optional, Sequence, Set, Tuple

from aiohttp import ClientSession, ClientTimeout

from blog_scout.classifier import is_content_url
from blog_scout.config import DiscoveryConfig
from blog_scout.crawler.fetcher import RetryingFetcher
from blog_scout.crawler.models import CandidateDocument, DiscoveryResult, FetchResponse, Source
from blog_scout.crawler.robots import extract_sitemap_urls
from blog_scout.errors import NetworkError, ParseError
from blog_scout.parser.feed_parser import parse_feed
from blog_scout.parser.html_parser import parse_html
from blog_scout.parser.sitemap_parser import SitemapDocument, parse_sitemap, scan_locations
from blog_scout.utils import normalize_domain, remove_duplicates

__all__ = ("DiscoveryEngine", "StrategyOutcome", "discover", "manual_posts", "sort_candidates")

NO_SOURCES_ERROR = (
    "No sitemap found: no sitemap, feed or HTML sitemap page could be read. "
    "Please ensure your site publishes a sitemap.xml file."
)
NO_CONTENT_ERROR = (
    "No blog posts found in the site's sitemaps, feeds or HTML sitemap pages. "
    "Try entering specific post URLs manually."
)
DEADLINE_ERROR = "Discovery did not finish before the deadline"


@dataclass(slots=True)
class StrategyOutcome:
    """What one strategy produced: classified content plus the number of documents it could read."""

    content: List[CandidateDocument] = field(default_factory=list)
    documents_read: int = 0

    def __bool__(self) -> bool:
        return bool(self.content)


def _sort_key(indexed: Tuple[int, CandidateDocument]) -> Tuple[bool, float, bool, float, int]:
    index, doc = indexed
    modified = doc.last_modified.timestamp() if isinstance(doc.last_modified, datetime) else 0.0
    priority = doc.priority if doc.priority is not None else 0.0
    return (doc.last_modified is None, -modified, doc.priority is None, -priority, index)


def sort_candidates(docs: Iterable[CandidateDocument]) -> List[CandidateDocument]:
    """Most recently modified first, then by descending priority, then encounter order."""
    return [doc for _, doc in sorted(enumerate(docs), key=_sort_key)]


def _dedupe(docs: Iterable[CandidateDocument]) -> List[CandidateDocument]:
    seen: Set[str] = set()
    unique: List[CandidateDocument] = []
    for doc in docs:
        if doc.url not in seen:
            seen.add(doc.url)
            unique.append(doc)
    return unique


def manual_posts(urls: Sequence[str]) -> DiscoveryResult:
    """Wrap a user-supplied URL list as a discovery result, without classification."""
    cleaned = remove_duplicates([u.strip() for u in urls if u and u.strip()])
    posts = tuple(CandidateDocument(url=u) for u in cleaned)
    return DiscoveryResult(posts=posts, total_found=len(posts), source=Source.MANUAL)


class DiscoveryEngine:
    """Resolves a domain into a list of candidate article URLs.

    Use as an async context manager so the HTTP session is closed, or pass
    an existing :class:`aiohttp.ClientSession`, which is then left open.
    """

    SITEMAP_PATHS: Sequence[str] = (
        "/sitemap.xml",
        "/sitemap_index.xml",
        "/sitemap-index.xml",
        "/blog-sitemap.xml",
        "/post-sitemap.xml",
        "/sitemap-posts.xml",
        "/wp-sitemap.xml",
        "/sitemap.xml.gz",
    )
    FEED_PATHS: Sequence[str] = (
        "/feed",
        "/rss",
        "/feed.xml",
        "/rss.xml",
        "/atom.xml",
        "/index.xml",
        "/blog/feed",
        "/blog/rss.xml",
    )
    HTML_SITEMAP_PATHS: Sequence[str] = (
        "/sitemap",
        "/sitemap.html",
        "/site-map",
        "/html-sitemap",
    )

    def __init__(
        self,
        config: Optional[DiscoveryConfig] = None,
        *,
        session: Optional[ClientSession] = None,
        fetcher: Optional[RetryingFetcher] = None,
    ) -> None:
        self.config = config or DiscoveryConfig()
        self.session = session
        self._owns_session = session is None
        self.fetcher = fetcher
        self.logger = logging.getLogger("BlogScout")

    async def __aenter__(self) -> DiscoveryEngine:
        if self.session is None:
            self.session = ClientSession(
                timeout=ClientTimeout(total=self.config.fetch.timeout),
                headers={"User-Agent": self.config.fetch.user_agent},
                raise_for_status=False,
            )
        if self.fetcher is None:
            self.fetcher = RetryingFetcher(self.session, self.config.fetch)
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self._owns_session and self.session and not self.session.closed:
            await self.session.close()

    # ------------------------------------------------------------------ #
    # Public API                                                           #
    # ------------------------------------------------------------------ #

    async def discover(
        self,
        domain: str,
        limit: Optional[int] = None,
        *,
        deadline: Optional[float] = None,
    ) -> DiscoveryResult:
        """Discover article URLs of *domain*.

        Args:
            domain: bare domain or any URL on the site.
            limit: maximum number of posts returned (config default if None).
            deadline: absolute ``loop.time()`` after which discovery is cancelled.

        Raises:
            InvalidDomain: *domain* cannot be normalized.
            ValueError: *limit* is below 1.
        """
        if self.fetcher is None:
            raise RuntimeError("DiscoveryEngine must be entered with 'async with'")
        limit = self.config.default_limit if limit is None else limit
        if limit < 1:
            raise ValueError("limit must be >= 1")
        base_url = normalize_domain(domain)
        self.logger.info("Discovering posts for %s", base_url)

        try:
            async with asyncio.timeout_at(deadline):
                return await self._run_strategies(base_url, limit)
        except TimeoutError:
            self.logger.warning("Discovery for %s hit the deadline", base_url)
            return DiscoveryResult(posts=(), total_found=0, source=Source.SITEMAP, error=DEADLINE_ERROR)

    async def _run_strategies(self, base_url: str, limit: int) -> DiscoveryResult:
        strategies = (
            (Source.SITEMAP, self.from_sitemaps),
            (Source.FEED, self.from_feeds),
            (Source.HTML, self.from_html_sitemaps),
        )
        documents_read = 0
        for source, strategy in strategies:
            outcome = await strategy(base_url)
            if outcome:
                ordered = sort_candidates(outcome.content)
                self.logger.info(
                    "%s: %d content URLs via %s", base_url, len(ordered), source.value
                )
                return DiscoveryResult(
                    posts=tuple(ordered[:limit]), total_found=len(ordered), source=source
                )
            documents_read += outcome.documents_read
            self.logger.info("%s: %s strategy yielded nothing", base_url, source.value)
        error = NO_CONTENT_ERROR if documents_read else NO_SOURCES_ERROR
        return DiscoveryResult(posts=(), total_found=0, source=Source.SITEMAP, error=error)

    # ------------------------------------------------------------------ #
    # Strategies                                                           #
    # ------------------------------------------------------------------ #

    async def from_sitemaps(self, base_url: str) -> StrategyOutcome:
        """Classified, deduplicated entries of every reachable sitemap."""
        declared = await self._declared_sitemaps(base_url)
        candidates = remove_duplicates(declared + [base_url + path for path in self.SITEMAP_PATHS])

        semaphore = asyncio.Semaphore(self.config.sitemap_concurrency)
        visited: Set[str] = set()
        entries: List[CandidateDocument] = []
        read = 0
        level = candidates
        depth = 0
        while level:
            visited.update(level)
            documents = await asyncio.gather(*(self._load_sitemap(url, semaphore) for url in level))
            nested: List[str] = []
            for document in documents:
                if document is None:
                    continue
                read += 1
                entries.extend(document.entries)
                nested.extend(u for u in document.sitemaps if u not in visited)
            nested = remove_duplicates(nested)
            if nested and depth >= self.config.max_sitemap_depth:
                self.logger.warning(
                    "Sitemap nesting deeper than %d under %s, %d references ignored",
                    self.config.max_sitemap_depth, base_url, len(nested),
                )
                break
            level = nested
            depth += 1

        unique = _dedupe(entries)
        content = [doc for doc in unique if is_content_url(doc.url)]
        self.logger.debug(
            "Sitemaps of %s: %d read, %d URLs, %d look like content",
            base_url, read, len(unique), len(content),
        )
        return StrategyOutcome(content, read)

    async def from_feeds(self, base_url: str) -> StrategyOutcome:
        """Classified entries of the first feed that lists any content URL."""
        read = 0
        for path in self.FEED_PATHS:
            response = await self._soft_fetch(base_url + path)
            if response is None:
                continue
            docs = _dedupe(parse_feed(response.body, response.url))
            if docs:
                read += 1
            content = [doc for doc in docs if is_content_url(doc.url)]
            if content:
                return StrategyOutcome(content, read)
        return StrategyOutcome(documents_read=read)

    async def from_html_sitemaps(self, base_url: str) -> StrategyOutcome:
        """Same-site content links of the first HTML sitemap page that has any."""
        read = 0
        for path in self.HTML_SITEMAP_PATHS:
            response = await self._soft_fetch(base_url + path)
            if response is None:
                continue
            page = parse_html(response.text(), response.url)
            links = page.same_site_links()
            if links:
                read += 1
            content = [CandidateDocument(url=u) for u in links if is_content_url(u)]
            self.logger.debug(
                "HTML sitemap %s (%r): %d links, %d content", response.url, page.title, len(links), len(content)
            )
            if content:
                return StrategyOutcome(content, read)
        return StrategyOutcome(documents_read=read)

    # ------------------------------------------------------------------ #
    # Helpers                                                              #
    # ------------------------------------------------------------------ #

    async def _soft_fetch(self, url: str) -> Optional[FetchResponse]:
        assert self.fetcher is not None
        try:
            return await self.fetcher.fetch(url)
        except (NetworkError, ParseError) as exc:
            self.logger.debug("Skipping %s: %s", url, exc)
            return None

    async def _declared_sitemaps(self, base_url: str) -> List[str]:
        response = await self._soft_fetch(base_url + "/robots.txt")
        if response is None:
            return []
        declared = extract_sitemap_urls(response.text(), base_url)
        if declared:
            self.logger.debug("robots.txt of %s declares %d sitemaps", base_url, len(declared))
        return declared

    async def _load_sitemap(self, url: str, semaphore: asyncio.Semaphore) -> Optional[SitemapDocument]:
        """Fetched and parsed sitemap, or None when *url* gave nothing sitemap-like."""
        async with semaphore:
            response = await self._soft_fetch(url)
        if response is None:
            return None
        try:
            return parse_sitemap(response.body)
        except ParseError as exc:
            self.logger.debug("Falling back to <loc> scan for %s: %s", url, exc)
        document = scan_locations(response.text())
        if not document.entries and not document.sitemaps:
            return None
        return document


async def discover(
    domain: str,
    limit: Optional[int] = None,
    *,
    config: Optional[DiscoveryConfig] = None,
    deadline: Optional[float] = None,
) -> DiscoveryResult:
    """One-shot discovery with a private HTTP session."""
    async with DiscoveryEngine(config) as engine:
        return await engine.discover(domain, limit, deadline=deadline)
