# File: blog_scout/scheduler.py
"""blog_scout.scheduler: bounded-concurrency batch execution.

URLs are processed in chunks of ``concurrency`` items. Items of one chunk run
concurrently, chunks run one after another, so at most ``concurrency``
workers are ever active. Each item gets ``item_timeout`` seconds; failures
and timeouts are recorded per item and never abort the batch.

Plain (blocking) workers run in daemon threads, so an item that never
returns costs its timeout but does not keep the process alive.
"""
from __future__ import annotations

import asyncio
import inspect
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Tuple, Union

from blog_scout.config import BatchConfig
from blog_scout.crawler.models import CandidateDocument
from blog_scout.logger import logger

__all__ = (
    "BatchResult",
    "BatchScheduler",
    "Failure",
    "ProgressSnapshot",
    "Success",
    "run_batch",
)

TIMEOUT_ERROR = "timeout"
CANCELLED_ERROR = "cancelled"

Worker = Callable[[str], Union[Awaitable[Any], Any]]
ProgressSink = Callable[["ProgressSnapshot"], Union[Awaitable[None], None]]
BatchItem = Union[str, CandidateDocument]


@dataclass(frozen=True, slots=True)
class Success:
    """Worker result for *url*; ``document`` carries the discovery metadata when the input had it."""

    url: str
    result: Any
    document: Optional[CandidateDocument] = None


@dataclass(frozen=True, slots=True)
class Failure:
    url: str
    error: str
    timestamp: datetime


@dataclass(frozen=True, slots=True)
class ProgressSnapshot:
    """State of a running batch, emitted once per finished chunk."""

    total: int
    completed: int
    current_item: str
    percentage: int
    estimated_remaining_seconds: int
    errors: Tuple[str, ...] = ()


@dataclass(slots=True)
class BatchResult:
    """Outcome of a batch.

    Every input URL ends up in exactly one of ``successes``, ``failures`` or,
    only when the batch was cancelled, ``skipped``.
    """

    successes: Dict[str, Success] = field(default_factory=dict)
    failures: Dict[str, Failure] = field(default_factory=dict)
    total_duration_ms: float = 0.0
    cancelled: bool = False
    skipped: Tuple[str, ...] = ()

    @property
    def completed(self) -> int:
        return len(self.successes) + len(self.failures)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "successes": [
                {
                    "url": s.url,
                    "result": s.result,
                    "last_modified": (
                        s.document.last_modified.isoformat()
                        if s.document is not None and s.document.last_modified
                        else None
                    ),
                }
                for s in self.successes.values()
            ],
            "failures": [
                {"url": f.url, "error": f.error, "timestamp": f.timestamp.isoformat()}
                for f in self.failures.values()
            ],
            "total_duration_ms": round(self.total_duration_ms, 1),
            "cancelled": self.cancelled,
            "skipped": list(self.skipped),
        }


def _error_message(exc: BaseException) -> str:
    return str(exc) or type(exc).__name__


def _chunks(items: Sequence[str], size: int) -> List[Sequence[str]]:
    return [items[i:i + size] for i in range(0, len(items), size)]


def _index_items(items: Sequence[BatchItem]) -> Dict[str, Optional[CandidateDocument]]:
    """Unique URLs in input order, mapped to the first document given for each."""
    indexed: Dict[str, Optional[CandidateDocument]] = {}
    for item in items:
        if isinstance(item, CandidateDocument):
            if indexed.get(item.url) is None:
                indexed[item.url] = item
        else:
            indexed.setdefault(item, None)
    return indexed


def _in_daemon_thread(worker: Worker, url: str) -> asyncio.Future:
    """Run a blocking *worker* in its own daemon thread.

    A worker that never returns cannot keep the interpreter alive: the
    thread is abandoned once the awaiting item times out.
    """
    loop = asyncio.get_running_loop()
    future = loop.create_future()

    def settle(value: Any, error: Optional[BaseException]) -> None:
        if future.done():
            return
        if error is not None:
            future.set_exception(error)
        else:
            future.set_result(value)

    def target() -> None:
        try:
            value, error = worker(url), None
        except Exception as exc:
            value, error = None, exc
        try:
            loop.call_soon_threadsafe(settle, value, error)
        except RuntimeError:
            logger.debug("Result for %s arrived after the event loop closed", url)

    threading.Thread(target=target, name=f"blog-scout-worker:{url}", daemon=True).start()
    return future


class BatchScheduler:
    """Runs a worker over a URL list in sequential chunks of concurrent items."""

    def __init__(
        self,
        config: Optional[BatchConfig] = None,
        on_progress: Optional[ProgressSink] = None,
    ) -> None:
        self.config = config or BatchConfig()
        self.on_progress = on_progress

    async def run(
        self,
        items: Sequence[BatchItem],
        worker: Worker,
        *,
        deadline: Optional[float] = None,
    ) -> BatchResult:
        """Analyze every item with *worker*.

        *deadline* is an absolute ``loop.time()``; once it passes, in-flight
        items are cancelled and the partial result is returned.
        """
        documents = _index_items(items)
        urls = list(documents)
        result = BatchResult()
        start = time.monotonic()
        logger.info(
            "Starting batch of %d URLs (%d concurrent, %.1f s per item)",
            len(urls), self.config.concurrency, self.config.item_timeout,
        )

        started = 0
        try:
            async with asyncio.timeout_at(deadline):
                for chunk in _chunks(urls, self.config.concurrency):
                    started += len(chunk)
                    await asyncio.gather(
                        *(self._run_item(url, documents[url], worker, result) for url in chunk)
                    )
                    await self._report(result, len(urls), chunk[-1], start)
        except TimeoutError:
            result.cancelled = True
            now = datetime.now(timezone.utc)
            for url in urls[:started]:
                if url not in result.successes and url not in result.failures:
                    result.failures[url] = Failure(url=url, error=CANCELLED_ERROR, timestamp=now)
            result.skipped = tuple(urls[started:])
            logger.warning(
                "Batch cancelled by deadline: %d done, %d skipped", result.completed, len(result.skipped)
            )

        result.total_duration_ms = (time.monotonic() - start) * 1000
        logger.info(
            "Batch complete: %d successful, %d failed in %.0f ms",
            len(result.successes), len(result.failures), result.total_duration_ms,
        )
        return result

    async def _run_item(
        self, url: str, document: Optional[CandidateDocument], worker: Worker, result: BatchResult
    ) -> None:
        try:
            value = await asyncio.wait_for(self._call(worker, url), timeout=self.config.item_timeout)
        except TimeoutError:
            result.failures[url] = Failure(url, TIMEOUT_ERROR, datetime.now(timezone.utc))
            logger.warning("Timed out analyzing %s after %.1f s", url, self.config.item_timeout)
        except Exception as exc:
            result.failures[url] = Failure(url, _error_message(exc), datetime.now(timezone.utc))
            logger.warning("Failed to analyze %s: %s", url, _error_message(exc))
        else:
            result.successes[url] = Success(url, value, document)

    @staticmethod
    async def _call(worker: Worker, url: str) -> Any:
        if inspect.iscoroutinefunction(worker):
            return await worker(url)
        value = await _in_daemon_thread(worker, url)
        if inspect.isawaitable(value):
            return await value
        return value

    async def _report(self, result: BatchResult, total: int, current: str, start: float) -> None:
        if self.on_progress is None:
            return
        completed = result.completed
        elapsed = time.monotonic() - start
        remaining = (elapsed / completed) * total - elapsed if completed else 0.0
        snapshot = ProgressSnapshot(
            total=total,
            completed=completed,
            current_item=current,
            percentage=round(completed / total * 100) if total else 100,
            estimated_remaining_seconds=max(0, round(remaining)),
            errors=tuple(f"{f.url}: {f.error}" for f in result.failures.values()),
        )
        try:
            outcome = self.on_progress(snapshot)
            if inspect.isawaitable(outcome):
                await outcome
        except Exception:
            logger.exception("Progress callback failed")


async def run_batch(
    urls: Sequence[BatchItem],
    worker: Worker,
    *,
    concurrency: int = 3,
    item_timeout: float = 30.0,
    on_progress: Optional[ProgressSink] = None,
    deadline: Optional[float] = None,
) -> BatchResult:
    """Functional shortcut around :class:`BatchScheduler`."""
    scheduler = BatchScheduler(
        BatchConfig(concurrency=concurrency, item_timeout=item_timeout),
        on_progress=on_progress,
    )
    return await scheduler.run(urls, worker, deadline=deadline)
