"""
Callback-driven page collector.

Seeds are visited by a fixed pool of worker tasks. For every page the
collector fires request callbacks, fetches the document, then dispatches each
registered selector's matches to its HTML callback. Failures go to the error
callbacks and never stop the other workers.
"""

import asyncio
import logging
from typing import Callable, List, Optional, Set, Tuple
from urllib.parse import urlparse
from dataclasses import dataclass

from .fetcher import FetchResult
from .parser import HTMLDocument, HTMLElement, PageContext
from ..errors import VisitError

RequestCallback = Callable[[PageContext], None]
HTMLCallback = Callable[[HTMLElement], None]
ErrorCallback = Callable[[PageContext, str], None]


@dataclass
class CollectorStats:
    """Page counters for one collector run."""
    pages_requested: int = 0
    pages_succeeded: int = 0
    pages_failed: int = 0


class Collector:
    """
    Visits a finite set of URLs with bounded parallelism.

    ``fetcher`` is anything with an ``async fetch(url) -> FetchResult``.
    """

    def __init__(self, fetcher, parallelism: int = 3):
        if parallelism < 1:
            raise ValueError("parallelism must be at least 1")

        self.fetcher = fetcher
        self.parallelism = parallelism
        self.logger = logging.getLogger(__name__)

        self.stats = CollectorStats()
        self.failed_pages: List[Tuple[str, str]] = []

        self._request_callbacks: List[RequestCallback] = []
        self._html_callbacks: List[Tuple[str, HTMLCallback]] = []
        self._error_callbacks: List[ErrorCallback] = []

        self._queue: Optional[asyncio.Queue] = None
        self._workers: List[asyncio.Task] = []
        self._visited: Set[str] = set()

    def on_request(self, callback: RequestCallback):
        self._request_callbacks.append(callback)
        return callback

    def on_html(self, selector: str, callback: HTMLCallback):
        self._html_callbacks.append((selector, callback))
        return callback

    def on_error(self, callback: ErrorCallback):
        self._error_callbacks.append(callback)
        return callback

    def visit(self, url: str):
        """
        Queue a URL for a single visit.

        Raises:
            VisitError: if the URL is not http(s) or was already queued
        """
        try:
            parsed = urlparse(url)
        except ValueError as e:
            raise VisitError(f"Invalid URL {url!r}: {e}") from e

        if parsed.scheme not in ('http', 'https') or not parsed.netloc:
            raise VisitError(f"Unsupported URL {url!r}")

        if url in self._visited:
            raise VisitError(f"URL already visited: {url}")

        self._visited.add(url)
        self._ensure_started()
        self._queue.put_nowait(url)

    def start(self):
        """Spawn the worker tasks. Must be called from a running event loop."""
        self._ensure_started()

    async def wait(self):
        """
        Block until every queued and in-flight page has been processed.

        This is the crawl barrier: once it returns, no callback will fire again.
        """
        if self._queue is None:
            return

        await self._queue.join()

        for worker in self._workers:
            worker.cancel()
        await asyncio.gather(*self._workers, return_exceptions=True)
        self._workers.clear()
        self._queue = None

        self.logger.debug(
            f"Collector drained: requested={self.stats.pages_requested}, "
            f"succeeded={self.stats.pages_succeeded}, failed={self.stats.pages_failed}"
        )

    def _ensure_started(self):
        if self._queue is not None:
            return

        self._queue = asyncio.Queue()
        self._workers = [
            asyncio.create_task(self._worker(f"worker-{i}"))
            for i in range(self.parallelism)
        ]

    async def _worker(self, worker_id: str):
        """Worker coroutine that processes URLs until cancelled."""
        self.logger.debug(f"Worker {worker_id} started")
        queue = self._queue

        while True:
            url = await queue.get()
            try:
                await self._process_url(url)
            except Exception as e:
                # Anything escaping the page pipeline is still a page failure
                self._fail(PageContext(url=url), f"Unexpected error: {e}")
            finally:
                queue.task_done()

    async def _process_url(self, url: str):
        """Fetch one page and dispatch its callbacks."""
        context = PageContext(url=url)
        self.stats.pages_requested += 1

        for callback in self._request_callbacks:
            callback(context)

        result: FetchResult = await self.fetcher.fetch(url)
        context.status_code = result.status_code
        context.headers = result.headers or {}

        if result.error or result.content is None:
            self._fail(context, result.error or "Empty response")
            return

        try:
            await asyncio.to_thread(self._dispatch_html, context, result.content)
        except Exception as e:
            self._fail(context, f"Error processing page: {e}")
            return

        self.stats.pages_succeeded += 1

    def _dispatch_html(self, context: PageContext, content: str):
        """Parse the page and feed each selector match to its callback."""
        if not self._html_callbacks:
            return

        document = HTMLDocument(context, content)
        for selector, callback in self._html_callbacks:
            for element in document.select(selector):
                callback(element)

    def _fail(self, context: PageContext, error: str):
        self.stats.pages_failed += 1
        self.failed_pages.append((context.url, error))
        for callback in self._error_callbacks:
            try:
                callback(context, error)
            except Exception:
                self.logger.exception(f"Error callback failed for {context.url}")
