"""
Crawl pipeline: visit the seeds, collect titles and links, reconcile.
"""

import logging
import time
from typing import Dict, List, Optional, Sequence, Tuple
from dataclasses import dataclass, field

from .aggregator import Aggregator
from .collector import Collector, CollectorStats
from .fetcher import WebFetcher
from .models import ExportRow
from .parser import HTMLElement, PageContext
from ..errors import VisitError
from ..utils.config import Config


@dataclass
class CrawlReport:
    """Outcome of one crawl."""
    rows: Tuple[ExportRow, ...]
    titles: Dict[str, str]
    stats: CollectorStats
    failed_pages: List[Tuple[str, str]] = field(default_factory=list)
    rejected_seeds: List[Tuple[str, str]] = field(default_factory=list)
    elapsed_time: float = 0.0

    @property
    def link_count(self) -> int:
        return len(self.rows)


class LinkCrawler:
    """
    Coordinates the collector, the aggregator and the reconciliation pass.

    ``fetcher`` defaults to a ``WebFetcher`` built from the crawler config;
    pass one in to crawl something other than the network.
    """

    def __init__(self, config: Config, fetcher=None):
        self.config = config
        self.logger = logging.getLogger(__name__)

        self._owns_fetcher = fetcher is None
        self.fetcher = fetcher or WebFetcher(
            user_agent=config.crawler.user_agent,
            request_timeout=config.crawler.request_timeout,
            max_concurrent_requests=config.crawler.parallelism,
            politeness_delay=config.crawler.politeness_delay,
            max_content_bytes=config.crawler.max_content_bytes
        )

        self.aggregator = Aggregator()
        self.collector = Collector(self.fetcher, parallelism=config.crawler.parallelism)

        self.collector.on_request(self._on_request)
        self.collector.on_html(config.extraction.title_selector, self._on_title)
        self.collector.on_html(config.extraction.link_selector, self._on_link)
        self.collector.on_error(self._on_error)

    def _on_request(self, context: PageContext):
        self.logger.info(f"Visiting: {context.url}")

    def _on_title(self, element: HTMLElement):
        child_selector = self.config.extraction.title_child_selector
        title = element.child_text(child_selector) if child_selector else element.text
        if self.aggregator.record_title(element.request.url, title):
            self.logger.info(f"Title: {title}")

    def _on_link(self, element: HTMLElement):
        link = element.request.absolute_url(element.attr('href'))
        if link:
            self.aggregator.record_link(element.request.url, link)

    def _on_error(self, context: PageContext, error: str):
        self.logger.error(f"Error visiting {context.url}: {error}")

    async def run(self, seed_urls: Optional[Sequence[str]] = None) -> CrawlReport:
        """
        Crawl every seed once and return the reconciled link records.

        Individual page failures are logged and reported, never raised.
        """
        seeds = list(seed_urls if seed_urls is not None else self.config.crawler.seed_urls)
        start_time = time.time()
        rejected: List[Tuple[str, str]] = []

        try:
            for url in seeds:
                try:
                    self.collector.visit(url)
                except VisitError as e:
                    rejected.append((url, str(e)))
                    self.logger.error(f"Could not visit {url}: {e}")

            await self.collector.wait()
        finally:
            if self._owns_fetcher:
                await self.fetcher.close()

        self.aggregator.close()
        self.aggregator.reconcile()

        rows = self.aggregator.snapshot()
        self.logger.info(f"Link count: {len(rows)}")

        return CrawlReport(
            rows=rows,
            titles=self.aggregator.titles(),
            stats=self.collector.stats,
            failed_pages=list(self.collector.failed_pages),
            rejected_seeds=rejected,
            elapsed_time=time.time() - start_time
        )
