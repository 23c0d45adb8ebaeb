"""
Thread-safe accumulation of page titles and page links during a crawl.
"""

import logging
import threading
from typing import Dict, List, Tuple

from .models import ExportRow, LinkRecord
from .reconciler import reconcile
from ..errors import AggregatorStateError


class Aggregator:
    """
    Owns the title index and the link record list for one crawl.

    Title and link observers for the same page fire in no particular order
    and possibly from different threads. Links are filled optimistically with
    whatever title is known at append time; ``reconcile`` fixes them up once
    the crawl has drained.
    """

    def __init__(self):
        self.logger = logging.getLogger(__name__)
        self._lock = threading.Lock()
        self._titles: Dict[str, str] = {}
        self._links: List[LinkRecord] = []
        self._closed = False
        self._reconciled = False

    def record_title(self, page_url: str, title: str) -> bool:
        """
        Store the title for a page exactly as given. Last write wins.

        Returns:
            False if the title was empty and nothing was recorded
        """
        if not title:
            return False

        with self._lock:
            self._ensure_open()
            self._titles[page_url] = title
        return True

    def record_link(self, page_url: str, link_url: str) -> bool:
        """
        Append a link found on a page.

        Returns:
            False if the link was empty and nothing was recorded
        """
        if not link_url:
            return False

        with self._lock:
            self._ensure_open()
            self._links.append(LinkRecord(
                page_url=page_url,
                page_title=self._titles.get(page_url, ""),
                link_url=link_url
            ))
        return True

    def close(self):
        """End the crawl epoch. No further writes are accepted."""
        with self._lock:
            self._closed = True
        self.logger.debug(
            f"Aggregator closed with {len(self._titles)} titles, {len(self._links)} links"
        )

    @property
    def closed(self) -> bool:
        return self._closed

    def reconcile(self) -> int:
        """
        Correct every link's page title from the final title index.

        Only valid after ``close()``; by then no crawl worker can write.
        """
        if not self._closed:
            raise AggregatorStateError("Cannot reconcile while the crawl is still running")

        changed = reconcile(self._links, self._titles)
        self._reconciled = True
        return changed

    def titles(self) -> Dict[str, str]:
        """Copy of the title index."""
        with self._lock:
            return dict(self._titles)

    @property
    def link_count(self) -> int:
        with self._lock:
            return len(self._links)

    def __len__(self) -> int:
        return self.link_count

    def snapshot(self) -> Tuple[ExportRow, ...]:
        """Immutable copy of the link records, in collection order."""
        if not self._reconciled:
            raise AggregatorStateError("Link records have not been reconciled yet")

        return tuple(record.as_row() for record in self._links)

    def _ensure_open(self):
        if self._closed:
            raise AggregatorStateError("Aggregator is closed; the crawl has already finished")
