"""
Post-crawl reconciliation of link titles.
"""

import logging
from typing import Iterable, Mapping

from .models import LinkRecord

UNKNOWN_TITLE = "unknown title"

logger = logging.getLogger(__name__)


def reconcile(records: Iterable[LinkRecord], titles: Mapping[str, str]) -> int:
    """
    Rewrite each record's page title from the final title index.

    Records whose page has no title get ``UNKNOWN_TITLE``. Must only run once
    every crawl worker has drained; it takes no lock.

    Returns:
        Number of records whose title was changed
    """
    changed = 0
    for record in records:
        title = titles.get(record.page_url, UNKNOWN_TITLE)
        if record.page_title != title:
            record.page_title = title
            changed += 1

    logger.debug(f"Reconciled {changed} link titles")
    return changed
