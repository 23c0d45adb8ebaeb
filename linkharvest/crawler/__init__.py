"""
Link harvester core components.
"""

from .aggregator import Aggregator
from .collector import Collector, CollectorStats
from .fetcher import WebFetcher, FetchResult
from .models import LinkRecord, ExportRow
from .parser import HTMLDocument, HTMLElement, PageContext, absolute_url
from .reconciler import reconcile, UNKNOWN_TITLE
from .scheduler import LinkCrawler, CrawlReport

__all__ = [
    'Aggregator', 'Collector', 'CollectorStats',
    'WebFetcher', 'FetchResult',
    'LinkRecord', 'ExportRow',
    'HTMLDocument', 'HTMLElement', 'PageContext', 'absolute_url',
    'reconcile', 'UNKNOWN_TITLE',
    'LinkCrawler', 'CrawlReport'
]
