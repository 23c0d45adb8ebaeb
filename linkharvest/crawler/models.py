"""
Record types produced by a crawl.
"""

from dataclasses import dataclass
from typing import NamedTuple


class ExportRow(NamedTuple):
    """Immutable row handed to the exporter."""
    page_url: str
    page_title: str
    link_url: str


@dataclass
class LinkRecord:
    """A link found on a page, together with that page's title."""
    page_url: str
    page_title: str
    link_url: str

    def as_row(self) -> ExportRow:
        """Freeze this record for export."""
        return ExportRow(self.page_url, self.page_title, self.link_url)
