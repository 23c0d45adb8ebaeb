"""Shared fixtures for link harvester tests."""

import asyncio
from typing import Dict, Optional, Union

import pytest

from linkharvest.crawler.fetcher import FetchResult
from linkharvest.utils.config import Config, ConfigManager


def wiki_page(title: Optional[str], hrefs, heading_id: str = "firstHeading") -> str:
    """Build a small page shaped like a Wikipedia article."""
    heading = f'<h1 id="{heading_id}"><i>{title}</i></h1>' if title is not None else ""
    anchors = "".join(
        f'<a href="{href}">link</a>' if href is not None else '<a>no href</a>'
        for href in hrefs
    )
    return (
        "<html><head><title>ignored</title></head><body>"
        f"{heading}"
        f'<div class="mw-body-content">{anchors}</div>'
        '<div class="footer"><a href="/outside">outside</a></div>'
        "</body></html>"
    )


class StubFetcher:
    """In-memory fetcher: maps a URL to page HTML or to an error string."""

    def __init__(self, pages: Dict[str, Union[str, Exception]], delay: float = 0.0):
        self.pages = pages
        self.delay = delay
        self.requested = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def fetch(self, url: str) -> FetchResult:
        self.requested.append(url)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)

            page = self.pages.get(url)
            if page is None:
                return FetchResult(url=url, status_code=404, error="HTTP 404 Not Found")
            if isinstance(page, Exception):
                return FetchResult(url=url, status_code=0, error=f"Client error: {page}")
            return FetchResult(url=url, status_code=200, content=page,
                               content_type="text/html")
        finally:
            self.in_flight -= 1

    async def close(self):
        pass


@pytest.fixture
def make_config(tmp_path):
    """Factory for a validated Config writing into tmp_path."""

    def _make(seeds, **crawler_overrides):
        crawler = {"seed_urls": list(seeds), "politeness_delay": 0}
        crawler.update(crawler_overrides)
        return ConfigManager.from_dict({
            "crawler": crawler,
            "export": {"path": str(tmp_path / "links.xlsx")},
            "logging": {"file": str(tmp_path / "logs" / "parser.log"), "level": "DEBUG"},
        })

    return _make


@pytest.fixture
def default_config() -> Config:
    return Config()
