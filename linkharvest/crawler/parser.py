"""
Parsed document handles passed to extraction callbacks.
"""

import re
from typing import Iterator, Optional
from urllib.parse import urljoin, urlparse, urlunparse
from dataclasses import dataclass, field
from bs4 import BeautifulSoup, Comment
from bs4.element import Tag


WHITESPACE_PATTERN = re.compile(r'\s+')


def clean_text(text: Optional[str]) -> str:
    """Collapse runs of whitespace and strip."""
    if not text:
        return ""
    return WHITESPACE_PATTERN.sub(' ', text.strip())


def absolute_url(base_url: str, href: Optional[str]) -> Optional[str]:
    """
    Resolve an href against the page it was found on.

    Returns None for empty or fragment-only hrefs and for anything urllib
    cannot parse. Other schemes (mailto:, tel:, javascript:) are kept as is.
    The fragment is dropped from the result.
    """
    if href is None:
        return None

    href = href.strip()
    if not href or href.startswith('#'):
        return None

    try:
        parsed = urlparse(urljoin(base_url, href))
        if not parsed.scheme:
            return None

        return urlunparse((
            parsed.scheme,
            parsed.netloc.lower(),
            parsed.path,
            parsed.params,
            parsed.query,
            ''  # Remove fragment
        ))
    except ValueError:
        return None


@dataclass
class PageContext:
    """Request context for a page being processed."""
    url: str
    status_code: int = 0
    headers: dict = field(default_factory=dict)
    base_url: Optional[str] = None

    def absolute_url(self, href: Optional[str]) -> Optional[str]:
        """Resolve against the document's <base href> if it has one."""
        return absolute_url(self.base_url or self.url, href)


class HTMLElement:
    """A single selector match within a page."""

    def __init__(self, tag: Tag, context: PageContext):
        self.tag = tag
        self.request = context

    @property
    def name(self) -> str:
        return self.tag.name

    @property
    def text(self) -> str:
        return clean_text(self.tag.get_text(separator=' '))

    def attr(self, name: str) -> str:
        """Attribute value, or an empty string when absent."""
        value = self.tag.get(name)
        if isinstance(value, list):
            value = ' '.join(value)
        return value or ""

    def child_text(self, selector: str) -> str:
        """Concatenated text of all children matching ``selector``."""
        return clean_text(
            ' '.join(child.get_text(separator=' ') for child in self.tag.select(selector))
        )

    def __repr__(self) -> str:
        return f"<HTMLElement {self.name} on {self.request.url}>"


class HTMLDocument:
    """
    Parsed HTML page with CSS selector access.
    """

    def __init__(self, context: PageContext, html_content: str):
        self.context = context
        self.soup = BeautifulSoup(html_content, 'lxml')

        # Remove comments so they never leak into element text
        for comment in self.soup.find_all(string=lambda text: isinstance(text, Comment)):
            comment.extract()

        base_tag = self.soup.find('base', href=True)
        if base_tag and base_tag['href'].strip():
            try:
                context.base_url = urljoin(context.url, base_tag['href'].strip())
            except ValueError:
                context.base_url = None

    @property
    def url(self) -> str:
        return self.context.url

    def select(self, selector: str) -> Iterator[HTMLElement]:
        """Yield every element matching ``selector`` in document order."""
        for tag in self.soup.select(selector):
            yield HTMLElement(tag, self.context)
