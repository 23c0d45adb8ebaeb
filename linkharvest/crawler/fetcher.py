"""
Web page fetcher with bounded concurrency and per-domain rate limiting.
"""

import asyncio
import aiohttp
import logging
import time
from typing import Optional, Dict
from urllib.parse import urlparse
from dataclasses import dataclass
from aiohttp import ClientSession, ClientTimeout, ClientError


@dataclass
class FetchResult:
    """Result of a fetch operation."""
    url: str
    status_code: int
    content: Optional[str] = None
    headers: Optional[Dict[str, str]] = None
    error: Optional[str] = None
    fetch_time: float = 0.0
    content_type: Optional[str] = None
    encoding: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.content is not None


class DomainThrottle:
    """
    Enforces a minimum delay between request starts to the same domain.
    """

    def __init__(self, delay: float):
        self.delay = delay
        self.domain_last_access: Dict[str, float] = {}
        self._locks: Dict[str, asyncio.Lock] = {}

    def _get_domain(self, url: str) -> str:
        """Extract domain from URL."""
        try:
            return urlparse(url).netloc.lower()
        except ValueError:
            return "unknown"

    async def wait(self, url: str):
        """Sleep until ``url``'s domain may be requested again."""
        if self.delay <= 0:
            return

        domain = self._get_domain(url)
        lock = self._locks.setdefault(domain, asyncio.Lock())
        async with lock:
            last_access = self.domain_last_access.get(domain)
            if last_access is not None:
                remaining = self.delay - (time.monotonic() - last_access)
                if remaining > 0:
                    await asyncio.sleep(remaining)
            self.domain_last_access[domain] = time.monotonic()


class WebFetcher:
    """
    Fetches web pages with rate limiting and error handling.

    Failures never raise: they come back as a ``FetchResult`` with ``error``
    set, so one bad page cannot take the rest of the crawl down.
    """

    def __init__(self, user_agent: str, request_timeout: float = 30,
                 max_concurrent_requests: int = 3, politeness_delay: float = 0.0,
                 max_content_bytes: int = 10 * 1024 * 1024):
        self.user_agent = user_agent
        self.request_timeout = request_timeout
        self.max_concurrent_requests = max_concurrent_requests
        self.max_content_bytes = max_content_bytes

        self.logger = logging.getLogger(__name__)
        self.throttle = DomainThrottle(politeness_delay)

        # Session management
        self.session: Optional[ClientSession] = None
        self.semaphore = asyncio.Semaphore(max_concurrent_requests)

        # Statistics
        self.stats = {
            'total_requests': 0,
            'successful_requests': 0,
            'failed_requests': 0,
            'total_bytes_downloaded': 0
        }

    async def __aenter__(self):
        """Async context manager entry."""
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()

    async def start(self):
        """Initialize the fetcher session."""
        if self.session is None:
            timeout = ClientTimeout(total=self.request_timeout)
            headers = {'User-Agent': self.user_agent}

            self.session = aiohttp.ClientSession(
                timeout=timeout,
                headers=headers,
                connector=aiohttp.TCPConnector(
                    limit=self.max_concurrent_requests * 2,
                    limit_per_host=self.max_concurrent_requests,
                    ttl_dns_cache=300,
                    use_dns_cache=True
                )
            )
            self.logger.info("WebFetcher session started")

    async def close(self):
        """Close the fetcher session."""
        if self.session:
            await self.session.close()
            self.session = None
            self.logger.info("WebFetcher session closed")

    async def fetch(self, url: str) -> FetchResult:
        """
        Fetch a single URL.

        Args:
            url: The URL to fetch

        Returns:
            FetchResult object containing the response data or error information
        """
        if self.session is None:
            await self.start()

        async with self.semaphore:
            await self.throttle.wait(url)
            start_time = time.time()

            try:
                self.stats['total_requests'] += 1

                async with self.session.get(url) as response:
                    fetch_time = time.time() - start_time

                    headers = dict(response.headers)
                    content_type = response.headers.get('content-type', '').lower()

                    if response.status >= 400:
                        self.stats['failed_requests'] += 1
                        return FetchResult(
                            url=url,
                            status_code=response.status,
                            headers=headers,
                            content_type=content_type,
                            error=f"HTTP {response.status} {response.reason or ''}".strip(),
                            fetch_time=fetch_time
                        )

                    # Only download text content
                    if not self._is_text_content(content_type):
                        self.stats['failed_requests'] += 1
                        return FetchResult(
                            url=url,
                            status_code=response.status,
                            headers=headers,
                            content_type=content_type,
                            error=f"Non-text content type: {content_type or 'unknown'}",
                            fetch_time=fetch_time
                        )

                    content = await self._read_content_safely(response)
                    if content is None:
                        self.stats['failed_requests'] += 1
                        return FetchResult(
                            url=url,
                            status_code=response.status,
                            headers=headers,
                            content_type=content_type,
                            error=f"Content exceeds {self.max_content_bytes} bytes",
                            fetch_time=fetch_time
                        )

                    self.stats['total_bytes_downloaded'] += len(content)
                    self.stats['successful_requests'] += 1

                    self.logger.debug(f"Fetched {url}: {response.status} ({len(content)} bytes)")
                    return FetchResult(
                        url=url,
                        status_code=response.status,
                        content=content,
                        headers=headers,
                        content_type=content_type,
                        encoding=response.charset,
                        fetch_time=time.time() - start_time
                    )

            except asyncio.TimeoutError:
                error_msg = "Request timeout"

            except ClientError as e:
                error_msg = f"Client error: {e}"

            self.stats['failed_requests'] += 1
            return FetchResult(
                url=url,
                status_code=0,
                error=error_msg,
                fetch_time=time.time() - start_time
            )

    def _is_text_content(self, content_type: str) -> bool:
        """Check if content type is HTML-like."""
        text_types = [
            'text/html',
            'application/xhtml+xml',
        ]

        return any(text_type in content_type for text_type in text_types)

    async def _read_content_safely(self, response) -> Optional[str]:
        """
        Read response content with a size limit.

        Returns:
            Content string or None if too large
        """
        content_length = response.headers.get('content-length')
        if content_length and content_length.isdigit() and int(content_length) > self.max_content_bytes:
            self.logger.warning(f"Content too large ({content_length} bytes): {response.url}")
            return None

        content_bytes = b''
        async for chunk in response.content.iter_chunked(8192):
            content_bytes += chunk
            if len(content_bytes) > self.max_content_bytes:
                self.logger.warning(f"Content exceeded size limit during reading: {response.url}")
                return None

        encoding = response.charset or 'utf-8'
        try:
            return content_bytes.decode(encoding)
        except (UnicodeDecodeError, LookupError):
            return content_bytes.decode('utf-8', errors='replace')

    def get_stats(self) -> Dict[str, int]:
        """Get fetcher statistics."""
        return self.stats.copy()
