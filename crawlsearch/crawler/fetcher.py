"""
Web page fetcher with bounded retries and redirects.

Crawl tasks run on worker threads, so ``fetch_html`` drives the aiohttp
request on a private event loop for the calling thread.
"""

import asyncio
import logging
import threading
import time
from dataclasses import dataclass
from typing import Dict, Optional

import aiohttp
from aiohttp import ClientError, ClientSession, ClientTimeout


@dataclass
class FetchResult:
    """Result of a fetch operation."""
    url: str
    status_code: int
    content: Optional[str] = None
    error: Optional[str] = None
    fetch_time: float = 0.0
    content_type: Optional[str] = None
    attempts: int = 0

    @property
    def ok(self) -> bool:
        return self.error is None and self.content is not None


class WebFetcher:
    """
    Fetches HTML pages. Only a 200 response with an HTML content type yields
    content; network errors and timeouts are retried a fixed number of times.
    """

    def __init__(self, user_agent: str = "crawlsearch/1.0", request_timeout: int = 30,
                 retry_attempts: int = 3, max_redirects: int = 3,
                 max_size: int = 10 * 1024 * 1024):
        self.user_agent = user_agent
        self.request_timeout = request_timeout
        self.retry_attempts = max(1, retry_attempts)
        self.max_redirects = max(0, max_redirects)
        self.max_size = max_size

        self.logger = logging.getLogger(__name__)

        # Statistics, updated from several worker threads
        self._stats_lock = threading.Lock()
        self.stats = {
            'total_requests': 0,
            'successful_requests': 0,
            'failed_requests': 0,
            'total_bytes_downloaded': 0
        }

    def fetch_html(self, url: str) -> Optional[str]:
        """
        Fetch a page and return its HTML, or None if it could not be fetched.

        Never raises; safe to call from any worker thread.
        """
        try:
            result = asyncio.run(self.fetch(url))
        except Exception as e:
            self.logger.error(f"Unexpected error fetching {url}: {e}")
            return None

        return result.content if result.ok else None

    async def fetch(self, url: str) -> FetchResult:
        """
        Fetch a single URL, retrying network failures.

        Args:
            url: The URL to fetch

        Returns:
            FetchResult object containing the response data or error information
        """
        timeout = ClientTimeout(total=self.request_timeout)
        headers = {'User-Agent': self.user_agent}

        async with ClientSession(timeout=timeout, headers=headers) as session:
            result = None
            for attempt in range(1, self.retry_attempts + 1):
                result = await self._fetch_once(session, url)
                result.attempts = attempt
                if result.status_code != 0:
                    break
                self.logger.debug(f"Attempt {attempt}/{self.retry_attempts} failed for {url}: {result.error}")

            return result

    async def _fetch_once(self, session: ClientSession, url: str) -> FetchResult:
        start_time = time.time()
        self._count('total_requests')

        try:
            # aiohttp raises once the redirect count reaches max_redirects
            async with session.get(url, allow_redirects=self.max_redirects > 0,
                                   max_redirects=self.max_redirects + 1) as response:
                fetch_time = time.time() - start_time
                content_type = response.headers.get('content-type', '').lower()

                if response.status != 200:
                    self._count('failed_requests')
                    return FetchResult(
                        url=url,
                        status_code=response.status,
                        content_type=content_type,
                        error=f"HTTP status {response.status}",
                        fetch_time=fetch_time
                    )

                if not self._is_html_content(content_type):
                    self._count('failed_requests')
                    self.logger.debug(f"Skipping non-HTML content: {url} ({content_type})")
                    return FetchResult(
                        url=url,
                        status_code=response.status,
                        content_type=content_type,
                        error="Non-HTML content type",
                        fetch_time=fetch_time
                    )

                content = await self._read_content_safely(response)
                if content is None:
                    self._count('failed_requests')
                    return FetchResult(
                        url=url,
                        status_code=response.status,
                        content_type=content_type,
                        error="Unreadable or oversized content",
                        fetch_time=fetch_time
                    )

                self._count('successful_requests')
                self._count('total_bytes_downloaded', len(content))
                self.logger.debug(f"Fetched {url}: {response.status} ({len(content)} chars)")

                return FetchResult(
                    url=url,
                    status_code=response.status,
                    content=content,
                    content_type=content_type,
                    fetch_time=fetch_time
                )

        except asyncio.TimeoutError:
            error_msg = "Request timeout"
            self.logger.warning(f"Timeout fetching {url}")

        except aiohttp.TooManyRedirects:
            # a redirect loop will not resolve on retry
            self._count('failed_requests')
            self.logger.warning(f"Too many redirects fetching {url}")
            return FetchResult(url=url, status_code=310, error="Too many redirects",
                               fetch_time=time.time() - start_time)

        except (ClientError, ValueError) as e:
            error_msg = f"Client error: {e}"
            self.logger.warning(f"Client error fetching {url}: {e}")

        self._count('failed_requests')
        return FetchResult(
            url=url,
            status_code=0,
            error=error_msg,
            fetch_time=time.time() - start_time
        )

    def _is_html_content(self, content_type: str) -> bool:
        return 'text/html' in content_type or 'application/xhtml+xml' in content_type

    async def _read_content_safely(self, response) -> Optional[str]:
        """
        Read response content with a size limit.

        Returns:
            Content string or None if too large
        """
        content_length = response.headers.get('content-length')
        if content_length and content_length.isdigit() and int(content_length) > self.max_size:
            self.logger.warning(f"Content too large ({content_length} bytes): {response.url}")
            return None

        content_bytes = b''
        async for chunk in response.content.iter_chunked(8192):
            content_bytes += chunk
            if len(content_bytes) > self.max_size:
                self.logger.warning(f"Content exceeded size limit during reading: {response.url}")
                return None

        encoding = response.charset or 'utf-8'
        try:
            return content_bytes.decode(encoding)
        except (UnicodeDecodeError, LookupError):
            return content_bytes.decode('utf-8', errors='ignore')

    def _count(self, key: str, amount: int = 1):
        with self._stats_lock:
            self.stats[key] += amount

    def get_stats(self) -> Dict[str, int]:
        """Get fetcher statistics."""
        with self._stats_lock:
            return self.stats.copy()
