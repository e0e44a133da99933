"""
Concurrent web crawler that indexes a bounded subgraph of the web.

Each crawl task fetches one page outside of any lock, admits the page's new
links to the frontier (submitting a task for each), stems the page text into a
private index and merges that index into the shared one in a single call.
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Dict, Optional

from ..concurrency.work_queue import WorkQueue
from ..index.inverted_index import InvertedIndex
from ..utils.logger import get_crawler_logger
from ..utils.monitoring import get_monitor
from ..utils.text import Stemmer, list_stems
from .fetcher import WebFetcher
from .parser import ContentParser
from .url_frontier import URLFrontier


@dataclass
class CrawlStats:
    """Statistics for one crawl."""
    start_time: float
    pages_indexed: int = 0
    fetch_failures: int = 0
    words_indexed: int = 0

    @property
    def elapsed_time(self) -> float:
        return time.time() - self.start_time


class WebCrawler:
    """
    Crawls from a seed URL on a work queue, admitting at most ``max_links``
    distinct URLs (seed included) and indexing every page that fetches.
    """

    def __init__(self, index: InvertedIndex, work_queue: WorkQueue, max_links: int = 1,
                 fetcher: Optional[WebFetcher] = None, parser: Optional[ContentParser] = None,
                 stemmer: Optional[Stemmer] = None):
        self.index = index
        self.work_queue = work_queue
        self.logger = get_crawler_logger(__name__)

        if max_links is None or max_links < 1:
            self.logger.warning(f"Invalid crawl limit {max_links!r}, using 1")
            max_links = 1
        self.max_links = max_links

        self.fetcher = fetcher or WebFetcher()
        self.parser = parser or ContentParser()
        self.stemmer = stemmer

        self.frontier = URLFrontier(max_links)
        self.stats = CrawlStats(start_time=time.time())
        self._stats_lock = threading.Lock()

    def crawl(self, seed: str) -> int:
        """
        Crawl from a seed URL and block until every spawned task is done.

        Returns:
            Number of URLs admitted to the frontier
        """
        self.stats = CrawlStats(start_time=time.time())
        self.logger.info(f"Crawling from {seed} (limit {self.max_links})")

        self.frontier.admit_all([seed], self._submit)
        self.work_queue.finish()

        self._log_final_stats()
        return len(self.frontier)

    def _submit(self, url: str):
        self.work_queue.execute(lambda: self._crawl_task(url))

    def _crawl_task(self, url: str):
        """Fetch, expand and index one page."""
        html = self.fetcher.fetch_html(url)

        if html is None:
            self.logger.log_url_event(logging.WARNING, url, f"Unable to fetch {url}")
            with self._stats_lock:
                self.stats.fetch_failures += 1
            monitor = get_monitor()
            if monitor:
                monitor.record_fetch_failure()
            return

        parsed = self.parser.parse(url, html)

        # one critical section decides every link of this page
        self.frontier.admit_all(parsed.links, self._submit)

        local = InvertedIndex()
        local.add_stems(list_stems(parsed.content, self.stemmer), url)
        self.index.add_all(local)

        words = local.get_count(url)
        with self._stats_lock:
            self.stats.pages_indexed += 1
            self.stats.words_indexed += words

        self.logger.log_url_event(logging.DEBUG, url, f"Indexed {words} words from {url}")
        monitor = get_monitor()
        if monitor:
            monitor.record_page_crawled()

    def _log_final_stats(self):
        frontier_stats = self.frontier.get_stats()

        self.logger.info("=== CRAWL COMPLETED ===")
        self.logger.info(f"URLs admitted: {frontier_stats['total_admitted']}")
        self.logger.info(f"Pages indexed: {self.stats.pages_indexed}")
        self.logger.info(f"Fetch failures: {self.stats.fetch_failures}")
        self.logger.info(f"Words indexed: {self.stats.words_indexed}")
        self.logger.info(f"Total time: {self.stats.elapsed_time:.2f} seconds")

    def get_stats(self) -> Dict:
        """Get crawl statistics."""
        with self._stats_lock:
            return {
                'urls_admitted': len(self.frontier),
                'pages_indexed': self.stats.pages_indexed,
                'fetch_failures': self.stats.fetch_failures,
                'words_indexed': self.stats.words_indexed,
                'elapsed_time': self.stats.elapsed_time
            }
