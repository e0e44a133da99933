"""
URL frontier: the bounded set of URLs admitted to a crawl.
"""

import logging
import threading
from typing import Callable, Dict, Iterable, List, Optional, Set


class URLFrontier:
    """
    Set of URLs seen during a crawl, bounded by a crawl budget.

    Checking membership, checking the budget and reacting to an admitted URL
    happen under one lock, so concurrent tasks can never admit the same URL
    twice or admit more URLs than the budget allows.
    """

    def __init__(self, max_size: int):
        self.max_size = max(1, max_size)
        self.logger = logging.getLogger(__name__)

        self._seen: Set[str] = set()
        self._lock = threading.Lock()
        self._rejected = 0

    def admit(self, url: str) -> bool:
        """Admit a single URL. Returns True if it was new and there was room."""
        return bool(self.admit_all([url]))

    def admit_all(self, urls: Iterable[str],
                  on_admit: Optional[Callable[[str], None]] = None) -> List[str]:
        """
        Admit URLs in order until the frontier is full.

        Args:
            urls: Candidate URLs, already absolute and normalized
            on_admit: Called with each admitted URL while the frontier lock is
                held; it must not block (submitting a task is fine)

        Returns:
            The URLs that were admitted, in order
        """
        admitted = []

        with self._lock:
            for url in urls:
                if len(self._seen) >= self.max_size:
                    break

                if url in self._seen:
                    self._rejected += 1
                    continue

                self._seen.add(url)
                admitted.append(url)

                if on_admit is not None:
                    on_admit(url)

        if admitted:
            self.logger.debug(f"Admitted {len(admitted)} URLs to frontier")
        return admitted

    def is_full(self) -> bool:
        with self._lock:
            return len(self._seen) >= self.max_size

    def __contains__(self, url: str) -> bool:
        with self._lock:
            return url in self._seen

    def __len__(self) -> int:
        with self._lock:
            return len(self._seen)

    def get_urls(self) -> List[str]:
        with self._lock:
            return sorted(self._seen)

    def get_stats(self) -> Dict[str, int]:
        """Get frontier statistics."""
        with self._lock:
            return {
                'total_admitted': len(self._seen),
                'duplicates_rejected': self._rejected,
                'max_size': self.max_size
            }
