"""
Query searchers: turn query lines into normalized stem sets, search the index
and keep the ranked results per normalized query.
"""

import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple, Union

from ..concurrency.rwlock import NullLock, ReadWriteLock
from ..concurrency.work_queue import WorkQueue
from ..storage import json_writer
from ..utils.monitoring import get_monitor
from ..utils.text import Stemmer, joined, unique_stems
from .inverted_index import InvertedIndex, SearchResult


class QuerySearcher:
    """Searches one query line at a time on the calling thread."""

    def __init__(self, index: InvertedIndex, stemmer: Optional[Stemmer] = None):
        self.index = index
        self.stemmer = stemmer
        self.logger = logging.getLogger(__name__)

        self._results: Dict[str, List[SearchResult]] = {}
        self._lock = NullLock()

    def query_key(self, line: str) -> str:
        """Normalized form of a query line: its unique stems, sorted, space separated."""
        return joined(unique_stems(line, self.stemmer))

    def search(self, line: str, exact: bool):
        """Search a single query line unless its normalized query was already answered."""
        self._search_line(line, exact)

    def search_lines(self, lines: Iterable[str], exact: bool):
        """Search every line from a line source."""
        for line in lines:
            self.search(line, exact)

    def _search_line(self, line: str, exact: bool):
        stems = unique_stems(line, self.stemmer)
        key = joined(stems)

        if not stems or self.contains_query(key):
            return

        results = self.index.search(stems, exact)

        with self._lock.write_lock():
            self._results[key] = results

        self.logger.debug(f"Query '{key}' matched {len(results)} locations")
        monitor = get_monitor()
        if monitor:
            monitor.record_query(exact)

    def contains_query(self, key: str) -> bool:
        with self._lock.read_lock():
            return key in self._results

    def get_results(self, key: str) -> Tuple[SearchResult, ...]:
        """Ranked results of a normalized query; empty if it was never searched."""
        with self._lock.read_lock():
            return tuple(self._results.get(key, ()))

    def get_queries(self) -> Tuple[str, ...]:
        with self._lock.read_lock():
            return tuple(sorted(self._results))

    def results_to_json(self, output: Union[str, Path]):
        """Write every query and its ranked results as pretty JSON."""
        with self._lock.read_lock():
            json_writer.write_nested_search(self._results, output)

    def __len__(self) -> int:
        with self._lock.read_lock():
            return len(self._results)

    def __str__(self) -> str:
        with self._lock.read_lock():
            return json_writer.as_nested_search(self._results)


class MultithreadedSearcher(QuerySearcher):
    """
    Searches query lines on a work queue. The results table has its own lock,
    independent of the lock guarding the index.
    """

    def __init__(self, index: InvertedIndex, work_queue: WorkQueue,
                 stemmer: Optional[Stemmer] = None):
        super().__init__(index, stemmer)
        self.work_queue = work_queue
        self._lock = ReadWriteLock()

    def search(self, line: str, exact: bool):
        self.work_queue.execute(lambda: self._search_line(line, exact))
        self.work_queue.finish()

    def search_lines(self, lines: Iterable[str], exact: bool):
        for line in lines:
            self.work_queue.execute(lambda line=line: self._search_line(line, exact))

        self.work_queue.finish()
