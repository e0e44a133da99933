"""
Builds an inverted index from text files, sequentially or on a work queue.
"""

import logging
import threading
from pathlib import Path
from typing import Optional, Union

from ..concurrency.work_queue import WorkQueue
from ..utils.monitoring import get_monitor
from ..utils.text import Stemmer, find_text_files, list_file_stems
from .inverted_index import InvertedIndex


class InvertedIndexBuilder:
    """Single-threaded index builder."""

    def __init__(self, index: InvertedIndex, stemmer: Optional[Stemmer] = None):
        self.index = index
        self.stemmer = stemmer
        self.logger = logging.getLogger(__name__)

    def build(self, path: Union[str, Path]) -> int:
        """
        Index every text file found under a path.

        Args:
            path: A text file or a directory to walk

        Returns:
            Number of files indexed

        Raises:
            FileNotFoundError: if the path does not exist
        """
        indexed = 0
        for file in sorted(find_text_files(path)):
            if self.index_file(file, self.index):
                indexed += 1

        self.logger.info(f"Indexed {indexed} files from {path}")
        return indexed

    def index_file(self, file: Path, index: InvertedIndex) -> bool:
        """
        Add the stems of one file to an index, positions starting at 1.

        Returns False and leaves the index untouched if the file cannot be read.
        """
        try:
            stems = list(list_file_stems(file, self.stemmer))
        except (OSError, UnicodeDecodeError) as e:
            self.logger.warning(f"Unable to index {file}: {e}")
            return False

        index.add_stems(stems, str(file))

        monitor = get_monitor()
        if monitor:
            monitor.record_file_indexed()
        return True


class MultithreadedBuilder(InvertedIndexBuilder):
    """
    Builds one private index per file on a work queue and merges each into the
    shared thread-safe index.
    """

    def __init__(self, index: InvertedIndex, work_queue: WorkQueue,
                 stemmer: Optional[Stemmer] = None):
        super().__init__(index, stemmer)
        self.work_queue = work_queue
        self._count_lock = threading.Lock()
        self._indexed = 0

        if not index.is_thread_safe:
            self.logger.warning("MultithreadedBuilder given an index without a read/write lock")

    def build(self, path: Union[str, Path]) -> int:
        files = find_text_files(path)
        self._indexed = 0

        for file in files:
            self.work_queue.execute(lambda file=file: self._index_task(file))

        self.work_queue.finish()
        self.logger.info(f"Indexed {self._indexed} files from {path} on {self.work_queue.size} workers")
        return self._indexed

    def _index_task(self, file: Path):
        local = InvertedIndex()
        if self.index_file(file, local):
            self.index.add_all(local)
            with self._count_lock:
                self._indexed += 1
