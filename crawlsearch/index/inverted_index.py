"""
Inverted index mapping word stems to the locations and positions they occur at.

Words are kept in a sorted key list so partial (prefix) searches can scan a
contiguous range and stop at the first key that no longer matches. Thread
safety is a lock policy chosen at construction: a worker-local index uses a
NullLock, the shared index a ReadWriteLock.
"""

import bisect
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Set, Tuple, Union

from ..concurrency.rwlock import NullLock, ReadWriteLock
from ..storage import json_writer


@dataclass(frozen=True)
class SearchResult:
    """Ranked match of a query against one location."""
    location: str
    count: int = 0
    score: float = 0.0

    @property
    def sort_key(self) -> Tuple[float, int, str, str]:
        """
        Better results sort first: higher score, then more matches, then
        location alphabetically ignoring case.
        """
        return (-self.score, -self.count, self.location.lower(), self.location)

    def __lt__(self, other: 'SearchResult') -> bool:
        if not isinstance(other, SearchResult):
            return NotImplemented
        return self.sort_key < other.sort_key

    def to_dict(self) -> dict:
        return {
            'count': self.count,
            'score': self.score,
            'where': self.location
        }


def update_result(result: SearchResult, matches: int,
                  word_counts: Mapping[str, int]) -> SearchResult:
    """Add matches to a result and recompute its score from the location's word count."""
    count = result.count + matches
    total = word_counts.get(result.location, 0)
    score = count / total if total else 0.0
    return replace(result, count=count, score=score)


class InvertedIndex:
    """
    Word stem -> location -> positions, plus the total word count per location.
    """

    def __init__(self, lock: Optional[Union[ReadWriteLock, NullLock]] = None):
        self._index: Dict[str, Dict[str, Set[int]]] = {}
        self._words: List[str] = []
        self._counts: Dict[str, int] = {}
        self._lock = lock if lock is not None else NullLock()

    @property
    def is_thread_safe(self) -> bool:
        return isinstance(self._lock, ReadWriteLock)

    # Mutators

    def add(self, word: str, location: str, position: int) -> bool:
        """
        Record a word at a position in a location.

        Returns:
            True if the position was new for that word and location
        """
        with self._lock.write_lock():
            return self._add(word, location, position)

    def add_stems(self, stems: Iterable[str], location: str, start: int = 1) -> int:
        """Add stems at consecutive positions beginning at start. Returns the next position."""
        position = start
        with self._lock.write_lock():
            for stem in stems:
                self._add(stem, location, position)
                position += 1
        return position

    def add_all(self, other: 'InvertedIndex'):
        """Merge every word, location and position of another index into this one."""
        if other is self:
            return

        # never hold both locks, so two indexes can merge into each other concurrently
        with other._lock.read_lock():
            donor = {
                word: {location: set(positions) for location, positions in locations.items()}
                for word, locations in other._index.items()
            }

        with self._lock.write_lock():
            for word, locations in donor.items():
                inner = self._index.get(word)
                if inner is None:
                    inner = self._index[word] = {}
                    bisect.insort(self._words, word)

                for location, positions in locations.items():
                    existing = inner.get(location)
                    if existing is None:
                        inner[location] = positions
                        added = len(positions)
                    else:
                        before = len(existing)
                        existing.update(positions)
                        added = len(existing) - before

                    if added:
                        self._counts[location] = self._counts.get(location, 0) + added

    def _add(self, word: str, location: str, position: int) -> bool:
        inner = self._index.get(word)
        if inner is None:
            inner = self._index[word] = {}
            bisect.insort(self._words, word)

        positions = inner.setdefault(location, set())
        if position in positions:
            return False

        positions.add(position)
        self._counts[location] = self._counts.get(location, 0) + 1
        return True

    # Search

    def search(self, queries: Iterable[str], exact: bool) -> List[SearchResult]:
        """Exact or partial search for a set of query stems."""
        return self.exact_search(queries) if exact else self.partial_search(queries)

    def exact_search(self, queries: Iterable[str]) -> List[SearchResult]:
        """Rank the locations containing any query stem exactly."""
        lookup: Dict[str, SearchResult] = {}

        with self._lock.read_lock():
            for query in set(queries):
                if query in self._index:
                    self._search_word(query, lookup)

        return sorted(lookup.values())

    def partial_search(self, queries: Iterable[str]) -> List[SearchResult]:
        """Rank the locations containing any word that starts with a query stem."""
        lookup: Dict[str, SearchResult] = {}

        with self._lock.read_lock():
            for query in set(queries):
                # keys are sorted, so the matches form one contiguous run
                for i in range(bisect.bisect_left(self._words, query), len(self._words)):
                    word = self._words[i]
                    if not word.startswith(query):
                        break
                    self._search_word(word, lookup)

        return sorted(lookup.values())

    def _search_word(self, word: str, lookup: Dict[str, SearchResult]):
        for location, positions in self._index[word].items():
            result = lookup.get(location)
            if result is None:
                result = SearchResult(location)
            lookup[location] = update_result(result, len(positions), self._counts)

    # Views

    def get_words(self) -> Tuple[str, ...]:
        with self._lock.read_lock():
            return tuple(self._words)

    def get_locations(self, word: str) -> Tuple[str, ...]:
        with self._lock.read_lock():
            return tuple(sorted(self._index.get(word, ())))

    def get_positions(self, word: str, location: str) -> Tuple[int, ...]:
        with self._lock.read_lock():
            return tuple(sorted(self._index.get(word, {}).get(location, ())))

    def get_counts(self) -> Dict[str, int]:
        """Copy of the word count of every location, in location order."""
        with self._lock.read_lock():
            return {location: self._counts[location] for location in sorted(self._counts)}

    def get_count(self, location: str) -> int:
        with self._lock.read_lock():
            return self._counts.get(location, 0)

    def contains_word(self, word: str) -> bool:
        with self._lock.read_lock():
            return word in self._index

    def contains_location(self, word: str, location: str) -> bool:
        with self._lock.read_lock():
            return location in self._index.get(word, {})

    def contains_position(self, word: str, location: str, position: int) -> bool:
        with self._lock.read_lock():
            return position in self._index.get(word, {}).get(location, ())

    def has_count(self, location: str) -> bool:
        """Check whether any word was recorded for a location."""
        with self._lock.read_lock():
            return location in self._counts

    def size_words(self) -> int:
        with self._lock.read_lock():
            return len(self._words)

    def size_locations(self, word: str) -> int:
        with self._lock.read_lock():
            return len(self._index.get(word, ()))

    def size_positions(self, word: str, location: str) -> int:
        with self._lock.read_lock():
            return len(self._index.get(word, {}).get(location, ()))

    def __len__(self) -> int:
        return self.size_words()

    # Serialization

    def snapshot(self) -> Dict[str, Dict[str, List[int]]]:
        """Sorted copy of the whole index structure."""
        with self._lock.read_lock():
            return {
                word: {
                    location: sorted(positions)
                    for location, positions in sorted(self._index[word].items())
                }
                for word in self._words
            }

    def index_to_json(self, output: Union[str, Path]):
        """Write the index as pretty JSON."""
        json_writer.write_nested_map(self.snapshot(), output)

    def counts_to_json(self, output: Union[str, Path]):
        """Write the word counts as pretty JSON."""
        json_writer.write_object(self.get_counts(), output)

    def __str__(self) -> str:
        return json_writer.as_nested_map(self.snapshot())


def thread_safe_index() -> InvertedIndex:
    """Create an index guarded by a reader/writer lock."""
    return InvertedIndex(lock=ReadWriteLock())
