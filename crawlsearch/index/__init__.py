"""
Inverted index, builders and searchers.
"""

from .inverted_index import InvertedIndex, SearchResult, thread_safe_index, update_result
from .builder import InvertedIndexBuilder, MultithreadedBuilder
from .searcher import QuerySearcher, MultithreadedSearcher

__all__ = [
    'InvertedIndex', 'SearchResult', 'thread_safe_index', 'update_result',
    'InvertedIndexBuilder', 'MultithreadedBuilder',
    'QuerySearcher', 'MultithreadedSearcher'
]
