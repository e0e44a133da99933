"""
crawlsearch

Concurrent inverted index builder, web crawler and ranked keyword search.
"""

__version__ = "1.0.0"
__description__ = "Inverted index search engine over local text files or a crawled web subgraph"
