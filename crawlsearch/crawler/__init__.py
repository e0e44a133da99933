"""
Web crawler components.
"""

from .url_frontier import URLFrontier
from .fetcher import WebFetcher, FetchResult
from .parser import ContentParser, ParsedContent
from .web_crawler import WebCrawler, CrawlStats

__all__ = [
    'URLFrontier',
    'WebFetcher', 'FetchResult',
    'ContentParser', 'ParsedContent',
    'WebCrawler', 'CrawlStats'
]
