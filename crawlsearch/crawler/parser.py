"""
HTML processing for crawled pages: markup stripping and link extraction.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional
from urllib.parse import urljoin, urlparse, urlunparse

from bs4 import BeautifulSoup, Comment

# Elements whose contents are never page text
BLOCK_ELEMENTS = ['head', 'style', 'script', 'noscript', 'svg']


@dataclass
class ParsedContent:
    """Container for parsed web page content."""
    url: str
    title: Optional[str] = None
    content: str = ""
    links: List[str] = field(default_factory=list)


class ContentParser:
    """
    Parses HTML into plain text and the absolute links it points to.
    """

    def __init__(self, allowed_domains: Optional[List[str]] = None,
                 blocked_domains: Optional[List[str]] = None):
        self.allowed_domains = set(allowed_domains) if allowed_domains else set()
        self.blocked_domains = set(blocked_domains) if blocked_domains else set()
        self.logger = logging.getLogger(__name__)

        self.whitespace_pattern = re.compile(r'\s+')

    def parse(self, url: str, html_content: str) -> ParsedContent:
        """
        Parse HTML content.

        Args:
            url: The URL of the page, used to resolve relative links
            html_content: Raw HTML content

        Returns:
            ParsedContent with the page title, text and valid links
        """
        soup = self._soup(html_content)
        parsed_content = ParsedContent(url=url)

        title_tag = soup.find('title')
        if title_tag:
            parsed_content.title = self._clean_text(title_tag.get_text())

        self._strip_block_elements(soup)
        parsed_content.links = self._extract_links(soup, url)
        parsed_content.content = self._clean_text(soup.get_text(separator=' '))

        self.logger.debug(f"Parsed content from {url}: {len(parsed_content.content)} chars, "
                          f"{len(parsed_content.links)} links")
        return parsed_content

    def strip_block_elements(self, html_content: str) -> str:
        """Remove comments and elements that never hold page text."""
        soup = self._soup(html_content)
        self._strip_block_elements(soup)
        return str(soup)

    def strip_html(self, html_content: str) -> str:
        """Remove all markup and decode entities, leaving plain text."""
        soup = self._soup(html_content)
        self._strip_block_elements(soup)
        return self._clean_text(soup.get_text(separator=' '))

    def get_valid_links(self, base_url: str, html_content: str) -> List[str]:
        """Absolute http(s) links of the anchors in a page, in document order."""
        soup = self._soup(html_content)
        self._strip_block_elements(soup)
        return self._extract_links(soup, base_url)

    def _soup(self, html_content: str) -> BeautifulSoup:
        return BeautifulSoup(html_content, 'lxml')

    def _strip_block_elements(self, soup: BeautifulSoup):
        for element in soup(BLOCK_ELEMENTS):
            element.decompose()

        for comment in soup.find_all(string=lambda text: isinstance(text, Comment)):
            comment.extract()

    def _extract_links(self, soup: BeautifulSoup, base_url: str) -> List[str]:
        """Extract and normalize links, keeping the first occurrence of each."""
        links = {}

        for link in soup.find_all('a', href=True):
            href = link['href'].strip()
            if not href or href.startswith('#'):
                continue

            try:
                absolute_url = urljoin(base_url, href)
            except ValueError:
                continue

            normalized_url = self._normalize_url(absolute_url)
            if self._is_valid_url(normalized_url):
                links.setdefault(normalized_url, None)

        return list(links)

    def _normalize_url(self, url: str) -> str:
        """Normalize URL by lowercasing the host and removing the fragment."""
        try:
            parsed = urlparse(url)
            return urlunparse((
                parsed.scheme,
                parsed.netloc.lower(),
                parsed.path,
                parsed.params,
                parsed.query,
                ''
            ))
        except ValueError:
            return url

    def _is_valid_url(self, url: str) -> bool:
        """Check if URL is valid for crawling."""
        try:
            parsed = urlparse(url)
        except ValueError:
            return False

        if parsed.scheme not in ('http', 'https') or not parsed.netloc:
            return False

        domain = parsed.netloc.lower()

        if any(blocked in domain for blocked in self.blocked_domains):
            return False

        if self.allowed_domains and not any(allowed in domain for allowed in self.allowed_domains):
            return False

        return True

    def _clean_text(self, text: str) -> str:
        """Collapse whitespace."""
        if not text:
            return ""
        return self.whitespace_pattern.sub(' ', text).strip()
