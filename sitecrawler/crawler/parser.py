"""
HTML parsing for fetched pages.
"""

import re
import logging
from typing import Iterator, Union
from bs4 import BeautifulSoup


# Parsed page as returned by the fetcher
Document = BeautifulSoup


class DocumentParseError(Exception):
    """Raised when a response body cannot be parsed into a document."""
    pass


class ContentParser:
    """
    Turns raw response bodies into queryable documents and reads the few
    elements the crawler needs from them.
    """

    def __init__(self, features: str = 'lxml'):
        self.features = features
        self.logger = logging.getLogger(__name__)
        self.whitespace_pattern = re.compile(r'\s+')

    def parse(self, url: str, body: Union[bytes, str]) -> Document:
        """
        Parse a response body.

        Args:
            url: The URL the body was fetched from (for logging)
            body: Raw HTML, bytes or text

        Returns:
            Parsed document

        Raises:
            DocumentParseError: if the body cannot be parsed
        """
        try:
            soup = BeautifulSoup(body, self.features)
        except Exception as e:
            raise DocumentParseError(f"Error parsing content from {url}: {e}") from e

        self.logger.debug(f"Parsed document from {url}")
        return soup

    def iter_hrefs(self, document: Document) -> Iterator[str]:
        """Yield the raw href of every anchor, in document order."""
        for link in document.find_all('a', href=True):
            yield link['href']

    def extract_title(self, document: Document) -> str:
        """Text of the page's <title> elements, whitespace collapsed."""
        title = ''.join(tag.get_text() for tag in document.find_all('title'))
        return self._clean_text(title)

    def _clean_text(self, text: str) -> str:
        if not text:
            return ""
        return self.whitespace_pattern.sub(' ', text.strip())
