"""
Site crawler core components.
"""

from .url_frontier import URLFrontier, EmptyFrontierError
from .robots import RobotsFilter
from .fetcher import WebFetcher
from .parser import ContentParser, Document, DocumentParseError
from .link_extractor import LinkExtractor, normalize_href
from .context import CrawlerContext

__all__ = [
    'URLFrontier', 'EmptyFrontierError',
    'RobotsFilter',
    'WebFetcher',
    'ContentParser', 'Document', 'DocumentParseError',
    'LinkExtractor', 'normalize_href',
    'CrawlerContext'
]
