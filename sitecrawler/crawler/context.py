"""
Shared state handed to every crawler component.
"""

from dataclasses import dataclass

from aiohttp import ClientSession

from .parser import ContentParser
from .robots import RobotsFilter
from .url_frontier import URLFrontier
from ..storage.record_sink import RecordSink
from ..storage.visited_set import VisitedSet
from ..utils.config import Config


@dataclass
class CrawlerContext:
    """Everything one crawl shares. Built once per crawl, never module-global."""
    config: Config
    session: ClientSession
    frontier: URLFrontier
    visited: VisitedSet
    robots: RobotsFilter
    sink: RecordSink
    parser: ContentParser

    @property
    def domain_root(self) -> str:
        """The seed URL; every admitted link must start with it."""
        return self.config.crawler.seed_url
