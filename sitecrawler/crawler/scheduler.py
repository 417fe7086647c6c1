"""
Crawl loop that drives the frontier through fetching and link extraction.
"""

import asyncio
import logging
from enum import Enum
from typing import Optional, Set

import aiohttp
from aiohttp import ClientSession, ClientTimeout

from .context import CrawlerContext
from .fetcher import WebFetcher
from .link_extractor import LinkExtractor
from .parser import ContentParser, Document
from .robots import RobotsFilter
from .url_frontier import URLFrontier
from ..storage.record_sink import RecordSink
from ..storage.visited_set import VisitedSet
from ..utils.config import Config
from ..utils.monitoring import CrawlReport, MetricsExporter, StatsCollector


class CrawlState(Enum):
    """Lifecycle of a crawl."""
    SEEDING = "seeding"
    DRAINING = "draining"
    DRAINED = "drained"


class CrawlerScheduler:
    """
    Runs one bounded crawl of a single domain.

    Exactly one fetch is in flight at a time. Link extraction for each
    fetched page runs on its own task (in a worker thread) and may overlap
    the next fetch; every extraction task is joined before the crawl is
    reported as drained.

    The page ceiling is only checked at the top of the loop. Visited URLs
    are only added by this loop, one per iteration, so the visited count
    never exceeds ``max_pages``.
    """

    def __init__(self, config: Config, session: Optional[ClientSession] = None):
        self.config = config
        self.logger = logging.getLogger(__name__)
        self.max_pages = config.crawler.max_pages

        self._session = session
        self._owns_session = session is None

        self.context: Optional[CrawlerContext] = None
        self.fetcher: Optional[WebFetcher] = None
        self.link_extractor: Optional[LinkExtractor] = None
        self.stats_collector: Optional[StatsCollector] = None

        self.state = CrawlState.SEEDING
        self.extraction_tasks: Set[asyncio.Task] = set()
        self.report: Optional[CrawlReport] = None

    async def initialize(self):
        """Open the HTTP session and sink, load robots.txt and wire up the components."""
        crawler_config = self.config.crawler

        if self._session is None:
            self._session = aiohttp.ClientSession(
                timeout=ClientTimeout(total=crawler_config.request_timeout),
                headers={'User-Agent': crawler_config.user_agent}
            )
            self.logger.info("HTTP session started")

        sink = RecordSink(self.config.output.file)
        sink.open()

        robots = await RobotsFilter.load(
            self._session,
            crawler_config.seed_url,
            crawler_config.user_agent,
            timeout=crawler_config.robots_timeout
        )

        self.context = CrawlerContext(
            config=self.config,
            session=self._session,
            frontier=URLFrontier(),
            visited=VisitedSet(),
            robots=robots,
            sink=sink,
            parser=ContentParser()
        )
        self.fetcher = WebFetcher(self.context)
        self.link_extractor = LinkExtractor(self.context)

        exporter = None
        if self.config.monitoring.metrics_enabled:
            exporter = MetricsExporter(self.config.monitoring.prometheus_port)
            exporter.start_server()

        self.stats_collector = StatsCollector(
            self.context.frontier,
            self.context.visited,
            interval=self.config.monitoring.stats_interval,
            exporter=exporter
        )

        self.logger.info("Crawler scheduler initialized successfully")

    async def start_crawling(self) -> CrawlReport:
        """
        Run the crawl to completion.

        Returns:
            The final crawl report
        """
        if self.context is None:
            await self.initialize()

        self.stats_collector.start()
        try:
            await self.seed()
            await self.drain()
        finally:
            await self._join_extraction_tasks()
            await self.stats_collector.stop()
            self.state = CrawlState.DRAINED

        self.report = CrawlReport.from_collector(self.stats_collector)
        self._log_final_stats()
        return self.report

    async def seed(self):
        """Mark the seed visited, fetch it and extract its links before draining."""
        self.state = CrawlState.SEEDING
        seed_url = self.config.crawler.seed_url

        self.context.visited.add(seed_url)
        document = await self.fetcher.fetch_in_background(seed_url)
        if document is None:
            self.logger.warning(f"Seed fetch failed for {seed_url}")
        else:
            await self._extract(document, seed_url)

        self.state = CrawlState.DRAINING

    async def drain(self):
        """Crawl until the frontier is exhausted or the page ceiling is reached."""
        self.state = CrawlState.DRAINING
        frontier = self.context.frontier
        visited = self.context.visited

        while visited.size() < self.max_pages:
            if frontier.size() == 0:
                if not self.extraction_tasks:
                    break
                # Pages still being extracted may add more links
                await asyncio.wait(self.extraction_tasks, return_when=asyncio.FIRST_COMPLETED)
                continue

            url = frontier.dequeue()
            if visited.contains(url):
                # Enqueued more than once before its first crawl
                self.logger.debug(f"Skipping already visited URL: {url}")
                continue

            visited.add(url)
            document = await self.fetcher.fetch_in_background(url)
            if document is None:
                continue

            self._dispatch_extraction(document, url)

        if visited.size() >= self.max_pages:
            self.logger.info(f"Reached max pages limit: {self.max_pages}")

    def _dispatch_extraction(self, document: Document, url: str):
        task = asyncio.create_task(self._extract(document, url), name=f"extract:{url}")
        self.extraction_tasks.add(task)
        task.add_done_callback(self.extraction_tasks.discard)

    async def _extract(self, document: Document, url: str):
        try:
            await asyncio.to_thread(self.link_extractor.extract, document, url)
        except Exception as e:
            self.logger.error(f"Error extracting links from {url}: {e}", exc_info=True)

    async def _join_extraction_tasks(self):
        while self.extraction_tasks:
            await asyncio.gather(*list(self.extraction_tasks))

    def _log_final_stats(self):
        self.logger.info("=== CRAWL COMPLETED ===")
        self.logger.info(f"Total URLs enqueued: {self.report.total_enqueued}")
        self.logger.info(f"URLs remaining in queue: {self.report.frontier_size}")
        self.logger.info(f"URLs crawled: {self.report.visited_size}")
        self.logger.info(f"Fetcher stats: {self.fetcher.get_stats()}")
        self.logger.info(f"Sink stats: {self.context.sink.get_stats()}")
        self.logger.info(f"Frontier stats: {self.context.frontier.get_stats()}")
        self.logger.info(f"Visited stats: {self.context.visited.get_stats()}")

    async def close(self):
        """Close the HTTP session if this scheduler opened it."""
        if self._session is not None and self._owns_session:
            await self._session.close()
            self.logger.info("HTTP session closed")
        self._session = None
        self.logger.info("Crawler scheduler closed")

    async def __aenter__(self):
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
