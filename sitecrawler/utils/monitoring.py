"""
Crawl statistics sampling and the final crawl report.
"""

import asyncio
import logging
import math
import time
from typing import List, Optional, Tuple
from dataclasses import dataclass, field

from prometheus_client import CollectorRegistry, Gauge, start_http_server

from ..crawler.url_frontier import URLFrontier
from ..storage.visited_set import VisitedSet


# (elapsed minutes, value)
SeriesPoint = Tuple[float, float]


def crawl_ratio(visited: int, queued: int) -> float:
    """Visited pages per queued URL; inf once the queue is empty."""
    if queued == 0:
        return math.inf if visited else 0.0
    return visited / queued


class MetricsExporter:
    """Publishes frontier and visited sizes as Prometheus gauges."""

    def __init__(self, port: int = 8000):
        self.port = port
        self.logger = logging.getLogger(__name__)
        self.registry = CollectorRegistry()
        self.frontier_size = Gauge(
            'crawler_frontier_size',
            'Number of URLs waiting in the frontier',
            registry=self.registry
        )
        self.visited_total = Gauge(
            'crawler_visited_total',
            'Number of URLs marked visited',
            registry=self.registry
        )
        self.enqueued_total = Gauge(
            'crawler_enqueued_total',
            'Number of URLs ever enqueued',
            registry=self.registry
        )

    def start_server(self):
        """Start the Prometheus metrics HTTP server."""
        try:
            start_http_server(self.port, registry=self.registry)
            self.logger.info(f"Prometheus metrics server started on port {self.port}")
        except OSError as e:
            self.logger.error(f"Failed to start Prometheus server: {e}")

    def update(self, frontier_size: int, visited: int, total_enqueued: int):
        self.frontier_size.set(frontier_size)
        self.visited_total.set(visited)
        self.enqueued_total.set(total_enqueued)


class StatsCollector:
    """
    Samples frontier and visited sizes on a fixed interval.

    Observer only: it reads sizes through the components' own locks and
    never mutates crawl state.
    """

    def __init__(self, frontier: URLFrontier, visited: VisitedSet, interval: float = 1.0,
                 exporter: Optional[MetricsExporter] = None):
        self.frontier = frontier
        self.visited = visited
        self.interval = interval
        self.exporter = exporter
        self.logger = logging.getLogger(__name__)

        self.start_time = time.monotonic()
        self.pages_per_minute: List[SeriesPoint] = [(0.0, 0)]
        self.ratio_per_minute: List[SeriesPoint] = [(0.0, 0.0)]
        self._task: Optional[asyncio.Task] = None

    def start(self):
        """Begin sampling on a background task."""
        if self._task is not None:
            return
        self.start_time = time.monotonic()
        self._task = asyncio.create_task(self._run(), name="stats-sampler")

    async def stop(self):
        """Stop sampling and wait for the sampler task to exit."""
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

    async def _run(self):
        while True:
            await asyncio.sleep(self.interval)
            self.sample()

    def sample(self):
        """Record one point in both series."""
        elapsed_minutes = (time.monotonic() - self.start_time) / 60
        visited = self.visited.size()
        queued = self.frontier.size()

        self.pages_per_minute.append((elapsed_minutes, visited))
        self.ratio_per_minute.append((elapsed_minutes, crawl_ratio(visited, queued)))

        if self.exporter:
            self.exporter.update(queued, visited, self.frontier.total_enqueued)


@dataclass
class CrawlReport:
    """Final numbers for a finished crawl."""
    total_enqueued: int
    frontier_size: int
    visited_size: int
    pages_per_minute: List[SeriesPoint] = field(default_factory=list)
    ratio_per_minute: List[SeriesPoint] = field(default_factory=list)

    @classmethod
    def from_collector(cls, collector: StatsCollector) -> 'CrawlReport':
        return cls(
            total_enqueued=collector.frontier.total_enqueued,
            frontier_size=collector.frontier.size(),
            visited_size=collector.visited.size(),
            pages_per_minute=list(collector.pages_per_minute),
            ratio_per_minute=list(collector.ratio_per_minute)
        )

    def render(self) -> str:
        """Plain-text report; each series is one "<minutes> <value>" line per sample."""
        lines = [
            "",
            "------------------CRAWLER STATS------------------",
            f"Total queued: {self.total_enqueued}",
            f"To be crawled (Queue) size: {self.frontier_size}",
            f"Crawled size: {self.visited_size}",
            "Pages crawled per minute:",
        ]
        lines.extend(f"{minutes:f} {int(count)}" for minutes, count in self.pages_per_minute)
        lines.append("Crawl to Queued Ratio per minute:")
        lines.extend(f"{minutes:f} {ratio:f}" for minutes, ratio in self.ratio_per_minute)
        return "\n".join(lines) + "\n"
