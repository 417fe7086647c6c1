"""In-memory stand-ins for the aiohttp session used by the crawler tests."""

from pathlib import Path
from typing import Dict, List, Optional

import aiohttp

from sitecrawler.crawler.context import CrawlerContext
from sitecrawler.crawler.parser import ContentParser
from sitecrawler.crawler.robots import RobotsFilter
from sitecrawler.crawler.url_frontier import URLFrontier
from sitecrawler.storage.record_sink import RecordSink
from sitecrawler.storage.visited_set import VisitedSet
from sitecrawler.utils.config import Config, validate_config


DOMAIN = "https://example.test/"


def page(title: str = "", links: List[str] = ()) -> bytes:
    anchors = "".join(f'<a href="{href}">link</a>' for href in links)
    return f"<html><head><title>{title}</title></head><body>{anchors}</body></html>".encode()


class FakeResponse:
    """Async-context-manager response that tracks whether it was released."""

    def __init__(self, status: int = 200, body: bytes = b""):
        self.status = status
        self.body = body
        self.released = False

    async def read(self) -> bytes:
        return self.body

    async def text(self) -> str:
        return self.body.decode("utf-8")

    def release(self):
        self.released = True

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.release()
        return False


class FakeSession:
    """
    Routes GET requests to scripted outcomes.

    Each route holds a list of outcomes consumed in order; the last one
    repeats forever. An outcome is a FakeResponse, a bare status code, bytes
    (a 200 with that body) or an exception instance to raise. Unknown URLs
    raise a connection error.
    """

    def __init__(self, routes: Optional[Dict[str, object]] = None):
        self.routes: Dict[str, list] = {}
        self.calls: List[str] = []
        self.call_kwargs: List[dict] = []
        self.responses: List[FakeResponse] = []
        self.closed = False
        for url, outcome in (routes or {}).items():
            self.route(url, outcome)

    def route(self, url: str, outcome):
        self.routes[url] = list(outcome) if isinstance(outcome, list) else [outcome]

    def calls_to(self, url: str) -> int:
        return self.calls.count(url)

    def get(self, url: str, **kwargs):
        self.calls.append(url)
        self.call_kwargs.append(kwargs)

        outcomes = self.routes.get(url)
        if not outcomes:
            raise aiohttp.ClientConnectionError(f"no route to {url}")
        outcome = outcomes.pop(0) if len(outcomes) > 1 else outcomes[0]

        if isinstance(outcome, BaseException):
            raise outcome
        if isinstance(outcome, int):
            outcome = FakeResponse(status=outcome)
        elif isinstance(outcome, bytes):
            outcome = FakeResponse(status=200, body=outcome)
        else:
            # Fresh copy so released flags are per request
            outcome = FakeResponse(status=outcome.status, body=outcome.body)

        self.responses.append(outcome)
        return outcome

    async def close(self):
        self.closed = True


def make_config(tmp_path: Path, **crawler_overrides) -> Config:
    config = Config()
    config.crawler.seed_url = DOMAIN
    config.crawler.backoff_step = 0
    config.output.file = str(tmp_path / "result.txt")
    config.monitoring.stats_interval = 0.01
    for key, value in crawler_overrides.items():
        setattr(config.crawler, key, value)
    validate_config(config)
    return config


def make_context(tmp_path: Path, session: Optional[FakeSession] = None,
                 robots: Optional[RobotsFilter] = None, **crawler_overrides) -> CrawlerContext:
    config = make_config(tmp_path, **crawler_overrides)
    sink = RecordSink(config.output.file)
    sink.open()
    return CrawlerContext(
        config=config,
        session=session or FakeSession(),
        frontier=URLFrontier(),
        visited=VisitedSet(),
        robots=robots or RobotsFilter(),
        sink=sink,
        parser=ContentParser()
    )
