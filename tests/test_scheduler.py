"""End-to-end tests for the crawl loop."""

import asyncio

import pytest

from sitecrawler.crawler.scheduler import CrawlerScheduler, CrawlState
from sitecrawler.storage.record_sink import read_records
from fakes import DOMAIN, FakeSession, make_config, page

ROBOTS_URL = "https://example.test/robots.txt"


def site(pages, robots=404):
    """FakeSession serving `pages` (path -> (title, links)) under the test domain."""
    routes = {ROBOTS_URL: robots}
    for path, (title, links) in pages.items():
        routes[DOMAIN.rstrip('/') + path] = page(title, links)
    return FakeSession(routes)


async def crawl(session, tmp_path, **overrides):
    scheduler = CrawlerScheduler(make_config(tmp_path, **overrides), session=session)
    await scheduler.initialize()
    report = await asyncio.wait_for(scheduler.start_crawling(), timeout=10)
    await scheduler.close()
    return scheduler, report


class TestCrawlerScheduler:
    """Test cases for CrawlerScheduler."""

    @pytest.mark.asyncio
    async def test_seed_cycle_enqueues_only_same_domain_link(self, tmp_path):
        session = site({
            "/": ("Home", ["/a", "#top", "mailto:x@y.com", "http://other.test/z"]),
        })
        scheduler = CrawlerScheduler(make_config(tmp_path), session=session)
        await scheduler.initialize()

        await scheduler.seed()

        assert scheduler.context.frontier.snapshot() == ["https://example.test/a"]
        assert scheduler.context.visited.contains(DOMAIN)
        assert scheduler.state == CrawlState.DRAINING

    @pytest.mark.asyncio
    async def test_crawls_whole_site_once(self, tmp_path):
        session = site({
            "/": ("Home", ["/a", "/b"]),
            "/a": ("A", ["/", "/b", "/c"]),
            "/b": ("B", ["/a"]),
            "/c": ("C", []),
        })

        scheduler, report = await crawl(session, tmp_path)

        assert scheduler.state == CrawlState.DRAINED
        assert report.visited_size == 4
        assert report.frontier_size == 0
        for path in ["/", "/a", "/b", "/c"]:
            assert session.calls_to(DOMAIN.rstrip('/') + path) == 1

        records = read_records(tmp_path / "result.txt")
        assert sorted(r.title for r in records) == ["A", "B", "C", "Home"]
        assert {r.url for r in records} == {
            DOMAIN, "https://example.test/a", "https://example.test/b", "https://example.test/c"
        }

    @pytest.mark.asyncio
    async def test_terminates_when_seed_has_no_links(self, tmp_path):
        session = site({"/": ("Lonely", [])})

        scheduler, report = await crawl(session, tmp_path)

        assert report.visited_size == 1
        assert report.total_enqueued == 0
        assert scheduler.state == CrawlState.DRAINED

    @pytest.mark.asyncio
    async def test_terminates_when_seed_fetch_fails(self, tmp_path):
        session = FakeSession({ROBOTS_URL: 404, DOMAIN: 503})

        scheduler, report = await crawl(session, tmp_path)

        assert session.calls_to(DOMAIN) == 5
        assert report.visited_size == 1
        assert read_records(tmp_path / "result.txt") == []

    @pytest.mark.asyncio
    async def test_failed_pages_are_dropped(self, tmp_path):
        session = site({"/": ("Home", ["/gone", "/ok"]), "/ok": ("OK", [])})
        session.route("https://example.test/gone", 500)

        scheduler, report = await crawl(session, tmp_path)

        assert report.visited_size == 3
        assert session.calls_to("https://example.test/gone") == 5
        assert [r.title for r in read_records(tmp_path / "result.txt")] == ["Home", "OK"]

    @pytest.mark.asyncio
    async def test_follows_chain_discovered_by_in_flight_extraction(self, tmp_path):
        session = site({
            "/": ("0", ["/1"]),
            "/1": ("1", ["/2"]),
            "/2": ("2", ["/3"]),
            "/3": ("3", []),
        })

        scheduler, report = await crawl(session, tmp_path)

        assert report.visited_size == 4

    @pytest.mark.asyncio
    async def test_respects_page_ceiling(self, tmp_path):
        links = [f"/p{i}" for i in range(20)]
        pages = {"/": ("Home", links)}
        pages.update({path: (path, links) for path in links})
        session = site(pages)

        scheduler, report = await crawl(session, tmp_path, max_pages=3)

        assert report.visited_size == 3
        assert len(read_records(tmp_path / "result.txt")) == 3
        assert report.frontier_size > 0

    @pytest.mark.asyncio
    async def test_robots_rules_applied(self, tmp_path):
        session = site(
            {"/": ("Home", ["/private/x", "/public/x"]), "/public/x": ("Public", [])},
            robots=b"User-agent: *\nDisallow: /private\n"
        )

        scheduler, report = await crawl(session, tmp_path)

        assert session.calls_to("https://example.test/private/x") == 0
        assert report.total_enqueued == 1
        assert report.visited_size == 2

    @pytest.mark.asyncio
    async def test_duplicate_links_fetched_once(self, tmp_path):
        session = site({
            "/": ("Home", ["/a", "/a", "/a"]),
            "/a": ("A", []),
        })

        scheduler, report = await crawl(session, tmp_path)

        assert report.total_enqueued == 3
        assert session.calls_to("https://example.test/a") == 1
        assert report.visited_size == 2

    @pytest.mark.asyncio
    async def test_report_has_stats_series(self, tmp_path):
        session = site({"/": ("Home", ["/a"]), "/a": ("A", [])})

        scheduler, report = await crawl(session, tmp_path)

        assert report.pages_per_minute[0] == (0.0, 0)
        assert "Crawled size: 2" in report.render()

    @pytest.mark.asyncio
    async def test_close_leaves_injected_session_open(self, tmp_path):
        session = site({"/": ("Home", [])})

        await crawl(session, tmp_path)

        assert session.closed is False

    @pytest.mark.asyncio
    async def test_context_manager_initializes_and_logs_final_stats(self, tmp_path, caplog):
        session = site({"/": ("Home", ["/a"]), "/a": ("A", [])})

        with caplog.at_level("INFO", logger="sitecrawler.crawler.scheduler"):
            async with CrawlerScheduler(make_config(tmp_path), session=session) as scheduler:
                assert scheduler.context is not None
                report = await scheduler.start_crawling()

        assert report.visited_size == 2
        assert "Frontier stats: {'total_queued': 0, 'total_enqueued': 1}" in caplog.text
        assert "'visited': 2" in caplog.text
