"""
Link discovery for crawled pages.

Turns a page's anchors into absolute same-domain URLs, feeds the admitted
ones to the frontier and stores the page's title record.
"""

import logging
from typing import List, Optional

from .context import CrawlerContext
from .parser import Document
from ..storage.record_sink import PageRecord


REJECTED_PREFIXES = ('#', 'javascript:', 'mailto:')


def normalize_href(href: str, domain_root: str) -> Optional[str]:
    """
    Resolve an anchor href against the crawl's domain root.

    Root-relative paths are joined to the domain root; absolute http(s)
    links pass through unchanged. Fragments, ``javascript:`` and
    ``mailto:`` links, and relative paths without a leading slash yield
    None. Protocol-relative links (``//host/path``) are treated as
    root-relative paths.
    """
    href = href.strip()
    if not href or href.startswith(REJECTED_PREFIXES):
        return None

    if href.startswith('/'):
        return domain_root.rstrip('/') + href

    if not href.startswith('http'):
        return None

    return href


class LinkExtractor:
    """Filters discovered links into the frontier and records page titles."""

    def __init__(self, context: CrawlerContext):
        self.domain_root = context.domain_root
        self.frontier = context.frontier
        self.visited = context.visited
        self.robots = context.robots
        self.sink = context.sink
        self.parser = context.parser
        self.logger = logging.getLogger(__name__)

    def is_admissible(self, url: str) -> bool:
        """Same domain, allowed by robots.txt, and not yet visited."""
        return (
            url.startswith(self.domain_root)
            and self.robots.is_allowed(url)
            and not self.visited.contains(url)
        )

    def extract(self, document: Document, current_url: str) -> List[str]:
        """
        Enqueue every admissible link in the document and store its title record.

        Args:
            document: Parsed page
            current_url: URL the page was fetched from; the stored record is keyed to it

        Returns:
            The URLs that were enqueued, in document order
        """
        admitted = []
        for href in self.parser.iter_hrefs(document):
            url = normalize_href(href, self.domain_root)
            if url is None or not self.is_admissible(url):
                continue
            self.frontier.enqueue(url)
            admitted.append(url)

        title = self.parser.extract_title(document)
        self.sink.append(PageRecord(title=title, url=current_url))

        self.logger.debug(f"Queued {len(admitted)} new URLs from {current_url}")
        return admitted
