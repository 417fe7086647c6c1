"""
Web page fetcher with bounded retries and redirects.
"""

import asyncio
import logging
from typing import Dict, Optional

from aiohttp import ClientTimeout, ClientError

from .context import CrawlerContext
from .parser import Document, DocumentParseError


class WebFetcher:
    """
    Fetches single pages for the crawl loop.

    A fetch makes up to ``max_retries`` attempts. Any transport error or
    non-200 status consumes one attempt; the first 200 response is parsed
    and returned. When every attempt fails the result is ``None``, which the
    caller treats as "skip this URL". Fetch errors never propagate.
    """

    def __init__(self, context: CrawlerContext):
        crawler_config = context.config.crawler
        self.session = context.session
        self.parser = context.parser
        self.user_agent = crawler_config.user_agent
        self.request_timeout = crawler_config.request_timeout
        self.max_retries = crawler_config.max_retries
        self.max_redirects = crawler_config.max_redirects
        self.backoff_step = crawler_config.backoff_step

        self.logger = logging.getLogger(__name__)

        self.stats = {
            'total_requests': 0,
            'successful_requests': 0,
            'failed_requests': 0,
            'non_200_responses': 0,
            'parse_failures': 0,
            'definitive_failures': 0
        }

    def backoff_delay(self, attempt: int) -> float:
        """Seconds to wait before the given 0-indexed attempt: 0, 2, 4, 6, 8 by default."""
        return self.backoff_step * attempt

    def fetch_in_background(self, url: str) -> 'asyncio.Task[Optional[Document]]':
        """Start a fetch on its own task; the task is that fetch's private result slot."""
        return asyncio.create_task(self.fetch(url), name=f"fetch:{url}")

    async def fetch(self, url: str) -> Optional[Document]:
        """
        Fetch and parse a single URL.

        Args:
            url: The URL to fetch

        Returns:
            The parsed document, or None once every attempt has failed or
            the body of a 200 response could not be parsed
        """
        for attempt in range(self.max_retries):
            delay = self.backoff_delay(attempt)
            if delay > 0:
                await asyncio.sleep(delay)

            self.stats['total_requests'] += 1
            try:
                # Leaving the block releases the connection on every path
                async with self.session.get(
                    url,
                    headers={'User-Agent': self.user_agent},
                    timeout=ClientTimeout(total=self.request_timeout),
                    allow_redirects=True,
                    max_redirects=self.max_redirects
                ) as response:
                    if response.status != 200:
                        self.stats['non_200_responses'] += 1
                        self.stats['failed_requests'] += 1
                        self.logger.warning(f"Attempt {attempt + 1}/{self.max_retries} for {url} "
                                            f"returned status {response.status}")
                        continue
                    body = await response.read()

            except asyncio.TimeoutError:
                self.stats['failed_requests'] += 1
                self.logger.warning(f"Attempt {attempt + 1}/{self.max_retries} timed out for {url}")
                continue

            except ClientError as e:
                self.stats['failed_requests'] += 1
                self.logger.warning(f"Attempt {attempt + 1}/{self.max_retries} failed for {url}: {e}")
                continue

            self.stats['successful_requests'] += 1
            try:
                document = self.parser.parse(url, body)
            except DocumentParseError as e:
                self.stats['parse_failures'] += 1
                self.logger.error(f"Skipping {url}: {e}", extra={'url': url})
                return None

            self.logger.debug(f"Fetched {url} on attempt {attempt + 1} ({len(body)} bytes)")
            return document

        self.stats['definitive_failures'] += 1
        self.logger.warning(f"Giving up on {url} after {self.max_retries} attempts", extra={'url': url})
        return None

    def get_stats(self) -> Dict[str, int]:
        """Get fetcher statistics."""
        return self.stats.copy()

    def reset_stats(self):
        """Reset statistics counters."""
        for key in self.stats:
            self.stats[key] = 0
