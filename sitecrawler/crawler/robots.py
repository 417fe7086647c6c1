"""
robots.txt disallow-list loading and checking.

Only ``Disallow:`` directives are honoured and they apply to every crawler,
whatever ``User-agent`` group they appear under. A URL is blocked when any
disallowed path occurs anywhere in it (substring match, not prefix match),
which is stricter than RFC 9309 in some cases and looser in others.
"""

import asyncio
import logging
from typing import Iterable, List, Tuple
from urllib.parse import urljoin

from aiohttp import ClientSession, ClientTimeout, ClientError


logger = logging.getLogger(__name__)


def parse_disallow_rules(robots_txt: str) -> List[str]:
    """Collect the path following every ``Disallow:`` directive, in file order."""
    rules = []
    for line in robots_txt.splitlines():
        if 'Disallow:' not in line:
            continue
        fields = line.split()
        # An empty Disallow allows everything
        if len(fields) >= 2:
            rules.append(fields[1])
    return rules


class RobotsFilter:
    """Immutable disallow list consulted for every discovered link."""

    def __init__(self, disallowed_paths: Iterable[str] = ()):
        self._disallowed: Tuple[str, ...] = tuple(disallowed_paths)

    @classmethod
    def from_text(cls, robots_txt: str) -> 'RobotsFilter':
        return cls(parse_disallow_rules(robots_txt))

    @classmethod
    async def load(cls, session: ClientSession, domain_root: str, user_agent: str,
                   timeout: float = 8.0) -> 'RobotsFilter':
        """
        Fetch ``<domain_root>/robots.txt`` once and build a filter from it.

        Any failure (network error, timeout, non-200 status) is logged and
        yields a filter that allows everything.
        """
        robots_url = urljoin(domain_root, '/robots.txt')
        try:
            async with session.get(
                robots_url,
                headers={'User-Agent': user_agent},
                timeout=ClientTimeout(total=timeout)
            ) as response:
                if response.status != 200:
                    logger.warning(f"robots.txt returned {response.status} for {robots_url}, "
                                   f"nothing will be disallowed")
                    return cls()
                robots_content = await response.text()
        except asyncio.TimeoutError:
            logger.warning(f"Timeout fetching {robots_url}, nothing will be disallowed")
            return cls()
        except (ClientError, UnicodeDecodeError) as e:
            logger.warning(f"Could not fetch {robots_url}: {e}, nothing will be disallowed")
            return cls()

        robots_filter = cls.from_text(robots_content)
        logger.info(f"Loaded {len(robots_filter.disallowed_paths)} disallow rules from {robots_url}")
        return robots_filter

    @property
    def disallowed_paths(self) -> Tuple[str, ...]:
        return self._disallowed

    def is_allowed(self, url: str) -> bool:
        """True unless the URL contains any disallowed path."""
        return not any(path in url for path in self._disallowed)
