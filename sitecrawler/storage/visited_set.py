"""
Visited-URL tracking using 64-bit URL fingerprints.
"""

import logging
import threading
from typing import Dict, Set


FNV64_OFFSET_BASIS = 0xcbf29ce484222325
FNV64_PRIME = 0x100000001b3
_MASK64 = 0xffffffffffffffff


def url_fingerprint(url: str) -> int:
    """FNV-1a 64-bit hash of the URL's UTF-8 bytes."""
    h = FNV64_OFFSET_BASIS
    for byte in url.encode('utf-8'):
        h ^= byte
        h = (h * FNV64_PRIME) & _MASK64
    return h


class VisitedSet:
    """
    Thread-safe set of URLs that have been (or are being) crawled.

    Only fingerprints are stored, so two URLs with colliding hashes are
    indistinguishable: the second one reads as already visited. Entries are
    never removed.
    """

    def __init__(self):
        self._fingerprints: Set[int] = set()
        self._lock = threading.Lock()
        self.logger = logging.getLogger(__name__)
        self.stats = {
            'add_calls': 0,
            'repeated_adds': 0
        }

    def add(self, url: str):
        """Mark a URL as visited. Adding the same URL twice counts once."""
        fingerprint = url_fingerprint(url)
        with self._lock:
            self.stats['add_calls'] += 1
            if fingerprint in self._fingerprints:
                self.stats['repeated_adds'] += 1
                self.logger.debug(f"URL already marked visited: {url}")
                return
            self._fingerprints.add(fingerprint)

    def contains(self, url: str) -> bool:
        fingerprint = url_fingerprint(url)
        with self._lock:
            return fingerprint in self._fingerprints

    def size(self) -> int:
        with self._lock:
            return len(self._fingerprints)

    def get_stats(self) -> Dict[str, int]:
        with self._lock:
            return {**self.stats, 'visited': len(self._fingerprints)}
