"""
URL Frontier implementation for managing URLs waiting to be crawled.
"""

import logging
import threading
from collections import deque
from typing import Deque, Dict, List, Optional


class EmptyFrontierError(Exception):
    """Raised when dequeuing from an empty frontier."""
    pass


class URLFrontier:
    """
    Thread-safe FIFO of URLs that are waiting to be fetched.

    Every operation takes the same lock, but ``size()`` followed by
    ``dequeue()`` is two separate acquisitions. That gap is harmless with a
    single consumer; concurrent consumers should call ``try_dequeue()``.

    Callers filter duplicates before enqueueing; the frontier does not.
    """

    def __init__(self):
        self._queue: Deque[str] = deque()
        self._total_enqueued = 0
        self._lock = threading.Lock()
        self.logger = logging.getLogger(__name__)

    def enqueue(self, url: str):
        """Append a URL to the tail of the frontier."""
        with self._lock:
            self._queue.append(url)
            self._total_enqueued += 1
        self.logger.debug(f"Added URL to frontier: {url}")

    def dequeue(self) -> str:
        """Remove and return the URL at the head of the frontier."""
        with self._lock:
            if not self._queue:
                raise EmptyFrontierError("URL frontier is empty")
            url = self._queue.popleft()
        self.logger.debug(f"Retrieved URL from frontier: {url}")
        return url

    def try_dequeue(self) -> Optional[str]:
        """Atomically dequeue the head URL, or return None if the frontier is empty."""
        with self._lock:
            if not self._queue:
                return None
            return self._queue.popleft()

    def size(self) -> int:
        with self._lock:
            return len(self._queue)

    @property
    def total_enqueued(self) -> int:
        """Number of enqueue calls ever made; never decreases."""
        with self._lock:
            return self._total_enqueued

    def snapshot(self) -> List[str]:
        """Copy of the pending URLs, head first."""
        with self._lock:
            return list(self._queue)

    def get_stats(self) -> Dict[str, int]:
        """Get frontier statistics."""
        with self._lock:
            return {
                'total_queued': len(self._queue),
                'total_enqueued': self._total_enqueued
            }
