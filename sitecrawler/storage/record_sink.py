"""
Durable append-only storage for crawled page records.

Each record is written as a brace-delimited block followed by a newline:

    {
    	title: <title>,
    	url: <url>
    }

The newline after the closing brace separates consecutive records.
"""

import logging
import re
import threading
from pathlib import Path
from typing import Dict, List, Union
from dataclasses import dataclass


_WHITESPACE = re.compile(r'\s+')
_RECORD_PATTERN = re.compile(r'\{\n\ttitle: (?P<title>.*),\n\turl: (?P<url>.*)\n\}\n')


class StorageError(Exception):
    """Raised when the record sink cannot be opened."""
    pass


@dataclass(frozen=True)
class PageRecord:
    """Title and URL of a crawled page."""
    title: str
    url: str

    def format(self) -> str:
        """Render the record block, titles collapsed to a single line."""
        title = _WHITESPACE.sub(' ', self.title or '').strip()
        return f"{{\n\ttitle: {title},\n\turl: {self.url}\n}}\n"


class RecordSink:
    """
    Appends page records to a single file for the lifetime of a crawl.

    Writes are serialized by a lock so records from concurrent extraction
    tasks never interleave. A failed write is logged and reported through
    the return value; it never interrupts the crawl.
    """

    def __init__(self, file_path: Union[str, Path]):
        self.file_path = Path(file_path)
        self._lock = threading.Lock()
        self.logger = logging.getLogger(__name__)
        self.stats = {
            'total_stored': 0,
            'storage_errors': 0,
            'total_size_bytes': 0
        }

    def open(self):
        """Create the output file (and its directory) if missing; existing content is kept."""
        try:
            self.file_path.parent.mkdir(parents=True, exist_ok=True)
            self.file_path.touch(exist_ok=True)
        except OSError as e:
            raise StorageError(f"Failed to open record sink {self.file_path}: {e}") from e
        self.logger.info(f"Record sink opened at {self.file_path}")

    def append(self, record: PageRecord) -> bool:
        """Append one record. Returns False if the write failed."""
        block = record.format()
        with self._lock:
            try:
                with open(self.file_path, 'a', encoding='utf-8') as f:
                    f.write(block)
            except OSError as e:
                self.stats['storage_errors'] += 1
                self.logger.error(f"Error storing record for {record.url}: {e}")
                return False

            self.stats['total_stored'] += 1
            self.stats['total_size_bytes'] += len(block.encode('utf-8'))

        self.logger.debug(f"Stored record: {record.url}")
        return True

    def get_stats(self) -> Dict[str, int]:
        with self._lock:
            return self.stats.copy()


def read_records(file_path: Union[str, Path]) -> List[PageRecord]:
    """Parse a sink file back into records, in insertion order."""
    text = Path(file_path).read_text(encoding='utf-8')
    return [
        PageRecord(title=match.group('title'), url=match.group('url'))
        for match in _RECORD_PATTERN.finditer(text)
    ]
