"""
Storage layer for the site crawler.
"""

from .record_sink import RecordSink, PageRecord, StorageError, read_records
from .visited_set import VisitedSet, url_fingerprint

__all__ = ['RecordSink', 'PageRecord', 'StorageError', 'read_records', 'VisitedSet', 'url_fingerprint']
