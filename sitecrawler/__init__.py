"""
Site Crawler

A bounded single-domain web crawler that records the title of every page it visits.
"""

__version__ = "1.0.0"
__description__ = "A bounded single-domain web crawler with robots.txt filtering"
