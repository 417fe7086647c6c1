#!/usr/bin/env python3
"""
Main entry point for the site crawler.
"""

import asyncio
import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from sitecrawler import __version__
from sitecrawler.utils.config import load_config, validate_config, Config
from sitecrawler.utils.logger import setup_logging
from sitecrawler.crawler.scheduler import CrawlerScheduler


class CrawlerApp:
    """Main application class for the site crawler."""

    def __init__(self):
        self.scheduler: Optional[CrawlerScheduler] = None
        self.logger = logging.getLogger(__name__)

    async def run(self, config: Config, enable_json: bool = False) -> int:
        """Run the crawler and print the final report to stdout."""
        setup_logging(config.logging, enable_json=enable_json)

        self.logger.info("=== SITE CRAWLER STARTING ===")
        self.logger.info(f"Seed URL: {config.crawler.seed_url}")
        self.logger.info(f"Max pages: {config.crawler.max_pages}")
        self.logger.info(f"Output file: {config.output.file}")

        try:
            async with CrawlerScheduler(config) as self.scheduler:
                report = await self.scheduler.start_crawling()
            print(report.render())

        except Exception as e:
            self.logger.error(f"Fatal error: {e}", exc_info=True)
            return 1

        finally:
            self.logger.info("=== SITE CRAWLER FINISHED ===")

        return 0


def build_config(args: argparse.Namespace) -> Config:
    """Load the config file (if any) and apply command-line overrides."""
    config = load_config(args.config)

    if args.seed_url:
        config.crawler.seed_url = args.seed_url
    if args.max_pages is not None:
        config.crawler.max_pages = args.max_pages
    if args.output:
        config.output.file = args.output

    validate_config(config)
    return config


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Bounded single-domain site crawler",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py                                  # Run with built-in defaults
  python main.py --config config.yaml             # Run with a config file
  python main.py --seed-url https://example.com/  # Crawl another site
  python main.py --max-pages 100                  # Stop after 100 pages
        """
    )

    parser.add_argument(
        '--config',
        help='Path to configuration file (default: built-in defaults)'
    )

    parser.add_argument(
        '--seed-url',
        help='Domain root to crawl, e.g. https://example.com/ (no path); only URLs under it are followed'
    )

    parser.add_argument(
        '--max-pages',
        type=int,
        help='Maximum number of pages to mark visited'
    )

    parser.add_argument(
        '--output',
        help='File that page records are appended to'
    )

    parser.add_argument(
        '--json-logs',
        action='store_true',
        help='Emit logs as JSON'
    )

    parser.add_argument(
        '--version',
        action='version',
        version=f'Site Crawler {__version__}'
    )

    args = parser.parse_args()

    if args.config and not Path(args.config).exists():
        print(f"Error: Configuration file '{args.config}' not found.")
        return 1

    try:
        config = build_config(args)
    except (ValueError, TypeError) as e:
        print(f"Error: Invalid configuration: {e}")
        return 1

    app = CrawlerApp()
    try:
        return asyncio.run(app.run(config, enable_json=args.json_logs))
    except KeyboardInterrupt:
        print("\nInterrupted by user")
        return 1


if __name__ == '__main__':
    sys.exit(main())
