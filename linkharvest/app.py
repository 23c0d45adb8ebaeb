"""
Command-line application for the link harvester.
"""

import asyncio
import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from . import __version__
from .crawler.scheduler import LinkCrawler
from .errors import ConfigError, ExportError, LogSetupError
from .storage.exporter import ExportManager
from .utils.config import Config, load_config
from .utils.logger import setup_logging, shutdown_logging

EXIT_OK = 0
EXIT_CONFIG_ERROR = 1
EXIT_LOG_SETUP_FAILED = 2
EXIT_EXPORT_FAILED = 3


class HarvesterApp:
    """Main application class for the link harvester."""

    def __init__(self, fetcher=None):
        self.fetcher = fetcher
        self.logger = logging.getLogger(__name__)

    async def crawl(self, config: Config):
        crawler = LinkCrawler(config, fetcher=self.fetcher)
        return await crawler.run()

    def run(self, config: Config, output_path: Optional[str] = None) -> int:
        """
        Crawl, reconcile and export.

        Only an unusable log file or a failed export end the run with a
        non-zero status; page failures are logged and skipped.
        """
        try:
            setup_logging(config.logging)
        except LogSetupError as e:
            print(f"Fatal: {e}", file=sys.stderr)
            return EXIT_LOG_SETUP_FAILED

        try:
            self.logger.info("=== LINK HARVEST STARTING ===")
            self.logger.info(f"Seed URLs: {config.crawler.seed_urls}")
            self.logger.info(f"Parallelism: {config.crawler.parallelism}")
            self.logger.info(f"Politeness delay: {config.crawler.politeness_delay}s")

            report = asyncio.run(self.crawl(config))

            self.logger.info(
                f"Pages: {report.stats.pages_succeeded} succeeded, "
                f"{report.stats.pages_failed} failed in {report.elapsed_time:.2f}s"
            )

            try:
                path = ExportManager(config.export).export(report.rows, output_path)
            except ExportError as e:
                self.logger.critical(f"Export failed after crawling: {e}")
                return EXIT_EXPORT_FAILED

            self.logger.info(f"Export saved: {path} ({report.link_count} links)")
            return EXIT_OK
        finally:
            self.logger.info("=== LINK HARVEST FINISHED ===")
            shutdown_logging()


def apply_overrides(config: Config, args: argparse.Namespace) -> Config:
    """Apply command-line overrides on top of the loaded config."""
    if args.seed:
        config.crawler.seed_urls = list(args.seed)
    if args.parallelism is not None:
        if args.parallelism < 1:
            raise ConfigError("parallelism must be at least 1")
        config.crawler.parallelism = args.parallelism
    if args.log_file:
        config.logging.file = args.log_file
    return config


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Crawl a fixed list of pages and export each page's links with its title",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py                            # Run with default config.yaml
  python main.py --config my_config.yaml   # Run with custom config
  python main.py --output links.csv        # Export as csv instead of xlsx
  python main.py --seed https://example.com/a --seed https://example.com/b
        """
    )

    parser.add_argument(
        '--config',
        default='config.yaml',
        help='Path to configuration file (default: config.yaml)'
    )

    parser.add_argument(
        '--output',
        help='Export file path (overrides export.path; .csv selects csv output)'
    )

    parser.add_argument(
        '--seed',
        action='append',
        help='Seed URL to crawl; repeat for several (overrides crawler.seed_urls)'
    )

    parser.add_argument(
        '--parallelism',
        type=int,
        help='Maximum number of pages fetched at once'
    )

    parser.add_argument(
        '--log-file',
        help='Diagnostic log file (overrides logging.file)'
    )

    parser.add_argument(
        '--version',
        action='version',
        version=f'linkharvest {__version__}'
    )

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    if not Path(args.config).exists():
        print(f"Error: Configuration file '{args.config}' not found.", file=sys.stderr)
        print("Please create a config.yaml file or specify a different path with --config",
              file=sys.stderr)
        return EXIT_CONFIG_ERROR

    try:
        config = apply_overrides(load_config(args.config), args)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    app = HarvesterApp()
    try:
        return app.run(config, output_path=args.output)
    except KeyboardInterrupt:
        print("\nInterrupted by user", file=sys.stderr)
        return 130


if __name__ == '__main__':
    sys.exit(main())
