#!/usr/bin/env python3
"""
Main entry point for the search engine.
"""

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import Optional

from crawlsearch import __version__
from crawlsearch.concurrency.work_queue import DEFAULT_THREADS, WorkQueue
from crawlsearch.crawler.fetcher import WebFetcher
from crawlsearch.crawler.parser import ContentParser
from crawlsearch.crawler.web_crawler import WebCrawler
from crawlsearch.index.builder import InvertedIndexBuilder, MultithreadedBuilder
from crawlsearch.index.inverted_index import InvertedIndex, thread_safe_index
from crawlsearch.index.searcher import MultithreadedSearcher, QuerySearcher
from crawlsearch.utils.config import LOG_LEVELS, Config, ConfigError, load_config
from crawlsearch.utils.logger import log_system_info, setup_logging
from crawlsearch.utils.monitoring import get_monitor, initialize_monitoring, start_metrics_server
from crawlsearch.utils.text import read_query_lines

DEFAULT_INDEX_PATH = 'index.json'
DEFAULT_COUNTS_PATH = 'counts.json'
DEFAULT_RESULTS_PATH = 'results.json'
DEFAULT_PORT = 8080

# Marks a flag given without a value
FLAG_ONLY = object()


class SearchEngineApp:
    """Main application class: wires configuration to the engine components."""

    def __init__(self, config: Config):
        self.config = config
        self.logger = logging.getLogger(__name__)

        self.work_queue: Optional[WorkQueue] = None
        self.index: InvertedIndex
        self.searcher: QuerySearcher

        if config.threaded:
            self.work_queue = WorkQueue(config.engine.threads or DEFAULT_THREADS)
            self.index = thread_safe_index()
            self.searcher = MultithreadedSearcher(self.index, self.work_queue)
        else:
            self.index = InvertedIndex()
            self.searcher = QuerySearcher(self.index)

    def run(self) -> int:
        """Run every configured step in order. Failed steps are logged and skipped."""
        start = time.time()
        config = self.config

        try:
            if config.crawler.seed_url:
                self.crawl(config.crawler.seed_url)

            if config.engine.text:
                self.build(config.engine.text)

            if config.engine.query:
                self.search(config.engine.query)

            monitor = get_monitor()
            if monitor:
                monitor.update_index_words(self.index.size_words())

            self.write_outputs()

            if config.server.enabled:
                self.serve()
        finally:
            if self.work_queue is not None:
                self.work_queue.shutdown()

            self.logger.info(f"Elapsed: {time.time() - start:.6f} seconds")

        return 0

    def crawl(self, seed: str):
        crawler_config = self.config.crawler
        fetcher = WebFetcher(
            user_agent=crawler_config.user_agent,
            request_timeout=crawler_config.request_timeout,
            retry_attempts=crawler_config.retry_attempts,
            max_redirects=crawler_config.max_redirects
        )
        parser = ContentParser(
            allowed_domains=crawler_config.allowed_domains,
            blocked_domains=crawler_config.blocked_domains
        )
        crawler = WebCrawler(self.index, self.work_queue, crawler_config.max_links,
                             fetcher=fetcher, parser=parser)
        crawler.crawl(seed)
        self.logger.info(f"Fetcher stats: {fetcher.get_stats()}")

    def build(self, path: str):
        if self.work_queue is not None:
            builder = MultithreadedBuilder(self.index, self.work_queue)
        else:
            builder = InvertedIndexBuilder(self.index)

        try:
            builder.build(path)
        except OSError as e:
            self.logger.error(f"Unable to build the inverted index from the path: {path} ({e})")

    def search(self, path: str):
        try:
            self.searcher.search_lines(read_query_lines(path), self.config.engine.exact)
        except (OSError, UnicodeDecodeError) as e:
            self.logger.error(f"Unable to read the queries from the path: {path} ({e})")

    def write_outputs(self):
        outputs = self.config.output
        steps = [
            (outputs.index, self.index.index_to_json, "inverted index"),
            (outputs.counts, self.index.counts_to_json, "word counts"),
            (outputs.results, self.searcher.results_to_json, "search results"),
        ]

        for path, write, name in steps:
            if not path:
                continue
            try:
                write(path)
                self.logger.info(f"Wrote {name} to {path}")
            except OSError as e:
                self.logger.error(f"Unable to write the {name} to the path: {path} ({e})")

    def serve(self):
        from crawlsearch.server.app import create_app, run_server

        server_config = self.config.server
        app = create_app(self.searcher, self.config.engine.exact, server_config.max_results)
        run_server(app, server_config.host, server_config.port)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Inverted index search engine",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py --text input/ --index                      # Build and write index.json
  python main.py --text input/ --query queries.txt --results
  python main.py --text input/ --threads 8 --counts counts.json
  python main.py --html https://example.com/ --max 50 --server 8080
  python main.py --config config.yaml                       # Everything from a file
        """
    )

    parser.add_argument('--config', help='Path to a YAML configuration file')
    parser.add_argument('--text', help='Text file or directory of text files to index')
    parser.add_argument('--html', help='Seed URL to crawl and index')
    parser.add_argument('--max', type=int, help='Maximum number of URLs to crawl (default: 1)')
    parser.add_argument('--threads', type=int, nargs='?', const=DEFAULT_THREADS,
                        help=f'Use a work queue with this many threads (default: {DEFAULT_THREADS})')
    parser.add_argument('--query', help='File with one query per line')
    parser.add_argument('--exact', action='store_true', default=None,
                        help='Exact instead of partial search')
    parser.add_argument('--index', nargs='?', const=FLAG_ONLY,
                        help=f'Write the inverted index (default: {DEFAULT_INDEX_PATH})')
    parser.add_argument('--counts', nargs='?', const=FLAG_ONLY,
                        help=f'Write the word counts (default: {DEFAULT_COUNTS_PATH})')
    parser.add_argument('--results', nargs='?', const=FLAG_ONLY,
                        help=f'Write the search results (default: {DEFAULT_RESULTS_PATH})')
    parser.add_argument('--server', type=int, nargs='?', const=DEFAULT_PORT,
                        help=f'Serve the search page on this port (default: {DEFAULT_PORT})')
    parser.add_argument('--log-level', help='Logging level (default: INFO)')
    parser.add_argument('--version', action='version', version=f'crawlsearch {__version__}')

    return parser


def apply_arguments(config: Config, args: argparse.Namespace) -> Config:
    """Command-line flags override values from the configuration file."""
    if args.text is not None:
        config.engine.text = args.text
    if args.query is not None:
        config.engine.query = args.query
    if args.exact:
        config.engine.exact = True
    if args.threads is not None:
        if args.threads < 1:
            logging.getLogger(__name__).warning(f"threads must be at least 1, using {DEFAULT_THREADS}")
        config.engine.threads = args.threads if args.threads >= 1 else DEFAULT_THREADS

    if args.html is not None:
        config.crawler.seed_url = args.html
    if args.max is not None:
        config.crawler.max_links = max(1, args.max)

    defaults = {
        'index': DEFAULT_INDEX_PATH,
        'counts': DEFAULT_COUNTS_PATH,
        'results': DEFAULT_RESULTS_PATH,
    }
    for name, default in defaults.items():
        value = getattr(args, name)
        if value is not None:
            setattr(config.output, name, default if value is FLAG_ONLY else value)

    if args.server is not None:
        config.server.enabled = True
        config.server.port = args.server

    if args.log_level is not None:
        config.logging.level = args.log_level

    return config


def main(argv=None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    try:
        config = apply_arguments(load_config(args.config), args)
    except (OSError, ConfigError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if config.logging.level.upper() not in LOG_LEVELS:
        print(f"Error: Unknown log level: {config.logging.level}", file=sys.stderr)
        return 1

    setup_logging(config.logging, enable_json=config.logging.json_format)
    log_system_info()

    monitor = initialize_monitoring(config.monitoring.metrics_enabled,
                                    config.monitoring.prometheus_port)
    start_metrics_server(monitor)

    app = SearchEngineApp(config)
    try:
        status = app.run()
    except KeyboardInterrupt:
        print("\nInterrupted by user")
        return 1
    except Exception as e:
        logging.getLogger(__name__).error(f"Fatal error: {e}", exc_info=True)
        print(f"Fatal error: {e}", file=sys.stderr)
        return 1

    logging.getLogger(__name__).info(f"Metrics: {monitor.get_summary()}")
    return status


if __name__ == '__main__':
    sys.exit(main())
