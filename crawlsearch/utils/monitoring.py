"""
Monitoring and metrics collection for indexing, crawling and searching.
"""

import logging
import time
from typing import Any, Dict, Optional

from prometheus_client import CollectorRegistry, Counter, Gauge, start_http_server


class MetricsCollector:
    """Owns the Prometheus metrics of one engine run."""

    def __init__(self, enable_server: bool = False, prometheus_port: int = 8000):
        self.logger = logging.getLogger(__name__)
        self.enable_server = enable_server
        self.prometheus_port = prometheus_port

        # private registry so several collectors can coexist in one process
        self.registry = CollectorRegistry()

        self.files_indexed = Counter(
            'search_files_indexed_total',
            'Total number of text files indexed',
            registry=self.registry
        )
        self.pages_crawled = Counter(
            'search_pages_crawled_total',
            'Total number of web pages fetched and indexed',
            registry=self.registry
        )
        self.fetch_failures = Counter(
            'search_fetch_failures_total',
            'Total number of pages that could not be fetched',
            registry=self.registry
        )
        self.queries_searched = Counter(
            'search_queries_total',
            'Total number of distinct queries searched',
            ['mode'],
            registry=self.registry
        )
        self.task_errors = Counter(
            'search_task_errors_total',
            'Total number of work queue tasks that raised',
            registry=self.registry
        )
        self.index_words = Gauge(
            'search_index_words',
            'Number of distinct words in the shared index',
            registry=self.registry
        )

    def start_server(self):
        """Start the Prometheus metrics HTTP server."""
        if not self.enable_server:
            return

        try:
            start_http_server(self.prometheus_port, registry=self.registry)
            self.logger.info(f"Prometheus metrics server started on port {self.prometheus_port}")
        except OSError as e:
            self.logger.error(f"Failed to start Prometheus server: {e}")

    def value(self, name: str, labels: Optional[Dict[str, str]] = None) -> float:
        """Read the current value of a sample from the registry."""
        result = self.registry.get_sample_value(name, labels or {})
        return result if result is not None else 0.0


class EngineMonitor:
    """High-level monitoring interface used by the engine components."""

    def __init__(self, metrics_collector: MetricsCollector):
        self.metrics = metrics_collector
        self.start_time = time.time()

    def record_file_indexed(self):
        self.metrics.files_indexed.inc()

    def record_page_crawled(self):
        self.metrics.pages_crawled.inc()

    def record_fetch_failure(self):
        self.metrics.fetch_failures.inc()

    def record_query(self, exact: bool):
        self.metrics.queries_searched.labels(mode='exact' if exact else 'partial').inc()

    def record_task_error(self):
        self.metrics.task_errors.inc()

    def update_index_words(self, count: int):
        self.metrics.index_words.set(count)

    def get_summary(self) -> Dict[str, Any]:
        """Get a summary of all metrics."""
        value = self.metrics.value
        return {
            'runtime_seconds': time.time() - self.start_time,
            'files_indexed': value('search_files_indexed_total'),
            'pages_crawled': value('search_pages_crawled_total'),
            'fetch_failures': value('search_fetch_failures_total'),
            'exact_queries': value('search_queries_total', {'mode': 'exact'}),
            'partial_queries': value('search_queries_total', {'mode': 'partial'}),
            'task_errors': value('search_task_errors_total'),
            'index_words': value('search_index_words'),
        }


# Global monitoring instance
_global_monitor: Optional[EngineMonitor] = None


def initialize_monitoring(enable_server: bool = False, prometheus_port: int = 8000) -> EngineMonitor:
    """Initialize global monitoring."""
    global _global_monitor

    metrics_collector = MetricsCollector(enable_server, prometheus_port)
    _global_monitor = EngineMonitor(metrics_collector)

    return _global_monitor


def get_monitor() -> Optional[EngineMonitor]:
    """Get the global monitor instance."""
    return _global_monitor


def reset_monitoring():
    """Remove the global monitor."""
    global _global_monitor
    _global_monitor = None


def start_metrics_server(monitor: EngineMonitor):
    """Start the metrics server if the monitor has it enabled."""
    if monitor.metrics.enable_server:
        monitor.metrics.start_server()
