"""
Prometheus Metrics for the Cricket Data Pipeline

Every app instance owns its own registry so tests can build several apps in
one process without duplicate-collector errors.
"""

import logging
from typing import Any

from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram, generate_latest


class PrometheusMetrics:
    """Prometheus Metriken für die Cricket Data Pipeline"""

    def __init__(self):
        self.logger = logging.getLogger("prometheus_metrics")

        # Custom Registry für bessere Kontrolle
        self.registry = CollectorRegistry()

        # API Metriken
        self.api_requests_total = Counter(
            "api_requests_total",
            "Total number of API requests",
            ["method", "endpoint", "status"],
            registry=self.registry,
        )

        self.api_request_duration = Histogram(
            "api_request_duration_seconds",
            "API request duration in seconds",
            ["method", "endpoint"],
            registry=self.registry,
        )

        # Scraping Metriken
        self.scraping_operations_total = Counter(
            "scraping_operations_total",
            "Total number of scraping operations",
            ["scraper", "status"],
            registry=self.registry,
        )

        self.scraping_duration = Histogram(
            "scraping_duration_seconds",
            "Scraping operation duration in seconds",
            ["scraper"],
            registry=self.registry,
            buckets=(0.5, 1, 2.5, 5, 10, 20, 30, 60),
        )

        # Cache Metriken
        self.cache_lookups_total = Counter(
            "cache_lookups_total",
            "Cache lookups by result",
            ["result"],
            registry=self.registry,
        )

        self.cache_entries = Gauge(
            "cache_entries",
            "Number of entries held by the cache store",
            registry=self.registry,
        )

    def record_api_request(self, method: str, endpoint: str, status: str, duration: float):
        """Zeichnet API Request auf"""
        self.api_requests_total.labels(method=method, endpoint=endpoint, status=status).inc()
        self.api_request_duration.labels(method=method, endpoint=endpoint).observe(duration)

    def record_scraping_operation(self, scraper: str, status: str, duration: float):
        """Zeichnet Scraping Operation auf"""
        self.scraping_operations_total.labels(scraper=scraper, status=status).inc()
        self.scraping_duration.labels(scraper=scraper).observe(duration)

    def record_cache_lookup(self, key: str, hit: bool):
        self.cache_lookups_total.labels(result="hit" if hit else "miss").inc()

    def update_cache_metrics(self, cache) -> None:
        self.cache_entries.set(len(cache.keys()))

    def get_metrics_summary(self) -> dict[str, Any]:
        """Holt Metriken-Zusammenfassung"""
        summary: dict[str, Any] = {}
        for metric in self.registry.collect():
            for sample in metric.samples:
                if sample.name.endswith("_total"):
                    summary[sample.name] = summary.get(sample.name, 0) + sample.value
        return summary

    def export_metrics(self) -> str:
        """Exportiert Metriken im Prometheus Format"""
        try:
            return generate_latest(self.registry).decode("utf-8")
        except Exception as e:
            self.logger.error(f"Failed to export metrics: {e}")
            return f"# Error exporting metrics: {e}\n"
