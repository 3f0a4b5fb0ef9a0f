"""Monitoring: Prometheus metrics."""

from .prometheus_metrics import PrometheusMetrics

__all__ = ["PrometheusMetrics"]
