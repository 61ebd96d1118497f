"""Prometheus metrics for the SendGrid exporter.

This module provides:
- SendGridCollector, which fetches stats on every scrape
- BuildInfoCollector, a constant build-info gauge
- MetricsServer, which serves a registry over HTTP

Usage:
    from prometheus_client import CollectorRegistry

    from sendgrid_exporter.metrics import MetricsServer, SendGridCollector, build_registry
    from sendgrid_exporter.sendgrid import StatsClient

    registry = build_registry(SendGridCollector(StatsClient(api_key)))
    server = MetricsServer(registry, port=9154)
    server.start()
"""

from prometheus_client.registry import CollectorRegistry

from sendgrid_exporter.metrics.build_info import BuildInfoCollector
from sendgrid_exporter.metrics.collector import (
    NAMESPACE,
    SendGridCollector,
    build_families,
    metric_name,
)
from sendgrid_exporter.metrics.server import MetricsServer, make_metrics_app


def build_registry(collector: SendGridCollector) -> CollectorRegistry:
    """Create a private registry holding the stats and build-info collectors."""
    registry = CollectorRegistry()
    registry.register(BuildInfoCollector())
    registry.register(collector)
    return registry


__all__ = [
    "NAMESPACE",
    "SendGridCollector",
    "BuildInfoCollector",
    "MetricsServer",
    "build_families",
    "build_registry",
    "make_metrics_app",
    "metric_name",
]
