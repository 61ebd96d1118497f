"""SendGrid stats API client and models."""

from sendgrid_exporter.sendgrid.client import DEFAULT_API_URL, StatsClient, utc_today
from sendgrid_exporter.sendgrid.errors import (
    EmptyResultError,
    FetchError,
    ParseError,
    RateLimitedError,
    TransportError,
    UnexpectedStatusError,
)
from sendgrid_exporter.sendgrid.models import (
    METRIC_FIELDS,
    Granularity,
    MetricSet,
    StatisticsEnvelope,
    StatRecord,
)

__all__ = [
    # Client
    "StatsClient",
    "DEFAULT_API_URL",
    "utc_today",
    # Errors
    "FetchError",
    "TransportError",
    "UnexpectedStatusError",
    "RateLimitedError",
    "ParseError",
    "EmptyResultError",
    # Models
    "Granularity",
    "MetricSet",
    "StatRecord",
    "StatisticsEnvelope",
    "METRIC_FIELDS",
]
