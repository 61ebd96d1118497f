"""Prometheus collector republishing SendGrid stats as gauges.

Every scrape fetches the daily and monthly aggregates for today and maps
each record into one sample per counter, labelled by the record's ``type``
and ``name``. Partial data is never exposed: if anything goes wrong only
``sendgrid_up 0`` is reported.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from typing import Protocol

from prometheus_client.core import GaugeMetricFamily, Metric
from prometheus_client.registry import Collector

from sendgrid_exporter.logging import get_logger
from sendgrid_exporter.sendgrid.errors import EmptyResultError, FetchError, RateLimitedError
from sendgrid_exporter.sendgrid.models import (
    METRIC_FIELDS,
    Granularity,
    StatisticsEnvelope,
    StatRecord,
)

log = get_logger(__name__)

NAMESPACE = "sendgrid"
LABELS = ["type", "name"]


class StatsFetcher(Protocol):
    """Anything that can fetch stats envelopes for a granularity."""

    def fetch(self, granularity: Granularity) -> list[StatisticsEnvelope]: ...


def metric_name(granularity: Granularity, field: str) -> str:
    """Full metric name, e.g. ``sendgrid_dailyblocks``."""
    return f"{NAMESPACE}_{granularity.value}{field}"


def build_families(
    granularity: Granularity, records: Sequence[StatRecord]
) -> list[GaugeMetricFamily]:
    """Map records to one gauge family per counter.

    Families follow METRIC_FIELDS order; samples inside a family follow
    record order. A record repeating an earlier ``(type, name)`` pair is
    skipped, since one series can only have one value.
    """
    families = {
        field: GaugeMetricFamily(
            metric_name(granularity, field),
            f"{granularity.value}{field}",
            labels=LABELS,
        )
        for field in METRIC_FIELDS
    }
    seen: set[tuple[str, str]] = set()
    for record in records:
        key = (record.type, record.name)
        if key in seen:
            log.warning(
                "Skipping duplicate stats record",
                granularity=granularity.value,
                type=record.type,
                name=record.name,
            )
            continue
        seen.add(key)
        for field, count in record.metrics.counts():
            families[field].add_metric([record.type, record.name], float(count))
    return list(families.values())


def up_family(value: int) -> GaugeMetricFamily:
    """The scalar health gauge."""
    return GaugeMetricFamily(f"{NAMESPACE}_up", "up", value=float(value))


class SendGridCollector(Collector):
    """Collector fetching SendGrid stats on every scrape.

    Holds no state between scrapes, so it is safe to call from several
    server threads at once.

    Usage:
        from prometheus_client import CollectorRegistry

        registry = CollectorRegistry()
        registry.register(SendGridCollector(StatsClient(api_key)))
    """

    def __init__(self, fetcher: StatsFetcher):
        self.fetcher = fetcher

    def describe(self) -> Iterable[Metric]:
        """Family descriptors, without contacting the API."""
        yield GaugeMetricFamily(f"{NAMESPACE}_up", "up")
        for granularity in (Granularity.MONTHLY, Granularity.DAILY):
            yield from build_families(granularity, [])

    def collect(self) -> Iterator[Metric]:
        try:
            daily, monthly = self._fetch_all()
        except RateLimitedError as e:
            log.warning("SendGrid rate limit reached", error=str(e))
            yield up_family(0)
            return
        except FetchError as e:
            log.error(
                "SendGrid stats fetch failed",
                error=str(e),
                error_type=type(e).__name__,
            )
            yield up_family(0)
            return

        yield up_family(1)
        yield from build_families(Granularity.MONTHLY, monthly)
        yield from build_families(Granularity.DAILY, daily)
        log.debug("Scrape complete", daily_records=len(daily), monthly_records=len(monthly))

    def _fetch_all(self) -> tuple[list[StatRecord], list[StatRecord]]:
        """Fetch daily then monthly stats and return their first envelopes' records.

        Both fetches are issued before the results are checked. A fetch that
        raises ends the scrape at once, so the monthly fetch is skipped when
        the daily one fails.

        Raises:
            FetchError: If either fetch fails, or the daily records are empty.
        """
        daily_envelopes = self.fetcher.fetch(Granularity.DAILY)
        monthly_envelopes = self.fetcher.fetch(Granularity.MONTHLY)

        daily = self._first_envelope(Granularity.DAILY, daily_envelopes)
        monthly = self._first_envelope(Granularity.MONTHLY, monthly_envelopes)
        if not daily.stats:
            raise EmptyResultError(f"no daily stats for {daily.date or 'today'}")
        return daily.stats, monthly.stats

    def _first_envelope(
        self, granularity: Granularity, envelopes: list[StatisticsEnvelope]
    ) -> StatisticsEnvelope:
        if not envelopes:
            raise EmptyResultError(f"no {granularity.value} stats envelopes returned")
        if len(envelopes) > 1:
            log.warning(
                "More than one stats envelope for a single-day window, using the first",
                granularity=granularity.value,
                count=len(envelopes),
                dates=[envelope.date for envelope in envelopes],
            )
        return envelopes[0]
