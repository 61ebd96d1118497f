"""Shared fixtures for sendgrid-exporter tests."""

from datetime import date

import pytest

from sendgrid_exporter.sendgrid.models import Granularity, StatisticsEnvelope

TODAY = date(2024, 1, 1)


class StubFetcher:
    """Fetcher returning canned envelopes (or raising) per granularity."""

    def __init__(self, responses: dict[Granularity, object]):
        self.responses = responses
        self.calls: list[Granularity] = []

    def fetch(self, granularity: Granularity) -> list[StatisticsEnvelope]:
        self.calls.append(granularity)
        response = self.responses[granularity]
        if isinstance(response, Exception):
            raise response
        return [StatisticsEnvelope.model_validate(e) for e in response]  # type: ignore[union-attr]


def envelope(*stats: dict, day: str = "2024-01-01") -> dict:
    return {"date": day, "stats": list(stats)}


def stat(type_: str, name: str, **metrics: int) -> dict:
    return {"type": type_, "name": name, "metrics": metrics}


@pytest.fixture
def daily_payload() -> list[dict]:
    return [envelope(stat("device", "yahoo.com", opens=10, clicks=3))]


@pytest.fixture
def monthly_payload() -> list[dict]:
    return [
        envelope(
            stat("device", "yahoo.com", opens=250, clicks=40, delivered=900),
            stat("client", "Gmail", opens=12),
        )
    ]
