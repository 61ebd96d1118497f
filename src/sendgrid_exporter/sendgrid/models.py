"""Data models for the SendGrid stats API."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator


class Granularity(str, Enum):
    """Aggregation window requested from the stats API."""

    DAILY = "daily"
    MONTHLY = "monthly"

    @property
    def aggregated_by(self) -> str:
        """Value for the ``aggregated_by`` query parameter."""
        return "day" if self is Granularity.DAILY else "month"


# Order of emission for every record
METRIC_FIELDS: tuple[str, ...] = (
    "blocks",
    "bounce_drops",
    "bounces",
    "clicks",
    "deferred",
    "delivered",
    "invalid_emails",
    "opens",
    "processed",
    "requests",
    "spam_report_drops",
    "spam_reports",
    "unique_clicks",
    "unique_opens",
    "unsubscribe_drops",
    "unsubscribes",
)


class MetricSet(BaseModel):
    """Counters returned for a single record. Missing fields are zero."""

    blocks: int = Field(0, ge=0)
    bounce_drops: int = Field(0, ge=0)
    bounces: int = Field(0, ge=0)
    clicks: int = Field(0, ge=0)
    deferred: int = Field(0, ge=0)
    delivered: int = Field(0, ge=0)
    invalid_emails: int = Field(0, ge=0)
    opens: int = Field(0, ge=0)
    processed: int = Field(0, ge=0)
    requests: int = Field(0, ge=0)
    spam_report_drops: int = Field(0, ge=0)
    spam_reports: int = Field(0, ge=0)
    unique_clicks: int = Field(0, ge=0)
    unique_opens: int = Field(0, ge=0)
    unsubscribe_drops: int = Field(0, ge=0)
    unsubscribes: int = Field(0, ge=0)

    @model_validator(mode="before")
    @classmethod
    def nulls_are_zero(cls, data: Any) -> Any:
        """Treat explicit JSON nulls like absent fields."""
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if v is not None}
        return data

    def counts(self) -> list[tuple[str, int]]:
        """Return ``(field, count)`` pairs in emission order."""
        return [(field, getattr(self, field)) for field in METRIC_FIELDS]


class StatRecord(BaseModel):
    """One ``(type, name, metrics)`` entry of an envelope.

    ``type`` is the category (e.g. ``device``, ``client``) and ``name`` the
    value inside that category. Both are passed through to labels untouched.
    """

    type: str = ""
    name: str = ""
    metrics: MetricSet = Field(default_factory=MetricSet)

    @field_validator("type", "name", mode="before")
    @classmethod
    def null_label_is_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("metrics", mode="before")
    @classmethod
    def null_metrics_is_empty(cls, v: Any) -> Any:
        return {} if v is None else v


class StatisticsEnvelope(BaseModel):
    """Records for a single date."""

    date: str = ""
    stats: list[StatRecord] = Field(default_factory=list)

    @field_validator("date", mode="before")
    @classmethod
    def null_date_is_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("stats", mode="before")
    @classmethod
    def null_stats_is_empty(cls, v: Any) -> Any:
        return [] if v is None else v
