"""Client for the SendGrid global stats endpoint.

Issues a single authenticated GET per call, with no retry. Query window is
always today (UTC) for both ``start_date`` and ``end_date``.
"""

from __future__ import annotations

import sys
from collections.abc import Callable
from datetime import date, datetime, timezone
from typing import BinaryIO

import httpx
from pydantic import TypeAdapter, ValidationError

from sendgrid_exporter.logging import get_logger
from sendgrid_exporter.sendgrid.errors import (
    ParseError,
    RateLimitedError,
    TransportError,
    UnexpectedStatusError,
)
from sendgrid_exporter.sendgrid.models import Granularity, StatisticsEnvelope

logger = get_logger(__name__)

DEFAULT_API_URL = "https://api.sendgrid.com/v3/stats"

_envelopes = TypeAdapter(list[StatisticsEnvelope])


def utc_today() -> date:
    """Current date in UTC."""
    return datetime.now(timezone.utc).date()


class StatsClient:
    """Fetch aggregated email statistics from SendGrid."""

    def __init__(
        self,
        api_key: str,
        api_url: str = DEFAULT_API_URL,
        *,
        client: httpx.Client | None = None,
        mirror: BinaryIO | None = None,
        today: Callable[[], date] = utc_today,
    ):
        """Create a stats client.

        Args:
            api_key: SendGrid API key, sent as a bearer token
            api_url: Stats endpoint URL
            client: Optional preconfigured httpx client (tests pass one with a MockTransport)
            mirror: Binary stream receiving a copy of every response body, or None
            today: Clock used to build the query window
        """
        self.api_url = api_url
        self.client = client or httpx.Client()
        self.mirror = mirror
        self.today = today
        self._api_key = api_key

    @classmethod
    def from_config(cls, api_key: str, api_url: str, mirror_responses: bool) -> StatsClient:
        """Build a client that mirrors bodies to stdout when enabled."""
        mirror = sys.stdout.buffer if mirror_responses else None
        return cls(api_key, api_url, mirror=mirror)

    def build_params(self, granularity: Granularity) -> dict[str, str]:
        """Query parameters for a single-day window."""
        day = self.today().isoformat()
        return {
            "start_date": day,
            "end_date": day,
            "aggregated_by": granularity.aggregated_by,
        }

    def fetch(self, granularity: Granularity) -> list[StatisticsEnvelope]:
        """Fetch today's stats aggregated by day or month.

        Args:
            granularity: Aggregation window

        Returns:
            Envelopes in the order the API returned them

        Raises:
            TransportError: No response was obtained.
            RateLimitedError: HTTP 429.
            UnexpectedStatusError: Any other non-200 status.
            ParseError: Body is not a list of stats envelopes.
        """
        headers = {"Authorization": f"Bearer {self._api_key}"}
        params = self.build_params(granularity)

        try:
            with self.client.stream(
                "GET", self.api_url, params=params, headers=headers
            ) as response:
                if response.status_code == 429:
                    raise RateLimitedError()
                if response.status_code != 200:
                    raise UnexpectedStatusError(response.status_code)
                body = self._read_body(response)
        except httpx.RequestError as e:
            raise TransportError(f"stats request failed: {e}") from e

        try:
            envelopes = _envelopes.validate_json(body)
        except ValidationError as e:
            raise ParseError(f"invalid stats response: {e}") from e

        logger.debug(
            "Fetched stats",
            granularity=granularity.value,
            envelopes=len(envelopes),
            bytes=len(body),
        )
        return envelopes

    def _read_body(self, response: httpx.Response) -> bytes:
        """Read the body, copying each chunk to the mirror stream as it arrives."""
        chunks = []
        for chunk in response.iter_bytes():
            if self.mirror is not None:
                self.mirror.write(chunk)
            chunks.append(chunk)
        if self.mirror is not None:
            self.mirror.flush()
        return b"".join(chunks)

    def close(self) -> None:
        """Close the underlying HTTP client."""
        self.client.close()
