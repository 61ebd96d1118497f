"""Tests for the SendGrid stats client."""

import io
import json

import httpx
import pytest

from sendgrid_exporter.sendgrid import (
    FetchError,
    Granularity,
    ParseError,
    RateLimitedError,
    StatsClient,
    TransportError,
    UnexpectedStatusError,
)

from conftest import TODAY, envelope, stat

API_URL = "https://api.sendgrid.test/v3/stats"


def make_client(handler, mirror=None) -> StatsClient:
    return StatsClient(
        "SG.secret",
        API_URL,
        client=httpx.Client(transport=httpx.MockTransport(handler)),
        mirror=mirror,
        today=lambda: TODAY,
    )


def json_handler(payload, status_code=200):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code, json=payload)

    return handler


class TestRequest:
    """Tests for the outgoing request."""

    @pytest.mark.parametrize(
        ("granularity", "aggregated_by"),
        [(Granularity.DAILY, "day"), (Granularity.MONTHLY, "month")],
    )
    def test_query_parameters(self, granularity, aggregated_by):
        """Window is today for both ends, aggregation follows granularity."""
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=[])

        make_client(handler).fetch(granularity)

        assert len(seen) == 1
        request = seen[0]
        assert request.method == "GET"
        assert request.url.path == "/v3/stats"
        assert dict(request.url.params) == {
            "start_date": "2024-01-01",
            "end_date": "2024-01-01",
            "aggregated_by": aggregated_by,
        }

    def test_bearer_token(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=[])

        make_client(handler).fetch(Granularity.DAILY)

        assert seen[0].headers["Authorization"] == "Bearer SG.secret"


class TestResponses:
    """Tests for response handling."""

    def test_parses_envelopes(self):
        payload = [envelope(stat("device", "yahoo.com", opens=10, clicks=3))]

        envelopes = make_client(json_handler(payload)).fetch(Granularity.DAILY)

        assert len(envelopes) == 1
        assert envelopes[0].date == "2024-01-01"
        record = envelopes[0].stats[0]
        assert record.type == "device"
        assert record.name == "yahoo.com"
        assert record.metrics.opens == 10
        assert record.metrics.clicks == 3

    def test_missing_fields_are_zero(self):
        """Absent counters default to zero instead of failing to parse."""
        payload = [envelope(stat("category", "welcome", delivered=5))]

        record = make_client(json_handler(payload)).fetch(Granularity.DAILY)[0].stats[0]

        assert record.metrics.delivered == 5
        assert record.metrics.bounces == 0
        assert record.metrics.unsubscribes == 0

    def test_null_metrics_are_zero(self):
        payload = [
            {"date": "2024-01-01", "stats": [{"type": "t", "name": "n", "metrics": None}]},
            {"date": "2024-01-02", "stats": None},
        ]

        envelopes = make_client(json_handler(payload)).fetch(Granularity.DAILY)

        assert envelopes[0].stats[0].metrics.opens == 0
        assert envelopes[1].stats == []

    def test_empty_list(self):
        assert make_client(json_handler([])).fetch(Granularity.MONTHLY) == []

    def test_rate_limited(self):
        with pytest.raises(RateLimitedError) as exc_info:
            make_client(json_handler({"errors": []}, 429)).fetch(Granularity.DAILY)
        assert exc_info.value.status_code == 429

    @pytest.mark.parametrize("status_code", [400, 401, 403, 500, 503])
    def test_unexpected_status(self, status_code):
        with pytest.raises(UnexpectedStatusError) as exc_info:
            make_client(json_handler({}, status_code)).fetch(Granularity.DAILY)
        assert exc_info.value.status_code == status_code
        assert not isinstance(exc_info.value, RateLimitedError)

    def test_invalid_json(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=b"<html>oops</html>")

        with pytest.raises(ParseError) as exc_info:
            make_client(handler).fetch(Granularity.DAILY)
        assert exc_info.value.__cause__ is not None

    def test_wrong_shape(self):
        with pytest.raises(ParseError):
            make_client(json_handler({"date": "2024-01-01"})).fetch(Granularity.DAILY)

    def test_negative_count_rejected(self):
        payload = [envelope(stat("device", "x", opens=-1))]
        with pytest.raises(ParseError):
            make_client(json_handler(payload)).fetch(Granularity.DAILY)

    def test_transport_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(TransportError) as exc_info:
            make_client(handler).fetch(Granularity.DAILY)
        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)

    def test_all_errors_are_fetch_errors(self):
        for exc in (TransportError, RateLimitedError, UnexpectedStatusError, ParseError):
            assert issubclass(exc, FetchError)


class TestMirror:
    """Tests for copying response bodies to the diagnostic stream."""

    def test_body_is_mirrored(self):
        payload = [envelope(stat("device", "yahoo.com", opens=1))]
        body = json.dumps(payload).encode()
        mirror = io.BytesIO()

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=body)

        make_client(handler, mirror=mirror).fetch(Granularity.DAILY)

        assert mirror.getvalue() == body

    def test_body_is_mirrored_when_parse_fails(self):
        mirror = io.BytesIO()

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=b"not json")

        with pytest.raises(ParseError):
            make_client(handler, mirror=mirror).fetch(Granularity.DAILY)

        assert mirror.getvalue() == b"not json"

    def test_no_mirror(self):
        """Without a mirror stream the body is only parsed."""
        envelopes = make_client(json_handler([]), mirror=None).fetch(Granularity.DAILY)
        assert envelopes == []
