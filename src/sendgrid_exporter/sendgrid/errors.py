"""Errors raised while fetching stats from SendGrid."""


class FetchError(Exception):
    """Base class for every stats fetch failure."""

    pass


class TransportError(FetchError):
    """No response was obtained (DNS, connect, TLS, read errors)."""

    pass


class UnexpectedStatusError(FetchError):
    """The API answered with a status other than 200."""

    def __init__(self, status_code: int, message: str | None = None):
        self.status_code = status_code
        super().__init__(message or f"unexpected status {status_code}")


class RateLimitedError(UnexpectedStatusError):
    """The API answered 429 Too Many Requests."""

    def __init__(self) -> None:
        super().__init__(429, "reached API rate limit")


class ParseError(FetchError):
    """The response body is not the expected JSON shape."""

    pass


class EmptyResultError(FetchError):
    """The response is well-formed but holds nothing for the window."""

    pass
