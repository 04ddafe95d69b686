"""Failures talking to the streaming service during a live sync.

Only :class:`SpotifyAuthError` reaches the caller of a sync as an HTTP error.
The rest end the fetch and the sync keeps whatever pages it already collected.
"""


class SpotifyClientError(Exception):
    """A recently-played or profile request could not be completed."""


class SpotifyAuthError(SpotifyClientError):
    """The user's bearer token was rejected (HTTP 401)."""


class SpotifyRateLimitError(SpotifyClientError):
    """Still throttled (HTTP 429) after the client's own backoff."""

    def __init__(self, retry_after: float | None = None) -> None:
        self.retry_after = retry_after
        wait = f", next attempt allowed in {retry_after}s" if retry_after is not None else ""
        super().__init__(f"Throttled by the streaming service{wait}")


class SpotifyServerError(SpotifyClientError):
    """The streaming service kept failing with 5xx responses."""

    def __init__(self, status_code: int, detail: str = "") -> None:
        self.status_code = status_code
        self.detail = detail
        super().__init__(_describe("Streaming service unavailable", status_code, detail))


class SpotifyRequestError(SpotifyClientError):
    """A 4xx other than 401 or 429; retrying the same request will not help."""

    def __init__(self, status_code: int, detail: str = "") -> None:
        self.status_code = status_code
        self.detail = detail
        super().__init__(_describe("Streaming service refused the request", status_code, detail))


def _describe(summary: str, status_code: int, detail: str) -> str:
    return f"{summary} [{status_code}]: {detail}" if detail else f"{summary} [{status_code}]"
