"""Error taxonomy for upstream feeds."""

from __future__ import annotations


class FeedError(Exception):
    """Base class for failures while fetching an upstream resource."""

    kind = "unknown"


class NetworkError(FeedError):
    """Connection, DNS or timeout failure."""

    kind = "network"


class UpstreamError(FeedError):
    """Upstream answered with a non-2xx status."""

    kind = "upstream"

    def __init__(self, status_code: int, detail: str = "") -> None:
        message = f"HTTP {status_code}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
        self.status_code = status_code


class SchemaValidationError(FeedError):
    """Body is not JSON or does not match the expected structure."""

    kind = "schema"


class NoDataAvailable(LookupError):
    """Raised by get_latest() when no fetch has ever succeeded."""

    def __init__(self, feed: str) -> None:
        super().__init__(f"no data available for feed {feed!r}")
        self.feed = feed


__all__ = [
    "FeedError",
    "NetworkError",
    "UpstreamError",
    "SchemaValidationError",
    "NoDataAvailable",
]
