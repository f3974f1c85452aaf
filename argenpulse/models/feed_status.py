"""Feed status snapshot dataclass."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class FeedStatus:
    name: str
    running: bool
    in_flight: bool
    has_data: bool
    fetched_at: float | None
    is_stale: bool
    attempt: int
    consecutive_failures: int
    fetch_count: int
    skipped_ticks: int
    last_failure: str | None = None
    last_failure_detail: str | None = None
    last_attempt_at: float | None = None
    next_poll_at: float | None = None
