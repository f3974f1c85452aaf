"""Upstream client configuration dataclass."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

ExhaustionPolicy = Literal["resume", "halt"]
EXHAUSTION_POLICIES: tuple[str, ...] = ("resume", "halt")


@dataclass(frozen=True)
class ClientConfig:
    """Timing and retry settings for one UpstreamResultsClient.

    Durations are integer milliseconds. ``exhaustion_policy`` decides what
    happens once ``max_retries`` consecutive failures end a cycle: ``resume``
    waits for the next regular poll, ``halt`` stops the poll loop.
    """

    poll_interval_ms: int
    cache_ttl_ms: int
    max_retries: int
    backoff_schedule_ms: tuple[int, ...]
    request_timeout_ms: int
    exhaustion_policy: ExhaustionPolicy = "resume"

    def __post_init__(self) -> None:
        if self.poll_interval_ms <= 0:
            raise ValueError("poll_interval_ms must be positive")
        if self.cache_ttl_ms < 0:
            raise ValueError("cache_ttl_ms must not be negative")
        if self.max_retries < 0:
            raise ValueError("max_retries must not be negative")
        if self.request_timeout_ms <= 0:
            raise ValueError("request_timeout_ms must be positive")
        # Accept any sequence but store it as a tuple so the config stays hashable.
        schedule = tuple(int(d) for d in self.backoff_schedule_ms)
        if not schedule:
            raise ValueError("backoff_schedule_ms must not be empty")
        if any(d < 0 for d in schedule):
            raise ValueError("backoff_schedule_ms entries must not be negative")
        object.__setattr__(self, "backoff_schedule_ms", schedule)
        if self.exhaustion_policy not in EXHAUSTION_POLICIES:
            raise ValueError(f"unknown exhaustion_policy: {self.exhaustion_policy!r}")

    @property
    def poll_interval_s(self) -> float:
        return self.poll_interval_ms / 1000.0

    @property
    def request_timeout_s(self) -> float:
        return self.request_timeout_ms / 1000.0
