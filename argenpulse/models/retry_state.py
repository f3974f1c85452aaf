"""Retry state dataclasses."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class RetryState:
    attempt: int = 0
    next_delay_ms: int = 0


@dataclass(frozen=True)
class RetryDecision:
    """What the poll loop does after an outcome."""

    state: RetryState
    delay_ms: int
    exhausted: bool = False
