"""Backoff planning for the poll loop.

Pure functions only: the poll loop feeds in the outcome of the last fetch and
the current RetryState and gets back the new state plus how long to wait.
"""

from __future__ import annotations

from .models.client_config import ClientConfig
from .models.outcome import FetchOutcome
from .models.retry_state import RetryDecision, RetryState


def backoff_delay_ms(attempt: int, schedule: tuple[int, ...]) -> int:
    """Return the wait before the retry that follows failed ``attempt``.

    Attempt 1 maps to the first entry; attempts past the end of the schedule
    reuse its last entry.

    Example:
        >>> backoff_delay_ms(1, (1000, 2000, 4000))
        1000
        >>> backoff_delay_ms(7, (1000, 2000, 4000))
        4000
    """
    if not schedule:
        raise ValueError("empty backoff schedule")
    index = min(max(attempt, 1) - 1, len(schedule) - 1)
    return schedule[index]


def plan_next(
    outcome: FetchOutcome,
    state: RetryState,
    config: ClientConfig,
    cycle_elapsed_ms: int = 0,
) -> RetryDecision:
    """Compute the next RetryState and delay from a fetch outcome.

    Args:
        outcome: Result of the fetch that just settled.
        state: RetryState before that fetch.
        config: Client configuration.
        cycle_elapsed_ms: Time since the first fetch of the current cycle.
            An exhausted cycle waits only for the rest of the poll interval,
            so the next cycle starts on the regular poll boundary.

    Returns:
        RetryDecision. ``exhausted`` is True when this failure used up the
        last allowed attempt of the cycle; the attempt counter is then reset
        so the next cycle starts with a full retry budget.
    """
    poll_ms = config.poll_interval_ms
    if outcome.ok:
        return RetryDecision(state=RetryState(0, poll_ms), delay_ms=poll_ms)

    attempt = state.attempt + 1
    if attempt < config.max_retries:
        delay = backoff_delay_ms(attempt, config.backoff_schedule_ms)
        return RetryDecision(state=RetryState(attempt, delay), delay_ms=delay)

    remaining = max(0, poll_ms - cycle_elapsed_ms)
    return RetryDecision(
        state=RetryState(0, poll_ms),
        delay_ms=remaining,
        exhausted=True,
    )


__all__ = ["backoff_delay_ms", "plan_next"]
