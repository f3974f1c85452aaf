"""Bot runtime state (feed registry, command metrics)."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field

from ..feeds import FeedRegistry
from .metrics import CommandMetrics

logger = logging.getLogger(__name__)

MAX_LATENCY_SAMPLES = 200


@dataclass
class BotState:
    """Runtime state shared by handlers through ``Application.bot_data``."""

    feeds: FeedRegistry | None = None
    feeds_started: bool = False
    command_metrics: dict[str, CommandMetrics] = field(default_factory=dict)

    def metrics_for(self, name: str) -> CommandMetrics:
        return self.command_metrics.setdefault(name, CommandMetrics())

    def record_command(
        self, name: str, latency_s: float, ok: bool, error_msg: str | None
    ) -> None:
        metrics = self.metrics_for(name)
        metrics.count += 1
        metrics.last_run_ts = time.time()
        if ok:
            metrics.success += 1
        else:
            metrics.error += 1
            metrics.last_error = error_msg
        metrics.total_latency_s += latency_s
        metrics.max_latency_s = max(metrics.max_latency_s, latency_s)
        metrics.latencies_s.append(latency_s)
        if len(metrics.latencies_s) > MAX_LATENCY_SAMPLES:
            metrics.latencies_s.pop(0)

    def record_rate_limited(self, name: str) -> None:
        self.metrics_for(name).rate_limited += 1

    def record_read(self, name: str, *, stale: bool = False, no_data: bool = False) -> None:
        """Count reads that could not be answered with fresh data."""
        metrics = self.metrics_for(name)
        if no_data:
            metrics.no_data += 1
        elif stale:
            metrics.stale_served += 1


BOT_STATE_KEY = "state"
