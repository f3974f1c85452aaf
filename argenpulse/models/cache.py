"""Cache-related dataclasses."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, Literal, TypeVar

T = TypeVar("T")

Source = Literal["live", "stale"]


@dataclass(frozen=True)
class CachedEntry(Generic[T]):
    """Last successful fetch. Replaced as a whole, never mutated."""

    payload: T
    fetched_at: float
    source: Source = "live"


@dataclass(frozen=True)
class LatestView(Generic[T]):
    """Envelope returned to readers of a client."""

    data: T
    is_stale: bool
    fetched_at: float
    age_s: float = 0.0

    @property
    def source(self) -> Source:
        return "stale" if self.is_stale else "live"
