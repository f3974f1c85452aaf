"""Explicit result of a single upstream fetch."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, Literal, TypeVar

from ..errors import FeedError

T = TypeVar("T")

FailureKind = Literal["network", "upstream", "schema"]


@dataclass(frozen=True)
class FetchOutcome(Generic[T]):
    payload: T | None = None
    failure: FailureKind | None = None
    detail: str = ""
    status_code: int | None = None

    @property
    def ok(self) -> bool:
        return self.failure is None

    @classmethod
    def success(cls, payload: T) -> "FetchOutcome[T]":
        return cls(payload=payload)

    @classmethod
    def from_error(cls, exc: FeedError) -> "FetchOutcome[T]":
        kind = exc.kind if exc.kind in ("network", "upstream", "schema") else "network"
        return cls(
            failure=kind,
            detail=str(exc),
            status_code=getattr(exc, "status_code", None),
        )
