"""Dollar quote helpers: spreads, variations and es-AR formatting."""

from __future__ import annotations

import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, Sequence

from .schemas import DolarQuotation


@dataclass(frozen=True)
class Variation:
    absolute: float
    percentage: float
    is_positive: bool


def spread(compra: float, venta: float) -> float:
    """Difference between sell and buy price.

    Example:
        >>> spread(1000, 1050)
        50
    """
    return venta - compra


def spread_percentage(compra: float, venta: float) -> float:
    """Spread as a percentage of the buy price (0 when buy price is 0)."""
    if compra == 0:
        return 0.0
    return (spread(compra, venta) / compra) * 100


def variation(previous: float, current: float) -> Variation:
    absolute = current - previous
    percentage = (absolute / previous) * 100 if previous else 0.0
    return Variation(absolute=absolute, percentage=percentage, is_positive=absolute >= 0)


def best_buy(quotes: Iterable[DolarQuotation]) -> DolarQuotation | None:
    """Quote with the lowest buy price, ignoring quotes without one."""
    candidates = [q for q in quotes if q.compra is not None]
    if not candidates:
        return None
    return min(candidates, key=lambda q: q.compra)


def best_sell(quotes: Iterable[DolarQuotation]) -> DolarQuotation | None:
    """Quote with the highest sell price."""
    candidates = list(quotes)
    if not candidates:
        return None
    return max(candidates, key=lambda q: q.venta)


def find_casa(quotes: Sequence[DolarQuotation], casa: str) -> DolarQuotation | None:
    wanted = casa.strip().lower()
    for q in quotes:
        if q.casa.lower() == wanted or q.nombre.lower() == wanted:
            return q
    return None


def format_number(value: float, decimals: int = 2) -> str:
    """Format a number the way es-AR does: dot for thousands, comma for decimals.

    Example:
        >>> format_number(1234.56)
        '1.234,56'
    """
    text = f"{abs(value):,.{decimals}f}"
    text = text.replace(",", "_").replace(".", ",").replace("_", ".")
    return f"-{text}" if value < 0 else text


def format_price(value: float | None, decimals: int = 2) -> str:
    """Format a peso price, e.g. ``$1.234,56``. None renders as ``-``."""
    if value is None:
        return "-"
    text = format_number(abs(value), decimals)
    return f"-${text}" if value < 0 else f"${text}"


def quote_is_stale(
    updated_at: datetime, max_age_minutes: float = 30, now: float | None = None
) -> bool:
    """True if the upstream's own update time is older than ``max_age_minutes``."""
    if updated_at.tzinfo is None:
        updated_at = updated_at.replace(tzinfo=timezone.utc)
    current = time.time() if now is None else now
    age_min = (current - updated_at.timestamp()) / 60
    return age_min > max_age_minutes


__all__ = [
    "Variation",
    "spread",
    "spread_percentage",
    "variation",
    "best_buy",
    "best_sell",
    "find_casa",
    "format_number",
    "format_price",
    "quote_is_stale",
]
