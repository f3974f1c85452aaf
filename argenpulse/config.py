"""Central configuration for argenpulse."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import List

from .models.client_config import EXHAUSTION_POLICIES

logger = logging.getLogger(__name__)

ALL_FEEDS = (
    "dolar",
    "cotizaciones",
    "inflacion",
    "riesgo_pais",
    "elecciones_presidente",
    "elecciones_diputados",
    "elecciones_senadores",
)
ELECTION_FEEDS = tuple(n for n in ALL_FEEDS if n.startswith("elecciones_"))


def _split_ints(s: str, default: List[int]) -> List[int]:
    """Parse a comma-separated string into an ordered list of integers.

    Args:
        s: Comma-separated string of integers (e.g., "1000,3000,5000")
        default: Returned when nothing valid is found.

    Returns:
        Parsed integers in their original order. Invalid entries are skipped.

    Example:
        >>> _split_ints("1000, x, 3000", [5])
        [1000, 3000]
    """
    out: List[int] = []
    for part in (s or "").split(","):
        p = part.strip()
        if p.isdigit():
            out.append(int(p))
    return out or list(default)


def _split_names(s: str) -> List[str]:
    """Parse a comma-separated list of feed names, keeping known ones only.

    ``elecciones`` is shorthand for every election category feed.
    """
    names = [p.strip().lower() for p in (s or "").split(",") if p.strip()]
    if not names:
        return list(ALL_FEEDS)
    out: List[str] = []
    for n in names:
        expanded = ELECTION_FEEDS if n == "elecciones" else (n,)
        for e in expanded:
            if e in ALL_FEEDS and e not in out:
                out.append(e)
    return out


def _int_env(name: str, default: int) -> int:
    raw = (os.environ.get(name) or "").strip()
    try:
        return int(raw) if raw else default
    except ValueError:
        return default


def _float_env(name: str, default: float) -> float:
    raw = (os.environ.get(name) or "").strip()
    try:
        return float(raw) if raw else default
    except ValueError:
        return default


@dataclass
class Settings:
    """Configuration settings for argenpulse.

    All settings are loaded from environment variables with sensible defaults.
    Per-feed poll intervals and TTLs live in ``feeds.py``; the values here
    apply to every feed.
    """

    BOT_TOKEN: str | None
    RATE_LIMIT_S: float
    REQUEST_TIMEOUT_MS: int
    MAX_RETRIES: int
    BACKOFF_MS: List[int]
    EXHAUSTION_POLICY: str
    FEEDS_ENABLED: List[str]
    DOLAR_API_URL: str
    ARGENTINA_DATA_API_URL: str
    ELECTION_API_URL: str
    ELECTION_YEAR: int
    ELECTION_DISTRICT_ID: str | None
    USER_AGENT: str
    HISTORICO_TIMEOUT_S: int


def _read_settings() -> Settings:
    """Read all configuration from environment variables.

    Returns:
        Settings object with all configuration values.

    Note:
        Invalid numeric values fall back to defaults. An unknown
        EXHAUSTION_POLICY falls back to "resume".
    """
    token = os.environ.get("BOT_TOKEN") or None
    rate_limit = _float_env("RATE_LIMIT_S", 1.0)
    timeout_ms = _int_env("REQUEST_TIMEOUT_MS", 15000)
    max_retries = _int_env("MAX_RETRIES", 3)
    backoff = _split_ints(os.environ.get("BACKOFF_MS", ""), [1000, 3000, 5000])

    policy = (os.environ.get("EXHAUSTION_POLICY") or "resume").strip().lower()
    if policy not in EXHAUSTION_POLICIES:
        policy = "resume"

    feeds = _split_names(os.environ.get("FEEDS_ENABLED", ""))

    dolar_url = os.environ.get("DOLAR_API_URL") or "https://dolarapi.com/v1"
    argdata_url = (
        os.environ.get("ARGENTINA_DATA_API_URL") or "https://api.argentinadatos.com/v1"
    )
    election_url = (
        os.environ.get("ELECTION_API_URL")
        or "https://resultados.mininterior.gob.ar/api/resultados/getResultados"
    )
    election_year = _int_env("ELECTION_YEAR", 2025)
    district = (os.environ.get("ELECTION_DISTRICT_ID") or "").strip() or None
    user_agent = os.environ.get("USER_AGENT") or "argenpulse/0.1 (+telegram bot)"
    historico_timeout = _int_env("HISTORICO_TIMEOUT_S", 12)

    return Settings(
        BOT_TOKEN=token,
        RATE_LIMIT_S=rate_limit,
        REQUEST_TIMEOUT_MS=max(1, timeout_ms),
        MAX_RETRIES=max(0, max_retries),
        BACKOFF_MS=backoff,
        EXHAUSTION_POLICY=policy,
        FEEDS_ENABLED=feeds,
        DOLAR_API_URL=dolar_url.rstrip("/"),
        ARGENTINA_DATA_API_URL=argdata_url.rstrip("/"),
        ELECTION_API_URL=election_url,
        ELECTION_YEAR=election_year,
        ELECTION_DISTRICT_ID=district,
        USER_AGENT=user_agent,
        HISTORICO_TIMEOUT_S=max(1, historico_timeout),
    )


settings = _read_settings()


def validate_settings() -> None:
    """Log problems with critical configuration."""
    if settings.BOT_TOKEN is None:
        logger.error("BOT_TOKEN environment variable is not set")
    if not settings.FEEDS_ENABLED:
        logger.warning("FEEDS_ENABLED names no known feed; nothing will be polled.")


# Exported constants
TOKEN: str | None = settings.BOT_TOKEN
RATE_LIMIT_S: float = settings.RATE_LIMIT_S

validate_settings()
