"""Election results processing (Ministerio del Interior API)."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from datetime import datetime, timezone

from .schemas import Agrupacion, ElectionAPIResponse

ELECTION_YEAR = 2025
RECUENTO_PROVISORIO = 1
RECUENTO_DEFINITIVO = 2
TIPO_GENERALES = 2
CATEGORIA_PRESIDENTE = 1
CATEGORIA_DIPUTADOS = 2
CATEGORIA_SENADORES = 3

# Feed suffix -> categoriaId. Presidente is the default for /elecciones.
CATEGORIES: dict[str, int] = {
    "presidente": CATEGORIA_PRESIDENTE,
    "diputados": CATEGORIA_DIPUTADOS,
    "senadores": CATEGORIA_SENADORES,
}
CATEGORY_TITLES: dict[str, str] = {
    "presidente": "Presidente y Vicepresidente",
    "diputados": "Diputados Nacionales",
    "senadores": "Senadores Nacionales",
}
DEFAULT_CATEGORY = "presidente"


def feed_name(categoria: str) -> str:
    return f"elecciones_{categoria}"


# First-round win: more than 45%, or more than 40% with a 10 point lead.
BALLOTAGE_THRESHOLD_HIGH = 45.0
BALLOTAGE_THRESHOLD_LOW = 40.0
BALLOTAGE_DIFF_REQUIRED = 10.0

DEFAULT_PARTY_COLORS: dict[str, str] = {
    "LA LIBERTAD AVANZA": "#6B4C9A",
    "UNION POR LA PATRIA": "#87CEEB",
    "JUNTOS POR EL CAMBIO": "#FFD700",
    "HACEMOS POR NUESTRO PAIS": "#FF6B6B",
    "UCR": "#E74C3C",
    "PRO": "#F39C12",
    "FDT": "#3498DB",
    "DEFAULT": "#95A5A6",
}


@dataclass(frozen=True)
class Candidate:
    id: int
    full_name: str
    party: str
    party_color: str
    votes: int
    percentage: float


@dataclass(frozen=True)
class Progress:
    total_polling_stations: int
    tallied_polling_stations: int
    tallied_percentage: float
    total_electors: int
    total_voters: int
    participation_percentage: float | None


@dataclass(frozen=True)
class OtherVotes:
    null: int
    null_percentage: float | None
    blank: int
    blank_percentage: float | None
    challenged: int
    challenged_percentage: float | None

    @property
    def total(self) -> int:
        return self.null + self.blank + self.challenged


@dataclass(frozen=True)
class ProcessedResults:
    last_update: datetime
    election_year: int
    election_type: str
    category: str
    district: str
    progress: Progress
    other_votes: OtherVotes
    candidates: list[Candidate] = field(default_factory=list)
    is_provisional: bool = True

    @property
    def total_valid_votes(self) -> int:
        return sum(c.votes for c in self.candidates)

    @property
    def winner_percentage(self) -> float | None:
        return self.candidates[0].percentage if self.candidates else None

    @property
    def runoff_required(self) -> bool:
        return is_runoff_required(self.candidates)


def _candidate_from(agrupacion: Agrupacion) -> Candidate:
    full_name = agrupacion.nombre
    if agrupacion.listas:
        candidatos = agrupacion.listas[0].candidatos
        presidente = next((c for c in candidatos if c.tipo == "presidente"), None)
        vice = next((c for c in candidatos if c.tipo == "vice"), None)
        if presidente:
            full_name = f"{presidente.nombre} {presidente.apellido}"
        if vice:
            full_name += f" / {vice.nombre} {vice.apellido}"
    color = (
        agrupacion.color
        or DEFAULT_PARTY_COLORS.get(agrupacion.nombre.upper())
        or DEFAULT_PARTY_COLORS["DEFAULT"]
    )
    return Candidate(
        id=agrupacion.agrupacion_id,
        full_name=full_name,
        party=agrupacion.nombre,
        party_color=color,
        votes=agrupacion.votos,
        percentage=agrupacion.votos_porcentaje,
    )


def process_results(raw: ElectionAPIResponse) -> ProcessedResults:
    """Turn a validated API response into display-ready results."""
    candidates = sorted(
        (_candidate_from(a) for a in raw.positivos),
        key=lambda c: c.votes,
        reverse=True,
    )
    estado = raw.estado_recuento
    otros = raw.otros
    return ProcessedResults(
        last_update=raw.fecha_totalizacion,
        election_year=raw.anio_eleccion or ELECTION_YEAR,
        election_type=raw.tipo_eleccion_nombre or "Generales",
        category=raw.categoria_nombre or "Presidente y Vicepresidente",
        district=raw.distrito_nombre or "Nacional",
        progress=Progress(
            total_polling_stations=estado.mesas_esperadas,
            tallied_polling_stations=estado.mesas_totalizadas,
            tallied_percentage=estado.mesas_totalizadas_porcentaje,
            total_electors=estado.cantidad_electores,
            total_voters=estado.cantidad_votantes,
            participation_percentage=estado.participacion_porcentaje,
        ),
        other_votes=OtherVotes(
            null=otros.votos_nulos,
            null_percentage=otros.votos_nulos_porcentaje,
            blank=otros.votos_en_blanco,
            blank_percentage=otros.votos_en_blanco_porcentaje,
            challenged=otros.votos_recurridos,
            challenged_percentage=otros.votos_recurridos_porcentaje,
        ),
        candidates=candidates,
    )


def is_runoff_required(candidates: list[Candidate]) -> bool:
    if len(candidates) < 2:
        return False
    first, second = candidates[0], candidates[1]
    if first.percentage > BALLOTAGE_THRESHOLD_HIGH:
        return False
    if (
        first.percentage > BALLOTAGE_THRESHOLD_LOW
        and first.percentage - second.percentage >= BALLOTAGE_DIFF_REQUIRED
    ):
        return False
    return True


def winner_status(results: ProcessedResults) -> str:
    if not results.candidates:
        return "Sin resultados"
    if results.runoff_required:
        return "Ballotage requerido"
    winner = results.candidates[0]
    if winner.percentage > BALLOTAGE_THRESHOLD_HIGH:
        return "Ganador en primera vuelta"
    if winner.percentage > BALLOTAGE_THRESHOLD_LOW and len(results.candidates) > 1:
        lead = winner.percentage - results.candidates[1].percentage
        if lead >= BALLOTAGE_DIFF_REQUIRED:
            return "Ganador en primera vuelta"
    return "Recuento en curso"


def time_since_update(last_update: datetime, now: float | None = None) -> str:
    """Spanish relative time, e.g. ``hace 5 min``."""
    if last_update.tzinfo is None:
        last_update = last_update.replace(tzinfo=timezone.utc)
    current = time.time() if now is None else now
    seconds = int(current - last_update.timestamp())
    if seconds < 60:
        return "hace instantes"
    minutes = seconds // 60
    if minutes < 60:
        return f"hace {minutes} min"
    hours = minutes // 60
    if hours < 24:
        return f"hace {hours} hs"
    return f"hace {hours // 24} días"


def format_votes(num: int) -> str:
    """Thousands separated with dots: ``1.234.567``."""
    return f"{num:,}".replace(",", ".")


def format_percentage(pct: float | str | None) -> str:
    if pct is None:
        return "-"
    return f"{float(pct):.2f}%"


__all__ = [
    "Candidate",
    "OtherVotes",
    "ProcessedResults",
    "Progress",
    "format_percentage",
    "feed_name",
    "format_votes",
    "is_runoff_required",
    "process_results",
    "time_since_update",
    "winner_status",
]
