"""One-shot historical dollar quote lookup (argentinadatos.com)."""

from __future__ import annotations

import logging
import re
from datetime import date

import requests

from . import config
from .errors import SchemaValidationError, UpstreamError
from .schemas import HistoricalQuote, validator_for

logger = logging.getLogger(__name__)

_CASA_RE = re.compile(r"^[a-z]{2,20}$")

_validate = validator_for(HistoricalQuote)


def parse_fecha(raw: str) -> date:
    """Parse ``YYYY-MM-DD``. Raises ValueError on anything else."""
    return date.fromisoformat(raw.strip())


def dolar_en_fecha(casa: str, fecha: date) -> HistoricalQuote:
    """Fetch the quote of ``casa`` (oficial, blue, bolsa, ...) on ``fecha``.

    Raises:
        ValueError: ``casa`` is not a plain lowercase identifier.
        UpstreamError: The API answered with a non-2xx status.
        SchemaValidationError: The body did not match HistoricalQuote.
    """
    casa = casa.strip().lower()
    if not _CASA_RE.match(casa):
        raise ValueError(f"invalid casa: {casa!r}")
    url = (
        f"{config.settings.ARGENTINA_DATA_API_URL}/cotizaciones/dolares/{casa}/"
        f"{fecha:%Y/%m/%d}/"
    )
    logger.debug("Historical quote lookup: %s", url)
    headers = {"Accept": "application/json", "User-Agent": config.settings.USER_AGENT}
    resp = requests.get(url, headers=headers, timeout=config.settings.HISTORICO_TIMEOUT_S)
    if not resp.ok:
        snippet = resp.text[:200].replace("\n", " ")
        raise UpstreamError(resp.status_code, snippet)
    try:
        body = resp.json()
    except ValueError as exc:
        raise SchemaValidationError(f"invalid JSON: {exc}") from exc
    return _validate(body)
