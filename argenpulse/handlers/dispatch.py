"""Dispatch layer: applies rate limiting then calls the real handlers."""

from __future__ import annotations

from .common import rate_limit
from . import meta, finance, elections, feeds


# Meta
cmd_start = rate_limit(meta.cmd_start, name="start")
cmd_help = rate_limit(meta.cmd_help, name="help")
cmd_metrics = rate_limit(meta.cmd_metrics, name="metrics")

# Finanzas
cmd_dolar = rate_limit(finance.cmd_dolar, name="dolar")
cmd_cotizaciones = rate_limit(finance.cmd_cotizaciones, name="cotizaciones")
cmd_inflacion = rate_limit(finance.cmd_inflacion, name="inflacion")
cmd_riesgo_pais = rate_limit(finance.cmd_riesgo_pais, name="riesgopais")
cmd_dolar_fecha = rate_limit(finance.cmd_dolar_fecha, name="dolarfecha")

# Elecciones
cmd_elecciones = rate_limit(elections.cmd_elecciones, name="elecciones")

# Feeds
cmd_feeds = rate_limit(feeds.cmd_feeds, name="feeds")
cmd_refresh = rate_limit(feeds.cmd_refresh, name="refresh")
