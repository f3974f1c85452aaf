"""Command registry (single source of truth for help + wiring)."""

from __future__ import annotations

from .models.command_spec import CommandSpec, Group


_INFO_COMMANDS = (
    CommandSpec("start", "Info", "/start", "show help", "cmd_start"),
    CommandSpec("help", "Info", "/help", "this menu", "cmd_help"),
    CommandSpec(
        "metrics",
        "Info",
        "/metrics",
        "command metrics summary",
        "cmd_metrics",
    ),
)

_FINANZAS_COMMANDS = (
    CommandSpec(
        "dolar",
        "Finanzas",
        "/dolar [casa]",
        "dollar quotes (oficial, blue, bolsa, ...)",
        "cmd_dolar",
        aliases=("dolares",),
        feed="dolar",
    ),
    CommandSpec(
        "cotizaciones",
        "Finanzas",
        "/cotizaciones",
        "EUR, BRL, CLP, UYU and other currencies",
        "cmd_cotizaciones",
        feed="cotizaciones",
    ),
    CommandSpec(
        "inflacion",
        "Finanzas",
        "/inflacion [meses]",
        "monthly inflation (last 6 months by default)",
        "cmd_inflacion",
        feed="inflacion",
    ),
    CommandSpec(
        "riesgopais",
        "Finanzas",
        "/riesgopais",
        "country risk index",
        "cmd_riesgo_pais",
        feed="riesgo_pais",
    ),
    CommandSpec(
        "dolarfecha",
        "Finanzas",
        "/dolarfecha <casa> <YYYY-MM-DD>",
        "historical quote for a given date",
        "cmd_dolar_fecha",
    ),
)

_ELECCIONES_COMMANDS = (
    CommandSpec(
        "elecciones",
        "Elecciones",
        "/elecciones [presidente|diputados|senadores]",
        "live provisional election results",
        "cmd_elecciones",
        aliases=("resultados",),
        feed="elecciones_presidente",
    ),
)

_FEEDS_COMMANDS = (
    CommandSpec(
        "feeds",
        "Feeds",
        "/feeds",
        "poll status of every upstream feed",
        "cmd_feeds",
    ),
    CommandSpec(
        "refresh",
        "Feeds",
        "/refresh <feed>",
        "fetch a feed now",
        "cmd_refresh",
    ),
)


COMMANDS: tuple[CommandSpec, ...] = (
    *_INFO_COMMANDS,
    *_FINANZAS_COMMANDS,
    *_ELECCIONES_COMMANDS,
    *_FEEDS_COMMANDS,
)


GROUP_ORDER: tuple[Group, ...] = (
    "Finanzas",
    "Elecciones",
    "Feeds",
    "Info",
)
