"""Dollar, currency and index commands backed by the cached feeds."""

from __future__ import annotations

import asyncio
import logging
from datetime import date

import requests
from telegram.constants import ParseMode

from .. import historico, view
from ..errors import FeedError, UpstreamError
from .common import read_feed, record_error, reply_chunked, reply_usage

logger = logging.getLogger(__name__)

DEFAULT_MONTHS = 6
MAX_MONTHS = 24


async def cmd_dolar(update, context) -> None:
    latest = await read_feed(update, context, "dolar", "dolar")
    if latest is None:
        return
    casa = context.args[0].strip() if context.args else None
    await reply_chunked(update, view.render_dolar(latest, casa))


async def cmd_cotizaciones(update, context) -> None:
    latest = await read_feed(update, context, "cotizaciones", "cotizaciones")
    if latest is None:
        return
    await reply_chunked(update, view.render_cotizaciones(latest))


async def cmd_inflacion(update, context) -> None:
    months = DEFAULT_MONTHS
    if context.args:
        try:
            months = int(context.args[0])
        except ValueError:
            months = 0
        if not 1 <= months <= MAX_MONTHS:
            await reply_usage(update, f"/inflacion [1-{MAX_MONTHS}]")
            return
    latest = await read_feed(update, context, "inflacion", "inflacion")
    if latest is None:
        return
    await reply_chunked(
        update, view.render_index_series("📈 Inflación mensual", latest, last=months)
    )


async def cmd_riesgo_pais(update, context) -> None:
    latest = await read_feed(update, context, "riesgo_pais", "riesgopais")
    if latest is None:
        return
    await reply_chunked(
        update,
        view.render_index_series("🇦🇷 Riesgo país", latest, last=5, suffix=" pb"),
    )


async def cmd_dolar_fecha(update, context) -> None:
    if len(context.args or []) != 2:
        await reply_usage(update, "/dolarfecha <casa> <YYYY-MM-DD>", ["oficial", "blue", "bolsa"])
        return
    casa, raw_fecha = context.args
    try:
        fecha = historico.parse_fecha(raw_fecha)
    except ValueError:
        await reply_usage(update, "/dolarfecha <casa> <YYYY-MM-DD>")
        return
    if fecha > date.today():
        await update.message.reply_text("❌ La fecha no puede ser futura.")
        return
    try:
        quote = await asyncio.to_thread(historico.dolar_en_fecha, casa, fecha)
    except ValueError as e:
        await update.message.reply_text(f"❌ {e}")
        return
    except UpstreamError as e:
        if e.status_code == 404:
            await update.message.reply_text(
                f"🤷 Sin cotización para {view.code(casa)} el {view.code(fecha.isoformat())}.",
                parse_mode=ParseMode.HTML,
            )
            return
        await record_error("dolarfecha", "Historical quote lookup failed", e, update.message.reply_text, logger)
        return
    except (FeedError, requests.RequestException) as e:
        await record_error("dolarfecha", "Historical quote lookup failed", e, update.message.reply_text, logger)
        return
    await update.message.reply_text(view.render_historico(quote), parse_mode=ParseMode.HTML)
