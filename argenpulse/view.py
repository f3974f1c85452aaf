"""View layer for formatting Telegram messages (HTML)."""

from __future__ import annotations

import html
import math
import time
from typing import Sequence

from . import dolar, elections
from .models.cache import LatestView
from .models.feed_status import FeedStatus
from .schemas import CurrencyQuotation, DolarQuotation, HistoricalQuote, IndexPoint


def bold(text: str) -> str:
    return f"<b>{html.escape(str(text))}</b>"


def code(text: str) -> str:
    return f"<code>{html.escape(str(text))}</code>"


def chunk(msg: str, size: int = 4000) -> list[str]:
    """Split message into chunks ensuring no chunk exceeds size limit."""
    if len(msg) <= size:
        return [msg]

    lines = msg.splitlines()
    chunks: list[str] = []
    current = ""
    for line in lines:
        if len(line) > size:
            if current:
                chunks.append(current)
                current = ""
            start = 0
            while start < len(line):
                chunks.append(line[start : start + size])
                start += size
            continue
        added_length = len(line) + (1 if current else 0)
        if len(current) + added_length > size and current:
            chunks.append(current)
            current = line
        else:
            current = f"{current}\n{line}" if current else line
    if current:
        chunks.append(current)
    return chunks


def _format_timestamp(ts: float | None) -> str:
    if ts is None:
        return "never"
    return time.strftime("%Y-%m-%d %H:%M:%S", time.localtime(ts))


def _format_age(seconds: float) -> str:
    seconds = int(seconds)
    if seconds < 60:
        return f"{seconds}s"
    minutes, seconds = divmod(seconds, 60)
    if minutes < 60:
        return f"{minutes}m {seconds}s"
    hours, minutes = divmod(minutes, 60)
    return f"{hours}h {minutes}m"


def _p95(samples: list[float]) -> float:
    if not samples:
        return 0.0
    ordered = sorted(samples)
    idx = max(0, math.ceil(0.95 * len(ordered)) - 1)
    return ordered[idx]


def render_command_metrics(metrics: dict) -> str:
    if not metrics:
        return "<i>No command metrics recorded yet.</i>"

    lines = [bold("Command Metrics:")]
    for name in sorted(metrics.keys()):
        entry = metrics[name]
        avg = (entry.total_latency_s / entry.count) if entry.count else 0.0
        p95 = _p95(entry.latencies_s)
        last_run = _format_timestamp(entry.last_run_ts)
        line = (
            f"{code(name)} runs {entry.count} ok {entry.success} err {entry.error} "
            f"rl {entry.rate_limited} stale {entry.stale_served} "
            f"nodata {entry.no_data} avg {avg * 1000:.1f}ms "
            f"p95 {p95 * 1000:.1f}ms last {html.escape(last_run)}"
        )
        lines.append(line)
    return "\n".join(lines)


def render_freshness(view: LatestView) -> str:
    """Footer line telling how old the data is; warns when it is stale."""
    when = html.escape(_format_timestamp(view.fetched_at))
    age = html.escape(_format_age(view.age_s))
    if view.is_stale:
        return f"⚠️ <i>Datos desactualizados: última actualización {when} (hace {age}).</i>"
    return f"<i>Actualizado {when}</i>"


def render_no_data(title: str) -> str:
    return (
        f"⏳ {bold(title)}\n<i>Todavía no hay datos. "
        "La fuente no respondió desde que arrancó el bot; probá en unos minutos.</i>"
    )


def _quote_line(name: str, compra: float | None, venta: float) -> str:
    return (
        f"{bold(name)}: compra {code(dolar.format_price(compra))} "
        f"venta {code(dolar.format_price(venta))}"
    )


def render_dolar(view: LatestView, casa: str | None = None) -> str:
    quotes: Sequence[DolarQuotation] = view.data
    if casa:
        quote = dolar.find_casa(quotes, casa)
        if quote is None:
            known = ", ".join(q.casa for q in quotes)
            return (
                f"❌ Casa desconocida: {code(casa)}\n"
                f"<i>Disponibles:</i> {html.escape(known)}"
            )
        quotes = [quote]

    lines = [bold("💵 Dólar")]
    for q in quotes:
        line = _quote_line(q.nombre, q.compra, q.venta)
        if q.compra:
            pct = dolar.spread_percentage(q.compra, q.venta)
            line += f" <i>(brecha {dolar.format_number(pct)}%)</i>"
        if dolar.quote_is_stale(q.fecha_actualizacion):
            line += " 🕒"
        lines.append(line)

    if not casa and len(quotes) > 1:
        buy = dolar.best_buy(quotes)
        sell = dolar.best_sell(quotes)
        if buy:
            lines.append(f"\n🟢 Mejor para comprar: {html.escape(buy.nombre)}")
        if sell:
            lines.append(f"🔴 Mejor para vender: {html.escape(sell.nombre)}")
    lines.append("")
    lines.append(render_freshness(view))
    return "\n".join(lines)


def render_cotizaciones(view: LatestView) -> str:
    quotes: Sequence[CurrencyQuotation] = view.data
    lines = [bold("💱 Cotizaciones")]
    for q in quotes:
        lines.append(_quote_line(f"{q.moneda} {q.nombre}", q.compra, q.venta))
    lines.append("")
    lines.append(render_freshness(view))
    return "\n".join(lines)


def render_index_series(
    title: str, view: LatestView, last: int = 6, suffix: str = "%"
) -> str:
    points: Sequence[IndexPoint] = sorted(view.data, key=lambda p: p.fecha)
    tail = points[-max(1, last):]
    lines = [bold(title)]
    for p in tail:
        lines.append(
            f"{html.escape(p.fecha.isoformat())}: {code(dolar.format_number(p.valor) + suffix)}"
        )
    if len(tail) >= 2:
        change = dolar.variation(tail[-2].valor, tail[-1].valor)
        arrow = "⬆️" if change.absolute > 0 else ("⬇️" if change.absolute < 0 else "➡️")
        lines.append(f"{arrow} <i>vs. anterior: {dolar.format_number(change.absolute)}</i>")
    lines.append("")
    lines.append(render_freshness(view))
    return "\n".join(lines)


def render_elecciones(view: LatestView, now: float | None = None) -> str:
    results: elections.ProcessedResults = view.data
    progress = results.progress
    header = (
        f"🗳️ {bold(f'{results.category} {results.election_year}')} "
        f"<i>{html.escape(results.district)} · {html.escape(results.election_type)}</i>"
    )
    lines = [
        header,
        f"Mesas: {code(elections.format_votes(progress.tallied_polling_stations))}/"
        f"{code(elections.format_votes(progress.total_polling_stations))} "
        f"({elections.format_percentage(progress.tallied_percentage)})",
        f"Participación: {elections.format_percentage(progress.participation_percentage)}",
        "",
    ]
    if not results.candidates:
        lines.append("<i>Sin resultados todavía.</i>")
    for idx, c in enumerate(results.candidates, start=1):
        lines.append(
            f"{idx}. {bold(c.full_name)} <i>({html.escape(c.party)})</i> "
            f"{code(elections.format_percentage(c.percentage))} · "
            f"{elections.format_votes(c.votes)} votos"
        )
    other = results.other_votes
    lines.extend(
        [
            "",
            f"Blancos {elections.format_votes(other.blank)} · "
            f"Nulos {elections.format_votes(other.null)} · "
            f"Impugnados {elections.format_votes(other.challenged)}",
            f"Estado: {bold(elections.winner_status(results))}",
            f"<i>Escrutinio {'provisorio' if results.is_provisional else 'definitivo'}, "
            f"totalizado {html.escape(elections.time_since_update(results.last_update, now))}</i>",
            render_freshness(view),
        ]
    )
    return "\n".join(lines)


def render_historico(quote: HistoricalQuote) -> str:
    return "\n".join(
        [
            bold(f"💵 Dólar {quote.casa} · {quote.fecha.isoformat()}"),
            f"compra {code(dolar.format_price(quote.compra))} "
            f"venta {code(dolar.format_price(quote.venta))}",
        ]
    )


def render_feed_statuses(
    statuses: Sequence[FeedStatus], titles: dict[str, str] | None = None
) -> str:
    if not statuses:
        return "<i>No feeds configured.</i>"
    titles = titles or {}
    lines = [bold("Feeds:")]
    for st in statuses:
        if not st.running:
            icon = "⏹"
        elif st.last_failure and st.consecutive_failures:
            icon = "🟠"
        elif st.is_stale:
            icon = "🟡"
        else:
            icon = "🟢"
        title = html.escape(titles.get(st.name, st.name))
        parts = [
            f"{icon} {code(st.name)} {title}",
            f"   last ok {html.escape(_format_timestamp(st.fetched_at))}"
            f"{' (stale)' if st.is_stale else ''}",
            f"   fetches {st.fetch_count} skipped {st.skipped_ticks} "
            f"failures {st.consecutive_failures} retry {st.attempt}",
        ]
        if st.consecutive_failures and st.last_failure:
            parts.append(
                f"   last error [{html.escape(st.last_failure)}] "
                f"{html.escape((st.last_failure_detail or '')[:120])}"
            )
        if st.next_poll_at is not None:
            parts.append(f"   next poll {html.escape(_format_timestamp(st.next_poll_at))}")
        lines.append("\n".join(parts))
    return "\n".join(lines)
