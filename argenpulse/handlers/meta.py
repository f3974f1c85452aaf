from __future__ import annotations

import logging

from telegram.constants import ParseMode

from .. import view
from ..background import ensure_started
from ..commands import COMMANDS, GROUP_ORDER
from .common import get_state

logger = logging.getLogger(__name__)


def _render_help() -> str:
    by_group: dict[str, list[str]] = {}
    for spec in COMMANDS:
        line = f"{spec.usage} – {spec.description}"
        by_group.setdefault(spec.group, []).append(line)
    lines: list[str] = ["Hola! Commands:\n"]
    for group in GROUP_ORDER:
        entries = by_group.get(group, [])
        if not entries:
            continue
        lines.append(group)
        lines.extend(entries)
        lines.append("")
    return "\n".join(lines).strip()


async def cmd_start(update, context) -> None:
    try:
        ensure_started(context.application)
    except Exception as e:
        logger.debug("ensure_started failed: %s", e)
    await update.message.reply_text(_render_help())


async def cmd_help(update, context) -> None:
    await cmd_start(update, context)


async def cmd_metrics(update, context) -> None:
    state = get_state(context.application)
    msg = view.render_command_metrics(state.command_metrics)
    await update.message.reply_text(msg, parse_mode=ParseMode.HTML)
