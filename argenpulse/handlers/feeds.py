"""Feed introspection: poll status and on-demand refresh."""

from __future__ import annotations

import html
import logging

from telegram.constants import ParseMode

from .. import view
from ..background import ensure_started
from .common import get_state, reply_chunked, reply_usage

logger = logging.getLogger(__name__)


def _registry(context):
    state = get_state(context.application)
    return state.feeds or ensure_started(context.application)


async def cmd_feeds(update, context) -> None:
    registry = _registry(context)
    titles = {name: registry.title(name) for name in registry.names()}
    await reply_chunked(update, view.render_feed_statuses(registry.statuses(), titles))


async def cmd_refresh(update, context) -> None:
    registry = _registry(context)
    names = registry.names()
    if not context.args:
        await reply_usage(update, "/refresh <feed>", names)
        return
    name = context.args[0].strip().lower()
    client = registry.find(name)
    if client is None:
        await reply_usage(update, "/refresh <feed>", names)
        return
    outcome = await client.refresh_now()
    if outcome is None:
        msg = f"⏳ {view.code(name)} already has a fetch in flight."
    elif outcome.ok:
        msg = f"✅ {view.code(name)} refreshed."
    else:
        detail = html.escape(outcome.detail[:200])
        msg = f"❌ {view.code(name)} refresh failed [{outcome.failure}]: {detail}"
        logger.info("Manual refresh of %s failed: %s", name, outcome.detail)
    await update.message.reply_text(msg, parse_mode=ParseMode.HTML)
