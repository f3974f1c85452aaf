from __future__ import annotations

import logging

from .. import elections, view
from .common import read_feed, reply_chunked, reply_usage

logger = logging.getLogger(__name__)


async def cmd_elecciones(update, context) -> None:
    """/elecciones [presidente|diputados|senadores]; presidente by default."""
    args = context.args or []
    categoria = args[0].strip().lower() if args else elections.DEFAULT_CATEGORY
    if len(args) > 1 or categoria not in elections.CATEGORIES:
        await reply_usage(
            update, "/elecciones [categoria]", list(elections.CATEGORIES)
        )
        return
    latest = await read_feed(update, context, elections.feed_name(categoria), "elecciones")
    if latest is None:
        return
    await reply_chunked(update, view.render_elecciones(latest))
