"""Background feed polling (started once per Application)."""
from __future__ import annotations

import logging

from . import config
from .feeds import FeedRegistry
from .models.bot_state import BOT_STATE_KEY, BotState

logger = logging.getLogger(__name__)


def _get_state(app) -> BotState:
    return app.bot_data.setdefault(BOT_STATE_KEY, BotState())


def ensure_started(app) -> FeedRegistry:
    """Build the feed registry if needed and start its poll loops.

    Must run on the Application's event loop (post_init or a handler).
    """
    state = _get_state(app)
    if state.feeds is None:
        state.feeds = FeedRegistry.from_settings(config.settings)
    if not state.feeds_started:
        state.feeds.start_all()
        state.feeds_started = True
    return state.feeds


async def shutdown(app) -> None:
    """Stop every poll loop and close the shared HTTP client."""
    state = _get_state(app)
    if state.feeds is None:
        return
    logger.info("Stopping %d feed(s)", len(state.feeds.names()))
    try:
        await state.feeds.aclose()
    except Exception:
        logger.exception("Failed to close feeds cleanly")
    state.feeds = None
    state.feeds_started = False
