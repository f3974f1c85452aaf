"""Shared handler helpers: rate limit, state access, cached feed reads."""

from __future__ import annotations

import functools
import html
import logging
import time
from typing import TYPE_CHECKING, Callable

from telegram.constants import ParseMode

from .. import config, view
from ..background import ensure_started
from ..errors import NoDataAvailable
from ..models.bot_state import BOT_STATE_KEY, BotState
from ..models.cache import LatestView

logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from telegram import Update
    from telegram.ext import ContextTypes


# Global rate limit (seconds) for all commands.
_last_command_ts = 0.0


def get_state(app) -> BotState:
    """Retrieve or initialize the bot state from application data.

    Args:
        app: The Telegram Application instance

    Returns:
        BotState object holding the feed registry and command metrics.
    """
    return app.bot_data.setdefault(BOT_STATE_KEY, BotState())


async def record_error(
    command: str,
    message: str,
    exc: Exception,
    reply,
    log: logging.Logger | None = None,
):
    (log or logger).exception("%s (/%s)", message, command)
    await reply(f"❌ Error: {html.escape(str(exc))}", parse_mode=ParseMode.HTML)


async def read_feed(
    update: "Update", context: "ContextTypes.DEFAULT_TYPE", feed: str, command: str
) -> LatestView | None:
    """Return the cached view of ``feed`` or reply why there is none.

    Never waits on the network: a feed that has not succeeded yet answers with
    a "no data" notice, and a stale payload is served with its age.
    """
    state = get_state(context.application)
    registry = state.feeds or ensure_started(context.application)
    client = registry.find(feed)
    if client is None:
        await update.message.reply_text(
            f"⛔ Feed {view.code(feed)} is disabled (see FEEDS_ENABLED).",
            parse_mode=ParseMode.HTML,
        )
        return None
    try:
        latest = client.get_latest()
    except NoDataAvailable:
        state.record_read(command, no_data=True)
        await update.message.reply_text(
            view.render_no_data(registry.title(feed)), parse_mode=ParseMode.HTML
        )
        return None
    if latest.is_stale:
        state.record_read(command, stale=True)
    return latest


async def reply_chunked(update: "Update", msg: str) -> None:
    for part in view.chunk(msg):
        await update.message.reply_text(part, parse_mode=ParseMode.HTML)


def rate_limit(func: Callable, name: str | None = None) -> Callable:
    """Decorator to enforce global rate limiting on command handlers.

    Args:
        func: The async command handler function to wrap

    Returns:
        Wrapped function that enforces rate limiting based on config.RATE_LIMIT_S

    Note:
        Uses a global timestamp check. Rate limit applies across all commands.
        If rate limit is exceeded, sends a message to the user with wait time.
    """

    command_name = name or func.__name__.removeprefix("cmd_")

    @functools.wraps(func)
    async def wrapper(
        update: "Update", context: "ContextTypes.DEFAULT_TYPE", *args, **kwargs
    ):
        global _last_command_ts
        now = time.monotonic()
        elapsed = now - _last_command_ts

        if elapsed < config.RATE_LIMIT_S:
            try:
                if update and getattr(update, "effective_message", None):
                    await update.effective_message.reply_text(
                        f"⏱ Rate limit: please wait {config.RATE_LIMIT_S - elapsed:.1f}s",
                    )
            except Exception as e:
                logger.debug("rate-limit notice failed to send: %s", e)
            try:
                state = get_state(context.application)
                state.record_rate_limited(command_name)
            except Exception as e:
                logger.debug("metrics rate-limit record failed: %s", e)
            return

        _last_command_ts = now
        start = time.perf_counter()
        try:
            result = await func(update, context, *args, **kwargs)
        except Exception as e:
            latency_s = time.perf_counter() - start
            try:
                state = get_state(context.application)
                state.record_command(
                    command_name, latency_s, ok=False, error_msg=str(e)
                )
            except Exception as metrics_error:
                logger.debug("metrics record failed: %s", metrics_error)
            raise
        else:
            latency_s = time.perf_counter() - start
            try:
                state = get_state(context.application)
                state.record_command(command_name, latency_s, ok=True, error_msg=None)
            except Exception as metrics_error:
                logger.debug("metrics record failed: %s", metrics_error)
            return result

    return wrapper


async def reply_usage(update: "Update", usage: str, options: list[str] | None = None) -> None:
    hint = ""
    if options:
        hint = "\n<i>Options:</i> " + ", ".join(view.code(o) for o in options)
    await update.message.reply_text(
        f"<i>Usage:</i> {html.escape(usage)}{hint}", parse_mode=ParseMode.HTML
    )
