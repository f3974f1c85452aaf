"""Entrypoint for running the Telegram bot from the package.

This module wires up the Application, registers handlers, starts the feed
poll loops once the bot is up and stops them on shutdown.
"""

from __future__ import annotations

import logging

from telegram import BotCommand
from telegram.ext import Application, CommandHandler

from .logger import setup_logging
from . import background, config
from .commands import COMMANDS
from .handlers import dispatch
from .models.bot_state import BOT_STATE_KEY, BotState

logger = logging.getLogger(__name__)


def build_application() -> Application:
    if config.TOKEN is None:
        raise RuntimeError("BOT_TOKEN environment variable is not set")

    app = Application.builder().token(config.TOKEN).build()

    app.bot_data.setdefault(BOT_STATE_KEY, BotState())

    for spec in COMMANDS:
        fn = getattr(dispatch, spec.handler)
        triggers = [spec.name, *spec.aliases]
        app.add_handler(CommandHandler(triggers, fn))

    return app


async def register_bot_commands(app: Application) -> None:
    """Register bot commands for Telegram autocomplete."""
    try:
        # Aliases are left out of the autocomplete list.
        bot_commands = [BotCommand(spec.name, spec.description) for spec in COMMANDS]
        await app.bot.set_my_commands(bot_commands)
        logger.info("Registered %d commands for autocomplete", len(bot_commands))
    except Exception as e:
        logger.warning("Failed to register bot commands: %s", e)


async def on_startup(app: Application) -> None:
    try:
        background.ensure_started(app)
    except Exception as e:
        logger.warning("Failed to start feed polling: %s", e)

    await register_bot_commands(app)


async def on_shutdown(app: Application) -> None:
    await background.shutdown(app)


def run() -> None:
    setup_logging()
    logger.info("Starting argenpulse")
    app = build_application()

    app.post_init = on_startup
    app.post_shutdown = on_shutdown

    # run polling; keep the stop_signals None so container shutdown behaves normally
    app.run_polling(stop_signals=None)


if __name__ == "__main__":
    run()
