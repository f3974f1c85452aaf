"""Logging helpers for argenpulse
"""
import logging
import os


def _level(name: str, default: int) -> int:
    return getattr(logging, (os.environ.get(name) or "").upper(), default)


def setup_logging() -> None:
    """Configure the root logger from LOG_LEVEL.

    FEED_LOG_LEVEL overrides the level of the poll loops only, so retry chatter
    can be silenced (or traced) without touching the rest of the bot.
    """
    level = _level("LOG_LEVEL", logging.INFO)

    root = logging.getLogger()
    if not root.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter(
            fmt="%(asctime)s %(levelname)s %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        handler.setFormatter(formatter)
        root.addHandler(handler)
    root.setLevel(level)

    logging.getLogger("argenpulse.upstream").setLevel(_level("FEED_LOG_LEVEL", level))

    # Every poll is an httpx request; keep those out of INFO.
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("telegram").setLevel(logging.WARNING)


__all__ = ["setup_logging"]
