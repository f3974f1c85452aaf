#!/usr/bin/env python3
"""Run the bot without installing the package (``python bot.py``)."""

from argenpulse.main import run

if __name__ == "__main__":
    run()
