"""
Logging setup shared by the server and the CLI entry point.

Usage:
    from mt_adapter.logging_config import setup_logging
    setup_logging("DEBUG")
"""

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s %(levelname)-7s [%(threadName)s] %(name)s: %(message)s"
HANDLER_NAME = "mt_adapter.console"


def setup_logging(level: str = "INFO") -> None:
    root = logging.getLogger()
    # Avoid adding handlers multiple times
    if not any(h.get_name() == HANDLER_NAME for h in root.handlers):
        console = logging.StreamHandler()
        console.set_name(HANDLER_NAME)
        console.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(console)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
