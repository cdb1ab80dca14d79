"""
log.py

Responsibility: Configure build/boot logging in Heroku's output convention.

Heroku shows buildpack output verbatim, so step headings are prefixed with
`-----> ` and details are indented to line up underneath them.
"""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "emberpack"

TOPIC_PREFIX = "-----> "
DETAIL_PREFIX = "       "

console = Console(highlight=False, soft_wrap=True)


def setup_logging(debug: bool = False) -> None:
    """Configure the package logger with rich output; safe to call again."""
    level = logging.DEBUG if debug else logging.INFO
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)
    handler = RichHandler(
        console=console,
        show_time=False,
        show_level=False,
        show_path=False,
        markup=False,
        rich_tracebacks=debug,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)


def get_logger(name: str | None = None) -> logging.Logger:
    if not name:
        return logging.getLogger(LOGGER_NAME)
    return logging.getLogger(f"{LOGGER_NAME}.{name}")


def topic(message: str, *args: object) -> None:
    get_logger().info(TOPIC_PREFIX + message, *args)


def detail(message: str, *args: object) -> None:
    get_logger().info(DETAIL_PREFIX + message, *args)
