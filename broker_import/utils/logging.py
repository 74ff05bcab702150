"""Logging configuration for broker-import."""

import logging
from typing import Optional
from rich.logging import RichHandler
from rich.console import Console


APP_LOGGER = "broker_import"


def setup_logging(log_level: str = "INFO", rich_console: Optional[Console] = None) -> RichHandler:
    """
    Route broker-import logging through a Rich handler.

    Calling this again replaces the Rich handler installed by the previous
    call; handlers installed by others (log capture, file handlers) are kept.

    Args:
        log_level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        rich_console: Console to write to, normally the CLI's console;
            a stderr console is created when omitted

    Returns:
        The installed handler
    """
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    handler = RichHandler(
        console=rich_console or Console(stderr=True),
        show_time=True,
        show_path=numeric_level <= logging.DEBUG,
        rich_tracebacks=True,
        # file paths and broker names may contain square brackets
        markup=False
    )
    handler.setFormatter(logging.Formatter(fmt="%(message)s", datefmt="[%X]"))

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    for existing in root_logger.handlers[:]:
        if isinstance(existing, RichHandler):
            root_logger.removeHandler(existing)
    root_logger.addHandler(handler)

    logging.getLogger(APP_LOGGER).setLevel(numeric_level)
    return handler


def get_logger(name: str) -> logging.Logger:
    """Return the logger for a component, e.g. get_logger("cli") -> "broker_import.cli"."""
    return logging.getLogger(f"{APP_LOGGER}.{name}")
