"""Stderr logging bootstrap, called once from the CLI entry point."""

from __future__ import annotations

import logging
import os

import click

LOGGER_NAME = "copilot_context"
DEFAULT_FORMAT = "%(levelname)s %(name)s: %(message)s"


class ClickEchoHandler(logging.Handler):
    """Route records through click.echo so they follow the active stderr."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            click.echo(self.format(record), err=True)
        except Exception:
            self.handleError(record)


def setup_logging(verbose: bool = False) -> logging.Logger:
    """Attach a single stderr handler to the package logger.

    ``--verbose`` forces DEBUG; otherwise COPILOT_CONTEXT_LOG_LEVEL or WARNING.
    """
    if verbose:
        level = logging.DEBUG
    else:
        name = os.environ.get("COPILOT_CONTEXT_LOG_LEVEL", "WARNING").upper()
        level = logging.getLevelName(name)
        if not isinstance(level, int):
            level = logging.WARNING

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    if not any(isinstance(h, ClickEchoHandler) for h in logger.handlers):
        handler = ClickEchoHandler()
        handler.setFormatter(logging.Formatter(DEFAULT_FORMAT))
        logger.addHandler(handler)
    return logger
