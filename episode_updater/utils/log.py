"""Console and log-file output."""

import logging
from pathlib import Path
from typing import Optional

import click

LOGGER_NAME = "episode_updater"
FILE_FORMAT = "[%(asctime)s] %(message)s"
FILE_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

LEVEL_COLORS = {
    logging.DEBUG: None,
    logging.INFO: "blue",
    logging.WARNING: "yellow",
    logging.ERROR: "red",
    logging.CRITICAL: "red",
}


class ClickEchoHandler(logging.Handler):
    """Write records to stderr through click, colored by level.

    A record can pick its own color with ``extra={"fg": "green"}``.
    """

    def emit(self, record: logging.LogRecord) -> None:
        try:
            message = self.format(record)
            color = getattr(record, "fg", None) or LEVEL_COLORS.get(record.levelno)
            click.echo(click.style(message, fg=color), err=True)
        except Exception:
            self.handleError(record)


def setup_logging(log_file: Optional[str | Path] = None) -> logging.Logger:
    """
    Configure the package logger with a console sink and an optional file sink.

    The console shows INFO and above; the log file receives every record,
    DEBUG included, with a timestamp and no colors.

    Args:
        log_file: File to append to, or None for console only

    Returns:
        The configured package logger
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG)
    logger.propagate = False

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console = ClickEchoHandler()
    console.setLevel(logging.INFO)
    console.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(console)

    if log_file is not None:
        file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=FILE_DATE_FORMAT))
        logger.addHandler(file_handler)

    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return the package logger or one of its children."""
    return logging.getLogger(f"{LOGGER_NAME}.{name}" if name else LOGGER_NAME)


def log_styled(logger: logging.Logger, fg: str, message: str, *args) -> None:
    """Log an INFO record shown in the given color on the console."""
    logger.info(message, *args, extra={"fg": fg})


def success(logger: logging.Logger, message: str, *args) -> None:
    log_styled(logger, "green", message, *args)
