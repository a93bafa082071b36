"""
Logging Configuration Module
============================

Root logger setup for the command line.

Log records go to stderr through Rich so that stdout carries only the
report lines. A file handler can be added for long-running exporters;
it includes the thread name, which identifies the dispatcher unit.

Example
-------
>>> from storage_usage.core.logging import setup_logging
>>>
>>> setup_logging(level="DEBUG", log_file="storage-usage.log")
"""

from __future__ import annotations

import logging
from typing import Optional, Union

from rich.console import Console
from rich.logging import RichHandler

FILE_FORMAT = "%(asctime)s | %(levelname)-8s | %(threadName)s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Chatty at INFO; one line per HTTP request or retry
NOISY_LOGGERS = ("boto3", "botocore", "urllib3", "werkzeug")


def _resolve_level(level: Union[str, int]) -> int:
    if isinstance(level, int):
        return level
    return getattr(logging, level.upper(), logging.INFO)


def _console_handler(console: Console, rich_tracebacks: bool) -> logging.Handler:
    handler = RichHandler(
        console=console,
        show_path=False,
        rich_tracebacks=rich_tracebacks,
        markup=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    return handler


def _file_handler(log_file: str) -> logging.Handler:
    handler = logging.FileHandler(log_file, encoding="utf-8")
    handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=DATE_FORMAT))
    return handler


def setup_logging(
    level: Union[str, int] = "INFO",
    log_file: Optional[str] = None,
    rich_tracebacks: bool = True,
    console: Optional[Console] = None,
) -> None:
    """
    Configure the root logger.

    Parameters
    ----------
    level : str or int, default="INFO"
        Root level. Unknown names fall back to INFO.
    log_file : str, optional
        Also append records to this file.
    rich_tracebacks : bool, default=True
        Render exception tracebacks with Rich.
    console : Console, optional
        Target console. Defaults to a new stderr console.

    Notes
    -----
    Existing root handlers are removed first, so repeated calls do not
    duplicate output.
    """
    level = _resolve_level(level)

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()

    root.addHandler(_console_handler(console or Console(stderr=True), rich_tracebacks))
    if log_file:
        root.addHandler(_file_handler(log_file))

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    root.debug(f"Logging configured at {logging.getLevelName(level)} (file={log_file})")
