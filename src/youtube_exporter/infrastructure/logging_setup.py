"""Logging configuration from the validated settings."""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

from youtube_exporter.infrastructure.config.models import LoggingConfig

# Chatty third-party loggers kept at WARNING unless running verbose
_NOISY_LOGGERS = ("googleapiclient.discovery_cache", "apscheduler", "sqlalchemy.engine")


def configure_logging(config: LoggingConfig, verbose: bool = False, console: Console | None = None) -> None:
    """
    Configure the root logger with a rich console handler and an optional rotating file.

    Args:
        config: Validated logging settings
        verbose: Force DEBUG level on the console
        console: Console the handler writes to (stderr by default)
    """
    level = logging.DEBUG if verbose else getattr(logging, config.level)
    root = logging.getLogger()
    root.setLevel(min(level, getattr(logging, config.level)))

    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    console_handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=verbose,
        rich_tracebacks=True,
        markup=False,
    )
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))
    root.addHandler(console_handler)

    if config.file_path:
        log_path = Path(config.file_path)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            filename=str(log_path),
            maxBytes=config.max_file_size,
            backupCount=config.backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(getattr(logging, config.level))
        file_handler.setFormatter(logging.Formatter(config.format))
        root.addHandler(file_handler)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.DEBUG if verbose else logging.WARNING)
