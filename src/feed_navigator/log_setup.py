"""Logging configuration driven by ``Config.log_level`` and ``Config.log_file``."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List

from .config import Config

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

# Handlers installed here carry these names so reconfiguring replaces them
CONSOLE_HANDLER_NAME = "feed_navigator.console"
FILE_HANDLER_NAME = "feed_navigator.file"

# urllib3 logs every connection at DEBUG; it drowns out the strategy log
CONNECTION_LOGGERS = ("urllib3", "httpcore")


def _own_handlers(root: logging.Logger) -> List[logging.Handler]:
    return [h for h in root.handlers if h.get_name() in (CONSOLE_HANDLER_NAME, FILE_HANDLER_NAME)]


def _make_handler(handler: logging.Handler, name: str, level: int) -> logging.Handler:
    handler.set_name(name)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    return handler


def configure_logging(cfg: Config) -> None:
    """Route feed_navigator logs to the console and, when configured, a file.

    Safe to call repeatedly: handlers from an earlier call are closed and
    replaced, so switching ``log_file`` never leaves a stale handler behind.
    Handlers added by the host application (pytest, uvicorn) are left alone
    apart from the root level.

    Args:
        cfg: Configuration providing ``log_level`` and ``log_file``

    Raises:
        OSError: If the log file cannot be created
    """
    level = logging.getLevelName(cfg.log_level)
    root = logging.getLogger()
    for handler in _own_handlers(root):
        root.removeHandler(handler)
        handler.close()

    root.setLevel(level)
    root.addHandler(_make_handler(logging.StreamHandler(), CONSOLE_HANDLER_NAME, level))
    if cfg.log_file:
        log_path = Path(cfg.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, mode="a", encoding="utf-8")
        root.addHandler(_make_handler(file_handler, FILE_HANDLER_NAME, level))
        logger.info("Logging to file: %s", log_path)

    connection_level = logging.WARNING if level <= logging.DEBUG else logging.NOTSET
    for name in CONNECTION_LOGGERS:
        logging.getLogger(name).setLevel(connection_level)
