"""
Logging setup for the shop.
Root handlers are installed once per process; every app created afterwards
(tests build many) just attaches to them.
"""
import logging
import logging.handlers
import os
from typing import Optional

from flask import Flask, current_app, has_app_context
from ..config import DEFAULT_LOG_LEVEL, DEFAULT_LOG_FORMAT, DEFAULT_LOG_DATEFMT


_configured = False


def _level_for(app: Flask) -> int:
    if app.debug:
        return logging.DEBUG
    level_name = str(app.config.get("LOG_LEVEL", DEFAULT_LOG_LEVEL)).upper()
    return getattr(logging, level_name, logging.INFO)


def setup_logging(app: Flask) -> None:
    """Configure root + app logger. Safe to call for every app instance."""
    global _configured
    level = _level_for(app)
    root = logging.getLogger()

    if not _configured:
        formatter = logging.Formatter(
            app.config.get("LOG_FORMAT", DEFAULT_LOG_FORMAT),
            datefmt=app.config.get("LOG_DATEFMT", DEFAULT_LOG_DATEFMT),
        )
        root.handlers.clear()

        console = logging.StreamHandler()
        console.setFormatter(formatter)
        console.addFilter(UTF8Filter())
        root.addHandler(console)

        log_file = app.config.get("LOG_FILE")
        if log_file:
            os.makedirs(os.path.dirname(log_file) or ".", exist_ok=True)
            try:
                file_handler = logging.handlers.RotatingFileHandler(
                    log_file,
                    maxBytes=10 * 1024 * 1024,   # 10 MB
                    backupCount=7,
                    encoding="utf-8",
                )
                file_handler.setFormatter(formatter)
                root.addHandler(file_handler)
            except OSError as exc:
                root.warning("Failed to initialize file logging (%s): %s", log_file, exc)
        _configured = True

    root.setLevel(level)
    for handler in root.handlers:
        handler.setLevel(level)

    app.logger.propagate = False
    app.logger.handlers = root.handlers[:]
    app.logger.setLevel(level)
    app.logger.debug("Logging initialized, level=%s", logging.getLevelName(level))


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Preferred way: log = get_logger(__name__)
    Children of the app logger when called inside an app context.
    """
    if has_app_context():
        base = current_app.logger
    else:
        base = logging.getLogger("plantshop")

    if not name or name in ("__main__", "plantshop"):
        return base

    return base.getChild(name.removeprefix("plantshop."))


class UTF8Filter(logging.Filter):
    """Prevent console crashes on undecoded bytes in log messages."""
    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, bytes):
            record.msg = record.msg.decode("utf-8", errors="replace")
        return True
