from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional

from core.logging_setup import setup_logging as _setup_structured_logging

_CONFIGURED = False


def setup_logging(settings: Optional[Any] = None, *, force: bool = False) -> None:
    """Configure structured logging using the settings debug flag."""

    global _CONFIGURED
    if _CONFIGURED and not force:
        return
    debug = bool(settings.debug()) if settings is not None and hasattr(settings, "debug") else False
    log_file = settings.get_string("LOG_FILE") if settings is not None and hasattr(settings, "get_string") else None
    _setup_structured_logging(debug=debug, log_file=log_file)
    _CONFIGURED = True


def get_logger(name: str) -> logging.Logger:
    """Return a logger under the ``sqlforge`` hierarchy."""

    if not name.startswith("sqlforge"):
        name = f"sqlforge.{name}"
    logger = logging.getLogger(name)
    logger.propagate = True
    return logger


def log_event(
    logger: logging.Logger,
    channel: str,
    event: str,
    payload: Dict[str, Any] | None = None,
    *,
    level: int = logging.INFO,
    exc_info: bool = False,
) -> None:
    """Log a structured event with a consistent JSON payload."""

    data = payload or {}
    try:
        message = json.dumps({"event": event, **data}, ensure_ascii=False, default=str)
    except (TypeError, ValueError):
        message = f"{event}: {data!r}"
    logger.log(level, message, extra={"channel": channel}, exc_info=exc_info)


__all__ = ["setup_logging", "get_logger", "log_event"]
