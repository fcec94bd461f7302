from __future__ import annotations

import logging
import sys
from collections import deque
from datetime import datetime, timezone
from threading import Lock
from typing import Any

LOGGER_NAME = "fipc"
MAX_EVENTS = 500

logger = logging.getLogger(LOGGER_NAME)

_events: deque[dict[str, Any]] = deque(maxlen=MAX_EVENTS)
_events_lock = Lock()


def utc_now() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def configure_logging(level: str = "INFO") -> None:
    """Install one stream handler on the ``fipc`` logger."""
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        logging.Formatter('ts=%(asctime)s level=%(levelname)s logger=%(name)s msg="%(message)s"')
    )
    logger.handlers = [handler]
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    logger.propagate = False


def log_event(level: str, message: str, node: str | None = None, floating_ip: str | None = None) -> None:
    """Log a controller event and keep it in the in-memory event buffer."""
    level = level.upper()
    logger.log(getattr(logging, level, logging.INFO), message)
    with _events_lock:
        _events.append(
            {
                "ts": utc_now(),
                "level": level,
                "node": node,
                "floating_ip": floating_ip,
                "message": message,
            }
        )


def latest_events(limit: int = 100) -> list[dict[str, Any]]:
    with _events_lock:
        items = list(_events)
    items.reverse()
    return items[: max(0, limit)]


def clear_events() -> None:
    with _events_lock:
        _events.clear()
