"""
Logging Service
Log setup for applications embedding the resolver: a rotating file plus an
in-memory ring buffer that a UI can poll for recent resolution activity
"""
import logging
import os
from collections import deque
from logging.handlers import RotatingFileHandler
from typing import Any, Deque, Dict, List, Optional

from ..config import settings

LOG_FILE_NAME = "geoquestions.log"
NOISY_LOGGERS = ("urllib3", "pyproj", "fiona", "shapely")


class RingBufferHandler(logging.Handler):
    """Keeps the last `maxlen` records as plain dicts"""

    def __init__(self, maxlen: int = 2000):
        super().__init__()
        self.buffer: Deque[Dict[str, Any]] = deque(maxlen=maxlen)

    def emit(self, record: logging.LogRecord) -> None:
        try:
            self.buffer.append({
                "ts": record.created,
                "level": record.levelname,
                "name": record.name,
                "message": record.getMessage(),
            })
        except Exception:
            self.handleError(record)

    def get_recent(self, limit: int = 500, name_prefix: Optional[str] = None) -> List[Dict[str, Any]]:
        """
        Most recent records, oldest first

        Args:
            limit: Maximum number of records (<= 0 returns everything kept)
            name_prefix: Only records from loggers under this dotted name
        """
        records = list(self.buffer)
        if name_prefix:
            records = [
                r for r in records
                if r["name"] == name_prefix or r["name"].startswith(name_prefix + ".")
            ]
        if limit <= 0:
            return records
        return records[-limit:]

    def clear(self) -> None:
        self.buffer.clear()


_ring_handler: Optional[RingBufferHandler] = None


def get_ring_handler() -> RingBufferHandler:
    global _ring_handler
    if _ring_handler is None:
        _ring_handler = RingBufferHandler(maxlen=settings.RING_BUFFER_SIZE)
    return _ring_handler


def init_logging(write_file: bool = True) -> logging.Logger:
    """Attach the file and ring-buffer handlers to the root logger (idempotent)"""
    fmt = logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")

    root = logging.getLogger()
    if root.level in (logging.NOTSET, logging.WARNING):
        root.setLevel(getattr(logging, settings.LOG_LEVEL, logging.INFO))

    if write_file and not any(isinstance(h, RotatingFileHandler) for h in root.handlers):
        os.makedirs(settings.LOG_DIR, exist_ok=True)
        file_handler = RotatingFileHandler(
            os.path.join(settings.LOG_DIR, LOG_FILE_NAME),
            maxBytes=5_000_000,
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.setFormatter(fmt)
        root.addHandler(file_handler)

    ring = get_ring_handler()
    ring.setFormatter(fmt)
    ring.setLevel(getattr(logging, settings.RING_BUFFER_MIN_LEVEL, logging.INFO))
    if ring not in root.handlers:
        root.addHandler(ring)

    for noisy in NOISY_LOGGERS:
        logging.getLogger(noisy).setLevel(logging.WARNING)

    return root


def resolution_log(limit: int = 200) -> List[Dict[str, Any]]:
    """Recent records emitted by this package only"""
    return get_ring_handler().get_recent(limit, name_prefix="geoquestions")
