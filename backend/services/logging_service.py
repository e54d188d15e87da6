"""
Logging Service
Rotating file log plus an in-memory ring buffer that backs GET /api/logs
"""
import logging
import os
from logging.handlers import RotatingFileHandler
from collections import deque
from typing import Deque, Dict, Any, List, Optional

from config.paths import logs_root


LOG_DIR = os.getenv("LOG_DIR", str(logs_root()))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
RING_BUFFER_SIZE = int(os.getenv("RING_BUFFER_SIZE", "2000"))
RING_BUFFER_MIN_LEVEL = os.getenv("RING_BUFFER_MIN_LEVEL", "INFO").upper()
# Level for the pipelines.mapping.dls loggers; DEBUG shows dataset and search details
DLS_LOG_LEVEL = os.getenv("DLS_LOG_LEVEL", "").upper()
LOG_FILE = os.path.join(LOG_DIR, "dls.log")


class RingBufferHandler(logging.Handler):
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
                "lineno": record.lineno,
            })
        except Exception:
            # Logging must never raise into the caller
            self.handleError(record)

    def get_recent(
        self, limit: int = 500, level: Optional[str] = None, name_prefix: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        records = list(self.buffer)
        if name_prefix:
            records = [r for r in records if r["name"].startswith(name_prefix)]
        if level:
            threshold = logging.getLevelName(level.upper())
            if isinstance(threshold, int):
                records = [r for r in records if logging.getLevelName(r["level"]) >= threshold]
        if limit <= 0:
            return records
        return records[-limit:]


_ring_handler: Optional[RingBufferHandler] = None
_initialized = False


def get_ring_handler() -> RingBufferHandler:
    global _ring_handler
    if _ring_handler is None:
        _ring_handler = RingBufferHandler(maxlen=RING_BUFFER_SIZE)
    return _ring_handler


def init_logging(log_to_file: bool = True):
    """Attach the file and ring-buffer handlers to the root logger (idempotent)"""
    global _initialized
    if _initialized:
        return

    fmt = logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")

    root = logging.getLogger()
    # Preserve any level previously set by the app; otherwise, apply env level
    if root.level in (logging.NOTSET, logging.WARNING):
        root.setLevel(getattr(logging, LOG_LEVEL, logging.INFO))

    if log_to_file:
        os.makedirs(LOG_DIR, exist_ok=True)
        file_handler = RotatingFileHandler(
            LOG_FILE,
            maxBytes=5_000_000,
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.setFormatter(fmt)
        root.addHandler(file_handler)

    # In-memory ring buffer for GET /api/logs
    ring = get_ring_handler()
    ring.setFormatter(fmt)
    ring.setLevel(getattr(logging, RING_BUFFER_MIN_LEVEL, logging.INFO))
    root.addHandler(ring)

    # Quiet very noisy loggers
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.error").setLevel(logging.INFO)
    if DLS_LOG_LEVEL:
        logging.getLogger("pipelines.mapping.dls").setLevel(getattr(logging, DLS_LOG_LEVEL, logging.INFO))
    _initialized = True
