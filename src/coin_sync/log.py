from __future__ import annotations

import contextvars
import logging
from typing import Optional

from coin_sync.config import get_env

CYCLE_CTX: contextvars.ContextVar[Optional[int]] = contextvars.ContextVar("cycle_id", default=None)

LOGGER_NAME = "coin_sync"
LOG_FORMAT = "[%(asctime)s] %(cycle_prefix)s %(levelname)s %(name)s: %(message)s"


class _CycleFormatter(logging.Formatter):
    """Log formatter that includes the sync cycle number from context variable."""

    def format(self, record: logging.LogRecord) -> str:
        cid = CYCLE_CTX.get()
        record.cycle_prefix = f"[cycle-{cid}]" if cid is not None else "[cycle-?]"  # type: ignore[attr-defined]
        return super().format(record)


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return the package logger (or a child of it), configuring it once."""
    root = logging.getLogger(LOGGER_NAME)
    if not root.handlers:
        level = getattr(logging, (get_env("LOG_LEVEL") or "INFO").upper(), logging.INFO)
        root.setLevel(level)
        stream = logging.StreamHandler()
        stream.setLevel(level)
        stream.setFormatter(_CycleFormatter(LOG_FORMAT))
        root.addHandler(stream)
        root.propagate = False
    if not name or name == LOGGER_NAME:
        return root
    return logging.getLogger(f"{LOGGER_NAME}.{name}")
