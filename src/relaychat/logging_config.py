"""Logging setup for relaychat entry points."""

from __future__ import annotations

import logging
import sys


def _resolve_level(level: str | int) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.upper())
    if isinstance(resolved, int):
        return resolved
    raise ValueError(f"Unsupported log level: {level}")


def configure_logging(level: str | int = "INFO") -> logging.Logger:
    """Install a single stdout handler on the root logger.

    Uvicorn's loggers are aligned to the same level.
    """
    resolved = _resolve_level(level)
    root = logging.getLogger()
    root.setLevel(resolved)
    root.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
    root.addHandler(handler)

    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        logging.getLogger(name).setLevel(resolved)
    return root
