"""Utility helpers for acrofill."""

from __future__ import annotations

import logging
import os
from typing import Any, Iterable, List, Optional

from . import config


def get_logger(name: str) -> logging.Logger:
    """Return a module logger whose level follows ``ACROFILL_LOG``.

    A stream handler is attached to the named logger the first time it is
    requested. Records still propagate, so a host that also configures the
    root logger sees them twice unless it sets ``propagate = False`` on the
    ``acrofill`` logger.
    """

    logger = logging.getLogger(name)
    level_name = os.getenv(config.LOG_ENV_VAR, config.DEFAULT_LOG_LEVEL).upper()
    level = getattr(logging, level_name, None)
    if not isinstance(level, int):
        level = logging.INFO
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(config.LOG_FORMAT))
        logger.addHandler(handler)
    logger.setLevel(level)
    return logger


def normalize_field_name(name: Optional[str]) -> Optional[str]:
    # Names are join keys for caller mappings, so they are never rewritten.
    if isinstance(name, str) and name.strip():
        return name
    return None


def unique_in_order(values: Iterable[Any]) -> List[Any]:
    seen = set()
    result = []
    for value in values:
        if value in seen:
            continue
        seen.add(value)
        result.append(value)
    return result


def format_options(options: Iterable[str]) -> str:
    return "[" + ", ".join(options) + "]"


__all__ = ["get_logger", "normalize_field_name", "unique_in_order", "format_options"]
