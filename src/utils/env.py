"""Helpers for interrogating runtime environment flags."""

from __future__ import annotations

import logging
import os


def is_headless() -> bool:
    """Return True when Qt should render offscreen."""
    value = os.environ.get("TGC_HEADLESS", "")
    return value.lower() not in {"", "0", "false", "no"}


def resolve_log_level(value: str | None) -> int:
    """Translate a level name such as ``"debug"`` into a logging level."""

    if not value:
        return logging.INFO
    level = logging.getLevelName(value.strip().upper())
    if isinstance(level, int):
        return level
    return logging.INFO


__all__ = ["is_headless", "resolve_log_level"]
