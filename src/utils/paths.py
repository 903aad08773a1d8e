"""Process-wide access to the active :class:`AppPaths`."""

from __future__ import annotations

from pathlib import Path

from core.config import AppPaths

_APP_PATHS = AppPaths()


def get_app_paths() -> AppPaths:
    return _APP_PATHS


def get_log_dir() -> Path:
    return _APP_PATHS.log_dir()


__all__ = ["get_app_paths", "get_log_dir"]
