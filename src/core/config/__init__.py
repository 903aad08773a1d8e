"""Configuration domain primitives for tagcurator."""

from __future__ import annotations

from pathlib import Path

from .paths import DATA_DIR_ENV, AppPaths
from .schema import AppSettings, TaggerSettings, TokenizerSettings
from .service import SettingsService


def load_settings(app_paths: AppPaths | None = None) -> AppSettings:
    """Load settings from the configuration file of ``app_paths``."""

    return SettingsService(app_paths or AppPaths()).load()


def save_settings(settings: AppSettings, app_paths: AppPaths | None = None) -> Path:
    """Persist ``settings`` to the configuration file of ``app_paths``."""

    return SettingsService(app_paths or AppPaths()).save(settings)


__all__ = [
    "AppPaths",
    "AppSettings",
    "DATA_DIR_ENV",
    "SettingsService",
    "TaggerSettings",
    "TokenizerSettings",
    "load_settings",
    "save_settings",
]
