"""Load and persist tagcurator settings as YAML."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Mapping

import yaml
from pydantic import ValidationError

from .paths import AppPaths
from .schema import AppSettings

logger = logging.getLogger(__name__)


def _validate_sections(data: Mapping[str, Any]) -> AppSettings:
    """Validate ``data``, dropping only the top-level sections that are invalid."""

    try:
        return AppSettings.from_mapping(data)
    except ValidationError as exc:
        errors = exc.errors()
    broken = {str(error["loc"][0]) for error in errors if error.get("loc")}
    logger.warning("Ignoring invalid settings sections: %s", ", ".join(sorted(broken)) or "<root>")
    kept = {key: value for key, value in data.items() if key not in broken}
    try:
        return AppSettings.from_mapping(kept)
    except ValidationError:
        return AppSettings()


class SettingsService:
    """Load, validate and persist :class:`AppSettings`.

    Missing, unreadable or malformed files never stop the application; the
    defaults are used for whatever could not be read.
    """

    def __init__(self, app_paths: AppPaths, *, filename: str = "config.yaml") -> None:
        self._app_paths = app_paths
        self._filename = filename

    @property
    def config_path(self) -> Path:
        path = self._app_paths.config_path(self._filename)
        path.parent.mkdir(parents=True, exist_ok=True)
        return path

    def load(self) -> AppSettings:
        path = self.config_path
        if not path.exists():
            logger.info("No settings file at %s; using defaults", path)
            return AppSettings()
        try:
            raw_data = yaml.safe_load(path.read_text(encoding="utf-8"))
        except (OSError, yaml.YAMLError) as exc:
            logger.warning("Unable to read settings from %s: %s", path, exc)
            return AppSettings()
        if not isinstance(raw_data, Mapping):
            logger.warning("Settings file %s does not hold a mapping; using defaults", path)
            return AppSettings()
        return _validate_sections(raw_data)

    def save(self, settings: AppSettings) -> Path:
        """Write ``settings`` through a temporary file and return the path."""

        path = self.config_path
        temp_path = path.with_suffix(path.suffix + ".tmp")
        try:
            temp_path.write_text(yaml.safe_dump(settings.to_mapping(), sort_keys=False), encoding="utf-8")
            temp_path.replace(path)
        except OSError as exc:
            logger.error("Failed to write settings to %s: %s", path, exc)
            temp_path.unlink(missing_ok=True)
            raise
        return path


__all__ = ["SettingsService"]
