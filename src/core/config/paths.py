"""Filesystem layout for tagcurator settings, model caches and logs."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from types import MappingProxyType
from typing import Callable, Mapping

from platformdirs import PlatformDirs

logger = logging.getLogger(__name__)

DATA_DIR_ENV = "TGC_DATA_DIR"


class AppPaths:
    """Resolve application directories with support for dependency injection.

    ``TGC_DATA_DIR`` relocates everything, configuration included, which keeps
    portable installs and tests self-contained.
    """

    def __init__(
        self,
        env: Mapping[str, str] | None = None,
        *,
        app_name: str = "tagcurator",
        platform_dirs_factory: Callable[[str], PlatformDirs] | None = None,
    ) -> None:
        self._env = MappingProxyType(dict(env) if env is not None else dict(os.environ))
        self._app_name = app_name
        self._platform_dirs_factory = platform_dirs_factory or self._default_platform_dirs

    @staticmethod
    def _default_platform_dirs(app_name: str) -> PlatformDirs:
        return PlatformDirs(appname=app_name, appauthor=False, roaming=True)

    def _override(self) -> Path | None:
        value = self._env.get(DATA_DIR_ENV)
        return Path(value).expanduser() if value else None

    def data_dir(self) -> Path:
        override = self._override()
        if override is not None:
            return override
        return Path(self._platform_dirs_factory(self._app_name).user_data_dir)

    def config_path(self, filename: str = "config.yaml") -> Path:
        """Return the settings file, stored beside the data when overridden."""

        override = self._override()
        if override is not None:
            return override / filename
        return Path(self._platform_dirs_factory(self._app_name).user_config_dir) / filename

    def models_dir(self) -> Path:
        """Return the root of downloaded tagger models."""

        return self.data_dir() / "cache" / "models"

    def model_dir(self, repo_id: str, revision: str) -> Path:
        """Return the cache folder for one model repository revision."""

        return self.models_dir() / repo_id.replace("/", "--") / revision

    def tokenizer_cache_dir(self) -> Path:
        """Return the folder handed to ``transformers`` as its download cache."""

        return self.data_dir() / "cache" / "tokenizers"

    def log_dir(self) -> Path:
        return self.data_dir() / "logs"

    def ensure_data_dirs(self) -> None:
        """Create the model, tokenizer and log folders."""

        for directory in (self.models_dir(), self.tokenizer_cache_dir(), self.log_dir()):
            directory.mkdir(parents=True, exist_ok=True)
        logger.debug("Data directories ready under %s", self.data_dir())


__all__ = ["AppPaths", "DATA_DIR_ENV"]
