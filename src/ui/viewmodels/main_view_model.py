"""ViewModel coordinating application bootstrap and settings handling."""

from __future__ import annotations

import logging
from functools import partial

from PyQt6.QtCore import QObject

from core.config import AppPaths, AppSettings, load_settings, save_settings
from tagger.tokenizer import load_token_counter
from tagger.wd14_onnx import WD14Runtime
from utils.paths import get_app_paths

from .editor_view_model import EditorViewModel

logger = logging.getLogger(__name__)


class MainViewModel(QObject):
    """Prepare directories and settings, then build the editor view model."""

    def __init__(
        self,
        parent: QObject | None = None,
        *,
        app_paths: AppPaths | None = None,
        settings: AppSettings | None = None,
    ) -> None:
        super().__init__(parent)
        self._app_paths = app_paths or get_app_paths()
        self._app_paths.ensure_data_dirs()
        if settings is None:
            settings = load_settings(self._app_paths)
            if not self._app_paths.config_path().exists():
                # first run: leave an editable config.yaml behind
                try:
                    save_settings(settings, self._app_paths)
                except OSError:
                    logger.warning("Continuing without a settings file")
        self._current_settings = settings

    @property
    def current_settings(self) -> AppSettings:
        return self._current_settings

    def create_editor_view_model(self, parent: QObject | None = None) -> EditorViewModel:
        """Return an editor view model wired to the WD14 runtime and CLIP tokenizer."""

        tagger = self._current_settings.tagger
        model_dir = self._app_paths.model_dir(tagger.repo_id, tagger.revision)
        logger.info("Tagger model cache: %s", model_dir)
        return EditorViewModel(
            parent,
            settings=self._current_settings,
            runtime=WD14Runtime(tagger, model_dir),
            tokenizer_loader=partial(load_token_counter, cache_dir=self._app_paths.tokenizer_cache_dir()),
        )


__all__ = ["MainViewModel"]
