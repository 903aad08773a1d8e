"""ViewModel bridging the tag editor widgets and the state store."""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import Callable, Iterable

from PyQt6.QtCore import QObject, pyqtSignal

from core.config.schema import AppSettings
from core.export import export_tags, write_tags_zip
from core.importer import collect_files, files_to_tagged_images
from core.intents import ImportFiles, Intent, SetAutoTagger, SetTokenizer
from core.state import AppState, AutoTaggerStatus, TokenizerState, TokenizerStatus, current_image
from core.store import Store, release_handles
from tagger.autotagger import AutoTagger
from tagger.base import ModelRuntime
from tagger.tokenizer import TokenCounter, load_token_counter, start_tokenizer_load

logger = logging.getLogger(__name__)


class EditorViewModel(QObject):
    """Own the :class:`Store` and the background services feeding it.

    ``state_changed`` is emitted for every new snapshot, possibly from a worker
    thread; Qt queues delivery to receivers living in the GUI thread.
    """

    state_changed = pyqtSignal(object)

    def __init__(
        self,
        parent: QObject | None = None,
        *,
        settings: AppSettings | None = None,
        runtime: ModelRuntime | None = None,
        store: Store | None = None,
        tokenizer_loader: Callable[..., TokenCounter] = load_token_counter,
    ) -> None:
        super().__init__(parent)
        self._settings = settings or AppSettings()
        self._store = store or Store()
        self._unsubscribe = self._store.subscribe(self.state_changed.emit)
        self._tokenizer_loader = tokenizer_loader
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="tgc-tokenizer")
        self._auto_tagger: AutoTagger | None = None
        if runtime is not None and self._settings.tagger.enabled:
            self._auto_tagger = AutoTagger(
                runtime,
                self._store.dispatch,
                threshold=self._settings.tagger.general_threshold,
            )

    @property
    def state(self) -> AppState:
        return self._store.state

    @property
    def settings(self) -> AppSettings:
        return self._settings

    def start(self) -> None:
        """Kick off model and tokenizer loading."""

        if self._auto_tagger is not None:
            self._auto_tagger.start()
        else:
            self.dispatch(SetAutoTagger(AutoTaggerStatus.failed("Auto tagging is disabled")))
        tokenizer = self._settings.tokenizer
        if tokenizer.enabled:
            start_tokenizer_load(
                self.dispatch,
                self._executor,
                tokenizer.repo_id,
                limit=tokenizer.token_limit,
                loader=self._tokenizer_loader,
            )
        else:
            self.dispatch(SetTokenizer(TokenizerStatus(state=TokenizerState.FAILED, error="disabled")))

    def dispatch(self, intent: Intent) -> AppState:
        return self._store.dispatch(intent)

    def import_paths(self, paths: Iterable[str | Path]) -> int:
        """Import images and companion tag files; returns the image count."""

        result = files_to_tagged_images(collect_files(paths), allowed_exts=self._settings.image_exts)
        self.dispatch(ImportFiles(images=result.images, tag_counts=result.tag_counts))
        return len(result.images)

    def predict(self) -> Future | None:
        """Request auto tags for the image under the cursor."""

        state = self._store.state
        image = current_image(state)
        if image is None or self._auto_tagger is None:
            return None
        return self._auto_tagger.predict(image, state.position)

    def export_to(self, directory: str | Path) -> Path:
        """Write ``tags.zip`` for the whole collection into ``directory``."""

        state = self._store.state
        return write_tags_zip(export_tags(state.all_files, state.ignored_tags), directory)

    def shutdown(self) -> None:
        self._unsubscribe()
        if self._auto_tagger is not None:
            self._auto_tagger.shutdown()
        self._executor.shutdown(wait=False, cancel_futures=True)
        release_handles(self._store.state.all_files)


__all__ = ["EditorViewModel"]
