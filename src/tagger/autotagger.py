"""Staged auto-tagging: model loading, single-flight inference, post-filtering."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, Sequence

import numpy as np

from core.intents import Intent, SetAutoTagger, SetAutoTags
from core.state import AutoTaggerState, AutoTaggerStatus, ImageRef, TaggedImage
from tagger.base import ModelRuntime, TagCategory, TagMeta
from tagger.labels_util import parse_category
from tagger.preprocess import preprocess_bytes

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD = 0.35

Dispatch = Callable[[Intent], Any]
Preprocessor = Callable[[bytes, int], np.ndarray]


def _category_code(value: int | str) -> int:
    if isinstance(value, str):
        return parse_category(value)
    return int(value)


def post_filter(
    vocabulary: Sequence[TagMeta],
    probabilities: Sequence[float] | np.ndarray,
    *,
    threshold: float = DEFAULT_THRESHOLD,
    category: int = TagCategory.GENERAL,
) -> tuple[str, ...]:
    """Keep ``category`` tags scoring at least ``threshold``, sorted by name."""

    scores = np.asarray(probabilities, dtype=np.float32).reshape(-1)
    if scores.shape[0] != len(vocabulary):
        raise ValueError(f"Model output dim {scores.shape[0]} != labels {len(vocabulary)}")
    wanted = int(category)
    kept = [
        entry.name
        for entry, score in zip(vocabulary, scores)
        if score >= threshold and _category_code(entry.category) == wanted
    ]
    return tuple(sorted(kept))


class AutoTagger:
    """Orchestrate the model lifecycle and run at most one inference at a time.

    The tagger moves ``LOADING -> READY`` once (or ``LOADING -> FAILED``, which
    is terminal) and then ``READY -> BUSY -> READY`` per prediction. Every
    transition is published through ``dispatch`` as a :class:`SetAutoTagger`
    intent; results arrive as :class:`SetAutoTags`.
    """

    def __init__(
        self,
        runtime: ModelRuntime,
        dispatch: Dispatch,
        *,
        threshold: float = DEFAULT_THRESHOLD,
        preprocess: Preprocessor = preprocess_bytes,
        executor: ThreadPoolExecutor | None = None,
    ) -> None:
        self._runtime = runtime
        self._dispatch = dispatch
        self._threshold = float(threshold)
        self._preprocess = preprocess
        self._executor = executor or ThreadPoolExecutor(max_workers=1, thread_name_prefix="tgc-tagger")
        self._lock = threading.Lock()
        self._state = AutoTaggerState.LOADING
        self._load_future: Future | None = None
        self._vocabulary: Sequence[TagMeta] = ()
        self._model: Any = None
        self._input_size = 0

    @property
    def state(self) -> AutoTaggerState:
        return self._state

    def start(self) -> Future:
        """Begin loading; repeated calls return the same future."""

        with self._lock:
            if self._load_future is not None:
                return self._load_future
            self._load_future = self._executor.submit(self._load)
            return self._load_future

    def predict(self, image: TaggedImage, position: int) -> Future | None:
        """Queue inference for ``image``; returns ``None`` unless the tagger is ready."""

        with self._lock:
            if self._state is not AutoTaggerState.READY:
                logger.info("Auto tagger is %s; ignoring predict for %s", self._state.value, image.name)
                return None
            self._state = AutoTaggerState.BUSY
        self._dispatch(SetAutoTagger(AutoTaggerStatus.busy()))
        return self._executor.submit(self._predict, image.image, position)

    def shutdown(self, wait: bool = False) -> None:
        self._executor.shutdown(wait=wait, cancel_futures=True)

    def _report_progress(self, percent: int) -> None:
        self._dispatch(SetAutoTagger(AutoTaggerStatus.loading(int(percent))))

    def _load(self) -> None:
        self._report_progress(0)
        try:
            vocabulary = self._runtime.load_vocabulary()
            model = self._runtime.load_weights(self._report_progress)
            input_size = int(self._runtime.input_size(model))
        except Exception as exc:
            logger.exception("Auto tagger failed to load; the feature stays unavailable")
            with self._lock:
                self._state = AutoTaggerState.FAILED
            self._dispatch(SetAutoTagger(AutoTaggerStatus.failed(str(exc) or type(exc).__name__)))
            return
        with self._lock:
            self._vocabulary = tuple(vocabulary)
            self._model = model
            self._input_size = input_size
            self._state = AutoTaggerState.READY
        logger.info("Auto tagger ready (%d labels, input %dpx)", len(self._vocabulary), input_size)
        self._dispatch(SetAutoTagger(AutoTaggerStatus.ready()))

    def _predict(self, ref: ImageRef, position: int) -> tuple[str, ...] | None:
        try:
            tensor = self._preprocess(ref.read_bytes(), self._input_size)
            probabilities = self._runtime.infer(self._model, tensor)
            tags = post_filter(self._vocabulary, probabilities, threshold=self._threshold)
            logger.info("Predicted %d tags for %s (position %d)", len(tags), ref.name, position)
            self._dispatch(SetAutoTags(image=ref, auto_tags=tags))
            return tags
        except Exception:
            logger.exception("Auto tagging failed for %s", ref.name)
            return None
        finally:
            with self._lock:
                self._state = AutoTaggerState.READY
            self._dispatch(SetAutoTagger(AutoTaggerStatus.ready()))


__all__ = ["AutoTagger", "DEFAULT_THRESHOLD", "post_filter"]
