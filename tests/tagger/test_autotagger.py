"""Tests for the auto-tagging pipeline state machine."""

from __future__ import annotations

from concurrent.futures import Executor, Future
from pathlib import Path

import numpy as np
import pytest

from core.intents import SetAutoTagger, SetAutoTags
from core.state import AutoTaggerState, ImageRef, TaggedImage
from tagger.autotagger import AutoTagger
from tagger.base import TagCategory, TagMeta


class ManualExecutor(Executor):
    """Queue submitted work until the test runs it explicitly."""

    def __init__(self) -> None:
        self.pending: list[tuple[Future, object, tuple, dict]] = []

    def submit(self, fn, /, *args, **kwargs) -> Future:  # type: ignore[override]
        future: Future = Future()
        self.pending.append((future, fn, args, kwargs))
        return future

    def run_all(self) -> None:
        while self.pending:
            future, fn, args, kwargs = self.pending.pop(0)
            try:
                future.set_result(fn(*args, **kwargs))
            except BaseException as exc:  # pragma: no cover - surfaced through the future
                future.set_exception(exc)


class FakeRuntime:
    def __init__(self, probabilities=(0.9, 0.99, 0.2), *, load_error: Exception | None = None) -> None:
        self.probabilities = np.asarray(probabilities, dtype=np.float32)
        self.load_error = load_error
        self.vocabulary_calls = 0
        self.infer_error: Exception | None = None
        self.tensors: list[np.ndarray] = []

    def load_vocabulary(self) -> list[TagMeta]:
        self.vocabulary_calls += 1
        return [
            TagMeta(name="sky", category=TagCategory.GENERAL),
            TagMeta(name="rating:safe", category=TagCategory.RATING),
            TagMeta(name="leaf", category=TagCategory.GENERAL),
        ]

    def load_weights(self, on_progress) -> str:
        if self.load_error is not None:
            raise self.load_error
        on_progress(40)
        on_progress(100)
        return "model"

    def input_size(self, model: str) -> int:
        return 448

    def infer(self, model: str, tensor: np.ndarray) -> np.ndarray:
        if self.infer_error is not None:
            raise self.infer_error
        self.tensors.append(tensor)
        return self.probabilities


@pytest.fixture
def image(tmp_path: Path) -> TaggedImage:
    path = tmp_path / "a.png"
    path.write_bytes(b"image-bytes")
    return TaggedImage(image=ImageRef(name="a.png", path=path), tags=("sky",))


def _make(runtime: FakeRuntime) -> tuple[AutoTagger, ManualExecutor, list]:
    executor = ManualExecutor()
    dispatched: list = []

    def fake_preprocess(data: bytes, size: int) -> np.ndarray:
        assert data == b"image-bytes"
        return np.zeros((1, size, size, 3), dtype=np.float32)

    tagger = AutoTagger(runtime, dispatched.append, preprocess=fake_preprocess, executor=executor)
    return tagger, executor, dispatched


def _statuses(dispatched: list) -> list:
    return [intent.status for intent in dispatched if isinstance(intent, SetAutoTagger)]


def test_load_reports_progress_then_ready() -> None:
    tagger, executor, dispatched = _make(FakeRuntime())

    future = tagger.start()
    assert tagger.start() is future
    assert tagger.state is AutoTaggerState.LOADING
    executor.run_all()

    statuses = _statuses(dispatched)
    assert [status.progress for status in statuses[:-1]] == [0, 40, 100]
    assert all(status.state is AutoTaggerState.LOADING for status in statuses[:-1])
    assert statuses[-1].state is AutoTaggerState.READY
    assert tagger.state is AutoTaggerState.READY


def test_predict_rejected_while_loading(image: TaggedImage) -> None:
    tagger, executor, dispatched = _make(FakeRuntime())
    tagger.start()

    assert tagger.predict(image, 0) is None
    assert not any(isinstance(intent, SetAutoTags) for intent in dispatched)


def test_predict_dispatches_filtered_tags(image: TaggedImage) -> None:
    runtime = FakeRuntime()
    tagger, executor, dispatched = _make(runtime)
    tagger.start()
    executor.run_all()

    future = tagger.predict(image, 3)
    assert future is not None
    assert tagger.state is AutoTaggerState.BUSY
    executor.run_all()

    assert future.result() == ("sky",)
    results = [intent for intent in dispatched if isinstance(intent, SetAutoTags)]
    assert results == [SetAutoTags(image=image.image, auto_tags=("sky",))]
    assert runtime.tensors[0].shape == (1, 448, 448, 3)
    assert tagger.state is AutoTaggerState.READY


def test_second_predict_rejected_until_first_finishes(image: TaggedImage) -> None:
    tagger, executor, dispatched = _make(FakeRuntime())
    tagger.start()
    executor.run_all()

    first = tagger.predict(image, 0)
    second = tagger.predict(image, 0)

    assert first is not None
    assert second is None
    assert _statuses(dispatched)[-1].state is AutoTaggerState.BUSY
    executor.run_all()
    assert tagger.predict(image, 0) is not None


def test_inference_error_returns_to_ready(image: TaggedImage) -> None:
    runtime = FakeRuntime()
    tagger, executor, dispatched = _make(runtime)
    tagger.start()
    executor.run_all()
    runtime.infer_error = RuntimeError("bad tensor")

    future = tagger.predict(image, 0)
    executor.run_all()

    assert future.result() is None
    assert tagger.state is AutoTaggerState.READY
    assert not any(isinstance(intent, SetAutoTags) for intent in dispatched)


def test_load_failure_is_terminal(image: TaggedImage) -> None:
    runtime = FakeRuntime(load_error=OSError("network down"))
    tagger, executor, dispatched = _make(runtime)

    tagger.start()
    executor.run_all()
    tagger.start()
    executor.run_all()

    failures = [status for status in _statuses(dispatched) if status.state is AutoTaggerState.FAILED]
    assert len(failures) == 1
    assert failures[0].error == "network down"
    assert runtime.vocabulary_calls == 1
    assert tagger.predict(image, 0) is None
    assert tagger.state is AutoTaggerState.FAILED
