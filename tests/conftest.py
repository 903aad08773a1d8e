"""Shared pytest fixtures."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Callable, Iterable

import pytest

from core.intents import ImportFiles
from core.reducer import update
from core.state import AppState, ImageRef, TaggedImage, initial_state
from core.tag_counts import TagCountIndex

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")


class FakeHandle:
    """Display handle recording how often it was released."""

    def __init__(self) -> None:
        self.release_calls = 0

    @property
    def released(self) -> bool:
        return self.release_calls > 0

    def release(self) -> None:
        self.release_calls += 1


ImageFactory = Callable[..., TaggedImage]


@pytest.fixture
def make_image() -> ImageFactory:
    def _make(name: str, tags: Iterable[str] = (), *, root: Path = Path("/images"), handle=None) -> TaggedImage:
        return TaggedImage(
            image=ImageRef(name=name, path=root / name),
            tags=tuple(tags),
            handle=handle if handle is not None else FakeHandle(),
        )

    return _make


@pytest.fixture
def load_state() -> Callable[..., AppState]:
    """Return a helper importing images into a fresh state."""

    def _load(*images: TaggedImage, state: AppState | None = None) -> AppState:
        intent = ImportFiles(images=tuple(images), tag_counts=TagCountIndex.rebuild_from(images))
        return update(intent, state if state is not None else initial_state())

    return _load
