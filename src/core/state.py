"""Immutable application state snapshots."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Protocol, TYPE_CHECKING, runtime_checkable

from core.tag_counts import TagCountIndex
from core.tagset import tag_difference

if TYPE_CHECKING:
    from tagger.tokenizer import TokenCounter

TAG_SCRIPT_SLOTS = 10


class Mode(Enum):
    GALLERY = "gallery"
    IMAGE_EDITOR = "image"


class AutoTaggerState(Enum):
    LOADING = "loading"
    READY = "ready"
    BUSY = "busy"
    FAILED = "failed"


class TokenizerState(Enum):
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


@runtime_checkable
class DisplayHandle(Protocol):
    """Revocable display resource owned by a single imported image."""

    def release(self) -> None:
        """Free the resource; further use is undefined."""


@dataclass(frozen=True)
class ImageRef:
    """Reference to an image file; the file itself is never copied."""

    name: str
    path: Path

    def read_bytes(self) -> bytes:
        return self.path.read_bytes()


@dataclass(frozen=True)
class TaggedImage:
    image: ImageRef
    tags: tuple[str, ...] = ()
    handle: Any = field(default=None, compare=False, repr=False)
    auto_tags: tuple[str, ...] | None = None

    @property
    def name(self) -> str:
        return self.image.name


@dataclass(frozen=True)
class AutoTaggerStatus:
    state: AutoTaggerState = AutoTaggerState.LOADING
    progress: int | None = 0
    error: str | None = None

    @classmethod
    def loading(cls, progress: int) -> "AutoTaggerStatus":
        return cls(state=AutoTaggerState.LOADING, progress=progress)

    @classmethod
    def ready(cls) -> "AutoTaggerStatus":
        return cls(state=AutoTaggerState.READY, progress=None)

    @classmethod
    def busy(cls) -> "AutoTaggerStatus":
        return cls(state=AutoTaggerState.BUSY, progress=None)

    @classmethod
    def failed(cls, error: str) -> "AutoTaggerStatus":
        return cls(state=AutoTaggerState.FAILED, progress=None, error=error)


@dataclass(frozen=True)
class TokenizerStatus:
    state: TokenizerState = TokenizerState.LOADING
    counter: "TokenCounter | None" = field(default=None, compare=False)
    error: str | None = None


def _empty_scripts() -> tuple[str, ...]:
    return ("",) * TAG_SCRIPT_SLOTS


@dataclass(frozen=True)
class AppState:
    """Single root of observable application state.

    ``filtered_files`` is derived from ``all_files`` by the last search and
    ``position`` indexes into it. ``tag_counts`` always reflects ``all_files``.
    """

    all_files: tuple[TaggedImage, ...] = ()
    filtered_files: tuple[TaggedImage, ...] = ()
    position: int = 0
    tag_counts: TagCountIndex = field(default_factory=TagCountIndex)
    ignored_tags: tuple[str, ...] = ()
    mode: Mode = Mode.GALLERY
    tag_scripts_enabled: bool = False
    tag_scripts: tuple[str, ...] = field(default_factory=_empty_scripts)
    search_query: str = ""
    tag_input: str = ""
    auto_tagger: AutoTaggerStatus = field(default_factory=AutoTaggerStatus)
    tokenizer: TokenizerStatus = field(default_factory=TokenizerStatus)


def initial_state() -> AppState:
    """Return the empty state the application starts with."""

    return AppState()


def current_image(state: AppState) -> TaggedImage | None:
    """Return the image under the cursor, if any."""

    if not state.filtered_files:
        return None
    return state.filtered_files[state.position]


def visible_tags(image: TaggedImage, ignored_tags: tuple[str, ...]) -> tuple[str, ...]:
    """Return the applied tags shown in the editor, sorted."""

    return tuple(sorted(tag_difference(image.tags, ignored_tags)))


def visible_auto_tags(image: TaggedImage, ignored_tags: tuple[str, ...]) -> tuple[str, ...]:
    """Return proposals not yet accepted and not ignored."""

    if image.auto_tags is None:
        return ()
    return tag_difference(image.auto_tags, (*ignored_tags, *image.tags))


__all__ = [
    "AppState",
    "AutoTaggerState",
    "AutoTaggerStatus",
    "DisplayHandle",
    "ImageRef",
    "Mode",
    "TAG_SCRIPT_SLOTS",
    "TaggedImage",
    "TokenizerState",
    "TokenizerStatus",
    "current_image",
    "initial_state",
    "visible_auto_tags",
    "visible_tags",
]
