"""Intents accepted by :func:`core.reducer.update`."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from core.state import AutoTaggerStatus, ImageRef, Mode, TaggedImage, TokenizerStatus
from core.tag_counts import TagCountIndex


@dataclass(frozen=True)
class ImportFiles:
    images: tuple[TaggedImage, ...]
    tag_counts: TagCountIndex


@dataclass(frozen=True)
class Next:
    pass


@dataclass(frozen=True)
class Prev:
    pass


@dataclass(frozen=True)
class AddTag:
    raw: str


@dataclass(frozen=True)
class DeleteTag:
    tag: str


@dataclass(frozen=True)
class ApplyTagScript:
    raw: str


@dataclass(frozen=True)
class ApplyTagScriptSlot:
    slot: int


@dataclass(frozen=True)
class UpdateTagScript:
    slot: int
    text: str


@dataclass(frozen=True)
class AddIgnoredTag:
    raw: str


@dataclass(frozen=True)
class DeleteIgnoredTag:
    tag: str


@dataclass(frozen=True)
class Search:
    query: str


@dataclass(frozen=True)
class SetMode:
    mode: Mode


@dataclass(frozen=True)
class SwitchToImage:
    position: int


@dataclass(frozen=True)
class ToggleTagScripts:
    pass


@dataclass(frozen=True)
class UpdateTagInput:
    text: str


@dataclass(frozen=True)
class UpdateSearchInput:
    text: str


@dataclass(frozen=True)
class SetAutoTagger:
    status: AutoTaggerStatus


@dataclass(frozen=True)
class SetAutoTags:
    """Result of a prediction, addressed to the image it was computed for."""

    image: ImageRef
    auto_tags: tuple[str, ...]


@dataclass(frozen=True)
class SetTokenizer:
    status: TokenizerStatus


Intent = Union[
    ImportFiles,
    Next,
    Prev,
    AddTag,
    DeleteTag,
    ApplyTagScript,
    ApplyTagScriptSlot,
    UpdateTagScript,
    AddIgnoredTag,
    DeleteIgnoredTag,
    Search,
    SetMode,
    SwitchToImage,
    ToggleTagScripts,
    UpdateTagInput,
    UpdateSearchInput,
    SetAutoTagger,
    SetAutoTags,
    SetTokenizer,
]


__all__ = [
    "AddIgnoredTag",
    "AddTag",
    "ApplyTagScript",
    "ApplyTagScriptSlot",
    "DeleteIgnoredTag",
    "DeleteTag",
    "ImportFiles",
    "Intent",
    "Next",
    "Prev",
    "Search",
    "SetAutoTagger",
    "SetAutoTags",
    "SetMode",
    "SetTokenizer",
    "SwitchToImage",
    "ToggleTagScripts",
    "UpdateSearchInput",
    "UpdateTagInput",
    "UpdateTagScript",
]
