"""Tagging abstractions used across tagcurator."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Callable, Protocol, Sequence, runtime_checkable

import numpy as np


class TagCategory(IntEnum):
    """Category codes used by WD14 ``selected_tags.csv`` files."""

    UNKNOWN = -1
    GENERAL = 0
    ARTIST = 1
    COPYRIGHT = 3
    CHARACTER = 4
    META = 5
    RATING = 9


@dataclass(frozen=True)
class TagMeta:
    """One vocabulary entry; the model's outputs are aligned with these."""

    name: str
    category: int
    count: int | None = None


ProgressCallback = Callable[[int], None]


@runtime_checkable
class ModelRuntime(Protocol):
    """External model collaborator consumed by :class:`tagger.autotagger.AutoTagger`."""

    def load_vocabulary(self) -> Sequence[TagMeta]:
        """Return the ordered tag vocabulary."""

    def load_weights(self, on_progress: ProgressCallback) -> Any:
        """Fetch weights, reporting 0-100 percentages, and return a model handle."""

    def input_size(self, model: Any) -> int:
        """Return the square spatial size the model expects."""

    def infer(self, model: Any, tensor: np.ndarray) -> np.ndarray:
        """Return probabilities aligned with the vocabulary order."""


__all__ = [
    "ModelRuntime",
    "ProgressCallback",
    "TagCategory",
    "TagMeta",
]
