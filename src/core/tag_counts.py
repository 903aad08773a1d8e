"""Incrementally maintained tag frequency index."""

from __future__ import annotations

from collections import Counter
from typing import Iterable, Iterator, Mapping, TYPE_CHECKING

if TYPE_CHECKING:
    from core.state import TaggedImage


class TagCountIndex(Mapping[str, int]):
    """Map each tag to the number of images carrying it.

    The index is mutable through :meth:`increment` and :meth:`decrement` only.
    Callers holding a published snapshot must :meth:`copy` before mutating.
    """

    __slots__ = ("_counts",)

    def __init__(self, counts: Mapping[str, int] | None = None) -> None:
        self._counts: dict[str, int] = dict(counts or {})

    @classmethod
    def rebuild_from(cls, images: Iterable["TaggedImage"]) -> "TagCountIndex":
        """Count every tag once per image; used only when importing."""

        counter: Counter[str] = Counter()
        for image in images:
            counter.update(set(image.tags))
        return cls(counter)

    def increment(self, tag: str) -> None:
        self._counts[tag] = self._counts.get(tag, 0) + 1

    def decrement(self, tag: str) -> None:
        # callers only decrement tags they removed from an image
        self._counts[tag] = self._counts.get(tag, 0) - 1

    def copy(self) -> "TagCountIndex":
        return TagCountIndex(self._counts)

    def nonzero(self) -> dict[str, int]:
        """Return tags still carried by at least one image."""

        return {tag: count for tag, count in self._counts.items() if count > 0}

    def __getitem__(self, tag: str) -> int:
        return self._counts[tag]

    def __iter__(self) -> Iterator[str]:
        return iter(self._counts)

    def __len__(self) -> int:
        return len(self._counts)

    def __repr__(self) -> str:
        return f"TagCountIndex({self._counts!r})"


__all__ = ["TagCountIndex"]
