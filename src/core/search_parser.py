"""Parse lightweight tag search expressions."""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Iterable, Sequence, TypeVar, TYPE_CHECKING

from core.tagset import parse_script_tags, split_positive_negative

if TYPE_CHECKING:
    from core.state import TaggedImage

_ImageT = TypeVar("_ImageT", bound="TaggedImage")


@dataclass(frozen=True)
class SearchPredicate:
    """Required and excluded glob patterns extracted from a user query."""

    positive: tuple[str, ...] = ()
    negative: tuple[str, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.positive and not self.negative


def parse_query(raw: str) -> SearchPredicate:
    """Parse ``raw`` into a :class:`SearchPredicate`.

    Tokens are separated by whitespace, a leading ``-`` negates a token and
    ``*`` inside a token matches any run of characters.
    """

    positive, negative = split_positive_negative(parse_script_tags(raw))
    return SearchPredicate(positive=positive, negative=negative)


@lru_cache(maxsize=512)
def compile_pattern(token: str) -> re.Pattern[str]:
    """Compile a whole-tag glob where only ``*`` is special."""

    body = ".*".join(re.escape(part) for part in token.split("*"))
    return re.compile(rf"^{body}$", re.DOTALL)


def matches_any(tags: Iterable[str], pattern: str | re.Pattern[str]) -> bool:
    """Return whether any tag in ``tags`` fully matches ``pattern``."""

    regex = compile_pattern(pattern) if isinstance(pattern, str) else pattern
    return any(regex.fullmatch(tag) for tag in tags)


def evaluate(tags: Sequence[str], predicate: SearchPredicate) -> bool:
    """Return whether an image carrying ``tags`` satisfies ``predicate``."""

    if predicate.is_empty:
        return True
    if not all(matches_any(tags, token) for token in predicate.positive):
        return False
    return not any(matches_any(tags, token) for token in predicate.negative)


def filter_images(images: Sequence[_ImageT], predicate: SearchPredicate) -> tuple[_ImageT, ...]:
    """Return the images matching ``predicate`` in their original order."""

    if predicate.is_empty:
        return tuple(images)
    return tuple(image for image in images if evaluate(image.tags, predicate))


__all__ = [
    "SearchPredicate",
    "compile_pattern",
    "evaluate",
    "filter_images",
    "matches_any",
    "parse_query",
]
