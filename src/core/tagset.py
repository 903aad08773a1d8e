"""Parsing and normalisation helpers for tag strings."""

from __future__ import annotations

import re
from typing import Iterable, Sequence

_WHITESPACE_RE = re.compile(r"\s+")


def _unique(tokens: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    unique: list[str] = []
    for token in tokens:
        if token in seen:
            continue
        seen.add(token)
        unique.append(token)
    return unique


def parse_comma_tags(raw: str) -> tuple[str, ...]:
    """Parse a companion tag-text blob such as ``"blue sky, cloud"``.

    Pieces are trimmed, empty pieces dropped and duplicates removed keeping the
    first occurrence. Internal spaces are stored as underscores.
    """

    pieces = (piece.strip() for piece in raw.split(","))
    tags = _unique(piece for piece in pieces if piece)
    return tuple(tag.replace(" ", "_") for tag in tags)


def parse_script_tags(raw: str) -> tuple[str, ...]:
    """Parse whitespace separated tokens typed into search or script inputs."""

    return tuple(_unique(token for token in raw.split() if token))


def split_positive_negative(tokens: Sequence[str]) -> tuple[tuple[str, ...], tuple[str, ...]]:
    """Split ``tokens`` into positive and ``-`` prefixed negative groups.

    A token may legally appear in both groups; such a predicate can never match.
    """

    positive: list[str] = []
    negative: list[str] = []
    for token in tokens:
        if token.startswith("-"):
            core = token[1:]
            # a lone "-" carries no tag
            if core:
                negative.append(core)
        else:
            positive.append(token)
    return tuple(positive), tuple(negative)


def normalize_tag_input(raw: str) -> str | None:
    """Return the stored form of free-text tag input or ``None`` when empty."""

    stripped = raw.strip()
    if not stripped:
        return None
    return _WHITESPACE_RE.sub("_", stripped)


def tag_difference(tags: Iterable[str], removed: Iterable[str]) -> tuple[str, ...]:
    """Return ``tags`` without any entry of ``removed``, preserving order."""

    excluded = set(removed)
    return tuple(tag for tag in tags if tag not in excluded)


def display_tag(tag: str) -> str:
    """Render a stored tag for humans."""

    return tag.replace("_", " ")


__all__ = [
    "display_tag",
    "normalize_tag_input",
    "parse_comma_tags",
    "parse_script_tags",
    "split_positive_negative",
    "tag_difference",
]
