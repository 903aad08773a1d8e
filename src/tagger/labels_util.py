"""Helpers for working with WD14 label CSV files."""

from __future__ import annotations

import csv
import io
from pathlib import Path
from typing import Iterable, Iterator

from .base import TagCategory, TagMeta

_CATEGORY_LOOKUP: dict[str, int] = {
    "general": int(TagCategory.GENERAL),
    "artist": int(TagCategory.ARTIST),
    "copyright": int(TagCategory.COPYRIGHT),
    "character": int(TagCategory.CHARACTER),
    "meta": int(TagCategory.META),
    "rating": int(TagCategory.RATING),
}


def _looks_like_int(value: str) -> bool:
    try:
        int(value)
    except ValueError:
        return False
    return True


def parse_category(value: str | None) -> int:
    """Map a category name or code to its number; blank or unknown names are ``UNKNOWN``."""

    normalised = (value or "").strip().lower()
    if normalised in _CATEGORY_LOOKUP:
        return _CATEGORY_LOOKUP[normalised]
    if _looks_like_int(normalised):
        return int(normalised)
    return int(TagCategory.UNKNOWN)


def _parse_count(value: str | None) -> int:
    if not value:
        return 0
    stripped = value.strip()
    if not stripped:
        return 0
    try:
        return int(float(stripped))
    except ValueError:
        return 0


def _iter_csv_rows(lines: Iterable[str]) -> Iterator[list[str]]:
    for row in csv.reader(lines):
        if not row:
            continue
        cells = [cell.strip() for cell in row]
        if not any(cells):
            continue
        if cells[0].startswith("#"):
            continue
        if cells[0].lower() in {"tag_id", "tagid", "id", "name"}:
            continue
        # "tag" is itself a real tag name, so only skip a header by its second column
        if len(cells) > 1 and cells[1].lower() == "name":
            continue
        yield cells


def _parse_row(cells: list[str]) -> TagMeta | None:
    name = ""
    category = int(TagCategory.GENERAL)
    count = 0
    cell_count = len(cells)
    if cell_count == 1:
        name = cells[0]
    elif cell_count == 2:
        first, second = cells
        if _looks_like_int(first):
            name = second
        else:
            name = first
            category = parse_category(second)
    elif _looks_like_int(cells[0]):
        padded = (cells + ["", "", "", ""])[:4]
        name = padded[1]
        category = parse_category(padded[2])
        count = _parse_count(padded[3])
    else:
        name = cells[0]
        category = parse_category(cells[1])
        count = _parse_count(cells[2])
    cleaned = name.strip()
    if not cleaned:
        return None
    return TagMeta(name=cleaned, category=category, count=count)


def parse_selected_tags(text: str) -> list[TagMeta]:
    """Parse the contents of a WD14 ``selected_tags.csv`` file.

    The file may contain one, two or four columns
    (``tag_id,name,category,count``). Headers and ``#`` comments are ignored,
    and row order is preserved since model outputs are aligned with it.
    """

    labels: list[TagMeta] = []
    for cells in _iter_csv_rows(io.StringIO(text)):
        tag = _parse_row(cells)
        if tag is not None:
            labels.append(tag)
    return labels


def load_selected_tags(csv_path: str | Path) -> list[TagMeta]:
    """Read and parse a ``selected_tags.csv`` file from disk."""

    return parse_selected_tags(Path(csv_path).read_text(encoding="utf-8-sig"))


__all__ = ["load_selected_tags", "parse_category", "parse_selected_tags"]
