"""Export edited tags as companion text files packed into ``tags.zip``."""

from __future__ import annotations

import logging
import zipfile
from collections import Counter
from pathlib import Path
from typing import Iterable, Mapping, Sequence

from core.state import TaggedImage
from core.tagset import display_tag, tag_difference

logger = logging.getLogger(__name__)

ARCHIVE_NAME = "tags.zip"


def render_tags(tags: Iterable[str], ignored_tags: Iterable[str] = ()) -> str:
    """Return sorted tags minus ``ignored_tags`` as ``"a b, c"`` text."""

    kept = tag_difference(sorted(tags), ignored_tags)
    return ", ".join(display_tag(tag) for tag in kept)


def _entry_names(images: Sequence[TaggedImage]) -> list[str]:
    """Companion names for ``images``; repeated file names keep their folder path."""

    repeated = {name for name, seen in Counter(image.name for image in images).items() if seen > 1}
    names: list[str] = []
    for image in images:
        if image.name in repeated:
            path = image.image.path
            qualified = path.relative_to(path.anchor).as_posix() if path.anchor else path.as_posix()
            names.append(f"{qualified}.txt")
        else:
            names.append(f"{image.name}.txt")
    return names


def export_tags(images: Sequence[TaggedImage], ignored_tags: Iterable[str] = ()) -> dict[str, str]:
    """Map ``"<filename>.txt"`` to the exported tag text for every image.

    Images sharing a file name (imported from different folders) are stored
    under their full folder path instead so no entry overwrites another.
    """

    ignored = tuple(ignored_tags)
    return {name: render_tags(image.tags, ignored) for name, image in zip(_entry_names(images), images)}


def write_tags_zip(entries: Mapping[str, str], directory: str | Path, *, name: str = ARCHIVE_NAME) -> Path:
    """Write ``entries`` into ``directory/name`` and return the archive path."""

    target_dir = Path(directory)
    target_dir.mkdir(parents=True, exist_ok=True)
    archive = target_dir / name
    with zipfile.ZipFile(archive, "w", compression=zipfile.ZIP_DEFLATED) as bundle:
        for filename, text in entries.items():
            bundle.writestr(filename, text.encode("utf-8"))
    logger.info("Exported %d tag files to %s", len(entries), archive)
    return archive


__all__ = ["ARCHIVE_NAME", "export_tags", "render_tags", "write_tags_zip"]
