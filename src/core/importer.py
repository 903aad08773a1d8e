"""Turn user-selected files into tagged images."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, Sequence

from core.state import DisplayHandle, ImageRef, TaggedImage
from core.tag_counts import TagCountIndex
from core.tagset import parse_comma_tags

logger = logging.getLogger(__name__)

DEFAULT_IMAGE_EXTS = frozenset({"gif", "jpg", "jpeg", "png", "webp"})

HandleFactory = Callable[[ImageRef], DisplayHandle]


@dataclass(frozen=True)
class ImportResult:
    images: tuple[TaggedImage, ...]
    tag_counts: TagCountIndex


def split_filename_ext(filename: str) -> tuple[str, str]:
    """Split at the last dot; a name without a dot has an empty extension."""

    stem, dot, ext = filename.rpartition(".")
    if not dot:
        return filename, ""
    return stem, ext


def collect_files(paths: Iterable[str | Path]) -> list[Path]:
    """Expand ``paths`` into files; directories contribute their direct children.

    A file reached more than once (a folder and a file inside it, or the same
    folder twice) is returned only once.
    """

    files: list[Path] = []
    seen: set[Path] = set()

    def _add(path: Path) -> None:
        key = path.resolve()
        if key in seen:
            return
        seen.add(key)
        files.append(path)

    for entry in paths:
        path = Path(entry)
        if path.is_dir():
            for child in sorted(path.iterdir()):
                if child.is_file():
                    _add(child)
        elif path.is_file():
            _add(path)
        else:
            logger.warning("Skipping missing import path %s", path)
    return files


def _read_tag_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8-sig")
    except (OSError, UnicodeDecodeError) as exc:
        logger.warning("Unable to read tags from %s: %s", path, exc)
        return ""


def _default_handle_factory(ref: ImageRef) -> DisplayHandle:
    from utils.image_io import ThumbnailHandle

    return ThumbnailHandle(ref.path)


def files_to_tagged_images(
    files: Sequence[Path],
    *,
    allowed_exts: Iterable[str] = DEFAULT_IMAGE_EXTS,
    handle_factory: HandleFactory | None = None,
) -> ImportResult:
    """Pair images with companion tag files and build the count index.

    For ``name.ext`` the tag text is read from ``name.ext.txt`` or, failing
    that, ``name.txt``, and only from the image's own directory. Images
    without a companion file carry no tags. Duplicate paths are imported once.
    """

    exts = {ext.lower().lstrip(".") for ext in allowed_exts}
    factory = handle_factory or _default_handle_factory
    unique = {path.resolve(): path for path in reversed(list(files))}
    ordered = sorted(unique.values(), key=lambda path: (path.name, str(path)))
    selected = set(unique)

    def _companion(path: Path, stem: str) -> Path | None:
        for candidate in (path.with_name(f"{path.name}.txt"), path.with_name(f"{stem}.txt")):
            if candidate.resolve() in selected:
                return candidate
        return None

    images: list[TaggedImage] = []
    for path in ordered:
        stem, ext = split_filename_ext(path.name)
        if ext.lower() not in exts:
            continue
        companion = _companion(path, stem)
        tags = parse_comma_tags(_read_tag_text(companion)) if companion is not None else ()
        ref = ImageRef(name=path.name, path=path)
        images.append(TaggedImage(image=ref, tags=tags, handle=factory(ref)))

    counts = TagCountIndex.rebuild_from(images)
    logger.info("Paired %d images out of %d selected files", len(images), len(ordered))
    return ImportResult(images=tuple(images), tag_counts=counts)


__all__ = [
    "DEFAULT_IMAGE_EXTS",
    "HandleFactory",
    "ImportResult",
    "collect_files",
    "files_to_tagged_images",
    "split_filename_ext",
]
