"""Tests for pairing images with companion tag files."""

from __future__ import annotations

from pathlib import Path

from core.importer import collect_files, files_to_tagged_images, split_filename_ext
from core.intents import AddTag
from core.reducer import update
from core.tag_counts import TagCountIndex


def _no_handle(_ref) -> None:
    return None


def _write(directory: Path, name: str, content: bytes | str = b"") -> Path:
    path = directory / name
    if isinstance(content, str):
        path.write_text(content, encoding="utf-8")
    else:
        path.write_bytes(content)
    return path


def test_split_filename_ext() -> None:
    assert split_filename_ext("photo.final.png") == ("photo.final", "png")
    assert split_filename_ext("README") == ("README", "")


def test_pairs_full_name_companion(tmp_path: Path) -> None:
    files = [
        _write(tmp_path, "a.png"),
        _write(tmp_path, "a.png.txt", "blue sky, cloud"),
        _write(tmp_path, "a.txt", "ignored"),
    ]

    result = files_to_tagged_images(files, handle_factory=_no_handle)

    assert len(result.images) == 1
    assert result.images[0].tags == ("blue_sky", "cloud")


def test_pairs_stem_companion(tmp_path: Path) -> None:
    files = [_write(tmp_path, "b.jpg"), _write(tmp_path, "b.txt", "cat, cat ,  , smile")]

    result = files_to_tagged_images(files, handle_factory=_no_handle)

    assert result.images[0].tags == ("cat", "smile")
    assert dict(result.tag_counts) == {"cat": 1, "smile": 1}


def test_image_without_companion_has_no_tags(tmp_path: Path) -> None:
    result = files_to_tagged_images([_write(tmp_path, "c.webp")], handle_factory=_no_handle)

    assert result.images[0].tags == ()
    assert len(result.tag_counts) == 0


def test_filters_extensions_and_sorts_by_name(tmp_path: Path) -> None:
    files = [
        _write(tmp_path, "z.PNG"),
        _write(tmp_path, "notes.txt", "x"),
        _write(tmp_path, "clip.mp4"),
        _write(tmp_path, "a.gif"),
    ]

    result = files_to_tagged_images(files, handle_factory=_no_handle)

    assert [image.name for image in result.images] == ["a.gif", "z.PNG"]
    assert result.images[0].image.path == tmp_path / "a.gif"


def test_counts_cover_all_imported_images(tmp_path: Path) -> None:
    files = [
        _write(tmp_path, "a.png"),
        _write(tmp_path, "a.txt", "sky, cloud"),
        _write(tmp_path, "b.png"),
        _write(tmp_path, "b.png.txt", "sky"),
    ]

    result = files_to_tagged_images(files, handle_factory=_no_handle)

    assert dict(result.tag_counts) == {"sky": 2, "cloud": 1}


def test_collect_files_expands_directories(tmp_path: Path) -> None:
    folder = tmp_path / "set"
    folder.mkdir()
    _write(folder, "b.png")
    _write(folder, "a.png")
    (folder / "nested").mkdir()
    single = _write(tmp_path, "c.png")

    files = collect_files([folder, single, tmp_path / "missing.png"])

    assert [path.name for path in files] == ["a.png", "b.png", "c.png"]


def test_default_handle_factory_builds_thumbnail_handles(tmp_path: Path) -> None:
    result = files_to_tagged_images([_write(tmp_path, "a.png")])

    handle = result.images[0].handle
    assert handle.path == tmp_path / "a.png"
    assert handle.released is False


def test_companions_pair_within_their_own_folder(tmp_path: Path) -> None:
    one = tmp_path / "one"
    two = tmp_path / "two"
    one.mkdir()
    two.mkdir()
    _write(one, "a.png")
    _write(one, "a.txt", "cat")
    _write(two, "a.png")
    _write(two, "a.txt", "dog")

    result = files_to_tagged_images(collect_files([one, two]), handle_factory=_no_handle)

    pairs = {image.image.path: image.tags for image in result.images}
    assert pairs == {one / "a.png": ("cat",), two / "a.png": ("dog",)}
    assert dict(result.tag_counts) == {"cat": 1, "dog": 1}


def test_companion_in_other_folder_is_not_used(tmp_path: Path) -> None:
    other = tmp_path / "other"
    other.mkdir()
    image = _write(tmp_path, "b.png")
    stray = _write(other, "b.png.txt", "sky")

    result = files_to_tagged_images([image, stray], handle_factory=_no_handle)

    assert result.images[0].tags == ()


def test_collect_files_returns_each_file_once(tmp_path: Path) -> None:
    folder = tmp_path / "set"
    folder.mkdir()
    single = _write(folder, "a.png")
    _write(folder, "a.txt", "sky")

    files = collect_files([folder, single, folder])

    assert [path.name for path in files] == ["a.png", "a.txt"]


def test_repeated_paths_import_one_image(tmp_path: Path, load_state) -> None:
    image = _write(tmp_path, "a.png")
    companion = _write(tmp_path, "a.txt", "cloud")

    result = files_to_tagged_images([image, companion, image], handle_factory=_no_handle)
    state = update(AddTag("sky"), load_state(*result.images))

    assert len(state.all_files) == 1
    carrying = sum("sky" in item.tags for item in state.all_files)
    assert state.tag_counts["sky"] == carrying == 1
    assert state.tag_counts.nonzero() == dict(TagCountIndex.rebuild_from(state.all_files))
