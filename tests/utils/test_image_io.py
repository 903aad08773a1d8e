"""Tests for Pillow based image helpers."""

from __future__ import annotations

import io
from pathlib import Path

import pytest
from PIL import Image

from utils.image_io import ThumbnailHandle, encode_thumbnail, open_image_bytes


def _png(path: Path, size: tuple[int, int] = (64, 32)) -> Path:
    Image.new("RGB", size, (10, 20, 30)).save(path, format="PNG")
    return path


def test_open_image_bytes_rejects_invalid_payload() -> None:
    with pytest.raises(ValueError):
        open_image_bytes(b"\x00\x01")


def test_encode_thumbnail_fits_bounds() -> None:
    data = encode_thumbnail(Image.new("L", (400, 100)), (100, 100))

    with Image.open(io.BytesIO(data)) as thumb:
        assert thumb.size == (100, 25)
        assert thumb.format == "PNG"


def test_thumbnail_handle_caches_until_released(tmp_path: Path) -> None:
    handle = ThumbnailHandle(_png(tmp_path / "a.png"), size=(16, 16))

    first = handle.thumbnail_bytes()
    assert first is not None
    assert handle.thumbnail_bytes() is first
    assert handle.image_bytes() == (tmp_path / "a.png").read_bytes()

    handle.release()

    assert handle.released
    with pytest.raises(RuntimeError):
        handle.thumbnail_bytes()
    with pytest.raises(RuntimeError):
        handle.image_bytes()


def test_thumbnail_handle_returns_none_for_undecodable_file(tmp_path: Path) -> None:
    path = tmp_path / "broken.png"
    path.write_bytes(b"nope")

    assert ThumbnailHandle(path).thumbnail_bytes() is None
