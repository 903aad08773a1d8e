"""Image input/output utilities built atop Pillow."""

from __future__ import annotations

import io
import logging
from pathlib import Path
from threading import Lock

from PIL import Image, ImageFile, UnidentifiedImageError
from PIL.Image import DecompressionBombError

logger = logging.getLogger(__name__)

DEFAULT_THUMBNAIL_SIZE = (256, 256)
DEFAULT_BOMB_CAP = 350_000_000


def open_image_bytes(data: bytes, *, bomb_pixel_cap: int | None = DEFAULT_BOMB_CAP) -> Image.Image:
    """Decode ``data`` into a fully loaded Pillow image.

    Raises :class:`ValueError` when the payload is not a decodable image.
    """

    old_cap = Image.MAX_IMAGE_PIXELS
    if bomb_pixel_cap is not None:
        Image.MAX_IMAGE_PIXELS = int(bomb_pixel_cap)
    ImageFile.LOAD_TRUNCATED_IMAGES = True
    try:
        image = Image.open(io.BytesIO(data))
        image.load()
        return image
    except (UnidentifiedImageError, DecompressionBombError, OSError) as exc:
        raise ValueError(f"Unable to decode image: {exc}") from exc
    finally:
        Image.MAX_IMAGE_PIXELS = old_cap


def encode_thumbnail(image: Image.Image, size: tuple[int, int] = DEFAULT_THUMBNAIL_SIZE) -> bytes:
    """Return PNG bytes of ``image`` scaled to fit within ``size``."""

    copy = image.copy()
    copy.thumbnail(size, Image.Resampling.LANCZOS)
    if copy.mode not in ("RGB", "RGBA"):
        copy = copy.convert("RGBA")
    buffer = io.BytesIO()
    copy.save(buffer, format="PNG")
    return buffer.getvalue()


class ThumbnailHandle:
    """Display resource for one imported image.

    Encoded thumbnails are produced lazily and cached until :meth:`release`.
    """

    def __init__(self, path: str | Path, *, size: tuple[int, int] = DEFAULT_THUMBNAIL_SIZE) -> None:
        self._path = Path(path)
        self._size = size
        self._lock = Lock()
        self._thumbnail: bytes | None = None
        self._released = False

    @property
    def path(self) -> Path:
        return self._path

    @property
    def released(self) -> bool:
        return self._released

    def image_bytes(self) -> bytes:
        """Return the raw file bytes for full-size display."""

        self._check_alive()
        return self._path.read_bytes()

    def thumbnail_bytes(self) -> bytes | None:
        """Return cached PNG thumbnail bytes, or ``None`` when undecodable."""

        with self._lock:
            self._check_alive()
            if self._thumbnail is None:
                try:
                    image = open_image_bytes(self._path.read_bytes())
                except (OSError, ValueError) as exc:
                    logger.warning("Thumbnail failed for %s: %s", self._path, exc)
                    return None
                self._thumbnail = encode_thumbnail(image, self._size)
            return self._thumbnail

    def release(self) -> None:
        with self._lock:
            self._thumbnail = None
            self._released = True

    def _check_alive(self) -> None:
        if self._released:
            raise RuntimeError(f"Display handle for {self._path.name} was released")


__all__ = [
    "DEFAULT_THUMBNAIL_SIZE",
    "ThumbnailHandle",
    "encode_thumbnail",
    "open_image_bytes",
]
