"""Encode images into the WD14 model input layout."""

from __future__ import annotations

from typing import Sequence

import cv2
import numpy as np
from PIL import Image

from utils.image_io import open_image_bytes

DEFAULT_INPUT_SIZE = 448


def infer_input_layout(shape: Sequence[object]) -> str:
    """Return ``"NCHW"`` or ``"NHWC"`` for a 4-D model input shape."""

    if len(shape) != 4:
        raise ValueError(f"Expected a 4-D input shape, got {list(shape)}")
    if shape[1] == 3 and shape[3] != 3:
        return "NCHW"
    return "NHWC"


def infer_spatial_dims(shape: Sequence[object], layout: str) -> tuple[int, int]:
    """Return ``(height, width)``; symbolic dimensions fall back to 448."""

    if layout == "NCHW":
        height, width = shape[2], shape[3]
    else:
        height, width = shape[1], shape[2]

    def _dim(value: object) -> int:
        return value if isinstance(value, int) and value > 0 else DEFAULT_INPUT_SIZE

    return _dim(height), _dim(width)


def make_square(img: np.ndarray, target_size: int) -> np.ndarray:
    """Pad ``img`` with white to a square at least ``target_size`` wide."""

    old_size = img.shape[:2]
    desired_size = max(max(old_size), target_size)

    delta_w = desired_size - old_size[1]
    delta_h = desired_size - old_size[0]
    top, bottom = delta_h // 2, delta_h - (delta_h // 2)
    left, right = delta_w // 2, delta_w - (delta_w // 2)

    color = [255, 255, 255]
    return cv2.copyMakeBorder(img, top, bottom, left, right, cv2.BORDER_CONSTANT, value=color)


def smart_resize(img: np.ndarray, size: int) -> np.ndarray:
    # assumes the image has already gone through make_square
    if img.shape[0] > size:
        img = cv2.resize(img, (size, size), interpolation=cv2.INTER_AREA)
    elif img.shape[0] < size:
        img = cv2.resize(img, (size, size), interpolation=cv2.INTER_CUBIC)
    return img


def preprocess_image(image: Image.Image, size: int) -> np.ndarray:
    """Return a ``(1, size, size, 3)`` float32 BGR batch in the 0..255 range."""

    # alpha to white
    image = image.convert("RGBA")
    canvas = Image.new("RGBA", image.size, "WHITE")
    canvas.paste(image, mask=image)
    rgb = np.asarray(canvas.convert("RGB"))

    # PIL RGB to OpenCV BGR
    bgr = np.ascontiguousarray(rgb[:, :, ::-1])

    bgr = make_square(bgr, size)
    bgr = smart_resize(bgr, size)
    return np.expand_dims(bgr.astype(np.float32), 0)


def preprocess_bytes(data: bytes, size: int) -> np.ndarray:
    """Decode ``data`` and run :func:`preprocess_image` on it."""

    return preprocess_image(open_image_bytes(data), size)


def format_for_layout(batch: np.ndarray, layout: str) -> np.ndarray:
    """Transpose an NHWC batch when the session expects NCHW."""

    if layout == "NCHW":
        return np.ascontiguousarray(batch.transpose(0, 3, 1, 2))
    return np.ascontiguousarray(batch)


__all__ = [
    "DEFAULT_INPUT_SIZE",
    "format_for_layout",
    "infer_input_layout",
    "infer_spatial_dims",
    "make_square",
    "preprocess_bytes",
    "preprocess_image",
    "smart_resize",
]
