"""Fetch model files with progress reporting and a local cache."""

from __future__ import annotations

import logging
from pathlib import Path

import httpx

from .base import ProgressCallback

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 1024 * 1024


def _default_client(timeout: float) -> httpx.Client:
    return httpx.Client(follow_redirects=True, timeout=timeout)


def fetch_file(
    url: str,
    destination: Path,
    *,
    on_progress: ProgressCallback | None = None,
    client: httpx.Client | None = None,
    timeout: float = 300.0,
) -> Path:
    """Download ``url`` to ``destination`` unless it is already cached.

    ``on_progress`` receives integer percentages as they change; a cached file
    reports ``100`` immediately. Partial downloads are removed on failure.
    """

    if destination.is_file():
        logger.info("Using cached %s", destination)
        if on_progress is not None:
            on_progress(100)
        return destination

    destination.parent.mkdir(parents=True, exist_ok=True)
    temp_path = destination.with_suffix(destination.suffix + ".tmp")
    owns_client = client is None
    http = client or _default_client(timeout)
    last_percent = -1
    logger.info("Downloading %s", url)
    try:
        with http.stream("GET", url) as response:
            response.raise_for_status()
            total = int(response.headers.get("content-length", 0))
            received = 0
            with temp_path.open("wb") as handle:
                for chunk in response.iter_bytes(chunk_size=_CHUNK_SIZE):
                    handle.write(chunk)
                    received += len(chunk)
                    if on_progress is None or total <= 0:
                        continue
                    percent = min(100, received * 100 // total)
                    if percent != last_percent:
                        last_percent = percent
                        on_progress(percent)
        temp_path.replace(destination)
    except BaseException:
        temp_path.unlink(missing_ok=True)
        raise
    finally:
        if owns_client:
            http.close()

    if on_progress is not None and last_percent != 100:
        on_progress(100)
    logger.info("Saved %s (%d bytes)", destination, destination.stat().st_size)
    return destination


__all__ = ["fetch_file"]
