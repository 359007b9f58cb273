"""Decoding and resizing of uploaded plate snapshots.

The recognizer uploads the full camera frame. Notifications only need a
preview, so frames are scaled to fit 1024x768 before they are stored.
"""

from __future__ import annotations

import io
from pathlib import Path

from PIL import Image

from platehandler.exceptions import ImageError

SNAPSHOT_SIZE: tuple[int, int] = (1024, 768)


def decode_snapshot(data: bytes) -> Image.Image:
    """Decode *data* as a JPEG.

    Raises
    ------
    ImageError
        The bytes are not a JPEG or cannot be decoded.
    """
    try:
        image = Image.open(io.BytesIO(data))
        if image.format != "JPEG":
            raise ImageError(f"Expected a JPEG snapshot, got {image.format}")
        image.load()
    except (OSError, Image.DecompressionBombError) as exc:
        # UnidentifiedImageError and truncated data are both OSErrors.
        raise ImageError(f"Failed to decode image: {exc}") from exc
    return image


def fit_within(image: Image.Image, size: tuple[int, int] = SNAPSHOT_SIZE) -> Image.Image:
    """Scale *image*, keeping its aspect ratio, to the largest size inside *size*."""
    width, height = image.size
    scale = min(size[0] / width, size[1] / height)
    target = (max(1, round(width * scale)), max(1, round(height * scale)))
    if target == image.size:
        return image
    return image.resize(target, Image.Resampling.BILINEAR)


def save_snapshot(data: bytes, path: Path) -> None:
    """Decode, resize and write *data* to *path* as a JPEG.

    Raises :class:`ImageError` for undecodable input and ``OSError`` when
    the file cannot be written.
    """
    image = fit_within(decode_snapshot(data))
    if image.mode not in ("RGB", "L"):
        image = image.convert("RGB")
    image.save(path, format="JPEG")
