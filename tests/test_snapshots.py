from __future__ import annotations

import io
from pathlib import Path

import pytest
from PIL import Image

from platehandler.exceptions import ImageError
from platehandler.snapshots import decode_snapshot, fit_within, save_snapshot


def _encode(image: Image.Image, fmt: str = "JPEG") -> bytes:
    buf = io.BytesIO()
    image.save(buf, format=fmt)
    return buf.getvalue()


@pytest.mark.parametrize(
    ("size", "expected"),
    [
        ((2048, 1536), (1024, 768)),
        ((1920, 1080), (1024, 576)),
        ((600, 1200), (384, 768)),
        ((1024, 768), (1024, 768)),
    ],
)
def test_fit_within_keeps_aspect_ratio(size: tuple[int, int], expected: tuple[int, int]) -> None:
    assert fit_within(Image.new("RGB", size)).size == expected


def test_decode_rejects_non_jpeg() -> None:
    with pytest.raises(ImageError):
        decode_snapshot(_encode(Image.new("RGB", (8, 8)), fmt="PNG"))


def test_decode_rejects_truncated_jpeg() -> None:
    data = _encode(Image.effect_noise((256, 256), 64).convert("RGB"))
    with pytest.raises(ImageError):
        decode_snapshot(data[: len(data) // 2])


def test_save_snapshot_writes_resized_jpeg(tmp_path: Path) -> None:
    path = tmp_path / "snap.jpeg"
    save_snapshot(_encode(Image.new("L", (3200, 2400))), path)

    with Image.open(path) as stored:
        assert stored.format == "JPEG"
        assert stored.size == (1024, 768)
