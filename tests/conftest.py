from __future__ import annotations

import threading
from pathlib import Path
from typing import List

import pytest
from PIL import Image, ImageFilter

from webpify.errors import EncodeError
from webpify.settings import ConvertSettings
from webpify.sizes import ByteSize


class ShrinkingEncoder:
    """Writes an output `ratio` times the input size."""

    def __init__(self, ratio: float = 0.5) -> None:
        self.ratio = ratio
        self.calls: List[tuple[Path, Path, int]] = []
        self._lock = threading.Lock()

    def encode(self, input_path: Path, output_path: Path, quality: int) -> None:
        with self._lock:
            self.calls.append((Path(input_path), Path(output_path), quality))
        size = int(Path(input_path).stat().st_size * self.ratio)
        Path(output_path).write_bytes(b"\x00" * size)


class FailingEncoder:
    def __init__(self) -> None:
        self.calls = 0

    def encode(self, input_path: Path, output_path: Path, quality: int) -> None:
        self.calls += 1
        raise EncodeError(f"cannot encode {input_path}")


class BlockingEncoder(ShrinkingEncoder):
    """Signals when an encode starts, then waits for `release`."""

    def __init__(self) -> None:
        super().__init__(ratio=0.5)
        self.started = threading.Semaphore(0)
        self.release = threading.Event()

    def encode(self, input_path: Path, output_path: Path, quality: int) -> None:
        self.started.release()
        assert self.release.wait(10), "test never released the encoder"
        super().encode(input_path, output_path, quality)


def write_file(path: Path, size: int) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"\xff" * size)
    return path


def make_gradient(path: Path, size: tuple[int, int] = (400, 300), fmt: str = "JPEG") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    w, h = size
    im = Image.new("RGB", size)
    im.putdata([((x * 255) // w, (y * 255) // h, 128) for y in range(h) for x in range(w)])
    if fmt == "JPEG":
        im.save(path, fmt, quality=95)
    else:
        im.save(path, fmt)
    return path


def make_textured(path: Path, size: tuple[int, int] = (400, 300), fmt: str = "PNG") -> Path:
    """Gradient with blurred grain: large as a lossless PNG, easy for lossy WebP."""
    path.parent.mkdir(parents=True, exist_ok=True)
    w, h = size
    base = Image.new("RGB", size)
    base.putdata([((x * 255) // w, (y * 255) // h, 128) for y in range(h) for x in range(w)])
    grain = Image.effect_noise(size, 64).filter(ImageFilter.GaussianBlur(1))
    im = Image.blend(base, Image.merge("RGB", (grain, grain, grain)), 0.35)
    im.save(path, fmt)
    return path


@pytest.fixture
def settings(tmp_path: Path) -> ConvertSettings:
    return ConvertSettings(
        target_dir=tmp_path,
        quality=80,
        min_size=ByteSize.parse("10KB"),
        workers=2,
    )
