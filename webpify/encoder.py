from __future__ import annotations

import logging
import os
import subprocess
import tempfile
from pathlib import Path
from typing import Protocol

from PIL import Image

from .errors import ConfigurationError, EncodeError
from .settings import ConvertSettings


logger = logging.getLogger(__name__)


class Encoder(Protocol):
    """Anything that can turn one image file into a WebP file."""

    def encode(self, input_path: Path, output_path: Path, quality: int) -> None:
        """Write `output_path`. Raises EncodeError on failure."""
        ...


class CWebPEncoder:
    """Runs the `cwebp` binary once per file."""

    def __init__(self, binary: str = "cwebp", timeout: float | None = None) -> None:
        self.binary = binary
        self.timeout = timeout

    def build_command(self, input_path: Path, output_path: Path, quality: int) -> list[str]:
        return [
            self.binary,
            "-quiet",
            "-q", str(quality),
            str(input_path),
            "-o", str(output_path),
        ]

    def encode(self, input_path: Path, output_path: Path, quality: int) -> None:
        cmd = self.build_command(input_path, output_path, quality)
        logger.debug("CMD: %s", " ".join(cmd))

        try:
            proc = subprocess.run(
                cmd,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                timeout=self.timeout,
            )
        except FileNotFoundError as e:
            raise EncodeError(f"encoder binary not found: {self.binary}") from e
        except subprocess.TimeoutExpired as e:
            raise EncodeError(f"{self.binary} timed out after {self.timeout}s on {input_path}") from e

        if proc.returncode != 0:
            detail = (proc.stderr or proc.stdout or "").strip()
            raise EncodeError(
                f"{self.binary} exited with status {proc.returncode} for {input_path}"
                + (f": {detail}" if detail else "")
            )


class PillowEncoder:
    """Encodes with Pillow's WebP writer, for hosts without `cwebp`."""

    def __init__(self, method: int = 4) -> None:
        self.method = method  # 0-6, higher = smaller but slower

    def encode(self, input_path: Path, output_path: Path, quality: int) -> None:
        output_path = Path(output_path)
        try:
            with Image.open(input_path) as im:
                im.load()
                im = _webp_compatible(im)
                tmp_path = self._save_to_temp(im, output_path, quality)
        except (OSError, ValueError, Image.DecompressionBombError) as e:
            raise EncodeError(f"Pillow failed to encode {input_path}: {e}") from e

        # Move temp file to final destination (atomic replace)
        try:
            tmp_path.replace(output_path)
        except OSError as e:
            tmp_path.unlink(missing_ok=True)
            raise EncodeError(f"could not move encoded file into place at {output_path}: {e}") from e

    def _save_to_temp(self, im: Image.Image, output_path: Path, quality: int) -> Path:
        # Temp file lives next to the output so the final rename is cheap
        fd, tmp_name = tempfile.mkstemp(prefix=".webpify_", suffix=".webp", dir=str(output_path.parent))
        os.close(fd)
        tmp_path = Path(tmp_name)
        try:
            im.save(tmp_path, format="WEBP", quality=int(quality), method=int(self.method))
        except BaseException:
            tmp_path.unlink(missing_ok=True)
            raise
        return tmp_path


def _webp_compatible(im: Image.Image) -> Image.Image:
    if im.mode in ("RGB", "RGBA"):
        return im
    if im.mode in ("LA", "PA") or (im.mode == "P" and "transparency" in im.info):
        return im.convert("RGBA")
    return im.convert("RGB")


def get_encoder(settings: ConvertSettings) -> Encoder:
    if settings.encoder == "cwebp":
        return CWebPEncoder(binary=settings.cwebp_path)
    if settings.encoder == "pillow":
        return PillowEncoder()
    raise ConfigurationError(f"unknown encoder: {settings.encoder}")
