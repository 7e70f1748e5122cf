from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal, Optional, Union

from .errors import ConfigurationError
from .sizes import ByteSize


# Encoder backends we know how to drive.
EncoderName = Literal["cwebp", "pillow"]

DEFAULT_MIN_SIZE = "10KB"


def default_workers() -> int:
    return os.cpu_count() or 1


@dataclass(frozen=True)
class ConvertSettings:
    """
    Everything the pool and the per-file pipeline need to know.

    Passed in explicitly at construction time; nothing in the pipeline
    reads flags or environment on its own.
    """

    # ----- What to crawl -----
    target_dir: Optional[Path] = None

    # ----- Encoding -----
    quality: int = 0  # 0 means "not set"; must be >= 1 unless dry_run
    encoder: EncoderName = "cwebp"
    cwebp_path: str = "cwebp"
    target_ext: str = "webp"

    # ----- Output handling -----
    replace: bool = False
    dry_run: bool = False
    min_size: ByteSize = field(default_factory=lambda: ByteSize.parse(DEFAULT_MIN_SIZE))

    # Naming: photo.jpg -> <prepend>photo<append>.webp
    prepend: str = ""
    append: str = ""

    # ----- Concurrency -----
    workers: int = field(default_factory=default_workers)


def parse_min_size(text: Union[str, int]) -> ByteSize:
    """Parse a --min-size value, turning bad input into a ConfigurationError."""
    if isinstance(text, int):
        return ByteSize(text)
    try:
        return ByteSize.parse(text)
    except ValueError as e:
        raise ConfigurationError(f"{text} is not a valid file size") from e


def validate_settings(s: ConvertSettings) -> ConvertSettings:
    """
    Check the settings needed to start a run.

    Raises ConfigurationError; returns the settings unchanged otherwise.
    """
    if not s.dry_run:
        if s.target_dir is None or not str(s.target_dir).strip():
            raise ConfigurationError("a target directory is required")
        if s.quality < 1:
            raise ConfigurationError("quality must be at least 1")

    if s.workers < 1:
        raise ConfigurationError(f"worker count must be at least 1, got {s.workers}")

    if s.encoder not in ("cwebp", "pillow"):
        raise ConfigurationError(f"unknown encoder: {s.encoder}")

    if not s.target_ext or "/" in s.target_ext or os.sep in s.target_ext:
        raise ConfigurationError(f"invalid target extension: {s.target_ext!r}")

    return s
