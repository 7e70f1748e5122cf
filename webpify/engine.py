from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import Union

from .encoder import Encoder
from .errors import EncodeError, PathError, ValidationCleanupError
from .results import JobResult
from .settings import ConvertSettings
from .sizes import ByteSize


logger = logging.getLogger(__name__)

# Candidate source files, matched against the file name.
IMAGE_RE = re.compile(r"\.(jpe?g|png)$", re.IGNORECASE)


def is_candidate(name: str) -> bool:
    return IMAGE_RE.search(name) is not None


def derive_output_path(
    input_path: Union[str, Path],
    prepend: str = "",
    append: str = "",
    target_ext: str = "webp",
) -> Path:
    """
    photo.jpg -> <prepend>photo<append>.webp, in the same directory.

    Pure: touches nothing on disk.
    """
    input_path = Path(input_path)
    name = input_path.name
    dot = name.rfind(".")
    stem = name[:dot] if dot >= 0 else name
    return input_path.parent / f"{prepend}{stem}{append}.{target_ext}"


def convert_file(
    input_path: Union[str, Path],
    quality: int,
    s: ConvertSettings,
    encoder: Encoder,
) -> JobResult:
    """
    Run the conversion pipeline for one file.

    Gates are checked in order and the first one that applies ends the job:
    output already exists, input below the minimum size, dry run.
    Per-file failures are returned in JobResult.error, never raised.
    """
    try:
        src_path = Path(os.path.abspath(os.fspath(input_path)))
    except (OSError, ValueError, TypeError) as e:
        err = PathError(f"cannot make {input_path!r} absolute: {e}")
        logger.error("!ERROR %s", err)
        return JobResult(input_path=Path(str(input_path)), error=err)

    out_path = derive_output_path(src_path, s.prepend, s.append, s.target_ext)

    if not s.replace and out_path.exists():
        logger.info("%s already has a %s version", src_path, s.target_ext)
        return JobResult(
            input_path=src_path,
            output_path=out_path,
            exists=True,
            skipped_reason="exists",
        )

    try:
        src_bytes = src_path.stat().st_size
    except OSError as e:
        logger.error("!ERROR cannot read size of %s: %s", src_path, e)
        return JobResult(input_path=src_path, output_path=out_path, error=e)

    src_size = ByteSize(src_bytes)
    if src_size < s.min_size:
        logger.info(
            "%s size [%s] is smaller than the minimum file size [%s]. Skipping...",
            src_path, src_size.human_readable(), s.min_size.human_readable(),
        )
        return JobResult(
            input_path=src_path,
            output_path=out_path,
            skipped_reason="too_small",
            src_bytes=src_bytes,
        )

    if s.dry_run:
        logger.info("%s → %s [?]", src_path, out_path)
        return JobResult(
            input_path=src_path,
            output_path=out_path,
            skipped_reason="dry_run",
            src_bytes=src_bytes,
        )

    try:
        encoder.encode(src_path, out_path, quality)
    except EncodeError as e:
        logger.error("!ERROR webp generation for %s FAILED with error: %s", src_path, e)
        return JobResult(input_path=src_path, output_path=out_path, error=e, src_bytes=src_bytes)

    return _validate_output(src_path, out_path, src_bytes)


def _validate_output(src_path: Path, out_path: Path, src_bytes: int) -> JobResult:
    try:
        out_bytes = out_path.stat().st_size
    except OSError as e:
        logger.error("!ERROR encoder reported success but %s is unreadable: %s", out_path, e)
        return JobResult(input_path=src_path, output_path=out_path, error=e, src_bytes=src_bytes)

    compression = compression_percent(src_bytes, out_bytes)

    if out_bytes > src_bytes:
        logger.warning(
            "!WARNING output file %s is bigger than input file %s. deleting...",
            out_path, src_path,
        )
        try:
            out_path.unlink()
        except OSError as e:
            err = ValidationCleanupError(f"could not delete oversized {out_path}: {e}")
            logger.error("!ERROR %s", err)
            return JobResult(
                input_path=src_path,
                output_path=out_path,
                error=err,
                compression=compression,
                src_bytes=src_bytes,
                out_bytes=out_bytes,
            )
        return JobResult(
            input_path=src_path,
            output_path=out_path,
            compression=compression,
            anomaly_discarded=True,
            src_bytes=src_bytes,
            out_bytes=out_bytes,
        )

    logger.info(
        "%s (%s) → %s (%s) [%.2f%%]",
        src_path, ByteSize(src_bytes).human_readable(),
        out_path, ByteSize(out_bytes).human_readable(),
        compression,
    )
    return JobResult(
        input_path=src_path,
        output_path=out_path,
        compression=compression,
        src_bytes=src_bytes,
        out_bytes=out_bytes,
    )


def compression_percent(src_bytes: int, out_bytes: int) -> float:
    if src_bytes <= 0:
        return 0.0
    return (1 - (out_bytes / src_bytes)) * 100
