from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional


@dataclass(frozen=True)
class JobResult:
    """
    Outcome of converting a single image.

    Exactly one of these is delivered per job. A job stops at the first
    gate that applies, so `exists`, `skipped_reason`, `anomaly_discarded`
    and `error` never describe a kept WebP file.
    """
    input_path: Path
    output_path: Optional[Path] = None  # None only if path derivation failed
    error: Optional[BaseException] = None
    compression: float = 0.0  # percent reduction, only set once the encoder ran
    exists: bool = False
    skipped_reason: Optional[str] = None  # "exists", "too_small" or "dry_run"
    anomaly_discarded: bool = False  # output was bigger than input and got deleted
    src_bytes: int = 0
    out_bytes: int = 0

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def converted(self) -> bool:
        return (
            self.error is None
            and self.skipped_reason is None
            and not self.anomaly_discarded
        )

    @property
    def saved_bytes(self) -> int:
        if not self.converted:
            return 0
        return max(0, self.src_bytes - self.out_bytes)

    @property
    def outcome(self) -> str:
        if self.error is not None:
            return "error"
        if self.skipped_reason is not None:
            return self.skipped_reason
        if self.anomaly_discarded:
            return "discarded"
        return "converted"
