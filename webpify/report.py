from __future__ import annotations

import csv
import json
from dataclasses import asdict, dataclass, fields
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from .batch import BatchSummary
from .results import JobResult


@dataclass(frozen=True)
class FileReport:
    src_path: str
    out_path: Optional[str]
    outcome: str
    src_bytes: int
    out_bytes: int
    compression: float
    error: Optional[str]


@dataclass(frozen=True)
class BatchReport:
    created_utc: str
    summary: dict
    files: List[FileReport]


def build_report(results: List[JobResult], summary: BatchSummary) -> BatchReport:
    created_utc = datetime.now(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z")

    files: List[FileReport] = []
    for r in results:
        files.append(
            FileReport(
                src_path=str(r.input_path),
                out_path=str(r.output_path) if r.output_path else None,
                outcome=r.outcome,
                src_bytes=r.src_bytes,
                out_bytes=r.out_bytes,
                compression=round(r.compression, 2),
                error=str(r.error) if r.error is not None else None,
            )
        )

    summary_dict = {
        "total_files": summary.total_files,
        "converted": summary.converted,
        "existing": summary.existing,
        "skipped": summary.skipped,
        "discarded": summary.discarded,
        "failed": summary.failed,
        "total_src_bytes": summary.total_src_bytes,
        "total_out_bytes": summary.total_out_bytes,
        "saved_bytes": summary.saved_bytes,
        "saved_percent": round(summary.saved_percent, 2),
    }

    return BatchReport(created_utc=created_utc, summary=summary_dict, files=files)


def save_report_json(report: BatchReport, path: Path) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    with path.open("w", encoding="utf-8") as f:
        json.dump(asdict(report), f, indent=2, ensure_ascii=False)


def save_report_csv(report: BatchReport, path: Path) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    columns = [f.name for f in fields(FileReport)]
    with path.open("w", encoding="utf-8", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=columns)
        writer.writeheader()
        for file_report in report.files:
            writer.writerow(asdict(file_report))


def save_report(report: BatchReport, path: Path) -> None:
    """Write JSON, or CSV when the path ends in .csv."""
    if Path(path).suffix.lower() == ".csv":
        save_report_csv(report, path)
    else:
        save_report_json(report, path)
