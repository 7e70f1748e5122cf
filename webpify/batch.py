from __future__ import annotations

import logging
import os
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Union

from .encoder import Encoder, get_encoder
from .engine import is_candidate
from .errors import DiscoveryError
from .job import ConversionJob
from .pool import WorkerPool
from .results import JobResult
from .settings import ConvertSettings


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BatchSummary:
    total_files: int
    converted: int
    existing: int
    skipped: int
    discarded: int
    failed: int
    total_src_bytes: int
    total_out_bytes: int

    @property
    def saved_bytes(self) -> int:
        return max(0, self.total_src_bytes - self.total_out_bytes)

    @property
    def saved_percent(self) -> float:
        if self.total_src_bytes <= 0:
            return 0.0
        return (self.saved_bytes / self.total_src_bytes) * 100.0


def iter_images(root: Union[str, Path]) -> Iterable[Path]:
    """
    Yield JPEG/PNG files under `root`, recursively, in a stable order.

    Any error while walking raises DiscoveryError and ends the walk.
    """
    root = Path(root)
    if not root.is_dir():
        raise DiscoveryError(f"not a directory: {root}")

    def _on_error(err: OSError) -> None:
        raise DiscoveryError(f"walking {root} failed: {err}") from err

    for dirpath, dirnames, filenames in os.walk(root, onerror=_on_error):
        dirnames.sort()
        for name in sorted(filenames):
            if is_candidate(name):
                yield Path(dirpath) / name


def summarize(results: List[JobResult]) -> BatchSummary:
    # Byte totals only count files that were actually converted.
    converted = [r for r in results if r.converted]
    return BatchSummary(
        total_files=len(results),
        converted=len(converted),
        existing=sum(1 for r in results if r.exists),
        skipped=sum(1 for r in results if r.skipped_reason in ("too_small", "dry_run")),
        discarded=sum(1 for r in results if r.anomaly_discarded),
        failed=sum(1 for r in results if r.error is not None),
        total_src_bytes=sum(r.src_bytes for r in converted),
        total_out_bytes=sum(r.out_bytes for r in converted),
    )


def run_batch(
    settings: ConvertSettings,
    encoder: Optional[Encoder] = None,
    cancel_event: Optional[threading.Event] = None,
) -> tuple[List[JobResult], BatchSummary]:
    """
    Crawl settings.target_dir and convert every candidate through a WorkerPool.

    A discovery failure is logged; jobs already submitted still finish.
    If cancel_event fires, jobs that were never picked up have no result
    and are left out.
    """
    root = Path(os.path.abspath(str(settings.target_dir or "")))
    if encoder is None:
        encoder = get_encoder(settings)

    jobs: List[ConversionJob] = []
    pool = WorkerPool(settings, encoder=encoder, cancel_event=cancel_event)
    try:
        try:
            for path in iter_images(root):
                job = ConversionJob(path, settings.quality)
                jobs.append(job)
                if not pool.submit(job):
                    logger.info("cancelled, no more files will be submitted")
                    break
        except DiscoveryError as e:
            logger.error("!!ERROR %s", e)

        pool.wait()
    finally:
        # stop pool when exiting
        pool.stop()

    results = [j.wait_for_result() for j in jobs if j.done()]
    return results, summarize(results)
