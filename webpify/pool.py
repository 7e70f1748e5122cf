from __future__ import annotations

import logging
import queue
import threading
from pathlib import Path
from typing import List, Optional, Union

from .encoder import Encoder, get_encoder
from .engine import convert_file
from .job import ConversionJob
from .results import JobResult
from .settings import ConvertSettings


logger = logging.getLogger(__name__)

# How often idle workers and blocked submitters look at the shutdown flags.
POLL_INTERVAL = 0.05


class WorkerPool:
    """
    A fixed set of worker threads converting jobs handed to them one by one.

    submit() blocks until a worker has taken the job, so nothing piles up
    in memory when every worker is busy.

    Shutdown:
      wait(): no more submissions, let in-flight jobs finish, join workers.
      stop(): cancel, join workers. Jobs not yet claimed are dropped and
              never get a result. A job already running is not interrupted.

    Single use: once wait() or stop() has been called, the pool is done.

    There is no select over "next job or cancellation" for threads, so idle
    workers and blocked submitters wake every POLL_INTERVAL to look at the
    shutdown flags.
    """

    def __init__(
        self,
        settings: ConvertSettings,
        encoder: Optional[Encoder] = None,
        workers: Optional[int] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> None:
        self.settings = settings
        self.encoder = encoder if encoder is not None else get_encoder(settings)
        self.workers = workers if workers is not None else settings.workers
        if self.workers < 1:
            raise ValueError(f"worker count must be at least 1, got {self.workers}")

        self._jobs: queue.Queue[ConversionJob] = queue.Queue(maxsize=1)
        self._parent_cancel = cancel_event
        self._cancel = threading.Event()
        self._closed = threading.Event()
        # one hand-off at a time, so the queue only ever holds the caller's job
        self._handoff = threading.Lock()
        self._threads: List[threading.Thread] = []

        self._start()

    # ---------- lifecycle ----------

    def _start(self) -> None:
        for i in range(self.workers):
            t = threading.Thread(target=self._worker, name=f"webpify-worker-{i}", daemon=True)
            self._threads.append(t)
            t.start()
        logger.debug("started %d workers", self.workers)

    @property
    def cancelled(self) -> bool:
        if self._cancel.is_set():
            return True
        return self._parent_cancel is not None and self._parent_cancel.is_set()

    def wait(self) -> None:
        """Close submission and block until every queued job has run."""
        self._closed.set()
        self._join()

    def stop(self) -> None:
        """Cancel and block until every worker has exited."""
        self._cancel.set()
        self._closed.set()
        self._join()

    def _join(self) -> None:
        for t in self._threads:
            t.join()

    def __enter__(self) -> "WorkerPool":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()

    # ---------- submission ----------

    def submit(self, job: ConversionJob) -> bool:
        """
        Hand a job to the next free worker.

        Returns True once a worker has claimed it, False if the pool was
        cancelled first (the job will then never get a result).
        """
        if self._closed.is_set():
            raise RuntimeError("cannot submit to a pool that was waited on or stopped")

        with self._handoff:
            while True:
                if self.cancelled:
                    return False
                try:
                    self._jobs.put(job, timeout=POLL_INTERVAL)
                    break
                except queue.Full:
                    continue

            while not job.wait_claimed(POLL_INTERVAL):
                if self.cancelled:
                    return self._take_back(job)
            return True

    def _take_back(self, job: ConversionJob) -> bool:
        # Cancelled mid hand-off. If the job is still queued it is ours to
        # drop; otherwise a worker already took it and will run it.
        try:
            self._jobs.get_nowait()
        except queue.Empty:
            job.wait_claimed()
            return True
        return False

    def submit_path(self, path: Union[str, Path], quality: Optional[int] = None) -> Optional[ConversionJob]:
        job = ConversionJob(path, self.settings.quality if quality is None else quality)
        if not self.submit(job):
            return None
        return job

    # ---------- workers ----------

    def _worker(self) -> None:
        while True:
            if self.cancelled:
                return
            try:
                job = self._jobs.get(timeout=POLL_INTERVAL)
            except queue.Empty:
                if self._closed.is_set():
                    # no more work
                    return
                continue

            job.claim()
            self.execute(job)

    def execute(self, job: ConversionJob) -> None:
        """Run the pipeline for one job and always deliver exactly one result."""
        try:
            result = convert_file(job.input_path, job.quality, self.settings, self.encoder)
        except Exception as e:
            logger.exception("!ERROR unexpected failure converting %s", job.input_path)
            result = JobResult(input_path=job.input_path, error=e)
        job.deliver(result)
