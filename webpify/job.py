from __future__ import annotations

import threading
from concurrent.futures import Future
from pathlib import Path
from typing import Optional, Union

from .results import JobResult


class ConversionJob:
    """
    One file to convert plus a slot for its single result.

    The submitter creates the job; only the worker that claims it may
    deliver the result, and it does so exactly once.
    """

    def __init__(self, input_path: Union[str, Path], quality: int) -> None:
        self.input_path = Path(input_path)
        self.quality = int(quality)
        self._claimed = threading.Event()
        self._result: Future = Future()

    def __repr__(self) -> str:
        return f"ConversionJob({str(self.input_path)!r}, quality={self.quality})"

    @property
    def claimed(self) -> bool:
        return self._claimed.is_set()

    def claim(self) -> None:
        self._claimed.set()

    def wait_claimed(self, timeout: Optional[float] = None) -> bool:
        return self._claimed.wait(timeout)

    def deliver(self, result: JobResult) -> None:
        # Future.set_result raises InvalidStateError on a second delivery
        self._result.set_result(result)

    def done(self) -> bool:
        return self._result.done()

    def wait_for_result(self, timeout: Optional[float] = None) -> JobResult:
        """
        Block until the result is delivered.

        A job abandoned by a cancelled pool never gets one; pass a timeout
        if that can happen (concurrent.futures.TimeoutError is raised).
        """
        return self._result.result(timeout)
