"""
Execution timing utilities.

Section timers for backends, with optional CUDA synchronization so that
GPU kernels are finished before a section is closed.
"""

import time
from contextlib import contextmanager
from typing import Iterator


class Timer:
    """
    Accumulating wall-clock timer.

    Usage:
        timer = Timer()
        timer.start()

        with timer.section('condition_a'):
            r_a = backend.correlate(block_a, block_a, strategy)

        with timer.section('zscore'):
            z, p = differencer.difference(...)

        timer.stop()
        timer.result()
        # {'total_seconds': 0.05, 'condition_a': 0.03, 'zscore': 0.01}

    A section entered several times (e.g. once per permutation) accumulates.
    """

    def __init__(self, sync_cuda: bool = False):
        self._sync_cuda = sync_cuda
        self._sections: dict[str, float] = {}
        self._start_time: float | None = None
        self._total: float | None = None

    def _sync(self) -> None:
        if not self._sync_cuda:
            return
        import torch
        if torch.cuda.is_available():
            torch.cuda.synchronize()

    def start(self) -> None:
        """Start the overall timer."""
        self._sync()
        self._start_time = time.perf_counter()

    def stop(self) -> None:
        """Stop the overall timer."""
        self._sync()
        if self._start_time is None:
            raise RuntimeError("Timer.stop() called before start()")
        self._total = time.perf_counter() - self._start_time

    @contextmanager
    def section(self, name: str) -> Iterator[None]:
        """Time a named section; repeated sections accumulate."""
        self._sync()
        start = time.perf_counter()
        try:
            yield
        finally:
            self._sync()
            elapsed = time.perf_counter() - start
            self._sections[name] = self._sections.get(name, 0.0) + elapsed

    def result(self) -> dict[str, float]:
        """
        Timing results: 'total_seconds' plus every section.

        Raises:
            RuntimeError: If called before stop()
        """
        if self._total is None:
            raise RuntimeError("Timer.result() called before stop()")
        result = {'total_seconds': self._total}
        result.update(self._sections)
        return result
