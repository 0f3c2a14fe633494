from __future__ import annotations
import time
from contextlib import contextmanager

from .logging import get_logger

_profiler = None


def get_profiler():
    global _profiler
    if _profiler is None:
        _profiler = Profiler()
    return _profiler


class Profiler:
    """Smoothed per-section timings for the frame loop."""

    def __init__(self, ema_alpha=0.1):
        self.ema_alpha = ema_alpha
        self._ema = {}
        self._counts = {}
        self.logger = get_logger("Profiler")

    @contextmanager
    def record(self, name: str):
        start_t = time.perf_counter()
        try:
            yield
        finally:
            self.add(name, time.perf_counter() - start_t)

    def add(self, name: str, dt: float):
        self._counts[name] = self._counts.get(name, 0) + 1
        prev = self._ema.get(name)
        if prev is None:
            self._ema[name] = dt
        else:
            self._ema[name] = self.ema_alpha * dt + (1.0 - self.ema_alpha) * prev

    def count(self, name: str) -> int:
        return self._counts.get(name, 0)

    def get_timings(self):
        return self._ema.copy()

    def lines(self) -> list[str]:
        return [f"{k}: {v*1000:.2f}ms" for k, v in sorted(self._ema.items())]

    def log_stats(self):
        if self._ema:
            self.logger.info(" | ".join(self.lines()))
