"""
Periodic diagnostics for a running AttitudeFilter.

The reporter is owned by the host application: it runs on its own daemon
thread, only ever reads AttitudeFilter.snapshot(), and is stopped through an
event so shutdown does not wait for a full interval.

Usage:
    with DiagnosticsReporter(filt, interval=2.0):
        run_sensor_loop(filt)
"""

import logging
import threading
from typing import Optional

import numpy as np

from .filter import AttitudeFilter, FilterSnapshot

logger = logging.getLogger(__name__)


def _fmt(v) -> str:
    if v is None:
        return 'n/a'
    return np.array2string(np.asarray(v), precision=5, suppress_small=True)


class DiagnosticsReporter:
    """Logs bias and stillness statistics every `interval` seconds."""

    def __init__(self,
                 filt: AttitudeFilter,
                 interval: Optional[float] = None,
                 log: Optional[logging.Logger] = None):
        self.filt = filt
        self.interval = float(interval if interval is not None else filt.config.diagnostics_interval)
        if not self.interval > 0:
            raise ValueError(f"interval must be positive, got {self.interval}")
        self.log = log or logger
        self.reports = 0

        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def report_once(self) -> FilterSnapshot:
        snap = self.filt.snapshot()
        stats = snap.bias_stats
        self.log.info(
            "tick=%d mean_rate=%s bias=%s g_move=%.5f a_move=%.5f window=%d/%d rejected=%d",
            snap.ticks, _fmt(stats.mean_rate), _fmt(stats.bias), stats.g_move, stats.a_move,
            stats.window_fill, stats.window_capacity, snap.rejected_ticks)
        self.reports += 1
        return snap

    def _run(self) -> None:
        while not self._stop.wait(self.interval):
            try:
                self.report_once()
            except Exception:
                self.log.exception("Diagnostics report failed")

    def start(self) -> 'DiagnosticsReporter':
        if self.running:
            return self
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name='ahrs-diagnostics', daemon=True)
        self._thread.start()
        return self

    def stop(self, timeout: float = 5.0) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def __enter__(self) -> 'DiagnosticsReporter':
        return self.start()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()
