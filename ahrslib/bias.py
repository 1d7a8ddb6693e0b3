"""
Gyroscope bias (offset) estimation from stillness detection.

Every sample is converted to a per-sample rotation (rate / sample_rate) and
the current offset is subtracted. The corrected rate and the accelerometer
magnitude are kept in two windows of equal span. Whenever the rate window
overflows, both windows are scored:

    a_move = sum(| |a| - mean(|a|) |)    over the magnitude window
    g_move = sum(|wx| + |wy| + |wz|)     over the rate window

If both scores are under their thresholds the device is considered at rest:
offset + mean(window rate) is pushed into a short history, the offset
becomes the history mean, and the rate window restarts empty.
"""

import logging
from collections import deque
from dataclasses import dataclass
from typing import Optional

import numpy as np

from .config import FilterConfig, validate_config
from .rate_buffer import RateBuffer

logger = logging.getLogger(__name__)

DEG_TO_RAD = np.pi / 180.0


@dataclass(frozen=True)
class BiasStatistics:
    """Immutable view of the estimator for diagnostics."""
    bias: np.ndarray                  # rad/s
    mean_rate: Optional[np.ndarray]   # rad/s, None while the window is empty
    a_move: float
    g_move: float
    window_fill: int
    window_capacity: int
    history_len: int
    updates: int


class GyroBiasEstimator:
    """
    Heuristic gyro offset tracker.

    Deterministic for a given input sequence and configuration; never blocks.

    Attributes:
        sample_rate (float): Fixed sampling frequency in Hz.
        config (FilterConfig): Thresholds and window sizes.
        updates (int): Number of accepted stillness windows.
    """

    def __init__(self, sample_rate: float, config: Optional[FilterConfig] = None):
        if not sample_rate > 0:
            raise ValueError(f"sample_rate must be positive, got {sample_rate}")
        self.sample_rate = float(sample_rate)
        self.config = validate_config(config or FilterConfig())
        self._scale = DEG_TO_RAD if self.config.gyro_unit == 'deg/s' else 1.0

        self.rate_window = RateBuffer.from_duration(
            self.sample_rate, self.config.bias_window_seconds, dim=3)
        self.magnitude_window = RateBuffer.from_duration(
            self.sample_rate, self.config.bias_window_seconds, dim=1)

        self._offset = np.zeros(3)  # per-sample rad
        self._history = deque(maxlen=self.config.bias_history_size)
        self.updates = 0

    @property
    def bias(self) -> np.ndarray:
        """Current offset in rad/s."""
        return self._offset * self.sample_rate

    @property
    def history_len(self) -> int:
        return len(self._history)

    def correct(self, gyro) -> np.ndarray:
        """
        Bias-corrected rotation for a raw gyro reading, without recording it.

        Args:
            gyro: [gx, gy, gz] in the configured gyro unit (per second).

        Returns:
            Rotation for this sample (rad per sample).
        """
        gyro = np.asarray(gyro, dtype=float)
        return gyro * self._scale / self.sample_rate - self._offset

    def observe(self, rate, accel) -> None:
        """
        Record a corrected rate from correct() and its accelerometer reading.

        Scores both windows when the rate window overflows.
        """
        self.magnitude_window.push(np.linalg.norm(np.asarray(accel, dtype=float)))
        if self.rate_window.push(rate) is not None:
            self._check_stillness()

    def update(self, gyro, accel) -> np.ndarray:
        """
        Consume one raw sample: correct() followed by observe().

        Args:
            gyro: [gx, gy, gz] in the configured gyro unit (per second).
            accel: [ax, ay, az] in native gravity units.

        Returns:
            Bias-corrected rotation for this sample (rad per sample).
        """
        rate = self.correct(gyro)
        self.observe(rate, accel)
        return rate.copy()

    def _check_stillness(self) -> None:
        a_move = float(self.magnitude_window.mean_absolute_deviation().sum())
        g_move = float(self.rate_window.absolute_sum().sum())

        if a_move < self.config.accel_move_threshold and g_move < self.config.gyro_move_threshold:
            self._history.append(self._offset + self.rate_window.mean())
            self._offset = np.mean(self._history, axis=0)
            self.rate_window.clear()
            self.updates += 1
            logger.info("Gyro offset updated: %s rad/s",
                        np.array2string(self.bias, precision=5))

    def set_bias(self, bias=None) -> None:
        """
        Reset the offset and drop the accepted-offset history.

        Args:
            bias: Explicit bias [bx, by, bz] in rad/s. When omitted, the mean
                corrected rate currently in the window is folded into the
                existing offset (a one-shot "zero the gyro now").
        """
        if bias is None:
            if len(self.rate_window):
                self._offset = self._offset + self.rate_window.mean()
        else:
            bias = np.asarray(bias, dtype=float).reshape(3)
            self._offset = bias / self.sample_rate

        self.rate_window.clear()
        self._history.clear()
        logger.info("*** SET GYRO OFFSET *** : %s rad/s",
                    np.array2string(self.bias, precision=5))

    def statistics(self) -> BiasStatistics:
        if len(self.rate_window):
            mean_rate = self.rate_window.mean() * self.sample_rate
        else:
            mean_rate = None
        if len(self.magnitude_window):
            a_move = float(self.magnitude_window.mean_absolute_deviation().sum())
        else:
            a_move = 0.0
        return BiasStatistics(
            bias=self.bias,
            mean_rate=mean_rate,
            a_move=a_move,
            g_move=float(self.rate_window.absolute_sum().sum()),
            window_fill=len(self.rate_window),
            window_capacity=self.rate_window.capacity,
            history_len=len(self._history),
            updates=self.updates,
        )
