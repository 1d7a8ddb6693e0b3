"""
Attitude filter: gyro integration with automatic bias and re-zero support.

Data flow per update tick:
    raw 6-axis sample
      -> GyroBiasEstimator.correct (unit scaling, offset removal)
      -> ReferenceFrameController   (lazy home/zero initialization)
      -> OrientationIntegrator      (rate rotated into the reference frame, Euler step)
      -> GyroBiasEstimator.observe  (stillness bookkeeping, accepted ticks only)
      -> acceleration rotated by home, zero and the new orientation
      -> HistoryLog                 (optional)

Usage:
    filt = AttitudeFilter(sample_rate=100.0)
    for gx, gy, gz, ax, ay, az in samples:
        filt.update(gx, gy, gz, ax, ay, az)
    q = filt.current_orientation()

    filt.reposition()   # current pose becomes level / zero on the next tick
"""

import logging
import threading
from dataclasses import dataclass
from typing import Optional, Tuple, Union

import numpy as np

from .bias import BiasStatistics, GyroBiasEstimator
from .config import FilterConfig, validate_config
from .errors import DegenerateInputError
from .history import HistoryLog, HistoryRecord
from .integrator import OrientationIntegrator
from .quaternion import IDENTITY, quat_multiply, quat_rotate_vector, quat_to_euler
from .reference import ReferenceFrameController

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FilterSnapshot:
    """Consistent copy of the filter state, safe to read from another thread."""
    ticks: int
    orientation: np.ndarray
    euler: np.ndarray
    acceleration: np.ndarray
    frame_ready: bool
    rejected_ticks: int
    bias_stats: BiasStatistics


class AttitudeFilter:
    """
    Six-axis attitude filter driven at a fixed sample rate.

    All mutation happens inside update(), reposition() and set_bias(), each
    under one lock; a diagnostics thread may call snapshot() concurrently.

    Attributes:
        sample_rate (float): Sampling frequency in Hz.
        config (FilterConfig): Tuning parameters.
        ticks (int): Accepted update calls.
        rejected_ticks (int): Update calls rejected as degenerate.
        last_error (DegenerateInputError | None): Most recent rejection.
    """

    def __init__(self,
                 sample_rate: float,
                 config: Optional[FilterConfig] = None,
                 history: bool = True):
        if not sample_rate > 0:
            raise ValueError(f"sample_rate must be positive, got {sample_rate}")
        self.sample_rate = float(sample_rate)
        self.config = validate_config(config or FilterConfig())

        self.estimator = GyroBiasEstimator(self.sample_rate, self.config)
        self.integrator = OrientationIntegrator()
        self.frame = ReferenceFrameController(self.config.up_axis)
        self.history_log = (HistoryLog(self.sample_rate, self.config.history_seconds)
                            if history else None)

        self._acceleration = np.array([0.0, 0.0, 1.0])
        self._lock = threading.Lock()

        self.ticks = 0
        self.rejected_ticks = 0
        self.last_error: Optional[DegenerateInputError] = None
        self._rejecting = False

    # ------------------------------------------------------------------
    # Update
    # ------------------------------------------------------------------

    def update(self, gx: float, gy: float, gz: float,
               ax: float, ay: float, az: float) -> None:
        """
        Fuse one raw sample.

        Gyro in the configured unit per second, accel in native gravity
        units. Degenerate input is rejected and the previous orientation and
        acceleration are kept; the filter stays callable every tick.
        """
        gyro = np.array([gx, gy, gz], dtype=float)
        accel = np.array([ax, ay, az], dtype=float)

        with self._lock:
            try:
                self._step(gyro, accel)
            except DegenerateInputError as e:
                self.rejected_ticks += 1
                self.last_error = e
                if not self._rejecting:
                    logger.warning("Rejected sample at tick %d: %s", self.ticks, e)
                else:
                    logger.debug("Rejected sample at tick %d: %s", self.ticks, e)
                self._rejecting = True
                return

            if self._rejecting:
                logger.info("Recovered after %d rejected samples", self.rejected_ticks)
            self._rejecting = False

    def _step(self, gyro: np.ndarray, accel: np.ndarray) -> None:
        if not (np.all(np.isfinite(gyro)) and np.all(np.isfinite(accel))):
            raise DegenerateInputError(f"non-finite reading gyro={gyro} accel={accel}")

        # The estimator records the sample only after the tick is accepted.
        rate = self.estimator.correct(gyro)
        initialized = self.frame.ensure_initialized(self.integrator.q, accel)
        try:
            accel_ref = self.frame.to_reference(accel)
            q = self.integrator.step(self.frame.to_reference(rate))
        except DegenerateInputError:
            if initialized:
                self.frame.clear()
            raise

        self.estimator.observe(rate, accel)
        self._acceleration = quat_rotate_vector(q, accel_ref)
        self.ticks += 1

        if self.history_log is not None:
            home = self.frame.home
            self.history_log.append(HistoryRecord(
                gyro=gyro,
                accel=accel,
                acceleration=self._acceleration,
                euler=quat_to_euler(quat_multiply(home, q)),
                quaternion=q,
                home=home,
                zero=self.frame.zero,
            ))

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def _zero_or_identity(self) -> np.ndarray:
        zero = self.frame.zero
        return IDENTITY.copy() if zero is None else zero

    def current_orientation(self) -> np.ndarray:
        """Orientation q * zero as [w, x, y, z]."""
        with self._lock:
            return quat_multiply(self.integrator.q, self._zero_or_identity())

    def current_euler_angles(self) -> np.ndarray:
        """[roll, pitch, yaw] in radians of zero * q (Z->Y->X)."""
        with self._lock:
            return quat_to_euler(quat_multiply(self._zero_or_identity(), self.integrator.q))

    def current_acceleration(self) -> np.ndarray:
        """Acceleration in the reference frame from the last accepted tick."""
        with self._lock:
            return self._acceleration.copy()

    @property
    def bias(self) -> np.ndarray:
        """Estimated gyro bias in rad/s."""
        with self._lock:
            return self.estimator.bias

    @property
    def home(self) -> Optional[np.ndarray]:
        with self._lock:
            return self.frame.home

    @property
    def zero(self) -> Optional[np.ndarray]:
        with self._lock:
            return self.frame.zero

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def reposition(self) -> None:
        """Re-level and re-zero using the next tick's gravity and pose."""
        with self._lock:
            self.frame.reposition()

    def set_bias(self, bias=None) -> None:
        """Set the gyro bias (rad/s), or fold in the current window mean when omitted."""
        with self._lock:
            self.estimator.set_bias(bias)

    def snapshot(self) -> FilterSnapshot:
        with self._lock:
            zero = self._zero_or_identity()
            q = self.integrator.q
            return FilterSnapshot(
                ticks=self.ticks,
                orientation=quat_multiply(q, zero),
                euler=quat_to_euler(quat_multiply(zero, q)),
                acceleration=self._acceleration.copy(),
                frame_ready=self.frame.is_ready,
                rejected_ticks=self.rejected_ticks,
                bias_stats=self.estimator.statistics(),
            )

    def history(self) -> list:
        """Exported history (header row first); empty list if logging is off."""
        with self._lock:
            if self.history_log is None:
                return []
            return self.history_log.export()


def process_trial(gyro_data: np.ndarray,
                  acc_data: np.ndarray,
                  sample_rate: float,
                  config: Optional[FilterConfig] = None,
                  output_format: str = 'quaternion',
                  return_bias: bool = False) -> Union[np.ndarray, Tuple[np.ndarray, np.ndarray]]:
    """
    Run a recorded trial through a fresh AttitudeFilter.

    Args:
        gyro_data: (T, 3) gyroscope in the configured unit.
        acc_data: (T, 3) accelerometer in native gravity units.
        sample_rate: Sampling frequency in Hz.
        config: Filter configuration.
        output_format: 'quaternion' (4D) or 'euler' (3D).
        return_bias: Also return the bias estimate after every tick.

    Returns:
        orientations: (T, 4) quaternions or (T, 3) Euler angles.
        bias: (T, 3) bias estimates in rad/s (if return_bias=True).
    """
    gyro_data = np.asarray(gyro_data, dtype=float)
    acc_data = np.asarray(acc_data, dtype=float)
    if len(gyro_data) != len(acc_data):
        raise ValueError(f"gyro_data ({len(gyro_data)}) and acc_data ({len(acc_data)}) "
                         "have different lengths")
    if output_format not in ('quaternion', 'euler'):
        raise ValueError(f"Invalid output format: {output_format}")

    T = len(gyro_data)
    filt = AttitudeFilter(sample_rate, config=config, history=False)
    orientations = np.zeros((T, 4 if output_format == 'quaternion' else 3))
    bias_estimates = np.zeros((T, 3))

    for t in range(T):
        filt.update(*gyro_data[t], *acc_data[t])
        if output_format == 'quaternion':
            orientations[t] = filt.current_orientation()
        else:
            orientations[t] = filt.current_euler_angles()
        bias_estimates[t] = filt.bias

    if return_bias:
        return orientations, bias_estimates
    return orientations
