"""
Home / zero reference frames.

home captures the mounting tilt: the rotation taking the gravity direction
measured at initialization onto the canonical up axis. zero captures the
pose at the last re-center command, as the conjugate of the integrated
orientation at that instant. Both are None until the first valid gravity
reading after construction or reposition().
"""

import logging
from typing import Optional

import numpy as np

from .errors import DegenerateInputError
from .quaternion import (
    IDENTITY, quat_conjugate, quat_from_axis_angle, quat_rotate_vector, vec_normalize
)

logger = logging.getLogger(__name__)

PARALLEL_EPS = 1e-9


def _orthogonal_axis(v: np.ndarray) -> np.ndarray:
    """Basis vector least aligned with unit v, with its component along v removed."""
    basis = np.eye(3)[np.argmin(np.abs(v))]
    return vec_normalize(basis - np.dot(basis, v) * v)


def reference_from_gravity(accel, up=(0.0, 0.0, 1.0)) -> np.ndarray:
    """
    Minimal rotation mapping the measured gravity direction onto `up`.

    axis = normalize(accel x up), angle = acos(accel . up). When the vectors
    are parallel the result is identity; when anti-parallel the axis is
    undefined and a 180 deg turn about an axis orthogonal to `up` is used.

    Raises:
        DegenerateInputError: If accel or up has zero length.
    """
    measured = vec_normalize(accel)
    target = vec_normalize(up)

    cos_theta = float(np.clip(np.dot(measured, target), -1.0, 1.0))
    cross = np.cross(measured, target)

    if np.linalg.norm(cross) < PARALLEL_EPS:
        if cos_theta > 0:
            return IDENTITY.copy()
        return quat_from_axis_angle(_orthogonal_axis(target), np.pi)

    return quat_from_axis_angle(cross, np.arccos(cos_theta))


class ReferenceFrameController:
    """Owns the home and zero quaternions and their lazy initialization."""

    def __init__(self, up=(0.0, 0.0, 1.0)):
        self.up = vec_normalize(up)
        self._home: Optional[np.ndarray] = None
        self._zero: Optional[np.ndarray] = None

    @property
    def home(self) -> Optional[np.ndarray]:
        return None if self._home is None else self._home.copy()

    @property
    def zero(self) -> Optional[np.ndarray]:
        return None if self._zero is None else self._zero.copy()

    @property
    def is_ready(self) -> bool:
        return self._home is not None and self._zero is not None

    def ensure_initialized(self, orientation, accel) -> bool:
        """
        Compute home and zero if either is unset.

        Returns:
            True if the frames were (re)computed on this call.

        Raises:
            DegenerateInputError: If accel cannot define gravity; both frames
                stay unset and the next call retries.
        """
        if self.is_ready:
            return False

        home = reference_from_gravity(accel, self.up)
        self._home = home
        self._zero = quat_conjugate(orientation)
        logger.info("Reference frame set: home=%s zero=%s",
                    np.array2string(self._home, precision=5),
                    np.array2string(self._zero, precision=5))
        return True

    def clear(self) -> None:
        self._home = None
        self._zero = None

    def reposition(self) -> None:
        """Mark both frames unset; the next tick re-levels and re-zeros."""
        self.clear()
        logger.info("Reposition requested")

    def to_reference(self, v) -> np.ndarray:
        """Rotate a device-frame vector by home, then by zero."""
        if not self.is_ready:
            raise DegenerateInputError("reference frame is not initialized")
        v = quat_rotate_vector(self._home, v)
        return quat_rotate_vector(self._zero, v)
