"""
Pure numpy quaternion and vector operations for attitude estimation.

Convention: q = [w, x, y, z] = [q0, q1, q2, q3]
Right-handed coordinate system, Hamilton product convention.

Zero-length or non-finite inputs raise DegenerateInputError rather than
producing NaN.

References:
    Sola, J. (2017). "Quaternion kinematics for the error-state Kalman filter"
    arXiv:1711.02508
"""

import numpy as np
from typing import Union

from .errors import DegenerateInputError

Array = Union[np.ndarray, list, tuple]

IDENTITY = np.array([1.0, 0.0, 0.0, 0.0])

NORM_EPS = 1e-12


def quat_multiply(q1: Array, q2: Array) -> np.ndarray:
    """Hamilton product of two quaternions (q1 applied after q2)."""
    w1, x1, y1, z1 = q1
    w2, x2, y2, z2 = q2
    return np.array([
        w1*w2 - x1*x2 - y1*y2 - z1*z2,
        w1*x2 + x1*w2 + y1*z2 - z1*y2,
        w1*y2 - x1*z2 + y1*w2 + z1*x2,
        w1*z2 + x1*y2 - y1*x2 + z1*w2
    ])


def quat_conjugate(q: Array) -> np.ndarray:
    """Quaternion conjugate (inverse for unit quaternion)."""
    return np.array([q[0], -q[1], -q[2], -q[3]], dtype=float)


def quat_norm(q: Array) -> float:
    return float(np.linalg.norm(q))


def quat_normalize(q: Array) -> np.ndarray:
    """
    Normalize quaternion to unit length.

    Raises:
        DegenerateInputError: If the norm is zero or not finite.
    """
    q = np.asarray(q, dtype=float)
    norm = np.linalg.norm(q)
    if not np.isfinite(norm) or norm < NORM_EPS:
        raise DegenerateInputError(f"cannot normalize quaternion with norm {norm!r}")
    return q / norm


def vec_normalize(v: Array) -> np.ndarray:
    """Normalize a 3-vector; same failure rule as quat_normalize."""
    v = np.asarray(v, dtype=float)
    norm = np.linalg.norm(v)
    if not np.isfinite(norm) or norm < NORM_EPS:
        raise DegenerateInputError(f"cannot normalize vector with norm {norm!r}")
    return v / norm


def quat_rotate_vector(q: Array, v: Array) -> np.ndarray:
    """Rotate vector v by quaternion q: q * [0, v] * conj(q)."""
    q_v = np.array([0.0, v[0], v[1], v[2]])
    return quat_multiply(quat_multiply(q, q_v), quat_conjugate(q))[1:]


def quat_from_axis_angle(axis: Array, angle: float) -> np.ndarray:
    """Create quaternion from axis-angle representation."""
    axis = vec_normalize(axis)
    s = np.sin(angle / 2)
    return np.array([np.cos(angle / 2), axis[0]*s, axis[1]*s, axis[2]*s])


def quat_derivative(q: Array, gyro: Array) -> np.ndarray:
    """
    Compute quaternion rate of change from angular velocity.

    dq = 0.5 * q * [0, wx, wy, wz]

    With gyro already expressed as rotation per sample, adding the result to
    q is one explicit Euler step.
    """
    omega_quat = np.array([0.0, gyro[0], gyro[1], gyro[2]])
    return 0.5 * quat_multiply(q, omega_quat)


def quat_to_euler(q: Array) -> np.ndarray:
    """
    Convert quaternion to Euler angles (roll, pitch, yaw).

    Returns angles in radians, rotation order Z->Y->X. Pitch is clipped so
    that gimbal lock (pitch = +-90 deg) still yields a finite angle, although
    roll and yaw are not separable there.
    """
    w, x, y, z = q

    # Roll (x-axis rotation)
    sinr_cosp = 2 * (w * x + y * z)
    cosr_cosp = 1 - 2 * (x * x + y * y)
    roll = np.arctan2(sinr_cosp, cosr_cosp)

    # Pitch (y-axis rotation)
    sinp = 2 * (w * y - z * x)
    sinp = np.clip(sinp, -1.0, 1.0)
    pitch = np.arcsin(sinp)

    # Yaw (z-axis rotation)
    siny_cosp = 2 * (w * z + x * y)
    cosy_cosp = 1 - 2 * (y * y + z * z)
    yaw = np.arctan2(siny_cosp, cosy_cosp)

    return np.array([roll, pitch, yaw])


def euler_to_quat(roll: float, pitch: float, yaw: float) -> np.ndarray:
    """Convert Euler angles (radians, Z->Y->X) to quaternion."""
    cr, sr = np.cos(roll/2), np.sin(roll/2)
    cp, sp = np.cos(pitch/2), np.sin(pitch/2)
    cy, sy = np.cos(yaw/2), np.sin(yaw/2)

    return np.array([
        cr * cp * cy + sr * sp * sy,
        sr * cp * cy - cr * sp * sy,
        cr * sp * cy + sr * cp * sy,
        cr * cp * sy - sr * sp * cy
    ])
