"""Quaternion propagation of per-sample angular rate."""

import numpy as np

from .quaternion import IDENTITY, quat_derivative, quat_normalize


class OrientationIntegrator:
    """
    First-order (explicit Euler) quaternion integrator.

    The rate passed to step() is a rotation per sample, so the step size is
    one tick and q_new = normalize(q + 0.5 * q * [0, w]). Renormalizing on
    every step keeps |q| = 1 under an unbounded stream of updates.

    Attributes:
        q (np.ndarray): Current orientation [w, x, y, z], relative to home.
    """

    def __init__(self):
        self.q = IDENTITY.copy()

    @property
    def orientation(self) -> np.ndarray:
        return self.q.copy()

    def step(self, rate) -> np.ndarray:
        """
        Advance one tick.

        Args:
            rate: [wx, wy, wz] rad per sample, already in the reference frame.

        Returns:
            Updated quaternion. On DegenerateInputError q is left unchanged.
        """
        self.q = quat_normalize(self.q + quat_derivative(self.q, rate))
        return self.q.copy()
