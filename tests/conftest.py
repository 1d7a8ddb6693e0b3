"""Pytest configuration and fixtures."""

import pytest
import numpy as np
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))


@pytest.fixture
def still_imu_data():
    """Stationary IMU with a constant gyro bias, 20 seconds at 100Hz."""
    np.random.seed(42)
    n_samples = 2000
    true_bias = np.array([0.005, -0.003, 0.002])  # rad/s

    gyro = true_bias + np.random.randn(n_samples, 3) * 0.001

    # Gravity on z-axis, in g units
    acc = np.zeros((n_samples, 3))
    acc[:, 2] = 1.0
    acc += np.random.randn(n_samples, 3) * 0.0001

    return {'acc': acc, 'gyro': gyro, 'fs': 100.0, 'bias': true_bias}


@pytest.fixture
def moving_imu_data():
    """Continuously rotating IMU (never still), 10 seconds at 100Hz."""
    np.random.seed(7)
    n_samples = 1000
    t = np.arange(n_samples) / 100.0

    gyro = np.zeros((n_samples, 3))
    gyro[:, 0] = 0.8 * np.sin(2 * np.pi * 0.5 * t)
    gyro[:, 2] = 0.5

    acc = np.zeros((n_samples, 3))
    acc[:, 2] = 1.0
    acc += np.random.randn(n_samples, 3) * 0.05

    return {'acc': acc, 'gyro': gyro, 'fs': 100.0}


@pytest.fixture
def random_unit_quaternions():
    np.random.seed(0)
    q = np.random.randn(20, 4)
    return q / np.linalg.norm(q, axis=1, keepdims=True)
