"""Tests for GyroBiasEstimator stillness detection and bias tracking."""

import pytest
import numpy as np

from ahrslib.bias import GyroBiasEstimator
from ahrslib.config import FilterConfig


def _feed(est, gyro, acc):
    for g, a in zip(gyro, acc):
        est.update(g, a)


class TestCorrection:
    def test_rate_scaled_per_sample(self):
        est = GyroBiasEstimator(100.0)
        rate = est.update([1.0, -2.0, 0.5], [0, 0, 1])
        assert np.allclose(rate, [0.01, -0.02, 0.005])

    def test_degrees_converted(self):
        est = GyroBiasEstimator(100.0, FilterConfig(gyro_unit='deg/s'))
        rate = est.update([180.0, 0, 0], [0, 0, 1])
        assert np.allclose(rate, [np.pi / 100.0, 0, 0])

    def test_correct_does_not_record(self):
        est = GyroBiasEstimator(100.0)
        rate = est.correct([1.0, 0, 0])
        assert np.allclose(rate, [0.01, 0, 0])
        assert len(est.rate_window) == 0
        assert len(est.magnitude_window) == 0

    def test_observe_records_rate_and_magnitude(self):
        est = GyroBiasEstimator(100.0)
        est.observe(est.correct([1.0, 0, 0]), [0, 3.0, 4.0])
        assert np.allclose(est.rate_window.latest, [0.01, 0, 0])
        assert np.allclose(est.magnitude_window.latest, [5.0])

    def test_invalid_sample_rate(self):
        with pytest.raises(ValueError):
            GyroBiasEstimator(0.0)


class TestStillnessDetection:
    def test_zero_rate_still_keeps_zero_bias(self):
        est = GyroBiasEstimator(100.0)
        n = 2000
        _feed(est, np.zeros((n, 3)), np.tile([0, 0, 1.0], (n, 1)))
        assert est.updates >= 1
        assert np.allclose(est.bias, 0, atol=1e-12)

    def test_bias_converges_when_still(self, still_imu_data):
        est = GyroBiasEstimator(still_imu_data['fs'])
        _feed(est, still_imu_data['gyro'], still_imu_data['acc'])
        assert est.updates >= 1
        assert np.allclose(est.bias, still_imu_data['bias'], atol=5e-4)

    def test_no_update_before_window_overflows(self):
        est = GyroBiasEstimator(100.0)
        n = est.rate_window.capacity
        _feed(est, np.zeros((n, 3)), np.tile([0, 0, 1.0], (n, 1)))
        assert est.updates == 0

    def test_rotation_blocks_update(self, moving_imu_data):
        est = GyroBiasEstimator(moving_imu_data['fs'])
        _feed(est, moving_imu_data['gyro'], moving_imu_data['acc'])
        assert est.updates == 0
        assert np.allclose(est.bias, 0)

    def test_acceleration_changes_block_update(self):
        est = GyroBiasEstimator(100.0)
        n = 1000
        acc = np.zeros((n, 3))
        acc[:, 2] = np.where(np.arange(n) % 2, 1.0, 1.5)
        _feed(est, np.zeros((n, 3)), acc)
        assert est.updates == 0

    def test_thresholds_configurable(self, still_imu_data):
        config = FilterConfig(gyro_move_threshold=1e-9)
        est = GyroBiasEstimator(still_imu_data['fs'], config)
        _feed(est, still_imu_data['gyro'], still_imu_data['acc'])
        assert est.updates == 0

    def test_window_restarts_after_update(self):
        est = GyroBiasEstimator(100.0, FilterConfig(bias_window_seconds=0.1))
        n = est.rate_window.capacity + 1
        _feed(est, np.zeros((n, 3)), np.tile([0, 0, 1.0], (n, 1)))
        assert est.updates == 1
        assert len(est.rate_window) == 0
        assert est.magnitude_window.is_full

    def test_history_is_bounded(self):
        config = FilterConfig(bias_window_seconds=0.1, bias_history_size=3)
        est = GyroBiasEstimator(100.0, config)
        n = 100
        _feed(est, np.full((n, 3), 0.01), np.tile([0, 0, 1.0], (n, 1)))
        # one evaluation every capacity + 1 samples
        assert est.updates == n // (est.rate_window.capacity + 1)
        assert est.history_len == 3
        assert np.allclose(est.bias, 0.01)

    def test_degree_bias_reported_in_radians(self):
        config = FilterConfig(gyro_unit='deg/s', bias_window_seconds=0.1)
        est = GyroBiasEstimator(100.0, config)
        n = 50
        _feed(est, np.full((n, 3), 0.5), np.tile([0, 0, 1.0], (n, 1)))
        assert est.updates >= 1
        assert np.allclose(est.bias, np.radians(0.5))

    def test_deterministic(self, still_imu_data):
        a = GyroBiasEstimator(100.0)
        b = GyroBiasEstimator(100.0)
        _feed(a, still_imu_data['gyro'], still_imu_data['acc'])
        _feed(b, still_imu_data['gyro'], still_imu_data['acc'])
        assert np.array_equal(a.bias, b.bias)
        assert a.updates == b.updates


class TestSetBias:
    def test_explicit_bias(self):
        est = GyroBiasEstimator(100.0)
        est.set_bias([0.1, 0.2, 0.3])
        assert np.allclose(est.bias, [0.1, 0.2, 0.3])
        rate = est.update([0.1, 0.2, 0.3], [0, 0, 1])
        assert np.allclose(rate, 0)

    def test_explicit_bias_clears_history(self):
        est = GyroBiasEstimator(100.0, FilterConfig(bias_window_seconds=0.1))
        n = 30
        _feed(est, np.zeros((n, 3)), np.tile([0, 0, 1.0], (n, 1)))
        assert est.history_len > 0
        est.set_bias([0, 0, 0])
        assert est.history_len == 0
        assert len(est.rate_window) == 0

    def test_fold_window_mean(self):
        est = GyroBiasEstimator(100.0)
        n = 50
        _feed(est, np.tile([0.2, 0.0, -0.1], (n, 1)), np.tile([0, 0, 1.0], (n, 1)))
        est.set_bias()
        assert np.allclose(est.bias, [0.2, 0.0, -0.1])
        assert len(est.rate_window) == 0
        assert np.allclose(est.update([0.2, 0.0, -0.1], [0, 0, 1]), 0)

    def test_fold_with_empty_window_keeps_bias(self):
        est = GyroBiasEstimator(100.0)
        est.set_bias([0.05, 0, 0])
        est.set_bias()
        assert np.allclose(est.bias, [0.05, 0, 0])


class TestStatistics:
    def test_empty_statistics(self):
        stats = GyroBiasEstimator(100.0).statistics()
        assert stats.mean_rate is None
        assert stats.window_fill == 0
        assert stats.window_capacity == 750
        assert stats.a_move == 0.0
        assert stats.g_move == 0.0

    def test_statistics_after_samples(self):
        est = GyroBiasEstimator(100.0)
        for _ in range(10):
            est.update([0.3, 0, 0], [0, 0, 1])
        stats = est.statistics()
        assert np.allclose(stats.mean_rate, [0.3, 0, 0])
        assert np.isclose(stats.g_move, 10 * 0.003)
        assert stats.window_fill == 10
        assert stats.updates == 0
