"""
ahrslib: gyro/accelerometer attitude estimation with automatic gyro bias
calibration and a re-zeroable reference frame.

Usage:
    from ahrslib import AttitudeFilter

    filt = AttitudeFilter(sample_rate=100.0)
    filt.update(gx, gy, gz, ax, ay, az)
    q = filt.current_orientation()
    roll, pitch, yaw = filt.current_euler_angles()
"""

__version__ = "0.1.0"

from .bias import BiasStatistics, GyroBiasEstimator
from .config import (
    ConfigLoadError,
    ConfigValidationError,
    FilterConfig,
    load_config,
    save_config,
    validate_config,
)
from .diagnostics import DiagnosticsReporter
from .errors import DegenerateInputError, EmptyBufferError
from .filter import AttitudeFilter, FilterSnapshot, process_trial
from .history import HISTORY_HEADER, HistoryLog, HistoryRecord
from .integrator import OrientationIntegrator
from .quaternion import (
    quat_conjugate,
    quat_multiply,
    quat_normalize,
    quat_rotate_vector,
    quat_to_euler,
    euler_to_quat,
)
from .rate_buffer import RateBuffer
from .reference import ReferenceFrameController, reference_from_gravity

__all__ = [
    # Filter
    'AttitudeFilter',
    'FilterSnapshot',
    'process_trial',

    # Components
    'RateBuffer',
    'GyroBiasEstimator',
    'BiasStatistics',
    'OrientationIntegrator',
    'ReferenceFrameController',
    'reference_from_gravity',

    # Collaborators
    'HistoryLog',
    'HistoryRecord',
    'HISTORY_HEADER',
    'DiagnosticsReporter',

    # Configuration
    'FilterConfig',
    'load_config',
    'save_config',
    'validate_config',
    'ConfigLoadError',
    'ConfigValidationError',

    # Errors
    'DegenerateInputError',
    'EmptyBufferError',

    # Quaternion utilities
    'quat_multiply',
    'quat_conjugate',
    'quat_normalize',
    'quat_rotate_vector',
    'quat_to_euler',
    'euler_to_quat',
]
