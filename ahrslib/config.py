"""
Filter configuration: dataclass defaults plus YAML load/save with validation.

The stillness thresholds and window sizes are empirically tuned for one
sensor family; re-tune them for other hardware rather than assuming they
transfer.

Usage:
    from ahrslib.config import load_config

    config = load_config('config/default.yaml')
    filt = AttitudeFilter(sample_rate=100.0, config=config)
"""

from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Tuple, Union

import numpy as np
import yaml

GYRO_UNITS = ('rad/s', 'deg/s')


class ConfigLoadError(Exception):
    """Config file is missing or is not valid YAML."""


class ConfigValidationError(ValueError):
    """Config has unknown keys or out-of-range values."""


@dataclass
class FilterConfig:
    """
    Tunable parameters of the attitude filter.

    Fields:
        gyro_unit: Unit of raw gyro readings, 'rad/s' or 'deg/s'
        bias_window_seconds: Span of the stillness window
        accel_move_threshold: Max accumulated deviation of |a| for stillness
        gyro_move_threshold: Max accumulated |rate| (per-sample rad) for stillness
        bias_history_size: Accepted bias observations averaged into the bias
        history_seconds: Span of the history log
        diagnostics_interval: Period of the diagnostics report, seconds
        up_axis: Canonical "up" direction that gravity is aligned to
    """

    gyro_unit: str = 'rad/s'
    bias_window_seconds: float = 7.5
    accel_move_threshold: float = 0.3
    gyro_move_threshold: float = 0.2
    bias_history_size: int = 5
    history_seconds: float = 100.0
    diagnostics_interval: float = 2.0
    up_axis: Tuple[float, float, float] = field(default=(0.0, 0.0, 1.0))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'FilterConfig':
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigValidationError(f"Unknown config keys: {', '.join(unknown)}")
        values = dict(data)
        if 'up_axis' in values:
            values['up_axis'] = tuple(float(v) for v in values['up_axis'])
        config = cls(**values)
        validate_config(config)
        return config

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['up_axis'] = list(self.up_axis)
        return data


def validate_config(config: FilterConfig) -> FilterConfig:
    """Raise ConfigValidationError on the first invalid field."""
    if config.gyro_unit not in GYRO_UNITS:
        raise ConfigValidationError(
            f"gyro_unit must be one of {GYRO_UNITS}, got {config.gyro_unit!r}")

    positive = ('bias_window_seconds', 'accel_move_threshold', 'gyro_move_threshold',
                'history_seconds', 'diagnostics_interval')
    for name in positive:
        value = getattr(config, name)
        if not isinstance(value, (int, float)) or not value > 0:
            raise ConfigValidationError(f"{name} must be a positive number, got {value!r}")

    if not isinstance(config.bias_history_size, int) or config.bias_history_size < 1:
        raise ConfigValidationError(
            f"bias_history_size must be a positive integer, got {config.bias_history_size!r}")

    up = np.asarray(config.up_axis, dtype=float)
    if up.shape != (3,) or not np.all(np.isfinite(up)) or np.linalg.norm(up) < 1e-12:
        raise ConfigValidationError(f"up_axis must be a non-zero 3-vector, got {config.up_axis!r}")

    return config


def load_config(path: Union[str, Path]) -> FilterConfig:
    """
    Load a FilterConfig from YAML.

    The file may hold the fields at top level or under a `filter:` section.
    An empty file yields the defaults.
    """
    path = Path(path)
    try:
        with open(path, 'r') as f:
            data = yaml.safe_load(f)
    except FileNotFoundError as e:
        raise ConfigLoadError(f"Config file not found: {path}") from e
    except yaml.YAMLError as e:
        raise ConfigLoadError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return FilterConfig()
    if not isinstance(data, dict):
        raise ConfigLoadError(f"Expected a mapping in {path}, got {type(data).__name__}")
    if 'filter' in data:
        data = data['filter'] or {}
        if not isinstance(data, dict):
            raise ConfigLoadError(f"Expected a mapping under 'filter' in {path}")
    return FilterConfig.from_dict(data)


def save_config(config: FilterConfig, path: Union[str, Path]) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w') as f:
        yaml.dump({'filter': config.to_dict()}, f, default_flow_style=False, sort_keys=False)
