"""Rolling per-tick log of filter inputs, intermediates and outputs."""

from collections import deque
from pathlib import Path
from typing import List, NamedTuple, Union

import numpy as np
import pandas as pd

HISTORY_HEADER = [
    "IMU Gx", "IMU Gy", "IMU Gz",
    "IMU Ax", "IMU Ay", "IMU Az",
    "Acc X", "Acc Y", "Acc Z",
    "Euler X", "Euler Y", "Euler Z",
    "Quat W", "Quat X", "Quat Y", "Quat Z",
    "qHome W", "qHome X", "qHome Y", "qHome Z",
    "qZero W", "qZero X", "qZero Y", "qZero Z",
]


class HistoryRecord(NamedTuple):
    """One tick of the log."""
    gyro: np.ndarray          # raw gyro reading
    accel: np.ndarray         # raw accel reading
    acceleration: np.ndarray  # acceleration in the reference frame
    euler: np.ndarray         # roll, pitch, yaw of home * q
    quaternion: np.ndarray    # internal orientation q
    home: np.ndarray
    zero: np.ndarray

    def as_row(self) -> List[float]:
        return [float(v) for part in self for v in part]


class HistoryLog:
    """
    FIFO log holding the last `seconds` of ticks.

    Attributes:
        size (int): Capacity in ticks, round(sample_rate * seconds).
    """

    def __init__(self, sample_rate: float, seconds: float = 100.0):
        self.size = max(1, int(round(sample_rate * seconds)))
        self._rows = deque(maxlen=self.size)

    def __len__(self) -> int:
        return len(self._rows)

    def append(self, record: HistoryRecord) -> None:
        row = record.as_row()
        if len(row) != len(HISTORY_HEADER):
            raise ValueError(f"history row has {len(row)} values, expected {len(HISTORY_HEADER)}")
        self._rows.append(row)

    def clear(self) -> None:
        self._rows.clear()

    def export(self) -> List[list]:
        """Header row followed by one row per retained tick, oldest first."""
        return [list(HISTORY_HEADER)] + [list(row) for row in self._rows]

    def to_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame(list(self._rows), columns=HISTORY_HEADER)

    def to_csv(self, path: Union[str, Path]) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        self.to_dataframe().to_csv(path, index=False)
        return path
