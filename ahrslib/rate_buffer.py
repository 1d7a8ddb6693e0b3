"""
Fixed-capacity sliding window of vector samples.

Samples live in a preallocated numpy ring; the running sum and running
absolute sum are updated on every push/evict so mean() and absolute_sum()
are O(1). Both totals are recomputed from the stored samples once per full
wrap, which bounds the float error of incremental updates.
"""

from typing import Optional

import numpy as np

from .errors import EmptyBufferError


class RateBuffer:
    """
    FIFO window of the most recent `capacity` samples.

    Attributes:
        capacity (int): Maximum number of samples, fixed at construction.
        dim (int): Components per sample (3 for rates, 1 for magnitudes).
    """

    def __init__(self, capacity: int, dim: int = 3):
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")
        if dim < 1:
            raise ValueError(f"dim must be >= 1, got {dim}")
        self.capacity = int(capacity)
        self.dim = int(dim)

        self._data = np.zeros((self.capacity, self.dim))
        self._start = 0
        self._count = 0
        self._sum = np.zeros(self.dim)
        self._abs_sum = np.zeros(self.dim)

    @classmethod
    def from_duration(cls, sample_rate: float, seconds: float, dim: int = 3) -> 'RateBuffer':
        """Size the window to `seconds` of data at `sample_rate` Hz."""
        return cls(max(1, int(round(sample_rate * seconds))), dim=dim)

    def __len__(self) -> int:
        return self._count

    @property
    def is_full(self) -> bool:
        return self._count == self.capacity

    @property
    def latest(self) -> Optional[np.ndarray]:
        """Most recently pushed sample, or None when empty."""
        if self._count == 0:
            return None
        idx = (self._start + self._count - 1) % self.capacity
        return self._data[idx].copy()

    def push(self, sample) -> Optional[np.ndarray]:
        """
        Append a sample, evicting the oldest one when the window is full.

        Returns:
            The evicted sample, or None if nothing was evicted.
        """
        sample = np.asarray(sample, dtype=float).reshape(self.dim)

        if self._count < self.capacity:
            idx = (self._start + self._count) % self.capacity
            self._data[idx] = sample
            self._count += 1
            self._sum += sample
            self._abs_sum += np.abs(sample)
            return None

        evicted = self._data[self._start].copy()
        self._data[self._start] = sample
        self._start = (self._start + 1) % self.capacity
        self._sum += sample - evicted
        self._abs_sum += np.abs(sample) - np.abs(evicted)

        if self._start == 0:
            self._resync()
        return evicted

    def _resync(self) -> None:
        values = self.values()
        self._sum = values.sum(axis=0)
        self._abs_sum = np.abs(values).sum(axis=0)

    def values(self) -> np.ndarray:
        """Samples ordered oldest to newest, shape (len, dim)."""
        idx = (self._start + np.arange(self._count)) % self.capacity
        return self._data[idx]

    def clear(self) -> None:
        self._start = 0
        self._count = 0
        self._sum = np.zeros(self.dim)
        self._abs_sum = np.zeros(self.dim)

    def mean(self) -> np.ndarray:
        """Unweighted per-component mean of the window."""
        if self._count == 0:
            raise EmptyBufferError("mean of an empty window is undefined")
        return self._sum / self._count

    def mean_absolute_deviation(self) -> np.ndarray:
        """
        Accumulated absolute deviation from the mean, per component.

        This is sum(|x - mean|), not divided by the sample count; the
        stillness thresholds are tuned against the sum.
        """
        if self._count == 0:
            raise EmptyBufferError("deviation of an empty window is undefined")
        return np.abs(self.values() - self.mean()).sum(axis=0)

    def absolute_sum(self) -> np.ndarray:
        """Per-component sum(|x|) over the window (zeros when empty)."""
        return self._abs_sum.copy()
