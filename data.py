"""
Sample buffers: WAV loading/saving and the DataSet helpers used to prepare
input for the filters and summarize their output.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Tuple

import numpy as np
from scipy.io import wavfile

logger = logging.getLogger(__name__)

MapFunc = Callable[[np.ndarray], np.ndarray]
ReduceFunc = Callable[[np.ndarray], float]


def map_value(value, start1, stop1, start2, stop2):
    """Linearly map ``value`` from [start1, stop1] onto [start2, stop2]."""
    return start2 + (stop2 - start2) * ((value - start1) / (stop1 - start1))


def mult(num: float) -> MapFunc:
    return lambda v: v * num


def div(denom: float) -> MapFunc:
    return lambda v: v / denom


def add(num: float) -> MapFunc:
    return lambda v: v + num


def sub(num: float) -> MapFunc:
    return add(-num)


def _min_reduce(data: np.ndarray) -> float:
    # NaN samples never compare below the running minimum
    data = data[~np.isnan(data)]
    return float(np.min(data)) if len(data) else float("inf")


def _max_reduce(data: np.ndarray) -> float:
    data = data[~np.isnan(data)]
    return float(np.max(data)) if len(data) else float("-inf")


def _sum_reduce(data: np.ndarray) -> float:
    return float(np.sum(data))


@dataclass(frozen=True, eq=False)
class DataSet:
    """
    An immutable 1D float64 sample buffer. Every transform returns a new DataSet.
    """

    values: np.ndarray

    def __post_init__(self):
        values = np.array(self.values, dtype=np.float64).reshape(-1)
        values.setflags(write=False)
        object.__setattr__(self, "values", values)

    def __len__(self) -> int:
        return len(self.values)

    def __iter__(self):
        return iter(self.values.tolist())

    def to_numpy(self) -> np.ndarray:
        return self.values.copy()

    def bounds(self) -> Tuple[float, float]:
        """(min, max); (inf, -inf) when empty."""
        return self.min(), self.max()

    def range(self) -> float:
        lo, hi = self.bounds()
        return hi - lo

    def derivative(self) -> DataSet:
        """First difference; the first sample has no predecessor and is 0."""
        deriv = np.zeros_like(self.values)
        deriv[1:] = np.diff(self.values)
        return DataSet(deriv)

    def map(self, start1, stop1, start2, stop2) -> DataSet:
        return DataSet(map_value(self.values, start1, stop1, start2, stop2))

    def map_range(self) -> DataSet:
        """Map onto [0, 1] relative to the data's own bounds."""
        lo, hi = map(np.float64, self.bounds())
        data_range = hi - lo
        # a constant buffer has no range and maps to NaN
        with np.errstate(divide="ignore", invalid="ignore"):
            return self.do(
                lambda v: map_value(
                    v / data_range, lo / data_range, hi / data_range, 0, 1
                )
            )

    def mult(self, num: float) -> DataSet:
        return self.do(mult(num))

    def div(self, denom: float) -> DataSet:
        return self.do(div(denom))

    def add(self, num: float) -> DataSet:
        return self.do(add(num))

    def sub(self, num: float) -> DataSet:
        return self.do(sub(num))

    def do(self, *fns: MapFunc) -> DataSet:
        """
        Apply ``fns`` in order to every sample. Each function receives the
        whole float64 array, so it must be written with numpy-safe arithmetic.
        """
        if not fns:
            logger.error("do() called without any functions")
            raise ValueError("do requires at least one function")
        values = self.values
        for fn in fns:
            values = fn(values)
        values = np.asarray(values, dtype=np.float64)
        return DataSet(np.broadcast_to(values, self.values.shape))

    def reduce(self, fn: ReduceFunc) -> float:
        return fn(self.values)

    def min(self) -> float:
        return self.reduce(_min_reduce)

    def max(self) -> float:
        return self.reduce(_max_reduce)

    def sum(self) -> float:
        return self.reduce(_sum_reduce)

    def mean(self) -> float:
        if len(self) == 0:
            return 0.0
        return self.sum() / len(self)

    def var(self) -> float:
        """Population variance, E[x^2] - E[x]^2."""
        if len(self) <= 1:
            return 0.0

        def _var(data: np.ndarray) -> float:
            n = len(data)
            mean = np.sum(data) / n
            return float(np.sum(data * data) / n - mean * mean)

        return self.reduce(_var)

    def stdev(self) -> float:
        return float(np.sqrt(self.var()))

    def sort(self) -> np.ndarray:
        return np.sort(self.values)

    def median(self) -> float:
        s = self.sort()
        if len(s) == 0:
            raise ValueError("median of an empty DataSet")
        half = len(s) // 2
        m = s[half]
        if len(s) % 2 == 0:
            m = (m + s[half - 1]) / 2
        return float(m)

    def peak_normalized(self) -> DataSet:
        """Scale so the largest absolute sample is 1.0. Silent buffers are returned unchanged."""
        peak = max(abs(self.min()), abs(self.max())) if len(self) else 0.0
        if peak == 0.0:
            logger.warning("Peak is zero, skipping normalization")
            return self
        return self.div(peak)


def load_wav_mono_normalized(filepath: str | Path) -> tuple[np.ndarray, int]:
    """Load a wav file, convert to mono if needed, and normalize to [-1.0, 1.0]."""
    sr, data = wavfile.read(filepath)
    # Normalize to [-1.0, 1.0] depending on dtype
    if data.dtype == np.int16:
        data = data.astype(np.float64) / 32768.0
    elif data.dtype == np.int32:
        data = data.astype(np.float64) / 2147483648.0
    elif data.dtype == np.uint8:
        data = (data.astype(np.float64) - 128) / 128.0
    else:
        data = data.astype(np.float64)
    if data.ndim > 1:
        data = data.mean(axis=1)  # Convert to mono
    logger.info(f"Loaded {filepath}: {len(data)} samples at {sr} Hz")
    return data, sr


def save_wav(filepath: str | Path, data, sample_rate: int) -> None:
    """Write mono float32 samples to ``filepath``."""
    wavfile.write(filepath, int(sample_rate), np.asarray(data, dtype=np.float32))
    logger.info(f"Wrote {filepath}")
