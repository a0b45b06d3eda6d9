"""
Steady interval data models.

This module defines the data structures shared by the steady interval
algorithms: the validated time series, the half-open index interval, and the
small value records produced by the statistics layer.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Sequence

import numpy as np
import pandas as pd

from core.validation import ValidationError, validate_series_arrays


@dataclass(frozen=True)
class TimeSeries:
    """
    Paired, index-aligned times and values.

    Times are seconds (strictly increasing); values are the observed course or
    speed. Build instances with `from_arrays` so the arrays are validated.
    """
    times: np.ndarray
    values: np.ndarray

    @classmethod
    def from_arrays(cls, times: Sequence[float], values: Sequence[float],
                    context: str = "Time series") -> "TimeSeries":
        """Validate the arrays and wrap them in a TimeSeries."""
        times_arr, values_arr = validate_series_arrays(times, values, context)
        return cls(times=times_arr, values=values_arr)

    def __len__(self) -> int:
        return len(self.times)

    def elapsed(self, start: int, end: int) -> float:
        """Elapsed time in seconds between the first and last point of [start, end)."""
        return float(self.times[end - 1] - self.times[start])


@dataclass(frozen=True, order=True)
class Interval:
    """
    A half-open index range [start, end) into a TimeSeries.

    Represents one steady run. Intervals are value records: algorithms that
    move a boundary replace the interval rather than mutate it.
    """
    start: int
    end: int

    def __post_init__(self):
        if self.start < 0:
            raise ValidationError(f"Interval start ({self.start}) is less than 0")
        if self.start >= self.end:
            raise ValidationError(
                f"Interval start ({self.start}) must be less than end ({self.end})")

    @property
    def length(self) -> int:
        """Number of points in the interval."""
        return self.end - self.start

    def touches(self, other: "Interval") -> bool:
        """True if this interval ends exactly where `other` starts."""
        return self.end == other.start

    def to_dict(self) -> Dict[str, Any]:
        return {'start_idx': self.start, 'end_idx': self.end}


@dataclass(frozen=True)
class RegressionResult:
    """Ordinary least squares fit over a span: slope and its standard error."""
    slope: float
    slope_stderr: float


@dataclass(frozen=True)
class ReferenceVariance:
    """Pooled variance baseline (with its degrees of freedom) for sieve F-tests."""
    degrees_of_freedom: int
    variance: float


def make_intervals(pairs: Sequence[Sequence[int]]) -> List[Interval]:
    """Build Interval objects from (start, end) pairs."""
    return [Interval(int(start), int(end)) for start, end in pairs]


def intervals_to_dataframe(intervals: Sequence[Interval],
                           times: Sequence[float],
                           values: Sequence[float]) -> pd.DataFrame:
    """
    Convert a list of intervals to a pandas DataFrame for reporting.

    Args:
        intervals: Steady intervals
        times: Series times in seconds
        values: Series values

    Returns:
        pandas DataFrame with one row per interval (empty if no intervals)
    """
    if not intervals:
        return pd.DataFrame()

    times = np.asarray(times, dtype=float)
    values = np.asarray(values, dtype=float)

    rows = []
    for interval in intervals:
        span = values[interval.start:interval.end]
        rows.append({
            'start_idx': interval.start,
            'end_idx': interval.end,
            'start_time': float(times[interval.start]),
            'end_time': float(times[interval.end - 1]),
            'duration': float(times[interval.end - 1] - times[interval.start]),
            'point_count': interval.length,
            'mean': float(np.mean(span)),
            'stdev': float(np.std(span, ddof=1)) if len(span) > 1 else 0.0,
            'min': float(np.min(span)),
            'max': float(np.max(span)),
        })

    return pd.DataFrame(rows)
