"""
Input validation utilities for core functions.

This module provides validation functions that run before any computation
starts, so that bad input fails fast with a descriptive error instead of being
silently truncated or clamped.
"""

import pandas as pd
import numpy as np
import logging
from typing import Any, Iterable, Optional, Tuple
from pathlib import Path

from core.constants import MAX_MIN_ELAPSED_SECONDS, MIN_WINDOW_ELEMENTS

logger = logging.getLogger(__name__)


class ValidationError(Exception):
    """Custom exception for validation errors."""
    pass


def validate_series_arrays(times: Any, values: Any,
                           context: str = "Time series") -> Tuple[np.ndarray, np.ndarray]:
    """
    Validate a pair of time/value arrays.

    Args:
        times: Sequence of times in seconds (strictly increasing)
        values: Sequence of observed values, index-aligned with times
        context: Context description for error messages

    Returns:
        Tuple of (times, values) as float numpy arrays

    Raises:
        ValidationError: If validation fails
    """
    if times is None or values is None:
        raise ValidationError(f"{context}: times and values are required")

    try:
        times_arr = np.asarray(times, dtype=float)
        values_arr = np.asarray(values, dtype=float)
    except (ValueError, TypeError) as e:
        raise ValidationError(f"{context}: cannot convert input to float arrays") from e

    if times_arr.ndim != 1 or values_arr.ndim != 1:
        raise ValidationError(f"{context}: times and values must be one-dimensional")

    if len(times_arr) != len(values_arr):
        raise ValidationError(
            f"{context}: input arrays of different length "
            f"(times={len(times_arr)}, values={len(values_arr)})")

    if not np.isfinite(times_arr).all():
        invalid_count = (~np.isfinite(times_arr)).sum()
        raise ValidationError(f"{context}: {invalid_count} non-finite time values")

    if not np.isfinite(values_arr).all():
        invalid_count = (~np.isfinite(values_arr)).sum()
        raise ValidationError(f"{context}: {invalid_count} non-finite values")

    if len(times_arr) > 1 and not (np.diff(times_arr) > 0).all():
        invalid_count = (np.diff(times_arr) <= 0).sum()
        raise ValidationError(f"{context}: times must be strictly increasing "
                              f"({invalid_count} non-increasing steps)")

    logger.debug(f"{context}: Validation passed for {len(times_arr)} samples")
    return times_arr, values_arr


def validate_span(start: int, end: int, length: int, context: str = "Span") -> None:
    """
    Validate a half-open index span [start, end) against a series length.

    Raises:
        ValidationError: If the span is negative, reversed or out of range
    """
    if start < 0:
        raise ValidationError(f"{context}: 'start' index ({start}) is less than 0")

    if start > end:
        raise ValidationError(f"{context}: 'start' ({start}) is bigger than 'end' ({end})")

    if end > length:
        raise ValidationError(f"{context}: 'end' ({end}) exceeds series length ({length})")


def validate_intervals(intervals: Iterable[Any], length: int,
                       context: str = "Intervals") -> None:
    """
    Validate that intervals are in range, start-sorted and mutually disjoint.

    Args:
        intervals: Objects with 'start' and 'end' attributes
        length: Length of the series the intervals index into
        context: Context description for error messages

    Raises:
        ValidationError: If any interval is out of range or overlaps its predecessor
    """
    previous_end = 0
    for position, interval in enumerate(intervals):
        validate_span(interval.start, interval.end, length, f"{context}[{position}]")
        if interval.start < previous_end:
            raise ValidationError(
                f"{context}[{position}]: interval [{interval.start}, {interval.end}) "
                f"overlaps or precedes the previous interval (end={previous_end})")
        previous_end = interval.end


def validate_parameter_ranges(
    min_elapsed: Optional[float] = None,
    min_elements: Optional[int] = None,
    steady_range: Optional[float] = None,
    steady_stdev: Optional[float] = None,
    range_ceiling: Optional[float] = None,
    confidences: Optional[Iterable[float]] = None,
    shift_epsilon: Optional[float] = None
) -> None:
    """
    Validate parameter ranges for steady interval detection.

    Args:
        min_elapsed: Minimum elapsed time of a steady window in seconds
        min_elements: Minimum number of points of a steady window
        steady_range: Range below which a window is steady without testing
        steady_stdev: Standard deviation below which a window is steady without testing
        range_ceiling: Range at which a window is never steady
        confidences: Confidence levels used by the hypothesis tests
        shift_epsilon: Range below which slopes are not compared during a shift

    Raises:
        ValidationError: If any parameter is out of valid range
    """
    if min_elapsed is not None:
        if not 0 <= min_elapsed <= MAX_MIN_ELAPSED_SECONDS:
            raise ValidationError(
                f"Min elapsed time must be 0-{MAX_MIN_ELAPSED_SECONDS}s, got {min_elapsed}")

    if min_elements is not None:
        if min_elements < MIN_WINDOW_ELEMENTS:
            raise ValidationError(
                f"Min elements must be at least {MIN_WINDOW_ELEMENTS}, got {min_elements}")

    if steady_range is not None and steady_range < 0:
        raise ValidationError(f"Steady range must be non-negative, got {steady_range}")

    if steady_stdev is not None and steady_stdev < 0:
        raise ValidationError(f"Steady stdev must be non-negative, got {steady_stdev}")

    if range_ceiling is not None and range_ceiling <= 0:
        raise ValidationError(f"Range ceiling must be positive, got {range_ceiling}")

    if confidences is not None:
        for confidence in confidences:
            if not 0 < confidence < 1:
                raise ValidationError(f"Confidence must be in (0, 1), got {confidence}")

    if shift_epsilon is not None and shift_epsilon < 0:
        raise ValidationError(f"Shift epsilon must be non-negative, got {shift_epsilon}")


def validate_gpx_dataframe(df: pd.DataFrame, context: str = "GPX data") -> pd.DataFrame:
    """
    Validate a GPX DataFrame has required columns and valid data.

    Args:
        df: DataFrame to validate
        context: Context description for error messages

    Returns:
        Validated DataFrame

    Raises:
        ValidationError: If validation fails
    """
    if df is None:
        raise ValidationError(f"{context}: DataFrame is None")

    if df.empty:
        raise ValidationError(f"{context}: DataFrame is empty")

    required_columns = ['latitude', 'longitude', 'time']
    missing_columns = [col for col in required_columns if col not in df.columns]

    if missing_columns:
        raise ValidationError(f"{context}: Missing required columns: {missing_columns}")

    if not df['latitude'].between(-90, 90).all():
        invalid_count = (~df['latitude'].between(-90, 90)).sum()
        raise ValidationError(f"{context}: {invalid_count} invalid latitude values (must be -90 to 90)")

    if not df['longitude'].between(-180, 180).all():
        invalid_count = (~df['longitude'].between(-180, 180)).sum()
        raise ValidationError(f"{context}: {invalid_count} invalid longitude values (must be -180 to 180)")

    if df['time'].isna().any():
        nan_count = df['time'].isna().sum()
        raise ValidationError(f"{context}: {nan_count} track points without a timestamp")

    if len(df) < 2:
        raise ValidationError(f"{context}: Need at least 2 data points for analysis, got {len(df)}")

    logger.debug(f"{context}: Validation passed for {len(df)} data points")
    return df


def validate_file_upload(uploaded_file: Any) -> None:
    """
    Validate uploaded file before processing.

    Args:
        uploaded_file: File-like object

    Raises:
        ValidationError: If file validation fails
    """
    if uploaded_file is None:
        raise ValidationError("No file uploaded")

    # Check file size (10MB limit)
    max_size = 10 * 1024 * 1024
    if hasattr(uploaded_file, 'size') and uploaded_file.size > max_size:
        raise ValidationError(f"File too large: {uploaded_file.size / 1024 / 1024:.1f}MB (max 10MB)")

    name = getattr(uploaded_file, 'name', None)
    if isinstance(name, str):
        file_path = Path(name)
        if file_path.suffix.lower() != '.gpx':
            raise ValidationError(f"Invalid file type: {file_path.suffix} (expected .gpx)")

    logger.debug(f"File validation passed: {getattr(uploaded_file, 'name', 'unknown')}")
