"""
Track time series provider.

Turns a track DataFrame (one row per fix, with 'latitude', 'longitude' and
'time' columns, optionally 'speed' and 'heading') into the index-aligned
arrays the steady interval algorithms consume: relative times in seconds,
speeds in knots and continuous headings in degrees.
"""

import logging

import numpy as np
import pandas as pd

from core.calculations import (
    calculate_bearing, calculate_distance, meters_per_second_to_knots, unwrap_degrees
)
from core.validation import validate_gpx_dataframe

logger = logging.getLogger(__name__)


def prepare_track(track_df: pd.DataFrame) -> pd.DataFrame:
    """
    Validate a track and make its timestamps strictly increasing.

    Fixes are sorted by time and repeated timestamps are dropped (the first
    fix wins), so that no derived speed divides by a zero time step.

    Args:
        track_df: DataFrame with track data

    Returns:
        New DataFrame with a fresh index

    Raises:
        ValidationError: If the track is invalid or too short
    """
    df = validate_gpx_dataframe(track_df, "Track data")

    df = df.copy()
    df['time'] = pd.to_datetime(df['time'], utc=True)
    df = df.sort_values('time', kind='stable')

    before = len(df)
    df = df.drop_duplicates(subset='time', keep='first').reset_index(drop=True)
    if len(df) < before:
        logger.warning(f"Dropped {before - len(df)} track points with repeated timestamps")

    return validate_gpx_dataframe(df, "Track data")


def relative_times(track_df: pd.DataFrame) -> np.ndarray:
    """Seconds elapsed since the first fix."""
    times = pd.to_datetime(track_df['time'], utc=True)
    return (times - times.iloc[0]).dt.total_seconds().to_numpy(dtype=float)


def speeds(track_df: pd.DataFrame) -> np.ndarray:
    """
    Speed at each fix in knots.

    Uses the 'speed' column (knots) when the track carries one. Otherwise the
    speed of a fix is the geodesic distance from the previous fix divided by
    the time step; the first fix takes the speed of the first leg.
    """
    if 'speed' in track_df.columns and not track_df['speed'].isna().any():
        return track_df['speed'].to_numpy(dtype=float)

    times = relative_times(track_df)
    lats = track_df['latitude'].to_numpy(dtype=float)
    lons = track_df['longitude'].to_numpy(dtype=float)

    legs = np.empty(len(track_df) - 1)
    for i in range(1, len(track_df)):
        distance = calculate_distance(lats[i - 1], lons[i - 1], lats[i], lons[i])
        legs[i - 1] = meters_per_second_to_knots(distance / (times[i] - times[i - 1]))

    return np.concatenate(([legs[0]], legs))


def headings(track_df: pd.DataFrame) -> np.ndarray:
    """
    Heading at each fix in degrees, unwrapped across 0/360.

    Uses the 'heading' column when the track carries one. Otherwise the
    heading of a fix is the bearing from the previous fix; the first fix takes
    the bearing of the first leg.
    """
    if 'heading' in track_df.columns and not track_df['heading'].isna().any():
        return unwrap_degrees(track_df['heading'].to_numpy(dtype=float))

    lats = track_df['latitude'].to_numpy(dtype=float)
    lons = track_df['longitude'].to_numpy(dtype=float)

    bearings = np.array([
        calculate_bearing(lats[i - 1], lons[i - 1], lats[i], lons[i])
        for i in range(1, len(track_df))
    ])

    return unwrap_degrees(np.concatenate(([bearings[0]], bearings)))
