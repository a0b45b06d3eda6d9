"""
Steady interval pipelines.

Fixed recipes that compose the scanner, the sieve, the boundary adjuster and
(optionally) the merger into steady-speed and steady-course detection.

Pipeline:
1. Greedy scan with the deviation policy
2. Reference variance from the scanned windows
3. If the scan found more than one window, rebuild the cover with the sieve
4. Adjust touching boundaries
5. Optionally merge neighbours (normally a no-op after the sieve)

For a whole track both pipelines run and their results are intersected into
intervals where speed and course are steady together.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

import numpy as np
import pandas as pd

from core import stats
from core import track
from core.adjust import adjust_series
from core.intersect import intersect_intervals
from core.merge import merge_series
from core.models.interval import Interval, ReferenceVariance, TimeSeries
from core.models.params import SteadyParams, SPEED_PARAMS, COURSE_PARAMS
from core.policies import DEVIATION
from core.scanner import scan_series
from core.sieve import sieve_series

logger = logging.getLogger(__name__)


def _refine(series: TimeSeries, intervals: List[Interval], reference: ReferenceVariance,
            params: SteadyParams, merge: bool) -> List[Interval]:
    """Steps 3-5 shared by the speed and course pipelines."""
    if len(intervals) > 1:
        logger.info(f"Sieving {len(series)} samples against reference variance "
                    f"{reference.variance:.4g} ({reference.degrees_of_freedom} df)")
        intervals = sieve_series(series, 0, len(series), len(series), reference, params, DEVIATION)

    # Adjust touching intervals (criterion: sum of squares of deviations = min)
    adjust_series(series, intervals, params, DEVIATION)

    if merge and intervals:
        intervals = merge_series(series, intervals, params, DEVIATION)

    return intervals


def extract_steady_speeds(times: Sequence[float], speeds: Sequence[float],
                          params: SteadyParams = SPEED_PARAMS,
                          merge: bool = False) -> List[Interval]:
    """
    Find steady-speed intervals.

    The reference variance for the sieve is the pooled variance of the scanned
    windows after isolating those with non-homogeneous variance (peaks, holes).

    Args:
        times: Relative times in seconds (strictly increasing)
        speeds: Speeds, index-aligned with times
        params: Detection parameters
        merge: Also merge statistically indistinguishable neighbours

    Returns:
        Start-sorted, disjoint list of steady-speed intervals

    Raises:
        ValidationError: If the arrays are invalid
    """
    series = TimeSeries.from_arrays(times, speeds, "Speed series")

    intervals = scan_series(series, params, DEVIATION)
    logger.info(f"Speed scan found {len(intervals)} steady windows")

    reference, dropped = stats.isolate_non_homogeneous(intervals, series.values, params.steady_stdev)
    if dropped:
        logger.info(f"Isolated {len(dropped)} speed windows with non-homogeneous variance")

    intervals = _refine(series, intervals, reference, params, merge)

    logger.info(f"Found {len(intervals)} steady-speed intervals")
    return intervals


def extract_steady_headings(times: Sequence[float], headings: Sequence[float],
                            params: SteadyParams = COURSE_PARAMS,
                            merge: bool = False) -> List[Interval]:
    """
    Find steady-course intervals.

    The reference variance for the sieve is the largest variance among the
    scanned windows, with its degrees of freedom.

    Args:
        times: Relative times in seconds (strictly increasing)
        headings: Headings in degrees (continuous, i.e. unwrapped), index-aligned with times
        params: Detection parameters
        merge: Also merge statistically indistinguishable neighbours

    Returns:
        Start-sorted, disjoint list of steady-course intervals

    Raises:
        ValidationError: If the arrays are invalid
    """
    series = TimeSeries.from_arrays(times, headings, "Heading series")

    intervals = scan_series(series, params, DEVIATION)
    logger.info(f"Course scan found {len(intervals)} steady windows")

    reference = stats.largest_variance(intervals, series.values, params.steady_stdev)
    intervals = _refine(series, intervals, reference, params, merge)

    logger.info(f"Found {len(intervals)} steady-course intervals")
    return intervals


@dataclass
class SteadyTrackIntervals:
    """Derived series of a track and the steady intervals found on them."""
    times: np.ndarray
    speeds: np.ndarray
    headings: np.ndarray
    speed_intervals: List[Interval]
    heading_intervals: List[Interval]
    combined_intervals: List[Interval]


def extract_steady_track(track_df: pd.DataFrame,
                         speed_params: Optional[SteadyParams] = None,
                         course_params: Optional[SteadyParams] = None,
                         merge: bool = False) -> SteadyTrackIntervals:
    """
    Find steady-speed, steady-course and combined intervals of a track.

    Args:
        track_df: DataFrame with 'latitude', 'longitude' and 'time' columns
            (optionally 'speed' in knots and 'heading' in degrees)
        speed_params: Speed detection parameters (defaults to SPEED_PARAMS)
        course_params: Course detection parameters (defaults to COURSE_PARAMS)
        merge: Also merge statistically indistinguishable neighbours

    Returns:
        SteadyTrackIntervals; interval indices refer to the prepared track
        (sorted, repeated timestamps removed)

    Raises:
        ValidationError: If the track is invalid
    """
    df = track.prepare_track(track_df)
    times = track.relative_times(df)
    speed_values = track.speeds(df)
    heading_values = track.headings(df)

    speed_intervals = extract_steady_speeds(times, speed_values, speed_params or SPEED_PARAMS, merge)
    heading_intervals = extract_steady_headings(times, heading_values, course_params or COURSE_PARAMS, merge)
    combined = intersect_intervals(speed_intervals, heading_intervals)

    logger.info(f"Track of {len(df)} points: {len(speed_intervals)} steady-speed, "
                f"{len(heading_intervals)} steady-course, {len(combined)} combined intervals")

    return SteadyTrackIntervals(
        times=times,
        speeds=speed_values,
        headings=heading_values,
        speed_intervals=speed_intervals,
        heading_intervals=heading_intervals,
        combined_intervals=combined
    )
