"""
Steady interval analysis service.

This module runs the steady speed and course pipelines on a track and
packages the intervals as reporting tables, so that the API and scripts
share one analysis path.
"""

import logging
from typing import Any, Dict, Optional

import pandas as pd

from config.settings import SpeedConfig, CourseConfig, DEFAULT_MERGE
from core.gpx import load_gpx_file
from core.models.interval import intervals_to_dataframe
from core.models.params import SteadyParams
from core.pipeline import extract_steady_track

logger = logging.getLogger(__name__)


def default_speed_params() -> SteadyParams:
    """Steady-speed parameters built from SpeedConfig."""
    return SteadyParams(**SpeedConfig.as_dict())


def default_course_params() -> SteadyParams:
    """Steady-course parameters built from CourseConfig."""
    return SteadyParams(**CourseConfig.as_dict())


class SteadyAnalysisResult:
    """Container for steady interval analysis results."""

    def __init__(self,
                 track_data: pd.DataFrame,
                 metadata: Dict[str, Any],
                 speed_intervals: pd.DataFrame,
                 heading_intervals: pd.DataFrame,
                 combined_intervals: pd.DataFrame,
                 speed_params: SteadyParams,
                 course_params: SteadyParams,
                 filename: Optional[str] = None):
        self.track_data = track_data
        self.metadata = metadata
        self.speed_intervals = speed_intervals
        self.heading_intervals = heading_intervals
        self.combined_intervals = combined_intervals
        self.speed_params = speed_params
        self.course_params = course_params
        self.filename = filename

        self._calculate_summary_metrics()

    def _calculate_summary_metrics(self) -> None:
        """Calculate summary metrics from the interval tables."""
        self.point_count = len(self.track_data)
        self.duration_seconds = float(self.track_data['relative_time'].iloc[-1])

        def covered(table: pd.DataFrame) -> float:
            if table.empty:
                return 0.0
            return float(table['duration'].sum())

        self.steady_speed_seconds = covered(self.speed_intervals)
        self.steady_course_seconds = covered(self.heading_intervals)
        self.steady_combined_seconds = covered(self.combined_intervals)

    def summary(self) -> Dict[str, Any]:
        """Track level summary for reporting."""
        return {
            'filename': self.filename,
            'name': self.metadata.get('name'),
            'point_count': self.point_count,
            'duration_seconds': self.duration_seconds,
            'steady_speed_count': len(self.speed_intervals),
            'steady_course_count': len(self.heading_intervals),
            'steady_combined_count': len(self.combined_intervals),
            'steady_speed_seconds': self.steady_speed_seconds,
            'steady_course_seconds': self.steady_course_seconds,
            'steady_combined_seconds': self.steady_combined_seconds,
        }

    def to_dict(self) -> Dict[str, Any]:
        """Convert the result to JSON-friendly dictionaries."""
        return {
            'summary': self.summary(),
            'speed_intervals': self.speed_intervals.to_dict('records'),
            'heading_intervals': self.heading_intervals.to_dict('records'),
            'combined_intervals': self.combined_intervals.to_dict('records'),
            'parameters': {
                'speed': self.speed_params.to_dict(),
                'course': self.course_params.to_dict(),
            },
        }


def analyze_steady_track(track_data: pd.DataFrame,
                         metadata: Optional[Dict[str, Any]] = None,
                         filename: Optional[str] = None,
                         speed_params: Optional[SteadyParams] = None,
                         course_params: Optional[SteadyParams] = None,
                         merge: bool = DEFAULT_MERGE) -> SteadyAnalysisResult:
    """
    Find steady-speed, steady-course and combined intervals of a track.

    Args:
        track_data: Track DataFrame ('latitude', 'longitude', 'time')
        metadata: Track metadata from the GPX loader
        filename: Name of the analysed file
        speed_params: Speed parameters (defaults from SpeedConfig)
        course_params: Course parameters (defaults from CourseConfig)
        merge: Also merge statistically indistinguishable neighbours

    Returns:
        SteadyAnalysisResult

    Raises:
        ValidationError: If the track or the parameters are invalid
    """
    speed_params = speed_params or default_speed_params()
    course_params = course_params or default_course_params()

    logger.info(f"Analyzing steady intervals for {filename or 'track'} ({len(track_data)} points)")
    steady = extract_steady_track(track_data, speed_params, course_params, merge)

    # Combined intervals are reported with the speed values
    speed_table = intervals_to_dataframe(steady.speed_intervals, steady.times, steady.speeds)
    heading_table = intervals_to_dataframe(steady.heading_intervals, steady.times, steady.headings)
    combined_table = intervals_to_dataframe(steady.combined_intervals, steady.times, steady.speeds)

    prepared = pd.DataFrame({
        'relative_time': steady.times,
        'speed': steady.speeds,
        'heading': steady.headings,
    })

    return SteadyAnalysisResult(
        track_data=prepared,
        metadata=metadata or {},
        speed_intervals=speed_table,
        heading_intervals=heading_table,
        combined_intervals=combined_table,
        speed_params=speed_params,
        course_params=course_params,
        filename=filename
    )


def analyze_gpx_file(gpx_file, filename: Optional[str] = None,
                     speed_params: Optional[SteadyParams] = None,
                     course_params: Optional[SteadyParams] = None,
                     merge: bool = DEFAULT_MERGE) -> SteadyAnalysisResult:
    """Load a GPX file-like object and analyze it."""
    track_data, metadata = load_gpx_file(gpx_file)
    return analyze_steady_track(track_data, metadata, filename or metadata.get('name'),
                                speed_params, course_params, merge)
