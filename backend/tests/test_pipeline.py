"""
Tests for the steady speed and course pipelines and the track provider.
"""

from datetime import datetime, timedelta

import numpy as np
import pandas as pd
import pytest

from core.calculations import calculate_bearing, calculate_distance, unwrap_degrees
from core.constants import METERS_PER_SECOND_TO_KNOTS
from core.models.interval import Interval, make_intervals, intervals_to_dataframe
from core.models.params import SPEED_PARAMS, COURSE_PARAMS, SteadyParams
from core.pipeline import extract_steady_speeds, extract_steady_headings, extract_steady_track
from core.track import prepare_track, relative_times, speeds, headings
from core.validation import ValidationError


PARAMS = SPEED_PARAMS.with_overrides(min_elapsed=300, steady_stdev=0.01)


def step_series():
    times = np.arange(35, dtype=float) * 100.0
    values = np.where(np.arange(35) < 18, 10.0, 20.0)
    return times, values


def make_track(speed=None, heading=None, n=35, step_seconds=100):
    base_time = datetime(2024, 6, 1, 12, 0, 0)
    data = {
        'latitude': np.full(n, 50.0),
        'longitude': np.full(n, -1.0),
        'time': [base_time + timedelta(seconds=step_seconds * i) for i in range(n)],
    }
    if speed is not None:
        data['speed'] = speed
    if heading is not None:
        data['heading'] = heading
    return pd.DataFrame(data)


class TestSteadySpeeds:
    """Tests for the steady-speed pipeline."""

    def test_step_scenario(self):
        times, values = step_series()
        assert extract_steady_speeds(times, values, PARAMS) == make_intervals([(0, 18), (18, 35)])

    def test_step_scenario_with_merge(self):
        """Merging does not join intervals with different speeds."""
        times, values = step_series()
        assert extract_steady_speeds(times, values, PARAMS, merge=True) == make_intervals([(0, 18), (18, 35)])

    def test_constant_speed(self):
        times = np.arange(30, dtype=float) * 60.0
        assert extract_steady_speeds(times, np.full(30, 6.0)) == [Interval(0, 30)]

    def test_output_is_sorted_and_disjoint(self):
        rng = np.random.default_rng(3)
        times = np.arange(300, dtype=float) * 10.0
        values = np.concatenate([
            8.0 + rng.normal(0, 0.1, 120),
            9.5 + rng.normal(0, 0.1, 100),
            7.0 + rng.normal(0, 0.1, 80),
        ])

        result = extract_steady_speeds(times, values)

        previous_end = 0
        for interval in result:
            assert previous_end <= interval.start < interval.end <= 300
            previous_end = interval.end

    def test_invalid_input(self):
        with pytest.raises(ValidationError):
            extract_steady_speeds([0.0, 1.0], [1.0, float('nan')])


class TestSteadyHeadings:
    """Tests for the steady-course pipeline."""

    def test_course_change(self):
        times = np.arange(40, dtype=float) * 30.0
        values = np.where(np.arange(40) < 20, 45.0, 135.0)

        result = extract_steady_headings(times, values, COURSE_PARAMS)

        assert result == make_intervals([(0, 20), (20, 40)])

    def test_constant_course(self):
        times = np.arange(20, dtype=float) * 30.0
        assert extract_steady_headings(times, np.full(20, 270.0)) == [Interval(0, 20)]


class TestTrackProvider:
    """Tests for deriving series from a track DataFrame."""

    def test_relative_times(self):
        track = make_track(n=4)
        assert list(relative_times(track)) == [0.0, 100.0, 200.0, 300.0]

    def test_recorded_speed_is_used(self):
        track = make_track(speed=[5.0, 5.5, 6.0], n=3)
        assert list(speeds(track)) == [5.0, 5.5, 6.0]

    def test_derived_speed(self):
        base_time = datetime(2024, 6, 1, 12, 0, 0)
        track = pd.DataFrame({
            'latitude': [0.0, 0.01, 0.02],
            'longitude': [0.0, 0.0, 0.0],
            'time': [base_time, base_time + timedelta(seconds=60), base_time + timedelta(seconds=120)],
        })
        expected = calculate_distance(0.0, 0.0, 0.01, 0.0) / 60.0 * METERS_PER_SECOND_TO_KNOTS

        result = speeds(track)

        assert len(result) == 3
        assert result[0] == pytest.approx(expected)
        assert result[1] == pytest.approx(expected)

    def test_derived_heading(self):
        base_time = datetime(2024, 6, 1, 12, 0, 0)
        track = pd.DataFrame({
            'latitude': [0.0, 0.0, 0.0],
            'longitude': [0.0, 0.01, 0.02],
            'time': [base_time, base_time + timedelta(seconds=60), base_time + timedelta(seconds=120)],
        })
        assert list(headings(track)) == pytest.approx([90.0, 90.0, 90.0])

    def test_heading_is_unwrapped_near_north(self):
        track = make_track(heading=[359.0, 1.0, 358.0, 2.0], n=4)
        assert list(headings(track)) == pytest.approx([359.0, 361.0, 358.0, 362.0])

    def test_repeated_timestamps_are_dropped(self):
        track = make_track(n=5)
        track.loc[2, 'time'] = track.loc[1, 'time']

        prepared = prepare_track(track)

        assert len(prepared) == 4
        assert prepared['time'].is_monotonic_increasing

    def test_missing_columns_are_rejected(self):
        with pytest.raises(ValidationError):
            prepare_track(pd.DataFrame({'latitude': [0.0, 1.0], 'longitude': [0.0, 1.0]}))

    def test_bearing(self):
        assert calculate_bearing(0.0, 0.0, 1.0, 0.0) == pytest.approx(0.0)
        assert calculate_bearing(0.0, 0.0, 0.0, 1.0) == pytest.approx(90.0)

    def test_unwrap_empty(self):
        assert len(unwrap_degrees([])) == 0


class TestSteadyTrack:
    """Tests for combined steady-speed and steady-course detection."""

    def test_combined_intervals(self):
        _, values = step_series()
        track = make_track(speed=values, heading=np.full(35, 90.0))

        result = extract_steady_track(track, speed_params=PARAMS)

        assert result.speed_intervals == make_intervals([(0, 18), (18, 35)])
        assert result.heading_intervals == [Interval(0, 35)]
        assert result.combined_intervals == make_intervals([(0, 18), (18, 35)])
        assert list(result.times[:3]) == [0.0, 100.0, 200.0]


class TestIntervalModels:
    """Tests for the interval records and reporting tables."""

    def test_invalid_intervals(self):
        with pytest.raises(ValidationError):
            Interval(5, 5)
        with pytest.raises(ValidationError):
            Interval(-1, 3)

    def test_touches(self):
        assert Interval(0, 5).touches(Interval(5, 9))
        assert not Interval(0, 5).touches(Interval(6, 9))

    def test_to_dict(self):
        assert Interval(3, 8).to_dict() == {'start_idx': 3, 'end_idx': 8}
        assert Interval(3, 8).length == 5

    def test_intervals_to_dataframe(self):
        times, values = step_series()
        intervals = make_intervals([(0, 18), (18, 35)])

        df = intervals_to_dataframe(intervals, times, values)

        assert list(df['mean']) == [10.0, 20.0]
        assert list(df['point_count']) == [18, 17]
        assert df.iloc[0]['duration'] == 1700.0

    def test_empty_dataframe(self):
        assert intervals_to_dataframe([], [0.0], [1.0]).empty


class TestSteadyParams:
    """Tests for the detection parameter set."""

    def test_with_overrides_ignores_none(self):
        params = SPEED_PARAMS.with_overrides(min_elapsed=120, steady_range=None)
        assert params.min_elapsed == 120
        assert params.steady_range == SPEED_PARAMS.steady_range

    def test_invalid_parameters(self):
        with pytest.raises(ValidationError):
            SteadyParams(steady_stdev=-0.1)
        with pytest.raises(ValidationError):
            SteadyParams(confidence=1.5)
        with pytest.raises(ValidationError):
            SPEED_PARAMS.with_overrides(min_elements=1)

    def test_to_dict(self):
        assert COURSE_PARAMS.to_dict()['steady_stdev'] == COURSE_PARAMS.steady_stdev
