"""
Tests for the statistics library and the steadiness hypothesis tests.
"""

import math

import numpy as np
import pytest

from core import stats
from core.hypothesis import (
    deviations_within_limits,
    range_within_limits,
    regression_horizontal,
    variance_within_reference,
    means_equal,
    variances_poolable,
)
from core.models.interval import ReferenceVariance, make_intervals


def alternating(n, center=10.0, amplitude=1.0):
    """center +/- amplitude, starting with +."""
    return center + amplitude * np.array([1.0 if i % 2 == 0 else -1.0 for i in range(n)])


class TestSpanStatistics:
    """Tests for the span statistics helpers."""

    def test_mean_and_range(self):
        values = np.array([1.0, 2.0, 3.0, 10.0])
        assert stats.mean(values, 0, 3) == pytest.approx(2.0)
        assert stats.value_range(values, 0, 4) == pytest.approx(9.0)
        assert stats.maximum(values, 1, 3) == 3.0
        assert stats.minimum(values, 1, 3) == 2.0

    def test_stdev_is_sample_stdev(self):
        values = np.array([2.0, 4.0, 4.0, 4.0, 5.0, 5.0, 7.0, 9.0])
        assert stats.stdev(values, 0, 8) == pytest.approx(np.std(values, ddof=1))

    def test_stdev_of_single_point_is_zero(self):
        """A one-point span has no spread."""
        assert stats.stdev(np.array([3.0, 4.0]), 0, 1) == 0.0

    def test_regress_on_a_line(self):
        times = np.arange(10, dtype=float)
        values = 2.0 * times + 1.0 + np.array([0.01, -0.01] * 5)
        result = stats.regress(times, values, 0, 10)
        assert result.slope == pytest.approx(2.0, abs=0.01)
        assert result.slope_stderr >= 0.0

    def test_regress_short_span_is_flat(self):
        result = stats.regress(np.array([0.0, 1.0]), np.array([5.0, 7.0]), 0, 1)
        assert result.slope == 0.0
        assert result.slope_stderr == 0.0


class TestQuantiles:
    """Tests for the memoized distribution quantiles."""

    def test_student_quantile_two_sided(self):
        assert stats.student_quantile(0.95, 10) == pytest.approx(2.228, abs=1e-3)
        assert stats.student_quantile(0.99, 1) == pytest.approx(63.657, abs=1e-2)

    def test_student_quantile_rejects_zero_df(self):
        with pytest.raises(ValueError):
            stats.student_quantile(0.99, 0)

    def test_f_quantile(self):
        assert stats.f_quantile(0.95, 5, 10) == pytest.approx(3.326, abs=1e-3)

    def test_range_quantile_two_samples(self):
        """The range of two normals is sqrt(2)|Z|."""
        assert stats.range_quantile(0.99, 2) == pytest.approx(math.sqrt(2.0) * 2.5758, abs=1e-3)

    def test_range_quantile_matches_tables(self):
        # Tabulated upper 5% points of the range of n normal samples
        assert stats.range_quantile(0.95, 3) == pytest.approx(3.314, abs=5e-3)
        assert stats.range_quantile(0.95, 10) == pytest.approx(4.474, abs=5e-3)

    def test_range_quantile_grows_with_sample_size(self):
        assert stats.range_quantile(0.99, 5) < stats.range_quantile(0.99, 20)


class TestHomogeneity:
    """Tests for the reference variance estimators."""

    def test_outlier_interval_is_isolated(self):
        """A window with a much larger variance does not enter the reference."""
        values = np.concatenate([
            alternating(20, amplitude=1.0),
            alternating(20, amplitude=1.0),
            alternating(20, amplitude=1.0),
            alternating(20, amplitude=10.0),
        ])
        intervals = make_intervals([(0, 20), (20, 40), (40, 60), (60, 80)])

        reference, dropped = stats.isolate_non_homogeneous(intervals, values, 0.05)

        assert dropped == [3]
        assert reference.degrees_of_freedom == 57
        assert reference.variance == pytest.approx(20.0 / 19.0)

    def test_homogeneous_intervals_are_pooled(self):
        values = np.concatenate([alternating(20), alternating(20), alternating(20)])
        intervals = make_intervals([(0, 20), (20, 40), (40, 60)])

        reference, dropped = stats.isolate_non_homogeneous(intervals, values, 0.05)

        assert dropped == []
        assert reference.degrees_of_freedom == 57

    def test_flat_intervals_are_floored(self):
        values = np.full(20, 10.0)
        reference, _ = stats.isolate_non_homogeneous(make_intervals([(0, 10), (10, 20)]), values, 0.05)
        assert reference.variance == pytest.approx(0.05 ** 2)
        assert reference.degrees_of_freedom == 18

    def test_no_intervals_gives_floor(self):
        reference, dropped = stats.isolate_non_homogeneous([], np.array([1.0, 2.0]), 0.5)
        assert reference == ReferenceVariance(degrees_of_freedom=1, variance=0.25)
        assert dropped == []

    def test_largest_variance(self):
        values = np.concatenate([alternating(10, amplitude=1.0), alternating(6, amplitude=3.0)])
        reference = stats.largest_variance(make_intervals([(0, 10), (10, 16)]), values, 0.5)
        assert reference.degrees_of_freedom == 5
        assert reference.variance == pytest.approx(stats.stdev(values, 10, 16) ** 2)


class TestDeviationTest:
    """Tests for the maximal-deviation test."""

    def test_constant_span_is_steady(self):
        assert deviations_within_limits(np.full(10, 7.0), 0, 10, 0.0)

    def test_single_outlier_is_rejected(self):
        values = np.concatenate([np.full(30, 10.0), [20.0]])
        assert not deviations_within_limits(values, 0, 31, 0.05)

    def test_noise_floor_accepts_small_spread(self):
        values = np.array([10.0, 10.0, 10.0, 10.03])
        assert deviations_within_limits(values, 0, 4, 0.05)

    def test_regular_noise_is_steady(self):
        assert deviations_within_limits(alternating(20), 0, 20, 0.05)


class TestRangeTest:
    """Tests for the range statistic test."""

    def test_constant_span_is_steady(self):
        assert range_within_limits(np.full(8, 3.0), 0, 8, 0.0)

    def test_large_range_is_rejected(self):
        values = np.concatenate([np.full(30, 10.0), [60.0]])
        assert not range_within_limits(values, 0, 31, 0.05)


class TestRegressionTest:
    """Tests for the horizontal regression line test."""

    def test_flat_noise_is_horizontal(self):
        times = np.arange(20, dtype=float) * 10.0
        assert regression_horizontal(times, alternating(20, amplitude=0.1), 0, 20, 0.1)

    def test_trend_is_not_horizontal(self):
        times = np.arange(20, dtype=float)
        values = times + alternating(20, center=0.0, amplitude=0.1)
        assert not regression_horizontal(times, values, 0, 20, 0.1)

    def test_growth_below_floor_is_horizontal(self):
        times = np.arange(20, dtype=float)
        values = 0.001 * times + alternating(20, center=0.0, amplitude=0.0001)
        assert regression_horizontal(times, values, 0, 20, 0.1)


class TestComparisonTests:
    """Tests for the two-span and reference comparisons."""

    def test_equal_flat_means(self):
        values = np.full(20, 10.0)
        assert means_equal(values, 0, 10, 10, 20, 0.1)

    def test_different_flat_means(self):
        values = np.concatenate([np.full(10, 10.0), np.full(10, 20.0)])
        assert not means_equal(values, 0, 10, 10, 20, 0.1)

    def test_noisy_equal_means(self):
        values = alternating(40)
        assert means_equal(values, 0, 20, 20, 40, 0.1)

    def test_variances_poolable(self):
        values = alternating(40)
        assert variances_poolable(values, 0, 20, 20, 40)

    def test_variances_not_poolable_across_a_step(self):
        values = np.concatenate([alternating(20, center=10.0), alternating(20, center=30.0)])
        assert not variances_poolable(values, 0, 20, 20, 40)

    def test_variance_within_reference(self):
        reference = ReferenceVariance(degrees_of_freedom=100, variance=1.0)
        assert variance_within_reference(alternating(20, amplitude=0.5), 0, 20, reference, 0.05, 0.95)
        assert not variance_within_reference(alternating(20, amplitude=5.0), 0, 20, reference, 0.05, 0.95)

    def test_zero_reference_accepts_only_flat_spans(self):
        reference = ReferenceVariance(degrees_of_freedom=10, variance=0.0)
        assert variance_within_reference(np.full(10, 1.0), 0, 10, reference, 0.05, 0.95)
        assert not variance_within_reference(alternating(10), 0, 10, reference, 0.05, 0.95)
