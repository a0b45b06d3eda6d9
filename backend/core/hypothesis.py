"""
Hypothesis tests for steady intervals.

Each test answers one question about a half-open span [start, end) of a
series: are its deviations from the mean, its range, or its regression slope
compatible with a constant value? Degenerate spans (near-zero variance or
slope standard error) are resolved in favour of "steady".
"""

import math
import logging

import numpy as np

from core import stats
from core.constants import DEFAULT_CONFIDENCE, SLOPE_STDERR_EPSILON, STDEV_EPSILON
from core.models.interval import ReferenceVariance

logger = logging.getLogger(__name__)


def _student_df(numelements: int) -> int:
    """n-2 degrees of freedom, falling back to n-1 (and never below 1) for tiny spans."""
    return max(numelements - 2 if numelements > 2 else numelements - 1, 1)


def deviations_within_limits(values: np.ndarray, start: int, end: int, noise_floor: float,
                             confidence: float = DEFAULT_CONFIDENCE) -> bool:
    """
    Test whether every deviation from the mean is within the allowed limits.

    The largest absolute deviation, scaled by the sample standard deviation and
    sqrt(n/(n-1)), is compared to the two-sided Student quantile.

    Args:
        values: Series values
        start: Inclusive lower index
        end: Exclusive upper index
        noise_floor: Spans with a standard deviation below this are steady
        confidence: Confidence level of the Student quantile

    Returns:
        True if the span can be considered steady
    """
    dstdev = stats.stdev(values, start, end)
    if dstdev < noise_floor or dstdev <= STDEV_EPSILON:
        return True

    numelements = end - start
    dmean = stats.mean(values, start, end)
    deviation = max(stats.maximum(values, start, end) - dmean, dmean - stats.minimum(values, start, end))
    dtest = deviation / dstdev * math.sqrt(numelements / (numelements - 1))

    return dtest <= stats.student_quantile(confidence, _student_df(numelements))


def range_within_limits(values: np.ndarray, start: int, end: int, noise_floor: float,
                        confidence: float = DEFAULT_CONFIDENCE) -> bool:
    """
    Test whether the range of a span is within the allowed limits.

    The statistic (max - min) / sqrt(stdev) is compared to the range quantile
    for the span's sample size.
    """
    dstdev = stats.stdev(values, start, end)
    if dstdev < noise_floor or dstdev <= STDEV_EPSILON:
        return True

    dtest = stats.value_range(values, start, end) / math.sqrt(dstdev)
    return dtest <= stats.range_quantile(confidence, end - start)


def regression_horizontal(times: np.ndarray, values: np.ndarray, start: int, end: int,
                          growth_floor: float, confidence: float = DEFAULT_CONFIDENCE) -> bool:
    """
    Test whether the regression line over a span can be considered horizontal.

    If the fitted line cannot grow more than max(growth_floor, stdev) across
    the span it is horizontal outright. Otherwise |slope / stderr| is compared
    to the two-sided Student quantile at n-2 degrees of freedom.

    Args:
        times: Series times
        values: Series values
        start: Inclusive lower index
        end: Exclusive upper index
        growth_floor: Growth across the span that is always acceptable
        confidence: Confidence level of the Student quantile

    Returns:
        True if the regression line can be considered horizontal
    """
    result = stats.regress(times, values, start, end)
    dstdev = stats.stdev(values, start, end)
    regression_growth = abs(result.slope * (times[end - 1] - times[start]))

    if regression_growth <= max(growth_floor, dstdev):
        return True

    if result.slope_stderr <= SLOPE_STDERR_EPSILON:
        return True

    dtest = abs(result.slope / result.slope_stderr)
    return dtest <= stats.student_quantile(confidence, _student_df(end - start))


def variance_within_reference(values: np.ndarray, start: int, end: int,
                              reference: ReferenceVariance, noise_floor: float,
                              confidence: float) -> bool:
    """
    F-test of the span's sample variance against a reference variance.

    Degrees of freedom are (n-1, reference df). A near-zero reference only
    accepts spans that are themselves below the noise floor.
    """
    dstdev = stats.stdev(values, start, end)
    if reference.variance <= STDEV_EPSILON:
        return dstdev < noise_floor or dstdev <= STDEV_EPSILON

    dtest = dstdev * dstdev / reference.variance
    return dtest <= stats.f_quantile(confidence, max(end - start - 1, 1),
                                     max(reference.degrees_of_freedom, 1))


def means_equal(values: np.ndarray, first_start: int, first_end: int,
                second_start: int, second_end: int, mean_floor: float,
                confidence: float = DEFAULT_CONFIDENCE) -> bool:
    """
    Two-sample test of equal means: |mean1 - mean2| / sqrt(stdev1^2 + stdev2^2).

    Compared to the Student quantile at n1+n2-2 degrees of freedom. When both
    spans are flat the means are equal iff they differ by at most mean_floor.
    """
    num1 = first_end - first_start
    num2 = second_end - second_start
    mean1 = stats.mean(values, first_start, first_end)
    mean2 = stats.mean(values, second_start, second_end)
    stdev1 = stats.stdev(values, first_start, first_end)
    stdev2 = stats.stdev(values, second_start, second_end)

    stdev_diff = math.sqrt(stdev1 * stdev1 + stdev2 * stdev2)
    if stdev_diff <= STDEV_EPSILON:
        return abs(mean1 - mean2) <= mean_floor

    dtest = abs(mean1 - mean2) / stdev_diff
    return dtest <= stats.student_quantile(confidence, max(num1 + num2 - 2, 1))


def variances_poolable(values: np.ndarray, first_start: int, first_end: int,
                       second_start: int, second_end: int,
                       confidence: float = DEFAULT_CONFIDENCE) -> bool:
    """
    F-test of the variance of the merged span [first_start, second_end)
    against the pooled variance of the two spans.
    """
    num1 = first_end - first_start
    num2 = second_end - second_start
    pooled_dof = num1 + num2 - 2
    if pooled_dof < 1:
        return True

    stdev1 = stats.stdev(values, first_start, first_end)
    stdev2 = stats.stdev(values, second_start, second_end)
    pooled = (stdev1 * stdev1 * (num1 - 1) + stdev2 * stdev2 * (num2 - 1)) / pooled_dof
    stdev_merged = stats.stdev(values, first_start, second_end)

    if pooled <= STDEV_EPSILON:
        return stdev_merged <= STDEV_EPSILON

    dtest = stdev_merged * stdev_merged / pooled
    num_merged = second_end - first_start
    return dtest <= stats.f_quantile(confidence, max(num_merged - 1, 1), pooled_dof)
