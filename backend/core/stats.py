"""
Statistics library for steady interval detection.

Span statistics, ordinary least squares regression, quantiles of the Student,
F and range distributions, and isolation of non-homogeneous intervals. All span
functions take a half-open [start, end) range into the full array.
"""

import logging
import math
from functools import lru_cache
from typing import List, Sequence, Tuple

import numpy as np
from scipy import stats as scipy_stats
from scipy.integrate import quad
from scipy.optimize import brentq

from core.constants import DEFAULT_CONFIDENCE, RANGE_QUANTILE_BRACKET, RANGE_INTEGRATION_LIMIT
from core.models.interval import Interval, ReferenceVariance, RegressionResult

logger = logging.getLogger(__name__)


# =============================================================================
# SPAN STATISTICS
# =============================================================================

def mean(values: np.ndarray, start: int, end: int) -> float:
    return float(np.mean(values[start:end]))


def stdev(values: np.ndarray, start: int, end: int) -> float:
    """Sample standard deviation of [start, end); 0.0 for fewer than two points."""
    if end - start < 2:
        return 0.0
    return float(np.std(values[start:end], ddof=1))


def maximum(values: np.ndarray, start: int, end: int) -> float:
    return float(np.max(values[start:end]))


def minimum(values: np.ndarray, start: int, end: int) -> float:
    return float(np.min(values[start:end]))


def value_range(values: np.ndarray, start: int, end: int) -> float:
    """max - min over [start, end)."""
    span = values[start:end]
    return float(np.max(span) - np.min(span))


def regress(times: np.ndarray, values: np.ndarray, start: int, end: int) -> RegressionResult:
    """
    Fit values = a * times + b over [start, end).

    Returns:
        RegressionResult with the slope `a` and its standard error. A span with
        fewer than two points has a flat, exact fit.
    """
    if end - start < 2:
        return RegressionResult(slope=0.0, slope_stderr=0.0)

    fit = scipy_stats.linregress(times[start:end], values[start:end])
    slope_stderr = float(fit.stderr) if np.isfinite(fit.stderr) else 0.0
    return RegressionResult(slope=float(fit.slope), slope_stderr=slope_stderr)


# =============================================================================
# QUANTILES
# =============================================================================

@lru_cache(maxsize=4096)
def student_quantile(confidence: float, df: int) -> float:
    """Two-sided Student-t critical value at the given confidence."""
    if df < 1:
        raise ValueError(f"Student quantile needs at least 1 degree of freedom, got {df}")
    return float(scipy_stats.t.ppf((1.0 + confidence) / 2.0, df))


@lru_cache(maxsize=4096)
def f_quantile(confidence: float, df1: int, df2: int) -> float:
    """Upper critical value of the F distribution with (df1, df2) degrees of freedom."""
    if df1 < 1 or df2 < 1:
        raise ValueError(f"F quantile needs positive degrees of freedom, got ({df1}, {df2})")
    return float(scipy_stats.f.ppf(confidence, df1, df2))


def _range_cdf(w: float, n: int) -> float:
    """P(range of n standard normal samples <= w)."""
    def integrand(x: float) -> float:
        return scipy_stats.norm.pdf(x) * (scipy_stats.norm.cdf(x + w) - scipy_stats.norm.cdf(x)) ** (n - 1)

    integral, _ = quad(integrand, -RANGE_INTEGRATION_LIMIT, RANGE_INTEGRATION_LIMIT, limit=200)
    return n * integral


@lru_cache(maxsize=4096)
def range_quantile(confidence: float, n: int) -> float:
    """
    Upper critical value of the range of n standard normal samples.

    For n = 2 the range is |X1 - X2| = sqrt(2)|Z|, so the 99% value is 3.643;
    larger samples are found by inverting the integral form of the range CDF.
    """
    if n < 2:
        raise ValueError(f"Range quantile needs at least 2 samples, got {n}")
    if n == 2:
        return math.sqrt(2.0) * float(scipy_stats.norm.ppf((1.0 + confidence) / 2.0))

    low, high = RANGE_QUANTILE_BRACKET
    return float(brentq(lambda w: _range_cdf(w, n) - confidence, low, high, xtol=1.e-6))


# =============================================================================
# HOMOGENEITY OF VARIANCES
# =============================================================================

def isolate_non_homogeneous(intervals: Sequence[Interval],
                            values: np.ndarray,
                            noise_floor: float,
                            confidence: float = DEFAULT_CONFIDENCE
                            ) -> Tuple[ReferenceVariance, List[int]]:
    """
    Separate intervals whose variance is out of line with the rest.

    Peaks and holes in a record produce windows with non-homogeneous variance.
    The interval whose variance deviates most from the pooled variance of the
    others is dropped while a two-sided F-test rejects it; the pooled variance
    of what remains is returned as the reference for the sieve.

    Args:
        intervals: Steady windows from a scan
        values: Series values
        noise_floor: Variances are floored at noise_floor ** 2
        confidence: Confidence level of the two-sided F-test

    Returns:
        Tuple of (ReferenceVariance, indices of the dropped intervals)
    """
    floor_variance = noise_floor ** 2
    dofs = {}
    variances = {}
    for index, interval in enumerate(intervals):
        if interval.length < 2:
            continue
        dofs[index] = interval.length - 1
        variances[index] = max(stdev(values, interval.start, interval.end) ** 2, floor_variance)

    if not dofs:
        logger.warning("No interval long enough to estimate a reference variance")
        return ReferenceVariance(degrees_of_freedom=1, variance=floor_variance), []

    kept = list(dofs)
    dropped: List[int] = []
    tail = (1.0 + confidence) / 2.0

    while len(kept) > 2:
        worst_index = None
        worst_ratio = 1.0
        for index in kept:
            rest_dof = sum(dofs[i] for i in kept if i != index)
            rest_variance = sum(dofs[i] * variances[i] for i in kept if i != index) / rest_dof
            ratio = variances[index] / rest_variance
            if ratio >= 1.0:
                rejected = ratio > f_quantile(tail, dofs[index], rest_dof)
            else:
                rejected = 1.0 / ratio > f_quantile(tail, rest_dof, dofs[index])
            extremity = max(ratio, 1.0 / ratio)
            if rejected and extremity > worst_ratio:
                worst_ratio = extremity
                worst_index = index

        if worst_index is None:
            break

        kept.remove(worst_index)
        dropped.append(worst_index)
        logger.debug(f"Dropped non-homogeneous interval {worst_index} (variance ratio {worst_ratio:.2f})")

    total_dof = sum(dofs[i] for i in kept)
    pooled = sum(dofs[i] * variances[i] for i in kept) / total_dof

    logger.info(f"Reference variance {pooled:.4g} with {total_dof} degrees of freedom "
                f"({len(dropped)} of {len(intervals)} intervals isolated)")
    return ReferenceVariance(degrees_of_freedom=total_dof, variance=pooled), sorted(dropped)


def largest_variance(intervals: Sequence[Interval], values: np.ndarray,
                     noise_floor: float) -> ReferenceVariance:
    """
    Reference variance taken from the interval with the largest variance.

    Used for course data, where every scanned window is a legitimate
    steady course and the loosest one bounds what the sieve may accept.
    """
    best = ReferenceVariance(degrees_of_freedom=1, variance=noise_floor ** 2)
    for interval in intervals:
        variance = stdev(values, interval.start, interval.end) ** 2
        if variance > best.variance:
            best = ReferenceVariance(degrees_of_freedom=max(interval.length - 1, 1), variance=variance)
    return best
