"""
Sieve partitioning of a series into optimal steady intervals.

Unlike the greedy scan, the sieve looks for the best window first: starting
with the widest admissible width it evaluates every position, keeps the
steady candidate with the smallest standard deviation, and then partitions the
regions to its left and right the same way. The result maximizes covered
length while keeping residual variance low.

The divide-and-conquer is driven by an explicit LIFO work stack instead of
recursion. Regions are processed left before right, so the output is in
position order and ties always resolve to the leftmost candidate.
"""

import logging
from typing import List, Optional, Sequence, Tuple, Union

from core import stats
from core.constants import SIEVE_MIN_ELEMENTS
from core.hypothesis import regression_horizontal, variance_within_reference
from core.models.interval import Interval, ReferenceVariance, TimeSeries
from core.models.params import SteadyParams, SPEED_PARAMS
from core.policies import SteadinessPolicy, resolve_policy, DEVIATION
from core.validation import ValidationError, validate_span

logger = logging.getLogger(__name__)


def _best_candidate(series: TimeSeries, start: int, end: int, width: int,
                    reference: ReferenceVariance, params: SteadyParams,
                    policy: SteadinessPolicy) -> Tuple[Optional[Interval], bool]:
    """
    Find the steady window of the given width with the smallest stdev.

    Returns:
        Tuple of (best interval or None, whether any position met the minimum span)
    """
    best = None
    stdev_min = float('inf')
    any_span = False

    for ii in range(start, end - width + 1):
        jj = ii + width
        if not policy.meets_min_span(series, ii, jj, params):
            continue

        any_span = True

        # Testing deviations
        if not policy.window_test(series, ii, jj, params):
            continue

        # Testing whether the variances are compatible (F-test)
        if not variance_within_reference(series.values, ii, jj, reference,
                                         params.steady_stdev, params.sieve_confidence):
            continue

        # Testing whether the regression line is horizontal
        if params.regression and not regression_horizontal(
                series.times, series.values, ii, jj, params.steady_range, params.confidence):
            continue

        dstdev = stats.stdev(series.values, ii, jj)
        if dstdev < stdev_min:
            stdev_min = dstdev
            best = Interval(ii, jj)

    return best, any_span


def sieve_series(series: TimeSeries, start: int, end: int, max_width: int,
                 reference: ReferenceVariance, params: SteadyParams,
                 policy: SteadinessPolicy) -> List[Interval]:
    """
    Partition [start, end) of a validated series into optimal steady intervals.

    Tasks on the stack are either a region (start, end, width) to sieve or an
    interval ready to be emitted.
    """
    spans: List[Interval] = []
    stack: List[Union[Tuple[int, int, int], Interval]] = [(start, end, max_width)]

    while stack:
        task = stack.pop()
        if isinstance(task, Interval):
            spans.append(task)
            continue

        region_start, region_end, width_budget = task
        width = min(region_end - region_start, width_budget)

        while width >= SIEVE_MIN_ELEMENTS:
            best, any_span = _best_candidate(series, region_start, region_end, width,
                                             reference, params, policy)

            if best is not None:
                # Right region last in, so the left region is processed first
                stack.append((best.end, region_end, width))
                stack.append(best)
                stack.append((region_start, best.start, width))
                break

            # No window of this width is long enough: narrower ones won't be either
            if not any_span:
                break

            width -= 1

    return spans


def sieve_partition(times: Sequence[float], values: Sequence[float],
                    start: int, end: int, max_width: int,
                    reference: ReferenceVariance,
                    params: SteadyParams = SPEED_PARAMS,
                    policy: Union[str, SteadinessPolicy] = DEVIATION) -> List[Interval]:
    """
    Find an optimal, non-overlapping cover of steady intervals within [start, end).

    Args:
        times: Times in seconds (strictly increasing)
        values: Observed values
        start: Inclusive lower index of the region
        end: Exclusive upper index of the region
        max_width: Widest candidate window in points (may be less than end - start)
        reference: Reference variance for the F-test
        params: Detection parameters
        policy: Policy instance or name ('deviation' or 'range')

    Returns:
        Start-sorted, disjoint list of steady intervals

    Raises:
        ValidationError: If the arrays, the region or the reference are invalid
    """
    series = TimeSeries.from_arrays(times, values, "Sieve input")
    validate_span(start, end, len(series), "Sieve region")
    if max_width < 0:
        raise ValidationError(f"Sieve width must be non-negative, got {max_width}")
    if reference.degrees_of_freedom < 1 or reference.variance < 0:
        raise ValidationError(f"Invalid reference variance: {reference}")

    policy = resolve_policy(policy)
    spans = sieve_series(series, start, end, max_width, reference, params, policy)

    logger.info(f"Sieve ({policy.name} policy) found {len(spans)} steady intervals "
                f"in [{start}, {end})")
    return spans
