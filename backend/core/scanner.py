"""
Window scanner for steady intervals.

A forward scan with two cursors produces a greedy left-to-right cover of
steady windows. A window grows while it stays steady; when it stops being
steady the last steady window is checked for a horizontal regression line,
given the chance to slide right (local shift), and emitted.
"""

import logging
from typing import List, Sequence, Union

from core import stats
from core.hypothesis import regression_horizontal
from core.models.interval import Interval, TimeSeries
from core.models.params import SteadyParams, SPEED_PARAMS
from core.policies import SteadinessPolicy, resolve_policy, DEVIATION, RANGE
from core.shift import shift_improves

logger = logging.getLogger(__name__)


def window_is_steady(series: TimeSeries, start: int, end: int, params: SteadyParams,
                     policy: SteadinessPolicy) -> bool:
    """
    Evaluate one window.

    If the range reaches the hard ceiling it cannot be steady regardless of
    what the statistics say. If all values sit within the steady range, or the
    spread is below the steady stdev, no test is needed. Otherwise the policy's
    hypothesis test decides.
    """
    drange = stats.value_range(series.values, start, end)
    if params.range_ceiling is not None and drange >= params.range_ceiling:
        return False

    if drange <= params.steady_range or stats.stdev(series.values, start, end) <= params.steady_stdev:
        return True

    return policy.window_test(series, start, end, params)


def scan_series(series: TimeSeries, params: SteadyParams,
                policy: SteadinessPolicy) -> List[Interval]:
    """
    Scan a validated series and return the steady windows, left to right.

    Args:
        series: Validated time series
        params: Detection parameters
        policy: Steadiness policy (window size and test)

    Returns:
        Start-sorted, disjoint list of steady intervals
    """
    n = len(series)
    periods: List[Interval] = []

    start = 0
    end = policy.first_end(series, start, params)
    grown = False
    shifted = False

    while start < n - 1:
        # Not even the smallest window fits before the end of the series
        if end > n:
            break

        passed = window_is_steady(series, start, end, params, policy)

        if passed and end < n:
            end += 1
            grown = True
            shifted = False
            continue

        # No steady window at all from this start: move on
        if not grown:
            start += 1
            end = policy.first_end(series, start, params)
            continue

        # A shifted window was already tested, so it is kept even if it now fails
        accepted_end = end if passed or shifted else end - 1
        shifted = False

        # Shrink until the regression line is horizontal
        if params.regression:
            horizontal = regression_horizontal(series.times, series.values, start, accepted_end,
                                               params.steady_range, params.confidence)
            while not horizontal and policy.can_shrink(series, start, accepted_end, params):
                accepted_end -= 1
                horizontal = regression_horizontal(series.times, series.values, start, accepted_end,
                                                   params.steady_range, params.confidence)
            if not horizontal:
                start += 1
                end = policy.first_end(series, start, params)
                grown = False
                continue

        # A better window one point to the right: re-evaluate from there
        if shift_improves(series, start, accepted_end, params, policy):
            start += 1
            end = max(accepted_end + 1, policy.first_end(series, start, params))
            shifted = end == accepted_end + 1
            grown = shifted
            continue

        periods.append(Interval(start, accepted_end))
        logger.debug(f"Steady window [{start}, {accepted_end})")

        start = accepted_end
        end = policy.first_end(series, start, params)
        grown = False

    return periods


def scan(times: Sequence[float], values: Sequence[float],
         params: SteadyParams = SPEED_PARAMS,
         policy: Union[str, SteadinessPolicy] = DEVIATION) -> List[Interval]:
    """
    Find steady windows in a time series with the given policy.

    Args:
        times: Times in seconds (strictly increasing)
        values: Observed values (course or speed)
        params: Detection parameters
        policy: Policy instance or name ('deviation' or 'range')

    Returns:
        Start-sorted, disjoint list of steady intervals

    Raises:
        ValidationError: If the arrays are invalid
    """
    series = TimeSeries.from_arrays(times, values, "Window scan input")
    policy = resolve_policy(policy)

    periods = scan_series(series, params, policy)

    logger.info(f"Scan ({policy.name} policy) found {len(periods)} steady windows "
                f"in {len(series)} samples")
    return periods


def scan_deviations(times: Sequence[float], values: Sequence[float],
                    params: SteadyParams = SPEED_PARAMS) -> List[Interval]:
    """Scan with elapsed-time windows and the maximal-deviation test."""
    return scan(times, values, params, DEVIATION)


def scan_ranges(times: Sequence[float], values: Sequence[float],
                params: SteadyParams = SPEED_PARAMS) -> List[Interval]:
    """Scan with fixed element-count windows and the range test."""
    return scan(times, values, params, RANGE)
