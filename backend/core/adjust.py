"""
Adjustment of touching steady intervals.

Where one steady interval ends exactly where the next one begins, the shared
cut point is moved to the position that minimizes the combined residual sum
of squares, provided both sides stay steady and long enough.
"""

import logging
from dataclasses import replace
from typing import List, Optional, Sequence, Union

from core import stats
from core.hypothesis import regression_horizontal
from core.models.interval import Interval, TimeSeries
from core.models.params import SteadyParams, SPEED_PARAMS
from core.policies import SteadinessPolicy, resolve_policy, DEVIATION
from core.validation import validate_intervals

logger = logging.getLogger(__name__)


def _cut_score(series: TimeSeries, left_start: int, cut: int, right_end: int,
               params: SteadyParams, policy: SteadinessPolicy) -> Optional[float]:
    """
    Residual sum of squares of the two sides of a cut, or None if the cut is not admissible.
    """
    if not (policy.meets_min_span(series, left_start, cut, params)
            and policy.meets_min_span(series, cut, right_end, params)):
        return None

    # Both sides have to stay steady
    if not policy.window_test(series, left_start, cut, params):
        return None
    if not policy.window_test(series, cut, right_end, params):
        return None

    if params.regression:
        if not regression_horizontal(series.times, series.values, left_start, cut,
                                     params.steady_range, params.confidence):
            return None
        if not regression_horizontal(series.times, series.values, cut, right_end,
                                     params.steady_range, params.confidence):
            return None

    stdev_left = stats.stdev(series.values, left_start, cut)
    stdev_right = stats.stdev(series.values, cut, right_end)
    return (stdev_left * stdev_left * (cut - left_start - 1)
            + stdev_right * stdev_right * (right_end - cut - 1))


def best_cut(series: TimeSeries, left: Interval, right: Interval, params: SteadyParams,
             policy: SteadinessPolicy = DEVIATION) -> int:
    """
    Find the cut between two touching intervals with the minimal residual.

    The current cut wins unless another admissible cut is strictly better;
    among equally good candidates the leftmost wins.
    """
    best = left.end
    best_score = _cut_score(series, left.start, left.end, right.end, params, policy)
    if best_score is None:
        best_score = float('inf')

    for cut in range(left.start + 1, right.end):
        score = _cut_score(series, left.start, cut, right.end, params, policy)
        if score is not None and score < best_score:
            best_score = score
            best = cut

    return best


def adjust_series(series: TimeSeries, intervals: List[Interval], params: SteadyParams,
                  policy: SteadinessPolicy) -> List[Interval]:
    """
    Adjust touching intervals of a validated series in place.

    The list is treated as a sequence of cut points: moving a cut replaces
    both neighbours so that they keep sharing one boundary value.
    """
    moved = 0
    for ii in range(len(intervals) - 1):
        left = intervals[ii]
        right = intervals[ii + 1]

        # Treat only touching intervals
        if not left.touches(right):
            continue

        cut = best_cut(series, left, right, params, policy)
        if cut != left.end:
            logger.debug(f"Moved cut {left.end} -> {cut} between [{left.start}, {left.end}) "
                         f"and [{right.start}, {right.end})")
            intervals[ii] = replace(left, end=cut)
            intervals[ii + 1] = replace(right, start=cut)
            moved += 1

    logger.debug(f"Adjusted {moved} of {max(len(intervals) - 1, 0)} boundaries")
    return intervals


def adjust_touching_intervals(times: Sequence[float], values: Sequence[float],
                              intervals: List[Interval],
                              params: SteadyParams = SPEED_PARAMS,
                              policy: Union[str, SteadinessPolicy] = DEVIATION) -> List[Interval]:
    """
    Move the cut between each pair of touching intervals to minimize the residual.

    Args:
        times: Times in seconds (strictly increasing)
        values: Observed values
        intervals: Start-sorted, disjoint intervals; modified in place
        params: Detection parameters
        policy: Policy instance or name ('deviation' or 'range')

    Returns:
        The same list, with adjusted boundaries

    Raises:
        ValidationError: If the arrays or the intervals are invalid
    """
    series = TimeSeries.from_arrays(times, values, "Boundary adjustment input")
    validate_intervals(intervals, len(series), "Boundary adjustment intervals")

    if len(intervals) < 2:
        return intervals

    return adjust_series(series, intervals, params, resolve_policy(policy))
