"""
Merging of statistically indistinguishable neighbouring intervals.

Intervals are folded left to right into an open interval for as long as the
policy's merge test accepts the next one; the open interval is flushed when a
test fails and at the end of the list.
"""

import logging
from dataclasses import replace
from typing import List, Sequence, Union

from core.models.interval import Interval, TimeSeries
from core.models.params import SteadyParams, SPEED_PARAMS
from core.policies import SteadinessPolicy, resolve_policy, DEVIATION
from core.validation import ValidationError, validate_intervals

logger = logging.getLogger(__name__)


def merge_series(series: TimeSeries, intervals: Sequence[Interval], params: SteadyParams,
                 policy: SteadinessPolicy) -> List[Interval]:
    """Merge intervals of a validated series; returns a new list."""
    merged: List[Interval] = []

    out = intervals[0]
    for merging in intervals[1:]:
        if policy.merge_test(series, out, merging, params):
            out = replace(out, end=merging.end)
        else:
            merged.append(out)
            out = merging

    # Last open interval
    merged.append(out)
    return merged


def merge_intervals(times: Sequence[float], values: Sequence[float],
                    intervals: Sequence[Interval],
                    params: SteadyParams = SPEED_PARAMS,
                    policy: Union[str, SteadinessPolicy] = DEVIATION) -> List[Interval]:
    """
    Merge neighbouring intervals that can be considered the same steady run.

    Deviation policy: equal means (Student-t), poolable variances (F-test),
    and the merged span must itself pass the deviation and regression tests.
    Range policy: the merged span's range statistic must pass the quantile for
    the candidate's length.

    Args:
        times: Times in seconds (strictly increasing)
        values: Observed values
        intervals: Start-sorted, disjoint intervals (not modified)
        params: Detection parameters
        policy: Policy instance or name ('deviation' or 'range')

    Returns:
        New list of merged intervals

    Raises:
        ValidationError: If the list is empty or the input is invalid
    """
    if not intervals:
        raise ValidationError("Cannot merge an empty list of intervals")

    series = TimeSeries.from_arrays(times, values, "Merge input")
    validate_intervals(intervals, len(series), "Merge intervals")
    policy = resolve_policy(policy)

    merged = merge_series(series, intervals, params, policy)

    logger.info(f"Merge ({policy.name} policy): {len(intervals)} -> {len(merged)} intervals")
    return merged
