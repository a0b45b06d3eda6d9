"""
Local shift optimization of an accepted window.

A window [start, end) that was just accepted may be improved by sliding it one
point to the right: [start+1, end+1) is preferred if it is still steady, has a
strictly smaller standard deviation, and its regression line is not more
inclined than the original one.
"""

import logging

from core import stats
from core.hypothesis import regression_horizontal
from core.models.interval import TimeSeries
from core.models.params import SteadyParams
from core.policies import SteadinessPolicy, DEVIATION
from core.validation import validate_span

logger = logging.getLogger(__name__)


def shift_improves(series: TimeSeries, start: int, end: int, params: SteadyParams,
                   policy: SteadinessPolicy = DEVIATION) -> bool:
    """
    Return True if shifting [start, end) right by one point strictly improves it.

    Args:
        series: Validated time series
        start: Inclusive lower index of the accepted window
        end: Exclusive upper index of the accepted window
        params: Detection parameters
        policy: Steadiness policy whose window test the shifted window must pass

    Returns:
        True if the window should be shifted

    Raises:
        ValidationError: If the span is invalid
    """
    validate_span(start, end, len(series), "Shift window")

    # The shifted window has to exist
    if end >= len(series):
        return False

    start_new = start + 1
    end_new = end + 1

    # Next window is not proper if it doesn't pass the basic test
    if not policy.window_test(series, start_new, end_new, params):
        return False

    values = series.values
    stdev_old = stats.stdev(values, start, end)
    stdev_new = stats.stdev(values, start_new, end_new)
    if stdev_new >= stdev_old:
        return False

    if params.regression and stats.value_range(values, start_new, end_new) > params.shift_epsilon:
        inclined = not regression_horizontal(series.times, values, start_new, end_new,
                                             params.steady_range, params.shift_confidence)
        if inclined:
            slope_old = stats.regress(series.times, values, start, end).slope
            slope_new = stats.regress(series.times, values, start_new, end_new).slope
            if abs(slope_old) < abs(slope_new):
                return False

    return True


def count_beneficial_shifts(series: TimeSeries, start: int, end: int, params: SteadyParams,
                            policy: SteadinessPolicy = DEVIATION) -> int:
    """
    Count how many consecutive one-point shifts to the right each improve the window.

    Example: [5, 15) is steady, [5, 16) is not, [6, 16) is steady and has a
    smaller spread; the count is at least 1.
    """
    shifts = 0
    while shift_improves(series, start + shifts, end + shifts, params, policy):
        shifts += 1

    if shifts:
        logger.debug(f"Window [{start}, {end}) improves over {shifts} shift(s)")
    return shifts
