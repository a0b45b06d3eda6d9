"""
Steadiness policies and their factory.

A policy decides what "steady" means for a window and how large a window has
to be before it is judged. Two policies are provided:

- 'deviation': windows span a minimum elapsed time and are judged by the
  largest deviation from the mean (Student-t).
- 'range': windows hold a minimum number of points and are judged by their
  range statistic.

Every algorithm takes a policy instead of being written once per variant.
"""

import logging
from abc import ABC, abstractmethod
from typing import Dict, Type

from core import stats
from core.hypothesis import (
    deviations_within_limits, range_within_limits, regression_horizontal,
    means_equal, variances_poolable
)
from core.models.interval import Interval, TimeSeries
from core.models.params import SteadyParams
from core.validation import ValidationError

logger = logging.getLogger(__name__)


class SteadinessPolicy(ABC):
    """Abstract base class for steadiness policies."""

    @abstractmethod
    def window_test(self, series: TimeSeries, start: int, end: int,
                    params: SteadyParams) -> bool:
        """Hypothesis test applied to a candidate window [start, end)."""
        pass

    @abstractmethod
    def meets_min_span(self, series: TimeSeries, start: int, end: int,
                       params: SteadyParams) -> bool:
        """True if [start, end) is large enough to be judged."""
        pass

    @abstractmethod
    def merge_test(self, series: TimeSeries, out: Interval, merging: Interval,
                   params: SteadyParams) -> bool:
        """True if `merging` can be folded into the open interval `out`."""
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        """Short name used by the factory."""
        pass

    @property
    @abstractmethod
    def description(self) -> str:
        """Description of the policy."""
        pass

    def first_end(self, series: TimeSeries, start: int, params: SteadyParams) -> int:
        """
        Smallest end such that [start, end) meets the minimum span.

        Returns len(series) + 1 if no such end exists.
        """
        end = start + 1
        while end <= len(series) and not self.meets_min_span(series, start, end, params):
            end += 1
        return end

    def can_shrink(self, series: TimeSeries, start: int, end: int,
                   params: SteadyParams) -> bool:
        """True if [start, end - 1) still meets the minimum span."""
        return end - 1 > start and self.meets_min_span(series, start, end - 1, params)


class DeviationPolicy(SteadinessPolicy):
    """
    Elapsed-time windows judged by the maximal deviation from the mean.

    This is the policy used by the speed and course pipelines.
    """

    def window_test(self, series: TimeSeries, start: int, end: int,
                    params: SteadyParams) -> bool:
        return deviations_within_limits(series.values, start, end,
                                        params.steady_stdev, params.confidence)

    def meets_min_span(self, series: TimeSeries, start: int, end: int,
                       params: SteadyParams) -> bool:
        return series.elapsed(start, end) >= params.min_elapsed

    def merge_test(self, series: TimeSeries, out: Interval, merging: Interval,
                   params: SteadyParams) -> bool:
        values = series.values

        # Equality of means
        if not means_equal(values, out.start, out.end, merging.start, merging.end,
                           params.steady_range, params.confidence):
            return False

        # Equality of variances
        if not variances_poolable(values, out.start, out.end, merging.start, merging.end,
                                  params.confidence):
            return False

        # The merged span has to be steady on its own
        if not deviations_within_limits(values, out.start, merging.end,
                                        params.steady_stdev, params.confidence):
            return False

        if params.regression:
            return regression_horizontal(series.times, values, out.start, merging.end,
                                         params.steady_range, params.confidence)
        return True

    @property
    def name(self) -> str:
        return "deviation"

    @property
    def description(self) -> str:
        return "Minimum elapsed time; Student-t test of the maximal deviation from the mean"


class RangePolicy(SteadinessPolicy):
    """Fixed element-count windows judged by the range statistic."""

    def window_test(self, series: TimeSeries, start: int, end: int,
                    params: SteadyParams) -> bool:
        return range_within_limits(series.values, start, end,
                                   params.steady_stdev, params.confidence)

    def meets_min_span(self, series: TimeSeries, start: int, end: int,
                       params: SteadyParams) -> bool:
        return end - start >= params.min_elements

    def first_end(self, series: TimeSeries, start: int, params: SteadyParams) -> int:
        return start + params.min_elements

    def merge_test(self, series: TimeSeries, out: Interval, merging: Interval,
                   params: SteadyParams) -> bool:
        values = series.values
        stdev_big = stats.stdev(values, out.start, merging.end)
        if stdev_big < params.steady_stdev:
            return True

        if merging.length < 2:
            return False

        # The quantile is looked up for the length of the candidate, not the merged span
        dtest = stats.value_range(values, out.start, merging.end) / stdev_big ** 0.5
        return dtest <= stats.range_quantile(params.confidence, merging.length)

    @property
    def name(self) -> str:
        return "range"

    @property
    def description(self) -> str:
        return "Minimum number of points; range statistic (max - min) / sqrt(stdev)"


class SteadinessPolicyFactory:
    """Factory for creating steadiness policies."""

    _policies: Dict[str, Type[SteadinessPolicy]] = {
        'deviation': DeviationPolicy,
        'range': RangePolicy,
    }

    @classmethod
    def create_policy(cls, name: str) -> SteadinessPolicy:
        """
        Create the policy registered under `name`.

        Raises:
            ValidationError: If the policy is not supported
        """
        name_lower = name.lower()
        if name_lower not in cls._policies:
            raise ValidationError(
                f"Unknown steadiness policy '{name}' (available: {sorted(cls._policies)})")
        return cls._policies[name_lower]()

    @classmethod
    def get_available_policies(cls) -> Dict[str, str]:
        """Get available policies with descriptions."""
        return {name: policy_class().description for name, policy_class in cls._policies.items()}

    @classmethod
    def get_default_policy(cls) -> str:
        return 'deviation'


DEVIATION = DeviationPolicy()
RANGE = RangePolicy()


def resolve_policy(policy) -> SteadinessPolicy:
    """Accept a policy instance or a registered policy name."""
    if isinstance(policy, SteadinessPolicy):
        return policy
    return SteadinessPolicyFactory.create_policy(policy)
