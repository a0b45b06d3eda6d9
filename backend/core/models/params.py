"""
Steady interval detection parameters.

One immutable parameter set is built per analysis and threaded through every
algorithm, so thresholds and the regression toggle are never repeated as
loose arguments.
"""

from dataclasses import dataclass, replace
from typing import Any, Dict, Optional

from core.constants import (
    DEFAULT_CONFIDENCE, SHIFT_CONFIDENCE, SIEVE_CONFIDENCE, SHIFT_RANGE_EPSILON,
    DEFAULT_MIN_ELAPSED_SECONDS, DEFAULT_MIN_ELEMENTS,
    SPEED_STEADY_RANGE, SPEED_STEADY_STDEV, SPEED_RANGE_CEILING,
    COURSE_STEADY_RANGE, COURSE_STEADY_STDEV, COURSE_RANGE_CEILING
)
from core.validation import validate_parameter_ranges


@dataclass(frozen=True)
class SteadyParams:
    """Thresholds for steady interval detection."""
    min_elapsed: float = DEFAULT_MIN_ELAPSED_SECONDS  # Deviation policy window floor (seconds)
    min_elements: int = DEFAULT_MIN_ELEMENTS  # Range policy window floor (points)
    steady_range: float = SPEED_STEADY_RANGE
    steady_stdev: float = SPEED_STEADY_STDEV
    range_ceiling: Optional[float] = SPEED_RANGE_CEILING  # None disables the ceiling
    regression: bool = True
    confidence: float = DEFAULT_CONFIDENCE
    shift_confidence: float = SHIFT_CONFIDENCE
    sieve_confidence: float = SIEVE_CONFIDENCE
    shift_epsilon: float = SHIFT_RANGE_EPSILON

    def __post_init__(self):
        validate_parameter_ranges(
            min_elapsed=self.min_elapsed,
            min_elements=self.min_elements,
            steady_range=self.steady_range,
            steady_stdev=self.steady_stdev,
            range_ceiling=self.range_ceiling,
            confidences=(self.confidence, self.shift_confidence, self.sieve_confidence),
            shift_epsilon=self.shift_epsilon
        )

    def with_overrides(self, **overrides: Any) -> "SteadyParams":
        """Return a copy with the given fields replaced (None values are ignored)."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for reporting."""
        return {
            'min_elapsed': self.min_elapsed,
            'min_elements': self.min_elements,
            'steady_range': self.steady_range,
            'steady_stdev': self.steady_stdev,
            'range_ceiling': self.range_ceiling,
            'regression': self.regression,
            'confidence': self.confidence,
            'shift_confidence': self.shift_confidence,
            'sieve_confidence': self.sieve_confidence,
            'shift_epsilon': self.shift_epsilon,
        }


SPEED_PARAMS = SteadyParams(
    steady_range=SPEED_STEADY_RANGE,
    steady_stdev=SPEED_STEADY_STDEV,
    range_ceiling=SPEED_RANGE_CEILING
)

COURSE_PARAMS = SteadyParams(
    steady_range=COURSE_STEADY_RANGE,
    steady_stdev=COURSE_STEADY_STDEV,
    range_ceiling=COURSE_RANGE_CEILING
)
