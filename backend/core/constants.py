"""
Constants for the SteadyLab application.

This module contains all the mathematical, statistical, and domain-specific
constants used throughout the codebase. Constants are grouped by their purpose
and documented with their units where applicable.
"""

# =============================================================================
# CONVERSION FACTORS
# =============================================================================

# Speed conversions
METERS_PER_SECOND_TO_KNOTS = 1.94384  # 1 m/s = 1.94384 knots

# Angle values
FULL_CIRCLE_DEGREES = 360

# =============================================================================
# CONFIDENCE LEVELS
# =============================================================================

# Deviation, range and regression tests on emitted windows
DEFAULT_CONFIDENCE = 0.99

# Regression check while repositioning a window (local shift)
SHIFT_CONFIDENCE = 0.999

# F-test of a sieve candidate against the reference variance
SIEVE_CONFIDENCE = 0.95

# =============================================================================
# NUMERIC GUARDS
# =============================================================================

# Regression slope standard errors below this are treated as zero
SLOPE_STDERR_EPSILON = 1.e-8

# Standard deviations below this are treated as zero
STDEV_EPSILON = 1.e-12

# No slope comparison during a shift if the shifted window's range is within this
SHIFT_RANGE_EPSILON = 0.1

# Smallest window the sieve ever considers (elements)
SIEVE_MIN_ELEMENTS = 2

# Search bracket for the range-distribution quantile (units of sigma)
RANGE_QUANTILE_BRACKET = (1.e-6, 40.0)

# Integration bounds for the range-distribution CDF (units of sigma)
RANGE_INTEGRATION_LIMIT = 12.0

# =============================================================================
# STEADY SPEED THRESHOLDS (knots)
# =============================================================================

SPEED_STEADY_RANGE = 0.1  # Window is steady if max-min is within this
SPEED_STEADY_STDEV = 0.05  # Window is steady if stdev is within this
SPEED_RANGE_CEILING = 10.0  # Window is never steady if max-min reaches this

# =============================================================================
# STEADY COURSE THRESHOLDS (degrees)
# =============================================================================

COURSE_STEADY_RANGE = 1.0
COURSE_STEADY_STDEV = 0.5
COURSE_RANGE_CEILING = 10.0

# =============================================================================
# WINDOW SIZE THRESHOLDS
# =============================================================================

DEFAULT_MIN_ELAPSED_SECONDS = 300.0  # 5 minutes of steady sailing
DEFAULT_MIN_ELEMENTS = 5  # Range policy window floor (points)

# =============================================================================
# VALIDATION LIMITS
# =============================================================================

MAX_MIN_ELAPSED_SECONDS = 24 * 3600  # One day
MIN_WINDOW_ELEMENTS = 2

# =============================================================================
# VALIDATION
# =============================================================================

assert 0 < SIEVE_CONFIDENCE < DEFAULT_CONFIDENCE < SHIFT_CONFIDENCE < 1, \
    "Confidence levels must be ordered sieve < default < shift"
