"""
Application settings and configuration.

This module contains application-specific configuration and defaults.
For algorithmic constants, see core.constants module.
"""

import logging
from typing import Dict, Any

# Import algorithmic constants from core module
from core.constants import (
    DEFAULT_CONFIDENCE,
    SHIFT_CONFIDENCE,
    SIEVE_CONFIDENCE,
    DEFAULT_MIN_ELAPSED_SECONDS,
    DEFAULT_MIN_ELEMENTS,
    SPEED_STEADY_RANGE,
    SPEED_STEADY_STDEV,
    SPEED_RANGE_CEILING,
    COURSE_STEADY_RANGE,
    COURSE_STEADY_STDEV,
    COURSE_RANGE_CEILING,
    MAX_MIN_ELAPSED_SECONDS
)

# App information
APP_NAME = "SteadyLab"
APP_VERSION = "1.0.0"
APP_DESCRIPTION = "Find the intervals where a vessel holds a steady speed and course"

# Development server
API_HOST = "0.0.0.0"
API_PORT = 8000
API_RELOAD = True

# API defaults
DEFAULT_MERGE = False  # Merge indistinguishable neighbours after the sieve
MAX_UPLOAD_SIZE_BYTES = 10 * 1024 * 1024  # 10MB
CORS_ORIGINS = [
    "http://localhost:3000",  # Frontend dev server
    "http://localhost:3001",  # Frontend dev server (alt port)
]

# Logging configuration
LOGGING_CONFIG = {
    "level": logging.INFO,
    "format": '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    "handlers": [
        logging.StreamHandler(),
    ]
}


# =============== Configuration Classes ===============
# These classes provide typed access to configuration sections

class SpeedConfig:
    """Default parameters for steady-speed detection (knots, seconds)."""
    MIN_ELAPSED = DEFAULT_MIN_ELAPSED_SECONDS
    MIN_ELEMENTS = DEFAULT_MIN_ELEMENTS
    STEADY_RANGE = SPEED_STEADY_RANGE
    STEADY_STDEV = SPEED_STEADY_STDEV
    RANGE_CEILING = SPEED_RANGE_CEILING
    REGRESSION = True

    @classmethod
    def as_dict(cls) -> Dict[str, Any]:
        """Get speed configuration as a dictionary."""
        return {
            'min_elapsed': cls.MIN_ELAPSED,
            'min_elements': cls.MIN_ELEMENTS,
            'steady_range': cls.STEADY_RANGE,
            'steady_stdev': cls.STEADY_STDEV,
            'range_ceiling': cls.RANGE_CEILING,
            'regression': cls.REGRESSION,
        }


class CourseConfig:
    """Default parameters for steady-course detection (degrees, seconds)."""
    MIN_ELAPSED = DEFAULT_MIN_ELAPSED_SECONDS
    MIN_ELEMENTS = DEFAULT_MIN_ELEMENTS
    STEADY_RANGE = COURSE_STEADY_RANGE
    STEADY_STDEV = COURSE_STEADY_STDEV
    RANGE_CEILING = COURSE_RANGE_CEILING
    REGRESSION = True

    @classmethod
    def as_dict(cls) -> Dict[str, Any]:
        """Get course configuration as a dictionary."""
        return {
            'min_elapsed': cls.MIN_ELAPSED,
            'min_elements': cls.MIN_ELEMENTS,
            'steady_range': cls.STEADY_RANGE,
            'steady_stdev': cls.STEADY_STDEV,
            'range_ceiling': cls.RANGE_CEILING,
            'regression': cls.REGRESSION,
        }


class StatisticsConfig:
    """Confidence levels of the hypothesis tests."""
    CONFIDENCE = DEFAULT_CONFIDENCE
    SHIFT_CONFIDENCE = SHIFT_CONFIDENCE
    SIEVE_CONFIDENCE = SIEVE_CONFIDENCE

    @classmethod
    def as_dict(cls) -> Dict[str, Any]:
        """Get statistics configuration as a dictionary."""
        return {
            'confidence': cls.CONFIDENCE,
            'shift_confidence': cls.SHIFT_CONFIDENCE,
            'sieve_confidence': cls.SIEVE_CONFIDENCE,
        }


# Slider ranges for clients
PARAMETER_RANGES = {
    "min_elapsed": {"min": 10, "max": MAX_MIN_ELAPSED_SECONDS, "step": 10},
    "speed_steady_range": {"min": 0.0, "max": 2.0, "step": 0.05},
    "speed_steady_stdev": {"min": 0.0, "max": 1.0, "step": 0.01},
    "course_steady_range": {"min": 0.0, "max": 20.0, "step": 0.5},
    "course_steady_stdev": {"min": 0.0, "max": 10.0, "step": 0.1},
}
