"""
Shared calculations module.

Geometric and unit calculations used to turn raw track fixes into speed and
heading series.
"""

import math
import logging
from typing import Sequence

import numpy as np
from geopy.distance import geodesic

from core.constants import (
    FULL_CIRCLE_DEGREES, METERS_PER_SECOND_TO_KNOTS
)

logger = logging.getLogger(__name__)


# =============================================================================
# BASIC GEOMETRIC CALCULATIONS
# =============================================================================

def calculate_bearing(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Calculate the bearing between two points in degrees."""
    # Convert to radians
    lat1 = math.radians(lat1)
    lon1 = math.radians(lon1)
    lat2 = math.radians(lat2)
    lon2 = math.radians(lon2)

    # Calculate bearing
    x = math.sin(lon2 - lon1) * math.cos(lat2)
    y = math.cos(lat1) * math.sin(lat2) - math.sin(lat1) * math.cos(lat2) * math.cos(lon2 - lon1)
    initial_bearing = math.atan2(x, y)

    # Convert to degrees
    initial_bearing = math.degrees(initial_bearing)
    compass_bearing = (initial_bearing + FULL_CIRCLE_DEGREES) % FULL_CIRCLE_DEGREES

    return compass_bearing


def calculate_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Calculate distance between two points in meters."""
    return geodesic((lat1, lon1), (lat2, lon2)).meters


def unwrap_degrees(angles: Sequence[float]) -> np.ndarray:
    """
    Remove 0/360 jumps from a sequence of compass angles.

    A course oscillating around north (359, 1, 358, 2) becomes a continuous
    series (359, 361, 358, 362) that can be tested for steadiness.
    """
    angles = np.asarray(angles, dtype=float)
    if len(angles) == 0:
        return angles
    return np.degrees(np.unwrap(np.radians(angles)))


# =============================================================================
# UNIT CONVERSIONS
# =============================================================================

def meters_per_second_to_knots(speed_ms: float) -> float:
    """Convert meters per second to knots."""
    return speed_ms * METERS_PER_SECOND_TO_KNOTS
