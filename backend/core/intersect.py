"""
Intersection of two ordered lists of intervals.

Typical use: combine steady-speed and steady-course intervals into the
intervals where both speed and course are steady.
"""

import logging
from typing import List, Sequence

from core.models.interval import Interval

logger = logging.getLogger(__name__)


def intersect_intervals(first: Sequence[Interval], second: Sequence[Interval]) -> List[Interval]:
    """
    Intersect two start-sorted, disjoint interval lists.

    A single forward pass: the cursor into `second` never moves back.

    Args:
        first: The first list of intervals (ordered)
        second: The second list of intervals (ordered)

    Returns:
        New, ordered and disjoint list of intersected intervals
    """
    intersection: List[Interval] = []

    index_second = 0
    for pair1 in first:
        for ii in range(index_second, len(second)):
            pair2 = second[ii]

            if pair2.start <= pair1.start < pair2.end:
                # pair1 starts inside pair2
                intersection.append(Interval(pair1.start, min(pair1.end, pair2.end)))
                index_second = ii if pair1.end < pair2.end else ii + 1
                if pair1.end <= pair2.end:
                    break
            elif pair2.start < pair1.end <= pair2.end:
                # pair1 ends inside pair2
                intersection.append(Interval(max(pair1.start, pair2.start), pair1.end))
                index_second = ii
                break
            elif pair1.start <= pair2.start and pair1.end >= pair2.end:
                # pair1 envelopes pair2
                intersection.append(pair2)
            elif pair1.end <= pair2.start:
                # pair1 precedes pair2
                break
            # else pair2 precedes pair1: nothing to do

    logger.debug(f"Intersected {len(first)} and {len(second)} intervals into {len(intersection)}")
    return intersection
