"""
Mouth Geometry Module

Turns the detector's lip contours into a normalized lip opening ratio.
"""

import numpy as np
from typing import Mapping, Optional, Sequence, Tuple

from .observation import Point2D, UPPER_LIP_BOTTOM, LOWER_LIP_TOP

MIN_CONTOUR_POINTS = 3
MIN_MOUTH_WIDTH = 1e-6


def distance(p1: Point2D, p2: Point2D) -> float:
    """Euclidean distance between two points."""
    return float(np.hypot(p1.x - p2.x, p1.y - p2.y))


def mid_point(points: Sequence[Point2D]) -> Optional[Point2D]:
    """Point at the middle index of a contour (not the centroid)."""
    if not points:
        return None
    return points[len(points) // 2]


def mouth_corners(points: Sequence[Point2D]) -> Tuple[Point2D, Point2D]:
    """Leftmost and rightmost points; the first occurrence wins on ties."""
    xs = np.fromiter((p.x for p in points), dtype=float, count=len(points))
    return points[int(np.argmin(xs))], points[int(np.argmax(xs))]


def lip_open_ratio(contours: Optional[Mapping[str, Sequence[Point2D]]]) -> float:
    """
    Calculate the normalized lip opening from contours only.

    vertical gap = mid point of UPPER_LIP_BOTTOM to mid point of LOWER_LIP_TOP
    width        = leftmost to rightmost point across both lips

    Both distances scale with the face size, so the ratio does not depend on
    how far the driver sits from the camera.

    Args:
        contours: Mapping of contour name to ordered points

    Returns:
        vertical gap / width, or 0.0 when either lip contour has fewer than
        three points
    """
    if not contours:
        return 0.0

    upper = contours.get(UPPER_LIP_BOTTOM) or ()
    lower = contours.get(LOWER_LIP_TOP) or ()
    if len(upper) < MIN_CONTOUR_POINTS or len(lower) < MIN_CONTOUR_POINTS:
        return 0.0

    upper_mid = mid_point(upper)
    lower_mid = mid_point(lower)

    left, right = mouth_corners(tuple(upper) + tuple(lower))

    vertical_gap = distance(upper_mid, lower_mid)
    width = max(distance(left, right), MIN_MOUTH_WIDTH)
    return vertical_gap / width
