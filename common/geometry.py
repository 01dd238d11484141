"""
Planar helpers for 4-corner sets.

Corner sets are (4, 2) float32 arrays ordered top-left, top-right,
bottom-right, bottom-left.
"""

import numpy as np
from typing import Tuple

TOP_LEFT, TOP_RIGHT, BOTTOM_RIGHT, BOTTOM_LEFT = 0, 1, 2, 3


def as_corner_array(points) -> np.ndarray:
    """Coerce a list of points (or a flat list of 8 floats) to an (N, 2) float32 array."""
    return np.asarray(points, dtype=np.float32).reshape(-1, 2)


def try_order_corners(points) -> Tuple[np.ndarray, bool]:
    """
    Order 4 points as top-left, top-right, bottom-right, bottom-left.

    Every point is classified by its quadrant relative to the centroid.
    When two points fall into the same quadrant the first one seen keeps
    the slot; if any slot stays empty the ordering fails.

    Args:
        points: 4 points [[x, y], ...]

    Returns:
        Tuple (corners, ok): the ordered (4, 2) float32 array, or the
        input order with ok set to False
    """
    pts = as_corner_array(points)
    if len(pts) != 4:
        return pts, False

    cx, cy = pts.mean(axis=0)

    ordered = np.zeros((4, 2), dtype=np.float32)
    assigned = [False] * 4

    for pt in pts:
        x, y = pt
        if x < cx and y < cy:
            idx = TOP_LEFT
        elif x >= cx and y < cy:
            idx = TOP_RIGHT
        elif x >= cx and y >= cy:
            idx = BOTTOM_RIGHT
        else:
            idx = BOTTOM_LEFT

        if not assigned[idx]:
            ordered[idx] = pt
            assigned[idx] = True

    if not all(assigned):
        return pts, False

    return ordered, True


def order_corners(points) -> np.ndarray:
    """Quadrant ordering of try_order_corners; the input order is returned on failure."""
    return try_order_corners(points)[0]


def order_corners_clockwise(points) -> np.ndarray:
    """
    Order the corners of a convex quadrilateral by angle around the centroid.

    Works for shapes the quadrant ordering rejects, such as a trapezoid
    whose short top edge lies on one side of the centroid. The edge with
    the smallest mean y becomes the top edge.

    Returns:
        (4, 2) float32 array in TL, TR, BR, BL order
    """
    pts = as_corner_array(points)
    if len(pts) != 4:
        return pts

    center = pts.mean(axis=0)
    angles = np.arctan2(pts[:, 1] - center[1], pts[:, 0] - center[0])
    # Ascending angle is clockwise on screen (y points down)
    pts = pts[np.argsort(angles)]

    edge_y = pts[:, 1] + np.roll(pts[:, 1], -1)
    return np.roll(pts, -int(np.argmin(edge_y)), axis=0)


def edge_length(corners: np.ndarray, a: int, b: int) -> float:
    """Euclidean distance between two corners of a set, by index."""
    return float(np.linalg.norm(corners[b] - corners[a]))


def edge_lengths(corners) -> Tuple[float, float, float, float]:
    """
    Lengths of the four edges of an ordered corner set.

    Returns:
        Tuple (top, bottom, left, right)
    """
    pts = as_corner_array(corners)
    top = edge_length(pts, TOP_LEFT, TOP_RIGHT)
    bottom = edge_length(pts, BOTTOM_LEFT, BOTTOM_RIGHT)
    left = edge_length(pts, TOP_LEFT, BOTTOM_LEFT)
    right = edge_length(pts, TOP_RIGHT, BOTTOM_RIGHT)
    return top, bottom, left, right


def min_pairwise_distance(corners) -> float:
    pts = as_corner_array(corners)
    best = float('inf')
    for i in range(len(pts)):
        for j in range(i + 1, len(pts)):
            best = min(best, float(np.linalg.norm(pts[i] - pts[j])))
    return best


def polygon_area(corners) -> float:
    """Absolute polygon area (shoelace formula)."""
    pts = as_corner_array(corners).astype(np.float64)
    x = pts[:, 0]
    y = pts[:, 1]
    return float(abs(np.dot(x, np.roll(y, -1)) - np.dot(y, np.roll(x, -1))) / 2.0)
