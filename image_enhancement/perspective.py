"""
Trapezoid geometry and perspective rectification.
"""

import logging

import cv2
import numpy as np
from typing import Optional, Tuple, Dict

from common.geometry import as_corner_array, edge_lengths, order_corners_clockwise, try_order_corners

logger = logging.getLogger(__name__)

TRAPEZOID_SKEW_THRESHOLD = 0.05
VIRTUAL_SKEW_THRESHOLD = 0.01
MIN_OUTPUT_SIZE = 100


class TrapezoidMetrics:
    """
    Edge lengths and skew of an ordered corner set.

    vertical_skew compares the top and bottom edges (front/back tilt),
    horizontal_skew compares the left and right edges (sideways tilt).
    """

    def __init__(
        self,
        top_width: float = 0.0,
        bottom_width: float = 0.0,
        left_height: float = 0.0,
        right_height: float = 0.0
    ):
        self.top_width = float(top_width)
        self.bottom_width = float(bottom_width)
        self.left_height = float(left_height)
        self.right_height = float(right_height)

        avg_width = (self.top_width + self.bottom_width) / 2.0
        avg_height = (self.left_height + self.right_height) / 2.0

        self.vertical_skew = abs(self.top_width - self.bottom_width) / avg_width if avg_width > 0 else 0.0
        self.horizontal_skew = abs(self.left_height - self.right_height) / avg_height if avg_height > 0 else 0.0
        self.skew_ratio = max(self.vertical_skew, self.horizontal_skew)
        self.is_trapezoid = self.skew_ratio > TRAPEZOID_SKEW_THRESHOLD

    @classmethod
    def from_corners(cls, corners) -> "TrapezoidMetrics":
        top, bottom, left, right = edge_lengths(corners)
        return cls(top, bottom, left, right)

    def to_dict(self) -> Dict[str, float]:
        return {
            'is_trapezoid': self.is_trapezoid,
            'skew_ratio': self.skew_ratio,
            'top_width': self.top_width,
            'bottom_width': self.bottom_width,
            'left_height': self.left_height,
            'right_height': self.right_height,
            'vertical_skew': self.vertical_skew,
            'horizontal_skew': self.horizontal_skew,
        }


def estimate_output_size(corners) -> Tuple[int, int]:
    """
    Rectified size for an ordered corner set.

    Width is the mean of the top and bottom edges, height the mean of the
    left and right edges, each at least MIN_OUTPUT_SIZE.

    Returns:
        Tuple (width, height)
    """
    top, bottom, left, right = edge_lengths(corners)
    width = max((top + bottom) / 2.0, float(MIN_OUTPUT_SIZE))
    height = max((left + right) / 2.0, float(MIN_OUTPUT_SIZE))
    return int(width), int(height)


def virtual_trapezoid(guide, metrics: Optional[TrapezoidMetrics], table_found: bool) -> np.ndarray:
    """
    Source quadrilateral implied by a static guide box and the last measured skew.

    The guide's rectangle is returned unchanged unless the last analysis
    found a table and flagged it as a trapezoid. Otherwise the narrower of
    the top/bottom edges is pulled inward by guide_width * |skew| / 2, and
    likewise the shorter of the left/right edges by guide_height * |skew| / 2.

    Args:
        guide: (left, top, right, bottom) of the on-screen guide box
        metrics: Skew metrics from the previous frame analysis
        table_found: Whether the previous analysis found a quadrilateral

    Returns:
        Corners (4, 2) in TL, TR, BR, BL order
    """
    left, top, right, bottom = [float(v) for v in guide]
    guide_width = right - left
    guide_height = bottom - top

    tl = [left, top]
    tr = [right, top]
    br = [right, bottom]
    bl = [left, bottom]

    if table_found and metrics is not None and metrics.is_trapezoid:
        if metrics.vertical_skew > VIRTUAL_SKEW_THRESHOLD:
            avg_w = (metrics.top_width + metrics.bottom_width) / 2.0
            if avg_w > 0:
                skew = (metrics.bottom_width - metrics.top_width) / avg_w
                shift = guide_width * abs(skew) / 2.0
                if metrics.bottom_width > metrics.top_width:
                    tl[0] += shift
                    tr[0] -= shift
                else:
                    bl[0] += shift
                    br[0] -= shift

        if metrics.horizontal_skew > VIRTUAL_SKEW_THRESHOLD:
            avg_h = (metrics.left_height + metrics.right_height) / 2.0
            if avg_h > 0:
                skew = (metrics.right_height - metrics.left_height) / avg_h
                shift = guide_height * abs(skew) / 2.0
                if metrics.right_height > metrics.left_height:
                    tl[1] += shift
                    bl[1] -= shift
                else:
                    tr[1] += shift
                    br[1] -= shift

    return np.array([tl, tr, br, bl], dtype=np.float32)


class PerspectiveCorrector:
    """Warps a quadrilateral region of an image to an upright rectangle."""

    def correct(self, image: np.ndarray, corners, output_size: Tuple[int, int] = (0, 0)) -> Optional[np.ndarray]:
        """
        Rectify the region bounded by corners.

        Args:
            image: Source image
            corners: 4 corners, any order
            output_size: (width, height); estimated from the corners when
                either is 0

        Returns:
            Warped image, or None when the corners cannot define a transform
        """
        if image is None or image.size == 0 or corners is None:
            return None

        pts = as_corner_array(corners)
        if len(pts) != 4 or not np.all(np.isfinite(pts)):
            return None

        ordered, ok = try_order_corners(pts)
        if not ok:
            ordered = order_corners_clockwise(pts)

        width, height = output_size
        if width == 0 or height == 0:
            width, height = estimate_output_size(ordered)

        if width <= 0 or height <= 0:
            return None

        dst = np.array([
            [0, 0],
            [width - 1, 0],
            [width - 1, height - 1],
            [0, height - 1]
        ], dtype=np.float32)

        try:
            matrix = cv2.getPerspectiveTransform(ordered, dst)
        except cv2.error as e:
            logger.warning("Perspective transform failed: %s", e)
            return None

        if not np.all(np.isfinite(matrix)) or abs(np.linalg.det(matrix)) < 1e-12:
            logger.warning("Degenerate perspective transform for corners %s", ordered.tolist())
            return None

        return cv2.warpPerspective(image, matrix, (int(width), int(height)))
