"""
Document / table quadrilateral detector using OpenCV
"""

import logging

import cv2
import numpy as np
from typing import Optional, List, Tuple

from common.geometry import (
    as_corner_array,
    min_pairwise_distance,
    order_corners_clockwise,
    polygon_area,
    try_order_corners,
)

logger = logging.getLogger(__name__)


class DetectionResult:
    """Outcome of a single detection: ordered corners and a confidence in [0, 1]."""

    def __init__(self, found: bool = False, corners: Optional[np.ndarray] = None, confidence: float = 0.0):
        self.found = found
        self.corners = corners if corners is not None else np.zeros((0, 2), dtype=np.float32)
        self.confidence = float(confidence)

    def __repr__(self) -> str:
        return f"DetectionResult(found={self.found}, corners={self.corners.tolist()}, confidence={self.confidence:.3f})"


class DocumentDetector:
    """
    Class for document detection in camera frames.

    Works on a downsampled copy of the frame: edges are extracted with
    Canny, external contours are simplified to convex quadrilaterals and
    the largest acceptable one wins.
    """

    EPSILON_FACTORS = (0.02, 0.04, 0.06, 0.08, 0.10)
    MIN_RECT_FILL = 0.7

    def __init__(
        self,
        canny_low: int = 30,
        canny_high: int = 100,
        min_area_ratio: float = 0.05,
        target_width: int = 480
    ):
        """
        Initialize the detector.

        Args:
            canny_low: Lower hysteresis threshold for Canny
            canny_high: Upper hysteresis threshold for Canny
            min_area_ratio: Minimum ratio of contour area to image area
            target_width: Long edge length the frame is downsampled to
        """
        self.canny_low = canny_low
        self.canny_high = canny_high
        self.min_area_ratio = min_area_ratio
        self.target_width = target_width

    def set_canny_threshold(self, low: int, high: int):
        self.canny_low = low
        self.canny_high = high

    def set_min_area_ratio(self, ratio: float):
        self.min_area_ratio = ratio

    def detect(self, frame: np.ndarray) -> DetectionResult:
        """
        Detect a document in the frame.

        Args:
            frame: Input frame (BGR, BGRA or gray)

        Returns:
            DetectionResult with corners ordered top-left, top-right,
            bottom-right, bottom-left in frame coordinates
        """
        if frame is None or frame.size == 0:
            return DetectionResult()

        height, width = frame.shape[:2]

        # Resize for faster processing
        scale = 1.0
        long_edge = max(width, height)
        if long_edge > self.target_width:
            scale = self.target_width / float(long_edge)
            resized = cv2.resize(frame, None, fx=scale, fy=scale, interpolation=cv2.INTER_AREA)
        else:
            resized = frame

        edges = self._preprocess(resized)
        contours = self._find_contours(edges)
        quad = self._find_largest_quadrilateral(contours, resized.shape[:2])

        if quad is None:
            logger.debug("No quadrilateral in %dx%d frame (%d contours)", width, height, len(contours))
            return DetectionResult()

        # Back to original resolution
        quad = quad / scale

        corners, ordered = try_order_corners(quad)
        if not ordered:
            # Quadrants around the centroid are ambiguous for strong trapezoids
            corners = order_corners_clockwise(quad)
        confidence = self._calculate_confidence(corners, (height, width))

        logger.debug(
            "Quadrilateral found in %dx%d frame: corners=%s confidence=%.3f",
            width, height, np.round(corners, 1).tolist(), confidence
        )

        return DetectionResult(True, corners, confidence)

    def _preprocess(self, image: np.ndarray) -> np.ndarray:
        """Gray -> CLAHE -> blur -> Canny -> dilate -> close."""
        if image.ndim == 2:
            gray = image.copy()
        elif image.shape[2] == 4:
            gray = cv2.cvtColor(image, cv2.COLOR_BGRA2GRAY)
        else:
            gray = cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)

        # Local contrast helps on low-contrast backgrounds
        clahe = cv2.createCLAHE(clipLimit=2.0, tileGridSize=(8, 8))
        gray = clahe.apply(gray)

        blurred = cv2.GaussianBlur(gray, (5, 5), 0)
        edges = cv2.Canny(blurred, self.canny_low, self.canny_high)

        kernel = cv2.getStructuringElement(cv2.MORPH_RECT, (3, 3))
        edges = cv2.dilate(edges, kernel)

        close_kernel = cv2.getStructuringElement(cv2.MORPH_RECT, (5, 5))
        edges = cv2.morphologyEx(edges, cv2.MORPH_CLOSE, close_kernel)

        return edges

    def _find_contours(self, edges: np.ndarray) -> List[np.ndarray]:
        """External contours, largest area first."""
        contours, _ = cv2.findContours(edges, cv2.RETR_EXTERNAL, cv2.CHAIN_APPROX_SIMPLE)
        return sorted(contours, key=cv2.contourArea, reverse=True)

    def _find_largest_quadrilateral(self, contours: List[np.ndarray], image_shape: Tuple[int, int]) -> Optional[np.ndarray]:
        """
        First contour (by area) that simplifies to a convex 4-gon.

        Contours that never reach 4 points fall back to their minimum area
        rectangle if they fill most of it.

        Returns:
            (4, 2) float32 array in resized coordinates, or None
        """
        min_area = image_shape[0] * image_shape[1] * self.min_area_ratio

        for contour in contours:
            area = cv2.contourArea(contour)
            if area < min_area:
                continue

            perimeter = cv2.arcLength(contour, True)

            for eps_factor in self.EPSILON_FACTORS:
                approx = cv2.approxPolyDP(contour, eps_factor * perimeter, True)
                if len(approx) == 4 and cv2.isContourConvex(approx):
                    return approx.reshape(4, 2).astype(np.float32)

            if len(contour) >= 4:
                rect = cv2.minAreaRect(contour)
                rect_area = rect[1][0] * rect[1][1]
                if rect_area > 0 and area / rect_area > self.MIN_RECT_FILL:
                    return cv2.boxPoints(rect).astype(np.float32)

        return None

    def _calculate_confidence(self, corners: np.ndarray, image_shape: Tuple[int, int]) -> float:
        """
        0.6 * area score + 0.4 * corner separation score.

        The area score peaks when the quadrilateral covers half the frame;
        the separation score reaches 1 when the closest pair of corners is
        at least 10% of sqrt(frame area) apart.
        """
        corners = as_corner_array(corners)
        if len(corners) != 4:
            return 0.0

        image_area = float(image_shape[0] * image_shape[1])
        area_ratio = polygon_area(corners) / image_area

        if 0.2 <= area_ratio <= 0.8:
            area_score = 1.0 - abs(area_ratio - 0.5)
        elif 0.1 < area_ratio < 0.2:
            area_score = 0.5
        else:
            area_score = 0.0

        min_expected_dist = np.sqrt(image_area) * 0.1
        dist_score = min(1.0, min_pairwise_distance(corners) / min_expected_dist)

        return float(area_score * 0.6 + dist_score * 0.4)
