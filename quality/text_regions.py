"""
Text block detection used when no document outline is visible.

Glyphs are binarized with an adaptive threshold and merged into blocks by
dilating first along text lines, then across them.
"""

import cv2
import numpy as np
from typing import List, Optional

from common.bounds import Bounds
from image_enhancement.sauvola import to_gray

MAX_REPORTED_REGIONS = 8


class TextRegion:
    """A single block of text."""

    def __init__(self, bounds: Optional[Bounds] = None, area: float = 0.0, confidence: float = 0.0):
        self.found = bounds is not None
        self.bounds = bounds if bounds is not None else Bounds(0, 0, 0, 0)
        self.area = float(area)
        self.confidence = float(confidence)

    @property
    def corners(self) -> np.ndarray:
        return self.bounds.corners()


class TextRegionsResult:
    """All text blocks of a frame plus their combined bounds."""

    def __init__(self):
        self.found = False
        self.regions: List[TextRegion] = []
        self.overall_bounds = Bounds(0, 0, 0, 0)
        self.total_area = 0.0
        self.coverage_ratio = 0.0

    @property
    def region_count(self) -> int:
        return len(self.regions)

    @property
    def overall_corners(self) -> np.ndarray:
        return self.overall_bounds.corners()


def _text_mask(frame: np.ndarray, line_kernel, block_kernel) -> np.ndarray:
    gray = to_gray(frame)
    binary = cv2.adaptiveThreshold(
        gray,
        255,
        cv2.ADAPTIVE_THRESH_GAUSSIAN_C,
        cv2.THRESH_BINARY_INV,
        11,
        2
    )
    kernel_h = cv2.getStructuringElement(cv2.MORPH_RECT, line_kernel)
    dilated = cv2.dilate(binary, kernel_h)
    kernel_v = cv2.getStructuringElement(cv2.MORPH_RECT, block_kernel)
    return cv2.dilate(dilated, kernel_v)


def detect_text_region(frame: np.ndarray) -> TextRegion:
    """
    Largest text block of the frame, padded by 5% on every side.

    Confidence is 1 when the block covers 10-90% of the frame and ramps
    linearly to 0 at 5% and 95%.
    """
    if frame is None or frame.size == 0:
        return TextRegion()

    dilated = _text_mask(frame, (25, 3), (5, 15))
    contours, _ = cv2.findContours(dilated, cv2.RETR_EXTERNAL, cv2.CHAIN_APPROX_SIMPLE)
    if not contours:
        return TextRegion()

    largest = max(contours, key=cv2.contourArea)
    max_area = cv2.contourArea(largest)
    if max_area <= 0:
        return TextRegion()

    height, width = frame.shape[:2]
    bounds = Bounds(*cv2.boundingRect(largest)).pad(0.05, 0.05, width, height)

    area_ratio = max_area / float(width * height)
    if 0.10 <= area_ratio <= 0.90:
        confidence = 1.0
    elif 0.05 <= area_ratio < 0.10:
        confidence = (area_ratio - 0.05) / 0.05
    elif 0.90 < area_ratio <= 0.95:
        confidence = (0.95 - area_ratio) / 0.05
    else:
        confidence = 0.0

    return TextRegion(bounds, max_area, confidence)


def detect_text_regions(frame: np.ndarray) -> TextRegionsResult:
    """
    Every qualifying text block of the frame, largest first.

    A block qualifies when its area is between 0.5% and 95% of the frame
    and its bounding box is at least 20x10 px. The combined bounds are
    padded by 2% and clipped to the frame.
    """
    result = TextRegionsResult()

    if frame is None or frame.size == 0:
        return result

    dilated = _text_mask(frame, (15, 3), (3, 8))
    contours, _ = cv2.findContours(dilated, cv2.RETR_EXTERNAL, cv2.CHAIN_APPROX_SIMPLE)
    if not contours:
        return result

    height, width = frame.shape[:2]
    frame_area = float(width * height)
    min_area = frame_area * 0.005
    max_area = frame_area * 0.95

    for contour in contours:
        area = cv2.contourArea(contour)
        if area < min_area or area > max_area:
            continue

        bounds = Bounds(*cv2.boundingRect(contour))

        # Thin slivers are noise
        if bounds.width < 20 or bounds.height < 10:
            continue

        confidence = min(area / (frame_area * 0.5), 1.0)
        result.regions.append(TextRegion(bounds, area, confidence))
        result.total_area += area

    if not result.regions:
        return result

    result.regions.sort(key=lambda r: r.area, reverse=True)

    min_x = min(r.bounds.left for r in result.regions)
    min_y = min(r.bounds.top for r in result.regions)
    max_x = max(r.bounds.right for r in result.regions)
    max_y = max(r.bounds.bottom for r in result.regions)

    pad_x = int((max_x - min_x) * 0.02)
    pad_y = int((max_y - min_y) * 0.02)

    min_x = max(0, min_x - pad_x)
    min_y = max(0, min_y - pad_y)
    max_x = min(width, max_x + pad_x)
    max_y = min(height, max_y + pad_y)

    result.found = True
    result.overall_bounds = Bounds(min_x, min_y, max_x - min_x, max_y - min_y)
    result.coverage_ratio = result.total_area / frame_area

    return result
