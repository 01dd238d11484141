"""
Frame quality scoring: sharpness, exposure and corner stability.
"""

from collections import deque

import cv2
import numpy as np
from typing import List, Optional

from common.bounds import Bounds
from common.geometry import as_corner_array
from image_enhancement.sauvola import to_gray
from .text_regions import TextRegion, detect_text_region

MAX_HISTORY = 5
MIN_HISTORY_FOR_STABILITY = 3
MIN_REGION_SIZE = 10


class QualityScore:
    """Per-frame quality components, each in [0, 1]."""

    def __init__(
        self,
        blur_score: float = 0.0,
        brightness_score: float = 0.0,
        stability_score: float = 0.0,
        corner_confidence: float = 0.0
    ):
        self.blur_score = blur_score
        self.brightness_score = brightness_score
        self.stability_score = stability_score
        self.corner_confidence = corner_confidence
        self.text_region: Optional[TextRegion] = None

    def overall(self) -> float:
        return (self.blur_score * 0.3 +
                self.brightness_score * 0.2 +
                self.stability_score * 0.3 +
                self.corner_confidence * 0.2)

    def is_capture_ready(self) -> bool:
        return (self.corner_confidence > 0.8 and
                self.blur_score > 0.6 and
                self.brightness_score > 0.5 and
                self.stability_score > 0.9)


class QualityAssessor:
    """
    Scores frames and tracks how much the detected corners move.

    The corner history is session state: call reset() whenever a new
    capture session starts so old corners do not leak into the new one.
    """

    def __init__(self):
        self._corner_history = deque(maxlen=MAX_HISTORY)

    @property
    def history(self) -> List[np.ndarray]:
        return list(self._corner_history)

    def reset(self):
        self._corner_history.clear()

    def assess(self, frame: np.ndarray, corners, corner_confidence: float) -> QualityScore:
        """Whole-frame blur and brightness plus stability of the given corners."""
        score = QualityScore(corner_confidence=corner_confidence)

        if frame is None or frame.size == 0:
            return score

        gray = to_gray(frame)
        score.blur_score = self.detect_blur(gray)
        score.brightness_score = self.check_brightness(gray)

        if corners is not None and len(corners) == 4:
            score.stability_score = self.check_stability(corners)

        return score

    def assess_with_text_region(self, frame: np.ndarray) -> QualityScore:
        """Score inside the main text block, or the whole frame if there is none."""
        score = QualityScore()

        if frame is None or frame.size == 0:
            return score

        gray = to_gray(frame)
        text_region = detect_text_region(frame)
        score.text_region = text_region

        if text_region.found:
            score.blur_score = self.detect_blur_in_region(gray, text_region.bounds)
            score.brightness_score = self.check_brightness_in_region(gray, text_region.bounds)
            score.corner_confidence = text_region.confidence
            score.stability_score = self.check_stability(text_region.corners)
        else:
            score.blur_score = self.detect_blur(gray)
            score.brightness_score = self.check_brightness(gray)

        return score

    def detect_blur(self, gray: np.ndarray) -> float:
        """
        Laplacian variance mapped to [0, 1].

        Variance below ~100 is blurry, 500 and above scores 1.
        """
        variance = cv2.Laplacian(gray, cv2.CV_64F).var()
        return float(min(variance / 500.0, 1.0))

    def check_brightness(self, gray: np.ndarray) -> float:
        """1 at mid-gray, falling linearly to 0 at black or white."""
        brightness = cv2.mean(gray)[0] / 255.0
        return float(max(0.0, 1.0 - abs(brightness - 0.5) * 2.0))

    def _safe_region(self, gray: np.ndarray, region: Bounds) -> Optional[np.ndarray]:
        height, width = gray.shape[:2]
        safe = region.intersect(Bounds(0, 0, width, height))
        if safe.width < MIN_REGION_SIZE or safe.height < MIN_REGION_SIZE:
            return None
        return gray[safe.top:safe.bottom, safe.left:safe.right]

    def detect_blur_in_region(self, gray: np.ndarray, region: Bounds) -> float:
        roi = self._safe_region(gray, region)
        return self.detect_blur(gray if roi is None else roi)

    def check_brightness_in_region(self, gray: np.ndarray, region: Bounds) -> float:
        roi = self._safe_region(gray, region)
        return self.check_brightness(gray if roi is None else roi)

    def check_stability(self, corners) -> float:
        """
        Stability of corners against the retained history.

        Returns 0 until at least 3 earlier corner sets are retained. After
        that the mean per-corner displacement against every retained set
        maps to 1 - displacement / 20 (clamped at 0). Every call records
        the corners; only the 5 most recent are kept.
        """
        pts = as_corner_array(corners)
        if len(pts) != 4:
            return 0.0

        if len(self._corner_history) < MIN_HISTORY_FOR_STABILITY:
            self._corner_history.append(pts.copy())
            return 0.0

        total_displacement = 0.0
        comparisons = 0
        for previous in self._corner_history:
            total_displacement += float(np.linalg.norm(pts - previous, axis=1).sum())
            comparisons += 4

        avg_displacement = total_displacement / comparisons if comparisons else 0.0

        self._corner_history.append(pts.copy())

        return float(max(0.0, 1.0 - avg_displacement / 20.0))
