"""
Two-stage capture orchestration.

Stage 1 (analyze_frame) runs on every preview frame: it locates the
document, scores the frame and decides whether it is good enough to
capture. Stage 2 (enhance_image / enhance_image_with_guide_frame) runs once
on the captured frame: it crops or rectifies it and applies OCR
enhancement.

An engine holds per-session state (the corner stability history and the
last analysis) and expects one frame in flight at a time.
"""

import logging

import numpy as np
from typing import Optional, Sequence

from common.bounds import Bounds
from common.geometry import as_corner_array
from constants import CAPTURE_MIN_AREA_RATIO, CAPTURE_TARGET_WIDTH
from document_detection import DocumentDetector
from image_enhancement import (
    EnhanceConfig,
    ImageEnhancer,
    PerspectiveCorrector,
    TrapezoidMetrics,
    virtual_trapezoid,
)
from image_enhancement.sauvola import to_gray
from quality import QualityAssessor, detect_text_regions
from quality.text_regions import MAX_REPORTED_REGIONS

from .frames import PixelFormat, buffer_to_frame, crop_frame, rotate_frame, to_bgr
from .results import EnhancementOptions, EnhancementResult, FrameAnalysisResult

logger = logging.getLogger(__name__)

# Readiness gates. The text-region path has no hard document edge to
# anchor on, so it asks for a steadier frame.
DOCUMENT_MIN_BLUR = 0.6
DOCUMENT_MIN_BRIGHTNESS = 0.5
DOCUMENT_MIN_STABILITY = 0.8
TEXT_MIN_STABILITY = 0.9

# Weights of the text-region overall score (blur, brightness, stability, coverage).
# The document path uses QualityScore.overall().
TEXT_REGION_WEIGHTS = (0.4, 0.2, 0.2, 0.2)


class CaptureEngine:
    """Analyze preview frames, then rectify and enhance the captured one."""

    def __init__(
        self,
        detector: Optional[DocumentDetector] = None,
        assessor: Optional[QualityAssessor] = None,
        corrector: Optional[PerspectiveCorrector] = None,
        enhancer: Optional[ImageEnhancer] = None
    ):
        self.detector = detector or DocumentDetector(
            min_area_ratio=CAPTURE_MIN_AREA_RATIO,
            target_width=CAPTURE_TARGET_WIDTH
        )
        self.assessor = assessor or QualityAssessor()
        self.corrector = corrector or PerspectiveCorrector()
        self.enhancer = enhancer or ImageEnhancer()
        self._last_analysis = FrameAnalysisResult()

    def reset(self):
        """Start a new capture session. Clears the stability history."""
        self.assessor.reset()

    def get_last_analysis(self) -> FrameAnalysisResult:
        return self._last_analysis

    # Stage 1

    def analyze_frame(
        self,
        data,
        width: int,
        height: int,
        pixel_format: int = PixelFormat.BGRA,
        rotation: int = 0,
        crop: Optional[Sequence[int]] = None
    ) -> FrameAnalysisResult:
        """
        Locate the document in a preview frame and score the frame.

        Args:
            data: Raw pixels (bytes-like or numpy array)
            width: Frame width before rotation
            height: Frame height before rotation
            pixel_format: One of PixelFormat
            rotation: Clockwise rotation to apply first (0, 90, 180, 270)
            crop: Optional (x, y, w, h) applied after rotation

        Returns:
            FrameAnalysisResult; an empty one for invalid input
        """
        result = FrameAnalysisResult()

        frame = buffer_to_frame(data, width, height, pixel_format)
        if frame is None:
            logger.warning("Invalid frame: %sx%s format=%s", width, height, pixel_format)
            return result

        frame = rotate_frame(frame, rotation)
        frame = crop_frame(frame, crop)

        detection = self.detector.detect(frame)

        result.document_found = detection.found
        result.corner_confidence = detection.confidence

        logger.debug(
            "Detection: found=%s corners=%d image=%dx%d",
            detection.found, len(detection.corners), frame.shape[1], frame.shape[0]
        )

        if detection.found and len(detection.corners) == 4:
            self._score_document(frame, detection, result)
        else:
            self._score_text_regions(frame, result)

        self._last_analysis = result
        return result

    def _score_document(self, frame: np.ndarray, detection, result: FrameAnalysisResult):
        result.table_found = True
        result.corners = detection.corners.copy()
        result.trapezoid = TrapezoidMetrics.from_corners(detection.corners)

        quality = self.assessor.assess(frame, detection.corners, detection.confidence)

        result.blur_score = quality.blur_score
        result.brightness_score = quality.brightness_score
        result.stability_score = quality.stability_score
        result.overall_score = quality.overall()

        result.capture_ready = (quality.blur_score > DOCUMENT_MIN_BLUR and
                                quality.brightness_score > DOCUMENT_MIN_BRIGHTNESS and
                                quality.stability_score > DOCUMENT_MIN_STABILITY)

    def _score_text_regions(self, frame: np.ndarray, result: FrameAnalysisResult):
        gray = to_gray(frame)
        text_regions = detect_text_regions(frame)

        if text_regions.found:
            result.text_region_found = True
            result.text_regions = [r.bounds for r in text_regions.regions[:MAX_REPORTED_REGIONS]]
            result.coverage_ratio = text_regions.coverage_ratio
            result.overall_bounds = text_regions.overall_bounds
            result.corners = text_regions.overall_corners

            result.blur_score = self.assessor.detect_blur_in_region(gray, text_regions.overall_bounds)
            result.brightness_score = self.assessor.check_brightness_in_region(gray, text_regions.overall_bounds)
            result.stability_score = self.assessor.check_stability(text_regions.overall_corners)
            result.corner_confidence = text_regions.coverage_ratio

            w_blur, w_brightness, w_stability, w_coverage = TEXT_REGION_WEIGHTS
            result.overall_score = (result.blur_score * w_blur +
                                    result.brightness_score * w_brightness +
                                    result.stability_score * w_stability +
                                    result.corner_confidence * w_coverage)
        else:
            result.blur_score = self.assessor.detect_blur(gray)
            result.brightness_score = self.assessor.check_brightness(gray)

        result.capture_ready = (result.blur_score > DOCUMENT_MIN_BLUR and
                                result.brightness_score > DOCUMENT_MIN_BRIGHTNESS and
                                result.stability_score > TEXT_MIN_STABILITY)

    # Stage 2

    def enhance_image(
        self,
        data,
        width: int,
        height: int,
        pixel_format: int,
        corners,
        options: Optional[EnhancementOptions] = None
    ) -> EnhancementResult:
        """
        Crop or rectify a captured frame around explicit corners, then enhance it.

        Args:
            data: Raw pixels (bytes-like or numpy array)
            width: Frame width
            height: Frame height
            pixel_format: One of PixelFormat
            corners: 8 values x0, y0, ..., x3, y3 (or 4 points) in TL, TR, BR, BL order
            options: EnhancementOptions, defaults when omitted

        Returns:
            EnhancementResult; success is False with an error message on failure
        """
        if data is None or width <= 0 or height <= 0:
            return EnhancementResult.error("Invalid image data")

        if corners is None:
            return EnhancementResult.error("Corners not provided")

        points = as_corner_array(corners)
        if points.size != 8:
            return EnhancementResult.error("Corners must have 8 values")

        frame = buffer_to_frame(data, width, height, pixel_format)
        if frame is None:
            return EnhancementResult.error("Failed to create image from buffer")

        return self._enhance(frame, points, options or EnhancementOptions())

    def enhance_image_with_guide_frame(
        self,
        data,
        width: int,
        height: int,
        pixel_format: int,
        guide: Sequence[float],
        options: Optional[EnhancementOptions] = None,
        rotation: int = 0
    ) -> EnhancementResult:
        """
        Enhance a captured frame using the on-screen guide box.

        The source quadrilateral is the guide box bent by the skew measured
        in the last analysis. Perspective correction runs only when that
        analysis found a trapezoidal table; otherwise the frame is simply
        cropped to the guide box.

        Args:
            data: Raw pixels (bytes-like or numpy array)
            width: Frame width before rotation
            height: Frame height before rotation
            pixel_format: One of PixelFormat
            guide: (left, top, right, bottom) of the guide box in rotated frame coordinates
            options: EnhancementOptions; crop/perspective flags are overridden
            rotation: Clockwise rotation to apply first (0, 90, 180, 270)
        """
        if data is None or width <= 0 or height <= 0:
            return EnhancementResult.error("Invalid image data")

        if guide is None or len(guide) != 4:
            return EnhancementResult.error("Guide frame must have 4 values")

        frame = buffer_to_frame(data, width, height, pixel_format)
        if frame is None:
            return EnhancementResult.error("Failed to create image from buffer")

        frame = rotate_frame(frame, rotation)

        last = self._last_analysis
        corners = virtual_trapezoid(guide, last.trapezoid, last.table_found)

        adjusted = (options or EnhancementOptions()).copy()
        adjusted.apply_perspective_correction = last.table_found and last.is_trapezoid
        adjusted.apply_crop = not adjusted.apply_perspective_correction

        logger.debug(
            "Guide frame %s -> corners %s (perspective=%s)",
            list(guide), corners.tolist(), adjusted.apply_perspective_correction
        )

        return self._enhance(frame, corners, adjusted)

    def _enhance(self, frame: np.ndarray, corners: np.ndarray, options: EnhancementOptions) -> EnhancementResult:
        processed = frame

        if options.apply_crop and not options.apply_perspective_correction:
            height, width = frame.shape[:2]
            bounds = Bounds.from_points(corners).clamp_to(width, height)
            if not bounds.is_empty():
                processed = bounds.crop(frame)

        if options.apply_perspective_correction:
            output_size = (options.output_width, options.output_height)
            corrected = self.corrector.correct(processed, corners, output_size)
            if corrected is None:
                logger.warning("Perspective correction failed for corners %s", corners.tolist())
                return EnhancementResult.error("Perspective correction failed")
            processed = corrected

        processed = to_bgr(processed)

        if options.apply_auto_enhance:
            processed = self.enhancer.enhance(processed, EnhanceConfig(apply_sharpening=False))

        if options.apply_sharpening:
            processed = self.enhancer.sharpen(processed, options.sharpening_strength)

        processed = self.enhancer.apply_mode(processed, options.enhance_mode)

        return EnhancementResult.from_image(processed)
