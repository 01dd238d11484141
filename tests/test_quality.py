import cv2
import numpy as np
import pytest

from common.bounds import Bounds
from quality import QualityAssessor, QualityScore, detect_text_region, detect_text_regions


def shifted(corners, dx):
    return np.asarray(corners, dtype=np.float32) + np.float32(dx)


BASE_CORNERS = np.array([[100, 100], [300, 100], [300, 250], [100, 250]], dtype=np.float32)


class TestStability:
    """Tests for the corner stability tracker"""

    @pytest.fixture
    def assessor(self):
        return QualityAssessor()

    def test_warm_up(self, assessor):
        """The first three calls only fill the history"""
        scores = [assessor.check_stability(BASE_CORNERS) for _ in range(3)]
        assert scores == [0.0, 0.0, 0.0]
        assert assessor.check_stability(BASE_CORNERS) == pytest.approx(1.0)

    def test_scores_in_range(self, assessor):
        for i in range(10):
            score = assessor.check_stability(shifted(BASE_CORNERS, i * 3))
            assert 0.0 <= score <= 1.0

    def test_history_is_bounded_fifo(self, assessor):
        for i in range(6):
            assessor.check_stability(shifted(BASE_CORNERS, i))

        history = assessor.history
        assert len(history) == 5
        # The first sample was evicted
        assert np.allclose(history[0], shifted(BASE_CORNERS, 1))
        assert np.allclose(history[-1], shifted(BASE_CORNERS, 5))

    def test_displacement_mapping(self, assessor):
        for _ in range(3):
            assessor.check_stability(BASE_CORNERS)
        # 10 px drift on every corner
        assert assessor.check_stability(shifted(BASE_CORNERS, [10, 0])) == pytest.approx(0.5)

    def test_large_drift_scores_zero(self, assessor):
        for _ in range(3):
            assessor.check_stability(BASE_CORNERS)
        assert assessor.check_stability(shifted(BASE_CORNERS, 50)) == 0.0

    def test_reset_clears_history(self, assessor):
        for _ in range(5):
            assessor.check_stability(BASE_CORNERS)
        assessor.reset()
        assert assessor.history == []
        assert assessor.check_stability(BASE_CORNERS) == 0.0
        assert assessor.check_stability(BASE_CORNERS) == 0.0

    def test_wrong_corner_count(self, assessor):
        assert assessor.check_stability(BASE_CORNERS[:3]) == 0.0
        assert assessor.history == []


class TestSharpnessAndExposure:
    @pytest.fixture
    def assessor(self):
        return QualityAssessor()

    def test_flat_image_is_blurry(self, assessor):
        gray = np.full((100, 100), 128, dtype=np.uint8)
        assert assessor.detect_blur(gray) == 0.0

    def test_checkerboard_is_sharp(self, assessor):
        gray = (np.indices((100, 100)).sum(axis=0) % 2 * 255).astype(np.uint8)
        assert assessor.detect_blur(gray) == 1.0

    def test_blurring_lowers_score(self, assessor):
        rng = np.random.default_rng(0)
        gray = rng.integers(0, 256, size=(120, 120), dtype=np.uint8)
        blurred = cv2.GaussianBlur(gray, (15, 15), 5)
        assert assessor.detect_blur(blurred) < assessor.detect_blur(gray)

    @pytest.mark.parametrize("value, expected", [(0, 0.0), (255, 0.0), (64, 1 - abs(64 / 255 - 0.5) * 2)])
    def test_brightness(self, assessor, value, expected):
        gray = np.full((20, 20), value, dtype=np.uint8)
        assert assessor.check_brightness(gray) == pytest.approx(expected)

    def test_mid_gray_peaks(self, assessor):
        gray = np.full((20, 20), 128, dtype=np.uint8)
        assert assessor.check_brightness(gray) == pytest.approx(1 - abs(128 / 255 - 0.5) * 2)
        assert assessor.check_brightness(gray) > 0.99

    def test_region_scoring(self, assessor):
        gray = np.zeros((100, 100), dtype=np.uint8)
        gray[20:60, 20:60] = 128
        assert assessor.check_brightness_in_region(gray, Bounds(20, 20, 40, 40)) > 0.99
        assert assessor.check_brightness(gray) < 0.5

    def test_small_region_falls_back_to_frame(self, assessor):
        gray = np.zeros((100, 100), dtype=np.uint8)
        gray[0:5, 0:5] = 128
        region = Bounds(0, 0, 5, 5)
        assert assessor.check_brightness_in_region(gray, region) == assessor.check_brightness(gray)
        assert assessor.detect_blur_in_region(gray, region) == assessor.detect_blur(gray)

    def test_region_clipped_to_frame(self, assessor):
        gray = np.full((50, 50), 128, dtype=np.uint8)
        gray[:, :25] = 0
        # Only the right half survives clipping
        assert assessor.check_brightness_in_region(gray, Bounds(25, -20, 100, 100)) > 0.99

    def test_assess_uses_corners(self, assessor, document_frame):
        score = assessor.assess(document_frame, BASE_CORNERS, 0.7)
        assert score.corner_confidence == 0.7
        assert 0.0 <= score.blur_score <= 1.0
        assert 0.0 <= score.brightness_score <= 1.0
        assert score.stability_score == 0.0
        assert len(assessor.history) == 1


class TestQualityScore:
    def test_overall_weights(self):
        score = QualityScore(blur_score=1.0, brightness_score=0.5, stability_score=0.0, corner_confidence=1.0)
        assert score.overall() == pytest.approx(0.3 + 0.1 + 0.0 + 0.2)

    def test_capture_ready(self):
        assert QualityScore(0.7, 0.6, 0.95, 0.9).is_capture_ready()
        assert not QualityScore(0.7, 0.6, 0.85, 0.9).is_capture_ready()
        assert not QualityScore(0.7, 0.6, 0.95, 0.5).is_capture_ready()


class TestTextRegions:
    def test_regions_found(self, text_frame):
        result = detect_text_regions(text_frame)
        assert result.found
        assert result.region_count >= 1
        assert 0 < result.coverage_ratio < 1

        areas = [r.area for r in result.regions]
        assert areas == sorted(areas, reverse=True)

        for region in result.regions:
            assert region.bounds.intersect(result.overall_bounds) == region.bounds

    def test_overall_corners(self, text_frame):
        result = detect_text_regions(text_frame)
        bounds = result.overall_bounds
        assert np.array_equal(result.overall_corners[0], [bounds.left, bounds.top])
        assert np.array_equal(result.overall_corners[2], [bounds.right, bounds.bottom])

    def test_blank_frame_has_no_regions(self, blank_frame):
        result = detect_text_regions(blank_frame)
        assert not result.found
        assert result.region_count == 0

    def test_single_region(self, text_frame):
        region = detect_text_region(text_frame)
        assert region.found
        assert region.bounds.width > 0 and region.bounds.height > 0
        assert 0.0 <= region.confidence <= 1.0

    def test_assess_with_text_region(self, text_frame):
        assessor = QualityAssessor()
        score = assessor.assess_with_text_region(text_frame)
        assert score.text_region is not None and score.text_region.found
        assert len(assessor.history) == 1
