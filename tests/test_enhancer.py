import numpy as np
import pytest

from image_enhancement import EnhanceConfig, EnhanceMode, ImageEnhancer
from image_enhancement.enhancer import MODE_HANDLERS


@pytest.fixture
def enhancer():
    return ImageEnhancer()


@pytest.fixture
def page():
    """Gray page with a dark band, BGR"""
    image = np.full((120, 160, 3), 180, dtype=np.uint8)
    image[50:70, 20:140] = 60
    return image


class TestImageEnhancer:
    def test_every_mode_has_handler(self):
        assert set(MODE_HANDLERS) == set(EnhanceMode)

    @pytest.mark.parametrize("mode", list(EnhanceMode))
    def test_modes_keep_shape(self, enhancer, page, mode):
        assert enhancer.apply_mode(page, mode).shape == page.shape

    def test_mode_none_is_identity(self, enhancer, page):
        assert np.array_equal(enhancer.apply_mode(page, EnhanceMode.NONE), page)

    def test_whiten_background(self, enhancer, page):
        out = enhancer.whiten_background(page, threshold=150)
        assert out[0, 0].tolist() == [255, 255, 255]
        assert out[60, 80].tolist() == [60, 60, 60]

    def test_stretch_contrast(self, enhancer, page):
        out = enhancer.stretch_contrast(page[:, :, 0])
        assert out.min() == 0 and out.max() == 255

    def test_binarize_is_binary(self, enhancer, page):
        for out in (enhancer.adaptive_binarize(page), enhancer.sauvola_binarize(page)):
            assert out.shape == page.shape
            assert set(np.unique(out)) <= {0, 255}

    def test_brightness(self, enhancer):
        assert enhancer.calculate_brightness(np.full((4, 4), 51, np.uint8)) == pytest.approx(0.2)
        assert enhancer.calculate_brightness(None) == 0.5

    def test_adjust_brightness_clamped(self, enhancer):
        dark = np.full((4, 4, 3), 10, dtype=np.uint8)
        assert enhancer.adjust_brightness(dark, target_brightness=0.9).max() == 60

    def test_adjust_brightness_small_difference(self, enhancer):
        mid = np.full((4, 4, 3), 130, dtype=np.uint8)
        assert np.array_equal(enhancer.adjust_brightness(mid), mid)

    def test_adjust_brightness_towards_target(self, enhancer):
        bright = np.full((4, 4, 3), 204, dtype=np.uint8)
        # 0.8 -> 0.5 gives an offset of -30
        assert enhancer.adjust_brightness(bright).max() == 174

    def test_sharpen_off(self, enhancer, page):
        assert np.array_equal(enhancer.sharpen(page, 0), page)

    def test_sharpen_increases_edge_contrast(self, enhancer, page):
        out = enhancer.sharpen(page, 1.0)
        assert out[49, 80, 0] > page[49, 80, 0]
        assert out[50, 80, 0] < page[50, 80, 0]

    def test_auto_enhance(self, enhancer, page):
        out = enhancer.enhance(page, EnhanceConfig(apply_sharpening=True))
        assert out.shape == page.shape
        assert out.dtype == np.uint8
