"""
Post-capture image enhancement for OCR.
"""

import cv2
import numpy as np
from enum import IntEnum

from .sauvola import sauvola_threshold, to_gray


class EnhanceMode(IntEnum):
    """OCR enhancement applied as the last step of the enhance stage."""
    NONE = 0
    WHITEN_BG = 1
    CONTRAST_STRETCH = 2
    ADAPTIVE_BINARIZE = 3
    SAUVOLA = 4


class EnhanceConfig:
    """Settings for the CLAHE + brightness auto enhancement."""

    def __init__(
        self,
        apply_clahe: bool = True,
        apply_brightness_adjust: bool = True,
        apply_sharpening: bool = False,
        clahe_clip_limit: float = 2.0,
        clahe_tile_size: int = 8,
        target_brightness: float = 0.5,
        sharpening_strength: float = 0.5
    ):
        self.apply_clahe = apply_clahe
        self.apply_brightness_adjust = apply_brightness_adjust
        self.apply_sharpening = apply_sharpening
        self.clahe_clip_limit = clahe_clip_limit
        self.clahe_tile_size = clahe_tile_size
        self.target_brightness = target_brightness
        self.sharpening_strength = sharpening_strength


class ImageEnhancer:
    """
    Enhancement steps used after rectification.

    Color images are BGR. Binarizing modes return a 3-channel image so the
    output always has the same channel count as a color input.
    """

    WHITEN_THRESHOLD = 200
    ADAPTIVE_BLOCK_SIZE = 11
    ADAPTIVE_C = 2
    SAUVOLA_WINDOW = 15
    SAUVOLA_K = 0.2
    SAUVOLA_R = 128

    def enhance(self, image: np.ndarray, config: EnhanceConfig = None) -> np.ndarray:
        if image is None or image.size == 0:
            return image

        config = config or EnhanceConfig()
        result = image.copy()

        if config.apply_clahe:
            result = self.apply_clahe(result, config.clahe_clip_limit, config.clahe_tile_size)

        if config.apply_brightness_adjust:
            result = self.adjust_brightness(result, config.target_brightness)

        if config.apply_sharpening:
            result = self.sharpen(result, config.sharpening_strength)

        return result

    def apply_clahe(self, image: np.ndarray, clip_limit: float = 2.0, tile_size: int = 8) -> np.ndarray:
        """CLAHE on gray images, or on the L channel of LAB for color images."""
        clahe = cv2.createCLAHE(clipLimit=clip_limit, tileGridSize=(tile_size, tile_size))

        if image.ndim == 2:
            return clahe.apply(image)

        lab = cv2.cvtColor(image, cv2.COLOR_BGR2LAB)
        l_channel, a_channel, b_channel = cv2.split(lab)
        l_channel = clahe.apply(l_channel)
        lab = cv2.merge((l_channel, a_channel, b_channel))
        return cv2.cvtColor(lab, cv2.COLOR_LAB2BGR)

    def calculate_brightness(self, image: np.ndarray) -> float:
        if image is None or image.size == 0:
            return 0.5
        return float(cv2.mean(to_gray(image))[0]) / 255.0

    def adjust_brightness(self, image: np.ndarray, target_brightness: float = 0.5) -> np.ndarray:
        """
        Shift brightness towards the target.

        Differences under 0.05 are left alone; the offset is 100 * diff,
        clamped to [-50, 50].
        """
        diff = target_brightness - self.calculate_brightness(image)

        if abs(diff) < 0.05:
            return image.copy()

        beta = max(-50.0, min(50.0, diff * 100.0))
        shifted = np.rint(image.astype(np.float32) + beta)
        return np.clip(shifted, 0, 255).astype(np.uint8)

    def sharpen(self, image: np.ndarray, strength: float = 0.5) -> np.ndarray:
        """Unsharp masking: original + strength * (original - blurred)."""
        if strength <= 0:
            return image.copy()

        blurred = cv2.GaussianBlur(image, (0, 0), 3)
        return cv2.addWeighted(image, 1.0 + strength, blurred, -strength, 0)

    def whiten_background(self, image: np.ndarray, threshold: int = WHITEN_THRESHOLD) -> np.ndarray:
        """Push pixels whose luminance is above threshold to pure white."""
        gray = to_gray(image)
        result = image.copy()
        result[gray > threshold] = 255
        return result

    def stretch_contrast(self, image: np.ndarray) -> np.ndarray:
        """Min-max stretch of gray images, or of the L channel for color images."""
        if image.ndim == 2:
            return cv2.normalize(image, None, 0, 255, cv2.NORM_MINMAX)

        lab = cv2.cvtColor(image, cv2.COLOR_BGR2LAB)
        l_channel, a_channel, b_channel = cv2.split(lab)
        l_channel = cv2.normalize(l_channel, None, 0, 255, cv2.NORM_MINMAX)
        lab = cv2.merge((l_channel, a_channel, b_channel))
        return cv2.cvtColor(lab, cv2.COLOR_LAB2BGR)

    def adaptive_binarize(self, image: np.ndarray, block_size: int = ADAPTIVE_BLOCK_SIZE, c: float = ADAPTIVE_C) -> np.ndarray:
        gray = to_gray(image)

        if block_size % 2 == 0:
            block_size += 1

        binary = cv2.adaptiveThreshold(
            gray,
            255,
            cv2.ADAPTIVE_THRESH_GAUSSIAN_C,
            cv2.THRESH_BINARY,
            block_size,
            c
        )
        return cv2.cvtColor(binary, cv2.COLOR_GRAY2BGR)

    def sauvola_binarize(
        self,
        image: np.ndarray,
        window_size: int = SAUVOLA_WINDOW,
        k: float = SAUVOLA_K,
        dynamic_range: float = SAUVOLA_R
    ) -> np.ndarray:
        binary = sauvola_threshold(image, window_size, k, dynamic_range)
        return cv2.cvtColor(binary, cv2.COLOR_GRAY2BGR)

    def apply_mode(self, image: np.ndarray, mode: EnhanceMode) -> np.ndarray:
        """Run the handler registered for an enhancement mode."""
        if image is None or image.size == 0:
            return image
        return MODE_HANDLERS[EnhanceMode(mode)](self, image)


MODE_HANDLERS = {
    EnhanceMode.NONE: lambda enhancer, image: image,
    EnhanceMode.WHITEN_BG: ImageEnhancer.whiten_background,
    EnhanceMode.CONTRAST_STRETCH: ImageEnhancer.stretch_contrast,
    EnhanceMode.ADAPTIVE_BINARIZE: ImageEnhancer.adaptive_binarize,
    EnhanceMode.SAUVOLA: ImageEnhancer.sauvola_binarize,
}

_missing_modes = set(EnhanceMode) - set(MODE_HANDLERS)
if _missing_modes:
    raise RuntimeError(f"No enhancement handler for {sorted(_missing_modes)}")
