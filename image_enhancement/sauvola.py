"""
Sauvola local binarization.

Window statistics come from integral images of the intensities and of the
squared intensities, so every pixel costs O(1) regardless of window size.
Windows touching the border are clipped to the image rather than padded.
"""

import cv2
import numpy as np


def to_gray(image: np.ndarray) -> np.ndarray:
    """Single channel view of a BGR, BGRA or already gray image."""
    if image.ndim == 2:
        return image
    if image.shape[2] == 4:
        return cv2.cvtColor(image, cv2.COLOR_BGRA2GRAY)
    if image.shape[2] == 1:
        return image[:, :, 0]
    return cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)


def _window_ranges(length: int, half_window: int):
    idx = np.arange(length)
    start = np.maximum(0, idx - half_window)
    end = np.minimum(length - 1, idx + half_window)
    return start, end


def local_mean_std(gray: np.ndarray, window_size: int):
    """
    Mean and standard deviation of every pixel's clipped window.

    Args:
        gray: Single channel image
        window_size: Odd window side length

    Returns:
        Tuple (mean, stddev) of float64 arrays shaped like gray
    """
    rows, cols = gray.shape[:2]
    half_window = window_size // 2

    integral_sum, integral_sq = cv2.integral2(gray, sdepth=cv2.CV_64F, sqdepth=cv2.CV_64F)

    y1, y2 = _window_ranges(rows, half_window)
    x1, x2 = _window_ranges(cols, half_window)

    def window_total(table):
        return (table[np.ix_(y2 + 1, x2 + 1)]
                - table[np.ix_(y1, x2 + 1)]
                - table[np.ix_(y2 + 1, x1)]
                + table[np.ix_(y1, x1)])

    area = np.outer(y2 - y1 + 1, x2 - x1 + 1).astype(np.float64)

    mean = window_total(integral_sum) / area
    variance = window_total(integral_sq) / area - mean * mean
    stddev = np.sqrt(np.maximum(variance, 0.0))

    return mean, stddev


def sauvola_threshold(
    image: np.ndarray,
    window_size: int = 15,
    k: float = 0.2,
    dynamic_range: float = 128.0
) -> np.ndarray:
    """
    Binarize an image with Sauvola's local threshold.

    threshold = mean * (1 + k * (stddev / R - 1))

    Args:
        image: BGR, BGRA or gray image (uint8)
        window_size: Window side length, bumped to the next odd number if even
        k: Sensitivity
        dynamic_range: Dynamic range of the standard deviation (R)

    Returns:
        Single channel uint8 mask, 255 where the pixel is above its threshold
    """
    gray = to_gray(image)

    if window_size % 2 == 0:
        window_size += 1

    mean, stddev = local_mean_std(gray, window_size)
    threshold = mean * (1.0 + k * (stddev / dynamic_range - 1.0))

    binary = np.zeros(gray.shape[:2], dtype=np.uint8)
    binary[gray > threshold] = 255
    return binary
