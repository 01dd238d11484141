"""
Raw pixel buffer handling: format conversion, rotation and crop.
"""

import cv2
import numpy as np
from enum import IntEnum
from typing import Optional, Sequence

from common.bounds import Bounds


class PixelFormat(IntEnum):
    BGRA = 0
    BGR = 1
    RGB = 2
    GRAY = 3


CHANNELS = {
    PixelFormat.BGRA: 4,
    PixelFormat.BGR: 3,
    PixelFormat.RGB: 3,
    PixelFormat.GRAY: 1,
}

ROTATIONS = {
    90: cv2.ROTATE_90_CLOCKWISE,
    180: cv2.ROTATE_180,
    270: cv2.ROTATE_90_COUNTERCLOCKWISE,
}


def buffer_to_frame(data, width: int, height: int, pixel_format: int = PixelFormat.BGR) -> Optional[np.ndarray]:
    """
    Copy a raw pixel buffer into a BGR(A) or gray frame.

    RGB input is converted to BGR; unknown formats are read as BGR.

    Args:
        data: bytes-like object or uint8 numpy array holding the pixels row by row
        width: Frame width in pixels
        height: Frame height in pixels
        pixel_format: One of PixelFormat

    Returns:
        Frame of shape (height, width[, channels]) or None when the buffer
        is missing, too short or not 8-bit
    """
    if data is None or width <= 0 or height <= 0:
        return None

    try:
        fmt = PixelFormat(pixel_format)
    except ValueError:
        fmt = PixelFormat.BGR

    channels = CHANNELS[fmt]
    expected = width * height * channels

    if isinstance(data, np.ndarray):
        if data.dtype != np.uint8:
            return None
        flat = np.ascontiguousarray(data).reshape(-1)
    else:
        flat = np.frombuffer(data, dtype=np.uint8)

    if flat.size < expected:
        return None

    if channels == 1:
        frame = flat[:expected].reshape(height, width).copy()
    else:
        frame = flat[:expected].reshape(height, width, channels).copy()

    if fmt == PixelFormat.RGB:
        frame = cv2.cvtColor(frame, cv2.COLOR_RGB2BGR)

    return frame


def rotate_frame(frame: np.ndarray, rotation: int) -> np.ndarray:
    """Rotate clockwise by 90, 180 or 270 degrees; any other value is a no-op."""
    code = ROTATIONS.get(rotation)
    if code is None:
        return frame
    return cv2.rotate(frame, code)


def crop_frame(frame: np.ndarray, crop: Optional[Sequence[int]]) -> np.ndarray:
    """
    Crop (x, y, w, h) clamped to the frame.

    A crop with non-positive width or height, or one that ends up empty
    after clamping, leaves the frame untouched.
    """
    if not crop:
        return frame

    x, y, w, h = [int(v) for v in crop]
    if w <= 0 or h <= 0:
        return frame

    height, width = frame.shape[:2]
    bounds = Bounds(x, y, w, h).clamp_to(width, height)
    if bounds.is_empty():
        return frame

    return bounds.crop(frame)


def to_bgr(frame: np.ndarray) -> np.ndarray:
    """Drop the alpha channel of BGRA frames."""
    if frame.ndim == 3 and frame.shape[2] == 4:
        return cv2.cvtColor(frame, cv2.COLOR_BGRA2BGR)
    return frame
