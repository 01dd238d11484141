"""
Shared fixtures: synthetic camera frames with known geometry.
"""

import cv2
import numpy as np
import pytest

FRAME_WIDTH = 640
FRAME_HEIGHT = 480

# Bright rectangle on a dark background (TL, TR, BR, BL)
RECT_CORNERS = np.array([[160, 120], [480, 120], [480, 360], [160, 360]], dtype=np.float32)

# Table seen from below: bottom edge wider than the top edge
TRAPEZOID_CORNERS = np.array([[220, 100], [420, 100], [540, 400], [100, 400]], dtype=np.float32)


def make_quad_frame(corners, background=30, foreground=220, width=FRAME_WIDTH, height=FRAME_HEIGHT):
    frame = np.full((height, width, 3), background, dtype=np.uint8)
    cv2.fillConvexPoly(frame, np.asarray(corners, dtype=np.int32), (foreground, foreground, foreground))
    return frame


@pytest.fixture
def document_frame():
    """640x480 BGR frame with a bright rectangle covering 25% of it"""
    return make_quad_frame(RECT_CORNERS)


@pytest.fixture
def trapezoid_frame():
    """640x480 BGR frame with a bright trapezoid"""
    return make_quad_frame(TRAPEZOID_CORNERS)


@pytest.fixture
def blank_frame():
    """Uniform mid-gray frame without any structure"""
    return np.full((FRAME_HEIGHT, FRAME_WIDTH, 3), 128, dtype=np.uint8)


@pytest.fixture
def text_frame():
    """Light page texture with a few lines of dark text and no outline"""
    frame = np.full((FRAME_HEIGHT, FRAME_WIDTH, 3), 225, dtype=np.uint8)
    lines = ["INVOICE 2041", "Total 118.40", "Paid by card"]
    for i, line in enumerate(lines):
        cv2.putText(frame, line, (180, 190 + i * 45), cv2.FONT_HERSHEY_SIMPLEX, 0.9, (20, 20, 20), 2)
    return frame
