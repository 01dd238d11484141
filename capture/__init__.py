"""
Capture Module

Real-time frame analysis and post-capture enhancement of documents.
"""

from .engine import CaptureEngine
from .frames import PixelFormat
from .results import EnhancementOptions, EnhancementResult, FrameAnalysisResult
from image_enhancement import EnhanceMode

__all__ = [
    'CaptureEngine',
    'PixelFormat',
    'EnhanceMode',
    'EnhancementOptions',
    'EnhancementResult',
    'FrameAnalysisResult',
]
