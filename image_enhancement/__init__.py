"""
Image Enhancement Module

Rectification and OCR-oriented enhancement of captured frames.
"""

from .enhancer import ImageEnhancer, EnhanceConfig, EnhanceMode
from .perspective import PerspectiveCorrector, TrapezoidMetrics, estimate_output_size, virtual_trapezoid
from .sauvola import sauvola_threshold

__all__ = [
    'ImageEnhancer',
    'EnhanceConfig',
    'EnhanceMode',
    'PerspectiveCorrector',
    'TrapezoidMetrics',
    'estimate_output_size',
    'virtual_trapezoid',
    'sauvola_threshold',
]
