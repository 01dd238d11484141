"""
Quality Module

Sharpness, exposure and stability scoring of camera frames.
"""

from .assessor import QualityAssessor, QualityScore
from .text_regions import TextRegion, TextRegionsResult, detect_text_region, detect_text_regions

__all__ = [
    'QualityAssessor',
    'QualityScore',
    'TextRegion',
    'TextRegionsResult',
    'detect_text_region',
    'detect_text_regions',
]
