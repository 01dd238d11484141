"""
Document Detection Module

Finds the quadrilateral outline of a document or table in a camera frame.
"""

from .detector import DocumentDetector, DetectionResult

__all__ = ['DocumentDetector', 'DetectionResult']
