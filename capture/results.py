"""
Result and option types exchanged with the host shell.
"""

import copy

import numpy as np
from typing import Dict, List, Optional

from common.bounds import Bounds
from image_enhancement import EnhanceMode, TrapezoidMetrics
from quality.text_regions import MAX_REPORTED_REGIONS


class FrameAnalysisResult:
    """
    Outcome of analyzing one preview frame.

    Exactly one of table_found / text_region_found is set when something
    was located; corners then hold the quadrilateral (or the combined text
    bounds) in TL, TR, BR, BL order.
    """

    def __init__(self):
        self.document_found = False
        self.table_found = False
        self.text_region_found = False
        self.corners = np.zeros((4, 2), dtype=np.float32)
        self.corner_confidence = 0.0
        self.blur_score = 0.0
        self.brightness_score = 0.0
        self.stability_score = 0.0
        self.overall_score = 0.0
        self.capture_ready = False

        self.trapezoid = TrapezoidMetrics()

        self.text_regions: List[Bounds] = []
        self.overall_bounds = Bounds(0, 0, 0, 0)
        self.coverage_ratio = 0.0

    @property
    def text_region_count(self) -> int:
        return len(self.text_regions)

    @property
    def is_trapezoid(self) -> bool:
        return self.trapezoid.is_trapezoid

    def to_dict(self) -> Dict:
        """Flat record in the layout of the JSON wire format."""
        record = {
            'document_found': self.document_found,
            'table_found': self.table_found,
            'text_region_found': self.text_region_found,
            'corners': [round(float(v), 2) for v in self.corners.reshape(-1)],
            'corner_confidence': round(float(self.corner_confidence), 4),
            'blur_score': round(float(self.blur_score), 4),
            'brightness_score': round(float(self.brightness_score), 4),
            'stability_score': round(float(self.stability_score), 4),
            'overall_score': round(float(self.overall_score), 4),
            'capture_ready': bool(self.capture_ready),
        }

        for key, value in self.trapezoid.to_dict().items():
            record[key] = bool(value) if key == 'is_trapezoid' else round(float(value), 4)

        record['text_region_count'] = self.text_region_count
        record['coverage_ratio'] = round(float(self.coverage_ratio), 4)
        record['overall_bounds'] = [float(v) for v in self.overall_bounds.to_list()]
        record['text_regions'] = [
            [float(v) for v in bounds.to_list()]
            for bounds in self.text_regions[:MAX_REPORTED_REGIONS]
        ]
        return record


class EnhancementOptions:
    """What the enhance stage should do with a captured frame."""

    def __init__(
        self,
        apply_crop: bool = False,
        apply_perspective_correction: bool = True,
        apply_deskew: bool = False,
        apply_auto_enhance: bool = False,
        apply_sharpening: bool = False,
        sharpening_strength: float = 0.5,
        enhance_mode: EnhanceMode = EnhanceMode.NONE,
        output_width: int = 0,
        output_height: int = 0
    ):
        self.apply_crop = apply_crop
        self.apply_perspective_correction = apply_perspective_correction
        # Accepted for API compatibility; deskewing is not implemented.
        self.apply_deskew = apply_deskew
        self.apply_auto_enhance = apply_auto_enhance
        self.apply_sharpening = apply_sharpening
        self.sharpening_strength = sharpening_strength
        self.enhance_mode = EnhanceMode(enhance_mode)
        self.output_width = int(output_width)
        self.output_height = int(output_height)

    @classmethod
    def from_dict(cls, data: Dict) -> "EnhancementOptions":
        """Build options from loosely typed input (query args, JSON)."""
        def flag(name, default):
            value = data.get(name, default)
            if isinstance(value, str):
                return value.lower() in ('1', 'true', 'yes', 'on')
            return bool(value)

        mode = data.get('enhance_mode', EnhanceMode.NONE)
        if isinstance(mode, str):
            mode = EnhanceMode[mode.upper()] if not mode.isdigit() else int(mode)

        return cls(
            apply_crop=flag('apply_crop', False),
            apply_perspective_correction=flag('apply_perspective_correction', True),
            apply_deskew=flag('apply_deskew', False),
            apply_auto_enhance=flag('apply_auto_enhance', False),
            apply_sharpening=flag('apply_sharpening', False),
            sharpening_strength=float(data.get('sharpening_strength', 0.5)),
            enhance_mode=EnhanceMode(int(mode)),
            output_width=int(data.get('output_width', 0)),
            output_height=int(data.get('output_height', 0)),
        )

    def copy(self) -> "EnhancementOptions":
        return copy.copy(self)


class EnhancementResult:
    """
    Enhanced image plus status.

    The result owns its pixel buffer until release() is called. Use it as a
    context manager to release the buffer on every exit path:

        with engine.enhance_image(...) as result:
            if result.success:
                save(result.image)
    """

    def __init__(self):
        self.image: Optional[np.ndarray] = None
        self.width = 0
        self.height = 0
        self.channels = 0
        self.stride = 0
        self.success = False
        self.error_message = ""

    @classmethod
    def error(cls, message: str) -> "EnhancementResult":
        result = cls()
        result.error_message = message
        return result

    @classmethod
    def from_image(cls, image: np.ndarray) -> "EnhancementResult":
        result = cls()
        result.image = np.ascontiguousarray(image)
        result.height, result.width = image.shape[:2]
        result.channels = 1 if image.ndim == 2 else image.shape[2]
        result.stride = result.image.strides[0]
        result.success = True
        return result

    @property
    def released(self) -> bool:
        return self.image is None

    def to_bytes(self) -> bytes:
        if self.image is None:
            return b""
        return self.image.tobytes()

    def release(self):
        self.image = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.release()
        return False
