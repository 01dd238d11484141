import numpy as np


class Bounds:
    """Axis-aligned integer rectangle (left, top, width, height)."""

    def __init__(self, left, top, width, height):
        self.left = int(left)
        self.top = int(top)
        self.width = int(width)
        self.height = int(height)

    def __str__(self) -> str:
        return f"Bounds({self.left}, {self.top}, {self.width}, {self.height})"

    def __eq__(self, other) -> bool:
        if not isinstance(other, Bounds):
            return NotImplemented
        return self.to_list() == other.to_list()

    @classmethod
    def from_points(cls, points) -> "Bounds":
        """
        Bounding box of a set of points, truncating coordinates to int.

        Width and height are measured from the truncated minimum to the
        raw maximum, matching how crop rectangles are cut from corner sets.
        """
        pts = np.asarray(points, dtype=np.float32).reshape(-1, 2)
        min_x, min_y = pts.min(axis=0)
        max_x, max_y = pts.max(axis=0)
        return cls(int(min_x), int(min_y), int(max_x - min_x), int(max_y - min_y))

    @property
    def right(self) -> int:
        return self.left + self.width

    @property
    def bottom(self) -> int:
        return self.top + self.height

    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0

    def intersect(self, other) -> "Bounds":
        """Intersection with another Bounds; empty Bounds when disjoint."""
        left = max(self.left, other.left)
        top = max(self.top, other.top)
        right = min(self.right, other.right)
        bottom = min(self.bottom, other.bottom)
        if right <= left or bottom <= top:
            return Bounds(0, 0, 0, 0)
        return Bounds(left, top, right - left, bottom - top)

    def clamp_to(self, image_width: int, image_height: int) -> "Bounds":
        """
        Clamp the origin to the image and shrink width/height so the
        rectangle does not run past the right/bottom edges.
        """
        x = max(0, self.left)
        y = max(0, self.top)
        w = min(image_width - x, self.width)
        h = min(image_height - y, self.height)
        return Bounds(x, y, w, h)

    def pad(self, ratio_x: float, ratio_y: float, image_width: int, image_height: int) -> "Bounds":
        """Grow by a fraction of the current size on every side, clipped to the image."""
        pad_x = int(self.width * ratio_x)
        pad_y = int(self.height * ratio_y)
        x = max(0, self.left - pad_x)
        y = max(0, self.top - pad_y)
        w = min(image_width - x, self.width + 2 * pad_x)
        h = min(image_height - y, self.height + 2 * pad_y)
        return Bounds(x, y, w, h)

    def corners(self) -> np.ndarray:
        """Four corners in TL, TR, BR, BL order."""
        return np.array([
            [self.left, self.top],
            [self.right, self.top],
            [self.right, self.bottom],
            [self.left, self.bottom]
        ], dtype=np.float32)

    def crop(self, image: np.ndarray) -> np.ndarray:
        return image[self.top:self.bottom, self.left:self.right].copy()

    def to_list(self) -> list:
        return [self.left, self.top, self.width, self.height]
