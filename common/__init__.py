from .bounds import Bounds
from .geometry import order_corners, order_corners_clockwise, try_order_corners, edge_lengths

__all__ = ['Bounds', 'order_corners', 'order_corners_clockwise', 'try_order_corners', 'edge_lengths']
