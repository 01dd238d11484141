import numpy as np
import pytest

from common.geometry import (
    edge_lengths,
    min_pairwise_distance,
    order_corners,
    order_corners_clockwise,
    polygon_area,
    try_order_corners,
)


class TestOrderCorners:
    """Tests for corner ordering"""

    def test_order_shuffled(self):
        """Points in random order come back as TL, TR, BR, BL"""
        pts = np.array([
            [100, 200],  # bottom-left
            [100, 100],  # top-left
            [200, 200],  # bottom-right
            [200, 100],  # top-right
        ], dtype=np.float32)

        ordered = order_corners(pts)

        assert np.array_equal(ordered[0], [100, 100])
        assert np.array_equal(ordered[1], [200, 100])
        assert np.array_equal(ordered[2], [200, 200])
        assert np.array_equal(ordered[3], [100, 200])

    @pytest.mark.parametrize("corners", [
        [[0, 0], [10, 0], [10, 10], [0, 10]],
        [[12, 7], [95, 3], [110, 88], [4, 95]],
        [[220, 100], [420, 100], [540, 400], [100, 400]],
    ])
    def test_idempotent(self, corners):
        """Ordering an ordered set returns it unchanged"""
        once = order_corners(corners)
        twice = order_corners(once)
        assert np.array_equal(once, twice)
        assert np.array_equal(once, np.asarray(corners, dtype=np.float32))

    def test_flat_list(self):
        """A flat list of 8 values is accepted"""
        ordered = order_corners([10, 10, 0, 10, 0, 0, 10, 0])
        assert np.array_equal(ordered, [[0, 0], [10, 0], [10, 10], [0, 10]])

    def test_degenerate_returns_input(self):
        """Collinear points cannot fill all quadrants: input order is kept"""
        pts = np.array([[0, 0], [10, 0], [20, 0], [30, 0]], dtype=np.float32)
        assert np.array_equal(order_corners(pts), pts)

    def test_wrong_count_returns_input(self):
        pts = np.array([[0, 0], [10, 0], [10, 10]], dtype=np.float32)
        assert np.array_equal(order_corners(pts), pts)


class TestEdgeHelpers:
    def test_edge_lengths(self):
        top, bottom, left, right = edge_lengths([[0, 0], [30, 0], [40, 30], [0, 30]])
        assert top == pytest.approx(30)
        assert bottom == pytest.approx(40)
        assert left == pytest.approx(30)
        assert right == pytest.approx(np.hypot(10, 30))

    def test_min_pairwise_distance(self):
        assert min_pairwise_distance([[0, 0], [3, 4], [100, 0], [100, 100]]) == pytest.approx(5)

    def test_polygon_area(self):
        assert polygon_area([[0, 0], [10, 0], [10, 5], [0, 5]]) == pytest.approx(50)


# Short top edge entirely right of the centroid
NARROW_TOP_TRAPEZOID = [[400, 60], [460, 60], [600, 420], [40, 420]]


class TestClockwiseOrdering:
    """Tests for the angle based fallback ordering"""

    def test_quadrant_ordering_fails(self):
        corners, ok = try_order_corners(NARROW_TOP_TRAPEZOID)
        assert not ok
        assert np.array_equal(corners, np.asarray(NARROW_TOP_TRAPEZOID, dtype=np.float32))

    def test_quadrant_ordering_succeeds(self):
        corners, ok = try_order_corners([[10, 10], [0, 10], [0, 0], [10, 0]])
        assert ok
        assert np.array_equal(corners, [[0, 0], [10, 0], [10, 10], [0, 10]])

    @pytest.mark.parametrize("shift", range(4))
    def test_narrow_top_trapezoid(self, shift):
        shuffled = np.roll(np.asarray(NARROW_TOP_TRAPEZOID, dtype=np.float32), shift, axis=0)
        assert np.array_equal(order_corners_clockwise(shuffled), NARROW_TOP_TRAPEZOID)

    def test_reversed_winding(self):
        reversed_pts = np.asarray(NARROW_TOP_TRAPEZOID, dtype=np.float32)[::-1]
        assert np.array_equal(order_corners_clockwise(reversed_pts), NARROW_TOP_TRAPEZOID)

    def test_agrees_with_quadrants(self):
        pts = [[100, 200], [100, 100], [200, 200], [200, 100]]
        assert np.array_equal(order_corners_clockwise(pts), order_corners(pts))
