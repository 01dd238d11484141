import numpy as np

from common.bounds import Bounds


class TestBounds:
    def test_edges(self):
        bounds = Bounds(4, 6, 10, 20)
        assert (bounds.right, bounds.bottom) == (14, 26)
        assert bounds.to_list() == [4, 6, 10, 20]

    def test_intersect(self):
        bounds = Bounds(-5, -5, 20, 20).intersect(Bounds(0, 0, 10, 10))
        assert bounds == Bounds(0, 0, 10, 10)

    def test_intersect_disjoint(self):
        bounds = Bounds(0, 0, 5, 5).intersect(Bounds(10, 10, 5, 5))
        assert bounds.is_empty()

    def test_clamp_to(self):
        bounds = Bounds(-10, 20, 100, 100).clamp_to(50, 60)
        assert bounds == Bounds(0, 20, 50, 40)

    def test_pad(self):
        bounds = Bounds(10, 10, 100, 40).pad(0.05, 0.05, 200, 200)
        assert bounds == Bounds(5, 8, 110, 44)

    def test_from_points(self):
        bounds = Bounds.from_points([[10.7, 5.2], [50.9, 5.0], [52.3, 40.8], [9.9, 41.0]])
        assert bounds == Bounds(9, 5, 42, 36)

    def test_corners(self):
        corners = Bounds(1, 2, 3, 4).corners()
        assert np.array_equal(corners, [[1, 2], [4, 2], [4, 6], [1, 6]])
