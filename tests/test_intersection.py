"""Unit tests for src.archerfish.intersection: ray/ray intersection."""

import math

import jax.numpy as jnp
import numpy as np
import pytest

from src.archerfish.datatypes import Point
from src.archerfish.intersection import intersect_rays


LEFT_POINT = Point(250.0, 450.0)
RIGHT_POINT = Point(550.0, 450.0)


class TestIntersectSymmetric:
    """Equal angles aimed at each other meet on the midline."""

    @pytest.mark.parametrize("angle", [10.0, 30.0, 41.68, 70.0])
    def test_meets_at_midpoint(self, angle):
        point, valid = intersect_rays(LEFT_POINT, angle, False, RIGHT_POINT, angle, True)
        assert valid
        assert float(point[0]) == pytest.approx(400.0, abs=1e-2)
        expected_y = 450.0 - 150.0 / math.tan(math.radians(angle))
        assert float(point[1]) == pytest.approx(expected_y, abs=1e-2)

    def test_meets_above_interface(self):
        point, valid = intersect_rays(LEFT_POINT, 30.0, False, RIGHT_POINT, 30.0, True)
        assert valid
        assert float(point[1]) < 450.0


class TestIntersectGeneral:

    def test_vertical_ray(self):
        """Angle 0 has an infinite slope and must still intersect."""
        point, valid = intersect_rays(LEFT_POINT, 0.0, False, RIGHT_POINT, 45.0, True)
        assert valid
        assert float(point[0]) == pytest.approx(250.0, abs=1e-2)
        assert float(point[1]) == pytest.approx(150.0, abs=1e-2)

    def test_both_rays_heading_same_way(self):
        # Both rays head right; the steeper left one is caught by the right one.
        point, valid = intersect_rays(LEFT_POINT, 60.0, False, RIGHT_POINT, 30.0, False)
        assert valid
        # Result lies on both supporting lines
        for origin, angle in ((LEFT_POINT, 60.0), (RIGHT_POINT, 30.0)):
            dx = abs(float(point[0]) - origin.x)
            dy = origin.y - float(point[1])
            assert math.degrees(math.atan2(dx, dy)) == pytest.approx(angle, abs=1e-2)

    def test_asymmetric_matches_slope_form(self):
        a1, a2 = 25.0, 40.0
        point, valid = intersect_rays(LEFT_POINT, a1, False, RIGHT_POINT, a2, True)
        assert valid
        # Slope form on screen coordinates
        m1 = -1.0 / math.tan(math.radians(a1))
        m2 = 1.0 / math.tan(math.radians(a2))
        x1, y1 = LEFT_POINT
        x2, y2 = RIGHT_POINT
        x = ((m1 * x1 - y1) - (m2 * x2 - y2)) / (m1 - m2)
        y = m1 * (x - x1) + y1
        assert float(point[0]) == pytest.approx(x, abs=1e-2)
        assert float(point[1]) == pytest.approx(y, abs=1e-2)


class TestIntersectDegenerate:

    def test_parallel_same_side(self):
        point, valid = intersect_rays(LEFT_POINT, 30.0, False, RIGHT_POINT, 30.0, False)
        assert not valid
        assert jnp.all(jnp.isfinite(point))

    def test_both_vertical(self):
        point, valid = intersect_rays(LEFT_POINT, 0.0, False, RIGHT_POINT, 0.0, True)
        assert not valid
        assert jnp.all(jnp.isfinite(point))

    def test_degenerate_returns_first_origin(self):
        point, valid = intersect_rays(LEFT_POINT, 45.0, True, RIGHT_POINT, 45.0, True)
        assert not valid
        np.testing.assert_allclose(np.asarray(point), [250.0, 450.0], atol=1e-4)
