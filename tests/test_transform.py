"""Tests for curve transforms."""

import pytest

from framerender.geometry.primitives import Point, as_curve
from framerender.geometry.transform import (
    center, extents_min, mirror, place_symmetric, scale, to_millimeters,
)

CURVE = as_curve([(0, -10), (20, -14), (45, -16), (60, -8), (0, 6)])


def assert_curves_close(a, b, tol=1e-9):
    assert len(a) == len(b)
    for p, q in zip(a, b):
        assert p.x == pytest.approx(q.x, abs=tol)
        assert p.y == pytest.approx(q.y, abs=tol)


class TestScale:
    """Tests for linear scaling."""

    def test_identity(self):
        assert scale(CURVE, 1.0) == CURVE

    def test_composition(self):
        assert_curves_close(scale(scale(CURVE, 2.5), 3.72), scale(CURVE, 2.5 * 3.72))

    def test_returns_new_curve(self):
        scaled = scale(CURVE, 10)
        assert scaled is not CURVE
        assert scaled[1] == Point(200, -140)


class TestExtents:
    """Tests for extents."""

    def test_extents_min(self):
        assert extents_min(CURVE) == (0, -16)


class TestMirror:
    """Tests for mirroring."""

    def test_involution(self):
        assert_curves_close(mirror(mirror(CURVE, 0), 0), CURVE)

    def test_involution_off_axis(self):
        assert_curves_close(mirror(mirror(CURVE, 12.5), 12.5), CURVE)

    def test_reflects_x_only(self):
        mirrored = mirror(CURVE, 0)
        for p, q in zip(CURVE, mirrored):
            assert q.x == -p.x
            assert q.y == p.y

    def test_about_axis(self):
        assert mirror([(3, 4)], 10) == (Point(17, 4),)

    def test_preserves_order(self):
        assert [p.y for p in mirror(CURVE, 0)] == [p.y for p in CURVE]


class TestCenter:
    """Tests for centring."""

    def test_translation(self):
        centred = center(CURVE, 1000, -160)
        assert centred[0] == Point(1000, 150)
        assert centred[2] == Point(1045, 144)


class TestPlaceSymmetric:
    """Tests for the scale/mirror/centre sequence."""

    def test_offset_from_scaled_left(self):
        _, _, offset = place_symmetric(CURVE, 10, 1000)
        assert offset == -160

    def test_lowest_point_on_row_zero(self):
        left, right, _ = place_symmetric(CURVE, 10, 1000)
        assert min(p.y for p in left) == 0
        assert min(p.y for p in right) == 0

    def test_halves_symmetric_about_origin(self):
        left, right, _ = place_symmetric(CURVE, 9.3, 1000)
        for p, q in zip(left, right):
            assert (p.x - 1000) == pytest.approx(-(q.x - 1000))
            assert p.y == q.y

    def test_shared_offset(self):
        lens = [(15, -8), (45, -10), (54, 2)]
        lens_left, _, offset = place_symmetric(lens, 10, 1000, vertical_offset=-160)
        assert offset == -160
        assert lens_left[0] == Point(1150, 80)


class TestFixedPoint:
    """Tests for fixed-point conversion."""

    def test_hundredths(self):
        assert to_millimeters([[1250, -300]], 100) == (Point(12.5, -3.0),)

    def test_configurable_factor(self):
        assert to_millimeters([[1250, -300]], 1000) == (Point(1.25, -0.3),)
