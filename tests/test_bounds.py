import numpy as np
import pytest

from hmdcalib.core.bounds import InclusiveBounds, RectBounds, XYInclusiveBounds


def test_unbounded_contains_everything():
    b = InclusiveBounds()
    assert not b
    assert b.contains(-1e300)
    assert b.contains(1e300)
    assert not b.outside(0.0)
    assert str(b) == "[unbounded]"
    with pytest.raises(ValueError):
        _ = b.min


def test_bounds_swap_reversed_ends():
    b = InclusiveBounds.between(3.0, -1.0)
    assert b
    assert (b.min, b.max) == (-1.0, 3.0)
    assert b.contains(-1.0)
    assert b.contains(3.0)
    assert b.outside(3.5)
    assert str(b) == "[-1, 3]"


def test_xy_bounds_formatting():
    assert str(XYInclusiveBounds()) == "unbounded"
    xy = XYInclusiveBounds(x=InclusiveBounds.between(0.0, 1.0))
    assert str(xy) == "x: [0, 1]"
    assert xy.contains((0.5, 100.0))
    assert not xy.contains((1.5, 0.0))


def test_rect_bounds_reflection_is_involution():
    b = RectBounds(left=-0.3, right=1.7, top=2.5, bottom=-0.25)
    once = b.reflected_horizontally()
    assert (once.left, once.right, once.top, once.bottom) == (-1.7, 0.3, 2.5, -0.25)
    assert once.reflected_horizontally() == b


def test_rect_bounds_from_points():
    b = RectBounds.from_points(np.array([[2.0, 5.0], [-1.0, 3.0], [4.0, -2.0]]))
    assert (b.left, b.right, b.bottom, b.top) == (-1.0, 4.0, -2.0, 5.0)
    assert b.width == 5.0
    assert b.height == 7.0
    assert str(b) == "x: [-1, 4], y: [-2, 5]"
