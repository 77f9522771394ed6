import math

import pytest

from strart.errors import InvalidConfigurationError
from strart.utils.generate_nails import default_geometry, generate_nail_positions, nail_ring_for_canvas


def test_nails_are_evenly_spaced_on_the_circle():
    nails = generate_nail_positions(12, 50.0, (60.0, 70.0))
    assert [n.index for n in nails] == list(range(12))
    for n in nails:
        assert math.hypot(n.x - 60.0, n.y - 70.0) == pytest.approx(50.0)
    assert (nails[0].x, nails[0].y) == pytest.approx((110.0, 70.0))
    assert (nails[3].x, nails[3].y) == pytest.approx((60.0, 120.0))


@pytest.mark.parametrize("n", [2, 8, 100])
def test_opposite_nails_are_one_diameter_apart(n):
    nails = generate_nail_positions(n, 40.0, (50.0, 50.0))
    for i in range(n):
        j = (i + n // 2) % n
        d = math.hypot(nails[i].x - nails[j].x, nails[i].y - nails[j].y)
        assert d == pytest.approx(80.0)


def test_generation_is_deterministic():
    assert generate_nail_positions(37, 12.5, (3.0, 4.0)) == generate_nail_positions(37, 12.5, (3.0, 4.0))


def test_fewer_than_two_nails_is_rejected():
    with pytest.raises(InvalidConfigurationError):
        generate_nail_positions(1, 10.0)


def test_default_geometry_insets_the_circle():
    center, radius = default_geometry((101, 101), margin=10)
    assert center == (50.0, 50.0)
    assert radius == 40.0
    with pytest.raises(InvalidConfigurationError):
        default_geometry((15, 15), margin=10)


def test_explicit_radius_and_center_skip_the_canvas_geometry():
    nails = nail_ring_for_canvas((5, 5), 4, margin=10, radius=2.0, center=(2.0, 2.0))
    assert (nails[2].x, nails[2].y) == pytest.approx((0.0, 2.0))


def test_explicit_radius_ignores_the_margin():
    nails = nail_ring_for_canvas((21, 21), 4, margin=10, radius=10.0)
    assert (nails[0].x, nails[0].y) == pytest.approx((20.0, 10.0))
    assert (nails[2].x, nails[2].y) == pytest.approx((0.0, 10.0))
