import pytest

from strart.scoring.line_integral import bresenham, line_pixels, rasterize, round_half_up


@pytest.mark.parametrize("p0,p1", [
    ((0, 0), (10, 3)),
    ((10, 3), (0, 0)),
    ((5, 5), (5, -7)),
    ((-4, 2), (9, 15)),
    ((3, 3), (3, 3)),
    ((0, 0), (-6, 13)),
])
def test_walk_covers_both_endpoints_with_expected_length(p0, p1):
    pts = list(bresenham(*p0, *p1))
    assert pts[0] == p0
    assert pts[-1] == p1
    assert len(pts) == max(abs(p1[0] - p0[0]), abs(p1[1] - p0[1])) + 1
    assert len(set(pts)) == len(pts)


def test_steps_are_eight_connected():
    pts = list(bresenham(0, 0, 17, -5))
    for (x0, y0), (x1, y1) in zip(pts, pts[1:]):
        assert max(abs(x1 - x0), abs(y1 - y0)) == 1


def test_rasterize_rounds_float_endpoints():
    pts = list(rasterize((0.4, 0.6), (9.5, 2.2)))
    assert pts[0] == (0, 1)
    assert pts[-1] == (10, 2)
    assert round_half_up(2.5) == 3
    assert round_half_up(-0.5) == 0


def test_rasterize_is_restartable():
    assert list(rasterize((1, 2), (30, 11))) == list(rasterize((1, 2), (30, 11)))


def test_downscaled_walk_maps_back_to_full_resolution():
    pts = list(rasterize((0, 0), (10, 4), downscale=2))
    assert pts[0] == (0, 0)
    assert pts[-1] == (10, 4)
    assert len(pts) == 6
    assert all(x % 2 == 0 and y % 2 == 0 for x, y in pts)


def test_line_pixels_index_the_downsampled_grid():
    ys, xs = line_pixels((0, 0), (10, 4), (3, 6), downscale=2)
    assert list(xs) == [0, 1, 2, 3, 4, 5]
    assert ys[0] == 0 and ys[-1] == 2


def test_line_pixels_drop_out_of_bounds_cells():
    ys, xs = line_pixels((-3, 0), (3, 0), (5, 5))
    assert list(xs) == [0, 1, 2, 3]
    assert list(ys) == [0, 0, 0, 0]
