import math
from typing import Iterator, Tuple

import numpy as np


def round_half_up(v: float) -> int:
    return int(math.floor(v + 0.5))


def bresenham(x0: int, y0: int, x1: int, y1: int) -> Iterator[Tuple[int, int]]:
    """Integer error-term line walk from (x0, y0) to (x1, y1), both inclusive."""
    dx = abs(x1 - x0)
    dy = abs(y1 - y0)
    sx = 1 if x0 < x1 else -1
    sy = 1 if y0 < y1 else -1
    err = dx - dy
    x, y = x0, y0
    while True:
        yield x, y
        if x == x1 and y == y1:
            return
        e2 = 2 * err
        if e2 > -dy:
            err -= dy
            x += sx
        if e2 < dx:
            err += dx
            y += sy


def rasterize(p0, p1, downscale: int = 1) -> Iterator[Tuple[int, int]]:
    """
    Pixels a chord between two full-resolution points passes through.

    Endpoints are mapped into the downsampled grid (divided by `downscale` and
    rounded), walked there, and each pixel is scaled back up by `downscale`.
    The result is a fresh generator on every call.
    """
    s = int(downscale)
    x0, y0 = round_half_up(p0[0] / s), round_half_up(p0[1] / s)
    x1, y1 = round_half_up(p1[0] / s), round_half_up(p1[1] / s)
    for x, y in bresenham(x0, y0, x1, y1):
        yield x * s, y * s


def line_pixels(p1, p2, shape_hw, downscale: int = 1):
    """
    Rasterized chord as (ys, xs) index arrays into a (h, w) grid at downsampled
    resolution. Pixels outside the grid are dropped.
    """
    h, w = shape_hw
    s = int(downscale)
    coords = np.fromiter(
        (c // s for pt in rasterize(p1, p2, s) for c in pt), dtype=np.int64
    ).reshape(-1, 2)
    xs, ys = coords[:, 0], coords[:, 1]
    keep = (xs >= 0) & (xs < w) & (ys >= 0) & (ys < h)
    return ys[keep], xs[keep]  # row, col
