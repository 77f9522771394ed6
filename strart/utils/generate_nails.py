import math
from typing import List, NamedTuple, Optional, Tuple

from strart.errors import InvalidConfigurationError


class Nail(NamedTuple):
    index: int
    x: float
    y: float


def default_geometry(image_shape, margin: float = 10.0):
    """
    Center and radius of the nail circle for a (height, width) canvas.

    The circle is inset by `margin` pixels so every nail rasterizes in-bounds.
    """
    h, w = image_shape
    center = ((w - 1) / 2.0, (h - 1) / 2.0)
    radius = min(w - 1, h - 1) / 2.0 - margin
    if radius <= 0:
        raise InvalidConfigurationError(
            f"nail circle radius {radius:.2f} <= 0 for canvas {w}x{h} (margin={margin})"
        )
    return center, radius


def generate_nail_positions(count: int, radius: float,
                            center: Tuple[float, float] = (0.0, 0.0)) -> List[Nail]:
    """
    Place `count` nails evenly on a circle.

    Args:
        count (int): number of nails, >= 2.
        radius (float): circle radius in full-resolution pixels.
        center (tuple): (x, y) of the circle center.

    Returns:
        List[Nail]: nail i at angle 2*pi*i/count.
    """
    if count < 2:
        raise InvalidConfigurationError(f"need at least 2 nails, got {count}")
    cx, cy = center
    nails = []
    for i in range(count):
        angle = 2 * math.pi * i / count
        nails.append(Nail(i, cx + radius * math.cos(angle), cy + radius * math.sin(angle)))
    return nails


def nail_ring_for_canvas(image_shape, count: int, margin: float = 10.0,
                         radius: Optional[float] = None,
                         center: Optional[Tuple[float, float]] = None) -> List[Nail]:
    if radius is None:
        center_auto, radius = default_geometry(image_shape, margin)
        center = center_auto if center is None else center
    elif center is None:
        h, w = image_shape
        center = ((w - 1) / 2.0, (h - 1) / 2.0)
    return generate_nail_positions(count, float(radius), (float(center[0]), float(center[1])))
