# selection/overlap.py
import math
from typing import Sequence, Tuple


def point_segment_distance(p, a, b) -> float:
    """Euclidean distance from p to segment ab (projection clamped to [0, 1])."""
    px, py = p
    ax, ay = a
    bx, by = b
    vx, vy = bx - ax, by - ay
    len_sq = vx * vx + vy * vy
    if len_sq <= 0.0:
        return math.hypot(px - ax, py - ay)
    t = ((px - ax) * vx + (py - ay) * vy) / len_sq
    t = max(0.0, min(1.0, t))
    return math.hypot(px - (ax + t * vx), py - (ay + t * vy))


def chord_allowed(candidate: Tuple[int, int], committed: Sequence[Tuple[int, int]],
                  nails, threshold: float) -> bool:
    """
    False if an endpoint of `candidate` lies closer than `threshold` to any
    committed chord.

    An endpoint that is itself a nail of the committed chord is skipped for that
    chord (consecutive chords always share a nail); the same undirected pair is
    always rejected.
    """
    if threshold is None or threshold <= 0:
        return True
    c0, c1 = candidate
    cand = {c0, c1}
    for a, b in committed:
        if cand == {a, b}:
            return False
        pa, pb = (nails[a].x, nails[a].y), (nails[b].x, nails[b].y)
        for e in (c0, c1):
            if e == a or e == b:
                continue
            if point_segment_distance((nails[e].x, nails[e].y), pa, pb) < threshold:
                return False
    return True
