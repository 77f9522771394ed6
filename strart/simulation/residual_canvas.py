# simulation/residual_canvas.py
import numpy as np


class ResidualCanvas:
    """
    Ink deposited so far, one cell per target-field cell.

    With `invert=True` values start at 0 ("no ink") and every stroke adds
    `increment` (darkness accumulates toward 255). With `invert=False` they start
    at 255 (white) and every stroke subtracts. Values are clamped to [0, 255].
    """
    def __init__(self, height: int, width: int, invert: bool = True, baseline=None):
        self.invert = bool(invert)
        self.direction = 1.0 if self.invert else -1.0
        if baseline is None:
            baseline = 0.0 if self.invert else 255.0
        self.baseline = float(baseline)
        self.values = np.full((int(height), int(width)), self.baseline, np.float64)

    @property
    def shape(self):
        return self.values.shape

    def darkened(self, current, increment: float):
        """What `current` would become after one more stroke."""
        return np.clip(current + self.direction * increment, 0.0, 255.0)

    def _in_bounds(self, ys, xs):
        h, w = self.values.shape
        ys = np.asarray(ys, dtype=np.int64)
        xs = np.asarray(xs, dtype=np.int64)
        keep = (ys >= 0) & (ys < h) & (xs >= 0) & (xs < w)
        return ys[keep], xs[keep]

    def apply(self, ys, xs, increment: float):
        ys, xs = self._in_bounds(ys, xs)
        self.values[ys, xs] = self.darkened(self.values[ys, xs], increment)

    def read(self, y: int, x: int) -> float:
        h, w = self.values.shape
        if 0 <= y < h and 0 <= x < w:
            return float(self.values[y, x])
        return self.baseline

    def as_image(self) -> np.ndarray:
        """uint8 brightness image (white paper, black thread)."""
        img = 255.0 - self.values if self.invert else self.values
        return np.clip(np.round(img), 0, 255).astype(np.uint8)
