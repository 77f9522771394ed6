# scoring/delta.py
import numpy as np


def target_brightness(original: np.ndarray, invert: bool) -> np.ndarray:
    return 255.0 - original if invert else original


def delta_from_pixels(target: np.ndarray, canvas, ys: np.ndarray, xs: np.ndarray,
                      darkening: float, normalize: bool = False,
                      weight_dark: bool = False) -> float:
    """
    Error change of drawing one more stroke over the given pixels.

    Per pixel:
        hypothetical = clamp(current +/- darkening, 0, 255)
        improvement  = (original - hypothetical)^2 - (original - current)^2
    and only improvements (negative values) are summed; a stroke is never
    penalised for over-darkening. The result is <= 0, more negative is better.

    normalize:   divide by the number of pixels on the chord.
    weight_dark: scale each pixel by how dark the target is there
                 (1 - brightness/255), favouring dark regions.
    """
    L = len(xs)
    if L == 0:
        return 0.0

    original = target[ys, xs].astype(np.float64)
    current = canvas.values[ys, xs]
    hypothetical = canvas.darkened(current, darkening)

    improvement = (original - hypothetical) ** 2 - (original - current) ** 2
    improvement = np.minimum(improvement, 0.0)

    if weight_dark:
        improvement = improvement * (1.0 - target_brightness(original, canvas.invert) / 255.0)

    delta = float(improvement.sum())
    if normalize:
        delta /= L
    return delta if delta < 0.0 else 0.0


def score_chord(target: np.ndarray, canvas, line_cache, a: int, b: int,
                darkening: float, normalize: bool = False,
                weight_dark: bool = False) -> float:
    """Delta of chord (a, b) against the current canvas snapshot; reads only."""
    ys, xs = line_cache.get(a, b)
    return delta_from_pixels(target, canvas, ys, xs, darkening,
                             normalize=normalize, weight_dark=weight_dark)
