import numpy as np
import pytest

from strart.scoring.delta import delta_from_pixels, score_chord
from strart.simulation.residual_canvas import ResidualCanvas
from strart.utils.generate_nails import generate_nail_positions
from strart.utils.line_cache import LineCache

ROW = (np.array([0, 0, 0]), np.array([0, 1, 2]))


def test_exact_squared_error_reduction():
    target = np.full((1, 3), 100.0)
    canvas = ResidualCanvas(1, 3, invert=True)
    # (100 - 25)^2 - 100^2 per pixel
    assert delta_from_pixels(target, canvas, *ROW, darkening=25) == -4375.0 * 3
    assert delta_from_pixels(target, canvas, *ROW, darkening=25, normalize=True) == -4375.0


def test_dark_weighting_uses_target_darkness():
    target = np.full((1, 3), 100.0)  # darkness 100 -> brightness 155
    canvas = ResidualCanvas(1, 3, invert=True)
    d = delta_from_pixels(target, canvas, *ROW, darkening=25, weight_dark=True)
    assert d == pytest.approx(-4375.0 * 3 * (100.0 / 255.0))

    bright_target = np.full((1, 3), 155.0)
    bright_canvas = ResidualCanvas(1, 3, invert=False)
    d2 = delta_from_pixels(bright_target, bright_canvas, *ROW, darkening=25, weight_dark=True)
    assert d2 == pytest.approx(d)


def test_over_darkening_is_clipped_to_zero():
    target = np.full((1, 3), 10.0)
    canvas = ResidualCanvas(1, 3, invert=True)
    assert delta_from_pixels(target, canvas, *ROW, darkening=25) == 0.0


def test_target_equal_to_baseline_scores_zero():
    target = np.full((1, 3), 255.0)
    canvas = ResidualCanvas(1, 3, invert=False)
    assert delta_from_pixels(target, canvas, *ROW, darkening=40) == 0.0


@pytest.mark.parametrize("invert", [True, False])
@pytest.mark.parametrize("normalize", [True, False])
@pytest.mark.parametrize("weight_dark", [True, False])
def test_score_is_never_positive(invert, normalize, weight_dark):
    rng = np.random.default_rng(7)
    target = rng.uniform(0, 255, size=(40, 40))
    canvas = ResidualCanvas(40, 40, invert=invert)
    canvas.values[:] = rng.uniform(0, 255, size=(40, 40))
    nails = generate_nail_positions(12, 18.0, (19.5, 19.5))
    lines = LineCache(nails, (40, 40))
    for a in range(12):
        for b in range(a + 1, 12):
            for amount in (1.0, 30.0, 255.0):
                d = score_chord(target, canvas, lines, a, b, amount,
                                normalize=normalize, weight_dark=weight_dark)
                assert d <= 0.0


def test_scoring_does_not_touch_the_canvas():
    target = np.zeros((21, 21))
    canvas = ResidualCanvas(21, 21, invert=False)
    before = canvas.values.copy()
    nails = generate_nail_positions(4, 10.0, (10.0, 10.0))
    score_chord(target, canvas, LineCache(nails, (21, 21)), 0, 2, 255)
    np.testing.assert_array_equal(canvas.values, before)
