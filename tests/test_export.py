import os

import cv2
import numpy as np
import pytest

from strart.selection.greedy import generate_sequence
from strart.utils.export import (
    chord_lines_xyxy, export_svg, format_nail_sequence, make_gif, parse_nail_sequence,
    read_chosen_lines_csv, read_recipe, save_canvas_pair, write_chosen_lines_csv,
    write_nail_sequence, write_recipe,
)


def _result():
    target = np.full((41, 41), 255.0)
    params = dict(num_nails=4, radius=20.0, center=(20.0, 20.0), darkening=25, max_chords=3)
    return generate_sequence(target, params), params


def test_sequence_text_format():
    text = format_nail_sequence([(0, 2), (2, 1), (1, 99)])
    assert text == "From nail 1 to nail 3\nFrom nail 3 to nail 2\nFrom nail 2 to nail 100"
    assert parse_nail_sequence(text + "\n") == [(0, 2), (2, 1), (1, 99)]
    assert format_nail_sequence([]) == ""


def test_parse_rejects_foreign_lines():
    with pytest.raises(ValueError):
        parse_nail_sequence("From nail 1 to nail 3\nnail 3 -> 4")


def test_write_nail_sequence(tmp_path):
    path = write_nail_sequence(str(tmp_path / "out" / "nail_sequence.txt"), [(4, 0)])
    with open(path, encoding="utf-8") as f:
        assert f.read() == "From nail 5 to nail 1"


def test_csv_log_round_trip(tmp_path):
    result, _ = _result()
    path = write_chosen_lines_csv(str(tmp_path / "chosen_lines.csv"), result.log)
    rows = read_chosen_lines_csv(path)
    assert [(r["from"], r["to"]) for r in rows] == list(result.sequence)
    assert rows[0]["t"] == 1
    assert rows[0]["delta"] == pytest.approx(result.log[0]["delta"])


def test_recipe_records_the_run(tmp_path):
    result, params = _result()
    path = write_recipe(str(tmp_path), "data/x.png", (41, 41), params, result, seconds=0.5)
    R = read_recipe(path)
    assert R["size"] == [41, 41]
    assert R["params"]["darkening"] == 25
    assert R["sequence"] == [list(p) for p in result.sequence]
    assert R["start_nail"] == 0
    assert R["stats"]["lines_drawn"] == len(result.sequence)
    assert R["stats"]["stop_reason"] == "max_chords"


def test_previews_svg_and_gif(tmp_path):
    result, _ = _result()
    lines = chord_lines_xyxy(result.sequence, result.nails)
    assert lines[0] == (40, 20, 0, 20)

    out = str(tmp_path)
    lines_path, sim_path = save_canvas_pair(out, lines, result.canvas, (41, 41), nails=result.nails)
    img = cv2.imread(lines_path, cv2.IMREAD_GRAYSCALE)
    assert img.shape == (41, 41)
    assert img[20, 20] < 255
    assert cv2.imread(sim_path, cv2.IMREAD_GRAYSCALE)[20, 20] < 255

    svg = str(tmp_path / "lines.svg")
    export_svg(svg, lines, w=41, h=41)
    with open(svg, encoding="utf-8") as f:
        assert f.read().count("<line ") == len(lines)

    frames = str(tmp_path / "frames")
    for t in (1, 2):
        save_canvas_pair(frames, lines[:t], result.canvas, (41, 41), step=t)
    gif = str(tmp_path / "progress.gif")
    assert make_gif(frames, gif) == 2
    assert os.path.exists(gif)
    assert make_gif(str(tmp_path / "empty"), gif) == 0
