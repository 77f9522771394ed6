# utils/export.py
import os, csv, glob, json, re
from typing import Iterable, List, Tuple

import cv2
import imageio.v2 as imageio
import numpy as np

from strart.scoring.line_integral import round_half_up

_SEQ_LINE = re.compile(r"^From nail (\d+) to nail (\d+)$")

# ---------------------------
# nail sequence text
# ---------------------------

def format_nail_sequence(sequence: Iterable[Tuple[int, int]]) -> str:
    """One line per chord, nails 1-indexed, in commit order."""
    return "\n".join(f"From nail {a + 1} to nail {b + 1}" for a, b in sequence)


def parse_nail_sequence(text: str) -> List[Tuple[int, int]]:
    out = []
    for n, line in enumerate(text.splitlines(), start=1):
        line = line.strip()
        if not line:
            continue
        m = _SEQ_LINE.match(line)
        if m is None:
            raise ValueError(f"line {n}: not a nail sequence entry: {line!r}")
        out.append((int(m.group(1)) - 1, int(m.group(2)) - 1))
    return out


def write_nail_sequence(path: str, sequence) -> str:
    d = os.path.dirname(path)
    if d:
        os.makedirs(d, exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        f.write(format_nail_sequence(sequence))
    return path

# ---------------------------
# rendering
# ---------------------------

def chord_lines_xyxy(sequence, nails) -> List[Tuple[int, int, int, int]]:
    out = []
    for a, b in sequence:
        p, q = nails[a], nails[b]
        out.append((round_half_up(p.x), round_half_up(p.y), round_half_up(q.x), round_half_up(q.y)))
    return out


def draw_lines_preview(lines_xyxy, hw, thickness: int = 1, nails=None):
    '''Render lines onto white canvas for preview (AA).'''
    H, W = int(hw[0]), int(hw[1])
    canvas = np.full((H, W, 3), 255, np.uint8)
    for (x1, y1, x2, y2) in lines_xyxy:
        cv2.line(canvas, (x1, y1), (x2, y2), (0, 0, 0), thickness=max(1, int(thickness)), lineType=cv2.LINE_AA)
    if nails is not None:
        for n in nails:
            cv2.circle(canvas, (round_half_up(n.x), round_half_up(n.y)), 2, (0, 0, 0), -1, lineType=cv2.LINE_AA)
    return canvas


def save_canvas_pair(out_dir, lines_xyxy, canvas, hw, step=None, thickness: int = 1, nails=None):
    '''Save the line drawing and the simulated residual canvas (final or per-step).'''
    os.makedirs(out_dir, exist_ok=True)
    H, W = int(hw[0]), int(hw[1])
    lines_img = draw_lines_preview(lines_xyxy, (H, W), thickness, nails=nails)
    sim = cv2.resize(canvas.as_image(), (W, H), interpolation=cv2.INTER_NEAREST)

    if step is None:
        lines_path = os.path.join(out_dir, 'simulated_result_lines.png')
        sim_path = os.path.join(out_dir, 'simulated_from_canvas.png')
    else:
        lines_path = os.path.join(out_dir, f'sim_{int(step):04d}.png')
        sim_path = os.path.join(out_dir, f'canvas_{int(step):04d}.png')
    cv2.imwrite(lines_path, lines_img)
    cv2.imwrite(sim_path, sim)
    return lines_path, sim_path


def export_svg(out_path: str, lines_xyxy, w: int, h: int, stroke_px: float = 1.0, opacity: float = 0.5):
    '''
    Minimal SVG export of the chord sequence at full-resolution pixel coordinates.
    '''
    d = os.path.dirname(out_path)
    if d:
        os.makedirs(d, exist_ok=True)
    header = f'<svg xmlns="http://www.w3.org/2000/svg" width="{w}" height="{h}" viewBox="0 0 {w} {h}">\n'
    style  = (f'  <g fill="none" stroke="black" stroke-width="{stroke_px}" stroke-opacity="{opacity}" '
              f'stroke-linecap="round" stroke-linejoin="round">\n')
    parts = [header, style]
    for (x1, y1, x2, y2) in lines_xyxy:
        parts.append(f'    <line x1="{x1}" y1="{y1}" x2="{x2}" y2="{y2}" />\n')
    parts.append('  </g>\n</svg>\n')
    with open(out_path, 'w', encoding='utf-8') as f:
        f.writelines(parts)


def make_gif(frames_dir: str, out_path: str, fps: int = 20, pattern: str = 'sim_*.png') -> int:
    frames = sorted(glob.glob(os.path.join(frames_dir, pattern)))
    if not frames:
        return 0
    imgs = [imageio.imread(f) for f in frames]
    imageio.mimsave(out_path, imgs, fps=fps)
    return len(frames)

# ---------------------------
# run logs
# ---------------------------

CSV_FIELDS = ['t', 'from', 'to', 'delta', 'length']


def write_chosen_lines_csv(path: str, log) -> str:
    with open(path, 'w', newline='', encoding='utf-8') as f:
        w = csv.DictWriter(f, fieldnames=CSV_FIELDS)
        w.writeheader()
        for row in log:
            w.writerow({k: row[k] for k in CSV_FIELDS})
    return path


def read_chosen_lines_csv(path: str) -> List[dict]:
    rows = []
    with open(path, newline='', encoding='utf-8') as f:
        for row in csv.DictReader(f):
            rows.append({
                't': int(row['t']),
                'from': int(row['from']),
                'to': int(row['to']),
                'delta': float(row['delta']),
                'length': int(row['length']),
            })
    return rows


def write_recipe(out_dir, image_path, size_hw, params, result, seconds=None) -> str:
    os.makedirs(out_dir, exist_ok=True)
    recipe_path = os.path.join(out_dir, 'recipe.json')
    img_for_recipe = image_path
    if image_path and not os.path.isabs(image_path):
        img_for_recipe = os.path.relpath(image_path, start=os.path.dirname(os.path.abspath(recipe_path)))
    recipe = dict(
        image=img_for_recipe,
        size=[int(size_hw[0]), int(size_hw[1])],
        params=params,
        sequence=[[int(a), int(b)] for a, b in result.sequence],
        start_nail=int(result.start_nail),
        stats=dict(
            lines_drawn=len(result.sequence),
            stop_reason=result.stop_reason.value,
            seconds=seconds,
        ),
    )
    with open(recipe_path, 'w', encoding='utf-8') as f:
        json.dump(recipe, f, indent=2)
    return recipe_path


def read_recipe(path: str) -> dict:
    with open(path, 'r', encoding='utf-8') as f:
        return json.load(f)
