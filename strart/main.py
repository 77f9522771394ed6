#!/usr/bin/env python3
# -*- coding: utf-8 -*-
'''
StrArt – greedy chord sequencing on a circular nail ring.

Loads an image, builds the target field, runs the greedy path builder and writes
the nail sequence plus previews, logs and a replayable recipe.
'''
import os
import time
import argparse

from tqdm import tqdm

from strart.errors import MissingSourceError, StrArtError
from strart.selection.greedy import DEFAULT_PARAMS, GreedyPathBuilder
from strart.utils.export import (
    chord_lines_xyxy, export_svg, make_gif, read_recipe, save_canvas_pair,
    write_chosen_lines_csv, write_nail_sequence, write_recipe,
)
from strart.utils.generate_nails import nail_ring_for_canvas
from strart.utils.line_cache import load_line_cache, save_line_cache
from strart.utils.preprocess_image import field_shape, load_image, preprocess_image


def _start_arg(v: str):
    return v if v == 'random' else int(v)


def build_parser():
    parser = argparse.ArgumentParser(description='Greedy string-art chord sequencer')
    parser.add_argument('--image', type=str, default=None)
    parser.add_argument('--recipe', type=str, default=None,
        help='Path to a recipe.json to replay a run; overrides CLI args except out_dir/export flags.')
    parser.add_argument('--out_dir', type=str, default='outputs')

    # canvas / layout
    parser.add_argument('--size', type=int, nargs=2, default=[500, 500], help='H W')
    parser.add_argument('--downscale', type=int, default=DEFAULT_PARAMS['downscale'])
    parser.add_argument('--num_nails', type=int, default=DEFAULT_PARAMS['num_nails'])
    parser.add_argument('--nail_margin', type=float, default=DEFAULT_PARAMS['nail_margin'])
    parser.add_argument('--brightness', action='store_true',
        help='Keep plain brightness (strokes darken toward 0) instead of inverted darkness.')

    # greedy search
    parser.add_argument('--max_chords', type=int, default=DEFAULT_PARAMS['max_chords'])
    parser.add_argument('--darkening', type=float, default=DEFAULT_PARAMS['darkening'])
    parser.add_argument('--overlap_threshold', type=float, default=None,
        help='Reject chords whose endpoints come closer than this (px) to a committed chord.')
    parser.add_argument('--min_delta', type=float, default=DEFAULT_PARAMS['min_delta'],
        help='A chord must score strictly below this (<= 0) to be drawn.')
    parser.add_argument('--normalize', action='store_true', help='Divide chord delta by its pixel count.')
    parser.add_argument('--weight_dark', action='store_true', help='Weight pixels by target darkness.')
    parser.add_argument('--start', type=_start_arg, default=DEFAULT_PARAMS['start_nail'],
        help="Starting nail index (0-based) or 'random'.")
    parser.add_argument('--seed', type=int, default=None)
    parser.add_argument('--workers', type=int, default=DEFAULT_PARAMS['workers'])
    parser.add_argument('--line_cache_dir', type=str, default=None)

    # rendering / export
    parser.add_argument('--save_every', type=int, default=0)
    parser.add_argument('--gif', action='store_true', help='Assemble snapshots into progress.gif')
    parser.add_argument('--gif_fps', type=int, default=20)
    parser.add_argument('--render_thickness', type=int, default=1)
    parser.add_argument('--draw_nails', action='store_true')
    parser.add_argument('--export_svg', action='store_true')
    parser.add_argument('--svg_stroke', type=float, default=0.5)
    parser.add_argument('--quiet', action='store_true')
    return parser


def _resolve_image_from_recipe(recipe_path, recipe_img):
    base = os.path.dirname(os.path.abspath(recipe_path))
    cands = [recipe_img] if os.path.isabs(recipe_img) else [
        os.path.join(base, recipe_img),
        os.path.join(base, 'data', recipe_img),
        os.path.join('data', recipe_img),
        recipe_img,
    ]
    for p in cands:
        if os.path.exists(p):
            return p
    return None


def _apply_recipe(args):
    if not args.recipe:
        return args
    try:
        R = read_recipe(args.recipe)
    except (OSError, ValueError) as e:
        raise MissingSourceError(f"Could not read recipe {args.recipe}: {e}") from e
    if not isinstance(R, dict):
        raise MissingSourceError(f"Recipe {args.recipe} is not a JSON object")

    # IMAGE: CLI wins if it exists; otherwise resolve from recipe
    if not (args.image and os.path.exists(args.image)) and R.get('image'):
        resolved = _resolve_image_from_recipe(args.recipe, R['image'])
        if resolved:
            args.image = resolved

    if 'size' in R:
        args.size = [int(R['size'][0]), int(R['size'][1])]

    P = R.get('params', {})
    args.num_nails         = int(P.get('num_nails', args.num_nails))
    args.max_chords        = int(P.get('max_chords', args.max_chords))
    args.darkening         = float(P.get('darkening', args.darkening))
    args.downscale         = int(P.get('downscale', args.downscale))
    args.overlap_threshold = P.get('overlap_threshold', args.overlap_threshold)
    args.brightness        = not bool(P.get('invert', not args.brightness))
    args.min_delta         = float(P.get('min_delta', args.min_delta))
    args.normalize         = bool(P.get('normalize', args.normalize))
    args.weight_dark       = bool(P.get('weight_dark', args.weight_dark))
    args.workers           = int(P.get('workers', args.workers))
    args.nail_margin       = float(P.get('nail_margin', args.nail_margin))
    args.seed              = P.get('seed', args.seed)
    # a random start is replayed as the nail it actually drew
    args.start             = int(R['start_nail']) if 'start_nail' in R else P.get('start_nail', args.start)
    return args


def params_from_args(args) -> dict:
    return dict(
        num_nails=args.num_nails,
        max_chords=args.max_chords,
        darkening=args.darkening,
        downscale=args.downscale,
        overlap_threshold=args.overlap_threshold,
        invert=not args.brightness,
        start_nail=args.start,
        seed=args.seed,
        min_delta=args.min_delta,
        normalize=bool(args.normalize),
        weight_dark=bool(args.weight_dark),
        workers=args.workers,
        nail_margin=args.nail_margin,
    )


def run_cli(args):
    size = (int(args.size[0]), int(args.size[1]))
    raw = load_image(args.image)
    target = preprocess_image(raw, size=size, downscale=args.downscale, invert=not args.brightness)
    params = params_from_args(args)

    # full-resolution canvas is the field times the downscale factor
    fh, fw = field_shape(size, args.downscale)
    full_hw = (fh * args.downscale, fw * args.downscale)

    cache = None
    if args.line_cache_dir:
        nails = nail_ring_for_canvas(full_hw, args.num_nails, margin=args.nail_margin)
        cache, cache_path = load_line_cache(nails, (fh, fw), args.downscale, args.line_cache_dir)
        if cache is not None:
            print(f'🗂️  line cache: {cache_path} ({len(cache)} chords)')

    builder = GreedyPathBuilder(target, params, line_cache=cache)
    print(f'🧷 {len(builder.nails)} nails on {full_hw[1]}x{full_hw[0]} (field {fw}x{fh}), start={args.start}')

    snap_dir = os.path.join(args.out_dir, 'progress_frames')
    bar = tqdm(total=args.max_chords, desc='chords', disable=args.quiet)

    def on_step(t, info):
        bar.update(1)
        bar.set_postfix(nail=info['to'] + 1, delta=f"{info['delta']:.1f}")
        if args.save_every > 0 and t % args.save_every == 0:
            save_canvas_pair(snap_dir, chord_lines_xyxy(builder.sequence, builder.nails), builder.canvas,
                             full_hw, step=t, thickness=args.render_thickness)

    t0 = time.time()
    try:
        result = builder.run(on_step=on_step)
    finally:
        bar.close()
    dt = time.time() - t0

    if result.converged:
        print(f'✅ no improving chord left after {len(result.sequence)} chords')
    else:
        print(f'⏹️  reached max_chords={args.max_chords}')

    os.makedirs(args.out_dir, exist_ok=True)
    seq_path = write_nail_sequence(os.path.join(args.out_dir, 'nail_sequence.txt'), result.sequence)
    print(f'🧵 sequence: {seq_path}')

    lines = chord_lines_xyxy(result.sequence, result.nails)
    save_canvas_pair(args.out_dir, lines, result.canvas, full_hw, step=None,
                     thickness=args.render_thickness, nails=result.nails if args.draw_nails else None)

    if args.export_svg:
        svg_path = os.path.join(args.out_dir, 'lines.svg')
        export_svg(svg_path, lines, w=full_hw[1], h=full_hw[0], stroke_px=args.svg_stroke)
        print(f'🖨️  SVG: {svg_path}')

    if args.gif:
        n = make_gif(snap_dir, os.path.join(args.out_dir, 'progress.gif'), fps=args.gif_fps)
        if n:
            print(f'🎞️  gif: {n} frames')
        else:
            print('⚠️ no snapshots to animate (use --save_every)')

    try:
        csv_path = write_chosen_lines_csv(os.path.join(args.out_dir, 'chosen_lines.csv'), result.log)
        print(f'📝 log: {csv_path}')
    except OSError as e:
        print(f'⚠️ could not write chosen_lines.csv: {e}')

    try:
        recipe_path = write_recipe(args.out_dir, args.image, size, params, result, seconds=dt)
        print(f'📦 recipe: {recipe_path}')
    except (OSError, TypeError) as e:
        print(f'⚠️ could not write recipe.json: {e}')

    if args.line_cache_dir and cache is None:
        print(f'🗂️  saved line cache: {save_line_cache(builder.lines, args.line_cache_dir)}')

    print(f'✅ lines drawn: {len(result.sequence)} in {dt:.2f}s')
    print(f'🖼️ saved results to {args.out_dir}')
    return result


def main(argv=None):
    args = build_parser().parse_args(argv)
    try:
        args = _apply_recipe(args)
        run_cli(args)
    except StrArtError as e:
        print(f'❌ {e}')
        return 2
    return 0


if __name__ == '__main__':
    raise SystemExit(main())
