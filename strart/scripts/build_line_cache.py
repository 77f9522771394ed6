#!/usr/bin/env python3
# -*- coding: utf-8 -*-
import argparse

from tqdm import tqdm

from strart.utils.generate_nails import nail_ring_for_canvas
from strart.utils.line_cache import LineCache, save_line_cache
from strart.utils.preprocess_image import field_shape


def main(argv=None):
    ap = argparse.ArgumentParser(description="Precompute rasterized chords for every nail pair.")
    ap.add_argument("--size", type=int, nargs=2, required=True, help="H W")
    ap.add_argument("--num_nails", type=int, default=200)
    ap.add_argument("--nail_margin", type=float, default=10.0)
    ap.add_argument("--downscale", type=int, default=1)
    ap.add_argument("--out_dir", type=str, default="cache")
    args = ap.parse_args(argv)

    fh, fw = field_shape(args.size, args.downscale)
    full_hw = (fh * args.downscale, fw * args.downscale)
    nails = nail_ring_for_canvas(full_hw, args.num_nails, margin=args.nail_margin)

    print(f"🧷 Precomputing chords for {len(nails)} nails ({full_hw[1]}x{full_hw[0]}, downscale {args.downscale})…")
    cache = LineCache(nails, (fh, fw), args.downscale).precompute(progress=tqdm)
    path = save_line_cache(cache, args.out_dir)
    print(f"✅ Saved line cache: {path} ({len(cache)} chords)")
    return path


if __name__ == "__main__":
    main()
