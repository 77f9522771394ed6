#!/usr/bin/env python3
import os, argparse

import cv2
import numpy as np

from strart.utils.export import parse_nail_sequence


def read_img(path):
    if not os.path.exists(path): return None
    return cv2.imread(path, cv2.IMREAD_COLOR)


def undirected_pairs(sequence):
    return {(a, b) if a < b else (b, a) for a, b in sequence}


def load_sequence(run_dir):
    path = os.path.join(run_dir, "nail_sequence.txt")
    if not os.path.exists(path): return []
    with open(path, encoding="utf-8") as f:
        return parse_nail_sequence(f.read())


def compare_sequences(seqA, seqB):
    A, B = undirected_pairs(seqA), undirected_pairs(seqB)
    overlap = len(A & B)
    same_prefix = 0
    for x, y in zip(seqA, seqB):
        if x != y: break
        same_prefix += 1
    return {
        "chords_a": len(seqA), "chords_b": len(seqB),
        "overlap": overlap,
        "overlap_a": overlap / max(1, len(A)),
        "overlap_b": overlap / max(1, len(B)),
        "same_prefix": same_prefix,
    }


def collage(run_a, run_b, out_path, width=1200):
    imgs = []
    for d in (run_a, run_b):
        for name in ("simulated_result_lines.png", "simulated_from_canvas.png"):
            imgs.append(read_img(os.path.join(d, name)))
    h = max((im.shape[0] for im in imgs if im is not None), default=0)
    if h == 0:
        return None
    row = []
    for im in imgs:
        if im is None:
            im = np.full((h, h, 3), 255, np.uint8)  # white square filler
        elif im.shape[0] != h:
            im = cv2.resize(im, (int(im.shape[1] * h / im.shape[0]), h), interpolation=cv2.INTER_AREA)
        row.append(im)
    out = np.hstack(row)
    scale = width / out.shape[1]
    out = cv2.resize(out, (width, int(out.shape[0] * scale)), interpolation=cv2.INTER_AREA)
    cv2.imwrite(out_path, out)
    return out_path


def main(argv=None):
    ap = argparse.ArgumentParser("Compare two runs and build a collage.")
    ap.add_argument("--run_a", required=True)
    ap.add_argument("--run_b", required=True)
    ap.add_argument("--out", default="compare_collage.png")
    ap.add_argument("--width", type=int, default=1200)
    args = ap.parse_args(argv)

    s = compare_sequences(load_sequence(args.run_a), load_sequence(args.run_b))
    print(f"A chords: {s['chords_a']} | B chords: {s['chords_b']} | Overlap: {s['overlap']} "
          f"({s['overlap_a']:0.1%} of A, {s['overlap_b']:0.1%} of B) | identical prefix: {s['same_prefix']}")
    if collage(args.run_a, args.run_b, args.out, args.width):
        print(f"✅ saved {args.out}")
    else:
        print("⚠️ no run images found, collage skipped")


if __name__ == "__main__":
    main()
