#!/usr/bin/env python3
import os, argparse

import cv2
import numpy as np

from strart.utils.export import read_recipe
from strart.utils.preprocess_image import load_image, preprocess_image


def mse(a, b):
    a = a.astype(np.float32); b = b.astype(np.float32)
    return float(np.mean((a - b) ** 2))


def psnr(a, b, data_range=255.0):
    m = mse(a, b)
    if m <= 1e-12: return 99.0
    return float(10.0 * np.log10((data_range ** 2) / m))


def canvas_brightness_from_png(path, field_hw):
    sim = cv2.imread(path, cv2.IMREAD_GRAYSCALE)
    if sim is None:
        raise FileNotFoundError(path)
    h, w = field_hw
    return cv2.resize(sim, (w, h), interpolation=cv2.INTER_AREA).astype(np.float32)


def main(argv=None):
    ap = argparse.ArgumentParser(description="Compare a run's simulated canvas with its target image.")
    ap.add_argument('--out_dir', required=True)
    ap.add_argument('--target', default=None, help='defaults to the image named in recipe.json')
    args = ap.parse_args(argv)

    recipe = read_recipe(os.path.join(args.out_dir, 'recipe.json'))
    H, W = recipe['size']
    P = recipe['params']
    image = args.target or os.path.join(args.out_dir, recipe['image'])

    # brightness space on both sides, whatever orientation the run used
    target = preprocess_image(load_image(image), size=(H, W), downscale=int(P['downscale']), invert=False)
    sim = canvas_brightness_from_png(os.path.join(args.out_dir, 'simulated_from_canvas.png'), target.shape)

    print(f"MSE:  {mse(target, sim):.2f}")
    print(f"PSNR: {psnr(target, sim):.2f} dB")
    print("Lines:", recipe['stats']['lines_drawn'], "Stop:", recipe['stats']['stop_reason'],
          "Seconds:", recipe['stats']['seconds'])


if __name__ == '__main__':
    main()
