# utils/line_cache.py
import os, json
from typing import Dict, Optional, Tuple

import numpy as np

from strart.scoring.line_integral import line_pixels


def pair_key(a: int, b: int) -> Tuple[int, int]:
    return (a, b) if a < b else (b, a)


class LineCache:
    """
    Rasterized chords keyed by unordered nail pair.

    A chord is always walked from its lower nail index to its higher one, so
    (a, b) and (b, a) share exactly the same pixels.
    """
    def __init__(self, nails, shape_hw, downscale: int = 1):
        self.nails = list(nails)
        self.shape_hw = (int(shape_hw[0]), int(shape_hw[1]))
        self.downscale = int(downscale)
        self._lines: Dict[Tuple[int, int], Tuple[np.ndarray, np.ndarray]] = {}

    def __len__(self):
        return len(self._lines)

    def __contains__(self, pair):
        return pair_key(*pair) in self._lines

    def get(self, a: int, b: int) -> Tuple[np.ndarray, np.ndarray]:
        key = pair_key(a, b)
        hit = self._lines.get(key)
        if hit is None:
            p, q = self.nails[key[0]], self.nails[key[1]]
            hit = line_pixels((p.x, p.y), (q.x, q.y), self.shape_hw, self.downscale)
            self._lines[key] = hit
        return hit

    def matches(self, nails, shape_hw, downscale: int = 1) -> bool:
        """True if this cache was rasterized for exactly this nail ring and grid."""
        nails = list(nails)
        if (self.shape_hw != (int(shape_hw[0]), int(shape_hw[1]))
                or self.downscale != int(downscale) or len(self.nails) != len(nails)):
            return False
        return bool(np.allclose(_nail_array(self.nails), _nail_array(nails)))

    def precompute(self, progress=None):
        """Fill every pair. `progress` wraps the outer iterable (e.g. tqdm)."""
        n = len(self.nails)
        outer = range(n) if progress is None else progress(range(n))
        for i in outer:
            for j in range(i + 1, n):
                self.get(i, j)
        return self


def _nail_array(nails) -> np.ndarray:
    return np.array([(n.x, n.y) for n in nails], dtype=np.float64).reshape(-1, 2)


def cache_basename(num_nails: int, shape_hw, downscale: int) -> str:
    h, w = int(shape_hw[0]), int(shape_hw[1])
    return f"lines_circle_{num_nails}_{w}x{h}_s{downscale}"


def save_line_cache(cache: LineCache, cache_dir: str = "cache") -> str:
    os.makedirs(cache_dir, exist_ok=True)
    path = os.path.join(cache_dir, cache_basename(len(cache.nails), cache.shape_hw, cache.downscale) + ".npz")

    keys = sorted(cache._lines.keys())
    ys_list = [cache._lines[k][0].astype(np.int32) for k in keys]
    xs_list = [cache._lines[k][1].astype(np.int32) for k in keys]

    # ragged arrays must go through an explicit object array
    ys_obj = np.empty(len(keys), dtype=object)
    xs_obj = np.empty(len(keys), dtype=object)
    for k in range(len(keys)):
        ys_obj[k] = ys_list[k]
        xs_obj[k] = xs_list[k]

    meta = {
        "shape_hw": list(cache.shape_hw),
        "num_nails": len(cache.nails),
        "downscale": cache.downscale,
    }
    np.savez_compressed(
        path,
        ys=ys_obj,
        xs=xs_obj,
        pairs=np.array(keys, dtype=np.int32).reshape(-1, 2),
        lengths=np.array([len(x) for x in xs_list], dtype=np.int32),
        nails=_nail_array(cache.nails),
        meta=json.dumps(meta),
    )
    return path


def load_line_cache(nails, shape_hw, downscale: int = 1,
                    cache_dir: str = "cache") -> Tuple[Optional[LineCache], Optional[str]]:
    """
    Load a cache written by save_line_cache. Returns (None, None) when no file
    exists or when it was built for a different nail layout.
    """
    nails = list(nails)
    path = os.path.join(cache_dir, cache_basename(len(nails), shape_hw, downscale) + ".npz")
    if not os.path.exists(path):
        return None, None

    z = np.load(path, allow_pickle=True)
    meta = json.loads(str(z["meta"]))
    if (list(meta.get("shape_hw", [])) != [int(shape_hw[0]), int(shape_hw[1])]
            or int(meta.get("downscale", -1)) != int(downscale)):
        return None, None
    if not np.allclose(z["nails"], _nail_array(nails)):
        return None, None

    cache = LineCache(nails, shape_hw, downscale)
    ys_arr, xs_arr = z["ys"], z["xs"]
    for k, (a, b) in enumerate(z["pairs"]):
        cache._lines[(int(a), int(b))] = (
            np.asarray(ys_arr[k], dtype=np.int64),
            np.asarray(xs_arr[k], dtype=np.int64),
        )
    return cache, path
