import os
from typing import Optional, Tuple

import cv2
import numpy as np

from strart.errors import InvalidConfigurationError, MissingSourceError


def load_image(path: Optional[str]) -> np.ndarray:
    """
    Decode an image file as a BGR uint8 array.

    Relative paths that do not resolve are retried under data/.
    """
    if not path:
        raise MissingSourceError("No source image supplied")
    tried = [path]
    img = cv2.imread(path, cv2.IMREAD_COLOR)

    if img is None and not os.path.isabs(path):
        p = os.path.join("data", path)
        tried.append(p)
        img = cv2.imread(p, cv2.IMREAD_COLOR)

    if img is None:
        raise MissingSourceError(
            "Could not load image. Tried: " + " | ".join(tried) + f" (CWD={os.getcwd()})"
        )
    return img


def to_grayscale_mean(img: np.ndarray) -> np.ndarray:
    """Grayscale as the plain mean of the color channels (alpha ignored)."""
    img = np.asarray(img)
    if img.ndim == 2:
        return img.astype(np.float32)
    if img.ndim != 3:
        raise ValueError(f"expected a 2D or 3D image, got shape {img.shape}")
    return img[..., :3].astype(np.float32).mean(axis=2)


def field_shape(size: Tuple[int, int], downscale: int = 1) -> Tuple[int, int]:
    h, w = int(size[0]), int(size[1])
    if downscale < 1:
        raise InvalidConfigurationError(f"downscale must be >= 1, got {downscale}")
    fh, fw = h // downscale, w // downscale
    if fh < 1 or fw < 1:
        raise InvalidConfigurationError(f"size {w}x{h} collapses to nothing at downscale {downscale}")
    return fh, fw


def preprocess_image(img: Optional[np.ndarray], size=(500, 500), downscale: int = 1,
                     invert: bool = True) -> np.ndarray:
    """
    Build the target field for string art.

    Args:
        img (np.ndarray): source image, grayscale or BGR(A), any size.
        size (tuple): full-resolution canvas (height, width).
        downscale (int): integer factor S; the field is (height//S, width//S).
        invert (bool): If True, value = 255 - brightness (dark regions are high).

    Returns:
        np.ndarray: float32 field in [0, 255].
    """
    if img is None:
        raise MissingSourceError("No source image supplied")
    fh, fw = field_shape(size, downscale)

    gray = to_grayscale_mean(img)
    gray = cv2.resize(gray, (fw, fh), interpolation=cv2.INTER_AREA)
    gray = np.clip(gray, 0.0, 255.0)

    if invert:
        gray = 255.0 - gray

    return gray.astype(np.float32)
