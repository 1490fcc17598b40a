#utils.py
import os
import logging

import numpy as np
from PIL import Image


def usable_cpu_count():
    """CPUs this process may run on; os.process_cpu_count only exists from 3.13."""
    if hasattr(os, 'process_cpu_count'):
        return os.process_cpu_count() or 1
    return os.cpu_count() or 1


def resolve_worker_count(workers=None):
    """Pool size for sampling and rendering: `workers`, or one per usable CPU, never below 1."""
    if workers is None:
        workers = usable_cpu_count()
    return max(1, int(workers))


def polar_to_cartesian(r, theta):
    """Return (x, y) for polar coordinates; works on scalars and arrays."""
    return r * np.cos(theta), r * np.sin(theta)


def split_range(n, n_parts):
    """Split range(n) into at most n_parts contiguous (start, stop) bounds."""
    n_parts = max(1, min(int(n_parts), int(n)))
    edges = np.linspace(0, n, n_parts + 1).astype(int)
    return [(int(a), int(b)) for a, b in zip(edges[:-1], edges[1:]) if b > a]


def save_grayscale_image(img, out_path):
    """
    Save a 2-D uint8 or uint16 array as a grayscale image.
    The parent directory is created if needed.
    """
    img = np.asarray(img)
    if img.ndim != 2 or img.dtype not in (np.uint8, np.uint16):
        raise ValueError(f"expected a 2-D uint8/uint16 array, got {img.dtype} with shape {img.shape}")
    directory = os.path.dirname(out_path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    Image.fromarray(img).save(out_path)
    logging.info(f"Saved {img.shape[1]}x{img.shape[0]} image to {out_path}")


def load_grayscale_image(path):
    """
    Decode an image file into a 2-D uint16 array.
    8-bit sources are widened so that 255 maps to 65535.
    """
    with Image.open(path) as img:
        if img.mode.startswith('I'):
            arr = np.array(img).astype(np.int64)
            return np.clip(arr, 0, 65535).astype(np.uint16)
        arr = np.array(img.convert('L'), dtype=np.uint16)
    return arr * 257
