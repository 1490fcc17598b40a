"""
Dithering of grayscale images down to two levels.

Every algorithm works on a 2-D unsigned integer numpy array (8 or 16 bit)
and overwrites it in place with 0 or the dtype's maximum value.
"""

import os
import logging
import operator
from collections import deque
from enum import Enum

import numpy as np
from PIL import Image

from .gilbert import gilbert_path

DEFAULT_BLUE_NOISE_PATH = os.path.join('images', 'blue_noise.png')
# Rows handled by each independently seeded generator in random dithering
RANDOM_BAND_ROWS = 64
RIEMERSMA_HISTORY = 32
RIEMERSMA_FALLOFF = 1.0 / 4.0


class DitherAlgorithm(Enum):
    FLOYD_STEINBERG = 'floyd-steinberg'
    ATKINSON = 'atkinson'
    BLUE_NOISE = 'blue-noise'
    RANDOM = 'random'
    RIEMERSMA = 'riemersma'

    def __str__(self):
        return self.value


class BlueNoiseMaskError(RuntimeError):
    """Raised when the blue noise mask image cannot be read."""


def _check_image(img):
    if not isinstance(img, np.ndarray) or img.ndim != 2 or img.dtype.kind != 'u':
        raise ValueError("expected a 2-D unsigned integer grayscale array")


def _normalized(img):
    """Image as floats in [0, 1], plus the dtype's full-scale value."""
    full_scale = np.iinfo(img.dtype).max
    return img.astype(np.float64) / full_scale, full_scale


def _write_binary(img, bits, full_scale):
    img[...] = np.where(bits, full_scale, 0).astype(img.dtype)


def _diffuse(img, kernel, divisor):
    """Raster-order error diffusion; kernel is [(dy, dx, weight), ...]."""
    buf, full_scale = _normalized(img)
    h, w = buf.shape
    rows = buf.tolist()
    for y in range(h):
        row = rows[y]
        for x in range(w):
            old = row[x]
            new = 1.0 if old > 0.5 else 0.0
            row[x] = new
            err = (old - new) / divisor
            for dy, dx, weight in kernel:
                ny, nx = y + dy, x + dx
                if ny < h and 0 <= nx < w:
                    rows[ny][nx] += err * weight
    _write_binary(img, np.array(rows) > 0.5, full_scale)


def floyd_steinberg(img):
    _diffuse(img, [(0, 1, 7), (1, -1, 3), (1, 0, 5), (1, 1, 1)], 16.0)


def atkinson(img):
    """
    Atkinson diffusion: six neighbours each get 1/8 of the error, the other
    2/8 is dropped. The resulting darkening is part of the expected look.
    """
    _diffuse(img, [(0, 1, 1), (0, 2, 1), (1, -1, 1), (1, 0, 1), (1, 1, 1), (2, 0, 1)], 8.0)


def load_blue_noise_mask(path=DEFAULT_BLUE_NOISE_PATH):
    """Blue noise mask as floats in [0, 1]."""
    try:
        with Image.open(path) as mask:
            arr = np.asarray(mask.convert('L'), dtype=np.float64) / 255.0
    except OSError as exc:
        raise BlueNoiseMaskError(
            f"cannot load blue noise mask {path}: {exc}; create one with `luminet blue-noise {path}`"
        ) from exc
    if arr.size == 0:
        raise BlueNoiseMaskError(f"blue noise mask {path} is empty")
    return arr


def blue_noise(img, mask_path=DEFAULT_BLUE_NOISE_PATH):
    """Threshold every pixel against the blue noise mask, tiled over the image."""
    mask = load_blue_noise_mask(mask_path)
    buf, full_scale = _normalized(img)
    h, w = buf.shape
    tiled = mask[np.arange(h)[:, None] % mask.shape[0], np.arange(w)[None, :] % mask.shape[1]]
    _write_binary(img, buf > tiled, full_scale)


def random_dither(img, seed=None):
    """Add a uniform offset in [-0.5, 0.5) to every pixel, then threshold at 0.5."""
    buf, full_scale = _normalized(img)
    h, w = buf.shape
    n_bands = max(1, -(-h // RANDOM_BAND_ROWS))
    bits = np.empty((h, w), dtype=bool)
    for band, seed_sequence in enumerate(np.random.SeedSequence(seed).spawn(n_bands)):
        rng = np.random.default_rng(seed_sequence)
        rows = slice(band * RANDOM_BAND_ROWS, min(h, (band + 1) * RANDOM_BAND_ROWS))
        offset = rng.uniform(-0.5, 0.5, size=(rows.stop - rows.start, w))
        bits[rows] = buf[rows] + offset > 0.5
    _write_binary(img, bits, full_scale)


def riemersma(img):
    """
    Riemersma dithering: error diffusion along a gilbert curve. The carried
    error is the sum of the last RIEMERSMA_HISTORY quantization errors, the
    newest weighted 1 and the oldest RIEMERSMA_FALLOFF.
    """
    buf, full_scale = _normalized(img)
    h, w = buf.shape
    weights = (RIEMERSMA_FALLOFF ** (np.arange(RIEMERSMA_HISTORY) / (RIEMERSMA_HISTORY - 1))).tolist()
    history = deque([0.0] * RIEMERSMA_HISTORY, maxlen=RIEMERSMA_HISTORY)
    rows = buf.tolist()
    bits = np.zeros((h, w), dtype=bool)
    for x, y in gilbert_path(w, h):
        value = rows[y][x]
        carried = sum(map(operator.mul, weights, history))
        bit = value + carried > 0.5
        bits[y, x] = bit
        history.appendleft(value - (1.0 if bit else 0.0))
    _write_binary(img, bits, full_scale)


_SEQUENTIAL = {
    DitherAlgorithm.FLOYD_STEINBERG: floyd_steinberg,
    DitherAlgorithm.ATKINSON: atkinson,
    DitherAlgorithm.RIEMERSMA: riemersma,
}


def dither(algorithm, img, *, mask_path=DEFAULT_BLUE_NOISE_PATH, seed=None):
    """
    Dither `img` in place with the named algorithm (a DitherAlgorithm or its value).

    mask_path is only read by blue noise dithering, seed only by random dithering.
    """
    algorithm = DitherAlgorithm(algorithm)
    _check_image(img)
    logging.info(f"Dithering {img.shape[1]}x{img.shape[0]} image with {algorithm}")
    if algorithm is DitherAlgorithm.BLUE_NOISE:
        blue_noise(img, mask_path)
    elif algorithm is DitherAlgorithm.RANDOM:
        random_dither(img, seed)
    else:
        _SEQUENTIAL[algorithm](img)


def generate_blue_noise_mask(size=64, seed=None):
    """
    Tileable blue noise threshold mask of shape (size, size), values 0..255.

    Pixels are ranked by repeatedly picking the one farthest (on a torus)
    from everything picked so far; rank becomes the threshold.
    """
    if size < 2:
        raise ValueError(f"mask size must be at least 2, got {size}")
    rng = np.random.default_rng(seed)
    n = size * size
    ys, xs = np.divmod(np.arange(n), size)
    # Distances are integers, so the jitter only breaks ties
    min_dist = np.full(n, float(2 * size * size)) + rng.random(n) * 1e-3
    rank = np.empty(n, dtype=np.int64)
    for i in range(n):
        best = int(np.argmax(min_dist))
        rank[best] = i
        dx = np.abs(xs - xs[best])
        dy = np.abs(ys - ys[best])
        dx = np.minimum(dx, size - dx)
        dy = np.minimum(dy, size - dy)
        np.minimum(min_dist, dx * dx + dy * dy, out=min_dist)
        min_dist[best] = -1.0
    return np.round(rank.reshape(size, size) / (n - 1) * 255).astype(np.uint8)


def save_blue_noise_mask(out_path=DEFAULT_BLUE_NOISE_PATH, size=64, seed=None):
    mask = generate_blue_noise_mask(size, seed)
    directory = os.path.dirname(out_path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    Image.fromarray(mask).save(out_path)
    logging.info(f"Saved {size}x{size} blue noise mask to {out_path}")
    return mask
