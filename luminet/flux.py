# flux.py
import logging
from concurrent.futures import ProcessPoolExecutor, as_completed
from enum import IntEnum

import numpy as np
from scipy.spatial import Delaunay, QhullError
from tqdm import tqdm

from .blackhole import ConfigurationError
from .isoradial import disk_edge_impact_parameters
from .sample import observer_positions
from .sampling import sample_flux
from .utils import resolve_worker_count, split_range

# Samples are rotated by -90 deg so the far side of the disk appears at the top
ROTATION = -np.pi / 2
LUMA_MAX = np.iinfo(np.uint16).max
# Row bands handed out per worker, so slow bands near the shadow even out
BANDS_PER_WORKER = 4


class TriangulationError(RuntimeError):
    """Raised when a sample set cannot be triangulated for interpolation."""


class Zone(IntEnum):
    """Which image order a pixel shows."""
    SHADOW = 0
    DIRECT = 1
    GHOST = 2


class FluxInterpolator:
    """
    Linear interpolation of a scalar field over the Delaunay triangulation of
    scattered 2-D points, using barycentric weights of the enclosing triangle.
    Queries outside the convex hull return `fill_value`.
    """

    def __init__(self, points, values):
        points = np.asarray(points, dtype=np.float64).reshape(-1, 2)
        if len(points) < 3:
            raise TriangulationError(f"need at least 3 samples to triangulate, got {len(points)}")
        try:
            self.triangulation = Delaunay(points)
        except (QhullError, ValueError) as exc:
            raise TriangulationError(f"cannot triangulate {len(points)} samples: {exc}") from exc
        self.values = np.asarray(values, dtype=np.float64)

    def __call__(self, query, fill_value=0.0):
        query = np.asarray(query, dtype=np.float64).reshape(-1, 2)
        out = np.full(len(query), fill_value, dtype=np.float64)
        simplex = self.triangulation.find_simplex(query)
        inside = simplex >= 0
        if not np.any(inside):
            return out

        s = simplex[inside]
        transform = self.triangulation.transform[s]
        partial = np.einsum('ijk,ik->ij', transform[:, :2, :], query[inside] - transform[:, 2, :])
        weights = np.column_stack([partial, 1.0 - partial.sum(axis=1)])
        vertex_values = self.values[self.triangulation.simplices[s]]
        out[inside] = np.sum(weights * vertex_values, axis=1)
        return out


def samples_range(samples):
    """Bounding box (min_point, max_point) of the samples' observer positions."""
    points = observer_positions(samples)
    if len(points) == 0:
        raise ValueError("cannot compute the range of an empty sample set")
    return points.min(axis=0), points.max(axis=0)


def max_observed_flux(samples):
    return float(max(s.observed_flux for s in samples))


def pixel_world_coordinates(row_start, row_stop, width, height, units_per_pixel):
    """
    World (observer plate) coordinates of the pixels in rows [row_start, row_stop).
    The image centre is the origin and y grows upwards.
    """
    cols = np.arange(width)
    rows = np.arange(row_start, row_stop)
    x = (cols - width // 2) * units_per_pixel
    y = -(rows - height // 2) * units_per_pixel
    return np.meshgrid(x, y)


def classify_zones(blackhole, inclination, x, y):
    """
    Zone of every world point:
      - outside the apparent outer disk edge, or inside the apparent inner
        edge -> GHOST
      - inside both the apparent inner edge and the critical impact
        parameter -> SHADOW
      - otherwise -> DIRECT
    """
    b = np.hypot(x, y)
    alpha = np.arctan2(y, x) + np.pi / 2
    inner, outer = disk_edge_impact_parameters(blackhole, inclination, alpha)

    zones = np.full(np.shape(b), Zone.DIRECT, dtype=np.uint8)
    outside_disk = (b <= inner) | (b > outer)
    in_shadow = outside_disk & (b < np.minimum(inner, blackhole.critical_impact_parameter))
    zones[outside_disk] = Zone.GHOST
    zones[in_shadow] = Zone.SHADOW
    return zones


def flux_to_luma(flux, flux_range):
    """Normalize flux to [0, 1] over flux_range and quantize to 16 bits (NaN -> 0, saturating)."""
    lo, hi = flux_range
    with np.errstate(invalid='ignore', divide='ignore'):
        normalized = (flux - lo) / (hi - lo)
    normalized = np.nan_to_num(normalized, nan=0.0)
    return np.clip(np.round(normalized * LUMA_MAX), 0, LUMA_MAX).astype(np.uint16)


class _FrameRenderer:
    """Everything needed to render any band of rows of one frame."""

    def __init__(self, blackhole, inclination, direct_points, direct_flux, ghost_points, ghost_flux,
                 width, height, units_per_pixel, flux_range):
        self.blackhole = blackhole
        self.inclination = inclination
        self.interpolators = {
            Zone.DIRECT: FluxInterpolator(direct_points, direct_flux),
            Zone.GHOST: FluxInterpolator(ghost_points, ghost_flux),
        }
        self.width = width
        self.height = height
        self.units_per_pixel = units_per_pixel
        self.flux_range = flux_range

    def render_rows(self, row_start, row_stop):
        x, y = pixel_world_coordinates(row_start, row_stop, self.width, self.height, self.units_per_pixel)
        zones = classify_zones(self.blackhole, self.inclination, x, y).ravel()
        query = np.column_stack([x.ravel(), y.ravel()])

        # Shadow pixels and points outside the hull stay NaN and end up black
        flux = np.full(len(query), np.nan)
        for zone, interpolator in self.interpolators.items():
            mask = zones == zone
            if np.any(mask):
                flux[mask] = interpolator(query[mask], fill_value=np.nan)
        return flux_to_luma(flux, self.flux_range).reshape(x.shape)


# Per-process renderer; each worker builds its own interpolators
_worker_renderer = None


def _init_worker(*renderer_args):
    global _worker_renderer
    _worker_renderer = _FrameRenderer(*renderer_args)


def _render_band(bounds):
    start, stop = bounds
    return start, _worker_renderer.render_rows(start, stop)


def _check_image_size(width, height):
    if int(width) <= 0 or int(height) <= 0:
        raise ConfigurationError(f"image size must be positive, got {width}x{height}")


def _spawn_seeds(seed, n):
    """n independent integer seeds derived from `seed` (all None when seed is None)."""
    if seed is None:
        return [None] * n
    return [int(s) for s in np.random.SeedSequence(seed).generate_state(n)]


def render_flux_image_from_samples(blackhole, inclination, direct_samples, ghost_samples,
                                   width, height, flux_range=None, *, workers=None, progress=False):
    """
    Render the observed flux of pre-computed samples into a 16-bit grayscale
    image of shape (height, width).

    Samples are rotated by -90 deg on copies; the caller's samples are not
    modified. flux_range=(lo, hi) fixes the normalization; by default it is
    (0, max observed flux) over the direct and ghost samples. Raises
    TriangulationError if either sample set cannot be triangulated.
    """
    _check_image_size(width, height)
    for label, samples in (('direct', direct_samples), ('ghost', ghost_samples)):
        if len(samples) < 3:
            raise TriangulationError(f"need at least 3 {label} samples to triangulate, got {len(samples)}")

    direct = [s.rotated(ROTATION) for s in direct_samples]
    ghost = [s.rotated(ROTATION) for s in ghost_samples]
    direct_points = observer_positions(direct)
    ghost_points = observer_positions(ghost)

    # Fit the sampled region into the full image width; pixels are square
    min_point, max_point = samples_range(direct + ghost)
    units_per_pixel = (max_point[0] - min_point[0]) / width

    if flux_range is None:
        flux_range = (0.0, max_observed_flux(direct + ghost))
    flux_range = (float(flux_range[0]), float(flux_range[1]))

    renderer_args = (
        blackhole, inclination,
        direct_points, np.array([s.observed_flux for s in direct]),
        ghost_points, np.array([s.observed_flux for s in ghost]),
        width, height, units_per_pixel, flux_range,
    )
    # Built up front so degenerate sample sets fail before any work is scheduled
    renderer = _FrameRenderer(*renderer_args)

    workers = resolve_worker_count(workers)
    bands = split_range(height, workers * BANDS_PER_WORKER)
    img = np.zeros((height, width), dtype=np.uint16)
    logging.info(
        f"Rendering {width}x{height} flux image at inclination {np.degrees(inclination):.1f} deg "
        f"from {len(direct)} direct and {len(ghost)} ghost samples"
    )

    if workers == 1 or len(bands) == 1:
        for start, stop in tqdm(bands, desc="Rendering image", unit="band", disable=not progress):
            img[start:stop] = renderer.render_rows(start, stop)
        return img

    with ProcessPoolExecutor(max_workers=min(workers, len(bands)),
                             initializer=_init_worker, initargs=renderer_args) as executor:
        futures = [executor.submit(_render_band, band) for band in bands]
        for future in tqdm(as_completed(futures), total=len(futures),
                           desc="Rendering image", unit="band", disable=not progress):
            start, block = future.result()
            img[start:start + block.shape[0]] = block
    return img


def render_flux_image(blackhole, inclination, sample_count, width, height, flux_range=None, *,
                      workers=None, seed=None, progress=False):
    """
    Sample the disk (direct and ghost orders) at `inclination` (radians) and
    render the observed flux into a (height, width) uint16 image.
    """
    _check_image_size(width, height)
    direct_seed, ghost_seed = _spawn_seeds(seed, 2)
    direct = sample_flux(blackhole, inclination, sample_count, 0, workers=workers, seed=direct_seed, progress=progress)
    ghost = sample_flux(blackhole, inclination, sample_count, 1, workers=workers, seed=ghost_seed, progress=progress)
    return render_flux_image_from_samples(
        blackhole, inclination, direct, ghost, width, height, flux_range, workers=workers, progress=progress
    )


def render_flux_image_batch(blackhole, sample_count, inclinations, width, height, *,
                            workers=None, seed=None, progress=False):
    """
    Render one image per inclination with a flux normalization shared by the
    whole batch, so brightness is comparable between frames.

    All inclinations are sampled before any frame is rendered, since every
    frame depends on the batch-wide maximum flux.
    """
    inclinations = list(inclinations)
    if not inclinations:
        raise ConfigurationError("at least one inclination is required")
    _check_image_size(width, height)

    seeds = _spawn_seeds(seed, 2 * len(inclinations))
    all_samples = []
    max_flux = 0.0
    for i, inclination in enumerate(inclinations):
        direct = sample_flux(blackhole, inclination, sample_count, 0,
                             workers=workers, seed=seeds[2 * i], progress=progress)
        ghost = sample_flux(blackhole, inclination, sample_count, 1,
                            workers=workers, seed=seeds[2 * i + 1], progress=progress)
        max_flux = max(max_flux, max_observed_flux(direct + ghost))
        all_samples.append((direct, ghost))
    flux_range = (0.0, max_flux)
    logging.info(f"Shared flux range over {len(inclinations)} inclinations: [0, {max_flux:.6g}]")

    return [
        render_flux_image_from_samples(
            blackhole, inclination, direct, ghost, width, height, flux_range,
            workers=workers, progress=progress,
        )
        for inclination, (direct, ghost) in zip(inclinations, all_samples)
    ]
