#sampling.py
import os
import logging
from concurrent.futures import ProcessPoolExecutor, as_completed

import numpy as np
import pandas as pd
from tqdm import tqdm

from .blackhole import ConfigurationError
from .equations import calc_observed_flux, calc_redshift_factor
from .sample import Sample, samples_to_frame
from .solvers import impact_parameter
from .utils import resolve_worker_count, split_range

# Points drawn per task; small enough to spread over a pool, large enough to vectorize well
DEFAULT_CHUNK_SIZE = 2048


def compute_samples(blackhole, inclination, radius, alpha, order):
    """
    Deterministic part of sampling: impact parameter, redshift and observed
    flux for the given emission radii and angles. Returns a list of Samples.
    """
    radius = np.atleast_1d(np.asarray(radius, dtype=np.float64))
    alpha = np.atleast_1d(np.asarray(alpha, dtype=np.float64))
    b = np.atleast_1d(impact_parameter(radius, inclination, alpha, blackhole.mass, order))
    redshift_factor = calc_redshift_factor(radius, alpha, inclination, blackhole.mass, b)
    observed_flux = calc_observed_flux(radius, blackhole.accretion_rate, blackhole.mass, redshift_factor)
    return [
        Sample(
            radius=float(r), alpha=float(a), impact_parameter=float(ip), order=int(order),
            redshift_factor=float(z), observed_flux=float(f),
        )
        for r, a, ip, z, f in zip(radius, alpha, b, redshift_factor, observed_flux)
    ]


def _sample_chunk(args):
    """Draw and evaluate one chunk of points with the chunk's own generator."""
    blackhole, inclination, count, order, seed_sequence = args
    rng = np.random.default_rng(seed_sequence)
    radius = rng.uniform(blackhole.disk_inner_edge, blackhole.disk_outer_edge, count)
    alpha = rng.uniform(0.0, 2.0 * np.pi, count)
    return compute_samples(blackhole, inclination, radius, alpha, order)


def sample_flux(blackhole, inclination, num_points, order, *, workers=None, seed=None,
                chunk_size=DEFAULT_CHUNK_SIZE, progress=False):
    """
    Sample the observed flux from the accretion disk at random points.

    Radii are drawn uniformly from [inner edge, outer edge) and angles from
    [0, 2*pi). The points are split into chunks; every chunk owns a generator
    spawned from one SeedSequence, so chunks can run in any process and in
    any order. The returned list is an unordered set of samples.

    Parameters
    ----------
    blackhole : BlackHole
    inclination : float
        Observer inclination in radians.
    num_points : int
        Number of samples to draw.
    order : int
        Image order (0 = direct, 1 = first ghost image).
    workers : int or None
        Worker processes; None uses every CPU, 1 runs in this process.
    seed : int or None
        Seed for reproducible sampling.
    """
    if num_points <= 0:
        raise ConfigurationError(f"number of samples must be positive, got {num_points}")
    workers = resolve_worker_count(workers)
    bounds = split_range(num_points, -(-num_points // chunk_size))
    seeds = np.random.SeedSequence(seed).spawn(len(bounds))
    tasks = [
        (blackhole, inclination, stop - start, order, seed_sequence)
        for (start, stop), seed_sequence in zip(bounds, seeds)
    ]
    logging.debug(f"Sampling {num_points} points (order={order}) in {len(tasks)} chunks on {workers} workers")

    samples = []
    if workers == 1 or len(tasks) == 1:
        for task in tqdm(tasks, desc=f"Sampling order {order}", unit="chunk", disable=not progress):
            samples.extend(_sample_chunk(task))
        return samples

    with ProcessPoolExecutor(max_workers=min(workers, len(tasks))) as executor:
        futures = [executor.submit(_sample_chunk, task) for task in tasks]
        for future in tqdm(as_completed(futures), total=len(futures),
                           desc=f"Sampling order {order}", unit="chunk", disable=not progress):
            samples.extend(future.result())
    return samples


def save_samples(blackhole, inclination, sample_count, out_path, **sampling_kwargs):
    """
    Sample direct and ghost flux and write both to a CSV file.

    Angles are rotated by -90 degrees, the orientation the flux renderer uses.
    """
    rotation = -np.pi / 2
    rows = []
    for order in (0, 1):
        samples = sample_flux(blackhole, inclination, sample_count, order, **sampling_kwargs)
        rows.extend(s.rotated(rotation) for s in samples)

    df = samples_to_frame(rows)
    directory = os.path.dirname(out_path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    df.to_csv(out_path, index=False)
    logging.info(f"Saved {len(df)} flux samples to {out_path}")
    return df


def load_samples(path):
    """Read a CSV written by save_samples back into a DataFrame."""
    return pd.read_csv(path)
