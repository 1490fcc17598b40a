#main.py
import os
import sys
import logging

import numpy as np

from config import parse_args
from luminet.blackhole import BlackHole, ConfigurationError
from luminet.flux import TriangulationError, render_flux_image, render_flux_image_batch
from luminet.sampling import save_samples
from luminet.utils import load_grayscale_image, save_grayscale_image
from visualization.dither import BlueNoiseMaskError, dither, save_blue_noise_mask
from visualization.plot import plot_isoradials

# ---
# GEOMETRIZED UNITS: G = c = 1
# Mass, lengths and impact parameters share one unit; the black hole has M = 1
# ---


def inclination_range(start, end, step):
    """Inclinations start, start + step, ... up to and including end (degrees)."""
    if step <= 0:
        raise ConfigurationError(f"inclination step must be positive, got {step}")
    inclinations = []
    i = start
    while i <= end:
        inclinations.append(i)
        i += step
    return inclinations


def _blackhole(args):
    return BlackHole(mass=1.0, accretion_rate=args.accretion_rate, outer_edge=args.disk_outer_edge)


def run_isoradials(args):
    radii = [(r, 0) for r in args.direct_radii] + [(r, 1) for r in args.ghost_radii]
    plot_isoradials(_blackhole(args), np.radians(args.inclination), radii, args.path)


def run_flux(args):
    img = render_flux_image(
        _blackhole(args), np.radians(args.inclination), args.samples, args.width, args.height,
        workers=args.workers, seed=args.seed, progress=True,
    )
    save_grayscale_image(img, args.path)


def run_flux_range(args):
    if not os.path.isdir(args.directory):
        raise ConfigurationError(f"{args.directory} must be an existing directory")
    degrees = inclination_range(args.start, args.end, args.step)
    images = render_flux_image_batch(
        _blackhole(args), args.samples, np.radians(degrees), args.width, args.height,
        workers=args.workers, seed=args.seed, progress=True,
    )
    for deg, img in zip(degrees, images):
        save_grayscale_image(img, os.path.join(args.directory, f"{args.prefix}{deg:.0f}.png"))


def run_dither(args):
    img = load_grayscale_image(args.input_path)
    dither(args.algorithm, img, mask_path=args.mask, seed=args.seed)
    save_grayscale_image(img, args.output_path)


def run_samples(args):
    save_samples(
        _blackhole(args), np.radians(args.inclination), args.samples, args.path,
        workers=args.workers, seed=args.seed, progress=True,
    )


def run_blue_noise(args):
    save_blue_noise_mask(args.path, size=args.size, seed=args.seed)


COMMANDS = {
    'isoradials': run_isoradials,
    'flux': run_flux,
    'flux-range': run_flux_range,
    'dither': run_dither,
    'samples': run_samples,
    'blue-noise': run_blue_noise,
}


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level), format='%(asctime)s %(levelname)s: %(message)s')
    try:
        COMMANDS[args.command](args)
    except (ConfigurationError, TriangulationError, BlueNoiseMaskError, OSError) as e:
        logging.error(f"{args.command} failed: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
