import argparse

from luminet.blackhole import DEFAULT_ACCRETION_RATE, DEFAULT_DISK_OUTER_EDGE
from visualization.dither import DEFAULT_BLUE_NOISE_PATH, DitherAlgorithm


def _add_blackhole_args(parser):
    parser.add_argument('--accretion-rate', type=float, default=DEFAULT_ACCRETION_RATE,
                        help=f'Black hole accretion rate (default: {DEFAULT_ACCRETION_RATE})')
    parser.add_argument('--disk-outer-edge', type=float, default=DEFAULT_DISK_OUTER_EDGE,
                        help=f'Accretion disk outer edge in units of mass (default: {DEFAULT_DISK_OUTER_EDGE})')


def _add_render_args(parser):
    parser.add_argument('-s', '--samples', type=int, default=200_000,
                        help='Number of flux samples; more is slower but smoother (default: 200000)')
    parser.add_argument('--width', type=int, default=2048, help='Output image width in pixels (default: 2048)')
    parser.add_argument('--height', type=int, default=1080, help='Output image height in pixels (default: 1080)')
    parser.add_argument('--workers', type=int, default=None, help='Worker processes (default: one per CPU)')
    parser.add_argument('--seed', type=int, default=None, help='Random seed for reproducible sampling')


def _add_inclination_arg(parser):
    parser.add_argument('-i', '--inclination', type=float, default=80.0,
                        help="Viewer's inclination in degrees above the equatorial plane (default: 80)")


def build_parser():
    parser = argparse.ArgumentParser(description="Luminet black hole accretion disk renderer")
    parser.add_argument('--log-level', default='INFO', choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                        help='Logging level (default: INFO)')
    subparsers = parser.add_subparsers(dest='command', required=True)

    isoradials = subparsers.add_parser('isoradials', help='Plot isoradial curves')
    _add_inclination_arg(isoradials)
    isoradials.add_argument('--direct-radii', type=float, nargs='+', default=[6.0, 10.0, 20.0, 30.0],
                            help='Direct (order 0) radii to plot (default: 6 10 20 30)')
    isoradials.add_argument('--ghost-radii', type=float, nargs='+', default=[6.0, 10.0, 30.0, 10000.0],
                            help='Ghost (order 1) radii to plot (default: 6 10 30 10000)')
    _add_blackhole_args(isoradials)
    isoradials.add_argument('path', help='Output image path')

    flux = subparsers.add_parser('flux', help='Render an image of the observed flux')
    _add_inclination_arg(flux)
    _add_render_args(flux)
    _add_blackhole_args(flux)
    flux.add_argument('path', help='Output image path')

    flux_range = subparsers.add_parser('flux-range', help='Render flux images over a range of inclinations')
    flux_range.add_argument('--start', type=float, default=10.0, help='First inclination in degrees (default: 10)')
    flux_range.add_argument('--end', type=float, default=80.0, help='Last inclination in degrees (default: 80)')
    flux_range.add_argument('--step', type=float, default=10.0, help='Inclination step in degrees (default: 10)')
    _add_render_args(flux_range)
    _add_blackhole_args(flux_range)
    flux_range.add_argument('directory', help='Existing output directory')
    flux_range.add_argument('prefix', help='Output filename prefix')

    dither = subparsers.add_parser(
        'dither', help='Dither a grayscale image to black and white',
        epilog='The blue-noise algorithm reads a mask image; run "luminet blue-noise" once to create the default one.',
    )
    dither.add_argument('-a', '--algorithm', type=DitherAlgorithm, default=DitherAlgorithm.BLUE_NOISE,
                        choices=list(DitherAlgorithm), help='Dither algorithm (default: blue-noise)')
    dither.add_argument('--mask', default=DEFAULT_BLUE_NOISE_PATH,
                        help=f'Blue noise mask image, written by the blue-noise command (default: {DEFAULT_BLUE_NOISE_PATH})')
    dither.add_argument('--seed', type=int, default=None, help='Random seed for random dithering')
    dither.add_argument('input_path', help='Input image path')
    dither.add_argument('output_path', help='Output image path')

    samples = subparsers.add_parser('samples', help='Write flux samples to a CSV file')
    _add_inclination_arg(samples)
    samples.add_argument('-s', '--samples', type=int, default=200_000,
                         help='Number of flux samples per image order (default: 200000)')
    samples.add_argument('--workers', type=int, default=None, help='Worker processes (default: one per CPU)')
    samples.add_argument('--seed', type=int, default=None, help='Random seed for reproducible sampling')
    _add_blackhole_args(samples)
    samples.add_argument('path', help='Output CSV path')

    blue_noise = subparsers.add_parser('blue-noise', help='Generate a tileable blue noise mask')
    blue_noise.add_argument('--size', type=int, default=64, help='Mask side length in pixels (default: 64)')
    blue_noise.add_argument('--seed', type=int, default=None, help='Random seed')
    blue_noise.add_argument('path', nargs='?', default=DEFAULT_BLUE_NOISE_PATH,
                            help=f'Output image path (default: {DEFAULT_BLUE_NOISE_PATH})')
    return parser


def parse_args(argv=None):
    return build_parser().parse_args(argv)
