import os
import logging

import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt
import numpy as np

from luminet.isoradial import IsoRadial
from luminet.utils import polar_to_cartesian

logging.getLogger('matplotlib').setLevel(logging.WARNING)

ANGLE_COUNT = 360
PLOT_LIMIT = 35.0
# 1024x1024 px
FIGURE_SIZE = (8, 8)
FIGURE_DPI = 128


def apparent_outline(blackhole, inclination, num_angles=ANGLE_COUNT):
    """
    Apparent black hole outline as an (num_angles, 2) array: the smaller of
    the apparent inner disk edge and the critical impact parameter.
    """
    angles = np.arange(num_angles) / num_angles * 2.0 * np.pi
    inner = np.atleast_1d(blackhole.apparent_inner_edge_radius(inclination, angles + np.pi / 2))
    b = np.minimum(inner, blackhole.critical_impact_parameter)
    return np.column_stack(polar_to_cartesian(b, angles))


def isoradial_curve(blackhole, inclination, radius, order, num_angles=ANGLE_COUNT):
    """Isoradial points rotated by -90 deg, ghost images (order > 0) flipped vertically."""
    coords = IsoRadial(blackhole.mass, radius, order).calculate_coordinates(inclination, num_angles)
    # rotation by -90 deg: (x, y) -> (y, -x)
    x, y = coords[:, 1], -coords[:, 0]
    if order > 0:
        y = -y
    return np.column_stack([x, y])


def plot_isoradials(blackhole, inclination, radii, out_path='images/isoradials.png'):
    """
    Plot the apparent black hole outline and a set of isoradial curves.

    radii is a sequence of (radius, order) pairs; inclination is in radians.
    Ghost curves are drawn lighter than direct ones.
    """
    fig, ax = plt.subplots(figsize=FIGURE_SIZE, dpi=FIGURE_DPI)
    outline = apparent_outline(blackhole, inclination)
    ax.plot(outline[:, 0], outline[:, 1], color='black', lw=2, alpha=1.0)

    for radius, order in radii:
        curve = isoradial_curve(blackhole, inclination, radius, order)
        ax.plot(curve[:, 0], curve[:, 1], color='black', lw=2, alpha=0.25 if order > 0 else 0.5)

    ax.set_aspect('equal')
    ax.set_xlim(-PLOT_LIMIT, PLOT_LIMIT)
    ax.set_ylim(-PLOT_LIMIT, PLOT_LIMIT)
    directory = os.path.dirname(out_path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    fig.savefig(out_path, dpi=FIGURE_DPI)
    plt.close(fig)
    logging.info(f"Saved {len(radii)} isoradials to {out_path}")
