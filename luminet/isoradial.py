#isoradial.py
from dataclasses import dataclass

import numpy as np

from .solvers import impact_parameter
from .utils import polar_to_cartesian


@dataclass(frozen=True)
class IsoRadial:
    """
    Curve of constant disk emission radius as it appears to the observer.
    mass: black hole mass
    radius: emission radius in the black hole's frame (same units as mass)
    order: image order (0 = direct, 1+ = ghost)
    """
    mass: float
    radius: float
    order: int = 0

    def impact_parameter_at(self, inclination, alpha):
        """Impact parameter of this isoradial at observer angle(s) alpha."""
        return impact_parameter(self.radius, inclination, alpha, self.mass, self.order)

    def calculate_coordinates(self, inclination, num_angles):
        """
        Observer-plane coordinates of the curve sampled at
        alpha = i / num_angles * 2*pi. Returns an (num_angles, 2) array.
        """
        alpha = np.arange(num_angles) / num_angles * 2.0 * np.pi
        b = np.atleast_1d(self.impact_parameter_at(inclination, alpha))
        return np.column_stack(polar_to_cartesian(b, alpha))


def disk_edge_impact_parameters(blackhole, inclination, alpha):
    """
    Apparent inner (r = 6M) and outer disk edge impact parameters at observer
    angle(s) alpha. Both are direct (order 0) isoradials; every call re-solves.
    """
    inner = impact_parameter(blackhole.disk_inner_edge, inclination, alpha, blackhole.mass, 0)
    outer = impact_parameter(blackhole.disk_outer_edge, inclination, alpha, blackhole.mass, 0)
    return inner, outer
