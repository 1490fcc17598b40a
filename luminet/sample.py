#sample.py
from dataclasses import dataclass, replace

import numpy as np
import pandas as pd

from .utils import polar_to_cartesian

CSV_COLUMNS = ['x', 'y', 'r', 'b', 'alpha', 'order', 'flux']


@dataclass(frozen=True)
class Sample:
    """
    One sample of the observed flux from the accretion disk.
    radius: emission radius in the black hole's frame
    alpha: angle of the emission point, shared by both frames (radians)
    impact_parameter: radial position on the observer's photographic plate
    order: image order (0 = direct, 1+ = ghost)
    redshift_factor: 1 + z
    observed_flux: F_o
    """
    radius: float
    alpha: float
    impact_parameter: float
    order: int
    redshift_factor: float
    observed_flux: float

    def black_hole_position(self):
        return np.array(polar_to_cartesian(self.radius, self.alpha))

    def observer_position(self):
        """Position on the observer's plate. Ghost images (order > 0) appear y-flipped."""
        x, y = polar_to_cartesian(self.impact_parameter, self.alpha)
        return np.array([x, -y if self.order > 0 else y])

    def rotated(self, angle):
        """Copy of this sample with alpha rotated by `angle` radians."""
        return replace(self, alpha=self.alpha + angle)


def observer_positions(samples):
    """(N, 2) array of observer_position() for every sample."""
    if not samples:
        return np.empty((0, 2))
    return np.array([s.observer_position() for s in samples])


def samples_to_frame(samples):
    """Tabulate samples with the CSV column layout x, y, r, b, alpha, order, flux."""
    positions = observer_positions(samples)
    return pd.DataFrame({
        'x': positions[:, 0],
        'y': positions[:, 1],
        'r': [s.radius for s in samples],
        'b': [s.impact_parameter for s in samples],
        'alpha': [s.alpha for s in samples],
        'order': pd.Series([s.order for s in samples], dtype='int64'),
        'flux': [s.observed_flux for s in samples],
    }, columns=CSV_COLUMNS)

