#blackhole.py
import math
from dataclasses import dataclass

from .isoradial import IsoRadial, disk_edge_impact_parameters

DEFAULT_MASS = 1.0
DEFAULT_ACCRETION_RATE = 10e-8
DEFAULT_DISK_OUTER_EDGE = 50.0


class ConfigurationError(ValueError):
    """Raised when physical or rendering parameters are not usable."""


@dataclass(frozen=True)
class BlackHole:
    """
    Represents a Schwarzschild black hole with a thin accretion disk.
    mass: in geometrized units (e.g., M = 1)
    accretion_rate: mass accretion rate of the disk
    outer_edge: outer edge of the accretion disk, in units of mass
    """
    mass: float = DEFAULT_MASS
    accretion_rate: float = DEFAULT_ACCRETION_RATE
    outer_edge: float = DEFAULT_DISK_OUTER_EDGE

    def __post_init__(self):
        for name in ('mass', 'accretion_rate', 'outer_edge'):
            value = getattr(self, name)
            if not math.isfinite(value) or value <= 0:
                raise ConfigurationError(f"{name} must be a positive finite number, got {value!r}")
        # the disk starts at the innermost stable circular orbit (6M)
        if self.outer_edge <= 6.0:
            raise ConfigurationError(
                f"disk outer edge must lie beyond the inner edge at 6M, got {self.outer_edge!r}M"
            )

    @property
    def critical_impact_parameter(self):
        """Value of the critical impact parameter, b_c = 3*sqrt(3)*M."""
        return 3.0 * math.sqrt(3.0) * self.mass

    @property
    def disk_inner_edge(self):
        return 6.0 * self.mass

    @property
    def disk_outer_edge(self):
        return self.outer_edge * self.mass

    def apparent_inner_disk_edge(self):
        """Isoradial forming the apparent inner edge of the accretion disk."""
        return IsoRadial(self.mass, self.disk_inner_edge, 0)

    def apparent_outer_disk_edge(self):
        """Isoradial forming the apparent outer edge of the accretion disk."""
        return IsoRadial(self.mass, self.disk_outer_edge, 0)

    def apparent_inner_edge_radius(self, inclination, alpha):
        return self.apparent_inner_disk_edge().impact_parameter_at(inclination, alpha)

    def apparent_outer_edge_radius(self, inclination, alpha):
        return self.apparent_outer_disk_edge().impact_parameter_at(inclination, alpha)

    def apparent_edges(self, inclination, alpha):
        """(inner, outer) apparent disk edge impact parameters at observer angle alpha."""
        return disk_edge_impact_parameters(self, inclination, alpha)
