"""
Solve for the periastron and impact parameter of a photon emitted from the
accretion disk.

The periastron is found with the bisection method on the residual of eqn 13.
Solves are vectorized: every element of the input arrays runs its own
bisection (stopping on its own tolerance or iteration budget), so an array
solve returns exactly what the equivalent scalar solves would.
"""

import numpy as np

from .equations import calc_one_over_radius_residual, ellipse, impact_parameter_from_periastron

# Solution tolerance on the bracket width, in units of black hole mass
PERIASTRON_TOLERANCE = 1e-6
MAX_BISECTION_ITERS = 100
# Lower end of the periastron bracket, in units of black hole mass
MIN_PERIASTRON = 3.001
# Upper end of the periastron bracket, in units of the emission radius
MAX_PERIASTRON = 3.0


def _signum(x):
    """Sign of x as +-1.0 (zeros keep their sign bit), NaN for NaN."""
    x = np.asarray(x, dtype=np.float64)
    return np.where(np.isnan(x), np.nan, np.copysign(1.0, x))


def solve_periastron_array(radius, inclination, alpha, mass, order):
    """
    Element-wise periastron solve over broadcast (radius, alpha) arrays.

    Returns an array of periastron values with NaN wherever no solution is
    bracketed by [MIN_PERIASTRON * mass, MAX_PERIASTRON * radius] or the
    bisection ends on NaN.
    """
    radius, alpha = np.broadcast_arrays(
        np.asarray(radius, dtype=np.float64), np.asarray(alpha, dtype=np.float64)
    )
    shape = radius.shape
    radius = radius.ravel()
    alpha = alpha.ravel()
    tolerance = PERIASTRON_TOLERANCE * mass

    def residual(idx, periastron):
        return calc_one_over_radius_residual(radius[idx], periastron, alpha[idx], mass, inclination, order)

    everything = np.arange(radius.size)
    lo = np.full(radius.size, MIN_PERIASTRON * mass)
    hi = MAX_PERIASTRON * radius
    sign_lo = _signum(residual(everything, lo))
    sign_hi = _signum(residual(everything, hi))

    # Same sign at both ends: no solution in the valid range
    bracketed = ~(sign_lo == sign_hi)
    active = bracketed & (np.abs(hi - lo) > tolerance)

    for _ in range(MAX_BISECTION_ITERS):
        idx = np.flatnonzero(active)
        if idx.size == 0:
            break
        mid = (lo[idx] + hi[idx]) / 2.0
        sign_mid = _signum(residual(idx, mid))

        move_hi = sign_lo[idx] != sign_mid
        move_lo = ~move_hi & (sign_hi[idx] != sign_mid)
        hi[idx[move_hi]] = mid[move_hi]
        sign_hi[idx[move_hi]] = sign_mid[move_hi]
        lo[idx[move_lo]] = mid[move_lo]
        sign_lo[idx[move_lo]] = sign_mid[move_lo]

        active[idx] = np.abs(hi[idx] - lo[idx]) > tolerance

    result = np.full(radius.size, np.nan)
    result[bracketed] = (lo[bracketed] + hi[bracketed]) / 2.0
    return result.reshape(shape)


def solve_periastron(radius, inclination, alpha, mass, order):
    """
    Periastron of the photon emitted at disk radius `radius` that reaches the
    observer at angle `alpha`, or None if no solution can be found.
    """
    periastron = float(solve_periastron_array(radius, inclination, alpha, mass, order))
    if np.isnan(periastron):
        return None
    return periastron


def impact_parameter(radius, inclination, alpha, mass, order):
    """
    Impact parameter of the photon emitted at `radius` and seen at `alpha`.

    Solves for the periastron first and converts it with eqn 5. Where no
    periastron is found the Newtonian ellipse is used instead, so the result
    is always finite. Returns a float for scalar input, otherwise an array.
    """
    periastron = solve_periastron_array(radius, inclination, alpha, mass, order)
    b = np.where(
        np.isnan(periastron),
        ellipse(radius, alpha, inclination),
        impact_parameter_from_periastron(periastron, mass),
    )
    if b.ndim == 0:
        return float(b)
    return b
