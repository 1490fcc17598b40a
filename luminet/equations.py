"""
Equations from Luminet (1979), "Image of a spherical black hole with thin
accretion disk", A&A 75, 228.

Units: geometrized units where G = c = 1. All lengths are in the same units
as the black hole mass M. Angles are in radians.

Every function accepts floats or numpy arrays and broadcasts like a ufunc.
Out-of-domain evaluations (e.g. a periastron inside the photon sphere)
produce NaN rather than warnings; callers decide what NaN means.

Several equations in the paper contain typos. The corrected forms used here
are noted on the relevant functions.
"""

import numpy as np
from scipy.special import ellipj, ellipk, ellipkinc

# Below this inclination the observer is treated as face-on
INCLINATION_TOLERANCE = 1e-5


def calc_q(periastron, mass):
    """Q from the periastron P (pg 229)."""
    with np.errstate(invalid='ignore'):
        return np.sqrt((periastron - 2.0 * mass) * (periastron + 6.0 * mass))


def impact_parameter_from_periastron(periastron, mass):
    """
    Impact parameter b from the periastron P (eqn 5).

    The paper writes b on the left-hand side; it should be b^2.
    """
    with np.errstate(invalid='ignore', divide='ignore'):
        return np.sqrt(periastron ** 3 / (periastron - 2.0 * mass))


def calc_modulus(periastron, mass, q=None):
    """
    Parameter m = k^2 of the elliptic integrals (eqn 12).

    The definition of k on pg 229 is missing parentheses around the numerator.
    """
    if q is None:
        q = calc_q(periastron, mass)
    with np.errstate(invalid='ignore', divide='ignore'):
        return (q - periastron + 6.0 * mass) / (2.0 * q)


def calc_zeta_inf(periastron, mass, q=None):
    """Amplitude zeta_inf of the incomplete elliptic integral (eqn 12)."""
    if q is None:
        q = calc_q(periastron, mass)
    with np.errstate(invalid='ignore', divide='ignore'):
        return np.arcsin(np.sqrt((q - periastron + 2.0 * mass) / (q - periastron + 6.0 * mass)))


def calc_cos_gamma(alpha, inclination):
    """
    Cosine of the angle gamma between the photon's emission direction and
    the line of sight (eqn 10).

    Face-on observers (inclination below INCLINATION_TOLERANCE) get exactly 0
    instead of dividing by tan(0).
    """
    if inclination < INCLINATION_TOLERANCE:
        if np.ndim(alpha):
            return np.zeros(np.shape(alpha))
        return 0.0
    cos_alpha = np.cos(alpha)
    return cos_alpha / np.sqrt(cos_alpha ** 2 + 1.0 / np.tan(inclination) ** 2)


def calc_cos_alpha(phi, inclination):
    """Cosine of the observer-frame angle alpha from the disk-frame angle phi (eqn 9)."""
    return (np.cos(phi) * np.cos(inclination)) / np.sqrt(
        1.0 - np.sin(inclination) ** 2 * np.cos(phi) ** 2
    )


def calc_one_over_radius(periastron, alpha, mass, inclination, order):
    """
    Reciprocal of the emission radius r (eqn 13).

    Parameters
    ----------
    periastron : float or ndarray
        Closest approach P of the photon, must exceed 2M.
    alpha : float or ndarray
        Observer-frame angle.
    mass : float
        Black hole mass M.
    inclination : float
        Observer inclination above the equatorial plane.
    order : int
        Image order; 0 is the direct image, n >= 1 adds n windings plus a
        complete elliptic integral correction.

    Notes
    -----
    The paper has the sqrt(P/Q) factor of the first term of the Jacobi sine
    argument in the numerator; it belongs in the denominator.
    """
    with np.errstate(invalid='ignore', divide='ignore'):
        q = calc_q(periastron, mass)
        zeta_inf = calc_zeta_inf(periastron, mass, q)
        modulus = calc_modulus(periastron, mass, q)
        elliptic_inf = ellipkinc(zeta_inf, modulus)
        gamma = np.arccos(calc_cos_gamma(alpha, inclination))
        scale = 2.0 * np.sqrt(periastron / q)

        if order == 0:
            jacobi_arg = gamma / scale + elliptic_inf
        else:
            jacobi_arg = (gamma - 2.0 * order * np.pi) / scale - elliptic_inf + 2.0 * ellipk(modulus)
        elliptic_sine = ellipj(jacobi_arg, modulus)[0]

        return (
            -(q - periastron + 2.0 * mass) / (4.0 * mass * periastron)
            + ((q - periastron + 6.0 * mass) / (4.0 * mass * periastron)) * elliptic_sine ** 2
        )


def calc_one_over_radius_residual(radius, periastron, alpha, mass, inclination, order):
    """
    1 - r * (1/r)(P). Zero when P is the periastron of the photon emitted at r.
    """
    return 1.0 - radius * calc_one_over_radius(periastron, alpha, mass, inclination, order)


def calc_intrinsic_flux(radius, accretion_rate, mass):
    """Intrinsic flux F_s emitted by the disk at radius r (eqn 15)."""
    radius_star = radius / mass
    sqrt3 = np.sqrt(3.0)
    sqrt6 = np.sqrt(6.0)
    with np.errstate(invalid='ignore', divide='ignore'):
        log_arg = ((np.sqrt(radius_star) + sqrt3) * (sqrt6 - sqrt3)) / (
            (np.sqrt(radius_star) - sqrt3) * (sqrt6 + sqrt3)
        )
        return (
            ((3.0 * mass * accretion_rate) / (8.0 * np.pi))
            * (1.0 / ((radius_star - 3.0) * radius_star ** 2.5))
            * (np.sqrt(radius_star) - sqrt6 + (sqrt3 / 3.0) * np.log10(log_arg))
        )


def calc_observed_flux(radius, accretion_rate, mass, redshift_factor):
    """Observed flux F_o = F_s / (1 + z)^4 (pg 233)."""
    return calc_intrinsic_flux(radius, accretion_rate, mass) / redshift_factor ** 4


def calc_redshift_factor(radius, alpha, inclination, mass, impact_parameter):
    """
    Gravitational plus Doppler redshift factor 1 + z, ignoring cosmological
    redshift (eqn 19).

    The unlabelled equation 18 above it is missing terms; it should read
    1 + z = (1 - Omega*b*cos(eta)) * (-g_tt - 2*Omega*g_tphi - Omega^2*g_phiphi)^(-1/2).
    """
    with np.errstate(invalid='ignore', divide='ignore'):
        return (
            1.0 + np.sqrt(mass / radius ** 3) * impact_parameter * np.sin(inclination) * np.sin(alpha)
        ) / np.sqrt(1.0 - 3.0 * mass / radius)


def ellipse(radius, alpha, inclination):
    """
    Newtonian-limit isoradial: an ellipse parameterized by cos(gamma).
    Used when no periastron can be found.
    """
    gamma = np.arccos(calc_cos_gamma(alpha, inclination))
    return radius * np.sin(gamma)
