"""Scalar Snell's law, critical angle and total internal reflection.

Angles are in degrees from the interface normal.  Every solver returns a
``(value, valid)`` pair: the value is always finite, and ``valid`` carries
the TIR / undefined signal so callers never branch on NaN.
"""

import jax.numpy as jnp

from .datatypes import AIR_INDEX


def critical_angle(n: float) -> tuple[jnp.ndarray, jnp.ndarray]:
    """Critical angle for light leaving a medium of index *n* into air.

    Parameters
    ----------
    n : float
        Refractive index of the denser medium.

    Returns
    -------
    angle_deg : scalar array
        ``asin(1 / n)`` in degrees; 90 when undefined.
    valid : scalar bool array
        False when ``n <= 1``: there is no critical angle and TIR cannot
        happen.
    """
    n = jnp.asarray(n, dtype=jnp.float32)
    valid = n > AIR_INDEX
    safe_n = jnp.where(valid, n, 1.0)
    angle = jnp.degrees(jnp.arcsin(jnp.clip(AIR_INDEX / safe_n, -1.0, 1.0)))
    return angle, valid


def refract(
    incident_deg: float,
    n_from: float,
    n_to: float,
) -> tuple[jnp.ndarray, jnp.ndarray]:
    """Refracted angle from ``n_from * sin(theta_from) = n_to * sin(theta_to)``.

    Parameters
    ----------
    incident_deg : float
        Incident angle in degrees, measured in the ``n_from`` medium.
    n_from : float
        Refractive index of the medium the ray is leaving.
    n_to : float
        Refractive index of the medium the ray is entering.

    Returns
    -------
    refracted_deg : scalar array
        Angle in the ``n_to`` medium.  Under TIR this is the clamped value
        (90 degrees), still finite.
    valid : scalar bool array
        False when the ray is totally internally reflected.
    """
    theta = jnp.radians(incident_deg)
    sin_t = (n_from / n_to) * jnp.sin(theta)

    # Leaving the denser medium at or past the critical angle.
    crit, has_crit = critical_angle(n_from / n_to)
    at_or_past_critical = has_crit & (jnp.abs(incident_deg) >= crit)

    # Rounding near the boundary can push |sin_t| a hair past 1.
    valid = (jnp.abs(sin_t) < 1.0) & ~at_or_past_critical
    sin_t_safe = jnp.clip(sin_t, -1.0, 1.0)

    return jnp.degrees(jnp.arcsin(sin_t_safe)), valid


def water_to_air(angle_deg: float, n: float) -> tuple[jnp.ndarray, jnp.ndarray]:
    """Forward trace: water-side angle to the angle of the ray in air."""
    return refract(angle_deg, n, AIR_INDEX)


def air_to_water(angle_deg: float, n: float) -> tuple[jnp.ndarray, jnp.ndarray]:
    """Inverse trace: viewing direction in air to the ray direction in water."""
    return refract(angle_deg, AIR_INDEX, n)


def exceeds_critical(angle_deg: float, n: float) -> jnp.ndarray:
    """True when a water-side angle is totally internally reflected."""
    crit, has_crit = critical_angle(n)
    return has_crit & (angle_deg >= crit)
