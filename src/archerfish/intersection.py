"""Intersection of two rays given as refraction point + angle + side.

Each ray is materialised with ``ray_point`` at a long nominal length and the
two supporting lines are intersected.  The textbook slope form

    x = ((m1*x1 - y1) - (m2*x2 - y2)) / (m1 - m2)
    y = m1 * (x - x1) + y1

breaks down for vertical rays (angle 0, infinite slope), so the same system
is solved here on direction vectors: the slope difference ``m1 - m2``
becomes the 2-D cross product of the directions, and "parallel" is a
vanishing cross product instead of equal slopes.
"""

import jax.numpy as jnp

from .geometry import ray_point

# Nominal ray length used to approximate an infinite ray.
RAY_LENGTH = 1000.0

# |sin| of the angle between the two rays below which they count as parallel.
_EPS = 1e-6


def _cross(a: jnp.ndarray, b: jnp.ndarray) -> jnp.ndarray:
    return a[0] * b[1] - a[1] * b[0]


def intersect_rays(
    p1,
    angle1_deg: float,
    left1: bool,
    p2,
    angle2_deg: float,
    left2: bool,
    length: float = RAY_LENGTH,
    upward: bool = True,
) -> tuple[jnp.ndarray, jnp.ndarray]:
    """Find where the lines through two rays cross.

    Parameters
    ----------
    p1, p2 : (2,) array-like
        Ray origins (the refraction points).
    angle1_deg, angle2_deg : float
        Ray angles from the vertical normal, in degrees.
    left1, left2 : bool
        Horizontal mirroring of each ray (see ``ray_point``).
    length : float
        Nominal length used to build each ray.
    upward : bool
        Whether both rays travel into the air.

    Returns
    -------
    point : (2,) array
        Intersection coordinates.  When the rays are degenerate this is the
        first origin, so the value stays finite.
    valid : scalar bool array
        False when the rays are parallel or antiparallel.
    """
    o1 = jnp.asarray(p1, dtype=jnp.float32)
    o2 = jnp.asarray(p2, dtype=jnp.float32)
    d1 = ray_point(o1, angle1_deg, length, left1, upward) - o1
    d2 = ray_point(o2, angle2_deg, length, left2, upward) - o2

    denom = _cross(d1, d2)
    valid = jnp.abs(denom) > _EPS * length * length

    # Swap a zero denominator for 1 so the division stays finite, then
    # discard the result through the validity mask.
    safe_denom = jnp.where(valid, denom, 1.0)
    t = _cross(o2 - o1, d2) / safe_denom
    t = jnp.where(valid, t, 0.0)

    return o1 + t * d1, valid
