"""2-D geometry primitives on the interface plane.

Coordinate convention
---------------------
* Screen space: x grows to the right, y grows *downward*.
* The interface is the horizontal line ``y = water_level``; air is above
  it (smaller y), water below.
* Angles are in degrees, measured from the vertical interface normal.
  The horizontal direction of a ray is chosen by an ``is_left`` flag, so
  a single non-negative angle plus a side describes every ray.
"""

import jax.numpy as jnp


def ray_point(origin, angle_deg, length, is_left, upward=True) -> jnp.ndarray:
    """Point at *length* along a ray leaving *origin*.

    Parameters
    ----------
    origin : (2,) array-like
        Start of the ray, usually a refraction point.
    angle_deg : float
        Angle between the ray and the vertical normal.
    length : float
        Distance to travel along the ray.
    is_left : bool
        Mirror the ray so it heads toward smaller x.
    upward : bool
        True for a ray travelling into the air (y decreasing), False for a
        ray travelling into the water.

    Returns
    -------
    end : (2,) array
    """
    theta = jnp.radians(angle_deg)
    dx = length * jnp.sin(theta)
    dy = length * jnp.cos(theta)
    dx = jnp.where(is_left, -dx, dx)
    dy = jnp.where(upward, -dy, dy)
    return jnp.array([origin[0] + dx, origin[1] + dy])


def angle_from_vector(origin, target) -> jnp.ndarray:
    """Angle (degrees) between the normal and the segment *origin* → *target*.

    Inverse of ``ray_point`` for targets above *origin*: returns a value in
    ``[0, 90)``.  A target level with *origin* gives 90 and a target below
    it gives more than 90; callers clamp.
    """
    dx = jnp.abs(target[0] - origin[0])
    height = origin[1] - target[1]
    return jnp.degrees(jnp.arctan2(dx, height))


def is_left(reference, target) -> bool:
    """True when *target* lies strictly left of *reference*."""
    return bool(target[0] < reference[0])


def distance(p1, p2) -> float:
    return float(jnp.hypot(p2[0] - p1[0], p2[1] - p1[1]))
