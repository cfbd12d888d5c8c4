"""Core data structures for the refraction engine.

Everything here is an immutable value: points, solver results, the default
simulation parameters and the read-only snapshot handed to the renderer.
Mutable state lives only in ``OpticalSystem``.
"""

from typing import NamedTuple, Optional


# ---------------------------------------------------------------------------
# Points
# ---------------------------------------------------------------------------

class Point(NamedTuple):
    """A 2-D point in screen space (y grows downward)."""
    x: float
    y: float


# ---------------------------------------------------------------------------
# Sides and physical constants
# ---------------------------------------------------------------------------
# Both refraction points are addressed by these tags; every module agrees on
# the spelling.

LEFT = "left"
RIGHT = "right"
SIDES = (LEFT, RIGHT)

AIR_INDEX = 1.0     # the lighter medium is fixed
MIN_INDEX = 1.0     # accepted range for the water-side index
MAX_INDEX = 2.0
MAX_ANGLE = 89.9    # angle edits are clamped to [0, MAX_ANGLE] degrees


# ---------------------------------------------------------------------------
# Simulation defaults (the only configuration surface)
# ---------------------------------------------------------------------------

class SimulationDefaults(NamedTuple):
    """Initial values for a new ``OpticalSystem``."""
    refractive_index: float = 1.33  # water
    water_level: float = 450.0      # screen y of the interface
    center_x: float = 400.0         # midpoint between the refraction points
    point_spacing: float = 300.0    # distance between the refraction points
    left_angle: float = 30.0        # degrees from the normal
    right_angle: float = 30.0
    lock_real_position: bool = False


# ---------------------------------------------------------------------------
# Renderer read view
# ---------------------------------------------------------------------------

class OpticalSnapshot(NamedTuple):
    """Everything the renderer may read after a mutator call.

    Optional fields are ``None`` when the quantity cannot be computed
    (total internal reflection, parallel rays, undefined critical angle).
    """
    water_level: float
    left_point: Point
    right_point: Point
    left_angle: float
    right_angle: float
    refractive_index: float
    critical_angle: Optional[float]
    left_tir: bool
    right_tir: bool
    left_refracted_angle: Optional[float]
    right_refracted_angle: Optional[float]
    apparent_position: Optional[Point]
    real_position: Optional[Point]
    distance: float
    lock_real_position: bool


def validate_side(side: str) -> str:
    """Return *side* unchanged, raising ``ValueError`` for unknown tags."""
    if side not in SIDES:
        raise ValueError(f"side must be one of {SIDES}, got {side!r}")
    return side
