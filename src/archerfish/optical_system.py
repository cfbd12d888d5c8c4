"""Optical state model for the two-point refraction setup.

``OpticalSystem`` holds the mutable inputs (refraction points, water-side
angles, refractive index, apparent position, stored real position, coupling
flag).  Every other quantity is a query that recomputes from the current
inputs on each call; nothing derived is cached, so reads made later in a
reconciliation pass always see the writes made earlier in it.

Ray vocabulary
--------------
* *incident ray*: the line of sight in the water, arriving at a refraction
  point at the side's angle.
* *apparent ray*: the straight continuation of the incident ray into the
  air.  The two apparent rays meet at the apparent position.
* *refracted ray*: the real path in air after Snell's law.  The two
  refracted rays meet at the real position.
* *reflected ray*: under total internal reflection, the incident ray
  mirrored back into the water.
"""

import logging
from typing import Optional

import numpy as np

from . import geometry
from .datatypes import (
    LEFT,
    MAX_ANGLE,
    RIGHT,
    SIDES,
    OpticalSnapshot,
    Point,
    SimulationDefaults,
    validate_side,
)
from .intersection import RAY_LENGTH, intersect_rays
from .refraction import air_to_water, critical_angle, exceeds_critical, water_to_air

logger = logging.getLogger(__name__)


def clamp_angle(angle_deg: float) -> float:
    """Clamp an angle into the editable range ``[0, MAX_ANGLE]``."""
    return min(max(float(angle_deg), 0.0), MAX_ANGLE)


class OpticalSystem:
    """The single optical configuration of a simulation session.

    Mutation is the controller's job; this class only guarantees that the
    refraction points stay on the interface.
    """

    def __init__(
        self,
        left_x: float,
        right_x: float,
        water_level: float,
        left_angle: float,
        right_angle: float,
        refractive_index: float,
        lock_real_position: bool = False,
    ):
        self.water_level = float(water_level)
        self._x = {LEFT: float(left_x), RIGHT: float(right_x)}
        self.angles = {LEFT: float(left_angle), RIGHT: float(right_angle)}
        self.refractive_index = float(refractive_index)
        self.lock_real_position = bool(lock_real_position)
        self.apparent_position: Optional[Point] = None
        self.stored_real_position: Optional[Point] = None

    @classmethod
    def create(cls, defaults: SimulationDefaults = SimulationDefaults()) -> "OpticalSystem":
        """Build the start-of-session system with the apparent point in place."""
        half = defaults.point_spacing / 2.0
        system = cls(
            left_x=defaults.center_x - half,
            right_x=defaults.center_x + half,
            water_level=defaults.water_level,
            left_angle=defaults.left_angle,
            right_angle=defaults.right_angle,
            refractive_index=defaults.refractive_index,
        )
        system.apparent_position = system.apparent_from_angles()
        if defaults.lock_real_position:
            system.stored_real_position = system.derived_real_position()
            system.lock_real_position = True
        return system

    # ------------------------------------------------------------------
    # Inputs
    # ------------------------------------------------------------------

    def refraction_point(self, side: str) -> Point:
        return Point(self._x[validate_side(side)], self.water_level)

    def set_refraction_x(self, side: str, x: float) -> None:
        self._x[validate_side(side)] = float(x)

    def angle(self, side: str) -> float:
        return self.angles[validate_side(side)]

    @property
    def distance(self) -> float:
        """Distance between the two refraction points."""
        return geometry.distance(self.refraction_point(LEFT), self.refraction_point(RIGHT))

    # ------------------------------------------------------------------
    # Refraction state
    # ------------------------------------------------------------------

    @property
    def critical_angle(self) -> Optional[float]:
        angle, valid = critical_angle(self.refractive_index)
        return float(angle) if bool(valid) else None

    def exceeds_critical(self, side: str) -> bool:
        return bool(exceeds_critical(self.angle(side), self.refractive_index))

    def any_tir(self) -> bool:
        return any(self.exceeds_critical(side) for side in SIDES)

    def refracted_angle(self, side: str) -> Optional[float]:
        """Angle of the refracted ray in air, or None under TIR."""
        angle, valid = water_to_air(self.angle(side), self.refractive_index)
        if not bool(valid):
            return None
        return float(angle)

    # ------------------------------------------------------------------
    # Side classification
    # ------------------------------------------------------------------

    def side_target(self) -> Point:
        """The point the rays are aimed at, used to pick each ray's side.

        In coupled mode this is the real position, otherwise the apparent
        position; with neither available it is the midpoint between the
        refraction points.
        """
        if self.lock_real_position and self.stored_real_position is not None:
            return self.stored_real_position
        if self.apparent_position is not None:
            return self.apparent_position
        left, right = self.refraction_point(LEFT), self.refraction_point(RIGHT)
        return Point((left.x + right.x) / 2.0, self.water_level)

    def _is_left(self, side: str, target) -> bool:
        return geometry.is_left(self.refraction_point(side), target)

    # ------------------------------------------------------------------
    # Derived positions
    # ------------------------------------------------------------------

    def _intersect(self, left_angle, right_angle, target) -> Optional[Point]:
        """Intersect the two upward rays; None when degenerate or not in air."""
        left, right = self.refraction_point(LEFT), self.refraction_point(RIGHT)
        point, valid = intersect_rays(
            left, left_angle, self._is_left(LEFT, target),
            right, right_angle, self._is_left(RIGHT, target),
        )
        if not bool(valid):
            logger.debug("Rays at %.3f and %.3f degrees are parallel", left_angle, right_angle)
            return None
        point = Point(float(point[0]), float(point[1]))
        if point.y >= self.water_level:
            logger.debug("Rays meet at or below the interface (y=%.3f)", point.y)
            return None
        return point

    def derived_real_position(self) -> Optional[Point]:
        """Real position triangulated from the two refracted rays."""
        if self.any_tir():
            return None
        left, right = self.refracted_angle(LEFT), self.refracted_angle(RIGHT)
        if left is None or right is None:
            # Within an ulp of critical the forward sine can still round to 1.
            return None
        return self._intersect(left, right, self.side_target())

    @property
    def real_position(self) -> Optional[Point]:
        """Stored point in coupled mode, triangulated point otherwise.

        In coupled mode the stored point is returned even while a side is in
        TIR; check ``exceeds_critical`` before trusting it.
        """
        if self.lock_real_position:
            return self.stored_real_position
        return self.derived_real_position()

    def apparent_from_angles(self) -> Optional[Point]:
        """Apparent position where the two straight angle rays meet."""
        return self._intersect(self.angles[LEFT], self.angles[RIGHT], self.side_target())

    def angles_from_apparent(self, apparent) -> dict:
        """Per-side angles that aim each refraction point at *apparent*."""
        return {
            side: clamp_angle(geometry.angle_from_vector(self.refraction_point(side), apparent))
            for side in SIDES
        }

    def angles_from_real(self, real) -> dict:
        """Per-side water angles whose refracted rays pass through *real*.

        Air to water never totally reflects, but a grazing air angle can round
        onto the float32 critical angle, so results stay one ulp below it.
        """
        crit, has_crit = critical_angle(self.refractive_index)
        ceiling = float(np.nextafter(np.float32(crit), np.float32(0.0))) if bool(has_crit) else MAX_ANGLE
        angles = {}
        for side in SIDES:
            air_angle = geometry.angle_from_vector(self.refraction_point(side), real)
            water_angle, _ = air_to_water(air_angle, self.refractive_index)
            angles[side] = min(clamp_angle(water_angle), ceiling)
        return angles

    def apparent_from_real(self, real: Optional[Point] = None) -> Optional[Point]:
        """Apparent position an observer in the water sees for *real*.

        Defaults to the current real position.  Returns None when there is
        no real position, it is not above the interface, or either side is
        currently totally internally reflected.
        """
        if real is None:
            real = self.real_position
        if real is None or real.y >= self.water_level:
            return None
        if self.any_tir():
            return None
        angles = self.angles_from_real(real)
        return self._intersect(angles[LEFT], angles[RIGHT], real)

    # ------------------------------------------------------------------
    # Ray end points for drawing
    # ------------------------------------------------------------------

    def _ray_end(self, side, angle, upward, length, heading_left) -> Point:
        end = geometry.ray_point(self.refraction_point(side), angle, length, heading_left, upward)
        return Point(float(end[0]), float(end[1]))

    def incident_ray_end(self, side: str, length: float = RAY_LENGTH) -> Point:
        """Far end of the incident ray, down in the water."""
        heading_left = self._is_left(side, self.side_target())
        return self._ray_end(side, self.angle(side), False, length, not heading_left)

    def apparent_ray_end(self, side: str, length: float = RAY_LENGTH) -> Point:
        heading_left = self._is_left(side, self.side_target())
        return self._ray_end(side, self.angle(side), True, length, heading_left)

    def refracted_ray_end(self, side: str, length: float = RAY_LENGTH) -> Optional[Point]:
        angle = self.refracted_angle(side)
        if angle is None:
            return None
        heading_left = self._is_left(side, self.side_target())
        return self._ray_end(side, angle, True, length, heading_left)

    def reflected_ray_end(self, side: str, length: float = RAY_LENGTH) -> Optional[Point]:
        """Far end of the totally reflected ray, or None if the ray refracts.

        The reflection keeps the horizontal heading of the apparent ray and
        the incident angle, mirrored about the interface.
        """
        if not self.exceeds_critical(side):
            return None
        heading_left = self._is_left(side, self.side_target())
        return self._ray_end(side, self.angle(side), False, length, heading_left)

    # ------------------------------------------------------------------
    # Read view
    # ------------------------------------------------------------------

    def snapshot(self) -> OpticalSnapshot:
        return OpticalSnapshot(
            water_level=self.water_level,
            left_point=self.refraction_point(LEFT),
            right_point=self.refraction_point(RIGHT),
            left_angle=self.angles[LEFT],
            right_angle=self.angles[RIGHT],
            refractive_index=self.refractive_index,
            critical_angle=self.critical_angle,
            left_tir=self.exceeds_critical(LEFT),
            right_tir=self.exceeds_critical(RIGHT),
            left_refracted_angle=self.refracted_angle(LEFT),
            right_refracted_angle=self.refracted_angle(RIGHT),
            apparent_position=self.apparent_position,
            real_position=self.real_position,
            distance=self.distance,
            lock_real_position=self.lock_real_position,
        )
