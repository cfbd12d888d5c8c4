"""Edit-origin dispatch for the optical system.

Each user edit enters through exactly one mutator below.  A mutator writes
its input, recomputes the dependent quantities in a fixed one-directional
order, and returns; it never calls another mutator.  Derived writes go
straight to the ``OpticalSystem``, so an angle derived from the apparent
position cannot bounce back into the angle-edit handler.

Mutators return True when the edit was applied and False when it was
rejected (out-of-range input, edit not allowed in the current coupling
mode, or a re-entrant call made while another edit is being reconciled).
"""

import logging
from contextlib import contextmanager
from functools import wraps
from typing import Callable, Optional

import numpy as np

from .datatypes import (
    MAX_INDEX,
    MIN_INDEX,
    SIDES,
    OpticalSnapshot,
    Point,
    SimulationDefaults,
)
from .optical_system import OpticalSystem, clamp_angle

logger = logging.getLogger(__name__)


def _edit_origin(handler):
    """Run *handler* and its redraw request under the reconciliation guard.

    The redraw stays inside the guard: a UI layer that pushes the derived
    values back into its widgets will call the mutators again, and those
    calls must be ignored.
    """

    @wraps(handler)
    def wrapper(self, *args, **kwargs):
        if self._reconciling:
            logger.debug("Ignoring re-entrant %s during reconciliation", handler.__name__)
            return False
        with self._suppressed():
            applied = handler(self, *args, **kwargs)
            if applied:
                self._request_redraw()
        return applied

    return wrapper


def _finite(*values) -> bool:
    return bool(np.all(np.isfinite(np.asarray(values, dtype=float))))


class ReconciliationController:
    """Owns the optical system and applies user edits to it.

    Parameters
    ----------
    system : OpticalSystem, optional
        State to drive.  A default session is created when omitted.
    on_redraw : callable, optional
        Called with an ``OpticalSnapshot`` after every applied edit.
    """

    def __init__(
        self,
        system: Optional[OpticalSystem] = None,
        on_redraw: Optional[Callable[[OpticalSnapshot], None]] = None,
    ):
        self._system = system if system is not None else OpticalSystem.create(SimulationDefaults())
        self._on_redraw = on_redraw
        self._reconciling = False

    @contextmanager
    def _suppressed(self):
        self._reconciling = True
        try:
            yield
        finally:
            self._reconciling = False

    def _request_redraw(self) -> None:
        if self._on_redraw is not None:
            self._on_redraw(self.snapshot())

    # ------------------------------------------------------------------
    # Read accessors
    # ------------------------------------------------------------------

    def snapshot(self) -> OpticalSnapshot:
        return self._system.snapshot()

    def refraction_point(self, side: str) -> Point:
        return self._system.refraction_point(side)

    def angle(self, side: str) -> float:
        return self._system.angle(side)

    def is_tir(self, side: str) -> bool:
        return self._system.exceeds_critical(side)

    @property
    def refractive_index(self) -> float:
        return self._system.refractive_index

    @property
    def critical_angle(self) -> Optional[float]:
        return self._system.critical_angle

    @property
    def apparent_position(self) -> Optional[Point]:
        """Current apparent point.

        In coupled mode an angle edit into TIR leaves this at its last
        derivable value; check ``is_tir`` before trusting it.
        """
        return self._system.apparent_position

    @property
    def real_position(self) -> Optional[Point]:
        """Real point, or None when it cannot be triangulated.

        In coupled mode the stored point is returned even while a side is
        in TIR; check ``is_tir`` before trusting it.
        """
        return self._system.real_position

    def incident_ray_end(self, side: str) -> Point:
        return self._system.incident_ray_end(side)

    def apparent_ray_end(self, side: str) -> Point:
        return self._system.apparent_ray_end(side)

    def refracted_ray_end(self, side: str) -> Optional[Point]:
        """End of the refracted ray in air, None under TIR."""
        return self._system.refracted_ray_end(side)

    def reflected_ray_end(self, side: str) -> Optional[Point]:
        """End of the reflected ray in water, None unless the side is in TIR."""
        return self._system.reflected_ray_end(side)

    @property
    def distance(self) -> float:
        return self._system.distance

    @property
    def lock_real_position(self) -> bool:
        return self._system.lock_real_position

    # ------------------------------------------------------------------
    # Shared recomputation steps
    # ------------------------------------------------------------------

    def _angles_from_apparent(self) -> None:
        apparent = self._system.apparent_position
        if apparent is None:
            logger.debug("No apparent position; angles left unchanged")
            return
        self._system.angles.update(self._system.angles_from_apparent(apparent))

    def _apparent_from_real(self) -> None:
        apparent = self._system.apparent_from_real()
        if apparent is None:
            logger.debug("Apparent position not derivable from the real position")
            return
        self._system.apparent_position = apparent

    # ------------------------------------------------------------------
    # Edit origins
    # ------------------------------------------------------------------

    @_edit_origin
    def move_refraction_point(self, side: str, x: float) -> bool:
        """Slide a refraction point along the interface."""
        if side not in SIDES or not _finite(x):
            logger.warning("Rejected refraction point move: side=%r x=%r", side, x)
            return False
        self._system.set_refraction_x(side, x)
        self._angles_from_apparent()
        return True

    @_edit_origin
    def move_apparent_position(self, point) -> bool:
        if not _finite(*point):
            logger.warning("Rejected apparent position %r", point)
            return False
        self._system.apparent_position = Point(float(point[0]), float(point[1]))
        self._angles_from_apparent()
        return True

    @_edit_origin
    def move_real_position(self, point) -> bool:
        """Drag the real position; only allowed in coupled mode."""
        if not self._system.lock_real_position:
            logger.warning("Real position can only be moved while it is locked")
            return False
        if not _finite(*point) or point[1] >= self._system.water_level:
            logger.warning("Rejected real position %r: must be finite and above the water", point)
            return False
        real = Point(float(point[0]), float(point[1]))
        self._system.stored_real_position = real
        self._system.angles.update(self._system.angles_from_real(real))
        self._apparent_from_real()
        return True

    @_edit_origin
    def set_angle(self, side: str, angle_deg: float) -> bool:
        if side not in SIDES or not _finite(angle_deg):
            logger.warning("Rejected angle edit: side=%r angle=%r", side, angle_deg)
            return False
        self._system.angles[side] = clamp_angle(angle_deg)
        if self._system.lock_real_position:
            self._apparent_from_real()
        else:
            self._system.apparent_position = self._system.apparent_from_angles()
        return True

    @_edit_origin
    def set_refractive_index(self, n: float) -> bool:
        if not _finite(n) or not MIN_INDEX <= n <= MAX_INDEX:
            logger.warning("Rejected refractive index %r: must lie in [%s, %s]", n, MIN_INDEX, MAX_INDEX)
            return False
        self._system.refractive_index = float(n)
        if self._system.lock_real_position:
            self._apparent_from_real()
        return True

    @_edit_origin
    def set_lock_real_position(self, enabled: bool) -> bool:
        enabled = bool(enabled)
        if enabled and not self._system.lock_real_position:
            # Freeze the current real position so switching modes does not move it.
            self._system.stored_real_position = self._system.derived_real_position()
        elif not enabled:
            self._system.stored_real_position = None
        self._system.lock_real_position = enabled
        self._apparent_from_real()
        return True
