"""
Geodesic Integrator
====================
Advances a test particle through the gravitational field of the massive
objects over a fixed proper-time span.

This is NOT geodesic motion in curved spacetime. The particle follows
Newtonian acceleration

    a = Σ_k G m_k (x_k - x) / |x_k - x|^3

summed over all objects (full N-body superposition, unlike the metric
field), with fixed steps dt = span / step_count.

The default method is explicit Euler (velocity first, then position),
whose global error grows linearly with dt. The "rk4" and solve_ivp
methods are accuracy improvements over the same model, not different
physics; only the Euler path is expected to match step for step.
"""

import logging
import math
from dataclasses import dataclass
from typing import List, Sequence, Tuple

import numpy as np
from scipy.integrate import solve_ivp

from .config import FIXED_STEP_METHODS, GRAVITATIONAL_CONSTANT, SOLVE_IVP_METHODS
from .contracts import IntegrationError, InvalidConfigurationError
from .spacetime import MassiveObject, SpacetimePoint, as_vector3

logger = logging.getLogger("SpacetimeSim.Integrator")


def newtonian_acceleration(position: np.ndarray,
                           source_positions: np.ndarray,
                           source_masses: np.ndarray,
                           gravitational_constant: float) -> np.ndarray:
    """
    Acceleration at `position` toward every source, summed.

    Sources at exactly zero distance are skipped for this evaluation.
    """
    accel = np.zeros(3)
    if len(source_masses) == 0:
        return accel

    delta = source_positions - position
    r = np.sqrt(np.sum(delta * delta, axis=1))
    active = r > 0
    if not np.any(active):
        return accel

    r_a = r[active]
    magnitude = gravitational_constant * source_masses[active] / (r_a * r_a)
    accel = np.sum((magnitude / r_a)[:, None] * delta[active], axis=0)
    return accel


def _sources(objects: Sequence[MassiveObject]) -> Tuple[np.ndarray, np.ndarray]:
    if not objects:
        return np.zeros((0, 3)), np.zeros(0)
    for obj in objects:
        obj.check_mass()
    positions = np.array([obj.position.spatial() for obj in objects])
    masses = np.array([obj.mass for obj in objects])
    return positions, masses


@dataclass(frozen=True, eq=False)
class GeodesicTrajectory:
    """
    Result of one integration run.

    points[0] is the start point; velocities[i] is the particle velocity
    at points[i]. Both are owned by the caller and never touched again
    by the integrator. Trajectories compare by identity; use same_path()
    to compare contents.
    """
    points: Tuple[SpacetimePoint, ...]
    velocities: np.ndarray  # (n_points, 3), read-only
    dt: float
    method: str

    def __len__(self) -> int:
        return len(self.points)

    @property
    def final_point(self) -> SpacetimePoint:
        return self.points[-1]

    @property
    def final_velocity(self) -> np.ndarray:
        return self.velocities[-1].copy()

    def positions(self) -> np.ndarray:
        """(n_points, 3) spatial positions"""
        return np.array([p.spatial() for p in self.points])

    def same_path(self, other: "GeodesicTrajectory") -> bool:
        return (self.points == other.points
                and np.array_equal(self.velocities, other.velocities))


class GeodesicIntegrator:
    """
    Fixed-step trajectory integration in the Newtonian approximation.

    G is bound at construction; replacing G means building a new
    integrator, which leaves previously returned paths untouched.
    """

    def __init__(self, gravitational_constant: float = GRAVITATIONAL_CONSTANT,
                 method: str = "euler", rtol: float = 1e-10, atol: float = 1e-12):
        if not gravitational_constant >= 0:
            raise InvalidConfigurationError(
                f"Gravitational constant must be non-negative, got {gravitational_constant!r}"
            )
        self._check_method(method)
        self.G = float(gravitational_constant)
        self.method = method
        self.rtol = rtol
        self.atol = atol

    @staticmethod
    def _check_method(method: str):
        if method not in FIXED_STEP_METHODS + SOLVE_IVP_METHODS:
            raise InvalidConfigurationError(f"Unknown integration method: {method!r}")

    def integrate(self,
                  start: SpacetimePoint,
                  initial_velocity: Sequence[float],
                  proper_time_span: float,
                  step_count: int,
                  objects: Sequence[MassiveObject],
                  method: str = None) -> List[SpacetimePoint]:
        """
        Integrate a test-particle path.

        Returns a new list of step_count + 1 points beginning with start.
        step_count == 0 returns [start].
        """
        trajectory = self.trajectory(start, initial_velocity, proper_time_span,
                                     step_count, objects, method=method)
        return list(trajectory.points)

    def trajectory(self,
                   start: SpacetimePoint,
                   initial_velocity: Sequence[float],
                   proper_time_span: float,
                   step_count: int,
                   objects: Sequence[MassiveObject],
                   method: str = None) -> GeodesicTrajectory:
        """Like integrate(), but keeps velocities and step metadata"""
        method = method or self.method
        self._check_method(method)

        if not isinstance(start, SpacetimePoint):
            raise InvalidConfigurationError("Start must be a SpacetimePoint")
        velocity = as_vector3(initial_velocity, "initial velocity")
        try:
            span_ok = math.isfinite(proper_time_span) and proper_time_span > 0
        except TypeError:
            span_ok = False
        if not span_ok:
            raise InvalidConfigurationError(
                f"Proper time span must be positive, got {proper_time_span!r}"
            )
        if isinstance(step_count, bool) or not isinstance(step_count, (int, np.integer)) \
                or step_count < 0:
            raise InvalidConfigurationError(
                f"Step count must be a non-negative integer, got {step_count!r}"
            )

        if step_count == 0:
            velocities = velocity.reshape(1, 3)
            velocities.setflags(write=False)
            return GeodesicTrajectory((start,), velocities, 0.0, method)

        dt = proper_time_span / step_count
        source_positions, source_masses = _sources(objects)

        if method == "euler":
            positions, velocities = self._euler(start.spatial(), velocity, dt, step_count,
                                                source_positions, source_masses)
        elif method == "rk4":
            positions, velocities = self._rk4(start.spatial(), velocity, dt, step_count,
                                              source_positions, source_masses)
        else:
            positions, velocities = self._solve_ivp(start.spatial(), velocity, proper_time_span,
                                                    step_count, method,
                                                    source_positions, source_masses)

        points = [start]
        t = start.t
        for x, y, z in positions[1:]:
            t += dt
            points.append(SpacetimePoint(float(x), float(y), float(z), t))

        velocities.setflags(write=False)
        logger.debug(
            f"Integrated {step_count} steps ({method}, dt={dt:.4g}) "
            f"through {len(source_masses)} objects"
        )
        return GeodesicTrajectory(tuple(points), velocities, dt, method)

    # ------------------------------------------------------------------
    # Steppers
    # ------------------------------------------------------------------

    def _euler(self, x0, v0, dt, n_steps, source_positions, source_masses):
        positions = np.empty((n_steps + 1, 3))
        velocities = np.empty((n_steps + 1, 3))
        positions[0] = x0
        velocities[0] = v0

        x = x0.copy()
        v = v0.copy()
        for i in range(1, n_steps + 1):
            a = newtonian_acceleration(x, source_positions, source_masses, self.G)
            v = v + a * dt
            x = x + v * dt
            positions[i] = x
            velocities[i] = v

        return positions, velocities

    def _rk4(self, x0, v0, dt, n_steps, source_positions, source_masses):
        positions = np.empty((n_steps + 1, 3))
        velocities = np.empty((n_steps + 1, 3))
        positions[0] = x0
        velocities[0] = v0

        def accel(x):
            return newtonian_acceleration(x, source_positions, source_masses, self.G)

        x = x0.copy()
        v = v0.copy()
        for i in range(1, n_steps + 1):
            k1x, k1v = v, accel(x)
            k2x, k2v = v + 0.5 * dt * k1v, accel(x + 0.5 * dt * k1x)
            k3x, k3v = v + 0.5 * dt * k2v, accel(x + 0.5 * dt * k2x)
            k4x, k4v = v + dt * k3v, accel(x + dt * k3x)

            x = x + dt / 6.0 * (k1x + 2 * k2x + 2 * k3x + k4x)
            v = v + dt / 6.0 * (k1v + 2 * k2v + 2 * k3v + k4v)
            positions[i] = x
            velocities[i] = v

        return positions, velocities

    def _solve_ivp(self, x0, v0, span, n_steps, method, source_positions, source_masses):
        def equations(t, y):
            a = newtonian_acceleration(y[:3], source_positions, source_masses, self.G)
            return np.concatenate([y[3:], a])

        t_eval = np.linspace(0.0, span, n_steps + 1)
        sol = solve_ivp(
            equations,
            (0.0, span),
            np.concatenate([x0, v0]),
            method=method,
            t_eval=t_eval,
            rtol=self.rtol,
            atol=self.atol,
        )
        if not sol.success:
            raise IntegrationError(f"solve_ivp ({method}) failed: {sol.message}")

        y = sol.y.T
        return np.ascontiguousarray(y[:, :3]), np.ascontiguousarray(y[:, 3:])
