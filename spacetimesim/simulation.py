"""
Spacetime Simulation Session
=============================
Owns the objects, the grid and the current G, and keeps the field
consistent with them.

Every mutation (grid rebuild, object addition, tick, G replacement) ends
with a full field recompute, so the field is never stale when read.
Mutations are single-writer: a reentrant call while one is in progress
raises ContractViolationError.

Tick order:
    1. advance simulation time
    2. move every object by velocity * dt and stamp it with the new time
    3. apply mutual Newtonian attraction to velocities (from the moved
       positions, all objects at once)
    4. recompute the field
"""

import logging
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from .config import SimulationConfig, _positive, create_default_config
from .contracts import GravityProvider, InvalidConfigurationError, RecomputeGuard
from .field import FieldSolver
from .grid import GridIndex, SpacetimeGrid
from .gravity import GravityConstant, GravityUpdater
from .integrators import GeodesicIntegrator, GeodesicTrajectory, newtonian_acceleration
from .spacetime import MassiveObject, MetricTensor, SpacetimePoint

logger = logging.getLogger("SpacetimeSim")


class SpacetimeSimulation:
    """
    Numerical core behind the spacetime visualization.

    Example:
        >>> sim = SpacetimeSimulation()
        >>> sim.add_object(MassiveObject("Earth", 5.972e24, SpacetimePoint(0, 0, 0, 0)))
        >>> path = sim.integrate_geodesic(SpacetimePoint(1000, 0, 0, 0), (0, 0, 0), 10.0, 10)
    """

    def __init__(self, config: Optional[SimulationConfig] = None):
        if config is None:
            config = create_default_config()
        config.validate()
        self.config = config

        self.gravity = GravityConstant(config.physics.gravitational_constant)
        self.grid = SpacetimeGrid()
        self._objects: List[MassiveObject] = []
        self._guard = RecomputeGuard()
        self._gravity_updater: Optional[GravityUpdater] = None

        self.simulation_time = 0.0
        self.time_scale = config.time_scale
        self.tick_count = 0

        self.initialize_grid(config.grid.resolution, config.grid.size)

    # ------------------------------------------------------------------
    # Solvers bound to the current G
    # ------------------------------------------------------------------

    def _field_solver(self) -> FieldSolver:
        physics = self.config.physics
        return FieldSolver(self.gravity.value, physics.speed_of_light, physics.singularity_clamp)

    def _integrator(self) -> GeodesicIntegrator:
        integ = self.config.integrator
        return GeodesicIntegrator(self.gravity.value, integ.method, integ.rtol, integ.atol)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def initialize_grid(self, resolution: int, size: float):
        """Build (or rebuild) the lattice, then recompute for the current objects"""
        with self._guard("initialize_grid"):
            self.grid.initialize(resolution, size)
            self._recompute()

    def add_object(self, obj: MassiveObject):
        """Add an object and recompute the field"""
        if not isinstance(obj, MassiveObject):
            raise InvalidConfigurationError(f"Expected a MassiveObject, got {type(obj).__name__}")
        obj.check_mass()
        with self._guard("add_object"):
            self._objects.append(obj)
            self._recompute()
        logger.info(f"Added object '{obj.name}' (mass={obj.mass:.4e} kg) at "
                    f"({obj.position.x:.4g}, {obj.position.y:.4g}, {obj.position.z:.4g})")

    def recompute_field(self):
        """Recompute every grid point's metric from the current objects"""
        with self._guard("recompute_field"):
            self._recompute()

    def _recompute(self):
        self._field_solver().recompute(self.grid, self._objects)

    def integrate_geodesic(self,
                           start: SpacetimePoint,
                           initial_velocity: Sequence[float],
                           proper_time_span: float,
                           step_count: int,
                           method: Optional[str] = None) -> List[SpacetimePoint]:
        """Integrate a test-particle path through the current objects"""
        return self._integrator().integrate(
            start, initial_velocity, proper_time_span, step_count, self._objects, method=method
        )

    def geodesic_trajectory(self,
                            start: SpacetimePoint,
                            initial_velocity: Sequence[float],
                            proper_time_span: float,
                            step_count: int,
                            method: Optional[str] = None) -> GeodesicTrajectory:
        """Same as integrate_geodesic(), keeping velocities"""
        return self._integrator().trajectory(
            start, initial_velocity, proper_time_span, step_count, self._objects, method=method
        )

    def integrate_test_particle(self) -> List[SpacetimePoint]:
        """
        Launch the default test particle from the origin at the current time.

        Uses IntegratorConfig's velocity, span and step count.
        """
        if not self._objects:
            raise InvalidConfigurationError("Add at least one object first")
        integ = self.config.integrator
        start = SpacetimePoint(0.0, 0.0, 0.0, self.simulation_time)
        return self.integrate_geodesic(start, integ.particle_velocity,
                                       integ.proper_time_span, integ.step_count)

    def set_gravitational_constant(self, value: float):
        """Replace G and recompute. Past paths and tensors are unaffected."""
        with self._guard("set_gravitational_constant"):
            previous = self.gravity.replace(value)
            self._recompute()
        logger.info(f"G set: {previous:.10e} -> {self.gravity.value:.10e}")

    def _updater(self, provider: GravityProvider) -> GravityUpdater:
        # One updater per provider, so a computation still running from an
        # earlier refresh is waited on instead of started again
        if self._gravity_updater is None or self._gravity_updater.provider is not provider:
            self._gravity_updater = GravityUpdater(self.gravity, provider,
                                                   self.config.gravity.timeout)
        return self._gravity_updater

    def refresh_gravity(self, provider: GravityProvider) -> float:
        """Ask an external provider for G; recompute if it changed"""
        previous = self.gravity.value
        value = self._updater(provider).refresh()
        if value != previous:
            self.recompute_field()
        return value

    async def refresh_gravity_async(self, provider: GravityProvider) -> float:
        """Async refresh_gravity(); the tick loop keeps running meanwhile"""
        previous = self.gravity.value
        value = await self._updater(provider).refresh_async()
        if value != previous:
            self.recompute_field()
        return value

    def set_time_scale(self, value: float):
        if not _positive(value):
            raise InvalidConfigurationError(f"Time scale must be positive and finite, got {value!r}")
        self.time_scale = float(value)

    # ------------------------------------------------------------------
    # Simulation ticks
    # ------------------------------------------------------------------

    def step(self, delta_time: Optional[float] = None) -> float:
        """
        Advance one tick; returns the new simulation time.

        delta_time defaults to tick_interval * time_scale.
        """
        if delta_time is None:
            delta_time = self.config.tick_interval * self.time_scale
        if not _positive(delta_time):
            raise InvalidConfigurationError(
                f"Tick delta must be positive and finite, got {delta_time!r}"
            )
        for obj in self._objects:
            obj.check_mass()

        with self._guard("step"):
            self.simulation_time += delta_time
            self._update_kinematics(delta_time)
            self._recompute()
            self.tick_count += 1

        return self.simulation_time

    def step_once(self) -> float:
        """Single manual step of config.manual_step seconds"""
        return self.step(self.config.manual_step)

    def run(self, n_ticks: int, delta_time: Optional[float] = None) -> float:
        for _ in range(n_ticks):
            self.step(delta_time)
        return self.simulation_time

    def _update_kinematics(self, dt: float):
        objects = self._objects
        if not objects:
            return

        for obj in objects:
            x, y, z = obj.position.spatial() + obj.velocity * dt
            obj.position = SpacetimePoint(float(x), float(y), float(z), self.simulation_time)

        positions = np.array([obj.position.spatial() for obj in objects])
        masses = np.array([obj.mass for obj in objects])
        G = self.gravity.value

        # Each object feels every other; itself sits at r == 0 and is skipped
        accelerations = [
            newtonian_acceleration(positions[i], positions, masses, G)
            for i in range(len(objects))
        ]
        for obj, accel in zip(objects, accelerations):
            obj.velocity = obj.velocity + accel * dt

    def reset(self):
        """Clear objects and time; rebuild the configured grid. G is kept."""
        with self._guard("reset"):
            self._objects = []
            self.simulation_time = 0.0
            self.tick_count = 0
            self.grid.initialize(self.config.grid.resolution, self.config.grid.size)
            self._recompute()
        logger.info("Simulation reset")

    # ------------------------------------------------------------------
    # Read accessors
    # ------------------------------------------------------------------

    @property
    def objects(self) -> Tuple[MassiveObject, ...]:
        return tuple(self._objects)

    @property
    def grid_points(self) -> Tuple[SpacetimePoint, ...]:
        return self.grid.points

    @property
    def field(self) -> Dict[GridIndex, MetricTensor]:
        return self.grid.field()

    @property
    def gravitational_constant(self) -> float:
        return self.gravity.value

    def summary(self) -> Dict[str, object]:
        """JSON-serialisable snapshot of the session"""
        grid_summary = self.grid.summary()
        return {
            "simulation_time": self.simulation_time,
            "tick_count": self.tick_count,
            "n_objects": len(self._objects),
            "objects": [
                {
                    "name": obj.name,
                    "mass": obj.mass,
                    "position": [obj.position.x, obj.position.y, obj.position.z],
                    "velocity": obj.velocity.tolist(),
                }
                for obj in self._objects
            ],
            "gravitational_constant": self.gravity.value,
            "grid": grid_summary,
        }
