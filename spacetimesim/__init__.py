"""
Spacetime Simulator
====================
Numerical core for visualizing approximate spacetime curvature around
massive point objects, and the paths of test particles through it.

Approximations:
- Metric: diagonal Schwarzschild weak-field proxy per grid point; with
  several objects the last one processed determines the tensor
- Trajectories: Newtonian N-body acceleration, fixed-step Euler by default
- G may be replaced at runtime by an external effective-G computation

Modules:
--------
- config: Configuration dataclasses, constants and defaults
- contracts: Error taxonomy, provider protocol, single-writer guard
- spacetime: SpacetimePoint, MassiveObject, MetricTensor
- grid: Regular lattice with per-point metric storage
- field: Field solver (metric recomputation from the object list)
- integrators: Test-particle trajectory integration
- gravity: Effective gravitational constant and its updater
- simulation: Session tying objects, grid, field and G together
- main: CLI and scenario runner

Example Usage:
--------------
>>> from spacetimesim import SpacetimeSimulation, MassiveObject, SpacetimePoint
>>> sim = SpacetimeSimulation()
>>> sim.add_object(MassiveObject("Earth", 5.972e24, SpacetimePoint(0, 0, 0, 0)))
>>> path = sim.integrate_geodesic(SpacetimePoint(1000, 0, 0, 0), (0, 0, 0), 10.0, 10)
>>> sim.step()
"""

__version__ = "1.0.0"

# Configuration
from .config import (
    SimulationConfig,
    GridConfig,
    PhysicsConfig,
    IntegratorConfig,
    GravityProviderConfig,
    create_default_config,
    create_small_test_config,
    GRAVITATIONAL_CONSTANT,
    SPEED_OF_LIGHT,
    ENTANGLEMENT_COUPLING,
)

# Contracts
from .contracts import (
    SpacetimeSimError,
    InvalidConfigurationError,
    ExternalComputationError,
    IntegrationError,
    ContractViolationError,
    GravityProvider,
    RecomputeGuard,
)

# Primitives
from .spacetime import (
    SpacetimePoint,
    MassiveObject,
    MetricTensor,
    schwarzschild_radius,
    effective_radius,
)

# Subsystems
from .grid import (
    SpacetimeGrid,
)

from .field import (
    FieldSolver,
)

from .integrators import (
    GeodesicIntegrator,
    GeodesicTrajectory,
    newtonian_acceleration,
)

from .gravity import (
    GravityConstant,
    GravityUpdater,
    EntanglementGravityProvider,
    ConstantDensitySource,
    effective_gravitational_constant,
)

# Session
from .simulation import (
    SpacetimeSimulation,
)

__all__ = [
    # Version
    "__version__",

    # Configuration
    "SimulationConfig",
    "GridConfig",
    "PhysicsConfig",
    "IntegratorConfig",
    "GravityProviderConfig",
    "create_default_config",
    "create_small_test_config",
    "GRAVITATIONAL_CONSTANT",
    "SPEED_OF_LIGHT",
    "ENTANGLEMENT_COUPLING",

    # Contracts
    "SpacetimeSimError",
    "InvalidConfigurationError",
    "ExternalComputationError",
    "IntegrationError",
    "ContractViolationError",
    "GravityProvider",
    "RecomputeGuard",

    # Primitives
    "SpacetimePoint",
    "MassiveObject",
    "MetricTensor",
    "schwarzschild_radius",
    "effective_radius",

    # Grid / field
    "SpacetimeGrid",
    "FieldSolver",

    # Integration
    "GeodesicIntegrator",
    "GeodesicTrajectory",
    "newtonian_acceleration",

    # Gravity
    "GravityConstant",
    "GravityUpdater",
    "EntanglementGravityProvider",
    "ConstantDensitySource",
    "effective_gravitational_constant",

    # Session
    "SpacetimeSimulation",
]
