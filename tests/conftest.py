"""
Pytest configuration and shared fixtures for Spacetime Simulator tests.
"""

import pytest
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))


G = 6.67430e-11
EARTH_MASS = 5.972e24


@pytest.fixture
def grid_resolution():
    """Default grid resolution for tests"""
    return 6


@pytest.fixture
def grid_size():
    """Default grid edge length for tests"""
    return 12.0


@pytest.fixture
def simulation_config():
    """Small simulation configuration"""
    from spacetimesim.config import create_small_test_config
    return create_small_test_config()


@pytest.fixture
def spacetime_grid(grid_resolution, grid_size):
    """Initialized lattice with a flat field"""
    from spacetimesim.grid import SpacetimeGrid
    grid = SpacetimeGrid()
    grid.initialize(grid_resolution, grid_size)
    return grid


@pytest.fixture
def field_solver():
    """Field solver with the default constants"""
    from spacetimesim.field import FieldSolver
    return FieldSolver(G)


@pytest.fixture
def integrator():
    """Euler integrator with the default G"""
    from spacetimesim.integrators import GeodesicIntegrator
    return GeodesicIntegrator(G)


@pytest.fixture
def earth():
    """Earth-mass object at the origin"""
    from spacetimesim.spacetime import MassiveObject, SpacetimePoint
    return MassiveObject("Earth", EARTH_MASS, SpacetimePoint(0.0, 0.0, 0.0, 0.0))


@pytest.fixture
def heavy_object():
    """Object whose Schwarzschild radius is comparable to the grid spacing"""
    from spacetimesim.spacetime import MassiveObject, SpacetimePoint
    # rs = 2GM/c^2 = 3.0 for M = 3 c^2 / (2G)
    mass = 3.0 * 299792458.0 ** 2 / (2 * G)
    return MassiveObject("Dense", mass, SpacetimePoint(0.0, 0.0, 0.0, 0.0))


@pytest.fixture
def simulation(simulation_config):
    """Fresh simulation session on the small test grid"""
    from spacetimesim.simulation import SpacetimeSimulation
    return SpacetimeSimulation(simulation_config)


@pytest.fixture
def failing_provider():
    """Gravity provider that always raises"""
    class FailingProvider:
        def __init__(self):
            self.calls = 0

        def compute_gravitational_constant(self) -> float:
            self.calls += 1
            raise RuntimeError("quantum simulator unavailable")

    return FailingProvider()


@pytest.fixture
def fixed_provider():
    """Gravity provider returning a fixed value"""
    class FixedProvider:
        def __init__(self, value: float = 1.0e-10):
            self.value = value

        def compute_gravitational_constant(self) -> float:
            return self.value

    return FixedProvider()
