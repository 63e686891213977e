"""
Spacetime Simulator Configuration
==================================
Configuration dataclasses for the lattice, the physical constants,
the trajectory integrator and the effective-gravity provider.
"""

from dataclasses import dataclass, field
from typing import Tuple
import math

from .contracts import InvalidConfigurationError


# Physical constants (SI)
GRAVITATIONAL_CONSTANT = 6.67430e-11  # m^3 kg^-1 s^-2
SPEED_OF_LIGHT = 299792458.0  # m/s
ENTANGLEMENT_COUPLING = 1.0e-38  # κ

# Supported fixed-step integrators; anything else is handed to solve_ivp
FIXED_STEP_METHODS = ("euler", "rk4")
SOLVE_IVP_METHODS = ("RK23", "RK45", "DOP853", "Radau", "BDF", "LSODA")


@dataclass
class GridConfig:
    """Spacetime lattice configuration"""
    resolution: int = 10  # Points per axis (resolution^3 total)
    size: float = 20.0  # Edge length of the cube, centred at the origin


@dataclass
class PhysicsConfig:
    """Physical constants used by the field solver and integrator"""
    gravitational_constant: float = GRAVITATIONAL_CONSTANT  # G
    speed_of_light: float = SPEED_OF_LIGHT  # c (fixed)

    # r <= rs is replaced by clamp_factor * rs
    singularity_clamp: float = 1.01


@dataclass
class IntegratorConfig:
    """Test-particle trajectory integration defaults"""
    method: str = "euler"

    # Test particle launched by integrate_test_particle()
    proper_time_span: float = 100.0
    step_count: int = 1000
    particle_velocity: Tuple[float, float, float] = (0.1, 0.0, 0.0)

    # Tolerances for solve_ivp methods
    rtol: float = 1e-10
    atol: float = 1e-12


@dataclass
class GravityProviderConfig:
    """External effective-G computation"""
    reference_constant: float = GRAVITATIONAL_CONSTANT  # G0
    coupling_constant: float = ENTANGLEMENT_COUPLING  # κ
    timeout: float = 5.0  # Seconds before the previous G is kept


@dataclass
class SimulationConfig:
    """Master configuration combining all subsystems"""
    grid: GridConfig = field(default_factory=GridConfig)
    physics: PhysicsConfig = field(default_factory=PhysicsConfig)
    integrator: IntegratorConfig = field(default_factory=IntegratorConfig)
    gravity: GravityProviderConfig = field(default_factory=GravityProviderConfig)

    # Time stepping
    tick_interval: float = 0.016  # Timer tick (~60 FPS)
    manual_step: float = 0.1  # Single-step button
    time_scale: float = 1.0

    # Logging
    log_level: str = "INFO"

    scenario_name: str = "default"

    def validate(self):
        """Validate configuration consistency"""
        checks = [
            (isinstance(self.grid.resolution, int) and not isinstance(self.grid.resolution, bool)
             and self.grid.resolution > 0, "Grid resolution must be a positive integer"),
            (_positive(self.grid.size), "Grid size must be positive"),
            (_finite(self.physics.gravitational_constant)
             and self.physics.gravitational_constant >= 0,
             "Gravitational constant must be non-negative"),
            (_positive(self.physics.speed_of_light), "Speed of light must be positive"),
            (_finite(self.physics.singularity_clamp) and self.physics.singularity_clamp > 1.0,
             "Singularity clamp must be greater than 1"),
            (self.integrator.method in FIXED_STEP_METHODS + SOLVE_IVP_METHODS,
             f"Unknown integrator method: {self.integrator.method}"),
            (_positive(self.integrator.proper_time_span), "Proper time span must be positive"),
            (isinstance(self.integrator.step_count, int) and self.integrator.step_count >= 0,
             "Step count must be a non-negative integer"),
            (len(self.integrator.particle_velocity) == 3, "Test particle velocity must be a 3-vector"),
            (_positive(self.gravity.timeout), "Provider timeout must be positive"),
            (self.gravity.coupling_constant >= 0, "Coupling constant must be non-negative"),
            (_positive(self.tick_interval), "Tick interval must be positive"),
            (_positive(self.manual_step), "Manual step must be positive"),
            (_positive(self.time_scale), "Time scale must be positive"),
        ]
        for ok, message in checks:
            if not ok:
                raise InvalidConfigurationError(message)

        return True


def _finite(value) -> bool:
    try:
        return math.isfinite(value)
    except TypeError:
        return False


def _positive(value) -> bool:
    return _finite(value) and value > 0


def create_default_config() -> SimulationConfig:
    """Create default configuration"""
    return SimulationConfig()


def create_small_test_config() -> SimulationConfig:
    """Create small configuration for testing"""
    config = SimulationConfig()
    config.grid.resolution = 4
    config.grid.size = 8.0
    config.integrator.step_count = 50
    config.integrator.proper_time_span = 5.0
    return config
