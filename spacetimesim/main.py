"""
Spacetime Simulator Runner
===========================
Command-line entry point for running scenarios headless.

Provides:
- Benchmark scenarios (empty, earth, binary, solar)
- Tick-driven simulation with field recomputation
- Test-particle trajectory integration
- JSON output of the final state
"""

import argparse
import json
import logging
import sys
from typing import Any, Dict, Optional

from tqdm import tqdm

from .config import (
    FIXED_STEP_METHODS, SOLVE_IVP_METHODS, SimulationConfig, create_default_config
)
from .contracts import SpacetimeSimError
from .gravity import ConstantDensitySource, EntanglementGravityProvider
from .simulation import SpacetimeSimulation
from .spacetime import MassiveObject, SpacetimePoint

logger = logging.getLogger("SpacetimeSim.CLI")

EARTH_MASS = 5.972e24
SUN_MASS = 1.989e30


def setup_logging(level: str = "INFO"):
    """Configure root logging for CLI runs"""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    )


def create_benchmark_config(scenario: str = "earth") -> SimulationConfig:
    """
    Create configuration for benchmark scenarios.

    Args:
        scenario: One of "empty", "earth", "binary", "solar"

    Returns:
        SimulationConfig for the scenario
    """
    config = create_default_config()
    config.scenario_name = scenario

    if scenario == "solar":
        # Distances are in metres; a coarse lattice spanning a few AU
        config.grid.resolution = 12
        config.grid.size = 6.0e11
        config.tick_interval = 3600.0
        config.integrator.proper_time_span = 3.15e7
        config.integrator.step_count = 2000

    elif scenario == "binary":
        config.grid.resolution = 10
        config.grid.size = 40.0

    return config


def populate_scenario(sim: SpacetimeSimulation, scenario: str):
    """Add the scenario's objects to a fresh simulation"""
    if scenario == "earth":
        sim.add_object(MassiveObject("Earth", EARTH_MASS, SpacetimePoint(5.0, 0.0, 0.0, 0.0)))

    elif scenario == "binary":
        sim.add_object(MassiveObject("A", 1.0e12, SpacetimePoint(-5.0, 0.0, 0.0, 0.0),
                                     (0.0, 0.5, 0.0)))
        sim.add_object(MassiveObject("B", 1.0e12, SpacetimePoint(5.0, 0.0, 0.0, 0.0),
                                     (0.0, -0.5, 0.0)))

    elif scenario == "solar":
        au = 1.496e11
        sim.add_object(MassiveObject("Sun", SUN_MASS, SpacetimePoint(0.0, 0.0, 0.0, 0.0)))
        sim.add_object(MassiveObject("Earth", EARTH_MASS, SpacetimePoint(au, 0.0, 0.0, 0.0),
                                     (0.0, 29780.0, 0.0)))
        sim.add_object(MassiveObject("Mars", 6.417e23, SpacetimePoint(1.524 * au, 0.0, 0.0, 0.0),
                                     (0.0, 24070.0, 0.0)))


def run_simulation(config: Optional[SimulationConfig] = None,
                   n_ticks: int = 100,
                   delta_time: Optional[float] = None,
                   rho_ent: Optional[float] = None,
                   progress: bool = True) -> Dict[str, Any]:
    """
    Run a scenario for n_ticks and return the final summary.

    Args:
        config: Simulation configuration (scenario_name selects the objects)
        n_ticks: Number of ticks to run
        delta_time: Seconds per tick; defaults to tick_interval * time_scale
        rho_ent: Optional entanglement density used to perturb G first
        progress: Show a progress bar

    Returns:
        Session summary dictionary
    """
    if config is None:
        config = create_benchmark_config()

    sim = SpacetimeSimulation(config)
    populate_scenario(sim, config.scenario_name)

    if rho_ent is not None:
        provider = EntanglementGravityProvider(
            ConstantDensitySource(rho_ent),
            config.gravity.reference_constant,
            config.gravity.coupling_constant,
        )
        sim.refresh_gravity(provider)

    for _ in tqdm(range(n_ticks), desc="Ticks", disable=not progress):
        sim.step(delta_time)

    return sim.summary()


def run_geodesic(config: Optional[SimulationConfig] = None,
                 start=(1000.0, 0.0, 0.0),
                 velocity=(0.0, 0.0, 0.0)) -> Dict[str, Any]:
    """Integrate one trajectory through the scenario's objects"""
    if config is None:
        config = create_benchmark_config()

    sim = SpacetimeSimulation(config)
    populate_scenario(sim, config.scenario_name)

    integ = config.integrator
    trajectory = sim.geodesic_trajectory(
        SpacetimePoint.from_spatial(start), velocity,
        integ.proper_time_span, integ.step_count,
    )
    return {
        "scenario": config.scenario_name,
        "method": trajectory.method,
        "dt": trajectory.dt,
        "n_points": len(trajectory),
        "final_point": trajectory.final_point.as_array().tolist(),
        "final_velocity": trajectory.final_velocity.tolist(),
        "path": [p.as_array().tolist() for p in trajectory.points],
    }


def print_config_summary(config: SimulationConfig):
    """Print a summary of the configuration"""
    print("\n" + "="*60)
    print("Spacetime Simulation Configuration Summary")
    print("="*60)
    print(f"Scenario: {config.scenario_name}")
    print(f"Grid: {config.grid.resolution}^3 points, size {config.grid.size}")
    print(f"G: {config.physics.gravitational_constant:.6e}")
    print(f"c: {config.physics.speed_of_light:.0f}")
    print()
    print("Integrator:")
    print(f"  - Method: {config.integrator.method}")
    print(f"  - Proper time span: {config.integrator.proper_time_span}")
    print(f"  - Steps: {config.integrator.step_count}")
    print()
    print(f"Tick interval: {config.tick_interval} (time scale {config.time_scale})")
    print("="*60 + "\n")


def main(argv=None):
    """CLI entry point"""
    parser = argparse.ArgumentParser(
        description="Approximate spacetime curvature and test-particle paths",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run 100 ticks of the Earth scenario
  python -m spacetimesim.main --mode simulate --scenario earth --ticks 100

  # Two equal masses, larger grid, JSON output
  python -m spacetimesim.main --scenario binary --resolution 16 --output binary.json

  # Trajectory with RK4 instead of Euler
  python -m spacetimesim.main --mode geodesic --method rk4 --steps 500 --span 10

  # Perturb G with an entanglement density before running
  python -m spacetimesim.main --rho-ent 0.5
        """
    )

    parser.add_argument(
        "--mode",
        choices=["simulate", "geodesic"],
        default="simulate",
        help="Running mode"
    )
    parser.add_argument(
        "--scenario",
        choices=["empty", "earth", "binary", "solar"],
        default="earth",
        help="Benchmark scenario"
    )

    parser.add_argument("--resolution", type=int, help="Grid points per axis")
    parser.add_argument("--size", type=float, help="Grid edge length")
    parser.add_argument("--ticks", type=int, default=100, help="Simulation ticks")
    parser.add_argument("--dt", type=float, help="Seconds per tick")
    parser.add_argument("--time-scale", type=float, help="Tick interval multiplier")

    parser.add_argument("--steps", type=int, help="Integration steps")
    parser.add_argument("--span", type=float, help="Proper time span")
    parser.add_argument("--method", choices=list(FIXED_STEP_METHODS + SOLVE_IVP_METHODS),
                        help="Integration method")
    parser.add_argument("--start", type=float, nargs=3, default=[1000.0, 0.0, 0.0],
                        metavar=("X", "Y", "Z"), help="Trajectory start position")
    parser.add_argument("--velocity", type=float, nargs=3, default=[0.0, 0.0, 0.0],
                        metavar=("VX", "VY", "VZ"), help="Trajectory initial velocity")

    parser.add_argument("--rho-ent", type=float, help="Entanglement density in [0, 1]")
    parser.add_argument("--output", type=str, help="Output path for JSON results")
    parser.add_argument("--log-level", type=str, default="INFO")
    parser.add_argument("--no-progress", action="store_true")

    args = parser.parse_args(argv)

    # Create config
    config = create_benchmark_config(args.scenario)
    config.log_level = args.log_level

    # Apply overrides
    if args.resolution is not None:
        config.grid.resolution = args.resolution
    if args.size is not None:
        config.grid.size = args.size
    if args.time_scale is not None:
        config.time_scale = args.time_scale
    if args.steps is not None:
        config.integrator.step_count = args.steps
    if args.span is not None:
        config.integrator.proper_time_span = args.span
    if args.method:
        config.integrator.method = args.method

    setup_logging(config.log_level)
    print_config_summary(config)

    try:
        if args.mode == "simulate":
            results = run_simulation(config, n_ticks=args.ticks, delta_time=args.dt,
                                     rho_ent=args.rho_ent, progress=not args.no_progress)
            print("\nSimulation complete!")
            print(f"Simulation time: {results['simulation_time']:.4g} s")
            print(f"Objects: {results['n_objects']}")
            print(f"G: {results['gravitational_constant']:.10e}")
            grid = results["grid"]
            if grid["n_points"]:
                print(f"g00 range: [{grid['g00_min']:.12g}, {grid['g00_max']:.12g}]")

        else:
            results = run_geodesic(config, start=args.start, velocity=args.velocity)
            print(f"\nIntegrated {results['n_points'] - 1} steps ({results['method']})")
            print(f"Final point: {results['final_point']}")
            print(f"Final velocity: {results['final_velocity']}")

    except SpacetimeSimError as e:
        logger.error(f"{e}")
        return 2

    if args.output:
        with open(args.output, 'w') as f:
            json.dump(results, f, indent=2)
        print(f"Saved results to {args.output}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
