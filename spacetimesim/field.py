"""
Field Solver
=============
Recomputes the metric tensor at every lattice point from the current
set of massive objects.

Superposition rule
------------------
Each object's single-body Schwarzschild tensor is evaluated at that
object's own distance from the grid point, and the point keeps the
tensor of the LAST object in iteration order. This is not a physical
superposition of curvature; it is the approximation the rendered field
has always shown, and downstream consumers rely on it.
"""

import logging
from typing import Sequence

import numpy as np

from .config import GRAVITATIONAL_CONSTANT, SPEED_OF_LIGHT
from .contracts import InvalidConfigurationError
from .grid import SpacetimeGrid
from .spacetime import MassiveObject, schwarzschild_diagonal, schwarzschild_radius

logger = logging.getLogger("SpacetimeSim.Field")


class FieldSolver:
    """
    Per-point metric recomputation.

    G and c are fixed per solver instance; a new G means a new solver
    (see with_gravitational_constant), so a recompute pass never sees a
    constant change halfway through.
    """

    def __init__(self, gravitational_constant: float = GRAVITATIONAL_CONSTANT,
                 speed_of_light: float = SPEED_OF_LIGHT,
                 clamp_factor: float = 1.01):
        if not gravitational_constant >= 0:
            raise InvalidConfigurationError(
                f"Gravitational constant must be non-negative, got {gravitational_constant!r}"
            )
        self.G = float(gravitational_constant)
        self.c = float(speed_of_light)
        self.clamp_factor = float(clamp_factor)

        # Statistics
        self.n_recomputes = 0

    def with_gravitational_constant(self, gravitational_constant: float) -> "FieldSolver":
        return FieldSolver(gravitational_constant, self.c, self.clamp_factor)

    def compute(self, grid: SpacetimeGrid, objects: Sequence[MassiveObject]) -> np.ndarray:
        """
        Compute a fresh (n, n, n, 4, 4) metric array without touching the grid.

        Cost is O(grid points x objects).
        """
        if not grid.is_initialized:
            raise InvalidConfigurationError("Grid must be initialized before recomputing the field")

        n = grid.resolution
        metric = np.zeros((n, n, n, 4, 4))
        metric[..., 0, 0] = -1.0
        metric[..., 1, 1] = 1.0
        metric[..., 2, 2] = 1.0
        metric[..., 3, 3] = 1.0

        coords = grid.coordinates
        for obj in objects:
            obj.check_mass()
            delta = coords - obj.position.spatial()
            r = np.sqrt(np.sum(delta * delta, axis=-1))
            rs = schwarzschild_radius(obj.mass, self.G, self.c)

            g00, g11, g22, g33 = schwarzschild_diagonal(r, rs, self.clamp_factor)

            # Overwrite: the last object processed wins
            metric[..., 0, 0] = g00
            metric[..., 1, 1] = g11
            metric[..., 2, 2] = g22
            metric[..., 3, 3] = g33

        return metric

    def recompute(self, grid: SpacetimeGrid, objects: Sequence[MassiveObject]) -> SpacetimeGrid:
        """
        Recompute and install the field on the grid.

        Must run after grid initialization, every object addition and
        every tick that moves an object. An empty object list leaves the
        field flat.
        """
        metric = self.compute(grid, objects)
        grid.assign_metric(metric)
        self.n_recomputes += 1

        logger.debug(
            f"Field recomputed: {len(grid)} points x {len(objects)} objects (G={self.G:.6e})"
        )
        return grid
