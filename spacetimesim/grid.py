"""
Spacetime Grid
===============
Regular 3D lattice of spacetime points, each carrying one metric tensor.

Lookups are keyed by integer lattice indices (i, j, k), never by
floating-point coordinates. Metric storage is a single
(n, n, n, 4, 4) array that is replaced wholesale on every update, so
tensors handed out earlier keep their values.
"""

import logging
import math
from typing import Dict, Iterator, Tuple

import numpy as np

from .contracts import InvalidConfigurationError
from .spacetime import MetricTensor, SpacetimePoint, MINKOWSKI_DIAGONAL

logger = logging.getLogger("SpacetimeSim.Grid")

GridIndex = Tuple[int, int, int]


class SpacetimeGrid:
    """
    Evenly spaced lattice of resolution^3 points centred on the origin.

    Topology is fixed by initialize(); only metric values change
    afterwards.
    """

    def __init__(self):
        self.resolution = 0
        self.size = 0.0
        self.step = 0.0
        self._coordinates = np.zeros((0, 0, 0, 3))
        self._metric = np.zeros((0, 0, 0, 4, 4))
        self._points: Tuple[SpacetimePoint, ...] = ()

    def initialize(self, resolution: int, size: float):
        """
        Build the lattice, replacing any previous one.

        Coordinates along each axis are (i - resolution // 2) * step with
        step = size / resolution, t = 0. Every tensor starts flat.
        """
        if isinstance(resolution, bool) or not isinstance(resolution, (int, np.integer)) \
                or resolution <= 0:
            raise InvalidConfigurationError(
                f"Grid resolution must be a positive integer, got {resolution!r}"
            )
        try:
            size_ok = math.isfinite(size) and size > 0
        except TypeError:
            size_ok = False
        if not size_ok:
            raise InvalidConfigurationError(f"Grid size must be positive, got {size!r}")

        n = int(resolution)
        step = float(size) / n
        axis = (np.arange(n) - n // 2) * step

        X, Y, Z = np.meshgrid(axis, axis, axis, indexing='ij')
        coordinates = np.stack([X, Y, Z], axis=-1)
        coordinates.setflags(write=False)

        self.resolution = n
        self.size = float(size)
        self.step = step
        self._coordinates = coordinates
        self._points = tuple(
            SpacetimePoint(float(x), float(y), float(z), 0.0)
            for x, y, z in coordinates.reshape(-1, 3)
        )
        self.reset_metric()

        logger.info(f"Grid initialized: {n}^3 = {len(self._points)} points, step={step:.4g}")

    def reset_metric(self):
        """Set every tensor back to Minkowski"""
        n = self.resolution
        flat = np.zeros((n, n, n, 4, 4))
        flat[..., np.arange(4), np.arange(4)] = MINKOWSKI_DIAGONAL
        self.assign_metric(flat)

    def assign_metric(self, metric: np.ndarray):
        """
        Install a freshly computed (n, n, n, 4, 4) metric array.

        The array is frozen and swapped in as a whole; callers must not
        keep a writable reference.
        """
        n = self.resolution
        if metric.shape != (n, n, n, 4, 4):
            raise InvalidConfigurationError(
                f"Metric shape {metric.shape} does not match grid ({n}, {n}, {n}, 4, 4)"
            )
        metric.setflags(write=False)
        self._metric = metric

    # ------------------------------------------------------------------
    # Read accessors
    # ------------------------------------------------------------------

    @property
    def is_initialized(self) -> bool:
        return self.resolution > 0

    @property
    def points(self) -> Tuple[SpacetimePoint, ...]:
        """All lattice points in i-j-k order"""
        return self._points

    @property
    def coordinates(self) -> np.ndarray:
        """Read-only (n, n, n, 3) array of spatial coordinates"""
        return self._coordinates

    @property
    def metric(self) -> np.ndarray:
        """Read-only (n, n, n, 4, 4) array of metric components"""
        return self._metric

    def __len__(self) -> int:
        return len(self._points)

    def indices(self) -> Iterator[GridIndex]:
        n = self.resolution
        for i in range(n):
            for j in range(n):
                for k in range(n):
                    yield (i, j, k)

    def _linear(self, index: GridIndex) -> int:
        i, j, k = index
        n = self.resolution
        if not (0 <= i < n and 0 <= j < n and 0 <= k < n):
            raise IndexError(f"Grid index {index} out of range for resolution {n}")
        return (i * n + j) * n + k

    def point_at(self, index: GridIndex) -> SpacetimePoint:
        return self._points[self._linear(index)]

    def metric_at(self, index: GridIndex) -> MetricTensor:
        self._linear(index)
        i, j, k = index
        return MetricTensor._wrap(self._metric[i, j, k])

    def field(self) -> Dict[GridIndex, MetricTensor]:
        """Snapshot of the field: (i, j, k) -> MetricTensor"""
        metric = self._metric
        return {
            (i, j, k): MetricTensor._wrap(metric[i, j, k])
            for (i, j, k) in self.indices()
        }

    def g00(self) -> np.ndarray:
        """Time-time component over the whole lattice"""
        return self._metric[..., 0, 0]

    def nearest_index(self, point: SpacetimePoint) -> GridIndex:
        """Lattice index closest to a spatial position"""
        if not self.is_initialized:
            raise InvalidConfigurationError("Grid has not been initialized")
        n = self.resolution
        offsets = np.rint(point.spatial() / self.step).astype(int) + n // 2
        i, j, k = (int(np.clip(o, 0, n - 1)) for o in offsets)
        return (i, j, k)

    def summary(self) -> Dict[str, float]:
        if not self.is_initialized:
            return {"resolution": 0, "size": 0.0, "n_points": 0}
        g00 = self.g00()
        return {
            "resolution": self.resolution,
            "size": self.size,
            "n_points": len(self),
            "g00_min": float(g00.min()),
            "g00_max": float(g00.max()),
        }

