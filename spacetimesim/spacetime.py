"""
Spacetime Primitives
=====================
Points, massive objects and the local metric tensor.

The metric is a diagonal weak-field proxy built from the Schwarzschild
solution in the equatorial plane:

    ds^2 = -(1 - rs/r)dt^2 + (1 - rs/r)^(-1)dr^2 + r^2(dtheta^2 + sin^2(theta)dphi^2)

with theta = pi/2 and rs = 2GM/c^2. Off-diagonal terms are always zero,
so frame dragging and the full tensor structure are not represented.
"""

from dataclasses import dataclass, field
from typing import Sequence, Tuple
import math

import numpy as np

from .config import GRAVITATIONAL_CONSTANT, SPEED_OF_LIGHT
from .contracts import InvalidConfigurationError


MINKOWSKI_DIAGONAL = (-1.0, 1.0, 1.0, 1.0)


def as_vector3(value: Sequence[float], name: str = "vector") -> np.ndarray:
    """Coerce a 3-sequence to a float numpy array, rejecting anything else."""
    try:
        vec = np.array(value, dtype=float)
    except (TypeError, ValueError) as e:
        raise InvalidConfigurationError(f"{name} must be a 3-vector of reals: {e}") from e
    if vec.shape != (3,):
        raise InvalidConfigurationError(f"{name} must be a 3-vector, got shape {vec.shape}")
    if not np.all(np.isfinite(vec)):
        raise InvalidConfigurationError(f"{name} must be finite, got {vec}")
    return vec


@dataclass(frozen=True)
class SpacetimePoint:
    """
    Point in 4D spacetime (x, y, z, t).

    Value type: two points with identical coordinates compare and hash
    equal, so points are safe to use as dictionary keys.
    """
    x: float
    y: float
    z: float
    t: float = 0.0

    def spatial(self) -> np.ndarray:
        """Spatial part as a numpy 3-vector"""
        return np.array([self.x, self.y, self.z], dtype=float)

    def as_array(self) -> np.ndarray:
        """All four coordinates as (x, y, z, t)"""
        return np.array([self.x, self.y, self.z, self.t], dtype=float)

    def distance_to(self, other: "SpacetimePoint") -> float:
        """Spatial Euclidean distance (time coordinate ignored)"""
        dx = self.x - other.x
        dy = self.y - other.y
        dz = self.z - other.z
        return math.sqrt(dx * dx + dy * dy + dz * dz)

    def shifted(self, dx: float = 0.0, dy: float = 0.0, dz: float = 0.0,
                dt: float = 0.0) -> "SpacetimePoint":
        return SpacetimePoint(self.x + dx, self.y + dy, self.z + dz, self.t + dt)

    @classmethod
    def from_spatial(cls, position: Sequence[float], t: float = 0.0) -> "SpacetimePoint":
        x, y, z = (float(c) for c in position)
        return cls(x, y, z, float(t))


@dataclass(eq=False)
class MassiveObject:
    """
    Massive point object that curves spacetime.

    Position and velocity change every simulation tick; the position is
    replaced by a new SpacetimePoint rather than mutated.
    """
    name: str
    mass: float  # kg
    position: SpacetimePoint
    velocity: np.ndarray = field(default_factory=lambda: np.zeros(3))

    def __post_init__(self):
        self.check_mass()
        if not isinstance(self.position, SpacetimePoint):
            raise InvalidConfigurationError(
                f"Position of '{self.name}' must be a SpacetimePoint"
            )
        self.mass = float(self.mass)
        self.velocity = as_vector3(self.velocity, f"velocity of '{self.name}'")

    def check_mass(self):
        """
        Raise InvalidConfigurationError unless mass is positive and finite.

        Fields stay assignable, so consumers re-check before using an
        object that may have been edited since construction.
        """
        try:
            mass_ok = math.isfinite(self.mass) and self.mass > 0
        except TypeError:
            mass_ok = False
        if not mass_ok:
            raise InvalidConfigurationError(
                f"Mass of '{self.name}' must be positive, got {self.mass!r}"
            )

    def schwarzschild_radius(self, gravitational_constant: float = GRAVITATIONAL_CONSTANT,
                             speed_of_light: float = SPEED_OF_LIGHT) -> float:
        return schwarzschild_radius(self.mass, gravitational_constant, speed_of_light)


def schwarzschild_radius(mass: float,
                         gravitational_constant: float = GRAVITATIONAL_CONSTANT,
                         speed_of_light: float = SPEED_OF_LIGHT) -> float:
    """rs = 2GM/c^2"""
    return 2.0 * gravitational_constant * mass / (speed_of_light * speed_of_light)


def effective_radius(r, rs: float, clamp_factor: float = 1.01):
    """
    Radius actually used by the metric.

    Any r <= rs is moved to clamp_factor * rs. Works on scalars and on
    numpy arrays of distances.
    """
    if np.ndim(r) == 0:
        r = float(r)
        return clamp_factor * rs if r <= rs else r
    r = np.asarray(r, dtype=float)
    return np.where(r <= rs, clamp_factor * rs, r)


def schwarzschild_diagonal(r, rs: float, clamp_factor: float = 1.01):
    """
    Diagonal (g00, g11, g22, g33) for distance(s) r from a mass of
    Schwarzschild radius rs.

    When rs == 0 and r == 0 the ratio rs/r is taken as 0, giving the flat
    limit instead of NaN.
    """
    r_eff = np.asarray(effective_radius(r, rs, clamp_factor), dtype=float)
    safe_r = np.where(r_eff > 0, r_eff, 1.0)
    ratio = np.where(r_eff > 0, rs / safe_r, 0.0)
    f = 1.0 - ratio

    g00 = -f
    g11 = 1.0 / f
    r2 = r_eff * r_eff
    # sin^2(pi/2) == 1 in the equatorial plane
    g33 = r2 * math.sin(math.pi / 2) ** 2
    return g00, g11, r2, g33


class MetricTensor:
    """
    Metric tensor g_μν at a point in spacetime.

    Immutable: the underlying 4x4 array is read-only and `components`
    hands out copies.
    """

    __slots__ = ("_components",)

    def __init__(self, components: np.ndarray = None):
        if components is None:
            components = np.diag(MINKOWSKI_DIAGONAL)
        arr = np.array(components, dtype=float)
        if arr.shape != (4, 4):
            raise InvalidConfigurationError(f"Metric tensor must be 4x4, got {arr.shape}")
        arr.setflags(write=False)
        self._components = arr

    @classmethod
    def minkowski(cls) -> "MetricTensor":
        """Flat spacetime, diag(-1, 1, 1, 1)"""
        return cls()

    @classmethod
    def from_diagonal(cls, diagonal: Sequence[float]) -> "MetricTensor":
        return cls(np.diag(np.asarray(diagonal, dtype=float)))

    @classmethod
    def _wrap(cls, view: np.ndarray) -> "MetricTensor":
        # Shares a read-only view of grid storage without copying
        tensor = cls.__new__(cls)
        tensor._components = view
        return tensor

    @classmethod
    def schwarzschild(cls, r: float, mass: float,
                      gravitational_constant: float = GRAVITATIONAL_CONSTANT,
                      speed_of_light: float = SPEED_OF_LIGHT,
                      clamp_factor: float = 1.01) -> "MetricTensor":
        """
        Schwarzschild metric for a point at distance r from a mass M.

        Pure function of (r, M, G, c). r <= rs is clamped to
        clamp_factor * rs without raising. M > 0 is the caller's
        responsibility.
        """
        rs = schwarzschild_radius(mass, gravitational_constant, speed_of_light)
        g00, g11, g22, g33 = schwarzschild_diagonal(r, rs, clamp_factor)
        return cls.from_diagonal([float(g00), float(g11), float(g22), float(g33)])

    def __getitem__(self, index: Tuple[int, int]) -> float:
        mu, nu = index
        return float(self._components[mu, nu])

    @property
    def components(self) -> np.ndarray:
        """Copy of the 4x4 components"""
        return self._components.copy()

    def diagonal(self) -> np.ndarray:
        return np.diag(self._components).copy()

    def is_minkowski(self) -> bool:
        return np.array_equal(self._components, np.diag(MINKOWSKI_DIAGONAL))

    def __eq__(self, other):
        if not isinstance(other, MetricTensor):
            return NotImplemented
        return np.array_equal(self._components, other._components)

    def __hash__(self):
        return hash(self._components.tobytes())

    def __repr__(self):
        diag = ", ".join(f"{v:.6g}" for v in np.diag(self._components))
        return f"MetricTensor(diag=[{diag}])"
