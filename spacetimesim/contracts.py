"""
Spacetime Simulator Contracts
==============================
Error taxonomy and interface contracts between the core and its
collaborators.

Key Principle: the field is DERIVED state.
- It is recomputed from (grid, objects, G, c) after every mutation
- Only one writer may mutate objects or the field at a time
- External gravity computations may fail; the core never does because of them
"""

from typing import Protocol
from dataclasses import dataclass


# =============================================================================
# ERRORS
# =============================================================================

class SpacetimeSimError(Exception):
    """Base class for all simulator errors."""
    pass


class InvalidConfigurationError(SpacetimeSimError, ValueError):
    """
    Raised for non-positive grid resolution/size, non-positive mass,
    invalid integration spans or step counts, malformed vectors and
    negative gravitational constants.

    Never silently coerced. The only documented correction is the radius
    clamp near a Schwarzschild horizon, which is not an error.
    """
    pass


class ExternalComputationError(SpacetimeSimError):
    """
    Raised when the effective-G provider fails or returns garbage.
    Recovered locally by keeping the previous G.
    """
    pass


class IntegrationError(SpacetimeSimError):
    """Raised when an adaptive solve_ivp integration does not converge."""
    pass


class ContractViolationError(SpacetimeSimError):
    """Raised when an architectural contract is violated."""
    pass


# =============================================================================
# PROTOCOL DEFINITIONS
# =============================================================================

class GravityProvider(Protocol):
    """
    Protocol for external subsystems that supply a replacement value of G.

    Implementations may block, raise or return nonsense. Callers must go
    through GravityUpdater, which guards the core against all three.
    """
    def compute_gravitational_constant(self) -> float:
        """Return a non-negative replacement for G (m^3 kg^-1 s^-2)."""
        ...


# =============================================================================
# SINGLE-WRITER GUARD
# =============================================================================

@dataclass
class RecomputeGuard:
    """
    Enforces single-writer discipline over the object list and the field.

    A tick (kinematics update then field recompute) must finish before
    the next one begins. Entering while locked is a contract violation,
    not something to wait on.
    """
    _locked: bool = False
    _operation: str = ""

    def lock(self, operation: str) -> None:
        """Lock during a mutation pass."""
        if self._locked:
            raise ContractViolationError(
                f"Cannot start '{operation}' while '{self._operation}' is in progress"
            )
        self._locked = True
        self._operation = operation

    def unlock(self) -> None:
        """Unlock after a mutation pass."""
        self._locked = False
        self._operation = ""

    @property
    def locked(self) -> bool:
        return self._locked

    def __call__(self, operation: str) -> "_GuardedSection":
        return _GuardedSection(self, operation)


class _GuardedSection:
    """Context manager pairing lock() with unlock()."""

    def __init__(self, guard: RecomputeGuard, operation: str):
        self.guard = guard
        self.operation = operation

    def __enter__(self):
        self.guard.lock(self.operation)
        return self.guard

    def __exit__(self, exc_type, exc, tb):
        self.guard.unlock()
        return False
