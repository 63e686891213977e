"""
Effective Gravitational Constant
=================================
Holds the value of G used by the core and applies replacements supplied
by an external computation.

An external subsystem derives an entanglement density ρ_ent in [0, 1]
and perturbs G as

    G_eff = G0 / (1 + 8π G0 κ ρ_ent)

How ρ_ent is produced is not this package's concern. What is: the
external call may be slow, may raise, or may return nonsense, and in
every such case the previous G stays in force.
"""

import asyncio
import logging
import math
import threading
from concurrent.futures import Future, TimeoutError as FutureTimeoutError
from typing import Callable, Optional

from .config import ENTANGLEMENT_COUPLING, GRAVITATIONAL_CONSTANT
from .contracts import ExternalComputationError, GravityProvider, InvalidConfigurationError

logger = logging.getLogger("SpacetimeSim.Gravity")


def effective_gravitational_constant(rho_ent: float,
                                     g0: float = GRAVITATIONAL_CONSTANT,
                                     kappa: float = ENTANGLEMENT_COUPLING) -> float:
    """G_eff = G0 / (1 + 8π G0 κ ρ_ent), with ρ_ent in [0, 1]"""
    try:
        in_range = 0.0 <= rho_ent <= 1.0
    except TypeError:
        in_range = False
    if not in_range:
        raise InvalidConfigurationError(
            f"Entanglement density must be in [0, 1], got {rho_ent!r}"
        )
    constant = 8.0 * math.pi * g0 * kappa * rho_ent
    return g0 / (1.0 + constant)


def _checked_constant(value) -> float:
    try:
        value = float(value)
    except (TypeError, ValueError) as e:
        raise InvalidConfigurationError(f"Gravitational constant must be a real number: {e}") from e
    if not math.isfinite(value) or value < 0:
        raise InvalidConfigurationError(
            f"Gravitational constant must be a non-negative finite real, got {value!r}"
        )
    return value


class GravityConstant:
    """
    Thread-safe holder for the current G.

    Replacements happen in one step under a lock, so a reader sees
    either the old value or the new one, never anything in between.
    """

    def __init__(self, value: float = GRAVITATIONAL_CONSTANT):
        self._value = _checked_constant(value)
        self._lock = threading.Lock()
        self.n_replacements = 0

    @property
    def value(self) -> float:
        with self._lock:
            return self._value

    def replace(self, value: float) -> float:
        """Swap in a new G and return the previous one"""
        new_value = _checked_constant(value)
        with self._lock:
            previous = self._value
            self._value = new_value
            self.n_replacements += 1
        return previous

    def __float__(self) -> float:
        return self.value

    def __repr__(self):
        return f"GravityConstant({self.value:.6e})"


class EntanglementGravityProvider:
    """
    GravityProvider backed by an external entanglement-density source.

    `density_source` is any callable returning ρ_ent in [0, 1].
    """

    def __init__(self, density_source: Callable[[], float],
                 reference_constant: float = GRAVITATIONAL_CONSTANT,
                 coupling_constant: float = ENTANGLEMENT_COUPLING):
        self.density_source = density_source
        self.reference_constant = reference_constant
        self.coupling_constant = coupling_constant

    def compute_gravitational_constant(self) -> float:
        rho_ent = self.density_source()
        return effective_gravitational_constant(
            rho_ent, self.reference_constant, self.coupling_constant
        )


class ConstantDensitySource:
    """Density source returning a fixed ρ_ent (CLI and tests)"""

    def __init__(self, rho_ent: float):
        self.rho_ent = rho_ent

    def __call__(self) -> float:
        return self.rho_ent


class GravityUpdater:
    """
    Applies a GravityProvider's result to a GravityConstant.

    Failures, timeouts and invalid values are logged and the previous G
    retained; nothing raised by the provider escapes.

    The provider runs on a daemon worker thread. At most one computation
    is in flight per updater: a refresh issued while the previous one is
    still running waits on that same computation instead of starting
    another, and a provider that never returns cannot hold up interpreter
    exit.

    Example:
        >>> with GravityUpdater(constant, provider, timeout=2.0) as updater:
        ...     updater.refresh()
    """

    def __init__(self, constant: GravityConstant, provider: GravityProvider,
                 timeout: float = 5.0):
        self.constant = constant
        self.provider = provider
        self.timeout = timeout

        self._lock = threading.Lock()
        self._in_flight: Optional[Future] = None
        self.worker: Optional[threading.Thread] = None
        self.closed = False

        # Statistics
        self.n_success = 0
        self.n_failures = 0
        self.n_started = 0
        self.last_error: Optional[str] = None

    def __enter__(self) -> "GravityUpdater":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def close(self):
        """Stop accepting refreshes. A running computation is abandoned."""
        with self._lock:
            self.closed = True
            self._in_flight = None

    @property
    def in_flight(self) -> bool:
        with self._lock:
            return self._in_flight is not None and not self._in_flight.done()

    def _run(self, future: Future):
        try:
            value = self.provider.compute_gravitational_constant()
        except BaseException as e:
            future.set_exception(e)
        else:
            future.set_result(value)

    def _submit(self) -> Future:
        with self._lock:
            if self.closed:
                raise ExternalComputationError("Updater is closed")
            if self._in_flight is not None and not self._in_flight.done():
                logger.debug("Provider still running; waiting on the pending computation")
                return self._in_flight

            future = Future()
            # Running before it is published, so no waiter can cancel it
            future.set_running_or_notify_cancel()
            worker = threading.Thread(target=self._run, args=(future,),
                                      name="gravity-provider", daemon=True)
            self._in_flight = future
            self.worker = worker
            self.n_started += 1
        worker.start()
        return future

    def _apply(self, value) -> float:
        try:
            new_value = _checked_constant(value)
        except InvalidConfigurationError as e:
            return self._retain(ExternalComputationError(f"Provider returned invalid G: {e}"))

        previous = self.constant.replace(new_value)
        self.n_success += 1
        self.last_error = None
        logger.info(f"Gravitational constant replaced: {previous:.10e} -> {new_value:.10e}")
        return new_value

    def _retain(self, error: Exception) -> float:
        self.n_failures += 1
        self.last_error = str(error)
        current = self.constant.value
        logger.warning(f"Effective G computation failed ({error}); keeping G={current:.10e}")
        return current

    def refresh(self) -> float:
        """
        Run the provider on the worker thread and wait up to `timeout`.

        Returns the G in force afterwards.
        """
        try:
            future = self._submit()
            value = future.result(timeout=self.timeout)
        except FutureTimeoutError:
            return self._retain(ExternalComputationError(
                f"Provider timed out after {self.timeout}s"
            ))
        except ExternalComputationError as e:
            return self._retain(e)
        except Exception as e:
            return self._retain(ExternalComputationError(f"Provider raised: {e!r}"))

        return self._apply(value)

    async def refresh_async(self) -> float:
        """
        Non-blocking variant for an asyncio-driven simulation loop.

        Waits on the same worker thread as refresh(); nothing is handed to
        the loop's default executor, so shutting the loop down never waits
        on a slow provider.
        """
        try:
            future = self._submit()
            value = await asyncio.wait_for(asyncio.wrap_future(future), timeout=self.timeout)
        except asyncio.TimeoutError:
            return self._retain(ExternalComputationError(
                f"Provider timed out after {self.timeout}s"
            ))
        except ExternalComputationError as e:
            return self._retain(e)
        except Exception as e:
            return self._retain(ExternalComputationError(f"Provider raised: {e!r}"))

        return self._apply(value)
