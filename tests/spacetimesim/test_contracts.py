"""
Unit tests for spacetimesim/contracts.py

Tests the error hierarchy and the single-writer guard.
"""

import pytest
from spacetimesim.contracts import (
    SpacetimeSimError, InvalidConfigurationError, ExternalComputationError,
    IntegrationError, ContractViolationError, RecomputeGuard
)


class TestErrorHierarchy:
    """Tests for the error taxonomy"""

    @pytest.mark.parametrize("error", [
        InvalidConfigurationError, ExternalComputationError,
        IntegrationError, ContractViolationError
    ])
    def test_subclasses_base(self, error):
        """All errors derive from SpacetimeSimError"""
        assert issubclass(error, SpacetimeSimError)

    def test_configuration_error_is_value_error(self):
        """Callers catching ValueError also see configuration errors"""
        assert issubclass(InvalidConfigurationError, ValueError)


class TestRecomputeGuard:
    """Tests for RecomputeGuard"""

    def test_lock_unlock(self):
        """Lock then unlock"""
        guard = RecomputeGuard()
        assert not guard.locked
        guard.lock("step")
        assert guard.locked
        guard.unlock()
        assert not guard.locked

    def test_double_lock_raises(self):
        """Reentry is a contract violation naming both operations"""
        guard = RecomputeGuard()
        guard.lock("step")
        with pytest.raises(ContractViolationError, match="add_object.*step"):
            guard.lock("add_object")

    def test_context_manager(self):
        """Guarded section locks for its duration"""
        guard = RecomputeGuard()
        with guard("recompute_field") as g:
            assert g is guard
            assert guard.locked
        assert not guard.locked

    def test_context_manager_releases_on_error(self):
        """Exceptions inside the section still unlock and propagate"""
        guard = RecomputeGuard()
        with pytest.raises(RuntimeError):
            with guard("step"):
                raise RuntimeError("boom")
        assert not guard.locked

    def test_nested_sections_rejected(self):
        """A section inside a section is rejected"""
        guard = RecomputeGuard()
        with guard("step"):
            with pytest.raises(ContractViolationError):
                with guard("step"):
                    pass
            assert guard.locked
