"""
Tests for the Result[P] envelope.

Validates:
    - Generic type parameter works with arbitrary payload types
    - Frozen immutability
    - Default warnings factory
    - has_warning() method
"""

from dataclasses import FrozenInstanceError, dataclass

import pytest

from pystudydesign.core.result import Result


# ═══════════════════════════════════════════════════════════════════════
# Test payload types
# ═══════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class FakeParams:
    """Minimal payload for testing."""
    value: float


# ═══════════════════════════════════════════════════════════════════════
# Construction and field access
# ═══════════════════════════════════════════════════════════════════════


class TestResultConstruction:
    """Result can be created with any payload type."""

    def test_basic_creation(self):
        result = Result(
            params=FakeParams(value=42.0),
            info={"view_mode": "guided"},
            timing={"total_seconds": 0.01},
            backend_name="cpu_guided",
        )
        assert result.params.value == 42.0
        assert result.info["view_mode"] == "guided"
        assert result.timing["total_seconds"] == 0.01
        assert result.backend_name == "cpu_guided"

    def test_timing_none(self):
        result = Result(params=FakeParams(value=1.0), info={}, timing=None, backend_name="cpu")
        assert result.timing is None

    def test_timing_with_breakdown(self):
        result = Result(
            params=FakeParams(value=1.0),
            info={},
            timing={"total_seconds": 1.0, "contrasts": 0.6, "covariance": 0.4},
            backend_name="cpu_guided",
        )
        assert result.timing["contrasts"] == 0.6
        assert result.timing["covariance"] == 0.4


# ═══════════════════════════════════════════════════════════════════════
# Warnings
# ═══════════════════════════════════════════════════════════════════════


class TestWarnings:

    def test_warnings_default_empty(self):
        result = Result(params=FakeParams(value=1.0), info={}, timing=None, backend_name="cpu")
        assert result.warnings == ()
        assert isinstance(result.warnings, tuple)

    def test_has_warning_substring(self):
        result = Result(
            params=FakeParams(value=1.0),
            info={},
            timing=None,
            backend_name="cpu",
            warnings=("Interaction contrasts are not constructed across factors",),
        )
        assert result.has_warning("Interaction")
        assert not result.has_warning("covariance")


# ═══════════════════════════════════════════════════════════════════════
# Immutability
# ═══════════════════════════════════════════════════════════════════════


class TestImmutability:
    """Result is frozen; no attribute mutation allowed."""

    def test_cannot_set_params(self):
        result = Result(params=FakeParams(value=1.0), info={}, timing=None, backend_name="cpu")
        with pytest.raises(FrozenInstanceError):
            result.params = FakeParams(value=2.0)

    def test_cannot_set_warnings(self):
        result = Result(params=FakeParams(value=1.0), info={}, timing=None, backend_name="cpu")
        with pytest.raises(FrozenInstanceError):
            result.warnings = ("new warning",)
