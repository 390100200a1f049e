"""
Tests for distance-decay (Lear) correlation.

Validates:
    - Reference values for spacing [0, 2, 5], base 0.6, decay 1
    - Gap statistics (min gap, max gap, forced range of 1)
    - Symmetry and unit diagonal of the full matrix
    - Argument validation
"""

import numpy as np
import pytest

from pystudydesign.core.exceptions import ValidationError
from pystudydesign.glmm._lear import LearCorrelation, distance_decay_correlation


# ═══════════════════════════════════════════════════════════════════════
# Reference values
# ═══════════════════════════════════════════════════════════════════════


class TestReferenceValues:

    def test_adjacent_pair(self):
        """Smallest gap -> exponent min_gap = 2 -> 0.6^2."""
        assert distance_decay_correlation([0, 2, 5], 0, 1, 0.6, 1.0) == pytest.approx(0.36)

    def test_extreme_pair(self):
        """Largest gap -> exponent min_gap + decay = 3 -> 0.6^3."""
        assert distance_decay_correlation([0, 2, 5], 0, 2, 0.6, 1.0) == pytest.approx(0.216)

    def test_middle_pair(self):
        """Gap 3 -> exponent 2 + (3 - 2) / 3."""
        expected = 0.6 ** (2 + 1 / 3)
        assert distance_decay_correlation([0, 2, 5], 1, 2, 0.6, 1.0) == pytest.approx(expected)

    def test_zero_decay_is_constant(self):
        lear = LearCorrelation([0, 1, 3, 7])
        values = {lear.rho(i, j, 0.5, 0.0) for i in range(4) for j in range(4) if i != j}
        assert values == {0.5}


# ═══════════════════════════════════════════════════════════════════════
# Gap statistics
# ═══════════════════════════════════════════════════════════════════════


class TestGaps:

    def test_min_and_max_gap(self):
        lear = LearCorrelation([0, 2, 5])
        assert lear.min_gap == 2.0
        assert lear.max_gap == 5.0
        assert lear.gap_range == 3.0

    def test_two_points_force_range_to_one(self):
        lear = LearCorrelation([0, 4])
        assert lear.min_gap == lear.max_gap == 4.0
        assert lear.gap_range == 1.0
        assert lear.rho(0, 1, 0.5, 2.0) == pytest.approx(0.5 ** 4)


# ═══════════════════════════════════════════════════════════════════════
# Full matrix
# ═══════════════════════════════════════════════════════════════════════


class TestMatrix:

    def test_symmetric_unit_diagonal(self):
        R = LearCorrelation([0, 2, 5]).matrix(0.6, 1.0)
        np.testing.assert_allclose(R, R.T)
        np.testing.assert_allclose(np.diag(R), 1.0)
        assert R[0, 1] == pytest.approx(0.36)
        assert R[0, 2] == pytest.approx(0.216)


# ═══════════════════════════════════════════════════════════════════════
# Validation
# ═══════════════════════════════════════════════════════════════════════


class TestValidation:

    def test_single_position(self):
        with pytest.raises(ValidationError, match="at least 2"):
            LearCorrelation([0])

    def test_index_out_of_range(self):
        with pytest.raises(ValidationError, match="out of range"):
            distance_decay_correlation([0, 1, 2], 0, 3, 0.5, 1.0)

    def test_base_out_of_range(self):
        with pytest.raises(ValidationError, match="base_correlation"):
            distance_decay_correlation([0, 1, 2], 0, 1, 1.5, 1.0)

    def test_negative_decay(self):
        with pytest.raises(ValidationError, match="rate_of_decay"):
            distance_decay_correlation([0, 1, 2], 0, 1, 0.5, -0.1)
