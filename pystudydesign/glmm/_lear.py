"""
Distance-decay (Lear) correlation.

Correlation between measurements i and j decays with the distance between
their positions:

    exponent = min_gap + decay * (|s_i - s_j| - min_gap) / (max_gap - min_gap)
    rho(i, j) = base ** exponent

where min_gap is the smallest gap between consecutive positions and
max_gap = |s_last - s_first|. With exactly two positions max_gap equals
min_gap and the denominator is forced to 1.

Reference:
    Simpson SL, Edwards LJ, Muller KE, Sen PK, Styner MA (2010).
    A linear exponent AR(1) family of correlation structures.
    Statistics in Medicine 29:1825-1838.
"""

from typing import Any

import numpy as np
from numpy.typing import ArrayLike, NDArray

from pystudydesign.core.exceptions import ValidationError
from pystudydesign.core.validation import check_array, check_finite, check_ndim


class LearCorrelation:
    """Gap statistics of a spacing sequence, reused for every (i, j) pair."""

    def __init__(self, spacing: ArrayLike):
        values = check_array(spacing, "spacing")
        check_ndim(values, 1, "spacing")
        check_finite(values, "spacing")
        if len(values) < 2:
            raise ValidationError(
                f"spacing: distance-decay correlation needs at least 2 positions, "
                f"got {len(values)}"
            )

        self.spacing = values
        self.max_gap = float(abs(values[-1] - values[0]))
        self.min_gap = float(min(self.max_gap, np.min(np.abs(np.diff(values)))))
        gap_range = self.max_gap - self.min_gap
        self.gap_range = gap_range if gap_range != 0 else 1.0

    def rho(self, i: int, j: int, base_correlation: float, rate_of_decay: float) -> float:
        n = len(self.spacing)
        if not (0 <= i < n and 0 <= j < n):
            raise ValidationError(
                f"measurement indices ({i}, {j}) out of range for {n} positions"
            )
        if base_correlation < -1 or base_correlation > 1:
            raise ValidationError(
                f"base_correlation: must be between -1 and 1, got {base_correlation}"
            )
        if rate_of_decay < 0:
            raise ValidationError(
                f"rate_of_decay: must be non-negative, got {rate_of_decay}"
            )

        distance = abs(self.spacing[i] - self.spacing[j])
        exponent = self.min_gap + rate_of_decay * (distance - self.min_gap) / self.gap_range
        # Negative base with a fractional exponent is undefined (NaN)
        with np.errstate(invalid='ignore'):
            return float(np.power(np.float64(base_correlation), exponent))

    def matrix(self, base_correlation: float, rate_of_decay: float) -> NDArray[np.floating[Any]]:
        """Full correlation matrix with a unit diagonal."""
        n = len(self.spacing)
        R = np.eye(n, dtype=np.float64)
        for i in range(n):
            for j in range(i + 1, n):
                R[i, j] = R[j, i] = self.rho(i, j, base_correlation, rate_of_decay)
        return R


def distance_decay_correlation(
    spacing: ArrayLike,
    i: int,
    j: int,
    base_correlation: float,
    rate_of_decay: float,
) -> float:
    """
    Lear correlation between measurements i and j.

    Args:
        spacing: Positions of the measurements, ascending, length >= 2
        i, j: Measurement indices
        base_correlation: Correlation at the smallest gap, in [-1, 1]
        rate_of_decay: Non-negative decay rate

    Returns:
        base_correlation ** exponent
    """
    return LearCorrelation(spacing).rho(i, j, base_correlation, rate_of_decay)
