"""
Orthogonal polynomial contrast coefficients.

Generates the classical orthogonal polynomial contrasts (linear, quadratic,
cubic) for equally or unequally spaced measurement points. The
construction is the one R's poly() uses: QR-decompose the Vandermonde
matrix of the centered points and keep Q. Columns of Q are orthonormal,
and every column after the first is orthogonal to the constant column,
so it sums to zero.

Signs are fixed by the diagonal of R so that each polynomial has a
positive leading coefficient: the linear contrast increases with the
spacing values, the quadratic contrast opens upward, and so on.
"""

from typing import Any

import numpy as np
from numpy.typing import ArrayLike, NDArray

from pystudydesign.core.compute.linalg.qr import qr_cpu
from pystudydesign.core.compute.tolerances import MAX_POLYNOMIAL_DEGREE
from pystudydesign.core.exceptions import ValidationError
from pystudydesign.core.validation import check_array, check_finite, check_ndim


def polynomial_degree(n_points: int, max_degree: int = MAX_POLYNOMIAL_DEGREE) -> int:
    """Highest degree generated for n_points: min(3, n_points - 1, max_degree)."""
    return max(0, min(max_degree, MAX_POLYNOMIAL_DEGREE, n_points - 1))


def orthogonal_polynomial_coefficients(
    spacing: ArrayLike,
    max_degree: int = MAX_POLYNOMIAL_DEGREE,
) -> NDArray[np.floating[Any]]:
    """
    Orthogonal polynomial coefficients evaluated at the given points.

    Args:
        spacing: 1D sequence of distinct measurement positions, in the
            order the levels appear in the design
        max_degree: Highest degree requested. Capped at min(3, n - 1).

    Returns:
        (n, degree + 1) float64 matrix. Column 0 is the normalized constant
        (1/sqrt(n)); column d is the degree-d contrast. All columns have
        unit length and are mutually orthogonal.

    Raises:
        ValidationError: If spacing is empty, non-finite, contains repeated
            values, or max_degree is negative
    """
    x = check_array(spacing, "spacing")
    check_ndim(x, 1, "spacing")
    check_finite(x, "spacing")

    n = x.shape[0]
    if n == 0:
        raise ValidationError("spacing: requires at least 1 value, got 0")
    if len(np.unique(x)) != n:
        raise ValidationError(
            f"spacing: values must be distinct, got {x.tolist()}"
        )
    if max_degree < 0:
        raise ValidationError(f"max_degree: must be non-negative, got {max_degree}")

    degree = polynomial_degree(n, max_degree)

    centered = x - np.mean(x)
    vandermonde = np.vander(centered, degree + 1, increasing=True)
    qr = qr_cpu(vandermonde, mode='reduced')
    if qr.rank < degree + 1:
        raise ValidationError(
            f"spacing: cannot build degree-{degree} polynomials from {x.tolist()} "
            f"(numerical rank {qr.rank})"
        )

    signs = np.sign(np.diag(qr.R))
    signs[signs == 0] = 1.0
    return (qr.Q * signs).astype(np.float64, copy=False)
