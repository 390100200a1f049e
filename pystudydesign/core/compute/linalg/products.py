"""
Matrix products and constant-fill constructors.

These are the only primitives the contrast builder, covariance assembler
and compiler use to combine matrices. They know nothing about study
designs.

Two products matter and must not be confused:
    - kron: the ordinary Kronecker product. Rows AND columns multiply.
    - direct_product: the row-wise (horizontal) direct product. Both
      operands must have the same number of rows r; row i of the result
      is outer(A[i], B[i]) flattened, so the result is r x (cA * cB).
      Rows stay fixed and only columns expand.
"""

from typing import Any, Iterable

import numpy as np
from numpy.typing import NDArray

from pystudydesign.core.exceptions import DimensionError, ValidationError
from pystudydesign.core.validation import check_2d


def kron(
    A: NDArray[np.floating[Any]],
    B: NDArray[np.floating[Any]],
) -> NDArray[np.floating[Any]]:
    """
    Kronecker product.

    Args:
        A: (rA, cA) matrix
        B: (rB, cB) matrix

    Returns:
        (rA * rB, cA * cB) float64 matrix
    """
    check_2d(A, "A")
    check_2d(B, "B")
    return np.kron(A, B).astype(np.float64, copy=False)


def kron_all(
    matrices: Iterable[NDArray[np.floating[Any]]],
) -> NDArray[np.floating[Any]]:
    """
    Kronecker product of an ordered sequence, folded left to right.

    Args:
        matrices: Matrices in composition order (outermost first)

    Returns:
        M1 ⊗ M2 ⊗ ... ⊗ Mk

    Raises:
        ValidationError: If the sequence is empty
    """
    result = None
    for M in matrices:
        result = M.astype(np.float64) if result is None else kron(result, M)
    if result is None:
        raise ValidationError("kron_all requires at least one matrix")
    return result


def direct_product(
    A: NDArray[np.floating[Any]],
    B: NDArray[np.floating[Any]],
) -> NDArray[np.floating[Any]]:
    """
    Row-wise (horizontal) direct product.

    Row i of the result is the Kronecker product of row i of A and row i
    of B. Column ordering within a row matches kron, i.e. column
    j * cB + k holds A[i, j] * B[i, k].

    Args:
        A: (r, cA) matrix
        B: (r, cB) matrix

    Returns:
        (r, cA * cB) float64 matrix

    Raises:
        DimensionError: If A and B do not have the same number of rows
    """
    check_2d(A, "A")
    check_2d(B, "B")
    if A.shape[0] != B.shape[0]:
        raise DimensionError(
            f"direct_product: row counts differ (A has {A.shape[0]}, "
            f"B has {B.shape[0]})"
        )
    r = A.shape[0]
    product = A[:, :, np.newaxis] * B[:, np.newaxis, :]
    return product.reshape(r, A.shape[1] * B.shape[1]).astype(np.float64, copy=False)


def horizontal_append(*matrices: NDArray[np.floating[Any]]) -> NDArray[np.floating[Any]]:
    """
    Concatenate matrices left to right.

    Raises:
        DimensionError: If the matrices do not share a row count
    """
    rows = {M.shape[0] for M in matrices}
    if len(rows) != 1:
        raise DimensionError(
            f"horizontal_append: inconsistent row counts {[M.shape[0] for M in matrices]}"
        )
    return np.hstack(matrices).astype(np.float64, copy=False)


def filled(rows: int, cols: int, value: float) -> NDArray[np.floating[Any]]:
    """(rows, cols) matrix with every entry equal to value."""
    return np.full((rows, cols), float(value), dtype=np.float64)


def ones_row(n: int, average: bool = False) -> NDArray[np.floating[Any]]:
    """
    1 x n row of ones, or of 1/n when averaging.
    """
    return filled(1, n, 1.0 / n if average else 1.0)


def ones_column(n: int, average: bool = False) -> NDArray[np.floating[Any]]:
    """
    n x 1 column of ones, or of 1/n when averaging.
    """
    return filled(n, 1, 1.0 / n if average else 1.0)


def identity(n: int) -> NDArray[np.floating[Any]]:
    """n x n identity."""
    return np.eye(n, dtype=np.float64)
