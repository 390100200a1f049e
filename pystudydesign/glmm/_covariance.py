"""
Covariance assembly for guided designs.

Turns covariance descriptors into concrete covariance blocks and combines
the blocks into the error covariance of one independent sampling unit:

    Sigma = CS(cluster_1) ⊗ ... ⊗ CS(cluster_c)
            ⊗ Sigma(dimension_1) ⊗ ... ⊗ Sigma(dimension_m)
            ⊗ Sigma(responses)

The order matches the column order of the compiled beta matrix and the
row order of the within-participant contrast.
"""

from typing import Any, Mapping, Sequence

import numpy as np
from numpy.typing import ArrayLike, NDArray
from scipy import linalg

from pystudydesign.core.compute.linalg.products import kron_all
from pystudydesign.core.compute.tolerances import PSD_TOLERANCE
from pystudydesign.core.exceptions import (
    InvalidStudyDesignError,
    NotPositiveSemidefiniteError,
    ShapeMismatchError,
)
from pystudydesign.core.validation import (
    check_2d,
    check_array,
    check_correlation,
    check_finite,
    check_square,
)
from pystudydesign.glmm._common import CovarianceKind
from pystudydesign.glmm._lear import LearCorrelation
from pystudydesign.glmm.design import CovarianceDescriptor


def compound_symmetric(n: int, rho: float) -> NDArray[np.floating[Any]]:
    """
    n x n matrix with ones on the diagonal and rho elsewhere.

    rho is not range-checked here.
    """
    M = np.full((n, n), float(rho), dtype=np.float64)
    np.fill_diagonal(M, 1.0)
    return M


def structured_covariance(
    standard_deviations: ArrayLike,
    correlation: ArrayLike | None = None,
) -> NDArray[np.floating[Any]]:
    """
    Covariance from per-level standard deviations.

    The diagonal is sd_i^2. With a correlation matrix the off-diagonal is
    r_ij * sqrt(sd_i^2 * sd_j^2); without one it is sd_i^2 * sd_j^2.

    Args:
        standard_deviations: One standard deviation per level
        correlation: Optional n x n correlation matrix

    Returns:
        n x n covariance matrix
    """
    sd = check_array(standard_deviations, "standard_deviations").ravel()
    variances = sd * sd
    if correlation is None:
        M = np.outer(variances, variances)
    else:
        R = check_array(correlation, "correlation")
        check_2d(R, "correlation")
        if R.shape != (len(sd), len(sd)):
            raise ShapeMismatchError(
                f"correlation: expected shape {(len(sd), len(sd))} to match "
                f"{len(sd)} standard deviations, got {R.shape}",
                matrix_name="correlation",
                expected=(len(sd), len(sd)),
                actual=R.shape,
            )
        M = R * np.sqrt(np.outer(variances, variances))
    np.fill_diagonal(M, variances)
    return M


def covariance_from_descriptor(
    descriptor: CovarianceDescriptor,
    dimension_size: int,
    spacing: Sequence[float] | None = None,
    name: str = "covariance",
) -> NDArray[np.floating[Any]]:
    """
    Concrete covariance block for one dimension.

    Args:
        descriptor: Covariance information for the dimension
        dimension_size: Level count of the dimension owning the descriptor
        spacing: Level positions for distance-decay correlation.
            Defaults to 0, 1, ..., n - 1.
        name: Dimension label used in error messages

    Returns:
        dimension_size x dimension_size covariance matrix

    Raises:
        InvalidStudyDesignError: Non-square data or missing parameters
        ShapeMismatchError: Declared size differs from dimension_size
        NotPositiveSemidefiniteError: Result is not a valid covariance
    """
    blob = None
    if descriptor.blob is not None:
        blob = check_array(descriptor.blob, f"{name}.blob")
        check_2d(blob, f"{name}.blob")
        check_square(blob, f"{name}.blob")

    actual = descriptor.size
    if blob is not None and blob.shape[0] != dimension_size:
        actual = blob.shape[0]
    if actual is not None and actual != dimension_size:
        raise ShapeMismatchError(
            f"{name}: covariance declares size {actual}, but the dimension has "
            f"{dimension_size} levels",
            matrix_name=name,
            expected=dimension_size,
            actual=actual,
        )

    kind = descriptor.kind
    if kind == CovarianceKind.UNSTRUCTURED:
        if blob is None:
            raise InvalidStudyDesignError(
                f"{name}: unstructured covariance requires a covariance matrix"
            )
        matrix = blob.copy()

    elif kind == CovarianceKind.STRUCTURED:
        if len(descriptor.standard_deviations) != dimension_size:
            raise InvalidStudyDesignError(
                f"{name}: structured covariance requires {dimension_size} standard "
                f"deviations, got {len(descriptor.standard_deviations)}"
            )
        matrix = structured_covariance(descriptor.standard_deviations, blob)

    elif kind == CovarianceKind.DISTANCE_DECAY:
        sd = _first_standard_deviation(descriptor, name)
        if descriptor.rho is None or descriptor.delta is None:
            raise InvalidStudyDesignError(
                f"{name}: distance-decay covariance requires rho and delta"
            )
        if not descriptor.delta >= 0:
            raise InvalidStudyDesignError(
                f"{name}: delta must be non-negative, got {descriptor.delta}"
            )
        if dimension_size == 1:
            correlation = np.ones((1, 1), dtype=np.float64)
        else:
            positions = spacing if spacing is not None else range(dimension_size)
            lear = LearCorrelation(list(positions))
            correlation = lear.matrix(descriptor.rho, descriptor.delta)
        matrix = sd * sd * correlation

    elif kind == CovarianceKind.COMPOUND_SYMMETRIC:
        sd = _first_standard_deviation(descriptor, name)
        if descriptor.rho is None:
            raise InvalidStudyDesignError(
                f"{name}: compound symmetric covariance requires rho"
            )
        rho = check_correlation(descriptor.rho, f"{name}.rho")
        matrix = sd * sd * compound_symmetric(dimension_size, rho)

    else:
        raise InvalidStudyDesignError(f"{name}: unknown covariance kind {kind!r}")

    check_finite(matrix, name)
    check_positive_semidefinite(matrix, name)
    return matrix


def check_positive_semidefinite(matrix: NDArray[np.floating[Any]], name: str) -> None:
    """
    Verify a covariance block is symmetric with no negative eigenvalues.

    Eigenvalues may dip below zero by PSD_TOLERANCE relative to the largest
    eigenvalue magnitude.

    Raises:
        NotPositiveSemidefiniteError: If the check fails
    """
    if not np.allclose(matrix, matrix.T, rtol=1e-10, atol=1e-12):
        raise NotPositiveSemidefiniteError(
            f"The {name!r} covariance matrix does not describe a valid covariance "
            f"structure (it is not symmetric)",
            matrix_name=name,
        )
    eigenvalues = linalg.eigvalsh(matrix)
    scale = max(1.0, float(np.max(np.abs(eigenvalues))))
    min_eig = float(eigenvalues[0])
    if min_eig < -PSD_TOLERANCE * scale:
        raise NotPositiveSemidefiniteError(
            f"The {name!r} covariance matrix does not describe a valid covariance "
            f"structure (it is not positive semidefinite; minimum eigenvalue "
            f"{min_eig:.6g})",
            matrix_name=name,
            min_eigenvalue=min_eig,
        )


def assemble_error_covariance(
    cluster_blocks: Sequence[NDArray[np.floating[Any]] | None],
    repeated_measures_blocks: Mapping[str, NDArray[np.floating[Any]] | None],
    response_block: NDArray[np.floating[Any]] | None,
) -> NDArray[np.floating[Any]]:
    """
    Kronecker product of all covariance blocks in the fixed order
    clusters (outermost first), repeated measures (tree order), responses.

    Args:
        cluster_blocks: Compound-symmetric block per cluster level
        repeated_measures_blocks: {dimension: block} in tree order
        response_block: Covariance among the responses

    Raises:
        InvalidStudyDesignError: If any block is missing
    """
    blocks: list[NDArray[np.floating[Any]]] = []
    for level, block in enumerate(cluster_blocks):
        if block is None:
            raise InvalidStudyDesignError(
                f"missing covariance information for cluster level {level}"
            )
        blocks.append(block)
    for dimension, block in repeated_measures_blocks.items():
        if block is None:
            raise InvalidStudyDesignError(
                f"missing covariance information for factor {dimension!r}"
            )
        blocks.append(block)
    if response_block is None:
        raise InvalidStudyDesignError(
            "missing covariance information for the response variables"
        )
    blocks.append(response_block)
    return kron_all(blocks)


def _first_standard_deviation(descriptor: CovarianceDescriptor, name: str) -> float:
    if len(descriptor.standard_deviations) == 0:
        raise InvalidStudyDesignError(f"{name}: a standard deviation is required")
    return float(descriptor.standard_deviations[0])
