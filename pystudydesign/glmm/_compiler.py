"""
Per-matrix builders for compile_design().

Each builder takes a validated StudyDesign and returns one piece of the
matrix set. Matrix-mode designs pass supplied matrices through; guided
designs are translated using the contrast builder and the covariance
assembler. Cluster sampling multiplies the columns of B, the rows of U and
the dimension of Sigma by the total cluster size, always with cluster
members outermost.
"""

from typing import Any

import numpy as np
from numpy.typing import NDArray

from pystudydesign.core.compute.linalg.products import (
    direct_product,
    filled,
    identity,
)
from pystudydesign.core.exceptions import (
    InvalidStudyDesignError,
    ShapeMismatchError,
)
from pystudydesign.glmm import names
from pystudydesign.glmm._common import MatrixSetParams, ViewMode
from pystudydesign.glmm._contrasts import (
    between_contrast,
    expand_for_clusters,
    within_contrast,
)
from pystudydesign.glmm._covariance import (
    assemble_error_covariance,
    compound_symmetric,
    covariance_from_descriptor,
)
from pystudydesign.glmm.design import StudyDesign


Matrix = NDArray[np.floating[Any]]


def _supplied(study: StudyDesign, name: str) -> Matrix:
    matrix = study.matrix(name)
    if matrix is None:
        raise InvalidStudyDesignError(f"required matrix {name!r} was not supplied")
    return matrix


def expand_columns_for_clusters(matrix: Matrix, total_cluster_size: int) -> Matrix:
    """
    Repeat the column block of a matrix once per cluster member.

    Equal to kron(ones_row(t), matrix).
    """
    if total_cluster_size <= 1:
        return matrix
    tiles = filled(matrix.shape[0], total_cluster_size, 1.0)
    return direct_product(tiles, matrix)


# =====================================================================
# X, B, C, U, Theta
# =====================================================================


def design_matrix(study: StudyDesign) -> Matrix:
    """
    Essence design matrix X.

    Guided designs use cell-means coding: the identity over the between
    cells, or, with relative group sizes, one indicator row per relative
    unit of each cell.
    """
    if study.view_mode == ViewMode.MATRIX:
        return _supplied(study, names.DESIGN)

    cells = int(np.prod(study.between_levels)) if study.between_factors else 1
    if study.relative_group_sizes is None or cells == 1:
        return identity(cells)
    return np.repeat(identity(cells), study.relative_group_sizes, axis=0)


def beta_matrices(study: StudyDesign) -> tuple[Matrix, Matrix | None]:
    """Fixed and (with a Gaussian covariate) random beta."""
    beta = _supplied(study, names.BETA)
    beta_random = _supplied(study, names.BETA_RANDOM) if study.gaussian_covariate else None
    if study.view_mode == ViewMode.MATRIX:
        return beta, beta_random

    t = study.total_cluster_size
    beta = expand_columns_for_clusters(beta, t)
    if beta_random is not None:
        beta_random = expand_columns_for_clusters(beta_random, t)
    return beta, beta_random


def between_contrast_matrices(study: StudyDesign) -> tuple[Matrix, Matrix | None]:
    """Fixed C and (with a Gaussian covariate) random C."""
    if study.view_mode == ViewMode.MATRIX:
        contrast = _supplied(study, names.BETWEEN_SUBJECT_CONTRAST)
        random = (
            _supplied(study, names.BETWEEN_SUBJECT_CONTRAST_RANDOM)
            if study.gaussian_covariate else None
        )
        return contrast, random

    contrast = between_contrast(study.hypothesis, study.between_factors)
    random = filled(contrast.shape[0], 1, 0.0) if study.gaussian_covariate else None
    return contrast, random


def within_contrast_matrix(study: StudyDesign) -> Matrix:
    """Within-participant contrast U, expanded for clusters."""
    if study.view_mode == ViewMode.MATRIX:
        return _supplied(study, names.WITHIN_SUBJECT_CONTRAST)

    contrast = within_contrast(
        study.hypothesis, study.repeated_measures, len(study.responses)
    )
    return expand_for_clusters(contrast, study.total_cluster_size)


def theta_null_matrix(study: StudyDesign, between: Matrix, within: Matrix) -> Matrix:
    """Supplied thetaNull, else zeros(rows(C), columns(U))."""
    theta = study.matrix(names.THETA_NULL)
    if theta is not None:
        return theta
    return filled(between.shape[0], within.shape[1], 0.0)


# =====================================================================
# Sigma
# =====================================================================


def error_covariance(study: StudyDesign) -> Matrix:
    """
    Error covariance of a guided design.

    Kronecker product of the cluster compound-symmetric blocks, the
    covariance of each repeated-measures dimension and the covariance of
    the responses.
    """
    cluster_blocks = [
        compound_symmetric(c.group_size, c.intra_cluster_correlation)
        for c in study.clusters
    ]

    repeated_blocks: dict[str, Matrix | None] = {}
    for node in study.repeated_measures:
        descriptor = study.covariance(node.dimension)
        repeated_blocks[node.dimension] = (
            covariance_from_descriptor(
                descriptor, node.n_measurements, node.spacing, node.dimension
            )
            if descriptor is not None else None
        )

    response_descriptor = study.covariance(names.RESPONSES_COVARIANCE_LABEL)
    response_block = (
        covariance_from_descriptor(
            response_descriptor, len(study.responses), None, "Responses"
        )
        if response_descriptor is not None else None
    )

    return assemble_error_covariance(cluster_blocks, repeated_blocks, response_block)


def sigma_error_matrix(study: StudyDesign) -> Matrix:
    if study.view_mode == ViewMode.MATRIX:
        return _supplied(study, names.SIGMA_ERROR)
    return error_covariance(study)


def covariate_sigma_matrices(study: StudyDesign) -> tuple[Matrix, Matrix, Matrix]:
    """
    sigmaOutcome, sigmaGaussianRandom and sigmaOutcomeGaussianRandom.

    In guided mode the covariate is given as a 1 x 1 standard deviation
    (squared here) and its relation to the outcomes as a column of
    correlations, converted to covariances with
    corr_i * sqrt(var_G * sigmaOutcome[i, i]) and then repeated once per
    cluster member.
    """
    if study.view_mode == ViewMode.MATRIX:
        return (
            _supplied(study, names.SIGMA_OUTCOME),
            _supplied(study, names.SIGMA_GAUSSIAN_RANDOM),
            _supplied(study, names.SIGMA_OUTCOME_GAUSSIAN_RANDOM),
        )

    sigma_outcome = error_covariance(study)

    stddev = _supplied(study, names.SIGMA_GAUSSIAN_RANDOM)[0, 0]
    sigma_gaussian = filled(1, 1, stddev * stddev)
    var_g = sigma_gaussian[0, 0]

    correlations = _supplied(study, names.SIGMA_OUTCOME_GAUSSIAN_RANDOM)
    n = correlations.shape[0]
    if sigma_outcome.shape[0] < n:
        raise ShapeMismatchError(
            f"{names.SIGMA_OUTCOME_GAUSSIAN_RANDOM}: {n} correlations, but "
            f"{names.SIGMA_OUTCOME} has only {sigma_outcome.shape[0]} rows",
            matrix_name=names.SIGMA_OUTCOME_GAUSSIAN_RANDOM,
            expected=sigma_outcome.shape[0],
            actual=n,
        )
    variances = np.diag(sigma_outcome)[:n]
    sigma_outcome_gaussian = (
        correlations[:, :1] * np.sqrt(var_g * variances)[:, np.newaxis]
    )
    sigma_outcome_gaussian = expand_for_clusters(
        sigma_outcome_gaussian, study.total_cluster_size
    )
    return sigma_outcome, sigma_gaussian, sigma_outcome_gaussian


# =====================================================================
# Conformance
# =====================================================================


def check_conformance(params: MatrixSetParams) -> None:
    """
    Verify that the compiled matrices can be combined by a GLMM solver.

    Raises:
        ShapeMismatchError: On the first pair of matrices that disagree
    """
    X = params.design
    B = params.beta
    C = params.between_contrast
    U = params.within_contrast
    sigma = params.sigma_error if params.sigma_error is not None else params.sigma_outcome

    _expect(names.BETA, B.shape[0], X.shape[1], "rows", f"columns of {names.DESIGN}")
    _expect(names.BETWEEN_SUBJECT_CONTRAST, C.shape[1], B.shape[0],
            "columns", f"rows of {names.BETA}")
    _expect(names.WITHIN_SUBJECT_CONTRAST, U.shape[0], B.shape[1],
            "rows", f"columns of {names.BETA}")

    sigma_name = names.SIGMA_ERROR if params.sigma_error is not None else names.SIGMA_OUTCOME
    if sigma.shape[0] != sigma.shape[1]:
        raise ShapeMismatchError(
            f"{sigma_name}: expected a square matrix, got shape {sigma.shape}",
            matrix_name=sigma_name,
            expected=(sigma.shape[0], sigma.shape[0]),
            actual=sigma.shape,
        )
    _expect(sigma_name, sigma.shape[0], B.shape[1], "rows", f"columns of {names.BETA}")

    expected_theta = (C.shape[0], U.shape[1])
    if params.theta_null.shape != expected_theta:
        raise ShapeMismatchError(
            f"{names.THETA_NULL}: expected shape {expected_theta} "
            f"(rows of {names.BETWEEN_SUBJECT_CONTRAST} x columns of "
            f"{names.WITHIN_SUBJECT_CONTRAST}), got {params.theta_null.shape}",
            matrix_name=names.THETA_NULL,
            expected=expected_theta,
            actual=params.theta_null.shape,
        )

    if not params.gaussian_covariate:
        return

    _expect(names.BETA_RANDOM, params.beta_random.shape[1], B.shape[1],
            "columns", f"columns of {names.BETA}")
    _expect(names.BETWEEN_SUBJECT_CONTRAST_RANDOM, params.between_contrast_random.shape[0],
            C.shape[0], "rows", f"rows of {names.BETWEEN_SUBJECT_CONTRAST}")
    _expect(names.BETWEEN_SUBJECT_CONTRAST_RANDOM, params.between_contrast_random.shape[1],
            params.beta_random.shape[0], "columns", f"rows of {names.BETA_RANDOM}")
    _expect(names.SIGMA_OUTCOME_GAUSSIAN_RANDOM, params.sigma_outcome_gaussian_random.shape[0],
            sigma.shape[0], "rows", f"rows of {names.SIGMA_OUTCOME}")


def _expect(name: str, actual: int, expected: int, axis: str, against: str) -> None:
    if actual != expected:
        raise ShapeMismatchError(
            f"{name}: {actual} {axis}, but {against} is {expected}",
            matrix_name=name,
            expected=expected,
            actual=actual,
        )
