"""
Study design compilation.

Public API:
    compile_design(study) -> MatrixSetSolution
"""

import warnings

import numpy as np

from pystudydesign.core.compute.timing import Timer
from pystudydesign.core.result import Result
from pystudydesign.glmm._common import HypothesisType, MatrixSetParams, ViewMode
from pystudydesign.glmm._compiler import (
    beta_matrices,
    between_contrast_matrices,
    check_conformance,
    covariate_sigma_matrices,
    design_matrix,
    sigma_error_matrix,
    theta_null_matrix,
    within_contrast_matrix,
)
from pystudydesign.glmm.design import StudyDesign
from pystudydesign.glmm.solution import MatrixSetSolution


def compile_design(study: StudyDesign) -> MatrixSetSolution:
    """
    Compile a study design into the GLMM matrix set.

    Builds the essence design matrix X, fixed (and random) beta B, fixed
    (and random) between-participant contrast C, within-participant
    contrast U, the null hypothesis matrix Theta, and either sigmaError or,
    when a Gaussian covariate is modeled, sigmaOutcome,
    sigmaGaussianRandom and sigmaOutcomeGaussianRandom.

    The compile is pure: the same design always yields identical matrices.

    Args:
        study: Validated design from StudyDesign.for_guided() or
            StudyDesign.for_matrix()

    Returns:
        MatrixSetSolution with the matrices, named output list and summary

    Raises:
        InvalidStudyDesignError: Missing or malformed design information
        NotPositiveSemidefiniteError: A covariance block is not a valid
            covariance
        ShapeMismatchError: The compiled matrices do not conform
        UnsupportedHypothesisError: No contrast rule for the hypothesis

    Examples:
        >>> study = StudyDesign.for_guided(
        ...     between_factors=[BetweenParticipantFactor('treatment', ('a', 'b', 'c'))],
        ...     responses=['y'],
        ...     covariances={RESPONSES_COVARIANCE_LABEL: CovarianceDescriptor(
        ...         CovarianceKind.UNSTRUCTURED, blob=np.array([[1.0]]))},
        ...     hypothesis=Hypothesis(HypothesisType.MAIN_EFFECT,
        ...                           between_mappings=(FactorMapping('treatment'),)),
        ...     beta=[[1.0], [2.0], [3.0]],
        ... )
        >>> result = compile_design(study)
        >>> result.between_contrast
        array([[ 1., -1.,  0.],
               [ 1.,  0., -1.]])
    """
    timer = Timer()
    timer.start()
    warn_list: list[str] = []

    hypothesis = study.hypothesis
    if (
        study.view_mode == ViewMode.GUIDED
        and hypothesis is not None
        and hypothesis.type == HypothesisType.INTERACTION
    ):
        message = (
            "Interaction contrasts are not constructed across factors; "
            "C and U were compiled as grand-mean contrasts"
        )
        warnings.warn(message, UserWarning, stacklevel=2)
        warn_list.append(message)

    with timer.section('design'):
        X = design_matrix(study)

    with timer.section('beta'):
        beta, beta_random = beta_matrices(study)

    with timer.section('contrasts'):
        C, C_random = between_contrast_matrices(study)
        U = within_contrast_matrix(study)
        theta = theta_null_matrix(study, C, U)

    with timer.section('covariance'):
        if study.gaussian_covariate:
            sigma_outcome, sigma_g, sigma_yg = covariate_sigma_matrices(study)
            sigma_error = None
        else:
            sigma_error = sigma_error_matrix(study)
            sigma_outcome = sigma_g = sigma_yg = None

    params = MatrixSetParams(
        design=_frozen(X),
        beta=_frozen(beta),
        beta_random=_frozen(beta_random),
        between_contrast=_frozen(C),
        between_contrast_random=_frozen(C_random),
        within_contrast=_frozen(U),
        theta_null=_frozen(theta),
        sigma_error=_frozen(sigma_error),
        sigma_outcome=_frozen(sigma_outcome),
        sigma_gaussian_random=_frozen(sigma_g),
        sigma_outcome_gaussian_random=_frozen(sigma_yg),
        gaussian_covariate=study.gaussian_covariate,
    )

    with timer.section('conformance'):
        check_conformance(params)

    timer.stop()

    result = Result(
        params=params,
        info={
            'view_mode': study.view_mode.value,
            'hypothesis_type': hypothesis.type.value if hypothesis is not None else None,
            'gaussian_covariate': study.gaussian_covariate,
            'between_levels': study.between_levels,
            'repeated_levels': study.repeated_levels,
            'n_responses': len(study.responses),
            'total_cluster_size': study.total_cluster_size,
        },
        timing=timer.result(),
        backend_name=f'cpu_{study.view_mode.value}',
        warnings=tuple(warn_list),
    )

    return MatrixSetSolution(_result=result)


def _frozen(matrix: np.ndarray | None) -> np.ndarray | None:
    """Private float64 copy with writes disabled."""
    if matrix is None:
        return None
    out = np.array(matrix, dtype=np.float64, copy=True)
    out.setflags(write=False)
    return out
