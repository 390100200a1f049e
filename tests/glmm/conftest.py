"""
Shared fixtures for study-design compilation tests.

Provides reusable guided designs (one between factor; clustered; repeated
measures; Gaussian covariate) and a univariate matrix-mode design.
"""

import numpy as np
import pytest

from pystudydesign.glmm import (
    RESPONSES_COVARIANCE_LABEL,
    BetweenParticipantFactor,
    ClusterNode,
    CovarianceDescriptor,
    CovarianceKind,
    FactorMapping,
    Hypothesis,
    HypothesisType,
    RepeatedMeasuresNode,
    StudyDesign,
)


# =====================================================================
# Building blocks
# =====================================================================


@pytest.fixture
def unit_response_covariance():
    """1 x 1 unstructured response covariance [[1]]."""
    return {
        RESPONSES_COVARIANCE_LABEL: CovarianceDescriptor(
            kind=CovarianceKind.UNSTRUCTURED, blob=np.array([[1.0]])
        )
    }


@pytest.fixture
def treatment_factor():
    return BetweenParticipantFactor(name="treatment", categories=("a", "b", "c"))


@pytest.fixture
def treatment_main_effect():
    return Hypothesis(
        type=HypothesisType.MAIN_EFFECT,
        between_mappings=(FactorMapping(factor="treatment"),),
    )


# =====================================================================
# Guided designs
# =====================================================================


@pytest.fixture
def one_factor_design(treatment_factor, treatment_main_effect, unit_response_covariance):
    """One 3-level factor, one response, no repeated measures or clusters."""
    return StudyDesign.for_guided(
        between_factors=[treatment_factor],
        responses=["y"],
        covariances=unit_response_covariance,
        hypothesis=treatment_main_effect,
        beta=[[1.0], [2.0], [3.0]],
    )


@pytest.fixture
def clustered_design(unit_response_covariance):
    """Two nested cluster levels (sizes 2 and 3, ICC 0.1 and 0.2)."""
    return StudyDesign.for_guided(
        between_factors=[BetweenParticipantFactor("group", ("control", "active"))],
        clusters=[
            ClusterNode(name="school", group_size=2, intra_cluster_correlation=0.1),
            ClusterNode(name="classroom", group_size=3, intra_cluster_correlation=0.2),
        ],
        responses=["score"],
        covariances=unit_response_covariance,
        hypothesis=Hypothesis(
            type=HypothesisType.MAIN_EFFECT,
            between_mappings=(FactorMapping("group"),),
        ),
        beta=[[0.0], [1.0]],
    )


@pytest.fixture
def repeated_design(unit_response_covariance):
    """One 2-level between factor and a 3-occasion repeated measure (Lear)."""
    covariances = dict(unit_response_covariance)
    covariances["time"] = CovarianceDescriptor(
        kind=CovarianceKind.DISTANCE_DECAY,
        standard_deviations=(2.0,),
        rho=0.6,
        delta=1.0,
    )
    return StudyDesign.for_guided(
        between_factors=[BetweenParticipantFactor("group", ("control", "active"))],
        repeated_measures=[
            RepeatedMeasuresNode(dimension="time", n_measurements=3, spacing=(0, 2, 5)),
        ],
        responses=["y"],
        covariances=covariances,
        hypothesis=Hypothesis(
            type=HypothesisType.MAIN_EFFECT,
            between_mappings=(FactorMapping("group"),),
            within_mappings=(FactorMapping("time"),),
        ),
        beta=[[1.0, 2.0, 3.0], [1.0, 2.5, 4.0]],
    )


# =====================================================================
# Matrix-mode designs
# =====================================================================


@pytest.fixture
def univariate_matrices():
    """Two-group univariate comparison supplied as matrices."""
    return {
        "design": np.eye(2),
        "beta": [[0.0], [1.0]],
        "betweenSubjectContrast": [[1.0, -1.0]],
        "withinSubjectContrast": [[1.0]],
        "sigmaError": [[1.0]],
    }
