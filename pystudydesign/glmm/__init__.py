"""
GLMM matrix compilation.

Public API:
    StudyDesign.for_guided(...) / StudyDesign.for_matrix(...) -> StudyDesign
    compile_design(study) -> MatrixSetSolution
"""

from pystudydesign.glmm._common import (
    CovarianceKind,
    HypothesisType,
    NamedMatrix,
    TrendType,
    ViewMode,
)
from pystudydesign.glmm.design import (
    BetweenParticipantFactor,
    ClusterNode,
    CovarianceDescriptor,
    FactorMapping,
    Hypothesis,
    RepeatedMeasuresNode,
    StudyDesign,
)
from pystudydesign.glmm.names import RESPONSES_COVARIANCE_LABEL
from pystudydesign.glmm.solution import MatrixSetSolution
from pystudydesign.glmm.solvers import compile_design

__all__ = [
    "compile_design",
    "StudyDesign",
    "BetweenParticipantFactor",
    "RepeatedMeasuresNode",
    "ClusterNode",
    "CovarianceDescriptor",
    "FactorMapping",
    "Hypothesis",
    "MatrixSetSolution",
    "NamedMatrix",
    "CovarianceKind",
    "HypothesisType",
    "TrendType",
    "ViewMode",
    "RESPONSES_COVARIANCE_LABEL",
]
