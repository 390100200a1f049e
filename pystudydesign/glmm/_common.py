"""
Common data types for the GLMM matrix compiler.

Contains the enumerations shared by the design, contrast and covariance
modules, and the frozen parameter payload that goes inside the
Result[P] envelope. Payloads are pure data containers.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any

import numpy as np
from numpy.typing import NDArray


class ViewMode(str, Enum):
    """How the study design was entered."""
    MATRIX = "matrix"
    GUIDED = "guided"


class HypothesisType(str, Enum):
    MAIN_EFFECT = "mainEffect"
    INTERACTION = "interaction"
    TREND = "trend"


class TrendType(str, Enum):
    """Which part of a factor's level structure a contrast tests."""
    NONE = "none"
    CHANGE_FROM_BASELINE = "changeFromBaseline"
    ALL_POLYNOMIAL = "allPolynomial"
    ALL_NONCONSTANT_POLYNOMIAL = "allNonconstantPolynomial"
    LINEAR = "linear"
    QUADRATIC = "quadratic"
    CUBIC = "cubic"


class CovarianceKind(str, Enum):
    COMPOUND_SYMMETRIC = "compoundSymmetric"
    DISTANCE_DECAY = "distanceDecay"       # Lear correlation
    STRUCTURED = "structured"              # per-level std devs (+ correlations)
    UNSTRUCTURED = "unstructured"          # raw covariance matrix


@dataclass(frozen=True)
class NamedMatrix:
    """One output matrix under its canonical name."""
    name: str
    data: NDArray[np.floating[Any]]

    @property
    def rows(self) -> int:
        return int(self.data.shape[0])

    @property
    def columns(self) -> int:
        return int(self.data.shape[1])

    def to_list(self) -> list[float]:
        """Entries in row-major order."""
        return [float(v) for v in self.data.ravel(order='C')]


@dataclass(frozen=True)
class MatrixSetParams:
    """
    Parameter payload for a compiled study design.

    The sigma fields are mutually exclusive: sigma_error is set when no
    Gaussian covariate is modeled, the other three when it is. The random
    beta and random contrast are only set with a covariate.
    """
    design: NDArray[np.floating[Any]]
    beta: NDArray[np.floating[Any]]
    beta_random: NDArray[np.floating[Any]] | None
    between_contrast: NDArray[np.floating[Any]]
    between_contrast_random: NDArray[np.floating[Any]] | None
    within_contrast: NDArray[np.floating[Any]]
    theta_null: NDArray[np.floating[Any]]
    sigma_error: NDArray[np.floating[Any]] | None
    sigma_outcome: NDArray[np.floating[Any]] | None
    sigma_gaussian_random: NDArray[np.floating[Any]] | None
    sigma_outcome_gaussian_random: NDArray[np.floating[Any]] | None
    gaussian_covariate: bool
