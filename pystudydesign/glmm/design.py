"""
Study design object.

Wraps validated design metadata for the matrix compiler. Factory methods
handle the two entry modes: guided (factors, clustering, covariance
descriptors and a hypothesis) and matrix (the matrices themselves).
"""

from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

import numpy as np
from numpy.typing import ArrayLike, NDArray

from pystudydesign.core.exceptions import InvalidStudyDesignError, ValidationError
from pystudydesign.core.validation import (
    check_array,
    check_correlation,
    check_finite,
    check_matrix,
    check_ndim,
    check_positive_int,
)
from pystudydesign.glmm import names
from pystudydesign.glmm._common import (
    CovarianceKind,
    HypothesisType,
    TrendType,
    ViewMode,
)


# =====================================================================
# Design parts
# =====================================================================


@dataclass(frozen=True)
class BetweenParticipantFactor:
    """A between-participant factor and its ordered category labels."""
    name: str
    categories: tuple[str, ...]

    @property
    def n_levels(self) -> int:
        return len(self.categories)


@dataclass(frozen=True)
class RepeatedMeasuresNode:
    """
    One repeated-measures dimension.

    Attributes:
        dimension: Unique label, also the key of its covariance descriptor
        n_measurements: Number of levels (measurement occasions)
        spacing: Position of each level. Defaults to 0, 1, ..., n - 1.
    """
    dimension: str
    n_measurements: int
    spacing: tuple[float, ...] | None = None


@dataclass(frozen=True)
class ClusterNode:
    """One level of nested clustering (outermost first in the design)."""
    name: str
    group_size: int
    intra_cluster_correlation: float


@dataclass(frozen=True)
class CovarianceDescriptor:
    """
    Covariance information for one repeated-measures dimension or for the
    response variables.

    Attributes:
        kind: Which structure the descriptor encodes
        standard_deviations: One value for COMPOUND_SYMMETRIC and
            DISTANCE_DECAY, one per level for STRUCTURED
        rho: Correlation (COMPOUND_SYMMETRIC) or base correlation
            (DISTANCE_DECAY)
        delta: Rate of decay (DISTANCE_DECAY)
        blob: Correlation matrix (STRUCTURED, optional) or covariance
            matrix (UNSTRUCTURED)
        size: Declared dimension; must match the owner's level count
    """
    kind: CovarianceKind
    standard_deviations: tuple[float, ...] = ()
    rho: float | None = None
    delta: float | None = None
    blob: NDArray[np.floating[Any]] | None = None
    size: int | None = None


@dataclass(frozen=True)
class FactorMapping:
    """Reference, by name, to a factor or dimension tested by a hypothesis."""
    factor: str
    trend: TrendType = TrendType.NONE


@dataclass(frozen=True)
class Hypothesis:
    type: HypothesisType
    between_mappings: tuple[FactorMapping, ...] = ()
    within_mappings: tuple[FactorMapping, ...] = ()


# =====================================================================
# StudyDesign
# =====================================================================


@dataclass(frozen=True)
class StudyDesign:
    """
    Validated study design.

    Created via factory methods, not directly.
    """
    view_mode: ViewMode
    gaussian_covariate: bool
    between_factors: tuple[BetweenParticipantFactor, ...] = ()
    repeated_measures: tuple[RepeatedMeasuresNode, ...] = ()
    clusters: tuple[ClusterNode, ...] = ()
    responses: tuple[str, ...] = ()
    covariances: dict[str, CovarianceDescriptor] = field(default_factory=dict)
    hypothesis: Hypothesis | None = None
    matrices: dict[str, NDArray[np.floating[Any]]] = field(default_factory=dict)
    relative_group_sizes: tuple[int, ...] | None = None

    @staticmethod
    def for_guided(
        *,
        beta: ArrayLike,
        responses: Iterable[str],
        covariances: Mapping[str, CovarianceDescriptor],
        between_factors: Iterable[BetweenParticipantFactor] = (),
        repeated_measures: Iterable[RepeatedMeasuresNode] = (),
        clusters: Iterable[ClusterNode] = (),
        hypothesis: Hypothesis | None = None,
        beta_random: ArrayLike | None = None,
        theta_null: ArrayLike | None = None,
        sigma_gaussian_random: ArrayLike | None = None,
        sigma_outcome_gaussian_random: ArrayLike | None = None,
        gaussian_covariate: bool = False,
        relative_group_sizes: Iterable[int] | None = None,
    ) -> 'StudyDesign':
        """
        Create a guided-mode design.

        Args:
            beta: Cell-means coefficients, one row per between cell and one
                column per repeated-measures cell x response (before
                cluster expansion)
            responses: Ordered response variable names (at least one)
            covariances: Descriptor per repeated-measures dimension, plus one
                under names.RESPONSES_COVARIANCE_LABEL
            between_factors: Ordered between-participant factors
            repeated_measures: Ordered repeated-measures dimensions
            clusters: Ordered cluster levels, outermost first
            hypothesis: Hypothesis to test. None tests the grand mean.
            beta_random: Random-effect coefficients (required with a
                Gaussian covariate)
            theta_null: Null hypothesis matrix. Defaults to zeros.
            sigma_gaussian_random: 1 x 1 standard deviation of the Gaussian
                covariate (required with a Gaussian covariate)
            sigma_outcome_gaussian_random: Column of correlations between
                each outcome and the covariate (required with a Gaussian
                covariate)
            gaussian_covariate: Whether a Gaussian covariate is modeled
            relative_group_sizes: One positive integer per between cell for
                unequal group sizes

        Returns:
            StudyDesign in GUIDED view mode
        """
        factors = tuple(_validate_factor(f) for f in between_factors)
        _check_unique([f.name for f in factors], "between-participant factor")

        nodes = tuple(_validate_repeated_node(n) for n in repeated_measures)
        _check_unique([n.dimension for n in nodes], "repeated-measures dimension")

        cluster_nodes = tuple(_validate_cluster(c) for c in clusters)

        response_names = tuple(str(r) for r in responses)
        if len(response_names) == 0:
            raise InvalidStudyDesignError("responses: at least one response is required")
        _check_unique(list(response_names), "response")

        known_labels = {n.dimension for n in nodes} | {names.RESPONSES_COVARIANCE_LABEL}
        unknown = sorted(set(covariances) - known_labels)
        if unknown:
            raise InvalidStudyDesignError(
                f"covariances: labels {unknown} do not name a repeated-measures "
                f"dimension or the response variables"
            )

        if hypothesis is not None:
            _validate_hypothesis(hypothesis, factors, nodes)

        matrices: dict[str, NDArray[np.floating[Any]]] = {
            names.BETA: check_matrix(beta, names.BETA),
        }
        optional = {
            names.BETA_RANDOM: beta_random,
            names.THETA_NULL: theta_null,
            names.SIGMA_GAUSSIAN_RANDOM: sigma_gaussian_random,
            names.SIGMA_OUTCOME_GAUSSIAN_RANDOM: sigma_outcome_gaussian_random,
        }
        for name, value in optional.items():
            if value is not None:
                matrices[name] = check_matrix(value, name)

        if gaussian_covariate:
            _require(matrices, (
                names.BETA_RANDOM,
                names.SIGMA_GAUSSIAN_RANDOM,
                names.SIGMA_OUTCOME_GAUSSIAN_RANDOM,
            ), "a Gaussian covariate")
            if matrices[names.SIGMA_OUTCOME_GAUSSIAN_RANDOM].shape[1] != 1:
                raise InvalidStudyDesignError(
                    f"{names.SIGMA_OUTCOME_GAUSSIAN_RANDOM}: expected a single column of "
                    f"correlations, got shape {matrices[names.SIGMA_OUTCOME_GAUSSIAN_RANDOM].shape}"
                )

        sizes = None
        if relative_group_sizes is not None:
            sizes = tuple(
                check_positive_int(s, f"relative_group_sizes[{i}]")
                for i, s in enumerate(relative_group_sizes)
            )
            n_cells = int(np.prod([f.n_levels for f in factors])) if factors else 1
            if len(sizes) != n_cells:
                raise InvalidStudyDesignError(
                    f"relative_group_sizes: expected one size per between cell "
                    f"({n_cells}), got {len(sizes)}"
                )

        return StudyDesign(
            view_mode=ViewMode.GUIDED,
            gaussian_covariate=bool(gaussian_covariate),
            between_factors=factors,
            repeated_measures=nodes,
            clusters=cluster_nodes,
            responses=response_names,
            covariances=dict(covariances),
            hypothesis=hypothesis,
            matrices=matrices,
            relative_group_sizes=sizes,
        )

    @staticmethod
    def for_matrix(
        matrices: Mapping[str, ArrayLike],
        *,
        gaussian_covariate: bool = False,
    ) -> 'StudyDesign':
        """
        Create a matrix-mode design.

        Args:
            matrices: {canonical name: 2D matrix}. design, beta,
                betweenSubjectContrast and withinSubjectContrast are always
                required. Without a Gaussian covariate sigmaError is
                required; with one, betaRandom,
                betweenSubjectContrastRandom, sigmaOutcome,
                sigmaGaussianRandom and sigmaOutcomeGaussianRandom are.
                thetaNull is optional (defaults to zeros).
            gaussian_covariate: Whether a Gaussian covariate is modeled

        Returns:
            StudyDesign in MATRIX view mode
        """
        unknown = sorted(set(matrices) - names.MATRIX_NAMES)
        if unknown:
            raise InvalidStudyDesignError(
                f"matrices: unknown matrix names {unknown}; "
                f"expected names from {sorted(names.MATRIX_NAMES)}"
            )

        validated = {
            name: check_matrix(value, name) for name, value in matrices.items()
        }

        _require(validated, (
            names.DESIGN,
            names.BETA,
            names.BETWEEN_SUBJECT_CONTRAST,
            names.WITHIN_SUBJECT_CONTRAST,
        ), "a matrix-mode design")
        if gaussian_covariate:
            _require(validated, (
                names.BETA_RANDOM,
                names.BETWEEN_SUBJECT_CONTRAST_RANDOM,
                names.SIGMA_OUTCOME,
                names.SIGMA_GAUSSIAN_RANDOM,
                names.SIGMA_OUTCOME_GAUSSIAN_RANDOM,
            ), "a Gaussian covariate")
        else:
            _require(validated, (names.SIGMA_ERROR,), "a design without a Gaussian covariate")

        return StudyDesign(
            view_mode=ViewMode.MATRIX,
            gaussian_covariate=bool(gaussian_covariate),
            matrices=validated,
        )

    @property
    def between_levels(self) -> tuple[int, ...]:
        return tuple(f.n_levels for f in self.between_factors)

    @property
    def repeated_levels(self) -> tuple[int, ...]:
        return tuple(n.n_measurements for n in self.repeated_measures)

    @property
    def total_cluster_size(self) -> int:
        """Product of the cluster group sizes (1 without clustering)."""
        return int(np.prod([c.group_size for c in self.clusters])) if self.clusters else 1

    def factor(self, name: str) -> BetweenParticipantFactor:
        for f in self.between_factors:
            if f.name == name:
                return f
        raise InvalidStudyDesignError(f"no between-participant factor named {name!r}")

    def repeated_node(self, dimension: str) -> RepeatedMeasuresNode:
        for n in self.repeated_measures:
            if n.dimension == dimension:
                return n
        raise InvalidStudyDesignError(f"no repeated-measures dimension named {dimension!r}")

    def covariance(self, label: str) -> CovarianceDescriptor | None:
        return self.covariances.get(label)

    def matrix(self, name: str) -> NDArray[np.floating[Any]] | None:
        return self.matrices.get(name)


# =====================================================================
# Validation helpers
# =====================================================================


def _check_unique(labels: list[str], what: str) -> None:
    seen: set[str] = set()
    for label in labels:
        if label in seen:
            raise InvalidStudyDesignError(f"duplicate {what} name {label!r}")
        seen.add(label)


def _require(
    matrices: Mapping[str, Any],
    required: tuple[str, ...],
    context: str,
) -> None:
    missing = [name for name in required if name not in matrices]
    if missing:
        raise InvalidStudyDesignError(
            f"{context} requires matrices {missing}, which were not supplied"
        )


def _validate_factor(factor: BetweenParticipantFactor) -> BetweenParticipantFactor:
    if not factor.name:
        raise InvalidStudyDesignError("between-participant factor: name must be non-empty")
    categories = tuple(str(c) for c in factor.categories)
    if len(categories) == 0:
        raise InvalidStudyDesignError(
            f"between-participant factor {factor.name!r}: category list is empty"
        )
    _check_unique(list(categories), f"category in factor {factor.name!r}")
    return BetweenParticipantFactor(name=factor.name, categories=categories)


def _validate_repeated_node(node: RepeatedMeasuresNode) -> RepeatedMeasuresNode:
    if not node.dimension:
        raise InvalidStudyDesignError("repeated-measures node: dimension must be non-empty")
    n = check_positive_int(node.n_measurements, f"{node.dimension}.n_measurements")

    if node.spacing is None:
        spacing = tuple(float(i) for i in range(n))
    else:
        values = check_array(node.spacing, f"{node.dimension}.spacing")
        check_ndim(values, 1, f"{node.dimension}.spacing")
        check_finite(values, f"{node.dimension}.spacing")
        if len(values) != n:
            raise InvalidStudyDesignError(
                f"{node.dimension}.spacing: expected {n} values, got {len(values)}"
            )
        if len(np.unique(values)) != n:
            raise InvalidStudyDesignError(
                f"{node.dimension}.spacing: values must be distinct, got {values.tolist()}"
            )
        spacing = tuple(float(v) for v in values)

    return RepeatedMeasuresNode(dimension=node.dimension, n_measurements=n, spacing=spacing)


def _validate_cluster(cluster: ClusterNode) -> ClusterNode:
    size = check_positive_int(cluster.group_size, f"{cluster.name}.group_size")
    rho = check_correlation(
        cluster.intra_cluster_correlation, f"{cluster.name}.intra_cluster_correlation"
    )
    return ClusterNode(name=cluster.name, group_size=size, intra_cluster_correlation=rho)


def _validate_hypothesis(
    hypothesis: Hypothesis,
    factors: tuple[BetweenParticipantFactor, ...],
    nodes: tuple[RepeatedMeasuresNode, ...],
) -> None:
    if not isinstance(hypothesis.type, HypothesisType):
        raise ValidationError(
            f"hypothesis.type: expected a HypothesisType, got {hypothesis.type!r}"
        )
    factor_names = {f.name for f in factors}
    for mapping in hypothesis.between_mappings:
        if mapping.factor not in factor_names:
            raise InvalidStudyDesignError(
                f"hypothesis: between-participant factor {mapping.factor!r} is not "
                f"in the design (known: {sorted(factor_names)})"
            )
    dimensions = {n.dimension for n in nodes}
    for mapping in hypothesis.within_mappings:
        if mapping.factor not in dimensions:
            raise InvalidStudyDesignError(
                f"hypothesis: repeated-measures dimension {mapping.factor!r} is not "
                f"in the design (known: {sorted(dimensions)})"
            )
