"""
Contrast construction for guided designs.

Builds the between-participant contrast C (rows = hypothesis degrees of
freedom, columns = between cells) and the within-participant contrast U
(rows = repeated-measures cells x responses, columns = degrees of freedom)
for a stated hypothesis.

Key concepts:
    - Effect component: [1 | -I] for "any difference among the levels"
    - Averaging component: 1 x m row of 1/m for every factor not tested
    - Fold: components combined left to right in factor order by row-wise
      direct product. A single-row operand is repeated to the row count of
      the other, which makes the fold equal to the Kronecker product here.
    - Within contrasts are the transpose of the same fold over the
      repeated-measures dimensions, then Kronecker-multiplied by the
      identity when there is more than one response.
"""

from typing import Any, Sequence

import numpy as np
from numpy.typing import ArrayLike, NDArray

from pystudydesign.core.compute.linalg.polynomials import (
    orthogonal_polynomial_coefficients,
)
from pystudydesign.core.compute.linalg.products import (
    direct_product,
    filled,
    horizontal_append,
    identity,
    kron,
    ones_row,
)
from pystudydesign.core.exceptions import (
    InvalidStudyDesignError,
    UnsupportedHypothesisError,
)
from pystudydesign.glmm._common import HypothesisType, TrendType
from pystudydesign.glmm.design import (
    BetweenParticipantFactor,
    FactorMapping,
    Hypothesis,
    RepeatedMeasuresNode,
)


# Polynomial column selected by each single-degree trend
_POLYNOMIAL_COLUMN = {
    TrendType.LINEAR: 1,
    TrendType.QUADRATIC: 2,
    TrendType.CUBIC: 3,
}


# =====================================================================
# Components
# =====================================================================


def _trend_name(trend: TrendType | str) -> str:
    return getattr(trend, 'value', str(trend))


def effect_component(levels: int) -> NDArray[np.floating[Any]]:
    """(levels - 1) x levels matrix [1 | -I]."""
    df = levels - 1
    return horizontal_append(filled(df, 1, 1.0), -identity(df))


def trend_contrast(spacing: ArrayLike, trend: TrendType) -> NDArray[np.floating[Any]]:
    """
    Trend contrast in column form (one row per level).

    Args:
        spacing: Level positions, at least two distinct values
        trend: Which trend to test

    Returns:
        levels x q matrix:
            NONE -> [1 | -I]^T
            CHANGE_FROM_BASELINE -> +1 at the first level, -1 at the last
            ALL_POLYNOMIAL -> every polynomial column, constant included
            ALL_NONCONSTANT_POLYNOMIAL -> polynomial columns 1..
            LINEAR / QUADRATIC / CUBIC -> polynomial column 1 / 2 / 3

    Raises:
        UnsupportedHypothesisError: If the trend needs a higher degree than
            the levels support, or the trend type is unknown
    """
    positions = np.asarray(spacing, dtype=np.float64)
    levels = len(positions)
    if levels < 2:
        raise UnsupportedHypothesisError(
            f"trend contrast requires at least 2 levels, got {levels}",
            trend=_trend_name(trend),
        )

    if trend == TrendType.NONE:
        return effect_component(levels).T

    if trend == TrendType.CHANGE_FROM_BASELINE:
        column = filled(levels, 1, 0.0)
        column[0, 0] = 1.0
        column[levels - 1, 0] = -1.0
        return column

    all_trends = orthogonal_polynomial_coefficients(positions, levels - 1)

    if trend == TrendType.ALL_POLYNOMIAL:
        return all_trends
    if trend == TrendType.ALL_NONCONSTANT_POLYNOMIAL:
        return all_trends[:, 1:]
    if trend in _POLYNOMIAL_COLUMN:
        column = _POLYNOMIAL_COLUMN[trend]
        if column >= all_trends.shape[1]:
            raise UnsupportedHypothesisError(
                f"{_trend_name(trend)} trend requires at least {column + 1} levels, "
                f"got {levels}",
                hypothesis_type=HypothesisType.TREND.value,
                trend=_trend_name(trend),
            )
        return all_trends[:, column:column + 1]

    raise UnsupportedHypothesisError(
        f"no trend contrast rule for {trend!r}",
        hypothesis_type=HypothesisType.TREND.value,
        trend=_trend_name(trend),
    )


def _fold(
    contrast: NDArray[np.floating[Any]] | None,
    component: NDArray[np.floating[Any]],
) -> NDArray[np.floating[Any]]:
    if contrast is None:
        return component
    if contrast.shape[0] == 1 and component.shape[0] > 1:
        contrast = np.repeat(contrast, component.shape[0], axis=0)
    elif component.shape[0] == 1 and contrast.shape[0] > 1:
        component = np.repeat(component, contrast.shape[0], axis=0)
    return direct_product(contrast, component)


def _fold_all(components: Sequence[NDArray[np.floating[Any]]]) -> NDArray[np.floating[Any]]:
    contrast = None
    for component in components:
        contrast = _fold(contrast, component)
    return contrast if contrast is not None else filled(1, 1, 1.0)


def _lookup(table: dict[str, Any], name: str, what: str) -> Any:
    if name not in table:
        raise InvalidStudyDesignError(
            f"no {what} named {name!r} (known: {sorted(table)})"
        )
    return table[name]


def _with_responses(
    contrast: NDArray[np.floating[Any]],
    n_responses: int,
) -> NDArray[np.floating[Any]]:
    if n_responses > 1:
        return kron(contrast, identity(n_responses))
    return contrast


# =====================================================================
# Between-participant contrasts (C)
# =====================================================================


def grand_mean_between(factors: Sequence[BetweenParticipantFactor]) -> NDArray[np.floating[Any]]:
    """1 x (product of levels) row of 1/(product of levels)."""
    cells = int(np.prod([f.n_levels for f in factors])) if factors else 1
    return ones_row(cells, average=True)


def main_effect_between(
    factor_name: str,
    factors: Sequence[BetweenParticipantFactor],
) -> NDArray[np.floating[Any]]:
    """
    Main effect of one between-participant factor, averaged over the rest.

    For a single factor with levels [a, b, c] this is [[1, -1, 0], [1, 0, -1]].
    A factor with one level has no degrees of freedom and yields the grand
    mean.
    """
    levels = _lookup({f.name: f.n_levels for f in factors}, factor_name, "between-participant factor")
    if levels - 1 == 0:
        return grand_mean_between(factors)
    components = [
        effect_component(f.n_levels) if f.name == factor_name
        else ones_row(f.n_levels, average=True)
        for f in factors
    ]
    return _fold_all(components)


def trend_between(
    mapping: FactorMapping,
    factors: Sequence[BetweenParticipantFactor],
) -> NDArray[np.floating[Any]]:
    """
    Trend across the levels of one between-participant factor.

    Levels are equally spaced (0, 1, ..., k - 1). A single-level factor
    has no trend and compiles to the grand mean.
    """
    levels = _lookup({f.name: f.n_levels for f in factors}, mapping.factor, "between-participant factor")
    if levels < 2:
        return grand_mean_between(factors)
    trend = trend_contrast(np.arange(levels, dtype=np.float64), mapping.trend).T
    components = [
        trend if f.name == mapping.factor else ones_row(f.n_levels, average=True)
        for f in factors
    ]
    return _fold_all(components)


def interaction_between(
    mappings: Sequence[FactorMapping],
    factors: Sequence[BetweenParticipantFactor],
) -> NDArray[np.floating[Any]]:
    """
    Interaction among between-participant factors.

    No cross-factor construction is defined for interactions; this compiles
    to the grand mean. compile_design() reports the fallback as a warning.
    """
    return grand_mean_between(factors)


def between_contrast(
    hypothesis: Hypothesis | None,
    factors: Sequence[BetweenParticipantFactor],
) -> NDArray[np.floating[Any]]:
    """
    Between-participant contrast C for a hypothesis.

    With no hypothesis, or no between-participant mapping, C is the grand
    mean. Main effect and trend hypotheses use the first mapping.
    """
    if hypothesis is None or len(hypothesis.between_mappings) == 0:
        return grand_mean_between(factors)

    if hypothesis.type == HypothesisType.MAIN_EFFECT:
        return main_effect_between(hypothesis.between_mappings[0].factor, factors)
    if hypothesis.type == HypothesisType.TREND:
        return trend_between(hypothesis.between_mappings[0], factors)
    if hypothesis.type == HypothesisType.INTERACTION:
        return interaction_between(hypothesis.between_mappings, factors)

    raise UnsupportedHypothesisError(
        f"no between-participant contrast rule for hypothesis type {hypothesis.type!r}",
        hypothesis_type=str(hypothesis.type),
    )


# =====================================================================
# Within-participant contrasts (U)
# =====================================================================


def grand_mean_within(
    nodes: Sequence[RepeatedMeasuresNode],
    n_responses: int,
) -> NDArray[np.floating[Any]]:
    """(product of levels x responses) x 1 column of 1/(that product)."""
    cells = int(np.prod([n.n_measurements for n in nodes])) if nodes else 1
    cells *= max(n_responses, 1)
    return filled(cells, 1, 1.0 / cells)


def main_effect_within(
    dimension: str,
    nodes: Sequence[RepeatedMeasuresNode],
    n_responses: int,
) -> NDArray[np.floating[Any]]:
    """Main effect of one repeated-measures dimension, averaged over the rest."""
    levels = _lookup({n.dimension: n.n_measurements for n in nodes}, dimension, "repeated-measures dimension")
    if levels - 1 == 0:
        return grand_mean_within(nodes, n_responses)
    components = [
        effect_component(n.n_measurements) if n.dimension == dimension
        else ones_row(n.n_measurements, average=True)
        for n in nodes
    ]
    return _with_responses(_fold_all(components).T, n_responses)


def trend_within(
    mapping: FactorMapping,
    nodes: Sequence[RepeatedMeasuresNode],
    n_responses: int,
) -> NDArray[np.floating[Any]]:
    """
    Trend across one repeated-measures dimension, using its spacing.

    A single-level dimension compiles to the grand mean.
    """
    node = _lookup({n.dimension: n for n in nodes}, mapping.factor, "repeated-measures dimension")
    if node.n_measurements < 2:
        return grand_mean_within(nodes, n_responses)
    trend = trend_contrast(node.spacing, mapping.trend).T
    components = [
        trend if n.dimension == mapping.factor else ones_row(n.n_measurements, average=True)
        for n in nodes
    ]
    return _with_responses(_fold_all(components).T, n_responses)


def interaction_within(
    mappings: Sequence[FactorMapping],
    nodes: Sequence[RepeatedMeasuresNode],
    n_responses: int,
) -> NDArray[np.floating[Any]]:
    """
    Interaction among repeated-measures dimensions.

    Compiles to the grand mean, like interaction_between().
    """
    return grand_mean_within(nodes, n_responses)


def within_contrast(
    hypothesis: Hypothesis | None,
    nodes: Sequence[RepeatedMeasuresNode],
    n_responses: int,
) -> NDArray[np.floating[Any]]:
    """
    Within-participant contrast U for a hypothesis.

    With no hypothesis, or no within-participant mapping, U is the grand
    mean. Main effect and trend hypotheses use the first mapping.
    """
    if hypothesis is None or len(hypothesis.within_mappings) == 0:
        return grand_mean_within(nodes, n_responses)

    if hypothesis.type == HypothesisType.MAIN_EFFECT:
        return main_effect_within(hypothesis.within_mappings[0].factor, nodes, n_responses)
    if hypothesis.type == HypothesisType.TREND:
        return trend_within(hypothesis.within_mappings[0], nodes, n_responses)
    if hypothesis.type == HypothesisType.INTERACTION:
        return interaction_within(hypothesis.within_mappings, nodes, n_responses)

    raise UnsupportedHypothesisError(
        f"no within-participant contrast rule for hypothesis type {hypothesis.type!r}",
        hypothesis_type=str(hypothesis.type),
    )


def expand_for_clusters(
    within: NDArray[np.floating[Any]],
    total_cluster_size: int,
) -> NDArray[np.floating[Any]]:
    """
    Tile the rows of U once per cluster member.

    Equal to kron(ones_column(t), U): the result has t * rows(U) rows, with
    cluster members outermost.
    """
    if total_cluster_size <= 1:
        return within
    tiles = filled(within.shape[1], total_cluster_size, 1.0)
    return direct_product(tiles, within.T).T
