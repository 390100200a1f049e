"""
Tests for contrast construction.

Validates:
    - Main-effect contrasts ([1 | -I] folded with averaging rows)
    - Trend contrasts for every TrendType
    - Grand-mean contrasts (rows / columns sum to one)
    - Within contrasts and the response identity
    - Interaction fallback to the grand mean
    - Cluster expansion of U
"""

import numpy as np
import pytest

from pystudydesign.core.exceptions import (
    InvalidStudyDesignError,
    UnsupportedHypothesisError,
)
from pystudydesign.glmm._common import HypothesisType, TrendType
from pystudydesign.glmm._contrasts import (
    between_contrast,
    effect_component,
    expand_for_clusters,
    grand_mean_between,
    grand_mean_within,
    interaction_between,
    main_effect_between,
    main_effect_within,
    trend_between,
    trend_contrast,
    trend_within,
    within_contrast,
)
from pystudydesign.glmm.design import (
    BetweenParticipantFactor,
    FactorMapping,
    Hypothesis,
    RepeatedMeasuresNode,
)


def _factor(name, k):
    return BetweenParticipantFactor(name=name, categories=tuple(f"{name}{i}" for i in range(k)))


def _node(name, k, spacing=None):
    if spacing is None:
        spacing = tuple(float(i) for i in range(k))
    return RepeatedMeasuresNode(dimension=name, n_measurements=k, spacing=spacing)


# ═══════════════════════════════════════════════════════════════════════
# Components
# ═══════════════════════════════════════════════════════════════════════


class TestEffectComponent:

    def test_three_levels(self):
        np.testing.assert_array_equal(effect_component(3), [[1, -1, 0], [1, 0, -1]])

    def test_two_levels(self):
        np.testing.assert_array_equal(effect_component(2), [[1, -1]])


# ═══════════════════════════════════════════════════════════════════════
# Between-participant contrasts
# ═══════════════════════════════════════════════════════════════════════


class TestMainEffectBetween:

    def test_single_factor(self):
        C = main_effect_between("a", [_factor("a", 3)])
        np.testing.assert_array_equal(C, [[1, -1, 0], [1, 0, -1]])

    def test_averages_other_factor(self):
        C = main_effect_between("a", [_factor("a", 2), _factor("b", 3)])
        expected = np.kron([[1.0, -1.0]], np.full((1, 3), 1 / 3))
        np.testing.assert_allclose(C, expected)

    def test_factor_of_interest_second(self):
        C = main_effect_between("b", [_factor("a", 2), _factor("b", 3)])
        expected = np.kron(np.full((1, 2), 0.5), effect_component(3))
        np.testing.assert_allclose(C, expected)
        assert C.shape == (2, 6)

    def test_rows_sum_to_zero(self):
        C = main_effect_between("b", [_factor("a", 3), _factor("b", 4), _factor("c", 2)])
        np.testing.assert_allclose(C.sum(axis=1), 0.0, atol=1e-12)

    def test_single_level_is_grand_mean(self):
        factors = [_factor("a", 1), _factor("b", 2)]
        np.testing.assert_allclose(main_effect_between("a", factors), grand_mean_between(factors))

    def test_unknown_factor(self):
        with pytest.raises(InvalidStudyDesignError, match="'z'"):
            main_effect_between("z", [_factor("a", 2)])


class TestGrandMeanBetween:

    def test_sums_to_one(self):
        C = grand_mean_between([_factor("a", 3), _factor("b", 4)])
        assert C.shape == (1, 12)
        assert C.sum() == pytest.approx(1.0)

    def test_no_factors(self):
        np.testing.assert_array_equal(grand_mean_between([]), [[1.0]])


class TestTrendBetween:

    def test_linear(self):
        C = trend_between(FactorMapping("a", TrendType.LINEAR), [_factor("a", 3)])
        np.testing.assert_allclose(C, [[-1 / np.sqrt(2), 0.0, 1 / np.sqrt(2)]], atol=1e-12)

    def test_none_equals_main_effect(self):
        factors = [_factor("a", 3), _factor("b", 2)]
        np.testing.assert_allclose(
            trend_between(FactorMapping("a", TrendType.NONE), factors),
            main_effect_between("a", factors),
        )

    def test_averaged_over_other_factor(self):
        factors = [_factor("a", 2), _factor("b", 4)]
        C = trend_between(FactorMapping("b", TrendType.QUADRATIC), factors)
        expected = np.kron(np.full((1, 2), 0.5), trend_contrast(np.arange(4.0), TrendType.QUADRATIC).T)
        np.testing.assert_allclose(C, expected, atol=1e-12)

    @pytest.mark.parametrize("trend", [TrendType.NONE, TrendType.LINEAR])
    def test_single_level_is_grand_mean(self, trend):
        factors = [_factor("a", 1), _factor("b", 2)]
        C = trend_between(FactorMapping("a", trend), factors)
        np.testing.assert_allclose(C, [[0.5, 0.5]])

    def test_plain_string_trend(self):
        factors = [_factor("a", 3)]
        np.testing.assert_allclose(
            trend_between(FactorMapping("a", "linear"), factors),
            trend_between(FactorMapping("a", TrendType.LINEAR), factors),
        )


# ═══════════════════════════════════════════════════════════════════════
# Trend selection
# ═══════════════════════════════════════════════════════════════════════


class TestTrendContrast:

    def test_none(self):
        np.testing.assert_array_equal(
            trend_contrast([0, 1, 2], TrendType.NONE), [[1, 1], [-1, 0], [0, -1]]
        )

    def test_change_from_baseline(self):
        np.testing.assert_array_equal(
            trend_contrast([0, 1, 2, 3], TrendType.CHANGE_FROM_BASELINE),
            [[1], [0], [0], [-1]],
        )

    def test_all_polynomial_includes_constant(self):
        T = trend_contrast([0, 1, 2, 3], TrendType.ALL_POLYNOMIAL)
        assert T.shape == (4, 4)
        np.testing.assert_allclose(T[:, 0], 0.5)

    def test_all_nonconstant(self):
        T = trend_contrast([0, 1, 2, 3], TrendType.ALL_NONCONSTANT_POLYNOMIAL)
        assert T.shape == (4, 3)
        np.testing.assert_allclose(T.sum(axis=0), 0.0, atol=1e-12)

    @pytest.mark.parametrize("trend, column", [
        (TrendType.LINEAR, 1), (TrendType.QUADRATIC, 2), (TrendType.CUBIC, 3),
    ])
    def test_single_degree(self, trend, column):
        full = trend_contrast([0, 1, 2, 3, 4], TrendType.ALL_POLYNOMIAL)
        np.testing.assert_allclose(trend_contrast([0, 1, 2, 3, 4], trend), full[:, column:column + 1])

    def test_degree_beyond_levels(self):
        with pytest.raises(UnsupportedHypothesisError) as exc_info:
            trend_contrast([0, 1, 2], TrendType.CUBIC)
        assert exc_info.value.trend == "cubic"

    def test_degree_beyond_levels_plain_string(self):
        with pytest.raises(UnsupportedHypothesisError, match="cubic") as exc_info:
            trend_contrast([0, 1, 2], "cubic")
        assert exc_info.value.trend == "cubic"

    def test_unknown_trend(self):
        with pytest.raises(UnsupportedHypothesisError):
            trend_contrast([0, 1, 2], "sideways")


# ═══════════════════════════════════════════════════════════════════════
# Within-participant contrasts
# ═══════════════════════════════════════════════════════════════════════


class TestWithin:

    def test_main_effect_is_transposed_component(self):
        U = main_effect_within("time", [_node("time", 3)], 1)
        np.testing.assert_array_equal(U, effect_component(3).T)

    def test_main_effect_averages_other_dimension(self):
        U = main_effect_within("time", [_node("arm", 2), _node("time", 3)], 1)
        expected = np.kron(np.full((2, 1), 0.5), effect_component(3).T)
        np.testing.assert_allclose(U, expected)

    def test_multiple_responses_use_identity(self):
        U = main_effect_within("time", [_node("time", 3)], 2)
        np.testing.assert_array_equal(U, np.kron(effect_component(3).T, np.eye(2)))
        assert U.shape == (6, 4)

    def test_trend_uses_node_spacing(self):
        node = _node("time", 3, spacing=(1.0, 2.0, 10.0))
        U = trend_within(FactorMapping("time", TrendType.LINEAR), [node], 1)
        np.testing.assert_allclose(U, trend_contrast([1.0, 2.0, 10.0], TrendType.LINEAR))

    def test_trend_single_level_is_grand_mean(self):
        nodes = [_node("time", 1), _node("arm", 2)]
        U = trend_within(FactorMapping("time", TrendType.QUADRATIC), nodes, 1)
        np.testing.assert_allclose(U, grand_mean_within(nodes, 1))
        np.testing.assert_allclose(U, [[0.5], [0.5]])

    def test_grand_mean_sums_to_one(self):
        U = grand_mean_within([_node("time", 3), _node("arm", 2)], 2)
        assert U.shape == (12, 1)
        assert U.sum() == pytest.approx(1.0)

    def test_grand_mean_no_dimensions(self):
        np.testing.assert_array_equal(grand_mean_within([], 1), [[1.0]])


# ═══════════════════════════════════════════════════════════════════════
# Dispatch
# ═══════════════════════════════════════════════════════════════════════


class TestDispatch:

    def test_no_hypothesis_is_grand_mean(self):
        factors = [_factor("a", 3)]
        np.testing.assert_allclose(between_contrast(None, factors), grand_mean_between(factors))

    def test_no_within_mapping_is_grand_mean(self):
        nodes = [_node("time", 3)]
        hypothesis = Hypothesis(HypothesisType.MAIN_EFFECT, between_mappings=(FactorMapping("a"),))
        np.testing.assert_allclose(within_contrast(hypothesis, nodes, 1), grand_mean_within(nodes, 1))

    def test_first_mapping_used(self):
        factors = [_factor("a", 2), _factor("b", 3)]
        hypothesis = Hypothesis(
            HypothesisType.MAIN_EFFECT,
            between_mappings=(FactorMapping("b"), FactorMapping("a")),
        )
        np.testing.assert_allclose(
            between_contrast(hypothesis, factors), main_effect_between("b", factors)
        )

    def test_interaction_falls_back_to_grand_mean(self):
        factors = [_factor("a", 2), _factor("b", 3)]
        mappings = (FactorMapping("a"), FactorMapping("b"))
        np.testing.assert_allclose(interaction_between(mappings, factors), grand_mean_between(factors))
        hypothesis = Hypothesis(HypothesisType.INTERACTION, between_mappings=mappings)
        np.testing.assert_allclose(between_contrast(hypothesis, factors), grand_mean_between(factors))

    def test_unknown_hypothesis_type(self):
        hypothesis = Hypothesis("bogus", between_mappings=(FactorMapping("a"),))
        with pytest.raises(UnsupportedHypothesisError):
            between_contrast(hypothesis, [_factor("a", 2)])


# ═══════════════════════════════════════════════════════════════════════
# Cluster expansion
# ═══════════════════════════════════════════════════════════════════════


class TestExpandForClusters:

    def test_equals_kron_with_ones_column(self):
        U = np.array([[1.0, 0.5], [-1.0, 0.25], [0.0, 2.0]])
        np.testing.assert_array_equal(expand_for_clusters(U, 4), np.kron(np.ones((4, 1)), U))

    def test_no_clusters(self):
        U = np.array([[1.0]])
        assert expand_for_clusters(U, 1) is U
