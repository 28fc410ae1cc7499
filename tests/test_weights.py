"""
Weight Normalizer Tests
=======================

Sum-to-100 invariant, rounding drift, zero-sum policy and the edit session
that edit surfaces use on every weight change.
"""

import pytest

from relationship_graph.contracts.base import LinkCategory
from relationship_graph.contracts.diagnostics import DiagnosticCode
from relationship_graph.core.weights import (
    WeightConfig, WeightEditSession, WeightNormalizer, ZeroSumPolicy,
    normalize, round_half_up, seed_equal_weights,
)
from relationship_graph.observability import DiagnosticsCollector


class TestNormalize:

    def test_rounding_residual_goes_to_first_key(self):
        """110 total -> 45/27/27 (99) -> +1 on p1."""
        result = normalize({"p1": 50, "p2": 30, "p3": 30})

        assert result == {"p1": 46, "p2": 27, "p3": 27}
        assert sum(result.values()) == 100

    def test_empty_is_noop(self):
        assert normalize({}) == {}

    def test_already_balanced_is_unchanged(self):
        weights = {"a": 60, "b": 40}
        result = normalize(weights)

        assert result == weights
        assert result is not weights

    def test_input_not_mutated(self):
        weights = {"a": 1, "b": 1, "c": 1}
        normalize(weights)
        assert weights == {"a": 1, "b": 1, "c": 1}

    def test_scales_down_and_up(self):
        assert normalize({"a": 1, "b": 3}) == {"a": 25, "b": 75}
        assert normalize({"a": 100, "b": 300}) == {"a": 25, "b": 75}

    def test_thirds(self):
        """33.33 rounds to 33 three times; the missing 1 lands on the first key."""
        assert normalize({"x": 10, "y": 10, "z": 10}) == {"x": 34, "y": 33, "z": 33}

    def test_zero_sum_left_as_is_by_default(self):
        assert normalize({"a": 0, "b": 0}) == {"a": 0, "b": 0}

    def test_zero_sum_distribute_evenly(self):
        result = normalize({"a": 0, "b": 0, "c": 0}, ZeroSumPolicy.DISTRIBUTE_EVENLY)

        assert result == {"a": 34, "b": 33, "c": 33}

    def test_idempotent_on_example(self):
        once = normalize({"p1": 50, "p2": 30, "p3": 30})
        assert normalize(once) == once

    def test_single_entry_becomes_100(self):
        assert normalize({"only": 7}) == {"only": 100}

    def test_residual_can_push_first_key_negative(self):
        """150 equal weights round to 1 each (150); the -50 residual lands on the first key."""
        weights = {f"k{i}": 1 for i in range(150)}
        result = normalize(weights)

        assert result["k0"] == -49
        assert all(result[f"k{i}"] == 1 for i in range(1, 150))
        assert sum(result.values()) == 100


class TestRoundHalfUp:

    def test_half_rounds_up(self):
        assert round_half_up(2.5) == 3
        assert round_half_up(0.5) == 1
        # Python's round() would give 2 here
        assert round(2.5) == 2

    def test_below_half_rounds_down(self):
        assert round_half_up(45.45) == 45
        assert round_half_up(27.27) == 27


class TestSeedEqualWeights:

    def test_new_selection_gets_equal_share(self):
        assert seed_equal_weights(["a", "b", "c", "d"]) == {"a": 25, "b": 25, "c": 25, "d": 25}

    def test_existing_weights_kept_and_deselected_dropped(self):
        seeded = seed_equal_weights(["a", "b"], {"a": 70, "gone": 30})
        assert seeded == {"a": 70, "b": 50}

    def test_zero_existing_weight_is_reseeded(self):
        assert seed_equal_weights(["a", "b"], {"a": 0}) == {"a": 50, "b": 50}

    def test_empty_selection(self):
        assert seed_equal_weights([], {"a": 10}) == {}


class TestWeightNormalizer:

    def test_zero_sum_recorded(self):
        diagnostics = DiagnosticsCollector()
        normalizer = WeightNormalizer(diagnostics=diagnostics)

        result = normalizer.normalize({"a": 0}, anchor_id="goal-1")

        assert result == {"a": 0}
        entries = diagnostics.get_entries(code=DiagnosticCode.ZERO_SUM_WEIGHTS)
        assert len(entries) == 1
        assert entries[0].subject_id == "goal-1"

    def test_policy_from_config(self):
        normalizer = WeightNormalizer(WeightConfig(zero_sum_policy=ZeroSumPolicy.DISTRIBUTE_EVENLY))
        assert normalizer.normalize({"a": 0, "b": 0}) == {"a": 50, "b": 50}


class TestWeightEditSession:

    def _session(self, weights=None):
        return WeightEditSession("goal-1", LinkCategory.PROJECT_LINK, weights)

    def test_initial_weights_are_normalized(self):
        session = self._session({"p1": 50, "p2": 30, "p3": 30})
        assert session.weights == {"p1": 46, "p2": 27, "p3": 27}
        assert session.is_balanced

    def test_select_seeds_and_normalizes(self):
        session = self._session()
        assert session.select(["p1", "p2"]) == {"p1": 50, "p2": 50}

        # p3 joins with 100/3, then everything is rescaled
        weights = session.select(["p1", "p2", "p3"])
        assert sum(weights.values()) == 100
        assert list(weights) == ["p1", "p2", "p3"]

    def test_set_weight_renormalizes(self):
        session = self._session({"p1": 50, "p2": 50})
        weights = session.set_weight("p1", 80)

        # 80/130 -> 62, 50/130 -> 38
        assert weights == {"p1": 62, "p2": 38}
        assert session.total == 100

    def test_remove_rebalances(self):
        session = self._session({"p1": 60, "p2": 40})
        assert session.remove("p1") == {"p2": 100}

    def test_negative_weight_rejected(self):
        session = self._session({"p1": 100})
        with pytest.raises(ValueError):
            session.set_weight("p1", -5)

    def test_non_numeric_weight_rejected(self):
        with pytest.raises(ValueError):
            self._session({"p1": "heavy"})

    @pytest.mark.parametrize("weight", [float("nan"), float("inf"), float("-inf")])
    def test_non_finite_weight_rejected(self, weight):
        session = self._session({"p1": 100})
        with pytest.raises(ValueError):
            session.set_weight("p1", weight)

    def test_links_follow_weight_order(self):
        session = self._session({"p1": 70, "p2": 30})
        links = session.links()
        assert [l.node_id for l in links] == ["p1", "p2"]
        assert [l.weight for l in links] == [70, 30]

    def test_weights_property_is_a_copy(self):
        session = self._session({"p1": 100})
        session.weights["p1"] = 1
        assert session.weights == {"p1": 100}
