"""Tests for group decision helpers."""

import pytest
import numpy as np

from driver_ranking.ranking.aggregation import aggregate_matrices, average_global_weights
from driver_ranking.ranking.ahp_calculator import AHPCalculator
from driver_ranking.ranking.exceptions import ValidationError
from driver_ranking.ranking.schemas import ComparisonMatrix


class TestAverageGlobalWeights:
    """Test suite for averaging evaluators' global weights."""

    def test_average(self):
        evaluations = [
            {"a": 0.6, "b": 0.4},
            {"a": 0.2, "b": 0.8},
        ]

        averaged = average_global_weights(evaluations, ["a", "b"])

        assert averaged == pytest.approx({"a": 0.4, "b": 0.6})

    def test_unweighted_leaf_does_not_pull_average_down(self):
        """Test that the mean runs over evaluations with a positive weight only."""
        evaluations = [
            {"a": 0.5, "b": 0.5},
            {"a": 1.0},
        ]

        averaged = average_global_weights(evaluations, ["a", "b"])

        # Means 0.75 and 0.5, renormalized
        assert averaged == pytest.approx({"a": 0.6, "b": 0.4})
        assert np.isclose(sum(averaged.values()), 1.0)

    def test_leaf_without_weight_left_out(self):
        averaged = average_global_weights([{"a": 1.0}], ["a", "b"])

        assert averaged == {"a": 1.0}

    def test_no_evaluations(self):
        with pytest.raises(ValidationError):
            average_global_weights([], ["a"])

    def test_no_positive_weights(self):
        with pytest.raises(ValidationError):
            average_global_weights([{"a": 0.0}], ["a"])


class TestAggregateMatrices:
    """Test suite for geometric-mean aggregation of judgments."""

    def test_geometric_mean(self):
        matrices = [
            ComparisonMatrix.model_validate([[1, 2], [0.5, 1]]),
            ComparisonMatrix.model_validate([[1, 8], [0.125, 1]]),
        ]

        aggregated = aggregate_matrices(matrices)

        assert aggregated.value(0, 1) == pytest.approx(4.0)
        assert aggregated.value(1, 0) == pytest.approx(0.25)

    def test_result_is_reciprocal_and_solvable(self):
        matrices = [
            ComparisonMatrix.model_validate([[1, 3, 5], [1 / 3, 1, 2], [1 / 5, 1 / 2, 1]]),
            ComparisonMatrix.model_validate([[1, 1, 3], [1, 1, 4], [1 / 3, 1 / 4, 1]]),
            ComparisonMatrix.model_validate([[1, 5, 7], [1 / 5, 1, 1], [1 / 7, 1, 1]]),
        ]

        aggregated = aggregate_matrices(matrices)
        result = AHPCalculator().solve_matrix(aggregated)

        array = aggregated.to_array()
        assert np.allclose(array * array.T, 1.0)
        assert np.isclose(sum(result.weights), 1.0)

    def test_single_matrix_unchanged(self):
        matrix = ComparisonMatrix.model_validate([[1, 3], [1 / 3, 1]])

        aggregated = aggregate_matrices([matrix])

        assert np.allclose(aggregated.to_array(), matrix.to_array())

    def test_size_mismatch(self):
        with pytest.raises(ValidationError):
            aggregate_matrices([
                ComparisonMatrix.model_validate(np.ones((2, 2))),
                ComparisonMatrix.model_validate(np.ones((3, 3))),
            ])

    def test_incomplete_matrix(self):
        with pytest.raises(ValidationError):
            aggregate_matrices([ComparisonMatrix.empty(3)])

    def test_no_matrices(self):
        with pytest.raises(ValidationError):
            aggregate_matrices([])
