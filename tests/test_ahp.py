"""Tests for the AHP weighting module."""

import numpy as np
import pytest

from portfolio_analytics.ahp import ahp_weights, consistent_matrix
from portfolio_analytics.exceptions import InvalidArgumentError

CRITERIA = ["return", "volatility", "sharpe"]


def test_consistent_matrix_recovers_weights():
    true_weights = [0.5, 0.3, 0.2]
    result = ahp_weights(CRITERIA, consistent_matrix(true_weights))
    np.testing.assert_allclose(result.weights, true_weights, atol=1e-4)
    assert result.consistency_ratio == pytest.approx(0.0, abs=1e-6)
    assert result.is_consistent
    assert not result.is_degraded


def test_four_criteria_consistent_matrix():
    true_weights = [0.4, 0.3, 0.2, 0.1]
    result = ahp_weights(CRITERIA + ["price"], consistent_matrix(true_weights))
    np.testing.assert_allclose(result.weights, true_weights, atol=1e-4)
    assert result.lambda_max == pytest.approx(4.0, abs=1e-6)


def test_weights_sum_to_one():
    matrix = [[1, 3, 5], [1 / 3, 1, 2], [1 / 5, 1 / 2, 1]]
    result = ahp_weights(CRITERIA, matrix)
    assert result.weights.sum() == pytest.approx(1.0)
    assert result.weights[0] > result.weights[1] > result.weights[2]
    assert result.iterations <= 100


def test_inconsistent_matrix_flagged():
    matrix = [[1, 9, 1 / 9], [1 / 9, 1, 9], [9, 1 / 9, 1]]
    result = ahp_weights(CRITERIA, matrix)
    assert result.consistency_ratio > 0.1
    assert not result.is_consistent


def test_consistent_matrix_helper():
    m = consistent_matrix([0.6, 0.4])
    np.testing.assert_allclose(m, [[1.0, 1.5], [1 / 1.5, 1.0]])


def test_two_criteria_reciprocal_matrix_is_consistent():
    result = ahp_weights(["a", "b"], [[1, 4], [1 / 4, 1]])
    np.testing.assert_allclose(result.weights, [0.8, 0.2], atol=1e-6)
    assert result.consistency_ratio == pytest.approx(0.0, abs=1e-9)


def test_single_criterion():
    result = ahp_weights(["only"], [[1.0]])
    np.testing.assert_allclose(result.weights, [1.0])
    assert result.consistency_ratio == 0.0


def test_shape_mismatch_falls_back_to_uniform():
    result = ahp_weights(CRITERIA, [[1, 2], [0.5, 1]])
    np.testing.assert_allclose(result.weights, [1 / 3, 1 / 3, 1 / 3])
    assert result.consistency_ratio == 0.0
    assert result.is_degraded
    assert "shape" in result.fallback_reason


def test_ragged_matrix_falls_back_to_uniform():
    result = ahp_weights(CRITERIA, [[1, 2, 3], [0.5, 1], [1 / 3, 0.5, 1]])
    assert result.is_degraded
    np.testing.assert_allclose(result.weights, [1 / 3, 1 / 3, 1 / 3])


def test_empty_criteria_raise():
    with pytest.raises(InvalidArgumentError):
        ahp_weights([], [])


def test_as_dict():
    result = ahp_weights(CRITERIA, consistent_matrix([0.5, 0.3, 0.2]))
    d = result.as_dict()
    assert list(d) == CRITERIA
    assert d["return"] == pytest.approx(0.5, abs=1e-4)
