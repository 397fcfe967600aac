"""Analytic Hierarchy Process weighting of decision criteria."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

import numpy as np

from portfolio_analytics.config import DEFAULT_CONFIG, AnalyticsConfig
from portfolio_analytics.exceptions import InvalidArgumentError

logger = logging.getLogger(__name__)

CONSISTENCY_THRESHOLD = 0.1


@dataclass(frozen=True)
class AHPResult:
    """Criterion weights derived from a pairwise-comparison matrix.

    When the matrix could not be processed, ``weights`` is uniform,
    ``consistency_ratio`` is 0 and ``fallback_reason`` says why.
    """

    criteria: tuple[str, ...]
    weights: np.ndarray
    consistency_ratio: float
    lambda_max: float
    consistency_index: float
    iterations: int
    fallback_reason: str | None = None

    @property
    def is_degraded(self) -> bool:
        return self.fallback_reason is not None

    @property
    def is_consistent(self) -> bool:
        """Saaty's rule of thumb: a ratio above 0.1 means revisit the judgements."""
        return self.consistency_ratio <= CONSISTENCY_THRESHOLD

    def as_dict(self) -> dict[str, float]:
        return dict(zip(self.criteria, self.weights.tolist()))


def consistent_matrix(weights: Sequence[float]) -> np.ndarray:
    """Perfectly consistent pairwise matrix ``a[i][j] = w_i / w_j``."""
    w = np.asarray(weights, dtype=float)
    return w[:, None] / w[None, :]


def _power_iteration(
    matrix: np.ndarray,
    max_iterations: int,
    tolerance: float,
) -> tuple[np.ndarray, int]:
    n = matrix.shape[0]
    weights = np.full(n, 1.0 / n)
    iterations = 0
    for iterations in range(1, max_iterations + 1):
        new_weights = matrix @ weights
        new_weights = new_weights / new_weights.sum()
        diff = float(np.abs(weights - new_weights).sum())
        weights = new_weights
        if diff < tolerance:
            break
    return weights, iterations


def ahp_weights(
    criteria_names: Sequence[str],
    pairwise_matrix: Sequence[Sequence[float]] | np.ndarray,
    config: AnalyticsConfig = DEFAULT_CONFIG,
) -> AHPResult:
    """
    Derive normalized criterion weights by power iteration.

    Args:
        criteria_names: Names of the n criteria.
        pairwise_matrix: n x n reciprocal comparison matrix. Reciprocity is
            expected but not checked.
        config: Iteration cap, tolerance and random-index table.

    Returns:
        AHPResult. A matrix that does not fit the criteria yields uniform
        weights tagged with a ``fallback_reason`` instead of an exception.
    """
    names = tuple(criteria_names)
    n = len(names)
    if n == 0:
        raise InvalidArgumentError("At least one criterion is required")

    try:
        matrix = np.asarray(pairwise_matrix, dtype=float)
        if matrix.shape != (n, n):
            raise ValueError(
                f"pairwise matrix has shape {matrix.shape}, expected ({n}, {n})"
            )

        with np.errstate(divide="ignore", invalid="ignore"):
            weights, iterations = _power_iteration(
                matrix, config.ahp_max_iterations, config.ahp_tolerance
            )
            lambda_max = float(np.mean((matrix @ weights) / weights))
            if n == 1:
                ci = 0.0
            else:
                ci = (lambda_max - n) / (n - 1)
            ri = config.random_index_for(n)
            # A zero random index only occurs for orders that are always consistent.
            cr = ci / ri if ri else 0.0
    except (ValueError, TypeError) as exc:
        logger.warning("AHP calculation failed, using uniform weights: %s", exc)
        return AHPResult(
            criteria=names,
            weights=np.full(n, 1.0 / n),
            consistency_ratio=0.0,
            lambda_max=float(n),
            consistency_index=0.0,
            iterations=0,
            fallback_reason=str(exc),
        )

    logger.debug(
        "AHP converged in %d iterations: lambda_max=%.6f CR=%.6f", iterations, lambda_max, cr
    )
    return AHPResult(
        criteria=names,
        weights=weights,
        consistency_ratio=float(cr),
        lambda_max=lambda_max,
        consistency_index=float(ci),
        iterations=iterations,
    )
