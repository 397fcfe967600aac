"""Immutable analytics configuration shared by all engines."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class AnalyticsConfig:
    """Constants every engine reads instead of module-level globals.

    Attributes:
        risk_free_rate: Annual risk-free rate used in Sharpe ratios.
        trading_days: Trading days per year (annualization convention).
        random_index: AHP random-consistency index, looked up by matrix order.
            Orders beyond the table use the last entry.
        ahp_max_iterations: Power-iteration cap.
        ahp_tolerance: L1 convergence threshold between successive iterates.
        projection_years: Horizons of the multi-period projection.
        batch_size: Simulation paths per worker batch.
        max_workers: Thread-pool size; ``None`` lets the executor decide.
        weight_tolerance: Allowed deviation of TOPSIS weights from 1.
    """

    risk_free_rate: float = 0.02
    trading_days: int = 252
    random_index: tuple[float, ...] = (0.0, 0.0, 0.58, 0.9, 1.12, 1.24, 1.32, 1.41)
    ahp_max_iterations: int = 100
    ahp_tolerance: float = 1e-6
    projection_years: tuple[int, ...] = (1, 3, 5, 10, 15, 20)
    batch_size: int = 2_500
    max_workers: int | None = None
    weight_tolerance: float = 1e-6

    def random_index_for(self, order: int) -> float:
        if order < len(self.random_index):
            return self.random_index[order]
        return self.random_index[-1]


DEFAULT_CONFIG = AnalyticsConfig()
