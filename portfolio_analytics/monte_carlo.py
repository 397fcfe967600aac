"""Monte Carlo simulation engine for portfolio value projections."""

from __future__ import annotations

import logging
import math
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Sequence

import numpy as np

from portfolio_analytics.config import DEFAULT_CONFIG, AnalyticsConfig
from portfolio_analytics.exceptions import InvalidArgumentError, SimulationCancelledError
from portfolio_analytics.portfolio import Asset, aggregate, sharpe_ratio
from portfolio_analytics.sampling import NormalSampler

logger = logging.getLogger(__name__)

PERCENTILE_LEVELS = {"p5": 0.05, "p25": 0.25, "p50": 0.50, "p75": 0.75, "p95": 0.95}

# Upper bound on shocks drawn at once per batch (paths x days).
_MAX_BLOCK_ELEMENTS = 1_000_000


@dataclass(frozen=True)
class Percentiles:
    """Five-point summary of a sorted sample."""

    p5: float
    p25: float
    p50: float
    p75: float
    p95: float

    @classmethod
    def from_sorted(cls, sorted_values: np.ndarray) -> Percentiles:
        """
        Read the percentiles at index ``floor(q * n)`` of an ascending array.

        This is the simple nearest-rank estimator, not an interpolated one.
        """
        n = len(sorted_values)
        picks = {
            key: float(sorted_values[min(math.floor(q * n), n - 1)])
            for key, q in PERCENTILE_LEVELS.items()
        }
        return cls(**picks)

    def to_dict(self) -> dict[str, float]:
        return {"p5": self.p5, "p25": self.p25, "p50": self.p50, "p75": self.p75, "p95": self.p95}


@dataclass(frozen=True)
class Projection:
    """Outcome distribution at one fixed multi-year horizon."""

    period: str
    time_horizon_days: int
    percentiles: Percentiles
    total_return: Percentiles      # percent
    annualized_return: float       # percent, from the median path
    probability_of_loss: float     # percent

    def to_dict(self) -> dict:
        return {
            "period": self.period,
            "time_horizon_days": self.time_horizon_days,
            "percentiles": self.percentiles.to_dict(),
            "total_return": self.total_return.to_dict(),
            "annualized_return": self.annualized_return,
            "probability_of_loss": self.probability_of_loss,
        }


@dataclass(frozen=True)
class SimulationResult:
    """Container for Monte Carlo simulation outputs."""

    final_values: np.ndarray   # shape (simulation_count,), in path order
    returns: np.ndarray        # shape (simulation_count,)
    percentiles: Percentiles
    var95: float
    expected_return: float
    volatility: float
    sharpe_ratio: float
    time_horizon_days: int
    initial_value: float
    simulation_count: int
    multi_period_projections: tuple[Projection, ...] | None = None

    @property
    def mean_final_value(self) -> float:
        return float(np.mean(self.final_values))

    @property
    def median_final_value(self) -> float:
        return float(np.median(self.final_values))

    @property
    def std_final_value(self) -> float:
        return float(np.std(self.final_values))

    @property
    def probability_of_loss(self) -> float:
        """Percentage (0-100) of paths ending below the initial value."""
        return float(np.mean(self.final_values < self.initial_value) * 100)

    def to_dict(self) -> dict:
        return {
            "simulation_count": self.simulation_count,
            "time_horizon_days": self.time_horizon_days,
            "initial_value": self.initial_value,
            "expected_return": self.expected_return,
            "volatility": self.volatility,
            "sharpe_ratio": self.sharpe_ratio,
            "var95": self.var95,
            "mean_final_value": self.mean_final_value,
            "median_final_value": self.median_final_value,
            "probability_of_loss": self.probability_of_loss,
            "percentiles": self.percentiles.to_dict(),
            "multi_period_projections": (
                [p.to_dict() for p in self.multi_period_projections]
                if self.multi_period_projections is not None
                else None
            ),
        }


def _period_label(years: int) -> str:
    return f"{years} Year" if years == 1 else f"{years} Years"


def _simulate_batch(
    sampler: NormalSampler,
    n_paths: int,
    horizon: int,
    initial_value: float,
    daily_drift: float,
    daily_vol: float,
) -> np.ndarray:
    """Final values of ``n_paths`` independent multiplicative random walks."""
    values = np.full(n_paths, initial_value, dtype=float)
    block = max(1, min(horizon, _MAX_BLOCK_ELEMENTS // max(n_paths, 1)))
    remaining = horizon
    while remaining > 0:
        days = min(block, remaining)
        z = sampler.standard_normal((n_paths, days))
        growth = 1 + z * daily_vol + daily_drift
        values *= np.prod(growth, axis=1)
        remaining -= days
    return values


class MonteCarloEngine:
    """Geometric Brownian Motion Monte Carlo simulator for portfolio value."""

    def __init__(
        self,
        assets: Sequence[Asset],
        initial_value: float = 100_000,
        time_horizon_days: int = 252,
        simulation_count: int = 10_000,
        seed: int | None = None,
        config: AnalyticsConfig = DEFAULT_CONFIG,
        cancel_event: threading.Event | None = None,
    ) -> None:
        """
        Args:
            assets: Holdings to aggregate into a single drift/volatility pair.
            initial_value: Starting portfolio value, must be positive.
            time_horizon_days: Trading days to simulate forward.
            simulation_count: Number of independent paths.
            seed: Seed for the path generator; ``None`` draws fresh entropy.
            config: Annualization and batching constants.
            cancel_event: Optional event checked between path batches.
        """
        if initial_value <= 0:
            raise InvalidArgumentError(f"initial_value must be > 0, got {initial_value}")
        if time_horizon_days < 1:
            raise InvalidArgumentError(
                f"time_horizon_days must be >= 1, got {time_horizon_days}"
            )
        if simulation_count < 1:
            raise InvalidArgumentError(
                f"simulation_count must be >= 1, got {simulation_count}"
            )

        self.assets = tuple(assets)
        self.summary = aggregate(self.assets)
        self.initial_value = float(initial_value)
        self.time_horizon_days = time_horizon_days
        self.simulation_count = simulation_count
        self.config = config
        self.cancel_event = cancel_event
        self.sampler = NormalSampler(seed)

        td = config.trading_days
        self.daily_drift = self.summary.expected_return / td
        self.daily_vol = self.summary.volatility / math.sqrt(td)

    # ------------------------------------------------------------------
    # Core simulation
    # ------------------------------------------------------------------

    def simulate_final_values(self, horizon: int) -> np.ndarray:
        """
        Simulate every path over ``horizon`` days and return the final values.

        Paths are split into fixed-size batches, each with its own child
        sampler, and the batches run on a thread pool. The batch layout
        depends only on ``config.batch_size``, so a given seed produces the
        same values whatever the worker count.
        """
        batch_size = max(1, self.config.batch_size)
        sizes = [
            min(batch_size, self.simulation_count - start)
            for start in range(0, self.simulation_count, batch_size)
        ]
        samplers = self.sampler.spawn(len(sizes))

        def run_batch(job: tuple[NormalSampler, int]) -> np.ndarray:
            sampler, n_paths = job
            if self.cancel_event is not None and self.cancel_event.is_set():
                raise SimulationCancelledError("Monte Carlo simulation cancelled")
            return _simulate_batch(
                sampler, n_paths, horizon, self.initial_value, self.daily_drift, self.daily_vol
            )

        started = time.perf_counter()
        if len(sizes) == 1:
            batches = [run_batch((samplers[0], sizes[0]))]
        else:
            with ThreadPoolExecutor(max_workers=self.config.max_workers) as pool:
                batches = list(pool.map(run_batch, zip(samplers, sizes)))
        logger.debug(
            "Simulated %d paths x %d days in %d batches (%.3fs)",
            self.simulation_count,
            horizon,
            len(sizes),
            time.perf_counter() - started,
        )
        return np.concatenate(batches)

    def run(self, include_multi_period: bool = True) -> SimulationResult:
        """
        Run the simulation over ``time_horizon_days``.

        Steps:
            1. Convert the annualized portfolio drift/volatility to daily.
            2. Compound ``1 + z * daily_vol + daily_drift`` along each path.
            3. Sort final values and returns, read off the percentiles.
            4. Optionally project the fixed multi-year horizons.
        """
        logger.debug(
            "Running %d simulations over %d days from %.2f",
            self.simulation_count,
            self.time_horizon_days,
            self.initial_value,
        )
        final_values = self.simulate_final_values(self.time_horizon_days)
        returns = (final_values - self.initial_value) / self.initial_value

        sorted_values = np.sort(final_values)
        percentiles = Percentiles.from_sorted(sorted_values)
        var95 = abs((percentiles.p5 - self.initial_value) / self.initial_value)

        expected_return = self.summary.expected_return
        volatility = self.summary.volatility
        sharpe = sharpe_ratio(expected_return, volatility, self.config.risk_free_rate)

        projections = self.multi_period() if include_multi_period else None

        return SimulationResult(
            final_values=final_values,
            returns=returns,
            percentiles=percentiles,
            var95=var95,
            expected_return=expected_return,
            volatility=volatility,
            sharpe_ratio=sharpe,
            time_horizon_days=self.time_horizon_days,
            initial_value=self.initial_value,
            simulation_count=self.simulation_count,
            multi_period_projections=projections,
        )

    # ------------------------------------------------------------------
    # Multi-period projections
    # ------------------------------------------------------------------

    def project(self, years: int) -> Projection:
        """Run an independent batch of simulations over ``years`` years."""
        if years < 1:
            raise InvalidArgumentError(f"Projection horizon must be >= 1 year, got {years}")
        days = years * self.config.trading_days
        final_values = self.simulate_final_values(days)
        sorted_values = np.sort(final_values)
        percentiles = Percentiles.from_sorted(sorted_values)

        total_return = Percentiles(
            **{
                key: (value - self.initial_value) / self.initial_value * 100
                for key, value in percentiles.to_dict().items()
            }
        )
        with np.errstate(divide="ignore", invalid="ignore"):
            growth = np.float64(percentiles.p50 / self.initial_value)
            annualized = float((np.power(growth, 1.0 / years) - 1) * 100)
        loss_count = int(np.sum(final_values < self.initial_value))

        return Projection(
            period=_period_label(years),
            time_horizon_days=days,
            percentiles=percentiles,
            total_return=total_return,
            annualized_return=annualized,
            probability_of_loss=loss_count / self.simulation_count * 100,
        )

    def multi_period(self) -> tuple[Projection, ...]:
        return tuple(self.project(years) for years in self.config.projection_years)


def simulate(
    assets: Sequence[Asset],
    initial_value: float = 100_000,
    time_horizon_days: int = 252,
    simulation_count: int = 10_000,
    include_multi_period: bool = True,
    seed: int | None = None,
    config: AnalyticsConfig = DEFAULT_CONFIG,
    cancel_event: threading.Event | None = None,
) -> SimulationResult:
    """Simulate portfolio value paths and summarize their distribution."""
    engine = MonteCarloEngine(
        assets,
        initial_value=initial_value,
        time_horizon_days=time_horizon_days,
        simulation_count=simulation_count,
        seed=seed,
        config=config,
        cancel_event=cancel_event,
    )
    return engine.run(include_multi_period=include_multi_period)
