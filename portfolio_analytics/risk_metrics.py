"""Risk metric calculations over a realized or simulated return series."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Sequence

import numpy as np

from portfolio_analytics.config import DEFAULT_CONFIG, AnalyticsConfig
from portfolio_analytics.exceptions import InvalidArgumentError
from portfolio_analytics.portfolio import Asset, aggregate, sharpe_ratio

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DistributionFit:
    """Moments of a return series and a rough normality verdict."""

    mean: float
    std: float
    skewness: float
    kurtosis: float  # excess kurtosis
    is_normal: bool


@dataclass(frozen=True)
class RiskMetrics:
    """Immutable container for all computed risk metrics.

    ``var95`` and ``cvar95`` are loss magnitudes and never negative.
    """

    portfolio_return: float
    portfolio_volatility: float
    sharpe_ratio: float
    var95: float
    cvar95: float
    max_drawdown: float
    beta: float
    skewness: float
    kurtosis: float
    volatility: float

    def to_dict(self) -> dict:
        return {
            "Portfolio_Return": round(self.portfolio_return, 4),
            "Portfolio_Volatility": round(self.portfolio_volatility, 4),
            "Sharpe_Ratio": round(self.sharpe_ratio, 4),
            "VaR_95": round(self.var95, 4),
            "CVaR_95": round(self.cvar95, 4),
            "Max_Drawdown": round(self.max_drawdown, 4),
            "Beta": round(self.beta, 4),
            "Skewness": round(self.skewness, 4),
            "Kurtosis": round(self.kurtosis, 4),
            "Volatility": round(self.volatility, 4),
        }


def fit_distribution(returns: Sequence[float] | np.ndarray) -> DistributionFit:
    """
    Summarize a return series by its first four moments.

    The standard deviation is the sample (n - 1) estimate; skewness and
    kurtosis are population averages of standardized deviations, kurtosis
    reported in excess of the normal's 3. A series is called normal when
    ``|skew| < 0.5`` and ``|kurtosis| < 1``.
    """
    r = np.asarray(returns, dtype=float)
    if r.size == 0:
        raise InvalidArgumentError("Return series is empty")

    with np.errstate(divide="ignore", invalid="ignore"):
        mean = float(np.mean(r))
        std = float(np.std(r, ddof=1)) if r.size > 1 else math.nan
        z = (r - mean) / std
        skewness = float(np.mean(z**3))
        kurtosis = float(np.mean(z**4) - 3)

    return DistributionFit(
        mean=mean,
        std=std,
        skewness=skewness,
        kurtosis=kurtosis,
        is_normal=bool(abs(skewness) < 0.5 and abs(kurtosis) < 1),
    )


class RiskCalculator:
    """Compute tail, drawdown and market-sensitivity metrics for a series."""

    def __init__(
        self,
        assets: Sequence[Asset],
        returns: Sequence[float] | np.ndarray,
        market_returns: Sequence[float] | np.ndarray | None = None,
        config: AnalyticsConfig = DEFAULT_CONFIG,
    ) -> None:
        """
        Args:
            assets: Holdings, aggregated for the portfolio return/volatility.
            returns: Periodic portfolio returns, realized or synthetic.
            market_returns: Optional market returns aligned with ``returns``.
            config: Risk-free rate and other constants.
        """
        self._returns = np.asarray(returns, dtype=float)
        if self._returns.size == 0:
            raise InvalidArgumentError("Return series is empty")

        self.summary = aggregate(assets)
        self.market = (
            np.asarray(market_returns, dtype=float) if market_returns is not None else None
        )
        self.config = config
        self._sorted = np.sort(self._returns)

    # ------------------------------------------------------------------
    # Value at Risk
    # ------------------------------------------------------------------

    @property
    def tail_index(self) -> int:
        return math.floor(0.05 * len(self._sorted))

    def var_95(self) -> float:
        """Historical 95% VaR as a loss magnitude."""
        return float(abs(self._sorted[self.tail_index]))

    def cvar_95(self) -> float:
        """Mean of the returns ranked strictly below the VaR index, as a magnitude.

        With fewer than 20 observations the tail is empty; the VaR
        observation itself then stands in for the tail.
        """
        idx = self.tail_index
        if idx == 0:
            logger.debug("Return series too short for a CVaR tail; using VaR")
            return self.var_95()
        return float(abs(np.mean(self._sorted[:idx])))

    # ------------------------------------------------------------------
    # Drawdown
    # ------------------------------------------------------------------

    def max_drawdown(self) -> float:
        """
        Largest relative fall below the running maximum of the series.

        The running maximum is taken over the returns themselves, not over a
        compounded wealth curve, so this differs from the textbook
        peak-to-trough drawdown of an equity curve. A zero or negative running
        maximum produces inf/NaN, which is reported as-is.
        """
        r = self._returns
        if r.size < 2:
            return 0.0
        running_max = np.maximum.accumulate(r)
        with np.errstate(divide="ignore", invalid="ignore"):
            drawdowns = (running_max[1:] - r[1:]) / running_max[1:]
        return float(np.maximum(0.0, np.max(drawdowns)))

    # ------------------------------------------------------------------
    # Beta
    # ------------------------------------------------------------------

    def beta(self) -> float:
        """Portfolio beta relative to the market series, 1.0 without one."""
        if self.market is None:
            return 1.0
        if len(self.market) != len(self._returns):
            logger.warning(
                "Market series length %d differs from return series length %d; "
                "defaulting beta to 1.0",
                len(self.market),
                len(self._returns),
            )
            return 1.0
        with np.errstate(divide="ignore", invalid="ignore"):
            cov = np.cov(self._returns, self.market)
            return float(cov[0, 1] / cov[1, 1])

    # ------------------------------------------------------------------
    # Full report
    # ------------------------------------------------------------------

    def distribution(self) -> DistributionFit:
        return fit_distribution(self._returns)

    def compute_all(self) -> RiskMetrics:
        """Compute all risk metrics and return a RiskMetrics."""
        fit = self.distribution()
        return RiskMetrics(
            portfolio_return=self.summary.expected_return,
            portfolio_volatility=self.summary.volatility,
            sharpe_ratio=sharpe_ratio(
                self.summary.expected_return,
                self.summary.volatility,
                self.config.risk_free_rate,
            ),
            var95=self.var_95(),
            cvar95=self.cvar_95(),
            max_drawdown=self.max_drawdown(),
            beta=self.beta(),
            skewness=fit.skewness,
            kurtosis=fit.kurtosis,
            volatility=fit.std,
        )


def risk_metrics(
    assets: Sequence[Asset],
    returns: Sequence[float] | np.ndarray,
    market_returns: Sequence[float] | np.ndarray | None = None,
    config: AnalyticsConfig = DEFAULT_CONFIG,
) -> RiskMetrics:
    """Compute the risk metrics of ``returns`` for the given portfolio."""
    return RiskCalculator(assets, returns, market_returns, config).compute_all()
