"""Asset definitions and portfolio aggregation."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, replace
from typing import Iterable, Sequence

import numpy as np
import pandas as pd

from portfolio_analytics.config import DEFAULT_CONFIG, AnalyticsConfig
from portfolio_analytics.exceptions import InvalidArgumentError
from portfolio_analytics.sampling import NormalSampler

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Asset:
    """A single holding as supplied by the caller.

    ``weight`` is in percentage points and need not sum to 100 across the
    portfolio. ``expected_return`` and ``volatility`` are annualized decimals.
    """

    symbol: str
    weight: float
    expected_return: float
    volatility: float
    price: float
    name: str = ""


@dataclass(frozen=True)
class PortfolioSummary:
    """Weight-normalized expected return and volatility of a portfolio."""

    expected_return: float
    volatility: float
    total_weight: float

    @property
    def is_degenerate(self) -> bool:
        """True when the weights sum to zero and the summary is meaningless."""
        return self.total_weight == 0


def sharpe_ratio(
    expected_return: float,
    volatility: float,
    risk_free_rate: float = DEFAULT_CONFIG.risk_free_rate,
) -> float:
    """Excess return per unit of volatility; inf or NaN when volatility is 0."""
    with np.errstate(divide="ignore", invalid="ignore"):
        return float(np.float64(expected_return - risk_free_rate) / np.float64(volatility))


def validate_assets(assets: Sequence[Asset]) -> None:
    """Reject asset lists no engine can work with."""
    if len(assets) == 0:
        raise InvalidArgumentError("Asset list is empty")
    seen: set[str] = set()
    for asset in assets:
        if not asset.symbol or not asset.symbol.strip():
            raise InvalidArgumentError("Asset symbol must be non-empty")
        if asset.symbol in seen:
            raise InvalidArgumentError(f"Duplicate asset symbol: {asset.symbol}")
        seen.add(asset.symbol)
        if asset.volatility < 0:
            raise InvalidArgumentError(
                f"Volatility of {asset.symbol} must be >= 0, got {asset.volatility}"
            )
        if asset.price < 0:
            raise InvalidArgumentError(
                f"Price of {asset.symbol} must be >= 0, got {asset.price}"
            )


def aggregate(
    assets: Sequence[Asset],
    covariance: np.ndarray | None = None,
) -> PortfolioSummary:
    """
    Reduce weighted assets to a single expected return / volatility pair.

    Args:
        assets: Non-empty list of assets.
        covariance: Optional annualized covariance matrix (n x n). When
            omitted the assets are treated as independent, i.e. the diagonal
            matrix of squared volatilities. Independence understates risk for
            positively correlated holdings.

    Returns:
        PortfolioSummary. A zero total weight yields a zero summary flagged
        as degenerate rather than a division error.
    """
    validate_assets(assets)

    raw = np.array([a.weight for a in assets], dtype=float)
    total = float(raw.sum())
    if total == 0:
        logger.warning("Portfolio weights sum to zero; summary is degenerate")
        return PortfolioSummary(expected_return=0.0, volatility=0.0, total_weight=0.0)

    weights = raw / total
    returns = np.array([a.expected_return for a in assets], dtype=float)
    expected_return = float(np.sum(weights * returns))

    if covariance is None:
        vols = np.array([a.volatility for a in assets], dtype=float)
        variance = float(np.sum(weights**2 * vols**2))
    else:
        cov = np.asarray(covariance, dtype=float)
        if cov.shape != (len(assets), len(assets)):
            raise InvalidArgumentError(
                f"Covariance matrix shape {cov.shape} does not match "
                f"{len(assets)} assets"
            )
        variance = float(weights @ cov @ weights)

    return PortfolioSummary(
        expected_return=expected_return,
        volatility=math.sqrt(variance),
        total_weight=total,
    )


class Portfolio:
    """An immutable list of assets with the derived views the engines need."""

    def __init__(self, assets: Iterable[Asset]) -> None:
        """
        Args:
            assets: Holdings. Validated on construction; never mutated.
        """
        self.assets: tuple[Asset, ...] = tuple(assets)
        validate_assets(self.assets)
        self.symbols: list[str] = [a.symbol for a in self.assets]

    def __len__(self) -> int:
        return len(self.assets)

    # ------------------------------------------------------------------
    # Weights
    # ------------------------------------------------------------------

    @property
    def total_weight(self) -> float:
        return float(sum(a.weight for a in self.assets))

    @property
    def normalized_weights(self) -> np.ndarray:
        """Weights as fractions summing to 1, aligned with self.symbols."""
        raw = np.array([a.weight for a in self.assets], dtype=float)
        total = raw.sum()
        if total == 0:
            return np.zeros_like(raw)
        return raw / total

    def weight_warning(self, tolerance: float = 0.01) -> str | None:
        """Message for the caller when the weights do not add up to 100%."""
        total = self.total_weight
        if abs(total - 100.0) > tolerance:
            return f"Portfolio weights sum to {total:.2f}%, not 100%"
        return None

    def normalize_weights(self) -> Portfolio:
        """New portfolio with weights rescaled to sum to 100."""
        total = self.total_weight
        if total <= 0:
            return self
        return Portfolio(replace(a, weight=a.weight / total * 100) for a in self.assets)

    # ------------------------------------------------------------------
    # Risk model
    # ------------------------------------------------------------------

    def covariance_matrix(self) -> pd.DataFrame:
        """Annualized covariance under the zero-correlation assumption."""
        vols = np.array([a.volatility for a in self.assets], dtype=float)
        return pd.DataFrame(np.diag(vols**2), index=self.symbols, columns=self.symbols)

    def summary(self, covariance: np.ndarray | None = None) -> PortfolioSummary:
        return aggregate(self.assets, covariance)

    # ------------------------------------------------------------------
    # Illustrative history
    # ------------------------------------------------------------------

    def sample_prices(
        self,
        days: int = 252,
        seed: int | None = None,
        config: AnalyticsConfig = DEFAULT_CONFIG,
    ) -> pd.DataFrame:
        """
        Synthesize one illustrative daily price path per asset.

        Each asset starts from its own price and compounds daily returns drawn
        from its annualized drift and volatility. The first row is the price
        after the first simulated day.
        """
        if days < 1:
            raise InvalidArgumentError(f"days must be >= 1, got {days}")
        sampler = NormalSampler(seed)
        td = config.trading_days
        drift = np.array([a.expected_return / td for a in self.assets])
        vol = np.array([a.volatility / math.sqrt(td) for a in self.assets])
        start = np.array([a.price for a in self.assets], dtype=float)

        shocks = sampler.standard_normal((days, len(self.assets)))
        growth = 1 + shocks * vol + drift
        prices = start * np.cumprod(growth, axis=0)
        return pd.DataFrame(prices, columns=self.symbols)

    def daily_returns(
        self,
        days: int = 252,
        seed: int | None = None,
        config: AnalyticsConfig = DEFAULT_CONFIG,
    ) -> pd.DataFrame:
        """Daily simple returns per asset; the first day's return is 0."""
        prices = self.sample_prices(days, seed, config)
        with np.errstate(divide="ignore", invalid="ignore"):
            return prices.pct_change().fillna(0.0)

    def portfolio_daily_returns(
        self,
        days: int = 252,
        seed: int | None = None,
        config: AnalyticsConfig = DEFAULT_CONFIG,
    ) -> pd.Series:
        """Weighted portfolio daily returns of the synthetic price paths."""
        dr = self.daily_returns(days, seed, config)
        return dr.dot(self.normalized_weights).rename("portfolio_return")
