"""Heuristic allocation suggestions and portfolio health alerts.

Nothing here optimizes: the suggestions are rules of thumb derived from each
asset's Sharpe ratio and a handful of concentration/volatility checks.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import numpy as np

from portfolio_analytics.config import DEFAULT_CONFIG, AnalyticsConfig
from portfolio_analytics.exceptions import InvalidArgumentError
from portfolio_analytics.portfolio import Asset, Portfolio, aggregate, sharpe_ratio

RISK_TOLERANCES = ("conservative", "moderate", "aggressive")

MIN_SUGGESTED_WEIGHT = 5.0
MAX_SUGGESTED_WEIGHT = 25.0
SHARPE_WEIGHT_MULTIPLIER = 15.0


@dataclass(frozen=True)
class AllocationSuggestion:
    symbol: str
    current_weight: float      # percent of total
    recommended_weight: float  # percent
    adjustment: float          # recommended - current, percentage points


@dataclass(frozen=True)
class Alert:
    kind: str  # "warning" or "info"
    title: str
    description: str
    action: str


@dataclass(frozen=True)
class Strategy:
    name: str
    description: str
    risk_level: str
    expected_return: float
    volatility: float
    allocation: dict[str, float]


STRATEGIES: dict[str, Strategy] = {
    "conservative": Strategy(
        name="Conservative Growth",
        description="Low-risk portfolio focused on capital preservation with modest growth",
        risk_level="low",
        expected_return=0.08,
        volatility=0.15,
        allocation={
            "Large Cap Stocks": 40,
            "Bonds": 45,
            "REITs": 10,
            "Cash/Money Market": 5,
        },
    ),
    "moderate": Strategy(
        name="Balanced Portfolio",
        description="Moderate risk with balanced growth and income generation",
        risk_level="medium",
        expected_return=0.12,
        volatility=0.22,
        allocation={
            "Large Cap Stocks": 50,
            "Small Cap Stocks": 15,
            "International Stocks": 20,
            "Bonds": 15,
        },
    ),
    "aggressive": Strategy(
        name="Aggressive Growth",
        description="High-risk, high-reward portfolio for maximum long-term growth",
        risk_level="high",
        expected_return=0.18,
        volatility=0.35,
        allocation={
            "Growth Stocks": 45,
            "Tech Stocks": 25,
            "Small Cap Stocks": 15,
            "International Stocks": 15,
        },
    ),
}


def _check_tolerance(risk_tolerance: str) -> None:
    if risk_tolerance not in RISK_TOLERANCES:
        raise InvalidArgumentError(
            f"risk_tolerance must be one of {RISK_TOLERANCES}, got {risk_tolerance!r}"
        )


def risk_level(volatility: float) -> str:
    """Coarse label for an annualized portfolio volatility."""
    if volatility < 0.20:
        return "Low"
    if volatility < 0.30:
        return "Medium"
    return "High"


def recommended_strategy(risk_tolerance: str = "moderate") -> Strategy:
    _check_tolerance(risk_tolerance)
    return STRATEGIES[risk_tolerance]


def suggest_allocation(
    assets: Sequence[Asset],
    config: AnalyticsConfig = DEFAULT_CONFIG,
) -> list[AllocationSuggestion]:
    """
    Suggest a weight per asset proportional to its Sharpe ratio.

    The suggestion is ``sharpe * 15`` clipped to [5, 25] percent. Results are
    ordered by the size of the change, largest first.
    """
    portfolio = Portfolio(assets)
    current = portfolio.normalized_weights * 100
    suggestions = []
    for asset, weight in zip(portfolio.assets, current):
        sharpe = sharpe_ratio(asset.expected_return, asset.volatility, config.risk_free_rate)
        recommended = float(
            np.clip(sharpe * SHARPE_WEIGHT_MULTIPLIER, MIN_SUGGESTED_WEIGHT, MAX_SUGGESTED_WEIGHT)
        )
        suggestions.append(
            AllocationSuggestion(
                symbol=asset.symbol,
                current_weight=float(weight),
                recommended_weight=recommended,
                adjustment=recommended - float(weight),
            )
        )
    return sorted(suggestions, key=lambda s: abs(s.adjustment), reverse=True)


def portfolio_alerts(
    assets: Sequence[Asset],
    risk_tolerance: str = "moderate",
    age: int = 35,
) -> list[Alert]:
    """Rule-based observations about concentration, diversification and risk."""
    _check_tolerance(risk_tolerance)
    summary = aggregate(assets)
    alerts: list[Alert] = []

    if any(a.weight > 40 for a in assets):
        alerts.append(Alert(
            kind="warning",
            title="Portfolio Concentration Risk",
            description=(
                "Your portfolio has high concentration in few assets. "
                "Consider diversifying to reduce risk."
            ),
            action="Rebalance to limit individual positions to 25% or less",
        ))

    if len(assets) < 5:
        alerts.append(Alert(
            kind="info",
            title="Increase Diversification",
            description="Add more assets to your portfolio to improve risk-adjusted returns.",
            action="Target 8-12 different assets across various sectors",
        ))

    if summary.volatility > 0.30 and risk_tolerance == "conservative":
        alerts.append(Alert(
            kind="warning",
            title="High Risk for Conservative Profile",
            description="Your portfolio volatility is high for a conservative investor.",
            action="Consider adding bonds or defensive stocks to reduce volatility",
        ))

    bond_allocation = min(age, 50)
    if bond_allocation > 20:
        alerts.append(Alert(
            kind="info",
            title="Age-Appropriate Asset Allocation",
            description=(
                f"Consider {bond_allocation}% allocation to bonds for stability "
                "as you approach retirement."
            ),
            action="Gradually shift to more conservative investments",
        ))

    return alerts
