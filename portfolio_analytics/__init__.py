"""
Portfolio Risk Analytics - quantitative core of a portfolio-risk dashboard.

Monte Carlo projection of portfolio value under geometric Brownian motion,
realized-series risk metrics (VaR, CVaR, drawdown, beta, moments) and two
multi-criteria ranking procedures (AHP weighting and TOPSIS ranking).
"""

from portfolio_analytics.ahp import ahp_weights
from portfolio_analytics.config import DEFAULT_CONFIG, AnalyticsConfig
from portfolio_analytics.exceptions import (
    AnalyticsError,
    InvalidArgumentError,
    SimulationCancelledError,
)
from portfolio_analytics.monte_carlo import simulate
from portfolio_analytics.portfolio import Asset, PortfolioSummary, aggregate
from portfolio_analytics.risk_metrics import risk_metrics
from portfolio_analytics.topsis import TOPSISCriteria, topsis_rank

__version__ = "1.0.0"

__all__ = [
    "AnalyticsConfig",
    "AnalyticsError",
    "Asset",
    "DEFAULT_CONFIG",
    "InvalidArgumentError",
    "PortfolioSummary",
    "SimulationCancelledError",
    "TOPSISCriteria",
    "aggregate",
    "ahp_weights",
    "risk_metrics",
    "simulate",
    "topsis_rank",
]
