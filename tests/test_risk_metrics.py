"""Tests for the risk metrics module."""

import math

import numpy as np
import pytest

from portfolio_analytics.exceptions import InvalidArgumentError
from portfolio_analytics.portfolio import Asset, aggregate
from portfolio_analytics.risk_metrics import (
    RiskCalculator,
    RiskMetrics,
    fit_distribution,
    risk_metrics,
)


def _make_assets() -> list[Asset]:
    return [
        Asset("A", 50, 0.10, 0.20, 100.0),
        Asset("B", 50, 0.20, 0.40, 100.0),
    ]


def _make_returns(n: int = 252) -> np.ndarray:
    rng = np.random.default_rng(42)
    return rng.normal(0.0005, 0.01, n)


def test_var_and_cvar_on_known_tail():
    returns = [-0.10, -0.08] + [0.01] * 38
    calc = RiskCalculator(_make_assets(), returns)
    # floor(0.05 * 40) == 2
    assert calc.var_95() == pytest.approx(0.01)
    assert calc.cvar_95() == pytest.approx(0.09)


@pytest.mark.parametrize("sign", [1.0, -1.0])
def test_var_and_cvar_are_non_negative(sign):
    returns = sign * np.abs(_make_returns())
    metrics = risk_metrics(_make_assets(), returns)
    assert metrics.var95 >= 0
    assert metrics.cvar95 >= 0


def test_cvar_on_short_series_falls_back_to_var():
    returns = [0.02, -0.03, 0.01, 0.005]
    calc = RiskCalculator(_make_assets(), returns)
    assert calc.tail_index == 0
    assert calc.var_95() == pytest.approx(0.03)
    assert calc.cvar_95() == calc.var_95()


def test_max_drawdown_uses_running_max_of_returns_not_equity_curve():
    # Every return is positive, so a compounded equity curve never falls;
    # measured on the return series the drop from 0.02 to 0.01 is 50%.
    calc = RiskCalculator(_make_assets(), [0.01, 0.02, 0.01])
    assert calc.max_drawdown() == pytest.approx(0.5)


def test_max_drawdown_single_observation():
    assert RiskCalculator(_make_assets(), [0.01]).max_drawdown() == 0.0


def test_max_drawdown_non_negative():
    calc = RiskCalculator(_make_assets(), [0.05, 0.06, 0.07])
    assert calc.max_drawdown() == 0.0


def test_beta_without_market():
    calc = RiskCalculator(_make_assets(), _make_returns())
    assert calc.beta() == 1.0


def test_beta_with_market():
    market = _make_returns()
    calc = RiskCalculator(_make_assets(), 2.0 * market + 0.001, market)
    assert calc.beta() == pytest.approx(2.0)


def test_beta_with_mismatched_market_defaults_to_one():
    calc = RiskCalculator(_make_assets(), _make_returns(100), _make_returns(99))
    assert calc.beta() == 1.0


def test_portfolio_figures_come_from_aggregation():
    metrics = risk_metrics(_make_assets(), _make_returns())
    summary = aggregate(_make_assets())
    assert metrics.portfolio_return == pytest.approx(summary.expected_return)
    assert metrics.portfolio_volatility == pytest.approx(summary.volatility)
    assert metrics.sharpe_ratio == pytest.approx((0.15 - 0.02) / math.sqrt(0.05))


def test_fit_distribution_symmetric_series():
    fit = fit_distribution([-0.02, -0.01, 0.0, 0.01, 0.02])
    assert fit.mean == pytest.approx(0.0)
    assert fit.std == pytest.approx(math.sqrt(0.001 / 4))
    assert fit.skewness == pytest.approx(0.0, abs=1e-12)


def test_fit_distribution_normal_sample():
    fit = fit_distribution(np.random.default_rng(0).normal(0.0, 0.01, 5_000))
    assert fit.is_normal


def test_fit_distribution_skewed_sample_is_not_normal():
    fit = fit_distribution(np.random.default_rng(0).exponential(1.0, 5_000))
    assert fit.skewness > 1
    assert not fit.is_normal


def test_compute_all_returns_risk_metrics():
    metrics = RiskCalculator(_make_assets(), _make_returns()).compute_all()
    assert isinstance(metrics, RiskMetrics)
    assert isinstance(metrics.var95, float)
    assert metrics.volatility == pytest.approx(np.std(_make_returns(), ddof=1))


def test_risk_metrics_to_dict():
    d = risk_metrics(_make_assets(), _make_returns()).to_dict()
    for key in ("VaR_95", "CVaR_95", "Sharpe_Ratio", "Max_Drawdown", "Beta", "Kurtosis"):
        assert key in d


def test_empty_returns_raise():
    with pytest.raises(InvalidArgumentError):
        risk_metrics(_make_assets(), [])
    with pytest.raises(InvalidArgumentError):
        fit_distribution([])
