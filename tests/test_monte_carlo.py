"""Tests for the Monte Carlo simulation module."""

import threading
from dataclasses import replace

import numpy as np
import pytest

from portfolio_analytics.config import DEFAULT_CONFIG
from portfolio_analytics.exceptions import InvalidArgumentError, SimulationCancelledError
from portfolio_analytics.monte_carlo import (
    MonteCarloEngine,
    Percentiles,
    SimulationResult,
    simulate,
)
from portfolio_analytics.portfolio import Asset


def _make_assets() -> list[Asset]:
    return [
        Asset("A", 50, 0.10, 0.20, 100.0),
        Asset("B", 50, 0.20, 0.40, 100.0),
    ]


def _make_flat_assets() -> list[Asset]:
    return [
        Asset("A", 60, 0.08, 0.0, 100.0),
        Asset("B", 40, 0.12, 0.0, 100.0),
    ]


def test_simulation_output_shape():
    result = simulate(
        _make_assets(),
        initial_value=100_000,
        time_horizon_days=252,
        simulation_count=10_000,
        include_multi_period=False,
        seed=42,
    )
    assert isinstance(result, SimulationResult)
    assert len(result.final_values) == 10_000
    assert len(result.returns) == 10_000
    assert result.simulation_count == 10_000
    assert result.time_horizon_days == 252
    assert np.all(result.final_values > 0)
    assert result.multi_period_projections is None


def test_percentiles_are_monotonic():
    result = simulate(_make_assets(), simulation_count=2_000, include_multi_period=False, seed=1)
    p = result.percentiles
    assert p.p5 <= p.p25 <= p.p50 <= p.p75 <= p.p95


def test_percentiles_use_floor_index():
    p = Percentiles.from_sorted(np.arange(10, dtype=float))
    assert (p.p5, p.p25, p.p50, p.p75, p.p95) == (0.0, 2.0, 5.0, 7.0, 9.0)


def test_single_path_percentiles():
    p = Percentiles.from_sorted(np.array([42.0]))
    assert p.p5 == p.p95 == 42.0


def test_zero_volatility_is_deterministic():
    initial = 100_000
    result = simulate(
        _make_flat_assets(),
        initial_value=initial,
        time_horizon_days=252,
        simulation_count=500,
        include_multi_period=False,
        seed=3,
    )
    expected_return = 0.6 * 0.08 + 0.4 * 0.12
    expected = initial * (1 + expected_return / 252) ** 252

    np.testing.assert_allclose(result.final_values, expected, rtol=1e-10)
    p = result.percentiles
    assert p.p5 == p.p25 == p.p50 == p.p75 == p.p95
    assert result.var95 == pytest.approx(abs((p.p5 - initial) / initial))
    assert result.volatility == 0.0
    assert result.sharpe_ratio == np.inf


def test_var95_matches_fifth_percentile():
    result = simulate(_make_assets(), initial_value=50_000, simulation_count=1_000,
                      include_multi_period=False, seed=9)
    expected = abs((result.percentiles.p5 - 50_000) / 50_000)
    assert result.var95 == pytest.approx(expected)
    assert result.var95 >= 0


def test_sharpe_uses_fixed_risk_free_rate():
    result = simulate(_make_assets(), simulation_count=10, include_multi_period=False, seed=0)
    assert result.expected_return == pytest.approx(0.15)
    assert result.sharpe_ratio == pytest.approx((0.15 - 0.02) / np.sqrt(0.05))


def test_simulation_with_seed_reproducible():
    r1 = simulate(_make_assets(), simulation_count=300, time_horizon_days=30,
                  include_multi_period=False, seed=123)
    r2 = simulate(_make_assets(), simulation_count=300, time_horizon_days=30,
                  include_multi_period=False, seed=123)
    np.testing.assert_array_equal(r1.final_values, r2.final_values)


def test_simulation_different_seeds_differ():
    r1 = simulate(_make_assets(), simulation_count=50, time_horizon_days=30,
                  include_multi_period=False, seed=1)
    r2 = simulate(_make_assets(), simulation_count=50, time_horizon_days=30,
                  include_multi_period=False, seed=2)
    assert not np.allclose(r1.final_values, r2.final_values)


def test_results_independent_of_worker_count():
    serial = replace(DEFAULT_CONFIG, batch_size=100, max_workers=1)
    parallel = replace(DEFAULT_CONFIG, batch_size=100, max_workers=4)
    r1 = simulate(_make_assets(), simulation_count=450, time_horizon_days=20,
                  include_multi_period=False, seed=5, config=serial)
    r2 = simulate(_make_assets(), simulation_count=450, time_horizon_days=20,
                  include_multi_period=False, seed=5, config=parallel)
    assert len(r1.final_values) == 450
    np.testing.assert_array_equal(r1.final_values, r2.final_values)


def test_final_returns_consistent_with_values():
    result = simulate(_make_assets(), initial_value=1_000, simulation_count=100,
                      include_multi_period=False, seed=42)
    expected = (result.final_values - 1_000) / 1_000
    np.testing.assert_array_almost_equal(result.returns, expected)


def test_probability_of_loss_is_a_percentage():
    result = simulate(_make_assets(), simulation_count=500, include_multi_period=False, seed=42)
    assert 0.0 <= result.probability_of_loss <= 100.0
    expected = np.mean(result.final_values < result.initial_value) * 100
    assert result.probability_of_loss == pytest.approx(expected)
    assert result.mean_final_value > 0
    assert result.median_final_value > 0
    assert result.std_final_value > 0


def test_multi_period_projections():
    result = simulate(_make_assets(), simulation_count=200, time_horizon_days=21, seed=11)
    projections = result.multi_period_projections
    assert [p.period for p in projections] == [
        "1 Year", "3 Years", "5 Years", "10 Years", "15 Years", "20 Years"
    ]
    assert [p.time_horizon_days for p in projections] == [252, 756, 1260, 2520, 3780, 5040]
    for proj in projections:
        assert 0.0 <= proj.probability_of_loss <= 100.0
        p = proj.percentiles
        assert p.p5 <= p.p25 <= p.p50 <= p.p75 <= p.p95
        assert proj.total_return.p50 == pytest.approx(
            (p.p50 - result.initial_value) / result.initial_value * 100
        )


def test_zero_volatility_projection_annualizes_median():
    engine = MonteCarloEngine(_make_flat_assets(), simulation_count=20, seed=0)
    proj = engine.project(5)
    daily = (0.6 * 0.08 + 0.4 * 0.12) / 252
    assert proj.annualized_return == pytest.approx(((1 + daily) ** 252 - 1) * 100, rel=1e-9)
    assert proj.probability_of_loss == 0.0


def test_losing_projection_reports_loss_in_percent():
    engine = MonteCarloEngine([Asset("DOWN", 100, -0.5, 0.0, 100.0)], simulation_count=20, seed=0)
    proj = engine.project(1)
    assert proj.probability_of_loss == 100.0
    result = engine.run(include_multi_period=False)
    assert result.probability_of_loss == 100.0


def test_projections_use_independent_streams():
    result = simulate(_make_assets(), simulation_count=200, time_horizon_days=252, seed=5)
    one_year = result.multi_period_projections[0]
    assert one_year.time_horizon_days == result.time_horizon_days
    assert one_year.percentiles != result.percentiles
    three_year = result.multi_period_projections[1]
    assert three_year.percentiles != one_year.percentiles


def test_non_positive_projection_horizon_raises():
    engine = MonteCarloEngine(_make_assets(), simulation_count=10, seed=0)
    with pytest.raises(InvalidArgumentError, match="Projection horizon"):
        engine.project(0)
    config = replace(DEFAULT_CONFIG, projection_years=(1, 0))
    with pytest.raises(InvalidArgumentError, match="Projection horizon"):
        simulate(_make_assets(), simulation_count=10, seed=0, config=config)


def test_invalid_arguments_raise():
    with pytest.raises(InvalidArgumentError, match="initial_value"):
        simulate(_make_assets(), initial_value=0)
    with pytest.raises(InvalidArgumentError, match="time_horizon_days"):
        simulate(_make_assets(), time_horizon_days=0)
    with pytest.raises(InvalidArgumentError, match="simulation_count"):
        simulate(_make_assets(), simulation_count=0)
    with pytest.raises(InvalidArgumentError, match="empty"):
        simulate([])


def test_cancelled_simulation_raises():
    event = threading.Event()
    event.set()
    with pytest.raises(SimulationCancelledError):
        simulate(_make_assets(), simulation_count=100, include_multi_period=False,
                 seed=1, cancel_event=event)


def test_to_dict_contains_projections():
    result = simulate(_make_assets(), simulation_count=50, time_horizon_days=10, seed=2)
    d = result.to_dict()
    assert d["simulation_count"] == 50
    assert set(d["percentiles"]) == {"p5", "p25", "p50", "p75", "p95"}
    assert len(d["multi_period_projections"]) == 6
