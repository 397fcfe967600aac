"""Command-line interface for Portfolio Risk Analytics."""

from __future__ import annotations

import argparse
import math
import sys
from dataclasses import replace
from pathlib import Path

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from portfolio_analytics.ahp import ahp_weights
from portfolio_analytics.config import DEFAULT_CONFIG
from portfolio_analytics.data_loader import SAMPLE_ASSETS, load_assets
from portfolio_analytics.exceptions import AnalyticsError
from portfolio_analytics.logging_config import setup_logging
from portfolio_analytics.monte_carlo import simulate
from portfolio_analytics.portfolio import Portfolio
from portfolio_analytics.recommendations import (
    RISK_TOLERANCES,
    portfolio_alerts,
    recommended_strategy,
    risk_level,
    suggest_allocation,
)
from portfolio_analytics.report import build_report_data, export_json
from portfolio_analytics.risk_metrics import risk_metrics
from portfolio_analytics.topsis import DEFAULT_CRITERIA, topsis_rank

console = Console()

# Pairwise judgements over (return, volatility, sharpe, price).
DEFAULT_AHP_MATRIX = [
    [1.0, 2.0, 1.0, 3.0],
    [1 / 2, 1.0, 1 / 2, 2.0],
    [1.0, 2.0, 1.0, 3.0],
    [1 / 3, 1 / 2, 1 / 3, 1.0],
]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="risk-analytics",
        description="Portfolio Monte Carlo projection, risk metrics and asset ranking.",
    )

    parser.add_argument(
        "--assets",
        type=str,
        default=None,
        help="Path to assets CSV (default: built-in sample portfolio)",
    )
    parser.add_argument(
        "--initial-value",
        type=float,
        default=100_000,
        help="Initial portfolio value (default: 100,000)",
    )
    parser.add_argument(
        "--simulations", "-n",
        type=int,
        default=10_000,
        help="Number of Monte Carlo simulations (default: 10,000)",
    )
    parser.add_argument(
        "--horizon", "-d",
        type=int,
        default=252,
        help="Simulation horizon in trading days (default: 252 = 1 year)",
    )
    parser.add_argument(
        "--risk-free-rate",
        type=float,
        default=DEFAULT_CONFIG.risk_free_rate,
        help="Annual risk-free rate (default: 0.02)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Random seed for reproducibility",
    )
    parser.add_argument(
        "--workers",
        type=_positive_int,
        default=None,
        help="Worker threads for path simulation (default: executor default)",
    )
    parser.add_argument(
        "--no-multi-period",
        action="store_true",
        help="Skip the 1-20 year projections",
    )
    parser.add_argument(
        "--ahp-weights",
        action="store_true",
        help="Derive TOPSIS criterion weights from the built-in AHP judgements",
    )
    parser.add_argument(
        "--risk-tolerance",
        choices=RISK_TOLERANCES,
        default="moderate",
        help="Investor risk tolerance for recommendations (default: moderate)",
    )
    parser.add_argument(
        "--age",
        type=int,
        default=35,
        help="Investor age for recommendations (default: 35)",
    )
    parser.add_argument(
        "--output-dir", "-o",
        type=str,
        default="output",
        help="Output directory for the JSON report (default: output/)",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        help="Logging level (default: WARNING)",
    )

    return parser


def _positive_int(text: str) -> int:
    value = int(text)
    if value < 1:
        raise argparse.ArgumentTypeError(f"must be a positive integer, got {value}")
    return value


def _num(value: float, spec: str = ".4f") -> str:
    """Format a number, showing degenerate NaN/inf results as n/a."""
    if not math.isfinite(value):
        return "n/a"
    return format(value, spec)


def _pct(value: float) -> str:
    if not math.isfinite(value):
        return "n/a"
    return f"{value * 100:.2f}%"


def run(args: argparse.Namespace) -> None:
    """Execute the full analysis pipeline."""
    console.print(Panel.fit(
        "[bold blue]Portfolio Risk Analytics[/bold blue]\n"
        "Monte Carlo projection, risk metrics and multi-criteria ranking",
        border_style="blue",
    ))

    config = replace(
        DEFAULT_CONFIG,
        risk_free_rate=args.risk_free_rate,
        max_workers=args.workers,
    )

    # ------------------------------------------------------------------ Load data
    try:
        assets = load_assets(args.assets) if args.assets else list(SAMPLE_ASSETS)
        portfolio = Portfolio(assets)
    except (FileNotFoundError, ValueError) as exc:
        console.print(f"[red]Error loading assets:[/red] {exc}")
        sys.exit(1)

    warning = portfolio.weight_warning()
    if warning:
        console.print(f"[yellow]Warning:[/yellow] {warning}")

    summary = portfolio.summary()
    if summary.is_degenerate:
        console.print("[red]Portfolio weights sum to zero; nothing to analyze.[/red]")
        sys.exit(1)

    weights_table = Table(title="Portfolio")
    weights_table.add_column("Symbol", style="cyan")
    weights_table.add_column("Weight", justify="right")
    weights_table.add_column("Exp. Return", justify="right")
    weights_table.add_column("Volatility", justify="right")
    weights_table.add_column("Price", justify="right")
    for asset, w in zip(portfolio.assets, portfolio.normalized_weights):
        weights_table.add_row(
            asset.symbol,
            f"{w * 100:.1f}%",
            _pct(asset.expected_return),
            _pct(asset.volatility),
            f"{asset.price:,.2f}",
        )
    console.print(weights_table)
    console.print(
        f"  Expected return {_pct(summary.expected_return)}, "
        f"volatility {_pct(summary.volatility)} ({risk_level(summary.volatility)} risk)"
    )

    try:
        # ------------------------------------------------------- Monte Carlo
        console.print(
            f"\n[bold]Running Monte Carlo simulation "
            f"({args.simulations:,} paths, {args.horizon} days)...[/bold]"
        )
        sim_result = simulate(
            portfolio.assets,
            initial_value=args.initial_value,
            time_horizon_days=args.horizon,
            simulation_count=args.simulations,
            include_multi_period=not args.no_multi_period,
            seed=args.seed,
            config=config,
        )

        # --------------------------------------------------- Risk metrics
        returns = portfolio.portfolio_daily_returns(
            days=config.trading_days, seed=args.seed, config=config
        )
        risk = risk_metrics(portfolio.assets, returns.to_numpy(), config=config)

        # --------------------------------------------------------- Ranking
        ahp = None
        criteria = DEFAULT_CRITERIA
        if args.ahp_weights:
            ahp = ahp_weights([c.name for c in criteria], DEFAULT_AHP_MATRIX, config=config)
            criteria = tuple(
                replace(c, weight=float(w)) for c, w in zip(criteria, ahp.weights)
            )
        ranking = topsis_rank(portfolio.assets, criteria, config=config)
        suggestions = suggest_allocation(portfolio.assets, config=config)
        alerts = portfolio_alerts(portfolio.assets, args.risk_tolerance, args.age)
    except AnalyticsError as exc:
        console.print(f"[red]Analysis failed:[/red] {exc}")
        sys.exit(1)

    mc_table = Table(title="Monte Carlo Results")
    mc_table.add_column("Metric", style="cyan")
    mc_table.add_column("Value", justify="right")
    mc_table.add_row("Initial Value", f"${sim_result.initial_value:,.2f}")
    mc_table.add_row("Mean Final Value", f"${sim_result.mean_final_value:,.2f}")
    for label, value in sim_result.percentiles.to_dict().items():
        mc_table.add_row(f"{label.upper()} Final Value", f"${value:,.2f}")
    mc_table.add_row("VaR (95%)", _pct(sim_result.var95))
    mc_table.add_row("Sharpe Ratio", _num(sim_result.sharpe_ratio))
    mc_table.add_row("Probability of Loss", f"{_num(sim_result.probability_of_loss, '.1f')}%")
    console.print(mc_table)

    if sim_result.multi_period_projections:
        proj_table = Table(title="Multi-Period Projections")
        proj_table.add_column("Period", style="cyan")
        proj_table.add_column("P5", justify="right")
        proj_table.add_column("Median", justify="right")
        proj_table.add_column("P95", justify="right")
        proj_table.add_column("Annualized", justify="right")
        proj_table.add_column("P(Loss)", justify="right")
        for proj in sim_result.multi_period_projections:
            proj_table.add_row(
                proj.period,
                f"${proj.percentiles.p5:,.0f}",
                f"${proj.percentiles.p50:,.0f}",
                f"${proj.percentiles.p95:,.0f}",
                f"{_num(proj.annualized_return, '.2f')}%",
                f"{_num(proj.probability_of_loss, '.1f')}%",
            )
        console.print(proj_table)

    metrics_table = Table(title="Risk Metrics (synthetic daily returns)")
    metrics_table.add_column("Metric", style="cyan")
    metrics_table.add_column("Value", justify="right")
    for label, value in risk.to_dict().items():
        metrics_table.add_row(label.replace("_", " "), _num(value))
    console.print(metrics_table)

    if ahp is not None:
        verdict = "consistent" if ahp.is_consistent else "inconsistent"
        console.print(f"\nAHP consistency ratio {_num(ahp.consistency_ratio)} ({verdict})")

    rank_table = Table(title="TOPSIS Ranking")
    rank_table.add_column("Rank", justify="right")
    rank_table.add_column("Symbol", style="cyan")
    rank_table.add_column("Score", justify="right")
    for result in ranking:
        rank_table.add_row(str(result.rank), result.symbol, _num(result.score))
    console.print(rank_table)
    if ranking.is_degraded:
        console.print(f"[yellow]Ranking fallback used:[/yellow] {ranking.fallback_reason}")

    alloc_table = Table(title="Suggested Allocation")
    alloc_table.add_column("Symbol", style="cyan")
    alloc_table.add_column("Current", justify="right")
    alloc_table.add_column("Suggested", justify="right")
    alloc_table.add_column("Change", justify="right")
    for s in suggestions:
        alloc_table.add_row(
            s.symbol,
            f"{s.current_weight:.1f}%",
            f"{s.recommended_weight:.1f}%",
            f"{s.adjustment:+.1f}",
        )
    console.print(alloc_table)

    strategy = recommended_strategy(args.risk_tolerance)
    console.print(f"\n[bold]Recommended strategy:[/bold] {strategy.name} - {strategy.description}")
    for alert in alerts:
        colour = "yellow" if alert.kind == "warning" else "blue"
        console.print(f"[{colour}]{alert.title}:[/{colour}] {alert.description} {alert.action}.")

    # ----------------------------------------------------------- Export report
    report_data = build_report_data(
        portfolio.assets, summary, sim_result, risk, ranking, suggestions, ahp
    )
    json_path = export_json(report_data, Path(args.output_dir) / "risk_report.json")
    console.print(f"\n[green]JSON report saved:[/green] {json_path}")
    console.print("\n[bold green]Analysis complete.[/bold green]")


def main() -> None:
    parser = build_parser()
    args = parser.parse_args()
    setup_logging(args.log_level)
    run(args)


if __name__ == "__main__":
    main()
