"""Assemble analysis results into a JSON report."""

from __future__ import annotations

import json
import math
from dataclasses import asdict
from datetime import datetime, timezone
from pathlib import Path
from typing import Sequence

from portfolio_analytics.ahp import AHPResult
from portfolio_analytics.monte_carlo import SimulationResult
from portfolio_analytics.portfolio import Asset, PortfolioSummary
from portfolio_analytics.recommendations import AllocationSuggestion
from portfolio_analytics.risk_metrics import RiskMetrics
from portfolio_analytics.topsis import TOPSISRanking


def json_safe(value):
    """Recursively replace NaN and infinities with None."""
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    if isinstance(value, dict):
        return {k: json_safe(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [json_safe(v) for v in value]
    return value


def build_report_data(
    assets: Sequence[Asset],
    summary: PortfolioSummary,
    sim_result: SimulationResult,
    risk: RiskMetrics,
    ranking: TOPSISRanking,
    suggestions: Sequence[AllocationSuggestion] = (),
    ahp: AHPResult | None = None,
) -> dict:
    """Assemble all analysis data into a single dictionary.

    Non-finite numbers (zero-volatility Sharpe ratios, drawdowns over a zero
    running maximum) become ``None`` so the report stays valid JSON.
    """
    return json_safe({
        "generated_at": datetime.now(timezone.utc).isoformat(),
        "portfolio": {
            "assets": [asdict(a) for a in assets],
            "expected_return": summary.expected_return,
            "volatility": summary.volatility,
            "total_weight": summary.total_weight,
        },
        "monte_carlo": sim_result.to_dict(),
        "risk_metrics": risk.to_dict(),
        "topsis": {
            "fallback_reason": ranking.fallback_reason,
            "results": [r.to_dict() for r in ranking],
        },
        "ahp": (
            {
                "weights": ahp.as_dict(),
                "consistency_ratio": ahp.consistency_ratio,
                "fallback_reason": ahp.fallback_reason,
            }
            if ahp is not None
            else None
        ),
        "allocation_suggestions": [asdict(s) for s in suggestions],
    })


def export_json(
    data: dict,
    output: str | Path = "output/risk_report.json",
) -> Path:
    """Write the report data to a JSON file."""
    path = Path(output)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(json_safe(data), indent=2, allow_nan=False))
    return path
