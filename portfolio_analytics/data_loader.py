"""Load asset definitions from CSV files."""

from __future__ import annotations

from pathlib import Path

import pandas as pd

from portfolio_analytics.portfolio import Asset, validate_assets

REQUIRED_COLUMNS = {"symbol", "weight", "expected_return", "volatility", "price"}

SAMPLE_ASSETS: tuple[Asset, ...] = (
    Asset("MSFT", 20, 0.13, 0.24, 29050, "Microsoft Corp."),
    Asset("TSLA", 25, 0.18, 0.45, 20750, "Tesla Inc."),
    Asset("NVDA", 20, 0.20, 0.35, 74700, "NVIDIA Corp."),
    Asset("AAPL", 20, 0.12, 0.25, 12450, "Apple Inc."),
    Asset("GOOGL", 15, 0.15, 0.28, 232400, "Alphabet Inc."),
)


def load_assets(path: str | Path) -> list[Asset]:
    """
    Build assets from a CSV file.

    Args:
        path: CSV with columns [symbol, weight, expected_return, volatility,
            price] and an optional name column.

    Returns:
        Validated list of assets in file order.
    """
    df = _read_csv(path)
    missing = REQUIRED_COLUMNS - set(df.columns)
    if missing:
        raise ValueError(f"Assets CSV missing columns: {sorted(missing)}")
    if df.empty:
        raise ValueError("Assets CSV is empty")

    assets = [
        Asset(
            symbol=str(row["symbol"]).strip(),
            weight=float(row["weight"]),
            expected_return=float(row["expected_return"]),
            volatility=float(row["volatility"]),
            price=float(row["price"]),
            name=str(row["name"]) if "name" in df.columns and pd.notna(row["name"]) else "",
        )
        for _, row in df.iterrows()
    ]
    validate_assets(assets)
    return assets


def _read_csv(path: str | Path) -> pd.DataFrame:
    """Read a CSV, raising a clear error if the file is missing."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Data file not found: {path}")
    return pd.read_csv(path)
