"""TOPSIS ranking of assets against weighted criteria."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, replace
from typing import Iterator, Sequence

import numpy as np
import pandas as pd

from portfolio_analytics.config import DEFAULT_CONFIG, AnalyticsConfig
from portfolio_analytics.exceptions import InvalidArgumentError
from portfolio_analytics.portfolio import Asset, sharpe_ratio, validate_assets

logger = logging.getLogger(__name__)

# Accepted spellings, compared case-insensitively.
CRITERION_ALIASES = {
    "return": "return",
    "expectedreturn": "return",
    "volatility": "volatility",
    "risk": "volatility",
    "sharpe": "sharpe",
    "sharperatio": "sharpe",
    "price": "price",
}


@dataclass(frozen=True)
class TOPSISCriteria:
    """One ranking criterion: which asset attribute, how much, which direction."""

    name: str
    weight: float
    beneficial: bool


DEFAULT_CRITERIA: tuple[TOPSISCriteria, ...] = (
    TOPSISCriteria("return", 0.3, True),
    TOPSISCriteria("volatility", 0.2, False),
    TOPSISCriteria("sharpe", 0.3, True),
    TOPSISCriteria("price", 0.2, False),
)


@dataclass(frozen=True)
class TOPSISResult:
    asset_index: int
    symbol: str
    score: float
    rank: int
    distance_to_ideal: float
    distance_to_negative: float

    def to_dict(self) -> dict:
        return {
            "asset_index": self.asset_index,
            "symbol": self.symbol,
            "score": self.score,
            "rank": self.rank,
            "distance_to_ideal": self.distance_to_ideal,
            "distance_to_negative": self.distance_to_negative,
        }


@dataclass(frozen=True)
class TOPSISRanking:
    """Results ordered by rank, plus the reason if a fallback was used."""

    results: tuple[TOPSISResult, ...]
    fallback_reason: str | None = None

    @property
    def is_degraded(self) -> bool:
        return self.fallback_reason is not None

    def __iter__(self) -> Iterator[TOPSISResult]:
        return iter(self.results)

    def __len__(self) -> int:
        return len(self.results)

    def __getitem__(self, index: int) -> TOPSISResult:
        return self.results[index]

    def by_symbol(self) -> dict[str, TOPSISResult]:
        return {r.symbol: r for r in self.results}


def normalize_criteria(criteria: Sequence[TOPSISCriteria]) -> tuple[TOPSISCriteria, ...]:
    """Rescale criterion weights to sum to 1; unchanged when they sum to 0."""
    total = sum(c.weight for c in criteria)
    if total <= 0:
        return tuple(criteria)
    return tuple(replace(c, weight=c.weight / total) for c in criteria)


def criterion_value(
    asset: Asset,
    name: str,
    risk_free_rate: float = DEFAULT_CONFIG.risk_free_rate,
) -> float:
    """Extract the named attribute of an asset; unknown names score 0."""
    key = CRITERION_ALIASES.get(name.lower())
    if key == "return":
        return asset.expected_return
    if key == "volatility":
        return asset.volatility
    if key == "sharpe":
        return sharpe_ratio(asset.expected_return, asset.volatility, risk_free_rate)
    if key == "price":
        return asset.price
    return 0.0


class TOPSISRanker:
    """Rank assets by relative closeness to the ideal solution."""

    def __init__(
        self,
        assets: Sequence[Asset],
        criteria: Sequence[TOPSISCriteria] = DEFAULT_CRITERIA,
        config: AnalyticsConfig = DEFAULT_CONFIG,
    ) -> None:
        self.assets = tuple(assets)
        validate_assets(self.assets)
        self.criteria = tuple(criteria)
        self.config = config

    def decision_matrix(self) -> pd.DataFrame:
        """Raw criterion values, one row per asset, one column per criterion."""
        rows = [
            [criterion_value(a, c.name, self.config.risk_free_rate) for c in self.criteria]
            for a in self.assets
        ]
        return pd.DataFrame(
            rows,
            index=[a.symbol for a in self.assets],
            columns=[c.name for c in self.criteria],
            dtype=float,
        )

    def _check_weights(self) -> None:
        total = sum(c.weight for c in self.criteria)
        if not math.isclose(total, 1.0, abs_tol=self.config.weight_tolerance):
            logger.warning(
                "TOPSIS criterion weights sum to %.4f, not 1; ranking may be skewed",
                total,
            )

    def _rank(self) -> tuple[TOPSISResult, ...]:
        if not self.criteria:
            raise ValueError("no ranking criteria supplied")
        self._check_weights()
        matrix = self.decision_matrix().to_numpy()
        weights = np.array([float(c.weight) for c in self.criteria])
        beneficial = np.array([bool(c.beneficial) for c in self.criteria])

        with np.errstate(divide="ignore", invalid="ignore"):
            norms = np.sqrt(np.sum(matrix**2, axis=0))
            safe = np.where(norms != 0, norms, 1.0)
            normalized = np.where(norms != 0, matrix / safe, 0.0)
            weighted = normalized * weights

            col_max = weighted.max(axis=0)
            col_min = weighted.min(axis=0)
            ideal = np.where(beneficial, col_max, col_min)
            negative = np.where(beneficial, col_min, col_max)

            d_ideal = np.sqrt(np.sum((weighted - ideal) ** 2, axis=1))
            d_negative = np.sqrt(np.sum((weighted - negative) ** 2, axis=1))
            scores = d_negative / (d_ideal + d_negative)
        scores = np.where(np.isnan(scores), 0.0, scores)

        # sorted() is stable, so equal scores keep their input order
        order = sorted(range(len(self.assets)), key=lambda i: -scores[i])
        return tuple(
            TOPSISResult(
                asset_index=i,
                symbol=self.assets[i].symbol,
                score=float(scores[i]),
                rank=rank,
                distance_to_ideal=float(d_ideal[i]),
                distance_to_negative=float(d_negative[i]),
            )
            for rank, i in enumerate(order, start=1)
        )

    def rank(self) -> TOPSISRanking:
        """
        Score and rank every asset.

        Malformed criteria (none at all, non-numeric weights) produce a
        neutral ranking in input order tagged with ``fallback_reason``.
        """
        try:
            return TOPSISRanking(self._rank())
        except (ValueError, TypeError, AttributeError) as exc:
            logger.warning("TOPSIS calculation failed, using neutral ranking: %s", exc)
            fallback = tuple(
                TOPSISResult(
                    asset_index=i,
                    symbol=a.symbol,
                    score=0.0,
                    rank=i + 1,
                    distance_to_ideal=0.0,
                    distance_to_negative=0.0,
                )
                for i, a in enumerate(self.assets)
            )
            return TOPSISRanking(fallback, fallback_reason=str(exc))


def topsis_rank(
    assets: Sequence[Asset],
    criteria: Sequence[TOPSISCriteria] = DEFAULT_CRITERIA,
    config: AnalyticsConfig = DEFAULT_CONFIG,
) -> TOPSISRanking:
    """Rank assets with TOPSIS; results are ordered by rank ascending."""
    if len(assets) == 0:
        raise InvalidArgumentError("Asset list is empty")
    return TOPSISRanker(assets, criteria, config).rank()
