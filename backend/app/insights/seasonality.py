from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date
import math
from typing import Dict, Iterable, List

from backend.app.domain.records import LedgerTransaction
from backend.app.insights.aggregation import is_income, is_spending, to_float
from backend.app.insights.time_buckets import month_key, month_window

DEFAULT_MONTHS = 12
MAX_MONTHS = 120
ANOMALY_Z_THRESHOLD = 2.0


@dataclass(frozen=True)
class MonthlyPoint:
    month: str  # YYYY-MM
    income: float
    spending: float
    net: float
    z_score: float = 0.0
    is_anomaly: bool = False


@dataclass(frozen=True)
class Seasonality:
    period_months: int
    points: List[MonthlyPoint]
    mean_net: float
    stddev_net: float


def normalize_months(months: int | None) -> int:
    """Non-positive or missing means the default; anything above MAX_MONTHS is capped."""
    if not months or months <= 0:
        return DEFAULT_MONTHS
    return min(months, MAX_MONTHS)


def build_monthly_series(
    transactions: Iterable[LedgerTransaction],
    *,
    months: int,
    today: date,
) -> List[MonthlyPoint]:
    """
    One point per calendar month, oldest first, ending at today's month.

    Months without transactions are present with zeros; transactions
    outside the window and transfers are ignored.
    """
    buckets: Dict[str, Dict[str, float]] = {
        month_key(start): {"income": 0.0, "spending": 0.0}
        for start in month_window(today, months)
    }

    for tx in transactions:
        bucket = buckets.get(month_key(tx.occurred_on))
        if bucket is None:
            continue
        if is_income(tx):
            bucket["income"] += to_float(tx.amount)
        elif is_spending(tx):
            bucket["spending"] += to_float(tx.amount)

    return [
        MonthlyPoint(
            month=key,
            income=values["income"],
            spending=values["spending"],
            net=values["income"] - values["spending"],
        )
        for key, values in buckets.items()
    ]


def mean_and_sample_stddev(values: List[float]) -> tuple[float, float]:
    n = len(values)
    mean = sum(values) / (n or 1)
    variance = sum((v - mean) ** 2 for v in values) / (n - 1 if n > 1 else 1)
    return mean, math.sqrt(variance)


def score_points(points: List[MonthlyPoint]) -> tuple[List[MonthlyPoint], float, float]:
    mean, stddev = mean_and_sample_stddev([p.net for p in points])
    scored = []
    for p in points:
        z = (p.net - mean) / stddev if stddev > 0 else 0.0
        scored.append(replace(p, z_score=z, is_anomaly=abs(z) >= ANOMALY_Z_THRESHOLD))
    return scored, mean, stddev


def compute_seasonality(
    transactions: Iterable[LedgerTransaction],
    *,
    months: int | None,
    today: date,
) -> Seasonality:
    period = normalize_months(months)
    points = build_monthly_series(transactions, months=period, today=today)
    scored, mean, stddev = score_points(points)
    return Seasonality(period_months=period, points=scored, mean_net=mean, stddev_net=stddev)
