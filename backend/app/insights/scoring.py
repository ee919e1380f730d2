from __future__ import annotations

from dataclasses import dataclass
from typing import List, Literal, Optional

from backend.app.insights.seasonality import MonthlyPoint

Grade = Literal["A", "B", "C", "D", "E"]

GRADE_THRESHOLDS: List[tuple[float, Grade]] = [
    (85.0, "A"),
    (70.0, "B"),
    (55.0, "C"),
    (40.0, "D"),
]

MAX_RED_MONTHS_PENALTY = 40.0
RED_MONTH_PENALTY = 3.0
MAX_VOLATILITY_PENALTY = 30.0
VOLATILITY_PENALTY_PER_Z = 5.0
SAVINGS_RATE_BOUND = 30.0
GOOD_SAVINGS_RATE = 0.2


def clamp(x: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, x))


def grade_for(score: float) -> Grade:
    for threshold, grade in GRADE_THRESHOLDS:
        if score >= threshold:
            return grade
    return "E"


@dataclass(frozen=True)
class HealthScore:
    score: float
    grade: Grade
    explanation: List[str]
    savings_rate: float
    volatility: float
    months_in_red: int
    period_months: int
    top_category: Optional[str] = None
    top_source: Optional[str] = None


def compute_health_score(
    points: List[MonthlyPoint],
    *,
    period_months: int,
    top_category: Optional[str] = None,
    top_source: Optional[str] = None,
) -> HealthScore:
    """
    0-100 score: starts at 100, loses points for months in the red and
    for volatile net cashflow, and moves up or down (at most 30) with
    the savings rate.
    """
    months_in_red = sum(1 for p in points if p.net < 0)
    total_net = sum(p.net for p in points)
    total_income = sum(p.income for p in points)
    savings_rate = total_net / total_income if total_income > 0 else 0.0
    volatility = sum(abs(p.z_score) for p in points) / (len(points) or 1)

    raw = 100.0
    raw -= min(MAX_RED_MONTHS_PENALTY, months_in_red * RED_MONTH_PENALTY)
    raw -= min(MAX_VOLATILITY_PENALTY, volatility * VOLATILITY_PENALTY_PER_Z)
    raw += clamp(savings_rate * 100.0, -SAVINGS_RATE_BOUND, SAVINGS_RATE_BOUND)
    score = clamp(raw, 0.0, 100.0)

    explanation: List[str] = []
    if months_in_red > 0:
        explanation.append(f"{months_in_red} month(s) with negative net cashflow")
    if savings_rate > GOOD_SAVINGS_RATE:
        explanation.append(f"Good savings rate ({savings_rate:.0%})")
    elif savings_rate < 0:
        explanation.append(f"Negative savings rate ({savings_rate:.0%})")
    explanation.append(f"Volatility (mean |z-score|): {volatility:.2f}")

    return HealthScore(
        score=score,
        grade=grade_for(score),
        explanation=explanation,
        savings_rate=savings_rate,
        volatility=volatility,
        months_in_red=months_in_red,
        period_months=period_months,
        top_category=top_category,
        top_source=top_source,
    )
