from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Iterable, List, Optional

from backend.app.domain.records import LedgerProject, LedgerSavingsGoal, LedgerTransaction
from backend.app.insights.aggregation import average_monthly_total, to_float
from backend.app.insights.time_buckets import add_months, month_key, month_span, start_of_month

MIN_HORIZON_MONTHS = 1
MAX_HORIZON_MONTHS = 36
HISTORY_MONTHS = 6

STAGE_WEIGHTS: Dict[str, float] = {
    "prospecting": 0.2,
    "quote_sent": 0.4,
    "planned": 0.6,
    "in_progress": 0.8,
    "completed": 1.0,
}
DEFAULT_STAGE_WEIGHT = 0.3


def clamp_horizon(horizon_months: Optional[int]) -> int:
    return max(MIN_HORIZON_MONTHS, min(int(horizon_months or 0), MAX_HORIZON_MONTHS))


# -------------------------
# Personal
# -------------------------

@dataclass(frozen=True)
class GoalProgress:
    goal_id: str
    target_amount: float
    projected_amount: float
    projected_completion_date: Optional[date] = None


@dataclass(frozen=True)
class PersonalForecastMonth:
    month: str
    projected_amount: float
    goals_progress: List[GoalProgress] = field(default_factory=list)


def estimate_contribution_per_month(
    savings_transactions: Iterable[LedgerTransaction],
    override: Optional[float] = None,
) -> float:
    if override is not None:
        return float(override)
    return average_monthly_total(savings_transactions)


def project_personal_savings(
    goals: List[LedgerSavingsGoal],
    *,
    contribution_per_month: float,
    horizon_months: int,
    today: date,
) -> List[PersonalForecastMonth]:
    """
    Month-by-month projection of total savings and of each goal.

    Every goal receives the full monthly contribution and is capped at its
    target; its completion date is set only in the month it first gets there.
    """
    horizon = clamp_horizon(horizon_months)
    first_month = start_of_month(today)
    running_total = sum(to_float(g.current_amount) for g in goals)
    completed: set[str] = set()

    months: List[PersonalForecastMonth] = []
    for i in range(horizon):
        bucket = add_months(first_month, i)
        contributed = contribution_per_month * (i + 1)
        running_total += contribution_per_month

        progress = []
        for goal in goals:
            target = to_float(goal.target_amount)
            projected = min(target, to_float(goal.current_amount) + contributed)
            completion = None
            if projected >= target and goal.id not in completed:
                completed.add(goal.id)
                completion = bucket
            progress.append(
                GoalProgress(
                    goal_id=goal.id,
                    target_amount=target,
                    projected_amount=projected,
                    projected_completion_date=completion,
                )
            )

        months.append(
            PersonalForecastMonth(
                month=month_key(bucket),
                projected_amount=running_total,
                goals_progress=progress,
            )
        )
    return months


# -------------------------
# Business
# -------------------------

@dataclass(frozen=True)
class BusinessForecastMonth:
    month: str
    forecasted_revenue: float
    forecasted_costs: float
    forecasted_margin: float


def stage_weight(status: Optional[str]) -> float:
    return STAGE_WEIGHTS.get(status or "", DEFAULT_STAGE_WEIGHT)


def pipeline_weighted_revenue(projects: Iterable[LedgerProject]) -> float:
    return sum(to_float(p.budget_amount) * stage_weight(p.status) for p in projects)


def recognized_revenue(projects: Iterable[LedgerProject], month_start: date) -> float:
    """
    Revenue recognized in one calendar month: each dated project's budget
    spread evenly over the months from its start month to its due month.
    """
    revenue = 0.0
    for p in projects:
        budget = to_float(p.budget_amount)
        if not budget or p.start_date is None or p.due_date is None:
            continue
        if not start_of_month(p.start_date) <= month_start <= start_of_month(p.due_date):
            continue
        revenue += budget / max(1, month_span(p.start_date, p.due_date))
    return revenue


def project_business(
    projects: List[LedgerProject],
    *,
    recurring_expenses_per_month: float,
    horizon_months: int,
    today: date,
) -> List[BusinessForecastMonth]:
    horizon = clamp_horizon(horizon_months)
    first_month = start_of_month(today)
    months: List[BusinessForecastMonth] = []
    for i in range(horizon):
        bucket = add_months(first_month, i)
        revenue = recognized_revenue(projects, bucket)
        costs = recurring_expenses_per_month
        months.append(
            BusinessForecastMonth(
                month=month_key(bucket),
                forecasted_revenue=revenue,
                forecasted_costs=costs,
                forecasted_margin=revenue - costs,
            )
        )
    return months
