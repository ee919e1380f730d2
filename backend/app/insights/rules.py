"""
Rule-based insight feed.

Each rule looks at one slice of the ledger and returns an `Insight` (or a
list of them) when something deserves the user's attention, otherwise
None / an empty list. Rules never query; the feed service hands them data.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any, Dict, Iterable, List, Literal, Optional

from backend.app.domain.records import (
    LedgerBudget,
    LedgerInvoice,
    LedgerProject,
    LedgerSavingsGoal,
    LedgerTransaction,
)
from backend.app.insights.aggregation import bucket_by, income_and_spending, is_spending, share_of
from backend.app.insights.budgets import BudgetConsumption, overspend_alert
from backend.app.insights.scoring import clamp
from backend.app.insights.time_buckets import as_utc_date, as_utc_datetime

Severity = Literal["info", "warning", "critical"]

SUBSCRIPTION_LOOKBACK_MONTHS = 4
SUBSCRIPTION_MIN_OCCURRENCES = 3
SUBSCRIPTION_MIN_AVG = 1.0
SUBSCRIPTION_MAX_AVG = 50.0
SUBSCRIPTION_LABEL_CHARS = 40

GOAL_AT_RISK_DAYS = 30
GOAL_NEAR_DAYS = 60
GOAL_AT_RISK_PROGRESS = 0.1
GOAL_NEAR_PROGRESS = 0.5
GOAL_LAG_TOLERANCE = 0.2

LATE_INVOICE_STATUSES = ("issued", "partially_paid")
LATE_INVOICES_CRITICAL_COUNT = 3
LATE_INVOICES_CRITICAL_AMOUNT = 2000.0

LOW_MARGIN_PCT = 20.0
REVENUE_GAP_WARNING_PCT = 20.0


@dataclass(frozen=True)
class Insight:
    id: str
    category: str
    severity: Severity
    title: str
    message: str
    data: Dict[str, Any] = field(default_factory=dict)


# -------------------------
# Personal
# -------------------------

def budget_overspent_insight(budget: LedgerBudget, consumption: BudgetConsumption) -> Optional[Insight]:
    alert = overspend_alert(consumption)
    if alert is None:
        return None
    return Insight(
        id="personal-budget-overspent",
        category="budget",
        severity=alert["severity"],
        title="Budget exceeded",
        message=f"Spending on \"{budget.name or 'Budget'}\" has gone over its limit.",
        data={
            "budget_id": budget.id,
            "budget": consumption.amount,
            "actual": consumption.spent,
            "overspend_pct": alert["overspend_pct"],
        },
    )


def subscription_key(label: str) -> str:
    return (label or "").lower()[:SUBSCRIPTION_LABEL_CHARS]


def subscription_review_insight(transactions: Iterable[LedgerTransaction]) -> Optional[Insight]:
    """
    Small spending that repeats under the same label looks like a subscription.
    """
    buckets = bucket_by((tx for tx in transactions if is_spending(tx)), lambda tx: subscription_key(tx.label))
    candidates = []
    for label, bucket in buckets.items():
        avg = bucket.total / bucket.count
        if bucket.count >= SUBSCRIPTION_MIN_OCCURRENCES and SUBSCRIPTION_MIN_AVG < avg < SUBSCRIPTION_MAX_AVG:
            candidates.append(
                {"label": label, "average_amount": avg, "count": bucket.count, "frequency": "monthly"}
            )
    if not candidates:
        return None
    return Insight(
        id="personal-subscription-review",
        category="spending",
        severity="info",
        title="Subscriptions worth reviewing",
        message="Some recurring payments may be worth a second look.",
        data={"subscriptions": candidates},
    )


def _expected_progress(goal: LedgerSavingsGoal, now: datetime) -> float:
    if goal.created_at is None or goal.target_date is None:
        return 0.0
    created = as_utc_datetime(goal.created_at)
    total = max(1.0, (as_utc_datetime(goal.target_date) - created).total_seconds())
    elapsed = (now - created).total_seconds()
    return clamp(elapsed / total, 0.0, 1.0)


def savings_goal_insights(goals: Iterable[LedgerSavingsGoal], *, now: datetime) -> List[Insight]:
    now = as_utc_datetime(now)
    today = as_utc_date(now)
    soon = today + timedelta(days=GOAL_AT_RISK_DAYS)
    near = today + timedelta(days=GOAL_NEAR_DAYS)

    insights: List[Insight] = []
    for goal in goals:
        progress = share_of(goal.current_amount, goal.target_amount)
        expected = _expected_progress(goal, now)
        base = {"goal_id": goal.id, "progress": progress}

        if goal.target_date and progress < GOAL_AT_RISK_PROGRESS and goal.target_date <= soon:
            insights.append(
                Insight(
                    id="savings-behind-schedule",
                    category="savings",
                    severity="warning",
                    title="Savings goal at risk",
                    message=f"Goal \"{goal.name}\" is far behind schedule.",
                    data={**base, "target_date": goal.target_date},
                )
            )
        if goal.target_date and goal.target_date <= near and progress < GOAL_NEAR_PROGRESS:
            insights.append(
                Insight(
                    id="savings-behind-schedule-near",
                    category="savings",
                    severity="warning",
                    title="Savings goal behind schedule",
                    message=f"Goal \"{goal.name}\" is behind the expected pace.",
                    data={**base, "target_date": goal.target_date},
                )
            )
        if expected > 0 and progress + GOAL_LAG_TOLERANCE < expected:
            insights.append(
                Insight(
                    id="savings-progress-lagging",
                    category="savings",
                    severity="warning",
                    title="Savings progress is lagging",
                    message=f"Goal \"{goal.name}\" is behind its expected progress.",
                    data={**base, "expected_progress": expected},
                )
            )
        if progress >= 1.0 and goal.status != "completed":
            insights.append(
                Insight(
                    id="savings-complete-pending",
                    category="savings",
                    severity="info",
                    title="Savings goal reached",
                    message=f"Goal \"{goal.name}\" looks complete. Consider marking it as completed.",
                    data=base,
                )
            )
    return insights


# -------------------------
# Business
# -------------------------

def late_invoices_insight(invoices: Iterable[LedgerInvoice]) -> Optional[Insight]:
    """`invoices` are the unpaid ones already past their due date."""
    late = list(invoices)
    if not late:
        return None
    total_late = sum(inv.total_amount - inv.amount_paid for inv in late)
    critical = len(late) > LATE_INVOICES_CRITICAL_COUNT or total_late > LATE_INVOICES_CRITICAL_AMOUNT
    return Insight(
        id="business-late-invoices",
        category="cashflow",
        severity="critical" if critical else "warning",
        title="Late invoices",
        message="Some invoices are overdue.",
        data={"count_late_invoices": len(late), "total_late_amount": total_late},
    )


def low_margin_projects_insight(
    projects: Iterable[LedgerProject],
    transactions: Iterable[LedgerTransaction],
) -> Optional[Insight]:
    by_project: Dict[str, List[LedgerTransaction]] = {}
    for tx in transactions:
        if tx.project_id:
            by_project.setdefault(tx.project_id, []).append(tx)

    low_margin = []
    for project in projects:
        revenue, costs = income_and_spending(by_project.get(project.id, []))
        if revenue == 0:
            continue
        margin_pct = (revenue - costs) / revenue * 100.0
        if margin_pct < LOW_MARGIN_PCT:
            low_margin.append({"project_id": project.id, "name": project.name, "margin_pct": margin_pct})

    if not low_margin:
        return None
    return Insight(
        id="business-low-margin-project",
        category="cashflow",
        severity="warning",
        title="Low-margin projects",
        message="Some projects are running on a thin margin.",
        data={"projects": low_margin},
    )


def under_target_revenue_insight(goal: Optional[float], actual: float, month: date) -> Optional[Insight]:
    if not goal or goal <= 0 or actual >= goal:
        return None
    gap = goal - actual
    gap_pct = gap / goal * 100.0
    return Insight(
        id="business-under-target-revenue",
        category="cashflow",
        severity="warning" if gap_pct > REVENUE_GAP_WARNING_PCT else "info",
        title="Revenue below target",
        message="Revenue this month is below the monthly goal.",
        data={
            "year": month.year,
            "month": month.month,
            "goal": goal,
            "actual": actual,
            "gap": gap,
        },
    )
