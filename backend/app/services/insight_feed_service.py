from __future__ import annotations

from dataclasses import asdict
from datetime import datetime
import logging
from typing import Any, Dict, List, Optional

from backend.app.insights.aggregation import INCOME, SPENDING, income_and_spending
from backend.app.insights.budgets import compute_budget_consumption
from backend.app.insights.rules import (
    LATE_INVOICE_STATUSES,
    SUBSCRIPTION_LOOKBACK_MONTHS,
    Insight,
    budget_overspent_insight,
    late_invoices_insight,
    low_margin_projects_insight,
    savings_goal_insights,
    subscription_review_insight,
    under_target_revenue_insight,
)
from backend.app.insights.time_buckets import as_utc_date, month_bounds, shift_months, utcnow
from backend.app.services.budget_service import budget_transactions
from backend.app.services.ledger_store import LedgerStore
from backend.app.services.ownership import require_business_owned, require_user

logger = logging.getLogger(__name__)

OPEN_GOAL_STATUSES = ("active", "paused")


def _feed(insights: List[Insight], now: datetime) -> Dict[str, Any]:
    return {"insights": [asdict(i) for i in insights], "generated_at": now}


def personal_insights_feed(
    store: LedgerStore,
    user_id: str,
    *,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """
    Personal rules: overspent budgets running today, savings goals that
    are late or lagging, and small recurring payments.
    """
    require_user(store, user_id)
    now = now or utcnow()
    today = as_utc_date(now)

    insights: List[Insight] = []

    budgets = [
        b for b in store.find_budgets(user_id, None, status="active")
        if b.period_start <= today <= b.period_end
    ]
    if budgets:
        spending = budget_transactions(
            store,
            user_id,
            None,
            min(b.period_start for b in budgets),
            max(b.period_end for b in budgets),
        )
        for budget in budgets:
            insight = budget_overspent_insight(budget, compute_budget_consumption(budget, spending))
            if insight is not None:
                insights.append(insight)

    insights.extend(savings_goal_insights(store.find_savings_goals(user_id, OPEN_GOAL_STATUSES), now=now))

    recent = store.find_transactions(
        user_id,
        None,
        start=shift_months(today, -SUBSCRIPTION_LOOKBACK_MONTHS),
        end=today,
        directions=(SPENDING,),
    )
    subscriptions = subscription_review_insight(recent)
    if subscriptions is not None:
        insights.append(subscriptions)

    logger.debug("Personal feed for user %s: %d insights", user_id, len(insights))
    return _feed(insights, now)


def business_insights_feed(
    store: LedgerStore,
    user_id: str,
    business_id: str,
    *,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """
    Business rules: overdue invoices, thin-margin projects, and revenue
    under the monthly goal.
    """
    require_user(store, user_id)
    require_business_owned(store, business_id, user_id)
    now = now or utcnow()
    today = as_utc_date(now)

    insights: List[Insight] = []

    late = store.find_invoices(business_id, statuses=LATE_INVOICE_STATUSES, due_before=today)
    late_insight = late_invoices_insight(late)
    if late_insight is not None:
        insights.append(late_insight)

    projects = store.find_projects(business_id)
    if projects:
        project_txs = store.find_transactions(
            user_id,
            business_id,
            project_ids=[p.id for p in projects],
        )
        margin_insight = low_margin_projects_insight(projects, project_txs)
        if margin_insight is not None:
            insights.append(margin_insight)

    month_start, month_end = month_bounds(today)
    revenue, _ = income_and_spending(
        store.find_transactions(user_id, business_id, start=month_start, end=month_end, directions=(INCOME,))
    )
    revenue_insight = under_target_revenue_insight(store.get_monthly_revenue_goal(business_id), revenue, month_start)
    if revenue_insight is not None:
        insights.append(revenue_insight)

    logger.debug("Business feed for %s: %d insights", business_id, len(insights))
    return _feed(insights, now)
