from __future__ import annotations

from dataclasses import asdict
from datetime import datetime
import logging
from typing import Any, Dict, Optional

from backend.app.config import default_currency
from backend.app.insights.aggregation import SPENDING, average_monthly_total
from backend.app.insights.forecast import (
    HISTORY_MONTHS,
    clamp_horizon,
    estimate_contribution_per_month,
    pipeline_weighted_revenue,
    project_business,
    project_personal_savings,
)
from backend.app.insights.time_buckets import as_utc_date, trailing_window_start, utcnow
from backend.app.services.ledger_store import LedgerStore
from backend.app.services.ownership import require_business_owned, require_user

logger = logging.getLogger(__name__)

FORECAST_GOAL_STATUSES = ("active", "paused")
SAVINGS_CATEGORY_KIND = "savings"
DEFAULT_HORIZON_MONTHS = 12


def compute_personal_savings_forecast(
    store: LedgerStore,
    user_id: str,
    *,
    horizon_months: Optional[int] = DEFAULT_HORIZON_MONTHS,
    contributions_per_month: Optional[float] = None,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    require_user(store, user_id)
    now = now or utcnow()
    today = as_utc_date(now)
    horizon = clamp_horizon(horizon_months)

    goals = store.find_savings_goals(user_id, FORECAST_GOAL_STATUSES)
    recent_out = store.find_transactions(
        user_id,
        None,
        start=trailing_window_start(today, HISTORY_MONTHS),
        end=today,
        directions=(SPENDING,),
    )
    savings_txns = [tx for tx in recent_out if tx.category_kind == SAVINGS_CATEGORY_KIND]
    contribution = estimate_contribution_per_month(savings_txns, contributions_per_month)

    months = project_personal_savings(
        goals,
        contribution_per_month=contribution,
        horizon_months=horizon,
        today=today,
    )
    logger.debug("Personal forecast user_id=%s horizon=%s contribution=%.2f", user_id, horizon, contribution)

    return {
        "horizon_months": horizon,
        "contribution_per_month": contribution,
        "starting_amount": sum(g.current_amount for g in goals),
        "months": [asdict(m) for m in months],
        "generated_at": now,
    }


def compute_business_forecast(
    store: LedgerStore,
    user_id: str,
    business_id: str,
    *,
    horizon_months: Optional[int] = DEFAULT_HORIZON_MONTHS,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    require_user(store, user_id)
    business = require_business_owned(store, business_id, user_id)
    now = now or utcnow()
    today = as_utc_date(now)
    horizon = clamp_horizon(horizon_months)

    projects = store.find_projects(business_id)
    recent_out = store.find_transactions(
        user_id,
        business_id,
        start=trailing_window_start(today, HISTORY_MONTHS),
        end=today,
        directions=(SPENDING,),
    )
    recurring = average_monthly_total(recent_out)

    months = project_business(
        projects,
        recurring_expenses_per_month=recurring,
        horizon_months=horizon,
        today=today,
    )

    return {
        "business_id": business_id,
        "currency": business.currency or default_currency(),
        "horizon_months": horizon,
        "months": [asdict(m) for m in months],
        "assumptions": {
            "recurring_expenses_per_month": recurring,
            "pipeline_weighted_revenue": pipeline_weighted_revenue(projects),
        },
        "generated_at": now,
    }
