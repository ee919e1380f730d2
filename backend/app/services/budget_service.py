from __future__ import annotations

from datetime import date, datetime
import logging
from typing import Any, Dict, List, Optional

from backend.app.config import default_currency
from backend.app.domain.records import LedgerBudget, LedgerTransaction
from backend.app.insights.aggregation import SPENDING
from backend.app.insights.budgets import compute_budget_consumption, overspend_alert
from backend.app.insights.time_buckets import utcnow
from backend.app.services.ledger_store import LedgerStore
from backend.app.services.ownership import require_budget_owned, require_business_owned, require_user

logger = logging.getLogger(__name__)


def budget_snapshot(
    budget: LedgerBudget,
    transactions: List[LedgerTransaction],
    fallback_currency: str,
) -> Dict[str, Any]:
    consumption = compute_budget_consumption(budget, transactions)
    return {
        "id": budget.id,
        "name": budget.name or "Budget",
        "currency": budget.currency or fallback_currency,
        "amount": consumption.amount,
        "spent": consumption.spent,
        "remaining": consumption.remaining,
        "consumption_rate": consumption.consumption_rate,
        "utilization_pct": consumption.utilization_pct,
        "is_over_budget": consumption.is_over_budget,
        "alert": overspend_alert(consumption),
        "period_start": budget.period_start,
        "period_end": budget.period_end,
    }


def budget_transactions(
    store: LedgerStore,
    user_id: str,
    business_id: Optional[str],
    start: date,
    end: date,
) -> List[LedgerTransaction]:
    """
    Spending that counts against budgets: `out` rows on active accounts
    flagged include_in_budget. Every budget read goes through here.
    """
    account_ids = [
        a.id for a in store.find_accounts(user_id, business_id, active_only=True) if a.include_in_budget
    ]
    if not account_ids:
        return []
    return store.find_transactions(
        user_id,
        business_id,
        start=start,
        end=end,
        directions=(SPENDING,),
        account_ids=account_ids,
    )


def budget_snapshots(
    store: LedgerStore,
    user_id: str,
    business_id: Optional[str],
    budgets: List[LedgerBudget],
    currency: str,
) -> List[Dict[str, Any]]:
    if not budgets:
        return []
    transactions = budget_transactions(
        store,
        user_id,
        business_id,
        min(b.period_start for b in budgets),
        max(b.period_end for b in budgets),
    )
    return [budget_snapshot(b, transactions, currency) for b in budgets]


def scope_currency(store: LedgerStore, user_id: str, business_id: Optional[str]) -> str:
    if business_id is not None:
        biz = store.get_business(business_id)
        if biz is not None and biz.currency:
            return biz.currency
    accounts = store.find_accounts(user_id, business_id, active_only=True)
    return accounts[0].currency if accounts else default_currency()


def _check_scope(store: LedgerStore, user_id: str, business_id: Optional[str]) -> None:
    require_user(store, user_id)
    if business_id is not None:
        require_business_owned(store, business_id, user_id)


def get_budget_consumption(
    store: LedgerStore,
    user_id: str,
    budget_id: str,
    *,
    business_id: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """
    Spent / remaining / utilization for one budget, recomputed from the
    ledger on every call.
    """
    _check_scope(store, user_id, business_id)
    budget = require_budget_owned(store, budget_id, user_id, business_id)

    (snapshot,) = budget_snapshots(store, user_id, business_id, [budget], scope_currency(store, user_id, business_id))
    if snapshot["is_over_budget"]:
        logger.info("Budget %s is over its limit by %.2f", budget_id, -snapshot["remaining"])
    snapshot["generated_at"] = now or utcnow()
    return snapshot


def list_budget_consumption(
    store: LedgerStore,
    user_id: str,
    *,
    business_id: Optional[str] = None,
    status: Optional[str] = "active",
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    _check_scope(store, user_id, business_id)

    budgets = store.find_budgets(user_id, business_id, status=status)
    currency = scope_currency(store, user_id, business_id)
    return {
        "currency": currency,
        "budgets": budget_snapshots(store, user_id, business_id, budgets, currency),
        "generated_at": now or utcnow(),
    }
