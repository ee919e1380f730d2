from __future__ import annotations

from dataclasses import asdict
from datetime import date, datetime
import logging
from typing import Any, Dict, List, Optional, Tuple, Union

from backend.app.config import default_currency
from backend.app.domain.records import LedgerAccount, LedgerTransaction
from backend.app.errors import InvalidInput
from backend.app.insights.aggregation import (
    INCOME,
    SPENDING,
    balance_of,
    bucket_by,
    income_and_spending,
    ranked_shares,
    top_key,
)
from backend.app.insights.savings_plan import compute_savings_plan
from backend.app.insights.scoring import compute_health_score
from backend.app.insights.seasonality import (
    Seasonality,
    build_monthly_series,
    compute_seasonality,
    normalize_months,
)
from backend.app.insights.time_buckets import (
    as_utc_date,
    month_bounds,
    month_key,
    month_window,
    parse_date,
    utcnow,
)
from backend.app.services.budget_service import budget_snapshots
from backend.app.services.ledger_store import LedgerStore
from backend.app.services.ownership import require_user

logger = logging.getLogger(__name__)

UNCATEGORIZED = "Uncategorized"
OTHER_INCOME = "Other income"
OVERVIEW_MONTHS = 3

DateInput = Union[str, date, None]


def _base_currency(accounts: List[LedgerAccount]) -> str:
    return accounts[0].currency if accounts else default_currency()


def _personal_accounts(store: LedgerStore, user_id: str) -> List[LedgerAccount]:
    return store.find_accounts(user_id, None, active_only=True)


def _resolve_range(start: DateInput, end: DateInput, today: date) -> Tuple[date, date]:
    default_start, default_end = month_bounds(today)
    start_date = parse_date(start) if start else default_start
    end_date = parse_date(end) if end else default_end
    if start_date > end_date:
        raise InvalidInput("start must not be after end")
    return start_date, end_date


def _spending_breakdown(transactions: List[LedgerTransaction]) -> Tuple[List[Dict[str, Any]], float]:
    buckets = bucket_by(
        (tx for tx in transactions if tx.direction == SPENDING),
        lambda tx: tx.category or UNCATEGORIZED,
    )
    return ranked_shares(buckets, label="category", share_label="share_of_spending")


def _income_source_key(tx: LedgerTransaction) -> str:
    return tx.income_source or tx.type or tx.label or OTHER_INCOME


def _income_breakdown(transactions: List[LedgerTransaction]) -> Tuple[List[Dict[str, Any]], float]:
    incoming = [tx for tx in transactions if tx.direction == INCOME]
    rows, total = ranked_shares(
        bucket_by(incoming, _income_source_key),
        label="source",
        share_label="share_of_income",
    )
    tags: Dict[str, Optional[str]] = {}
    for tx in incoming:
        key = _income_source_key(tx)
        if tags.get(key) is None:
            tags[key] = tx.income_source_type
    for row in rows:
        row["tag"] = tags.get(row["source"])
    return rows, total


def _seasonality(store: LedgerStore, user_id: str, months: Optional[int], today: date) -> Tuple[Seasonality, List[LedgerTransaction]]:
    period = normalize_months(months)
    window_start = month_window(today, period)[0]
    window_end = month_bounds(today)[1]
    transactions = store.find_transactions(
        user_id, None, start=window_start, end=window_end, directions=(INCOME, SPENDING)
    )
    return compute_seasonality(transactions, months=period, today=today), transactions


# -------------------------
# Overview
# -------------------------

def get_overview(store: LedgerStore, user_id: str, *, now: Optional[datetime] = None) -> Dict[str, Any]:
    require_user(store, user_id)
    now = now or utcnow()
    today = as_utc_date(now)

    accounts = _personal_accounts(store, user_id)
    currency = _base_currency(accounts)
    transactions = (
        store.find_transactions(user_id, None, account_ids=[a.id for a in accounts]) if accounts else []
    )

    net_worth_accounts = {a.id for a in accounts if a.include_in_net_worth}

    total_balance = balance_of(tx for tx in transactions if tx.account_id in net_worth_accounts)

    month_start, month_end = month_bounds(today)
    month_income, month_spending = income_and_spending(
        tx for tx in transactions if month_start <= tx.occurred_on <= month_end
    )

    last_months = build_monthly_series(transactions, months=OVERVIEW_MONTHS, today=today)

    budgets = budget_snapshots(
        store, user_id, None, store.find_budgets(user_id, None, status="active"), currency
    )

    return {
        "total_balance": total_balance,
        "total_accounts": len(accounts),
        "base_currency": currency,
        "month": month_key(today),
        "month_income": month_income,
        "month_spending": month_spending,
        "month_net": month_income - month_spending,
        "last_3_months": [
            {"month": p.month, "income": p.income, "spending": p.spending, "net": p.net}
            for p in last_months
        ],
        "budgets": budgets,
        "generated_at": now,
    }


# -------------------------
# Breakdowns
# -------------------------

def spending_by_category(
    store: LedgerStore,
    user_id: str,
    *,
    start: DateInput = None,
    end: DateInput = None,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    require_user(store, user_id)
    now = now or utcnow()
    start_date, end_date = _resolve_range(start, end, as_utc_date(now))

    transactions = store.find_transactions(user_id, None, start=start_date, end=end_date, directions=(SPENDING,))
    categories, total = _spending_breakdown(transactions)

    return {
        "period": {"from": start_date, "to": end_date},
        "currency": _base_currency(_personal_accounts(store, user_id)),
        "total_spending": total,
        "categories": categories,
        "top_category": top_key(categories, "category"),
        "generated_at": now,
    }


def income_sources(
    store: LedgerStore,
    user_id: str,
    *,
    start: DateInput = None,
    end: DateInput = None,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    require_user(store, user_id)
    now = now or utcnow()
    start_date, end_date = _resolve_range(start, end, as_utc_date(now))

    transactions = store.find_transactions(user_id, None, start=start_date, end=end_date, directions=(INCOME,))
    sources, total = _income_breakdown(transactions)

    return {
        "period": {"from": start_date, "to": end_date},
        "currency": _base_currency(_personal_accounts(store, user_id)),
        "total_income": total,
        "sources": sources,
        "top_source": top_key(sources, "source"),
        "generated_at": now,
    }


# -------------------------
# Seasonality & score
# -------------------------

def get_seasonality(
    store: LedgerStore,
    user_id: str,
    *,
    months: Optional[int] = None,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    require_user(store, user_id)
    now = now or utcnow()
    seasonality, _ = _seasonality(store, user_id, months, as_utc_date(now))

    return {
        "period_months": seasonality.period_months,
        "currency": _base_currency(_personal_accounts(store, user_id)),
        "mean_net": seasonality.mean_net,
        "stddev_net": seasonality.stddev_net,
        "points": [asdict(p) for p in seasonality.points],
        "generated_at": now,
    }


def get_financial_health(
    store: LedgerStore,
    user_id: str,
    *,
    months: Optional[int] = None,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    require_user(store, user_id)
    now = now or utcnow()
    seasonality, transactions = _seasonality(store, user_id, months, as_utc_date(now))

    categories, _ = _spending_breakdown(transactions)
    sources, _ = _income_breakdown(transactions)

    health = compute_health_score(
        seasonality.points,
        period_months=seasonality.period_months,
        top_category=top_key(categories, "category"),
        top_source=top_key(sources, "source"),
    )
    logger.info("Financial health for user_id=%s: score=%.2f grade=%s", user_id, health.score, health.grade)

    return {
        "score": health.score,
        "grade": health.grade,
        "explanation": health.explanation,
        "inputs": {
            "savings_rate": health.savings_rate,
            "volatility": health.volatility,
            "months_in_red": health.months_in_red,
            "period_months": health.period_months,
            "top_category": health.top_category,
            "top_source": health.top_source,
        },
        "generated_at": now,
    }


# -------------------------
# Savings plan
# -------------------------

def get_savings_plan(
    store: LedgerStore,
    user_id: str,
    *,
    target_amount: float,
    target_date: Union[str, date],
    current_savings: Optional[float] = None,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """
    Savings plan against the user's recent cashflow: estimated income and
    spending are the averages of the overview's last three months.
    """
    now = now or utcnow()
    overview = get_overview(store, user_id, now=now)

    recent = overview["last_3_months"]
    months = len(recent) or 1
    estimated_income = sum(m["income"] for m in recent) / months
    estimated_spending = sum(m["spending"] for m in recent) / months

    plan = compute_savings_plan(
        target_amount,
        target_date,
        today=as_utc_date(now),
        estimated_monthly_income=estimated_income,
        estimated_monthly_spending=estimated_spending,
        current_balance=overview["total_balance"],
        current_savings=current_savings,
    )

    payload = asdict(plan)
    payload["base_currency"] = overview["base_currency"]
    payload["generated_at"] = now
    return payload
