from __future__ import annotations

from dataclasses import asdict
from datetime import date, datetime
from typing import Any, Dict, Optional, Union

from backend.app.config import default_currency
from backend.app.errors import InvalidInput
from backend.app.insights.clients import TOP_CLIENTS_LIMIT, compute_top_clients
from backend.app.insights.pipeline import compute_quote_pipeline
from backend.app.insights.time_buckets import as_utc_date, parse_date, shift_months, utcnow
from backend.app.services.ledger_store import LedgerStore
from backend.app.services.ownership import require_business_owned, require_user

TOP_CLIENTS_LOOKBACK_MONTHS = 12


def get_pipeline(
    store: LedgerStore,
    user_id: str,
    business_id: str,
    *,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    require_user(store, user_id)
    business = require_business_owned(store, business_id, user_id)
    now = now or utcnow()

    pipeline = compute_quote_pipeline(store.find_quotes(business_id), now=now)
    return {
        "business_id": business_id,
        "currency": business.currency or default_currency(),
        **asdict(pipeline),
        "generated_at": now,
    }


def get_top_clients(
    store: LedgerStore,
    user_id: str,
    business_id: str,
    *,
    start: Union[str, date, None] = None,
    end: Union[str, date, None] = None,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """
    Best clients by amount paid over a period that defaults to the last
    twelve months up to today.
    """
    require_user(store, user_id)
    business = require_business_owned(store, business_id, user_id)
    now = now or utcnow()
    today = as_utc_date(now)

    end_date = parse_date(end) if end else today
    start_date = parse_date(start) if start else shift_months(end_date, -TOP_CLIENTS_LOOKBACK_MONTHS)
    if start_date > end_date:
        raise InvalidInput("start must not be after end")

    invoices = store.find_invoices(business_id, start=start_date, end=end_date)
    clients = compute_top_clients(invoices, start=start_date, end=end_date, limit=TOP_CLIENTS_LIMIT)
    return {
        "business_id": business_id,
        "currency": business.currency or default_currency(),
        "period": {"from": start_date, "to": end_date},
        "top_clients": [asdict(c) for c in clients],
        "generated_at": now,
    }
