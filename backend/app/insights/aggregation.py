from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from backend.app.domain.records import LedgerTransaction
from backend.app.insights.time_buckets import month_key

logger = logging.getLogger(__name__)

INCOME = "in"
SPENDING = "out"


def to_float(value: Any) -> float:
    """Single conversion point from stored (decimal-backed) money to plain floats."""
    if value is None:
        return 0.0
    return float(value)


def is_income(tx: LedgerTransaction) -> bool:
    return tx.direction == INCOME


def is_spending(tx: LedgerTransaction) -> bool:
    return tx.direction == SPENDING


def signed_amount(amount: float, direction: str) -> float:
    """
    +amount for income, -amount for spending.

    Transfer legs are not paired in the ledger, so a transfer contributes 0.
    """
    amt = to_float(amount)
    if amt < 0:
        logger.warning("Invariant guard: stored transaction amount is negative: %s", amt)
    if direction == INCOME:
        return amt
    if direction == SPENDING:
        return -amt
    return 0.0


def share_of(part: float, whole: float) -> float:
    return part / whole if whole > 0 else 0.0


@dataclass
class BucketTotal:
    total: float = 0.0
    count: int = 0


def bucket_by(
    transactions: Iterable[LedgerTransaction],
    key_fn: Callable[[LedgerTransaction], str],
) -> Dict[str, BucketTotal]:
    """
    Group transaction amounts by key. Keys keep first-seen order.
    """
    buckets: Dict[str, BucketTotal] = {}
    for tx in transactions:
        key = key_fn(tx)
        bucket = buckets.get(key)
        if bucket is None:
            bucket = BucketTotal()
            buckets[key] = bucket
        bucket.total += to_float(tx.amount)
        bucket.count += 1
    return buckets


def ranked_shares(
    buckets: Dict[str, BucketTotal],
    *,
    label: str,
    share_label: str,
) -> Tuple[List[Dict[str, Any]], float]:
    """
    Bucket rows sorted by total descending (ties keep first-seen order),
    each with its share of the grand total.
    """
    whole = sum(bucket.total for bucket in buckets.values())
    rows = [
        {
            label: key,
            "total": bucket.total,
            "transaction_count": bucket.count,
            share_label: share_of(bucket.total, whole),
        }
        for key, bucket in buckets.items()
    ]
    rows.sort(key=lambda row: -row["total"])
    return rows, whole


def income_and_spending(transactions: Iterable[LedgerTransaction]) -> Tuple[float, float]:
    income = 0.0
    spending = 0.0
    for tx in transactions:
        if is_income(tx):
            income += to_float(tx.amount)
        elif is_spending(tx):
            spending += to_float(tx.amount)
    return income, spending


def balance_of(transactions: Iterable[LedgerTransaction]) -> float:
    return sum(signed_amount(tx.amount, tx.direction) for tx in transactions)


def monthly_totals(transactions: Iterable[LedgerTransaction]) -> Dict[str, float]:
    return {key: bucket.total for key, bucket in bucket_by(transactions, lambda tx: month_key(tx.occurred_on)).items()}


def average_monthly_total(transactions: Iterable[LedgerTransaction]) -> float:
    """
    Mean of per-month totals over the months that contain at least one transaction.
    """
    totals = list(monthly_totals(transactions).values())
    if not totals:
        return 0.0
    return sum(totals) / len(totals)


def top_key(rows: List[Dict[str, Any]], label: str) -> Optional[str]:
    return rows[0][label] if rows else None
