from datetime import date
from pathlib import Path
import sys

import pytest

sys.path.append(str(Path(__file__).resolve().parents[2]))

from backend.app.domain.records import LedgerTransaction
from backend.app.insights.aggregation import (
    average_monthly_total,
    balance_of,
    bucket_by,
    income_and_spending,
    ranked_shares,
    signed_amount,
    top_key,
)


def _tx(idx: int, direction: str, amount: float, occurred_on: date, category=None) -> LedgerTransaction:
    return LedgerTransaction(
        id=f"tx_{idx}",
        occurred_on=occurred_on,
        direction=direction,
        amount=amount,
        currency="EUR",
        label=f"txn {idx}",
        account_id="acct_1",
        category=category,
    )


def test_signed_amount_uses_direction():
    assert signed_amount(80.0, "in") == 80.0
    assert signed_amount(80.0, "out") == -80.0
    assert signed_amount(80.0, "transfer") == 0.0


def test_income_and_spending_ignore_transfers():
    txs = [
        _tx(1, "in", 1000.0, date(2024, 1, 2)),
        _tx(2, "out", 250.0, date(2024, 1, 3)),
        _tx(3, "transfer", 400.0, date(2024, 1, 4)),
    ]
    assert income_and_spending(txs) == (1000.0, 250.0)
    assert balance_of(txs) == 750.0


def test_ranked_shares_sum_to_one_and_sort_by_total():
    txs = [
        _tx(1, "out", 50.0, date(2024, 1, 1), "Food"),
        _tx(2, "out", 100.0, date(2024, 1, 2), "Rent"),
        _tx(3, "out", 30.0, date(2024, 1, 3), "Food"),
        _tx(4, "out", 20.0, date(2024, 1, 4), "Fun"),
    ]
    rows, whole = ranked_shares(bucket_by(txs, lambda tx: tx.category), label="category", share_label="share")

    assert whole == 200.0
    assert [r["category"] for r in rows] == ["Rent", "Food", "Fun"]
    assert [r["transaction_count"] for r in rows] == [1, 2, 1]
    assert rows[1]["share"] == pytest.approx(0.4)
    assert sum(r["share"] for r in rows) == pytest.approx(1.0)
    assert top_key(rows, "category") == "Rent"


def test_ranked_shares_ties_keep_first_seen_order():
    txs = [
        _tx(1, "out", 10.0, date(2024, 1, 1), "B"),
        _tx(2, "out", 10.0, date(2024, 1, 2), "A"),
    ]
    rows, _ = ranked_shares(bucket_by(txs, lambda tx: tx.category), label="category", share_label="share")
    assert [r["category"] for r in rows] == ["B", "A"]


def test_ranked_shares_empty_has_no_top_key():
    rows, whole = ranked_shares({}, label="category", share_label="share")
    assert rows == []
    assert whole == 0.0
    assert top_key(rows, "category") is None


def test_average_monthly_total_uses_months_with_data():
    txs = [
        _tx(1, "out", 60.0, date(2024, 1, 5)),
        _tx(2, "out", 40.0, date(2024, 1, 20)),
        _tx(3, "out", 50.0, date(2024, 3, 1)),
    ]
    assert average_monthly_total(txs) == 75.0
    assert average_monthly_total([]) == 0.0


def test_zero_total_gives_zero_shares():
    txs = [_tx(1, "out", 0.0, date(2024, 1, 1), "Free"), _tx(2, "out", 0.0, date(2024, 1, 2), "Gift")]
    rows, whole = ranked_shares(bucket_by(txs, lambda tx: tx.category), label="category", share_label="share")
    assert whole == 0.0
    assert [r["share"] for r in rows] == [0.0, 0.0]
