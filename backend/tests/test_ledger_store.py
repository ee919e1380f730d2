from datetime import date
from decimal import Decimal
import os
from pathlib import Path
import sys
import uuid

import pytest

sys.path.append(str(Path(__file__).resolve().parents[2]))
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

from backend.app.errors import NotFound, OwnershipViolation
from backend.app.models import Account, Budget, Business, Category, IncomeSource, Transaction, User
from backend.app.services.ownership import require_budget_owned, require_business_owned, require_user


def _user(db, name="Alex"):
    user = User(email=f"{uuid.uuid4().hex}@example.com", display_name=name)
    db.add(user)
    db.flush()
    return user


def _account(db, user, business=None, **kwargs):
    acct = Account(
        user_id=user.id,
        business_id=business.id if business else None,
        name=kwargs.pop("name", "Main"),
        currency="EUR",
        **kwargs,
    )
    db.add(acct)
    db.flush()
    return acct


def _txn(db, acct, occurred_on, direction, amount, **kwargs):
    txn = Transaction(
        user_id=acct.user_id,
        business_id=acct.business_id,
        account_id=acct.id,
        occurred_on=occurred_on,
        direction=direction,
        amount=Decimal(amount),
        currency="EUR",
        label=kwargs.pop("label", "txn"),
        **kwargs,
    )
    db.add(txn)
    db.flush()
    return txn


@pytest.fixture()
def ledger(sqlite_session):
    db = sqlite_session
    user = _user(db)
    biz = Business(user_id=user.id, name="Studio", currency="EUR")
    db.add(biz)
    db.flush()

    personal = _account(db, user)
    business_acct = _account(db, user, biz, name="Studio bank")
    _account(db, user, name="Closed", is_active=False)

    groceries = Category(user_id=user.id, name="Groceries", kind="expense")
    salary = IncomeSource(user_id=user.id, name="Salary", type="salary")
    db.add_all([groceries, salary])
    db.flush()

    _txn(db, personal, date(2024, 1, 5), "in", "3000.00", income_source_id=salary.id)
    _txn(db, personal, date(2024, 1, 31), "out", "120.45", category_id=groceries.id)
    _txn(db, personal, date(2024, 2, 1), "out", "80.00")
    _txn(db, personal, date(2024, 1, 15), "transfer", "500.00")
    _txn(db, business_acct, date(2024, 1, 20), "out", "999.00")
    db.commit()
    return {"user": user, "business": biz, "personal": personal}


def test_personal_scope_excludes_business_rows(ledger_store, ledger):
    user = ledger["user"]
    txs = ledger_store.find_transactions(user.id, None)
    assert len(txs) == 4
    assert all(tx.business_id is None for tx in txs)
    assert [tx.occurred_on for tx in txs] == sorted(tx.occurred_on for tx in txs)

    biz_txs = ledger_store.find_transactions(user.id, ledger["business"].id)
    assert [tx.amount for tx in biz_txs] == [999.0]


def test_direction_and_inclusive_date_filters(ledger_store, ledger):
    txs = ledger_store.find_transactions(
        ledger["user"].id,
        None,
        start=date(2024, 1, 5),
        end=date(2024, 1, 31),
        directions=("in", "out"),
    )
    assert [(tx.direction, tx.amount) for tx in txs] == [("in", 3000.0), ("out", 120.45)]
    assert all(isinstance(tx.amount, float) for tx in txs)


def test_records_carry_category_and_source_names(ledger_store, ledger):
    txs = ledger_store.find_transactions(ledger["user"].id, None, directions=("in", "out"))
    by_amount = {tx.amount: tx for tx in txs}
    assert by_amount[3000.0].income_source == "Salary"
    assert by_amount[3000.0].income_source_type == "salary"
    assert by_amount[120.45].category == "Groceries"
    assert by_amount[120.45].category_kind == "expense"
    assert by_amount[80.0].category is None


def test_find_accounts_skips_inactive_by_default(ledger_store, ledger):
    user = ledger["user"]
    assert [a.name for a in ledger_store.find_accounts(user.id)] == ["Main"]
    assert len(ledger_store.find_accounts(user.id, active_only=False)) == 2
    assert [a.name for a in ledger_store.find_accounts(user.id, ledger["business"].id)] == ["Studio bank"]


def test_unknown_user_and_business(ledger_store, ledger):
    with pytest.raises(NotFound):
        require_user(ledger_store, "missing-user")
    with pytest.raises(NotFound):
        require_business_owned(ledger_store, "missing-business", ledger["user"].id)


def test_business_of_another_user_is_forbidden(ledger_store, ledger, sqlite_session):
    stranger = _user(sqlite_session, "Sam")
    sqlite_session.commit()
    with pytest.raises(OwnershipViolation):
        require_business_owned(ledger_store, ledger["business"].id, stranger.id)


def test_budget_must_match_user_and_scope(ledger_store, ledger, sqlite_session):
    user = ledger["user"]
    budget = Budget(
        user_id=user.id,
        business_id=None,
        name="Household",
        amount=Decimal("500.00"),
        period_start=date(2024, 1, 1),
        period_end=date(2024, 1, 31),
    )
    sqlite_session.add(budget)
    sqlite_session.commit()

    record = require_budget_owned(ledger_store, budget.id, user.id)
    assert record.amount == 500.0
    assert record.status == "active"

    with pytest.raises(OwnershipViolation):
        require_budget_owned(ledger_store, budget.id, user.id, ledger["business"].id)
    with pytest.raises(NotFound):
        require_budget_owned(ledger_store, "missing-budget", user.id)
