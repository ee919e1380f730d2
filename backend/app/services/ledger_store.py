"""
Read surface over the ledger database.

The store never writes. Each query returns frozen records from
`backend.app.domain.records`, with money converted to floats here and
nowhere else. `business_id=None` always means the personal scope.
"""

from __future__ import annotations

from datetime import date
import logging
from typing import Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from backend.app.domain.records import (
    LedgerAccount,
    LedgerBudget,
    LedgerInvoice,
    LedgerPayment,
    LedgerProject,
    LedgerQuote,
    LedgerSavingsGoal,
    LedgerTransaction,
)
from backend.app.insights.aggregation import to_float
from backend.app.models import (
    Account,
    Budget,
    Business,
    BusinessSettings,
    Invoice,
    Project,
    Quote,
    SavingsGoal,
    Transaction,
    User,
)

logger = logging.getLogger(__name__)


def _scope(column, business_id: Optional[str]):
    return column.is_(None) if business_id is None else column == business_id


def transaction_record(txn: Transaction) -> LedgerTransaction:
    category = txn.category
    source = txn.income_source
    return LedgerTransaction(
        id=txn.id,
        occurred_on=txn.occurred_on,
        direction=txn.direction,
        amount=to_float(txn.amount),
        currency=txn.currency,
        label=txn.label,
        account_id=txn.account_id,
        business_id=txn.business_id,
        type=txn.type,
        category=category.name if category else None,
        category_kind=category.kind if category else None,
        income_source=source.name if source else None,
        income_source_type=source.type if source else None,
        project_id=txn.project_id,
    )


def budget_record(budget: Budget) -> LedgerBudget:
    return LedgerBudget(
        id=budget.id,
        user_id=budget.user_id,
        amount=to_float(budget.amount),
        period_start=budget.period_start,
        period_end=budget.period_end,
        business_id=budget.business_id,
        name=budget.name,
        currency=budget.currency,
        status=budget.status,
    )


class LedgerStore:
    def __init__(self, db: Session):
        self.db = db

    # -------------------------
    # Lookups
    # -------------------------

    def get_user(self, user_id: str) -> Optional[User]:
        return self.db.get(User, user_id)

    def get_business(self, business_id: str) -> Optional[Business]:
        return self.db.get(Business, business_id)

    def get_budget(self, budget_id: str) -> Optional[LedgerBudget]:
        budget = self.db.get(Budget, budget_id)
        return budget_record(budget) if budget else None

    # -------------------------
    # Queries
    # -------------------------

    def find_transactions(
        self,
        user_id: str,
        business_id: Optional[str] = None,
        *,
        start: Optional[date] = None,
        end: Optional[date] = None,
        directions: Optional[Iterable[str]] = None,
        account_ids: Optional[Iterable[str]] = None,
        project_ids: Optional[Iterable[str]] = None,
    ) -> List[LedgerTransaction]:
        stmt = select(Transaction).where(
            Transaction.user_id == user_id,
            _scope(Transaction.business_id, business_id),
        )
        if start is not None:
            stmt = stmt.where(Transaction.occurred_on >= start)
        if end is not None:
            stmt = stmt.where(Transaction.occurred_on <= end)
        if directions is not None:
            stmt = stmt.where(Transaction.direction.in_(list(directions)))
        if account_ids is not None:
            stmt = stmt.where(Transaction.account_id.in_(list(account_ids)))
        if project_ids is not None:
            stmt = stmt.where(Transaction.project_id.in_(list(project_ids)))
        stmt = stmt.order_by(Transaction.occurred_on.asc(), Transaction.id.asc())

        rows = self.db.execute(stmt).scalars().all()
        return [transaction_record(txn) for txn in rows]

    def find_accounts(
        self,
        user_id: str,
        business_id: Optional[str] = None,
        *,
        active_only: bool = True,
    ) -> List[LedgerAccount]:
        stmt = select(Account).where(
            Account.user_id == user_id,
            _scope(Account.business_id, business_id),
        )
        if active_only:
            stmt = stmt.where(Account.is_active.is_(True))
        stmt = stmt.order_by(Account.created_at.asc(), Account.id.asc())

        return [
            LedgerAccount(
                id=acct.id,
                name=acct.name,
                currency=acct.currency,
                business_id=acct.business_id,
                is_active=acct.is_active,
                include_in_budget=acct.include_in_budget,
                include_in_net_worth=acct.include_in_net_worth,
            )
            for acct in self.db.execute(stmt).scalars().all()
        ]

    def find_budgets(
        self,
        user_id: str,
        business_id: Optional[str] = None,
        *,
        status: Optional[str] = None,
    ) -> List[LedgerBudget]:
        stmt = select(Budget).where(
            Budget.user_id == user_id,
            _scope(Budget.business_id, business_id),
        )
        if status is not None:
            stmt = stmt.where(Budget.status == status)
        stmt = stmt.order_by(Budget.period_start.asc(), Budget.id.asc())
        return [budget_record(b) for b in self.db.execute(stmt).scalars().all()]

    def find_savings_goals(self, user_id: str, statuses: Iterable[str]) -> List[LedgerSavingsGoal]:
        stmt = (
            select(SavingsGoal)
            .where(SavingsGoal.user_id == user_id, SavingsGoal.status.in_(list(statuses)))
            .order_by(SavingsGoal.id.asc())
        )
        return [
            LedgerSavingsGoal(
                id=goal.id,
                name=goal.name,
                target_amount=to_float(goal.target_amount),
                current_amount=to_float(goal.current_amount_cached),
                target_date=goal.target_date,
                status=goal.status,
                created_at=goal.created_at,
            )
            for goal in self.db.execute(stmt).scalars().all()
        ]

    def find_projects(self, business_id: str) -> List[LedgerProject]:
        stmt = select(Project).where(Project.business_id == business_id).order_by(Project.id.asc())
        return [
            LedgerProject(
                id=p.id,
                name=p.name,
                status=p.status,
                start_date=p.start_date,
                due_date=p.due_date,
                budget_amount=to_float(p.budget_amount),
            )
            for p in self.db.execute(stmt).scalars().all()
        ]

    def find_quotes(self, business_id: str) -> List[LedgerQuote]:
        stmt = select(Quote).where(Quote.business_id == business_id).order_by(Quote.id.asc())
        return [
            LedgerQuote(
                id=q.id,
                status=q.status,
                total_amount=to_float(q.total_amount),
                issue_date=q.issue_date,
                updated_at=q.updated_at,
            )
            for q in self.db.execute(stmt).scalars().all()
        ]

    def find_invoices(
        self,
        business_id: str,
        *,
        start: Optional[date] = None,
        end: Optional[date] = None,
        statuses: Optional[Iterable[str]] = None,
        due_before: Optional[date] = None,
    ) -> List[LedgerInvoice]:
        stmt = select(Invoice).where(Invoice.business_id == business_id)
        if start is not None:
            stmt = stmt.where(Invoice.invoice_date >= start)
        if end is not None:
            stmt = stmt.where(Invoice.invoice_date <= end)
        if statuses is not None:
            stmt = stmt.where(Invoice.status.in_(list(statuses)))
        if due_before is not None:
            stmt = stmt.where(Invoice.due_date < due_before)
        stmt = stmt.order_by(Invoice.invoice_date.asc(), Invoice.id.asc())

        return [
            LedgerInvoice(
                id=inv.id,
                status=inv.status,
                invoice_date=inv.invoice_date,
                total_amount=to_float(inv.total_amount),
                amount_paid=to_float(inv.amount_paid_cached),
                due_date=inv.due_date,
                client_id=inv.client_id,
                client_name=inv.client.name if inv.client else None,
                project_id=inv.project_id,
                payments=[LedgerPayment(amount=to_float(p.amount), paid_at=p.paid_at) for p in inv.payments],
            )
            for inv in self.db.execute(stmt).unique().scalars().all()
        ]

    def get_monthly_revenue_goal(self, business_id: str) -> Optional[float]:
        settings = self.db.get(BusinessSettings, business_id)
        if settings is None or settings.monthly_revenue_goal is None:
            return None
        return to_float(settings.monthly_revenue_goal)
