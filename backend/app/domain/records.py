"""
Read-only ledger snapshots handed to the insights engine.

The ledger store converts ORM rows (decimal-backed money) into these
frozen records once; everything downstream works on plain floats.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import List, Literal, Optional

Direction = Literal["in", "out", "transfer"]


@dataclass(frozen=True)
class LedgerTransaction:
    id: str
    occurred_on: date
    direction: Direction
    amount: float
    currency: str
    label: str
    account_id: str
    business_id: Optional[str] = None
    type: Optional[str] = None
    category: Optional[str] = None
    category_kind: Optional[str] = None
    income_source: Optional[str] = None
    income_source_type: Optional[str] = None
    project_id: Optional[str] = None


@dataclass(frozen=True)
class LedgerAccount:
    id: str
    name: str
    currency: str
    business_id: Optional[str] = None
    is_active: bool = True
    include_in_budget: bool = True
    include_in_net_worth: bool = True


@dataclass(frozen=True)
class LedgerBudget:
    id: str
    user_id: str
    amount: float
    period_start: date
    period_end: date
    business_id: Optional[str] = None
    name: Optional[str] = None
    currency: Optional[str] = None
    status: str = "active"


@dataclass(frozen=True)
class LedgerSavingsGoal:
    id: str
    name: str
    target_amount: float
    current_amount: float
    target_date: Optional[date] = None
    status: str = "active"
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class LedgerProject:
    id: str
    status: str
    name: Optional[str] = None
    start_date: Optional[date] = None
    due_date: Optional[date] = None
    budget_amount: float = 0.0


@dataclass(frozen=True)
class LedgerQuote:
    id: str
    status: str
    total_amount: float = 0.0
    issue_date: Optional[date] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class LedgerPayment:
    amount: float
    paid_at: datetime


@dataclass(frozen=True)
class LedgerInvoice:
    id: str
    status: str
    invoice_date: date
    total_amount: float = 0.0
    amount_paid: float = 0.0
    due_date: Optional[date] = None
    client_id: Optional[str] = None
    client_name: Optional[str] = None
    project_id: Optional[str] = None
    payments: List[LedgerPayment] = field(default_factory=list)
