from __future__ import annotations

from datetime import date, datetime
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from backend.app.api.deps import get_current_user_id, get_ledger_store
from backend.app.services import budget_service
from backend.app.services.ledger_store import LedgerStore

router = APIRouter(prefix="/api/budgets", tags=["budgets"])


class BudgetAlertOut(BaseModel):
    severity: Literal["warning", "critical"]
    overspend_pct: float
    message: str


class BudgetSnapshotOut(BaseModel):
    id: str
    name: str
    currency: str
    amount: float
    spent: float
    remaining: float
    consumption_rate: float
    utilization_pct: float
    is_over_budget: bool
    alert: Optional[BudgetAlertOut] = None
    period_start: date
    period_end: date


class BudgetConsumptionOut(BudgetSnapshotOut):
    generated_at: datetime


class BudgetListOut(BaseModel):
    currency: str
    budgets: List[BudgetSnapshotOut]
    generated_at: datetime


@router.get("", response_model=BudgetListOut)
def list_budgets(
    business_id: Optional[str] = Query(None),
    user_id: str = Depends(get_current_user_id),
    store: LedgerStore = Depends(get_ledger_store),
):
    return budget_service.list_budget_consumption(store, user_id, business_id=business_id)


@router.get("/{budget_id}", response_model=BudgetConsumptionOut)
def get_budget(
    budget_id: str,
    business_id: Optional[str] = Query(None),
    user_id: str = Depends(get_current_user_id),
    store: LedgerStore = Depends(get_ledger_store),
):
    return budget_service.get_budget_consumption(store, user_id, budget_id, business_id=business_id)
