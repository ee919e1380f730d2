from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, List, Literal, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict, Field

from backend.app.api.deps import get_current_user_id, get_ledger_store
from backend.app.api.routes.budgets import BudgetSnapshotOut
from backend.app.services import insight_feed_service, personal_insights_service
from backend.app.services.ledger_store import LedgerStore

router = APIRouter(prefix="/api/personal/insights", tags=["personal_insights"])


class MonthSummaryOut(BaseModel):
    month: str
    income: float
    spending: float
    net: float


class OverviewOut(BaseModel):
    total_balance: float
    total_accounts: int
    base_currency: str
    month: str
    month_income: float
    month_spending: float
    month_net: float
    last_3_months: List[MonthSummaryOut]
    budgets: List[BudgetSnapshotOut]
    generated_at: datetime


class PeriodOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    from_: date = Field(alias="from")
    to: date


class CategoryShareOut(BaseModel):
    category: str
    total: float
    transaction_count: int
    share_of_spending: float


class SpendingByCategoryOut(BaseModel):
    period: PeriodOut
    currency: str
    total_spending: float
    categories: List[CategoryShareOut]
    top_category: Optional[str] = None
    generated_at: datetime


class IncomeSourceShareOut(BaseModel):
    source: str
    total: float
    transaction_count: int
    share_of_income: float
    tag: Optional[str] = None


class IncomeSourcesOut(BaseModel):
    period: PeriodOut
    currency: str
    total_income: float
    sources: List[IncomeSourceShareOut]
    top_source: Optional[str] = None
    generated_at: datetime


class SeasonalityPointOut(BaseModel):
    month: str
    income: float
    spending: float
    net: float
    z_score: float
    is_anomaly: bool


class SeasonalityOut(BaseModel):
    period_months: int
    currency: str
    mean_net: float
    stddev_net: float
    points: List[SeasonalityPointOut]
    generated_at: datetime


class ScoreInputsOut(BaseModel):
    savings_rate: float
    volatility: float
    months_in_red: int
    period_months: int
    top_category: Optional[str] = None
    top_source: Optional[str] = None


class FinancialHealthOut(BaseModel):
    score: float
    grade: Literal["A", "B", "C", "D", "E"]
    explanation: List[str]
    inputs: ScoreInputsOut
    generated_at: datetime


class SavingsPlanOut(BaseModel):
    base_currency: str
    target_amount: float
    target_date: date
    today: date
    months_remaining: int
    days_remaining: int
    estimated_monthly_income: float
    estimated_monthly_spending: float
    estimated_savings_capacity: float
    current_balance: float
    effective_current_savings: float
    amount_still_needed: float
    required_monthly_savings: float
    required_daily_savings: float
    required_savings_rate: float
    status: Literal["on_track", "stretch", "unrealistic"]
    notes: List[str]
    generated_at: datetime


class InsightOut(BaseModel):
    id: str
    category: str
    severity: Literal["info", "warning", "critical"]
    title: str
    message: str
    data: Dict[str, Any] = {}


class InsightFeedOut(BaseModel):
    insights: List[InsightOut]
    generated_at: datetime


@router.get("/overview", response_model=OverviewOut)
def get_overview(
    user_id: str = Depends(get_current_user_id),
    store: LedgerStore = Depends(get_ledger_store),
):
    return personal_insights_service.get_overview(store, user_id)


@router.get("/spending", response_model=SpendingByCategoryOut)
def get_spending_by_category(
    start: Optional[str] = Query(None, alias="from"),
    end: Optional[str] = Query(None, alias="to"),
    user_id: str = Depends(get_current_user_id),
    store: LedgerStore = Depends(get_ledger_store),
):
    return personal_insights_service.spending_by_category(store, user_id, start=start, end=end)


@router.get("/income-sources", response_model=IncomeSourcesOut)
def get_income_sources(
    start: Optional[str] = Query(None, alias="from"),
    end: Optional[str] = Query(None, alias="to"),
    user_id: str = Depends(get_current_user_id),
    store: LedgerStore = Depends(get_ledger_store),
):
    return personal_insights_service.income_sources(store, user_id, start=start, end=end)


@router.get("/seasonality", response_model=SeasonalityOut)
def get_seasonality(
    months: Optional[int] = Query(None),
    user_id: str = Depends(get_current_user_id),
    store: LedgerStore = Depends(get_ledger_store),
):
    return personal_insights_service.get_seasonality(store, user_id, months=months)


@router.get("/score", response_model=FinancialHealthOut)
def get_score(
    months: Optional[int] = Query(None),
    user_id: str = Depends(get_current_user_id),
    store: LedgerStore = Depends(get_ledger_store),
):
    return personal_insights_service.get_financial_health(store, user_id, months=months)


@router.get("/savings-plan", response_model=SavingsPlanOut)
def get_savings_plan(
    target_amount: float = Query(...),
    target_date: str = Query(...),
    current_savings: Optional[float] = Query(None),
    user_id: str = Depends(get_current_user_id),
    store: LedgerStore = Depends(get_ledger_store),
):
    return personal_insights_service.get_savings_plan(
        store,
        user_id,
        target_amount=target_amount,
        target_date=target_date,
        current_savings=current_savings,
    )


@router.get("/feed", response_model=InsightFeedOut)
def get_feed(
    user_id: str = Depends(get_current_user_id),
    store: LedgerStore = Depends(get_ledger_store),
):
    return insight_feed_service.personal_insights_feed(store, user_id)
