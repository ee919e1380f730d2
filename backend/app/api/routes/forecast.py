from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from backend.app.api.deps import get_current_user_id, get_ledger_store
from backend.app.services import forecast_service
from backend.app.services.ledger_store import LedgerStore

router = APIRouter(prefix="/api/forecast", tags=["forecast"])


class GoalProgressOut(BaseModel):
    goal_id: str
    target_amount: float
    projected_amount: float
    projected_completion_date: Optional[date] = None


class PersonalForecastMonthOut(BaseModel):
    month: str
    projected_amount: float
    goals_progress: List[GoalProgressOut]


class PersonalForecastOut(BaseModel):
    horizon_months: int
    contribution_per_month: float
    starting_amount: float
    months: List[PersonalForecastMonthOut]
    generated_at: datetime


class BusinessForecastMonthOut(BaseModel):
    month: str
    forecasted_revenue: float
    forecasted_costs: float
    forecasted_margin: float


class BusinessForecastAssumptionsOut(BaseModel):
    recurring_expenses_per_month: float
    pipeline_weighted_revenue: float


class BusinessForecastOut(BaseModel):
    business_id: str
    currency: str
    horizon_months: int
    months: List[BusinessForecastMonthOut]
    assumptions: BusinessForecastAssumptionsOut
    generated_at: datetime


# Out-of-range horizons are clamped by the service, not rejected here.
@router.get("/personal", response_model=PersonalForecastOut)
def get_personal_forecast(
    horizon_months: int = Query(forecast_service.DEFAULT_HORIZON_MONTHS),
    contributions_per_month: Optional[float] = Query(None),
    user_id: str = Depends(get_current_user_id),
    store: LedgerStore = Depends(get_ledger_store),
):
    return forecast_service.compute_personal_savings_forecast(
        store,
        user_id,
        horizon_months=horizon_months,
        contributions_per_month=contributions_per_month,
    )


@router.get("/business/{business_id}", response_model=BusinessForecastOut)
def get_business_forecast(
    business_id: str,
    horizon_months: int = Query(forecast_service.DEFAULT_HORIZON_MONTHS),
    user_id: str = Depends(get_current_user_id),
    store: LedgerStore = Depends(get_ledger_store),
):
    return forecast_service.compute_business_forecast(
        store,
        user_id,
        business_id,
        horizon_months=horizon_months,
    )
