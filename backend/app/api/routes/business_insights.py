from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from backend.app.api.deps import get_current_user_id, get_ledger_store
from backend.app.api.routes.personal_insights import InsightFeedOut, PeriodOut
from backend.app.services import business_insights_service, insight_feed_service
from backend.app.services.ledger_store import LedgerStore

router = APIRouter(prefix="/api/business", tags=["business_insights"])


class PipelineOut(BaseModel):
    business_id: str
    currency: str
    quote_count: int
    accepted_count: int
    conversion_rate: float
    avg_time_to_accept_days: float
    total_quoted: float
    total_accepted: float
    generated_at: datetime


class ClientSummaryOut(BaseModel):
    client_id: str
    name: str
    total_invoiced: float
    total_paid: float
    project_count: int
    average_invoice: float
    last_activity_at: Optional[datetime] = None


class TopClientsOut(BaseModel):
    business_id: str
    currency: str
    period: PeriodOut
    top_clients: List[ClientSummaryOut]
    generated_at: datetime


@router.get("/{business_id}/insights/pipeline", response_model=PipelineOut)
def get_pipeline(
    business_id: str,
    user_id: str = Depends(get_current_user_id),
    store: LedgerStore = Depends(get_ledger_store),
):
    return business_insights_service.get_pipeline(store, user_id, business_id)


@router.get("/{business_id}/insights/clients", response_model=TopClientsOut)
def get_top_clients(
    business_id: str,
    start: Optional[str] = Query(None, alias="from"),
    end: Optional[str] = Query(None, alias="to"),
    user_id: str = Depends(get_current_user_id),
    store: LedgerStore = Depends(get_ledger_store),
):
    return business_insights_service.get_top_clients(store, user_id, business_id, start=start, end=end)


@router.get("/{business_id}/insights/feed", response_model=InsightFeedOut)
def get_feed(
    business_id: str,
    user_id: str = Depends(get_current_user_id),
    store: LedgerStore = Depends(get_ledger_store),
):
    return insight_feed_service.business_insights_feed(store, user_id, business_id)
