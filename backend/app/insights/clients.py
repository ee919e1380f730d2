from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Dict, Iterable, List, Optional, Set

from backend.app.domain.records import LedgerInvoice
from backend.app.insights.time_buckets import as_utc_date, as_utc_datetime

UNKNOWN_CLIENT = "Unknown client"
TOP_CLIENTS_LIMIT = 5


@dataclass(frozen=True)
class ClientSummary:
    client_id: str
    name: str
    total_invoiced: float
    total_paid: float
    project_count: int
    average_invoice: float
    last_activity_at: Optional[datetime] = None


@dataclass
class _ClientTotals:
    name: str
    invoiced: float = 0.0
    paid: float = 0.0
    invoice_count: int = 0
    project_ids: Set[str] = field(default_factory=set)
    last_activity: Optional[datetime] = None

    def touch(self, at: datetime) -> None:
        if self.last_activity is None or at > self.last_activity:
            self.last_activity = at


def compute_top_clients(
    invoices: Iterable[LedgerInvoice],
    *,
    start: date,
    end: date,
    limit: int = TOP_CLIENTS_LIMIT,
) -> List[ClientSummary]:
    """
    Per-client invoicing over [start, end], ranked by amount paid, then by
    amount invoiced. Only payments made inside the period count as paid.
    Invoices without a client are grouped under one "Unknown client" row.
    """
    totals: Dict[Optional[str], _ClientTotals] = {}
    for inv in invoices:
        if not start <= inv.invoice_date <= end:
            continue
        bucket = totals.get(inv.client_id)
        if bucket is None:
            name = inv.client_name if inv.client_id and inv.client_name else UNKNOWN_CLIENT
            bucket = _ClientTotals(name=name)
            totals[inv.client_id] = bucket

        bucket.invoiced += inv.total_amount
        bucket.invoice_count += 1
        if inv.project_id:
            bucket.project_ids.add(inv.project_id)
        bucket.touch(as_utc_datetime(inv.invoice_date))

        for payment in inv.payments:
            if not start <= as_utc_date(payment.paid_at) <= end:
                continue
            bucket.paid += payment.amount
            bucket.touch(as_utc_datetime(payment.paid_at))

    rows = [
        ClientSummary(
            client_id=client_id or "unknown",
            name=bucket.name,
            total_invoiced=bucket.invoiced,
            total_paid=bucket.paid,
            project_count=len(bucket.project_ids),
            average_invoice=bucket.invoiced / bucket.invoice_count if bucket.invoice_count else 0.0,
            last_activity_at=bucket.last_activity,
        )
        for client_id, bucket in totals.items()
    ]
    rows.sort(key=lambda row: (-row.total_paid, -row.total_invoiced))
    return rows[:limit]
