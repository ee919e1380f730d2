from datetime import date, datetime, timezone
from pathlib import Path
import sys

import pytest

sys.path.append(str(Path(__file__).resolve().parents[2]))

from backend.app.domain.records import LedgerInvoice, LedgerPayment
from backend.app.insights.clients import UNKNOWN_CLIENT, compute_top_clients

START = date(2024, 1, 1)
END = date(2024, 3, 31)


def _invoices():
    return [
        LedgerInvoice(
            id="inv_1",
            status="partially_paid",
            invoice_date=date(2024, 1, 10),
            total_amount=1000.0,
            client_id="c1",
            client_name="Acme",
            project_id="p1",
            payments=[
                LedgerPayment(amount=600.0, paid_at=datetime(2024, 1, 20, 10, 0)),
                LedgerPayment(amount=400.0, paid_at=datetime(2024, 4, 2, 9, 0)),
            ],
        ),
        LedgerInvoice(
            id="inv_2",
            status="paid",
            invoice_date=date(2024, 2, 10),
            total_amount=500.0,
            client_id="c1",
            client_name="Acme",
            project_id="p2",
            payments=[LedgerPayment(amount=500.0, paid_at=datetime(2024, 2, 15))],
        ),
        LedgerInvoice(
            id="inv_3",
            status="issued",
            invoice_date=date(2024, 3, 1),
            total_amount=3000.0,
            client_id="c2",
            client_name="Beta",
        ),
        LedgerInvoice(
            id="inv_4",
            status="paid",
            invoice_date=date(2024, 3, 5),
            total_amount=200.0,
            payments=[LedgerPayment(amount=200.0, paid_at=datetime(2024, 3, 6))],
        ),
        LedgerInvoice(
            id="inv_5",
            status="paid",
            invoice_date=date(2023, 12, 1),
            total_amount=10000.0,
            client_id="c3",
            client_name="Old",
        ),
    ]


def test_clients_rank_by_paid_then_invoiced():
    rows = compute_top_clients(_invoices(), start=START, end=END)

    assert [r.client_id for r in rows] == ["c1", "unknown", "c2"]

    acme = rows[0]
    assert acme.name == "Acme"
    assert acme.total_invoiced == pytest.approx(1500.0)
    assert acme.total_paid == pytest.approx(1100.0)
    assert acme.project_count == 2
    assert acme.average_invoice == pytest.approx(750.0)
    assert acme.last_activity_at == datetime(2024, 2, 15, tzinfo=timezone.utc)

    assert rows[1].name == UNKNOWN_CLIENT
    assert rows[2].total_paid == 0.0
    assert rows[2].last_activity_at == datetime(2024, 3, 1, tzinfo=timezone.utc)


def test_limit_and_empty_period():
    assert len(compute_top_clients(_invoices(), start=START, end=END, limit=2)) == 2
    assert compute_top_clients(_invoices(), start=date(2025, 1, 1), end=date(2025, 12, 31)) == []
