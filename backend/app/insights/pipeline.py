from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable

from backend.app.domain.records import LedgerQuote
from backend.app.insights.aggregation import share_of, to_float
from backend.app.insights.time_buckets import as_utc_datetime

ACCEPTED = "accepted"
SECONDS_PER_DAY = 86400.0


@dataclass(frozen=True)
class QuotePipeline:
    quote_count: int
    accepted_count: int
    conversion_rate: float
    avg_time_to_accept_days: float
    total_quoted: float
    total_accepted: float


def compute_quote_pipeline(quotes: Iterable[LedgerQuote], *, now: datetime) -> QuotePipeline:
    """
    Quote-to-acceptance conversion. An accepted quote is considered accepted
    at its last update; missing dates fall back to `now`.
    """
    quote_count = 0
    accepted_count = 0
    total_quoted = 0.0
    total_accepted = 0.0
    days_to_accept = []

    for quote in quotes:
        quote_count += 1
        amount = to_float(quote.total_amount)
        total_quoted += amount
        if quote.status != ACCEPTED:
            continue
        accepted_count += 1
        total_accepted += amount
        accepted_at = as_utc_datetime(quote.updated_at or now)
        issued_at = as_utc_datetime(quote.issue_date) if quote.issue_date else accepted_at
        # fractional days: issue dates count from UTC midnight
        days_to_accept.append((accepted_at - issued_at).total_seconds() / SECONDS_PER_DAY)

    return QuotePipeline(
        quote_count=quote_count,
        accepted_count=accepted_count,
        conversion_rate=share_of(accepted_count, quote_count),
        avg_time_to_accept_days=sum(days_to_accept) / len(days_to_accept) if days_to_accept else 0.0,
        total_quoted=total_quoted,
        total_accepted=total_accepted,
    )
