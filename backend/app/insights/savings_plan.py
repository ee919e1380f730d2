from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
import math
from typing import List, Literal, Optional, Union

from backend.app.errors import InvalidInput
from backend.app.insights.time_buckets import AVG_DAYS_PER_MONTH, days_between, parse_date

PlanStatus = Literal["on_track", "stretch", "unrealistic"]


@dataclass(frozen=True)
class SavingsPlan:
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
    status: PlanStatus
    notes: List[str] = field(default_factory=list)


def classify_plan(
    required_monthly_savings: float,
    savings_capacity: float,
    monthly_income: float,
) -> PlanStatus:
    if required_monthly_savings <= savings_capacity:
        return "on_track"
    if required_monthly_savings > monthly_income:
        return "unrealistic"
    return "stretch"


def compute_savings_plan(
    target_amount: float,
    target_date: Union[str, date],
    *,
    today: date,
    estimated_monthly_income: float,
    estimated_monthly_spending: float,
    current_balance: float,
    current_savings: Optional[float] = None,
) -> SavingsPlan:
    """
    Monthly/daily savings needed to reach `target_amount` by `target_date`.

    current_savings overrides the balance-derived starting point when given.
    A past (or same-day) target date means the whole remaining amount is due now.
    """
    if target_amount is None or not target_amount > 0:
        raise InvalidInput("target_amount must be greater than 0")
    if current_savings is not None and current_savings < 0:
        raise InvalidInput("current_savings must not be negative")
    target = parse_date(target_date)

    days_remaining = days_between(today, target)
    months_remaining = max(0, math.ceil(days_remaining / AVG_DAYS_PER_MONTH))

    effective_current = current_savings if current_savings is not None else current_balance
    still_needed = max(0.0, target_amount - effective_current)

    required_monthly = still_needed / months_remaining if months_remaining > 0 else still_needed
    required_daily = still_needed / days_remaining if days_remaining > 0 else still_needed
    required_rate = required_monthly / estimated_monthly_income if estimated_monthly_income > 0 else 1.0

    capacity = estimated_monthly_income - estimated_monthly_spending
    if still_needed == 0:
        status: PlanStatus = "on_track"
    else:
        status = classify_plan(required_monthly, capacity, estimated_monthly_income)

    notes: List[str] = []
    if still_needed == 0:
        notes.append("Current savings already cover the target amount.")
    if days_remaining <= 0:
        notes.append("The target date is today or in the past; the remaining amount is required now.")
    if capacity <= 0:
        notes.append("Spending currently meets or exceeds income, leaving no monthly savings capacity.")
    if estimated_monthly_income <= 0:
        notes.append("No recent income was found to estimate a savings rate.")
    if status == "stretch":
        notes.append(
            f"Reaching the goal needs {required_monthly:.2f} per month "
            f"({required_rate:.0%} of income), above the current capacity of {capacity:.2f}."
        )
    elif status == "unrealistic":
        notes.append("Required monthly savings exceed estimated monthly income.")

    return SavingsPlan(
        target_amount=float(target_amount),
        target_date=target,
        today=today,
        months_remaining=months_remaining,
        days_remaining=days_remaining,
        estimated_monthly_income=estimated_monthly_income,
        estimated_monthly_spending=estimated_monthly_spending,
        estimated_savings_capacity=capacity,
        current_balance=current_balance,
        effective_current_savings=float(effective_current),
        amount_still_needed=still_needed,
        required_monthly_savings=required_monthly,
        required_daily_savings=required_daily,
        required_savings_rate=required_rate,
        status=status,
        notes=notes,
    )
