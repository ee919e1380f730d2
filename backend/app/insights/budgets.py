from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional

from backend.app.domain.records import LedgerBudget, LedgerTransaction
from backend.app.insights.aggregation import is_spending, share_of, to_float

CRITICAL_OVERSPEND_PCT = 20.0


@dataclass(frozen=True)
class BudgetConsumption:
    amount: float
    spent: float
    remaining: float  # negative when over budget
    consumption_rate: float
    utilization_pct: float
    is_over_budget: bool


def compute_budget_consumption(
    budget: LedgerBudget,
    transactions: Iterable[LedgerTransaction],
) -> BudgetConsumption:
    """
    Spending against a budget: `out` transactions dated inside the
    inclusive [period_start, period_end] range. Always computed from the
    transactions given; nothing is cached.
    """
    spent = sum(
        to_float(tx.amount)
        for tx in transactions
        if is_spending(tx) and budget.period_start <= tx.occurred_on <= budget.period_end
    )
    amount = to_float(budget.amount)
    rate = share_of(spent, amount)
    return BudgetConsumption(
        amount=amount,
        spent=spent,
        remaining=amount - spent,
        consumption_rate=rate,
        utilization_pct=rate * 100.0,
        is_over_budget=amount > 0 and spent > amount,
    )


def overspend_alert(consumption: BudgetConsumption) -> Optional[Dict[str, Any]]:
    if consumption.amount <= 0 or not consumption.is_over_budget:
        return None
    overspend_pct = (consumption.spent - consumption.amount) / consumption.amount * 100.0
    return {
        "severity": "critical" if overspend_pct > CRITICAL_OVERSPEND_PCT else "warning",
        "overspend_pct": overspend_pct,
        "message": f"Spending is {overspend_pct:.1f}% over the budget limit.",
    }
