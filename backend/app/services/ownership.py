"""
Ownership assertions shared by every insights service.

Each check raises before any analytical work happens.
"""

from __future__ import annotations

import logging
from typing import Optional

from backend.app.domain.records import LedgerBudget
from backend.app.errors import NotFound, OwnershipViolation
from backend.app.models import Business, User
from backend.app.services.ledger_store import LedgerStore

logger = logging.getLogger(__name__)


def require_user(store: LedgerStore, user_id: str) -> User:
    user = store.get_user(user_id)
    if not user:
        logger.warning("Insights requested for missing user_id=%s", user_id)
        raise NotFound("user not found")
    return user


def require_business_owned(store: LedgerStore, business_id: str, user_id: str) -> Business:
    biz = store.get_business(business_id)
    if not biz:
        logger.warning("Insights requested for missing business_id=%s", business_id)
        raise NotFound("business not found")
    if biz.user_id != user_id:
        logger.warning("User %s does not own business_id=%s", user_id, business_id)
        raise OwnershipViolation("user does not own this business")
    return biz


def require_budget_owned(
    store: LedgerStore,
    budget_id: str,
    user_id: str,
    business_id: Optional[str] = None,
) -> LedgerBudget:
    """
    The budget must belong to the user and to the same scope
    (personal when business_id is None).
    """
    budget = store.get_budget(budget_id)
    if not budget:
        raise NotFound("budget not found")
    if budget.user_id != user_id or budget.business_id != business_id:
        logger.warning("User %s does not own budget_id=%s in scope %s", user_id, budget_id, business_id)
        raise OwnershipViolation("user does not own this budget")
    return budget
