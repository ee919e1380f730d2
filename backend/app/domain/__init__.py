"""Ledger records shared by the store and the insights engine."""

from backend.app.domain.records import (  # noqa: F401
    Direction,
    LedgerAccount,
    LedgerBudget,
    LedgerInvoice,
    LedgerPayment,
    LedgerProject,
    LedgerQuote,
    LedgerSavingsGoal,
    LedgerTransaction,
)
