"""
Data Models Package

Pydantic models for ledger records and settlement results.
All data flowing into and out of the settlement engine conforms to these.
"""

from mealpool.models.records import (
    CloseSummary,
    CloseSummaryLine,
    Cycle,
    CycleStatus,
    Deposit,
    Expense,
    LedgerRecord,
    MealEntry,
    PaidFrom,
    User,
    UserRole,
    find_manager,
    select_active_users,
    select_participants,
)
from mealpool.models.results import (
    InterimTotals,
    InterimUserTotals,
    ManagerTransaction,
    ManagerTransactionType,
    MemberSettlement,
    SettlementResult,
    Transfer,
)
from mealpool.models.validation import ValidationIssue, ValidationResult

__all__ = [
    # Records
    "CloseSummary",
    "CloseSummaryLine",
    "Cycle",
    "CycleStatus",
    "Deposit",
    "Expense",
    "LedgerRecord",
    "MealEntry",
    "PaidFrom",
    "User",
    "UserRole",
    "find_manager",
    "select_active_users",
    "select_participants",
    # Results
    "InterimTotals",
    "InterimUserTotals",
    "ManagerTransaction",
    "ManagerTransactionType",
    "MemberSettlement",
    "SettlementResult",
    "Transfer",
    # Validation
    "ValidationIssue",
    "ValidationResult",
]
