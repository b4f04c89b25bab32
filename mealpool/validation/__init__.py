"""Ledger validation package."""

from mealpool.validation.validator import LedgerValidator

__all__ = ["LedgerValidator"]
