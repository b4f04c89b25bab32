"""
Abstract Ledger Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Keep the settlement engine free of any persistence concern
2. Use in-memory storage for testing
3. Swap the JSON file for a real database later

The interface is intentionally simple - we're not building a full ORM.
Records are append-only apart from cycles, whose status changes as they
are opened and closed.
"""

from abc import ABC, abstractmethod
from datetime import date
from typing import Optional

from mealpool.models.records import (
    CloseSummary,
    Cycle,
    CycleStatus,
    Deposit,
    Expense,
    MealEntry,
    User,
)


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    pass


class CycleStateError(StorageError):
    """Operation not allowed in the cycle's current status."""
    pass


class LedgerStorageInterface(ABC):
    """
    Abstract interface for the household ledger.

    Any storage implementation must implement the abstract methods.
    Cycle lifecycle operations are built on top of them.
    """

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def load(self) -> None:
        """Load persisted state. No-op for backends without one."""

    def save(self) -> None:
        """Persist pending changes. No-op for backends without one."""

    # -------------------------------------------------------------------------
    # Users
    # -------------------------------------------------------------------------

    @abstractmethod
    def list_users(self) -> list[User]:
        """All users, in insertion order."""
        pass

    @abstractmethod
    def get_user(self, user_id: str) -> Optional[User]:
        pass

    @abstractmethod
    def add_user(self, user: User) -> User:
        """
        Raises:
            DuplicateError: If a user with the same id exists
        """
        pass

    # -------------------------------------------------------------------------
    # Cycle records
    # -------------------------------------------------------------------------

    @abstractmethod
    def list_deposits(self, cycle_id: str) -> list[Deposit]:
        pass

    @abstractmethod
    def add_deposit(self, deposit: Deposit) -> Deposit:
        pass

    @abstractmethod
    def list_expenses(self, cycle_id: str) -> list[Expense]:
        pass

    @abstractmethod
    def add_expense(self, expense: Expense) -> Expense:
        pass

    @abstractmethod
    def list_meal_entries(self, cycle_id: str) -> list[MealEntry]:
        pass

    @abstractmethod
    def get_meal_entry(self, cycle_id: str, user_id: str, day: date) -> Optional[MealEntry]:
        pass

    @abstractmethod
    def add_meal_entry(self, entry: MealEntry) -> MealEntry:
        """
        A user has at most one meal entry per day in a cycle.

        Raises:
            DuplicateError: If the id is taken, or the user already has
                an entry on that date
        """
        pass

    @abstractmethod
    def upsert_meal_entry(self, entry: MealEntry) -> MealEntry:
        """
        Add the entry, or overwrite the counts and note of the user's
        existing entry on that date. The existing entry keeps its id.
        """
        pass

    # -------------------------------------------------------------------------
    # Cycles
    # -------------------------------------------------------------------------

    @abstractmethod
    def list_cycles(self) -> list[Cycle]:
        pass

    @abstractmethod
    def get_cycle(self, cycle_id: str) -> Optional[Cycle]:
        pass

    @abstractmethod
    def add_cycle(self, cycle: Cycle) -> Cycle:
        pass

    @abstractmethod
    def update_cycle(self, cycle: Cycle) -> Cycle:
        """
        Replace a stored cycle.

        Raises:
            NotFoundError: If the cycle doesn't exist
        """
        pass

    @abstractmethod
    def get_current_cycle_id(self) -> Optional[str]:
        pass

    @abstractmethod
    def set_current_cycle_id(self, cycle_id: Optional[str]) -> None:
        pass

    # -------------------------------------------------------------------------
    # Close summaries
    # -------------------------------------------------------------------------

    @abstractmethod
    def get_close_summary(self, cycle_id: str) -> Optional[CloseSummary]:
        pass

    @abstractmethod
    def save_close_summary(self, summary: CloseSummary) -> CloseSummary:
        """Store the summary, replacing any earlier one for the same cycle."""
        pass

    # -------------------------------------------------------------------------
    # Cycle lifecycle
    # -------------------------------------------------------------------------

    def get_current_cycle(self) -> Optional[Cycle]:
        cycle_id = self.get_current_cycle_id()
        return self.get_cycle(cycle_id) if cycle_id else None

    def _require_cycle(self, cycle_id: str) -> Cycle:
        cycle = self.get_cycle(cycle_id)
        if cycle is None:
            raise NotFoundError(f"Cycle not found: {cycle_id}")
        return cycle

    def _close_open_cycles(self, keep_id: Optional[str] = None) -> None:
        for cycle in self.list_cycles():
            if cycle.is_open and cycle.id != keep_id:
                self.update_cycle(cycle.model_copy(update={"status": CycleStatus.CLOSED}))

    def open_cycle(self, cycle: Cycle) -> Cycle:
        """
        Add a new open cycle and make it current.

        Only one cycle is open at a time: any other open cycle is closed.
        """
        if not cycle.is_open:
            cycle = cycle.model_copy(update={"status": CycleStatus.OPEN})
        self._close_open_cycles()
        self.add_cycle(cycle)
        self.set_current_cycle_id(cycle.id)
        return cycle

    def close_cycle(self, cycle_id: str) -> Cycle:
        """
        Raises:
            NotFoundError: If the cycle doesn't exist
            CycleStateError: If the cycle is already closed
        """
        cycle = self._require_cycle(cycle_id)
        if not cycle.is_open:
            raise CycleStateError(f"Cycle already closed: {cycle_id}")
        return self.update_cycle(cycle.model_copy(update={"status": CycleStatus.CLOSED}))

    def reopen_cycle(self, cycle_id: str) -> Cycle:
        """Reopen a closed cycle, closing any other open one, and make it current."""
        cycle = self._require_cycle(cycle_id)
        self._close_open_cycles(keep_id=cycle_id)
        reopened = self.update_cycle(cycle.model_copy(update={"status": CycleStatus.OPEN}))
        self.set_current_cycle_id(cycle_id)
        return reopened
