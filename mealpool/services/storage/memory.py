"""
In-Memory Ledger Storage

Dict-backed implementation of the ledger interface. Used directly in tests
and as the working set of the JSON file backend.
"""

from datetime import date
from typing import Optional, TypeVar

from mealpool.models.records import (
    CloseSummary,
    Cycle,
    Deposit,
    Expense,
    LedgerRecord,
    MealEntry,
    User,
)
from mealpool.services.storage.interface import (
    DuplicateError,
    LedgerStorageInterface,
    NotFoundError,
)


R = TypeVar("R", bound=LedgerRecord)


class InMemoryLedgerStorage(LedgerStorageInterface):
    """Keeps every record in insertion-ordered dicts keyed by id."""

    def __init__(self):
        self._reset()

    def _reset(self) -> None:
        self._users: dict[str, User] = {}
        self._cycles: dict[str, Cycle] = {}
        self._deposits: dict[str, Deposit] = {}
        self._expenses: dict[str, Expense] = {}
        self._meals: dict[str, MealEntry] = {}
        self._close_summaries: dict[str, CloseSummary] = {}
        self._current_cycle_id: Optional[str] = None

    @staticmethod
    def _insert(table: dict[str, R], record: R, kind: str) -> R:
        if record.id in table:
            raise DuplicateError(f"{kind} already exists: {record.id}")
        table[record.id] = record
        return record

    # Users

    def list_users(self) -> list[User]:
        return list(self._users.values())

    def get_user(self, user_id: str) -> Optional[User]:
        return self._users.get(user_id)

    def add_user(self, user: User) -> User:
        return self._insert(self._users, user, "User")

    # Cycle records

    def list_deposits(self, cycle_id: str) -> list[Deposit]:
        return [d for d in self._deposits.values() if d.cycle_id == cycle_id]

    def add_deposit(self, deposit: Deposit) -> Deposit:
        return self._insert(self._deposits, deposit, "Deposit")

    def list_expenses(self, cycle_id: str) -> list[Expense]:
        return [e for e in self._expenses.values() if e.cycle_id == cycle_id]

    def add_expense(self, expense: Expense) -> Expense:
        return self._insert(self._expenses, expense, "Expense")

    def list_meal_entries(self, cycle_id: str) -> list[MealEntry]:
        return [m for m in self._meals.values() if m.cycle_id == cycle_id]

    def get_meal_entry(self, cycle_id: str, user_id: str, day: date) -> Optional[MealEntry]:
        for entry in self._meals.values():
            if entry.cycle_id == cycle_id and entry.user_id == user_id and entry.date == day:
                return entry
        return None

    def add_meal_entry(self, entry: MealEntry) -> MealEntry:
        if self.get_meal_entry(entry.cycle_id, entry.user_id, entry.date) is not None:
            raise DuplicateError(
                f"Meal entry already exists for user {entry.user_id} on {entry.date}"
            )
        return self._insert(self._meals, entry, "Meal entry")

    def upsert_meal_entry(self, entry: MealEntry) -> MealEntry:
        existing = self.get_meal_entry(entry.cycle_id, entry.user_id, entry.date)
        if existing is None:
            return self.add_meal_entry(entry)

        updated = existing.model_copy(update={
            "lunch": entry.lunch,
            "dinner": entry.dinner,
            "guest_meals": entry.guest_meals,
            "note": entry.note,
        })
        self._meals[existing.id] = updated
        return updated

    # Cycles

    def list_cycles(self) -> list[Cycle]:
        return list(self._cycles.values())

    def get_cycle(self, cycle_id: str) -> Optional[Cycle]:
        return self._cycles.get(cycle_id)

    def add_cycle(self, cycle: Cycle) -> Cycle:
        return self._insert(self._cycles, cycle, "Cycle")

    def update_cycle(self, cycle: Cycle) -> Cycle:
        if cycle.id not in self._cycles:
            raise NotFoundError(f"Cycle not found: {cycle.id}")
        self._cycles[cycle.id] = cycle
        return cycle

    def get_current_cycle_id(self) -> Optional[str]:
        return self._current_cycle_id

    def set_current_cycle_id(self, cycle_id: Optional[str]) -> None:
        if cycle_id is not None and cycle_id not in self._cycles:
            raise NotFoundError(f"Cycle not found: {cycle_id}")
        self._current_cycle_id = cycle_id

    # Close summaries

    def get_close_summary(self, cycle_id: str) -> Optional[CloseSummary]:
        return self._close_summaries.get(cycle_id)

    def save_close_summary(self, summary: CloseSummary) -> CloseSummary:
        if summary.cycle_id not in self._cycles:
            raise NotFoundError(f"Cycle not found: {summary.cycle_id}")
        self._close_summaries[summary.cycle_id] = summary
        return summary
