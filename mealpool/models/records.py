"""
Ledger Records

These models define the data supplied to the settlement engine by the
storage layer and entry forms. They are designed to:
1. Reject malformed amounts and meal counts at the boundary
2. Be immutable once recorded (calculators only read them)
3. Serialize cleanly to JSON for the repository

DESIGN DECISION: Amounts are `Decimal` and accept decimal strings, so a
value typed as "350.50" never passes through a binary float.
"""

import calendar
from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


def _new_id() -> str:
    return uuid4().hex


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# ENUMS
# =============================================================================

class UserRole(str, Enum):
    """Household roles. The manager keeps the pool and records entries."""
    MANAGER = "manager"
    MEMBER = "member"


class PaidFrom(str, Enum):
    """
    Where an expense was paid from.

    A PERSONAL expense is paid out of a member's pocket and counts as a
    deposit by that member.
    """
    POOL = "pool"
    PERSONAL = "personal"


class CycleStatus(str, Enum):
    OPEN = "open"
    CLOSED = "closed"


# =============================================================================
# RECORDS
# =============================================================================

class LedgerRecord(BaseModel):
    """Common configuration for stored records."""

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    id: str = Field(
        default_factory=_new_id,
        min_length=1,
        description="Unique record identifier"
    )
    created_at: datetime = Field(
        default_factory=_utcnow,
        description="When the record was created (UTC)"
    )


class User(LedgerRecord):
    """A household member or the manager."""

    name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Display name"
    )
    role: UserRole = Field(
        default=UserRole.MEMBER,
        description="Role in the household"
    )
    active: bool = Field(
        default=True,
        description="Inactive users are left out of dashboards and settlements"
    )

    @property
    def is_manager(self) -> bool:
        return self.role == UserRole.MANAGER


class Deposit(LedgerRecord):
    """A contribution by a member into the pool."""

    cycle_id: str = Field(..., min_length=1)
    user_id: str = Field(..., min_length=1, description="Depositing user")
    date: date
    amount: Decimal = Field(
        ...,
        ge=0,
        allow_inf_nan=False,
        description="Deposited amount"
    )
    note: Optional[str] = Field(default=None, max_length=500)


class Expense(LedgerRecord):
    """A meal expense paid from the pool or out of a member's pocket."""

    cycle_id: str = Field(..., min_length=1)
    date: date
    amount: Decimal = Field(
        ...,
        gt=0,
        allow_inf_nan=False,
        description="Expense amount"
    )
    paid_from: PaidFrom = Field(default=PaidFrom.POOL)
    payer_user_id: Optional[str] = Field(
        default=None,
        description="Member who paid (required for personal expenses)"
    )
    note: Optional[str] = Field(default=None, max_length=500)

    @model_validator(mode='after')
    def validate_payer(self) -> 'Expense':
        """Personal expenses must name who paid."""
        if self.paid_from == PaidFrom.PERSONAL and not self.payer_user_id:
            raise ValueError("Personal expenses require payer_user_id")
        return self

    @property
    def is_personal(self) -> bool:
        return self.paid_from == PaidFrom.PERSONAL


class MealEntry(LedgerRecord):
    """
    Meals eaten by one user on one day.

    Guest meals are billed to the hosting user's account.
    """

    cycle_id: str = Field(..., min_length=1)
    user_id: str = Field(..., min_length=1)
    date: date
    lunch: int = Field(default=0, ge=0, le=1)
    dinner: int = Field(default=0, ge=0, le=1)
    guest_meals: int = Field(default=0, ge=0)
    note: Optional[str] = Field(default=None, max_length=500)

    @property
    def meal_count(self) -> int:
        return self.lunch + self.dinner + self.guest_meals


class Cycle(LedgerRecord):
    """A billing period, normally one calendar month."""

    name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Display name, e.g. 'March 2025'"
    )
    month: int = Field(..., ge=1, le=12)
    year: int = Field(..., ge=2020, le=2050)
    start_date: date
    end_date: date
    status: CycleStatus = Field(default=CycleStatus.OPEN)

    @model_validator(mode='after')
    def validate_dates(self) -> 'Cycle':
        if self.end_date < self.start_date:
            raise ValueError("Cycle end date cannot be before start date")
        return self

    @classmethod
    def for_month(cls, year: int, month: int, **kwargs) -> 'Cycle':
        """Build a cycle spanning the whole calendar month."""
        last_day = calendar.monthrange(year, month)[1]
        return cls(
            name=kwargs.pop("name", f"{calendar.month_name[month]} {year}"),
            month=month,
            year=year,
            start_date=date(year, month, 1),
            end_date=date(year, month, last_day),
            **kwargs,
        )

    def contains(self, day: date) -> bool:
        """Is `day` within the cycle (both ends inclusive)?"""
        return self.start_date <= day <= self.end_date

    @property
    def is_open(self) -> bool:
        return self.status == CycleStatus.OPEN


# =============================================================================
# USER SELECTION
# =============================================================================

def select_active_users(users: list[User]) -> list[User]:
    """Active users, in their original order."""
    return [user for user in users if user.active]


def select_participants(
    users: list[User],
    include_manager: bool = True,
) -> list[User]:
    """
    Users who share the cost of meals.

    Active users; the manager is left out when `include_manager` is False.
    """
    return [
        user for user in select_active_users(users)
        if include_manager or not user.is_manager
    ]


def find_manager(users: list[User]) -> Optional[User]:
    """The first user with the manager role, if any."""
    return next((user for user in users if user.is_manager), None)


# =============================================================================
# CLOSE SUMMARY
# =============================================================================

class CloseSummaryLine(BaseModel):
    """One member's row in a close summary."""

    model_config = ConfigDict(frozen=True)

    user_id: str
    meals: int = Field(ge=0)
    deposited: str
    share: str
    net: str


class CloseSummary(LedgerRecord):
    """
    Snapshot written when a cycle is closed.

    Money fields are decimal strings copied from the settlement result.
    """

    cycle_id: str = Field(..., min_length=1)
    per_meal_rate: str
    total_deposits: str
    total_expenses: str
    total_meals: int = Field(ge=0)
    per_user: list[CloseSummaryLine] = Field(default_factory=list)
    closed_at: datetime = Field(default_factory=_utcnow)

    @field_validator('per_user')
    @classmethod
    def validate_unique_users(cls, v: list[CloseSummaryLine]) -> list[CloseSummaryLine]:
        user_ids = [line.user_id for line in v]
        if len(user_ids) != len(set(user_ids)):
            raise ValueError("Close summary lists a user more than once")
        return v
