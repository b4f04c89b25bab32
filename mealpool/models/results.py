"""
Settlement Result Models

What the calculators hand back to display and storage collaborators.

CRITICAL: Every money field here is a decimal string produced by
`Money.to_string()`. Consumers that need to calculate must parse them
with `Money`, never with float().
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from mealpool.config.settings import TransferMode


class InterimUserTotals(BaseModel):
    """One user's month-to-date position."""

    model_config = ConfigDict(frozen=True)

    user_id: str
    name: str
    deposited: str = Field(..., description="Deposits plus personal-paid expenses")
    meals: int = Field(ge=0)
    burn: str = Field(..., description="Meals eaten so far at the interim rate")
    net: str = Field(..., description="deposited - burn")


class InterimTotals(BaseModel):
    """Live, non-authoritative snapshot of the open cycle."""

    model_config = ConfigDict(frozen=True)

    total_deposits: str
    total_expenses: str
    total_meals: int = Field(ge=0)
    interim_per_meal_rate: str
    per_user: list[InterimUserTotals] = Field(default_factory=list)


class MemberSettlement(BaseModel):
    """
    One member's final position.

    `share` is in whole currency units; `net` is positive when the member
    gets money back and negative when the member owes.
    """

    model_config = ConfigDict(frozen=True)

    user_id: str
    name: str
    meals: int = Field(ge=0)
    deposited: str
    share: str
    net: str


class Transfer(BaseModel):
    """A payment from a debtor to a creditor."""

    model_config = ConfigDict(frozen=True)

    from_user_id: str
    from_name: str
    to_user_id: str
    to_name: str
    amount: str


class ManagerTransactionType(str, Enum):
    OWES = "owes"           # pays the manager
    RECEIVES = "receives"   # gets paid by the manager


class ManagerTransaction(BaseModel):
    """A member's settlement with the manager."""

    model_config = ConfigDict(frozen=True)

    user_id: str
    user_name: str
    type: ManagerTransactionType
    amount: str


class SettlementResult(BaseModel):
    """
    Authoritative month-close settlement.

    Only the transfer list matching `transfer_mode` is populated; the
    other one is empty.
    """

    model_config = ConfigDict(frozen=True)

    per_meal_rate: str = Field(..., description="Unrounded cost of one meal")
    total_cost: str
    total_meals: int = Field(ge=0)
    total_deposits: str = Field(..., description="Deposits plus personal-paid expenses")
    per_user: list[MemberSettlement] = Field(default_factory=list)
    transfer_mode: TransferMode = TransferMode.PEER
    transfers: list[Transfer] = Field(default_factory=list)
    manager_transactions: list[ManagerTransaction] = Field(default_factory=list)
