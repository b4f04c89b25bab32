"""
Final Settlement

The authoritative computation run once, when a cycle is closed.

GUARANTEE: the rounded shares add up to the total cost exactly.

Each member's share is rounded half-up to whole currency units, which on
its own can leave the shares a few units above or below the cost. The
difference is then given in full to the member with the largest share
(the first such member when several are tied). The remainder is at most
a few units, so one member absorbing it is accepted over spreading it.
"""

from dataclasses import dataclass
from typing import Optional, Sequence

from mealpool.config.settings import TransferMode
from mealpool.logger import get_logger
from mealpool.models.records import Deposit, Expense, MealEntry, User
from mealpool.models.results import MemberSettlement, SettlementResult
from mealpool.money import Money, add_money
from mealpool.settlement.aggregation import (
    contribution_for_user,
    meal_count_for_user,
    per_meal_rate,
    total_contributions,
    total_expense_amount,
    total_meal_count,
)
from mealpool.settlement.transfers import (
    compute_manager_transactions,
    compute_peer_transfers,
)


logger = get_logger(__name__)


@dataclass(frozen=True)
class _Position:
    user: User
    meals: int
    deposited: Money
    share: Money


def _reconcile(positions: list[_Position], total_cost: Money) -> list[_Position]:
    """Give the rounding remainder to the member with the largest share."""
    if not positions:
        return positions

    difference = total_cost.subtract(add_money(p.share for p in positions))
    if difference.is_zero():
        return positions

    largest = 0
    for index, position in enumerate(positions):
        if position.share.greater_than(positions[largest].share):
            largest = index

    target = positions[largest]
    logger.info(
        "rounding_adjustment_applied",
        user_id=target.user.id,
        difference=difference.to_string(),
        share_before=target.share.to_string(),
    )

    adjusted = _Position(
        user=target.user,
        meals=target.meals,
        deposited=target.deposited,
        share=target.share.add(difference),
    )
    return positions[:largest] + [adjusted] + positions[largest + 1:]


def compute_final_settlement(
    users: Sequence[User],
    deposits: Sequence[Deposit],
    expenses: Sequence[Expense],
    meals: Sequence[MealEntry],
    transfer_mode: Optional[TransferMode] = None,
) -> SettlementResult:
    """
    Settle a whole cycle.

    Args:
        users: Members sharing the cost
        deposits: All deposits in the cycle
        expenses: All expenses in the cycle
        meals: All meal entries in the cycle
        transfer_mode: PEER (default) or MANAGER transfer list

    Returns:
        SettlementResult with reconciled shares and the chosen transfers
    """
    transfer_mode = transfer_mode or TransferMode.PEER

    total_cost = total_expense_amount(expenses)
    total_deposits = total_contributions(deposits, expenses)
    total_meals = total_meal_count(meals)
    rate = per_meal_rate(total_cost, total_meals)

    positions = []
    for user in users:
        user_meals = meal_count_for_user(meals, user.id)
        positions.append(_Position(
            user=user,
            meals=user_meals,
            deposited=contribution_for_user(deposits, expenses, user.id),
            share=rate.multiply(user_meals).round(),
        ))

    # With no meals there is nothing to allocate and every share stays zero
    if total_meals > 0:
        positions = _reconcile(positions, total_cost)

    per_user = [
        MemberSettlement(
            user_id=p.user.id,
            name=p.user.name,
            meals=p.meals,
            deposited=p.deposited.to_string(),
            share=p.share.to_string(),
            net=p.deposited.subtract(p.share).to_string(),
        )
        for p in positions
    ]

    if transfer_mode == TransferMode.MANAGER:
        transfers = []
        manager_transactions = compute_manager_transactions(per_user)
    else:
        transfers = compute_peer_transfers(per_user)
        manager_transactions = []

    return SettlementResult(
        per_meal_rate=rate.to_string(),
        total_cost=total_cost.to_string(),
        total_meals=total_meals,
        total_deposits=total_deposits.to_string(),
        per_user=per_user,
        transfer_mode=transfer_mode,
        transfers=transfers,
        manager_transactions=manager_transactions,
    )
