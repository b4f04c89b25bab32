"""
Interim Totals

Month-to-date position of every user in the open cycle, for the dashboard.

This is a read-only projection: it can be recomputed whenever records
change and never writes anything back. Burn is kept at full precision;
nothing is rounded until the cycle is closed.
"""

from typing import Sequence

from mealpool.models.records import Deposit, Expense, MealEntry, User
from mealpool.models.results import InterimTotals, InterimUserTotals
from mealpool.settlement.aggregation import (
    contribution_for_user,
    meal_count_for_user,
    per_meal_rate,
    total_contributions,
    total_expense_amount,
    total_meal_count,
)


def compute_interim_totals(
    users: Sequence[User],
    deposits: Sequence[Deposit],
    expenses: Sequence[Expense],
    meals: Sequence[MealEntry],
) -> InterimTotals:
    """
    Aggregate the current cycle's records into a running snapshot.

    Args:
        users: Users to report on (normally the active users)
        deposits: Deposits in the current cycle
        expenses: Expenses in the current cycle
        meals: Meal entries in the current cycle

    Returns:
        InterimTotals with one per-user line for every user given
    """
    total_expenses = total_expense_amount(expenses)
    total_deposits = total_contributions(deposits, expenses)
    total_meals = total_meal_count(meals)
    rate = per_meal_rate(total_expenses, total_meals)

    per_user = []
    for user in users:
        deposited = contribution_for_user(deposits, expenses, user.id)
        user_meals = meal_count_for_user(meals, user.id)
        burn = rate.multiply(user_meals)

        per_user.append(InterimUserTotals(
            user_id=user.id,
            name=user.name,
            deposited=deposited.to_string(),
            meals=user_meals,
            burn=burn.to_string(),
            net=deposited.subtract(burn).to_string(),
        ))

    return InterimTotals(
        total_deposits=total_deposits.to_string(),
        total_expenses=total_expenses.to_string(),
        total_meals=total_meals,
        interim_per_meal_rate=rate.to_string(),
        per_user=per_user,
    )
