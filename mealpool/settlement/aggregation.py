"""
Aggregations shared by the interim and final calculators.

Each function is a fold over an immutable sequence of records; nothing
here keeps or mutates state.
"""

from typing import Sequence

from mealpool.models.records import Deposit, Expense, MealEntry
from mealpool.money import Money, add_money


def total_meal_count(meals: Sequence[MealEntry]) -> int:
    return sum(meal.meal_count for meal in meals)


def meal_count_for_user(meals: Sequence[MealEntry], user_id: str) -> int:
    return sum(meal.meal_count for meal in meals if meal.user_id == user_id)


def total_expense_amount(expenses: Sequence[Expense]) -> Money:
    """Pool and personal expenses alike are a cost to the pool."""
    return add_money(expense.amount for expense in expenses)


def total_contributions(
    deposits: Sequence[Deposit],
    expenses: Sequence[Expense],
) -> Money:
    """Deposits plus personal-paid expenses, the pool's effective funding."""
    return add_money(deposit.amount for deposit in deposits).add(
        add_money(expense.amount for expense in expenses if expense.is_personal)
    )


def contribution_for_user(
    deposits: Sequence[Deposit],
    expenses: Sequence[Expense],
    user_id: str,
) -> Money:
    """A user's deposits plus the personal expenses that user paid."""
    return total_contributions(
        [deposit for deposit in deposits if deposit.user_id == user_id],
        [expense for expense in expenses if expense.payer_user_id == user_id],
    )


def per_meal_rate(total_cost: Money, total_meals: int) -> Money:
    """Unrounded cost of one meal; zero when no meals were recorded."""
    if total_meals > 0:
        return total_cost.divide(total_meals)
    return Money.zero()
