"""
Two-Stage Ledger Validation

DESIGN DECISION: A cycle's records are checked before it is closed, in two
distinct stages:

STAGE 1 - REFERENCE VALIDATION:
- Every record belongs to the cycle being settled
- Deposits and meal entries name a known user
- Personal expenses name a known payer
- This catches records that would silently drop out of the settlement

STAGE 2 - SEMANTIC VALIDATION:
- Records dated outside the cycle
- Duplicate meal entries for one user on one day
- Meals logged for users who take no share of the cost
- Unusually large guest counts
- Deposits that do not cover the cost
- This catches records that are allowed but probably wrong

IMPORTANT: Validation NEVER silently fixes records.
It reports them for the manager to review.
"""

from collections import Counter
from typing import Optional, Sequence

from mealpool.config import get_settings
from mealpool.models.records import Cycle, Deposit, Expense, MealEntry, User
from mealpool.models.validation import ValidationIssue, ValidationResult
from mealpool.money import format_currency
from mealpool.settlement.aggregation import (
    total_contributions,
    total_expense_amount,
    total_meal_count,
)


class LedgerValidator:
    """
    Validates a cycle's records through a two-stage pipeline.

    Stage 2 only runs when stage 1 found no errors.
    """

    def __init__(self, max_guest_meals: Optional[int] = None):
        settlement_settings = get_settings().settlement
        self._max_guest_meals = max_guest_meals or settlement_settings.max_guest_meals_per_entry
        self._currency_symbol = settlement_settings.currency_symbol

    def _validate_references(
        self,
        cycle: Cycle,
        users: Sequence[User],
        deposits: Sequence[Deposit],
        expenses: Sequence[Expense],
        meals: Sequence[MealEntry],
    ) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 1: Reference validation.

        Returns: (is_valid, list_of_issues)
        """
        issues = []
        known_users = {user.id for user in users}

        for kind, records in (("deposit", deposits), ("expense", expenses), ("meal", meals)):
            for record in records:
                if record.cycle_id != cycle.id:
                    issues.append(ValidationIssue(
                        field=kind,
                        issue_type="wrong_cycle",
                        message=f"{kind.capitalize()} {record.id} belongs to cycle {record.cycle_id}",
                        severity="error",
                        record_id=record.id,
                    ))

        for deposit in deposits:
            if deposit.user_id not in known_users:
                issues.append(ValidationIssue(
                    field="deposit",
                    issue_type="unknown_user",
                    message=f"Deposit {deposit.id} is from unknown user {deposit.user_id}",
                    severity="error",
                    record_id=deposit.id,
                    suggested_fix="Assign the deposit to an existing member",
                ))

        for expense in expenses:
            if expense.is_personal and expense.payer_user_id not in known_users:
                issues.append(ValidationIssue(
                    field="expense",
                    issue_type="unknown_payer",
                    message=f"Personal expense {expense.id} names unknown payer {expense.payer_user_id}",
                    severity="error",
                    record_id=expense.id,
                    suggested_fix="Pick the member who paid",
                ))

        for meal in meals:
            if meal.user_id not in known_users:
                issues.append(ValidationIssue(
                    field="meal",
                    issue_type="unknown_user",
                    message=f"Meal entry {meal.id} is for unknown user {meal.user_id}",
                    severity="error",
                    record_id=meal.id,
                ))

        is_valid = not any(issue.severity == "error" for issue in issues)
        return is_valid, issues

    def _validate_semantic(
        self,
        cycle: Cycle,
        participants: Sequence[User],
        deposits: Sequence[Deposit],
        expenses: Sequence[Expense],
        meals: Sequence[MealEntry],
    ) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 2: Semantic validation.

        Returns: (is_valid, list_of_issues)
        """
        issues = []

        for kind, records in (("deposit", deposits), ("expense", expenses), ("meal", meals)):
            for record in records:
                if not cycle.contains(record.date):
                    issues.append(ValidationIssue(
                        field=kind,
                        issue_type="outside_cycle",
                        message=f"{kind.capitalize()} {record.id} is dated {record.date}, outside {cycle.name}",
                        severity="warning",
                        record_id=record.id,
                        suggested_fix="Check the date",
                    ))

        per_day = Counter((meal.user_id, meal.date) for meal in meals)
        for (user_id, day), count in per_day.items():
            if count > 1:
                issues.append(ValidationIssue(
                    field="meal",
                    issue_type="duplicate",
                    message=f"User {user_id} has {count} meal entries on {day}",
                    severity="warning",
                    suggested_fix="Merge the entries into one",
                ))

        participant_ids = {user.id for user in participants}
        outsiders = sorted({
            meal.user_id for meal in meals
            if meal.user_id not in participant_ids and meal.meal_count > 0
        })
        for user_id in outsiders:
            issues.append(ValidationIssue(
                field="meal",
                issue_type="non_participant_meals",
                message=(
                    f"User {user_id} has meals but takes no share of the cost; "
                    "their meals will be charged to the largest share"
                ),
                severity="warning",
            ))

        for meal in meals:
            if meal.guest_meals > self._max_guest_meals:
                issues.append(ValidationIssue(
                    field="meal",
                    issue_type="suspicious_value",
                    message=f"Meal entry {meal.id} has {meal.guest_meals} guest meals",
                    severity="warning",
                    record_id=meal.id,
                    suggested_fix="Please verify the guest count",
                ))

        total_cost = total_expense_amount(expenses)
        if not total_cost.is_zero() and total_meal_count(meals) == 0:
            issues.append(ValidationIssue(
                field="meal",
                issue_type="no_meals",
                message="Expenses were recorded but no meals; nobody will be charged",
                severity="warning",
            ))

        imbalance = total_contributions(deposits, expenses).subtract(total_cost)
        if not imbalance.is_zero():
            direction = "surplus" if imbalance.is_positive() else "shortfall"
            issues.append(ValidationIssue(
                field="deposit",
                issue_type="pool_imbalance",
                message=(
                    f"Deposits and costs differ by {format_currency(abs(imbalance), self._currency_symbol)} "
                    f"({direction}); the difference is settled with the manager"
                ),
                severity="info",
            ))

        is_valid = not any(issue.severity == "error" for issue in issues)
        return is_valid, issues

    def validate(
        self,
        cycle: Cycle,
        users: Sequence[User],
        participants: Sequence[User],
        deposits: Sequence[Deposit],
        expenses: Sequence[Expense],
        meals: Sequence[MealEntry],
    ) -> ValidationResult:
        """
        Run full two-stage validation pipeline.

        Args:
            cycle: The cycle being settled
            users: Every known user
            participants: Users who share the cost
            deposits, expenses, meals: The cycle's records

        Returns:
            ValidationResult with all issues found
        """
        all_issues = []

        reference_valid, reference_issues = self._validate_references(
            cycle, users, deposits, expenses, meals
        )
        all_issues.extend(reference_issues)

        semantic_valid = False
        if reference_valid:
            semantic_valid, semantic_issues = self._validate_semantic(
                cycle, participants, deposits, expenses, meals
            )
            all_issues.extend(semantic_issues)

        return ValidationResult(
            cycle_id=cycle.id,
            reference_valid=reference_valid,
            semantic_valid=semantic_valid,
            is_valid=reference_valid and semantic_valid,
            issues=all_issues,
            warnings=[issue.message for issue in all_issues if issue.severity == "warning"],
        )

    def get_summary(self, result: ValidationResult) -> str:
        """Plain-text summary for the manager."""
        if result.is_valid and not result.warnings:
            return "All checks passed."

        lines = []
        if result.has_errors:
            lines.append("The cycle cannot be settled:")
            for issue in result.issues:
                if issue.severity == "error":
                    lines.append(f"   • {issue.message}")
                    if issue.suggested_fix:
                        lines.append(f"     → {issue.suggested_fix}")

        if result.warnings:
            if lines:
                lines.append("")
            lines.append("Please verify the following:")
            for warning in result.warnings:
                lines.append(f"   • {warning}")

        return "\n".join(lines)
