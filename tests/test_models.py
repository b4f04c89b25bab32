"""
Tests for mealpool models

Test strategy:
1. Unit tests for models, money and calculators
2. Flow tests with in-memory storage
3. File storage tests against pytest's tmp_path
"""

from datetime import date
from decimal import Decimal

import pytest
from pydantic import ValidationError

from mealpool.models import (
    CloseSummary,
    CloseSummaryLine,
    Cycle,
    CycleStatus,
    Deposit,
    Expense,
    MealEntry,
    PaidFrom,
    User,
    UserRole,
    ValidationIssue,
    ValidationResult,
    find_manager,
    select_active_users,
    select_participants,
)


class TestUserModel:

    def test_user_defaults(self):
        user = User(name="  Rahim  ")
        assert user.name == "Rahim"
        assert user.role == UserRole.MEMBER
        assert user.active is True
        assert user.id

    def test_user_is_frozen(self):
        user = User(name="Rahim")
        with pytest.raises(ValidationError):
            user.name = "Karim"

    def test_manager_flag(self):
        assert User(name="Boss", role="manager").is_manager


class TestDepositModel:

    def test_amount_parsed_from_string(self):
        deposit = Deposit(cycle_id="c1", user_id="u1", date=date(2025, 3, 2), amount="1500.50")
        assert deposit.amount == Decimal("1500.50")

    def test_zero_deposit_allowed(self):
        Deposit(cycle_id="c1", user_id="u1", date=date(2025, 3, 2), amount="0")

    def test_negative_deposit_rejected(self):
        with pytest.raises(ValidationError):
            Deposit(cycle_id="c1", user_id="u1", date=date(2025, 3, 2), amount="-10")

    def test_malformed_amount_rejected(self):
        with pytest.raises(ValidationError):
            Deposit(cycle_id="c1", user_id="u1", date=date(2025, 3, 2), amount="ten")


class TestExpenseModel:

    def test_pool_expense(self):
        expense = Expense(cycle_id="c1", date=date(2025, 3, 5), amount="820")
        assert expense.paid_from == PaidFrom.POOL
        assert not expense.is_personal

    def test_zero_expense_rejected(self):
        with pytest.raises(ValidationError):
            Expense(cycle_id="c1", date=date(2025, 3, 5), amount="0")

    def test_personal_expense_requires_payer(self):
        with pytest.raises(ValidationError, match="Personal expenses require payer_user_id"):
            Expense(cycle_id="c1", date=date(2025, 3, 5), amount="300", paid_from="personal")

    def test_personal_expense_with_payer(self):
        expense = Expense(
            cycle_id="c1",
            date=date(2025, 3, 5),
            amount="300",
            paid_from=PaidFrom.PERSONAL,
            payer_user_id="u1",
        )
        assert expense.is_personal


class TestMealEntryModel:

    def test_meal_count_includes_guests(self):
        entry = MealEntry(cycle_id="c1", user_id="u1", date=date(2025, 3, 1),
                          lunch=1, dinner=1, guest_meals=2)
        assert entry.meal_count == 4

    @pytest.mark.parametrize("field, value", [
        ("lunch", 2),
        ("dinner", -1),
        ("guest_meals", -1),
    ])
    def test_invalid_counts_rejected(self, field, value):
        with pytest.raises(ValidationError):
            MealEntry(cycle_id="c1", user_id="u1", date=date(2025, 3, 1), **{field: value})


class TestCycleModel:

    def test_for_month(self):
        cycle = Cycle.for_month(2025, 2)
        assert cycle.name == "February 2025"
        assert cycle.start_date == date(2025, 2, 1)
        assert cycle.end_date == date(2025, 2, 28)
        assert cycle.status == CycleStatus.OPEN

    def test_for_month_leap_year(self):
        assert Cycle.for_month(2024, 2).end_date == date(2024, 2, 29)

    def test_contains_is_inclusive(self):
        cycle = Cycle.for_month(2025, 3)
        assert cycle.contains(date(2025, 3, 1))
        assert cycle.contains(date(2025, 3, 31))
        assert not cycle.contains(date(2025, 4, 1))

    def test_end_before_start_rejected(self):
        with pytest.raises(ValidationError, match="end date cannot be before start date"):
            Cycle(name="Bad", month=3, year=2025,
                  start_date=date(2025, 3, 31), end_date=date(2025, 3, 1))

    @pytest.mark.parametrize("month, year", [(0, 2025), (13, 2025), (3, 2019), (3, 2051)])
    def test_month_and_year_bounds(self, month, year):
        with pytest.raises(ValidationError):
            Cycle(name="Bad", month=month, year=year,
                  start_date=date(2025, 3, 1), end_date=date(2025, 3, 31))


class TestUserSelection:

    def setup_method(self):
        self.manager = User(name="Manager", role=UserRole.MANAGER)
        self.active = User(name="Active")
        self.inactive = User(name="Gone", active=False)
        self.users = [self.manager, self.active, self.inactive]

    def test_select_active_users(self):
        assert select_active_users(self.users) == [self.manager, self.active]

    def test_select_participants_with_manager(self):
        assert select_participants(self.users) == [self.manager, self.active]

    def test_select_participants_without_manager(self):
        assert select_participants(self.users, include_manager=False) == [self.active]

    def test_find_manager(self):
        assert find_manager(self.users) is self.manager
        assert find_manager([self.active]) is None


class TestCloseSummary:

    def test_duplicate_users_rejected(self):
        line = CloseSummaryLine(user_id="u1", meals=3, deposited="100", share="90", net="10")
        with pytest.raises(ValidationError, match="more than once"):
            CloseSummary(
                cycle_id="c1",
                per_meal_rate="30",
                total_deposits="100",
                total_expenses="90",
                total_meals=3,
                per_user=[line, line],
            )


class TestValidationResult:

    def test_has_errors(self):
        result = ValidationResult(
            cycle_id="c1",
            reference_valid=False,
            semantic_valid=False,
            is_valid=False,
            issues=[
                ValidationIssue(
                    field="deposit",
                    issue_type="unknown_user",
                    message="Deposit from unknown user",
                    severity="error",
                ),
            ],
        )
        assert result.has_errors is True
        assert result.error_count == 1

    def test_warnings_only(self):
        result = ValidationResult(
            cycle_id="c1",
            reference_valid=True,
            semantic_valid=True,
            is_valid=True,
            issues=[
                ValidationIssue(
                    field="meal",
                    issue_type="duplicate",
                    message="Two entries on one day",
                    severity="warning",
                ),
            ],
        )
        assert result.has_errors is False
        assert result.error_count == 0

    def test_severity_pattern(self):
        with pytest.raises(ValidationError):
            ValidationIssue(field="x", issue_type="y", message="z", severity="fatal")
