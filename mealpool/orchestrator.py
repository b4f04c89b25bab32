"""
Main Orchestrator for mealpool

This module ties storage, validation and the settlement engine together
and defines the two end-to-end flows:
1. Dashboard (current cycle → interim totals)
2. Month close (cycle → validate → settle → summary saved → cycle closed)

DESIGN DECISION: The orchestrator enforces the boundaries:
- The calculators only ever see plain record lists from one snapshot
- No cycle is closed while its records have reference errors
- Every close is logged with the figures it produced
"""

from typing import Optional
from uuid import uuid4

from mealpool.config import TransferMode, get_settings
from mealpool.logger import get_logger
from mealpool.models.records import (
    CloseSummary,
    CloseSummaryLine,
    Cycle,
    select_participants,
)
from mealpool.models.results import InterimTotals, SettlementResult
from mealpool.models.validation import ValidationResult
from mealpool.services.storage import (
    CycleStateError,
    LedgerStorageInterface,
    NotFoundError,
)
from mealpool.settlement import compute_final_settlement, compute_interim_totals
from mealpool.validation import LedgerValidator


class SettlementBlockedError(Exception):
    """The cycle's records failed validation and cannot be settled."""

    def __init__(self, validation: ValidationResult):
        self.validation = validation
        super().__init__(
            f"Cycle {validation.cycle_id} has {validation.error_count} validation error(s)"
        )


class DashboardFlow:
    """Live month-to-date figures for the current cycle."""

    def __init__(
        self,
        storage: LedgerStorageInterface,
        include_manager: Optional[bool] = None,
    ):
        self._storage = storage
        if include_manager is None:
            include_manager = get_settings().settlement.include_manager_in_shares
        self._include_manager = include_manager
        self._logger = get_logger(__name__)

    def current_totals(self) -> Optional[InterimTotals]:
        """
        Interim totals for the current cycle.

        Returns None when no cycle is current or the current cycle has
        already been closed; its figures then live in the close summary.
        """
        cycle = self._storage.get_current_cycle()
        if cycle is None or not cycle.is_open:
            return None

        totals = compute_interim_totals(
            select_participants(self._storage.list_users(), self._include_manager),
            self._storage.list_deposits(cycle.id),
            self._storage.list_expenses(cycle.id),
            self._storage.list_meal_entries(cycle.id),
        )
        self._logger.debug(
            "interim_totals_computed",
            cycle_id=cycle.id,
            total_meals=totals.total_meals,
            interim_per_meal_rate=totals.interim_per_meal_rate,
        )
        return totals


class MonthCloseFlow:
    """
    Orchestrates closing a cycle.

    Flow:
    1. Resolve the cycle (the current one by default); it must be open
    2. Read users and the cycle's records from storage
    3. Validate → errors block the close
    4. Compute the final settlement
    5. Save the close summary, close the cycle, persist
    """

    def __init__(
        self,
        storage: LedgerStorageInterface,
        validator: Optional[LedgerValidator] = None,
        transfer_mode: Optional[TransferMode] = None,
        include_manager: Optional[bool] = None,
    ):
        settlement_settings = get_settings().settlement
        self._storage = storage
        self._validator = validator or LedgerValidator()
        self._transfer_mode = transfer_mode or settlement_settings.transfer_mode
        if include_manager is None:
            include_manager = settlement_settings.include_manager_in_shares
        self._include_manager = include_manager
        self._logger = get_logger(__name__)

    def _resolve_cycle(self, cycle_id: Optional[str]) -> Cycle:
        if cycle_id is None:
            cycle = self._storage.get_current_cycle()
            if cycle is None:
                raise NotFoundError("No current cycle to close")
            return cycle

        cycle = self._storage.get_cycle(cycle_id)
        if cycle is None:
            raise NotFoundError(f"Cycle not found: {cycle_id}")
        return cycle

    def preview(
        self,
        cycle_id: Optional[str] = None,
    ) -> tuple[SettlementResult, ValidationResult]:
        """
        Compute the settlement without closing anything.

        The settlement is computed even when validation reports errors,
        so the manager can see what the records currently produce.
        """
        cycle = self._resolve_cycle(cycle_id)
        users = self._storage.list_users()
        participants = select_participants(users, self._include_manager)
        deposits = self._storage.list_deposits(cycle.id)
        expenses = self._storage.list_expenses(cycle.id)
        meals = self._storage.list_meal_entries(cycle.id)

        validation = self._validator.validate(
            cycle, users, participants, deposits, expenses, meals
        )
        result = compute_final_settlement(
            participants, deposits, expenses, meals, self._transfer_mode
        )
        return result, validation

    def close(self, cycle_id: Optional[str] = None) -> SettlementResult:
        """
        Settle and close a cycle.

        Raises:
            NotFoundError: If there is no such cycle
            CycleStateError: If the cycle is already closed
            SettlementBlockedError: If validation found errors
        """
        cycle = self._resolve_cycle(cycle_id)
        log = self._logger.bind(cycle_id=cycle.id, correlation_id=str(uuid4()))

        if not cycle.is_open:
            raise CycleStateError(f"Cycle already closed: {cycle.id}")

        result, validation = self.preview(cycle.id)
        if validation.has_errors:
            log.warning(
                "cycle_close_blocked",
                error_count=validation.error_count,
                issues=[issue.message for issue in validation.issues if issue.severity == "error"],
            )
            raise SettlementBlockedError(validation)

        for warning in validation.warnings:
            log.warning("cycle_close_warning", message=warning)

        summary = CloseSummary(
            cycle_id=cycle.id,
            per_meal_rate=result.per_meal_rate,
            total_deposits=result.total_deposits,
            total_expenses=result.total_cost,
            total_meals=result.total_meals,
            per_user=[
                CloseSummaryLine(
                    user_id=member.user_id,
                    meals=member.meals,
                    deposited=member.deposited,
                    share=member.share,
                    net=member.net,
                )
                for member in result.per_user
            ],
        )
        self._storage.save_close_summary(summary)
        self._storage.close_cycle(cycle.id)
        self._storage.save()

        log.info(
            "cycle_closed",
            total_cost=result.total_cost,
            total_meals=result.total_meals,
            per_meal_rate=result.per_meal_rate,
            members=len(result.per_user),
            transfer_mode=result.transfer_mode.value,
            transfers=len(result.transfers) + len(result.manager_transactions),
        )
        return result
