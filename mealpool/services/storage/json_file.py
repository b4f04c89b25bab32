"""
JSON File Ledger Storage

DESIGN DECISION: A single JSON document holds the whole ledger, because:
1. A household ledger is small (a few hundred records per month)
2. The file can be inspected and backed up by hand
3. No database setup required

Records are held in memory between an explicit `load()` and `save()`.
Nothing is written until `save()` is called, and a save replaces the file
atomically (write to a temp file, then rename).

File layout:
    {
        "version": 1,
        "last_saved_at": "<iso timestamp>",
        "users": [...], "cycles": [...], "deposits": [...],
        "expenses": [...], "meals": [...], "close_summaries": [...],
        "meta": {"current_cycle_id": "<id or null>"}
    }
"""

import json
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from pydantic import ValidationError
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential
from tenacity.wait import wait_base

from mealpool.config import get_settings
from mealpool.logger import get_logger
from mealpool.models.records import CloseSummary, Cycle, Deposit, Expense, MealEntry, User
from mealpool.services.storage.interface import StorageError
from mealpool.services.storage.memory import InMemoryLedgerStorage


FORMAT_VERSION = 1

logger = get_logger(__name__)


def _section(data: dict, key: str) -> list:
    rows = data.get(key) or []
    if not isinstance(rows, list):
        raise StorageError(f"Ledger file section {key!r} must be a list")
    return rows


class JsonFileLedgerStorage(InMemoryLedgerStorage):
    """
    Ledger persisted to a JSON file.

    Transient I/O failures (OSError) are retried with exponential backoff.
    Corrupt or incompatible files raise StorageError; they are never
    silently replaced with an empty ledger.
    """

    def __init__(
        self,
        path: Optional[str] = None,
        retry_attempts: Optional[int] = None,
        wait: Optional[wait_base] = None,
    ):
        super().__init__()
        if path is None or retry_attempts is None:
            storage_settings = get_settings().storage
            path = path if path is not None else storage_settings.data_path
            if retry_attempts is None:
                retry_attempts = storage_settings.retry_attempts

        self._path = Path(path).expanduser()
        self._attempts = retry_attempts
        self._wait = wait or wait_exponential(multiplier=1, min=2, max=10)

    @property
    def path(self) -> Path:
        return self._path

    def _retrying(self) -> Retrying:
        return Retrying(
            stop=stop_after_attempt(self._attempts),
            wait=self._wait,
            retry=retry_if_exception_type(OSError),
            reraise=True,
        )

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def load(self) -> None:
        """
        Replace the in-memory ledger with the file's contents.

        A missing file loads as an empty ledger.
        """
        self._reset()
        if not self._path.exists():
            logger.info("ledger_file_missing", path=str(self._path))
            return

        try:
            for attempt in self._retrying():
                with attempt:
                    raw = self._path.read_text(encoding="utf-8")
        except OSError as e:
            raise StorageError(f"Failed to read ledger file {self._path}: {e}") from e

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise StorageError(f"Ledger file is not valid JSON: {e}") from e

        if not isinstance(data, dict):
            raise StorageError(f"Ledger file must hold a JSON object, not {type(data).__name__}")

        version = data.get("version")
        if version != FORMAT_VERSION:
            raise StorageError(f"Unsupported ledger file version: {version}")

        try:
            for row in _section(data, "users"):
                self.add_user(User.model_validate(row))
            for row in _section(data, "cycles"):
                self.add_cycle(Cycle.model_validate(row))
            for row in _section(data, "deposits"):
                self.add_deposit(Deposit.model_validate(row))
            for row in _section(data, "expenses"):
                self.add_expense(Expense.model_validate(row))
            for row in _section(data, "meals"):
                self.add_meal_entry(MealEntry.model_validate(row))
            for row in _section(data, "close_summaries"):
                self.save_close_summary(CloseSummary.model_validate(row))
            meta = data.get("meta") or {}
            if not isinstance(meta, dict):
                raise StorageError("Ledger file meta section must be an object")
            self.set_current_cycle_id(meta.get("current_cycle_id"))
        except (ValidationError, StorageError) as e:
            self._reset()
            raise StorageError(f"Ledger file contains invalid records: {e}") from e

        logger.info(
            "ledger_loaded",
            path=str(self._path),
            users=len(self._users),
            cycles=len(self._cycles),
        )

    def save(self) -> None:
        """Write the whole ledger to disk."""
        document = {
            "version": FORMAT_VERSION,
            "last_saved_at": datetime.now(timezone.utc).isoformat(),
            "users": [u.model_dump(mode="json") for u in self._users.values()],
            "cycles": [c.model_dump(mode="json") for c in self._cycles.values()],
            "deposits": [d.model_dump(mode="json") for d in self._deposits.values()],
            "expenses": [e.model_dump(mode="json") for e in self._expenses.values()],
            "meals": [m.model_dump(mode="json") for m in self._meals.values()],
            "close_summaries": [
                s.model_dump(mode="json") for s in self._close_summaries.values()
            ],
            "meta": {"current_cycle_id": self._current_cycle_id},
        }
        payload = json.dumps(document, ensure_ascii=False, indent=2)
        tmp_path = self._path.with_name(self._path.name + ".tmp")

        try:
            for attempt in self._retrying():
                with attempt:
                    tmp_path.write_text(payload, encoding="utf-8")
                    os.replace(tmp_path, self._path)
        except OSError as e:
            raise StorageError(f"Failed to write ledger file {self._path}: {e}") from e

        logger.info("ledger_saved", path=str(self._path))
