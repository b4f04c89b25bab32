"""
Tests for the ledger storage backends.
"""

import json
from datetime import date

import pytest
from tenacity import wait_none

from mealpool.models import CloseSummary, Cycle, CycleStatus, Deposit, Expense, MealEntry, PaidFrom, User
from mealpool.services.storage import (
    CycleStateError,
    DuplicateError,
    InMemoryLedgerStorage,
    JsonFileLedgerStorage,
    NotFoundError,
    StorageError,
)


@pytest.fixture
def storage():
    return InMemoryLedgerStorage()


class TestInMemoryRecords:

    def test_add_and_list_users(self, storage):
        alice = storage.add_user(User(name="Alice"))
        assert storage.list_users() == [alice]
        assert storage.get_user(alice.id) == alice
        assert storage.get_user("missing") is None

    def test_duplicate_id_rejected(self, storage):
        user = User(id="u1", name="Alice")
        storage.add_user(user)
        with pytest.raises(DuplicateError):
            storage.add_user(user)

    def test_records_are_scoped_by_cycle(self, storage):
        storage.add_deposit(Deposit(cycle_id="mar", user_id="u1", date=date(2025, 3, 1), amount="10"))
        storage.add_deposit(Deposit(cycle_id="apr", user_id="u1", date=date(2025, 4, 1), amount="20"))
        storage.add_expense(Expense(cycle_id="mar", date=date(2025, 3, 1), amount="5"))
        storage.add_meal_entry(MealEntry(cycle_id="apr", user_id="u1", date=date(2025, 4, 1), lunch=1))

        assert [d.amount for d in storage.list_deposits("mar")] == [10]
        assert len(storage.list_expenses("mar")) == 1
        assert storage.list_expenses("apr") == []
        assert len(storage.list_meal_entries("apr")) == 1


class TestMealEntryPerDay:
    """A user has one meal entry per day in a cycle."""

    def entry(self, **counts):
        counts.setdefault("lunch", 1)
        return MealEntry(cycle_id="mar", user_id="u1", date=date(2025, 3, 4), **counts)

    def test_second_entry_same_day_rejected(self, storage):
        storage.add_meal_entry(self.entry())
        with pytest.raises(DuplicateError, match="already exists for user u1 on 2025-03-04"):
            storage.add_meal_entry(self.entry(dinner=1))
        assert len(storage.list_meal_entries("mar")) == 1

    def test_same_day_in_another_cycle_allowed(self, storage):
        storage.add_meal_entry(self.entry())
        storage.add_meal_entry(self.entry().model_copy(update={"id": "other", "cycle_id": "apr"}))
        assert len(storage.list_meal_entries("apr")) == 1

    def test_get_meal_entry(self, storage):
        added = storage.add_meal_entry(self.entry())
        assert storage.get_meal_entry("mar", "u1", date(2025, 3, 4)) == added
        assert storage.get_meal_entry("mar", "u1", date(2025, 3, 5)) is None

    def test_upsert_adds_when_missing(self, storage):
        entry = storage.upsert_meal_entry(self.entry())
        assert storage.list_meal_entries("mar") == [entry]

    def test_upsert_replaces_counts_and_keeps_id(self, storage):
        first = storage.add_meal_entry(self.entry())
        updated = storage.upsert_meal_entry(self.entry(dinner=1, guest_meals=2, note="guests"))

        assert updated.id == first.id
        assert (updated.lunch, updated.dinner, updated.guest_meals) == (1, 1, 2)
        assert updated.note == "guests"
        assert storage.list_meal_entries("mar") == [updated]


class TestCycleLifecycle:

    def test_open_cycle_becomes_current(self, storage):
        cycle = storage.open_cycle(Cycle.for_month(2025, 3))
        assert storage.get_current_cycle() == cycle
        assert cycle.is_open

    def test_opening_a_cycle_closes_the_previous_one(self, storage):
        march = storage.open_cycle(Cycle.for_month(2025, 3))
        april = storage.open_cycle(Cycle.for_month(2025, 4))

        assert storage.get_cycle(march.id).status == CycleStatus.CLOSED
        assert storage.get_cycle(april.id).is_open
        assert storage.get_current_cycle_id() == april.id

    def test_open_cycle_forces_open_status(self, storage):
        cycle = storage.open_cycle(Cycle.for_month(2025, 3, status=CycleStatus.CLOSED))
        assert cycle.is_open

    def test_close_cycle(self, storage):
        cycle = storage.open_cycle(Cycle.for_month(2025, 3))
        closed = storage.close_cycle(cycle.id)

        assert closed.status == CycleStatus.CLOSED
        with pytest.raises(CycleStateError):
            storage.close_cycle(cycle.id)

    def test_close_missing_cycle(self, storage):
        with pytest.raises(NotFoundError):
            storage.close_cycle("nope")

    def test_reopen_cycle(self, storage):
        march = storage.open_cycle(Cycle.for_month(2025, 3))
        april = storage.open_cycle(Cycle.for_month(2025, 4))

        storage.reopen_cycle(march.id)

        assert storage.get_cycle(march.id).is_open
        assert storage.get_cycle(april.id).status == CycleStatus.CLOSED
        assert storage.get_current_cycle_id() == march.id

    def test_current_cycle_must_exist(self, storage):
        with pytest.raises(NotFoundError):
            storage.set_current_cycle_id("nope")

    def test_update_missing_cycle(self, storage):
        with pytest.raises(NotFoundError):
            storage.update_cycle(Cycle.for_month(2025, 3))

    def test_close_summary_replaced_per_cycle(self, storage):
        cycle = storage.open_cycle(Cycle.for_month(2025, 3))
        first = CloseSummary(cycle_id=cycle.id, per_meal_rate="50", total_deposits="0",
                             total_expenses="100", total_meals=2)
        second = first.model_copy(update={"per_meal_rate": "40"})

        storage.save_close_summary(first)
        storage.save_close_summary(second)
        assert storage.get_close_summary(cycle.id).per_meal_rate == "40"

    def test_close_summary_for_unknown_cycle(self, storage):
        summary = CloseSummary(cycle_id="nope", per_meal_rate="0", total_deposits="0",
                               total_expenses="0", total_meals=0)
        with pytest.raises(NotFoundError):
            storage.save_close_summary(summary)


class TestJsonFileStorage:

    def make(self, tmp_path):
        return JsonFileLedgerStorage(path=str(tmp_path / "ledger.json"), retry_attempts=2, wait=wait_none())

    def test_missing_file_loads_empty(self, tmp_path):
        storage = self.make(tmp_path)
        storage.load()
        assert storage.list_users() == []
        assert storage.get_current_cycle() is None

    def test_round_trip(self, tmp_path):
        storage = self.make(tmp_path)
        alice = storage.add_user(User(name="Alice"))
        cycle = storage.open_cycle(Cycle.for_month(2025, 3))
        storage.add_deposit(Deposit(cycle_id=cycle.id, user_id=alice.id,
                                    date=date(2025, 3, 1), amount="1500.50"))
        storage.add_expense(Expense(cycle_id=cycle.id, date=date(2025, 3, 2), amount="99.99",
                                    paid_from=PaidFrom.PERSONAL, payer_user_id=alice.id))
        storage.add_meal_entry(MealEntry(cycle_id=cycle.id, user_id=alice.id,
                                         date=date(2025, 3, 2), lunch=1, guest_meals=2))
        storage.save()

        reloaded = self.make(tmp_path)
        reloaded.load()

        assert reloaded.list_users() == [alice]
        assert reloaded.get_current_cycle() == cycle
        assert reloaded.list_deposits(cycle.id) == storage.list_deposits(cycle.id)
        assert reloaded.list_expenses(cycle.id) == storage.list_expenses(cycle.id)
        assert reloaded.list_meal_entries(cycle.id)[0].meal_count == 3

    def test_amounts_stored_as_strings(self, tmp_path):
        storage = self.make(tmp_path)
        storage.add_deposit(Deposit(cycle_id="mar", user_id="u1", date=date(2025, 3, 1), amount="0.10"))
        storage.save()

        document = json.loads(storage.path.read_text(encoding="utf-8"))
        assert document["version"] == 1
        assert document["deposits"][0]["amount"] == "0.10"

    def test_nothing_written_before_save(self, tmp_path):
        storage = self.make(tmp_path)
        storage.add_user(User(name="Alice"))
        assert not storage.path.exists()

    def test_corrupt_file_raises(self, tmp_path):
        (tmp_path / "ledger.json").write_text("{not json", encoding="utf-8")
        with pytest.raises(StorageError, match="not valid JSON"):
            self.make(tmp_path).load()

    def test_unsupported_version_raises(self, tmp_path):
        (tmp_path / "ledger.json").write_text(json.dumps({"version": 99}), encoding="utf-8")
        with pytest.raises(StorageError, match="Unsupported ledger file version"):
            self.make(tmp_path).load()

    @pytest.mark.parametrize("content", ["[]", "42", "\"ledger\""])
    def test_non_object_document_raises(self, tmp_path, content):
        (tmp_path / "ledger.json").write_text(content, encoding="utf-8")
        with pytest.raises(StorageError, match="must hold a JSON object"):
            self.make(tmp_path).load()

    def test_null_sections_load_empty(self, tmp_path):
        document = {"version": 1, "users": None, "meta": None}
        (tmp_path / "ledger.json").write_text(json.dumps(document), encoding="utf-8")

        storage = self.make(tmp_path)
        storage.load()
        assert storage.list_users() == []
        assert storage.get_current_cycle_id() is None

    @pytest.mark.parametrize("document", [
        {"version": 1, "meta": "mar"},
        {"version": 1, "users": {"id": "u1"}},
    ])
    def test_malformed_sections_raise(self, tmp_path, document):
        (tmp_path / "ledger.json").write_text(json.dumps(document), encoding="utf-8")
        with pytest.raises(StorageError, match="invalid records"):
            self.make(tmp_path).load()

    def test_duplicate_meal_entries_in_file_raise(self, tmp_path):
        storage = self.make(tmp_path)
        storage.add_meal_entry(MealEntry(cycle_id="mar", user_id="u1", date=date(2025, 3, 4), lunch=1))
        storage.save()

        document = json.loads(storage.path.read_text(encoding="utf-8"))
        twin = dict(document["meals"][0], id="twin")
        document["meals"].append(twin)
        storage.path.write_text(json.dumps(document), encoding="utf-8")

        with pytest.raises(StorageError, match="invalid records"):
            self.make(tmp_path).load()

    def test_invalid_record_raises(self, tmp_path):
        document = {"version": 1, "users": [{"id": "u1", "name": ""}]}
        (tmp_path / "ledger.json").write_text(json.dumps(document), encoding="utf-8")

        storage = self.make(tmp_path)
        with pytest.raises(StorageError, match="invalid records"):
            storage.load()
        assert storage.list_users() == []

    def test_write_failure_is_retried_then_wrapped(self, tmp_path, monkeypatch):
        storage = self.make(tmp_path)
        calls = []

        def failing_replace(src, dst):
            calls.append(dst)
            raise OSError("disk full")

        monkeypatch.setattr("mealpool.services.storage.json_file.os.replace", failing_replace)

        with pytest.raises(StorageError, match="disk full"):
            storage.save()
        assert len(calls) == 2
