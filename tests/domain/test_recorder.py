from __future__ import annotations

import threading
from dataclasses import dataclass
from datetime import UTC, datetime

import pytest

from historian.domain.errors import InvalidRecordError, ManagerError
from historian.domain.model import Action, EntityMapping
from historian.domain.recorder import INITIAL_ACTOR, HistoryRecorder, TableLockRegistry, record_id_of
from tests.helpers.history_tables import FakeHistoryTable

FIXED_NOW = datetime(2024, 6, 1, 8, 30, tzinfo=UTC)


@dataclass
class Invoice:
    record_id: object


def _recorder(table: FakeHistoryTable) -> HistoryRecorder:
    return HistoryRecorder(lambda _mapping: table, clock=lambda: FIXED_NOW)


def test_ensure_creates_and_populates_missing_table(invoice_mapping: EntityMapping) -> None:
    table = FakeHistoryTable(invoice_mapping)

    created = _recorder(table).ensure_history_table(invoice_mapping)

    assert created is True
    assert table.calls == [("exists",), ("create",), ("populate", INITIAL_ACTOR, FIXED_NOW)]


def test_ensure_is_noop_when_table_exists(invoice_mapping: EntityMapping) -> None:
    table = FakeHistoryTable(invoice_mapping, created=True)

    assert _recorder(table).ensure_history_table(invoice_mapping) is False
    assert table.call_names() == ["exists"]


def test_ensure_treats_lost_create_race_as_benign(invoice_mapping: EntityMapping) -> None:
    table = FakeHistoryTable(invoice_mapping, lose_race=True)

    assert _recorder(table).ensure_history_table(invoice_mapping) is False
    assert table.call_names() == ["exists", "create"]


def test_failed_backfill_drops_table_and_next_ensure_retries(
    invoice_mapping: EntityMapping,
) -> None:
    table = FakeHistoryTable(invoice_mapping, populate_failures=1)
    recorder = _recorder(table)

    with pytest.raises(ManagerError, match="source unreadable"):
        recorder.ensure_history_table(invoice_mapping)

    assert table.call_names() == ["exists", "create", "populate", "drop"]
    assert table.created is False

    assert recorder.ensure_history_table(invoice_mapping) is True
    assert table.call_names()[4:] == ["exists", "create", "populate"]


def test_ensure_passes_explicit_actor_and_timestamp(invoice_mapping: EntityMapping) -> None:
    table = FakeHistoryTable(invoice_mapping)
    at = datetime(2020, 1, 1, tzinfo=UTC)

    _recorder(table).ensure_history_table(invoice_mapping, actor_id="migration", timestamp=at)

    assert table.calls[-1] == ("populate", "migration", at)


def test_concurrent_ensure_creates_exactly_once(invoice_mapping: EntityMapping) -> None:
    table = FakeHistoryTable(invoice_mapping)
    recorder = _recorder(table)
    workers = 8
    barrier = threading.Barrier(workers)
    results: list[bool] = []
    results_lock = threading.Lock()

    def worker() -> None:
        barrier.wait()
        created = recorder.ensure_history_table(invoice_mapping)
        with results_lock:
            results.append(created)

    threads = [threading.Thread(target=worker) for _ in range(workers)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert sorted(results) == [False] * (workers - 1) + [True]
    assert table.call_names().count("create") == 1
    assert table.call_names().count("populate") == 1


def test_history_table_is_built_once_per_entity(invoice_mapping: EntityMapping) -> None:
    built: list[EntityMapping] = []

    def factory(mapping: EntityMapping) -> FakeHistoryTable:
        built.append(mapping)
        return FakeHistoryTable(mapping)

    recorder = HistoryRecorder(factory)

    first = recorder.history_table(invoice_mapping)
    second = recorder.history_table(invoice_mapping)

    assert first is second
    assert built == [invoice_mapping]


def test_record_change_inserts_with_clock_timestamp(invoice_mapping: EntityMapping) -> None:
    table = FakeHistoryTable(invoice_mapping, created=True)

    _recorder(table).record_change(invoice_mapping, 2, Action.UPDATE, "alice")

    assert table.calls == [("insert", 2, Action.UPDATE, "alice", FIXED_NOW)]


def test_record_change_accepts_identifiable_records(invoice_mapping: EntityMapping) -> None:
    table = FakeHistoryTable(invoice_mapping, created=True)
    at = datetime(2024, 1, 2, tzinfo=UTC)

    _recorder(table).record_change(invoice_mapping, Invoice(record_id=5), Action.DELETE, timestamp=at)

    assert table.calls == [("insert", 5, Action.DELETE, "", at)]


def test_record_change_rejects_initial(invoice_mapping: EntityMapping) -> None:
    table = FakeHistoryTable(invoice_mapping, created=True)

    with pytest.raises(ValueError, match="INITIAL"):
        _recorder(table).record_change(invoice_mapping, 1, Action.INITIAL)
    assert table.calls == []


def test_record_id_of() -> None:
    assert record_id_of(9) == 9
    assert record_id_of("abc") == "abc"
    assert record_id_of(Invoice(record_id=4)) == 4
    with pytest.raises(InvalidRecordError):
        record_id_of(None)
    with pytest.raises(InvalidRecordError):
        record_id_of(Invoice(record_id=None))


def test_lock_registry_returns_one_lock_per_table() -> None:
    registry = TableLockRegistry()

    assert registry.lock_for("a") is registry.lock_for("a")
    assert registry.lock_for("a") is not registry.lock_for("b")


def test_slow_table_build_does_not_block_other_entities(invoice_mapping: EntityMapping) -> None:
    customer_mapping = EntityMapping(
        entity_key="com.example.Customer",
        source_table="customer",
        source_id_column="customer_id",
        history_table="customer_history",
        history_id_column="customer_history_id",
    )
    building = threading.Event()
    release = threading.Event()

    def factory(mapping: EntityMapping) -> FakeHistoryTable:
        if mapping is invoice_mapping:
            building.set()
            release.wait(timeout=5)
        return FakeHistoryTable(mapping)

    recorder = HistoryRecorder(factory)
    slow = threading.Thread(target=recorder.history_table, args=(invoice_mapping,))
    slow.start()
    try:
        assert building.wait(timeout=5)

        customer_table = recorder.history_table(customer_mapping)

        assert customer_table.mapping is customer_mapping
        assert slow.is_alive()
    finally:
        release.set()
        slow.join()
    assert recorder.history_table(invoice_mapping).mapping is invoice_mapping
