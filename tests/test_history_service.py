"""
History service tests: bounds, ordering, validation, storage failures, races.
"""

import asyncio
import json

import pytest

from fxconverter.core.exceptions import InvalidRecordError, StorageFailureError
from fxconverter.repositories.history_repository import FileHistoryRepository, InMemoryHistoryRepository
from fxconverter.schemas.currency import ConversionResult, RateSourceKind
from fxconverter.services.history_service import HistoryService


def make_record(amount, **overrides):
    record = {"from": "usd", "to": "eur", "amount": amount, "result": amount * 0.85, "rate": 0.85}
    record.update(overrides)
    return record


@pytest.fixture
def history(tmp_path):
    return HistoryService(FileHistoryRepository(str(tmp_path / "history.json")), max_records=5)


@pytest.mark.asyncio
async def test_append_assigns_id_timestamp_and_date(history):
    stored, total, fallback = await history.append(make_record(10))

    assert stored.id
    assert stored.timestamp > 0
    assert stored.date
    assert stored.from_currency == "USD"
    assert stored.to_currency == "EUR"
    assert total == 1
    assert fallback is False


@pytest.mark.asyncio
async def test_append_keeps_given_date(history):
    stored, _, _ = await history.append(make_record(10, date="2024-01-01T10:00:00+00:00"))
    assert stored.date == "2024-01-01T10:00:00+00:00"


@pytest.mark.asyncio
async def test_bound_evicts_oldest(history):
    for amount in range(1, 11):
        await history.append(make_record(amount))

    records, _ = await history.list()
    assert len(records) == 5
    assert [r.amount for r in records] == [10, 9, 8, 7, 6]


@pytest.mark.asyncio
async def test_limit_larger_than_count_returns_all(history):
    await history.append(make_record(1))
    await history.append(make_record(2))

    records, _ = await history.list(limit=100)
    assert [r.amount for r in records] == [2, 1]

    records, _ = await history.list(limit=1)
    assert [r.amount for r in records] == [2]


@pytest.mark.asyncio
async def test_clear_is_idempotent(history):
    await history.append(make_record(1))
    assert await history.clear() is False
    assert await history.clear() is False

    records, _ = await history.list()
    assert records == []


@pytest.mark.asyncio
@pytest.mark.parametrize("missing", ["from", "to", "amount", "result", "rate"])
async def test_missing_field_is_rejected(history, missing):
    record = make_record(10)
    del record[missing]
    with pytest.raises(InvalidRecordError):
        await history.append(record)


@pytest.mark.asyncio
@pytest.mark.parametrize("field, value", [("amount", 0), ("rate", -1), ("result", "abc"), ("from", "XX")])
async def test_invalid_values_are_rejected(history, field, value):
    record = make_record(10)
    record[field] = value
    with pytest.raises(InvalidRecordError):
        await history.append(record)


@pytest.mark.asyncio
@pytest.mark.parametrize("timestamp", [float("inf"), float("nan"), -1, "soon", True])
async def test_invalid_timestamp_is_rejected(history, timestamp):
    with pytest.raises(InvalidRecordError):
        await history.append(make_record(10, timestamp=timestamp))


@pytest.mark.asyncio
async def test_given_timestamp_is_kept(history):
    stored, _, _ = await history.append(make_record(10, timestamp=1_700_000_000))
    assert stored.timestamp == 1_700_000_000


@pytest.mark.asyncio
async def test_conversion_result_can_be_appended(history):
    result = ConversionResult(
        from_currency="RUB",
        to_currency="USD",
        amount=100,
        result=1.33,
        rate=0.013333,
        date="2024-05-01T00:00:00+00:00",
        source=RateSourceKind.FALLBACK,
    )
    stored, _, _ = await history.append(result)
    assert stored.from_currency == "RUB"
    assert stored.result == 1.33


@pytest.mark.asyncio
async def test_records_persist_in_file(tmp_path):
    path = str(tmp_path / "history.json")
    await HistoryService(FileHistoryRepository(path)).append(make_record(3))

    records, fallback = await HistoryService(FileHistoryRepository(path)).list()
    assert [r.amount for r in records] == [3]
    assert fallback is False


@pytest.mark.asyncio
async def test_storage_failure_falls_back_to_memory(tmp_path):
    # A directory where the file should be makes every read fail
    blocked = tmp_path / "history.json"
    blocked.mkdir()
    history = HistoryService(FileHistoryRepository(str(blocked)), fallback_repository=InMemoryHistoryRepository())

    stored, total, fallback = await history.append(make_record(7))
    assert fallback is True
    assert total == 1

    records, fallback = await history.list()
    assert fallback is True
    assert [r.id for r in records] == [stored.id]


class FlakyHistoryRepository(InMemoryHistoryRepository):
    """In-memory store that raises StorageFailureError while broken."""

    def __init__(self):
        super().__init__()
        self.broken = False

    async def load(self):
        if self.broken:
            raise StorageFailureError("history store is down")
        return await super().load()

    async def save(self, records):
        if self.broken:
            raise StorageFailureError("history store is down")
        await super().save(records)


@pytest.mark.asyncio
async def test_records_from_outage_are_kept_after_recovery():
    primary = FlakyHistoryRepository()
    history = HistoryService(primary, max_records=10)
    before, _, _ = await history.append(make_record(1))

    primary.broken = True
    during, _, fallback = await history.append(make_record(2))
    assert fallback is True

    primary.broken = False
    records, fallback = await history.list()
    assert fallback is False
    assert [r.id for r in records] == [during.id, before.id]

    after, total, fallback = await history.append(make_record(3))
    assert fallback is False
    assert total == 3

    records, _ = await history.list()
    assert [r.id for r in records] == [after.id, during.id, before.id]
    assert await history.fallback_repository.load() == []
    assert [r["id"] for r in await primary.load()] == [after.id, during.id, before.id]


def write_history_file(path, records):
    path.write_text(json.dumps(records), encoding="utf-8")


def stored_record(record_id, amount=10):
    return {
        "id": record_id,
        "from": "USD",
        "to": "EUR",
        "amount": amount,
        "result": amount * 0.9,
        "rate": 0.9,
        "date": "2024-01-01T00:00:00+00:00",
        "timestamp": 1_704_067_200,
    }


@pytest.mark.asyncio
async def test_unreadable_stored_record_is_skipped(tmp_path):
    path = tmp_path / "history.json"
    write_history_file(path, [{**stored_record("bad"), "amount": "abc"}, stored_record("good")])
    history = HistoryService(FileHistoryRepository(str(path)))

    records, fallback = await history.list()
    assert [r.id for r in records] == ["good"]
    assert fallback is False


@pytest.mark.asyncio
async def test_limit_counts_only_readable_records(tmp_path):
    path = tmp_path / "history.json"
    write_history_file(
        path,
        [{**stored_record("bad"), "rate": None}, stored_record("b"), stored_record("c"), stored_record("d")],
    )
    history = HistoryService(FileHistoryRepository(str(path)))

    records, _ = await history.list(limit=2)
    assert [r.id for r in records] == ["b", "c"]


@pytest.mark.asyncio
async def test_concurrent_appends_do_not_lose_records(tmp_path):
    history = HistoryService(FileHistoryRepository(str(tmp_path / "history.json")), max_records=50)

    await asyncio.gather(*(history.append(make_record(amount)) for amount in range(1, 21)))

    records, _ = await history.list()
    assert len(records) == 20
    assert sorted(r.amount for r in records) == list(range(1, 21))


@pytest.mark.asyncio
async def test_in_memory_repository():
    memory = HistoryService(InMemoryHistoryRepository(), max_records=10)
    for amount in range(1, 16):
        await memory.append(make_record(amount))

    records, fallback = await memory.list()
    assert len(records) == 10
    assert records[0].amount == 15
    assert fallback is False
