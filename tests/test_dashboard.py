import asyncio

import pytest

from charger_qc.core.db import DatabaseManager
from charger_qc.core.errors import WriteError
from charger_qc.core.store import SQLiteRecordStore
from charger_qc.models.charger_model import ChargerStatus, CheckStatus
from charger_qc.services.dashboard import DashboardState
from helpers import PATH, FakeStore


class Recorder:
    def __init__(self):
        self.messages = []

    async def broadcast(self, message):
        self.messages.append(message)


@pytest.fixture
def store(db_path):
    return SQLiteRecordStore(DatabaseManager(db_path))


def _doc(serial, created_at):
    return {
        "serialNumber": serial,
        "model": "FastCharge-5000",
        "createdAt": created_at,
        "status": "Pending",
        "checks": [{"id": 1, "name": "Visual Inspection", "status": "Pending"}],
    }


def test_create_yields_six_pending_checks(store):
    dashboard = DashboardState(store, PATH)

    async def main():
        await dashboard.start()
        return await dashboard.create("BC-2025-001", "FastCharge-5000")

    created = asyncio.run(main())
    record = dashboard.find(created.id)

    assert record == created
    assert record.status == ChargerStatus.PENDING
    assert [c.id for c in record.checks] == [1, 2, 3, 4, 5, 6]
    assert all(c.status == CheckStatus.PENDING for c in record.checks)
    assert record.checks[0].name == "Visual Inspection"
    assert record.checks[-1].name == "Casing & Port Integrity"
    assert not dashboard.loading


def test_snapshot_is_sorted_newest_first(store):
    dashboard = DashboardState(store, PATH)

    async def main():
        await store.create_record(PATH, _doc("old", "2025-01-01T00:00:00+00:00"))
        await store.create_record(PATH, _doc("new", "2025-03-01T00:00:00+00:00"))
        await store.create_record(PATH, _doc("mid", "2025-02-01T00:00:00+00:00"))
        await dashboard.start()

    asyncio.run(main())
    assert [c.serial_number for c in dashboard.chargers] == ["new", "mid", "old"]
    assert [c["serialNumber"] for c in dashboard.listing()] == ["new", "mid", "old"]


def test_malformed_documents_are_skipped(store):
    dashboard = DashboardState(store, PATH)

    async def main():
        await store.create_record(PATH, {"serialNumber": "broken"})
        await store.create_record(PATH, _doc("ok", "2025-01-01T00:00:00+00:00"))
        await dashboard.start()

    asyncio.run(main())
    assert [c.serial_number for c in dashboard.chargers] == ["ok"]


def test_update_check_rolls_up_and_broadcasts(store):
    recorder = Recorder()
    dashboard = DashboardState(store, PATH, recorder)

    async def main():
        await dashboard.start()
        created = await dashboard.create("BC-1", "M")
        await dashboard.update_check(created.id, 3, CheckStatus.FAIL)
        return created.id

    charger_id = asyncio.run(main())
    record = dashboard.find(charger_id)

    assert record.status == ChargerStatus.FAILED
    assert record.checks[2].status == CheckStatus.FAIL
    types = [m["type"] for m in recorder.messages]
    assert types == [
        "chargers_snapshot",
        "chargers_snapshot",
        "checklist_tentative",
        "chargers_snapshot",
        "checklist_committed",
    ]
    assert recorder.messages[-2]["chargers"][0]["status"] == "Failed"
    assert recorder.messages[-1]["charger"]["status"] == "Failed"
    assert recorder.messages[-1]["charger"]["isUpdating"] is False


def test_update_unknown_charger_returns_none(store):
    dashboard = DashboardState(store, PATH)

    async def main():
        await dashboard.start()
        return await dashboard.update_check("missing", 1, CheckStatus.PASS)

    assert asyncio.run(main()) is None


def test_fetch_error_sets_banner(store):
    recorder = Recorder()
    dashboard = DashboardState(store, PATH, recorder)
    asyncio.run(dashboard._on_error("permission denied"))

    assert dashboard.error == "Failed to fetch data: permission denied"
    assert not dashboard.loading
    assert recorder.messages == [{"type": "fetch_error", "message": dashboard.error}]


def test_create_failure_propagates():
    dashboard = DashboardState(FakeStore(fail="quota exceeded"), PATH)
    with pytest.raises(WriteError):
        asyncio.run(dashboard.create("BC-1", "M"))


def test_stop_unsubscribes(store):
    dashboard = DashboardState(store, PATH)

    async def main():
        await dashboard.start()
        dashboard.stop()
        await store.create_record(PATH, _doc("late", "2025-01-01T00:00:00+00:00"))

    asyncio.run(main())
    assert dashboard.chargers == []


def test_create_returns_record_before_any_snapshot():
    store = FakeStore()
    dashboard = DashboardState(store, PATH)

    async def main():
        await dashboard.start()
        return await dashboard.create("BC-9", "M")

    created = asyncio.run(main())

    # the fake store never delivers snapshots, so only the write result exists
    assert dashboard.find(created.id) is None
    assert created.serial_number == "BC-9"
    assert len(created.checks) == 6
    assert store.writes[0][1]["serialNumber"] == "BC-9"


def test_documents_with_empty_or_duplicate_checks_are_skipped(store):
    dashboard = DashboardState(store, PATH)
    empty = {**_doc("empty", "2025-01-02T00:00:00+00:00"), "checks": []}
    duplicated = {
        **_doc("dup", "2025-01-03T00:00:00+00:00"),
        "checks": [
            {"id": 1, "name": "Visual Inspection", "status": "Pass"},
            {"id": 1, "name": "Output Voltage Test", "status": "Pending"},
        ],
    }

    async def main():
        await store.create_record(PATH, empty)
        await store.create_record(PATH, duplicated)
        await store.create_record(PATH, _doc("ok", "2025-01-01T00:00:00+00:00"))
        await dashboard.start()

    asyncio.run(main())
    assert [c.serial_number for c in dashboard.chargers] == ["ok"]
