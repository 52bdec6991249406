"""Shared test helpers: record builders, a scriptable store, login shortcuts."""
from datetime import datetime, timezone

from charger_qc.core.errors import WriteError
from charger_qc.core.store import RecordStore
from charger_qc.models.charger_model import ChargerRecord, ChargerStatus, Check

PASSWORD = "secret123"
PATH = "artifacts/test/public/data/chargers"


def make_record(*statuses, status=ChargerStatus.PENDING, charger_id="c1", created_at=None):
    checks = tuple(
        Check(id=i, name=f"Check {i}", status=s) for i, s in enumerate(statuses, start=1)
    )
    return ChargerRecord(
        id=charger_id,
        serialNumber="BC-2025-001",
        model="FastCharge-5000",
        createdAt=created_at or datetime(2025, 1, 1, tzinfo=timezone.utc),
        status=status,
        checks=checks,
    )


class FakeStore(RecordStore):
    """Records writes; optionally fails them and runs a hook mid-write."""

    def __init__(self, fail=None):
        self.fail = fail
        self.writes = []
        self.during_write = None

    async def subscribe_collection(self, path, on_snapshot, on_error):
        return lambda: None

    async def create_record(self, path, record):
        if self.fail:
            raise WriteError(self.fail)
        self.writes.append(("create", record))
        return f"doc{len(self.writes)}"

    async def update_record(self, path, record_id, fields):
        if self.during_write:
            await self.during_write()
        if self.fail:
            raise WriteError(self.fail)
        self.writes.append((record_id, fields))


def login(client, email, password=PASSWORD):
    res = client.post("/api/auth/token", data={"username": email, "password": password})
    assert res.status_code == 200, res.text
    return res.json()["access_token"]


def auth_headers(token):
    return {"Authorization": f"Bearer {token}"}
