# services/dashboard.py
"""
Locally observed dashboard state: the chargers collection as last delivered
by the store (newest first), the fetch-error banner, and one ChecklistEditor
per charger opened for editing. Changes are pushed to WebSocket clients.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from pydantic import ValidationError

from charger_qc.core.checklist import DEFAULT_CHECK_NAMES, new_checklist
from charger_qc.core.store import Document, RecordStore
from charger_qc.core.ws_manager import ConnectionManager
from charger_qc.models.charger_model import ChargerRecord, ChargerStatus, CheckStatus
from charger_qc.services.checklist_editor import ChecklistEditor

logger = logging.getLogger(__name__)


def dump_record(record: ChargerRecord, is_updating: bool = False) -> Dict[str, Any]:
    data = record.model_dump(by_alias=True, mode="json")
    data["isUpdating"] = is_updating
    return data


class DashboardState:
    def __init__(
        self,
        store: RecordStore,
        path: str,
        broadcaster: Optional[ConnectionManager] = None,
    ):
        self.store = store
        self.path = path
        self.broadcaster = broadcaster
        self.chargers: List[ChargerRecord] = []
        self.error: Optional[str] = None
        self.loading = True
        self._editors: Dict[str, ChecklistEditor] = {}
        self._unsubscribe: Optional[Callable[[], None]] = None

    # ───────── lifecycle ─────────
    async def start(self) -> None:
        if self._unsubscribe is None:
            self._unsubscribe = await self.store.subscribe_collection(
                self.path, self._on_snapshot, self._on_error
            )

    def stop(self) -> None:
        if self._unsubscribe:
            self._unsubscribe()
        self._unsubscribe = None
        self._editors.clear()

    # ───────── store callbacks ─────────
    async def _on_snapshot(self, docs: List[Document]) -> None:
        records: List[ChargerRecord] = []
        for doc in docs:
            try:
                records.append(ChargerRecord.from_document(doc["id"], doc))
            except ValidationError as e:
                logger.warning("skipping malformed charger %s: %s", doc.get("id"), e.error_count())
        records.sort(key=lambda r: r.created_at, reverse=True)

        self.chargers = records
        self.error = None
        self.loading = False

        by_id = {r.id: r for r in records}
        for charger_id in list(self._editors):
            if charger_id in by_id:
                self._editors[charger_id].on_snapshot(by_id[charger_id])
            else:
                del self._editors[charger_id]

        await self._broadcast(
            {"type": "chargers_snapshot", "chargers": [self.dump(r.id) for r in records]}
        )

    async def _on_error(self, message: str) -> None:
        self.error = f"Failed to fetch data: {message}"
        self.loading = False
        logger.error(self.error)
        await self._broadcast({"type": "fetch_error", "message": self.error})

    async def _on_editor_change(self, event: str, record: ChargerRecord) -> None:
        editor = self._editors.get(record.id)
        await self._broadcast(
            {"type": event, "charger": dump_record(record, bool(editor and editor.is_updating))}
        )

    async def _broadcast(self, message: Dict[str, Any]) -> None:
        if self.broadcaster:
            await self.broadcaster.broadcast(message)

    # ───────── reads ─────────
    def find(self, charger_id: str) -> Optional[ChargerRecord]:
        editor = self._editors.get(charger_id)
        if editor:
            return editor.view
        return next((c for c in self.chargers if c.id == charger_id), None)

    def dump(self, charger_id: str) -> Optional[Dict[str, Any]]:
        record = self.find(charger_id)
        if record is None:
            return None
        editor = self._editors.get(charger_id)
        return dump_record(record, bool(editor and editor.is_updating))

    def listing(self) -> List[Dict[str, Any]]:
        return [self.dump(c.id) for c in self.chargers]

    def editor(self, charger_id: str) -> Optional[ChecklistEditor]:
        if charger_id not in self._editors:
            record = next((c for c in self.chargers if c.id == charger_id), None)
            if record is None:
                return None
            self._editors[charger_id] = ChecklistEditor(
                record, self.store, self.path, on_change=self._on_editor_change
            )
        return self._editors[charger_id]

    # ───────── writes ─────────
    async def create(
        self, serial_number: str, model: str, check_names=DEFAULT_CHECK_NAMES
    ) -> ChargerRecord:
        """Write a new charger and return it as written, without waiting for a snapshot."""
        document = {
            "serialNumber": serial_number,
            "model": model,
            "createdAt": datetime.now(timezone.utc).isoformat(),
            "status": ChargerStatus.PENDING.value,
            "checks": [c.model_dump(mode="json") for c in new_checklist(check_names)],
        }
        charger_id = await self.store.create_record(self.path, document)
        logger.info("created charger %s (%s / %s)", charger_id, serial_number, model)
        return ChargerRecord.from_document(charger_id, document)

    async def update_check(
        self, charger_id: str, check_id: int, status: CheckStatus
    ) -> Optional[ChargerRecord]:
        editor = self.editor(charger_id)
        if editor is None:
            return None
        return await editor.apply(check_id, status)
