# services/checklist_editor.py
"""
Optimistic checklist editing for one charger.

Two slots: `confirmed` (last state known to be persisted) and `tentative`
(applied locally, write outstanding). A successful write commits the
tentative slot, a failed one drops it and the view falls back to confirmed.

Snapshot deliveries always win: they overwrite `confirmed` and discard any
tentative slot, and a write that finishes after such a snapshot does not
re-apply its tentative state.
"""
from __future__ import annotations

import logging
from typing import Awaitable, Callable, Optional

from charger_qc.core.checklist import apply_check_update
from charger_qc.core.errors import UpdateInProgress
from charger_qc.core.store import RecordStore
from charger_qc.models.charger_model import ChargerRecord, CheckStatus

logger = logging.getLogger(__name__)

ChangeListener = Callable[[str, ChargerRecord], Awaitable[None]]


async def _no_listener(event: str, record: ChargerRecord) -> None:
    return None


class ChecklistEditor:
    def __init__(
        self,
        record: ChargerRecord,
        store: RecordStore,
        path: str,
        on_change: Optional[ChangeListener] = None,
    ):
        self.store = store
        self.path = path
        self.on_change = on_change or _no_listener
        self._confirmed = record
        self._tentative: Optional[ChargerRecord] = None
        self._in_flight = False
        self._generation = 0

    # ───────── state ─────────
    @property
    def confirmed(self) -> ChargerRecord:
        return self._confirmed

    @property
    def view(self) -> ChargerRecord:
        return self._tentative or self._confirmed

    @property
    def is_updating(self) -> bool:
        return self._in_flight

    def on_snapshot(self, record: ChargerRecord) -> None:
        self._confirmed = record
        self._tentative = None
        self._generation += 1

    # ───────── update protocol ─────────
    async def apply(self, check_id: int, new_status: CheckStatus) -> ChargerRecord:
        if self._in_flight:
            raise UpdateInProgress("Saving changes... please wait for the previous update.")

        checks, overall = apply_check_update(self.view.checks, check_id, new_status)
        tentative = self._confirmed.model_copy(update={"checks": checks, "status": overall})

        self._tentative = tentative
        self._in_flight = True
        generation = self._generation

        try:
            await self.on_change("checklist_tentative", tentative)
            await self.store.update_record(
                self.path,
                tentative.id,
                {
                    "checks": [c.model_dump(mode="json") for c in checks],
                    "status": overall.value,
                },
            )
        except Exception as e:
            self._in_flight = False
            self._tentative = None
            logger.warning(
                "rolled back %s check %s -> %s: %s",
                tentative.id, check_id, new_status, getattr(e, "message", e),
            )
            await self.on_change("checklist_rollback", self._confirmed)
            raise
        finally:
            self._in_flight = False

        if generation == self._generation and self._tentative is tentative:
            self._confirmed = tentative
        self._tentative = None
        await self.on_change("checklist_committed", self._confirmed)
        return self._confirmed
