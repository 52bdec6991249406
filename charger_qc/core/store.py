# core/store.py
"""
Record store interface and the SQLite adapter the service ships with.

A subscription delivers the *full* current collection to its callback right
after subscribing and again after every committed write to that collection.
Writes either return normally or raise WriteError; nothing is retried here.
"""
from __future__ import annotations

import abc
import asyncio
import logging
import sqlite3
import uuid
from typing import Any, Awaitable, Callable, Dict, List

from charger_qc.core.db import (
    DatabaseManager,
    insert_document,
    list_documents,
    update_document,
)
from charger_qc.core.errors import FetchError, WriteError

logger = logging.getLogger(__name__)

Document = Dict[str, Any]
SnapshotCallback = Callable[[List[Document]], Awaitable[None]]
ErrorCallback = Callable[[str], Awaitable[None]]
Unsubscribe = Callable[[], None]


class RecordStore(abc.ABC):
    @abc.abstractmethod
    async def subscribe_collection(
        self, path: str, on_snapshot: SnapshotCallback, on_error: ErrorCallback
    ) -> Unsubscribe:
        ...

    @abc.abstractmethod
    async def create_record(self, path: str, record: Document) -> str:
        ...

    @abc.abstractmethod
    async def update_record(self, path: str, record_id: str, fields: Document) -> None:
        ...


class SQLiteRecordStore(RecordStore):
    """Documents are JSON rows in the `documents` table, one collection per path."""

    def __init__(self, manager: DatabaseManager):
        self.manager = manager
        self._subscribers: Dict[str, List[tuple[SnapshotCallback, ErrorCallback]]] = {}
        self._lock = asyncio.Lock()

    # ───────── subscribe ─────────
    async def subscribe_collection(
        self, path: str, on_snapshot: SnapshotCallback, on_error: ErrorCallback
    ) -> Unsubscribe:
        entry = (on_snapshot, on_error)
        async with self._lock:
            self._subscribers.setdefault(path, []).append(entry)

        def unsubscribe() -> None:
            subs = self._subscribers.get(path, [])
            if entry in subs:
                subs.remove(entry)
            logger.info("store: unsubscribed from %s (%d left)", path, len(subs))

        logger.info("store: subscribed to %s", path)
        await self._deliver(path, [entry])
        return unsubscribe

    def _read_collection(self, path: str) -> List[Document]:
        with self.manager.get_connection() as db:
            return [{**data, "id": doc_id} for doc_id, data in list_documents(db, path)]

    async def _deliver(self, path: str, targets: List[tuple[SnapshotCallback, ErrorCallback]]):
        try:
            docs = self._read_collection(path)
        except sqlite3.Error as e:
            err = FetchError(str(e))
            logger.error("store: snapshot read failed for %s: %s", path, err.message)
            for _, on_error in targets:
                await on_error(err.message)
            return
        for on_snapshot, _ in targets:
            await on_snapshot(docs)

    async def _notify(self, path: str):
        async with self._lock:
            targets = list(self._subscribers.get(path, []))
        if targets:
            await self._deliver(path, targets)

    # ───────── writes ─────────
    async def create_record(self, path: str, record: Document) -> str:
        doc_id = uuid.uuid4().hex[:20]
        try:
            with self.manager.get_connection() as db:
                insert_document(db, path, doc_id, record)
        except sqlite3.Error as e:
            logger.error("store: create in %s failed: %s", path, e)
            raise WriteError(str(e)) from e
        logger.info("store: created %s/%s", path, doc_id)
        await self._notify(path)
        return doc_id

    async def update_record(self, path: str, record_id: str, fields: Document) -> None:
        try:
            with self.manager.get_connection() as db:
                found = update_document(db, path, record_id, fields)
        except sqlite3.Error as e:
            logger.error("store: update %s/%s failed: %s", path, record_id, e)
            raise WriteError(str(e)) from e
        if not found:
            raise WriteError(f"No document to update: {path}/{record_id}")
        logger.info("store: updated %s/%s (%s)", path, record_id, ", ".join(sorted(fields)))
        await self._notify(path)
