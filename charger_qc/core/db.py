"""
core/db.py ── SQLite layer behind the store / identity adapters
"""
from __future__ import annotations

import json
import logging
import sqlite3
import threading
import time
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Generator, List

logger = logging.getLogger(__name__)

# ══════════════════════════════════════════════
# ① Database manager
# ══════════════════════════════════════════════
class DatabaseManager:
    def __init__(self, db_path: str):
        self.db_path = db_path
        self._lock = threading.Lock()
        self._initialized = False
        self._init_db()

    # ───────── schema ─────────
    def _init_db(self):
        with self._lock:
            if self._initialized:
                return
            try:
                with self.get_connection() as conn:
                    conn.execute(
                        """
                        CREATE TABLE IF NOT EXISTS users(
                            id              INTEGER PRIMARY KEY AUTOINCREMENT,
                            email           TEXT UNIQUE NOT NULL,
                            hashed_password TEXT NOT NULL,
                            role            TEXT NOT NULL DEFAULT 'technician',
                            is_active       INTEGER NOT NULL DEFAULT 1,
                            created_at      TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                        );
                        """
                    )

                    # one row per signed-in browser session
                    conn.execute(
                        """
                        CREATE TABLE IF NOT EXISTS sessions(
                            sid        TEXT PRIMARY KEY,
                            user_id    INTEGER NOT NULL,
                            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                            FOREIGN KEY (user_id) REFERENCES users(id) ON DELETE CASCADE
                        );
                        """
                    )

                    # JSON documents keyed by (collection path, id)
                    conn.execute(
                        """
                        CREATE TABLE IF NOT EXISTS documents(
                            collection TEXT NOT NULL,
                            id         TEXT NOT NULL,
                            data       TEXT NOT NULL,
                            created_at TEXT NOT NULL,
                            updated_at TEXT,
                            PRIMARY KEY (collection, id)
                        );
                        """
                    )
                    conn.execute(
                        "CREATE INDEX IF NOT EXISTS idx_documents_collection ON documents(collection)"
                    )

                    conn.commit()
                    self._initialized = True
                    logger.info("🗄️  DB schema ready at %s", self.db_path)
            except Exception as e:
                logger.error("DB init failed: %s", e)
                raise

    # ───────── connection ─────────
    @contextmanager
    def get_connection(self) -> Generator[sqlite3.Connection, None, None]:
        conn = self._connect()
        try:
            yield conn
        finally:
            conn.close()

    def _connect(self) -> sqlite3.Connection:
        for attempt in range(3):
            conn: sqlite3.Connection | None = None
            try:
                conn = sqlite3.connect(
                    self.db_path,
                    timeout=30.0,
                    check_same_thread=False,
                    isolation_level=None,  # autocommit
                )
                conn.row_factory = sqlite3.Row
                conn.execute("PRAGMA journal_mode=WAL")
                conn.execute("PRAGMA foreign_keys=ON")
                return conn
            except sqlite3.OperationalError as e:
                if conn:
                    conn.close()
                if "locked" in str(e).lower() and attempt < 2:
                    logger.warning("DB locked, retrying (%d/3)…", attempt + 1)
                    time.sleep(0.1 * (attempt + 1))
                    continue
                raise
        raise sqlite3.OperationalError("database is locked")

# ══════════════════════════════════════════════
# ② User CRUD
# ══════════════════════════════════════════════
def get_user_by_email(db: sqlite3.Connection, email: str):
    return db.execute(
        "SELECT * FROM users WHERE email = ? LIMIT 1", (email,)
    ).fetchone()


def get_user_by_id(db: sqlite3.Connection, uid: int):
    return db.execute("SELECT * FROM users WHERE id = ?", (uid,)).fetchone()


def create_user(db: sqlite3.Connection, email: str, hashed_pw: str, role: str):
    cur = db.execute(
        "INSERT INTO users(email, hashed_password, role) VALUES(?,?,?)",
        (email, hashed_pw, role),
    )
    db.commit()
    return get_user_by_id(db, cur.lastrowid)


def list_users(db: sqlite3.Connection):
    return db.execute("SELECT * FROM users ORDER BY email").fetchall()


def count_users(db: sqlite3.Connection) -> int:
    return db.execute("SELECT COUNT(*) FROM users").fetchone()[0]


def update_user(
    db: sqlite3.Connection,
    uid: int,
    *,
    hashed_pw: str | None = None,
    role: str | None = None,
    is_active: int | None = None,
):
    sets, params = [], []
    if hashed_pw is not None:
        sets.append("hashed_password = ?")
        params.append(hashed_pw)
    if role is not None:
        sets.append("role = ?")
        params.append(role)
    if is_active is not None:
        sets.append("is_active = ?")
        params.append(int(bool(is_active)))

    if sets:
        params.append(uid)
        db.execute(f"UPDATE users SET {', '.join(sets)} WHERE id = ?", params)
        db.commit()
    return get_user_by_id(db, uid)

# ══════════════════════════════════════════════
# ③ Session helpers
# ══════════════════════════════════════════════
def save_session(db: sqlite3.Connection, sid: str, user_id: int):
    db.execute("INSERT INTO sessions(sid, user_id) VALUES(?,?)", (sid, user_id))
    db.commit()


def list_sessions(db: sqlite3.Connection):
    return db.execute(
        """
        SELECT s.sid, u.id AS user_id, u.email, u.role, u.is_active
        FROM sessions s JOIN users u ON u.id = s.user_id
        """
    ).fetchall()


def delete_session(db: sqlite3.Connection, sid: str) -> bool:
    cur = db.execute("DELETE FROM sessions WHERE sid = ?", (sid,))
    db.commit()
    return cur.rowcount > 0


def delete_user_sessions(db: sqlite3.Connection, user_id: int) -> List[str]:
    sids = [
        r["sid"]
        for r in db.execute("SELECT sid FROM sessions WHERE user_id = ?", (user_id,)).fetchall()
    ]
    db.execute("DELETE FROM sessions WHERE user_id = ?", (user_id,))
    db.commit()
    return sids

# ══════════════════════════════════════════════
# ④ Document helpers
# ══════════════════════════════════════════════
def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def insert_document(db: sqlite3.Connection, collection: str, doc_id: str, data: Dict[str, Any]):
    db.execute(
        "INSERT INTO documents(collection, id, data, created_at) VALUES(?,?,?,?)",
        (collection, doc_id, json.dumps(data), _now_iso()),
    )
    db.commit()


def get_document(db: sqlite3.Connection, collection: str, doc_id: str) -> Dict[str, Any] | None:
    row = db.execute(
        "SELECT data FROM documents WHERE collection = ? AND id = ?",
        (collection, doc_id),
    ).fetchone()
    return json.loads(row["data"]) if row else None


def update_document(
    db: sqlite3.Connection, collection: str, doc_id: str, fields: Dict[str, Any]
) -> bool:
    """Merge `fields` into the stored document in a single UPDATE."""
    current = get_document(db, collection, doc_id)
    if current is None:
        return False
    current.update(fields)
    cur = db.execute(
        "UPDATE documents SET data = ?, updated_at = ? WHERE collection = ? AND id = ?",
        (json.dumps(current), _now_iso(), collection, doc_id),
    )
    db.commit()
    return cur.rowcount > 0


def list_documents(db: sqlite3.Connection, collection: str) -> List[tuple[str, Dict[str, Any]]]:
    rows = db.execute(
        "SELECT id, data FROM documents WHERE collection = ?", (collection,)
    ).fetchall()
    return [(r["id"], json.loads(r["data"])) for r in rows]

# ══════════════════════════════════════════════
# ⑤ Utilities
# ══════════════════════════════════════════════
def row_to_dict(row: sqlite3.Row) -> Dict[str, Any] | None:
    return dict(row) if row else None


def check_database_health(manager: DatabaseManager) -> bool:
    try:
        with manager.get_connection() as db:
            db.execute("SELECT 1").fetchone()
        return True
    except Exception as e:
        logger.error("DB health check failed: %s", e)
        return False
