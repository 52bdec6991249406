# core/identity.py
"""
Identity provider interface and the users-table adapter.

observe_session() callbacks get (session_id, user) on sign-in and
(session_id, None) on sign-out; on registration they are replayed once for
every session that already exists.
"""
from __future__ import annotations

import abc
import logging
import sqlite3
from typing import Callable, List, Optional

from charger_qc.core.db import (
    DatabaseManager,
    count_users,
    create_user,
    delete_session,
    delete_user_sessions,
    get_user_by_email,
    list_sessions,
    list_users,
    row_to_dict,
    save_session,
    update_user,
)
from charger_qc.core.errors import AuthError
from charger_qc.core.security import (
    create_access_token,
    hash_password,
    new_session_id,
    verify_password,
)
from charger_qc.models.user_model import Role, SignedIn, User

logger = logging.getLogger(__name__)

SessionCallback = Callable[[str, Optional[User]], None]


class IdentityProvider(abc.ABC):
    @abc.abstractmethod
    def observe_session(self, callback: SessionCallback) -> Callable[[], None]:
        ...

    @abc.abstractmethod
    def sign_in(self, email: str, password: str) -> SignedIn:
        ...

    @abc.abstractmethod
    def sign_out(self, session_id: str) -> None:
        ...


def _user_from_row(row: sqlite3.Row) -> User:
    data = row_to_dict(row)
    return User(
        id=data.get("user_id", data.get("id")),
        email=data["email"],
        role=data["role"],
        is_active=bool(data["is_active"]),
    )


class SQLiteIdentityProvider(IdentityProvider):
    def __init__(self, manager: DatabaseManager):
        self.manager = manager
        self._observers: List[SessionCallback] = []

    # ───────── observers ─────────
    def observe_session(self, callback: SessionCallback) -> Callable[[], None]:
        self._observers.append(callback)
        with self.manager.get_connection() as db:
            existing = list_sessions(db)
        for row in existing:
            callback(row["sid"], _user_from_row(row))

        def unsubscribe() -> None:
            if callback in self._observers:
                self._observers.remove(callback)

        return unsubscribe

    def _emit(self, session_id: str, user: Optional[User]) -> None:
        for cb in list(self._observers):
            cb(session_id, user)

    # ───────── sign in / out ─────────
    def sign_in(self, email: str, password: str) -> SignedIn:
        email = (email or "").strip().lower()
        with self.manager.get_connection() as db:
            row = get_user_by_email(db, email)
            if not row or not verify_password(password, row["hashed_password"]):
                logger.info("sign-in rejected for %s", email)
                raise AuthError("Incorrect email or password")
            if not row["is_active"]:
                raise AuthError("User account is inactive")

            user = _user_from_row(row)
            sid = new_session_id()
            save_session(db, sid, user.id)

        token = create_access_token(sub=user.email, role=user.role, sid=sid)
        logger.info("✅ %s signed in (%s)", user.email, user.role)
        self._emit(sid, user)
        return SignedIn(user=user, session_id=sid, access_token=token)

    def sign_out(self, session_id: str) -> None:
        with self.manager.get_connection() as db:
            removed = delete_session(db, session_id)
        if removed:
            logger.info("session %s… signed out", session_id[:6])
            self._emit(session_id, None)

    # ───────── account provisioning ─────────
    def register(self, email: str, password: str, role: Role) -> User:
        email = email.strip().lower()
        with self.manager.get_connection() as db:
            if get_user_by_email(db, email):
                raise AuthError(f"User {email} already exists")
            row = create_user(db, email, hash_password(password), role)
        return _user_from_row(row)

    def list_users(self) -> List[User]:
        with self.manager.get_connection() as db:
            return [_user_from_row(r) for r in list_users(db)]

    def update_user(
        self,
        uid: int,
        *,
        password: Optional[str] = None,
        role: Optional[Role] = None,
        is_active: Optional[bool] = None,
    ) -> Optional[User]:
        """
        Change password, role or active flag. A role or activity change ends
        the user's open sessions so they sign in again under the new account state.
        """
        ended: List[str] = []
        with self.manager.get_connection() as db:
            row = update_user(
                db,
                uid,
                hashed_pw=hash_password(password) if password else None,
                role=role,
                is_active=is_active,
            )
            if row is None:
                return None
            if role is not None or is_active is not None:
                ended = delete_user_sessions(db, uid)

        user = _user_from_row(row)
        logger.info("updated user %s (%s, active=%s)", user.email, user.role, user.is_active)
        for sid in ended:
            self._emit(sid, None)
        return user

    def ensure_admin(self, email: Optional[str], password: Optional[str]) -> Optional[User]:
        """Create the first admin when the users table is empty."""
        if not email or not password:
            return None
        with self.manager.get_connection() as db:
            if count_users(db):
                return None
        user = self.register(email, password, "admin")
        logger.info("created initial admin %s", user.email)
        return user

