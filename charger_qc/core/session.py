# core/session.py
"""
Process-wide record of who is signed in.

start() subscribes to the identity provider (which replays existing
sessions), every provider callback updates the table, stop() unsubscribes.
Lookups before start() are a programming error.
"""
from __future__ import annotations

import logging
from typing import Callable, Dict, Optional

from charger_qc.core.identity import IdentityProvider
from charger_qc.models.user_model import User

logger = logging.getLogger(__name__)


class SessionRegistry:
    def __init__(self, provider: IdentityProvider):
        self.provider = provider
        self._active: Dict[str, User] = {}
        self._unsubscribe: Optional[Callable[[], None]] = None

    @property
    def started(self) -> bool:
        return self._unsubscribe is not None

    def start(self) -> None:
        if self.started:
            return
        self._unsubscribe = self.provider.observe_session(self._on_session)
        logger.info("session registry started (%d active)", len(self._active))

    def stop(self) -> None:
        if self._unsubscribe:
            self._unsubscribe()
        self._unsubscribe = None
        self._active.clear()
        logger.info("session registry stopped")

    def _on_session(self, session_id: str, user: Optional[User]) -> None:
        if user is None:
            self._active.pop(session_id, None)
        else:
            self._active[session_id] = user

    def current(self, session_id: str) -> Optional[User]:
        if not self.started:
            raise RuntimeError("SessionRegistry used before start()")
        return self._active.get(session_id)

    def __len__(self) -> int:
        return len(self._active)
