# core/ws_manager.py
import asyncio
import logging
from typing import Any, Dict

from fastapi import WebSocket
from starlette.websockets import WebSocketState

from charger_qc.models.user_model import User

logger = logging.getLogger("ws_manager")

class ConnectionManager:
    """Fan-out of dashboard events to every connected browser."""

    def __init__(self):
        self.active: Dict[WebSocket, User] = {}
        self._lock = asyncio.Lock()

    async def connect(self, websocket: WebSocket, user: User) -> None:
        """Registers an already-accepted socket."""
        async with self._lock:
            self.active[websocket] = user
        logger.info("🔗 WebSocket connected: %s (%s). Total: %d", user.email, user.role, len(self.active))

    async def disconnect(self, websocket: WebSocket):
        async with self._lock:
            self.active.pop(websocket, None)
        logger.info("❌ WebSocket disconnected. Remaining: %d", len(self.active))

    async def _safe_send(self, ws: WebSocket, message: Dict[str, Any]) -> bool:
        if ws.client_state != WebSocketState.CONNECTED:
            return False
        try:
            await ws.send_json(message)
            return True
        except Exception as e:
            logger.warning("⚠️ send_json failed; removing socket: %s", e)
            await self.disconnect(ws)
            return False

    async def broadcast(self, message: Dict[str, Any]):
        async with self._lock:
            sockets = list(self.active)
        for ws in sockets:
            await self._safe_send(ws, message)
