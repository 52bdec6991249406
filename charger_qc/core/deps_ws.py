# core/deps_ws.py
"""
WebSocket auth: the access token travels as ?token=..., the socket is only
accepted when it maps to a live session.
"""
from __future__ import annotations

import logging
from typing import Optional

from fastapi import HTTPException, WebSocket

from charger_qc.core.deps import CurrentSession, resolve_session

logger = logging.getLogger("ws_auth")


async def authenticate_websocket(websocket: WebSocket) -> Optional[CurrentSession]:
    """None means the socket should be closed with 4003."""
    token = websocket.query_params.get("token")
    host = websocket.client.host if websocket.client else "unknown"
    try:
        session = resolve_session(token, websocket.app.state.sessions)
    except HTTPException as e:
        logger.warning("WS AUTH FAILED (%s) from %s", e.detail, host)
        return None

    logger.info("✅ WS AUTH SUCCESS for user %s", session.user.email)
    return session
