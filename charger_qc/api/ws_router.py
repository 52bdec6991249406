# charger_qc/api/ws_router.py
"""
Chargers WebSocket
- authenticate before accept()
- initial_data first, then whatever DashboardState broadcasts
  (chargers_snapshot / checklist_tentative / checklist_rollback / fetch_error)
"""
from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from starlette.websockets import WebSocketState

from charger_qc.core.deps_ws import authenticate_websocket

logger = logging.getLogger("api.ws_router")
router = APIRouter()

HEARTBEAT_SECONDS = 30.0


def _is_connected(ws: WebSocket) -> bool:
    return (
        ws.client_state == WebSocketState.CONNECTED
        and ws.application_state == WebSocketState.CONNECTED
    )


async def safe_send_text(ws: WebSocket, text: str) -> bool:
    try:
        if not _is_connected(ws):
            return False
        await asyncio.wait_for(ws.send_text(text), timeout=5.0)
        return True
    except Exception:
        return False


async def safe_send_json(ws: WebSocket, data: dict) -> bool:
    try:
        if not _is_connected(ws):
            return False
        await asyncio.wait_for(ws.send_json(data), timeout=5.0)
        return True
    except Exception:
        return False


@router.websocket("/ws/chargers")
async def websocket_chargers(websocket: WebSocket):
    session = await authenticate_websocket(websocket)
    if not session:
        await websocket.close(code=4003, reason="Authentication failed")
        return

    await websocket.accept()

    manager = websocket.app.state.ws_manager
    dashboard = websocket.app.state.dashboard
    await manager.connect(websocket, session.user)

    try:
        await safe_send_json(
            websocket,
            {
                "type": "initial_data",
                "user": {"email": session.user.email, "role": session.user.role},
                "chargers": dashboard.listing(),
                "error": dashboard.error,
            },
        )

        while _is_connected(websocket):
            try:
                raw = await asyncio.wait_for(websocket.receive_text(), timeout=HEARTBEAT_SECONDS)
                if raw == "ping":
                    await safe_send_text(websocket, "pong")
            except asyncio.TimeoutError:
                await safe_send_text(websocket, "heartbeat")
            except WebSocketDisconnect:
                break
    finally:
        await manager.disconnect(websocket)
