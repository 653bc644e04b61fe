# tabula/api/ws_table.py
"""WebSocket endpoint for interactive table widgets."""

import asyncio
import logging
import threading

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from tabula.api.tables import ActionPayload, apply_action, drain_events, render_view

logger = logging.getLogger(__name__)

router = APIRouter()

# Connected clients per session: session_id -> set of websockets
_connections: dict[str, set[WebSocket]] = {}
_connections_lock = threading.Lock()

# Captured event loop for cross-thread notifications
_event_loop: asyncio.AbstractEventLoop | None = None


def notify_view_changed(session_id: str) -> None:
    """Called when a lazy load resolves, possibly from a loader thread.

    Sends ``view_changed`` to every client of the session; clients re-fetch.
    """
    with _connections_lock:
        ws_list = list(_connections.get(session_id, ()))

    if not ws_list or _event_loop is None:
        return

    msg = {"event": "view_changed", "session_id": session_id}

    async def _send_all():
        for ws in ws_list:
            try:
                await ws.send_json(msg)
            except Exception as exc:
                logger.debug("view_changed send failed: %s", exc)

    try:
        asyncio.run_coroutine_threadsafe(_send_all(), _event_loop)
    except RuntimeError as exc:
        logger.warning("Could not schedule view_changed for %s: %s", session_id, exc)


@router.websocket("/ws/tables/{session_id}")
async def ws_table(ws: WebSocket, session_id: str):
    """Interaction channel for one table session."""
    from tabula.app import get_session_registry

    global _event_loop
    await ws.accept()

    # Loop of the most recent connection, used for cross-thread notifications
    _event_loop = asyncio.get_running_loop()

    entry = get_session_registry().get(session_id)
    if entry is None:
        await ws.send_json({"event": "error", "error": f"Table session '{session_id}' not found"})
        await ws.close()
        return

    session = entry["session"]

    with _connections_lock:
        _connections.setdefault(session_id, set()).add(ws)

    try:
        while True:
            msg = await ws.receive_json()

            if msg.get("action") == "fetch":
                await ws.send_json({"event": "view", "view": render_view(session)})
                continue

            try:
                action = ActionPayload.model_validate(msg)
                apply_action(session, action)
            except (ValidationError, ValueError) as exc:
                await ws.send_json({"event": "error", "error": str(exc)})
                continue

            for event in drain_events(session_id):
                await ws.send_json({"event": "emit", **event})
            await ws.send_json({"event": "view", "view": render_view(session)})

    except WebSocketDisconnect:
        pass
    finally:
        with _connections_lock:
            conns = _connections.get(session_id, set())
            conns.discard(ws)
            if not conns:
                _connections.pop(session_id, None)
