"""Tables API -- create widget sessions, render views and apply interactions."""

import logging
from typing import Any

from fastapi import APIRouter, HTTPException
from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel

from tabula.engine.session import TableSession

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/tables", tags=["tables"])

ACTIONS = {
    "sort", "reset_sort", "toggle_node", "expand_all", "collapse_all",
    "toggle_detail", "expand_all_details", "collapse_all_details",
    "row_click", "cell_click",
}


class TablePayload(BaseModel):
    data: Any = None
    configuration: dict[str, Any] | list[Any] | None = None


class DataPayload(BaseModel):
    data: Any = None


class ActionPayload(BaseModel):
    action: str
    prop: str | None = None
    node_id: Any = None
    row_index: int | None = None
    col_index: int | None = None


def _require(value: Any, name: str, action: str) -> Any:
    if value is None:
        raise ValueError(f"Action '{action}' requires '{name}'")
    return value


def apply_action(session: TableSession, action: ActionPayload) -> None:
    """Dispatch one interaction to *session*. Raises ValueError for bad requests."""
    name = action.action
    if name not in ACTIONS:
        raise ValueError(f"Unknown action '{name}'")
    if name == "sort":
        session.toggle_sort(_require(action.prop, "prop", name))
    elif name == "reset_sort":
        session.reset_sort()
    elif name == "toggle_node":
        session.toggle_node(_require(action.node_id, "node_id", name))
    elif name == "expand_all":
        session.expand_all_nodes()
    elif name == "collapse_all":
        session.collapse_all_nodes()
    elif name == "toggle_detail":
        session.toggle_detail(_require(action.row_index, "row_index", name))
    elif name == "expand_all_details":
        session.expand_all_details()
    elif name == "collapse_all_details":
        session.collapse_all_details()
    elif name == "row_click":
        session.click_row(_require(action.row_index, "row_index", name))
    elif name == "cell_click":
        session.click_cell(
            _require(action.row_index, "row_index", name),
            _require(action.col_index, "col_index", name),
        )


def drain_events(session_id: str) -> list[dict[str, Any]]:
    """JSON-ready events session *session_id* has emitted since the last drain."""
    from tabula.app import get_session_registry

    return jsonable_encoder(get_session_registry().drain_events(session_id))


def render_view(session: TableSession) -> dict[str, Any]:
    return jsonable_encoder(session.view().to_dict())


def _entry_or_404(session_id: str) -> dict[str, Any]:
    from tabula.app import get_session_registry

    entry = get_session_registry().get(session_id)
    if entry is None:
        raise HTTPException(status_code=404, detail="Table session not found")
    return entry


@router.post("/render")
def render_table(payload: TablePayload):
    """One-shot render without keeping any interaction state."""
    session = TableSession(payload.configuration, payload.data)
    return render_view(session)


@router.post("")
def create_table(payload: TablePayload):
    """Open a widget session and return its id."""
    from tabula.api.ws_table import notify_view_changed
    from tabula.app import get_session_registry

    session_id = get_session_registry().open(
        payload.configuration, payload.data, on_change=notify_view_changed
    )
    logger.info("Created table session %s", session_id)
    return {"session_id": session_id}


@router.get("/{session_id}")
def get_table(session_id: str):
    entry = _entry_or_404(session_id)
    return render_view(entry["session"])


@router.put("/{session_id}/data")
def replace_data(session_id: str, payload: DataPayload):
    entry = _entry_or_404(session_id)
    entry["session"].set_data(payload.data)
    return render_view(entry["session"])


@router.post("/{session_id}/actions")
def post_action(session_id: str, payload: ActionPayload):
    """Apply one interaction; returns the new view and the events it emitted."""
    entry = _entry_or_404(session_id)
    try:
        apply_action(entry["session"], payload)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return {
        "view": render_view(entry["session"]),
        "events": drain_events(session_id),
    }


@router.delete("/{session_id}")
def delete_table(session_id: str):
    from tabula.app import get_session_registry

    entry = get_session_registry().unregister(session_id)
    if entry is None:
        raise HTTPException(status_code=404, detail="Table session not found")
    logger.info("Dropped table session %s", session_id)
    return {"status": "deleted", "session_id": session_id}
