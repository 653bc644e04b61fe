"""Registry for live table widget sessions."""

import threading
import uuid
from typing import Any, Callable

from tabula.engine.session import TableSession


class SessionRegistry:
    """Open widget sessions, keyed by id, each with a queue of emitted host events.

    Events are appended from whatever thread the session runs on and taken
    off with :meth:`drain_events` by the HTTP or WebSocket layer.
    """

    def __init__(self):
        self._sessions: dict[str, dict[str, Any]] = {}
        self._lock = threading.Lock()

    def open(
        self,
        configuration: Any = None,
        data: Any = None,
        on_change: Callable[[str], None] | None = None,
    ) -> str:
        """Create a session that queues its events here; returns the new id."""
        session_id = uuid.uuid4().hex
        events: list[dict[str, Any]] = []

        def emit(name: str, payload: dict[str, Any]) -> None:
            with self._lock:
                events.append({"name": name, "payload": payload})

        notify = (lambda: on_change(session_id)) if on_change is not None else None
        session = TableSession(configuration, data, emit=emit, on_change=notify)
        self.register(session_id, session, events)
        return session_id

    def register(self, key: str, session: TableSession, events: list | None = None) -> None:
        with self._lock:
            self._sessions[key] = {"session": session, "events": events if events is not None else []}

    def unregister(self, key: str) -> dict | None:
        with self._lock:
            return self._sessions.pop(key, None)

    def get(self, key: str) -> dict | None:
        with self._lock:
            return self._sessions.get(key)

    def session(self, key: str) -> TableSession | None:
        entry = self.get(key)
        return entry["session"] if entry is not None else None

    def drain_events(self, key: str) -> list[dict[str, Any]]:
        """Take (and clear) the events session *key* has emitted so far."""
        with self._lock:
            entry = self._sessions.get(key)
            if entry is None:
                return []
            drained = list(entry["events"])
            entry["events"].clear()
        return drained

    def list_sessions(self) -> list[str]:
        with self._lock:
            return list(self._sessions.keys())

    def clear(self) -> None:
        with self._lock:
            self._sessions.clear()
