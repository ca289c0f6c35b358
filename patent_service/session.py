"""
Patent session registry.

Holds at most one active patent session. Starting a new session replaces
the slot (last write wins, no locking); the previous session's document
stays on disk, only the in-memory pointer moves. There is no explicit
close: a session ends when another one starts or the process restarts.
"""
import threading
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from logging_setup import get_logger, Component
from observability.events import Component as ObsComponent, EventEmitter
from .document_store import DocumentStore


@dataclass
class PatentSession:
    """The single active patent-drafting context."""

    session_id: str
    title: str
    path: Path
    created_at: datetime
    last_modified: datetime

    def __post_init__(self):
        if not self.session_id:
            raise ValueError("session_id is required")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.session_id,
            "title": self.title,
            "path": str(self.path),
            "created_at": self.created_at.isoformat(),
            "last_modified": self.last_modified.isoformat(),
        }


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SessionRegistry:
    """Single-slot registry of the active patent session."""

    def __init__(
        self,
        store: DocumentStore,
        *,
        now: Callable[[], datetime] = _utc_now,
        emitter: Optional[EventEmitter] = None,
    ):
        self.store = store
        self._now = now
        self._current: Optional[PatentSession] = None
        self._last_id_ms = 0
        self._id_lock = threading.Lock()
        self.emitter = emitter or EventEmitter(ObsComponent.PATENT_SERVICE)
        self.logger = get_logger(Component.SESSION_REGISTRY)

    def _new_session_id(self) -> str:
        """
        Millisecond timestamp id, bumped past the previous one so two
        sessions started within the same millisecond never share an id.
        """
        with self._id_lock:
            candidate = time.time_ns() // 1_000_000
            if candidate <= self._last_id_ms:
                candidate = self._last_id_ms + 1
            self._last_id_ms = candidate
        return str(candidate)

    def start_new(self, title: str) -> PatentSession:
        """
        Create a session and its backing document, then make it current.

        Raises:
            StorageError: document could not be created; the slot is unchanged
        """
        session_id = self._new_session_id()
        path = self.store.create(session_id, title)

        ts = self._now()
        session = PatentSession(
            session_id=session_id,
            title=title,
            path=path,
            created_at=ts,
            last_modified=ts,
        )

        previous = self._current
        self._current = session

        self.logger.info(
            "Started patent session",
            session_id=session_id,
            title=title,
            replaced_session_id=previous.session_id if previous else None,
        )
        self.emitter.session_started(session_id, title, str(path))
        return session

    def current(self) -> Optional[PatentSession]:
        return self._current

    def touch(self) -> None:
        if self._current is not None:
            self._current.last_modified = self._now()

    def clear(self) -> None:
        """Forget the active session record; its document is kept."""
        if self._current is not None:
            self.logger.info("Cleared active patent session", session_id=self._current.session_id)
        self._current = None
