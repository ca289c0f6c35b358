"""
Structured JSON domain events.

Every event is one JSON object per line on stdout with the fields
ts, session_id, component, event_type, severity, correlation_id, pii,
and is also recorded in the in-memory event store so the HTTP surface can
answer "what happened in this patent session".
"""
import json
import sys
from datetime import datetime, timezone
from typing import Optional, Dict, Any
from enum import Enum

from .event_store import EventStore, event_store as default_event_store


# Session id used for events that happen before any patent session exists.
NO_SESSION = "no_session"


class Component(str, Enum):
    """Event-producing components."""
    PATENT_SERVICE = "patent_service"
    FUNCTION_EXECUTOR = "function_executor"
    EVENT_RELAY = "event_relay"


class Severity(str, Enum):
    """Event severity levels."""
    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"


def _pii_fields(*fields: str) -> Dict[str, Any]:
    return {"contains_pii": True, "fields": list(fields), "handling": "none"}


class EventEmitter:
    """Emits structured JSON events."""

    def __init__(self, component: Component, store: Optional[EventStore] = None):
        self.component = component
        self.store = store if store is not None else default_event_store

    def emit(
        self,
        event_type: str,
        session_id: Optional[str],
        severity: Severity = Severity.INFO,
        correlation_id: Optional[str] = None,
        pii: Optional[Dict[str, Any]] = None,
        **kwargs
    ) -> Dict[str, Any]:
        """
        Emit a structured JSON event.

        Args:
            event_type: Stable event type string (e.g., "function.call_completed")
            session_id: Patent session id, or None before a session exists
            severity: Event severity level
            correlation_id: Optional correlation ID (function call id, activation id)
            pii: PII metadata dict with contains_pii, fields, handling
            **kwargs: Additional event-specific fields

        Returns:
            The emitted event dict.
        """
        session_id = session_id or NO_SESSION
        event = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "session_id": session_id,
            "component": self.component.value,
            "event_type": event_type,
            "severity": severity.value,
            "correlation_id": correlation_id or session_id,
            "pii": pii or {"contains_pii": False, "fields": [], "handling": "none"},
        }
        event.update(kwargs)

        json.dump(event, sys.stdout, ensure_ascii=False, default=str)
        sys.stdout.write("\n")
        sys.stdout.flush()

        self.store.store(event)
        return event

    def session_started(self, session_id: str, title: str, path: str) -> None:
        """Emit session.started when a new patent session replaces the slot."""
        self.emit(
            "session.started",
            session_id,
            title=title,
            path=path,
        )

    def document_appended(self, session_id: str, appended_length: int) -> None:
        self.emit(
            "document.appended",
            session_id,
            appended_length=appended_length,
        )

    def function_call_received(
        self,
        session_id: Optional[str],
        function: str,
        arguments: Any,
        call_id: Optional[str] = None,
    ) -> None:
        self.emit(
            "function.call_received",
            session_id,
            correlation_id=call_id,
            pii=_pii_fields("arguments"),
            function=function,
            arguments=arguments,
        )

    def function_call_completed(
        self,
        session_id: Optional[str],
        function: str,
        success: bool,
        latency_ms: int,
        call_id: Optional[str] = None,
        error_category: Optional[str] = None,
    ) -> None:
        self.emit(
            "function.call_completed",
            session_id,
            severity=Severity.INFO if success else Severity.WARN,
            correlation_id=call_id,
            function=function,
            success=success,
            latency_ms=latency_ms,
            error_category=error_category,
        )

    def function_call_suppressed(
        self,
        session_id: Optional[str],
        function: str,
        reason: str,
        call_id: Optional[str] = None,
    ) -> None:
        """
        Emit function.call_suppressed.

        reason is "ledger" when the executor's time window rejected the call,
        "repeated_delivery" when the relay saw the same serialized call twice
        in a row, and "in_flight" for a redelivery of a running call.
        """
        self.emit(
            "function.call_suppressed",
            session_id,
            correlation_id=call_id,
            function=function,
            reason=reason,
        )

    def relay_state_changed(
        self,
        session_id: Optional[str],
        from_state: str,
        to_state: str,
        activation_id: str,
    ) -> None:
        self.emit(
            "relay.state_changed",
            session_id,
            correlation_id=activation_id,
            from_state=from_state,
            to_state=to_state,
        )

    def relay_configured(self, session_id: Optional[str], activation_id: str) -> None:
        self.emit(
            "relay.configured",
            session_id,
            correlation_id=activation_id,
        )

    def relay_result_dropped(
        self,
        session_id: Optional[str],
        function: str,
        call_id: Optional[str] = None,
    ) -> None:
        """Emit relay.result_dropped for a result whose channel is gone."""
        self.emit(
            "relay.result_dropped",
            session_id,
            severity=Severity.WARN,
            correlation_id=call_id,
            function=function,
        )
