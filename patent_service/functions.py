"""
Function executor: the operations the realtime model can call.

Each operation takes a JSON-shaped argument object and returns a JSON-shaped
result with at least ``success`` and a speakable ``message``, on success and
on failure alike. Failures are recoverable ``PatentError`` subclasses that
are converted to results here; only an unknown function name escapes, as
``UnknownOperationError``, before any side effect.

``create_template`` and ``resume_patent_creation`` create or re-open state,
so identical repeats inside the duplicate window are suppressed.
``send_user_response`` and ``display_patent`` are never suppressed: each
spoken turn appends distinct content.
"""
from __future__ import annotations

import asyncio
import json
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, Type

from pydantic import BaseModel, Field, ValidationError

from logging_setup import get_logger, Component
from observability.events import Component as ObsComponent, EventEmitter
from .document_store import DocumentStore
from .errors import (
    DuplicateSuppressedError,
    InvalidArgumentsError,
    NoActiveSessionError,
    NotFoundError,
    PatentError,
    UnknownOperationError,
)
from .ledger import DuplicateLedger
from .session import PatentSession, SessionRegistry


FunctionResult = Dict[str, Any]
FunctionCaller = Callable[[str, Any, Optional[str]], Awaitable[FunctionResult]]


class NoArguments(BaseModel):
    pass


class CreateTemplateArgs(BaseModel):
    title: str = Field(..., min_length=1, description="Title of the invention")


class SendUserResponseArgs(BaseModel):
    message: str = Field(..., min_length=1, description="Text to add to the patent document")


@dataclass(frozen=True)
class FunctionSpec:
    name: str
    description: str
    arguments: Type[BaseModel]
    deduplicate: bool = False


FUNCTION_SPECS: Dict[str, FunctionSpec] = {
    spec.name: spec
    for spec in (
        FunctionSpec(
            "create_template",
            "Start a new patent document with the standard sections, titled after the invention.",
            CreateTemplateArgs,
            deduplicate=True,
        ),
        FunctionSpec(
            "resume_patent_creation",
            "Re-open the patent document of the current session and continue documenting it.",
            NoArguments,
            deduplicate=True,
        ),
        FunctionSpec(
            "display_patent",
            "Show the current patent document.",
            NoArguments,
        ),
        FunctionSpec(
            "export_as_pdf",
            "Export the current patent document as a PDF.",
            NoArguments,
        ),
        FunctionSpec(
            "send_user_response",
            "Add what the inventor just described to the patent document.",
            SendUserResponseArgs,
        ),
    )
}


def tool_definitions() -> List[Dict[str, Any]]:
    """Realtime tool schemas for every executor operation."""
    tools = []
    for spec in FUNCTION_SPECS.values():
        schema = spec.arguments.model_json_schema()
        schema.pop("title", None)
        schema.setdefault("properties", {})
        tools.append({
            "type": "function",
            "name": spec.name,
            "description": spec.description,
            "parameters": schema,
        })
    return tools


def decode_arguments(arguments: Any) -> Dict[str, Any]:
    """
    Accept the model's JSON-encoded argument string or an already decoded
    mapping; an empty payload means no arguments.
    """
    if arguments is None:
        return {}
    if isinstance(arguments, str):
        if not arguments.strip():
            return {}
        try:
            arguments = json.loads(arguments)
        except json.JSONDecodeError as e:
            raise InvalidArgumentsError("Function arguments are not valid JSON", detail=str(e)) from e
    if not isinstance(arguments, dict):
        raise InvalidArgumentsError("Function arguments must be a JSON object")
    return arguments


class FunctionExecutor:
    """Dispatch table from function name to handler over one registry."""

    def __init__(
        self,
        registry: SessionRegistry,
        ledger: Optional[DuplicateLedger] = None,
        *,
        emitter: Optional[EventEmitter] = None,
    ):
        self.registry = registry
        self.ledger = ledger or DuplicateLedger()
        self.emitter = emitter or EventEmitter(ObsComponent.FUNCTION_EXECUTOR)
        self.logger = get_logger(Component.FUNCTION_EXECUTOR)
        self._handlers: Dict[str, Callable[[Dict[str, Any]], FunctionResult]] = {
            "create_template": self.create_template,
            "resume_patent_creation": self.resume_patent_creation,
            "display_patent": self.display_patent,
            "export_as_pdf": self.export_as_pdf,
            "send_user_response": self.send_user_response,
        }

    @property
    def store(self) -> DocumentStore:
        return self.registry.store

    @property
    def function_names(self) -> List[str]:
        return list(self._handlers)

    def _session_id(self) -> Optional[str]:
        session = self.registry.current()
        return session.session_id if session else None

    def execute(self, name: str, arguments: Any = None, *, call_id: Optional[str] = None) -> FunctionResult:
        """
        Run one function call.

        Raises:
            UnknownOperationError: ``name`` is not in the dispatch table
        """
        handler = self._handlers.get(name)
        if handler is None:
            self.logger.warning("Unknown function requested", function=name, call_id=call_id)
            raise UnknownOperationError(name)

        self.emitter.function_call_received(self._session_id(), name, arguments, call_id=call_id)
        self.logger.info("Executing function", function=name, call_id=call_id)
        start = time.perf_counter()

        error_category = None
        try:
            args = decode_arguments(arguments)
            spec = FUNCTION_SPECS[name]
            if spec.deduplicate and self.ledger.is_duplicate(name, args):
                self.logger.info("Preventing duplicate operation", function=name, call_id=call_id)
                self.emitter.function_call_suppressed(self._session_id(), name, "ledger", call_id=call_id)
                raise DuplicateSuppressedError(name)
            result = handler(args)
        except PatentError as e:
            error_category = e.category
            result = e.to_result()

        latency_ms = int((time.perf_counter() - start) * 1000)
        self.logger.info(
            "Function executed",
            function=name,
            call_id=call_id,
            success=result["success"],
            latency_ms=latency_ms,
        )
        self.emitter.function_call_completed(
            self._session_id(),
            name,
            result["success"],
            latency_ms,
            call_id=call_id,
            error_category=error_category,
        )
        return result

    def as_caller(self) -> FunctionCaller:
        """
        Async caller for an in-process relay.

        File I/O runs in a worker thread so the relay keeps reading inbound
        events; an unknown name becomes an explicit failed result.
        """
        async def call(name: str, arguments: Any, call_id: Optional[str] = None) -> FunctionResult:
            try:
                return await asyncio.to_thread(self.execute, name, arguments, call_id=call_id)
            except UnknownOperationError as e:
                return e.to_result()

        return call

    # --- operations ---

    def _validate(self, name: str, args: Dict[str, Any]) -> BaseModel:
        try:
            return FUNCTION_SPECS[name].arguments.model_validate(args)
        except ValidationError as e:
            fields = ", ".join(str(err["loc"][0]) for err in e.errors() if err.get("loc"))
            raise InvalidArgumentsError(
                f"Missing or invalid arguments for {name}: {fields or 'arguments'}",
                detail=str(e),
            ) from e

    def _require_session(self) -> PatentSession:
        session = self.registry.current()
        if session is None:
            raise NoActiveSessionError()
        return session

    def create_template(self, args: Dict[str, Any]) -> FunctionResult:
        params = self._validate("create_template", args)
        session = self.registry.start_new(params.title)
        content = self.store.read(session.session_id)
        return {
            "success": True,
            "session_id": session.session_id,
            "path": str(self.store.session_dir(session.session_id)),
            "content": content,
            "message": f'Created new patent document for "{params.title}". '
                       "Let's start documenting your invention.",
        }

    def resume_patent_creation(self, args: Dict[str, Any]) -> FunctionResult:
        session = self.registry.current()
        if session is None:
            raise NoActiveSessionError(
                "No active patent session found. Would you like to start a new one?"
            )
        content = self.store.read(session.session_id)
        return {
            "success": True,
            "session": session.to_dict(),
            "content": content,
            "message": f'Reopened patent document for "{session.title}". '
                       "Let's continue documenting your invention.",
        }

    def display_patent(self, args: Dict[str, Any]) -> FunctionResult:
        session = self._require_session()
        content = self.store.read(session.session_id)
        return {
            "success": True,
            "content": content,
            "message": "Here's your current patent document. Which section would you like to work on?",
        }

    def export_as_pdf(self, args: Dict[str, Any]) -> FunctionResult:
        # Placeholder: reports where the PDF would go, converts nothing.
        session = self._require_session()
        if not self.store.exists(session.session_id):
            raise NotFoundError(session.session_id)
        return {
            "success": True,
            "path": str(self.store.session_dir(session.session_id) / "patent.pdf"),
            "message": "PDF export will be implemented in a future update",
        }

    def send_user_response(self, args: Dict[str, Any]) -> FunctionResult:
        session = self._require_session()
        params = self._validate("send_user_response", args)
        self.logger.debug_pii("Adding content to patent document", text=params.message)
        self.store.append(session.session_id, params.message)
        self.registry.touch()
        self.emitter.document_appended(session.session_id, len(params.message))
        return {
            "success": True,
            "message": "Content added to the patent document. What else would you like to document?",
        }
