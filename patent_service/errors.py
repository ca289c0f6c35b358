"""
Error taxonomy for the patent service.

Every error here is recoverable: the executor turns it into a
``success: false`` result the model can speak back to the user. Nothing
raised from this module should take the process down.
"""
from typing import Any, Dict, Optional


class ErrorCategory:
    """Stable error categories, carried in results and events."""

    NO_ACTIVE_SESSION = "session.none_active"
    NOT_FOUND = "document.not_found"
    STORAGE = "document.storage_failed"
    UNKNOWN_OPERATION = "function.unknown"
    INVALID_ARGUMENTS = "function.invalid_arguments"
    DUPLICATE = "function.duplicate"


class PatentError(Exception):
    """Base class for recoverable patent service errors."""

    category = "patent.error"

    def __init__(self, message: str, *, detail: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.detail = detail

    def to_result(self) -> Dict[str, Any]:
        """Result payload for a failed function call."""
        result: Dict[str, Any] = {
            "success": False,
            "message": self.message,
            "error_category": self.category,
        }
        if self.detail:
            result["error"] = self.detail
        return result


class NoActiveSessionError(PatentError):
    """Operation requires a patent session but none exists."""

    category = ErrorCategory.NO_ACTIVE_SESSION

    def __init__(self, message: str = "No active patent session found"):
        super().__init__(message)


class NotFoundError(PatentError):
    """The expected document is missing, e.g. deleted outside the service."""

    category = ErrorCategory.NOT_FOUND

    def __init__(self, session_id: str, message: str = "Patent file not found"):
        super().__init__(message, detail=f"no document for session {session_id}")
        self.session_id = session_id


class StorageError(PatentError):
    """Creating or writing a document failed; carries the underlying cause."""

    category = ErrorCategory.STORAGE

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message, detail=str(cause) if cause else None)
        self.cause = cause


class InvalidArgumentsError(PatentError):
    category = ErrorCategory.INVALID_ARGUMENTS


class UnknownOperationError(PatentError):
    """
    Dispatch table miss.

    Raised at the boundary before any side effect and deliberately NOT turned
    into an ordinary operation failure by the executor; callers decide how to
    reject it (HTTP 400, or an explicit relay result).
    """

    category = ErrorCategory.UNKNOWN_OPERATION

    def __init__(self, name: str):
        super().__init__(f"Unknown function: {name}")
        self.name = name


class DuplicateSuppressedError(PatentError):
    """
    Not a real failure: an identical call ran within the duplicate window.

    Distinguishable from genuine failures only by its message ("duplicate")
    and the ``duplicate`` flag.
    """

    category = ErrorCategory.DUPLICATE

    def __init__(self, operation: str):
        super().__init__("duplicate", detail="Duplicate operation prevented")
        self.operation = operation

    def to_result(self) -> Dict[str, Any]:
        return {
            "success": False,
            "message": self.message,
            "duplicate": True,
            "detail": self.detail,
            "error_category": self.category,
        }
