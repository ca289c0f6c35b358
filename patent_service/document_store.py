"""
Document store: one markdown draft per patent session.

Layout on disk is ``<base_dir>/<session_id>/main.md``; the location is
derived from the session id alone.

Known limitation: ``append`` is a plain read-modify-write. Two overlapping
appends can lose one of the updates. The service assumes a single writer
(one interactive user) and does not lock.
"""
from pathlib import Path

from logging_setup import get_logger, Component
from .errors import NotFoundError, StorageError


DOCUMENT_NAME = "main.md"
BLOCK_SEPARATOR = "\n\n"

PATENT_SKELETON = """# {title}

## Abstract
[Brief summary of the invention]

## Background
[Context and existing solutions]

## Summary
[Overview of the invention]

## Detailed Description
[Complete technical details]

## Claims
[Legal claims of the patent]
"""


def render_skeleton(title: str) -> str:
    """Initial five-section document for a new patent."""
    return PATENT_SKELETON.format(title=title)


class DocumentStore:
    """File-backed text store keyed by session id."""

    def __init__(self, base_dir: Path | str):
        self.base_dir = Path(base_dir)
        self.logger = get_logger(Component.DOCUMENT_STORE)

    def session_dir(self, session_id: str) -> Path:
        return self.base_dir / session_id

    def path_for(self, session_id: str) -> Path:
        return self.session_dir(session_id) / DOCUMENT_NAME

    def exists(self, session_id: str) -> bool:
        return self.path_for(session_id).is_file()

    def create(self, session_id: str, title: str) -> Path:
        """
        Allocate the session directory and write the skeleton.

        Raises:
            StorageError: directory or file could not be created
        """
        path = self.path_for(session_id)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            self.logger.error(
                "Failed to create patent document",
                session_id=session_id,
                path=str(path),
                error=str(e),
                error_type=type(e).__name__,
            )
            raise StorageError(f"Could not create patent document: {e}", cause=e) from e

        self.overwrite(session_id, render_skeleton(title))
        self.logger.info("Created patent document", session_id=session_id, path=str(path))
        return path

    def read(self, session_id: str) -> str:
        path = self.path_for(session_id)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError as e:
            raise NotFoundError(session_id) from e
        except (OSError, UnicodeDecodeError) as e:
            # UnicodeDecodeError: edited outside the service with a non-UTF-8 editor
            raise StorageError(f"Could not read patent document: {e}", cause=e) from e

    def append(self, session_id: str, text: str) -> None:
        """Append ``text`` as a new block separated by one blank line."""
        current = self.read(session_id)
        self._write(session_id, current + BLOCK_SEPARATOR + text)
        self.logger.debug(
            "Appended block to patent document",
            session_id=session_id,
            appended_length=len(text),
        )

    def overwrite(self, session_id: str, text: str) -> None:
        """Replace the whole document. Used when (re)creating a template."""
        self._write(session_id, text)

    def _write(self, session_id: str, text: str) -> None:
        path = self.path_for(session_id)
        try:
            path.write_text(text, encoding="utf-8")
        except OSError as e:
            self.logger.error(
                "Failed to write patent document",
                session_id=session_id,
                path=str(path),
                error=str(e),
            )
            raise StorageError(f"Could not update patent document: {e}", cause=e) from e
