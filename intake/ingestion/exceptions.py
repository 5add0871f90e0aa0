"""Exceptions raised by the ingestion core."""

from typing import List, Optional


class IngestionError(Exception):
    """Base exception for ingestion failures."""

    pass


class RecordValidationError(IngestionError, ValueError):
    """
    Raised when a submission is missing its key or has malformed fields.

    Collects every field problem so the caller can report them together.
    Never retried: the same input fails the same way.
    """

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        self.message = message
        self.errors = errors or []
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        if not self.errors:
            return self.message
        lines = [self.message]
        for i, error in enumerate(self.errors, 1):
            lines.append(f"  {i}. {error}")
        return "\n".join(lines)
