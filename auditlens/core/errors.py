"""
Ingest error taxonomy.

Only MalformedInput and EmptyOrInvalidInput ever reach callers; a
PartialRecordSkipped is caught by the extraction loop that raised it.
"""

from typing import Optional

from auditlens.core.models import ErrorPayload


EMPTY_INPUT_MESSAGE: str = (
    "Not a valid scanner output file, or the file is empty. "
    "Please check the file content and try again."
)


class IngestError(ValueError):
    """Base class for failures escalated by the ingest pipeline."""

    def __init__(self, message: str, diagnostic: Optional[ErrorPayload] = None) -> None:
        super().__init__(message)
        self.message: str = message
        self.diagnostic: Optional[ErrorPayload] = diagnostic


class MalformedInput(IngestError):
    """JSON decode failure or a document with no usable structure."""


class EmptyOrInvalidInput(IngestError):
    """Routing succeeded but zero admissible records were extracted."""

    def __init__(
        self,
        message: str = EMPTY_INPUT_MESSAGE,
        diagnostic: Optional[ErrorPayload] = None,
    ) -> None:
        super().__init__(message, diagnostic)


class PartialRecordSkipped(ValueError):
    """A single line or entry failed local extraction."""
