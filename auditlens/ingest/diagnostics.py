"""
Error localization for rejected inputs.

Turns a parse failure and the offending text into an ErrorPayload with a
snippet and, where the message carries one, an exact line anchor.
"""

import logging
import re
from typing import Optional

from auditlens.core.errors import IngestError
from auditlens.core.models import ErrorPayload


logger = logging.getLogger(__name__)

UNKNOWN_ERROR_MESSAGE: str = "An unknown error occurred while processing the file."

LINE_COLUMN: re.Pattern[str] = re.compile(r"line (\d+) column (\d+)", re.IGNORECASE)
POSITION: re.Pattern[str] = re.compile(r"position (\d+)", re.IGNORECASE)

END_OF_INPUT_HINTS: tuple[str, ...] = (
    "unexpected end",
    "unterminated",
    "eof",
    "missing",
    "incomplete",
)

ELLIPSIS: str = "..."


class ErrorLocalizer:
    """
    Build displayable diagnostics for parse failures.

    `localize` never raises.
    """

    def __init__(
        self,
        context_lines: int = 2,
        snippet_chars: int = 300,
        position_window: int = 150,
    ) -> None:
        """
        Initialize snippet sizes.

        Args:
            context_lines: Lines shown on each side of a line anchor
            snippet_chars: Characters shown when no anchor is known
            position_window: Characters shown on each side of a position
        """
        self.context_lines: int = context_lines
        self.snippet_chars: int = snippet_chars
        self.position_window: int = position_window

    def localize(
        self,
        error: BaseException | str,
        text: str,
        file_name: Optional[str] = None,
        file_type: Optional[str] = None,
    ) -> ErrorPayload:
        """
        Compute a diagnostic for a failure.

        Tries, in order: a "line N column M" anchor, a "position N" anchor,
        an end-of-input failure (trailing text), then the leading text.

        Args:
            error: Exception or message
            text: Raw source text
            file_name: Optional file name to echo back
            file_type: Optional input category to echo back

        Returns:
            ErrorPayload, best effort
        """
        message: str = self._message(error)

        try:
            payload: ErrorPayload = self._locate(message, text or "")
        except Exception:
            logger.warning("Could not localize error %r", message, exc_info=True)
            payload = ErrorPayload(message=message)

        payload.file_name = file_name
        payload.file_type = file_type
        return payload

    @staticmethod
    def _message(error: BaseException | str) -> str:
        if isinstance(error, IngestError):
            return error.message or UNKNOWN_ERROR_MESSAGE
        if isinstance(error, BaseException):
            return str(error) or type(error).__name__
        return error or UNKNOWN_ERROR_MESSAGE

    def _locate(self, message: str, text: str) -> ErrorPayload:
        line_column = LINE_COLUMN.search(message)
        if line_column:
            return self._line_window(
                message, text, int(line_column.group(1)), int(line_column.group(2))
            )

        position = POSITION.search(message)
        if position:
            return self._char_window(message, text, int(position.group(1)))

        lowered: str = message.lower()
        if any(hint in lowered for hint in END_OF_INPUT_HINTS):
            return self._trailing(message, text)

        return self._leading(message, text)

    def _line_window(self, message: str, text: str, line_num: int, column: int) -> ErrorPayload:
        """Snippet of +/- context_lines around a 1-based line."""
        lines: list[str] = text.split("\n")
        target: int = max(0, min(line_num, len(lines)) - 1)

        start_line: int = max(0, target - self.context_lines)
        end_line: int = min(len(lines), target + self.context_lines + 1)

        offset: int = sum(len(line) + 1 for line in lines[start_line:target])
        offset += max(0, column - 1)

        return ErrorPayload(
            message=message,
            snippet="\n".join(lines[start_line:end_line]),
            error_position=offset,
            actual_line_number=line_num,
            snippet_start_line=start_line + 1,
        )

    def _char_window(self, message: str, text: str, position: int) -> ErrorPayload:
        """Snippet of +/- position_window characters around an offset."""
        start: int = max(0, position - self.position_window)
        end: int = min(len(text), position + self.position_window)

        snippet: str = text[start:end]
        relative: int = position - start

        if start > 0:
            snippet = ELLIPSIS + snippet
            relative += len(ELLIPSIS)
        if end < len(text):
            snippet += ELLIPSIS

        return ErrorPayload(message=message, snippet=snippet, error_position=relative)

    def _trailing(self, message: str, text: str) -> ErrorPayload:
        """Last snippet_chars characters, for end-of-input failures."""
        start: int = max(0, len(text) - self.snippet_chars)
        snippet: str = text[start:]
        if start > 0:
            snippet = ELLIPSIS + snippet

        return ErrorPayload(message=message, snippet=snippet, error_position=len(snippet))

    def _leading(self, message: str, text: str) -> ErrorPayload:
        """First snippet_chars characters."""
        snippet: str = text[:self.snippet_chars]
        if len(text) > self.snippet_chars:
            snippet += ELLIPSIS

        return ErrorPayload(message=message, snippet=snippet)
