"""
Scanner output parser for file/share findings.

Extracts FileFinding and ShareFinding records from the scanner's JSON
event log or its flat text/log output.
"""

import logging
from typing import Any, Callable, Optional, TypeVar

from auditlens.core.aggregator import UNC_SHARE
from auditlens.core.errors import MalformedInput, PartialRecordSkipped
from auditlens.core.models import (
    FileFinding,
    Permissions,
    Severity,
    ShareFinding,
)
from auditlens.ingest.escapes import decode_match_context
from auditlens.ingest.line_grammar import (
    FILE_MARKER,
    SHARE_MARKER,
    parse_file_line,
    parse_share_line,
)


logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", FileFinding, ShareFinding)

# Order in which payload color keys are probed inside one JSON entry
PAYLOAD_KEYS: tuple[Severity, ...] = (
    Severity.RED,
    Severity.GREEN,
    Severity.YELLOW,
    Severity.BLACK,
)

ADMISSIBLE_LEVEL: str = "Warn"


class ScannerParser:
    """
    Parse scanner results into file and share findings.

    Extraction is best-effort per record: a line or entry that fails local
    extraction is skipped and noted in `errors`.
    """

    def __init__(self) -> None:
        """Initialize parser state."""
        self.files: list[FileFinding] = []
        self.shares: list[ShareFinding] = []
        self.errors: list[str] = []

    def _reset(self) -> None:
        self.files = []
        self.shares = []
        self.errors = []

    def parse_json(self, document: Any) -> list[FileFinding]:
        """
        Parse a decoded JSON event log.

        Args:
            document: Decoded value shaped as {"entries": [...]}

        Returns:
            File findings in input order (shares via get_shares)

        Raises:
            MalformedInput: The document does not hold an entries list
        """
        self._reset()

        if not isinstance(document, dict) or not isinstance(document.get("entries"), list):
            raise MalformedInput("JSON document has no 'entries' list")

        for index, entry in enumerate(document["entries"]):
            if not isinstance(entry, dict):
                self._skip(f"Entry {index}: not an object")
                continue

            message: str = str(entry.get("message") or "")
            if entry.get("level") != ADMISSIBLE_LEVEL:
                continue

            if FILE_MARKER in message:
                self._collect(index, lambda: self._parse_file_entry(entry, message), self.files)
            if SHARE_MARKER in message:
                self._collect(index, lambda: self._parse_share_entry(entry), self.shares)

        logger.debug(
            "JSON extraction: %d files, %d shares, %d skipped",
            len(self.files), len(self.shares), len(self.errors),
        )
        return self.files

    def parse_text(self, content: str) -> list[FileFinding]:
        """
        Parse flat text/log scanner output.

        Args:
            content: Newline-separated scanner lines

        Returns:
            File findings in input order (shares via get_shares)
        """
        self._reset()

        # records end at \n only
        for line_num, line in enumerate(content.split("\n"), 1):
            line = line.removesuffix("\r")
            if not line.strip():
                continue

            if FILE_MARKER in line:
                self._collect(line_num, lambda: [parse_file_line(line)], self.files)
            elif SHARE_MARKER in line:
                self._collect(line_num, lambda: [parse_share_line(line)], self.shares)

        logger.debug(
            "Text extraction: %d files, %d shares, %d skipped",
            len(self.files), len(self.shares), len(self.errors),
        )
        return self.files

    def _collect(
        self,
        position: int,
        extract: Callable[[], list[RecordT]],
        sink: list[RecordT],
    ) -> None:
        """Run one record extraction, swallowing local failures."""
        try:
            sink.extend(extract())
        except PartialRecordSkipped as e:
            self._skip(f"Record {position}: {e}")
        except (KeyError, TypeError, AttributeError, ValueError) as e:
            self._skip(f"Record {position}: malformed payload - {e}")

    def _skip(self, reason: str) -> None:
        self.errors.append(reason)
        logger.debug("Skipped %s", reason)

    def _parse_file_entry(self, entry: dict[str, Any], message: str) -> list[FileFinding]:
        """Extract file findings from one admissible JSON entry."""
        properties: Any = entry.get("eventProperties") or {}
        results: list[FileFinding] = []

        if not properties:
            # Legacy exports carry only the rendered text line
            return [parse_file_line(message)]

        for severity in PAYLOAD_KEYS:
            payload: Any = properties.get(severity.value)
            if not isinstance(payload, dict) or not payload.get("FileResult"):
                continue

            file_result: dict[str, Any] = payload["FileResult"]
            file_info: Optional[dict[str, Any]] = file_result.get("FileInfo")
            text_result: Optional[dict[str, Any]] = file_result.get("TextResult")
            matched_rule: Optional[dict[str, Any]] = file_result.get("MatchedRule")

            if not (file_info and text_result and matched_rule):
                self._skip(f"{severity.value} FileResult missing nested fields")
                continue

            results.append(self._build_file_finding(severity, file_result))

        return results

    def _build_file_finding(self, severity: Severity, file_result: dict[str, Any]) -> FileFinding:
        """Map a structured FileResult payload onto a FileFinding."""
        file_info: dict[str, Any] = file_result["FileInfo"]
        text_result: dict[str, Any] = file_result["TextResult"]
        matched_rule: dict[str, Any] = file_result["MatchedRule"]

        length: Any = file_info.get("Length")
        size: str = str(length) if length not in (None, "") else "0"

        permissions: Optional[Permissions] = None
        rw_status: Optional[dict[str, Any]] = file_result.get("RwStatus")
        if rw_status:
            permissions = Permissions(
                readable=bool(rw_status.get("CanRead")),
                writable=bool(rw_status.get("CanWrite")),
                executable=False,
                deletable=bool(rw_status.get("CanModify")),
            )

        matched: Any = text_result.get("MatchedStrings") or []

        return FileFinding(
            severity=severity,
            full_path=file_info.get("FullName") or "",
            file_name=file_info.get("Name") or "",
            creation_time=file_info.get("CreationTimeUtc") or file_info.get("CreationTime") or "",
            last_modified=file_info.get("LastWriteTimeUtc") or file_info.get("LastWriteTime") or "",
            size=size,
            match_context=decode_match_context(text_result.get("MatchContext") or ""),
            matched_strings=[str(s) for s in matched],
            rule_name=matched_rule.get("RuleName") or "",
            triage=matched_rule.get("Triage") or "",
            permissions=permissions,
        )

    def _parse_share_entry(self, entry: dict[str, Any]) -> list[ShareFinding]:
        """Extract share findings from one admissible JSON entry."""
        properties: Any = entry.get("eventProperties") or {}
        results: list[ShareFinding] = []

        for severity in PAYLOAD_KEYS:
            payload: Any = properties.get(severity.value)
            if not isinstance(payload, dict) or not payload.get("ShareResult"):
                continue

            share_result: dict[str, Any] = payload["ShareResult"]
            share_path: str = share_result.get("SharePath") or ""
            if not share_path:
                self._skip(f"{severity.value} ShareResult missing SharePath")
                continue

            unc = UNC_SHARE.search(share_path)

            results.append(ShareFinding(
                severity=severity,
                share_path=share_path,
                system_id=unc.group(1) if unc else "",
                share_name=unc.group(2) if unc else "",
                share_comment=share_result.get("ShareComment") or "",
                listable=bool(share_result.get("Listable")),
                root_writable=bool(share_result.get("RootWritable")),
                root_readable=bool(share_result.get("RootReadable")),
                root_modifyable=bool(share_result.get("RootModifyable")),
                snaffle=bool(share_result.get("Snaffle")),
                scan_share=bool(share_result.get("ScanShare")),
                triage=share_result.get("Triage") or severity.value,
            ))

        return results

    def get_files(self) -> list[FileFinding]:
        """Return extracted file findings."""
        return self.files

    def get_shares(self) -> list[ShareFinding]:
        """Return extracted share findings."""
        return self.shares

    def get_errors(self) -> list[str]:
        """Return skipped-record notes."""
        return self.errors

    def to_dict(self) -> dict[str, Any]:
        """Export parsed data as dictionary."""
        return {
            "files": [f.model_dump() for f in self.files],
            "shares": [s.model_dump() for s in self.shares],
            "errors": self.errors,
            "summary": {
                "file_count": len(self.files),
                "share_count": len(self.shares),
                "skipped_count": len(self.errors),
            }
        }
