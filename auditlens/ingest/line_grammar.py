"""
Tokenizer for the scanner's flat text/log line format.

A file line looks like::

    [DOMAIN\\user@HOST] 2024-01-01 10:00:00Z [File] {Red}<KeepConfigRegexRed|R|pass|50B|2024-01-01 09:00:00Z>(\\\\host\\share\\a.txt) context

and a share line like::

    [DOMAIN\\user@HOST] 2024-01-01 10:00:00Z [Share] {Green}<\\\\host\\share>(R) comment

Each extraction step is a named method on LineCursor. A missing required
delimiter raises PartialRecordSkipped so callers can drop the line.
"""

import re
from dataclasses import dataclass
from typing import Optional

from auditlens.core.aggregator import UNC_SHARE
from auditlens.core.errors import PartialRecordSkipped
from auditlens.core.models import FileFinding, Severity, ShareFinding
from auditlens.ingest.escapes import decode_match_context


FILE_MARKER: str = "[File]"
SHARE_MARKER: str = "[Share]"

SIZE_TOKEN: re.Pattern[str] = re.compile(r"\d+(?:\.\d+)?(?:B|kB|MB|GB)")
PIPE_TIMESTAMP: re.Pattern[str] = re.compile(
    r"\|(\d{4}-(?:0?[1-9]|1[012])-(?:0?[1-9]|[12][0-9]|3[01])[ T].*?Z)"
)
PERMISSION_TOKEN: re.Pattern[str] = re.compile(r"\(([RWMF]+)\)")


@dataclass
class Span:
    """Delimited slice of a line: inner text plus outer bounds."""
    text: str
    start: int
    end: int


@dataclass
class LineCursor:
    """
    Stateful reader over a single scanner line.

    Positions are absolute offsets into the line; `pos` only moves forward.
    """
    line: str
    pos: int = 0

    def find_delimited(self, opener: str, closer: str, start: Optional[int] = None) -> Optional[Span]:
        """Locate the next opener...closer pair at or after `start`."""
        begin: int = self.line.find(opener, self.pos if start is None else start)
        if begin == -1:
            return None

        inner_start: int = begin + len(opener)
        finish: int = self.line.find(closer, inner_start)
        if finish == -1:
            return None

        return Span(self.line[inner_start:finish], begin, finish + len(closer))

    def user_context(self) -> Optional[str]:
        """Optional leading [host\\user] token."""
        if not self.line.startswith("["):
            return None

        span: Optional[Span] = self.find_delimited("[", "]", 0)
        if span is None or not span.text or span.text in ("File", "Share"):
            return None
        return span.text

    def skip_past(self, marker: str) -> None:
        """Advance past a record-type marker."""
        index: int = self.line.find(marker, self.pos)
        if index == -1:
            raise PartialRecordSkipped(f"missing {marker} marker")
        self.pos = index + len(marker)

    def severity(self) -> Severity:
        """Required {Severity} token."""
        span: Optional[Span] = self.find_delimited("{", "}")
        if span is None:
            raise PartialRecordSkipped("missing {severity} token")

        severity: Optional[Severity] = Severity.from_label(span.text)
        if severity is None:
            raise PartialRecordSkipped(f"unknown severity label: {span.text!r}")

        self.pos = span.end
        return severity

    def object_path(self) -> Span:
        """
        Required >(path) token; the trailing segment starts after it.

        Parentheses nest, so `C:\\Program Files (x86)\\...` stays whole. A path
        with an unmatched `(` closes at the first `)` instead.
        """
        begin: int = self.line.find(">(", self.pos)
        if begin == -1:
            raise PartialRecordSkipped("missing >(path) token")

        inner_start: int = begin + 2
        depth: int = 1
        first_close: int = -1
        for index in range(inner_start, len(self.line)):
            char: str = self.line[index]
            if char == "(":
                depth += 1
            elif char == ")":
                if first_close == -1:
                    first_close = index
                depth -= 1
                if depth == 0:
                    return Span(self.line[inner_start:index], begin, index + 1)

        if first_close == -1:
            raise PartialRecordSkipped("missing >(path) token")
        return Span(self.line[inner_start:first_close], begin, first_close + 1)

    def rule_block(self, path: Span) -> Optional[Span]:
        """
        Optional <...> rule metadata block.

        The block normally precedes the path and shares its closing `>`
        with the `>(` opener. Older lines carry it at the end of the line
        instead; there the last `<` opens it, since the match context may
        hold `<` characters of its own.
        """
        leading: Optional[Span] = self.find_delimited("<", ">")
        if leading is not None and leading.start < path.start:
            return leading

        opener: int = self.line.rfind("<", path.end)
        if opener == -1:
            return None
        return self.find_delimited("<", ">", opener)

    def timestamp(self) -> str:
        """Last ISO-like timestamp that directly follows a pipe."""
        matches: list[str] = PIPE_TIMESTAMP.findall(self.line)
        return matches[-1] if matches else ""


def split_rule_details(details: str) -> tuple[str, str]:
    """
    Split pipe-delimited rule metadata.

    Args:
        details: Text inside the <...> block

    Returns:
        Tuple of (rule name, size token or "0")
    """
    parts: list[str] = details.split("|")
    rule_name: str = parts[0].strip()

    for part in parts[1:]:
        if SIZE_TOKEN.fullmatch(part.strip()):
            return rule_name, part.strip()

    loose = SIZE_TOKEN.search("|".join(parts[1:]))
    return rule_name, loose.group(0) if loose else "0"


def file_name_from_path(full_path: str) -> str:
    """Last component of a Windows or POSIX path."""
    normalized: str = full_path.replace("/", "\\").rstrip("\\")
    return normalized.rsplit("\\", 1)[-1]


def parse_file_line(line: str) -> FileFinding:
    """
    Extract a FileFinding from one text line.

    Args:
        line: Raw line containing the [File] marker

    Returns:
        FileFinding built from the line tokens

    Raises:
        PartialRecordSkipped: A required token is missing
    """
    cursor: LineCursor = LineCursor(line)
    user_context: Optional[str] = cursor.user_context()
    cursor.skip_past(FILE_MARKER)

    severity: Severity = cursor.severity()
    path: Span = cursor.object_path()
    rule: Optional[Span] = cursor.rule_block(path)

    trailing: str = line[path.end:]
    rule_name: str = ""
    size: str = "0"

    if rule is not None:
        rule_name, size = split_rule_details(rule.text)
        if rule.start >= path.end:
            trailing = line[path.end:rule.start] + line[rule.end:]

    match_context: str = decode_match_context(trailing.strip())
    modified: str = cursor.timestamp()

    return FileFinding(
        severity=severity,
        full_path=path.text,
        file_name=file_name_from_path(path.text),
        creation_time=modified,
        last_modified=modified,
        size=size,
        match_context=match_context,
        matched_strings=[match_context],
        rule_name=rule_name,
        triage=severity.value,
        user_context=user_context,
    )


def parse_share_line(line: str) -> ShareFinding:
    """
    Extract a ShareFinding from one text line.

    Args:
        line: Raw line containing the [Share] marker

    Returns:
        ShareFinding built from the line tokens

    Raises:
        PartialRecordSkipped: A required token is missing
    """
    cursor: LineCursor = LineCursor(line)
    user_context: Optional[str] = cursor.user_context()
    cursor.skip_past(SHARE_MARKER)

    severity: Severity = cursor.severity()
    block: Optional[Span] = cursor.find_delimited("<", ">")
    if block is None:
        raise PartialRecordSkipped("missing <share> block")

    parts: list[str] = [p.strip() for p in block.text.split("|")]
    share_type: str = ""
    if len(parts) >= 3:
        declared_name, share_type, share_path = parts[0], parts[1], parts[2]
    else:
        declared_name, share_path = "", parts[0]

    unc = UNC_SHARE.search(share_path)
    system_id: str = unc.group(1) if unc else ""
    share_name: str = unc.group(2) if unc else declared_name

    after: str = line[block.end:].strip()
    perms: str = ""
    leading = PERMISSION_TOKEN.match(after)
    if leading:
        perms = leading.group(1)
        after = after[leading.end():].strip()
    else:
        trailing = re.search(r"\(([RWMF]+)\)$", after)
        if trailing:
            perms = trailing.group(1)
            after = after[:trailing.start()].strip()

    readable: bool = "R" in perms or share_type == "R"

    return ShareFinding(
        severity=severity,
        share_path=share_path,
        system_id=system_id,
        share_name=share_name,
        share_comment=after,
        listable=share_type == "R",
        root_readable=readable,
        root_writable="W" in perms,
        root_modifyable="M" in perms,
        triage=severity.value,
        user_context=user_context,
    )
