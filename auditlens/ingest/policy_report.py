"""
Group Policy audit report parser.

Recovers policies, setting blocks and findings from the auditor's
plaintext report: pipe-delimited tables grouped under [GPO] section
markers, with fenced (\\___) and indented sub-tables.
"""

import logging
import re
from typing import Optional

from auditlens.core.models import (
    Finding,
    InfoLine,
    Policy,
    PolicyHeader,
    PolicyReport,
    Severity,
    SettingBlock,
)


logger = logging.getLogger(__name__)

SECTION_MARKER: str = "[GPO]"
FENCE_TOKEN: str = "\\___"

DEFAULT_CONTINUATION_PATTERN: str = r"[\w()\\/.]"

SECTION_TITLE_CELL: re.Pattern[str] = re.compile(r"\bGPO\b", re.IGNORECASE)
SETTING_HEADER: re.Pattern[str] = re.compile(r"^Setting\s*-\s*(.+)$", re.IGNORECASE)
FINDING_HEADER: re.Pattern[str] = re.compile(r"^Findings?\b", re.IGNORECASE)
COMPOSITE_TITLE: re.Pattern[str] = re.compile(
    r"^(?P<name>.*?)\s*\{(?P<guid>[0-9A-Fa-f-]+)\}\s*(?P<status>.*)$"
)
INFO_LINE: re.Pattern[str] = re.compile(r"^(.*?)\s*\[(Info|Finish)\]\s*(.*)$")
FINISHED_AT: re.Pattern[str] = re.compile(r"Finished at\s+(.+)", re.IGNORECASE)
DURATION: re.Pattern[str] = re.compile(r"took\s+([\d:.]+)", re.IGNORECASE)

# Lower-cased key prefix -> PolicyHeader field, checked in order
HEADER_FIELDS: tuple[tuple[str, str], ...] = (
    ("gpo", "title"),
    ("date created", "date_created"),
    ("date modified", "date_modified"),
    ("path", "path"),
    ("computer policy", "computer_policy"),
    ("user policy", "user_policy"),
    ("link", "links"),
)


def is_table_row(line: str) -> bool:
    """A row starts and ends with a pipe once trimmed."""
    stripped: str = line.strip()
    return len(stripped) >= 2 and stripped.startswith("|") and stripped.endswith("|")


def is_separator(line: str) -> bool:
    """Table rule such as | ------ | ---- |."""
    inner: str = line.strip()[1:-1]
    return "--" in inner and not re.sub(r"[\s|+:-]", "", inner)


def is_fence(line: str) -> bool:
    return line.lstrip().startswith(FENCE_TOKEN)


def indent_of(line: str) -> int:
    return len(line) - len(line.lstrip())


def split_cells(line: str) -> list[str]:
    """Cells of a table row, trimmed."""
    return [cell.strip() for cell in line.strip()[1:-1].split("|")]


def table_rows(lines: list[str]) -> list[list[str]]:
    """Cell lists for every non-separator table row."""
    return [split_cells(line) for line in lines if is_table_row(line) and not is_separator(line)]


def row_value(cells: list[str]) -> str:
    """Value part of a row: every cell after the key."""
    values: list[str] = list(cells[1:])
    while values and not values[-1]:
        values.pop()
    return " | ".join(values)


def _pop_key(mapping: dict[str, str], name: str) -> Optional[str]:
    """Case-insensitive pop."""
    for key in list(mapping):
        if key.lower() == name.lower():
            return mapping.pop(key)
    return None


class PolicyReportParser:
    """
    Parse a plaintext policy-audit report into a PolicyReport tree.

    The parser never rejects input: a report with no recognizable
    sections yields an empty report.
    """

    def __init__(
        self,
        finish_lookahead_lines: int = 5,
        continuation_pattern: str = DEFAULT_CONTINUATION_PATTERN,
        multiline_keys: tuple[str, ...] = ("Member",),
    ) -> None:
        """
        Initialize parser settings.

        Args:
            finish_lookahead_lines: Lines scanned from a [Finish] line for
                completion time and duration
            continuation_pattern: Leading-character class of a continuation
                that repairs a word wrap (joined with a space)
            multiline_keys: Keys whose repeats always join with a newline
        """
        self.finish_lookahead_lines: int = finish_lookahead_lines
        self.continuation: re.Pattern[str] = re.compile(continuation_pattern)
        self.multiline_keys: frozenset[str] = frozenset(k.lower() for k in multiline_keys)

    def parse(self, raw: str) -> PolicyReport:
        """
        Parse a full report.

        Args:
            raw: Report text

        Returns:
            PolicyReport with info lines, policies and completion data
        """
        lines: list[str] = raw.splitlines()
        info, finished_at, duration = self._collect_info(lines)

        starts: list[int] = [i for i in range(len(lines)) if self.is_section_start(lines, i)]
        policies: list[Policy] = []

        for position, start in enumerate(starts):
            end: int = starts[position + 1] if position + 1 < len(starts) else len(lines)
            policies.append(self._parse_section(lines, start, end))

        logger.debug(
            "Policy report: %d sections, %d setting blocks, %d info lines",
            len(policies), sum(len(p.settings) for p in policies), len(info),
        )

        return PolicyReport(
            info=info,
            policies=policies,
            finished_at=finished_at,
            duration=duration,
            raw=raw,
        )

    @staticmethod
    def is_section_start(lines: list[str], index: int) -> bool:
        """
        A [GPO] line opens a section only when the next line is a table
        row whose first cell names the GPO.
        """
        if SECTION_MARKER not in lines[index] or index + 1 >= len(lines):
            return False

        following: str = lines[index + 1]
        if not is_table_row(following):
            return False
        return bool(SECTION_TITLE_CELL.search(split_cells(following)[0]))

    def _collect_info(self, lines: list[str]) -> tuple[list[InfoLine], Optional[str], Optional[str]]:
        """Gather [Info]/[Finish] lines and completion details."""
        info: list[InfoLine] = []
        finished_at: Optional[str] = None
        duration: Optional[str] = None

        for index, line in enumerate(lines):
            match = INFO_LINE.match(line)
            if match is None:
                continue

            timestamp, level, rest = match.groups()
            info.append(InfoLine(
                raw=line,
                timestamp=timestamp.strip() or None,
                level=level,
                message=rest.strip() or None,
            ))

            if level == "Finish":
                window: str = "\n".join(lines[index:index + self.finish_lookahead_lines])
                finished = FINISHED_AT.search(window)
                took = DURATION.search(window)
                if finished:
                    finished_at = finished.group(1).strip()
                if took:
                    duration = took.group(1).strip()

        return info, finished_at, duration

    def _parse_section(self, lines: list[str], start: int, end: int) -> Policy:
        """Parse one [GPO] section bounded by [start, end)."""
        index: int = start + 1
        header_lines: list[str] = []
        while index < end and is_table_row(lines[index]) and not self._is_setting_row(lines[index]):
            header_lines.append(lines[index])
            index += 1

        header: PolicyHeader = self._parse_header(table_rows(header_lines))
        settings: list[SettingBlock] = []

        while index < end:
            if self._starts_setting_block(lines[index]):
                block, index = self._parse_setting_block(lines, index, end)
                settings.append(block)
            else:
                index += 1

        return Policy(started_at_raw=lines[start], header=header, settings=settings)

    def _parse_header(self, rows: list[list[str]]) -> PolicyHeader:
        """Map header rows onto recognized fields, links and extras."""
        fields: dict[str, str] = {}
        links: list[str] = []
        extra: dict[str, str] = {}
        last: Optional[tuple[str, str]] = None

        for cells in rows:
            key: str = cells[0]
            value: str = row_value(cells) if len(cells) > 1 else cells[0]

            if len(cells) < 2 or not key:
                if last is None:
                    continue
                kind, name = last
                if kind == "links":
                    links[-1] = self.join_value(links[-1], value)
                elif kind == "field":
                    fields[name] = self.join_value(fields[name], value)
                else:
                    extra[name] = self.join_value(extra[name], value)
                continue

            target: Optional[str] = self._header_field(key)
            if target == "links":
                links.append(value)
                last = ("links", "")
            elif target is not None:
                fields[target] = value
                last = ("field", target)
            else:
                extra[key] = value
                last = ("extra", key)

        header: PolicyHeader = PolicyHeader(links=links, extra=extra, **fields)

        if header.title:
            composite = COMPOSITE_TITLE.match(header.title)
            if composite:
                header.name = composite.group("name").strip() or None
                header.guid = composite.group("guid")
                header.status = composite.group("status").strip() or None
            else:
                header.name = header.title.strip()

        return header

    @staticmethod
    def _header_field(key: str) -> Optional[str]:
        lowered: str = key.lower()
        for prefix, field_name in HEADER_FIELDS:
            if lowered.startswith(prefix):
                return field_name
        return None

    @staticmethod
    def _is_setting_row(line: str) -> bool:
        if not is_table_row(line) or is_separator(line):
            return False
        return bool(SETTING_HEADER.match(split_cells(line)[0]))

    def _starts_setting_block(self, line: str) -> bool:
        return is_fence(line) or self._is_setting_row(line)

    def _parse_setting_block(self, lines: list[str], start: int, end: int) -> tuple[SettingBlock, int]:
        """
        Parse one setting block starting at a fence or a Setting header row.

        Returns:
            Tuple of (block, index of the first unconsumed line)
        """
        raw_lines: list[str] = []
        body: list[str] = []
        index: int = start

        if is_fence(lines[index]):
            raw_lines.append(lines[index])
            index += 1

        while index < end:
            line: str = lines[index]
            if is_fence(line):
                break
            if not line.strip():
                if body:
                    break
            elif is_table_row(line):
                if body and self._is_setting_row(line):
                    break
                body.append(line)
            raw_lines.append(line)
            index += 1

        rows: list[list[str]] = table_rows(body)
        scope: Optional[str] = None
        category: Optional[str] = None

        if rows:
            heading = SETTING_HEADER.match(rows[0][0])
            if heading:
                scope = heading.group(1).strip()
                category = rows[0][1] if len(rows[0]) > 1 and rows[0][1] else None
                rows = rows[1:]

        entries: dict[str, str] = self.coalesce(rows)
        findings: list[Finding] = []
        body_indent: int = indent_of(body[0]) if body else indent_of(lines[start])

        index = self._parse_nested(lines, index, end, body_indent, entries, findings, raw_lines)

        block: SettingBlock = SettingBlock(
            scope=scope,
            category=category,
            entries=entries,
            findings=findings,
            raw_lines=raw_lines,
        )
        return block, index

    def _parse_nested(
        self,
        lines: list[str],
        index: int,
        end: int,
        parent_indent: int,
        entries: dict[str, str],
        findings: list[Finding],
        raw_lines: list[str],
    ) -> int:
        """
        Consume fenced sub-tables indented deeper than `parent_indent`.

        Stops at the first fence not followed by a deeper table; tables
        nested under a sub-table are handled by recursion.

        Returns:
            Index of the first unconsumed line
        """
        while True:
            probe: int = index
            while probe < end and not lines[probe].strip():
                probe += 1

            if probe >= end or not is_fence(lines[probe]):
                return index

            table_start: int = probe + 1
            if (
                table_start >= end
                or not is_table_row(lines[table_start])
                or indent_of(lines[table_start]) <= parent_indent
            ):
                return index

            table_end: int = table_start
            while table_end < end and is_table_row(lines[table_end]):
                table_end += 1

            raw_lines.extend(lines[index:table_end])
            self._apply_sub_table(table_rows(lines[table_start:table_end]), entries, findings)

            index = self._parse_nested(
                lines,
                table_end,
                end,
                indent_of(lines[table_start]),
                entries,
                findings,
                raw_lines,
            )

    def _apply_sub_table(
        self,
        rows: list[list[str]],
        entries: dict[str, str],
        findings: list[Finding],
    ) -> None:
        """A Finding table becomes a Finding; anything else extends entries."""
        if not rows:
            return

        if FINDING_HEADER.match(rows[0][0]):
            findings.append(self._build_finding(rows[0], rows[1:]))
        else:
            self.coalesce(rows, into=entries)

    def _build_finding(self, header: list[str], rows: list[list[str]]) -> Finding:
        """Build a Finding from its header row and body rows."""
        values: dict[str, str] = self.coalesce(rows)

        header_type: Optional[str] = header[1] if len(header) > 1 and header[1] else None
        finding_type: Optional[str] = header_type
        if finding_type is None:
            finding_type = _pop_key(values, "Finding") or _pop_key(values, "Type")

        return Finding(
            type=finding_type,
            severity=Severity.from_label(finding_type),
            reason=_pop_key(values, "Reason"),
            detail=_pop_key(values, "Detail"),
            extra=values,
        )

    def coalesce(
        self,
        rows: list[list[str]],
        into: Optional[dict[str, str]] = None,
    ) -> dict[str, str]:
        """
        Fold key/value rows into a map.

        Rows with an empty key continue the previous key's value. Repeated
        keys are merged rather than overwritten.

        Args:
            rows: Cell lists
            into: Existing map to extend in place

        Returns:
            The populated map
        """
        out: dict[str, str] = into if into is not None else {}
        last_key: Optional[str] = None

        for cells in rows:
            if len(cells) == 1:
                if last_key is not None:
                    out[last_key] = self.join_value(out[last_key], cells[0])
                continue

            key: str = cells[0]
            value: str = row_value(cells)

            if not key:
                if last_key is not None:
                    out[last_key] = self.join_value(out[last_key], value)
                continue

            if key in out:
                out[key] = self.merge_repeat(key, out[key], value)
            else:
                out[key] = value
            last_key = key

        return out

    def join_value(self, previous: str, addition: str) -> str:
        """
        Append a continuation to a value.

        A continuation starting with a word or path character repairs a
        wrapped line and joins with a space; anything else starts a new line.
        """
        if not previous:
            return addition
        if not addition:
            return previous
        if self.continuation.match(addition):
            return f"{previous} {addition}"
        return f"{previous}\n{addition}"

    def merge_repeat(self, key: str, previous: str, addition: str) -> str:
        """Merge the value of a repeated key."""
        if key.lower() in self.multiline_keys:
            if not previous:
                return addition
            return f"{previous}\n{addition}"
        return self.join_value(previous, addition)
