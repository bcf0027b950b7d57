"""
Core data models for AuditLens.

Defines the normalized records produced by the ingest layer: scanner
file/share findings, the policy report tree, and the diagnostic payload
returned when an input cannot be parsed.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field


class Severity(str, Enum):
    """
    Risk label shared by scanner findings and policy findings.

    Ranked Black > Red > Yellow > Green everywhere in the project.
    """
    BLACK = "Black"
    RED = "Red"
    YELLOW = "Yellow"
    GREEN = "Green"

    @property
    def rank(self) -> int:
        """Numeric rank, higher is more severe."""
        return _SEVERITY_RANK[self]

    @classmethod
    def from_label(cls, label: Optional[str]) -> Optional["Severity"]:
        """
        Resolve a free-text label to a severity.

        Args:
            label: Label such as "Red" or " yellow "

        Returns:
            Matching Severity, or None when the label is not a severity
        """
        if not label:
            return None

        cleaned: str = label.strip().lower()
        for member in cls:
            if member.value.lower() == cleaned:
                return member
        return None

    def sort_key(self) -> int:
        """Sort key for most-severe-first ordering."""
        return -self.rank


_SEVERITY_RANK: dict[Severity, int] = {
    Severity.BLACK: 4,
    Severity.RED: 3,
    Severity.YELLOW: 2,
    Severity.GREEN: 1,
}


class Permissions(BaseModel):
    """Read/write/execute/delete flags observed by the scanner."""
    model_config = ConfigDict(frozen=True)

    readable: bool = Field(default=False)
    writable: bool = Field(default=False)
    executable: bool = Field(default=False)
    deletable: bool = Field(default=False)


class FileFinding(BaseModel):
    """One scanner hit on a filesystem object."""
    model_config = ConfigDict(frozen=True)

    severity: Severity
    full_path: str = Field(..., description="Full object path")
    file_name: str = Field(default="")
    creation_time: str = Field(default="", description="Opaque timestamp")
    last_modified: str = Field(default="", description="Opaque timestamp")
    size: str = Field(default="0", description="String-encoded size")
    match_context: str = Field(default="")
    matched_strings: list[str] = Field(default_factory=list)
    rule_name: str = Field(default="", description="Comma-joined after merging")
    triage: str = Field(default="")
    user_context: Optional[str] = Field(None, description="host\\user")
    permissions: Optional[Permissions] = Field(None)

    @property
    def identity(self) -> tuple[str, Severity, str]:
        """Pre-merge identity key."""
        return (self.full_path, self.severity, self.rule_name)


class ShareFinding(BaseModel):
    """One scanner hit describing a network share root."""
    model_config = ConfigDict(frozen=True)

    severity: Severity
    share_path: str = Field(default="")
    system_id: str = Field(default="")
    share_name: str = Field(default="")
    share_comment: str = Field(default="")
    listable: bool = Field(default=False)
    root_writable: bool = Field(default=False)
    root_readable: bool = Field(default=False)
    root_modifyable: bool = Field(default=False)
    snaffle: bool = Field(default=False)
    scan_share: bool = Field(default=False)
    triage: str = Field(default="")
    user_context: Optional[str] = Field(None)


class DuplicateStats(BaseModel):
    """Informational counters from the merge pass."""
    original_count: int = Field(default=0, ge=0)
    final_count: int = Field(default=0, ge=0)
    duplicates_removed: int = Field(default=0, ge=0)
    duplicate_percentage: float = Field(default=0.0, ge=0.0, le=100.0)


class SeverityStats(BaseModel):
    """Finding counts per severity."""
    total: int = Field(default=0)
    black: int = Field(default=0)
    red: int = Field(default=0)
    yellow: int = Field(default=0)
    green: int = Field(default=0)


class ScanResults(BaseModel):
    """Output of the scanner pipeline."""
    results: list[FileFinding] = Field(default_factory=list)
    shares: list[ShareFinding] = Field(default_factory=list)
    duplicate_stats: DuplicateStats = Field(default_factory=DuplicateStats)

    @property
    def record_count(self) -> int:
        return len(self.results) + len(self.shares)


class InfoLine(BaseModel):
    """An [Info] or [Finish] line from a policy report."""
    raw: str
    timestamp: Optional[str] = Field(None)
    level: Optional[str] = Field(None, description="Info or Finish")
    message: Optional[str] = Field(None)


class PolicyHeader(BaseModel):
    """Recognized header fields of one policy section."""
    title: Optional[str] = Field(None, description="Full composite GPO value")
    name: Optional[str] = Field(None)
    guid: Optional[str] = Field(None, description="Stable identifier")
    status: Optional[str] = Field(None)
    date_created: Optional[str] = Field(None)
    date_modified: Optional[str] = Field(None)
    path: Optional[str] = Field(None, description="Filesystem path")
    computer_policy: Optional[str] = Field(None)
    user_policy: Optional[str] = Field(None)
    links: list[str] = Field(default_factory=list)
    extra: dict[str, str] = Field(default_factory=dict)


class Finding(BaseModel):
    """A flagged condition inside a setting block."""
    type: Optional[str] = Field(None, description="Raw severity label")
    severity: Optional[Severity] = Field(None)
    reason: Optional[str] = Field(None)
    detail: Optional[str] = Field(None)
    extra: dict[str, str] = Field(default_factory=dict)


class SettingBlock(BaseModel):
    """One configuration table within a policy."""
    scope: Optional[str] = Field(None, description="Computer Policy, User Policy, ...")
    category: Optional[str] = Field(None, description="Registry, Script, ...")
    entries: dict[str, str] = Field(default_factory=dict)
    findings: list[Finding] = Field(default_factory=list)
    raw_lines: list[str] = Field(default_factory=list)


class Policy(BaseModel):
    """One Group Policy Object section."""
    started_at_raw: Optional[str] = Field(None, description="The [GPO] marker line")
    header: PolicyHeader = Field(default_factory=PolicyHeader)
    settings: list[SettingBlock] = Field(default_factory=list)

    @computed_field
    @property
    def findings(self) -> list[Finding]:
        return [f for block in self.settings for f in block.findings]


class PolicyReport(BaseModel):
    """Root aggregate of a parsed policy-audit report."""
    info: list[InfoLine] = Field(default_factory=list)
    policies: list[Policy] = Field(default_factory=list)
    finished_at: Optional[str] = Field(None)
    duration: Optional[str] = Field(None)
    raw: str = Field(default="", repr=False)

    @computed_field
    @property
    def findings(self) -> list[Finding]:
        return [f for policy in self.policies for f in policy.findings]

    @property
    def setting_count(self) -> int:
        return sum(len(p.settings) for p in self.policies)


class ErrorPayload(BaseModel):
    """Displayable diagnostic for a rejected input."""
    message: str
    snippet: Optional[str] = Field(None)
    error_position: Optional[int] = Field(None, description="Offset inside snippet")
    actual_line_number: Optional[int] = Field(None, description="1-based file line")
    snippet_start_line: Optional[int] = Field(None, description="1-based line of snippet start")
    file_name: Optional[str] = Field(None)
    file_type: Optional[str] = Field(None)

    def to_dict(self) -> dict[str, Any]:
        """Export without unset optional fields."""
        return self.model_dump(exclude_none=True)
