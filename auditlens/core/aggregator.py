"""
Summaries over normalized scanner findings.

Severity counts, a per-share inventory combining share and file hits, and
the most frequent user contexts.
"""

import re
from typing import Optional

from pydantic import BaseModel, Field

from auditlens.core.models import FileFinding, Severity, SeverityStats, ShareFinding


UNC_SHARE: re.Pattern[str] = re.compile(r"\\\\([^\\]+)\\([^\\]+)")

IPV4: re.Pattern[str] = re.compile(r"^(\d{1,3}\.){3}\d{1,3}$")
HOST_LABEL: str = r"[a-zA-Z0-9]([a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?"
FQDN: re.Pattern[str] = re.compile(rf"^{HOST_LABEL}(\.{HOST_LABEL})+$")
HOSTNAME: re.Pattern[str] = re.compile(rf"^{HOST_LABEL}$")


class ShareSummary(BaseModel):
    """One share with everything observed about it."""
    system_id: str
    share_name: str
    path: str = Field(..., description="system\\share")
    file_count: int = Field(default=0, ge=0)
    permissions: list[str] = Field(default_factory=list)
    share_comment: str = Field(default="")
    listable: bool = Field(default=False)
    root_writable: bool = Field(default=False)
    root_readable: bool = Field(default=False)
    root_modifyable: bool = Field(default=False)
    snaffle: bool = Field(default=False)
    scan_share: bool = Field(default=False)
    severity: Optional[Severity] = Field(None, description="None when only seen via files")


class UserContextCount(BaseModel):
    machine: str
    user: str
    count: int = Field(default=0)


class UserContextSummary(BaseModel):
    """Most frequent host\\user contexts."""
    users: list[UserContextCount] = Field(default_factory=list)
    total_users: int = Field(default=0)
    total_machines: int = Field(default=0)


class SystemIdentifier(BaseModel):
    type: str = Field(..., pattern="^(ip|fqdn|hostname|unknown)$")
    value: str


def calculate_stats(results: list[FileFinding]) -> SeverityStats:
    """
    Count findings per severity.

    Args:
        results: File findings

    Returns:
        SeverityStats
    """
    counts: dict[Severity, int] = {severity: 0 for severity in Severity}
    for result in results:
        counts[result.severity] += 1

    return SeverityStats(
        total=len(results),
        black=counts[Severity.BLACK],
        red=counts[Severity.RED],
        yellow=counts[Severity.YELLOW],
        green=counts[Severity.GREEN],
    )


def _add_permission(summary: ShareSummary, label: str) -> None:
    if label not in summary.permissions:
        summary.permissions.append(label)


def build_share_inventory(
    shares: list[ShareFinding],
    files: list[FileFinding],
) -> list[ShareSummary]:
    """
    Build one summary per system\\share.

    Share findings seed the inventory; every file under a UNC path adds
    to its share's file count and implies read access.

    Args:
        shares: Share findings
        files: File findings

    Returns:
        Summaries ordered by file count, then severity, most first
    """
    inventory: dict[str, ShareSummary] = {}

    for share in shares:
        key: str = f"{share.system_id}\\{share.share_name}"
        summary: Optional[ShareSummary] = inventory.get(key)

        if summary is None:
            summary = ShareSummary(
                system_id=share.system_id,
                share_name=share.share_name,
                path=key,
                share_comment=share.share_comment,
                listable=share.listable,
                root_writable=share.root_writable,
                root_readable=share.root_readable,
                root_modifyable=share.root_modifyable,
                snaffle=share.snaffle,
                scan_share=share.scan_share,
                severity=share.severity,
            )
            inventory[key] = summary
        elif share.share_comment and not summary.share_comment:
            summary.share_comment = share.share_comment

        if share.root_readable:
            _add_permission(summary, "Read")
        if share.root_writable:
            _add_permission(summary, "Write")
        if share.root_modifyable:
            _add_permission(summary, "Modify")

    for file in files:
        unc = UNC_SHARE.search(file.full_path)
        if unc is None:
            continue

        system_id, share_name = unc.group(1), unc.group(2)
        key = f"{system_id}\\{share_name}"
        if key not in inventory:
            inventory[key] = ShareSummary(system_id=system_id, share_name=share_name, path=key)

        inventory[key].file_count += 1
        _add_permission(inventory[key], "Read")

    return sorted(
        inventory.values(),
        key=lambda s: (-s.file_count, -(s.severity.rank if s.severity else 0)),
    )


def extract_user_info(results: list[FileFinding], limit: int = 10) -> UserContextSummary:
    """
    Summarize host\\user contexts attached to text-log findings.

    Args:
        results: File findings
        limit: Number of top contexts to keep

    Returns:
        UserContextSummary; the machine total covers the kept contexts only
    """
    counts: dict[tuple[str, str], int] = {}

    for result in results:
        if not result.user_context:
            continue

        parts: list[str] = result.user_context.split("\\")
        if len(parts) < 2:
            continue

        machine: str = parts[0]
        user: str = parts[1].split("@")[0]
        counts[(machine, user)] = counts.get((machine, user), 0) + 1

    top: list[UserContextCount] = [
        UserContextCount(machine=machine, user=user, count=count)
        for (machine, user), count in sorted(counts.items(), key=lambda item: -item[1])[:limit]
    ]

    return UserContextSummary(
        users=top,
        total_users=len(counts),
        total_machines=len({entry.machine for entry in top}),
    )


def classify_system_identifier(identifier: str) -> SystemIdentifier:
    """
    Classify a share's system id as an IP, FQDN or bare hostname.

    Args:
        identifier: System id from a UNC path

    Returns:
        SystemIdentifier
    """
    if IPV4.match(identifier):
        return SystemIdentifier(type="ip", value=identifier)
    if FQDN.match(identifier):
        return SystemIdentifier(type="fqdn", value=identifier)
    if HOSTNAME.match(identifier):
        return SystemIdentifier(type="hostname", value=identifier)
    return SystemIdentifier(type="unknown", value=identifier)
