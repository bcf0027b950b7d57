"""
Core module for AuditLens.

Contains the normalized data models, the ingest error taxonomy,
finding deduplication, and summary helpers.
"""

from auditlens.core.errors import (
    EmptyOrInvalidInput,
    IngestError,
    MalformedInput,
    PartialRecordSkipped,
)
from auditlens.core.models import (
    DuplicateStats,
    ErrorPayload,
    FileFinding,
    Finding,
    InfoLine,
    Permissions,
    Policy,
    PolicyHeader,
    PolicyReport,
    ScanResults,
    SettingBlock,
    Severity,
    SeverityStats,
    ShareFinding,
)

__all__ = [
    "DuplicateStats",
    "EmptyOrInvalidInput",
    "ErrorPayload",
    "FileFinding",
    "Finding",
    "InfoLine",
    "IngestError",
    "MalformedInput",
    "PartialRecordSkipped",
    "Permissions",
    "Policy",
    "PolicyHeader",
    "PolicyReport",
    "ScanResults",
    "SettingBlock",
    "Severity",
    "SeverityStats",
    "ShareFinding",
]
