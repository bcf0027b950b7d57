"""
Ingestion layer for scan data parsing.

Supports the share scanner's JSON event log and text/log output, and the
Group Policy auditor's plaintext report.
"""

from auditlens.ingest.diagnostics import ErrorLocalizer
from auditlens.ingest.normalizer import DataNormalizer
from auditlens.ingest.policy_report import PolicyReportParser
from auditlens.ingest.scanner import ScannerParser
from auditlens.ingest.sniffer import FormatSniffer, InputCategory, Pipeline

__all__ = [
    "DataNormalizer",
    "ErrorLocalizer",
    "FormatSniffer",
    "InputCategory",
    "Pipeline",
    "PolicyReportParser",
    "ScannerParser",
]
