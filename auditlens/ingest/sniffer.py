"""
Input category and sub-format detection.

The category (json, text, log) comes from the file extension; within a
non-JSON category the raw text decides between the scanner line format
and the policy-audit report.
"""

from enum import Enum
from pathlib import Path

from auditlens.ingest.policy_report import FENCE_TOKEN, SECTION_MARKER


class InputCategory(str, Enum):
    """Caller-declared input category."""
    JSON = "json"
    TEXT = "text"
    LOG = "log"

    @classmethod
    def from_path(cls, file_path: str | Path) -> "InputCategory":
        """
        Derive the category from a file name.

        Args:
            file_path: File name or path

        Returns:
            JSON for .json, LOG for .log, TEXT for anything else
        """
        suffix: str = Path(file_path).suffix.lower()
        if suffix == ".json":
            return cls.JSON
        if suffix == ".log":
            return cls.LOG
        return cls.TEXT


class Pipeline(str, Enum):
    """Parser pipeline chosen for an input."""
    SCANNER_JSON = "scanner_json"
    SCANNER_TEXT = "scanner_text"
    POLICY_REPORT = "policy_report"


class FormatSniffer:
    """
    Route raw input to a parser pipeline.
    """

    @staticmethod
    def looks_like_policy_report(text: str) -> bool:
        """
        Policy-report signature: a [GPO] marker plus at least one table row
        or block fence.
        """
        if SECTION_MARKER not in text:
            return False

        for line in text.splitlines():
            stripped: str = line.strip()
            if stripped.startswith("|") or stripped.startswith(FENCE_TOKEN):
                return True
        return False

    def detect(self, text: str, category: InputCategory) -> Pipeline:
        """
        Choose the pipeline for an input.

        Args:
            text: Raw input text
            category: Declared input category

        Returns:
            Pipeline to run
        """
        if category == InputCategory.JSON:
            return Pipeline.SCANNER_JSON

        if self.looks_like_policy_report(text):
            return Pipeline.POLICY_REPORT

        return Pipeline.SCANNER_TEXT
