"""
Data normalizer for scanner and policy-audit inputs.

Routes raw input to the right parser, merges scanner findings, and turns
escalated failures into localized diagnostics.
"""

import json
import logging
from pathlib import Path
from typing import Any, Optional

from auditlens.core.deduplicator import FindingDeduplicator
from auditlens.core.errors import EmptyOrInvalidInput, IngestError, MalformedInput
from auditlens.core.models import (
    DuplicateStats,
    FileFinding,
    PolicyReport,
    ScanResults,
)
from auditlens.ingest.diagnostics import ErrorLocalizer
from auditlens.ingest.policy_report import PolicyReportParser
from auditlens.ingest.scanner import ScannerParser
from auditlens.ingest.sniffer import FormatSniffer, InputCategory, Pipeline


logger = logging.getLogger(__name__)


class DataNormalizer:
    """
    Normalize raw tool output into typed records.

    Each call is independent; the normalizer keeps no state between inputs.
    """

    def __init__(
        self,
        policy_parser: Optional[PolicyReportParser] = None,
        localizer: Optional[ErrorLocalizer] = None,
    ) -> None:
        """
        Initialize collaborators.

        Args:
            policy_parser: Configured policy report parser
            localizer: Configured error localizer
        """
        self.sniffer: FormatSniffer = FormatSniffer()
        self.policy_parser: PolicyReportParser = policy_parser or PolicyReportParser()
        self.localizer: ErrorLocalizer = localizer or ErrorLocalizer()

    def normalize_file(self, file_path: str | Path) -> ScanResults | PolicyReport:
        """
        Normalize a file, deriving its category from the extension.

        Args:
            file_path: Path to scanner output or policy report

        Returns:
            ScanResults or PolicyReport

        Raises:
            FileNotFoundError: The file does not exist
            IngestError: The input was rejected; `diagnostic` is populated
        """
        path: Path = Path(file_path)

        if not path.exists():
            raise FileNotFoundError(f"Input file not found: {file_path}")

        content: str = path.read_text(encoding="utf-8", errors="replace")
        return self.normalize(content, InputCategory.from_path(path), file_name=path.name)

    def normalize(
        self,
        content: str | bytes | dict[str, Any],
        category: InputCategory | str,
        file_name: Optional[str] = None,
    ) -> ScanResults | PolicyReport:
        """
        Normalize raw content.

        Args:
            content: Raw text, bytes, or an already decoded JSON document
            category: Declared input category
            file_name: Optional name echoed into diagnostics

        Returns:
            ScanResults or PolicyReport

        Raises:
            IngestError: The input was rejected; `diagnostic` is populated
        """
        category = InputCategory(category)

        if isinstance(content, bytes):
            content = content.decode("utf-8", errors="replace")

        text: str = content if isinstance(content, str) else json.dumps(content, indent=2)

        try:
            return self._route(content, text, category)

        except IngestError as e:
            e.diagnostic = self.localizer.localize(e, text, file_name, category.value)
            logger.warning("Rejected %s input %s: %s", category.value, file_name or "<memory>", e.message)
            raise

    def _route(
        self,
        content: str | dict[str, Any],
        text: str,
        category: InputCategory,
    ) -> ScanResults | PolicyReport:
        """Pick the pipeline and run it."""
        pipeline: Pipeline = self.sniffer.detect(text, category)
        logger.debug("Routing %s input to %s", category.value, pipeline.value)

        if pipeline == Pipeline.SCANNER_JSON:
            return self.normalize_scanner_json(content)

        if pipeline == Pipeline.POLICY_REPORT:
            report: PolicyReport = self.policy_parser.parse(text)
            if report.policies:
                logger.info(
                    "Parsed policy report: %d policies, %d setting blocks, %d findings",
                    len(report.policies), report.setting_count, len(report.findings),
                )
                return report
            logger.debug("Policy signature without sections, falling back to scanner text")

        return self.normalize_scanner_text(text)

    def normalize_scanner_json(self, content: str | dict[str, Any]) -> ScanResults:
        """
        Run the JSON scanner pipeline.

        Args:
            content: JSON text or decoded document

        Returns:
            Merged ScanResults

        Raises:
            MalformedInput: Invalid JSON or no entries list
            EmptyOrInvalidInput: No admissible records
        """
        document: Any = content
        if isinstance(content, str):
            try:
                document = json.loads(content)
            except json.JSONDecodeError as e:
                raise MalformedInput(f"Invalid JSON: {e}") from e

        parser: ScannerParser = ScannerParser()
        parser.parse_json(document)
        return self._finish(parser)

    def normalize_scanner_text(self, text: str) -> ScanResults:
        """
        Run the text/log scanner pipeline.

        Args:
            text: Newline-separated scanner output

        Returns:
            Merged ScanResults

        Raises:
            EmptyOrInvalidInput: No admissible records
        """
        parser: ScannerParser = ScannerParser()
        parser.parse_text(text)
        return self._finish(parser)

    def _finish(self, parser: ScannerParser) -> ScanResults:
        """Merge extracted findings and reject empty extractions."""
        files: list[FileFinding] = parser.get_files()

        if not files and not parser.get_shares():
            raise EmptyOrInvalidInput()

        merged: list[FileFinding]
        stats: DuplicateStats
        merged, stats = FindingDeduplicator().deduplicate(files)

        logger.info(
            "Normalized %d file findings (%d raw), %d share findings, %d skipped records",
            len(merged), len(files), len(parser.get_shares()), len(parser.get_errors()),
        )

        return ScanResults(
            results=merged,
            shares=parser.get_shares(),
            duplicate_stats=stats,
        )
