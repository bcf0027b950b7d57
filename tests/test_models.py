"""
Unit tests for core data models.
"""

import pytest
from pydantic import ValidationError

from auditlens.core.models import (
    DuplicateStats,
    ErrorPayload,
    FileFinding,
    Finding,
    Permissions,
    Policy,
    PolicyReport,
    ScanResults,
    SettingBlock,
    Severity,
    ShareFinding,
)


class TestSeverity:
    """Test Severity ranking and label resolution."""

    def test_ranking_order(self) -> None:
        """Test Black > Red > Yellow > Green."""
        assert Severity.BLACK.rank > Severity.RED.rank
        assert Severity.RED.rank > Severity.YELLOW.rank
        assert Severity.YELLOW.rank > Severity.GREEN.rank

    def test_sort_key_orders_most_severe_first(self) -> None:
        """Test sorting by sort_key."""
        ordered = sorted(
            [Severity.GREEN, Severity.BLACK, Severity.YELLOW, Severity.RED],
            key=lambda s: s.sort_key(),
        )

        assert ordered == [Severity.BLACK, Severity.RED, Severity.YELLOW, Severity.GREEN]

    def test_from_label(self) -> None:
        """Test case-insensitive label lookup."""
        assert Severity.from_label("Red") == Severity.RED
        assert Severity.from_label(" yellow ") == Severity.YELLOW
        assert Severity.from_label("BLACK") == Severity.BLACK

    def test_from_label_unknown(self) -> None:
        """Test labels outside the closed set."""
        assert Severity.from_label("Purple") is None
        assert Severity.from_label("") is None
        assert Severity.from_label(None) is None


class TestFileFinding:
    """Test FileFinding model."""

    def test_file_finding_creation(self) -> None:
        """Test basic file finding creation."""
        finding = FileFinding(
            severity=Severity.RED,
            full_path="\\\\fs01\\share\\a.txt",
            file_name="a.txt",
            rule_name="KeepConfigRegexRed",
            permissions=Permissions(readable=True),
        )

        assert finding.severity == Severity.RED
        assert finding.file_name == "a.txt"
        assert finding.permissions.readable is True
        assert finding.permissions.writable is False

    def test_file_finding_defaults(self) -> None:
        """Test file finding default values."""
        finding = FileFinding(severity=Severity.GREEN, full_path="C:\\a.txt")

        assert finding.size == "0"
        assert finding.matched_strings == []
        assert finding.user_context is None
        assert finding.permissions is None

    def test_identity(self) -> None:
        """Test the (path, severity, rule) identity key."""
        finding = FileFinding(severity=Severity.RED, full_path="C:\\a.txt", rule_name="R1")

        assert finding.identity == ("C:\\a.txt", Severity.RED, "R1")

    def test_frozen(self) -> None:
        """Test scanner records are immutable."""
        finding = FileFinding(severity=Severity.RED, full_path="C:\\a.txt")

        with pytest.raises(ValidationError):
            finding.rule_name = "other"

    def test_severity_validation(self) -> None:
        """Test severity must be a known label."""
        with pytest.raises(ValueError):
            FileFinding(severity="Purple", full_path="C:\\a.txt")


class TestShareFinding:
    """Test ShareFinding model."""

    def test_share_finding_defaults(self) -> None:
        """Test share flags default to False."""
        share = ShareFinding(severity=Severity.YELLOW, share_path="\\\\fs01\\share")

        assert share.listable is False
        assert share.root_writable is False
        assert share.snaffle is False
        assert share.user_context is None


class TestScanResults:
    """Test ScanResults container."""

    def test_record_count(self) -> None:
        """Test files and shares are counted together."""
        results = ScanResults(
            results=[FileFinding(severity=Severity.RED, full_path="C:\\a.txt")],
            shares=[ShareFinding(severity=Severity.GREEN)],
        )

        assert results.record_count == 2

    def test_duplicate_stats_bounds(self) -> None:
        """Test percentage must stay within 0-100."""
        with pytest.raises(ValueError):
            DuplicateStats(duplicate_percentage=150.0)


class TestPolicyReport:
    """Test policy report tree."""

    def test_findings_flatten_in_order(self) -> None:
        """Test report findings concatenate block findings."""
        first = Finding(type="Red", severity=Severity.RED, reason="one")
        second = Finding(type="Green", severity=Severity.GREEN, reason="two")
        third = Finding(type="Yellow", severity=Severity.YELLOW, reason="three")

        report = PolicyReport(policies=[
            Policy(settings=[SettingBlock(findings=[first]), SettingBlock(findings=[second])]),
            Policy(settings=[SettingBlock(findings=[third])]),
        ])

        assert [f.reason for f in report.findings] == ["one", "two", "three"]
        assert report.setting_count == 3

    def test_findings_serialized(self) -> None:
        """Test computed findings appear in dumps."""
        report = PolicyReport(policies=[Policy(settings=[SettingBlock(findings=[Finding(type="Red")])])])
        data = report.model_dump()

        assert len(data["findings"]) == 1
        assert len(data["policies"][0]["findings"]) == 1


class TestErrorPayload:
    """Test ErrorPayload model."""

    def test_to_dict_drops_unset(self) -> None:
        """Test unset optional fields are omitted."""
        payload = ErrorPayload(message="bad input", snippet="abc")

        assert payload.to_dict() == {"message": "bad input", "snippet": "abc"}
