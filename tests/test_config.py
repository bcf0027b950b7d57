"""
Tests for configuration loading.
"""

from pathlib import Path

import pytest
import yaml

from auditlens.config import DEFAULT_CONFIG, AuditLensConfig, get_config, set_config
from auditlens.ingest.diagnostics import ErrorLocalizer
from auditlens.ingest.policy_report import PolicyReportParser


class TestAuditLensConfig:
    """Test configuration sources."""

    def test_defaults(self) -> None:
        """Test default values."""
        config = AuditLensConfig()

        assert config.log_level == "INFO"
        assert config.parser.finish_lookahead_lines == 5
        assert config.parser.multiline_keys == ["Member"]
        assert config.diagnostics.context_lines == 2
        assert set(config.to_dict()) == {"debug", "log_level", "parser", "diagnostics"}

    def test_default_template_matches_defaults(self) -> None:
        """Test the init template loads to the default config."""
        loaded = AuditLensConfig(**yaml.safe_load(DEFAULT_CONFIG))

        assert loaded == AuditLensConfig()

    def test_from_file(self, tmp_path: Path) -> None:
        """Test YAML loading with partial sections."""
        path = tmp_path / "auditlens.yaml"
        path.write_text("log_level: DEBUG\ndiagnostics:\n  context_lines: 4\n", encoding="utf-8")

        config = AuditLensConfig.from_file(str(path))

        assert config.log_level == "DEBUG"
        assert config.diagnostics.context_lines == 4
        assert config.diagnostics.snippet_chars == 300

    def test_from_empty_file(self, tmp_path: Path) -> None:
        """Test an empty file yields defaults."""
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")

        assert AuditLensConfig.from_file(str(path)) == AuditLensConfig()

    def test_missing_file(self, tmp_path: Path) -> None:
        """Test a missing config file."""
        with pytest.raises(FileNotFoundError):
            AuditLensConfig.from_file(str(tmp_path / "absent.yaml"))

    def test_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test AUDITLENS_ environment variables."""
        monkeypatch.setenv("AUDITLENS_DEBUG", "true")
        monkeypatch.setenv("AUDITLENS_LOG_LEVEL", "WARNING")
        monkeypatch.setenv("AUDITLENS_CONTEXT_LINES", "5")

        config = AuditLensConfig.from_env()

        assert config.debug is True
        assert config.log_level == "WARNING"
        assert config.diagnostics.context_lines == 5

    def test_validation(self) -> None:
        """Test out-of-range values are rejected."""
        with pytest.raises(ValueError):
            AuditLensConfig(diagnostics={"snippet_chars": 0})

    def test_save_round_trip(self, tmp_path: Path) -> None:
        """Test saved configs load back."""
        config = AuditLensConfig(log_level="DEBUG")
        path = tmp_path / "nested" / "config.yaml"

        config.save(str(path))

        assert AuditLensConfig.from_file(str(path)).log_level == "DEBUG"


class TestBuilders:
    """Test configured collaborators."""

    def test_build_parser(self) -> None:
        """Test parser settings are applied."""
        config = AuditLensConfig(parser={"multiline_keys": ["Member", "Group"]})
        parser = config.parser.build_parser()

        assert isinstance(parser, PolicyReportParser)
        assert parser.coalesce([["Group", "a"], ["Group", "b"]]) == {"Group": "a\nb"}

    def test_build_localizer(self) -> None:
        """Test localizer settings are applied."""
        localizer = AuditLensConfig(diagnostics={"snippet_chars": 5}).diagnostics.build_localizer()

        assert isinstance(localizer, ErrorLocalizer)
        assert localizer.localize("odd", "abcdefgh").snippet == "abcde..."


class TestGlobalConfig:
    """Test the process-wide instance."""

    def test_set_and_get(self) -> None:
        """Test an explicit config is returned."""
        config = AuditLensConfig(log_level="ERROR")
        set_config(config)

        assert get_config() is config

    def test_env_fallback(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test environment loading when no config file exists."""
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("HOME", str(tmp_path))
        monkeypatch.setenv("AUDITLENS_LOG_LEVEL", "DEBUG")

        assert get_config().log_level == "DEBUG"

    def test_file_discovery(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test auditlens.yaml in the working directory is found."""
        monkeypatch.chdir(tmp_path)
        (tmp_path / "auditlens.yaml").write_text("log_level: ERROR\n", encoding="utf-8")

        assert get_config().log_level == "ERROR"
