"""
AuditLens configuration management.

Handles environment variables, config files, and runtime settings.
"""

import os
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, Field

from auditlens.ingest.diagnostics import ErrorLocalizer
from auditlens.ingest.policy_report import DEFAULT_CONTINUATION_PATTERN, PolicyReportParser


class ParserConfig(BaseModel):
    """Policy report parser settings."""
    finish_lookahead_lines: int = Field(default=5, ge=1)
    continuation_pattern: str = Field(default=DEFAULT_CONTINUATION_PATTERN)
    multiline_keys: list[str] = Field(default_factory=lambda: ["Member"])

    def build_parser(self) -> PolicyReportParser:
        """Create a parser with these settings."""
        return PolicyReportParser(
            finish_lookahead_lines=self.finish_lookahead_lines,
            continuation_pattern=self.continuation_pattern,
            multiline_keys=tuple(self.multiline_keys),
        )


class DiagnosticsConfig(BaseModel):
    """Error snippet settings."""
    context_lines: int = Field(default=2, ge=0)
    snippet_chars: int = Field(default=300, ge=1)
    position_window: int = Field(default=150, ge=1)

    def build_localizer(self) -> ErrorLocalizer:
        """Create a localizer with these settings."""
        return ErrorLocalizer(
            context_lines=self.context_lines,
            snippet_chars=self.snippet_chars,
            position_window=self.position_window,
        )


class AuditLensConfig(BaseModel):
    """
    Main AuditLens configuration.

    Loads from environment variables and config files.
    """
    debug: bool = Field(default=False)
    log_level: str = Field(default="INFO")

    parser: ParserConfig = Field(default_factory=ParserConfig)
    diagnostics: DiagnosticsConfig = Field(default_factory=DiagnosticsConfig)

    @classmethod
    def from_file(cls, path: str) -> "AuditLensConfig":
        """
        Load configuration from YAML file.

        Args:
            path: Path to config file

        Returns:
            AuditLensConfig instance
        """
        config_path: Path = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with open(config_path, "r") as f:
            data: Optional[dict[str, Any]] = yaml.safe_load(f)

        return cls(**(data or {}))

    @classmethod
    def from_env(cls) -> "AuditLensConfig":
        """
        Load configuration from environment variables.

        Environment variables prefixed with AUDITLENS_ are parsed.
        """
        config: AuditLensConfig = cls()

        # Debug mode
        if os.getenv("AUDITLENS_DEBUG", "").lower() in ("true", "1", "yes"):
            config.debug = True

        # Log level
        if level := os.getenv("AUDITLENS_LOG_LEVEL"):
            config.log_level = level

        # Snippet context
        if context := os.getenv("AUDITLENS_CONTEXT_LINES"):
            config.diagnostics.context_lines = int(context)

        return config

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to dictionary."""
        return self.model_dump()

    def save(self, path: str) -> None:
        """
        Save configuration to YAML file.

        Args:
            path: Output file path
        """
        config_path: Path = Path(path)
        config_path.parent.mkdir(parents=True, exist_ok=True)

        with open(config_path, "w") as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False)


# Global config instance
_config: Optional[AuditLensConfig] = None


def get_config() -> AuditLensConfig:
    """
    Get or create global configuration instance.

    Returns:
        AuditLensConfig instance
    """
    global _config

    if _config is None:
        # Try to load from file first
        config_paths: list[str] = [
            "auditlens.yaml",
            "auditlens.yml",
            "config/auditlens.yaml",
            os.path.expanduser("~/.auditlens/config.yaml"),
        ]

        for path in config_paths:
            if Path(path).exists():
                _config = AuditLensConfig.from_file(path)
                break
        else:
            # Fall back to environment variables
            _config = AuditLensConfig.from_env()

    return _config


def set_config(config: Optional[AuditLensConfig]) -> None:
    """
    Set global configuration instance.

    Args:
        config: Configuration to set, or None to reload on next access
    """
    global _config
    _config = config


# Default configuration template
DEFAULT_CONFIG: str = r"""
# AuditLens Configuration

debug: false
log_level: INFO

parser:
  finish_lookahead_lines: 5
  continuation_pattern: '[\w()\\/.]'
  multiline_keys:
    - Member

diagnostics:
  context_lines: 2
  snippet_chars: 300
  position_window: 150
"""
