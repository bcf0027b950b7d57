"""
Shared fixtures for the test suite.
"""

from typing import Any

import pytest

from auditlens.config import set_config

from tests.samples import POLICY_REPORT, file_entry, share_entry


@pytest.fixture
def scanner_document() -> dict[str, Any]:
    """JSON event log with two file hits on one path and one share."""
    return {
        "entries": [
            {"time": "2024-01-01T09:59:00Z", "level": "Info", "message": "Scan started"},
            file_entry("Yellow", rule="KeepPassOrKeyInCode"),
            file_entry("Red"),
            share_entry(),
        ]
    }


@pytest.fixture
def policy_report() -> str:
    """Plaintext policy audit report with one section and two setting blocks."""
    return POLICY_REPORT


@pytest.fixture(autouse=True)
def reset_config() -> Any:
    """Keep the process-wide configuration isolated per test."""
    set_config(None)
    yield
    set_config(None)
