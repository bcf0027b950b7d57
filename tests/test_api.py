"""
Tests for the HTTP interface.
"""

import json
from typing import Any

from fastapi.testclient import TestClient

from auditlens import __version__
from auditlens.api import app

from tests.samples import FILE_LINE


client = TestClient(app)


class TestServiceEndpoints:
    """Test informational endpoints."""

    def test_root(self) -> None:
        """Test the service description."""
        response = client.get("/")

        assert response.status_code == 200
        assert response.json()["version"] == __version__

    def test_health(self) -> None:
        """Test the health check."""
        assert client.get("/health").json() == {"status": "healthy"}


class TestImport:
    """Test POST /import."""

    def test_scanner_json(self, scanner_document: dict[str, Any]) -> None:
        """Test a JSON scan upload."""
        response = client.post(
            "/import",
            files={"file": ("scan.json", json.dumps(scanner_document), "application/json")},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["kind"] == "scanner"
        assert len(data["results"]) == 1
        assert data["results"][0]["severity"] == "Red"
        assert data["shares"][0]["share_name"] == "share"
        assert data["share_inventory"][0]["file_count"] == 1
        assert data["duplicate_stats"]["duplicates_removed"] == 1
        assert data["stats"]["red"] == 1

    def test_policy_report(self, policy_report: str) -> None:
        """Test a policy report upload."""
        response = client.post("/import", files={"file": ("gpo.txt", policy_report, "text/plain")})

        assert response.status_code == 200
        data = response.json()
        assert data["kind"] == "policy"
        assert "raw" not in data["report"]
        assert data["report"]["policies"][0]["header"]["guid"] == "31B2F340-016D-11D2-945F-00C04FB984F9"
        assert data["report"]["findings"][0]["severity"] == "Red"

    def test_format_parameter(self) -> None:
        """Test an explicit format overrides the extension."""
        response = client.post(
            "/import",
            params={"format": "log"},
            files={"file": ("upload.bin", FILE_LINE, "application/octet-stream")},
        )

        assert response.status_code == 200
        assert response.json()["results"][0]["rule_name"] == "KeepConfigRegexRed"

    def test_unknown_format(self) -> None:
        """Test an unsupported format value."""
        response = client.post(
            "/import",
            params={"format": "xml"},
            files={"file": ("scan.xml", "<xml/>", "application/xml")},
        )

        assert response.status_code == 400

    def test_malformed_json_diagnostic(self) -> None:
        """Test decode failures return the localized diagnostic."""
        body = '{\n  "entries": [\n    {"level": "Warn",\n     "message": oops}\n  ]\n}'

        response = client.post("/import", files={"file": ("scan.json", body, "application/json")})

        assert response.status_code == 422
        detail = response.json()["detail"]
        assert detail["message"].startswith("Invalid JSON")
        assert detail["actual_line_number"] == 4
        assert detail["snippet_start_line"] == 2
        assert detail["file_name"] == "scan.json"
        assert detail["file_type"] == "json"

    def test_empty_input(self) -> None:
        """Test zero records return 422."""
        response = client.post("/import", files={"file": ("noise.log", "nothing\n", "text/plain")})

        assert response.status_code == 422
        assert response.json()["detail"]["message"].startswith("Not a valid scanner output file")
