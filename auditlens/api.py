"""
AuditLens FastAPI interface.

API Endpoints:
- GET /: Service description
- GET /health: Health check
- POST /import: Normalize an uploaded scanner output or policy report
"""

import logging
from pathlib import Path
from typing import Any, Optional

from fastapi import FastAPI, File, HTTPException, UploadFile

from auditlens import __version__
from auditlens.config import AuditLensConfig, get_config
from auditlens.core.aggregator import build_share_inventory, calculate_stats
from auditlens.core.errors import IngestError
from auditlens.core.models import PolicyReport, ScanResults
from auditlens.ingest.normalizer import DataNormalizer
from auditlens.ingest.sniffer import InputCategory


logger = logging.getLogger(__name__)

app: FastAPI = FastAPI(
    title="AuditLens API",
    description="Share-scanner and Group Policy audit normalizer",
    version=__version__,
)


def _build_normalizer() -> DataNormalizer:
    config: AuditLensConfig = get_config()
    return DataNormalizer(
        policy_parser=config.parser.build_parser(),
        localizer=config.diagnostics.build_localizer(),
    )


def _scan_response(result: ScanResults) -> dict[str, Any]:
    return {
        "kind": "scanner",
        "results": [r.model_dump(mode="json") for r in result.results],
        "shares": [s.model_dump(mode="json") for s in result.shares],
        "share_inventory": [
            s.model_dump(mode="json") for s in build_share_inventory(result.shares, result.results)
        ],
        "duplicate_stats": result.duplicate_stats.model_dump(),
        "stats": calculate_stats(result.results).model_dump(),
    }


@app.get("/")
async def root() -> dict[str, str]:
    """API root endpoint."""
    return {
        "name": "AuditLens",
        "version": __version__,
        "description": "Share-scanner and Group Policy audit normalizer",
    }


@app.get("/health")
async def health() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy"}


@app.post("/import")
async def import_file(
    file: UploadFile = File(...),
    format: Optional[str] = None,
) -> dict[str, Any]:
    """
    Normalize an uploaded file.

    The input category comes from `format` (json, text, log) or, when
    omitted, from the file extension. Rejected inputs return 422 with the
    localized diagnostic as detail.
    """
    filename: str = file.filename or "upload.txt"

    try:
        category: InputCategory = InputCategory(format) if format else InputCategory.from_path(Path(filename))
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Unknown format: {format}")

    content: bytes = await file.read()

    try:
        result: ScanResults | PolicyReport = _build_normalizer().normalize(
            content, category, file_name=filename
        )
    except IngestError as e:
        detail: dict[str, Any] = (
            e.diagnostic.to_dict() if e.diagnostic is not None
            else {"message": e.message, "file_name": filename, "file_type": category.value}
        )
        raise HTTPException(status_code=422, detail=detail)

    logger.info("Imported %s as %s", filename, category.value)

    if isinstance(result, PolicyReport):
        return {
            "kind": "policy",
            "report": result.model_dump(mode="json", exclude={"raw"}),
        }

    return _scan_response(result)
