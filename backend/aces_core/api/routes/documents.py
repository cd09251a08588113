"""
ACES document API routes: decode an uploaded XML document, validate
Applications, and encode Applications into a document.
"""

import logging
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import Response
from pydantic import BaseModel, Field

from aces_core.api.deps import get_settings, get_store
from aces_core.config import Settings
from aces_core.data.reference_store import ReferenceDataStore
from aces_core.errors import DecodeError
from aces_core.schemas.application import Application
from aces_core.schemas.document import AAIAID_PATTERN, ExportOptions, SchemaVersion, SubmissionType
from aces_core.services.document_decoder import decode_document
from aces_core.services.document_encoder import encode_document
from aces_core.services.submission import export_applications
from aces_core.services.validator import validate_batch

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/documents", tags=["documents"])


# ── Request Models ──────────────────────────────────────────────────


class ValidateRequest(BaseModel):
    applications: list[Application]


class EncodeRequest(BaseModel):
    applications: list[Application]
    brand_aaiaid: str = Field(pattern=AAIAID_PATTERN)
    sub_brand_aaiaid: str | None = Field(default=None, pattern=AAIAID_PATTERN)
    submission_type: SubmissionType = SubmissionType.FULL
    effective_date: date | None = None
    minimum_version: SchemaVersion | None = None
    validate_first: bool = True  # encode only the applications that pass validation
    fill_qualifier_text: bool = False


# ── Routes ──────────────────────────────────────────────────────────


@router.post("/decode")
async def decode_endpoint(
    request: Request,
    validate: bool = Query(False, description="Also validate decoded applications"),
    store: ReferenceDataStore = Depends(get_store),
):
    """Decode a raw ACES XML body. Envelope problems are a 422."""
    payload = await request.body()
    if not payload.strip():
        raise HTTPException(status_code=400, detail="Empty request body")
    try:
        result = decode_document(payload)
    except DecodeError as e:
        raise HTTPException(status_code=422, detail=e.message)

    body = result.as_dict()
    if validate:
        body["validation"] = validate_batch(store, result.applications).as_dict()
    return body


@router.post("/validate")
async def validate_endpoint(req: ValidateRequest, store: ReferenceDataStore = Depends(get_store)):
    """Validate Applications and report the invalid ones with reasons."""
    return validate_batch(store, req.applications).as_dict()


@router.post("/encode")
async def encode_endpoint(
    req: EncodeRequest,
    download: bool = Query(False, description="Return the XML file instead of JSON"),
    store: ReferenceDataStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
):
    """Encode Applications into an ACES document."""
    options = ExportOptions.from_settings(
        settings,
        brand_aaiaid=req.brand_aaiaid,
        sub_brand_aaiaid=req.sub_brand_aaiaid,
        submission_type=req.submission_type,
        effective_date=req.effective_date,
        minimum_version=req.minimum_version,
        fill_qualifier_text=req.fill_qualifier_text,
    )

    report = None
    if req.validate_first:
        exported = export_applications(store, req.applications, options)
        document, report = exported.document, exported.report
        if document is None:
            raise HTTPException(
                status_code=422,
                detail={"message": "No valid applications to export", "validation": report.as_dict()},
            )
    else:
        document = encode_document(req.applications, options, store)

    if download:
        headers = {
            "Content-Disposition": f'attachment; filename="aces_{req.brand_aaiaid}.xml"',
            "X-ACES-Version": document.version.value,
            "X-ACES-Record-Count": str(document.record_count),
        }
        # Excluded applications are reported by their position in the request
        if report is not None and report.invalid:
            headers["X-ACES-Invalid-Count"] = str(len(report.invalid))
            headers["X-ACES-Invalid-Indexes"] = ",".join(str(item.index) for item in report.invalid)
        return Response(content=document.xml, media_type="application/xml", headers=headers)
    return {
        "version": document.version.value,
        "record_count": document.record_count,
        "xml": document.xml,
        "validation": report.as_dict() if report else None,
    }
