"""
Contact Reconciler — FastAPI Server
====================================

RESTful API for cleaning and merging two vCard exports.

Endpoints:
    POST /reconcile          Reconcile raw export text sent as JSON
    POST /reconcile/files    Upload one or both export files
    GET  /health             Health check / readiness probe

Run:
    uvicorn api:app --reload              # Dev (http://localhost:8000)
    uvicorn api:app --host 0.0.0.0        # Production

Docs:
    http://localhost:8000/docs             # Swagger UI (auto-generated)
    http://localhost:8000/redoc            # ReDoc (alternative)
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException, UploadFile
from pydantic import BaseModel, Field

from contact_reconciler import __version__
from contact_reconciler.exceptions import NoContactsFoundError
from contact_reconciler.models import ProcessingStats, ReconciliationResult
from contact_reconciler.pipeline import ContactReconciliationPipeline

load_dotenv()

MAX_UPLOAD_BYTES = 5 * 1_048_576


# ─── Application Lifespan ───────────────────────────────────────────

_pipeline: ContactReconciliationPipeline | None = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create the pipeline on startup."""
    global _pipeline  # noqa: PLW0603
    _pipeline = ContactReconciliationPipeline()
    yield
    _pipeline = None


# ─── FastAPI App ─────────────────────────────────────────────────────

app = FastAPI(
    title="Contact Reconciler API",
    description=(
        "Combines Google and Apple vCard exports, filters junk entries, "
        "merges duplicates on strong signals and returns one cleaned export "
        "per destination."
    ),
    version=__version__,
    lifespan=lifespan,
)


# ─── Request / Response Schemas ─────────────────────────────────────


class ReconcileRequest(BaseModel):
    """Request body for the /reconcile endpoint."""

    google_vcf: str = Field(default="", description="Raw Google Contacts export.")
    apple_vcf: str = Field(
        default="",
        description="Raw Apple Contacts export.",
        json_schema_extra={
            "example": (
                "BEGIN:VCARD\r\n"
                "VERSION:3.0\r\n"
                "FN:Jane Doe\r\n"
                "EMAIL:jane@example.org\r\n"
                "END:VCARD\r\n"
            )
        },
    )


class DiscardedOut(BaseModel):
    """A removed contact, summarized for review."""

    uid: str
    full_name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    code: str
    reason: str


class ReconcileResponse(BaseModel):
    """Cleaned exports plus run statistics."""

    google_vcf: str
    apple_vcf: str
    stats: ProcessingStats
    discarded: list[DiscardedOut]


class HealthResponse(BaseModel):
    status: str
    version: str


# ─── Helpers ─────────────────────────────────────────────────────────


def _get_pipeline() -> ContactReconciliationPipeline:
    if _pipeline is None:
        raise HTTPException(status_code=503, detail="Pipeline not initialised")
    return _pipeline


def _build_response(result: ReconciliationResult) -> ReconcileResponse:
    """Convert the internal ReconciliationResult to the API response schema."""
    discarded = [
        DiscardedOut(
            uid=d.contact.uid,
            full_name=d.contact.full_name,
            email=d.contact.emails[0] if d.contact.emails else None,
            phone=d.contact.phones[0] if d.contact.phones else None,
            code=d.code,
            reason=d.reason,
        )
        for d in result.discarded
    ]
    return ReconcileResponse(
        google_vcf=result.google_vcf,
        apple_vcf=result.apple_vcf,
        stats=result.stats,
        discarded=discarded,
    )


def _run(pipeline: ContactReconciliationPipeline, google: str, apple: str) -> ReconcileResponse:
    try:
        result = pipeline.run(google, apple)
    except NoContactsFoundError as exc:
        raise HTTPException(
            status_code=422, detail={"code": exc.code, "message": str(exc)}
        ) from exc
    return _build_response(result)


async def _read_upload(file: UploadFile | None) -> str:
    if file is None:
        return ""
    if file.size and file.size > MAX_UPLOAD_BYTES:
        raise HTTPException(status_code=413, detail=f"'{file.filename}' too large (max 5 MB)")
    content = await file.read()
    try:
        return content.decode("utf-8")
    except UnicodeDecodeError:
        raise HTTPException(status_code=400, detail=f"'{file.filename}' must be UTF-8 encoded text")


# ─── Endpoints ───────────────────────────────────────────────────────


@app.post(
    "/reconcile",
    summary="Reconcile two exports sent as text",
    tags=["Reconciliation"],
    responses={
        422: {"description": "Neither export contains a contact"},
        503: {"description": "Pipeline not yet initialised"},
    },
)
def reconcile(request: ReconcileRequest) -> ReconcileResponse:
    """Run the full pipeline on raw vCard text.

    Returns:
    - **google_vcf** / **apple_vcf**: cleaned exports, CRLF line endings
    - **stats**: read / kept / discarded / merged counts and reason tally
    - **discarded**: every removed contact with its reason
    """
    pipeline = _get_pipeline()
    return _run(pipeline, request.google_vcf, request.apple_vcf)


@app.post(
    "/reconcile/files",
    summary="Reconcile uploaded export files",
    tags=["Reconciliation"],
    responses={
        400: {"description": "File is not valid UTF-8 text"},
        413: {"description": "File too large (max 5 MB)"},
        422: {"description": "Neither export contains a contact"},
        503: {"description": "Pipeline not yet initialised"},
    },
)
async def reconcile_files(
    google: UploadFile | None = None, apple: UploadFile | None = None
) -> ReconcileResponse:
    """Upload a Google and/or Apple `.vcf` export (either may be omitted)."""
    google_text = await _read_upload(google)
    apple_text = await _read_upload(apple)

    pipeline = _get_pipeline()
    return await asyncio.to_thread(_run, pipeline, google_text, apple_text)


@app.get(
    "/health",
    summary="Health check",
    tags=["System"],
    responses={503: {"description": "Pipeline not yet initialised"}},
)
def health_check() -> HealthResponse:
    """Returns service status and version."""
    _get_pipeline()
    return HealthResponse(status="healthy", version=__version__)
