"""
FastAPI wrapper for SEO Content Studio - Vercel Serverless Function.

This module exposes content drafting, SEO analysis and revision history
as a REST API. Every content route is scoped to the caller identified
by the X-User-Id header.
"""

import logging
from functools import lru_cache
from typing import Literal, Optional

from fastapi import Depends, FastAPI, Header, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from seo_content_studio import __version__
from seo_content_studio.config import StudioConfig
from seo_content_studio.errors import (
    InvalidComparison,
    NotFound,
    ProviderError,
    ProviderUnavailable,
    StudioError,
    ValidationError,
)
from seo_content_studio.models import ContentStatus
from seo_content_studio.service import ContentService

logger = logging.getLogger(__name__)

app = FastAPI(
    title="SEO Content Studio API",
    description="Draft content, score it for SEO and track every revision",
    version=__version__,
)

# Enable CORS for all origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============================================================================
# Dependencies
# ============================================================================

@lru_cache(maxsize=1)
def get_service() -> ContentService:
    """Build the service once per process from environment configuration."""
    return ContentService.from_config(StudioConfig.from_env())


def get_owner_id(x_user_id: str = Header(..., min_length=1)) -> str:
    """Authenticated caller identity, supplied by the upstream auth layer."""
    return x_user_id


# ============================================================================
# Error handling
# ============================================================================

ERROR_STATUS_CODES = {
    NotFound: 404,
    ValidationError: 400,
    InvalidComparison: 400,
    ProviderUnavailable: 503,
    ProviderError: 502,
}


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "message": message})


@app.exception_handler(StudioError)
async def studio_error_handler(request: Request, exc: StudioError):
    status_code = 500
    for error_type, code in ERROR_STATUS_CODES.items():
        if isinstance(exc, error_type):
            status_code = code
            break
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
    return _error_response(status_code, str(exc))


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        messages.append(f"{location}: {error.get('msg')}" if location else error.get("msg", ""))
    return _error_response(400, "; ".join(messages) or "Invalid request")


def ok(data=None, **extra) -> dict:
    """Success envelope."""
    body = {"success": True}
    if data is not None:
        body["data"] = data
    body.update(extra)
    return body


# ============================================================================
# Request models
# ============================================================================

class ContentCreateRequest(BaseModel):
    """Request model for creating a content draft."""
    title: str = Field(..., description="Content title (max 200 characters)")
    content: str = Field(..., description="Plain-text body")
    html_content: str = Field("", description="Rendered HTML body")
    meta_description: str = Field("", description="Meta description (max 160 characters)")
    target_keywords: list[str] = Field(default_factory=list, description="Target keyword phrases")


class ContentUpdateRequest(BaseModel):
    """Partial update; omitted fields keep their current value."""
    title: Optional[str] = None
    content: Optional[str] = None
    html_content: Optional[str] = None
    meta_description: Optional[str] = None
    target_keywords: Optional[list[str]] = None
    status: Optional[ContentStatus] = None
    create_revision: bool = Field(False, description="Record the updated state as a new revision")
    change_description: Optional[str] = None


class RevisionCreateRequest(BaseModel):
    changes: Optional[str] = Field(None, description="Description of the change")


class ApplySuggestionRequest(BaseModel):
    """Request model for applying one improvement from the latest analysis."""
    content_id: str
    suggestion_index: int = Field(..., ge=0)
    apply_type: Literal["auto", "manual"] = "manual"


class OutlineRequest(BaseModel):
    topic: str = ""
    keywords: list[str] = Field(default_factory=list)


class BasicMetricsRequest(BaseModel):
    """Ad-hoc text to measure without storing it."""
    title: str = ""
    content: str = ""
    keywords: list[str] = Field(default_factory=list)
    meta_description: str = ""


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    version: str


# ============================================================================
# Health
# ============================================================================

@app.get("/api/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint."""
    return HealthResponse(status="healthy", version=__version__)


# ============================================================================
# Content
# ============================================================================

@app.get("/api/content")
def list_content(
    status: Optional[ContentStatus] = None,
    sort: Literal["created", "updated", "score", "title"] = "created",
    limit: Optional[int] = Query(None, ge=1, le=100),
    page: int = Query(1, ge=1),
    owner_id: str = Depends(get_owner_id),
    service: ContentService = Depends(get_service),
):
    """List the caller's content with optional status filter, sorting and pagination."""
    result = service.list_contents(owner_id, status=status, sort=sort, limit=limit, page=page)
    return {"success": True, **result.to_dict()}


@app.get("/api/content/stats")
def content_stats(
    owner_id: str = Depends(get_owner_id),
    service: ContentService = Depends(get_service),
):
    return ok(service.content_stats(owner_id).to_dict())


@app.post("/api/content", status_code=201)
def create_content(
    request: ContentCreateRequest,
    owner_id: str = Depends(get_owner_id),
    service: ContentService = Depends(get_service),
):
    content = service.create_content(
        owner_id,
        title=request.title,
        body=request.content,
        body_html=request.html_content,
        meta_description=request.meta_description,
        target_keywords=request.target_keywords,
    )
    return ok(content.to_dict())


@app.get("/api/content/{content_id}")
def get_content(
    content_id: str,
    owner_id: str = Depends(get_owner_id),
    service: ContentService = Depends(get_service),
):
    return ok(service.get_content(content_id, owner_id).to_dict())


@app.put("/api/content/{content_id}")
def update_content(
    content_id: str,
    request: ContentUpdateRequest,
    owner_id: str = Depends(get_owner_id),
    service: ContentService = Depends(get_service),
):
    """Apply a partial update, optionally recording a revision and changing status."""
    content = service.update_content(
        content_id,
        owner_id,
        title=request.title,
        body=request.content,
        body_html=request.html_content,
        meta_description=request.meta_description,
        target_keywords=request.target_keywords,
        status=request.status,
        create_revision=request.create_revision,
        change_description=request.change_description,
    )
    return ok(content.to_dict())


@app.delete("/api/content/{content_id}")
def delete_content(
    content_id: str,
    owner_id: str = Depends(get_owner_id),
    service: ContentService = Depends(get_service),
):
    service.delete_content(content_id, owner_id)
    return ok(message="Content deleted successfully")


# ============================================================================
# Revisions
# ============================================================================

@app.get("/api/revisions/single/{revision_id}")
def get_revision(
    revision_id: str,
    owner_id: str = Depends(get_owner_id),
    service: ContentService = Depends(get_service),
):
    return ok(service.get_revision(revision_id, owner_id).to_dict())


@app.get("/api/revisions/compare/{first_id}/{second_id}")
def compare_revisions(
    first_id: str,
    second_id: str,
    owner_id: str = Depends(get_owner_id),
    service: ContentService = Depends(get_service),
):
    """Compare two revisions of the same content; differences are second minus first."""
    return ok(service.compare_revisions(first_id, second_id, owner_id).to_dict())


@app.post("/api/revisions/restore/{revision_id}")
def restore_revision(
    revision_id: str,
    owner_id: str = Depends(get_owner_id),
    service: ContentService = Depends(get_service),
):
    content = service.restore_revision(revision_id, owner_id)
    return ok(content.to_dict(), message="Content restored successfully")


@app.get("/api/revisions/{content_id}")
def list_revisions(
    content_id: str,
    owner_id: str = Depends(get_owner_id),
    service: ContentService = Depends(get_service),
):
    revisions = service.list_revisions(content_id, owner_id)
    return ok([revision.to_dict() for revision in revisions], count=len(revisions))


@app.post("/api/revisions/{content_id}", status_code=201)
def create_revision(
    content_id: str,
    request: Optional[RevisionCreateRequest] = None,
    owner_id: str = Depends(get_owner_id),
    service: ContentService = Depends(get_service),
):
    changes = request.changes if request else None
    return ok(service.create_revision(content_id, owner_id, changes=changes).to_dict())


# ============================================================================
# SEO analysis
# ============================================================================

@app.post("/api/seo/analyze/{content_id}")
def analyze_content(
    content_id: str,
    owner_id: str = Depends(get_owner_id),
    service: ContentService = Depends(get_service),
):
    """Run an SEO analysis and store it against the content's latest revision."""
    return ok(service.analyze_content(content_id, owner_id).to_dict())


@app.get("/api/seo/analysis/{content_id}")
def get_analysis(
    content_id: str,
    owner_id: str = Depends(get_owner_id),
    service: ContentService = Depends(get_service),
):
    return ok(service.get_analysis(content_id, owner_id).to_dict())


@app.get("/api/seo/history/{content_id}")
def analysis_history(
    content_id: str,
    owner_id: str = Depends(get_owner_id),
    service: ContentService = Depends(get_service),
):
    analyses = service.analysis_history(content_id, owner_id)
    return ok([
        {
            "id": analysis.id,
            "overall_score": analysis.overall_score,
            "scores": analysis.scores.to_dict(),
            "created_at": analysis.created_at.isoformat(),
        }
        for analysis in analyses
    ])


@app.get("/api/seo/keywords/{content_id}")
def keyword_suggestions(
    content_id: str,
    owner_id: str = Depends(get_owner_id),
    service: ContentService = Depends(get_service),
):
    keywords = service.keyword_suggestions(content_id, owner_id)
    return ok([keyword.to_dict() for keyword in keywords])


@app.post("/api/seo/apply-suggestion")
def apply_suggestion(
    request: ApplySuggestionRequest,
    owner_id: str = Depends(get_owner_id),
    service: ContentService = Depends(get_service),
):
    result = service.apply_suggestion(
        request.content_id,
        owner_id,
        request.suggestion_index,
        apply_type=request.apply_type,
    )
    return ok(result.to_dict(), message="Suggestion applied successfully")


@app.post("/api/seo/outline")
def generate_outline(
    request: OutlineRequest,
    owner_id: str = Depends(get_owner_id),
    service: ContentService = Depends(get_service),
):
    return ok(service.generate_outline(request.topic, request.keywords))


@app.post("/api/seo/basic-metrics")
def basic_metrics(request: BasicMetricsRequest):
    """Metrics and checklist for ad-hoc text; nothing is stored."""
    metrics, checklist = ContentService.basic_metrics(
        request.title,
        request.content,
        request.keywords,
        request.meta_description,
    )
    return ok({
        "basic_metrics": metrics.to_dict(),
        "checklist": [item.to_dict() for item in checklist],
    })
