"""
API routes for Aether.

Defines all REST API endpoints for the healthcare assistant.
"""

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile
from fastapi.responses import HTMLResponse

from aether.api.middleware import get_user_id, limiter
from aether.config import settings
from aether.core.llm_engine import get_llm_engine
from aether.models.records import Domain
from aether.models.schemas import (
    AssistantRequest,
    AssistantResponse,
    DiagnosisRequest,
    DiagnosisResponse,
    ErrorResponse,
    HealthResponse,
    HistoryResponse,
    ParseRequest,
    ParseResponse,
    PrescriptionResponse,
    RadiologyResponse,
)
from aether.services.analysis_service import AnalysisService, get_analysis_service
from aether.services.response_parser import response_parser
from aether.utils.logger import get_logger

logger = get_logger("routes")

router = APIRouter()

RATE_LIMIT = f"{settings.rate_limit_per_minute}/minute"

LLM_ERROR_RESPONSES = {
    422: {"model": ErrorResponse, "description": "Content blocked by safety filters"},
    429: {"model": ErrorResponse, "description": "Rate limit exceeded"},
    502: {"model": ErrorResponse, "description": "Language model unavailable or empty"},
}

UPLOAD_ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Invalid file"},
    **LLM_ERROR_RESPONSES,
}


# =============================================================================
# Health Check
# =============================================================================

@router.get(
    "/health",
    response_model=HealthResponse,
    tags=["System"],
    summary="Health check endpoint"
)
async def health_check():
    """Check if the service is healthy and running."""
    return HealthResponse(
        status="healthy",
        version=settings.app_version,
        llm_configured=get_llm_engine().get_status()["configured"]
    )


# =============================================================================
# Parsing
# =============================================================================

@router.post(
    "/parse",
    response_model=ParseResponse,
    tags=["Parsing"],
    summary="Parse a raw language model response",
    responses={400: {"model": ErrorResponse, "description": "Malformed input"}}
)
async def parse_response(body: ParseRequest):
    """
    Turn raw model text into a structured record without calling the model.

    Every list in the record is non-empty. Fields that had to be
    backfilled are listed in `fallback_fields`.
    """
    record = response_parser.parse(body.domain, body.text)
    return ParseResponse(domain=body.domain, record=record)


# =============================================================================
# Analysis
# =============================================================================

@router.post(
    "/diagnosis",
    response_model=DiagnosisResponse,
    tags=["Analysis"],
    summary="Analyze symptoms",
    responses=LLM_ERROR_RESPONSES
)
@limiter.limit(RATE_LIMIT)
async def diagnosis(
    request: Request,
    body: DiagnosisRequest,
    service: AnalysisService = Depends(get_analysis_service)
):
    """
    Analyze symptoms considering age, history, allergies and medications.

    Returns possible conditions, recommended tests, treatments, warning
    signs and the medical reasoning behind them.
    """
    return await service.run_diagnosis(body, get_user_id(request))


@router.post(
    "/prescription",
    response_model=PrescriptionResponse,
    tags=["Analysis"],
    summary="Analyze a prescription scan",
    responses=UPLOAD_ERROR_RESPONSES
)
@limiter.limit(RATE_LIMIT)
async def prescription(
    request: Request,
    file: UploadFile = File(..., description="Prescription image or PDF"),
    service: AnalysisService = Depends(get_analysis_service)
):
    """
    Extract medicines, generic alternatives, prices, diagnosis and advice
    from a prescription image or PDF.
    """
    content = await file.read()
    return await service.analyze_prescription(content, file.filename, get_user_id(request))


@router.post(
    "/radiology",
    response_model=RadiologyResponse,
    tags=["Analysis"],
    summary="Analyze an X-ray or ultrasound image",
    responses=UPLOAD_ERROR_RESPONSES
)
@limiter.limit(RATE_LIMIT)
async def radiology(
    request: Request,
    file: UploadFile = File(..., description="X-ray or ultrasound image"),
    description: Optional[str] = Form(default=None, max_length=2000),
    service: AnalysisService = Depends(get_analysis_service)
):
    """
    Radiology-style reading of an image.

    **Important**: This is NOT a diagnostic tool. Always consult a radiologist.
    """
    content = await file.read()
    return await service.analyze_radiology(
        content,
        file.filename,
        get_user_id(request),
        description=description or None
    )


@router.post(
    "/assistant",
    response_model=AssistantResponse,
    tags=["Assistant"],
    summary="Ask the health assistant",
    responses=LLM_ERROR_RESPONSES
)
@limiter.limit(RATE_LIMIT)
async def assistant(
    request: Request,
    body: AssistantRequest,
    service: AnalysisService = Depends(get_analysis_service)
):
    """Free-text answer to a health or wellness question."""
    answer = await service.ask_assistant(body.question)
    return AssistantResponse(answer=answer)


# =============================================================================
# History & Reports
# =============================================================================

@router.get(
    "/history/{domain}",
    response_model=HistoryResponse,
    tags=["History"],
    summary="List saved sessions"
)
async def history(
    domain: Domain,
    request: Request,
    service: AnalysisService = Depends(get_analysis_service)
):
    """List the calling user's saved sessions, newest first."""
    return service.list_history(domain, get_user_id(request))


@router.get(
    "/history/{domain}/{doc_id}/report",
    response_class=HTMLResponse,
    tags=["History"],
    summary="Printable report for a saved session",
    responses={404: {"model": ErrorResponse, "description": "Session not found"}}
)
async def history_report(
    domain: Domain,
    doc_id: str,
    request: Request,
    service: AnalysisService = Depends(get_analysis_service)
):
    """Render a saved session as a printable HTML page."""
    html = service.render_report(domain, get_user_id(request), doc_id)
    if html is None:
        raise HTTPException(status_code=404, detail=f"Session not found: {doc_id}")
    return HTMLResponse(content=html)
