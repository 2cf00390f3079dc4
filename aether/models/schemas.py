"""
Pydantic schemas for the Aether API.

Defines request/response models for all API endpoints. The structured
records themselves live in `aether.models.records`.
"""

from datetime import datetime, timezone
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from aether.models.records import (
    DiagnosisRecord,
    Domain,
    DomainRecord,
    PrescriptionRecord,
    RadiologyRecord,
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# Requests
# =============================================================================

class DiagnosisRequest(BaseModel):
    """Patient form for a symptom analysis."""

    category: Literal["self", "other"] = Field(
        default="self",
        description="Whether the user is analysing their own symptoms"
    )
    symptoms: str = Field(
        min_length=10,
        max_length=5000,
        description="Description of current symptoms"
    )
    age: int = Field(ge=1, le=120, description="Patient age in years")
    previous_conditions: Optional[str] = Field(default=None, max_length=2000)
    allergies: Optional[str] = Field(default=None, max_length=2000)
    medications: Optional[str] = Field(default=None, max_length=2000)


class ParseRequest(BaseModel):
    """Raw model text to parse without calling the language model."""

    domain: Domain
    text: str = Field(max_length=100_000)


class AssistantRequest(BaseModel):
    """Question for the Aether chat assistant."""

    question: str = Field(min_length=1, max_length=4000)


# =============================================================================
# Responses
# =============================================================================

class AnalysisEnvelope(BaseModel):
    """Fields shared by every analysis response."""

    doc_id: Optional[str] = Field(
        default=None,
        description="History document id, absent when the session was not saved"
    )
    summary: str = Field(description="One-line summary of the session")
    raw_response: str = Field(description="Unparsed language model output")
    timestamp: datetime = Field(default_factory=_utcnow)


class DiagnosisResponse(AnalysisEnvelope):
    """Result of a symptom analysis."""

    analysis: DiagnosisRecord


class PrescriptionResponse(AnalysisEnvelope):
    """Result of a prescription analysis."""

    analysis: PrescriptionRecord


class RadiologyResponse(AnalysisEnvelope):
    """Result of a radiology image analysis."""

    analysis: RadiologyRecord


class ParseResponse(BaseModel):
    """Parsed record for a raw response."""

    domain: Domain
    record: DomainRecord


class AssistantResponse(BaseModel):
    """Free-text answer from the chat assistant."""

    answer: str
    timestamp: datetime = Field(default_factory=_utcnow)


class HistoryItem(BaseModel):
    """Summary of a saved session."""

    id: str
    summary: str = ""
    created_at: Optional[datetime] = None

    model_config = ConfigDict(extra="ignore")


class HistoryResponse(BaseModel):
    """Saved sessions of one user in one domain."""

    domain: Domain
    user_id: str
    items: List[HistoryItem]


# =============================================================================
# Health & Status
# =============================================================================

class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(default="healthy")
    version: str = Field(description="Application version")
    llm_configured: bool = Field(default=False)
    timestamp: datetime = Field(default_factory=_utcnow)


# =============================================================================
# Error Responses
# =============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""

    error: str = Field(description="Error type")
    message: str = Field(description="Human-readable error message")
    error_code: str = Field(description="Machine-readable error code")
    timestamp: datetime = Field(default_factory=_utcnow)
