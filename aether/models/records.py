"""
Structured medical records produced by the response parser.

Every record is a frozen pydantic model: immutable once built, compared
field by field, and serialisable straight into the history store or an
API response. List-valued fields are tuples.
"""

from enum import Enum
from typing import Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# Enums
# =============================================================================

class Domain(str, Enum):
    """Analysis domains handled by the assistant."""
    DIAGNOSIS = "diagnosis"
    PRESCRIPTION = "prescription"
    RADIOLOGY = "radiology"


class Level(str, Enum):
    """Coarse likelihood / severity tag for conditions and tests."""
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


class _Record(BaseModel):
    model_config = ConfigDict(frozen=True)


# =============================================================================
# Diagnosis
# =============================================================================

class Confidence(_Record):
    """Confidence attached to a possible condition."""

    level: Level = Field(description="Coarse confidence level")
    percentage: Optional[int] = Field(
        default=None,
        ge=0,
        le=100,
        description="Percentage, only when stated in the model output"
    )


class Condition(_Record):
    """A possible condition suggested by the model."""

    name: str
    confidence: Confidence
    reasoning: str
    is_fallback: bool = False


class MedicalTest(_Record):
    """A recommended diagnostic test."""

    name: str
    purpose: Optional[str] = None
    urgency: Optional[Level] = None
    is_fallback: bool = False


class Treatment(_Record):
    """A treatment or self-care action."""

    action: str
    explanation: Optional[str] = None
    is_fallback: bool = False


class DiagnosisRecord(_Record):
    """Structured result of a symptom analysis."""

    conditions: Tuple[Condition, ...]
    tests: Tuple[MedicalTest, ...]
    treatments: Tuple[Treatment, ...]
    warnings: Tuple[str, ...]
    reasoning: Tuple[str, ...]
    fallback_fields: Tuple[str, ...] = ()


# =============================================================================
# Prescription
# =============================================================================

class Medicine(_Record):
    """A medicine line item read from a prescription."""

    name: str
    dosage: Optional[str] = None
    alternative: Optional[str] = None
    price: Optional[str] = None
    is_fallback: bool = False


class PrescriptionRecord(_Record):
    """Structured result of a prescription analysis."""

    medicines: Tuple[Medicine, ...]
    diagnosis: str
    doctor_advice: str
    fallback_fields: Tuple[str, ...] = ()


# =============================================================================
# Radiology
# =============================================================================

class RadiologyRecord(_Record):
    """Structured result of a radiology image analysis."""

    findings: Tuple[str, ...]
    conditions: Tuple[str, ...]
    recommended_tests: Tuple[str, ...]
    impression: str
    fallback_fields: Tuple[str, ...] = ()


DomainRecord = Union[DiagnosisRecord, PrescriptionRecord, RadiologyRecord]

RECORD_TYPES = {
    Domain.DIAGNOSIS: DiagnosisRecord,
    Domain.PRESCRIPTION: PrescriptionRecord,
    Domain.RADIOLOGY: RadiologyRecord,
}
