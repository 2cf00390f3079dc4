"""
Analysis service for Aether.

Orchestrates the pipeline for each analysis domain: prepare the input,
call the language model, parse its answer into a record and save the
session to the history store.
"""

import time
from typing import Any, Dict, Optional

from aether.config import settings
from aether.core.image_processor import ImageProcessor, image_processor
from aether.core.llm_engine import LLMEngine, get_llm_engine
from aether.core.prompts import build_patient_summary
from aether.models.records import (
    Domain,
    DomainRecord,
    PrescriptionRecord,
    RadiologyRecord,
)
from aether.models.schemas import (
    DiagnosisRequest,
    DiagnosisResponse,
    HistoryItem,
    HistoryResponse,
    PrescriptionResponse,
    RadiologyResponse,
)
from aether.services.history_store import HistoryStore, HistoryStoreError, get_history_store
from aether.services.report_generator import ReportGenerator, get_report_generator
from aether.services.response_parser import ResponseParser, response_parser
from aether.utils.file_validators import FileValidator, file_validator
from aether.utils.logger import get_logger

logger = get_logger("analysis_service")

COLLECTIONS = {
    Domain.DIAGNOSIS: "diagnoses",
    Domain.PRESCRIPTION: "prescriptions",
    Domain.RADIOLOGY: "radiology",
}


def collection_path(domain: Domain, user_id: str) -> str:
    """History collection for a user's sessions in one domain."""
    return f"{COLLECTIONS[domain]}/{user_id}/sessions"


def summarize_diagnosis(category: str, symptoms: str) -> str:
    who = "yourself" if category == "self" else "someone else"
    return f"Analysis for {who}: {symptoms[:100]}..."


def summarize_prescription(record: PrescriptionRecord) -> str:
    found = [medicine for medicine in record.medicines if not medicine.is_fallback]
    return f"Analysis of {len(found)} medicines for {record.diagnosis}"


def summarize_radiology(record: RadiologyRecord) -> str:
    return f"Radiology analysis: {record.impression}"


class AnalysisService:
    """
    Main analysis orchestrator for Aether.

    Coordinates:
    - Upload validation and image preparation
    - Language model calls
    - Response parsing
    - Session history

    Language model failures propagate as LLMCallError. History failures
    are logged and never fail an analysis.
    """

    def __init__(
        self,
        engine: Optional[LLMEngine] = None,
        store: Optional[HistoryStore] = None,
        parser: Optional[ResponseParser] = None,
        validator: Optional[FileValidator] = None,
        images: Optional[ImageProcessor] = None,
        reports: Optional[ReportGenerator] = None
    ):
        self.engine = engine or get_llm_engine()
        self.store = store or get_history_store()
        self.parser = parser or response_parser
        self.validator = validator or file_validator
        self.images = images or image_processor
        self.reports = reports or get_report_generator()

    async def run_diagnosis(
        self,
        request: DiagnosisRequest,
        user_id: str
    ) -> DiagnosisResponse:
        """
        Analyze a patient's symptoms.

        Args:
            request: Patient form
            user_id: Owner of the session

        Returns:
            DiagnosisResponse
        """
        start_time = time.time()
        patient_data = build_patient_summary(
            symptoms=request.symptoms,
            age=str(request.age),
            category=request.category,
            previous_conditions=request.previous_conditions,
            allergies=request.allergies,
            medications=request.medications
        )

        raw = await self.engine.analyze_symptoms(patient_data, "symptoms")
        record = self.parser.parse(Domain.DIAGNOSIS, raw)
        summary = summarize_diagnosis(request.category, request.symptoms)

        doc_id = self._save(
            Domain.DIAGNOSIS,
            user_id,
            record,
            summary=summary,
            raw_response=raw,
            patient=request.model_dump()
        )

        logger.info(
            "Diagnosis complete",
            user_id=user_id,
            conditions=len(record.conditions),
            fallback_fields=list(record.fallback_fields),
            processing_time_ms=int((time.time() - start_time) * 1000)
        )

        return DiagnosisResponse(
            doc_id=doc_id,
            summary=summary,
            raw_response=raw,
            analysis=record
        )

    async def analyze_prescription(
        self,
        content: bytes,
        filename: Optional[str],
        user_id: str
    ) -> PrescriptionResponse:
        """
        Read a prescription scan (image or PDF).

        Raises:
            FileValidationError: If the upload is invalid
        """
        start_time = time.time()
        file_type = self.validator.validate(content, filename)
        attachment = self.images.prepare(content, file_type)

        raw = await self.engine.analyze_prescription(attachment)
        record = self.parser.parse(Domain.PRESCRIPTION, raw)
        summary = summarize_prescription(record)

        doc_id = self._save(
            Domain.PRESCRIPTION,
            user_id,
            record,
            summary=summary,
            raw_response=raw,
            filename=filename
        )

        logger.info(
            "Prescription analysis complete",
            user_id=user_id,
            file_type=file_type,
            medicines=len(record.medicines),
            fallback_fields=list(record.fallback_fields),
            processing_time_ms=int((time.time() - start_time) * 1000)
        )

        return PrescriptionResponse(
            doc_id=doc_id,
            summary=summary,
            raw_response=raw,
            analysis=record
        )

    async def analyze_radiology(
        self,
        content: bytes,
        filename: Optional[str],
        user_id: str,
        description: Optional[str] = None
    ) -> RadiologyResponse:
        """
        Read an X-ray or ultrasound image.

        Raises:
            FileValidationError: If the upload is invalid
        """
        start_time = time.time()
        self.validator.validate(content, filename, allowed_types=("image",))
        attachment = self.images.prepare_image(content)

        raw = await self.engine.analyze_image(attachment, description)
        record = self.parser.parse(Domain.RADIOLOGY, raw)
        summary = summarize_radiology(record)

        doc_id = self._save(
            Domain.RADIOLOGY,
            user_id,
            record,
            summary=summary,
            raw_response=raw,
            filename=filename,
            description=description
        )

        logger.info(
            "Radiology analysis complete",
            user_id=user_id,
            findings=len(record.findings),
            fallback_fields=list(record.fallback_fields),
            processing_time_ms=int((time.time() - start_time) * 1000)
        )

        return RadiologyResponse(
            doc_id=doc_id,
            summary=summary,
            raw_response=raw,
            analysis=record
        )

    async def ask_assistant(self, question: str) -> str:
        """Answer a free-form health question."""
        return await self.engine.get_medical_advice(question)

    def list_history(self, domain: Domain, user_id: str) -> HistoryResponse:
        """List a user's saved sessions in one domain, newest first."""
        documents = self.store.list(collection_path(domain, user_id))
        return HistoryResponse(
            domain=domain,
            user_id=user_id,
            items=[HistoryItem.model_validate(document) for document in documents]
        )

    def render_report(self, domain: Domain, user_id: str, doc_id: str) -> Optional[str]:
        """Printable HTML report for a saved session, or None if not found."""
        document = self.store.get(collection_path(domain, user_id), doc_id)
        if document is None:
            return None
        return self.reports.generate_from_document(domain, document)

    def _save(
        self,
        domain: Domain,
        user_id: str,
        record: DomainRecord,
        **fields: Any
    ) -> Optional[str]:
        if not settings.enable_history:
            return None

        document: Dict[str, Any] = {
            "user_id": user_id,
            "domain": domain.value,
            "record": record.model_dump(mode="json"),
            **fields,
        }
        try:
            return self.store.save(collection_path(domain, user_id), document)
        except (OSError, HistoryStoreError) as e:
            logger.error(
                "Failed to save session",
                domain=domain.value,
                user_id=user_id,
                error=str(e)
            )
            return None


# Lazy-loaded singleton
_analysis_service: Optional[AnalysisService] = None


def get_analysis_service() -> AnalysisService:
    """Get or create analysis service singleton."""
    global _analysis_service
    if _analysis_service is None:
        _analysis_service = AnalysisService()
    return _analysis_service
