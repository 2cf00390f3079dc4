"""
Aether - Language Model Engine

Thin async wrapper around the Gemini API. Every failure is reported as an
LLMCallError with a kind the API layer can map to a status code; nothing
is retried here.
"""

from enum import Enum
from typing import Any, Dict, Optional

from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from aether.config import settings
from aether.core import prompts
from aether.core.image_processor import ImageAttachment
from aether.utils.logger import get_logger

logger = get_logger("llm_engine")

_BLOCKED_FINISH_REASONS = {"SAFETY", "PROHIBITED_CONTENT", "BLOCKLIST", "SPII"}


class LLMErrorKind(str, Enum):
    """Why a language model call failed."""
    RATE_LIMITED = "rate_limited"
    CONTENT_BLOCKED = "content_blocked"
    EMPTY_CANDIDATE = "empty_candidate"
    TRANSPORT = "transport"


class LLMCallError(Exception):
    """Raised when the language model call fails or yields no usable text."""

    error_code = "LLM_CALL_FAILED"

    def __init__(self, kind: LLMErrorKind, message: str):
        self.kind = kind
        self.message = message
        super().__init__(message)


class LLMEngine:
    """
    Gemini integration for symptom, prescription and radiology analysis.

    The engine returns raw response text. Turning that text into records
    is the response parser's job.
    """

    def __init__(self, client: Optional[Any] = None):
        """
        Initialize the engine.

        Args:
            client: Pre-built client exposing `aio.models.generate_content`.
                Built from settings when omitted.
        """
        self.text_model = settings.gemini_text_model
        self.vision_model = settings.gemini_vision_model
        self.client = client if client is not None else self._create_client()

    def _create_client(self) -> Optional[genai.Client]:
        if not settings.gemini_api_key:
            logger.warning("Gemini API key not configured")
            return None

        client = genai.Client(
            api_key=settings.gemini_api_key,
            http_options=types.HttpOptions(timeout=settings.llm_timeout_seconds * 1000)
        )
        logger.info("Gemini client initialized", model=self.text_model)
        return client

    async def generate(
        self,
        prompt: str,
        attachment: Optional[ImageAttachment] = None,
        model: Optional[str] = None
    ) -> str:
        """
        Send a prompt, optionally with an image, and return the response text.

        Args:
            prompt: Prompt text
            attachment: Image sent alongside the prompt
            model: Override for the model name

        Returns:
            Non-empty response text

        Raises:
            LLMCallError: On rate limiting, blocked content, an empty
                candidate or any transport failure
        """
        if self.client is None:
            raise LLMCallError(LLMErrorKind.TRANSPORT, "Language model is not configured")

        model_name = model or (self.vision_model if attachment else self.text_model)
        contents: list = [prompt]
        if attachment is not None:
            contents.append(
                types.Part.from_bytes(data=attachment.data, mime_type=attachment.mime_type)
            )

        try:
            response = await self.client.aio.models.generate_content(
                model=model_name,
                contents=contents
            )
        except genai_errors.APIError as e:
            if e.code == 429:
                logger.warning("Gemini rate limit hit", model=model_name)
                raise LLMCallError(
                    LLMErrorKind.RATE_LIMITED,
                    "Rate limit exceeded. Please try again in a few moments."
                ) from e
            logger.error("Gemini API error", model=model_name, code=e.code, error=str(e))
            raise LLMCallError(LLMErrorKind.TRANSPORT, f"Language model error: {e}") from e
        except Exception as e:
            logger.error("Gemini request failed", model=model_name, error=str(e))
            raise LLMCallError(LLMErrorKind.TRANSPORT, f"Language model request failed: {e}") from e

        text = self._extract_text(response)
        logger.info("Gemini response received", model=model_name, length=len(text))
        return text

    def _extract_text(self, response: Any) -> str:
        """Return the response text or raise the matching LLMCallError."""
        feedback = getattr(response, "prompt_feedback", None)
        block_reason = getattr(feedback, "block_reason", None) if feedback else None
        if block_reason:
            logger.warning("Gemini blocked prompt", reason=str(block_reason))
            raise LLMCallError(
                LLMErrorKind.CONTENT_BLOCKED,
                "Content was blocked by safety filters. Please try rephrasing."
            )

        candidates = getattr(response, "candidates", None)
        if not candidates:
            raise LLMCallError(LLMErrorKind.EMPTY_CANDIDATE, "No response generated")

        finish_reason = getattr(candidates[0], "finish_reason", None)
        if getattr(finish_reason, "name", finish_reason) in _BLOCKED_FINISH_REASONS:
            raise LLMCallError(
                LLMErrorKind.CONTENT_BLOCKED,
                "Content was blocked by safety filters. Please try rephrasing."
            )

        text = response.text
        if not text or not text.strip():
            raise LLMCallError(LLMErrorKind.EMPTY_CANDIDATE, "Empty response from language model")
        return text

    async def get_medical_advice(self, question: str) -> str:
        """Answer a free-form health question as the Aether assistant."""
        return await self.generate(prompts.build_assistant_prompt(question))

    async def analyze_symptoms(
        self,
        patient_data: str,
        prompt_type: prompts.SymptomPromptType = "symptoms"
    ) -> str:
        """Run one of the symptom analysis prompts over a patient summary."""
        return await self.generate(prompts.build_symptom_prompt(patient_data, prompt_type))

    async def analyze_image(
        self,
        attachment: ImageAttachment,
        description: Optional[str] = None
    ) -> str:
        """Radiology-style reading of an X-ray or ultrasound image."""
        return await self.generate(prompts.build_radiology_prompt(description), attachment)

    async def analyze_prescription(self, attachment: ImageAttachment) -> str:
        """Extract medicines, alternatives and prices from a prescription scan."""
        return await self.generate(prompts.build_prescription_prompt(), attachment)

    def get_status(self) -> Dict[str, Any]:
        """Get engine status information."""
        return {
            "configured": self.client is not None,
            "text_model": self.text_model,
            "vision_model": self.vision_model
        }


# Module-level singleton
_engine_instance: Optional[LLMEngine] = None


def get_llm_engine() -> LLMEngine:
    """Get or create singleton engine instance."""
    global _engine_instance
    if _engine_instance is None:
        _engine_instance = LLMEngine()
    return _engine_instance
