"""
Tests for the language model engine.

A fake client stands in for the Gemini SDK, so no network access is needed.
"""

import asyncio
from types import SimpleNamespace

import pytest
from google.genai import errors as genai_errors

from aether.core.image_processor import ImageAttachment
from aether.core.llm_engine import LLMCallError, LLMEngine, LLMErrorKind


def make_response(text="✅ Conditions:\n• Flu", candidates=True, block_reason=None, finish_reason="STOP"):
    return SimpleNamespace(
        text=text,
        prompt_feedback=SimpleNamespace(block_reason=block_reason),
        candidates=[SimpleNamespace(finish_reason=finish_reason)] if candidates else [],
    )


class FakeModels:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    async def generate_content(self, model, contents):
        self.calls.append({"model": model, "contents": contents})
        if self.error is not None:
            raise self.error
        return self.response


def make_engine(response=None, error=None):
    models = FakeModels(response=response, error=error)
    client = SimpleNamespace(aio=SimpleNamespace(models=models))
    return LLMEngine(client=client), models


class TestGenerate:
    """Test successful calls."""

    def test_returns_response_text(self):
        engine, models = make_engine(make_response(text="Hello"))

        assert asyncio.run(engine.generate("prompt")) == "Hello"
        assert models.calls[0]["contents"] == ["prompt"]
        assert models.calls[0]["model"] == engine.text_model

    def test_attachment_uses_vision_model(self):
        engine, models = make_engine(make_response())
        attachment = ImageAttachment(data=b"\xff\xd8fake", mime_type="image/jpeg")

        asyncio.run(engine.generate("describe", attachment))

        call = models.calls[0]
        assert call["model"] == engine.vision_model
        assert len(call["contents"]) == 2
        assert call["contents"][1].inline_data.mime_type == "image/jpeg"

    def test_symptom_prompt_contains_patient_data(self):
        engine, models = make_engine(make_response())

        asyncio.run(engine.analyze_symptoms("Age: 42 years", "tests"))

        prompt = models.calls[0]["contents"][0]
        assert "Age: 42 years" in prompt
        assert "🧪 Recommended Tests:" in prompt

    def test_unknown_prompt_type(self):
        engine, _ = make_engine(make_response())

        with pytest.raises(ValueError):
            asyncio.run(engine.analyze_symptoms("data", "prognosis"))


class TestErrorClassification:
    """Test mapping of failures to error kinds."""

    def _kind(self, engine):
        with pytest.raises(LLMCallError) as exc_info:
            asyncio.run(engine.generate("prompt"))
        return exc_info.value.kind

    def test_rate_limited(self):
        error = genai_errors.ClientError(
            429,
            {"error": {"code": 429, "message": "Resource exhausted", "status": "RESOURCE_EXHAUSTED"}},
        )
        engine, _ = make_engine(error=error)
        assert self._kind(engine) == LLMErrorKind.RATE_LIMITED

    def test_other_api_error_is_transport(self):
        error = genai_errors.ServerError(
            503,
            {"error": {"code": 503, "message": "Unavailable", "status": "UNAVAILABLE"}},
        )
        engine, _ = make_engine(error=error)
        assert self._kind(engine) == LLMErrorKind.TRANSPORT

    def test_network_failure_is_transport(self):
        engine, _ = make_engine(error=ConnectionError("connection reset"))
        assert self._kind(engine) == LLMErrorKind.TRANSPORT

    def test_blocked_prompt(self):
        engine, _ = make_engine(make_response(block_reason="SAFETY"))
        assert self._kind(engine) == LLMErrorKind.CONTENT_BLOCKED

    def test_blocked_candidate(self):
        engine, _ = make_engine(make_response(finish_reason="SAFETY"))
        assert self._kind(engine) == LLMErrorKind.CONTENT_BLOCKED

    def test_no_candidates(self):
        engine, _ = make_engine(make_response(candidates=False))
        assert self._kind(engine) == LLMErrorKind.EMPTY_CANDIDATE

    @pytest.mark.parametrize("text", [None, "", "   \n"])
    def test_empty_text(self, text):
        engine, _ = make_engine(make_response(text=text))
        assert self._kind(engine) == LLMErrorKind.EMPTY_CANDIDATE

    def test_missing_client(self):
        engine, _ = make_engine(make_response())
        engine.client = None
        assert self._kind(engine) == LLMErrorKind.TRANSPORT


class TestStatus:
    """Test status reporting."""

    def test_status_reports_configuration(self):
        engine, _ = make_engine(make_response())
        status = engine.get_status()

        assert status["configured"] is True
        assert status["text_model"] == engine.text_model
