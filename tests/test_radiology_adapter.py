"""
Tests for the radiology adapter.
"""

import pytest

from aether.core.domain_adapters import RadiologyAdapter


STRICT_RESPONSE = """---

✅ Findings:
• Clear lung fields bilaterally
• Normal cardiac silhouette
• No pleural effusion

🩺 Possible Conditions/Interpretation:
• No acute cardiopulmonary process

🧪 Recommended Follow-up Tests:
• Clinical correlation with symptoms

📋 Radiologist-Style Impression:
Normal chest radiograph without acute findings.

---"""

LOOSE_RESPONSE = """Findings:
- Right lower lobe consolidation
- Small right pleural effusion

Possible Conditions:
- Community acquired pneumonia

Recommended Tests:
- Sputum culture
- Repeat X-ray in 6 weeks

Impression:
Right lower lobe pneumonia with small effusion.
"""


@pytest.fixture
def adapter():
    return RadiologyAdapter()


class TestStrictFormat:
    """Test parsing of the requested format."""

    def test_all_sections(self, adapter):
        record = adapter.parse(STRICT_RESPONSE)

        assert record.findings == (
            "Clear lung fields bilaterally",
            "Normal cardiac silhouette",
            "No pleural effusion",
        )
        assert record.conditions == ("No acute cardiopulmonary process",)
        assert record.recommended_tests == ("Clinical correlation with symptoms",)
        assert record.impression == "Normal chest radiograph without acute findings."
        assert record.fallback_fields == ()

    def test_impression_with_parenthetical_header(self, adapter):
        record = adapter.parse("📋 Impression (1-2 lines):\nMild cardiomegaly.")
        assert record.impression == "Mild cardiomegaly."


class TestLooseFormat:
    """Test tolerance of responses without marker glyphs."""

    def test_all_sections(self, adapter):
        record = adapter.parse(LOOSE_RESPONSE)

        assert record.findings == ("Right lower lobe consolidation", "Small right pleural effusion")
        assert record.conditions == ("Community acquired pneumonia",)
        assert record.recommended_tests == ("Sputum culture", "Repeat X-ray in 6 weeks")
        assert record.impression == "Right lower lobe pneumonia with small effusion."


class TestDefaults:
    """Test sentinels and defaults."""

    def test_empty_response(self, adapter):
        record = adapter.parse("")

        assert record.findings == ("No significant abnormalities detected on initial review",)
        assert record.conditions == ("Unable to determine condition from analysis",)
        assert record.recommended_tests == ("Clinical correlation recommended",)
        assert record.impression == (
            "Radiological findings require clinical correlation for complete assessment"
        )
        assert record.fallback_fields == (
            "findings", "conditions", "recommended_tests", "impression"
        )

    def test_section_without_bullets_is_backfilled(self, adapter):
        record = adapter.parse("✅ Findings:\nThe image quality is poor.\n🩺 Conditions:\n• Unclear")

        assert record.findings == ("No significant abnormalities detected on initial review",)
        assert record.conditions == ("Unclear",)
        assert "findings" in record.fallback_fields
