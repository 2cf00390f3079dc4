"""
Tests for the diagnosis adapter.
"""

import pytest

from aether.core.domain_adapters import DiagnosisAdapter, ParsingPolicy
from aether.models.records import Condition, Confidence, Level, MedicalTest, Treatment


STRICT_RESPONSE = """---

✅ Possible Condition(s):
• Influenza - Confidence: High (82%)
  Reasoning: Sudden fever with body aches in winter
• Common cold - Confidence: Low (20%)
  Reasoning: Nasal symptoms are mild

🧪 Recommended Tests:
• Rapid influenza test - Purpose: Confirm influenza - Urgency: High
• CBC - Purpose: Check for bacterial infection - Urgency: Low

💊 Treatment Recommendations:
• Oseltamivir - Antiviral if started within 48 hours
• Rest and fluids - Supports recovery

🚨 When to See a Doctor:
• Difficulty breathing
• Fever above 103°F for more than 3 days

🧠 Medical Reasoning:
• Age 45 → Standard adult risk profile
• No chronic conditions → Lower complication risk

---"""

LOOSE_RESPONSE = """Possible Conditions:
- Migraine - Confidence: High (75%)
  Reasoning: Throbbing unilateral headache
- Tension headache - Confidence: Low

Recommended Tests:
- MRI - Urgency: Low

Treatment Recommendations:
- Rest in a dark room - reduces light sensitivity
- Hydration

When to See a Doctor:
- Sudden severe headache
- Vision loss

Medical Reasoning:
- Age 30 → migraine prevalence peaks
"""


@pytest.fixture
def adapter():
    return DiagnosisAdapter()


class TestStrictFormat:
    """Test parsing of the requested format."""

    def test_conditions(self, adapter):
        record = adapter.parse(STRICT_RESPONSE)

        assert record.conditions == (
            Condition(
                name="Influenza",
                confidence=Confidence(level=Level.HIGH, percentage=82),
                reasoning="Sudden fever with body aches in winter",
            ),
            Condition(
                name="Common cold",
                confidence=Confidence(level=Level.LOW, percentage=20),
                reasoning="Nasal symptoms are mild",
            ),
        )

    def test_tests(self, adapter):
        record = adapter.parse(STRICT_RESPONSE)

        assert record.tests[0] == MedicalTest(
            name="Rapid influenza test",
            purpose="Confirm influenza",
            urgency=Level.HIGH,
        )
        assert record.tests[1].urgency == Level.LOW

    def test_treatments(self, adapter):
        record = adapter.parse(STRICT_RESPONSE)

        assert record.treatments == (
            Treatment(action="Oseltamivir", explanation="Antiviral if started within 48 hours"),
            Treatment(action="Rest and fluids", explanation="Supports recovery"),
        )

    def test_warnings_and_reasoning(self, adapter):
        record = adapter.parse(STRICT_RESPONSE)

        assert record.warnings == ("Difficulty breathing", "Fever above 103°F for more than 3 days")
        assert record.reasoning == (
            "Age 45 → Standard adult risk profile",
            "No chronic conditions → Lower complication risk",
        )

    def test_nothing_backfilled(self, adapter):
        assert adapter.parse(STRICT_RESPONSE).fallback_fields == ()


class TestLooseFormat:
    """Test tolerance of responses without marker glyphs."""

    def test_conditions(self, adapter):
        record = adapter.parse(LOOSE_RESPONSE)

        assert [c.name for c in record.conditions] == ["Migraine", "Tension headache"]
        assert record.conditions[0].reasoning == "Throbbing unilateral headache"
        assert record.conditions[1].confidence == Confidence(level=Level.LOW)

    def test_tests_with_urgency_only(self, adapter):
        record = adapter.parse(LOOSE_RESPONSE)
        assert record.tests == (MedicalTest(name="MRI", urgency=Level.LOW),)

    def test_treatment_without_explanation(self, adapter):
        record = adapter.parse(LOOSE_RESPONSE)

        assert record.treatments[0].explanation == "reduces light sensitivity"
        assert record.treatments[1] == Treatment(action="Hydration")

    def test_warnings_and_reasoning(self, adapter):
        record = adapter.parse(LOOSE_RESPONSE)

        assert record.warnings == ("Sudden severe headache", "Vision loss")
        assert record.reasoning == ("Age 30 → migraine prevalence peaks",)
        assert record.fallback_fields == ()


class TestLenience:
    """Test defaults applied to lines without sub-fields."""

    def test_name_only_condition_gets_defaults(self, adapter):
        record = adapter.parse("✅ Possible Condition(s):\n• Dehydration")

        assert record.conditions[0] == Condition(
            name="Dehydration",
            confidence=Confidence(level=Level.MEDIUM),
            reasoning="Based on symptom analysis",
        )

    def test_name_only_test_gets_medium_urgency(self, adapter):
        record = adapter.parse("🧪 Recommended Tests:\n• Chest X-ray")
        assert record.tests[0] == MedicalTest(name="Chest X-ray", urgency=Level.MEDIUM)

    def test_moderate_maps_to_medium(self, adapter):
        record = adapter.parse("✅ Conditions:\n• Sinusitis - Confidence: Moderate (55%)")
        assert record.conditions[0].confidence == Confidence(level=Level.MEDIUM, percentage=55)

    def test_percentage_only_confidence(self, adapter):
        record = adapter.parse("✅ Conditions:\n• Sinusitis - Confidence: 40%")

        assert record.conditions[0].name == "Sinusitis"
        assert record.conditions[0].confidence == Confidence(level=Level.MEDIUM, percentage=40)

    def test_out_of_range_percentage_is_dropped(self, adapter):
        record = adapter.parse("✅ Conditions:\n• Flu - Confidence: High (150%)")
        assert record.conditions[0].confidence == Confidence(level=Level.HIGH)

    @pytest.mark.parametrize("line", [
        "• Flu - Confidence: High (1000%)",
        "• Flu - Confidence: 1000%",
    ])
    def test_four_digit_percentage_is_not_truncated(self, adapter, line):
        record = adapter.parse(f"✅ Possible Condition(s):\n{line}\n")
        assert record.conditions[0].confidence.percentage is None

    def test_decimal_percentage_is_rounded(self, adapter):
        record = adapter.parse("✅ Conditions:\n• Flu - Confidence: High (82.5%)")
        assert record.conditions[0].confidence == Confidence(level=Level.HIGH, percentage=83)

    def test_hyphenated_treatment_is_not_split(self, adapter):
        record = adapter.parse("💊 Treatment:\n• Over-the-counter antihistamines")
        assert record.treatments[0] == Treatment(action="Over-the-counter antihistamines")

    def test_configured_defaults(self):
        adapter = DiagnosisAdapter(ParsingPolicy(
            default_confidence=Level.LOW,
            default_urgency=Level.HIGH,
        ))
        record = adapter.parse("✅ Conditions:\n• Flu\n🧪 Tests:\n• CBC")

        assert record.conditions[0].confidence.level == Level.LOW
        assert record.tests[0].urgency == Level.HIGH

    def test_short_reasoning_lines_are_filtered(self, adapter):
        record = adapter.parse("🧠 Medical Reasoning:\n• ok\n• Age is a key risk factor")
        assert record.reasoning == ("Age is a key risk factor",)

    def test_warnings_stop_at_separator(self, adapter):
        record = adapter.parse("🚨 When to See a Doctor:\n• Chest pain\n---\n• Not a warning")
        assert record.warnings == ("Chest pain",)
