"""
Tests for the prescription adapter.
"""

import pytest

from aether.core.domain_adapters import PrescriptionAdapter
from aether.models.records import Medicine


STRICT_RESPONSE = """🧾 Medicines:
• Augmentin 625 Duo – 1 tablet twice daily
  ↪ Alternative: Amoxicillin + Clavulanic acid
  💰 Price: ₹200

• Pan 40 – 1 tablet before breakfast
  ↪ Alternative: Pantoprazole 40mg
  💰 Price: ₹110

🔍 Diagnosis/Condition: Upper respiratory tract infection

📋 Doctor's Advice: Take rest and drink warm fluids
"""


@pytest.fixture
def adapter():
    return PrescriptionAdapter()


class TestStrictFormat:
    """Test parsing of the requested format."""

    def test_medicines(self, adapter):
        record = adapter.parse(STRICT_RESPONSE)

        assert record.medicines == (
            Medicine(
                name="Augmentin 625 Duo",
                dosage="1 tablet twice daily",
                alternative="Amoxicillin + Clavulanic acid",
                price="₹200",
            ),
            Medicine(
                name="Pan 40",
                dosage="1 tablet before breakfast",
                alternative="Pantoprazole 40mg",
                price="₹110",
            ),
        )

    def test_diagnosis_and_advice(self, adapter):
        record = adapter.parse(STRICT_RESPONSE)

        assert record.diagnosis == "Upper respiratory tract infection"
        assert record.doctor_advice == "Take rest and drink warm fluids"
        assert record.fallback_fields == ()


class TestLooseFormat:
    """Test tolerance of responses without marker glyphs."""

    def test_plain_headers(self, adapter):
        text = (
            "Medicines:\n"
            "- Cetirizine – 10mg at night\n"
            "Diagnosis: Allergic rhinitis\n"
            "Advice: Avoid dust exposure"
        )
        record = adapter.parse(text)

        assert record.medicines == (Medicine(name="Cetirizine", dosage="10mg at night"),)
        assert record.diagnosis == "Allergic rhinitis"
        assert record.doctor_advice == "Avoid dust exposure"

    def test_no_header_at_all(self, adapter):
        text = "Paracetamol – 500mg\n↪ Alternative: Generic Acetaminophen\n💰 Price: ₹20"
        record = adapter.parse(text)

        assert record.medicines == (
            Medicine(
                name="Paracetamol",
                dosage="500mg",
                alternative="Generic Acetaminophen",
                price="₹20",
            ),
        )
        assert "medicines" not in record.fallback_fields

    def test_spaced_hyphen_dosage(self, adapter):
        record = adapter.parse("🧾 Medicines:\n• Dolo 650 - 1 tablet SOS")
        assert record.medicines[0] == Medicine(name="Dolo 650", dosage="1 tablet SOS")

    def test_medicine_without_dosage(self, adapter):
        record = adapter.parse("🧾 Medicines:\n• Vitamin C\n  Price: ₹50")
        assert record.medicines[0] == Medicine(name="Vitamin C", price="₹50")

    def test_bulleted_detail_lines(self, adapter):
        text = "🧾 Medicines:\n• Azithral 500 – once daily\n  - Alternative: Azithromycin\n  - Price: ₹120"
        record = adapter.parse(text)

        assert len(record.medicines) == 1
        assert record.medicines[0].alternative == "Azithromycin"
        assert record.medicines[0].price == "₹120"


class TestDefaults:
    """Test defaults for missing fields."""

    def test_missing_diagnosis_and_advice(self, adapter):
        record = adapter.parse("🧾 Medicines:\n• Paracetamol – 500mg")

        assert record.diagnosis == "Not specified in the prescription"
        assert record.doctor_advice == "No specific advice provided"
        assert record.fallback_fields == ("diagnosis", "doctor_advice")

    def test_empty_diagnosis_line(self, adapter):
        record = adapter.parse(
            "🧾 Medicines:\n• Paracetamol – 500mg\n🔍 Diagnosis/Condition: \n📋 Doctor's Advice: Rest well\n"
        )

        assert record.diagnosis == "Not specified in the prescription"
        assert record.doctor_advice == "Rest well"
        assert record.fallback_fields == ("diagnosis",)

    def test_unreadable_prescription(self, adapter):
        record = adapter.parse("The image is too blurry to read.")

        assert len(record.medicines) == 1
        assert record.medicines[0].is_fallback is True
        assert record.fallback_fields == ("medicines", "diagnosis", "doctor_advice")
