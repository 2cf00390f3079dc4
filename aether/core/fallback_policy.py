"""
Fallback policy for parsed records.

Guarantees that no list in a parsed record is ever empty by backfilling
exactly one sentinel entry, and supplies fixed informative defaults for
single-value fields.
"""

from typing import Callable, Dict, List, Sequence, TypeVar

from aether.models.records import (
    Condition,
    Confidence,
    Level,
    MedicalTest,
    Medicine,
    Treatment,
)

T = TypeVar("T")


def ensure_non_empty(items: Sequence[T], sentinel_factory: Callable[[], T]) -> List[T]:
    """
    Return the items, or a single sentinel if there are none.

    Args:
        items: Extracted items
        sentinel_factory: Builds the domain-specific placeholder

    Returns:
        Non-empty list
    """
    if items:
        return list(items)
    return [sentinel_factory()]


class FallbackPolicy:
    """
    Domain sentinels and scalar defaults.

    Structured sentinels are marked `is_fallback=True`. Plain string
    sentinels cannot carry a flag, so callers record which fields were
    backfilled (see `backfill`).
    """

    SENTINELS: Dict[str, Callable[[], object]] = {
        # Diagnosis
        "diagnosis.conditions": lambda: Condition(
            name="Further evaluation needed",
            confidence=Confidence(level=Level.LOW),
            reasoning="Unable to determine specific condition from provided symptoms",
            is_fallback=True,
        ),
        "diagnosis.tests": lambda: MedicalTest(
            name="Consult healthcare provider for appropriate testing",
            urgency=Level.MEDIUM,
            is_fallback=True,
        ),
        "diagnosis.treatments": lambda: Treatment(
            action="Consult healthcare provider for appropriate treatment",
            is_fallback=True,
        ),
        "diagnosis.warnings": lambda: "Seek immediate medical attention if symptoms worsen",
        "diagnosis.reasoning": lambda: (
            "Medical reasoning based on symptom presentation and clinical knowledge"
        ),
        # Prescription
        "prescription.medicines": lambda: Medicine(
            name="No medicines could be identified from the prescription",
            is_fallback=True,
        ),
        # Radiology
        "radiology.findings": lambda: "No significant abnormalities detected on initial review",
        "radiology.conditions": lambda: "Unable to determine condition from analysis",
        "radiology.recommended_tests": lambda: "Clinical correlation recommended",
    }

    DEFAULTS: Dict[str, str] = {
        "prescription.diagnosis": "Not specified in the prescription",
        "prescription.doctor_advice": "No specific advice provided",
        "radiology.impression": (
            "Radiological findings require clinical correlation for complete assessment"
        ),
    }

    def sentinel(self, field: str):
        """Build the sentinel for a qualified field name."""
        return self.SENTINELS[field]()

    def default(self, field: str) -> str:
        """Fixed default for a qualified single-value field."""
        return self.DEFAULTS[field]

    def backfill(
        self,
        field: str,
        items: Sequence[T],
        backfilled: List[str]
    ) -> List[T]:
        """
        Apply `ensure_non_empty` for a field and note it if a sentinel was used.

        Args:
            field: Qualified field name, e.g. "diagnosis.tests"
            items: Extracted items
            backfilled: Collects the short names of backfilled fields

        Returns:
            Non-empty list
        """
        if not items:
            backfilled.append(field.split(".", 1)[1])
        return ensure_non_empty(items, self.SENTINELS[field])

    def value_or_default(
        self,
        field: str,
        value: str,
        backfilled: List[str]
    ) -> str:
        """Return the value, or the field default when it is empty."""
        if value:
            return value
        backfilled.append(field.split(".", 1)[1])
        return self.DEFAULTS[field]


# Singleton instance
fallback_policy = FallbackPolicy()
