"""
Domain adapters for the response parser.

Each adapter owns a section grammar (ordered strict/loose header patterns
per section) and a sub-field grammar for its line items, and composes the
section extractor, line item parser and fallback policy into one typed
record.
"""

import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from aether.core.fallback_policy import FallbackPolicy, fallback_policy
from aether.core.line_item_parser import LineItem, LineItemParser, line_item_parser
from aether.core.section_extractor import (
    BLANK_LINE,
    LINE_START,
    SEPARATOR,
    SectionExtractor,
    SectionPattern,
    block_pattern,
    line_pattern,
    loose_header,
    section_extractor,
    strict_header,
)
from aether.models.records import (
    Condition,
    Confidence,
    DiagnosisRecord,
    Level,
    MedicalTest,
    Medicine,
    PrescriptionRecord,
    RadiologyRecord,
    Treatment,
)


@dataclass(frozen=True)
class ParsingPolicy:
    """Lenience defaults applied when a line has no recognisable sub-fields."""

    default_confidence: Level = Level.MEDIUM
    default_urgency: Level = Level.MEDIUM
    default_condition_reasoning: str = "Based on symptom analysis"
    reasoning_min_length: int = 5
    reasoning_plain_min_length: int = 10


LEVEL_ALIASES = {
    "high": Level.HIGH,
    "medium": Level.MEDIUM,
    "moderate": Level.MEDIUM,
    "low": Level.LOW,
}


def parse_level(word: Optional[str], default: Level) -> Level:
    """Map a free-text level word to a Level, or the default."""
    if not word:
        return default
    return LEVEL_ALIASES.get(word.strip().lower(), default)


def parse_percentage(value: Optional[str]) -> Optional[int]:
    """
    Whole percentage in 0-100, or None if absent or out of range.

    Decimals are rounded half up ("82.5" -> 83). The full number is captured
    before the range check, so "1000" is dropped rather than read as 100.
    """
    if not value:
        return None
    number = float(value)
    if not 0 <= number <= 100:
        return None
    return int(number + 0.5)


# =============================================================================
# Diagnosis grammar
# =============================================================================

_DX_TESTS_HEADER = r"(?:Recommended\s+)?(?:Diagnostic\s+)?Tests?"
_DX_TREATMENT_HEADER = r"Treatments?(?:\s+Recommendations?)?"
_DX_WARNING_HEADER = r"When\s+to\s+See\s+(?:a\s+)?Doctor"
_DX_REASONING_HEADER = r"(?:Medical\s+)?Reasoning"

# Loose boundaries: a header line for a following section. The reasoning
# header only counts when nothing follows its colon, so condition detail
# lines such as "Reasoning: ..." do not end the conditions section.
_DX_LOOSE_STOPS = (
    loose_header(_DX_TESTS_HEADER),
    loose_header(_DX_TREATMENT_HEADER),
    loose_header(_DX_WARNING_HEADER),
    rf"{LINE_START}{_DX_REASONING_HEADER}\s*:?[ \t]*$",
)

DIAGNOSIS_GRAMMAR: Dict[str, Tuple[SectionPattern, ...]] = {
    "conditions": (
        block_pattern(
            "conditions.strict",
            strict_header("✅", r"(?:Possible\s*)?Conditions?(?:\s*\(s\))?"),
            ("🧪", "🩺", "💊", "🚨", "🧠"),
        ),
        block_pattern(
            "conditions.loose",
            loose_header(r"(?:Possible\s+)?Conditions?(?:\s*\(s\))?"),
            _DX_LOOSE_STOPS,
        ),
    ),
    "tests": (
        block_pattern(
            "tests.strict",
            strict_header("🧪", _DX_TESTS_HEADER),
            ("💊", "🚨", "🧠"),
        ),
        block_pattern(
            "tests.loose",
            loose_header(_DX_TESTS_HEADER),
            _DX_LOOSE_STOPS[1:],
        ),
    ),
    "treatments": (
        block_pattern(
            "treatments.strict",
            strict_header("💊", _DX_TREATMENT_HEADER),
            ("🚨", "🧠", _DX_WARNING_HEADER),
        ),
        block_pattern(
            "treatments.loose",
            loose_header(_DX_TREATMENT_HEADER),
            _DX_LOOSE_STOPS[2:],
        ),
    ),
    "warnings": (
        block_pattern(
            "warnings.strict",
            strict_header("🚨", _DX_WARNING_HEADER),
            (BLANK_LINE, SEPARATOR, "🧠"),
        ),
        block_pattern(
            "warnings.loose",
            loose_header(_DX_WARNING_HEADER),
            (BLANK_LINE, SEPARATOR, _DX_LOOSE_STOPS[3]),
        ),
    ),
    "reasoning": (
        block_pattern(
            "reasoning.strict",
            strict_header("🧠", _DX_REASONING_HEADER),
            (BLANK_LINE, SEPARATOR),
        ),
        block_pattern(
            "reasoning.loose",
            _DX_LOOSE_STOPS[3],
            (BLANK_LINE, SEPARATOR),
        ),
    ),
}

_SEP = r"\s*[-–—]\s*"

CONDITION_PATTERNS = (
    re.compile(
        rf"^(?P<name>.+?){_SEP}Confidence\s*:\s*(?P<level>[A-Za-z]+)"
        r"(?:\s*\(?\s*(?P<percentage>\d+(?:\.\d+)?)\s*%?\s*\)?)?",
        re.IGNORECASE,
    ),
    re.compile(
        rf"^(?P<name>.+?){_SEP}Confidence\s*:\s*\(?\s*(?P<percentage>\d+(?:\.\d+)?)\s*%",
        re.IGNORECASE,
    ),
)
CONDITION_DETAIL = re.compile(r"^Reasoning\s*:\s*(?P<reasoning>.+)$", re.IGNORECASE)

TEST_PATTERNS = (
    re.compile(
        rf"^(?P<name>.+?){_SEP}Purpose\s*:\s*(?P<purpose>.*?){_SEP}Urgency\s*:\s*(?P<urgency>[A-Za-z]+)",
        re.IGNORECASE,
    ),
    re.compile(rf"^(?P<name>.+?){_SEP}Purpose\s*:\s*(?P<purpose>.+)$", re.IGNORECASE),
    re.compile(rf"^(?P<name>.+?){_SEP}Urgency\s*:\s*(?P<urgency>[A-Za-z]+)", re.IGNORECASE),
)

TREATMENT_PATTERNS = (
    re.compile(r"^(?P<action>.+?)\s+[-–—]\s+(?P<explanation>.+)$"),
    re.compile(r"^(?P<action>[^:]{2,60}):\s+(?P<explanation>.+)$"),
)


# =============================================================================
# Prescription grammar
# =============================================================================

_RX_DIAGNOSIS_WORDS = r"Diagnosis(?:\s*/\s*Condition)?"
_RX_ADVICE_WORDS = r"Doctor[’']?s?\s+Advice"

PRESCRIPTION_GRAMMAR: Dict[str, Tuple[SectionPattern, ...]] = {
    "medicines": (
        block_pattern(
            "medicines.strict",
            strict_header("🧾", r"Medicines?"),
            ("🔍", "📋"),
        ),
        block_pattern(
            "medicines.loose",
            loose_header(r"(?:Medicines?|Medications?)"),
            (loose_header(_RX_DIAGNOSIS_WORDS), loose_header(_RX_ADVICE_WORDS)),
        ),
        # No header at all: everything before the diagnosis / advice lines
        block_pattern(
            "medicines.body",
            r"\A",
            ("🔍", "📋", rf"{LINE_START}{_RX_DIAGNOSIS_WORDS}\s*:", rf"{LINE_START}{_RX_ADVICE_WORDS}"),
        ),
    ),
    "diagnosis": (
        line_pattern("diagnosis.strict", rf"🔍\s*{_RX_DIAGNOSIS_WORDS}\s*:?"),
        line_pattern("diagnosis.loose", rf"{LINE_START}{_RX_DIAGNOSIS_WORDS}\s*:"),
    ),
    "doctor_advice": (
        line_pattern("doctor_advice.strict", rf"📋\s*{_RX_ADVICE_WORDS}\s*:?"),
        line_pattern("doctor_advice.loose", rf"{LINE_START}(?:{_RX_ADVICE_WORDS}|Advice)\s*:"),
    ),
}

MEDICINE_PATTERNS = (
    re.compile(r"^(?P<name>[^–—]+?)\s*[–—]\s*(?P<dosage>.+)$"),
    re.compile(r"^(?P<name>.+?)\s+-\s+(?P<dosage>.+)$"),
)
MEDICINE_START = re.compile(r"^[^–—\n]+[–—]\s*\S")
MEDICINE_DETAIL = re.compile(r"^(?:↪\s*)?Alternative\s*:|^(?:💰\s*)?Price\s*:", re.IGNORECASE)
ALTERNATIVE_PATTERN = re.compile(r"Alternative\s*:\s*(?P<value>.+)$", re.IGNORECASE)
PRICE_PATTERN = re.compile(r"Price\s*:\s*(?P<value>.+)$", re.IGNORECASE)


# =============================================================================
# Radiology grammar
# =============================================================================

_RAD_CONDITIONS_WORDS = r"(?:Possible\s+)?(?:Conditions?(?:\s*/\s*Interpretation)?|Interpretation)"
_RAD_TESTS_WORDS = r"(?:Recommended\s+)?(?:Follow[- ]?up\s+)?Tests?"
_RAD_IMPRESSION_WORDS = r"(?:Radiologist(?:[- ]Style)?\s+)?Impression(?:\s*\([^)\n]*\))?"

RADIOLOGY_GRAMMAR: Dict[str, Tuple[SectionPattern, ...]] = {
    "findings": (
        block_pattern(
            "findings.strict",
            strict_header("✅", r"Findings"),
            ("🩺", "🧪", "📋"),
        ),
        block_pattern(
            "findings.loose",
            loose_header(r"(?:Key\s+)?Findings"),
            (
                loose_header(_RAD_CONDITIONS_WORDS),
                loose_header(_RAD_TESTS_WORDS),
                loose_header(_RAD_IMPRESSION_WORDS),
            ),
        ),
    ),
    "conditions": (
        block_pattern(
            "conditions.strict",
            strict_header("🩺", r"(?:Possible\s*)?Conditions?(?:\s*/\s*Interpretation)?"),
            ("🧪", "📋"),
        ),
        block_pattern(
            "conditions.loose",
            loose_header(_RAD_CONDITIONS_WORDS),
            (loose_header(_RAD_TESTS_WORDS), loose_header(_RAD_IMPRESSION_WORDS)),
        ),
    ),
    "recommended_tests": (
        block_pattern(
            "recommended_tests.strict",
            strict_header("🧪", r"(?:Recommended\s*)?(?:Follow[- ]?up\s*)?Tests?"),
            ("📋",),
        ),
        block_pattern(
            "recommended_tests.loose",
            loose_header(_RAD_TESTS_WORDS),
            (loose_header(_RAD_IMPRESSION_WORDS),),
        ),
    ),
    "impression": (
        block_pattern(
            "impression.strict",
            strict_header("📋", _RAD_IMPRESSION_WORDS),
            (BLANK_LINE, SEPARATOR),
        ),
        block_pattern(
            "impression.loose",
            loose_header(_RAD_IMPRESSION_WORDS),
            (BLANK_LINE, SEPARATOR),
        ),
    ),
}


# =============================================================================
# Adapters
# =============================================================================

class DomainAdapter:
    """Shared plumbing for the domain adapters."""

    GRAMMAR: Dict[str, Tuple[SectionPattern, ...]] = {}

    def __init__(
        self,
        policy: Optional[ParsingPolicy] = None,
        extractor: SectionExtractor = section_extractor,
        line_parser: LineItemParser = line_item_parser,
        fallback: FallbackPolicy = fallback_policy
    ):
        self.policy = policy or ParsingPolicy()
        self.extractor = extractor
        self.line_parser = line_parser
        self.fallback = fallback

    def section_body(self, text: str, section: str) -> str:
        """Body of a section, or "" when absent."""
        body = self.extractor.extract_section(text, self.GRAMMAR[section])
        return body or ""

    def section_lines(self, text: str, section: str, **kwargs) -> List[str]:
        return self.line_parser.parse_lines(self.section_body(text, section), **kwargs)


class DiagnosisAdapter(DomainAdapter):
    """Conditions, tests, treatments, warning signs and reasoning."""

    GRAMMAR = DIAGNOSIS_GRAMMAR

    def parse(self, text: str) -> DiagnosisRecord:
        backfilled: List[str] = []

        conditions = self.fallback.backfill(
            "diagnosis.conditions", self.parse_conditions(text), backfilled
        )
        tests = self.fallback.backfill(
            "diagnosis.tests", self.parse_tests(text), backfilled
        )
        treatments = self.fallback.backfill(
            "diagnosis.treatments", self.parse_treatments(text), backfilled
        )
        warnings = self.fallback.backfill(
            "diagnosis.warnings", self.section_lines(text, "warnings"), backfilled
        )
        reasoning = self.fallback.backfill(
            "diagnosis.reasoning",
            self.section_lines(
                text,
                "reasoning",
                min_length=self.policy.reasoning_min_length,
                plain_min_length=self.policy.reasoning_plain_min_length,
            ),
            backfilled,
        )

        return DiagnosisRecord(
            conditions=tuple(conditions),
            tests=tuple(tests),
            treatments=tuple(treatments),
            warnings=tuple(warnings),
            reasoning=tuple(reasoning),
            fallback_fields=tuple(backfilled),
        )

    def parse_conditions(self, text: str) -> List[Condition]:
        items = self.line_parser.parse_items(
            self.section_body(text, "conditions"),
            detail_pattern=CONDITION_DETAIL,
        )
        return [self._condition(item) for item in items]

    def _condition(self, item: LineItem) -> Condition:
        fields = self.line_parser.decompose(item.text, CONDITION_PATTERNS)
        reasoning = self.policy.default_condition_reasoning
        for detail in item.details:
            match = CONDITION_DETAIL.search(detail)
            if match:
                reasoning = match.group("reasoning").strip()
                break

        if fields is None or "name" not in fields:
            return Condition(
                name=item.text,
                confidence=Confidence(level=self.policy.default_confidence),
                reasoning=reasoning,
            )

        return Condition(
            name=fields["name"],
            confidence=Confidence(
                level=parse_level(fields.get("level"), self.policy.default_confidence),
                percentage=parse_percentage(fields.get("percentage")),
            ),
            reasoning=reasoning,
        )

    def parse_tests(self, text: str) -> List[MedicalTest]:
        tests = []
        for line in self.section_lines(text, "tests"):
            fields = self.line_parser.decompose(line, TEST_PATTERNS)
            if fields is None or "name" not in fields:
                tests.append(MedicalTest(name=line, urgency=self.policy.default_urgency))
                continue
            tests.append(MedicalTest(
                name=fields["name"],
                purpose=fields.get("purpose"),
                urgency=parse_level(fields.get("urgency"), self.policy.default_urgency),
            ))
        return tests

    def parse_treatments(self, text: str) -> List[Treatment]:
        treatments = []
        for line in self.section_lines(text, "treatments"):
            fields = self.line_parser.decompose(line, TREATMENT_PATTERNS)
            if fields is None or "action" not in fields:
                treatments.append(Treatment(action=line))
                continue
            treatments.append(Treatment(
                action=fields["action"],
                explanation=fields.get("explanation"),
            ))
        return treatments


class PrescriptionAdapter(DomainAdapter):
    """Medicines with dosage, alternative and price; diagnosis; advice."""

    GRAMMAR = PRESCRIPTION_GRAMMAR

    def parse(self, text: str) -> PrescriptionRecord:
        backfilled: List[str] = []

        medicines = self.fallback.backfill(
            "prescription.medicines", self.parse_medicines(text), backfilled
        )
        diagnosis = self.fallback.value_or_default(
            "prescription.diagnosis", self.section_body(text, "diagnosis"), backfilled
        )
        advice = self.fallback.value_or_default(
            "prescription.doctor_advice", self.section_body(text, "doctor_advice"), backfilled
        )

        return PrescriptionRecord(
            medicines=tuple(medicines),
            diagnosis=diagnosis,
            doctor_advice=advice,
            fallback_fields=tuple(backfilled),
        )

    def parse_medicines(self, text: str) -> List[Medicine]:
        items = self.line_parser.parse_items(
            self.section_body(text, "medicines"),
            detail_pattern=MEDICINE_DETAIL,
            start_pattern=MEDICINE_START,
        )
        return [self._medicine(item) for item in items]

    def _medicine(self, item: LineItem) -> Medicine:
        fields = self.line_parser.decompose(item.text, MEDICINE_PATTERNS) or {}
        alternative = price = None
        for detail in item.details:
            if alternative is None:
                alternative = self._detail_value(ALTERNATIVE_PATTERN, detail)
            if price is None:
                price = self._detail_value(PRICE_PATTERN, detail)

        return Medicine(
            name=fields.get("name", item.text),
            dosage=fields.get("dosage"),
            alternative=alternative,
            price=price,
        )

    @staticmethod
    def _detail_value(pattern: re.Pattern, detail: str) -> Optional[str]:
        match = pattern.search(detail)
        if match:
            return match.group("value").strip() or None
        return None


class RadiologyAdapter(DomainAdapter):
    """Findings, possible conditions, follow-up tests and impression."""

    GRAMMAR = RADIOLOGY_GRAMMAR

    def parse(self, text: str) -> RadiologyRecord:
        backfilled: List[str] = []

        findings = self.fallback.backfill(
            "radiology.findings", self.section_lines(text, "findings"), backfilled
        )
        conditions = self.fallback.backfill(
            "radiology.conditions", self.section_lines(text, "conditions"), backfilled
        )
        tests = self.fallback.backfill(
            "radiology.recommended_tests",
            self.section_lines(text, "recommended_tests"),
            backfilled,
        )
        impression = self.fallback.value_or_default(
            "radiology.impression", self.section_body(text, "impression"), backfilled
        )

        return RadiologyRecord(
            findings=tuple(findings),
            conditions=tuple(conditions),
            recommended_tests=tuple(tests),
            impression=impression,
            fallback_fields=tuple(backfilled),
        )
