"""
Response parser service for Aether.

Turns a language model's free-text answer into a typed, immutable record
for one analysis domain. Parsing is pure and deterministic: no I/O, no
shared mutable state, and no exceptions for any string input.
"""

import re
from typing import Optional, Union

from aether.config import settings
from aether.core.domain_adapters import (
    DiagnosisAdapter,
    DomainAdapter,
    ParsingPolicy,
    PrescriptionAdapter,
    RadiologyAdapter,
)
from aether.models.records import Domain, DomainRecord, Level
from aether.utils.logger import get_logger

logger = get_logger("response_parser")

# Paired ** or __ around text; "__" inside identifiers such as "a__b__c" is kept
_BOLD = re.compile(r"(?<!\w)(\*\*|__)(?=\S)([^\n]*?\S)\1(?!\w)")


class MalformedInputError(ValueError):
    """Raised when the parser is handed something that is not response text."""

    error_code = "MALFORMED_INPUT"


def policy_from_settings() -> ParsingPolicy:
    """Build the lenience policy from application settings."""
    return ParsingPolicy(
        default_confidence=Level(settings.parser_default_confidence),
        default_urgency=Level(settings.parser_default_urgency),
        reasoning_min_length=settings.parser_reasoning_min_length,
        reasoning_plain_min_length=settings.parser_reasoning_plain_min_length,
    )


def normalize_response(text: str) -> str:
    """
    Normalize response text before extraction.

    Unifies line endings and drops markdown bold markers, which the
    prompts themselves ask the model to put around headers.
    """
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    return _BOLD.sub(r"\2", text)


def coerce_domain(domain: Union[Domain, str]) -> Domain:
    """Accept a Domain or its case-insensitive name."""
    if isinstance(domain, Domain):
        return domain
    if isinstance(domain, str):
        try:
            return Domain(domain.strip().lower())
        except ValueError:
            pass
    raise MalformedInputError(f"Unknown analysis domain: {domain!r}")


class ResponseParser:
    """
    Entry point of the structured response extraction engine.

    Dispatches to the Diagnosis, Prescription or Radiology adapter. Every
    list in the returned record holds at least one item; fields that had
    to be backfilled are listed in `fallback_fields`.
    """

    def __init__(self, policy: Optional[ParsingPolicy] = None):
        self.policy = policy or policy_from_settings()
        self._adapters: dict[Domain, DomainAdapter] = {
            Domain.DIAGNOSIS: DiagnosisAdapter(self.policy),
            Domain.PRESCRIPTION: PrescriptionAdapter(self.policy),
            Domain.RADIOLOGY: RadiologyAdapter(self.policy),
        }

    def parse(self, domain: Union[Domain, str], text: str) -> DomainRecord:
        """
        Parse a model response into a domain record.

        Args:
            domain: Diagnosis, Prescription or Radiology
            text: Raw model response

        Returns:
            DiagnosisRecord, PrescriptionRecord or RadiologyRecord

        Raises:
            MalformedInputError: If text is not a string or domain is unknown
        """
        resolved = coerce_domain(domain)
        if not isinstance(text, str):
            raise MalformedInputError(
                f"Response text must be a string, got {type(text).__name__}"
            )

        record = self._adapters[resolved].parse(normalize_response(text))

        logger.debug(
            "Response parsed",
            domain=resolved.value,
            text_length=len(text),
            fallback_fields=list(record.fallback_fields)
        )

        return record


# Singleton instance
response_parser = ResponseParser()


def parse(domain: Union[Domain, str], text: str) -> DomainRecord:
    """Parse a model response with the default parser."""
    return response_parser.parse(domain, text)
