"""
Section extraction for language model responses.

Isolates the raw body of one logical section (e.g. "Recommended Tests")
from the full response text using an ordered cascade of patterns.
"""

import re
from dataclasses import dataclass
from typing import Optional, Sequence

# Header words at the start of a line, after any numbering, markdown or
# stray symbols ("3. ", "### ", "- ").
LINE_START = r"^[^A-Za-z\n]*"

# Lookahead alternatives shared by several grammars
BLANK_LINE = r"\n[ \t]*\n"
SEPARATOR = r"^[ \t]*[-*_]{3,}[ \t]*$"
END = r"\Z"

DEFAULT_FLAGS = re.IGNORECASE | re.MULTILINE


@dataclass(frozen=True)
class SectionPattern:
    """
    One candidate pattern for a section.

    The regex must capture the section body in group 1.
    """

    name: str
    regex: re.Pattern

    def search(self, text: str) -> Optional[re.Match]:
        return self.regex.search(text)


@dataclass(frozen=True)
class Section:
    """A section located in a response."""

    name: str
    pattern_name: str
    body: str


def block_pattern(
    name: str,
    header: str,
    stops: Sequence[str],
    flags: int = DEFAULT_FLAGS
) -> SectionPattern:
    """
    Build a pattern capturing everything after `header` up to the first stop.

    Args:
        name: Pattern identity, e.g. "tests.strict"
        header: Regex for the header (marker and/or words)
        stops: Regex alternatives marking the end of the body
        flags: Regex flags

    Returns:
        SectionPattern
    """
    stop = "|".join(list(stops) + [END])
    regex = re.compile(rf"{header}\s*([\s\S]*?)(?={stop})", flags)
    return SectionPattern(name=name, regex=regex)


def line_pattern(
    name: str,
    header: str,
    flags: int = DEFAULT_FLAGS
) -> SectionPattern:
    """Build a pattern capturing the rest of the header's line."""
    # A value never opens with ":" or "/" (empty "Diagnosis/Condition:" lines)
    regex = re.compile(rf"{header}[ \t]*([^\s:/][^\n]*)", flags)
    return SectionPattern(name=name, regex=regex)


def strict_header(marker: str, words: str) -> str:
    """Header introduced by a distinctive marker glyph."""
    return rf"{marker}\s*{words}\s*:?"


def loose_header(words: str) -> str:
    """Plain header words on their own line, ending in a colon or the line."""
    return rf"{LINE_START}{words}\s*(?::|$)"


class SectionExtractor:
    """
    Locates section bodies with a fixed-precedence pattern cascade.

    Patterns are tried in the given order and the first one that matches
    wins, even if a later pattern would match a different span. A section
    nothing matches is absent, which is not an error.
    """

    def find_section(
        self,
        text: str,
        patterns: Sequence[SectionPattern],
        section_name: str = ""
    ) -> Optional[Section]:
        """
        Find the first matching section.

        Args:
            text: Full response text
            patterns: Candidate patterns in precedence order
            section_name: Logical section name for the result

        Returns:
            Section with trimmed body, or None when absent
        """
        for pattern in patterns:
            match = pattern.search(text)
            if match:
                return Section(
                    name=section_name or pattern.name.split(".")[0],
                    pattern_name=pattern.name,
                    body=match.group(1).strip()
                )
        return None

    def extract_section(
        self,
        text: str,
        patterns: Sequence[SectionPattern]
    ) -> Optional[str]:
        """Return the trimmed body of the first matching pattern, or None."""
        section = self.find_section(text, patterns)
        return section.body if section else None


# Singleton instance
section_extractor = SectionExtractor()
