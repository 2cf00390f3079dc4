"""
Line item parsing for section bodies.

Turns the body of one section into an ordered list of cleaned bullet
lines, and optionally splits each line into named sub-fields.
"""

import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

# Three interchangeable bullet glyphs
BULLET_MARKERS = ("•", "-", "*")

_BULLET_PREFIX = re.compile(r"^[•\-*]\s*")
_HAS_CONTENT = re.compile(r"[^\W_]")


@dataclass(frozen=True)
class LineItem:
    """A cleaned bullet line plus the detail lines nested under it."""

    text: str
    details: Tuple[str, ...] = ()


class LineItemParser:
    """
    Parses bullet lists out of section bodies.

    Performs:
    - Bullet detection (•, - and * are equivalent)
    - Marker and whitespace stripping
    - Separator line removal (---, ***)
    - Grouping of indented detail lines under their bullet
    - Sub-field decomposition with prioritised patterns
    """

    def clean_line(self, line: str) -> Optional[str]:
        """
        Clean one raw line.

        Returns:
            Text without its bullet marker, or None if the line is not a
            bullet or carries no letters or digits
        """
        stripped = line.strip()
        if not stripped.startswith(BULLET_MARKERS):
            return None
        cleaned = _BULLET_PREFIX.sub("", stripped).strip()
        if not _HAS_CONTENT.search(cleaned):
            return None
        return cleaned

    def parse_lines(
        self,
        body: str,
        min_length: int = 0,
        plain_min_length: Optional[int] = None
    ) -> List[str]:
        """
        Extract cleaned bullet lines in source order.

        Args:
            body: Section body
            min_length: Cleaned lines must be longer than this
            plain_min_length: If set, un-bulleted lines longer than this
                are kept as items too

        Returns:
            List of cleaned lines
        """
        lines = []
        for raw in body.split("\n"):
            cleaned = self.clean_line(raw)
            if cleaned is None and plain_min_length is not None:
                plain = raw.strip()
                if len(plain) > plain_min_length and _HAS_CONTENT.search(plain):
                    cleaned = plain
            if cleaned and len(cleaned) > min_length:
                lines.append(cleaned)
        return lines

    def parse_items(
        self,
        body: str,
        detail_pattern: Optional[re.Pattern] = None,
        start_pattern: Optional[re.Pattern] = None
    ) -> List[LineItem]:
        """
        Extract bullet items together with their detail lines.

        Non-bullet lines following an item are its details. A bullet line
        matching `detail_pattern` is a detail too (models sometimes nest
        "- Price: ..." as a sub-bullet). An un-bulleted line matching
        `start_pattern` opens a new item. Lines before the first item that
        open nothing are ignored.

        Args:
            body: Section body
            detail_pattern: Recognises detail lines
            start_pattern: Recognises un-bulleted item lines

        Returns:
            List of LineItem in source order
        """
        items: List[Tuple[str, List[str]]] = []

        for raw in body.split("\n"):
            stripped = raw.strip()
            if not stripped:
                continue

            cleaned = self.clean_line(raw)
            if cleaned is not None:
                if detail_pattern and detail_pattern.search(cleaned):
                    if items:
                        items[-1][1].append(cleaned)
                else:
                    items.append((cleaned, []))
                continue

            if detail_pattern and detail_pattern.search(stripped):
                if items:
                    items[-1][1].append(stripped)
                continue

            if start_pattern and start_pattern.search(stripped):
                items.append((stripped, []))
            elif items and _HAS_CONTENT.search(stripped):
                items[-1][1].append(stripped)

        return [LineItem(text=text, details=tuple(details)) for text, details in items]

    def decompose(
        self,
        line: str,
        patterns: Sequence[re.Pattern]
    ) -> Optional[Dict[str, str]]:
        """
        Split a line into named sub-fields.

        Patterns are tried in priority order; the first match wins. Empty
        groups are dropped.

        Args:
            line: Cleaned line
            patterns: Regexes with named groups

        Returns:
            Dict of group name to stripped value, or None if nothing matched
        """
        for pattern in patterns:
            match = pattern.search(line)
            if match:
                return {
                    key: value.strip()
                    for key, value in match.groupdict().items()
                    if value and value.strip()
                }
        return None


# Singleton instance
line_item_parser = LineItemParser()
