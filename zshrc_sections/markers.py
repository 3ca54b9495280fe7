"""Section heading detection."""

from __future__ import annotations

import re

from .constants import (
    BRACKETED_PATTERN,
    CUSTOM_END_PATTERN,
    CUSTOM_START_PATTERN,
    DASHED_END_PATTERN,
    DASHED_START_PATTERN,
    DEFAULT_MAX_LINE_LENGTH,
    FUNCTION_END_PATTERN,
    FUNCTION_START_PATTERN,
    HASH_PATTERN,
    LABELED_PATTERN,
)
from .lines import split_lines
from .models import MarkerKind, SectionMarker

MARKER_PATTERNS: dict[MarkerKind, re.Pattern[str]] = {
    MarkerKind.CUSTOM_START: CUSTOM_START_PATTERN,
    MarkerKind.CUSTOM_END: CUSTOM_END_PATTERN,
    MarkerKind.DASHED_END: DASHED_END_PATTERN,
    MarkerKind.DASHED_START: DASHED_START_PATTERN,
    MarkerKind.BRACKETED: BRACKETED_PATTERN,
    MarkerKind.HASH: HASH_PATTERN,
    MarkerKind.FUNCTION_START: FUNCTION_START_PATTERN,
    MarkerKind.FUNCTION_END: FUNCTION_END_PATTERN,
    MarkerKind.LABELED: LABELED_PATTERN,
}

# Highest priority first; stable for kinds that share a priority.
_DETECTION_ORDER = sorted(MARKER_PATTERNS, key=lambda kind: kind.priority, reverse=True)


def _has_word_character(name: str) -> bool:
    return any(character.isalnum() for character in name)


def detect_marker(
    line: str, line_number: int, max_line_length: int = DEFAULT_MAX_LINE_LENGTH
) -> SectionMarker | None:
    """Recognise a section heading or function boundary on one line.

    Every heading convention is tried in priority order (custom, dashed,
    bracketed, hash, function, labeled) and the first match wins. Start
    markers whose name has no letter or digit, such as ``# ######`` banners,
    are ignored.

    Args:
        line: Line to inspect, without its terminator.
        line_number: One-based position of the line.
        max_line_length: Longer lines are never markers.

    Returns:
        SectionMarker | None: The marker, or None for ordinary lines.

    Examples:
        detect_marker("# --- Git --- #", 1)
        # SectionMarker(kind=MarkerKind.DASHED_START, name="Git", line_number=1)
        detect_marker("# --- End Git --- #", 9).kind  # MarkerKind.DASHED_END
    """
    if len(line) > max_line_length:
        return None

    for kind in _DETECTION_ORDER:
        match = MARKER_PATTERNS[kind].match(line)
        if match is None:
            continue
        name = (match.groupdict().get("name") or "").strip()
        if not kind.is_end and not _has_word_character(name):
            continue
        return SectionMarker(kind=kind, name=name, line_number=line_number)

    return None


def detect_markers(
    text: str, max_line_length: int = DEFAULT_MAX_LINE_LENGTH
) -> list[SectionMarker]:
    """Return every marker in `text`, ordered by line number."""
    markers = []
    for index, line in enumerate(split_lines(text)):
        marker = detect_marker(line, index + 1, max_line_length)
        if marker is not None:
            markers.append(marker)
    return markers


def analyze_section_markers(
    text: str, max_line_length: int = DEFAULT_MAX_LINE_LENGTH
) -> list[SectionMarker]:
    """Return the markers that name addressable sections.

    End markers and function boundaries are bookkeeping and are left out.
    """
    return [
        marker
        for marker in detect_markers(text, max_line_length)
        if marker.kind.is_addressable
    ]
