"""Fuzzy matching of requested section names against existing headings."""

from __future__ import annotations

from typing import NamedTuple

from .constants import (
    CORE_MATCH_SCORE,
    DEFAULT_MAX_LINE_LENGTH,
    EXACT_MATCH_SCORE,
    GENERIC_SECTION_NAMES,
    MIN_PREFIX_CORE_LENGTH,
    PREFIX_MATCH_SCORE,
    SECTION_NAME_SUFFIXES,
)
from .lines import split_lines
from .markers import detect_markers
from .models import SectionMarker, SectionMatch


class MatchCandidate(NamedTuple):
    marker: SectionMarker
    index: int
    score: int


def normalize_section_name(name: str) -> str:
    """Reduce a section name to a compact lowercase token.

    ``&`` becomes ``and`` and every character that is not a letter or digit is
    dropped. Bare generic words such as ``"Config"`` normalise to an empty
    string, which never matches anything.

    Examples:
        normalize_section_name("Git Aliases")  # "gitaliases"
        normalize_section_name("Node & NPM")  # "nodeandnpm"
        normalize_section_name("Section")  # ""
    """
    lowered = name.casefold().replace("&", "and")
    compact = "".join(character for character in lowered if character.isalnum())
    if compact in GENERIC_SECTION_NAMES:
        return ""
    return compact


def extract_core_name(normalized: str) -> str:
    """Strip one known descriptor suffix from a normalised name.

    Examples:
        extract_core_name("gitaliases")  # "git"
        extract_core_name("dockerconfig")  # "docker"
        extract_core_name("aliases")  # "aliases"
    """
    for suffix in SECTION_NAME_SUFFIXES:
        if normalized.endswith(suffix) and len(normalized) > len(suffix):
            return normalized[: -len(suffix)]
    return normalized


def score_match(target_normalized: str, target_core: str, section_name: str) -> int:
    """Score how well an existing section name fits the requested one.

    Returns:
        int: 100 for equal normalised names, 90 for equal cores, 50 when one
            core is a prefix of the other and both have at least three
            characters, otherwise 0. Substring containment alone never scores,
            so ``"Git"`` does not match ``"Digital"``.
    """
    section_normalized = normalize_section_name(section_name)
    if not target_normalized or not section_normalized:
        return 0

    if target_normalized == section_normalized:
        return EXACT_MATCH_SCORE

    section_core = extract_core_name(section_normalized)
    if target_core and section_core and target_core == section_core:
        return CORE_MATCH_SCORE

    if (
        len(target_core) >= MIN_PREFIX_CORE_LENGTH
        and len(section_core) >= MIN_PREFIX_CORE_LENGTH
        and (section_core.startswith(target_core) or target_core.startswith(section_core))
    ):
        return PREFIX_MATCH_SCORE

    return 0


def _section_end_line(markers: list[SectionMarker], index: int, line_count: int) -> int:
    for marker in markers[index + 1 :]:
        if marker.kind.is_function:
            continue
        return marker.line_number - 1
    return line_count


def find_matching_section(
    text: str, target_name: str, max_line_length: int = DEFAULT_MAX_LINE_LENGTH
) -> SectionMatch | None:
    """Find the existing section that new entries named `target_name` belong in.

    Only addressable headings are candidates; end markers and function
    boundaries are skipped. The highest score wins and ties go to the heading
    that appears first. The section ends on the line before the next end
    marker or addressable heading, or on the last line of the document.

    Args:
        text: Full document text.
        target_name: Human-readable section name, e.g. ``"Git Aliases"``.
        max_line_length: Longer lines are never markers.

    Returns:
        SectionMatch | None: The best match, or None when every candidate
            scores zero. No match means a new section should be created.

    Examples:
        find_matching_section("# --- Git --- #\\nalias g='git'\\n", "Git Aliases")
        # SectionMatch(marker=SectionMarker(..., name="Git", ...), end_line=2, score=90)
    """
    markers = detect_markers(text, max_line_length)
    target_normalized = normalize_section_name(target_name)
    target_core = extract_core_name(target_normalized)

    candidates = [
        MatchCandidate(marker, index, score_match(target_normalized, target_core, marker.name))
        for index, marker in enumerate(markers)
        if marker.kind.is_addressable
    ]
    candidates = [candidate for candidate in candidates if candidate.score > 0]
    if not candidates:
        return None

    best = max(candidates, key=lambda candidate: (candidate.score, -candidate.index))
    end_line = _section_end_line(markers, best.index, len(split_lines(text)))
    return SectionMatch(marker=best.marker, end_line=end_line, score=best.score)
