"""Logical section segmentation."""

from __future__ import annotations

from dataclasses import dataclass, field

from .config import EngineConfig
from .constants import UNLABELED
from .lines import split_lines
from .markers import detect_markers
from .models import Entry, LogicalSection, MarkerKind, SectionMarker
from .patterns import count_entries, count_other_lines, extract_entries


@dataclass
class _OpenSection:
    """Section being accumulated while walking the markers."""

    label: str
    start_line: int
    kind: MarkerKind | None = None
    skipped_lines: set[int] = field(default_factory=set)


def _close(
    lines: list[str],
    section: _OpenSection,
    end_line: int,
    max_line_length: int,
) -> LogicalSection | None:
    if end_line < section.start_line:
        return None
    content = "\n".join(
        lines[number - 1]
        for number in range(section.start_line, end_line + 1)
        if number not in section.skipped_lines
    )
    return LogicalSection(
        label=section.label,
        start_line=section.start_line,
        end_line=end_line,
        content=content,
        counts=count_entries(content, max_line_length),
        other_count=count_other_lines(content, max_line_length),
    )


def _merge_unlabeled(sections: list[LogicalSection], max_line_length: int) -> list[LogicalSection]:
    merged: list[LogicalSection] = []
    for section in sections:
        previous = merged[-1] if merged else None
        if previous is not None and previous.label == UNLABELED and section.label == UNLABELED:
            content = f"{previous.content}\n{section.content}"
            merged[-1] = LogicalSection(
                label=UNLABELED,
                start_line=previous.start_line,
                end_line=section.end_line,
                content=content,
                counts=count_entries(content, max_line_length),
                other_count=count_other_lines(content, max_line_length),
            )
        else:
            merged.append(section)
    return merged


def segment(
    text: str,
    config: EngineConfig | None = None,
    markers: list[SectionMarker] | None = None,
) -> list[LogicalSection]:
    """Split a document into contiguous logical sections.

    A start marker opens a section whose range begins at the heading line. The
    section runs up to the line before the next start marker, or through the
    end marker that closes it (``# --- End ... --- #`` closes a dashed section,
    ``# @end`` a custom one, ``}`` a function). End markers that close nothing
    are treated as ordinary content. Lines outside any heading form
    ``"Unlabeled"`` sections, and adjacent unlabeled runs are merged.

    The returned sections never overlap and together cover every line of the
    document. Section content excludes the heading and closing marker lines.

    Args:
        text: Full document text.
        config: Configuration providing the line length limit.
        markers: Precomputed markers for `text`; detected when omitted.

    Returns:
        list[LogicalSection]: Sections in document order; empty for an empty
            document.

    Examples:
        segment("alias ll='ls -la'\\nexport PATH=/usr/bin:$PATH\\n")
        # [LogicalSection(label="Unlabeled", start_line=1, end_line=2, ...)]
    """
    config = config or EngineConfig()
    max_line_length = config.max_line_length
    lines = split_lines(text)
    if markers is None:
        markers = detect_markers(text, max_line_length)

    sections: list[LogicalSection] = []
    current = _OpenSection(label=UNLABELED, start_line=1)

    for marker in markers:
        if marker.kind.is_end:
            if current.kind is None or marker.kind.closes is not current.kind:
                continue
            current.skipped_lines.add(marker.line_number)
            closed = _close(lines, current, marker.line_number, max_line_length)
            if closed is not None:
                sections.append(closed)
            current = _OpenSection(label=UNLABELED, start_line=marker.line_number + 1)
            continue

        closed = _close(lines, current, marker.line_number - 1, max_line_length)
        if closed is not None:
            sections.append(closed)
        current = _OpenSection(
            label=marker.name or UNLABELED,
            start_line=marker.line_number,
            kind=marker.kind,
            skipped_lines={marker.line_number},
        )

    closed = _close(lines, current, len(lines), max_line_length)
    if closed is not None:
        sections.append(closed)

    return _merge_unlabeled(sections, max_line_length)


def parse_entries(text: str, config: EngineConfig | None = None) -> list[Entry]:
    """Classify every statement in a document and tag it with its section.

    Heading and closing marker lines are never reported as entries, so a
    function's opening line is represented by its section, not by an entry.

    Returns:
        list[Entry]: Entries in document order with absolute line numbers.
    """
    config = config or EngineConfig()
    lines = split_lines(text)
    markers = detect_markers(text, config.max_line_length)
    marker_lines = {marker.line_number for marker in markers}

    entries: list[Entry] = []
    for section in segment(text, config, markers):
        label = None if section.label == UNLABELED else section.label
        for number in range(section.start_line, section.end_line + 1):
            if number in marker_lines:
                continue
            entries.extend(
                extract_entries(
                    lines[number - 1],
                    section_label=label,
                    first_line=number,
                    max_line_length=config.max_line_length,
                )
            )
    return entries
