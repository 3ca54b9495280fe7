from __future__ import annotations

import os

import pytest
from zshrc_sections.lines import split_lines
from zshrc_sections.markers import detect_marker
from zshrc_sections.matcher import find_matching_section
from zshrc_sections.patterns import classify_line
from zshrc_sections.segmenter import segment

atheris = pytest.importorskip("atheris")


def test_classify_and_detect_with_fuzzed_lines():
    data = os.urandom(4096)
    provider = atheris.FuzzedDataProvider(data)
    seen = 0

    for number in range(1, 129):
        if provider.remaining_bytes() == 0:
            break
        line = provider.ConsumeUnicodeNoSurrogates(64).replace("\n", " ")
        for statement in classify_line(line):
            assert statement.name is not None or statement.value is not None
        marker = detect_marker(line, number)
        if marker is not None:
            assert marker.line_number == number
        seen += 1

    assert seen  # ensure we exercised the loop


def test_segment_with_fuzzed_documents():
    data = os.urandom(4096)
    provider = atheris.FuzzedDataProvider(data)

    prefixes = ["# --- ", "# [ ", "# # ", "# section: ", "# @start ", "# @end", "}", "alias "]
    lines = []
    for _ in range(64):
        if provider.remaining_bytes() == 0:
            break
        prefix = prefixes[provider.ConsumeIntInRange(0, len(prefixes) - 1)]
        lines.append(prefix + provider.ConsumeUnicodeNoSurrogates(16).replace("\n", " "))
    text = "\n".join(lines)

    sections = segment(text)
    line_count = len(split_lines(text))

    if line_count:
        assert sections[0].start_line == 1
        assert sections[-1].end_line == line_count
    find_matching_section(text, provider.ConsumeUnicodeNoSurrogates(16))
