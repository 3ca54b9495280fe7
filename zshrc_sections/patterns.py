"""Line classification for shell startup files.

Each statement kind owns exactly one anchored pattern. A line is tested
against the patterns in `EntryKind` declaration order and takes the first
kind that both matches and yields usable fields; anything else is inert
content. Counting is implemented on top of extraction so both always agree.
"""

from __future__ import annotations

import re
import shlex
from collections.abc import Callable
from typing import NamedTuple

from .constants import (
    ALIAS_PATTERN,
    AUTOLOAD_PATTERN,
    COMPLETION_PATTERN,
    DEFAULT_MAX_LINE_LENGTH,
    EVAL_PATTERN,
    EXPORT_PATTERN,
    FPATH_PATTERN,
    FUNCTION_PATTERN,
    HISTORY_PATTERN,
    KEYBINDING_PATTERN,
    PATH_PATTERN,
    PLUGIN_PATTERN,
    SETOPT_PATTERN,
    SOURCE_PATTERN,
    THEME_PATTERN,
)
from .lines import is_blank, is_comment, split_lines
from .models import Entry, EntryKind, Statement


class EntryPattern(NamedTuple):
    """A statement kind, its pattern, and the field extractor for a match."""

    kind: EntryKind
    pattern: re.Pattern[str]
    extract: Callable[[re.Match[str]], list[Statement]]


def unquote(value: str) -> str:
    """Strip one pair of matching surrounding quotes.

    Examples:
        unquote("'ls -la'")  # "ls -la"
        unquote('"$HOME/bin"')  # "$HOME/bin"
        unquote("plain")  # "plain"
    """
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
        return value[1:-1]
    return value


def decode_shell_word(value: str) -> str | None:
    """Return the literal text the shell assigns for `value`.

    Quotes and backslash escapes are removed the way zsh removes them, and a
    trailing comment is dropped. Returns None when the value is not a single
    shell word, e.g. unbalanced quotes or unquoted spaces.

    Examples:
        decode_shell_word("'ls -la'  # long listing")  # "ls -la"
        decode_shell_word("ls -la")  # None
    """
    try:
        words = shlex.split(value, comments=True, posix=True)
    except ValueError:
        return None
    if len(words) != 1:
        return None
    return words[0]


def _first_group(match: re.Match[str], *names: str) -> str | None:
    for name in names:
        value = match.group(name)
        if value is not None:
            return value
    return None


def _extract_alias(match: re.Match[str]) -> list[Statement]:
    command = _first_group(match, "single", "double", "bare")
    if not command:
        return []
    return [Statement(EntryKind.ALIAS, name=match.group("name"), value=command)]


def _extract_export(match: re.Match[str]) -> list[Statement]:
    raw_value = match.group("value")
    if not raw_value:
        return []
    return [Statement(EntryKind.EXPORT, name=match.group("name"), value=unquote(raw_value))]


def _value_extractor(kind: EntryKind) -> Callable[[re.Match[str]], list[Statement]]:
    def extract(match: re.Match[str]) -> list[Statement]:
        value = match.group("value")
        return [Statement(kind, value=value)] if value else []

    return extract


def _name_extractor(kind: EntryKind) -> Callable[[re.Match[str]], list[Statement]]:
    def extract(match: re.Match[str]) -> list[Statement]:
        name = match.group("name")
        return [Statement(kind, name=name)] if name else []

    return extract


def _list_extractor(
    kind: EntryKind, as_name: bool
) -> Callable[[re.Match[str]], list[Statement]]:
    # Plugin and fpath arrays produce one statement per item.
    def extract(match: re.Match[str]) -> list[Statement]:
        items = match.group("value").split()
        if as_name:
            return [Statement(kind, name=item) for item in items]
        return [Statement(kind, value=item) for item in items]

    return extract


def _extract_theme(match: re.Match[str]) -> list[Statement]:
    theme = _first_group(match, "double", "single", "bare")
    return [Statement(EntryKind.THEME, name=theme)] if theme else []


def _extract_history(match: re.Match[str]) -> list[Statement]:
    return [Statement(EntryKind.HISTORY, name=match.group("name"), value=match.group("value"))]


ENTRY_PATTERNS: tuple[EntryPattern, ...] = (
    EntryPattern(EntryKind.ALIAS, ALIAS_PATTERN, _extract_alias),
    EntryPattern(EntryKind.EXPORT, EXPORT_PATTERN, _extract_export),
    EntryPattern(EntryKind.EVAL, EVAL_PATTERN, _value_extractor(EntryKind.EVAL)),
    EntryPattern(EntryKind.SETOPT, SETOPT_PATTERN, _value_extractor(EntryKind.SETOPT)),
    EntryPattern(EntryKind.PLUGIN, PLUGIN_PATTERN, _list_extractor(EntryKind.PLUGIN, True)),
    EntryPattern(EntryKind.FUNCTION, FUNCTION_PATTERN, _name_extractor(EntryKind.FUNCTION)),
    EntryPattern(EntryKind.SOURCE, SOURCE_PATTERN, _value_extractor(EntryKind.SOURCE)),
    EntryPattern(EntryKind.AUTOLOAD, AUTOLOAD_PATTERN, _name_extractor(EntryKind.AUTOLOAD)),
    EntryPattern(EntryKind.FPATH, FPATH_PATTERN, _list_extractor(EntryKind.FPATH, False)),
    EntryPattern(EntryKind.PATH, PATH_PATTERN, _value_extractor(EntryKind.PATH)),
    EntryPattern(EntryKind.THEME, THEME_PATTERN, _extract_theme),
    EntryPattern(
        EntryKind.COMPLETION, COMPLETION_PATTERN, _value_extractor(EntryKind.COMPLETION)
    ),
    EntryPattern(EntryKind.HISTORY, HISTORY_PATTERN, _extract_history),
    EntryPattern(
        EntryKind.KEYBINDING, KEYBINDING_PATTERN, _value_extractor(EntryKind.KEYBINDING)
    ),
)


def classify_line(line: str, max_line_length: int = DEFAULT_MAX_LINE_LENGTH) -> list[Statement]:
    """Classify a single line.

    Args:
        line: One line of shell configuration, without its terminator.
        max_line_length: Lines longer than this are skipped.

    Returns:
        list[Statement]: Extracted statements, all of the same kind. Empty when
            the line is not a recognised statement. Plugin and fpath arrays
            yield one statement per item.

    Examples:
        classify_line("alias ll='ls -la'")
        # [Statement(kind=EntryKind.ALIAS, name="ll", value="ls -la")]
        classify_line("echo hello")  # []
    """
    if len(line) > max_line_length or is_blank(line):
        return []

    for entry_pattern in ENTRY_PATTERNS:
        match = entry_pattern.pattern.match(line)
        if match is None:
            continue
        statements = entry_pattern.extract(match)
        if statements:
            return statements

    return []


def extract_entries(
    text: str,
    section_label: str | None = None,
    first_line: int = 1,
    max_line_length: int = DEFAULT_MAX_LINE_LENGTH,
) -> list[Entry]:
    """Classify every line of `text`.

    Args:
        text: Block of shell configuration.
        section_label: Label attached to every returned entry.
        first_line: Line number assigned to the first line of `text`.
        max_line_length: Lines longer than this are skipped.

    Returns:
        list[Entry]: Entries in document order.
    """
    entries: list[Entry] = []
    for offset, line in enumerate(split_lines(text)):
        for statement in classify_line(line, max_line_length):
            entries.append(
                Entry(
                    kind=statement.kind,
                    name=statement.name,
                    value=statement.value,
                    line_number=first_line + offset,
                    original_line=line,
                    section_label=section_label,
                )
            )
    return entries


def count_entries(
    text: str, max_line_length: int = DEFAULT_MAX_LINE_LENGTH
) -> dict[EntryKind, int]:
    """Count entries of every kind in `text`.

    The count for a kind always equals the number of entries of that kind
    returned by `extract_entries` for the same text.

    Returns:
        dict[EntryKind, int]: A count for every `EntryKind`, zeros included.
    """
    counts = {kind: 0 for kind in EntryKind}
    for entry in extract_entries(text, max_line_length=max_line_length):
        counts[entry.kind] += 1
    return counts


def count_other_lines(text: str, max_line_length: int = DEFAULT_MAX_LINE_LENGTH) -> int:
    """Count non-blank, non-comment lines that match no statement kind."""
    return sum(
        1
        for line in split_lines(text)
        if not is_blank(line)
        and not is_comment(line)
        and not classify_line(line, max_line_length)
    )
