"""Merging new aliases and exports into a shell startup file."""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from .config import EngineConfig
from .constants import DEFAULT_MAX_LINE_LENGTH
from .exceptions import HistoryError, InvalidEntryError
from .filesystem import ConfigFile
from .history import HistoryStore
from .lines import detect_newline, is_blank, join_lines, split_lines
from .markers import detect_marker, detect_markers
from .matcher import find_matching_section
from .models import AddResult, AliasDefinition, ExportDefinition, SectionHeader, SectionStyle
from .validation import is_valid_alias_name, is_valid_variable_name

logger = logging.getLogger(__name__)

NewEntry = AliasDefinition | ExportDefinition

SECTION_TEMPLATES: dict[SectionStyle, Callable[[str], SectionHeader]] = {
    SectionStyle.DASHED: lambda name: SectionHeader(
        start=f"# --- {name} --- #", end=f"# --- End {name} --- #"
    ),
    SectionStyle.BRACKETED: lambda name: SectionHeader(start=f"# [ {name} ]"),
    SectionStyle.HASH: lambda name: SectionHeader(start=f"# # {name}"),
    SectionStyle.LABELED: lambda name: SectionHeader(start=f"# section: {name}"),
    SectionStyle.CUSTOM: lambda name: SectionHeader(start=f"# @start {name}", end=f"# @end {name}"),
}


def detect_section_style(
    text: str,
    default: SectionStyle = SectionStyle.DASHED,
    max_line_length: int = DEFAULT_MAX_LINE_LENGTH,
) -> SectionStyle:
    """Return the heading style the document uses most.

    Headings and the end markers of paired styles both count towards their
    family; function boundaries are ignored. On a tie the style seen first
    wins.

    Examples:
        detect_section_style("# [ Git ]\\n# [ Docker ]\\n")  # SectionStyle.BRACKETED
        detect_section_style("alias g='git'\\n")  # SectionStyle.DASHED
    """
    styles = Counter(
        marker.kind.style
        for marker in detect_markers(text, max_line_length)
        if marker.kind.style is not None
    )
    if not styles:
        return default
    # Counter.most_common keeps insertion order among equal counts.
    return styles.most_common(1)[0][0]


def render_section_header(name: str, style: SectionStyle = SectionStyle.DASHED) -> SectionHeader:
    """Render the heading (and footer, for paired styles) of a new section.

    Examples:
        render_section_header("Git Aliases")
        # SectionHeader(start="# --- Git Aliases --- #", end="# --- End Git Aliases --- #")
    """
    return SECTION_TEMPLATES[style](name)


def quote_single(value: str) -> str:
    """Wrap `value` in single quotes, closing and reopening around embedded ones.

    Examples:
        quote_single("don't")  # "'don'\\\\''t'"
    """
    return "'" + value.replace("'", "'\\''") + "'"


def quote_double(value: str) -> str:
    """Wrap `value` in double quotes, escaping backslashes and double quotes.

    Parameter and command expansion stay active, so ``$HOME/bin:$PATH`` keeps
    its meaning.
    """
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def comment_line(text: str) -> str:
    """Render free text as a single comment line that is never a section marker.

    Leading ``#`` characters are dropped and whitespace is collapsed. Text
    that would still read as a heading, such as ``[ Tools ]`` or
    ``section: Tools``, gets a ``#:`` prefix instead of ``#``.

    Examples:
        comment_line("## Status")  # "# Status"
        comment_line("--- Tools ---")  # "#: --- Tools ---"
    """
    body = " ".join(text.split()).lstrip("# ")
    line = f"# {body}".rstrip()
    if detect_marker(line, 1) is not None:
        return f"#: {body}"
    return line


def format_entry_lines(entries: Sequence[NewEntry], include_comments: bool = True) -> list[str]:
    """Render aliases and exports as shell lines.

    Raises:
        InvalidEntryError: If an alias or variable name is not safe to write.
    """
    lines: list[str] = []
    for entry in entries:
        rendered = render_entry(entry)
        if include_comments and entry.description and entry.description.strip():
            lines.append(comment_line(entry.description))
        lines.append(rendered)
    return lines


def render_entry(entry: NewEntry) -> str:
    """Render one alias or export definition, without its description.

    Raises:
        InvalidEntryError: If the alias or variable name is not safe to write.
    """
    if isinstance(entry, AliasDefinition):
        if not is_valid_alias_name(entry.name):
            raise InvalidEntryError("alias", entry.name)
        return f"alias {entry.name}={quote_single(entry.value)}"
    if not is_valid_variable_name(entry.name):
        raise InvalidEntryError("export", entry.name)
    return f"export {entry.name}={quote_double(entry.value)}"


def describe_entries(entries: Sequence[NewEntry]) -> str:
    """Summarise entries for messages, e.g. ``"3 aliases"`` or ``"1 export"``."""
    count = len(entries)
    if all(isinstance(entry, AliasDefinition) for entry in entries):
        noun = "alias" if count == 1 else "aliases"
    elif all(isinstance(entry, ExportDefinition) for entry in entries):
        noun = "export" if count == 1 else "exports"
    else:
        noun = "entry" if count == 1 else "entries"
    return f"{count} {noun}"


def attribution_comment(section_name: str, attribution: str | None = None) -> str:
    if attribution:
        return comment_line(f"Added from {section_name} ({attribution})")
    return comment_line(f"Added from {section_name}")


@dataclass(frozen=True)
class PlannedAddition:
    """A computed, not yet persisted, addition.

    Attributes:
        content: Full document text after the addition.
        description: History description for the change.
        result: Outcome to report once the content is written.
    """

    content: str
    description: str
    result: AddResult


def plan_addition(
    content: str,
    section_name: str,
    entries: Sequence[NewEntry],
    attribution: str | None = None,
    default_style: SectionStyle = SectionStyle.DASHED,
    max_line_length: int = DEFAULT_MAX_LINE_LENGTH,
) -> PlannedAddition:
    """Compute the document produced by adding `entries` under `section_name`.

    When an existing section matches the name, the entries go after its last
    non-blank line, preceded by a blank separator and an attribution comment.
    Blank lines that trail the section before its end boundary are skipped
    over, so they stay between the new entries and the next heading.
    Otherwise a new section in the document's dominant heading style is
    appended to the end of the document. Entries are never deduplicated.

    Args:
        content: Current document text.
        section_name: Requested section, e.g. ``"Git Aliases"``.
        entries: Aliases and exports to add.
        attribution: Where the entries come from, e.g. ``"Oh My Zsh"``.
        default_style: Heading style for documents without headings.
        max_line_length: Longer lines are never markers.

    Raises:
        ValueError: If `entries` is empty or `section_name` is blank.
        InvalidEntryError: If an alias or variable name is not safe to write.
    """
    if not entries:
        raise ValueError("No entries to add")
    section_name = section_name.strip()
    if not section_name:
        raise ValueError("Section name must not be empty")

    entry_lines = format_entry_lines(entries)
    summary = describe_entries(entries)
    comment = attribution_comment(section_name, attribution)
    lines = split_lines(content)
    newline = detect_newline(content)

    match = find_matching_section(content, section_name, max_line_length)
    if match is not None:
        insert_at = match.end_line
        while insert_at > match.marker.line_number and is_blank(lines[insert_at - 1]):
            insert_at -= 1

        block = []
        if insert_at > 0 and not is_blank(lines[insert_at - 1]):
            block.append("")
        block.append(comment)
        block.extend(entry_lines)

        new_lines = lines[:insert_at] + block + lines[insert_at:]
        trailing_newline = content.endswith("\n") or insert_at == len(lines)
        existing_name = match.marker.name
        return PlannedAddition(
            content=join_lines(new_lines, trailing_newline, newline),
            description=f'Add {summary} to "{existing_name}"',
            result=AddResult(
                added_to="existing",
                section_name=existing_name,
                message=f'Added {summary} to existing section "{existing_name}"',
            ),
        )

    style = detect_section_style(content, default_style, max_line_length)
    header = render_section_header(section_name, style)
    block = [header.start, "", comment, *entry_lines]
    if header.end is not None:
        block.extend(["", header.end])

    new_lines = list(lines)
    if new_lines and not is_blank(new_lines[-1]):
        new_lines.append("")
    new_lines.extend(block)
    return PlannedAddition(
        content=join_lines(new_lines, True, newline),
        description=f'Create section "{section_name}" with {summary}',
        result=AddResult(
            added_to="new",
            section_name=section_name,
            message=f'Created new section "{section_name}" with {summary}',
        ),
    )


class SectionWriter:
    """Adds entries to a `ConfigFile`, recording an undo snapshot first.

    Args:
        config_file: Document storage.
        history: Undo history for `config_file`.
        config: Engine configuration (default heading style, line limit).
        warn: Optional callback for non-fatal warnings.
    """

    def __init__(
        self,
        config_file: ConfigFile,
        history: HistoryStore,
        config: EngineConfig | None = None,
        warn: Callable[[str], None] | None = None,
    ):
        self.config_file = config_file
        self.history = history
        self.config = config or EngineConfig()
        self.warn = warn

    def add_entries(
        self,
        section_name: str,
        entries: Sequence[NewEntry],
        attribution: str | None = None,
    ) -> AddResult:
        """Merge `entries` into the best matching section or a new one.

        The document is read, the addition is computed in memory, a snapshot
        of the current text is recorded, and only then is the new text
        written. If the write fails the snapshot is discarded and the error
        propagates unchanged. If the snapshot cannot be stored the write still
        happens and `AddResult.history_recorded` is False.

        Raises:
            ReadError: If the document cannot be read.
            WriteError: If the document cannot be written.
            ValueError: If `entries` is empty or an entry name is invalid.
        """
        content = self.config_file.read_raw()
        planned = plan_addition(
            content,
            section_name,
            entries,
            attribution=attribution,
            default_style=SectionStyle(self.config.default_style),
            max_line_length=self.config.max_line_length,
        )
        result = planned.result

        snapshot = None
        try:
            snapshot = self.history.record(planned.description, content, self.history.file_path)
        except HistoryError as error:
            logger.warning("Could not record history for %r: %s", planned.description, error)
            if self.warn is not None:
                self.warn(f"Warning: undo history was not saved ({error})")
            result.history_recorded = False

        try:
            self.config_file.write(planned.content)
        except OSError:
            if snapshot is not None:
                self._discard_snapshot(snapshot)
            raise

        logger.info(result.message)
        return result

    def _discard_snapshot(self, snapshot) -> None:
        try:
            self.history.discard(snapshot)
        except HistoryError as error:
            logger.warning("Could not discard history entry %r: %s", snapshot.description, error)
