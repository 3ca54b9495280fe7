"""Data models for zshrc-sections."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Literal


class EntryKind(Enum):
    """Statement kinds recognised in shell startup files.

    Declaration order is the order in which lines are classified.
    """

    ALIAS = "alias"
    EXPORT = "export"
    EVAL = "eval"
    SETOPT = "setopt"
    PLUGIN = "plugin"
    FUNCTION = "function"
    SOURCE = "source"
    AUTOLOAD = "autoload"
    FPATH = "fpath"
    PATH = "path"
    THEME = "theme"
    COMPLETION = "completion"
    HISTORY = "history"
    KEYBINDING = "keybinding"


class SectionStyle(Enum):
    """Heading families a document can be written in."""

    DASHED = "dashed"
    BRACKETED = "bracketed"
    HASH = "hash"
    LABELED = "labeled"
    CUSTOM = "custom"

    @property
    def is_paired(self) -> bool:
        """Whether sections of this style carry a closing footer."""
        return self in (SectionStyle.DASHED, SectionStyle.CUSTOM)


class MarkerKind(Enum):
    """Kinds of section markers.

    Attributes:
        LABELED: ``# section: Name``
        DASHED_START: ``# --- Name --- #``
        DASHED_END: ``# --- End Name --- #``
        BRACKETED: ``# [ Name ]``
        HASH: ``# # Name``
        CUSTOM_START: ``# @start Name``
        CUSTOM_END: ``# @end Name``
        FUNCTION_START: ``name() {``
        FUNCTION_END: ``}``
    """

    LABELED = "labeled"
    DASHED_START = "dashed_start"
    DASHED_END = "dashed_end"
    BRACKETED = "bracketed"
    HASH = "hash"
    CUSTOM_START = "custom_start"
    CUSTOM_END = "custom_end"
    FUNCTION_START = "function_start"
    FUNCTION_END = "function_end"

    @property
    def priority(self) -> int:
        return _MARKER_PRIORITIES[self]

    @property
    def is_end(self) -> bool:
        return self in (MarkerKind.DASHED_END, MarkerKind.CUSTOM_END, MarkerKind.FUNCTION_END)

    @property
    def is_function(self) -> bool:
        return self in (MarkerKind.FUNCTION_START, MarkerKind.FUNCTION_END)

    @property
    def is_addressable(self) -> bool:
        """Whether the marker names a section that content can be merged into."""
        return not self.is_end and not self.is_function

    @property
    def closes(self) -> MarkerKind | None:
        """The start kind this end marker closes, if any."""
        return _CLOSING_PAIRS.get(self)

    @property
    def style(self) -> SectionStyle | None:
        return _MARKER_STYLES.get(self)


_MARKER_PRIORITIES = {
    MarkerKind.CUSTOM_START: 6,
    MarkerKind.CUSTOM_END: 6,
    MarkerKind.DASHED_START: 5,
    MarkerKind.DASHED_END: 5,
    MarkerKind.BRACKETED: 4,
    MarkerKind.HASH: 3,
    MarkerKind.FUNCTION_START: 2,
    MarkerKind.FUNCTION_END: 2,
    MarkerKind.LABELED: 1,
}

_CLOSING_PAIRS = {
    MarkerKind.DASHED_END: MarkerKind.DASHED_START,
    MarkerKind.CUSTOM_END: MarkerKind.CUSTOM_START,
    MarkerKind.FUNCTION_END: MarkerKind.FUNCTION_START,
}

_MARKER_STYLES = {
    MarkerKind.DASHED_START: SectionStyle.DASHED,
    MarkerKind.DASHED_END: SectionStyle.DASHED,
    MarkerKind.BRACKETED: SectionStyle.BRACKETED,
    MarkerKind.HASH: SectionStyle.HASH,
    MarkerKind.LABELED: SectionStyle.LABELED,
    MarkerKind.CUSTOM_START: SectionStyle.CUSTOM,
    MarkerKind.CUSTOM_END: SectionStyle.CUSTOM,
}


@dataclass(frozen=True)
class SectionMarker:
    """A recognised heading or function boundary.

    Attributes:
        kind: Marker kind.
        name: Section name as written (empty for bare end markers).
        line_number: One-based line index.
    """

    kind: MarkerKind
    name: str
    line_number: int


@dataclass(frozen=True)
class Statement:
    """Fields extracted from one classified line.

    `name` and `value` carry kind-specific fields: alias name and command,
    export/history variable and value, plugin/function/theme/autoload name,
    and the command, option, path or directory for the remaining kinds.
    """

    kind: EntryKind
    name: str | None = None
    value: str | None = None


@dataclass(frozen=True)
class Entry:
    """A classified statement located in a document.

    Attributes:
        kind: Statement kind.
        name: Identifier field, when the kind has one.
        value: Value field, when the kind has one.
        line_number: One-based line index in the document.
        original_line: The line as written.
        section_label: Label of the enclosing logical section, if known.
    """

    kind: EntryKind
    name: str | None
    value: str | None
    line_number: int
    original_line: str
    section_label: str | None = None


@dataclass
class LogicalSection:
    """A contiguous block of the document.

    Attributes:
        label: Heading name, or ``"Unlabeled"``.
        start_line: First line of the block (one-based, heading included).
        end_line: Last line of the block (inclusive).
        content: Block text without its heading and closing marker lines.
        counts: Number of entries per kind found in `content`.
        other_count: Non-blank, non-comment lines that matched no kind.
    """

    label: str
    start_line: int
    end_line: int
    content: str
    counts: dict[EntryKind, int] = field(default_factory=dict)
    other_count: int = 0

    def count(self, kind: EntryKind) -> int:
        return self.counts.get(kind, 0)

    @property
    def total_entries(self) -> int:
        return sum(self.counts.values())


@dataclass(frozen=True)
class SectionMatch:
    """Best existing section for a requested name.

    Attributes:
        marker: Heading marker of the matched section.
        end_line: Last line (one-based, inclusive) that belongs to the section.
        score: Match quality (100 exact, 90 core, 50 prefix).
    """

    marker: SectionMarker
    end_line: int
    score: int


@dataclass(frozen=True)
class SectionHeader:
    """Heading lines rendered for a new section."""

    start: str
    end: str | None = None


@dataclass(frozen=True)
class AliasDefinition:
    """An alias to be written, as ``alias name='value'``."""

    name: str
    value: str
    description: str | None = None


@dataclass(frozen=True)
class ExportDefinition:
    """An environment variable to be written, as ``export NAME="value"``."""

    name: str
    value: str
    description: str | None = None


@dataclass
class AddResult:
    """Outcome of merging entries into a document.

    Attributes:
        added_to: ``"existing"`` when merged into a matched section, ``"new"``
            when a section was created.
        section_name: Name of the section that received the entries.
        message: Human-readable summary.
        history_recorded: False when the undo snapshot could not be stored.
    """

    added_to: Literal["existing", "new"]
    section_name: str
    message: str
    history_recorded: bool = True


@dataclass(frozen=True)
class HistoryEntry:
    """Snapshot captured before a mutation.

    Attributes:
        timestamp: Capture time in milliseconds since the epoch.
        description: What the mutation did.
        previous_content: Full document text before the mutation.
        file_path: Document the snapshot belongs to.
    """

    timestamp: int
    description: str
    previous_content: str
    file_path: str


@dataclass
class ValidationResult:
    """Advisory findings for a value or document.

    Attributes:
        warnings: Non-blocking issues.
        errors: Blocking issues.
    """

    warnings: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors
