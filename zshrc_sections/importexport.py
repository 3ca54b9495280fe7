"""Sharing aliases and exports between startup files as JSON.

The exchange format is a single object::

    {
      "version": 1,
      "exportedAt": "2024-05-01T12:00:00.000Z",
      "aliases": [{"name": "gst", "command": "git status"}],
      "exports": [{"variable": "EDITOR", "value": "nvim"}]
    }

Both lists are optional, but an import needs at least one entry. Values are
stored as the literal text the shell would see, so they can be re-quoted
safely when merged into another document.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone

from .config import EngineConfig
from .exceptions import ImportFormatError
from .models import AddResult, AliasDefinition, Entry, EntryKind, ExportDefinition
from .patterns import decode_shell_word
from .segmenter import parse_entries
from .validation import is_valid_alias_name, is_valid_variable_name
from .writer import SectionWriter

logger = logging.getLogger(__name__)

EXPORT_FORMAT_VERSION = 1

_ASSIGNMENT_PATTERN = re.compile(
    r"^\s*(?:alias\s+(?:-[gsS]\s+)?|export\s+|typeset\s+-x\s+)[^=\s]+=(?P<value>.*?)\s*$"
)


@dataclass
class ImportData:
    """Entries read from JSON import data."""

    aliases: list[AliasDefinition] = field(default_factory=list)
    exports: list[ExportDefinition] = field(default_factory=list)

    @property
    def entries(self) -> list[AliasDefinition | ExportDefinition]:
        return [*self.aliases, *self.exports]


@dataclass(frozen=True)
class ImportCheck:
    """Outcome of checking JSON import data without importing it.

    Attributes:
        valid: Whether the data can be imported.
        alias_count: Number of aliases found.
        export_count: Number of exports found.
        error: Why the data was rejected, when it was.
    """

    valid: bool
    alias_count: int = 0
    export_count: int = 0
    error: str | None = None


def _timestamp(moment: datetime | None) -> str:
    moment = moment or datetime.now(timezone.utc)
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace(
        "+00:00", "Z"
    )


def export_entries_to_json(
    aliases: Sequence[AliasDefinition] = (),
    exports: Sequence[ExportDefinition] = (),
    exported_at: datetime | None = None,
) -> str:
    """Serialise aliases and exports in the exchange format.

    Empty lists are left out of the output.
    """
    data: dict[str, object] = {
        "version": EXPORT_FORMAT_VERSION,
        "exportedAt": _timestamp(exported_at),
    }
    if aliases:
        data["aliases"] = [{"name": alias.name, "command": alias.value} for alias in aliases]
    if exports:
        data["exports"] = [
            {"variable": export.name, "value": export.value} for export in exports
        ]
    return json.dumps(data, indent=2)


def _literal_value(entry: Entry) -> str:
    match = _ASSIGNMENT_PATTERN.match(entry.original_line)
    if match:
        decoded = decode_shell_word(match.group("value"))
        if decoded is not None:
            return decoded
    return entry.value or ""


def collect_document_entries(
    content: str, config: EngineConfig | None = None
) -> tuple[list[AliasDefinition], list[ExportDefinition]]:
    """Return the active aliases and exports of a document, in document order.

    Commented-out definitions are not included.
    """
    aliases: list[AliasDefinition] = []
    exports: list[ExportDefinition] = []
    for entry in parse_entries(content, config):
        if entry.name is None:
            continue
        if entry.kind is EntryKind.ALIAS:
            aliases.append(AliasDefinition(entry.name, _literal_value(entry)))
        elif entry.kind is EntryKind.EXPORT:
            exports.append(ExportDefinition(entry.name, _literal_value(entry)))
    return aliases, exports


def _read_items(data: dict, key: str, name_field: str, value_field: str) -> list[tuple]:
    items = data.get(key, [])
    if not isinstance(items, list):
        raise ImportFormatError(f'"{key}" must be a list')

    parsed = []
    for position, item in enumerate(items):
        if not isinstance(item, dict):
            raise ImportFormatError(f'Malformed entry {position} in "{key}"')
        name = item.get(name_field)
        value = item.get(value_field)
        description = item.get("description")
        if not isinstance(name, str) or not isinstance(value, str):
            raise ImportFormatError(
                f'Entry {position} in "{key}" needs string "{name_field}" and "{value_field}" fields'
            )
        if description is not None and not isinstance(description, str):
            raise ImportFormatError(f'Entry {position} in "{key}" has a non-string description')
        parsed.append((name, value, description))
    return parsed


def parse_import_json(text: str) -> ImportData:
    """Read and validate JSON import data.

    Raises:
        ImportFormatError: If the text is not valid JSON, uses another format
            version, holds no entries, or names an alias or variable that is
            not safe to write.
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as error:
        raise ImportFormatError(f"Invalid JSON: {error}") from error
    if not isinstance(data, dict):
        raise ImportFormatError("Import data must be a JSON object")
    if data.get("version") != EXPORT_FORMAT_VERSION:
        raise ImportFormatError("Unsupported export format version")

    imported = ImportData(
        aliases=[
            AliasDefinition(name, value, description)
            for name, value, description in _read_items(data, "aliases", "name", "command")
        ],
        exports=[
            ExportDefinition(name, value, description)
            for name, value, description in _read_items(data, "exports", "variable", "value")
        ],
    )
    if not imported.entries:
        raise ImportFormatError("No aliases or exports found in import data")

    invalid_aliases = [alias.name for alias in imported.aliases if not is_valid_alias_name(alias.name)]
    if invalid_aliases:
        raise ImportFormatError(f"Invalid alias name(s): {', '.join(invalid_aliases)}")
    invalid_variables = [
        export.name for export in imported.exports if not is_valid_variable_name(export.name)
    ]
    if invalid_variables:
        raise ImportFormatError(f"Invalid variable name(s): {', '.join(invalid_variables)}")

    logger.debug(
        "Parsed import data: %d aliases, %d exports", len(imported.aliases), len(imported.exports)
    )
    return imported


def validate_import_json(text: str) -> ImportCheck:
    """Check JSON import data without touching any document."""
    try:
        imported = parse_import_json(text)
    except ImportFormatError as error:
        return ImportCheck(valid=False, error=str(error))
    return ImportCheck(
        valid=True, alias_count=len(imported.aliases), export_count=len(imported.exports)
    )


def import_entries_from_json(
    writer: SectionWriter, text: str, section_name: str, attribution: str | None = None
) -> AddResult:
    """Merge the entries of JSON import data into the section best matching `section_name`.

    Raises:
        ImportFormatError: If the import data is rejected. Nothing is read or
            written in that case.
        ReadError: If the document cannot be read.
        WriteError: If the document cannot be written.
    """
    imported = parse_import_json(text)
    return writer.add_entries(section_name, imported.entries, attribution=attribution)
