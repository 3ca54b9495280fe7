"""In-place edits to individual aliases and exports."""

from __future__ import annotations

import logging
import re
from collections.abc import Callable

from .exceptions import EntryNotFoundError, HistoryError, InvalidEntryError
from .filesystem import ConfigFile
from .history import HistoryStore
from .lines import detect_newline, join_lines, split_lines
from .models import AliasDefinition, EntryKind, ExportDefinition
from .writer import render_entry

logger = logging.getLogger(__name__)

COMMENT_PREFIX = "# "

_KEYWORDS = {
    EntryKind.ALIAS: r"alias\s+(?:-[gsS]\s+)?",
    EntryKind.EXPORT: r"export\s+",
}

_DEFINITIONS = {
    EntryKind.ALIAS: AliasDefinition,
    EntryKind.EXPORT: ExportDefinition,
}

_UNCOMMENT_PATTERN = re.compile(r"^(\s*)#\s*")


def entry_pattern(kind: EntryKind, key: str) -> re.Pattern[str]:
    """Pattern matching the definition of `key`, commented out or not.

    Raises:
        InvalidEntryError: If `kind` is neither alias nor export.
    """
    keyword = _KEYWORDS.get(kind)
    if keyword is None:
        raise InvalidEntryError(kind.value, key)
    return re.compile(rf"^\s*(?:#\s*)?{keyword}{re.escape(key)}=")


def is_commented(line: str) -> bool:
    return line.lstrip().startswith("#")


def _find_line(lines: list[str], pattern: re.Pattern[str]) -> int | None:
    for index, line in enumerate(lines):
        if line and pattern.match(line):
            return index
    return None


class EntryEditor:
    """Line-level edits on a `ConfigFile`, each recorded in history.

    Args:
        config_file: Document storage.
        history: Undo history for `config_file`.
        warn: Optional callback for non-fatal warnings.
    """

    def __init__(
        self,
        config_file: ConfigFile,
        history: HistoryStore,
        warn: Callable[[str], None] | None = None,
    ):
        self.config_file = config_file
        self.history = history
        self.warn = warn

    def toggle_entry(self, kind: EntryKind, key: str) -> bool:
        """Comment out an active definition or restore a commented one.

        Only the first definition of `key` is changed. Leading indentation is
        kept in both directions.

        Returns:
            bool: True when the entry is now active, False when disabled.

        Raises:
            EntryNotFoundError: If no definition of `key` exists.
            ReadError: If the document cannot be read.
            WriteError: If the document cannot be written.
        """
        content = self.config_file.read_raw()
        lines = split_lines(content)
        index = _find_line(lines, entry_pattern(kind, key))
        if index is None:
            raise EntryNotFoundError(kind.value, key)

        line = lines[index]
        if is_commented(line):
            lines[index] = _UNCOMMENT_PATTERN.sub(r"\1", line, count=1)
            action = "Enable"
        else:
            stripped = line.lstrip()
            lines[index] = f"{line[: len(line) - len(stripped)]}{COMMENT_PREFIX}{stripped}"
            action = "Disable"

        self._commit(content, lines, f'{action} {kind.value} "{key}"')
        return action == "Enable"

    def delete_entry(self, kind: EntryKind, key: str) -> None:
        """Remove the first definition of `key`, commented out or not.

        Raises:
            EntryNotFoundError: If no definition of `key` exists.
            ReadError: If the document cannot be read.
            WriteError: If the document cannot be written.
        """
        content = self.config_file.read_raw()
        lines = split_lines(content)
        index = _find_line(lines, entry_pattern(kind, key))
        if index is None:
            raise EntryNotFoundError(kind.value, key)

        del lines[index]
        self._commit(content, lines, f'Delete {kind.value} "{key}"')

    def edit_entry(self, kind: EntryKind, key: str, value: str, new_key: str | None = None) -> None:
        """Replace the value (and optionally the name) of the first definition of `key`.

        The line is rewritten in place with the same quoting as newly added
        entries. Indentation is kept, and a commented-out definition stays
        commented out.

        Raises:
            ValueError: If `value` is empty.
            InvalidEntryError: If the new name is not safe to write.
            EntryNotFoundError: If no definition of `key` exists.
            ReadError: If the document cannot be read.
            WriteError: If the document cannot be written.
        """
        if not value.strip():
            raise ValueError("Value must not be empty")
        pattern = entry_pattern(kind, key)
        definition = _DEFINITIONS[kind](new_key or key, value)
        rendered = render_entry(definition)

        content = self.config_file.read_raw()
        lines = split_lines(content)
        index = _find_line(lines, pattern)
        if index is None:
            raise EntryNotFoundError(kind.value, key)

        line = lines[index]
        stripped = line.lstrip()
        prefix = COMMENT_PREFIX if is_commented(line) else ""
        lines[index] = f"{line[: len(line) - len(stripped)]}{prefix}{rendered}"

        if new_key and new_key != key:
            description = f'Update {kind.value} "{key}" (renamed to "{new_key}")'
        else:
            description = f'Update {kind.value} "{key}"'
        self._commit(content, lines, description)

    def _commit(self, content: str, lines: list[str], description: str) -> None:
        updated = join_lines(lines, content.endswith("\n"), detect_newline(content))

        snapshot = None
        try:
            snapshot = self.history.record(description, content)
        except HistoryError as error:
            logger.warning("Could not record history for %r: %s", description, error)
            if self.warn is not None:
                self.warn(f"Warning: undo history was not saved ({error})")

        try:
            self.config_file.write(updated)
        except OSError:
            if snapshot is not None:
                try:
                    self.history.discard(snapshot)
                except HistoryError as error:
                    logger.warning("Could not discard history entry %r: %s", description, error)
            raise
        logger.info(description)
