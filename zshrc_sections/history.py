"""Undo history for shell startup file mutations.

Every mutation stores the full document text it is about to replace. Entries
are kept newest-first and only the most recent `max_entries` survive.
Restoring a point discards it together with every newer entry; there is no
redo.
"""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Callable
from dataclasses import asdict
from pathlib import Path

from .config import EngineConfig, resolve_history_path
from .constants import MAX_HISTORY_ENTRIES
from .exceptions import HistoryError
from .filesystem import ConfigFile, atomic_write
from .models import HistoryEntry

logger = logging.getLogger(__name__)

HISTORY_FILE_MODE = 0o600


def _now_millis() -> int:
    return int(time.time() * 1000)


def _entry_from_raw(raw: object) -> HistoryEntry:
    if not isinstance(raw, dict):
        raise ValueError("history entry is not an object")
    entry = HistoryEntry(
        timestamp=raw["timestamp"],
        description=raw["description"],
        previous_content=raw["previous_content"],
        file_path=raw["file_path"],
    )
    if not isinstance(entry.timestamp, int) or not all(
        isinstance(value, str)
        for value in (entry.description, entry.previous_content, entry.file_path)
    ):
        raise ValueError("history entry has fields of the wrong type")
    return entry


class HistoryStore:
    """Point-in-time snapshots of a `ConfigFile`.

    Args:
        config_file: Document the snapshots restore.
        path: JSON file holding the history. When None, history lives in
            memory for the lifetime of the store.
        max_entries: Number of snapshots to keep.
        clock: Returns the current time in epoch milliseconds.
    """

    def __init__(
        self,
        config_file: ConfigFile,
        path: Path | None = None,
        max_entries: int = MAX_HISTORY_ENTRIES,
        clock: Callable[[], int] = _now_millis,
    ):
        self.config_file = config_file
        self.path = path
        self.max_entries = max_entries
        self.clock = clock
        self._memory: list[HistoryEntry] = []

    @classmethod
    def from_config(cls, config: EngineConfig, config_file: ConfigFile) -> HistoryStore:
        return cls(
            config_file,
            path=resolve_history_path(config),
            max_entries=config.max_history_entries,
        )

    def __len__(self) -> int:
        return len(self._load())

    @property
    def file_path(self) -> str:
        """Identifier recorded with snapshots of `config_file`."""
        return str(self.config_file.target)

    def list(self) -> list[HistoryEntry]:
        """Return all snapshots, newest first, without changing anything."""
        return list(self._load())

    def change_at(self, index: int) -> tuple[str, str]:
        """Return the document text before and after change `index`.

        The text after a change is the snapshot of the next newer change, or
        the current document for the most recent one.

        Raises:
            IndexError: If there is no change at `index`.
            ReadError: If the current document is needed and cannot be read.
        """
        entries = self._load()
        if index < 0 or index >= len(entries):
            raise IndexError(f"No change at index {index}")
        if index == 0:
            after = self.config_file.read_raw()
        else:
            after = entries[index - 1].previous_content
        return entries[index].previous_content, after

    def record(
        self, description: str, previous_content: str, file_path: str | None = None
    ) -> HistoryEntry:
        """Store a snapshot taken just before a mutation.

        Args:
            description: What the upcoming mutation does.
            previous_content: Full document text before the mutation.
            file_path: Document identifier; defaults to `file_path`.

        Returns:
            HistoryEntry: The stored snapshot.

        Raises:
            HistoryError: If the history cannot be persisted.
        """
        entry = HistoryEntry(
            timestamp=self.clock(),
            description=description,
            previous_content=previous_content,
            file_path=file_path if file_path is not None else self.file_path,
        )
        entries = [entry, *self._load()][: self.max_entries]
        self._save(entries)
        logger.info('History saved: "%s" (%d entries total)', description, len(entries))
        return entry

    def discard(self, entry: HistoryEntry) -> bool:
        """Remove a snapshot, e.g. one recorded for a write that then failed.

        Returns:
            bool: True when the entry was found and removed.
        """
        entries = self._load()
        if entry not in entries:
            return False
        entries.remove(entry)
        self._save(entries)
        logger.debug('History entry discarded: "%s"', entry.description)
        return True

    def undo_last_change(self) -> bool:
        """Restore the document to the most recent snapshot and drop it.

        Returns:
            bool: False when there is nothing to undo or the snapshot belongs
                to another file; True when the document was restored.

        Raises:
            WriteError: If the document cannot be written. History is left
                untouched.
        """
        if not self._load():
            logger.warning("Nothing to undo - history is empty")
            return False
        return self.undo_to_point(0)

    def undo_to_point(self, index: int) -> bool:
        """Restore the snapshot at `index` (0 is the most recent).

        The snapshot and every newer one are discarded, so the history shrinks
        by ``index + 1`` entries.

        Returns:
            bool: False for an invalid index or a snapshot of another file;
                True when the document was restored.

        Raises:
            WriteError: If the document cannot be written. History is left
                untouched.
        """
        entries = self._load()
        if index < 0 or index >= len(entries):
            logger.warning("Invalid index %d for history of length %d", index, len(entries))
            return False

        entry = entries[index]
        if entry.file_path != self.file_path:
            logger.warning(
                "File path mismatch: history=%s, current=%s", entry.file_path, self.file_path
            )
            return False

        logger.info('Restoring content from before: "%s"', entry.description)
        self.config_file.write(entry.previous_content)
        self._save(entries[index + 1 :])
        logger.info("Undo successful: reverted %d change(s)", index + 1)
        return True

    def clear(self) -> None:
        """Discard every snapshot."""
        logger.info("Clearing all history")
        self._save([])

    def _load(self) -> list[HistoryEntry]:
        if self.path is None:
            return list(self._memory)

        if not self.path.exists():
            return []

        try:
            raw_entries = json.loads(self.path.read_text(encoding="UTF-8"))
            if not isinstance(raw_entries, list):
                raise ValueError("history root is not a list")
            return [_entry_from_raw(raw) for raw in raw_entries]
        except (OSError, UnicodeDecodeError, ValueError, KeyError) as error:
            logger.warning("Ignoring unreadable history at %s: %s", self.path, error)
            return []

    def _save(self, entries: list[HistoryEntry]) -> None:
        if self.path is None:
            self._memory = list(entries)
            return

        payload = json.dumps([asdict(entry) for entry in entries], indent=2)
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            atomic_write(self.path, payload, HISTORY_FILE_MODE)
        except OSError as error:
            raise HistoryError(f"Error saving history to {self.path}: {error}") from error
