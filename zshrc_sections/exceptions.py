"""Package-specific exception types."""

from __future__ import annotations

from pathlib import Path


class StorageError(OSError):
    """Base class for errors raised while reading or writing persisted state."""


class ReadError(StorageError):
    """Raised when a shell configuration file cannot be read."""


class ConfigFileNotFoundError(ReadError):
    """Raised when the shell configuration file does not exist.

    Args:
        path: Path that was looked up.
    """

    def __init__(self, path: Path):
        self.path = path
        super().__init__(f"{path} does not exist.")


class ConfigFileTooLargeError(ReadError):
    """Raised when the shell configuration file exceeds the size limit.

    Args:
        path: Path of the oversized file.
        size: Actual size in bytes.
        max_size: Maximum allowed size in bytes.
    """

    def __init__(self, path: Path, size: int, max_size: int):
        self.path = path
        self.size = size
        self.max_size = max_size
        super().__init__(
            f"{path} is {size} bytes, exceeding the maximum allowed size of {max_size} bytes."
        )


class WriteError(StorageError):
    """Raised when a shell configuration file cannot be written."""


class ConcurrentModificationError(WriteError):
    """Raised when the file changed between reading and writing."""

    def __init__(self, path: Path):
        self.path = path
        super().__init__(f"{path} changed during processing; refusing to overwrite.")


class HistoryError(StorageError):
    """Raised when the undo history cannot be persisted."""


class InvalidEntryError(ValueError):
    """Raised when an alias or export cannot be rendered safely.

    Args:
        kind: Human-readable entry kind (``"alias"`` or ``"export"``).
        name: The rejected name.
    """

    def __init__(self, kind: str, name: str):
        self.kind = kind
        self.name = name
        super().__init__(f"Invalid {kind} name: {name!r}")


class EntryNotFoundError(LookupError):
    """Raised when no alias or export with the requested name exists.

    Args:
        kind: Human-readable entry kind (``"alias"`` or ``"export"``).
        key: The name that was looked up.
    """

    def __init__(self, kind: str, key: str):
        self.kind = kind
        self.key = key
        super().__init__(f'{kind.capitalize()} "{key}" not found')


class ImportFormatError(ValueError):
    """Raised when JSON import data is malformed or unsupported."""
