"""Filesystem helpers for zshrc-sections."""

from __future__ import annotations

import logging
import os
import shutil
import stat
import tempfile
from collections.abc import Callable
from pathlib import Path

from .config import EngineConfig, resolve_config_path
from .constants import BACKUP_SUFFIX, DEFAULT_MAX_FILE_SIZE, DEFAULT_MAX_LINE_LENGTH
from .exceptions import (
    ConcurrentModificationError,
    ConfigFileNotFoundError,
    ConfigFileTooLargeError,
    ReadError,
    WriteError,
)

logger = logging.getLogger(__name__)

MAX_FILE_SIZE_ENV_VAR = "ZSHRC_SECTIONS_MAX_FILE_SIZE"
MAX_LINE_LENGTH_ENV_VAR = "ZSHRC_SECTIONS_MAX_LINE_LENGTH"

DEFAULT_FILE_MODE = 0o644


def _positive_int_from_env(env_var: str, default: int) -> int:
    env_value = os.environ.get(env_var)
    if env_value is None:
        return default

    try:
        value = int(env_value)
    except ValueError as error:
        error_message = f"Invalid value for {env_var}: {env_value} (expected positive integer)"
        raise ValueError(error_message) from error

    if value <= 0:
        error_message = f"{env_var} must be a positive integer, got {value}."
        raise ValueError(error_message)

    return value


def get_max_file_size(default: int = DEFAULT_MAX_FILE_SIZE) -> int:
    """Resolve the maximum allowed file size.

    Args:
        default: Fallback value in bytes when the environment variable is unset.

    Raises:
        ValueError: If the environment value is not a positive integer.

    Examples:
        os.environ["ZSHRC_SECTIONS_MAX_FILE_SIZE"] = "204800"
        limit = get_max_file_size(default=102400)
    """
    return _positive_int_from_env(MAX_FILE_SIZE_ENV_VAR, default)


def get_max_line_length(default: int = DEFAULT_MAX_LINE_LENGTH) -> int:
    """Resolve the maximum line length that will be classified.

    Raises:
        ValueError: If the environment value is not a positive integer.
    """
    return _positive_int_from_env(MAX_LINE_LENGTH_ENV_VAR, default)


def collect_file_stat(filepath: Path) -> os.stat_result:
    """Return stat information for a regular file.

    Raises:
        ConfigFileNotFoundError: If the file does not exist.
        ReadError: If the path is inaccessible or not a regular file.
    """
    try:
        stat_result = os.stat(filepath)
    except FileNotFoundError as error:
        raise ConfigFileNotFoundError(filepath) from error
    except OSError as error:
        error_message = f"Error accessing {filepath}: {error}"
        raise ReadError(error_message) from error

    if not stat.S_ISREG(stat_result.st_mode):
        error_message = f"{filepath} is not a regular file."
        raise ReadError(error_message)

    return stat_result


def enforce_file_size(stat_result: os.stat_result, max_size: int, filepath: Path):
    """Guard against files that exceed the configured maximum size.

    Raises:
        ConfigFileTooLargeError: If `stat_result.st_size` exceeds `max_size`.
    """
    if stat_result.st_size > max_size:
        raise ConfigFileTooLargeError(filepath, stat_result.st_size, max_size)


def ensure_file_unchanged(
    expected_stat: os.stat_result, current_stat: os.stat_result, filepath: Path
):
    """Detect changes between two filesystem snapshots.

    Raises:
        ConcurrentModificationError: If inode, device, size, or modification
            time differ.
    """
    fingerprint_before = (
        getattr(expected_stat, "st_ino", None),
        getattr(expected_stat, "st_dev", None),
        expected_stat.st_size,
        expected_stat.st_mtime_ns,
    )
    fingerprint_after = (
        getattr(current_stat, "st_ino", None),
        getattr(current_stat, "st_dev", None),
        current_stat.st_size,
        current_stat.st_mtime_ns,
    )

    if fingerprint_before != fingerprint_after:
        raise ConcurrentModificationError(filepath)


def atomic_write(
    filepath: Path,
    content: str,
    permissions: int,
    owner: tuple[int, int] | None = None,
    warn: Callable[[str], None] | None = None,
):
    """Replace `filepath` with `content` through a synced temporary file.

    Args:
        filepath: File to replace. Its parent directory must exist.
        content: Full new text, written as UTF-8.
        permissions: Mode bits applied to the new file.
        owner: ``(uid, gid)`` to preserve, when known.
        warn: Optional callback for non-fatal warnings (e.g., ownership preservation).

    Raises:
        OSError: If the temporary file cannot be written or moved into place.
    """
    temp_path: Path | None = None
    try:
        with tempfile.NamedTemporaryFile(
            mode="w", encoding="UTF-8", newline="", delete=False, dir=filepath.parent
        ) as tmp_file:
            temp_path = Path(tmp_file.name)
            tmp_file.write(content)

            tmp_file.flush()
            os.fsync(tmp_file.fileno())
            os.chmod(tmp_file.name, permissions)

            if owner is not None and hasattr(os, "chown"):
                try:
                    os.chown(tmp_file.name, *owner)
                except PermissionError:
                    if warn is not None:
                        warn(
                            f"Warning: Could not preserve file ownership for {filepath.name} "
                            "(requires elevated privileges)"
                        )

        os.replace(temp_path, filepath)
    finally:
        if temp_path is not None:
            try:
                Path(temp_path).unlink(missing_ok=True)
            except OSError:
                pass


class ConfigFile:
    """Whole-document storage for a shell startup file.

    Reads and writes always cover the entire file. Symlinked files (common
    with dotfile managers) are read and written through to their target, so
    the link itself is preserved. The stat fingerprint taken by `read_raw`
    is checked again by `write`, which refuses to overwrite a file that
    changed in between.

    Args:
        path: Location of the startup file. ``~`` is expanded.
        max_file_size: Largest file, in bytes, that will be read.
        backup: Copy the current file to ``<file>.bak`` before each write.
        warn: Optional callback for non-fatal warnings.
    """

    def __init__(
        self,
        path: Path | str,
        max_file_size: int = DEFAULT_MAX_FILE_SIZE,
        backup: bool = True,
        warn: Callable[[str], None] | None = None,
    ):
        self.path = Path(path).expanduser()
        self.max_file_size = max_file_size
        self.backup = backup
        self.warn = warn
        self._read_stat: os.stat_result | None = None

    @classmethod
    def from_config(
        cls, config: EngineConfig, warn: Callable[[str], None] | None = None
    ) -> ConfigFile:
        return cls(
            resolve_config_path(config),
            max_file_size=get_max_file_size(default=config.max_file_size),
            backup=config.backup,
            warn=warn,
        )

    def __repr__(self) -> str:
        return f"ConfigFile({str(self.path)!r})"

    @property
    def target(self) -> Path:
        """The real file behind `path`, following symlinks."""
        return self.path.resolve()

    @property
    def backup_path(self) -> Path:
        target = self.target
        return target.with_name(f"{target.name}{BACKUP_SUFFIX}")

    def exists(self) -> bool:
        return self.target.is_file()

    def read_raw(self) -> str:
        """Read the whole file.

        Returns:
            str: File content decoded as UTF-8.

        Raises:
            ConfigFileNotFoundError: If the file does not exist.
            ConfigFileTooLargeError: If the file exceeds `max_file_size`.
            ReadError: If the file is unreadable or not valid UTF-8.
        """
        target = self.target
        logger.debug("Reading %s", target)
        stat_result = collect_file_stat(target)
        enforce_file_size(stat_result, self.max_file_size, target)

        try:
            with open(target, "r", encoding="UTF-8", newline="") as handle:
                content = handle.read()
        except UnicodeDecodeError as error:
            error_message = f"Invalid UTF-8 sequence in {target}: {error}"
            raise ReadError(error_message) from error
        except OSError as error:
            error_message = f"Error reading {target}: {error}"
            raise ReadError(error_message) from error

        self._read_stat = stat_result
        logger.debug("Read %d characters from %s", len(content), target)
        return content

    def write(self, content: str) -> None:
        """Replace the whole file with `content`.

        Raises:
            ConcurrentModificationError: If the file changed since the last
                `read_raw`.
            WriteError: If the file cannot be written.
        """
        target = self.target
        current_stat = self._current_stat(target)
        if self._read_stat is not None and current_stat is not None:
            ensure_file_unchanged(self._read_stat, current_stat, target)

        if current_stat is not None:
            permissions = stat.S_IMODE(current_stat.st_mode)
            owner = (current_stat.st_uid, current_stat.st_gid)
        else:
            permissions = DEFAULT_FILE_MODE
            owner = None

        try:
            if self.backup and current_stat is not None:
                shutil.copy2(target, self.backup_path)
            atomic_write(target, content, permissions, owner, warn=self.warn)
            self._read_stat = os.stat(target)
        except OSError as error:
            error_message = f"Error writing {target}: {error}"
            raise WriteError(error_message) from error

        logger.debug("Wrote %d characters to %s", len(content), target)

    def restore_backup(self) -> None:
        """Copy ``<file>.bak`` back over the file.

        Raises:
            ConfigFileNotFoundError: If no backup exists.
            WriteError: If the backup cannot be restored.
        """
        backup_path = self.backup_path
        if not backup_path.is_file():
            raise ConfigFileNotFoundError(backup_path)
        try:
            with open(backup_path, "r", encoding="UTF-8", newline="") as handle:
                content = handle.read()
        except (OSError, UnicodeDecodeError) as error:
            raise WriteError(f"Error reading backup {backup_path}: {error}") from error

        target = self.target
        current_stat = self._current_stat(target)
        permissions = (
            stat.S_IMODE(current_stat.st_mode) if current_stat is not None else DEFAULT_FILE_MODE
        )
        try:
            atomic_write(target, content, permissions, warn=self.warn)
            self._read_stat = os.stat(target)
        except OSError as error:
            raise WriteError(f"Error writing {target}: {error}") from error
        logger.info("Restored %s from %s", target, backup_path)

    @staticmethod
    def _current_stat(target: Path) -> os.stat_result | None:
        try:
            return os.stat(target)
        except FileNotFoundError:
            return None
        except OSError as error:
            raise WriteError(f"Error accessing {target}: {error}") from error
