from __future__ import annotations

import os
import stat
from pathlib import Path

import pytest

from zshrc_sections.config import EngineConfig
from zshrc_sections.exceptions import (
    ConcurrentModificationError,
    ConfigFileNotFoundError,
    ConfigFileTooLargeError,
    ReadError,
)
from zshrc_sections.filesystem import ConfigFile, get_max_file_size, get_max_line_length


def _write(path: Path, content: str) -> Path:
    path.write_text(content, encoding="utf-8")
    return path


def test_read_raw_returns_exact_content(tmp_path: Path):
    path = tmp_path / ".zshrc"
    path.write_bytes(b"alias a=b\r\nexport X=1")

    assert ConfigFile(path).read_raw() == "alias a=b\r\nexport X=1"


def test_missing_file_raises_not_found(tmp_path: Path):
    with pytest.raises(ConfigFileNotFoundError):
        ConfigFile(tmp_path / "nope").read_raw()


def test_directory_is_not_readable_as_config(tmp_path: Path):
    with pytest.raises(ReadError, match="not a regular file"):
        ConfigFile(tmp_path).read_raw()


def test_invalid_utf8_raises_read_error(tmp_path: Path):
    path = tmp_path / ".zshrc"
    path.write_bytes(b"alias a='\xff'\n")

    with pytest.raises(ReadError, match="Invalid UTF-8"):
        ConfigFile(path).read_raw()


def test_size_limit_enforced(tmp_path: Path):
    path = _write(tmp_path / ".zshrc", "alias a=b\n" * 10)

    with pytest.raises(ConfigFileTooLargeError) as excinfo:
        ConfigFile(path, max_file_size=20).read_raw()

    assert excinfo.value.max_size == 20


def test_size_limit_from_environment(tmp_path: Path, monkeypatch):
    monkeypatch.setenv("ZSHRC_SECTIONS_MAX_FILE_SIZE", "5")
    path = _write(tmp_path / ".zshrc", "alias a=b\n")
    config = EngineConfig(custom_path=str(path))

    with pytest.raises(ConfigFileTooLargeError):
        ConfigFile.from_config(config).read_raw()


@pytest.mark.parametrize("value", ["abc", "0", "-3"])
def test_invalid_environment_limits_are_rejected(monkeypatch, value: str):
    monkeypatch.setenv("ZSHRC_SECTIONS_MAX_FILE_SIZE", value)
    monkeypatch.setenv("ZSHRC_SECTIONS_MAX_LINE_LENGTH", value)

    with pytest.raises(ValueError):
        get_max_file_size()
    with pytest.raises(ValueError):
        get_max_line_length()


def test_environment_limits_default_when_unset(monkeypatch):
    monkeypatch.delenv("ZSHRC_SECTIONS_MAX_FILE_SIZE", raising=False)
    monkeypatch.delenv("ZSHRC_SECTIONS_MAX_LINE_LENGTH", raising=False)

    assert get_max_file_size(default=123) == 123
    assert get_max_line_length(default=45) == 45


def test_write_replaces_content_and_keeps_permissions(tmp_path: Path):
    path = _write(tmp_path / ".zshrc", "old\n")
    os.chmod(path, 0o600)
    config_file = ConfigFile(path, backup=False)
    config_file.read_raw()

    config_file.write("new\n")

    assert path.read_text(encoding="utf-8") == "new\n"
    assert stat.S_IMODE(path.stat().st_mode) == 0o600
    assert list(tmp_path.iterdir()) == [path]


def test_write_creates_missing_file(tmp_path: Path):
    path = tmp_path / ".zshrc"

    ConfigFile(path).write("alias a=b\n")

    assert path.read_text(encoding="utf-8") == "alias a=b\n"
    assert not (tmp_path / ".zshrc.bak").exists()


def test_write_refuses_concurrently_modified_file(tmp_path: Path):
    path = _write(tmp_path / ".zshrc", "alias a=b\n")
    config_file = ConfigFile(path)
    config_file.read_raw()
    _write(path, "alias a=b\nalias changed=elsewhere\n")

    with pytest.raises(ConcurrentModificationError):
        config_file.write("alias mine=1\n")

    assert "changed=elsewhere" in path.read_text(encoding="utf-8")


def test_backup_written_and_restored(tmp_path: Path):
    path = _write(tmp_path / ".zshrc", "original\n")
    config_file = ConfigFile(path)
    config_file.read_raw()

    config_file.write("updated\n")

    assert config_file.backup_path == tmp_path / ".zshrc.bak"
    assert config_file.backup_path.read_text(encoding="utf-8") == "original\n"

    config_file.restore_backup()

    assert path.read_text(encoding="utf-8") == "original\n"


def test_backup_can_be_disabled(tmp_path: Path):
    path = _write(tmp_path / ".zshrc", "original\n")
    config_file = ConfigFile(path, backup=False)
    config_file.read_raw()

    config_file.write("updated\n")

    assert not (tmp_path / ".zshrc.bak").exists()


def test_restore_without_backup_raises(tmp_path: Path):
    path = _write(tmp_path / ".zshrc", "original\n")

    with pytest.raises(ConfigFileNotFoundError):
        ConfigFile(path).restore_backup()


@pytest.mark.skipif(not hasattr(os, "symlink"), reason="Symlink support is required")
def test_symlinked_file_is_written_through(tmp_path: Path):
    dotfiles = tmp_path / "dotfiles"
    dotfiles.mkdir()
    real = _write(dotfiles / "zshrc", "alias a=b\n")
    link = tmp_path / ".zshrc"
    try:
        os.symlink(real, link)
    except OSError as error:  # pragma: no cover - platform dependent
        pytest.skip(f"Unable to create symlink: {error}")

    config_file = ConfigFile(link, backup=False)
    assert config_file.read_raw() == "alias a=b\n"
    config_file.write("alias c=d\n")

    assert link.is_symlink()
    assert real.read_text(encoding="utf-8") == "alias c=d\n"
    assert config_file.target == real.resolve()
