from __future__ import annotations

import json
import logging
from itertools import count
from pathlib import Path

import pytest

from zshrc_sections.exceptions import HistoryError, WriteError
from zshrc_sections.filesystem import ConfigFile
from zshrc_sections.history import HistoryStore


@pytest.fixture()
def config_file(tmp_path: Path) -> ConfigFile:
    path = tmp_path / ".zshrc"
    path.write_text("D0\n", encoding="utf-8")
    return ConfigFile(path, backup=False)


def _mutate(config_file: ConfigFile, history: HistoryStore, new_content: str, description: str):
    previous = config_file.read_raw()
    history.record(description, previous)
    config_file.write(new_content)


def _read(config_file: ConfigFile) -> str:
    return config_file.path.read_text(encoding="utf-8")


@pytest.mark.parametrize("persistent", [False, True])
def test_undo_to_point_restores_content_captured_for_that_entry(
    config_file: ConfigFile, tmp_path: Path, persistent: bool
):
    path = tmp_path / "state" / "history.json" if persistent else None
    history = HistoryStore(config_file, path=path)
    _mutate(config_file, history, "D1\n", "M1")
    _mutate(config_file, history, "D2\n", "M2")
    _mutate(config_file, history, "D3\n", "M3")

    assert history.undo_to_point(1)

    assert _read(config_file) == "D1\n"
    assert [entry.description for entry in history.list()] == ["M1"]


def test_undo_last_change_reverts_most_recent_mutation(config_file: ConfigFile):
    history = HistoryStore(config_file)
    _mutate(config_file, history, "D1\n", "M1")
    _mutate(config_file, history, "D2\n", "M2")

    assert history.undo_last_change()

    assert _read(config_file) == "D1\n"
    assert len(history) == 1


def test_undo_last_change_on_empty_history_returns_false(config_file: ConfigFile):
    history = HistoryStore(config_file)

    assert history.undo_last_change() is False
    assert _read(config_file) == "D0\n"


@pytest.mark.parametrize("index", [-1, 1, 5])
def test_undo_to_point_rejects_out_of_range_index(config_file: ConfigFile, index: int):
    history = HistoryStore(config_file)
    _mutate(config_file, history, "D1\n", "M1")

    assert history.undo_to_point(index) is False
    assert _read(config_file) == "D1\n"
    assert len(history) == 1


def test_undo_refuses_entries_of_another_file(config_file: ConfigFile):
    history = HistoryStore(config_file)
    history.record("elsewhere", "other\n", file_path="/somewhere/else/.zshrc")

    assert history.undo_last_change() is False
    assert _read(config_file) == "D0\n"
    assert len(history) == 1


def test_failed_restore_keeps_history(config_file: ConfigFile, monkeypatch):
    history = HistoryStore(config_file)
    _mutate(config_file, history, "D1\n", "M1")

    def fail(content: str) -> None:
        raise WriteError("read-only")

    monkeypatch.setattr(config_file, "write", fail)

    with pytest.raises(WriteError):
        history.undo_last_change()
    assert len(history) == 1


def test_list_is_newest_first(config_file: ConfigFile):
    ticks = count(1000)
    history = HistoryStore(config_file, clock=lambda: next(ticks))
    for name in ("first", "second", "third"):
        history.record(name, "x")

    entries = history.list()

    assert [entry.description for entry in entries] == ["third", "second", "first"]
    assert [entry.timestamp for entry in entries] == [1002, 1001, 1000]


def test_only_newest_entries_are_kept(config_file: ConfigFile):
    history = HistoryStore(config_file, max_entries=3)
    for number in range(5):
        history.record(f"change {number}", "x")

    assert [entry.description for entry in history.list()] == ["change 4", "change 3", "change 2"]


def test_clear_discards_everything(config_file: ConfigFile):
    history = HistoryStore(config_file)
    history.record("one", "x")
    history.record("two", "y")

    history.clear()

    assert history.list() == []


def test_discard_removes_single_entry(config_file: ConfigFile):
    history = HistoryStore(config_file)
    keep = history.record("keep", "x")
    drop = history.record("drop", "y")

    assert history.discard(drop)
    assert history.list() == [keep]
    assert history.discard(drop) is False


def test_history_persists_between_stores(config_file: ConfigFile, tmp_path: Path):
    path = tmp_path / "history.json"
    HistoryStore(config_file, path=path).record("saved", "D0\n")

    reloaded = HistoryStore(config_file, path=path)

    [entry] = reloaded.list()
    assert entry.description == "saved"
    assert entry.previous_content == "D0\n"
    assert json.loads(path.read_text(encoding="utf-8"))[0]["description"] == "saved"
    assert path.stat().st_mode & 0o777 == 0o600


@pytest.mark.parametrize(
    "payload",
    [
        "not json",
        '{"entries": []}',
        '[{"timestamp": 1}]',
        '[{"timestamp": "x", "description": "d", "previous_content": "c", "file_path": "f"}]',
    ],
)
def test_corrupt_history_loads_as_empty(
    config_file: ConfigFile, tmp_path: Path, caplog, payload: str
):
    path = tmp_path / "history.json"
    path.write_text(payload, encoding="utf-8")
    history = HistoryStore(config_file, path=path)

    with caplog.at_level(logging.WARNING, logger="zshrc_sections.history"):
        assert history.list() == []

    assert "Ignoring unreadable history" in caplog.text
    assert history.undo_last_change() is False


def test_unwritable_history_raises_history_error(config_file: ConfigFile, tmp_path: Path):
    blocker = tmp_path / "blocker"
    blocker.write_text("", encoding="utf-8")
    history = HistoryStore(config_file, path=blocker / "history.json")

    with pytest.raises(HistoryError):
        history.record("change", "x")


def test_change_at_returns_text_before_and_after(config_file: ConfigFile):
    history = HistoryStore(config_file)
    _mutate(config_file, history, "D1\n", "M1")
    _mutate(config_file, history, "D2\n", "M2")

    assert history.change_at(0) == ("D1\n", "D2\n")
    assert history.change_at(1) == ("D0\n", "D1\n")
    with pytest.raises(IndexError):
        history.change_at(2)
    assert len(history) == 2
