from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path

import pytest

from zshrc_sections.exceptions import ImportFormatError
from zshrc_sections.filesystem import ConfigFile
from zshrc_sections.history import HistoryStore
from zshrc_sections.importexport import (
    collect_document_entries,
    export_entries_to_json,
    import_entries_from_json,
    parse_import_json,
    validate_import_json,
)
from zshrc_sections.models import AliasDefinition, ExportDefinition
from zshrc_sections.writer import SectionWriter

EXPORTED_AT = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def _payload(**fields) -> str:
    return json.dumps({"version": 1, "exportedAt": "2024-05-01T12:00:00.000Z", **fields})


def test_export_entries_to_json():
    text = export_entries_to_json(
        [AliasDefinition("gst", "git status")],
        [ExportDefinition("EDITOR", "nvim")],
        exported_at=EXPORTED_AT,
    )

    assert json.loads(text) == {
        "version": 1,
        "exportedAt": "2024-05-01T12:00:00.000Z",
        "aliases": [{"name": "gst", "command": "git status"}],
        "exports": [{"variable": "EDITOR", "value": "nvim"}],
    }


def test_export_leaves_out_empty_lists():
    data = json.loads(export_entries_to_json(exports=[ExportDefinition("A", "b")]))

    assert "aliases" not in data
    assert data["exports"] == [{"variable": "A", "value": "b"}]


def test_collect_document_entries_returns_literal_values():
    content = (
        "# --- Git --- #\n"
        "alias gst='git status'\n"
        "alias x='it'\\''s'\n"
        "# alias off='disabled'\n"
        "export PATH=\"$HOME/bin:$PATH\"\n"
        "setopt AUTO_CD\n"
        "# --- End Git --- #\n"
    )

    aliases, exports = collect_document_entries(content)

    assert aliases == [AliasDefinition("gst", "git status"), AliasDefinition("x", "it's")]
    assert exports == [ExportDefinition("PATH", "$HOME/bin:$PATH")]


def test_parse_import_json_reads_both_kinds():
    imported = parse_import_json(
        _payload(
            aliases=[{"name": "gst", "command": "git status", "description": "Status"}],
            exports=[{"variable": "EDITOR", "value": "nvim"}],
        )
    )

    assert imported.aliases == [AliasDefinition("gst", "git status", "Status")]
    assert imported.exports == [ExportDefinition("EDITOR", "nvim")]
    assert len(imported.entries) == 2


@pytest.mark.parametrize(
    ("text", "message"),
    [
        ("{not json", "Invalid JSON"),
        ("[]", "must be a JSON object"),
        (json.dumps({"version": 2, "aliases": [{"name": "a", "command": "b"}]}), "Unsupported"),
        (_payload(), "No aliases or exports"),
        (_payload(aliases={"name": "a"}), '"aliases" must be a list'),
        (_payload(aliases=["a"]), "Malformed entry 0"),
        (_payload(exports=[{"variable": "A"}]), 'needs string "variable" and "value"'),
        (_payload(aliases=[{"name": "a", "command": "b", "description": 3}]), "non-string"),
        (
            _payload(aliases=[{"name": "ok", "command": "x"}, {"name": "bad name", "command": "y"}]),
            "Invalid alias name(s): bad name",
        ),
        (_payload(exports=[{"variable": "1X", "value": "y"}]), "Invalid variable name(s): 1X"),
    ],
)
def test_parse_import_json_rejects_bad_data(text: str, message: str):
    with pytest.raises(ImportFormatError) as excinfo:
        parse_import_json(text)

    assert message in str(excinfo.value)


def test_validate_import_json():
    check = validate_import_json(
        _payload(aliases=[{"name": "a", "command": "b"}, {"name": "c", "command": "d"}])
    )

    assert check.valid
    assert (check.alias_count, check.export_count) == (2, 0)
    assert check.error is None

    rejected = validate_import_json("nope")

    assert not rejected.valid
    assert rejected.error.startswith("Invalid JSON")


def test_import_merges_into_matching_section(tmp_path: Path):
    path = tmp_path / ".zshrc"
    path.write_text("# [ Git ]\nalias g=git\n", encoding="utf-8")
    config_file = ConfigFile(path, backup=False)
    history = HistoryStore(config_file)
    writer = SectionWriter(config_file, history)

    result = import_entries_from_json(
        writer, _payload(aliases=[{"name": "gst", "command": "git status"}]), "Git Aliases"
    )

    assert result.added_to == "existing"
    assert path.read_text(encoding="utf-8") == (
        "# [ Git ]\nalias g=git\n\n# Added from Git Aliases\nalias gst='git status'\n"
    )
    assert history.list()[0].description == 'Add 1 alias to "Git"'


def test_rejected_import_leaves_document_alone(tmp_path: Path):
    path = tmp_path / ".zshrc"
    path.write_text("alias g=git\n", encoding="utf-8")
    config_file = ConfigFile(path, backup=False)
    history = HistoryStore(config_file)

    with pytest.raises(ImportFormatError):
        import_entries_from_json(SectionWriter(config_file, history), "{}", "Git")

    assert path.read_text(encoding="utf-8") == "alias g=git\n"
    assert len(history) == 0


def test_exported_entries_import_unchanged():
    source = "alias x='it'\\''s'\nexport GREETING=\"say \\\"hi\\\"\"\n"
    aliases, exports = collect_document_entries(source)
    imported = parse_import_json(export_entries_to_json(aliases, exports))

    assert imported.aliases == [AliasDefinition("x", "it's")]
    assert imported.exports == [ExportDefinition("GREETING", 'say "hi"')]
