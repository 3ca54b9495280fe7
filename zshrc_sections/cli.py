"""
Inspects and edits the sections of a zsh startup file.
Entries are merged into the best matching section, and every change can be undone.
"""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

import click

from .aliasfile import extract_description, parse_alias_file
from .config import (
    CONFIG_FILENAMES,
    SECTION_STYLES,
    ConfigError,
    EngineConfig,
    apply_overrides,
    build_config,
)
from .diff import compute_diff, generate_preview
from .editing import EntryEditor
from .exceptions import EntryNotFoundError, ImportFormatError
from .filesystem import ConfigFile, get_max_line_length
from .history import HistoryStore
from .importexport import (
    collect_document_entries,
    export_entries_to_json,
    import_entries_from_json,
    parse_import_json,
)
from .models import AliasDefinition, EntryKind, ExportDefinition, SectionStyle
from .segmenter import parse_entries, segment
from .validation import detect_duplicates, validate_alias_command, validate_export_value
from .writer import SectionWriter, plan_addition

__all__ = ["cli"]

EDITABLE_KINDS = {"alias": EntryKind.ALIAS, "export": EntryKind.EXPORT}


@dataclass
class Context:
    """Objects shared by all subcommands."""

    config: EngineConfig
    config_file: ConfigFile
    history: HistoryStore


def _warn(message: str) -> None:
    click.echo(message, err=True)


def _configure_logging(verbose: bool) -> None:
    if not verbose:
        return
    logging.basicConfig(
        level=logging.DEBUG,
        stream=sys.stderr,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _split_assignment(ctx, param, values: tuple[str, ...]) -> list[tuple[str, str]]:
    pairs = []
    for value in values:
        name, separator, body = value.partition("=")
        if not separator or not name:
            raise click.BadParameter(f"expected NAME=VALUE, got {value!r}", ctx=ctx, param=param)
        pairs.append((name, body))
    return pairs


def _describe_counts(counts: dict[EntryKind, int]) -> str:
    parts = [f"{kind.value}: {count}" for kind, count in counts.items() if count]
    return ", ".join(parts) if parts else "no entries"


def _read_document(obj: Context) -> str:
    try:
        return obj.config_file.read_raw()
    except OSError as error:
        raise click.ClickException(str(error)) from error


def _echo_diff(before: str, after: str) -> None:
    result = compute_diff(before, after)
    if not result.has_changes:
        click.echo("No changes.")
        return
    click.echo(result.text)
    click.echo(result.summary)


def _preview_addition(
    obj: Context,
    section_name: str,
    entries: list[AliasDefinition | ExportDefinition],
    attribution: str | None,
) -> None:
    content = _read_document(obj)
    try:
        planned = plan_addition(
            content,
            section_name,
            entries,
            attribution=attribution,
            default_style=SectionStyle(obj.config.default_style),
            max_line_length=obj.config.max_line_length,
        )
    except ValueError as error:
        raise click.BadParameter(str(error)) from error
    _echo_diff(content, planned.content)
    click.echo(f"Dry run, nothing written: {planned.description}")


@click.group()
@click.version_option(package_name="zshrc-sections")
@click.option(
    "--file",
    "custom_path",
    type=click.Path(dir_okay=False),
    help="Startup file to manage (overrides --config-file)",
)
@click.option(
    "--config-file",
    type=click.Choice(list(CONFIG_FILENAMES)),
    help="Which startup file in the home directory to manage",
)
@click.option(
    "--history-file",
    "history_path",
    type=click.Path(dir_okay=False),
    help="Undo history location",
)
@click.option(
    "--style",
    "default_style",
    type=click.Choice(SECTION_STYLES),
    help="Heading style for files without headings",
)
@click.option("--no-backup", is_flag=True, help="Do not write <file>.bak before changes")
@click.option("-v", "--verbose", is_flag=True, help="Log progress to stderr")
@click.pass_context
def cli(
    ctx: click.Context,
    custom_path: str | None = None,
    config_file: str | None = None,
    history_path: str | None = None,
    default_style: str | None = None,
    no_backup: bool = False,
    verbose: bool = False,
):
    """
    Entry point for inspecting and editing a zsh startup file.

    Configuration is read from `[tool.zshrc-sections]` in `pyproject.toml` or
    from `.zshrc-sections.toml`, searching upwards from the managed file's
    directory (or the home directory).

    Raises:
        click.BadParameter: If configuration values are invalid.
        click.ClickException: If environment limits are invalid.

    Examples:
        zshrc-sections --file ~/dotfiles/zshrc sections
        zshrc-sections add "Git Aliases" --alias gst="git status"
    """
    _configure_logging(verbose)

    search_path = Path(custom_path).expanduser().parent if custom_path else Path.home()
    try:
        config = build_config(
            search_path,
            custom_path=custom_path,
            config_file=config_file,
            history_path=history_path,
            default_style=default_style,
            backup=False if no_backup else None,
        )
    except ConfigError as error:
        raise click.BadParameter(str(error)) from error

    try:
        config = apply_overrides(
            config, max_line_length=get_max_line_length(default=config.max_line_length)
        )
        managed_file = ConfigFile.from_config(config, warn=_warn)
    except ValueError as error:
        raise click.ClickException(str(error)) from error

    ctx.obj = Context(
        config=config,
        config_file=managed_file,
        history=HistoryStore.from_config(config, managed_file),
    )


@cli.command()
@click.pass_obj
def sections(obj: Context):
    """List the logical sections of the startup file."""
    content = _read_document(obj)

    for section in segment(content, obj.config):
        click.echo(
            f"{section.label} [{section.start_line}-{section.end_line}] "
            f"{_describe_counts(section.counts)}"
        )


@cli.command()
@click.argument("section_name")
@click.option(
    "--alias",
    "aliases",
    multiple=True,
    callback=_split_assignment,
    help="Alias to add, as NAME=COMMAND (repeatable)",
)
@click.option(
    "--export",
    "exports",
    multiple=True,
    callback=_split_assignment,
    help="Variable to export, as NAME=VALUE (repeatable)",
)
@click.option(
    "--from-file",
    type=click.Path(exists=True, dir_okay=False),
    help="Read aliases from a plugin or alias file",
)
@click.option("--attribution", help="Where the entries come from")
@click.option("--dry-run", is_flag=True, help="Show the change without writing it")
@click.pass_obj
def add(
    obj: Context,
    section_name: str,
    aliases: list[tuple[str, str]],
    exports: list[tuple[str, str]],
    from_file: str | None = None,
    attribution: str | None = None,
    dry_run: bool = False,
):
    """
    Add aliases and exports to the section best matching SECTION_NAME.

    A new section is created at the end of the file when nothing matches.
    """
    entries: list[AliasDefinition | ExportDefinition] = []
    if from_file is not None:
        try:
            source = Path(from_file).read_text(encoding="UTF-8")
        except (OSError, UnicodeDecodeError) as error:
            raise click.ClickException(f"Error reading {from_file}: {error}") from error
        entries.extend(parse_alias_file(source))
        if attribution is None:
            attribution = extract_description(source) or Path(from_file).name
    entries.extend(AliasDefinition(name, value) for name, value in aliases)
    entries.extend(ExportDefinition(name, value) for name, value in exports)

    if not entries:
        raise click.UsageError("Nothing to add: pass --alias, --export or --from-file")

    for entry in entries:
        if isinstance(entry, AliasDefinition):
            findings = validate_alias_command(entry.value)
        else:
            findings = validate_export_value(entry.value)
        for warning in findings.warnings:
            _warn(f"Warning: {entry.name}: {warning}")

    if dry_run:
        _preview_addition(obj, section_name, entries, attribution)
        return

    writer = SectionWriter(obj.config_file, obj.history, obj.config, warn=_warn)
    try:
        result = writer.add_entries(section_name, entries, attribution=attribution)
    except ValueError as error:
        raise click.BadParameter(str(error)) from error
    except OSError as error:
        raise click.ClickException(str(error)) from error

    click.echo(result.message)


@cli.command()
@click.pass_obj
def history(obj: Context):
    """Show recorded changes, most recent first."""
    entries = obj.history.list()
    if not entries:
        click.echo("No history.")
        return

    for index, entry in enumerate(entries):
        when = datetime.fromtimestamp(entry.timestamp / 1000).strftime("%Y-%m-%d %H:%M:%S")
        click.echo(f"{index}  {when}  {entry.description}")


@cli.command()
@click.argument("index", type=click.IntRange(min=0))
@click.option("--preview", is_flag=True, help="Show the file as the change left it")
@click.pass_obj
def show(obj: Context, index: int, preview: bool = False):
    """Show the diff of change INDEX (see `history`)."""
    try:
        before, after = obj.history.change_at(index)
    except (IndexError, OSError) as error:
        raise click.ClickException(str(error)) from error

    if preview:
        click.echo(generate_preview(before, after))
    else:
        _echo_diff(before, after)


@cli.command()
@click.option(
    "--to",
    "index",
    type=click.IntRange(min=0),
    help="Restore the state before change INDEX (see `history`), reverting newer ones too",
)
@click.option("--dry-run", is_flag=True, help="Show what would be restored without writing it")
@click.pass_obj
def undo(obj: Context, index: int | None = None, dry_run: bool = False):
    """Revert the most recent change, or every change up to --to."""
    if dry_run:
        entries = obj.history.list()
        target = index or 0
        if target >= len(entries):
            raise click.ClickException("Nothing to undo.")
        _echo_diff(_read_document(obj), entries[target].previous_content)
        return

    try:
        if index is None:
            restored = obj.history.undo_last_change()
        else:
            restored = obj.history.undo_to_point(index)
    except OSError as error:
        raise click.ClickException(str(error)) from error

    if not restored:
        raise click.ClickException("Nothing to undo.")
    click.echo("Undo successful.")


@cli.command("clear-history")
@click.pass_obj
def clear_history(obj: Context):
    """Forget all recorded changes."""
    try:
        obj.history.clear()
    except OSError as error:
        raise click.ClickException(str(error)) from error
    click.echo("History cleared.")


@cli.command()
@click.argument("kind", type=click.Choice(list(EDITABLE_KINDS)))
@click.argument("name")
@click.pass_obj
def toggle(obj: Context, kind: str, name: str):
    """Comment out or restore the alias or export NAME."""
    editor = EntryEditor(obj.config_file, obj.history, warn=_warn)
    try:
        enabled = editor.toggle_entry(EDITABLE_KINDS[kind], name)
    except (EntryNotFoundError, OSError) as error:
        raise click.ClickException(str(error)) from error
    click.echo(f"{name} is now {'active' if enabled else 'commented out'}.")


@cli.command()
@click.argument("kind", type=click.Choice(list(EDITABLE_KINDS)))
@click.argument("name")
@click.argument("value")
@click.option("--rename", "new_name", help="Also give the entry a new name")
@click.pass_obj
def edit(obj: Context, kind: str, name: str, value: str, new_name: str | None = None):
    """Set the value of the alias or export NAME."""
    editor = EntryEditor(obj.config_file, obj.history, warn=_warn)
    try:
        editor.edit_entry(EDITABLE_KINDS[kind], name, value, new_key=new_name)
    except ValueError as error:
        raise click.BadParameter(str(error)) from error
    except (EntryNotFoundError, OSError) as error:
        raise click.ClickException(str(error)) from error
    click.echo(f"Updated {kind} {new_name or name}.")


@cli.command()
@click.argument("kind", type=click.Choice(list(EDITABLE_KINDS)))
@click.argument("name")
@click.pass_obj
def delete(obj: Context, kind: str, name: str):
    """Remove the alias or export NAME."""
    editor = EntryEditor(obj.config_file, obj.history, warn=_warn)
    try:
        editor.delete_entry(EDITABLE_KINDS[kind], name)
    except (EntryNotFoundError, OSError) as error:
        raise click.ClickException(str(error)) from error
    click.echo(f"Deleted {kind} {name}.")


@cli.command("import")
@click.argument("source", type=click.File("r", encoding="UTF-8"))
@click.argument("section_name")
@click.option("--attribution", help="Where the entries come from")
@click.option("--dry-run", is_flag=True, help="Show the change without writing it")
@click.pass_obj
def import_command(
    obj: Context,
    source,
    section_name: str,
    attribution: str | None = None,
    dry_run: bool = False,
):
    """
    Merge aliases and exports from a JSON export into SECTION_NAME.

    SOURCE is a file written by `export`, or - for standard input.
    """
    text = source.read()
    if dry_run:
        try:
            imported = parse_import_json(text)
        except ImportFormatError as error:
            raise click.BadParameter(str(error), param_hint="SOURCE") from error
        _preview_addition(obj, section_name, imported.entries, attribution)
        return

    writer = SectionWriter(obj.config_file, obj.history, obj.config, warn=_warn)
    try:
        result = import_entries_from_json(writer, text, section_name, attribution=attribution)
    except ImportFormatError as error:
        raise click.BadParameter(str(error), param_hint="SOURCE") from error
    except ValueError as error:
        raise click.BadParameter(str(error)) from error
    except OSError as error:
        raise click.ClickException(str(error)) from error

    click.echo(result.message)


@cli.command("export")
@click.option("--only", type=click.Choice(list(EDITABLE_KINDS)), help="Export one kind only")
@click.option(
    "-o",
    "--output",
    type=click.File("w", encoding="UTF-8"),
    default="-",
    help="Where to write the JSON (default: standard output)",
)
@click.pass_obj
def export_command(obj: Context, only: str | None = None, output=None):
    """Write the active aliases and exports of the startup file as JSON."""
    aliases, exports = collect_document_entries(_read_document(obj), obj.config)
    if only == "alias":
        exports = []
    elif only == "export":
        aliases = []
    click.echo(export_entries_to_json(aliases, exports), file=output)


@cli.command("restore-backup")
@click.pass_obj
def restore_backup(obj: Context):
    """Copy <file>.bak back over the startup file."""
    try:
        obj.config_file.restore_backup()
    except OSError as error:
        raise click.ClickException(str(error)) from error
    click.echo(f"Restored {obj.config_file.target} from backup.")


@cli.command()
@click.pass_obj
def check(obj: Context):
    """
    Report duplicate definitions and suspicious values.

    Exits with status 1 when anything is reported.
    """
    content = _read_document(obj)

    entries = parse_entries(content, obj.config)
    problems = []
    for duplicate in detect_duplicates(entries):
        problems.append(
            f"{duplicate.name} is defined {duplicate.count} times "
            f"(in {', '.join(duplicate.sections)})"
        )
    for entry in entries:
        if entry.kind is EntryKind.ALIAS:
            result = validate_alias_command(entry.value or "")
        elif entry.kind is EntryKind.EXPORT:
            result = validate_export_value(entry.value or "")
        else:
            continue
        problems.extend(f"line {entry.line_number}: {warning}" for warning in result.warnings)

    if not problems:
        click.echo("No problems found.")
        return
    for problem in problems:
        click.echo(problem)
    sys.exit(1)


if __name__ == "__main__":
    cli()
