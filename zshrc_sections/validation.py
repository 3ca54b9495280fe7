"""Advisory validation for shell configuration values.

Nothing here raises for malformed shell code; findings are returned as
warnings for the caller to display.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass, field

from .models import Entry, EntryKind, ValidationResult

VALID_ALIAS_NAME = re.compile(r"^[A-Za-z0-9_.:][A-Za-z0-9_.:-]*$")
VALID_VARIABLE_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

DANGEROUS_RM_PATTERN = re.compile(r"rm\s+-rf?\s+[/~]")

_BALANCED_PAIRS = (
    ("(", ")", "parentheses"),
    ("[", "]", "brackets"),
    ("{", "}", "braces"),
)


def is_valid_alias_name(name: str) -> bool:
    """Check an alias name against the characters the parser recognises.

    Examples:
        is_valid_alias_name("gst")  # True
        is_valid_alias_name("..")  # True
        is_valid_alias_name("-x")  # False
    """
    return bool(name) and VALID_ALIAS_NAME.match(name) is not None


def is_valid_variable_name(name: str) -> bool:
    """Check an environment variable name against shell naming rules."""
    return bool(name) and VALID_VARIABLE_NAME.match(name) is not None


def validate_structure(value: str) -> ValidationResult:
    """Report unbalanced quoting and bracketing in a value.

    Examples:
        validate_structure("echo 'hi").warnings  # ["Unbalanced single quotes detected"]
    """
    result = ValidationResult()

    if value.count("'") % 2:
        result.warnings.append("Unbalanced single quotes detected")
    if value.count('"') % 2:
        result.warnings.append("Unbalanced double quotes detected")
    if value.count("`") % 2:
        result.warnings.append("Unbalanced backticks detected")

    for opening, closing, label in _BALANCED_PAIRS:
        if value.count(opening) != value.count(closing):
            result.warnings.append(f"Unbalanced {label} detected")

    if "\\n" in value and "$'" not in value:
        result.warnings.append("Contains \\n - use $'...' syntax for literal newlines")

    return result


def validate_alias_command(command: str) -> ValidationResult:
    """Structural checks plus alias-specific warnings."""
    result = validate_structure(command)

    if command.startswith("alias "):
        result.warnings.append("Command should not start with 'alias' - just provide the command")
    if DANGEROUS_RM_PATTERN.search(command):
        result.warnings.append("Potentially dangerous rm command with root or home path")

    return result


def validate_export_value(value: str) -> ValidationResult:
    """Structural checks plus a warning when ``$PATH`` is repeated."""
    result = validate_structure(value)

    if value.count("$PATH") > 1:
        result.warnings.append("$PATH appears multiple times in value - possible duplication")

    return result


@dataclass
class Duplicate:
    """A name defined more than once.

    Attributes:
        name: The repeated alias name or variable.
        count: Number of definitions.
        sections: Labels of the sections containing a definition, in order.
    """

    name: str
    count: int
    sections: list[str] = field(default_factory=list)


def detect_duplicates(
    entries: Iterable[Entry], kinds: Iterable[EntryKind] = (EntryKind.ALIAS, EntryKind.EXPORT)
) -> list[Duplicate]:
    """Find aliases or exports that are defined more than once.

    Args:
        entries: Parsed entries, typically from `parse_entries`.
        kinds: Entry kinds to check; names are compared per kind.

    Returns:
        list[Duplicate]: One item per repeated ``(kind, name)``, in order of
            first definition.
    """
    wanted = set(kinds)
    found: dict[tuple[EntryKind, str], Duplicate] = {}

    for entry in entries:
        if entry.kind not in wanted or entry.name is None:
            continue
        duplicate = found.setdefault((entry.kind, entry.name), Duplicate(entry.name, 0))
        duplicate.count += 1
        section = entry.section_label or "Unlabeled"
        if section not in duplicate.sections:
            duplicate.sections.append(section)

    return [duplicate for duplicate in found.values() if duplicate.count > 1]
