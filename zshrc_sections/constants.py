"""Constants used across the zshrc-sections package."""

from __future__ import annotations

import re

from .config import EngineConfig

DEFAULT_CONFIG = EngineConfig()

DEFAULT_MAX_FILE_SIZE = DEFAULT_CONFIG.max_file_size
DEFAULT_MAX_LINE_LENGTH = DEFAULT_CONFIG.max_line_length
MAX_HISTORY_ENTRIES = DEFAULT_CONFIG.max_history_entries

UNLABELED = "Unlabeled"
BACKUP_SUFFIX = ".bak"

# Heading conventions. Names are captured lazily so trailing decoration is dropped.
LABELED_PATTERN = re.compile(r"^\s*#\s*section\s*:\s*(?P<name>.+?)\s*$", re.IGNORECASE)
DASHED_START_PATTERN = re.compile(
    r"^\s*#\s*---\s*(?!end\b)(?P<name>.+?)\s*---\s*(?:#\s*)?$", re.IGNORECASE
)
DASHED_END_PATTERN = re.compile(
    r"^\s*#\s*---\s*end\b\s*(?P<name>.*?)\s*---\s*(?:#\s*)?$", re.IGNORECASE
)
BRACKETED_PATTERN = re.compile(r"^\s*#\s*\[\s*(?P<name>.+?)\s*\]\s*$", re.IGNORECASE)
HASH_PATTERN = re.compile(r"^\s*#\s*#\s*(?P<name>.+?)\s*$", re.IGNORECASE)
CUSTOM_START_PATTERN = re.compile(r"^\s*#\s*@start\s+(?P<name>.+?)\s*$", re.IGNORECASE)
CUSTOM_END_PATTERN = re.compile(r"^\s*#\s*@end(?:\s+(?P<name>.+?))?\s*$", re.IGNORECASE)
FUNCTION_START_PATTERN = re.compile(r"^\s*(?P<name>[A-Za-z_][A-Za-z0-9_]*)\s*\(\s*\)\s*\{\s*$")
FUNCTION_END_PATTERN = re.compile(r"^\s*\}\s*$")

# Statement patterns, one per entry kind.
ALIAS_PATTERN = re.compile(
    r"^\s*alias\s+(?:-[gsS]\s+)?(?P<name>[A-Za-z0-9_.:-]+)="
    r"(?:'(?P<single>.*)'|\"(?P<double>.*)\"|(?P<bare>[^\s'\"]\S*))\s*$"
)
EXPORT_PATTERN = re.compile(
    r"^\s*(?:export|typeset\s+-x)\s+(?P<name>[A-Za-z_][A-Za-z0-9_]*)=(?P<value>.*?)\s*$"
)
EVAL_PATTERN = re.compile(r"^\s*eval\s+(?P<value>.+?)\s*$")
SETOPT_PATTERN = re.compile(r"^\s*setopt\s+(?P<value>.+?)\s*$")
PLUGIN_PATTERN = re.compile(r"^\s*plugins\s*=\s*\((?P<value>[^)]+)\)\s*$")
FUNCTION_PATTERN = FUNCTION_START_PATTERN
SOURCE_PATTERN = re.compile(r"^\s*source\s+(?P<value>.+?)\s*$")
AUTOLOAD_PATTERN = re.compile(
    r"^\s*autoload\s+(?:-[A-Za-z]+\s+)*(?P<name>[A-Za-z_][A-Za-z0-9_]*)\s*$"
)
FPATH_PATTERN = re.compile(r"^\s*fpath\s*=\s*\((?P<value>[^)]+)\)\s*$")
PATH_PATTERN = re.compile(r"^\s*PATH\s*=\s*(?P<value>.+?)\s*$")
THEME_PATTERN = re.compile(
    r"^\s*ZSH_THEME\s*=\s*(?:\"(?P<double>[^\"]*)\"|'(?P<single>[^']*)'|(?P<bare>\S+))\s*$"
)
COMPLETION_PATTERN = re.compile(r"^\s*(?P<value>compinit(?:\s+.*?)?)\s*$")
HISTORY_PATTERN = re.compile(r"^\s*(?P<name>HIST[A-Z_]*|SAVEHIST)\s*=\s*(?P<value>.+?)\s*$")
KEYBINDING_PATTERN = re.compile(r"^\s*bindkey\s+(?P<value>.+?)\s*$")

# Section name matching
GENERIC_SECTION_NAMES = frozenset(
    {
        "section",
        "sections",
        "config",
        "configuration",
        "settings",
        "misc",
        "miscellaneous",
        "general",
        "other",
        "stuff",
        "unlabeled",
    }
)
SECTION_NAME_SUFFIXES = (
    "aliases",
    "alias",
    "config",
    "configuration",
    "stuff",
    "settings",
    "shortcuts",
    "commands",
)
EXACT_MATCH_SCORE = 100
CORE_MATCH_SCORE = 90
PREFIX_MATCH_SCORE = 50
MIN_PREFIX_CORE_LENGTH = 3
