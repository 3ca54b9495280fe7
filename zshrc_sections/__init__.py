"""
zshrc-sections: section-aware analysis and editing of zsh startup files.

This package can be used both as a CLI tool and as a library.

CLI Usage:
    zshrc-sections sections
    zshrc-sections add "Git Aliases" --alias gst="git status"

Library Usage:
    from pathlib import Path
    from zshrc_sections import AliasDefinition, ConfigFile, HistoryStore, SectionWriter, segment

    config_file = ConfigFile(Path.home() / ".zshrc")
    for section in segment(config_file.read_raw()):
        print(section.label, section.total_entries)

    writer = SectionWriter(config_file, HistoryStore(config_file))
    writer.add_entries("Git", [AliasDefinition("gst", "git status")])
"""

from .aliasfile import extract_description, parse_alias_file
from .config import ConfigError, EngineConfig, build_config
from .diff import DiffResult, compute_diff, generate_preview
from .editing import EntryEditor
from .exceptions import (
    ConcurrentModificationError,
    ConfigFileNotFoundError,
    ConfigFileTooLargeError,
    EntryNotFoundError,
    HistoryError,
    ImportFormatError,
    InvalidEntryError,
    ReadError,
    StorageError,
    WriteError,
)
from .filesystem import ConfigFile
from .history import HistoryStore
from .importexport import (
    collect_document_entries,
    export_entries_to_json,
    import_entries_from_json,
    parse_import_json,
    validate_import_json,
)
from .markers import analyze_section_markers, detect_marker, detect_markers
from .matcher import find_matching_section, normalize_section_name
from .models import (
    AddResult,
    AliasDefinition,
    Entry,
    EntryKind,
    ExportDefinition,
    HistoryEntry,
    LogicalSection,
    MarkerKind,
    SectionMarker,
    SectionMatch,
    SectionStyle,
)
from .patterns import ENTRY_PATTERNS, classify_line, count_entries, extract_entries
from .segmenter import parse_entries, segment
from .writer import SectionWriter, detect_section_style, plan_addition, render_section_header

__version__ = "0.1.0"

__all__ = [
    # Core functionality
    "segment",
    "parse_entries",
    "count_entries",
    "extract_entries",
    "classify_line",
    "detect_marker",
    "detect_markers",
    "analyze_section_markers",
    "find_matching_section",
    "normalize_section_name",
    "detect_section_style",
    "render_section_header",
    "plan_addition",
    "parse_alias_file",
    "extract_description",
    "compute_diff",
    "generate_preview",
    "collect_document_entries",
    "export_entries_to_json",
    "parse_import_json",
    "validate_import_json",
    "import_entries_from_json",
    "ENTRY_PATTERNS",
    # Stateful components
    "ConfigFile",
    "HistoryStore",
    "SectionWriter",
    "EntryEditor",
    # Configuration
    "EngineConfig",
    "build_config",
    "ConfigError",
    # Data models
    "AddResult",
    "AliasDefinition",
    "DiffResult",
    "Entry",
    "EntryKind",
    "ExportDefinition",
    "HistoryEntry",
    "LogicalSection",
    "MarkerKind",
    "SectionMarker",
    "SectionMatch",
    "SectionStyle",
    # Exceptions
    "StorageError",
    "ReadError",
    "WriteError",
    "ConfigFileNotFoundError",
    "ConfigFileTooLargeError",
    "ConcurrentModificationError",
    "HistoryError",
    "ImportFormatError",
    "InvalidEntryError",
    "EntryNotFoundError",
    # Version
    "__version__",
]
