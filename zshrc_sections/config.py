"""Configuration loading and management."""

from __future__ import annotations

from dataclasses import dataclass, replace
from pathlib import Path
import tomllib

CONFIG_FILENAMES = {
    "zshrc": ".zshrc",
    "zprofile": ".zprofile",
    "zshenv": ".zshenv",
}

SECTION_STYLES = ("dashed", "bracketed", "hash", "labeled", "custom")

DEFAULT_HISTORY_PATH = "~/.local/state/zshrc-sections/history.json"


@dataclass
class EngineConfig:
    """Configuration for reading and rewriting shell startup files.

    Attributes:
        config_file: Which startup file to manage (``"zshrc"``, ``"zprofile"``
            or ``"zshenv"``).
        custom_path: Explicit path that overrides `config_file` when set.
        history_path: Where the undo history is stored (JSON). ``~`` is expanded.
        max_history_entries: Number of undo snapshots to keep.
        max_file_size: Maximum file size in bytes that will be processed.
        max_line_length: Lines longer than this are never classified.
        default_style: Heading style used when the file has no headings yet.
        backup: Whether to copy the file to ``<file>.bak`` before each write.

    Examples:
        EngineConfig(config_file="zprofile", default_style="bracketed")
    """

    # Target file
    config_file: str = "zshrc"
    custom_path: str | None = None

    # History
    history_path: str = DEFAULT_HISTORY_PATH
    max_history_entries: int = 10

    # Limits
    max_file_size: int = 1024 * 1024
    max_line_length: int = 1000

    # Writing
    default_style: str = "dashed"
    backup: bool = True


class ConfigError(ValueError):
    """Exception raised when configuration values are invalid.

    Examples:
        raise ConfigError("`max_history_entries` must be a positive integer")
    """


def load_config(search_path: Path) -> EngineConfig:
    """Load configuration from the nearest config file.

    Walks parent directories from `search_path` to the filesystem root, reading
    the ``[tool.zshrc-sections]`` table from `pyproject.toml` and the
    ``[zshrc-sections]`` or ``[tool.zshrc-sections]`` table from
    `.zshrc-sections.toml` when present. Returns default values when no
    configuration is found. TOML files that cannot be read or decoded are
    skipped.

    Args:
        search_path: Directory used as the starting point for configuration lookup.

    Returns:
        EngineConfig: Loaded configuration with defaults applied when necessary.

    Raises:
        ConfigError: If the table is present but not a mapping or contains
            unsupported keys.
    """
    current = search_path.expanduser().resolve()

    while True:
        pyproject_config = _load_from_file(
            current / "pyproject.toml", table_paths=[("tool", "zshrc-sections")]
        )
        if pyproject_config is not None:
            return pyproject_config

        dotfile_config = _load_from_file(
            current / ".zshrc-sections.toml",
            table_paths=[("zshrc-sections",), ("tool", "zshrc-sections")],
        )
        if dotfile_config is not None:
            return dotfile_config

        parent = current.parent
        if parent == current:
            break
        current = parent

    return EngineConfig()


_MISSING = object()


def _load_from_file(
    config_file: Path, table_paths: list[tuple[str, ...]]
) -> EngineConfig | None:
    if not config_file.exists():
        return None

    try:
        with open(config_file, "rb") as stream:
            data = tomllib.load(stream)
    except (OSError, tomllib.TOMLDecodeError):
        return None

    for table_path in table_paths:
        raw_config = _extract_table(data, table_path)
        if raw_config is _MISSING:
            continue
        return _build_config_from_raw(raw_config, config_file, table_path)

    return None


def _extract_table(data: object, table_path: tuple[str, ...]) -> object:
    current = data
    for key in table_path:
        if not isinstance(current, dict) or key not in current:
            return _MISSING
        current = current[key]
    return current


def _build_config_from_raw(
    raw_config: object, config_file: Path, table_path: tuple[str, ...]
) -> EngineConfig:
    table_display = ".".join(table_path)

    if not isinstance(raw_config, dict):
        raise ConfigError(f"Invalid `[{table_display}]` settings in {config_file}")

    if not raw_config:
        return EngineConfig()

    try:
        return EngineConfig(**raw_config)
    except TypeError as error:
        raise ConfigError(f"Invalid `[{table_display}]` settings in {config_file}") from error


def validate_config(config: EngineConfig) -> None:
    """Validate an `EngineConfig` instance.

    Raises:
        ConfigError: If the file type or heading style is unknown, numeric
            limits are not positive integers, or flags are not booleans.
    """
    _ensure_integers(
        {
            "max_history_entries": config.max_history_entries,
            "max_file_size": config.max_file_size,
            "max_line_length": config.max_line_length,
        }
    )
    _ensure_positive(
        {
            "max_history_entries": config.max_history_entries,
            "max_file_size": config.max_file_size,
            "max_line_length": config.max_line_length,
        }
    )

    if config.config_file not in CONFIG_FILENAMES:
        raise ConfigError(f"`config_file` must be one of: {', '.join(CONFIG_FILENAMES)}")
    if config.custom_path is not None and not str(config.custom_path).strip():
        raise ConfigError("`custom_path` must not be empty")
    if not config.history_path:
        raise ConfigError("`history_path` must not be empty")
    if config.default_style not in SECTION_STYLES:
        raise ConfigError(f"`default_style` must be one of: {', '.join(SECTION_STYLES)}")
    if not isinstance(config.backup, bool):
        raise ConfigError("`backup` must be a boolean")


def apply_overrides(config: EngineConfig, **overrides: object) -> EngineConfig:
    """Apply override values to an `EngineConfig`.

    Values set to None are ignored. The original configuration is returned
    when no changes are supplied.

    Examples:
        updated = apply_overrides(config, custom_path="~/dotfiles/zshrc")
    """
    changes = {key: value for key, value in overrides.items() if value is not None}
    if not changes:
        return config
    return replace(config, **changes)


def build_config(search_path: Path, **overrides: object) -> EngineConfig:
    """Load, override, and validate configuration.

    Raises:
        ConfigError: If configuration loading or validation fails.

    Examples:
        config = build_config(Path.home(), config_file="zprofile")
    """
    config = load_config(search_path)
    config = apply_overrides(config, **overrides)
    validate_config(config)
    return config


def resolve_config_path(config: EngineConfig) -> Path:
    """Return the startup file managed under `config`.

    Examples:
        resolve_config_path(EngineConfig())  # Path("~/.zshrc").expanduser()
        resolve_config_path(EngineConfig(custom_path="~/dotfiles/zshrc"))
    """
    if config.custom_path:
        return Path(config.custom_path).expanduser()
    filename = CONFIG_FILENAMES.get(config.config_file, CONFIG_FILENAMES["zshrc"])
    return Path.home() / filename


def resolve_history_path(config: EngineConfig) -> Path:
    """Return the expanded location of the undo history file."""
    return Path(config.history_path).expanduser()


def _ensure_positive(values: dict[str, int]) -> None:
    for key, value in values.items():
        if value <= 0:
            raise ConfigError(f"`{key}` must be a positive integer")


def _ensure_integers(values: dict[str, object]) -> None:
    for key, value in values.items():
        if isinstance(value, bool) or not isinstance(value, int):
            raise ConfigError(f"`{key}` must be an integer")
