"""Configuration loader for noteexplorer.toml."""

from dataclasses import dataclass
from pathlib import Path
from typing import Any

try:
    import tomllib
except ImportError:
    import tomli as tomllib  # type: ignore

CONFIG_FILENAME = "noteexplorer.toml"

DEFAULT_EXTENSION = "md"
DEFAULT_ID_FORMAT = r"\d{14}"
DEFAULT_BACKLINKS_HEADING = "## Links to this note"
DEFAULT_LOG_LEVEL = "warning"


@dataclass
class NotesConfig:
    """Where the notes are and what they are called."""
    root: Path
    extension: str = DEFAULT_EXTENSION


@dataclass
class ParserConfig:
    """How note contents are read."""
    id_format: str = DEFAULT_ID_FORMAT
    backlinks_heading: str = DEFAULT_BACKLINKS_HEADING


@dataclass
class LogConfig:
    level: str = DEFAULT_LOG_LEVEL


@dataclass
class ExplorerConfig:
    """Complete noteexplorer configuration."""
    notes: NotesConfig
    parser: ParserConfig
    log: LogConfig


def find_config_file(config_path: Path | None = None, notes_path: Path | None = None) -> Path | None:
    """
    Search order:
    1. config_path (if provided)
    2. cwd/noteexplorer.toml
    3. notes_path/noteexplorer.toml
    """
    search_paths = []
    if config_path:
        search_paths.append(config_path)
    search_paths.append(Path.cwd() / CONFIG_FILENAME)
    if notes_path:
        search_paths.append(notes_path / CONFIG_FILENAME)

    for path in search_paths:
        if path.exists():
            return path
    return None


def load_config(config_path: Path | None = None, notes_path: Path | None = None) -> ExplorerConfig:
    """
    Load configuration from noteexplorer.toml, falling back to defaults for
    anything the file does not set.

    Args:
        config_path: Explicit path to config file
        notes_path: Notes root directory, also used for fallback search

    Returns:
        ExplorerConfig with resolved settings
    """
    toml_data: dict[str, Any] = {}

    path = find_config_file(config_path, notes_path)
    if path is not None:
        with open(path, "rb") as f:
            toml_data = tomllib.load(f)

    notes_data = toml_data.get("notes", {})
    notes_config = NotesConfig(
        root=Path(notes_data.get("root", notes_path or Path("."))),
        extension=str(notes_data.get("extension", DEFAULT_EXTENSION)).lstrip("."),
    )

    parser_data = toml_data.get("parser", {})
    parser_config = ParserConfig(
        id_format=parser_data.get("id_format", DEFAULT_ID_FORMAT),
        backlinks_heading=parser_data.get("backlinks_heading", DEFAULT_BACKLINKS_HEADING),
    )

    log_data = toml_data.get("log", {})
    log_config = LogConfig(level=str(log_data.get("level", DEFAULT_LOG_LEVEL)).lower())

    return ExplorerConfig(
        notes=notes_config,
        parser=parser_config,
        log=log_config,
    )
