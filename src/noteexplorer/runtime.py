"""Runtime wiring helper for the CLI."""

import logging
import time
from dataclasses import dataclass
from pathlib import Path

from .adapters.fs_storage import FsStorage
from .adapters.markdown_parser import NoteParser
from .config import ExplorerConfig, load_config
from .core.collection import NoteCollection

logger = logging.getLogger(__name__)


@dataclass
class Runtime:
    """Container for all wired components."""
    collection: NoteCollection
    parser: NoteParser
    storage: FsStorage
    config: ExplorerConfig


def build_runtime(
    notes_path: Path | None = None,
    config_path: Path | None = None,
    extension: str | None = None,
    id_format: str | None = None,
    backlinks_heading: str | None = None,
    config: ExplorerConfig | None = None,
) -> Runtime:
    """Load configuration, then collect and index every note under the root."""
    if config is None:
        config = load_config(config_path=config_path, notes_path=notes_path)

    # Command-line values win over the config file
    if notes_path is not None:
        config.notes.root = notes_path
    if extension is not None:
        config.notes.extension = extension.lstrip(".")
    if id_format is not None:
        config.parser.id_format = id_format
    if backlinks_heading is not None:
        config.parser.backlinks_heading = backlinks_heading

    root = config.notes.root.resolve()
    if not root.is_dir():
        raise NotADirectoryError(f"{config.notes.root} is not a directory")

    parser = NoteParser(config.parser.id_format, config.parser.backlinks_heading)
    storage = FsStorage()

    start_time = time.perf_counter()
    collection = NoteCollection.collect_files(
        root,
        config.notes.extension,
        parser,
        storage,
    )
    logger.debug(
        "Collecting %d notes took %.1f ms",
        collection.count(),
        (time.perf_counter() - start_time) * 1000,
    )

    return Runtime(
        collection=collection,
        parser=parser,
        storage=storage,
        config=config,
    )
