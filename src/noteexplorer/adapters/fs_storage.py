import logging
import os
from pathlib import Path
from typing import Iterable

from ..core.ports import NoteStorage
from ..core.utils import ensure_final_newline

logger = logging.getLogger(__name__)


class UndecodableNoteError(ValueError):
    """A note file whose bytes are not valid UTF-8."""

    def __init__(self, path: Path, cause: UnicodeDecodeError):
        super().__init__(f"{path} is not valid UTF-8: {cause.reason} at byte {cause.start}")
        self.path = path


def _is_hidden(name: str) -> bool:
    return name.startswith(".")


class FsStorage(NoteStorage):
    def list_files(self, root: Path, extension: str) -> Iterable[Path]:
        """
        All files under `root` with the given extension (without dot),
        skipping every file or directory whose name starts with ".".
        """
        if not root.is_dir():
            return []

        def on_error(err: OSError) -> None:
            logger.warning("Couldn't access %s: %s", err.filename, err.strerror)

        files = []
        for dirpath, dirnames, filenames in os.walk(root, onerror=on_error):
            dirnames[:] = sorted(d for d in dirnames if not _is_hidden(d))
            for name in sorted(filenames):
                if _is_hidden(name):
                    continue
                path = Path(dirpath) / name
                if path.suffix == f".{extension}":
                    files.append(path)
        return files

    def read_text(self, path: Path) -> str:
        try:
            with open(path, encoding="utf-8", newline="") as f:
                return f.read()
        except UnicodeDecodeError as e:
            raise UndecodableNoteError(path, e) from e

    def write_text(self, path: Path, contents: str) -> None:
        # newline="" keeps CRLF line endings already present in the note
        with open(path, "w", encoding="utf-8", newline="") as f:
            f.write(ensure_final_newline(contents))

    def rename(self, old: Path, new: Path) -> None:
        # Renaming only changes case on case-insensitive file systems
        if new.exists() and not (old.exists() and new.samefile(old)):
            raise FileExistsError(f"Cannot rename {old.name}: {new} already exists")
        old.rename(new)
