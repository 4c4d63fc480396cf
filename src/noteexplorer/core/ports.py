from pathlib import Path
from typing import Iterable, Protocol

from .model import NoteData


class NoteStorage(Protocol):
    """
    File primitives the collection is built on: discovery plus raw
    read/write/rename. Paths are full paths to note files.
    """

    def list_files(self, root: Path, extension: str) -> Iterable[Path]:
        pass

    def read_text(self, path: Path) -> str:
        pass

    def write_text(self, path: Path, contents: str) -> None:
        pass

    def rename(self, old: Path, new: Path) -> None:
        pass


class ParserStrategy(Protocol):
    """
    Extract titles, ids, links, tasks and the backlinks region from note
    text. Must never fail on content.
    """

    backlinks_heading: str

    def parse(self, text: str) -> NoteData:
        pass

    def get_id(self, text: str) -> str | None:
        pass

    def remove_id(self, text: str) -> str:
        pass
