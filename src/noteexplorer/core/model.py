from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .ports import NoteStorage


class LinkKind(Enum):
    ID = "id"
    FILENAME = "filename"


@dataclass(frozen=True)
class WikiLink:
    """
    Identity key of the note graph. Two links are equal when they have the
    same kind and their texts match case-insensitively; `text` keeps the
    original spelling for display.
    """

    kind: LinkKind
    text: str = field(compare=False)
    folded: str = field(init=False, repr=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "folded", self.text.casefold())

    @classmethod
    def for_id(cls, text: str) -> WikiLink:
        return cls(LinkKind.ID, text)

    @classmethod
    def for_filename(cls, text: str) -> WikiLink:
        return cls(LinkKind.FILENAME, text)

    @property
    def is_id(self) -> bool:
        return self.kind is LinkKind.ID

    def __str__(self) -> str:
        return f"[[{self.text}]]"


@dataclass
class NoteData:
    titles: list[str] = field(default_factory=list)
    ids: list[str] = field(default_factory=list)
    links: list[WikiLink] = field(default_factory=list)
    tasks: list[str] = field(default_factory=list)
    backlinks_start: int | None = None  # string index of the heading line
    backlinks_end: int | None = None  # None means "runs to end of text"


@dataclass(frozen=True)
class NoteFile:
    path: str  # full path to the file
    stem: str  # filename without directory and extension
    extension: str  # without leading dot
    content: str

    @classmethod
    def load(cls, path: Path, storage: NoteStorage) -> NoteFile:
        return cls(
            path=str(path),
            stem=path.stem,
            extension=path.suffix.lstrip("."),
            content=storage.read_text(path),
        )

    def rename(self, new_stem: str, storage: NoteStorage) -> NoteFile:
        """Rename the file on disk, assuming `new_stem` is a valid filename."""
        new_path = Path(self.path).with_name(f"{new_stem}.{self.extension}")
        storage.rename(Path(self.path), new_path)
        return NoteFile(
            path=str(new_path),
            stem=new_stem,
            extension=self.extension,
            content=self.content,
        )

    def replace_content(self, content: str) -> NoteFile:
        return NoteFile(self.path, self.stem, self.extension, content)


def render_wikilink(id: str | None, title: str, stem: str) -> str:
    # Link to the ID when there is one, otherwise to the filename
    target = id if id is not None else stem
    # "[[Filename link]] Filename link" says nothing twice
    description = "" if title == target else title
    return f"[[{target}]] {description}".rstrip()


@dataclass(frozen=True)
class NoteMeta:
    path: str
    stem: str
    extension: str
    title: str
    id: str | None = None

    @property
    def filename(self) -> str:
        return f"{self.stem}.{self.extension}"

    def wikilink_to(self) -> str:
        return render_wikilink(self.id, self.title, self.stem)

    def to_dict(self) -> dict[str, str | None]:
        return {
            "path": self.path,
            "stem": self.stem,
            "extension": self.extension,
            "title": self.title,
            "id": self.id,
        }
