from __future__ import annotations

from .model import NoteFile, NoteMeta, WikiLink, render_wikilink
from .ports import ParserStrategy


class Note:
    """
    A note file plus everything derived from its content. Derived fields
    depend on the content, so a Note is rebuilt rather than patched whenever
    the file changes. Notes are identified by their path.
    """

    def __init__(self, file: NoteFile, parser: ParserStrategy):
        data = parser.parse(file.content)

        # An ID in the filename wins over one in the contents
        id = parser.get_id(file.stem)
        if id is None and data.ids:
            id = data.ids[0]

        if data.titles:
            title = data.titles[0]
        else:
            # Fall back to filename minus ID
            title = parser.remove_id(file.stem)

        self.file = file
        self.parser = parser
        self.id = id
        self.title = title
        self.title_lower = title.lower()
        self.tasks = data.tasks
        self.backlinks_start = data.backlinks_start
        self.backlinks_end = data.backlinks_end
        self.links = {link for link in data.links if not self.is_link_to(link)}

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Note):
            return NotImplemented
        return self.file.path == other.file.path

    def __hash__(self) -> int:
        return hash(self.file.path)

    def __repr__(self) -> str:
        return f"Note(path={self.file.path!r}, id={self.id!r}, title={self.title!r})"

    @property
    def sort_key(self) -> tuple[str, str]:
        return (self.title_lower, self.file.stem)

    def filename_link(self) -> WikiLink:
        return WikiLink.for_filename(self.file.stem)

    def id_link(self) -> WikiLink | None:
        return WikiLink.for_id(self.id) if self.id is not None else None

    def identities(self) -> list[WikiLink]:
        """All keys this note can be reached by, filename first."""
        id_link = self.id_link()
        return [self.filename_link()] + ([id_link] if id_link else [])

    def is_link_to(self, link: WikiLink) -> bool:
        return link in self.identities()

    def has_backlinks(self) -> bool:
        return self.backlinks_start is not None

    def has_outgoing_links(self) -> bool:
        return bool(self.links)

    def _backlinks_bounds(self) -> tuple[int, int] | None:
        if self.backlinks_start is None:
            return None
        end = self.backlinks_end
        return (self.backlinks_start, len(self.file.content) if end is None else end)

    def contents_without_backlinks(self) -> str:
        """Note contents with the backlinks section left out."""
        bounds = self._backlinks_bounds()
        if bounds is None:
            return self.file.content
        start, end = bounds
        return self.file.content[:start] + self.file.content[end:]

    def contents_with_new_backlinks(self, heading: str, backlinks: str) -> str:
        """Note contents with the backlinks section replaced, or added last."""
        content = self.file.content
        bounds = self._backlinks_bounds()
        if bounds is None:
            before, after = content, ""
        else:
            before, after = content[: bounds[0]], content[bounds[1] :]
        return "\n\n".join([before.rstrip(), heading, backlinks, after]).rstrip()

    def backlinks_section(self) -> str | None:
        """Current backlinks section without the heading, stripped."""
        bounds = self._backlinks_bounds()
        if bounds is None:
            return None
        start, end = bounds
        return self.file.content[start + len(self.parser.backlinks_heading) : end].strip()

    def wikilink_to(self) -> str:
        return render_wikilink(self.id, self.title, self.file.stem)

    def get_meta(self) -> NoteMeta:
        return NoteMeta(
            path=self.file.path,
            stem=self.file.stem,
            extension=self.file.extension,
            title=self.title,
            id=self.id,
        )
