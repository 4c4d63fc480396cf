import logging
import re
import time
from pathlib import Path

from .model import LinkKind, NoteFile, NoteMeta, WikiLink
from .note import Note
from .ports import NoteStorage, ParserStrategy
from .utils import clean_filename, ensure_final_newline

logger = logging.getLogger(__name__)

NoteKey = int

LINK_TEXT_RE = re.compile(r"\[\[([^\]]*)\]\]")


class NoteCollection:
    """
    All notes under one root, indexed by identity.

    Notes live in an arena keyed by a surrogate integer. `notes` maps every
    filename and ID to a key, and `backlinks` maps every link target to the
    keys of the notes linking to it. Both maps are built together and every
    mutation keeps them consistent.
    """

    def __init__(self, parser: ParserStrategy, storage: NoteStorage):
        self.parser = parser
        self.storage = storage
        self._arena: dict[NoteKey, Note] = {}
        self._next_key: NoteKey = 0
        self.notes: dict[WikiLink, NoteKey] = {}
        self.backlinks: dict[WikiLink, list[NoteKey]] = {}

    @classmethod
    def collect_files(
        cls,
        root: Path,
        extension: str,
        parser: ParserStrategy,
        storage: NoteStorage | None = None,
    ) -> "NoteCollection":
        if storage is None:
            from ..adapters.fs_storage import FsStorage

            storage = FsStorage()
        collection = cls(parser, storage)

        start_time = time.perf_counter()
        paths = list(storage.list_files(root, extension))
        logger.debug(
            "Found %d note files in %.1f ms", len(paths), (time.perf_counter() - start_time) * 1000
        )

        start_time = time.perf_counter()
        for path in paths:
            try:
                note_file = NoteFile.load(path, storage)
            except (OSError, ValueError) as e:
                logger.warning("Couldn't read file %s: %s", path, e)
                continue
            collection.add(Note(note_file, parser))
        logger.debug(
            "Loading and parsing notes took %.1f ms", (time.perf_counter() - start_time) * 1000
        )

        return collection

    # Indexing

    def add(self, note: Note) -> NoteKey:
        key = self._next_key
        self._next_key += 1
        self._arena[key] = note
        self._index_identities(key, note.identities())
        self._index_links(key, note.links)
        return key

    def _index_identities(self, key: NoteKey, identities: list[WikiLink]) -> None:
        note = self._arena[key]
        for identity in identities:
            other_key = self.notes.get(identity)
            if other_key is not None and other_key != key:
                other = self._arena[other_key]
                if identity.is_id:
                    logger.warning(
                        'The id %s was used in both "%s" and "%s"',
                        identity.text,
                        note.file.stem,
                        other.file.stem,
                    )
                else:
                    # One note per filename
                    logger.warning(
                        'The filename "%s" is used by both %s and %s, ignoring the latter',
                        identity.text,
                        note.file.path,
                        other.file.path,
                    )
                    self._remove(other_key)
            self.notes[identity] = key

    def _unindex_identities(self, key: NoteKey, identities: list[WikiLink]) -> None:
        for identity in identities:
            if self.notes.get(identity) == key:
                del self.notes[identity]

    def _index_links(self, key: NoteKey, links: set[WikiLink]) -> None:
        for link in links:
            self.backlinks.setdefault(link, []).append(key)

    def _unindex_links(self, key: NoteKey, links: set[WikiLink]) -> None:
        for link in links:
            linkers = self.backlinks.get(link)
            if linkers is None:
                continue
            linkers[:] = [k for k in linkers if k != key]
            if not linkers:
                del self.backlinks[link]

    def _remove(self, key: NoteKey) -> None:
        note = self._arena.pop(key)
        self._unindex_identities(key, note.identities())
        self._unindex_links(key, note.links)

    def _replace(self, key: NoteKey, file: NoteFile) -> Note:
        """Rebuild the note in slot `key` from a new file and re-index it."""
        old = self._arena[key]
        new = Note(file, self.parser)
        self._arena[key] = new

        old_identities = old.identities()
        new_identities = new.identities()
        self._unindex_identities(key, [i for i in old_identities if i not in new_identities])
        self._index_identities(key, [i for i in new_identities if i not in old_identities])

        if old.links != new.links:
            self._unindex_links(key, old.links - new.links)
            self._index_links(key, new.links - old.links)
        return new

    # Queries

    def _sorted_keys(self) -> list[NoteKey]:
        return sorted(self._arena, key=lambda k: self._arena[k].sort_key)

    def _sorted_notes(self) -> list[Note]:
        return [self._arena[k] for k in self._sorted_keys()]

    def count(self) -> int:
        return len(self._arena)

    def count_with_id(self) -> int:
        return sum(1 for note in self._arena.values() if note.id is not None)

    def count_links(self) -> int:
        """Number of distinct link targets, not the number of links."""
        return len(self.backlinks)

    def get_notes(self) -> list[NoteMeta]:
        return [note.get_meta() for note in self._sorted_notes()]

    def get_note(self, stem: str) -> NoteMeta | None:
        key = self.notes.get(WikiLink.for_filename(stem))
        return self._arena[key].get_meta() if key is not None else None

    def has_incoming_links(self, note: Note) -> bool:
        return any(identity in self.backlinks for identity in note.identities())

    def _incoming_keys(self, note: Note) -> list[NoteKey]:
        keys: list[NoteKey] = []
        for identity in note.identities():
            keys.extend(self.backlinks.get(identity, []))
        return list(dict.fromkeys(keys))

    def get_incoming_notes(self, note: Note) -> list[Note]:
        """Notes linking to `note` by filename or ID, sorted by title."""
        notes = [self._arena[k] for k in self._incoming_keys(note)]
        return sorted(notes, key=lambda n: n.sort_key)

    def get_sources(self) -> list[NoteMeta]:
        """Notes with no incoming links, but at least one outgoing."""
        return [
            note.get_meta()
            for note in self._sorted_notes()
            if note.has_outgoing_links() and not self.has_incoming_links(note)
        ]

    def get_sinks(self) -> list[NoteMeta]:
        """Notes with no outgoing links, but at least one incoming."""
        return [
            note.get_meta()
            for note in self._sorted_notes()
            if not note.has_outgoing_links() and self.has_incoming_links(note)
        ]

    def get_isolated(self) -> list[NoteMeta]:
        """Notes with no incoming or outgoing links."""
        return [
            note.get_meta()
            for note in self._sorted_notes()
            if not note.has_outgoing_links() and not self.has_incoming_links(note)
        ]

    def get_broken_links(self) -> list[tuple[WikiLink, list[NoteMeta]]]:
        broken = [link for link in self.backlinks if link not in self.notes]
        broken.sort(key=lambda link: (link.kind is LinkKind.FILENAME, link.folded))
        result = []
        for link in broken:
            linkers = sorted((self._arena[k] for k in self.backlinks[link]), key=lambda n: n.sort_key)
            result.append((link, [n.get_meta() for n in linkers]))
        return result

    def get_tasks(self) -> list[tuple[NoteMeta, list[str]]]:
        return [(note.get_meta(), list(note.tasks)) for note in self._sorted_notes() if note.tasks]

    def get_mismatched_filenames(self) -> list[tuple[NoteMeta, str]]:
        """Notes whose filename differs from "<id> <title>", with the new name."""
        result = []
        for note in self._sorted_notes():
            if note.id is not None:
                new_stem = clean_filename(f"{note.id} {note.title}")
            else:
                new_stem = clean_filename(note.title)
            if not new_stem:
                logger.debug("No usable filename in the title of %s", note.file.path)
                continue
            if note.file.stem.casefold() != new_stem.casefold():
                result.append((note.get_meta(), new_stem))
        return result

    # Mutations

    def _save(self, key: NoteKey, contents: str) -> NoteMeta | None:
        note = self._arena[key]
        try:
            self.storage.write_text(Path(note.file.path), contents)
        except OSError as e:
            logger.error("Error while saving note file %s: %s", note.file.path, e)
            return None
        return self._replace(key, note.file.replace_content(ensure_final_newline(contents))).get_meta()

    def remove_backlinks(self) -> list[NoteMeta]:
        changed = []
        for key in self._sorted_keys():
            note = self._arena[key]
            if note.has_backlinks():
                meta = self._save(key, note.contents_without_backlinks())
                if meta is not None:
                    changed.append(meta)
        return changed

    def update_backlinks(self) -> list[NoteMeta]:
        heading = self.parser.backlinks_heading
        changed = []
        for key in self._sorted_keys():
            note = self._arena[key]
            lines = [f"- {n.wikilink_to()}" for n in self.get_incoming_notes(note)]
            new_section = "\n".join(dict.fromkeys(lines))

            if (note.backlinks_section() or "") == new_section:
                continue
            if new_section:
                contents = note.contents_with_new_backlinks(heading, new_section)
            else:
                contents = note.contents_without_backlinks()
            meta = self._save(key, contents)
            if meta is not None:
                changed.append(meta)
        return changed

    def rename_note(self, note_meta: NoteMeta, new_stem: str) -> list[NoteMeta]:
        """
        Rename a note file and rewrite the [[filename]] links pointing to it.
        Returns the renamed note followed by every rewritten note; an empty
        list if the file could not be renamed.
        """
        key = self.notes.get(WikiLink.for_filename(note_meta.stem))
        if key is None or self._arena[key].file.path != note_meta.path:
            raise KeyError(f"{note_meta.path} is not part of this collection")

        note = self._arena[key]
        old_link = note.filename_link()
        owner = self.notes.get(WikiLink.for_filename(new_stem))
        if owner is not None and owner != key:
            logger.error(
                "Couldn't rename %s to %s: %s already has that name",
                note.file.path,
                new_stem,
                self._arena[owner].file.path,
            )
            return []
        linker_keys = [k for k in self.backlinks.get(old_link, []) if k != key]

        try:
            new_file = note.file.rename(new_stem, self.storage)
        except OSError as e:
            logger.error("Couldn't rename %s to %s: %s", note.file.path, new_stem, e)
            return []
        changed = [self._replace(key, new_file).get_meta()]

        new_link = f"[[{new_stem}]]"

        def rewrite(m: re.Match) -> str:
            # Compare the way the index does
            if WikiLink.for_filename(m.group(1)) == old_link:
                return new_link
            return m.group(0)

        for linker_key in dict.fromkeys(linker_keys):
            linker = self._arena[linker_key]
            contents = LINK_TEXT_RE.sub(rewrite, linker.file.content)
            if contents == linker.file.content:
                continue
            meta = self._save(linker_key, contents)
            if meta is not None:
                changed.append(meta)
        return changed
