import re
from enum import Enum, auto
from typing import Iterator

import yaml

from ..core.model import NoteData, WikiLink
from ..core.ports import ParserStrategy

YAML_TITLE_RE = re.compile(r"""\A\s*['"]?title['"]?\s*:\s+(.+?)\s*\Z""")
# Bare [[target]] links; target characters are the ones allowed in filenames
WIKILINK_RE = re.compile(r'\[\[([^<>:*?/"\\|\[\]\t]+?)\]\]')
TASK_RE = re.compile(r"\A\s*[-+*]\s+\[ \]\s+(.+?)\Z")
BACKLINK_RE = re.compile(r"\A[-+*]")
INDENTED_LIST_RE = re.compile(r"\A\s+[-+*]\s.+\Z")

# Two ways to start and end code blocks
CODEBLOCK_TOKENS = ("```", "~~~")
BOM = "\ufeff"


class InvalidIdPatternError(ValueError):
    """The configured ID format is not a valid regular expression."""


class ParseState(Enum):
    INITIAL = auto()
    YAML = auto()
    REGULAR = auto()
    CODEBLOCK = auto()
    BACKLINKS = auto()


def _find_newline(text: str, offset: int) -> int | None:
    for pos in range(offset, len(text)):
        if text[pos] in "\r\n":
            return pos
    return None


def find_first_line(text: str, offset: int) -> tuple[int, int] | None:
    """Find (start, end) of the first non-blank line at or after `offset`."""
    pos = offset
    while pos < len(text) and text[pos] in "\r\n":
        pos += 1
    if pos >= len(text):
        return None
    end = _find_newline(text, pos)
    return (pos, len(text) if end is None else end)


def find_next_line(text: str, offset: int) -> tuple[int, int] | None:
    """Find (start, end) of the line following the one containing `offset`."""
    pos = _find_newline(text, offset)
    if pos is None:
        return None
    return find_first_line(text, pos)


def iter_lines(text: str) -> Iterator[tuple[int, int]]:
    span = find_first_line(text, 1 if text.startswith(BOM) else 0)
    while span is not None:
        yield span
        span = find_next_line(text, span[1])


def _has_blank_line(gap: str) -> bool:
    """True if the line break run `gap` contains at least one empty line."""
    return len(gap.replace("\r\n", "\n")) >= 2


def strip_heading_attributes(text: str) -> str:
    """Remove Pandoc-style attributes at the end of a heading ("{#id}")."""
    if text.endswith("}"):
        start = text.rfind("{")
        if start != -1:
            return text[:start]
    return text


def _yaml_title(value: str) -> str:
    try:
        parsed = yaml.safe_load(value)
    except yaml.YAMLError:
        parsed = None
    if isinstance(parsed, str):
        return parsed.strip()
    return value.strip("'\"").strip()


def is_malformed_link(text: str) -> bool:
    return text[:1] in (" ", ".") or text[-1:] in (" ", ".")


class NoteParser(ParserStrategy):
    def __init__(self, id_pattern: str, backlinks_heading: str):
        try:
            self.id_expr = re.compile(rf"(?:\A|\s)({id_pattern})(?:\Z|\b)")
            self.id_full_expr = re.compile(id_pattern)
        except re.error as e:
            raise InvalidIdPatternError(
                f"Cannot parse ID format as regular expression: {id_pattern!r} ({e})"
            ) from e
        self.id_pattern = id_pattern
        self.backlinks_heading = backlinks_heading

    def parse(self, text: str) -> NoteData:
        data = NoteData()
        state = ParseState.INITIAL
        codeblock_token = ""
        backlink_items = 0
        prev_end = 0

        lines = iter_lines(text)
        span = next(lines, None)
        while span is not None:
            start, end = span
            ln = text[start:end]
            blank_before = _has_blank_line(text[prev_end:start])

            if state is ParseState.INITIAL:
                if ln.startswith("---"):
                    state = ParseState.YAML
                else:
                    # Parse the line again in another state
                    state = ParseState.REGULAR
                    continue

            elif state is ParseState.YAML:
                if ln.startswith(("---", "...")):
                    state = ParseState.REGULAR
                elif not ln.startswith("#"):
                    m = YAML_TITLE_RE.match(ln)
                    if m:
                        data.titles.append(_yaml_title(m.group(1)))
                    self._scan_ids_and_links(ln, data)

            elif state is ParseState.REGULAR:
                if ln == self.backlinks_heading:
                    data.backlinks_start = start
                    state = ParseState.BACKLINKS
                elif len(ln) > 2 and ln.startswith("# "):
                    # Remove {.attributes} and trailing # characters and spaces
                    # See https://pandoc.org/MANUAL.html#pandocs-markdown
                    data.titles.append(strip_heading_attributes(ln[2:]).rstrip(" #"))
                    self._scan_ids_and_links(ln, data)
                elif ln.startswith(("\t", "    ")) and not INDENTED_LIST_RE.match(ln):
                    # Indented code (but not indented list items)
                    pass
                elif ln.startswith(CODEBLOCK_TOKENS):
                    codeblock_token = ln[:3]
                    state = ParseState.CODEBLOCK
                else:
                    self._scan_ids_and_links(ln, data)
                    m = TASK_RE.match(ln)
                    if m:
                        data.tasks.append(m.group(1))

            elif state is ParseState.CODEBLOCK:
                if ln.startswith(codeblock_token):
                    state = ParseState.REGULAR

            elif state is ParseState.BACKLINKS:
                if BACKLINK_RE.match(ln) and not (backlink_items and blank_before):
                    backlink_items += 1
                else:
                    # The backlinks list has ended; something else is here
                    data.backlinks_end = start
                    state = ParseState.REGULAR
                    continue

            prev_end = end
            span = next(lines, None)

        return data

    def _scan_ids_and_links(self, ln: str, data: NoteData) -> None:
        m = self.id_expr.search(ln)
        if m:
            data.ids.append(m.group(1))
        if "[[" in ln:
            data.links.extend(self.get_wiki_links(ln))

    def get_id(self, text: str) -> str | None:
        m = self.id_expr.search(text)
        return m.group(1) if m else None

    def is_id(self, text: str) -> bool:
        return self.id_full_expr.fullmatch(text) is not None

    def remove_id(self, text: str) -> str:
        return self.id_expr.sub("", text, count=1).strip()

    def get_wiki_links(self, text: str) -> list[WikiLink]:
        links = []
        for m in WIKILINK_RE.finditer(text):
            target = m.group(1)
            if self.is_id(target):
                links.append(WikiLink.for_id(target))
            elif not is_malformed_link(target):
                links.append(WikiLink.for_filename(target))
        return links
