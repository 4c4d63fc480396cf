"""Tests for the note text parser."""

import pytest

from noteexplorer.adapters.markdown_parser import (
    InvalidIdPatternError,
    NoteParser,
    find_first_line,
    find_next_line,
    strip_heading_attributes,
)
from noteexplorer.core.model import NoteData, WikiLink


def test_parse_simple_note(parser):
    """Test a heading and a link in a plain note."""
    data = parser.parse("# Title\n\n[[Other]]\n")

    assert data.titles == ["Title"]
    assert data.ids == []
    assert data.links == [WikiLink.for_filename("Other")]
    assert data.tasks == []
    assert data.backlinks_start is None
    assert data.backlinks_end is None


def test_parse_empty_text(parser):
    assert parser.parse("") == NoteData()
    assert parser.parse("\r\n\n\r") == NoteData()


def test_parse_markdown_file(parser):
    """Test titles, IDs and links in YAML, headings, code and tasks."""
    text = """---
title: "Markdown: A markup language"
id: 12345678901234
related: [[Related note1]]
# comment with 11111111111111
---

# Markdown Test File {#top .unnumbered}

Text referring to [[Related note2]] and [[22222222222222]].

```python
# Not a heading [[Not a link]]
```

    indented code [[Also not a link]]

~~~
[[Nope]] 33333333333333
~~~

# Then another heading ##

- [ ] A task with [[Task link]]
"""
    data = parser.parse(text)

    assert data.titles == [
        "Markdown: A markup language",
        "Markdown Test File",
        "Then another heading",
    ]
    assert data.ids == ["12345678901234"]
    assert data.links == [
        WikiLink.for_filename("Related note1"),
        WikiLink.for_filename("Related note2"),
        WikiLink.for_id("22222222222222"),
        WikiLink.for_filename("Task link"),
    ]
    assert data.tasks == ["A task with [[Task link]]"]


@pytest.mark.parametrize(
    "line,title",
    [
        ("title: Plain YAML title", "Plain YAML title"),
        ('title: "Plein: YAML title"', "Plein: YAML title"),
        ("title: Plein: YAML title", "Plein: YAML title"),
        ("'title': 'Single quoted'", "Single quoted"),
        ("  title:   Indented  ", "Indented"),
    ],
)
def test_yaml_titles(parser, line, title):
    data = parser.parse(f"---\n{line}\n---\n\n# Heading title\n")
    assert data.titles == [title, "Heading title"]


def test_yaml_ignores_other_keys_and_comments(parser):
    text = "---\nsubtitle: Not this\n# title: Nor this\n...\n\nBody\n"
    data = parser.parse(text)
    assert data.titles == []


def test_yaml_id(parser):
    data = parser.parse("---\nid: 20201012145848\n---\nText 20209999999999\n")
    assert data.ids == ["20201012145848", "20209999999999"]


def test_tasks(parser):
    """Test open tasks are found in lists, also indented ones."""
    text = (
        "# Tasks\n\n"
        "- [ ] Don't forget to remember\n"
        "* [ ] Buy milk!\n"
        "- [x] Done already\n"
        "    - [ ] Nested\n"
        "\t+ [ ] Tabbed with [[link]]\n"
        "-[ ] Not a task\n"
        "\n```\n- [ ] In code\n```\n\n"
        "- [ ] Final line"
    )
    data = parser.parse(text)

    assert data.tasks == [
        "Don't forget to remember",
        "Buy milk!",
        "Nested",
        "Tabbed with [[link]]",
        "Final line",
    ]
    assert data.links == [WikiLink.for_filename("link")]


def test_tasks_not_read_from_yaml(parser):
    data = parser.parse("---\n- [ ] yaml list item\n---\n")
    assert data.tasks == []


def test_backlinks_region(parser):
    """Test the backlinks section is located and its links are not read."""
    text = (
        "# Backlinks test case\r\n\r\n"
        "Some note text\r\n\r\n"
        "## Links to this note\r\n\r\n"
        "- [[§An outline note]]\r\n"
        "- [[20201012145848]] Another note\r\n"
        "* Not a link\r\n\r\n"
        "<!-- Here be dragons -->\r\n"
    )
    data = parser.parse(text)

    assert data.backlinks_start == text.index("## Links to this note")
    assert data.backlinks_end == text.index("<!--")
    # All links in this text are in the backlinks section
    assert data.links == []


def test_backlinks_region_runs_to_end(parser):
    text = "# Note\n\n## Links to this note\n\n- [[A]]\n- [[B]]\n"
    data = parser.parse(text)

    assert data.backlinks_start == text.index("## Links")
    assert data.backlinks_end is None


def test_backlinks_region_ends_at_blank_line(parser):
    """Test a list after a blank line does not belong to the backlinks."""
    text = "# Note\n\n## Links to this note\n\n- [[A]]\n- [[B]]\n\n- [[C]] my own list\n"
    data = parser.parse(text)

    assert data.backlinks_end == text.index("- [[C]]")
    assert data.links == [WikiLink.for_filename("C")]


def test_backlinks_heading_must_match_exactly(parser):
    data = parser.parse("# Note\n\n## Links to this note:\n\n- [[A]]\n")
    assert data.backlinks_start is None
    assert data.links == [WikiLink.for_filename("A")]


def test_backlinks_heading_of_level_one():
    parser = NoteParser(r"\d{14}", "# Backlinks")
    data = parser.parse("# Title\n\n# Backlinks\n\n- [[A]]\n")

    assert data.titles == ["Title"]
    assert data.backlinks_start is not None


def test_byte_order_mark_is_skipped(parser):
    assert parser.parse("\ufeff# Title\n").titles == ["Title"]
    assert parser.parse("\ufeff---\ntitle: From YAML\n---\n").titles == ["From YAML"]


def test_mixed_line_endings(parser):
    data = parser.parse("# One\r[[A]]\r\n[[B]]\n\r\n[[C]]")
    assert data.titles == ["One"]
    assert [link.text for link in data.links] == ["A", "B", "C"]


def test_malformed_links_are_dropped(parser):
    """Test links starting or ending with space or dot are ignored."""
    data = parser.parse("[[ leading]] [[trailing ]] [[.hidden]] [[dot.]] [[ok.name]]\n")
    assert data.links == [WikiLink.for_filename("ok.name")]


def test_links_with_illegal_characters_are_ignored(parser):
    data = parser.parse("[[label|target]] [[a/b]] [[what?]] [[C# notes]]\n")
    assert data.links == [WikiLink.for_filename("C# notes")]


def test_id_links(parser):
    links = parser.get_wiki_links("[[20201012145848]] [[20201012145848 With title]]")
    assert links == [
        WikiLink.for_id("20201012145848"),
        WikiLink.for_filename("20201012145848 With title"),
    ]
    assert links[0].is_id
    assert not links[1].is_id


def test_get_and_remove_id(parser):
    assert parser.get_id("20201012145848 Some title") == "20201012145848"
    assert parser.get_id("Some title 20201012145848") == "20201012145848"
    assert parser.remove_id("20201012145848 Some title") == "Some title"
    assert parser.remove_id("No id here") == "No id here"


def test_id_is_not_matched_inside_longer_tokens(parser):
    """Test an ID must be a separate word."""
    assert parser.get_id("x20201012145848") is None
    assert parser.get_id("202010121458489") is None
    assert parser.get_id("(20201012145848)") is None


def test_invalid_id_pattern():
    with pytest.raises(InvalidIdPatternError):
        NoteParser("(unclosed", "## Links to this note")

    with pytest.raises(ValueError):
        NoteParser("[", "## Links to this note")


def test_strip_heading_attributes():
    assert strip_heading_attributes("My heading") == "My heading"
    assert strip_heading_attributes("My heading {#foo}") == "My heading "
    assert strip_heading_attributes("My {heading} {#foo}") == "My {heading} "
    # Only remove {} at the end!
    assert strip_heading_attributes("{-} My heading") == "{-} My heading"
    assert strip_heading_attributes("My }{ heading") == "My }{ heading"


def test_find_first_line():
    assert find_first_line("", 0) is None
    assert find_first_line("\r", 0) is None
    assert find_first_line("\n", 0) is None

    text = "Lorem ipsum dolor sit amet"
    assert find_first_line(text, 0) == (0, len(text))

    text = "Lorem ipsum dolor sit amet\r\n"
    start, end = find_first_line(text, 0)
    assert text[start:end] == "Lorem ipsum dolor sit amet"

    text = "\r\r\n\nLorem ipsum dolor sit amet"
    start, end = find_first_line(text, 0)
    assert start == 4
    assert text[start:end] == "Lorem ipsum dolor sit amet"


def test_find_next_line():
    assert find_next_line("", 0) is None
    assert find_next_line("\n", 0) is None
    assert find_next_line("Lorem ipsum dolor sit amet", 0) is None

    text = "\rLorem\ripsum\ndolor\r\nsit\namet\r\n"
    start, end = find_next_line(text, 0)
    assert (start, text[start:end]) == (1, "Lorem")
    start, end = find_next_line(text, start)
    assert (start, text[start:end]) == (7, "ipsum")
    start, end = find_next_line(text, start)
    assert (start, text[start:end]) == (13, "dolor")

    text = "\U0001f525\n\U0001f525\n"
    start, end = find_next_line(text, 0)
    assert start == 2
    assert text[start:end] == "\U0001f525"
