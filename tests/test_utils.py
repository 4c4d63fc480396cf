"""Tests for filename cleaning."""

import pytest

from noteexplorer.core.utils import clean_filename, ensure_final_newline


@pytest.mark.parametrize(
    "filename,expected",
    [
        ("<Is/this\\a::regular?*?*?file>", "Is this a regular file"),
        ("pipe | is also forbidden", "pipe is also forbidden"),
        ("Try some whitespace: \t\r\n--", "Try some whitespace --"),
        ("C# is a nice language!", "C# is a nice language!"),
        (".:/?.", ""),
        (".hidden  file.", "hidden file"),
        ("null\x00byte", "null byte"),
        ("20201012145848 Ünïcödé", "20201012145848 Ünïcödé"),
    ],
)
def test_clean_filename(filename, expected):
    assert clean_filename(filename) == expected


def test_clean_filename_is_stable():
    """Test cleaning a clean filename changes nothing."""
    for filename in ["<Is/this\\a::regular?*?*?file>", ". . dots . .", "a  b"]:
        cleaned = clean_filename(filename)
        assert clean_filename(cleaned) == cleaned


def test_ensure_final_newline():
    assert ensure_final_newline("text") == "text\n"
    assert ensure_final_newline("text\n\n\n") == "text\n"
    assert ensure_final_newline("text \r\n") == "text\n"
    assert ensure_final_newline("") == "\n"
