"""Utility functions for noteexplorer."""

import re

# Illegal on at least one of Windows, macOS and Linux, replaced with " "
ILLEGAL_FILE_CHARS = re.compile(r'[<>:*?|/"\\\x00-\x1f\x7f]')
SPACE_RUNS = re.compile(r" +")


def clean_filename(filename: str) -> str:
    """
    Clean a filename so it is valid on Windows, macOS and Linux, with the
    extra rule that it must not start or end with dots or spaces.

    - Replace illegal characters, control characters, tab, CR and LF with " "
    - Collapse runs of spaces
    - Strip leading/trailing spaces and dots

    Examples:
        >>> clean_filename("<Is/this\\\\a::regular?*?*?file>")
        'Is this a regular file'
        >>> clean_filename(".hidden  file.")
        'hidden file'
    """
    text = ILLEGAL_FILE_CHARS.sub(" ", filename)
    text = SPACE_RUNS.sub(" ", text)
    return text.strip(" .")


def ensure_final_newline(text: str) -> str:
    """Strip trailing whitespace and end the text with exactly one newline."""
    return text.rstrip() + "\n"
