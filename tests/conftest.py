import pytest

from noteexplorer.adapters.markdown_parser import NoteParser


@pytest.fixture
def parser():
    return NoteParser(r"\d{14}", "## Links to this note")
