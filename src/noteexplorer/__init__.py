"""noteexplorer - keeps a stack of linked plain-text notes in order."""

__version__ = "0.5.0"
