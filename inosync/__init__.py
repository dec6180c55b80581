"""InoSync: Inoreader tag feeds to Markdown notes."""

__version__ = "1.0.0"
