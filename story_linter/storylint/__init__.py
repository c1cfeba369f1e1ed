"""Story Linter -- cross-file consistency checks for Markdown narratives."""

__version__ = "0.1.0"
