"""Error taxonomy for the validation engine.

Only ``ConfigError`` and ``InitFailedError`` escape a run; everything else is
converted to an issue at the orchestrator boundary.
"""

from __future__ import annotations

from pathlib import Path


class StoryLinterError(Exception):
    """Base class for engine-level failures."""

    kind = "engine-error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ConfigError(StoryLinterError):
    """Bad, missing or invalid configuration."""

    kind = "config-error"


class InitFailedError(StoryLinterError):
    """A validator's ``initialize`` hook raised."""

    kind = "init-failed"

    def __init__(self, validator_id: str, cause: BaseException) -> None:
        super().__init__(f"Validator '{validator_id}' failed to initialize: {cause}")
        self.validator_id = validator_id
        self.cause = cause


class FileProcessingError(StoryLinterError):
    """A file could not be turned into a ParsedFile."""

    kind = "file-error"

    def __init__(self, path: Path, message: str, line: int | None = None) -> None:
        super().__init__(message)
        self.path = path
        self.line = line


class FileReadError(FileProcessingError):
    kind = "read-error"


class EncodingError(FileProcessingError):
    kind = "encoding-error"


class MarkdownParseError(FileProcessingError):
    kind = "parse-error"


class FrozenStateError(RuntimeError):
    """Global state was written after phase B completed."""
