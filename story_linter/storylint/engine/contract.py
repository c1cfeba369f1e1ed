"""Validator plugin contract: lifecycle hooks, capabilities and context."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any, Callable, ClassVar, TypeVar

from pydantic import BaseModel, ConfigDict, ValidationError

from storylint.engine.errors import ConfigError
from storylint.engine.events import EventBus
from storylint.engine.models import Issue, RelatedLocation, Severity
from storylint.engine.processor import FileProcessor, ParsedFile, relative_to_root

OptionsT = TypeVar("OptionsT", bound=BaseModel)


class ValidatorContext:
    """Everything the engine hands to a validator hook."""

    def __init__(
        self,
        validator_id: str,
        config: Mapping[str, Any],
        project_root: Path,
        global_state: Mapping[str, Any],
        event_bus: EventBus,
        processor: FileProcessor,
        files: Sequence[Path],
        report: Callable[[Issue], None],
    ) -> None:
        self.validator_id = validator_id
        self.config = config
        self.project_root = project_root
        self.global_state = global_state
        self.log = logging.getLogger(f"storylint.validators.{validator_id}")
        self._event_bus = event_bus
        self._processor = processor
        self._files = tuple(files)
        self._report = report

    @property
    def files(self) -> tuple[Path, ...]:
        """Absolute paths of every file in the run, in processing order."""
        return self._files

    def emit(self, event: str, payload: dict[str, Any] | None = None) -> None:
        self._event_bus.emit_custom(event, {"validator": self.validator_id, **(payload or {})})

    def read_file(self, path: str | Path) -> ParsedFile:
        """Parsed file for ``path`` (relative paths resolve against the project root)."""
        target = Path(path)
        if not target.is_absolute():
            target = self.project_root / target
        return self._processor.load(target)

    def report(self, issue: Issue) -> None:
        """Record an issue outside the normal return path (phase A)."""
        self._report(issue)

    def relative(self, path: Path) -> str:
        return relative_to_root(path, self.project_root)


class Capabilities(BaseModel):
    """Which optional hooks a validator implements."""

    model_config = ConfigDict(frozen=True)

    extract: bool = False
    merge: bool = False
    per_file_validate: bool = False
    project_validate: bool = False

    @classmethod
    def of(cls, validator: Validator) -> Capabilities:
        kind = type(validator)
        return cls(
            extract=kind.extract is not Validator.extract,
            merge=kind.merge_global_state is not Validator.merge_global_state,
            per_file_validate=kind.validate is not Validator.validate,
            project_validate=kind.project_validate is not Validator.project_validate,
        )


class Validator(ABC):
    """Base class for validator plugins.

    Subclasses set ``id`` and override the hooks they need. The engine calls
    ``initialize`` once, ``extract`` per file (phase A), ``merge_global_state``
    once (phase B), ``validate`` per file and ``project_validate`` once
    (phase C), then ``finalize``.
    """

    id: ClassVar[str]
    version: ClassVar[str] = "0.1.0"
    extensions: ClassVar[tuple[str, ...]] = (".md", ".markdown")
    order_sensitive: ClassVar[bool] = False
    # Top-level config section merged into this validator's options.
    config_section: ClassVar[str | None] = None

    def initialize(self, context: ValidatorContext) -> None:
        return None

    def extract(self, parsed: ParsedFile, context: ValidatorContext) -> Any:
        return None

    def merge_global_state(self, partials: list[Any], context: ValidatorContext) -> Any:
        return list(partials)

    @abstractmethod
    def validate(self, parsed: ParsedFile, context: ValidatorContext) -> list[Issue]:
        ...

    def project_validate(
        self, files: list[ParsedFile], context: ValidatorContext
    ) -> list[Issue]:
        return []

    def finalize(self, context: ValidatorContext) -> None:
        return None

    @property
    def capabilities(self) -> Capabilities:
        return Capabilities.of(self)

    def supports(self, parsed: ParsedFile) -> bool:
        return parsed.suffix in self.extensions

    @staticmethod
    def load_options(model: type[OptionsT], context: ValidatorContext) -> OptionsT:
        """Validate ``context.config`` against ``model``; raise ConfigError if invalid."""
        try:
            return model.model_validate(dict(context.config))
        except ValidationError as e:
            raise ConfigError(
                f"Invalid options for validator '{context.validator_id}': {e}"
            ) from e

    def issue(
        self,
        code: str,
        severity: Severity,
        message: str,
        *,
        file: str | None = None,
        line: int | None = None,
        column: int | None = None,
        end_line: int | None = None,
        end_column: int | None = None,
        suggestion: str | None = None,
        related: Sequence[RelatedLocation] = (),
    ) -> Issue:
        return Issue(
            code=code,
            severity=severity,
            message=message,
            validator=self.id,
            file=file,
            line=line,
            column=column,
            end_line=end_line,
            end_column=end_column,
            suggestion=suggestion,
            related_locations=tuple(related),
        )

    def error(self, code: str, message: str, **kwargs: Any) -> Issue:
        return self.issue(code, Severity.error, message, **kwargs)

    def warning(self, code: str, message: str, **kwargs: Any) -> Issue:
        return self.issue(code, Severity.warning, message, **kwargs)

    def info(self, code: str, message: str, **kwargs: Any) -> Issue:
        return self.issue(code, Severity.info, message, **kwargs)


ValidatorFactory = Callable[[], Validator]
