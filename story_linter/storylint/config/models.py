"""Configuration models.

Keys are camelCase in config files (``failOn``, ``entryPoints``); Python code
uses the snake_case attribute names.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from storylint.engine.models import FailOn

DEFAULT_INCLUDE = ["**/*.md"]
DEFAULT_EXCLUDE = ["node_modules/**", ".git/**"]


class OutputFormat(str, Enum):
    text = "text"
    json = "json"
    html = "html"


class _Section(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")


class ProjectSettings(_Section):
    root: Path = Path(".")
    include: list[str] = Field(default_factory=lambda: list(DEFAULT_INCLUDE))
    exclude: list[str] = Field(default_factory=lambda: list(DEFAULT_EXCLUDE))


class ValidationSettings(_Section):
    fail_on: FailOn = FailOn.error


class ValidatorSettings(_Section):
    enabled: bool = True
    options: dict[str, Any] = Field(default_factory=dict)


class OutputSettings(_Section):
    format: OutputFormat = OutputFormat.text
    color: bool = True


class LinterConfig(BaseModel):
    """Complete run configuration.

    Unknown top-level sections (``linkValidator``, ``characterValidator``, or
    any section a third-party validator names) are kept in ``model_extra`` and
    merged into the matching validator's options.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    project: ProjectSettings = Field(default_factory=ProjectSettings)
    validation: ValidationSettings = Field(default_factory=ValidationSettings)
    validators: dict[str, ValidatorSettings] = Field(default_factory=dict)
    output: OutputSettings = Field(default_factory=OutputSettings)

    def is_enabled(self, validator_id: str) -> bool:
        settings = self.validators.get(validator_id)
        return settings is None or settings.enabled

    def section(self, name: str) -> dict[str, Any]:
        raw = (self.model_extra or {}).get(name)
        return dict(raw) if isinstance(raw, dict) else {}

    def options_for(self, validator_id: str, section: str | None = None) -> dict[str, Any]:
        """Options for one validator: its section first, ``validators.<id>.options`` on top."""
        options: dict[str, Any] = self.section(section) if section else {}
        settings = self.validators.get(validator_id)
        if settings is not None:
            options.update(settings.options)
        return options
