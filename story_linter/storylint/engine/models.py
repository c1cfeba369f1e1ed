"""Issue model, severity policy and aggregated result types."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# Validator id stamped on issues the engine itself produces.
ENGINE_ID = "engine"


class Severity(str, Enum):
    """Severity level for issues, ordered info < warning < error."""

    error = "error"
    warning = "warning"
    info = "info"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self.value]

    def at_least(self, other: Severity) -> bool:
        return self.rank >= other.rank


_SEVERITY_RANK = {"info": 0, "warning": 1, "error": 2}


class FailOn(str, Enum):
    """Lowest severity that makes a run invalid."""

    error = "error"
    warning = "warning"
    none = "none"

    @property
    def threshold(self) -> Severity | None:
        if self is FailOn.none:
            return None
        return Severity(self.value)


class CamelModel(BaseModel):
    """Base for models serialized with camelCase field names."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RelatedLocation(CamelModel):
    """A secondary location cited by an issue."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    file: str
    line: int | None = None
    column: int | None = None
    message: str | None = None


class Issue(CamelModel):
    """A single structured finding. Immutable once emitted."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    code: str
    severity: Severity
    message: str
    validator: str
    file: str | None = None
    line: int | None = None
    column: int | None = None
    end_line: int | None = None
    end_column: int | None = None
    suggestion: str | None = None
    related_locations: tuple[RelatedLocation, ...] = ()

    @property
    def location(self) -> str:
        """Render ``file:line:column`` with whatever parts are known."""
        if self.file is None:
            return ""
        parts = [self.file]
        if self.line is not None:
            parts.append(str(self.line))
            if self.column is not None:
                parts.append(str(self.column))
        return ":".join(parts)

    def dedup_key(self) -> tuple:
        return (self.code, self.file, self.line, self.column, self.message)


class IssueCounts(CamelModel):
    by_validator: dict[str, int] = Field(default_factory=dict)
    by_severity: dict[str, int] = Field(
        default_factory=lambda: {s.value: 0 for s in Severity}
    )
    by_file: dict[str, int] = Field(default_factory=dict)


class ResultMeta(CamelModel):
    version: str
    generated_at: str | None = None


class AggregateResult(CamelModel):
    """Final deterministic collection of issues plus summary counts."""

    valid: bool = True
    errors: list[Issue] = Field(default_factory=list)
    warnings: list[Issue] = Field(default_factory=list)
    info: list[Issue] = Field(default_factory=list)
    counts: IssueCounts = Field(default_factory=IssueCounts)
    cancelled: bool = False
    meta: ResultMeta | None = None

    @property
    def issues(self) -> list[Issue]:
        return [*self.errors, *self.warnings, *self.info]

    @property
    def total(self) -> int:
        return len(self.errors) + len(self.warnings) + len(self.info)


def engine_issue(
    kind: str,
    message: str,
    severity: Severity = Severity.error,
    file: str | None = None,
    line: int | None = None,
    validator: str = ENGINE_ID,
) -> Issue:
    """Build an issue for an engine error kind (the kind doubles as the code)."""
    return Issue(
        code=kind,
        severity=severity,
        message=message,
        validator=validator,
        file=file,
        line=line,
    )


def effective_exit_code(result: AggregateResult) -> int:
    """Map an aggregate result to the CLI exit status."""
    if result.cancelled:
        return 130
    return 0 if result.valid else 1
