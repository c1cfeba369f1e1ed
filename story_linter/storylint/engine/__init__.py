"""Validation engine: issue model, validator contract and event bus."""

from storylint.engine.contract import Capabilities, Validator, ValidatorContext, ValidatorFactory
from storylint.engine.errors import ConfigError, InitFailedError, StoryLinterError
from storylint.engine.events import EventBus
from storylint.engine.models import (
    AggregateResult,
    FailOn,
    Issue,
    RelatedLocation,
    Severity,
    effective_exit_code,
)

__all__ = [
    "AggregateResult",
    "Capabilities",
    "ConfigError",
    "EventBus",
    "FailOn",
    "InitFailedError",
    "Issue",
    "RelatedLocation",
    "Severity",
    "StoryLinterError",
    "Validator",
    "ValidatorContext",
    "ValidatorFactory",
    "effective_exit_code",
]
