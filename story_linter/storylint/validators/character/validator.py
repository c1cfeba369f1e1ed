"""Character consistency validator."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from storylint.engine.contract import Validator, ValidatorContext
from storylint.engine.models import Issue
from storylint.engine.processor import ParsedFile
from storylint.validators.character.extraction import CharacterExtractor
from storylint.validators.character.names import (
    DEFAULT_INTRODUCTION_MARKERS,
    DEFAULT_RETROSPECTIVE_MARKERS,
    normalize_pronouns,
)
from storylint.validators.character.rules import VALIDATOR_ID, check_file
from storylint.validators.character.state import CharacterState, FileCharacters, build_state


class AliasDeclaration(BaseModel):
    canonical: str
    aliases: list[str] = Field(default_factory=list)


class CharacterOptions(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    aliases: list[AliasDeclaration] = Field(default_factory=list)
    ignore: list[str] = Field(default_factory=list)
    strict: bool = False
    max_distance: int = Field(default=2, ge=0)
    min_name_length: int = Field(default=4, ge=1)
    retrospective_markers: list[str] = Field(
        default_factory=lambda: list(DEFAULT_RETROSPECTIVE_MARKERS)
    )
    introduction_markers: list[str] = Field(
        default_factory=lambda: list(DEFAULT_INTRODUCTION_MARKERS)
    )
    pronouns: dict[str, str] = Field(default_factory=dict)

    @field_validator("pronouns", mode="before")
    @classmethod
    def _normalize_pronouns(cls, value: object) -> object:
        if not isinstance(value, dict):
            return value
        normalized = {}
        for name, declared in value.items():
            key = normalize_pronouns(declared)
            if key is None:
                raise ValueError(f"empty pronoun set for '{name}'")
            normalized[str(name)] = key
        return normalized

    def alias_pairs(self) -> list[tuple[str, str]]:
        return [(d.canonical, alias) for d in self.aliases for alias in d.aliases]


class CharacterValidator(Validator):
    """Tracks character names across files.

    Reports likely misspellings (CHAR001), mentions ahead of an introduction
    in strict mode (CHAR002), pronoun drift (CHAR003) and nicknames that were
    never declared as aliases (CHAR004).
    """

    id = VALIDATOR_ID
    version = "0.1.0"
    order_sensitive = True
    config_section = "characterValidator"

    def __init__(self) -> None:
        self.options = CharacterOptions()
        self._extractor: CharacterExtractor | None = None

    def initialize(self, context: ValidatorContext) -> None:
        self.options = self.load_options(CharacterOptions, context)
        self._extractor = CharacterExtractor(
            introduction_markers=self.options.introduction_markers,
            retrospective_markers=self.options.retrospective_markers,
            ignore=self.options.ignore,
        )
        context.log.debug(
            "Character validator ready (%d alias declarations, strict=%s)",
            len(self.options.aliases),
            self.options.strict,
        )

    def extract(self, parsed: ParsedFile, context: ValidatorContext) -> FileCharacters:
        return self._extractor.extract(parsed)

    def merge_global_state(
        self, partials: list[FileCharacters], context: ValidatorContext
    ) -> CharacterState:
        ignored = {name.casefold() for name in self.options.ignore}
        pronouns = {
            name: value
            for name, value in self.options.pronouns.items()
            if name.casefold() not in ignored
        }
        state = build_state(
            partials,
            config_aliases=self.options.alias_pairs(),
            configured_pronouns=pronouns,
            max_distance=self.options.max_distance,
            min_name_length=self.options.min_name_length,
        )
        context.emit("characters:merged", {"characters": len(state.characters)})
        return state

    def validate(self, parsed: ParsedFile, context: ValidatorContext) -> list[Issue]:
        state = context.global_state.get(self.id)
        if state is None:
            return []
        return check_file(state, parsed.relative_path, strict=self.options.strict)

    def finalize(self, context: ValidatorContext) -> None:
        self._extractor = None
