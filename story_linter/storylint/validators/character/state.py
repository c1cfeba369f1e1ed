"""Character records: per-file extraction output and the merged run state."""

from __future__ import annotations

import logging
from collections.abc import Collection, Sequence
from pathlib import PurePosixPath

from pydantic import BaseModel, ConfigDict, Field

from storylint.engine.models import RelatedLocation
from storylint.validators.character.distance import within_distance
from storylint.validators.character.names import nickname_pair, related_names

logger = logging.getLogger(__name__)


class Location(BaseModel):
    model_config = ConfigDict(frozen=True)

    file: str
    line: int
    column: int
    offset: int

    def related(self, message: str | None = None) -> RelatedLocation:
        return RelatedLocation(file=self.file, line=self.line, column=self.column, message=message)

    def __str__(self) -> str:
        return f"{self.file}:{self.line}:{self.column}"


class Mention(BaseModel):
    """One occurrence of a name in running text."""

    model_config = ConfigDict(frozen=True)

    name: str
    location: Location
    end_column: int | None = None
    introduction: bool = False
    marker: bool = False
    retrospective: bool = False
    pronouns: tuple[str, ...] = ()
    sentence_initial: bool = False


class AliasPair(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    alias: str
    location: Location | None = None


class PronounChange(BaseModel):
    """A ``[pronouns: X]`` or ``call me them now`` declaration in the text."""

    model_config = ConfigDict(frozen=True)

    name: str
    pronouns: str
    location: Location


class FileCharacters(BaseModel):
    """Phase A output for one file."""

    path: str
    mentions: list[Mention] = Field(default_factory=list)
    alias_pairs: list[AliasPair] = Field(default_factory=list)
    declared_pronouns: dict[str, str] = Field(default_factory=dict)
    pronoun_changes: list[PronounChange] = Field(default_factory=list)
    relationships: dict[str, dict[str, str]] = Field(default_factory=dict)
    lowercase_words: set[str] = Field(default_factory=set)


class Character(BaseModel):
    name: str
    aliases: list[str] = Field(default_factory=list)
    spellings: dict[str, int] = Field(default_factory=dict)
    first_seen: Location
    appearances: list[Location] = Field(default_factory=list)
    introduced_at: Location | None = None
    pronouns: str | None = None
    first_evidence: Location | None = None
    evidence_pronouns: str | None = None
    relationships: dict[str, str] = Field(default_factory=dict)


class Misspelling(BaseModel):
    """``flagged`` looks like a misspelling of ``reference``."""

    flagged: str
    reference: str


class Nickname(BaseModel):
    full: str
    short: str


class CharacterState(BaseModel):
    """Global state entry owned by the character validator."""

    files: list[str] = Field(default_factory=list)
    characters: dict[str, Character] = Field(default_factory=dict)
    canonical_names: dict[str, str] = Field(default_factory=dict)
    mentions: dict[str, list[Mention]] = Field(default_factory=dict)
    pronoun_changes: dict[str, list[PronounChange]] = Field(default_factory=dict)
    misspellings: list[Misspelling] = Field(default_factory=list)
    nicknames: list[Nickname] = Field(default_factory=list)

    def canonical(self, name: str) -> str:
        return self.canonical_names.get(name.casefold(), name)

    def file_index(self, path: str) -> int:
        try:
            return self.files.index(path)
        except ValueError:
            return len(self.files)

    def order(self, location: Location) -> tuple[int, int]:
        """Run order of a location: file order, then offset."""
        return self.file_index(location.file), location.offset


def path_key(path: str) -> PurePosixPath:
    """Sort key matching the engine's absolute-path file order."""
    return PurePosixPath(path)


def resolve_aliases(
    pairs: list[tuple[str, str]], protected: Collection[str] = ()
) -> dict[str, str]:
    """Build a casefolded ``spelling -> canonical`` map from ``(canonical, alias)`` pairs.

    The first pair naming an alias wins. Names in ``protected`` (casefolded
    configured canonical names) are never turned into aliases. Chains resolve
    transitively and a cycle resolves to its lexicographically smallest name.
    """
    parent: dict[str, str] = {}
    spelled: dict[str, str] = {}
    for canonical, alias in pairs:
        key = alias.casefold()
        if key == canonical.casefold() or key in protected or key in parent:
            continue
        parent[key] = canonical
        spelled[key] = alias

    resolved: dict[str, str] = {}
    for key in parent:
        chain: list[str] = []
        current = key
        while current in parent and current not in chain:
            chain.append(current)
            current = parent[current].casefold()
        if current in chain:
            cycle = chain[chain.index(current):]
            resolved[key] = min(spelled[name] for name in cycle)
        else:
            resolved[key] = parent[chain[-1]]
    return resolved


def build_state(
    partials: list[FileCharacters],
    config_aliases: Sequence[tuple[str, str]] = (),
    configured_pronouns: dict[str, str] | None = None,
    max_distance: int = 2,
    min_name_length: int = 4,
) -> CharacterState:
    """Phase B: merge every file's extraction into one ``CharacterState``.

    Partials are re-sorted by path so the result does not depend on the
    order they were collected in.
    """
    files = sorted(partials, key=lambda p: path_key(p.path))
    state = CharacterState(files=[p.path for p in files])

    pairs = list(config_aliases)
    for partial in files:
        ordered = sorted(partial.alias_pairs, key=lambda p: p.location.offset if p.location else -1)
        pairs.extend((p.name, p.alias) for p in ordered)
    state.canonical_names = resolve_aliases(pairs, {c.casefold() for c, _ in config_aliases})
    sentence_case = _sentence_case_words(files)

    for partial in files:
        for mention in sorted(partial.mentions, key=lambda m: m.location.offset):
            if mention.name in sentence_case:
                continue
            canonical = state.canonical(mention.name)
            character = state.characters.get(canonical)
            if character is None:
                character = Character(name=canonical, first_seen=mention.location)
                state.characters[canonical] = character
            character.appearances.append(mention.location)
            character.spellings[mention.name] = character.spellings.get(mention.name, 0) + 1
            if mention.introduction and character.introduced_at is None:
                character.introduced_at = mention.location
            if mention.pronouns and character.first_evidence is None:
                character.first_evidence = mention.location
                character.evidence_pronouns = mention.pronouns[0]
            state.mentions.setdefault(partial.path, []).append(mention)

        for change in sorted(partial.pronoun_changes, key=lambda c: c.location.offset):
            state.pronoun_changes.setdefault(state.canonical(change.name), []).append(change)

    for name, pronouns in (configured_pronouns or {}).items():
        character = state.characters.get(state.canonical(name))
        if character is not None:
            character.pronouns = pronouns
    for partial in files:
        for name, pronouns in partial.declared_pronouns.items():
            character = state.characters.get(state.canonical(name))
            if character is not None and character.pronouns is None:
                character.pronouns = pronouns
        for name, relationships in partial.relationships.items():
            character = state.characters.get(state.canonical(name))
            if character is not None:
                character.relationships.update(relationships)

    alias_spellings: dict[str, str] = {}
    for _, alias in pairs:
        alias_spellings.setdefault(alias.casefold(), alias)
    for key, canonical in sorted(state.canonical_names.items()):
        character = state.characters.get(canonical)
        if character is not None and key != canonical.casefold():
            character.aliases.append(alias_spellings[key])

    _compare_names(state, max_distance, min_name_length)
    logger.debug(
        "Character state: %d characters across %d files", len(state.characters), len(files)
    )
    return state


def _sentence_case_words(partials: list[FileCharacters]) -> set[str]:
    """Names seen only at sentence starts whose lowercase form is used somewhere in the project."""
    lowercase = set().union(*(p.lowercase_words for p in partials))
    mid_sentence = {m.name for p in partials for m in p.mentions if not m.sentence_initial}
    return {
        m.name
        for p in partials
        for m in p.mentions
        if m.sentence_initial
        and m.name not in mid_sentence
        and " " not in m.name
        and m.name.lower() in lowercase
    }


def _compare_names(state: CharacterState, max_distance: int, min_name_length: int) -> None:
    names = sorted(state.characters)
    for i, a in enumerate(names):
        for b in names[i + 1:]:
            pair = nickname_pair(a, b)
            if pair is not None:
                state.nicknames.append(Nickname(full=pair[0], short=pair[1]))
                continue
            if related_names(a, b):
                continue
            if _letters(a) < min_name_length or _letters(b) < min_name_length:
                continue
            if not within_distance(a, b, max_distance):
                continue
            flagged, reference = _less_established(state, a, b)
            state.misspellings.append(Misspelling(flagged=flagged, reference=reference))


def _letters(name: str) -> int:
    return sum(1 for ch in name if ch.isalpha())


def _less_established(state: CharacterState, a: str, b: str) -> tuple[str, str]:
    """Fewer appearances loses; on a tie the later first sighting loses."""
    first, second = state.characters[a], state.characters[b]
    if len(first.appearances) != len(second.appearances):
        if len(first.appearances) < len(second.appearances):
            return a, b
        return b, a
    if state.order(first.first_seen) > state.order(second.first_seen):
        return a, b
    return b, a
