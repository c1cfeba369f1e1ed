"""Phase C checks over the merged character state -- no I/O, deterministic."""

from __future__ import annotations

from storylint.engine.models import Issue, Severity
from storylint.validators.character.state import Character, CharacterState, Mention

VALIDATOR_ID = "character-consistency"


def _issue(
    code: str,
    severity: Severity,
    message: str,
    mention: Mention,
    suggestion: str | None = None,
    related: tuple = (),
) -> Issue:
    loc = mention.location
    return Issue(
        code=code,
        severity=severity,
        message=message,
        validator=VALIDATOR_ID,
        file=loc.file,
        line=loc.line,
        column=loc.column,
        end_line=loc.line if mention.end_column is not None else None,
        end_column=mention.end_column,
        suggestion=suggestion,
        related_locations=related,
    )


def check_name_consistency(state: CharacterState, mentions: list[Mention]) -> list[Issue]:
    """CHAR001: the less established of two near-identical spellings, at each mention."""
    references: dict[str, list[str]] = {}
    for misspelling in state.misspellings:
        references.setdefault(misspelling.flagged, []).append(misspelling.reference)

    issues: list[Issue] = []
    for mention in mentions:
        for reference in references.get(state.canonical(mention.name), []):
            first_seen = state.characters[reference].first_seen
            issues.append(
                _issue(
                    "CHAR001",
                    Severity.error,
                    f"Character name '{mention.name}' looks like a misspelling of "
                    f"'{reference}' (first seen at {first_seen})",
                    mention,
                    suggestion=(
                        f"Use '{reference}', or declare '{mention.name}' as an alias "
                        "if they are the same character"
                    ),
                    related=(first_seen.related(f"'{reference}' first seen here"),),
                )
            )
    return issues


def check_introductions(state: CharacterState, mentions: list[Mention]) -> list[Issue]:
    """CHAR002: a mention in a file processed before the character's introduction."""
    issues: list[Issue] = []
    for mention in mentions:
        if mention.retrospective or mention.marker:
            continue
        character = state.characters.get(state.canonical(mention.name))
        if character is None or character.introduced_at is None:
            continue
        introduced = character.introduced_at
        if state.file_index(mention.location.file) >= state.file_index(introduced.file):
            continue
        issues.append(
            _issue(
                "CHAR002",
                Severity.warning,
                f"'{mention.name}' appears before being introduced in {introduced.file}",
                mention,
                suggestion="Introduce the character earlier, or mark this passage as a recollection",
                related=(introduced.related(f"'{character.name}' introduced here"),),
            )
        )
    return issues


def established_pronouns(
    state: CharacterState, character: Character, mention: Mention
) -> str | None:
    """Latest preceding declaration, else configured pronouns, else the first evidence."""
    position = state.order(mention.location)
    latest = None
    for change in state.pronoun_changes.get(character.name, []):
        if state.order(change.location) < position:
            latest = change
    if latest is not None:
        return latest.pronouns
    if character.pronouns:
        return character.pronouns
    if character.first_evidence is not None and character.first_evidence != mention.location:
        return character.evidence_pronouns
    return None


def check_pronouns(state: CharacterState, mentions: list[Mention]) -> list[Issue]:
    """CHAR003: pronoun evidence disagreeing with the established set."""
    issues: list[Issue] = []
    for mention in mentions:
        if not mention.pronouns:
            continue
        character = state.characters.get(state.canonical(mention.name))
        if character is None:
            continue
        expected = established_pronouns(state, character, mention)
        if expected is None:
            continue
        mismatched = [p for p in mention.pronouns if p != expected]
        if not mismatched:
            continue
        issues.append(
            _issue(
                "CHAR003",
                Severity.warning,
                f"Pronoun '{mismatched[0]}' used for '{mention.name}', "
                f"who is established as '{expected}'",
                mention,
                suggestion=(
                    "Declare the change with a [pronouns: ...] marker if it is intentional"
                ),
            )
        )
    return issues


def check_nicknames(state: CharacterState, path: str) -> list[Issue]:
    """CHAR004: a known short form used as its own character, reported where it first appears."""
    issues: list[Issue] = []
    for nickname in state.nicknames:
        short = state.characters.get(nickname.short)
        full = state.characters.get(nickname.full)
        if short is None or full is None or short.first_seen.file != path:
            continue
        mention = Mention(name=short.name, location=short.first_seen)
        issues.append(
            _issue(
                "CHAR004",
                Severity.info,
                f"'{short.name}' may be a nickname for '{full.name}'",
                mention,
                suggestion=(
                    f"Declare '{short.name}' as an alias of '{full.name}' in "
                    "characterValidator.aliases"
                ),
                related=(full.first_seen.related(f"'{full.name}' first seen here"),),
            )
        )
    return issues


def check_file(state: CharacterState, path: str, strict: bool = False) -> list[Issue]:
    mentions = state.mentions.get(path, [])
    issues = check_name_consistency(state, mentions)
    if strict:
        issues.extend(check_introductions(state, mentions))
    issues.extend(check_pronouns(state, mentions))
    issues.extend(check_nicknames(state, path))
    return issues
