"""Phase A: find character mentions, aliases and pronoun cues in one file.

Only paragraph text is scanned, so code blocks, link targets and headings
never produce names. Each paragraph is rebuilt from its text nodes with
everything else blanked out, which keeps character offsets aligned with the
source file.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Iterable

from storylint.engine.markdown import MarkdownNode
from storylint.engine.processor import ParsedFile
from storylint.validators.character.names import (
    EVIDENCE_PRONOUNS,
    EXCLUDED_WORDS,
    normalize_pronouns,
)
from storylint.validators.character.state import (
    AliasPair,
    FileCharacters,
    Location,
    Mention,
    PronounChange,
)

CONTEXT_WINDOW = 50
MAX_NAME_WORDS = 3

_WORD = re.compile(r"[^\W\d_]+")
_SENTENCE_END = re.compile(r"[.!?…]+[\"'”’)\]]*(?=\s|$)")
_QUOTED = re.compile(r"[\"“][^\"“”]*[\"”]")
_PRONOUN_MARKER = re.compile(r"\[pronouns?:\s*([^\]]+)\]", re.IGNORECASE)
_CALL_ME_PRONOUN = re.compile(r"\b[Cc]all me\s+(she|her|he|him|they|them)\b")
_CALL_ME_BEFORE = re.compile(r"\b[Cc]all me\s+$")
_ALSO_KNOWN_AS = re.compile(r",?\s*(?:also known as|a\.?k\.?a\.?)\s+", re.IGNORECASE)
_FORMERLY = re.compile(r",\s*(?:formerly|previously|n[eé]e)\s+", re.IGNORECASE)


def is_capitalized(word: str) -> bool:
    """Uppercase letter followed by lowercase letters only."""
    return len(word) > 1 and word[0].isupper() and word[1:].islower()


def marker_pattern(markers: Iterable[str]) -> re.Pattern[str] | None:
    """Case-insensitive whole-word alternation, or None for an empty list."""
    alternatives = [re.escape(m.strip()) for m in markers if m.strip()]
    if not alternatives:
        return None
    return re.compile(r"\b(?:" + "|".join(alternatives) + r")\b", re.IGNORECASE)


@dataclass
class _Candidate:
    name: str
    start: int
    end: int
    sentence: int
    initial: bool = False


@dataclass
class _Paragraph:
    offset: int
    text: str
    quoted: bool
    sentences: list[tuple[int, int]] = field(default_factory=list)
    candidates: list[_Candidate] = field(default_factory=list)


def paragraph_text(node: MarkdownNode, content: str) -> str:
    """Source of ``node`` with everything except text runs replaced by spaces."""
    start, end = node.position.start.offset, node.position.end.offset
    chars = [" "] * (end - start)
    for child in node.walk():
        if child.type != "text" or child.position is None:
            continue
        s = max(child.position.start.offset, start)
        e = min(child.position.end.offset, end)
        chars[s - start:e - start] = content[s:e]
    return "".join(chars)


def split_sentences(text: str) -> list[tuple[int, int]]:
    spans: list[tuple[int, int]] = []
    start = 0
    for match in _SENTENCE_END.finditer(text):
        spans.append((start, match.end()))
        start = match.end()
    if text[start:].strip():
        spans.append((start, len(text)))
    return spans


class CharacterExtractor:
    """Stateless per-file extractor configured from validator options."""

    def __init__(
        self,
        introduction_markers: Iterable[str],
        retrospective_markers: Iterable[str],
        ignore: Iterable[str] = (),
    ) -> None:
        self._introduction = marker_pattern(introduction_markers)
        self._retrospective = marker_pattern(retrospective_markers)
        self._ignore = {name.casefold() for name in ignore}

    def extract(self, parsed: ParsedFile) -> FileCharacters:
        paragraphs = self._paragraphs(parsed)
        mid_caps, lowercase = _vocabulary(paragraphs)
        for paragraph in paragraphs:
            paragraph.candidates = self._candidates(paragraph, mid_caps, lowercase)

        result = FileCharacters(path=parsed.relative_path, lowercase_words=lowercase)
        self._front_matter(parsed, result)

        seen: set[str] = set()
        previous: list[_Candidate] = []
        for paragraph in paragraphs:
            self._mentions(parsed, paragraph, seen, result)
            self._aliases(parsed, paragraph, previous, result)
            self._pronoun_changes(parsed, paragraph, previous, result)
            previous.extend(paragraph.candidates)
        return result

    # -- paragraphs and candidates ---------------------------------------

    @staticmethod
    def _paragraphs(parsed: ParsedFile) -> list[_Paragraph]:
        paragraphs: list[_Paragraph] = []
        for node, ancestors in parsed.ast.walk_with_ancestors():
            if node.type != "paragraph" or node.position is None:
                continue
            text = paragraph_text(node, parsed.content)
            paragraphs.append(
                _Paragraph(
                    offset=node.position.start.offset,
                    text=text,
                    quoted=any(a.type == "blockquote" for a in ancestors),
                    sentences=split_sentences(text),
                )
            )
        return paragraphs

    def _candidates(
        self, paragraph: _Paragraph, mid_caps: set[str], lowercase: set[str]
    ) -> list[_Candidate]:
        text = paragraph.text
        found: list[_Candidate] = []
        for index, (start, end) in enumerate(paragraph.sentences):
            words = list(_WORD.finditer(text, start, end))
            for run in _runs(text, words):
                initial = run[0] is words[0]
                if initial and not _keep_initial(run[0].group(), mid_caps, lowercase):
                    run = run[1:]
                    initial = False
                if not run:
                    continue
                name = " ".join(m.group() for m in run)
                if name.casefold() in self._ignore:
                    continue
                found.append(
                    _Candidate(
                        name,
                        run[0].start(),
                        run[-1].end(),
                        index,
                        initial=initial and run[0].group() not in mid_caps,
                    )
                )
        return found

    # -- per-paragraph records -------------------------------------------

    def _mentions(
        self,
        parsed: ParsedFile,
        paragraph: _Paragraph,
        seen: set[str],
        result: FileCharacters,
    ) -> None:
        text = paragraph.text
        retrospective = paragraph.quoted or _search(self._retrospective, text)
        quoted = [m.span() for m in _QUOTED.finditer(text)]

        by_sentence: dict[int, list[_Candidate]] = {}
        for candidate in paragraph.candidates:
            by_sentence.setdefault(candidate.sentence, []).append(candidate)

        for candidate in paragraph.candidates:
            window = text[max(0, candidate.start - CONTEXT_WINDOW):candidate.end + CONTEXT_WINDOW]
            marker = _search(self._introduction, window)
            first = candidate.name not in seen
            seen.add(candidate.name)

            pronouns: tuple[str, ...] = ()
            siblings = by_sentence[candidate.sentence]
            if len({c.name for c in siblings}) == 1 and siblings[0] is candidate:
                sentence_end = paragraph.sentences[candidate.sentence][1]
                pronouns = _evidence(text, candidate.end, sentence_end, quoted)

            location = _location(parsed, paragraph.offset + candidate.start)
            end_line, end_column = parsed.line_index.locate(paragraph.offset + candidate.end)
            result.mentions.append(
                Mention(
                    name=candidate.name,
                    location=location,
                    end_column=end_column if end_line == location.line else None,
                    introduction=marker and first,
                    marker=marker,
                    retrospective=retrospective,
                    pronouns=pronouns,
                    sentence_initial=candidate.initial,
                )
            )

    def _aliases(
        self,
        parsed: ParsedFile,
        paragraph: _Paragraph,
        previous: list[_Candidate],
        result: FileCharacters,
    ) -> None:
        text = paragraph.text
        candidates = paragraph.candidates
        for first, second in zip(candidates, candidates[1:]):
            if first.sentence != second.sentence:
                continue
            gap = text[first.end:second.start]
            if _ALSO_KNOWN_AS.fullmatch(gap) or _FORMERLY.fullmatch(gap):
                result.alias_pairs.append(
                    AliasPair(
                        name=first.name,
                        alias=second.name,
                        location=_location(parsed, paragraph.offset + second.start),
                    )
                )

        for candidate in candidates:
            sentence_start = paragraph.sentences[candidate.sentence][0]
            before = _CALL_ME_BEFORE.search(text, sentence_start, candidate.start)
            if before is None:
                continue
            speaker = _speaker(candidates, before.start(), candidate.name, previous)
            if speaker is None:
                continue
            result.alias_pairs.append(
                AliasPair(
                    name=speaker,
                    alias=candidate.name,
                    location=_location(parsed, paragraph.offset + candidate.start),
                )
            )

    def _pronoun_changes(
        self,
        parsed: ParsedFile,
        paragraph: _Paragraph,
        previous: list[_Candidate],
        result: FileCharacters,
    ) -> None:
        text = paragraph.text
        declarations = [
            (m.start(), m.group(1)) for m in _PRONOUN_MARKER.finditer(text)
        ] + [(m.start(), m.group(1)) for m in _CALL_ME_PRONOUN.finditer(text)]

        for position, raw in sorted(declarations):
            pronouns = normalize_pronouns(raw)
            speaker = _speaker(paragraph.candidates, position, None, previous)
            if pronouns is None or speaker is None:
                continue
            result.pronoun_changes.append(
                PronounChange(
                    name=speaker,
                    pronouns=pronouns,
                    location=_location(parsed, paragraph.offset + position),
                )
            )

    def _front_matter(self, parsed: ParsedFile, result: FileCharacters) -> None:
        origin = Location(file=parsed.relative_path, line=1, column=1, offset=0)
        for name, entry in _front_matter_characters(parsed.front_matter):
            if name.casefold() in self._ignore:
                continue
            if "pronouns" in entry:
                pronouns = normalize_pronouns(entry["pronouns"])
                if pronouns:
                    result.declared_pronouns[name] = pronouns

            aliases = entry.get("aliases") or []
            if isinstance(aliases, str):
                aliases = [aliases]
            for alias in aliases:
                result.alias_pairs.append(AliasPair(name=name, alias=str(alias), location=origin))

            relationships = entry.get("relationships")
            if isinstance(relationships, dict):
                result.relationships[name] = {str(k): str(v) for k, v in relationships.items()}


def _front_matter_characters(front_matter: dict[str, Any]) -> list[tuple[str, dict[str, Any]]]:
    """Accept ``characters`` as a mapping of name -> entry or a list of entries with ``name``."""
    characters = front_matter.get("characters")
    if isinstance(characters, dict):
        return [(str(k), v) for k, v in characters.items() if isinstance(v, dict)]
    if isinstance(characters, list):
        return [
            (str(item["name"]), item)
            for item in characters
            if isinstance(item, dict) and item.get("name")
        ]
    return []


def _vocabulary(paragraphs: list[_Paragraph]) -> tuple[set[str], set[str]]:
    """Capitalized words seen mid-sentence, and every lowercase word."""
    mid_caps: set[str] = set()
    lowercase: set[str] = set()
    for paragraph in paragraphs:
        for start, end in paragraph.sentences:
            for i, match in enumerate(_WORD.finditer(paragraph.text, start, end)):
                word = match.group()
                if word.islower():
                    lowercase.add(word)
                elif i > 0 and is_capitalized(word):
                    mid_caps.add(word)
    return mid_caps, lowercase


def _keep_initial(word: str, mid_caps: set[str], lowercase: set[str]) -> bool:
    """A sentence-initial word is a name if it is capitalized mid-sentence
    elsewhere, or never used in lowercase."""
    return word in mid_caps or word.lower() not in lowercase


def _runs(text: str, words: list[re.Match[str]]) -> list[list[re.Match[str]]]:
    """Group adjacent capitalized words into runs of at most three."""
    runs: list[list[re.Match[str]]] = []
    current: list[re.Match[str]] = []
    for match in words:
        word = match.group()
        if not is_capitalized(word) or word in EXCLUDED_WORDS:
            if current:
                runs.append(current)
                current = []
            continue
        if current:
            gap = text[current[-1].end():match.start()]
            if len(current) == MAX_NAME_WORDS or not gap.isspace():
                runs.append(current)
                current = []
        current.append(match)
    if current:
        runs.append(current)
    return runs


def _evidence(
    text: str, start: int, end: int, quoted: list[tuple[int, int]]
) -> tuple[str, ...]:
    found: list[str] = []
    for match in _WORD.finditer(text, start, end):
        if any(s <= match.start() < e for s, e in quoted):
            continue
        key = EVIDENCE_PRONOUNS.get(match.group().lower())
        if key and key not in found:
            found.append(key)
    return tuple(found)


def _speaker(
    candidates: list[_Candidate],
    position: int,
    exclude: str | None,
    previous: list[_Candidate],
) -> str | None:
    """Name a declaration at ``position`` belongs to.

    Closest preceding name in the paragraph, else the first following one,
    else the closest preceding name earlier in the file.
    """
    before = [c for c in candidates if c.end <= position and c.name != exclude]
    if before:
        return before[-1].name
    after = [c for c in candidates if c.start >= position and c.name != exclude]
    if after:
        return after[0].name
    earlier = [c for c in previous if c.name != exclude]
    return earlier[-1].name if earlier else None


def _location(parsed: ParsedFile, offset: int) -> Location:
    line, column = parsed.line_index.locate(offset)
    return Location(file=parsed.relative_path, line=line, column=column, offset=offset)


def _search(pattern: re.Pattern[str] | None, text: str) -> bool:
    return pattern is not None and pattern.search(text) is not None
