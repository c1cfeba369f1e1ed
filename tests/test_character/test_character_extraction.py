"""Tests for per-file character extraction."""

import pytest

from storylint.validators.character.extraction import (
    CharacterExtractor,
    is_capitalized,
    split_sentences,
)
from storylint.validators.character.names import (
    DEFAULT_INTRODUCTION_MARKERS,
    DEFAULT_RETROSPECTIVE_MARKERS,
)


@pytest.fixture
def extract(parse):
    def _extract(content: str, name: str = "doc.md", ignore=()):
        extractor = CharacterExtractor(
            DEFAULT_INTRODUCTION_MARKERS, DEFAULT_RETROSPECTIVE_MARKERS, ignore
        )
        return extractor.extract(parse(content, name))

    return _extract


def _names(result) -> list[str]:
    return [m.name for m in result.mentions]


class TestHelpers:
    def test_is_capitalized(self) -> None:
        assert is_capitalized("Sarah")
        assert not is_capitalized("NASA")
        assert not is_capitalized("I")
        assert not is_capitalized("sarah")

    def test_split_sentences(self) -> None:
        text = "One. Two! Three"
        assert [text[s:e].strip() for s, e in split_sentences(text)] == ["One.", "Two!", "Three"]


class TestMentions:
    def test_names_and_positions(self, extract) -> None:
        result = extract("Sarah walked into the room. She smiled at Tom.\n")

        assert _names(result) == ["Sarah", "Tom"]
        tom = result.mentions[1]
        assert (tom.location.line, tom.location.column) == (1, 43)
        assert tom.end_column == 46

    def test_multi_word_name(self, extract) -> None:
        result = extract("Mary Jane Watson arrived at noon.\n")
        assert _names(result) == ["Mary Jane Watson"]

    def test_common_sentence_starters_dropped(self, extract) -> None:
        result = extract("Rain fell all night. The rain was cold.\n")
        assert _names(result) == []

    def test_sentence_initial_flag_and_vocabulary(self, extract) -> None:
        result = extract("Alice walked in. Tom met Alice. Nora waved.\n")

        assert [(m.name, m.sentence_initial) for m in result.mentions] == [
            ("Alice", False),
            ("Tom", True),
            ("Alice", False),
            ("Nora", True),
        ]
        assert {"walked", "in", "met", "waved"} <= result.lowercase_words

    def test_stopword_before_name(self, extract) -> None:
        result = extract("Yesterday Sarah left.\n")
        assert _names(result) == ["Sarah"]

    def test_code_and_link_targets_ignored(self, extract) -> None:
        content = "```\nSarah\n```\n\nWe studied [the map](Atlas.md) today.\n\nTom arrived.\n"
        result = extract(content)
        assert _names(result) == ["Tom"]
        assert result.mentions[0].location.line == 7

    def test_ignored_names(self, extract) -> None:
        result = extract("Tom left London.\n", ignore=["london"])
        assert _names(result) == ["Tom"]

    def test_introduction_marker(self, extract) -> None:
        result = extract("I met Sarah at the station. Sarah waved.\n")
        first, second = result.mentions
        assert first.introduction and first.marker
        assert not second.introduction

    def test_retrospective_paragraph(self, extract) -> None:
        result = extract("Sarah remembered the war.\n\n> Tom spoke.\n\nAnna left.\n")
        flags = {m.name: m.retrospective for m in result.mentions}
        assert flags == {"Sarah": True, "Tom": True, "Anna": False}


class TestPronounEvidence:
    def test_single_name_sentence(self, extract) -> None:
        result = extract("Sarah said she was tired.\n")
        assert result.mentions[0].pronouns == ("she",)

    def test_object_forms_are_not_evidence(self, extract) -> None:
        result = extract("Sarah saw him at the door.\n")
        assert result.mentions[0].pronouns == ()

    def test_quoted_speech_skipped(self, extract) -> None:
        result = extract('Sarah said "he is late" and left.\n')
        assert result.mentions[0].pronouns == ()

    def test_two_names_give_no_evidence(self, extract) -> None:
        result = extract("Sarah told Tom she was tired.\n")
        assert [m.pronouns for m in result.mentions] == [(), ()]


class TestAliases:
    def test_also_known_as(self, extract) -> None:
        result = extract("Elizabeth, also known as Liz, arrived.\n")
        (pair,) = result.alias_pairs
        assert (pair.name, pair.alias) == ("Elizabeth", "Liz")
        assert pair.location.column == 26

    def test_formerly(self, extract) -> None:
        result = extract("Robert, formerly Bob, waved.\n")
        assert [(p.name, p.alias) for p in result.alias_pairs] == [("Robert", "Bob")]

    def test_call_me(self, extract) -> None:
        result = extract('"Call me Liz," said Elizabeth.\n')
        assert [(p.name, p.alias) for p in result.alias_pairs] == [("Elizabeth", "Liz")]


class TestPronounChanges:
    def test_marker(self, extract) -> None:
        result = extract("Sam stood up. [pronouns: they/them]\n")
        (change,) = result.pronoun_changes
        assert (change.name, change.pronouns) == ("Sam", "they")
        assert change.location.column == 15

    def test_marker_in_later_paragraph_uses_earlier_name(self, extract) -> None:
        result = extract("Sam stood up.\n\n[pronouns: she/her]\n")
        assert [(c.name, c.pronouns) for c in result.pronoun_changes] == [("Sam", "she")]


class TestFrontMatter:
    def test_mapping_form(self, extract) -> None:
        content = (
            "---\n"
            "characters:\n"
            "  Elizabeth:\n"
            "    pronouns: she/her\n"
            "    aliases: [Liz]\n"
            "    relationships:\n"
            "      Tom: brother\n"
            "---\n"
            "Tom waved.\n"
        )
        result = extract(content)

        assert result.declared_pronouns == {"Elizabeth": "she"}
        (pair,) = result.alias_pairs
        assert (pair.name, pair.alias, pair.location.line) == ("Elizabeth", "Liz", 1)
        assert result.relationships == {"Elizabeth": {"Tom": "brother"}}
        assert _names(result) == ["Tom"]

    def test_list_form(self, extract) -> None:
        content = "---\ncharacters:\n  - name: Sam\n    pronouns: [they, them]\n---\nSam left.\n"
        result = extract(content)
        assert result.declared_pronouns == {"Sam": "they"}
