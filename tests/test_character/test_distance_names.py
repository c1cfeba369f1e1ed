"""Tests for edit distance and the name word lists."""

import pytest

from storylint.validators.character.distance import damerau_levenshtein, within_distance
from storylint.validators.character.names import (
    EXCLUDED_WORDS,
    nickname_pair,
    normalize_pronouns,
    related_names,
)


class TestDamerauLevenshtein:
    @pytest.mark.parametrize(
        "a, b, expected",
        [
            ("Alice", "Alice", 0),
            ("Alice", "Alise", 1),
            ("Sarah", "Sarha", 1),
            ("kitten", "sitting", 3),
            ("", "abc", 3),
            ("abc", "", 3),
            # Optimal string alignment never edits a transposed pair twice.
            ("ca", "abc", 3),
        ],
    )
    def test_distance(self, a: str, b: str, expected: int) -> None:
        assert damerau_levenshtein(a, b) == expected

    def test_symmetric(self) -> None:
        assert damerau_levenshtein("Marcus", "Markus") == damerau_levenshtein("Markus", "Marcus")


class TestWithinDistance:
    def test_case_only_difference_is_not_a_misspelling(self) -> None:
        assert within_distance("Sarah", "SARAH", 2) is False

    def test_close_names(self) -> None:
        assert within_distance("Sarah", "Sara", 2) is True
        assert within_distance("Alice", "Alise", 1) is True

    def test_far_names(self) -> None:
        assert within_distance("Sarah", "Michael", 2) is False
        assert within_distance("Alice", "Alise", 0) is False


class TestNicknames:
    def test_pair_order_is_full_then_short(self) -> None:
        assert nickname_pair("Elizabeth", "Liz") == ("Elizabeth", "Liz")
        assert nickname_pair("Liz", "Elizabeth") == ("Elizabeth", "Liz")

    def test_unrelated_names(self) -> None:
        assert nickname_pair("Sarah", "Sara") is None
        assert related_names("Sarah", "Sara") is False

    def test_two_short_forms_are_related(self) -> None:
        assert related_names("Bill", "Billy") is True

    def test_common_words_are_excluded(self) -> None:
        assert "The" in EXCLUDED_WORDS
        assert "Monday" in EXCLUDED_WORDS
        assert "Will" not in EXCLUDED_WORDS


class TestNormalizePronouns:
    @pytest.mark.parametrize(
        "value, expected",
        [
            ("she/her", "she"),
            ("He, him", "he"),
            ("him", "he"),
            (["they", "them"], "they"),
            ("xe/xem", "xe"),
            ("", None),
        ],
    )
    def test_normalize(self, value, expected) -> None:
        assert normalize_pronouns(value) == expected
