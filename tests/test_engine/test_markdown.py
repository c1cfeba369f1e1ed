"""Tests for the positioned Markdown tree."""

from __future__ import annotations

from storylint.engine.markdown import LineIndex, MarkdownParser


def _parse(text: str):
    return MarkdownParser().parse(text, LineIndex(text))


class TestLineIndex:
    def test_locate_is_one_based(self) -> None:
        index = LineIndex("ab\ncd\n")
        assert index.locate(0) == (1, 1)
        assert index.locate(1) == (1, 2)
        assert index.locate(3) == (2, 1)
        assert index.line_count == 3

    def test_line_bounds(self) -> None:
        index = LineIndex("ab\ncd")
        assert index.line_start(2) == 3
        assert index.line_end(1) == 2
        assert index.line_end(2) == 5
        assert index.offset_of(2, 2) == 4

    def test_offsets_are_clamped(self) -> None:
        index = LineIndex("ab")
        assert index.locate(99) == (1, 3)
        assert index.point(-4).offset == 0


class TestMarkdownParser:
    def test_link_position_and_url(self) -> None:
        root = _parse("[x](b.md)")
        (link,) = root.find_all("link")
        assert link.url == "b.md"
        assert link.text() == "x"
        assert (link.position.start.line, link.position.start.column) == (1, 1)
        assert link.position.end.offset == len("[x](b.md)")

    def test_link_later_in_line(self) -> None:
        text = "See [the intro](doc.md#intro) now."
        (link,) = _parse(text).find_all("link")
        assert link.position.start.column == text.index("[") + 1
        assert link.url == "doc.md#intro"

    def test_heading_depth_and_text(self) -> None:
        root = _parse("# Intro\n\ntext\n\n## Part Two\n")
        headings = root.find_all("heading")
        assert [(h.depth, h.text()) for h in headings] == [(1, "Intro"), (2, "Part Two")]
        assert headings[1].position.start.line == 5

    def test_code_blocks_keep_value(self) -> None:
        root = _parse("```\nAlice\n```\n")
        (code,) = root.find_all("code")
        assert code.value == "Alice\n"
        assert root.find_all("paragraph") == []

    def test_text_nodes_on_second_line(self) -> None:
        root = _parse("first line\nsecond *word*\n")
        texts = [n for n in root.walk() if n.type == "text"]
        word = [n for n in texts if n.value == "word"][0]
        assert (word.position.start.line, word.position.start.column) == (2, 9)

    def test_blockquote_contains_paragraph(self) -> None:
        root = _parse("> Bob remembered.\n")
        quote = root.find_all("blockquote")[0]
        assert quote.find_all("paragraph")[0].text() == "Bob remembered."
