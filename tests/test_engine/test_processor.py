"""Tests for file processing: decoding, front matter and caching."""

from __future__ import annotations

from pathlib import Path

import pytest

from storylint.engine.errors import EncodingError, FileReadError
from storylint.engine.processor import FileProcessor, split_front_matter


class TestSplitFrontMatter:
    def test_no_front_matter(self) -> None:
        assert split_front_matter("# Title\n") == (None, 0)

    def test_front_matter_block(self) -> None:
        content = "---\ntitle: Hello\n---\n# H"
        raw, body_start = split_front_matter(content)
        assert raw == "title: Hello"
        assert content[body_start:] == "# H"

    def test_unterminated_block_is_body(self) -> None:
        assert split_front_matter("---\ntitle: Hello\n") == (None, 0)


class TestFileProcessor:
    def test_front_matter_parsed_and_positions_preserved(self, parse) -> None:
        parsed = parse("---\ntitle: Hello\n---\n# Heading\n")
        assert parsed.front_matter == {"title": "Hello"}
        (heading,) = parsed.ast.find_all("heading")
        assert heading.position.start.line == 4
        assert parsed.issues == []

    def test_front_matter_is_not_parsed_as_markdown(self, parse) -> None:
        parsed = parse("---\ntitle: '[x](gone.md)'\n---\ntext\n")
        assert parsed.ast.find_all("link") == []

    def test_malformed_front_matter_is_warning(self, parse) -> None:
        parsed = parse("---\ntitle: [unclosed\n---\nBody text.\n")
        assert parsed.front_matter == {}
        (issue,) = parsed.issues
        assert issue.code == "front-matter-error"
        assert issue.severity.value == "warning"
        assert parsed.ast.find_all("paragraph")

    def test_non_mapping_front_matter_is_warning(self, parse) -> None:
        parsed = parse("---\n- a\n- b\n---\nBody\n")
        assert [i.code for i in parsed.issues] == ["front-matter-error"]

    def test_crlf_and_bom_normalized(self, tmp_path: Path) -> None:
        path = tmp_path / "win.md"
        path.write_bytes(b"\xef\xbb\xbf# Title\r\n\r\ntext\r\n")
        parsed = FileProcessor(tmp_path).load(path)
        assert parsed.content == "# Title\n\ntext\n"
        assert parsed.relative_path == "win.md"

    def test_invalid_utf8_raises_encoding_error(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.md"
        path.write_bytes(b"fine\n\xff\xfe broken\n")
        with pytest.raises(EncodingError) as excinfo:
            FileProcessor(tmp_path).load(path)
        assert excinfo.value.line == 2
        assert excinfo.value.kind == "encoding-error"

    def test_missing_file_raises_read_error(self, tmp_path: Path) -> None:
        with pytest.raises(FileReadError):
            FileProcessor(tmp_path).load(tmp_path / "missing.md")

    @pytest.mark.asyncio
    async def test_process_caches_by_path(self, tmp_path: Path) -> None:
        path = tmp_path / "a.md"
        path.write_text("text", encoding="utf-8")
        processor = FileProcessor(tmp_path)
        first = await processor.process(path)
        second = await processor.process(tmp_path / "." / "a.md")
        assert first is second
        processor.clear()
        assert processor.cached == {}
