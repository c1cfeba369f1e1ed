"""File processor -- read, decode, split front matter and parse Markdown."""

from __future__ import annotations

import asyncio
import logging
import re
from io import StringIO
from pathlib import Path
from typing import Any

from ruamel.yaml import YAML, YAMLError

from storylint.engine.errors import EncodingError, FileReadError, MarkdownParseError
from storylint.engine.markdown import LineIndex, MarkdownNode, MarkdownParser
from storylint.engine.models import Issue, Severity, engine_issue

logger = logging.getLogger(__name__)

FRONT_MATTER_OPEN = "---"
FRONT_MATTER_CLOSE = ("---", "...")

_NOT_NEWLINE = re.compile(r"[^\n]")


class ParsedFile:
    """A processed Markdown document. Shared by reference across validators."""

    def __init__(
        self,
        path: Path,
        relative_path: str,
        content: str,
        ast: MarkdownNode,
        front_matter: dict[str, Any],
        line_index: LineIndex,
        issues: list[Issue] | None = None,
    ) -> None:
        self.path = path
        self.relative_path = relative_path
        self.content = content
        self.ast = ast
        self.front_matter = front_matter
        self.line_index = line_index
        self.issues = issues or []

    @property
    def suffix(self) -> str:
        return self.path.suffix.lower()

    def __repr__(self) -> str:
        return f"ParsedFile({self.relative_path!r})"


def relative_to_root(path: Path, root: Path) -> str:
    """Project-relative POSIX path, or the absolute path outside the root."""
    try:
        return path.relative_to(root).as_posix()
    except ValueError:
        return path.as_posix()


def split_front_matter(content: str) -> tuple[str | None, int]:
    """Return the raw front matter block and the offset where the body starts.

    Front matter must open on the first line with ``---`` and close with a
    ``---`` or ``...`` line. An unterminated block is treated as body text.
    """
    lines = content.split("\n")
    if not lines or lines[0].rstrip() != FRONT_MATTER_OPEN:
        return None, 0
    offset = len(lines[0]) + 1
    for i, line in enumerate(lines[1:], start=1):
        if line.rstrip() in FRONT_MATTER_CLOSE:
            raw = "\n".join(lines[1:i])
            body_start = offset + len(line) + (1 if i < len(lines) - 1 else 0)
            return raw, body_start
        offset += len(line) + 1
    return None, 0


class FileProcessor:
    """Reads and parses files, caching results by absolute path for one run."""

    def __init__(self, project_root: Path, parser: MarkdownParser | None = None) -> None:
        self.project_root = project_root.resolve()
        self._parser = parser or MarkdownParser()
        self._cache: dict[Path, ParsedFile] = {}
        self._yaml = YAML(typ="safe")

    @property
    def cached(self) -> dict[Path, ParsedFile]:
        return dict(self._cache)

    async def process(self, path: Path) -> ParsedFile:
        """Read and parse ``path`` without blocking the event loop on I/O."""
        path = path.resolve()
        cached = self._cache.get(path)
        if cached is not None:
            return cached
        try:
            data = await asyncio.to_thread(path.read_bytes)
        except OSError as exc:
            raise FileReadError(path, f"Cannot read file: {exc.strerror or exc}") from exc
        return self._build(path, data)

    def load(self, path: Path) -> ParsedFile:
        """Synchronous variant used by ``ValidatorContext.read_file``."""
        path = path.resolve()
        cached = self._cache.get(path)
        if cached is not None:
            return cached
        try:
            data = path.read_bytes()
        except OSError as exc:
            raise FileReadError(path, f"Cannot read file: {exc.strerror or exc}") from exc
        return self._build(path, data)

    def clear(self) -> None:
        self._cache.clear()

    def _build(self, path: Path, data: bytes) -> ParsedFile:
        relative = relative_to_root(path, self.project_root)
        content = self._decode(path, data)
        issues: list[Issue] = []

        raw_front_matter, body_start = split_front_matter(content)
        front_matter: dict[str, Any] = {}
        if raw_front_matter is not None:
            front_matter, fm_issue = self._parse_front_matter(raw_front_matter, relative)
            if fm_issue is not None:
                issues.append(fm_issue)

        # Blank out the front matter (keeping newlines) so AST offsets match the file.
        parse_text = _NOT_NEWLINE.sub(" ", content[:body_start]) + content[body_start:]
        line_index = LineIndex(content)
        try:
            ast = self._parser.parse(parse_text, line_index)
        except Exception as exc:
            raise MarkdownParseError(path, f"Markdown parser failed: {exc}") from exc

        parsed = ParsedFile(
            path=path,
            relative_path=relative,
            content=content,
            ast=ast,
            front_matter=front_matter,
            line_index=line_index,
            issues=issues,
        )
        self._cache[path] = parsed
        logger.debug("Parsed %s (%d lines)", relative, line_index.line_count)
        return parsed

    @staticmethod
    def _decode(path: Path, data: bytes) -> str:
        try:
            text = data.decode("utf-8")
        except UnicodeDecodeError as exc:
            line = data[: exc.start].count(b"\n") + 1
            raise EncodingError(
                path, f"File is not valid UTF-8 (byte offset {exc.start})", line=line
            ) from exc
        if text.startswith("\ufeff"):
            text = text[1:]
        return text.replace("\r\n", "\n").replace("\r", "\n")

    def _parse_front_matter(
        self, raw: str, relative: str
    ) -> tuple[dict[str, Any], Issue | None]:
        try:
            parsed = self._yaml.load(StringIO(raw))
        except YAMLError as e:
            line = None
            if getattr(e, "problem_mark", None) is not None:
                # +1 for 0-indexed marks, +1 for the opening delimiter line
                line = e.problem_mark.line + 2
            return {}, engine_issue(
                "front-matter-error",
                f"Malformed YAML front matter: {_first_line(str(e))}",
                severity=Severity.warning,
                file=relative,
                line=line,
            )

        if parsed is None:
            return {}, None
        if not isinstance(parsed, dict):
            return {}, engine_issue(
                "front-matter-error",
                "Front matter must be a mapping",
                severity=Severity.warning,
                file=relative,
                line=1,
            )
        return dict(parsed), None


def _first_line(text: str) -> str:
    return text.strip().splitlines()[0] if text.strip() else text
