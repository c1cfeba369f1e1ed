"""Markdown AST with source positions, built on markdown-it-py.

markdown-it only records line ranges for block tokens, so inline positions
(links, emphasis, text runs) are recovered by walking the block's source
region with a cursor in token order.
"""

from __future__ import annotations

import re
from bisect import bisect_right
from typing import Iterator

from markdown_it import MarkdownIt
from markdown_it.tree import SyntaxTreeNode
from pydantic import BaseModel, Field

BLOCK_TYPES = {
    "paragraph": "paragraph",
    "heading": "heading",
    "blockquote": "blockquote",
    "bullet_list": "list",
    "ordered_list": "list",
    "list_item": "listItem",
    "fence": "code",
    "code_block": "code",
    "html_block": "html",
    "hr": "thematicBreak",
}

INLINE_TYPES = {
    "text": "text",
    "link": "link",
    "image": "image",
    "em": "emphasis",
    "strong": "strong",
    "s": "delete",
    "code_inline": "inlineCode",
    "softbreak": "break",
    "hardbreak": "break",
    "html_inline": "html",
}


class Point(BaseModel):
    line: int
    column: int
    offset: int


class Position(BaseModel):
    start: Point
    end: Point


class MarkdownNode(BaseModel):
    """One node of the document tree."""

    type: str
    children: list[MarkdownNode] = Field(default_factory=list)
    position: Position | None = None
    value: str | None = None
    url: str | None = None
    title: str | None = None
    depth: int | None = None

    def walk(self) -> Iterator[MarkdownNode]:
        """Pre-order traversal including this node."""
        yield self
        for child in self.children:
            yield from child.walk()

    def walk_with_ancestors(
        self, ancestors: tuple[MarkdownNode, ...] = ()
    ) -> Iterator[tuple[MarkdownNode, tuple[MarkdownNode, ...]]]:
        yield self, ancestors
        for child in self.children:
            yield from child.walk_with_ancestors((*ancestors, self))

    def find_all(self, node_type: str) -> list[MarkdownNode]:
        return [n for n in self.walk() if n.type == node_type]

    def text(self) -> str:
        """Concatenated plain text of this node and its descendants."""
        if self.type in ("text", "inlineCode"):
            return self.value or ""
        if self.type == "break":
            return " "
        if self.type == "image":
            return self.value or ""
        return "".join(child.text() for child in self.children)


MarkdownNode.model_rebuild()


class LineIndex:
    """Maps character offsets to 1-based (line, column) pairs and back."""

    def __init__(self, content: str) -> None:
        self._starts = [0] + [m.end() for m in re.finditer("\n", content)]
        self._length = len(content)

    @property
    def line_count(self) -> int:
        return len(self._starts)

    def locate(self, offset: int) -> tuple[int, int]:
        offset = max(0, min(offset, self._length))
        idx = bisect_right(self._starts, offset) - 1
        return idx + 1, offset - self._starts[idx] + 1

    def point(self, offset: int) -> Point:
        line, column = self.locate(offset)
        return Point(line=line, column=column, offset=max(0, min(offset, self._length)))

    def line_start(self, line: int) -> int:
        """Offset of the first character of 1-based ``line``."""
        if line > len(self._starts):
            return self._length
        return self._starts[max(line, 1) - 1]

    def line_end(self, line: int) -> int:
        """Offset just past the last character of 1-based ``line`` (newline excluded)."""
        if line >= len(self._starts):
            return self._length
        return self._starts[line] - 1

    def offset_of(self, line: int, column: int) -> int:
        return min(self.line_start(line) + column - 1, self._length)


class MarkdownParser:
    """Turns Markdown text into a positioned ``MarkdownNode`` tree."""

    def __init__(self, preset: str = "commonmark") -> None:
        self._md = MarkdownIt(preset)

    def parse(self, text: str, index: LineIndex) -> MarkdownNode:
        tree = SyntaxTreeNode(self._md.parse(text))
        children = [self._block(child, text, index) for child in tree.children]
        return MarkdownNode(
            type="root",
            children=children,
            position=Position(start=index.point(0), end=index.point(len(text))),
        )

    def _block(self, node: SyntaxTreeNode, text: str, index: LineIndex) -> MarkdownNode:
        position = _block_position(node, text, index)
        children: list[MarkdownNode] = []
        for child in node.children:
            if child.type == "inline":
                start = position.start.offset if position else 0
                end = position.end.offset if position else len(text)
                children.extend(_InlineCursor(text, index, start, end).convert(child.children))
            else:
                children.append(self._block(child, text, index))

        depth = None
        if node.type == "heading":
            depth = int(node.tag[1:])
        value = None
        if node.type in ("fence", "code_block", "html_block"):
            value = node.content

        return MarkdownNode(
            type=BLOCK_TYPES.get(node.type, node.type),
            children=children,
            position=position,
            value=value,
            depth=depth,
        )


def _block_position(node: SyntaxTreeNode, text: str, index: LineIndex) -> Position | None:
    if not node.map:
        return None
    first_line, end_line = node.map[0] + 1, max(node.map[1], node.map[0] + 1)
    start = index.line_start(first_line)
    line_end = index.line_end(first_line)
    # Start at the first non-blank character of the opening line.
    while start < line_end and text[start] in " \t":
        start += 1
    return Position(start=index.point(start), end=index.point(index.line_end(end_line)))


class _InlineCursor:
    """Recovers inline node positions by scanning the block source in order."""

    def __init__(self, text: str, index: LineIndex, start: int, end: int) -> None:
        self.text = text
        self.index = index
        self.pos = start
        self.end = max(end, start)

    def convert(self, nodes: list[SyntaxTreeNode]) -> list[MarkdownNode]:
        return [self._inline(node) for node in nodes]

    def _find(self, needle: str) -> int:
        if not needle:
            return -1
        return self.text.find(needle, self.pos, self.end)

    def _position(self, start: int, end: int) -> Position:
        return Position(start=self.index.point(start), end=self.index.point(end))

    def _inline(self, node: SyntaxTreeNode) -> MarkdownNode:
        kind = INLINE_TYPES.get(node.type, node.type)
        if node.type in ("link", "image"):
            return self._link(node)
        if node.type in ("em", "strong", "s"):
            return self._wrapped(node, kind)
        if node.type == "code_inline":
            return self._code(node)
        if node.type in ("softbreak", "hardbreak"):
            return self._leaf(kind, None, "\n")
        return self._leaf(kind, node.content, node.content)

    def _leaf(self, kind: str, value: str | None, needle: str) -> MarkdownNode:
        found = self._find(needle)
        if found < 0:
            start = end = self.pos
        else:
            start, end = found, found + len(needle)
            self.pos = end
        return MarkdownNode(type=kind, value=value, position=self._position(start, end))

    def _code(self, node: SyntaxTreeNode) -> MarkdownNode:
        markup = node.markup or "`"
        start = self._find(markup)
        if start < 0:
            return self._leaf("inlineCode", node.content, node.content)
        self.pos = start + len(markup)
        content_at = self._find(node.content)
        if content_at >= 0:
            self.pos = content_at + len(node.content)
        close = self._find(markup)
        if close >= 0:
            self.pos = close + len(markup)
        return MarkdownNode(
            type="inlineCode", value=node.content, position=self._position(start, self.pos)
        )

    def _wrapped(self, node: SyntaxTreeNode, kind: str) -> MarkdownNode:
        markup = node.markup
        start = self._find(markup)
        if start >= 0:
            self.pos = start + len(markup)
        else:
            start = self.pos
        children = self.convert(node.children)
        close = self._find(markup)
        if close >= 0:
            self.pos = close + len(markup)
        return MarkdownNode(type=kind, children=children, position=self._position(start, self.pos))

    def _link(self, node: SyntaxTreeNode) -> MarkdownNode:
        is_image = node.type == "image"
        autolink = node.markup == "autolink"
        opener = "<" if autolink else ("![" if is_image else "[")
        start = self._find(opener)
        if start >= 0:
            self.pos = start + len(opener)
        else:
            start = self.pos

        attrs = node.attrs
        url = attrs.get("src" if is_image else "href")
        title = attrs.get("title")
        children: list[MarkdownNode] = []
        value = None
        if is_image:
            value = node.content
        else:
            children = self.convert(node.children)

        if autolink:
            close = self._find(">")
            if close >= 0:
                self.pos = close + 1
        else:
            self._skip_link_tail()

        return MarkdownNode(
            type="image" if is_image else "link",
            children=children,
            position=self._position(start, self.pos),
            url=str(url) if url is not None else None,
            title=str(title) if title else None,
            value=value,
        )

    def _skip_link_tail(self) -> None:
        close = self._find("]")
        if close < 0:
            return
        self.pos = close + 1
        following = self.text[self.pos:self.pos + 1]
        if following == "(":
            depth = 0
            i = self.pos
            while i < self.end:
                ch = self.text[i]
                if ch == "\\":
                    i += 2
                    continue
                if ch == "(":
                    depth += 1
                elif ch == ")":
                    depth -= 1
                    if depth == 0:
                        self.pos = i + 1
                        return
                i += 1
        elif following == "[":
            ref_close = self.text.find("]", self.pos + 1, self.end)
            if ref_close >= 0:
                self.pos = ref_close + 1
