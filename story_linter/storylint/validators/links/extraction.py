"""Phase A: links, headings and the title of one document."""

from __future__ import annotations

from pathlib import PurePosixPath

from pydantic import BaseModel, ConfigDict, Field

from storylint.engine.processor import ParsedFile
from storylint.validators.links.slug import Slugger


class LinkRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    target: str
    text: str
    line: int
    column: int
    end_line: int | None = None
    end_column: int | None = None


class HeadingRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: str
    depth: int
    slug: str
    line: int


class FileLinks(BaseModel):
    path: str
    title: str
    links: list[LinkRecord] = Field(default_factory=list)
    headings: list[HeadingRecord] = Field(default_factory=list)


def document_title(parsed: ParsedFile, headings: list[HeadingRecord]) -> str:
    """Front-matter ``title``, else the first H1, else the file name without extension."""
    title = parsed.front_matter.get("title")
    if isinstance(title, (str, int, float)) and str(title).strip():
        return str(title).strip()
    for heading in headings:
        if heading.depth == 1 and heading.text:
            return heading.text
    return PurePosixPath(parsed.relative_path).stem


def extract_links(parsed: ParsedFile) -> FileLinks:
    links: list[LinkRecord] = []
    headings: list[HeadingRecord] = []
    slugger = Slugger()

    for node in parsed.ast.walk():
        if node.type == "heading" and node.position is not None:
            text = node.text().strip()
            headings.append(
                HeadingRecord(
                    text=text,
                    depth=node.depth or 1,
                    slug=slugger.slug(text),
                    line=node.position.start.line,
                )
            )
        elif node.type == "link" and node.url is not None and node.position is not None:
            start, end = node.position.start, node.position.end
            links.append(
                LinkRecord(
                    target=node.url,
                    text=node.text().strip(),
                    line=start.line,
                    column=start.column,
                    end_line=end.line,
                    end_column=end.column,
                )
            )

    return FileLinks(
        path=parsed.relative_path,
        title=document_title(parsed, headings),
        links=links,
        headings=headings,
    )
