"""Phase B: the directed link graph over the run's documents."""

from __future__ import annotations

import logging
import posixpath
import re
from collections import deque
from enum import Enum
from pathlib import PurePosixPath
from typing import Callable, Collection, Iterable
from urllib.parse import unquote, urlsplit

from pydantic import BaseModel, ConfigDict, Field

from storylint.validators.links.extraction import FileLinks, LinkRecord

logger = logging.getLogger(__name__)

_SCHEME = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*:")
_HOSTED_SCHEMES = {"http", "https", "ftp"}

ROOT_FILENAME = "readme.md"
DOCUMENT_SUFFIXES = (".md", ".markdown")


class EdgeKind(str, Enum):
    internal = "internal"
    external = "external"
    anchor = "anchor"
    broken = "broken"


class LinkEdge(BaseModel):
    model_config = ConfigDict(frozen=True)

    source: str
    kind: EdgeKind
    raw: str
    target: str | None = None
    fragment: str = ""
    text: str = ""
    line: int
    column: int
    end_line: int | None = None
    end_column: int | None = None


class DocumentNode(BaseModel):
    path: str
    title: str
    slugs: list[str] = Field(default_factory=list)
    incoming: int = 0
    outgoing: list[LinkEdge] = Field(default_factory=list)


class LinkGraph(BaseModel):
    nodes: dict[str, DocumentNode] = Field(default_factory=dict)
    edges: list[LinkEdge] = Field(default_factory=list)

    def edges_from(self, path: str) -> list[LinkEdge]:
        node = self.nodes.get(path)
        return list(node.outgoing) if node else []

    def edges_of(self, kind: EdgeKind) -> list[LinkEdge]:
        return [e for e in self.edges if e.kind == kind]

    def roots(self, entry_points: Iterable[str] = ()) -> list[str]:
        """README files in any directory plus configured entry points present in the graph."""
        found = {p for p in self.nodes if PurePosixPath(p).name.lower() == ROOT_FILENAME}
        for entry in entry_points:
            normalized = posixpath.normpath(entry.strip().lstrip("/"))
            if normalized in self.nodes:
                found.add(normalized)
        return sorted(found)

    def reachable_from(self, roots: Iterable[str]) -> set[str]:
        """Breadth-first search over internal edges. Cycles are harmless."""
        seen = {r for r in roots if r in self.nodes}
        queue = deque(sorted(seen))
        while queue:
            current = queue.popleft()
            for edge in self.nodes[current].outgoing:
                if edge.kind != EdgeKind.internal or edge.target not in self.nodes:
                    continue
                if edge.target not in seen:
                    seen.add(edge.target)
                    queue.append(edge.target)
        return seen

    def orphans(self, entry_points: Iterable[str] = ()) -> list[str]:
        reachable = self.reachable_from(self.roots(entry_points))
        return sorted(p for p in self.nodes if p not in reachable)

    def bidirectional_pairs(self) -> list[tuple[str, str]]:
        linked = {
            (e.source, e.target)
            for e in self.edges
            if e.kind == EdgeKind.internal and e.target in self.nodes and e.target != e.source
        }
        return sorted((a, b) for a, b in linked if a < b and (b, a) in linked)


def resolve_target(
    raw: str,
    source: str,
    known: Collection[str],
    exists: Callable[[str], bool] | None = None,
    strict_external: bool = False,
) -> tuple[EdgeKind, str | None, str]:
    """Classify a link target relative to ``source``.

    Returns ``(kind, resolved_path, fragment)``. Paths are project-relative
    POSIX strings; a leading ``/`` is relative to the project root.
    """
    target = unquote(raw.strip())
    if _SCHEME.match(target) or target.startswith("//"):
        if strict_external and not _well_formed_external(target):
            return EdgeKind.broken, None, ""
        return EdgeKind.external, None, ""

    path_part, _, fragment = target.partition("#")
    path_part = path_part.split("?", 1)[0]
    if not path_part:
        return EdgeKind.anchor, source, fragment

    if path_part.startswith("/"):
        candidate = posixpath.normpath(path_part.lstrip("/"))
    else:
        candidate = posixpath.normpath(posixpath.join(posixpath.dirname(source), path_part))

    if candidate in known:
        return EdgeKind.internal, candidate, fragment
    index = _directory_index(candidate, known)
    if index is not None:
        return EdgeKind.internal, index, fragment
    if exists is not None and _is_asset(candidate) and exists(candidate):
        return EdgeKind.internal, candidate, fragment
    return EdgeKind.broken, candidate, fragment


def _is_asset(candidate: str) -> bool:
    """Non-document files inside the project, which may exist outside the file set."""
    return not candidate.startswith("..") and not candidate.lower().endswith(DOCUMENT_SUFFIXES)


def _directory_index(directory: str, known: Collection[str]) -> str | None:
    for path in known:
        pure = PurePosixPath(path)
        if pure.name.lower() == ROOT_FILENAME and str(pure.parent) == directory:
            return path
    return None


def _well_formed_external(target: str) -> bool:
    try:
        parts = urlsplit(target)
    except ValueError:
        return False
    if parts.scheme.lower() in _HOSTED_SCHEMES:
        return bool(parts.netloc)
    return True


def _edge(source: str, link: LinkRecord, kind: EdgeKind, target: str | None, fragment: str) -> LinkEdge:
    return LinkEdge(
        source=source,
        kind=kind,
        raw=link.target,
        target=target,
        fragment=fragment,
        text=link.text,
        line=link.line,
        column=link.column,
        end_line=link.end_line,
        end_column=link.end_column,
    )


def build_graph(
    partials: list[FileLinks],
    exists: Callable[[str], bool] | None = None,
    strict_external: bool = False,
) -> LinkGraph:
    """Merge every file's links into one graph, in path order."""
    files = sorted(partials, key=lambda p: PurePosixPath(p.path))
    graph = LinkGraph(
        nodes={
            p.path: DocumentNode(path=p.path, title=p.title, slugs=[h.slug for h in p.headings])
            for p in files
        }
    )
    known = set(graph.nodes)

    for partial in files:
        node = graph.nodes[partial.path]
        for link in partial.links:
            kind, target, fragment = resolve_target(
                link.target, partial.path, known, exists, strict_external
            )
            edge = _edge(partial.path, link, kind, target, fragment)
            node.outgoing.append(edge)
            graph.edges.append(edge)
            if kind == EdgeKind.internal and target in graph.nodes and target != partial.path:
                graph.nodes[target].incoming += 1

    logger.debug("Link graph: %d nodes, %d edges", len(graph.nodes), len(graph.edges))
    return graph
