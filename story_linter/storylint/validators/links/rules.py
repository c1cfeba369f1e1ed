"""Phase C checks over the link graph."""

from __future__ import annotations

import difflib
from pathlib import PurePosixPath

from storylint.engine.models import Issue, Severity
from storylint.validators.links.graph import EdgeKind, LinkEdge, LinkGraph

VALIDATOR_ID = "link-graph"

# Link texts that refer to a target without naming it.
GENERIC_LINK_TEXT = frozenset({
    "here", "this", "link", "click here", "this link", "this page", "see here",
    "read more", "more", "next", "previous", "back",
})


def _issue(
    code: str,
    severity: Severity,
    message: str,
    edge: LinkEdge,
    suggestion: str | None = None,
) -> Issue:
    return Issue(
        code=code,
        severity=severity,
        message=message,
        validator=VALIDATOR_ID,
        file=edge.source,
        line=edge.line,
        column=edge.column,
        end_line=edge.end_line,
        end_column=edge.end_column,
        suggestion=suggestion,
    )


def check_broken(edge: LinkEdge, graph: LinkGraph) -> Issue | None:
    """LINK001."""
    if edge.kind != EdgeKind.broken:
        return None
    suggestion = None
    if edge.target:
        matches = difflib.get_close_matches(edge.target, sorted(graph.nodes), n=1, cutoff=0.6)
        if matches:
            suggestion = f"Did you mean: {matches[0]}?"
    return _issue(
        "LINK001",
        Severity.error,
        f"Broken link to '{edge.raw}'",
        edge,
        suggestion=suggestion,
    )


def check_title(edge: LinkEdge, graph: LinkGraph, similarity: float) -> Issue | None:
    """LINK002: link text that looks like a stale or misspelled copy of the target title."""
    if edge.kind != EdgeKind.internal or edge.target == edge.source:
        return None
    node = graph.nodes.get(edge.target)
    if node is None:
        return None
    text = edge.text.strip()
    folded = text.casefold()
    title = node.title.strip()
    if not text or folded == title.casefold() or folded in GENERIC_LINK_TEXT:
        return None
    target = PurePosixPath(node.path)
    if folded in (target.name.casefold(), target.stem.casefold()):
        return None
    ratio = difflib.SequenceMatcher(None, folded, title.casefold()).ratio()
    if ratio < similarity:
        return None
    return _issue(
        "LINK002",
        Severity.info,
        f"Link text '{text}' does not match the title of {node.path} ('{title}')",
        edge,
        suggestion=f"Use '{title}' as the link text",
    )


def check_anchor(edge: LinkEdge, graph: LinkGraph) -> Issue | None:
    """LINK004."""
    if edge.kind not in (EdgeKind.internal, EdgeKind.anchor) or not edge.fragment:
        return None
    node = graph.nodes.get(edge.target)
    if node is None:
        return None
    if edge.fragment.lower() in node.slugs:
        return None
    matches = difflib.get_close_matches(edge.fragment.lower(), node.slugs, n=1, cutoff=0.6)
    where = "this file" if edge.target == edge.source else node.path
    return _issue(
        "LINK004",
        Severity.warning,
        f"Anchor '#{edge.fragment}' not found in {where}",
        edge,
        suggestion=f"Did you mean: #{matches[0]}?" if matches else None,
    )


def check_file(graph: LinkGraph, path: str, similarity: float) -> list[Issue]:
    issues: list[Issue] = []
    for edge in graph.edges_from(path):
        for issue in (
            check_broken(edge, graph),
            check_title(edge, graph, similarity),
            check_anchor(edge, graph),
        ):
            if issue is not None:
                issues.append(issue)
    return issues


def check_orphans(graph: LinkGraph, entry_points: list[str]) -> list[Issue]:
    """LINK003: documents unreachable from every root."""
    return [
        Issue(
            code="LINK003",
            severity=Severity.warning,
            message="Document is not reachable from any README or entry point",
            validator=VALIDATOR_ID,
            file=path,
            suggestion="Link to it from another document or add it to linkValidator.entryPoints",
        )
        for path in graph.orphans(entry_points)
    ]


def check_bidirectional(graph: LinkGraph) -> list[Issue]:
    """LINK005: pairs of documents that link to each other."""
    return [
        Issue(
            code="LINK005",
            severity=Severity.info,
            message=f"{a} and {b} link to each other",
            validator=VALIDATOR_ID,
            file=a,
        )
        for a, b in graph.bidirectional_pairs()
    ]
