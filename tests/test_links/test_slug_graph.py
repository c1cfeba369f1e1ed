"""Tests for slugs, link extraction and the link graph."""

import pytest

from storylint.validators.links.extraction import FileLinks, LinkRecord, extract_links
from storylint.validators.links.graph import EdgeKind, build_graph, resolve_target
from storylint.validators.links.slug import Slugger, github_slug


def _links(path: str, *targets: str, title: str | None = None) -> FileLinks:
    return FileLinks(
        path=path,
        title=title or path,
        links=[LinkRecord(target=t, text=t, line=1, column=1) for t in targets],
    )


class TestSlug:
    @pytest.mark.parametrize(
        "text, expected",
        [
            ("Intro", "intro"),
            ("Hello, World!", "hello-world"),
            ("Chapter 1: The Beginning", "chapter-1-the-beginning"),
            ("snake_case stays", "snake_case-stays"),
            ("Café au lait", "café-au-lait"),
        ],
    )
    def test_github_slug(self, text: str, expected: str) -> None:
        assert github_slug(text) == expected

    def test_duplicates_get_suffixes(self) -> None:
        slugger = Slugger()
        assert [slugger.slug("Intro") for _ in range(3)] == ["intro", "intro-1", "intro-2"]


class TestExtraction:
    def test_links_headings_and_title(self, parse) -> None:
        parsed = parse("# The Start\n\nGo to [next](b.md#part).\n\n## Part\n")
        result = extract_links(parsed)

        assert result.title == "The Start"
        (link,) = result.links
        assert (link.target, link.text, link.line, link.column) == ("b.md#part", "next", 3, 7)
        assert [(h.slug, h.depth) for h in result.headings] == [("the-start", 1), ("part", 2)]

    def test_front_matter_title_wins(self, parse) -> None:
        parsed = parse("---\ntitle: Prologue\n---\n# Heading\n")
        assert extract_links(parsed).title == "Prologue"

    def test_title_falls_back_to_stem(self, parse) -> None:
        parsed = parse("no headings\n", name="notes/chapter-3.md")
        assert extract_links(parsed).title == "chapter-3"


class TestResolveTarget:
    KNOWN = {"README.md", "a.md", "parts/b.md", "parts/README.md"}

    @pytest.mark.parametrize(
        "raw, source, expected",
        [
            ("a.md", "README.md", (EdgeKind.internal, "a.md", "")),
            ("b.md#intro", "parts/README.md", (EdgeKind.internal, "parts/b.md", "intro")),
            ("../a.md", "parts/b.md", (EdgeKind.internal, "a.md", "")),
            ("/parts/b.md", "parts/b.md", (EdgeKind.internal, "parts/b.md", "")),
            ("parts/", "a.md", (EdgeKind.internal, "parts/README.md", "")),
            ("#top", "a.md", (EdgeKind.anchor, "a.md", "top")),
            ("a.md?raw=1", "README.md", (EdgeKind.internal, "a.md", "")),
            ("my%20file.md", "a.md", (EdgeKind.broken, "my file.md", "")),
            ("https://example.com/x", "a.md", (EdgeKind.external, None, "")),
            ("mailto:someone@example.com", "a.md", (EdgeKind.external, None, "")),
            ("missing.md", "a.md", (EdgeKind.broken, "missing.md", "")),
        ],
    )
    def test_classification(self, raw: str, source: str, expected: tuple) -> None:
        assert resolve_target(raw, source, self.KNOWN) == expected

    def test_existing_non_markdown_file_is_internal(self) -> None:
        kind, target, _ = resolve_target("map.png", "a.md", self.KNOWN, exists=lambda p: p == "map.png")
        assert (kind, target) == (EdgeKind.internal, "map.png")

    def test_document_outside_file_set_is_broken(self) -> None:
        kind, target, _ = resolve_target("drafts/old.md", "a.md", self.KNOWN, exists=lambda p: True)
        assert (kind, target) == (EdgeKind.broken, "drafts/old.md")

    def test_strict_external(self) -> None:
        assert resolve_target("https://", "a.md", self.KNOWN)[0] == EdgeKind.external
        assert resolve_target("https://", "a.md", self.KNOWN, strict_external=True)[0] == EdgeKind.broken


class TestGraph:
    def test_edges_and_incoming_counts(self) -> None:
        graph = build_graph(
            [
                _links("b.md", "a.md", "b.md"),
                _links("README.md", "a.md", "b.md", "gone.md"),
                _links("a.md"),
            ]
        )
        assert list(graph.nodes) == ["README.md", "a.md", "b.md"]
        assert graph.nodes["a.md"].incoming == 2
        assert graph.nodes["b.md"].incoming == 1
        assert [e.raw for e in graph.edges_of(EdgeKind.broken)] == ["gone.md"]
        assert graph.edges[0].source == "README.md"

    def test_orphans_with_cycle(self) -> None:
        graph = build_graph(
            [
                _links("README.md", "a.md"),
                _links("a.md", "b.md"),
                _links("b.md", "a.md"),
                _links("c.md", "d.md"),
                _links("d.md", "c.md"),
            ]
        )
        assert graph.roots() == ["README.md"]
        assert graph.orphans() == ["c.md", "d.md"]
        assert graph.orphans(["c.md"]) == []

    def test_nested_readme_is_a_root(self) -> None:
        graph = build_graph([_links("README.md"), _links("guide/readme.md"), _links("x.md")])
        assert graph.roots() == ["README.md", "guide/readme.md"]
        assert graph.orphans() == ["x.md"]

    def test_no_roots_makes_every_document_an_orphan(self) -> None:
        graph = build_graph([_links("a.md", "b.md"), _links("b.md"), _links("lonely.md")])
        assert graph.roots() == []
        assert graph.orphans() == ["a.md", "b.md", "lonely.md"]

    def test_bidirectional_pairs(self) -> None:
        graph = build_graph([_links("a.md", "b.md"), _links("b.md", "a.md"), _links("c.md", "a.md")])
        assert graph.bidirectional_pairs() == [("a.md", "b.md")]
