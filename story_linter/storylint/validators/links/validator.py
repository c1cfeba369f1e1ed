"""Link graph validator."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from storylint.engine.contract import Validator, ValidatorContext
from storylint.engine.models import Issue
from storylint.engine.processor import ParsedFile
from storylint.validators.links.extraction import FileLinks, extract_links
from storylint.validators.links.graph import LinkGraph, build_graph
from storylint.validators.links.rules import (
    VALIDATOR_ID,
    check_bidirectional,
    check_file,
    check_orphans,
)


class LinkOptions(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    entry_points: list[str] = Field(default_factory=list)
    check_orphans: bool = True
    skip_external: bool = True
    title_similarity: float = Field(default=0.6, ge=0.0, le=1.0)
    report_bidirectional: bool = False


class LinkValidator(Validator):
    """Broken links, orphaned documents, stale link text and missing anchors."""

    id = VALIDATOR_ID
    version = "0.1.0"
    config_section = "linkValidator"

    def __init__(self) -> None:
        self.options = LinkOptions()

    def initialize(self, context: ValidatorContext) -> None:
        self.options = self.load_options(LinkOptions, context)

    def extract(self, parsed: ParsedFile, context: ValidatorContext) -> FileLinks:
        return extract_links(parsed)

    def merge_global_state(
        self, partials: list[FileLinks], context: ValidatorContext
    ) -> LinkGraph:
        root = context.project_root
        graph = build_graph(
            partials,
            exists=lambda relative: (root / relative).is_file(),
            strict_external=not self.options.skip_external,
        )
        context.log.debug("Built link graph with %d documents", len(graph.nodes))
        return graph

    def validate(self, parsed: ParsedFile, context: ValidatorContext) -> list[Issue]:
        graph = context.global_state.get(self.id)
        if graph is None:
            return []
        return check_file(graph, parsed.relative_path, self.options.title_similarity)

    def project_validate(
        self, files: list[ParsedFile], context: ValidatorContext
    ) -> list[Issue]:
        graph = context.global_state.get(self.id)
        if graph is None:
            return []
        issues: list[Issue] = []
        if self.options.check_orphans:
            if not graph.roots(self.options.entry_points):
                context.log.info(
                    "No README or entry point in the file set; every document is an orphan"
                )
            issues.extend(check_orphans(graph, self.options.entry_points))
        if self.options.report_bidirectional:
            issues.extend(check_bidirectional(graph))
        return issues
