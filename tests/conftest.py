"""Shared test fixtures and configuration."""

import sys
from pathlib import Path
from typing import Any, Awaitable, Callable

# Add story_linter/ to Python path so `from storylint.xxx` imports work
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "story_linter"))

import pytest

from storylint.config.discovery import discover_files
from storylint.config.models import LinterConfig
from storylint.engine.models import AggregateResult
from storylint.engine.orchestrator import Orchestrator
from storylint.engine.processor import FileProcessor, ParsedFile
from storylint.validators import BUILTIN_VALIDATORS


@pytest.fixture
def write_files(tmp_path: Path) -> Callable[[dict[str, Any]], Path]:
    """Write ``{relative path: text or bytes}`` under tmp_path and return the root."""

    def _write(files: dict[str, Any]) -> Path:
        for relative, content in files.items():
            path = tmp_path / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(content, bytes):
                path.write_bytes(content)
            else:
                path.write_text(content, encoding="utf-8")
        return tmp_path

    return _write


@pytest.fixture
def parse(tmp_path: Path) -> Callable[..., ParsedFile]:
    """Parse one Markdown document written to tmp_path."""

    def _parse(content: str, name: str = "doc.md") -> ParsedFile:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return FileProcessor(tmp_path).load(path)

    return _parse


@pytest.fixture
def lint(write_files) -> Callable[..., Awaitable[AggregateResult]]:
    """Write a project and run the built-in validators over it."""

    async def _lint(
        files: dict[str, Any],
        config: dict[str, Any] | None = None,
        validators: list | None = None,
    ) -> AggregateResult:
        root = write_files(files)
        cfg = LinterConfig.model_validate({**(config or {}), "project": {"root": str(root)}})
        orchestrator = Orchestrator(cfg)
        orchestrator.register_all(BUILTIN_VALIDATORS if validators is None else validators)
        paths = discover_files(root, cfg.project.include, cfg.project.exclude)
        return await orchestrator.run(paths)

    return _lint
