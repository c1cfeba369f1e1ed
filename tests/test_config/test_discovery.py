"""Tests for file discovery."""

from pathlib import Path

import pytest

from storylint.config.discovery import discover_files, is_excluded, resolve_targets
from storylint.config.models import DEFAULT_EXCLUDE, DEFAULT_INCLUDE
from storylint.engine.errors import ConfigError


@pytest.fixture
def project(write_files) -> Path:
    return write_files(
        {
            "README.md": "x",
            "ch2.md": "x",
            "part/ch1.md": "x",
            "part/notes.txt": "x",
            "node_modules/pkg/README.md": "x",
            "drafts/old.md": "x",
        }
    )


def _relative(paths: list[Path], root: Path) -> list[str]:
    return [p.relative_to(root.resolve()).as_posix() for p in paths]


class TestIsExcluded:
    def test_patterns(self) -> None:
        assert is_excluded("node_modules/pkg/a.md", DEFAULT_EXCLUDE)
        assert is_excluded("vendor/node_modules/a.md", DEFAULT_EXCLUDE)
        assert is_excluded("drafts/old.md", ["drafts/*"])
        assert not is_excluded("chapters/one.md", DEFAULT_EXCLUDE)


class TestDiscoverFiles:
    def test_default_globs(self, project: Path) -> None:
        found = discover_files(project, DEFAULT_INCLUDE, DEFAULT_EXCLUDE)
        assert _relative(found, project) == ["README.md", "ch2.md", "drafts/old.md", "part/ch1.md"]

    def test_custom_exclude(self, project: Path) -> None:
        found = discover_files(project, DEFAULT_INCLUDE, [*DEFAULT_EXCLUDE, "drafts/**"])
        assert "drafts/old.md" not in _relative(found, project)

    def test_paths_are_absolute(self, project: Path) -> None:
        assert all(p.is_absolute() for p in discover_files(project, DEFAULT_INCLUDE, []))


class TestResolveTargets:
    def test_no_targets_discovers(self, project: Path) -> None:
        found = resolve_targets([], project, DEFAULT_INCLUDE, DEFAULT_EXCLUDE)
        assert len(found) == 4

    def test_files_and_directories(self, project: Path) -> None:
        found = resolve_targets(
            [project / "part", project / "ch2.md", project / "ch2.md"],
            project,
            DEFAULT_INCLUDE,
            DEFAULT_EXCLUDE,
        )
        assert _relative(found, project) == ["ch2.md", "part/ch1.md"]

    def test_missing_target(self, project: Path) -> None:
        with pytest.raises(ConfigError, match="File not found"):
            resolve_targets([project / "ghost.md"], project, DEFAULT_INCLUDE, DEFAULT_EXCLUDE)
