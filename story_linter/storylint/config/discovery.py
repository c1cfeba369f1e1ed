"""File discovery -- glob expansion over the project root."""

from __future__ import annotations

import logging
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Sequence

from storylint.engine.errors import ConfigError

logger = logging.getLogger(__name__)


def is_excluded(relative: str, patterns: Sequence[str]) -> bool:
    """Match a root-relative POSIX path against exclude globs.

    ``dir/**`` patterns also exclude a directory of that name at any depth.
    """
    for pattern in patterns:
        if fnmatchcase(relative, pattern):
            return True
        if pattern.endswith("/**") and f"/{pattern[:-3]}/" in f"/{relative}":
            return True
    return False


def discover_files(root: Path, include: Sequence[str], exclude: Sequence[str]) -> list[Path]:
    """Absolute, deduplicated, sorted paths under ``root`` matching ``include``."""
    root = root.resolve()
    found: set[Path] = set()
    for pattern in include:
        for path in root.glob(pattern):
            if not path.is_file():
                continue
            if is_excluded(path.relative_to(root).as_posix(), exclude):
                continue
            found.add(path.resolve())
    logger.debug("Discovered %d files under %s", len(found), root)
    return sorted(found)


def resolve_targets(
    targets: Sequence[Path],
    root: Path,
    include: Sequence[str],
    exclude: Sequence[str],
) -> list[Path]:
    """Expand explicit command-line targets; fall back to discovery when none given."""
    if not targets:
        return discover_files(root, include, exclude)

    found: set[Path] = set()
    for target in targets:
        path = target.resolve()
        if path.is_dir():
            found.update(discover_files(path, include, exclude))
        elif path.is_file():
            found.add(path)
        else:
            raise ConfigError(f"File not found: {target}")
    return sorted(found)
