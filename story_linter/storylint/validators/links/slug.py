"""GitHub-style heading anchors."""

from __future__ import annotations

import re

_STRIP = re.compile(r"[^\w\- ]", re.UNICODE)


def github_slug(text: str) -> str:
    """Lowercase, drop punctuation, turn spaces into hyphens.

    >>> github_slug("Chapter 1: The Beginning!")
    'chapter-1-the-beginning'
    """
    return _STRIP.sub("", text.strip().lower()).replace(" ", "-")


class Slugger:
    """Issues unique slugs for one document: ``intro``, ``intro-1``, ``intro-2``."""

    def __init__(self) -> None:
        self._seen: dict[str, int] = {}

    def slug(self, text: str) -> str:
        base = github_slug(text)
        count = self._seen.get(base, 0)
        self._seen[base] = count + 1
        slug = base if count == 0 else f"{base}-{count}"
        if slug != base:
            self._seen.setdefault(slug, 1)
        return slug
