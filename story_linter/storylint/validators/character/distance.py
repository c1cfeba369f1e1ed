"""Edit distance for spotting misspelled names."""

from __future__ import annotations


def damerau_levenshtein(a: str, b: str) -> int:
    """Optimal string alignment distance: insert, delete, substitute, transpose."""
    if a == b:
        return 0
    if not a:
        return len(b)
    if not b:
        return len(a)

    prev_prev: list[int] = []
    prev = list(range(len(b) + 1))
    for i in range(1, len(a) + 1):
        current = [i] + [0] * len(b)
        for j in range(1, len(b) + 1):
            cost = 0 if a[i - 1] == b[j - 1] else 1
            current[j] = min(
                prev[j] + 1,
                current[j - 1] + 1,
                prev[j - 1] + cost,
            )
            if i > 1 and j > 1 and a[i - 1] == b[j - 2] and a[i - 2] == b[j - 1]:
                current[j] = min(current[j], prev_prev[j - 2] + 1)
        prev_prev, prev = prev, current
    return prev[len(b)]


def within_distance(a: str, b: str, limit: int) -> bool:
    """Case-insensitive ``0 < distance <= limit``."""
    a, b = a.casefold(), b.casefold()
    if a == b or abs(len(a) - len(b)) > limit:
        return False
    return damerau_levenshtein(a, b) <= limit
