"""Result aggregator -- collapse, sort and count issues."""

from __future__ import annotations

from collections import Counter

from storylint.engine.models import (
    AggregateResult,
    FailOn,
    Issue,
    IssueCounts,
    Severity,
)

_SEVERITY_ORDER = {Severity.error: 0, Severity.warning: 1, Severity.info: 2}


def sort_key(issue: Issue) -> tuple:
    """Severity first, then file, line, column, validator and code.

    Issues without a file sort ahead of file issues; the message breaks any
    remaining tie so the order never depends on arrival order.
    """
    return (
        _SEVERITY_ORDER[issue.severity],
        issue.file is not None,
        issue.file or "",
        issue.line or 0,
        issue.column or 0,
        issue.validator,
        issue.code,
        issue.message,
    )


class ResultAggregator:
    """Collects ``(validator_id, issue)`` pairs into an ``AggregateResult``."""

    def __init__(self) -> None:
        self._issues: list[Issue] = []
        self._seen: dict[str, set[tuple]] = {}

    def __len__(self) -> int:
        return len(self._issues)

    def add(self, validator_id: str, issue: Issue) -> bool:
        """Record an issue. Returns False if it duplicates one from the same validator."""
        seen = self._seen.setdefault(validator_id, set())
        key = issue.dedup_key()
        if key in seen:
            return False
        seen.add(key)
        self._issues.append(issue)
        return True

    def extend(self, validator_id: str, issues: list[Issue]) -> None:
        for issue in issues:
            self.add(validator_id, issue)

    def build(self, fail_on: FailOn = FailOn.error, cancelled: bool = False) -> AggregateResult:
        ordered = sorted(self._issues, key=sort_key)
        errors = [i for i in ordered if i.severity == Severity.error]
        warnings = [i for i in ordered if i.severity == Severity.warning]
        info = [i for i in ordered if i.severity == Severity.info]

        threshold = fail_on.threshold
        failing = threshold is not None and any(
            i.severity.at_least(threshold) for i in ordered
        )

        return AggregateResult(
            valid=not failing and not cancelled,
            errors=errors,
            warnings=warnings,
            info=info,
            counts=_count(ordered),
            cancelled=cancelled,
        )


def _count(issues: list[Issue]) -> IssueCounts:
    by_severity = {s.value: 0 for s in Severity}
    by_severity.update(Counter(i.severity.value for i in issues))
    by_validator = Counter(i.validator for i in issues)
    by_file = Counter(i.file or "" for i in issues)
    return IssueCounts(
        by_validator=dict(sorted(by_validator.items())),
        by_severity=by_severity,
        by_file=dict(sorted(by_file.items())),
    )
