"""Tests for the issue model and severity policy."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from storylint.engine.models import (
    AggregateResult,
    FailOn,
    Issue,
    Severity,
    effective_exit_code,
    engine_issue,
)


def _issue(**overrides) -> Issue:
    fields = {
        "code": "LINK001",
        "severity": Severity.error,
        "message": "Broken link to 'b.md'",
        "validator": "link-graph",
        "file": "a.md",
        "line": 1,
        "column": 1,
    }
    fields.update(overrides)
    return Issue(**fields)


class TestSeverity:
    def test_total_order(self) -> None:
        assert Severity.info.rank < Severity.warning.rank < Severity.error.rank

    def test_at_least(self) -> None:
        assert Severity.error.at_least(Severity.warning)
        assert Severity.warning.at_least(Severity.warning)
        assert not Severity.info.at_least(Severity.warning)

    def test_fail_on_threshold(self) -> None:
        assert FailOn.error.threshold == Severity.error
        assert FailOn.warning.threshold == Severity.warning
        assert FailOn.none.threshold is None


class TestIssue:
    def test_location_rendering(self) -> None:
        assert _issue().location == "a.md:1:1"
        assert _issue(column=None).location == "a.md:1"
        assert _issue(line=None, column=None).location == "a.md"
        assert _issue(file=None).location == ""

    def test_issue_is_immutable(self) -> None:
        issue = _issue()
        with pytest.raises(ValidationError):
            issue.message = "changed"

    def test_camel_case_serialization(self) -> None:
        data = _issue(end_line=1, end_column=10).model_dump(by_alias=True)
        assert data["endLine"] == 1
        assert data["endColumn"] == 10
        assert data["relatedLocations"] == ()

    def test_dedup_key_ignores_suggestion(self) -> None:
        assert _issue().dedup_key() == _issue(suggestion="Did you mean: a.md?").dedup_key()

    def test_engine_issue_uses_kind_as_code(self) -> None:
        issue = engine_issue("encoding-error", "bad bytes", file="x.md", line=3)
        assert issue.code == "encoding-error"
        assert issue.validator == "engine"
        assert issue.severity == Severity.error


class TestExitCode:
    def test_valid_result_exits_zero(self) -> None:
        assert effective_exit_code(AggregateResult(valid=True)) == 0

    def test_invalid_result_exits_one(self) -> None:
        assert effective_exit_code(AggregateResult(valid=False, errors=[_issue()])) == 1

    def test_cancelled_result_exits_130(self) -> None:
        assert effective_exit_code(AggregateResult(valid=False, cancelled=True)) == 130
