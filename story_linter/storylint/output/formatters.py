"""Renderers for an AggregateResult: text, JSON and HTML."""

from __future__ import annotations

import html
import json
import os
from datetime import datetime, timezone
from typing import Callable

import typer

from storylint import __version__
from storylint.config.models import OutputFormat
from storylint.engine.models import AggregateResult, Issue, ResultMeta, Severity

Formatter = Callable[[AggregateResult, bool], str]

_SYMBOLS = {Severity.error: "✗", Severity.warning: "⚠", Severity.info: "ℹ"}
_COLORS = {
    Severity.error: typer.colors.RED,
    Severity.warning: typer.colors.YELLOW,
    Severity.info: typer.colors.BLUE,
}


def build_meta(now: datetime | None = None) -> ResultMeta:
    """Version plus a generation timestamp, pinned by SOURCE_DATE_EPOCH when set."""
    epoch = os.environ.get("SOURCE_DATE_EPOCH", "").strip()
    if epoch.isdigit():
        now = datetime.fromtimestamp(int(epoch), tz=timezone.utc)
    elif now is None:
        now = datetime.now(timezone.utc)
    return ResultMeta(version=__version__, generated_at=now.isoformat().replace("+00:00", "Z"))


def _plural(count: int, word: str) -> str:
    return f"{count} {word}" if count == 1 else f"{count} {word}s"


def _style(text: str, color: bool, **kwargs) -> str:
    return typer.style(text, **kwargs) if color else text


def _text_issue(issue: Issue, color: bool) -> list[str]:
    head = f"{_SYMBOLS[issue.severity]} [{issue.code}]"
    location = issue.location or f"({issue.validator})"
    lines = [f"{_style(head, color, fg=_COLORS[issue.severity], bold=True)} {location}"]
    lines.append(f"  {issue.message}")
    if issue.suggestion:
        lines.append(_style(f"  → {issue.suggestion}", color, dim=True))
    for related in issue.related_locations:
        where = ":".join(str(p) for p in (related.file, related.line, related.column) if p is not None)
        note = f" ({related.message})" if related.message else ""
        lines.append(_style(f"  see {where}{note}", color, dim=True))
    return lines


def format_text(result: AggregateResult, color: bool = True) -> str:
    lines: list[str] = []
    for issue in result.issues:
        lines.extend(_text_issue(issue, color))
        lines.append("")

    if result.total == 0 and not result.cancelled:
        lines.append(_style("✓ No issues found", color, fg=typer.colors.GREEN, bold=True))
    summary = (
        f"Summary: {_plural(len(result.errors), 'error')}, "
        f"{_plural(len(result.warnings), 'warning')}, {len(result.info)} info"
    )
    if result.cancelled:
        summary += " (cancelled)"
    lines.append(_style(summary, color, bold=True))
    return "\n".join(lines)


def format_json(result: AggregateResult, color: bool = False) -> str:
    payload = result.model_dump(mode="json", by_alias=True)
    return json.dumps(payload, indent=2, ensure_ascii=False)


def format_html(result: AggregateResult, color: bool = False) -> str:
    version = result.meta.version if result.meta else __version__
    rows = []
    for issue in result.issues:
        suggestion = html.escape(issue.suggestion) if issue.suggestion else ""
        rows.append(
            f'<tr class="{issue.severity.value}">'
            f"<td>{html.escape(issue.severity.value)}</td>"
            f"<td>{html.escape(issue.code)}</td>"
            f"<td>{html.escape(issue.location)}</td>"
            f"<td>{html.escape(issue.message)}</td>"
            f"<td>{suggestion}</td>"
            "</tr>"
        )
    body = "\n".join(rows) if rows else '<tr><td colspan="5">No issues found</td></tr>'
    status = "valid" if result.valid else "invalid"
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<title>Story Linter Report</title>
<style>
body {{ font-family: sans-serif; margin: 2em; }}
table {{ border-collapse: collapse; width: 100%; }}
td, th {{ border: 1px solid #ddd; padding: 4px 8px; text-align: left; }}
tr.error td:first-child {{ color: #c0392b; }}
tr.warning td:first-child {{ color: #b7950b; }}
tr.info td:first-child {{ color: #2471a3; }}
</style>
</head>
<body>
<h1>Story Linter Report</h1>
<p class="{status}">{len(result.errors)} errors, {len(result.warnings)} warnings, {len(result.info)} info</p>
<table>
<thead><tr><th>Severity</th><th>Code</th><th>Location</th><th>Message</th><th>Suggestion</th></tr></thead>
<tbody>
{body}
</tbody>
</table>
<footer>Story Linter v{html.escape(version)}</footer>
</body>
</html>
"""


_FORMATTERS: dict[OutputFormat, Formatter] = {
    OutputFormat.text: format_text,
    OutputFormat.json: format_json,
    OutputFormat.html: format_html,
}


def get_formatter(output_format: OutputFormat | str) -> Formatter:
    return _FORMATTERS[OutputFormat(output_format)]
