"""Output rendering."""

from __future__ import annotations

import json
from collections import Counter
from datetime import UTC, datetime
from typing import Any

import click

from c_conform import __version__
from c_conform.engine import RunResult

SEVERITY_COLORS = {"error": "red", "warning": "yellow", "info": "cyan"}


def render_human(result: RunResult) -> str:
    """Render findings grouped by file with a colorized summary line."""
    lines: list[str] = []
    current_path: str | None = None
    for finding in result.findings:
        if finding.path != current_path:
            current_path = finding.path
            lines.append(click.style(current_path, bold=True))
        severity = click.style(
            finding.severity.ljust(7), fg=SEVERITY_COLORS.get(finding.severity, "white")
        )
        lines.append(
            f"  {finding.line}:{finding.column}  {severity} {finding.message}  [{finding.rule_id}]"
        )
        if finding.suggestion:
            lines.append(f"      fix: {finding.suggestion}")

    summary = _summary(result)
    headline = (
        f"{summary['total']} finding(s) in {summary['files_analyzed']} file(s): "
        f"{summary['error']} error(s), {summary['warning']} warning(s), {summary['info']} info"
    )
    color = "red" if summary["error"] else ("yellow" if summary["warning"] else "green")
    if lines:
        lines.append("")
    lines.append(click.style(headline, fg=color, bold=True))
    if result.cancelled:
        lines.append(click.style("Run cancelled before all files were analyzed.", fg="yellow"))
    return "\n".join(lines)


def render_json(result: RunResult, *, paths: list[str]) -> str:
    """Render stable JSON output for CI and automation."""
    return json.dumps(build_json_payload(result, paths=paths), sort_keys=True)


def build_json_payload(result: RunResult, *, paths: list[str]) -> dict[str, Any]:
    """Build stable JSON payload for CI and automation."""
    meta: dict[str, Any] = {
        "generated_at": datetime.now(tz=UTC)
        .replace(microsecond=0)
        .isoformat()
        .replace("+00:00", "Z"),
        "paths": list(paths),
        "version": __version__,
    }
    return {
        "findings": [item.to_dict() for item in result.findings],
        "summary": _summary(result),
        "meta": meta,
    }


def _summary(result: RunResult) -> dict[str, Any]:
    counts = Counter(finding.severity for finding in result.findings)
    return {
        "total": len(result.findings),
        "error": counts.get("error", 0),
        "warning": counts.get("warning", 0),
        "info": counts.get("info", 0),
        "files_analyzed": result.files_analyzed,
        "cancelled": result.cancelled,
    }
