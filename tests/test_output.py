"""Output rendering tests."""

from __future__ import annotations

import json

import click

from c_conform import __version__
from c_conform.engine import RunResult
from c_conform.output import render_human, render_json
from c_conform.rules.base import Finding, Severity


def test_render_human_groups_findings_by_file_with_summary() -> None:
    result = RunResult(
        findings=[
            _finding("src/a.c", 3, 5, "error", "constant X must appear on the left of comparison"),
            _finding("src/a.c", 9, 1, "warning", "goto should not be used", suggestion=None),
            _finding("src/b.c", 1, 1, "info", "@brief should come before @param"),
        ],
        files_analyzed=2,
    )

    output = click.unstyle(render_human(result))
    lines = output.splitlines()
    assert lines[0] == "src/a.c"
    assert "  3:5  error   constant X must appear on the left of comparison  [rule]" in lines
    assert "      fix: Do this." in lines
    assert "src/b.c" in lines
    assert lines[-1] == "3 finding(s) in 2 file(s): 1 error(s), 1 warning(s), 1 info"


def test_render_human_notes_cancelled_runs() -> None:
    output = click.unstyle(render_human(RunResult(files_analyzed=1, cancelled=True)))
    assert output.splitlines() == [
        "0 finding(s) in 1 file(s): 0 error(s), 0 warning(s), 0 info",
        "Run cancelled before all files were analyzed.",
    ]


def test_render_json_has_stable_schema_keys() -> None:
    result = RunResult(
        findings=[_finding("src/a.c", 3, 5, "error", "m", end=(3, 9))],
        files_analyzed=1,
    )

    payload = json.loads(render_json(result, paths=["src/a.c"]))
    assert set(payload.keys()) == {"findings", "summary", "meta"}
    assert set(payload["meta"].keys()) == {"generated_at", "paths", "version"}
    assert payload["meta"]["paths"] == ["src/a.c"]
    assert payload["meta"]["version"] == __version__
    assert payload["meta"]["generated_at"].endswith("Z")
    assert payload["summary"] == {
        "total": 1,
        "error": 1,
        "warning": 0,
        "info": 0,
        "files_analyzed": 1,
        "cancelled": False,
    }
    assert payload["findings"] == [
        {
            "rule_id": "rule",
            "severity": "error",
            "file_path": "src/a.c",
            "line": 3,
            "column": 5,
            "message": "m",
            "suggested_fix": "Do this.",
            "end_line": 3,
            "end_column": 9,
        }
    ]


def _finding(
    path: str,
    line: int,
    column: int,
    severity: Severity,
    message: str,
    *,
    suggestion: str | None = "Do this.",
    end: tuple[int, int] | None = None,
) -> Finding:
    return Finding(
        rule_id="rule",
        severity=severity,
        path=path,
        line=line,
        column=column,
        message=message,
        suggestion=suggestion,
        end_line=end[0] if end else None,
        end_column=end[1] if end else None,
    )
