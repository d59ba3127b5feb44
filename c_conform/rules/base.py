"""Base rule protocol and finding model."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal, Protocol

from c_conform.config import RuleConfig
from c_conform.parser import ParseResult, Span

Severity = Literal["error", "warning", "info"]
Strictness = Literal["must", "must_not", "should", "may"]

SEVERITY_BY_STRICTNESS: dict[str, Severity] = {
    "must": "error",
    "must_not": "error",
    "should": "warning",
    "may": "info",
}
SEVERITY_RANK: dict[str, int] = {"info": 0, "warning": 1, "error": 2}


@dataclass(frozen=True, slots=True)
class Finding:
    """A single conformance violation emitted by a rule."""

    rule_id: str
    severity: Severity
    path: str
    line: int
    column: int
    message: str
    suggestion: str | None = None
    end_line: int | None = None
    end_column: int | None = None

    @property
    def sort_key(self) -> tuple[str, int, int, str]:
        return (self.path, self.line, self.column, self.rule_id)

    def to_dict(self) -> dict[str, Any]:
        return {
            "rule_id": self.rule_id,
            "severity": self.severity,
            "file_path": self.path,
            "line": self.line,
            "column": self.column,
            "message": self.message,
            "suggested_fix": self.suggestion,
            "end_line": self.end_line,
            "end_column": self.end_column,
        }


class Rule(Protocol):
    """Protocol for independent checks over one parsed file."""

    rule_id: str
    strictness: Strictness

    def evaluate(self, result: ParseResult) -> list[Finding]:
        """Evaluate a parse result and return findings."""


class BaseRule:
    """Shared construction and finding helpers for built-in rules."""

    rule_id = ""
    strictness: Strictness = "must"

    def __init__(self, config: RuleConfig | None = None) -> None:
        self._config = config or RuleConfig()

    @property
    def severity(self) -> Severity:
        return SEVERITY_BY_STRICTNESS[self.strictness]

    def evaluate(self, result: ParseResult) -> list[Finding]:
        raise NotImplementedError

    def _finding(
        self,
        result: ParseResult,
        span: Span,
        message: str,
        suggestion: str | None = None,
    ) -> Finding:
        return Finding(
            rule_id=self.rule_id,
            severity=self.severity,
            path=result.path,
            line=span.line,
            column=span.column,
            message=message,
            suggestion=suggestion,
            end_line=span.end_line,
            end_column=span.end_column,
        )

    def _finding_at(
        self,
        result: ParseResult,
        line: int,
        column: int,
        message: str,
        suggestion: str | None = None,
    ) -> Finding:
        return Finding(
            rule_id=self.rule_id,
            severity=self.severity,
            path=result.path,
            line=line,
            column=column,
            message=message,
            suggestion=suggestion,
        )
