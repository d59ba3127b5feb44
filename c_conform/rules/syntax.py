"""Structural recovery diagnostics reported as findings."""

from __future__ import annotations

from c_conform.parser import ParseResult
from c_conform.rules.base import BaseRule, Finding


class UnterminatedBlockRule(BaseRule):
    """Reports unterminated comments, unclosed braces or parentheses and stray braces."""

    rule_id = "unterminated-block"
    strictness = "must"

    def evaluate(self, result: ParseResult) -> list[Finding]:
        if not result.diagnostics:
            return []
        first = min(result.diagnostics, key=lambda item: (item.span.start, item.message))
        message = first.message
        remaining = len(result.diagnostics) - 1
        if remaining:
            message = f"{message} ({remaining} more structural problem(s) in file)"
        return [
            self._finding(
                result,
                first.span,
                message,
                suggestion="Close the block or comment so the rest of the file parses as intended.",
            )
        ]
