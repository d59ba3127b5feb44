"""Constant-on-the-left comparison rule."""

from __future__ import annotations

from c_conform.parser import ComparisonExpr, ParseResult
from c_conform.rules.base import BaseRule, Finding

MIRRORED_OPERATORS = {
    "==": "==",
    "!=": "!=",
    "<": ">",
    ">": "<",
    "<=": ">=",
    ">=": "<=",
}


class ComparisonOrderRule(BaseRule):
    """A defined constant compared with a variable must be the left operand.

    Only named constants (macros, enumerators, UPPER_SNAKE names) take part.
    Bare numbers such as ``x == 0`` belong to ``magic-number``.
    """

    rule_id = "comparison-order"

    def evaluate(self, result: ParseResult) -> list[Finding]:
        findings: list[Finding] = []
        for block in result.control_blocks:
            for comparison in block.comparisons:
                if not _constant_on_right(comparison):
                    continue
                constant = comparison.right.text
                findings.append(
                    self._finding(
                        result,
                        comparison.span,
                        f"constant {constant} must appear on the left of comparison",
                        suggestion=_swapped(comparison),
                    )
                )
        return findings


def _constant_on_right(comparison: ComparisonExpr) -> bool:
    return comparison.left.kind == "variable" and comparison.right.kind == "constant"


def _swapped(comparison: ComparisonExpr) -> str:
    operator = MIRRORED_OPERATORS[comparison.operator]
    return f"{comparison.right.text} {operator} {comparison.left.text}"
