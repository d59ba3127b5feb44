"""Switch statement rules."""

from __future__ import annotations

from c_conform.parser import ParseResult
from c_conform.rules.base import BaseRule, Finding


class SwitchDefaultRule(BaseRule):
    """Every switch statement has a default case."""

    rule_id = "switch-default"

    def evaluate(self, result: ParseResult) -> list[Finding]:
        findings: list[Finding] = []
        for block in result.control_blocks:
            if block.kind != "switch" or block.has_default:
                continue
            findings.append(
                self._finding(
                    result,
                    block.keyword_span,
                    "switch statement has no default case",
                    suggestion="Add a 'default:' case that handles unexpected values.",
                )
            )
        return findings


class SwitchBreakRule(BaseRule):
    """Each non-empty case ends with break or carries a fallthrough comment.

    ``return``, ``goto`` and ``continue`` also leave the case and are accepted
    in place of ``break``.
    """

    rule_id = "switch-break"

    def evaluate(self, result: ParseResult) -> list[Finding]:
        findings: list[Finding] = []
        for block in result.control_blocks:
            if block.kind != "switch":
                continue
            for clause in block.cases:
                if clause.terminated:
                    continue
                findings.append(
                    self._finding(
                        result,
                        clause.span,
                        f"'{clause.label}' does not end with break or a fallthrough comment",
                        suggestion="End the case with 'break;' or a /* fall through */ comment.",
                    )
                )
        return findings
