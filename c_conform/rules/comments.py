"""Function documentation coverage rules."""

from __future__ import annotations

from c_conform.parser import CommentBlock, Declaration, ParseResult
from c_conform.rules.base import BaseRule, Finding

RETURN_TAGS = ("return", "returns", "retval")


class FunctionDocRule(BaseRule):
    """Functions carry a comment with @brief and an @param for each named parameter.

    When a file holds both a prototype and the definition, documenting either
    one satisfies the rule.
    """

    rule_id = "function-doc"

    def evaluate(self, result: ParseResult) -> list[Finding]:
        findings: list[Finding] = []
        documented = {
            decl.name for decl in result.functions if decl.comment and decl.comment.has_tag("brief")
        }
        for decl in result.functions:
            comment = decl.comment
            if comment is None:
                if decl.name not in documented:
                    findings.append(
                        self._finding(
                            result,
                            decl.span,
                            f"function '{decl.name}' has no documentation comment",
                            suggestion="Add a /** @brief ... */ block above the function.",
                        )
                    )
                continue
            if not comment.has_tag("brief"):
                findings.append(
                    self._finding(
                        result,
                        comment.span,
                        f"documentation of '{decl.name}' is missing @brief",
                    )
                )
            findings.extend(self._param_findings(result, decl, comment))
        return findings

    def _param_findings(
        self, result: ParseResult, decl: Declaration, comment: CommentBlock
    ) -> list[Finding]:
        documented = set(comment.param_names)
        findings: list[Finding] = []
        for param in decl.parameters:
            if param.name and param.name not in documented:
                findings.append(
                    self._finding(
                        result,
                        param.span,
                        f"parameter '{param.name}' of '{decl.name}' is not documented with @param",
                        suggestion=f"Add '@param {param.name} <description>'.",
                    )
                )
        known = {param.name for param in decl.parameters}
        for name in comment.param_names:
            if name not in known:
                findings.append(
                    self._finding(
                        result,
                        comment.span,
                        f"@param '{name}' does not match any parameter of '{decl.name}'",
                    )
                )
        return findings


class FunctionReturnDocRule(BaseRule):
    """Documented functions that return a value describe it with @return."""

    rule_id = "function-return-doc"

    def evaluate(self, result: ParseResult) -> list[Finding]:
        findings: list[Finding] = []
        for decl in result.functions:
            if decl.comment is None or _returns_void(decl):
                continue
            if decl.comment.has_tag(*RETURN_TAGS):
                continue
            findings.append(
                self._finding(
                    result,
                    decl.comment.span,
                    f"documentation of '{decl.name}' is missing @return",
                    suggestion="Describe the returned value with '@return'.",
                )
            )
        return findings


def _returns_void(decl: Declaration) -> bool:
    words = decl.type_text.split()
    return "void" in words and "*" not in decl.type_text
