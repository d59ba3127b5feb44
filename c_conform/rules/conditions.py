"""Rules over the condition expressions of control statements."""

from __future__ import annotations

from c_conform.lexer import Token
from c_conform.naming import classify_name
from c_conform.parser import (
    ASSIGNMENT_OPERATORS,
    COMPARISON_OPERATORS,
    ControlBlock,
    ParseResult,
    Span,
)
from c_conform.rules.base import BaseRule, Finding

TESTED_KINDS = ("if", "else-if", "while", "do")
_LOGICAL_OPERATORS = ("&&", "||")


class ExplicitBooleanTestRule(BaseRule):
    """Conditions compare explicitly, e.g. ``TRUE == isReady`` rather than ``isReady``.

    Also reports double negatives such as ``!notDone == TRUE``. A condition
    made of a single constant (``while (1)``) is accepted.
    """

    rule_id = "explicit-boolean-test"

    def evaluate(self, result: ParseResult) -> list[Finding]:
        findings: list[Finding] = []
        for block in result.control_blocks:
            if block.kind not in TESTED_KINDS or block.condition_range is None:
                continue
            tokens = _condition_tokens(result, block)
            if len(tokens) == 1 and _is_constant_token(tokens[0]):
                continue
            for term in _terms(tokens):
                if any(_is_punct(tok, *COMPARISON_OPERATORS) for tok in term):
                    continue
                text = result.source.text[term[0].offset : term[-1].end_offset]
                findings.append(
                    self._finding(
                        result,
                        Span.of(term[0], term[-1]),
                        f"condition '{text}' must be an explicit comparison",
                        suggestion="Compare against a constant, e.g. 'TRUE == flag'.",
                    )
                )
            for comparison in block.comparisons:
                for operand in (comparison.left, comparison.right):
                    if operand.text.startswith("!"):
                        findings.append(
                            self._finding(
                                result,
                                comparison.span,
                                f"negated operand '{operand.text}' in comparison",
                                suggestion="Compare the value directly instead of negating it.",
                            )
                        )
        return findings


class AssignmentInConditionRule(BaseRule):
    """Conditions must not assign, increment or decrement."""

    rule_id = "assignment-in-condition"
    strictness = "must_not"

    def evaluate(self, result: ParseResult) -> list[Finding]:
        findings: list[Finding] = []
        for block in result.control_blocks:
            if block.condition_range is None:
                continue
            for tok in _condition_tokens(result, block):
                if _is_punct(tok, *ASSIGNMENT_OPERATORS, "++", "--"):
                    findings.append(
                        self._finding(
                            result,
                            Span.of(tok, tok),
                            f"'{tok.text}' used inside a {block.kind} condition",
                            suggestion="Perform the update in its own statement before the test.",
                        )
                    )
        return findings


def _condition_tokens(result: ParseResult, block: ControlBlock) -> tuple[Token, ...]:
    if block.condition_range is None:
        return ()
    low, high = block.condition_range
    return result.tokens[low : high + 1]


def _terms(tokens: tuple[Token, ...]) -> list[list[Token]]:
    """Split a condition on ``&&``/``||`` and drop the grouping parentheses around each term."""
    terms: list[list[Token]] = [[]]
    for tok in tokens:
        if _is_punct(tok, *_LOGICAL_OPERATORS):
            terms.append([])
        else:
            terms[-1].append(tok)
    stripped = (_strip_parens(term) for term in terms)
    return [term for term in stripped if term]


def _strip_parens(term: list[Token]) -> list[Token]:
    while term and _is_punct(term[0], "(") and _balance(term) > 0:
        term = term[1:]
    while term and _is_punct(term[-1], ")") and _balance(term) < 0:
        term = term[:-1]
    while len(term) > 2 and _is_punct(term[0], "(") and _is_punct(term[-1], ")"):
        if _balance(term[1:-1]) != 0 or not _wraps(term):
            break
        term = term[1:-1]
    return term


def _wraps(term: list[Token]) -> bool:
    depth = 0
    for index, tok in enumerate(term):
        if _is_punct(tok, "("):
            depth += 1
        elif _is_punct(tok, ")"):
            depth -= 1
            if depth == 0 and index != len(term) - 1:
                return False
    return True


def _balance(term: list[Token]) -> int:
    depth = 0
    for tok in term:
        if _is_punct(tok, "("):
            depth += 1
        elif _is_punct(tok, ")"):
            depth -= 1
    return depth


def _is_constant_token(tok: Token) -> bool:
    if tok.kind == "literal":
        return True
    return tok.kind == "identifier" and classify_name(tok.text) == "UPPER_SNAKE"


def _is_punct(tok: Token, *texts: str) -> bool:
    return tok.kind == "punctuator" and tok.text in texts
