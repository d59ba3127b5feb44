"""Prohibited and discouraged code patterns."""

from __future__ import annotations

import re

from c_conform.lexer import Token
from c_conform.parser import ParseResult, Span
from c_conform.rules.base import BaseRule, Finding

ALLOCATION_FUNCTIONS = frozenset({"malloc", "calloc", "realloc", "free"})

_INTEGER_RE = re.compile(r"^(0[xX][0-9A-Fa-f]+|0[bB][01]+|0[0-7]*|[1-9][0-9]*)[uUlL]*$")
_FLOAT_RE = re.compile(r"^([0-9]*\.?[0-9]+(?:[eE][+-]?[0-9]+)?|[0-9]+\.)[fFlL]?$")
_UNARY_CONTEXT = frozenset(
    {"(", "[", "{", ",", "=", "?", ":", "return", "case", "==", "!=", "<", ">", "<=", ">="}
)


class MagicNumberRule(BaseRule):
    """Numeric literals outside #define and enum bodies must be in the allowed set."""

    rule_id = "magic-number"

    def evaluate(self, result: ParseResult) -> list[Finding]:
        allowed = set(self._config.allowed_magic_numbers)
        tokens = result.tokens
        findings: list[Finding] = []
        for index, tok in enumerate(tokens):
            if not tok.is_number or result.in_constant_region(tok.offset):
                continue
            value = _numeric_value(tok.text)
            first = tok
            if index > 0 and _is_unary_minus(tokens, index - 1):
                first = tokens[index - 1]
                value = -value if value is not None else None
            if value is not None and value in allowed:
                continue
            spelled = result.source.text[first.offset : tok.end_offset]
            findings.append(
                self._finding(
                    result,
                    Span.of(first, tok),
                    f"magic number {spelled} must be replaced by a #define constant",
                    suggestion=f"#define A_DESCRIPTIVE_NAME ({spelled})",
                )
            )
        return findings


class NoGotoRule(BaseRule):
    """goto is discouraged and needs a documented justification."""

    rule_id = "no-goto"
    strictness = "should"

    def evaluate(self, result: ParseResult) -> list[Finding]:
        return [
            self._finding(
                result,
                Span.of(tok, tok),
                "goto should not be used",
                suggestion="Restructure with loops, flags or a single cleanup path.",
            )
            for tok in result.tokens
            if tok.kind == "keyword" and tok.text == "goto"
        ]


class SingleReturnRule(BaseRule):
    """Functions have a single exit point."""

    rule_id = "single-return"

    def evaluate(self, result: ParseResult) -> list[Finding]:
        findings: list[Finding] = []
        for decl in result.functions:
            if decl.body_range is None:
                continue
            low, high = decl.body_range
            returns = [
                tok
                for tok in result.tokens[low : high + 1]
                if tok.kind == "keyword" and tok.text == "return"
            ]
            if len(returns) < 2:
                continue
            extra = returns[1]
            findings.append(
                self._finding(
                    result,
                    Span.of(extra, extra),
                    f"function '{decl.name}' has {len(returns)} return statements",
                    suggestion="Store the result in a local and return it once at the end.",
                )
            )
        return findings


class DynamicAllocationRule(BaseRule):
    """Heap allocation is discouraged in embedded code."""

    rule_id = "dynamic-allocation"
    strictness = "should"

    def evaluate(self, result: ParseResult) -> list[Finding]:
        tokens = result.tokens
        findings: list[Finding] = []
        for index, tok in enumerate(tokens):
            if tok.kind != "identifier" or tok.text not in ALLOCATION_FUNCTIONS:
                continue
            if index + 1 >= len(tokens) or tokens[index + 1].text != "(":
                continue
            findings.append(
                self._finding(
                    result,
                    Span.of(tok, tok),
                    f"dynamic memory function '{tok.text}' should be avoided",
                    suggestion="Use statically allocated buffers or a fixed-size pool.",
                )
            )
        return findings


class SideEffectInCallRule(BaseRule):
    """Call arguments must not increment or decrement."""

    rule_id = "side-effect-in-call"
    strictness = "must_not"

    def evaluate(self, result: ParseResult) -> list[Finding]:
        tokens = result.tokens
        findings: list[Finding] = []
        reported: set[int] = set()
        for index, tok in enumerate(tokens):
            if tok.kind != "identifier" or index + 1 >= len(tokens):
                continue
            if tokens[index + 1].kind != "punctuator" or tokens[index + 1].text != "(":
                continue
            for inner in _argument_tokens(tokens, index + 1):
                if inner.text not in ("++", "--") or inner.offset in reported:
                    continue
                reported.add(inner.offset)
                findings.append(
                    self._finding(
                        result,
                        Span.of(inner, inner),
                        f"'{inner.text}' inside the arguments of '{tok.text}'",
                        suggestion="Update the variable in a separate statement.",
                    )
                )
        return findings


class NoGlobalVariablesRule(BaseRule):
    """Modules keep no mutable file-scope variables; state is injected through a context.

    Read-only data (``const`` objects that are not pointers) is allowed.
    """

    rule_id = "no-global-variables"

    def evaluate(self, result: ParseResult) -> list[Finding]:
        findings: list[Finding] = []
        for decl in result.declarations:
            if decl.kind != "variable" or decl.scope != "file":
                continue
            if decl.is_const and not decl.is_pointer:
                continue
            findings.append(
                self._finding(
                    result,
                    decl.span,
                    f"file-scope variable '{decl.name}' is mutable global state",
                    suggestion="Pass it in through a module context instead.",
                )
            )
        return findings


def _argument_tokens(tokens: tuple[Token, ...], open_index: int) -> list[Token]:
    depth = 0
    inner: list[Token] = []
    for index in range(open_index, len(tokens)):
        tok = tokens[index]
        if tok.kind == "punctuator":
            if tok.text == "(":
                depth += 1
            elif tok.text == ")":
                depth -= 1
                if depth == 0:
                    break
            elif tok.text in (";", "{", "}"):
                break
        if index != open_index:
            inner.append(tok)
    return inner


def _is_unary_minus(tokens: tuple[Token, ...], index: int) -> bool:
    tok = tokens[index]
    if tok.kind != "punctuator" or tok.text != "-":
        return False
    if index == 0:
        return True
    before = tokens[index - 1]
    if before.kind == "keyword":
        return before.text in _UNARY_CONTEXT
    return before.kind == "punctuator" and (
        before.text in _UNARY_CONTEXT or before.text in ("&&", "||", "+", "-", "*", "/")
    )


def _numeric_value(text: str) -> int | float | None:
    if _INTEGER_RE.match(text):
        digits = text.rstrip("uUlL")
        if digits[:2] in ("0x", "0X"):
            return int(digits, 16)
        if digits[:2] in ("0b", "0B"):
            return int(digits[2:], 2)
        if len(digits) > 1 and digits.startswith("0"):
            return int(digits, 8)
        return int(digits)
    if _FLOAT_RE.match(text):
        return float(text.rstrip("fFlL"))
    return None
