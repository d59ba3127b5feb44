"""Whitespace rules: spaces around operators and inside parentheses."""

from __future__ import annotations

from c_conform.lexer import Token
from c_conform.parser import (
    ASSIGNMENT_OPERATORS,
    BASIC_TYPE_KEYWORDS,
    COMPARISON_OPERATORS,
    ParseResult,
    Span,
)
from c_conform.rules.base import BaseRule, Finding

# '*' is left out: pointer declarators make it ambiguous without type information.
BINARY_OPERATORS = (
    ASSIGNMENT_OPERATORS
    | COMPARISON_OPERATORS
    | frozenset({"&&", "||", "+", "-", "/", "%", "&", "|", "^", "<<", ">>"})
)
CONDITION_KEYWORDS = frozenset({"if", "while", "for", "switch"})
_UNARY_CAPABLE = frozenset({"+", "-", "&"})
_EMPTY_PAIRS = {"(": ")", "[": "]"}


class SpaceAroundOperatorsRule(BaseRule):
    """Binary and assignment operators have a space on both sides."""

    rule_id = "space-around-operators"

    def evaluate(self, result: ParseResult) -> list[Finding]:
        tokens = result.tokens
        findings: list[Finding] = []
        for index in range(1, len(tokens) - 1):
            tok = tokens[index]
            if tok.kind != "punctuator" or tok.text not in BINARY_OPERATORS:
                continue
            if not _is_binary(tokens, index):
                continue
            before = tokens[index - 1].end_offset < tok.offset
            after = tokens[index + 1].offset > tok.end_offset
            if before and after:
                continue
            findings.append(
                self._finding(
                    result,
                    Span.of(tok, tok),
                    f"operator '{tok.text}' must be surrounded by spaces",
                    suggestion=f"Write 'a {tok.text} b'.",
                )
            )
        return findings


class SpaceInsideParenthesesRule(BaseRule):
    """Control statement conditions are written as ``if( condition )``."""

    rule_id = "space-inside-parentheses"

    def evaluate(self, result: ParseResult) -> list[Finding]:
        tokens = result.tokens
        findings: list[Finding] = []
        for index, tok in enumerate(tokens[:-1]):
            if tok.kind != "keyword" or tok.text not in CONDITION_KEYWORDS:
                continue
            open_index = index + 1
            if not _punct(tokens[open_index], "("):
                continue
            close_index = _matching_paren(tokens, open_index)
            if close_index is None or close_index == open_index + 1:
                continue
            opener, closer = tokens[open_index], tokens[close_index]
            spaced_open = tokens[open_index + 1].offset > opener.end_offset
            spaced_close = closer.offset > tokens[close_index - 1].end_offset
            if spaced_open and spaced_close:
                continue
            findings.append(
                self._finding(
                    result,
                    Span.of(opener, closer),
                    f"'{tok.text}' condition needs a space inside its parentheses",
                    suggestion=f"Write '{tok.text}( condition )'.",
                )
            )
        return findings


class EmptyParenthesesRule(BaseRule):
    """Empty parentheses and brackets hold no spaces: ``()`` and ``[]``."""

    rule_id = "empty-parentheses"

    def evaluate(self, result: ParseResult) -> list[Finding]:
        tokens = result.tokens
        findings: list[Finding] = []
        for tok, following in zip(tokens, tokens[1:]):
            if tok.kind != "punctuator" or tok.text not in _EMPTY_PAIRS:
                continue
            pair = tok.text + _EMPTY_PAIRS[tok.text]
            if not _punct(following, _EMPTY_PAIRS[tok.text]):
                continue
            if following.offset == tok.end_offset:
                continue
            findings.append(
                self._finding(
                    result,
                    Span.of(tok, following),
                    f"empty '{pair}' must not contain spaces",
                    suggestion=f"Write '{pair}'.",
                )
            )
        return findings


def _is_binary(tokens: tuple[Token, ...], index: int) -> bool:
    previous = tokens[index - 1]
    if previous.kind in ("identifier", "literal"):
        return True
    if previous.kind != "punctuator" or previous.text not in (")", "]"):
        return False
    if previous.text == ")" and tokens[index].text in _UNARY_CAPABLE:
        return not _closes_cast(tokens, index - 1)
    return True


def _closes_cast(tokens: tuple[Token, ...], close_index: int) -> bool:
    depth = 0
    for position in range(close_index, -1, -1):
        tok = tokens[position]
        if _punct(tok, ")"):
            depth += 1
        elif _punct(tok, "("):
            depth -= 1
            if depth == 0:
                if position > 0 and _calls_or_measures(tokens[position - 1]):
                    return False
                return _is_type_name(tokens[position + 1 : close_index])
    return False


def _calls_or_measures(tok: Token) -> bool:
    return tok.kind == "identifier" or _punct(tok, ")") or (
        tok.kind == "keyword" and tok.text == "sizeof"
    )


def _is_type_name(inner: tuple[Token, ...]) -> bool:
    if not inner:
        return False
    for tok in inner:
        if tok.kind not in ("identifier", "keyword") and not _punct(tok, "*"):
            return False
    return any(
        (tok.kind == "keyword" and tok.text in BASIC_TYPE_KEYWORDS)
        or (tok.kind == "identifier" and tok.text.endswith("_t"))
        for tok in inner
    )


def _matching_paren(tokens: tuple[Token, ...], open_index: int) -> int | None:
    depth = 0
    for position in range(open_index, len(tokens)):
        tok = tokens[position]
        if _punct(tok, "("):
            depth += 1
        elif _punct(tok, ")"):
            depth -= 1
            if depth == 0:
                return position
        elif _punct(tok, "{") or _punct(tok, "}"):
            return None
    return None


def _punct(tok: Token, text: str) -> bool:
    return tok.kind == "punctuator" and tok.text == text
