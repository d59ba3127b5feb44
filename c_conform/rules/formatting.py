"""Layout rules: indentation, braces and statements per line."""

from __future__ import annotations

from dataclasses import dataclass

from c_conform.lexer import Token
from c_conform.parser import Declaration, ParseResult
from c_conform.rules.base import BaseRule, Finding

BRACED_KINDS = ("if", "else-if", "else", "for", "while", "do", "switch")
_LABEL_KEYWORDS = ("case", "default")


@dataclass(slots=True)
class _Frame:
    content_indent: int
    is_switch: bool = False
    label_indent: int | None = None


class IndentationRule(BaseRule):
    """Each statement line is indented one step deeper than its enclosing block."""

    rule_id = "indentation"

    def evaluate(self, result: ParseResult) -> list[Finding]:
        width = self._config.indent_width
        switch_bodies = {
            block.body.start
            for block in result.control_blocks
            if block.kind == "switch" and block.has_braces and block.body is not None
        }
        findings: list[Finding] = []
        stack: list[_Frame] = [_Frame(content_indent=0)]
        paren_depth = 0
        previous: Token | None = None
        label_line: int | None = None
        # expected indent of each checked line; blocks nest from it
        baselines: dict[int, int] = {}

        tokens = result.tokens
        for index, tok in enumerate(tokens):
            starts_line = previous is None or previous.end_line < tok.line
            if starts_line and paren_depth == 0 and _checkable(previous, tok, label_line):
                raw = _leading_whitespace(result.source.line_text(tok.line))
                if "\t" not in raw:
                    following = tokens[index + 1] if index + 1 < len(tokens) else None
                    allowed = _allowed_indents(tok, following, stack, width)
                    actual = len(raw)
                    baselines[tok.line] = actual
                    if actual not in allowed:
                        expected = min(allowed, key=lambda item: abs(item - actual))
                        baselines[tok.line] = expected
                        findings.append(
                            self._finding_at(
                                result,
                                tok.line,
                                tok.column,
                                f"line is indented {actual} space(s), expected {expected}",
                                suggestion=f"Indent with {expected} spaces.",
                            )
                        )
                    is_label = tok.kind == "keyword" and tok.text in _LABEL_KEYWORDS
                    if is_label and stack[-1].is_switch:
                        stack[-1].label_indent = actual

            if tok.kind == "keyword" and tok.text in _LABEL_KEYWORDS:
                label_line = tok.line
            if tok.kind == "punctuator":
                if tok.text in ("(", "["):
                    paren_depth += 1
                elif tok.text in (")", "]"):
                    paren_depth = max(0, paren_depth - 1)
                elif tok.text == "{":
                    line_indent = baselines.get(
                        tok.line, len(_leading_whitespace(result.source.line_text(tok.line)))
                    )
                    stack.append(
                        _Frame(
                            content_indent=line_indent + width,
                            is_switch=tok.offset in switch_bodies,
                        )
                    )
                elif tok.text == "}" and len(stack) > 1:
                    stack.pop()
            previous = tok
        return findings


class TabIndentationRule(BaseRule):
    """Indentation uses spaces only."""

    rule_id = "tab-indentation"

    def evaluate(self, result: ParseResult) -> list[Finding]:
        findings: list[Finding] = []
        for number, line in enumerate(result.source.lines, start=1):
            raw = _leading_whitespace(line)
            if "\t" not in raw:
                continue
            if " " in raw:
                message = "indentation mixes tabs and spaces"
            else:
                message = "tab character used for indentation"
            findings.append(
                self._finding_at(
                    result,
                    number,
                    raw.index("\t") + 1,
                    message,
                    suggestion=f"Indent with {self._config.indent_width}-space steps.",
                )
            )
        return findings


class BracesRequiredRule(BaseRule):
    """if, else, for, while, do and switch bodies are always enclosed in braces."""

    rule_id = "braces-required"

    def evaluate(self, result: ParseResult) -> list[Finding]:
        findings: list[Finding] = []
        for block in result.control_blocks:
            if block.kind not in BRACED_KINDS or block.has_braces:
                continue
            keyword = "else if" if block.kind == "else-if" else block.kind
            findings.append(
                self._finding(
                    result,
                    block.keyword_span,
                    f"'{keyword}' body must be enclosed in braces",
                    suggestion="Wrap the body in '{' and '}' on their own lines.",
                )
            )
        return findings


class OneStatementPerLineRule(BaseRule):
    """At most one statement terminator per source line."""

    rule_id = "one-statement-per-line"

    def evaluate(self, result: ParseResult) -> list[Finding]:
        findings: list[Finding] = []
        depth = 0
        seen_lines: set[int] = set()
        reported: set[int] = set()
        for tok in result.tokens:
            if tok.kind != "punctuator":
                continue
            if tok.text == "(":
                depth += 1
            elif tok.text == ")":
                depth = max(0, depth - 1)
            elif tok.text == ";" and depth == 0:
                if tok.line in seen_lines and tok.line not in reported:
                    reported.add(tok.line)
                    findings.append(
                        self._finding_at(
                            result,
                            tok.line,
                            tok.column,
                            "only one statement is allowed per line",
                            suggestion="Move each statement onto its own line.",
                        )
                    )
                seen_lines.add(tok.line)
        return findings


class OneDeclarationPerLineRule(BaseRule):
    """Each declaration statement declares a single variable or field."""

    rule_id = "one-declaration-per-line"

    def evaluate(self, result: ParseResult) -> list[Finding]:
        groups: dict[int, list[Declaration]] = {}
        for decl in result.declarations:
            if decl.kind not in ("variable", "field") or decl.container == "enum":
                continue
            groups.setdefault(decl.group, []).append(decl)

        findings: list[Finding] = []
        for members in groups.values():
            if len(members) < 2:
                continue
            names = ", ".join(decl.name for decl in members)
            findings.append(
                self._finding(
                    result,
                    members[1].span,
                    f"declare one variable per line ({names})",
                    suggestion="Split the declaration into one statement per variable.",
                )
            )
        return findings


class LineLengthRule(BaseRule):
    """Lines stay within the configured maximum length."""

    rule_id = "line-length"
    strictness = "should"

    def evaluate(self, result: ParseResult) -> list[Finding]:
        limit = self._config.max_line_length
        findings: list[Finding] = []
        for number, line in enumerate(result.source.lines, start=1):
            if len(line) <= limit:
                continue
            findings.append(
                self._finding_at(
                    result,
                    number,
                    limit + 1,
                    f"line is {len(line)} characters long, maximum is {limit}",
                    suggestion="Wrap the line.",
                )
            )
        return findings


def _checkable(previous: Token | None, tok: Token, label_line: int | None) -> bool:
    if previous is None:
        return True
    if tok.kind == "punctuator" and tok.text == "{":
        # a brace on its own line after a control or function header
        if previous.kind == "keyword" and previous.text in ("else", "do"):
            return True
        if previous.kind == "punctuator" and previous.text == ")":
            return True
    if previous.kind != "punctuator":
        return False
    if previous.text in (";", "{", "}"):
        return True
    return previous.text == ":" and previous.line == label_line


def _allowed_indents(
    tok: Token, following: Token | None, stack: list[_Frame], width: int
) -> set[int]:
    frame = stack[-1]
    outdented = max(0, frame.content_indent - width)
    if tok.kind == "punctuator" and tok.text == "}":
        return {outdented}
    if frame.is_switch:
        if tok.kind == "keyword" and tok.text in _LABEL_KEYWORDS:
            # labels may align with the switch keyword
            return {frame.content_indent, outdented}
        if frame.label_indent is not None:
            return {frame.label_indent + width}
        return {frame.content_indent}
    if tok.kind == "identifier" and following is not None and following.text == ":":
        return {0, frame.content_indent, outdented}
    return {frame.content_indent}


def _leading_whitespace(line: str) -> str:
    return line[: len(line) - len(line.lstrip(" \t"))]
