"""Shallow structural parser for lexed C sources.

The parser is keyed on brace and parenthesis balance rather than a full C
grammar. It recovers from unbalanced input by closing open blocks at end of
file and recording a diagnostic, so rules can still run on whatever was parsed.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from typing import Literal

from c_conform.lexer import TRIVIA_KINDS, SourceFile, Token
from c_conform.naming import NamingStyle, classify_name

DeclarationKind = Literal["variable", "macro", "typedef", "function", "field"]
DeclarationScope = Literal["file", "local", "member"]
ControlKind = Literal["if", "else-if", "else", "switch", "case", "default", "for", "while", "do"]
OperandKind = Literal["literal", "constant", "variable", "other"]

COMPARISON_OPERATORS = frozenset({"==", "!=", "<", ">", "<=", ">="})
ASSIGNMENT_OPERATORS = frozenset(
    {"=", "+=", "-=", "*=", "/=", "%=", "&=", "|=", "^=", "<<=", ">>="}
)
JUMP_KEYWORDS = frozenset({"break", "return", "goto", "continue"})
STORAGE_KEYWORDS = frozenset(
    {"typedef", "extern", "static", "auto", "register", "inline", "_Thread_local", "_Noreturn"}
)
QUALIFIER_KEYWORDS = frozenset({"const", "volatile", "restrict", "_Atomic"})
BASIC_TYPE_KEYWORDS = frozenset(
    {
        "void",
        "char",
        "short",
        "int",
        "long",
        "float",
        "double",
        "signed",
        "unsigned",
        "_Bool",
        "_Complex",
    }
)
TAG_KEYWORDS = frozenset({"struct", "union", "enum"})
KNOWN_CONSTANTS = frozenset({"NULL", "TRUE", "FALSE", "true", "false"})
FALLTHROUGH_RE = re.compile(r"fall(?:s|ing)?[\s-]*thr(?:ough|u)", re.IGNORECASE)

_OPERAND_BOUNDARIES = (
    frozenset({"&&", "||", ",", "?", ":", ";", "{", "}"})
    | ASSIGNMENT_OPERATORS
    | COMPARISON_OPERATORS
)
_ATTRIBUTE_NAMES = frozenset({"__attribute__", "__declspec"})
_TAG_RE = re.compile(r"[@\\]([a-z]+)\b")
_PARAM_TAG_RE = re.compile(r"[@\\]param(?:\s*\[[^\]]*\])?\s+(\w+)")
_DOXYGEN_PREFIXES = ("/**", "/*!", "///", "//!")


@dataclass(frozen=True, slots=True)
class Span:
    """Source range; ``start``/``end`` are character offsets, ``end`` exclusive."""

    line: int
    column: int
    end_line: int
    end_column: int
    start: int
    end: int

    @classmethod
    def of(cls, first: Token, last: Token) -> Span:
        return cls(
            line=first.line,
            column=first.column,
            end_line=last.end_line,
            end_column=last.end_column,
            start=first.offset,
            end=last.end_offset,
        )


@dataclass(frozen=True, slots=True)
class CommentBlock:
    """A comment, or a run of adjacent ``//`` comments, with its Doxygen tags."""

    text: str
    span: Span
    tags: tuple[str, ...]
    param_names: tuple[str, ...]
    is_doxygen: bool
    is_trailing: bool = False
    terminated: bool = True
    attached_to: str | None = None

    def has_tag(self, *names: str) -> bool:
        return any(name in self.tags for name in names)

    @property
    def is_dangling(self) -> bool:
        return self.attached_to is None

    @property
    def has_diagram(self) -> bool:
        return "```" in self.text


@dataclass(frozen=True, slots=True)
class Parameter:
    """A function parameter; ``name`` is empty for unnamed prototype parameters."""

    name: str
    type_text: str
    naming: NamingStyle
    span: Span


@dataclass(frozen=True, slots=True)
class Declaration:
    """A named declaration found at file, block or member scope."""

    kind: DeclarationKind
    name: str
    naming: NamingStyle
    span: Span
    scope: DeclarationScope
    type_text: str = ""
    comment: CommentBlock | None = None
    parameters: tuple[Parameter, ...] = ()
    storage: tuple[str, ...] = ()
    container: str | None = None
    is_definition: bool = False
    is_const: bool = False
    is_pointer: bool = False
    is_array: bool = False
    is_function_like: bool = False
    has_initializer: bool = False
    body: Span | None = None
    body_range: tuple[int, int] | None = None
    group: int = 0


@dataclass(frozen=True, slots=True)
class Operand:
    text: str
    kind: OperandKind
    span: Span


@dataclass(frozen=True, slots=True)
class ComparisonExpr:
    left: Operand
    operator: str
    right: Operand
    span: Span


@dataclass(frozen=True, slots=True)
class CaseClause:
    """One ``case``/``default`` label of a switch and the statements after it."""

    kind: Literal["case", "default"]
    label: str
    span: Span
    is_empty: bool
    ends_with_jump: bool
    has_fallthrough_comment: bool

    @property
    def terminated(self) -> bool:
        return self.is_empty or self.ends_with_jump or self.has_fallthrough_comment


@dataclass(frozen=True, slots=True)
class ControlBlock:
    """A control statement. ``condition_range`` indexes ``ParseResult.tokens``."""

    kind: ControlKind
    span: Span
    keyword_span: Span
    has_braces: bool
    condition: Span | None = None
    condition_text: str = ""
    condition_range: tuple[int, int] | None = None
    comparisons: tuple[ComparisonExpr, ...] = ()
    body: Span | None = None
    cases: tuple[CaseClause, ...] = ()

    @property
    def is_loop(self) -> bool:
        return self.kind in ("for", "while", "do")

    @property
    def has_default(self) -> bool:
        return any(clause.kind == "default" for clause in self.cases)


@dataclass(frozen=True, slots=True)
class Directive:
    """A preprocessor line such as ``#define`` or ``#include``."""

    name: str
    span: Span


@dataclass(frozen=True, slots=True)
class ParseDiagnostic:
    """A recoverable structural problem, e.g. an unclosed block."""

    message: str
    span: Span


@dataclass(frozen=True, slots=True)
class ParseResult:
    """Immutable structural model of one source file.

    ``tokens`` holds the code tokens only: no trivia, no comments and no
    preprocessor lines. Index-based ranges in the model refer to it.
    """

    source: SourceFile
    tokens: tuple[Token, ...]
    declarations: tuple[Declaration, ...] = ()
    control_blocks: tuple[ControlBlock, ...] = ()
    comments: tuple[CommentBlock, ...] = ()
    directives: tuple[Directive, ...] = ()
    diagnostics: tuple[ParseDiagnostic, ...] = ()
    constant_regions: tuple[tuple[int, int], ...] = ()

    @property
    def path(self) -> str:
        return self.source.path

    @property
    def functions(self) -> list[Declaration]:
        return [decl for decl in self.declarations if decl.kind == "function"]

    @property
    def dangling_comments(self) -> list[CommentBlock]:
        return [comment for comment in self.comments if comment.is_dangling]

    def in_constant_region(self, offset: int) -> bool:
        return any(start <= offset < end for start, end in self.constant_regions)


def parse_source(source: SourceFile) -> ParseResult:
    """Build the structural model for a lexed file."""
    return _Parser(source).run()


@dataclass(slots=True)
class _Stmt:
    first: int
    last: int
    jump: str | None = None


@dataclass(slots=True)
class _Declarator:
    first: int
    last: int
    name_index: int
    stars: int = 0
    is_function: bool = False
    params: tuple[Parameter, ...] = ()
    params_close: int | None = None
    is_array: bool = False
    has_initializer: bool = False


@dataclass(slots=True)
class _Prefix:
    type_end: int
    storage: set[str] = field(default_factory=set)
    qualifiers: set[str] = field(default_factory=set)
    tag_body: tuple[str, int, int] | None = None


@dataclass(slots=True)
class _CaseDraft:
    kind: Literal["case", "default"]
    first: int
    last: int
    statements: list[_Stmt] = field(default_factory=list)


class _Parser:
    def __init__(self, source: SourceFile) -> None:
        self.source = source
        significant = [
            tok for tok in source.tokens if tok.kind not in TRIVIA_KINDS and tok.kind != "comment"
        ]
        self._raw_directives, code = _split_directives(significant)
        self.tokens = code
        self.comments, self._leading = _collect_comments(source.tokens)
        self.pos = 0
        self._decls: list[tuple[Declaration, int | None]] = []
        self._blocks: list[ControlBlock] = []
        self._directives: list[Directive] = []
        self._diagnostics: list[ParseDiagnostic] = []
        self._unclosed: list[Token] = []
        self._regions: list[tuple[int, int]] = []
        self._constant_names: set[str] = set(KNOWN_CONSTANTS)
        self._group = 0

    def run(self) -> ParseResult:
        for directive_tokens in self._raw_directives:
            self._record_directive(directive_tokens)

        while self.pos < len(self.tokens):
            tok = self.tokens[self.pos]
            if _is(tok, "}"):
                self._diagnostics.append(
                    ParseDiagnostic(
                        message=f"closing brace at line {tok.line} has no matching opening brace",
                        span=Span.of(tok, tok),
                    )
                )
                self.pos += 1
                continue
            self._parse_statement("file")
        return self._finish()

    # -- statements -----------------------------------------------------------------

    def _parse_statement(self, scope: DeclarationScope) -> _Stmt:
        start = self.pos
        tok = self.tokens[start]
        if _is(tok, "{"):
            return self._parse_block(start)
        if _is(tok, ";"):
            self.pos = start + 1
            return _Stmt(start, start)
        if tok.kind == "keyword":
            word = tok.text
            if word == "if":
                return self._parse_if("if", start, start)
            if word == "else":
                self.pos = start + 1
                body, braced = self._parse_body()
                last = body.last if body else start
                self._add_block("else", start, start, last, braced, None, body)
                return _Stmt(start, last)
            if word == "switch":
                return self._parse_switch(start)
            if word in ("for", "while"):
                return self._parse_loop(word, start)
            if word == "do":
                return self._parse_do(start)
            if word in ("case", "default"):
                end = self._label_end(start)
                self.pos = end + 1
                return _Stmt(start, end)
            if word in JUMP_KEYWORDS:
                end, _ = self._statement_end(start)
                end = max(end, start)
                self.pos = end + 1
                return _Stmt(start, end, jump=word)
        if scope != "file" and tok.kind == "identifier" and self._punct_at(start + 1, ":"):
            self.pos = start + 2
            return _Stmt(start, start + 1)
        return self._parse_simple(start, scope)

    def _parse_block(self, open_index: int) -> _Stmt:
        self.pos = open_index + 1
        last: _Stmt | None = None
        while True:
            if self.pos >= len(self.tokens):
                self._unclosed.append(self.tokens[open_index])
                return _Stmt(open_index, len(self.tokens) - 1, last.jump if last else None)
            if _is(self.tokens[self.pos], "}"):
                self.pos += 1
                return _Stmt(open_index, self.pos - 1, last.jump if last else None)
            last = self._parse_statement("local")

    def _parse_body(self) -> tuple[_Stmt | None, bool]:
        if self.pos >= len(self.tokens):
            return (None, False)
        tok = self.tokens[self.pos]
        if _is(tok, "{"):
            return (self._parse_block(self.pos), True)
        if _is(tok, "}"):
            return (None, False)
        return (self._parse_statement("local"), False)

    def _parse_simple(self, start: int, scope: DeclarationScope) -> _Stmt:
        end, stop = self._statement_end(start)
        end = max(end, start)
        if stop == "{" and scope == "file":
            definition = self._function_definition(start, end + 1)
            if definition is not None:
                return definition
        self.pos = end + 1
        decl_last = end - 1 if stop == ";" else end
        self._declarations_from(start, decl_last, scope)
        return _Stmt(start, end)

    def _statement_end(self, start: int) -> tuple[int, str]:
        paren = bracket = brace = 0
        seen_assign = False
        for index in range(start, len(self.tokens)):
            tok = self.tokens[index]
            if tok.kind != "punctuator":
                continue
            text = tok.text
            if text == "(":
                paren += 1
            elif text == ")":
                paren = max(0, paren - 1)
            elif text == "[":
                bracket += 1
            elif text == "]":
                bracket = max(0, bracket - 1)
            elif text == "{":
                top_level = paren == 0 and bracket == 0 and brace == 0
                if top_level and not seen_assign and not self._opens_aggregate(index, start):
                    return (index - 1, "{")
                brace += 1
            elif text == "}":
                if brace == 0:
                    return (index - 1, "}")
                brace -= 1
            elif text == ";" and paren == 0 and bracket == 0 and brace == 0:
                return (index, ";")
            elif text == "=" and paren == 0 and bracket == 0 and brace == 0:
                seen_assign = True
        return (len(self.tokens) - 1, "eof")

    def _opens_aggregate(self, index: int, start: int) -> bool:
        if index - 1 < start:
            return False
        prev = self.tokens[index - 1]
        if prev.kind == "keyword" and prev.text in TAG_KEYWORDS:
            return True
        if prev.kind == "identifier" and index - 2 >= start:
            before = self.tokens[index - 2]
            return before.kind == "keyword" and before.text in TAG_KEYWORDS
        return False

    # -- control statements ---------------------------------------------------------

    def _parse_if(self, kind: ControlKind, first: int, keyword: int) -> _Stmt:
        parens = self._parse_condition(keyword)
        body, braced = self._parse_body()
        last = body.last if body else (parens[1] if parens else keyword)
        self._add_block(kind, first, keyword, last, braced, _inner(parens), body)

        jump: str | None = None
        if self.pos < len(self.tokens) and _kw(self.tokens[self.pos], "else"):
            else_index = self.pos
            if else_index + 1 < len(self.tokens) and _kw(self.tokens[else_index + 1], "if"):
                tail = self._parse_if("else-if", else_index, else_index + 1)
                last = tail.last
                tail_jump = tail.jump
            else:
                self.pos = else_index + 1
                else_body, else_braced = self._parse_body()
                else_last = else_body.last if else_body else else_index
                self._add_block(
                    "else", else_index, else_index, else_last, else_braced, None, else_body
                )
                last = else_last
                tail_jump = else_body.jump if else_body else None
            if body is not None and body.jump and tail_jump:
                jump = body.jump
        return _Stmt(first, last, jump)

    def _parse_switch(self, start: int) -> _Stmt:
        parens = self._parse_condition(start)
        cases: list[CaseClause] = []
        if self.pos < len(self.tokens) and _is(self.tokens[self.pos], "{"):
            body, cases = self._parse_switch_body(self.pos)
            braced = True
        else:
            body, braced = self._parse_body()
        last = body.last if body else (parens[1] if parens else start)
        self._add_block("switch", start, start, last, braced, _inner(parens), body, tuple(cases))
        return _Stmt(start, last)

    def _parse_switch_body(self, open_index: int) -> tuple[_Stmt, list[CaseClause]]:
        self.pos = open_index + 1
        clauses: list[CaseClause] = []
        current: _CaseDraft | None = None
        while True:
            if self.pos >= len(self.tokens):
                self._unclosed.append(self.tokens[open_index])
                close_index = len(self.tokens) - 1
                boundary: int | None = None
                break
            tok = self.tokens[self.pos]
            if _is(tok, "}"):
                close_index = self.pos
                boundary = tok.offset
                self.pos += 1
                break
            if tok.kind == "keyword" and tok.text in ("case", "default"):
                if current is not None:
                    clauses.append(self._close_case(current, tok.offset))
                label_end = self._label_end(self.pos)
                current = _CaseDraft(
                    kind="case" if tok.text == "case" else "default",
                    first=self.pos,
                    last=label_end,
                )
                self.pos = label_end + 1
                continue
            stmt = self._parse_statement("local")
            if current is not None:
                current.statements.append(stmt)
        if current is not None:
            clauses.append(self._close_case(current, boundary))
        last_jump = clauses[-1].ends_with_jump if clauses else False
        return (_Stmt(open_index, close_index, "break" if last_jump else None), clauses)

    def _close_case(self, draft: _CaseDraft, boundary: int | None) -> CaseClause:
        label_first = self.tokens[draft.first]
        label_last = self.tokens[draft.last]
        last_stmt = draft.statements[-1] if draft.statements else None
        ends_with_jump = last_stmt is not None and last_stmt.jump is not None
        commented = False
        if last_stmt is not None and not ends_with_jump:
            after = self.tokens[last_stmt.last].end_offset
            before = boundary if boundary is not None else len(self.source.text)
            commented = any(
                after <= comment.span.start < before and FALLTHROUGH_RE.search(comment.text)
                for comment in self.comments
            )
        clause = CaseClause(
            kind=draft.kind,
            label=self.source.text[label_first.offset : label_last.end_offset],
            span=Span.of(label_first, label_last),
            is_empty=last_stmt is None,
            ends_with_jump=ends_with_jump,
            has_fallthrough_comment=commented,
        )
        first_stmt = draft.statements[0] if draft.statements else None
        self._blocks.append(
            ControlBlock(
                kind=draft.kind,
                span=Span.of(label_first, self.tokens[last_stmt.last] if last_stmt else label_last),
                keyword_span=Span.of(label_first, label_first),
                has_braces=first_stmt is not None and _is(self.tokens[first_stmt.first], "{"),
                body=(
                    Span.of(self.tokens[first_stmt.first], self.tokens[last_stmt.last])
                    if first_stmt is not None and last_stmt is not None
                    else None
                ),
            )
        )
        return clause

    def _label_end(self, index: int) -> int:
        depth = 0
        pending_ternary = 0
        for position in range(index + 1, len(self.tokens)):
            tok = self.tokens[position]
            if tok.kind != "punctuator":
                continue
            if tok.text in ("(", "["):
                depth += 1
            elif tok.text in (")", "]"):
                depth -= 1
            elif tok.text == "?":
                pending_ternary += 1
            elif tok.text == ":" and depth <= 0:
                if pending_ternary == 0:
                    return position
                pending_ternary -= 1
            elif tok.text in (";", "{", "}"):
                return max(index, position - 1)
        return len(self.tokens) - 1

    def _parse_loop(self, word: ControlKind, start: int) -> _Stmt:
        parens = self._parse_condition(start, allow_semicolons=word == "for")
        condition = _inner(parens)
        if word == "for" and parens is not None:
            separators = self._for_separators(parens)
            condition = self._for_condition(parens, separators)
            if separators:
                self._declarations_from(parens[0] + 1, separators[0] - 1, "local")
        body, braced = self._parse_body()
        last = body.last if body else (parens[1] if parens else start)
        self._add_block(word, start, start, last, braced, condition, body)
        return _Stmt(start, last)

    def _parse_do(self, start: int) -> _Stmt:
        self.pos = start + 1
        body, braced = self._parse_body()
        last = body.last if body else start
        condition: tuple[int, int] | None = None
        if self.pos < len(self.tokens) and _kw(self.tokens[self.pos], "while"):
            while_index = self.pos
            parens = self._parse_condition(while_index)
            condition = _inner(parens)
            last = parens[1] if parens else while_index
            if self.pos < len(self.tokens) and _is(self.tokens[self.pos], ";"):
                last = self.pos
                self.pos += 1
        self._add_block("do", start, start, last, braced, condition, body)
        return _Stmt(start, last)

    def _parse_condition(
        self, keyword: int, *, allow_semicolons: bool = False
    ) -> tuple[int, int] | None:
        open_index = keyword + 1
        if self._punct_at(open_index, "("):
            close = self._match_paren(open_index, allow_semicolons=allow_semicolons)
            self.pos = close + 1
            return (open_index, close)
        self.pos = open_index
        return None

    def _match_paren(self, open_index: int, *, allow_semicolons: bool = False) -> int:
        depth = 0
        braces = 0
        stop = len(self.tokens)
        for index in range(open_index, len(self.tokens)):
            tok = self.tokens[index]
            if tok.kind != "punctuator":
                continue
            if tok.text in ("(", "["):
                depth += 1
            elif tok.text in (")", "]"):
                depth -= 1
                if depth == 0:
                    return index
            elif tok.text == "{":
                braces += 1
            elif tok.text == "}":
                if braces == 0:
                    stop = index
                    break
                braces -= 1
            elif tok.text == ";" and braces == 0 and not allow_semicolons:
                stop = index
                break
        opener = self.tokens[open_index]
        self._diagnostics.append(
            ParseDiagnostic(
                message=f"parenthesis opened at line {opener.line} is not closed",
                span=Span.of(opener, opener),
            )
        )
        return stop - 1

    def _for_separators(self, parens: tuple[int, int]) -> list[int]:
        open_index, close = parens
        separators: list[int] = []
        depth = 0
        for index in range(open_index + 1, close):
            tok = self.tokens[index]
            if tok.kind != "punctuator":
                continue
            if tok.text in ("(", "["):
                depth += 1
            elif tok.text in (")", "]"):
                depth -= 1
            elif tok.text == ";" and depth == 0:
                separators.append(index)
        return separators

    def _for_condition(
        self, parens: tuple[int, int], separators: list[int]
    ) -> tuple[int, int] | None:
        if len(separators) < 2:
            return _inner(parens)
        first, second = separators[0] + 1, separators[1] - 1
        return (first, second) if first <= second else None

    def _add_block(
        self,
        kind: ControlKind,
        first: int,
        keyword: int,
        last: int,
        braced: bool,
        condition: tuple[int, int] | None,
        body: _Stmt | None,
        cases: tuple[CaseClause, ...] = (),
    ) -> None:
        first_tok = self.tokens[first]
        condition_span = (
            Span.of(self.tokens[condition[0]], self.tokens[condition[1]]) if condition else None
        )
        self._blocks.append(
            ControlBlock(
                kind=kind,
                span=Span.of(first_tok, self.tokens[max(last, first)]),
                keyword_span=Span.of(first_tok, self.tokens[keyword]),
                has_braces=braced,
                condition=condition_span,
                condition_text=(
                    self.source.text[condition_span.start : condition_span.end]
                    if condition_span
                    else ""
                ),
                condition_range=condition,
                body=Span.of(self.tokens[body.first], self.tokens[body.last]) if body else None,
                cases=cases,
            )
        )

    # -- declarations ---------------------------------------------------------------

    def _function_definition(self, start: int, brace: int) -> _Stmt | None:
        parsed = self._parse_declaration(start, brace - 1)
        if parsed is None:
            return None
        prefix, declarators = parsed
        if not declarators:
            return None
        head = declarators[0]
        if not head.is_function or head.params_close != brace - 1:
            return None
        body = self._parse_block(brace)
        name_tok = self.tokens[head.name_index]
        self._group += 1
        decl = Declaration(
            kind="function",
            name=name_tok.text,
            naming=classify_name(name_tok.text),
            span=Span.of(self.tokens[start], self.tokens[body.last]),
            scope="file",
            type_text=self._type_text(start, prefix.type_end, head.stars),
            parameters=head.params,
            storage=tuple(sorted(prefix.storage)),
            is_definition=True,
            is_const="const" in prefix.qualifiers,
            is_pointer=head.stars > 0,
            body=Span.of(self.tokens[brace], self.tokens[body.last]),
            body_range=(brace, body.last),
            group=self._group,
        )
        self._decls.append((decl, self._leading.get(self.tokens[start].offset)))
        return _Stmt(start, body.last)

    def _declarations_from(
        self,
        first: int,
        last: int,
        scope: DeclarationScope,
        container: str | None = None,
    ) -> None:
        if last < first:
            return
        parsed = self._parse_declaration(first, last)
        if parsed is None:
            return
        prefix, declarators = parsed
        if prefix.tag_body is not None:
            self._record_aggregate(prefix.tag_body)
        self._group += 1
        is_typedef = "typedef" in prefix.storage
        for position, declarator in enumerate(declarators):
            decl_first = first if position == 0 else declarator.first
            name_tok = self.tokens[declarator.name_index]
            if is_typedef:
                kind: DeclarationKind = "typedef"
            elif declarator.is_function:
                kind = "function"
            elif scope == "member":
                kind = "field"
            else:
                kind = "variable"
            decl = Declaration(
                kind=kind,
                name=name_tok.text,
                naming=classify_name(name_tok.text),
                span=Span.of(self.tokens[decl_first], self.tokens[declarator.last]),
                scope=scope,
                type_text=self._type_text(first, prefix.type_end, declarator.stars),
                parameters=declarator.params,
                storage=tuple(sorted(prefix.storage)),
                container=container,
                is_const="const" in prefix.qualifiers,
                is_pointer=declarator.stars > 0,
                is_array=declarator.is_array,
                has_initializer=declarator.has_initializer,
                group=self._group,
            )
            comment = self._leading.get(self.tokens[decl_first].offset)
            self._decls.append((decl, comment))

    def _parse_declaration(self, first: int, last: int) -> tuple[_Prefix, list[_Declarator]] | None:
        index = first
        saw_type = False
        prefix = _Prefix(type_end=first - 1)
        while index <= last:
            tok = self.tokens[index]
            if tok.kind == "keyword":
                if tok.text in STORAGE_KEYWORDS:
                    prefix.storage.add(tok.text)
                elif tok.text in QUALIFIER_KEYWORDS:
                    prefix.qualifiers.add(tok.text)
                elif tok.text in BASIC_TYPE_KEYWORDS:
                    saw_type = True
                elif tok.text in TAG_KEYWORDS:
                    saw_type = True
                    if index + 1 <= last and self.tokens[index + 1].kind == "identifier":
                        index += 1
                    if self._punct_at(index + 1, "{") and index + 1 <= last:
                        close = self._match_brace(index + 1, last)
                        prefix.tag_body = (tok.text, index + 1, close)
                        index = close
                else:
                    break
                index += 1
                continue
            if tok.kind == "identifier" and tok.text in _ATTRIBUTE_NAMES:
                if self._punct_at(index + 1, "("):
                    index = min(self._match_within(index + 1, last), last)
                index += 1
                continue
            if tok.kind == "identifier" and index + 1 <= last:
                follower = self.tokens[index + 1]
                if follower.kind == "identifier" or (
                    not saw_type
                    and (
                        _is(follower, "*")
                        or (follower.kind == "keyword" and follower.text in QUALIFIER_KEYWORDS)
                    )
                ):
                    saw_type = True
                    index += 1
                    continue
            break
        if not saw_type:
            return None
        prefix.type_end = index - 1
        declarators: list[_Declarator] = []
        for part_first, part_last in self._split_commas(index, last):
            declarator = self._declarator(part_first, part_last)
            if declarator is not None:
                declarators.append(declarator)
        return (prefix, declarators)

    def _declarator(self, first: int, last: int) -> _Declarator | None:
        index = first
        stars = 0
        while index <= last:
            tok = self.tokens[index]
            if _is(tok, "*"):
                stars += 1
            elif not (tok.kind == "keyword" and tok.text in QUALIFIER_KEYWORDS):
                break
            index += 1
        if index > last:
            return None

        name_index: int | None = None
        parenthesized = _is(self.tokens[index], "(")
        if parenthesized:
            close = self._match_within(index, last)
            for inner in range(index + 1, close):
                if _is(self.tokens[inner], "*"):
                    stars += 1
                if self.tokens[inner].kind == "identifier":
                    name_index = inner
                    break
            after = close + 1
        elif self.tokens[index].kind == "identifier":
            name_index = index
            after = index + 1
        if name_index is None:
            return None

        declarator = _Declarator(first=first, last=last, name_index=name_index, stars=stars)
        if not parenthesized and self._punct_at(after, "(") and after <= last:
            close = self._match_within(after, last)
            declarator.is_function = True
            declarator.params = self._parameters(after, close)
            declarator.params_close = close
            after = close + 1
        depth = 0
        for position in range(after, last + 1):
            tok = self.tokens[position]
            if tok.kind != "punctuator":
                continue
            if tok.text in ("(", "{"):
                depth += 1
            elif tok.text in (")", "}"):
                depth -= 1
            elif tok.text == "[" and depth == 0 and not declarator.has_initializer:
                declarator.is_array = True
            elif tok.text == "=" and depth == 0:
                declarator.has_initializer = True
        return declarator

    def _parameters(self, open_index: int, close: int) -> tuple[Parameter, ...]:
        params: list[Parameter] = []
        for first, last in self._split_commas(open_index + 1, close - 1):
            if first == last and self.tokens[first].text in ("void", "..."):
                continue
            span = Span.of(self.tokens[first], self.tokens[last])
            parsed = self._parse_declaration(first, last)
            declarator = parsed[1][0] if parsed is not None and parsed[1] else None
            if declarator is None:
                params.append(
                    Parameter(name="", type_text=self._text(first, last), naming="other", span=span)
                )
                continue
            name = self.tokens[declarator.name_index].text
            params.append(
                Parameter(
                    name=name,
                    type_text=self._text(first, declarator.name_index - 1),
                    naming=classify_name(name),
                    span=span,
                )
            )
        return tuple(params)

    def _record_aggregate(self, tag_body: tuple[str, int, int]) -> None:
        tag, open_index, close = tag_body
        if tag == "enum":
            self._regions.append(
                (self.tokens[open_index].offset, self.tokens[close].end_offset)
            )
            self._group += 1
            for first, last in self._split_commas(open_index + 1, close - 1):
                name_tok = self.tokens[first]
                if name_tok.kind != "identifier":
                    continue
                self._constant_names.add(name_tok.text)
                decl = Declaration(
                    kind="field",
                    name=name_tok.text,
                    naming=classify_name(name_tok.text),
                    span=Span.of(name_tok, self.tokens[last]),
                    scope="member",
                    container="enum",
                    has_initializer=any(
                        _is(self.tokens[position], "=") for position in range(first, last + 1)
                    ),
                    group=self._group,
                )
                self._decls.append((decl, self._leading.get(name_tok.offset)))
            return

        index = open_index + 1
        while index < close:
            end = index
            depth = 0
            while end < close:
                tok = self.tokens[end]
                if tok.kind == "punctuator":
                    if tok.text in ("(", "[", "{"):
                        depth += 1
                    elif tok.text in (")", "]", "}"):
                        depth -= 1
                    elif tok.text == ";" and depth == 0:
                        break
                end += 1
            self._declarations_from(index, end - 1, "member", container=tag)
            index = end + 1

    # -- comparisons ----------------------------------------------------------------

    def _comparisons(self, condition: tuple[int, int]) -> tuple[ComparisonExpr, ...]:
        low, high = condition
        found: list[ComparisonExpr] = []
        for index in range(low, high + 1):
            tok = self.tokens[index]
            if tok.kind != "punctuator" or tok.text not in COMPARISON_OPERATORS:
                continue
            left_first = self._operand_bound(index - 1, low, -1)
            right_last = self._operand_bound(index + 1, high, 1)
            if left_first > index - 1 or right_last < index + 1:
                continue
            found.append(
                ComparisonExpr(
                    left=self._operand(left_first, index - 1),
                    operator=tok.text,
                    right=self._operand(index + 1, right_last),
                    span=Span.of(self.tokens[left_first], self.tokens[right_last]),
                )
            )
        return tuple(found)

    def _operand_bound(self, index: int, limit: int, step: int) -> int:
        if step < 0:
            nest_open, nest_close = (")", "]"), ("(", "[")
        else:
            nest_open, nest_close = ("(", "["), (")", "]")
        depth = 0
        while (index >= limit) if step < 0 else (index <= limit):
            tok = self.tokens[index]
            if tok.kind == "punctuator":
                if tok.text in nest_open:
                    depth += 1
                elif tok.text in nest_close:
                    if depth == 0:
                        break
                    depth -= 1
                elif depth == 0 and tok.text in _OPERAND_BOUNDARIES:
                    break
            index += step
        return index - step

    def _operand(self, first: int, last: int) -> Operand:
        span = Span.of(self.tokens[first], self.tokens[last])
        text = self.source.text[span.start : span.end]
        names: list[str] = []
        for index in range(first, last + 1):
            tok = self.tokens[index]
            if tok.kind == "keyword" and tok.text == "sizeof":
                return Operand(text=text, kind="other", span=span)
            if tok.kind != "identifier":
                continue
            if self._punct_at(index + 1, "(") and index + 1 <= last:
                return Operand(text=text, kind="other", span=span)
            names.append(tok.text)
        if not names:
            has_literal = any(
                self.tokens[index].kind == "literal" for index in range(first, last + 1)
            )
            return Operand(text=text, kind="literal" if has_literal else "other", span=span)
        if all(self._is_constant(name) for name in names):
            return Operand(text=text, kind="constant", span=span)
        return Operand(text=text, kind="variable", span=span)

    def _is_constant(self, name: str) -> bool:
        return name in self._constant_names or classify_name(name) == "UPPER_SNAKE"

    # -- directives -----------------------------------------------------------------

    def _record_directive(self, tokens: list[Token]) -> None:
        hash_tok = tokens[0]
        name = tokens[1].text if len(tokens) > 1 and tokens[1].line == hash_tok.line else ""
        span = Span.of(hash_tok, tokens[-1])
        self._directives.append(Directive(name=name, span=span))
        if name != "define" or len(tokens) < 3:
            return
        macro = tokens[2]
        if macro.kind not in ("identifier", "keyword"):
            return
        function_like = (
            len(tokens) > 3 and tokens[3].text == "(" and tokens[3].offset == macro.end_offset
        )
        if not function_like:
            self._constant_names.add(macro.text)
        self._group += 1
        decl = Declaration(
            kind="macro",
            name=macro.text,
            naming=classify_name(macro.text),
            span=span,
            scope="file",
            is_function_like=function_like,
            has_initializer=len(tokens) > 3,
            group=self._group,
        )
        self._decls.append((decl, self._leading.get(hash_tok.offset)))

    # -- helpers --------------------------------------------------------------------

    def _split_commas(self, first: int, last: int) -> list[tuple[int, int]]:
        parts: list[tuple[int, int]] = []
        depth = 0
        start = first
        for index in range(first, last + 1):
            tok = self.tokens[index]
            if tok.kind != "punctuator":
                continue
            if tok.text in ("(", "[", "{"):
                depth += 1
            elif tok.text in (")", "]", "}"):
                depth -= 1
            elif tok.text == "," and depth == 0:
                if index - 1 >= start:
                    parts.append((start, index - 1))
                start = index + 1
        if last >= start:
            parts.append((start, last))
        return parts

    def _match_within(self, open_index: int, limit: int) -> int:
        depth = 0
        for index in range(open_index, limit + 1):
            tok = self.tokens[index]
            if tok.kind != "punctuator":
                continue
            if tok.text in ("(", "["):
                depth += 1
            elif tok.text in (")", "]"):
                depth -= 1
                if depth == 0:
                    return index
        return limit

    def _match_brace(self, open_index: int, limit: int) -> int:
        depth = 0
        for index in range(open_index, limit + 1):
            tok = self.tokens[index]
            if _is(tok, "{"):
                depth += 1
            elif _is(tok, "}"):
                depth -= 1
                if depth == 0:
                    return index
        return limit

    def _punct_at(self, index: int, text: str) -> bool:
        return 0 <= index < len(self.tokens) and _is(self.tokens[index], text)

    def _text(self, first: int, last: int) -> str:
        if last < first:
            return ""
        return " ".join(self.tokens[index].text for index in range(first, last + 1))

    def _type_text(self, first: int, type_end: int, stars: int) -> str:
        base = self._text(first, type_end)
        return f"{base} {'*' * stars}" if stars else base

    def _finish(self) -> ParseResult:
        diagnostics = list(self._diagnostics)
        open_comment = next((comment for comment in self.comments if not comment.terminated), None)
        if open_comment is not None:
            diagnostics = [
                ParseDiagnostic(
                    message=(
                        f"block comment opened at line {open_comment.span.line} "
                        "is not terminated"
                    ),
                    span=open_comment.span,
                )
            ]
        elif self._unclosed:
            outer = self._unclosed[-1]
            diagnostics.append(
                ParseDiagnostic(
                    message=f"block opened at line {outer.line} is not closed before end of file",
                    span=Span.of(outer, outer),
                )
            )

        owners: dict[int, str] = {}
        for decl, comment_index in self._decls:
            if comment_index is not None and comment_index not in owners:
                owners[comment_index] = decl.name
        comments = tuple(
            replace(comment, attached_to=owners.get(index))
            for index, comment in enumerate(self.comments)
        )
        declarations = sorted(
            (
                replace(decl, comment=comments[comment_index])
                if comment_index is not None and owners.get(comment_index) == decl.name
                else decl
                for decl, comment_index in self._decls
            ),
            key=lambda decl: (decl.span.start, decl.span.end),
        )
        blocks = sorted(
            (
                replace(block, comparisons=self._comparisons(block.condition_range))
                if block.condition_range is not None
                else block
                for block in self._blocks
            ),
            key=lambda block: (block.span.start, -block.span.end),
        )
        return ParseResult(
            source=self.source,
            tokens=tuple(self.tokens),
            declarations=tuple(declarations),
            control_blocks=tuple(blocks),
            comments=comments,
            directives=tuple(self._directives),
            diagnostics=tuple(diagnostics),
            constant_regions=tuple(self._regions),
        )


def _split_directives(tokens: list[Token]) -> tuple[list[list[Token]], list[Token]]:
    directives: list[list[Token]] = []
    code: list[Token] = []
    index = 0
    while index < len(tokens):
        tok = tokens[index]
        starts_line = index == 0 or tokens[index - 1].end_line < tok.line
        if not (tok.kind == "punctuator" and tok.text == "#" and starts_line):
            code.append(tok)
            index += 1
            continue
        end = index
        line = tok.line
        while end + 1 < len(tokens):
            following = tokens[end + 1]
            if following.line == line:
                end += 1
                continue
            if tokens[end].text == "\\" and tokens[end].line == line:
                line = following.line
                end += 1
                continue
            break
        directives.append(tokens[index : end + 1])
        index = end + 1
    return (directives, code)


def _collect_comments(tokens: tuple[Token, ...]) -> tuple[list[CommentBlock], dict[int, int]]:
    groups: list[list[Token]] = []
    trailing: list[bool] = []
    leading: dict[int, int] = {}
    pending: list[int] = []
    prev_line: int | None = None
    for tok in tokens:
        if tok.kind == "comment":
            is_trailing = prev_line is not None and prev_line == tok.line
            previous = groups[-1] if groups else None
            if (
                previous is not None
                and not is_trailing
                and pending
                and pending[-1] == len(groups) - 1
                and tok.text.startswith("//")
                and previous[-1].text.startswith("//")
                and previous[-1].end_line + 1 == tok.line
            ):
                previous.append(tok)
                continue
            groups.append([tok])
            trailing.append(is_trailing)
            if not is_trailing:
                pending.append(len(groups) - 1)
            continue
        if tok.kind in TRIVIA_KINDS:
            continue
        if pending:
            leading[tok.offset] = pending[-1]
            pending = []
        prev_line = tok.end_line
    blocks = [_comment_block(group, flag) for group, flag in zip(groups, trailing)]
    return (blocks, leading)


def _comment_block(tokens: list[Token], is_trailing: bool) -> CommentBlock:
    text = "\n".join(tok.text for tok in tokens)
    return CommentBlock(
        text=text,
        span=Span.of(tokens[0], tokens[-1]),
        tags=tuple(_TAG_RE.findall(text)),
        param_names=tuple(_PARAM_TAG_RE.findall(text)),
        is_doxygen=text.startswith(_DOXYGEN_PREFIXES) and not text.startswith("/**/"),
        is_trailing=is_trailing,
        terminated=all(tok.terminated for tok in tokens),
    )


def _inner(parens: tuple[int, int] | None) -> tuple[int, int] | None:
    if parens is None or parens[1] - parens[0] < 2:
        return None
    return (parens[0] + 1, parens[1] - 1)


def _is(tok: Token, text: str) -> bool:
    return tok.kind == "punctuator" and tok.text == text


def _kw(tok: Token, text: str) -> bool:
    return tok.kind == "keyword" and tok.text == text
