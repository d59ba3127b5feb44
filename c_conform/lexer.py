"""C lexer primitives."""

from __future__ import annotations

import re
from bisect import bisect_right
from dataclasses import dataclass
from typing import Literal

TokenKind = Literal[
    "identifier",
    "keyword",
    "punctuator",
    "literal",
    "comment",
    "whitespace",
    "newline",
    "unknown",
]

KEYWORDS = frozenset(
    {
        "auto",
        "break",
        "case",
        "char",
        "const",
        "continue",
        "default",
        "do",
        "double",
        "else",
        "enum",
        "extern",
        "float",
        "for",
        "goto",
        "if",
        "inline",
        "int",
        "long",
        "register",
        "restrict",
        "return",
        "short",
        "signed",
        "sizeof",
        "static",
        "struct",
        "switch",
        "typedef",
        "union",
        "unsigned",
        "void",
        "volatile",
        "while",
        "_Alignas",
        "_Alignof",
        "_Atomic",
        "_Bool",
        "_Complex",
        "_Generic",
        "_Imaginary",
        "_Noreturn",
        "_Static_assert",
        "_Thread_local",
    }
)

PUNCTUATORS = (
    "...",
    "<<=",
    ">>=",
    "->",
    "++",
    "--",
    "<<",
    ">>",
    "<=",
    ">=",
    "==",
    "!=",
    "&&",
    "||",
    "*=",
    "/=",
    "%=",
    "+=",
    "-=",
    "&=",
    "^=",
    "|=",
    "##",
    "[",
    "]",
    "(",
    ")",
    "{",
    "}",
    ".",
    "&",
    "*",
    "+",
    "-",
    "~",
    "!",
    "/",
    "%",
    "<",
    ">",
    "^",
    "|",
    "?",
    ":",
    ";",
    "=",
    ",",
    "#",
)

TRIVIA_KINDS = frozenset({"whitespace", "newline"})

_NEWLINE_RE = re.compile(r"\r\n|\r|\n")
_TOKEN_RE = re.compile(
    r"(?P<newline>\r\n|\r|\n)"
    r"|(?P<whitespace>[ \t\f\v]+)"
    r"|(?P<comment>//[^\r\n]*|/\*(?s:.*?)\*/|/\*(?s:.*))"
    r"|(?P<string>(?:u8|[uUL])?\"(?:[^\"\\\r\n]|\\(?s:.))*\")"
    r"|(?P<char>(?:u8|[uUL])?'(?:[^'\\\r\n]|\\(?s:.))*')"
    r"|(?P<open_quote>(?:u8|[uUL])?[\"'](?:[^\"'\\\r\n]|\\(?s:.))*)"
    r"|(?P<number>\.?[0-9](?:[eEpP][+-]|[0-9A-Za-z_.])*)"
    r"|(?P<identifier>[A-Za-z_][A-Za-z0-9_]*)"
    r"|(?P<punctuator>" + "|".join(re.escape(item) for item in PUNCTUATORS) + r")"
    r"|(?P<unknown>(?s:.))"
)

_GROUP_KINDS: dict[str, TokenKind] = {
    "newline": "newline",
    "whitespace": "whitespace",
    "comment": "comment",
    "string": "literal",
    "char": "literal",
    "open_quote": "unknown",
    "number": "literal",
    "identifier": "identifier",
    "punctuator": "punctuator",
    "unknown": "unknown",
}


@dataclass(frozen=True, slots=True)
class Token:
    """A lexeme with its exact position in the source text.

    ``line`` and ``column`` are 1-based and point at the first character.
    ``end_line``/``end_column`` point one past the last character.
    """

    kind: TokenKind
    text: str
    line: int
    column: int
    offset: int
    end_line: int
    end_column: int

    @property
    def end_offset(self) -> int:
        return self.offset + len(self.text)

    @property
    def is_number(self) -> bool:
        return self.kind == "literal" and self.text[:1] in "0123456789."

    @property
    def terminated(self) -> bool:
        """False only for a block comment that runs into end of file."""
        if self.kind != "comment" or not self.text.startswith("/*"):
            return True
        return len(self.text) >= 4 and self.text.endswith("*/")


@dataclass(frozen=True, slots=True)
class SourceFile:
    """One input file: path, raw text and its complete token stream."""

    path: str
    text: str
    tokens: tuple[Token, ...]
    lines: tuple[str, ...]

    @classmethod
    def from_text(cls, path: str, text: str) -> SourceFile:
        return cls(
            path=path,
            text=text,
            tokens=tuple(tokenize(text)),
            lines=tuple(_NEWLINE_RE.split(text)),
        )

    def line_text(self, line: int) -> str:
        if 1 <= line <= len(self.lines):
            return self.lines[line - 1]
        return ""


def tokenize(text: str) -> list[Token]:
    """Split C source text into tokens, keeping comments and whitespace.

    Never raises: characters that do not start a valid token become
    ``unknown`` tokens, an unterminated string or character literal becomes an
    ``unknown`` token running to the end of its line, and an unterminated block
    comment becomes a comment token running to the end of the text.
    """
    line_starts = [0] + [match.end() for match in _NEWLINE_RE.finditer(text)]
    tokens: list[Token] = []
    pos = 0
    length = len(text)
    while pos < length:
        match = _TOKEN_RE.match(text, pos)
        if match is None:  # pragma: no cover - the unknown group matches any character
            break
        group = match.lastgroup or "unknown"
        lexeme = match.group()
        kind = _GROUP_KINDS[group]
        if kind == "identifier" and lexeme in KEYWORDS:
            kind = "keyword"
        line, column = _position(line_starts, pos)
        end_line, last_column = _position(line_starts, match.end() - 1)
        tokens.append(
            Token(
                kind=kind,
                text=lexeme,
                line=line,
                column=column,
                offset=pos,
                end_line=end_line,
                end_column=last_column + 1,
            )
        )
        pos = match.end()
    return tokens


def _position(line_starts: list[int], offset: int) -> tuple[int, int]:
    line = bisect_right(line_starts, offset)
    return (line, offset - line_starts[line - 1] + 1)
