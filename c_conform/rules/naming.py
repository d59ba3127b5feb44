"""Naming convention rules for files, constants, types, variables and functions."""

from __future__ import annotations

import re
from pathlib import PurePath

from c_conform.naming import classify_name, first_word, has_hungarian_prefix
from c_conform.parser import Declaration, Parameter, ParseResult
from c_conform.rules.base import BaseRule, Finding

SOURCE_SUFFIXES = (".c", ".h")
SIZED_INTEGER_KEYWORDS = frozenset({"int", "short", "long", "signed", "unsigned"})

_FILE_STEM_RE = re.compile(r"^[a-z0-9]+(?:_[a-z0-9]+)*$")
_TYPEDEF_RE = re.compile(r"^[a-z][A-Za-z0-9]*_t$")
_INTEGER_WORDS = SIZED_INTEGER_KEYWORDS | {"char"}


class FileNamingRule(BaseRule):
    """File names are lowercase with underscores separating words."""

    rule_id = "file-naming"

    def evaluate(self, result: ParseResult) -> list[Finding]:
        name = PurePath(result.path).name
        stem, dot, suffix = name.rpartition(".")
        if not dot or f".{suffix}" not in SOURCE_SUFFIXES:
            return []
        if _FILE_STEM_RE.match(stem) and suffix == suffix.lower():
            return []
        return [
            self._finding_at(
                result,
                1,
                1,
                f"file name '{name}' must be lowercase words separated by underscores",
                suggestion=f"Rename to '{_snake_case(stem)}.{suffix.lower()}'.",
            )
        ]


class ConstantNamingRule(BaseRule):
    """Constants are UPPER_SNAKE and defined with #define rather than const variables."""

    rule_id = "constant-naming"

    def evaluate(self, result: ParseResult) -> list[Finding]:
        findings: list[Finding] = []
        for decl in result.declarations:
            if decl.kind == "macro" or (decl.kind == "field" and decl.container == "enum"):
                if decl.naming != "UPPER_SNAKE":
                    label = "macro" if decl.kind == "macro" else "enumerator"
                    findings.append(
                        self._finding(
                            result,
                            decl.span,
                            f"{label} '{decl.name}' must be UPPER_SNAKE_CASE",
                            suggestion=f"Rename to '{_snake_case(decl.name).upper()}'.",
                        )
                    )
            elif _is_const_scalar(decl):
                findings.append(
                    self._finding(
                        result,
                        decl.span,
                        f"constant '{decl.name}' must be defined with #define",
                        suggestion=(
                            f"#define {_snake_case(decl.name).upper()} <value> instead of a "
                            "const variable."
                        ),
                    )
                )
        return findings


class TypeNamingRule(BaseRule):
    """Typedef names start lowercase, use camelCase and end in _t."""

    rule_id = "type-naming"

    def evaluate(self, result: ParseResult) -> list[Finding]:
        findings: list[Finding] = []
        for decl in result.declarations:
            if decl.kind != "typedef" or _TYPEDEF_RE.match(decl.name):
                continue
            base = decl.name[:-2] if decl.name.endswith("_t") else decl.name
            findings.append(
                self._finding(
                    result,
                    decl.span,
                    f"type '{decl.name}' must be camelCase and end in '_t'",
                    suggestion=f"Rename to '{_camel_case(base)}_t'.",
                )
            )
        return findings


class StdintTypesRule(BaseRule):
    """Integer types use the sized types from <stdint.h>."""

    rule_id = "stdint-types"

    def evaluate(self, result: ParseResult) -> list[Finding]:
        findings: list[Finding] = []
        tokens = result.tokens
        index = 0
        while index < len(tokens):
            tok = tokens[index]
            if tok.kind != "keyword" or tok.text not in _INTEGER_WORDS:
                index += 1
                continue
            end = index
            while end + 1 < len(tokens) and tokens[end + 1].kind == "keyword" and (
                tokens[end + 1].text in _INTEGER_WORDS
            ):
                end += 1
            words = [tokens[position].text for position in range(index, end + 1)]
            following = tokens[end + 1] if end + 1 < len(tokens) else None
            is_main = following is not None and following.text == "main" and words == ["int"]
            if SIZED_INTEGER_KEYWORDS.intersection(words) and not is_main:
                spelled = " ".join(words)
                findings.append(
                    self._finding_at(
                        result,
                        tok.line,
                        tok.column,
                        f"'{spelled}' must be replaced by a <stdint.h> sized type",
                        suggestion=f"Use {_sized_type(words)}.",
                    )
                )
            index = end + 1
        return findings


class VariableNamingRule(BaseRule):
    """Variables, parameters and struct fields are camelCase without Hungarian prefixes."""

    rule_id = "variable-naming"

    def evaluate(self, result: ParseResult) -> list[Finding]:
        findings: list[Finding] = []
        for decl in result.declarations:
            if decl.kind in ("variable", "field") and decl.container != "enum":
                if _is_const_scalar(decl) and decl.naming == "UPPER_SNAKE":
                    continue
                label = "variable" if decl.kind == "variable" else "field"
                finding = self._check(result, label, decl.name, decl)
                if finding is not None:
                    findings.append(finding)
            for param in decl.parameters:
                if not param.name:
                    continue
                finding = self._check(result, "parameter", param.name, param)
                if finding is not None:
                    findings.append(finding)
        return findings

    def _check(
        self,
        result: ParseResult,
        label: str,
        name: str,
        node: Declaration | Parameter,
    ) -> Finding | None:
        if classify_name(name) != "camelCase":
            return self._finding(
                result,
                node.span,
                f"{label} '{name}' must be camelCase without underscores",
                suggestion=f"Rename to '{_camel_case(name)}'.",
            )
        if has_hungarian_prefix(name):
            return self._finding(
                result,
                node.span,
                f"{label} '{name}' must not use a Hungarian notation prefix",
                suggestion="Drop the type prefix and describe the value instead.",
            )
        return None


class FunctionNamingRule(BaseRule):
    """Functions are PascalCase and start with a verb from the configured list."""

    rule_id = "function-naming"

    def evaluate(self, result: ParseResult) -> list[Finding]:
        verbs = {verb.lower() for verb in self._config.verbs}
        findings: list[Finding] = []
        for decl in result.declarations:
            if decl.kind != "function" or decl.name == "main":
                continue
            if decl.naming != "PascalCase":
                findings.append(
                    self._finding(
                        result,
                        decl.span,
                        f"function '{decl.name}' must be PascalCase",
                        suggestion=f"Rename to '{_pascal_case(decl.name)}'.",
                    )
                )
                continue
            verb = first_word(decl.name)
            if verbs and verb.lower() not in verbs:
                findings.append(
                    self._finding(
                        result,
                        decl.span,
                        f"function '{decl.name}' must start with a verb (found '{verb}')",
                        suggestion="Name functions verb first, e.g. GetValue or SendFrame.",
                    )
                )
        return findings


def _is_const_scalar(decl: Declaration) -> bool:
    return (
        decl.kind == "variable"
        and decl.is_const
        and not decl.is_pointer
        and not decl.is_array
        and "extern" not in decl.storage
    )


def _sized_type(words: list[str]) -> str:
    unsigned = "unsigned" in words
    if "char" in words:
        bits = 8
    elif "short" in words:
        bits = 16
    elif words.count("long") >= 2:
        bits = 64
    else:
        bits = 32
    return f"{'u' if unsigned else ''}int{bits}_t"


def _words(name: str) -> list[str]:
    spaced = re.sub(r"([a-z0-9])([A-Z])", r"\1 \2", name)
    return [word for word in re.split(r"[\s_\-]+", spaced) if word]


def _snake_case(name: str) -> str:
    return "_".join(word.lower() for word in _words(name))


def _camel_case(name: str) -> str:
    words = _words(name)
    if not words:
        return name
    head = words[0].lower()
    return head + "".join(word.capitalize() for word in words[1:])


def _pascal_case(name: str) -> str:
    return "".join(word.capitalize() for word in _words(name))
