"""Doxygen documentation standard rules."""

from __future__ import annotations

from pathlib import PurePath

from c_conform.parser import FALLTHROUGH_RE, CommentBlock, ParseResult
from c_conform.rules.base import BaseRule, Finding

HEADER_TAGS = ("file", "brief", "copyright")
SOURCE_HEADER_TAGS = HEADER_TAGS + ("requirement",)
TAG_ORDER = (
    "file",
    "brief",
    "details",
    "date",
    "version",
    "param",
    "return",
    "retval",
    "requirement",
    "note",
    "warning",
    "see",
)


class FileHeaderRule(BaseRule):
    """Files open with a Doxygen block carrying @file, @brief and @copyright.

    Source (``.c``) files also trace their requirements with @requirement.
    """

    rule_id = "file-header"

    def evaluate(self, result: ParseResult) -> list[Finding]:
        header = _file_header(result)
        if header is None:
            return [
                self._finding_at(
                    result,
                    1,
                    1,
                    "file has no Doxygen file header",
                    suggestion="Start the file with /** @file ... @brief ... @copyright ... */.",
                )
            ]
        required = SOURCE_HEADER_TAGS if PurePath(result.path).suffix == ".c" else HEADER_TAGS
        missing = [tag for tag in required if not header.has_tag(tag)]
        if not missing:
            return []
        listed = ", ".join(f"@{tag}" for tag in missing)
        return [
            self._finding(
                result,
                header.span,
                f"file header is missing {listed}",
                suggestion=f"Add {listed} to the file header.",
            )
        ]


class TypeDocRule(BaseRule):
    """Typedefs are documented with @brief."""

    rule_id = "type-doc"

    def evaluate(self, result: ParseResult) -> list[Finding]:
        findings: list[Finding] = []
        for decl in result.declarations:
            if decl.kind != "typedef":
                continue
            if decl.comment is not None and decl.comment.has_tag("brief"):
                continue
            findings.append(
                self._finding(
                    result,
                    decl.span,
                    f"type '{decl.name}' is not documented with @brief",
                    suggestion="Add a /** @brief ... */ block above the type.",
                )
            )
        return findings


class DoxygenTagOrderRule(BaseRule):
    """Doxygen tags follow the standard order: @file, @brief, @details, ... @see."""

    rule_id = "doxygen-tag-order"
    strictness = "may"

    def evaluate(self, result: ParseResult) -> list[Finding]:
        rank = {tag: position for position, tag in enumerate(TAG_ORDER)}
        findings: list[Finding] = []
        for comment in result.comments:
            if not comment.is_doxygen:
                continue
            highest: str | None = None
            for tag in comment.tags:
                if tag not in rank:
                    continue
                if highest is not None and rank[tag] < rank[highest]:
                    findings.append(
                        self._finding(
                            result,
                            comment.span,
                            f"@{tag} should come before @{highest}",
                            suggestion="Order tags as: " + ", ".join(f"@{t}" for t in TAG_ORDER),
                        )
                    )
                    break
                highest = tag
        return findings


class DoxygenCommentStyleRule(BaseRule):
    """All comments are Doxygen compatible (``/** */``, ``/*! */``, ``///`` or ``//!``).

    Fallthrough markers inside switches are exempt.
    """

    rule_id = "doxygen-comment-style"

    def evaluate(self, result: ParseResult) -> list[Finding]:
        findings: list[Finding] = []
        for comment in result.comments:
            if comment.is_doxygen or not comment.terminated:
                continue
            if FALLTHROUGH_RE.search(comment.text):
                continue
            findings.append(
                self._finding(
                    result,
                    comment.span,
                    "comment is not Doxygen compatible",
                    suggestion="Use /** ... */ for blocks and /// for single lines.",
                )
            )
        return findings


class FieldDocRule(BaseRule):
    """Struct and union fields and enum values carry a description.

    A Doxygen comment above the member or a trailing ``///<`` comment on its
    line both count.
    """

    rule_id = "field-doc"

    def evaluate(self, result: ParseResult) -> list[Finding]:
        trailing_lines = {
            comment.span.line
            for comment in result.comments
            if comment.is_trailing and comment.is_doxygen
        }
        findings: list[Finding] = []
        for decl in result.declarations:
            if decl.kind != "field":
                continue
            if decl.comment is not None and decl.comment.is_doxygen:
                continue
            if decl.span.end_line in trailing_lines:
                continue
            label = "value" if decl.container == "enum" else "field"
            findings.append(
                self._finding(
                    result,
                    decl.span,
                    f"{decl.container} {label} '{decl.name}' has no description",
                    suggestion="Add a trailing ///< comment describing it.",
                )
            )
        return findings


class FunctionDiagramRule(BaseRule):
    """Functions that implement a switch-based state machine carry a mermaid diagram.

    The fenced block is only checked for presence; its contents are not parsed.
    """

    rule_id = "function-diagram"
    strictness = "should"

    def evaluate(self, result: ParseResult) -> list[Finding]:
        illustrated = {
            decl.name for decl in result.functions if decl.comment and decl.comment.has_diagram
        }
        switches = [block.span.start for block in result.control_blocks if block.kind == "switch"]
        findings: list[Finding] = []
        for decl in result.functions:
            if decl.body is None or decl.name in illustrated:
                continue
            body = decl.body
            if not any(body.start <= start < body.end for start in switches):
                continue
            findings.append(
                self._finding(
                    result,
                    decl.span,
                    f"function '{decl.name}' implements a state machine without a diagram",
                    suggestion="Add a ```mermaid stateDiagram-v2 block to its comment.",
                )
            )
        return findings


def _file_header(result: ParseResult) -> CommentBlock | None:
    if not result.comments:
        return None
    first = result.comments[0]
    starts = [tok.offset for tok in result.tokens[:1]]
    starts.extend(directive.span.start for directive in result.directives[:1])
    if starts and min(starts) < first.span.start:
        return None
    return first if first.is_doxygen else None
