"""Analysis pipeline tests: per-file isolation, parallel runs and cancellation."""

from __future__ import annotations

import threading
from collections.abc import Iterator

from c_conform.config import RuleConfig
from c_conform.engine import INTERNAL_ERROR_RULE_ID, analyze_file, analyze_sources
from c_conform.parser import ParseResult
from c_conform.rules.base import Finding
from c_conform.rules.naming import VariableNamingRule
from c_conform.rules.syntax import UnterminatedBlockRule


def test_analyze_file_reports_comparison_order_with_fix() -> None:
    findings = analyze_file("example.c", "if( inputValue <= MAX_VALUE )\n{\n}\n")
    assert len(findings) == 1
    finding = findings[0]
    assert finding.rule_id == "comparison-order"
    assert finding.severity == "error"
    assert (finding.line, finding.column) == (1, 5)
    assert finding.message == "constant MAX_VALUE must appear on the left of comparison"
    assert finding.suggestion == "MAX_VALUE >= inputValue"


def test_analyze_file_orders_findings_by_position() -> None:
    findings = analyze_file("example.c", "switch(x){ case 1: doThing(); }")
    assert [(finding.rule_id, finding.column) for finding in findings] == [
        ("switch-default", 1),
        ("switch-break", 12),
    ]


def test_analyze_file_is_deterministic() -> None:
    text = "uint8_t bad_name;\nvoid valueGet(void);\n"
    assert analyze_file("demo.c", text) == analyze_file("demo.c", text)


def test_unterminated_comment_keeps_findings_before_it() -> None:
    text = "uint8_t bad_name = 0;\n/* never closed\nuint8_t other_name;\n"
    findings = analyze_file(
        "demo.c",
        text,
        rules=[UnterminatedBlockRule(), VariableNamingRule()],
    )
    assert [(finding.rule_id, finding.line) for finding in findings] == [
        ("variable-naming", 1),
        ("unterminated-block", 2),
    ]


def test_failing_rule_becomes_internal_error_finding() -> None:
    findings = analyze_file(
        "demo.c",
        "uint8_t bad_name;\n",
        rules=[_ExplodingRule(), VariableNamingRule()],
    )
    assert {finding.rule_id for finding in findings} == {
        INTERNAL_ERROR_RULE_ID,
        "variable-naming",
    }
    internal = next(item for item in findings if item.rule_id == INTERNAL_ERROR_RULE_ID)
    assert internal.severity == "error"
    assert internal.message == "rule exploding failed: RuntimeError: boom"


def test_analyze_sources_parallel_matches_sequential() -> None:
    sources = [
        (f"unit_{index}.c", _SAMPLE.replace("counter", f"counter_{index}")) for index in range(8)
    ]
    sequential = analyze_sources(sources, jobs=1)
    parallel = analyze_sources(sources, jobs=4)

    assert sequential.files_analyzed == 8
    assert parallel.files_analyzed == 8
    assert parallel.findings == sequential.findings
    assert {finding.path for finding in parallel.findings} == {path for path, _ in sources}


def test_analyze_sources_applies_rule_config() -> None:
    config = RuleConfig(disabled_rules=["variable-naming"])
    result = analyze_sources([("demo.c", "uint8_t bad_name;\n")], config)
    assert result.findings == []


def test_cancel_before_start_analyzes_nothing() -> None:
    cancel = threading.Event()
    cancel.set()
    result = analyze_sources([("demo.c", _SAMPLE)], cancel=cancel)
    assert result.files_analyzed == 0
    assert result.cancelled is True
    assert result.findings == []


def test_cancel_during_run_keeps_completed_files() -> None:
    cancel = threading.Event()

    def sources() -> Iterator[tuple[str, str]]:
        yield ("first.c", _SAMPLE)
        cancel.set()
        yield ("second.c", _SAMPLE)

    result = analyze_sources(sources(), cancel=cancel)
    assert result.cancelled is True
    assert result.files_analyzed == 1
    assert {finding.path for finding in result.findings} == {"first.c"}


_SAMPLE = "uint8_t counter;\nunsigned int total;\n"


class _ExplodingRule:
    rule_id = "exploding"
    strictness = "must"

    def evaluate(self, result: ParseResult) -> list[Finding]:
        raise RuntimeError("boom")
