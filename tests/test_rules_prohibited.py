"""Tests for prohibited and discouraged patterns."""

from __future__ import annotations

from c_conform.config import RuleConfig
from c_conform.rules.prohibited import (
    DynamicAllocationRule,
    MagicNumberRule,
    NoGlobalVariablesRule,
    NoGotoRule,
    SideEffectInCallRule,
    SingleReturnRule,
)
from tests.helpers_source import messages, run_rule

MAGIC_SAMPLE = "\n".join(
    [
        "#define LIMIT 100",
        "enum level { LEVEL_LOW = 5 };",
        "void Run(void)",
        "{",
        "  value = 42;",
        "  offset = -7;",
        "  mask = 0x10;",
        "  count = 1;",
        "  index = -1;",
        "}",
        "",
    ]
)


def test_magic_number_rule_skips_defines_enums_and_allowed_values() -> None:
    findings = run_rule(MagicNumberRule, MAGIC_SAMPLE)
    assert messages(findings) == [
        "magic number 42 must be replaced by a #define constant",
        "magic number -7 must be replaced by a #define constant",
        "magic number 0x10 must be replaced by a #define constant",
    ]
    assert (findings[1].line, findings[1].column) == (6, 12)


def test_magic_number_rule_uses_configured_allow_list() -> None:
    config = RuleConfig(allowed_magic_numbers=[0, 1, -1, 42])
    findings = run_rule(MagicNumberRule, MAGIC_SAMPLE, config=config)
    assert messages(findings) == [
        "magic number -7 must be replaced by a #define constant",
        "magic number 0x10 must be replaced by a #define constant",
    ]


def test_no_goto_rule_reports_warning() -> None:
    text = "\n".join(["void Run(void)", "{", "  goto done;", "done:", "  return;", "}", ""])
    findings = run_rule(NoGotoRule, text)
    assert messages(findings) == ["goto should not be used"]
    assert findings[0].severity == "warning"
    assert (findings[0].line, findings[0].column) == (3, 3)


def test_single_return_rule_reports_second_return() -> None:
    text = "\n".join(
        [
            "uint8_t Check(uint8_t value)",
            "{",
            "  if( 0 == value )",
            "  {",
            "    return 0;",
            "  }",
            "  return 1;",
            "}",
            "",
        ]
    )
    findings = run_rule(SingleReturnRule, text)
    assert messages(findings) == ["function 'Check' has 2 return statements"]
    assert (findings[0].line, findings[0].column) == (7, 3)


def test_dynamic_allocation_rule_reports_heap_calls_only() -> None:
    text = "\n".join(
        [
            "void Run(void)",
            "{",
            "  buffer = malloc(16);",
            "  free(buffer);",
            "  freeList = 0;",
            "}",
            "",
        ]
    )
    findings = run_rule(DynamicAllocationRule, text)
    assert messages(findings) == [
        "dynamic memory function 'malloc' should be avoided",
        "dynamic memory function 'free' should be avoided",
    ]
    assert {finding.severity for finding in findings} == {"warning"}


def test_side_effect_in_call_rule_reports_increment_in_arguments() -> None:
    text = "\n".join(
        ["void Run(void)", "{", "  Send(buffer[index++]);", "  index++;", "}", ""]
    )
    findings = run_rule(SideEffectInCallRule, text)
    assert messages(findings) == ["'++' inside the arguments of 'Send'"]
    assert findings[0].line == 3


def test_no_global_variables_rule_allows_read_only_data() -> None:
    text = "\n".join(
        [
            "uint8_t counter;",
            "static uint8_t state = 0;",
            "const uint8_t table[4] = { 1, 2, 3, 4 };",
            "const char *name = \"sensor\";",
            "extern uint16_t shared;",
            "void Run(void)",
            "{",
            "  uint8_t local = 0;",
            "}",
            "",
        ]
    )
    findings = run_rule(NoGlobalVariablesRule, text)
    assert [(finding.line, finding.column) for finding in findings] == [
        (1, 1),
        (2, 1),
        (4, 1),
        (5, 1),
    ]
    assert messages(findings)[0] == "file-scope variable 'counter' is mutable global state"
    assert findings[0].severity == "error"
