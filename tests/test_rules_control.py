"""Control flow rule tests: comparisons, switches and conditions."""

from __future__ import annotations

from c_conform.rules.comparison import ComparisonOrderRule
from c_conform.rules.conditions import AssignmentInConditionRule, ExplicitBooleanTestRule
from c_conform.rules.switch import SwitchBreakRule, SwitchDefaultRule
from tests.helpers_source import messages, run_rule


def test_comparison_order_rule_flags_constant_on_the_right() -> None:
    findings = run_rule(ComparisonOrderRule, "if( inputValue <= MAX_VALUE )\n{\n}\n")
    assert len(findings) == 1
    finding = findings[0]
    assert finding.severity == "error"
    assert (finding.line, finding.column, finding.end_column) == (1, 5, 28)
    assert finding.message == "constant MAX_VALUE must appear on the left of comparison"
    assert finding.suggestion == "MAX_VALUE >= inputValue"


def test_comparison_order_rule_checks_each_comparison() -> None:
    text = "\n".join(
        [
            "void Run(void)",
            "{",
            "  if( (a == LIMIT) && (MIN < b) )",
            "  {",
            "  }",
            "  while( count != STOP_COUNT )",
            "  {",
            "  }",
            "  if( MAX_VALUE >= inputValue )",
            "  {",
            "  }",
            "}",
            "",
        ]
    )
    findings = run_rule(ComparisonOrderRule, text)
    assert messages(findings) == [
        "constant LIMIT must appear on the left of comparison",
        "constant STOP_COUNT must appear on the left of comparison",
    ]
    assert [finding.suggestion for finding in findings] == ["LIMIT == a", "STOP_COUNT != count"]


def test_comparison_order_rule_leaves_bare_numbers_to_magic_number() -> None:
    text = "\n".join(
        [
            "void Run(void)",
            "{",
            "  if( x == 0 )",
            "  {",
            "  }",
            "  while( x != 1 )",
            "  {",
            "  }",
            "}",
            "",
        ]
    )
    assert run_rule(ComparisonOrderRule, text) == []


def test_switch_rules_report_missing_default_and_missing_break() -> None:
    text = "switch(x){ case 1: doThing(); }"
    default_findings = run_rule(SwitchDefaultRule, text)
    break_findings = run_rule(SwitchBreakRule, text)

    assert messages(default_findings) == ["switch statement has no default case"]
    assert default_findings[0].column == 1
    assert messages(break_findings) == [
        "'case 1:' does not end with break or a fallthrough comment"
    ]
    assert break_findings[0].column == 12


def test_switch_break_rule_accepts_return_fallthrough_comment_and_empty_cases() -> None:
    text = "\n".join(
        [
            "uint8_t Pick(uint8_t mode)",
            "{",
            "  switch( mode )",
            "  {",
            "    case MODE_A:",
            "    case MODE_B:",
            "      Prepare();",
            "      /* falls through */",
            "    case MODE_C:",
            "      return 0;",
            "    default:",
            "      break;",
            "  }",
            "  return 1;",
            "}",
            "",
        ]
    )
    assert run_rule(SwitchBreakRule, text) == []
    assert run_rule(SwitchDefaultRule, text) == []


def test_explicit_boolean_test_rule_flags_implicit_and_negated_tests() -> None:
    text = "\n".join(
        [
            "void Run(void)",
            "{",
            "  if( isReady )",
            "  {",
            "  }",
            "  while( !done )",
            "  {",
            "  }",
            "  if( !stopped == TRUE )",
            "  {",
            "  }",
            "  if( TRUE == isReady )",
            "  {",
            "  }",
            "  while( 1 )",
            "  {",
            "  }",
            "  for( ;; )",
            "  {",
            "  }",
            "}",
            "",
        ]
    )
    findings = run_rule(ExplicitBooleanTestRule, text)
    assert messages(findings) == [
        "condition 'isReady' must be an explicit comparison",
        "condition '!done' must be an explicit comparison",
        "negated operand '!stopped' in comparison",
    ]


def test_explicit_boolean_test_rule_checks_each_logical_term() -> None:
    text = "if( (TRUE == a) && ready )\n{\n}\n"
    findings = run_rule(ExplicitBooleanTestRule, text)
    assert messages(findings) == ["condition 'ready' must be an explicit comparison"]


def test_assignment_in_condition_rule_flags_updates_but_not_for_headers() -> None:
    text = "\n".join(
        [
            "void Run(void)",
            "{",
            "  if( (value = Read()) == 0 )",
            "  {",
            "  }",
            "  while( count-- > 0 )",
            "  {",
            "  }",
            "  for( i = 0; i < 2; i++ )",
            "  {",
            "  }",
            "}",
            "",
        ]
    )
    findings = run_rule(AssignmentInConditionRule, text)
    assert messages(findings) == [
        "'=' used inside a if condition",
        "'--' used inside a while condition",
    ]
    assert all(finding.severity == "error" for finding in findings)
