"""Whitespace rule tests."""

from __future__ import annotations

from c_conform.rules.whitespace import (
    EmptyParenthesesRule,
    SpaceAroundOperatorsRule,
    SpaceInsideParenthesesRule,
)
from tests.helpers_source import messages, run_rule

OPERATOR_SAMPLE = "\n".join(
    [
        "void Run(void)",
        "{",
        "  total = a+b;",
        "  count -= 1;",
        "  offset = -1;",
        "  value = (uint8_t)-1;",
        "  mask = flags&MASK;",
        "  ptr = &buffer;",
        "  size = sizeof(uint8_t)- 1;",
        "}",
        "",
    ]
)


def test_space_around_operators_rule_flags_unspaced_binary_operators() -> None:
    findings = run_rule(SpaceAroundOperatorsRule, OPERATOR_SAMPLE)
    assert [(finding.line, finding.column) for finding in findings] == [
        (3, 12),
        (7, 15),
        (9, 25),
    ]
    assert messages(findings) == [
        "operator '+' must be surrounded by spaces",
        "operator '&' must be surrounded by spaces",
        "operator '-' must be surrounded by spaces",
    ]
    assert findings[0].suggestion == "Write 'a + b'."


def test_space_around_operators_rule_ignores_pointer_declarators() -> None:
    text = "uint8_t *buffer = NULL;\nuint8_t* other;\n"
    assert run_rule(SpaceAroundOperatorsRule, text) == []


def test_space_inside_parentheses_rule_checks_control_conditions() -> None:
    text = "\n".join(
        [
            "void Run(void)",
            "{",
            "  if(ready)",
            "  {",
            "  }",
            "  while( FALSE == done)",
            "  {",
            "  }",
            "  for( ;; )",
            "  {",
            "  }",
            "  switch( mode )",
            "  {",
            "    default:",
            "      break;",
            "  }",
            "}",
            "",
        ]
    )
    findings = run_rule(SpaceInsideParenthesesRule, text)
    assert [(finding.line, finding.column) for finding in findings] == [(3, 5), (6, 8)]
    assert messages(findings) == [
        "'if' condition needs a space inside its parentheses",
        "'while' condition needs a space inside its parentheses",
    ]
    assert findings[1].suggestion == "Write 'while( condition )'."


def test_empty_parentheses_rule_flags_padded_empty_pairs() -> None:
    text = "void Run( void );\nvoid Stop( );\nuint8_t table[ ];\nvoid Go(void)\n{\n  Start();\n}\n"
    findings = run_rule(EmptyParenthesesRule, text)
    assert [(finding.line, finding.column) for finding in findings] == [(2, 10), (3, 14)]
    assert messages(findings) == [
        "empty '()' must not contain spaces",
        "empty '[]' must not contain spaces",
    ]
