"""Doxygen standard and structural recovery rule tests."""

from __future__ import annotations

from c_conform.rules.doxygen import (
    DoxygenCommentStyleRule,
    DoxygenTagOrderRule,
    FieldDocRule,
    FileHeaderRule,
    FunctionDiagramRule,
    TypeDocRule,
)
from c_conform.rules.syntax import UnterminatedBlockRule
from tests.helpers_source import messages, run_rule, source

HEADER = source(
    """
    /**
     * @file sensor.h
     * @brief Sensor driver interface.
     * @copyright Example Corp.
     */
    #include <stdint.h>
    """
)


def test_file_header_rule_accepts_complete_header() -> None:
    assert run_rule(FileHeaderRule, HEADER, path="sensor.h") == []


def test_file_header_rule_requires_requirement_tag_in_source_files() -> None:
    findings = run_rule(FileHeaderRule, HEADER, path="sensor.c")
    assert messages(findings) == ["file header is missing @requirement"]
    assert findings[0].line == 1


def test_file_header_rule_reports_missing_header() -> None:
    text = "#include <stdint.h>\n/** @file sensor.h */\n"
    findings = run_rule(FileHeaderRule, text, path="sensor.h")
    assert messages(findings) == ["file has no Doxygen file header"]
    assert (findings[0].line, findings[0].column) == (1, 1)


def test_type_doc_rule_requires_brief_on_typedefs() -> None:
    text = source(
        """
        /** @brief Sensor sample. */
        typedef uint16_t sample_t;

        typedef uint8_t modeId_t;
        """
    )
    findings = run_rule(TypeDocRule, text)
    assert messages(findings) == ["type 'modeId_t' is not documented with @brief"]


def test_doxygen_tag_order_rule_reports_out_of_order_tags() -> None:
    text = source(
        """
        /**
         * @param value Input.
         * @brief Scale a value.
         */
        void ScaleValue(uint8_t value);
        """
    )
    findings = run_rule(DoxygenTagOrderRule, text)
    assert messages(findings) == ["@brief should come before @param"]
    assert findings[0].severity == "info"


def test_unterminated_block_rule_reports_open_comment() -> None:
    findings = run_rule(UnterminatedBlockRule, "void Open(void)\n{\n/* never closed\n}\n")
    assert messages(findings) == ["block comment opened at line 3 is not terminated"]
    assert (findings[0].line, findings[0].column) == (3, 1)


def test_unterminated_block_rule_summarises_further_problems() -> None:
    findings = run_rule(UnterminatedBlockRule, "int a;\n}\n}\n")
    assert messages(findings) == [
        "closing brace at line 2 has no matching opening brace "
        "(1 more structural problem(s) in file)"
    ]


def test_field_doc_rule_accepts_leading_and_trailing_descriptions() -> None:
    text = source(
        """
        /** @brief Sensor sample. */
        typedef struct
        {
          uint16_t raw; ///< Raw ADC count.
          /** @brief Scaled value. */
          int32_t scaled;
          uint8_t flags;
        } sample_t;

        /** @brief Modes. */
        enum mode
        {
          MODE_A, ///< First mode.
          MODE_B
        };
        """
    )
    findings = run_rule(FieldDocRule, text)
    assert messages(findings) == [
        "struct field 'flags' has no description",
        "enum value 'MODE_B' has no description",
    ]
    assert [(finding.line, finding.column) for finding in findings] == [(7, 3), (14, 3)]


def test_doxygen_comment_style_rule_flags_plain_comments() -> None:
    text = source(
        """
        /** @file sample.c */
        /* plain block */
        uint8_t first;
        // plain line
        uint8_t second;
        //! Doxygen line.
        void Run(uint8_t mode)
        {
          switch( mode )
          {
            case MODE_A:
              Start();
              /* fall through */
            default:
              break;
          }
        }
        """
    )
    findings = run_rule(DoxygenCommentStyleRule, text)
    assert [(finding.line, finding.column) for finding in findings] == [(2, 1), (4, 1)]
    assert set(messages(findings)) == {"comment is not Doxygen compatible"}


def test_function_diagram_rule_requires_diagram_for_switch_machines() -> None:
    text = source(
        """
        /**
         * @brief Step the machine.
         *
         * ```mermaid
         * stateDiagram-v2
         *   IDLE --> RUN
         * ```
         */
        void Step(void)
        {
          switch( state )
          {
            default:
              break;
          }
        }

        /** @brief Step the other machine. */
        void Other(void)
        {
          switch( state )
          {
            default:
              break;
          }
        }

        /** @brief Start without a state machine. */
        void Plain(void)
        {
          Start();
        }
        """
    )
    findings = run_rule(FunctionDiagramRule, text)
    assert messages(findings) == ["function 'Other' implements a state machine without a diagram"]
    assert findings[0].line == 19
    assert findings[0].severity == "warning"
