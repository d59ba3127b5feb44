"""Function documentation rule tests."""

from __future__ import annotations

from c_conform.rules.comments import FunctionDocRule, FunctionReturnDocRule
from tests.helpers_source import messages, run_rule, source


def test_function_doc_rule_requires_comment_and_brief() -> None:
    text = source(
        """
        void SetMode(void);

        /** Sets the gain. */
        void SetGain(void);

        /** @brief Clear the gain. */
        void ClearGain(void);
        """
    )
    findings = run_rule(FunctionDocRule, text)
    assert messages(findings) == [
        "function 'SetMode' has no documentation comment",
        "documentation of 'SetGain' is missing @brief",
    ]
    assert findings[1].line == 3


def test_function_doc_rule_matches_params_against_signature() -> None:
    text = source(
        """
        /**
         * @brief Configure the timer.
         * @param period Timer period.
         * @param mode Unused name.
         */
        void ConfigureTimer(uint16_t period, uint8_t prescaler);
        """
    )
    findings = run_rule(FunctionDocRule, text)
    assert messages(findings) == [
        "parameter 'prescaler' of 'ConfigureTimer' is not documented with @param",
        "@param 'mode' does not match any parameter of 'ConfigureTimer'",
    ]
    assert findings[0].suggestion == "Add '@param prescaler <description>'."


def test_function_doc_rule_accepts_documented_prototype_for_definition() -> None:
    text = source(
        """
        /** @brief Start the motor. */
        void StartMotor(void);

        void StartMotor(void)
        {
        }
        """
    )
    assert run_rule(FunctionDocRule, text) == []


def test_function_return_doc_rule_only_checks_documented_non_void_functions() -> None:
    text = source(
        """
        /** @brief Read a byte. */
        uint8_t ReadByte(void);

        /** @brief Reset. */
        void ResetBus(void);

        /**
         * @brief Peek.
         * @return Next byte.
         */
        uint8_t PeekByte(void);

        /** @brief Buffer start. */
        void *GetBuffer(void);

        uint8_t Undocumented(void);
        """
    )
    findings = run_rule(FunctionReturnDocRule, text)
    assert messages(findings) == [
        "documentation of 'ReadByte' is missing @return",
        "documentation of 'GetBuffer' is missing @return",
    ]
