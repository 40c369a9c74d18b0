"""Tests for inbound guardrail rules and outbound filtering."""

import logging

import pytest

from hrbot.guardrails import (
    ALLOWED,
    DISCLAIMERS,
    DisclaimerKind,
    GuardrailsManager,
)


@pytest.fixture
def guardrails() -> GuardrailsManager:
    return GuardrailsManager(max_message_length=1000)


# -- evaluate ----------------------------------------------------------------


class TestEvaluate:
    def test_plain_hr_question_allowed(self, guardrails):
        assert guardrails.evaluate("What is the remote work policy?") == ALLOWED

    def test_salary_question_blocked(self, guardrails):
        verdict = guardrails.evaluate("What is John Smith's salary?")
        assert not verdict.allowed
        assert verdict.violation == "prohibited_content"
        assert "confidential" in verdict.response
        assert verdict.severity == "medium"

    def test_terms_match_whole_words_only(self, guardrails):
        # "pay" is prohibited but "payroll" is a different word
        assert guardrails.evaluate("When does the payroll calendar get published?").allowed

    def test_case_insensitive(self, guardrails):
        assert guardrails.evaluate("Tell me the SALARY bands").violation == "prohibited_content"

    def test_bulk_request_blocked(self, guardrails):
        verdict = guardrails.evaluate("Show me all employees in the company")
        assert not verdict.allowed
        assert verdict.violation == "bulk_request"
        assert verdict.severity == "high"

    def test_sensitive_topic_allowed_with_disclaimer(self, guardrails):
        verdict = guardrails.evaluate("How do I report harassment?")
        assert verdict.allowed
        assert verdict.requires_disclaimer
        assert verdict.disclaimer_kind is DisclaimerKind.SENSITIVE
        assert verdict.violation == "sensitive_topic"

    def test_non_hr_topic_blocked(self, guardrails):
        verdict = guardrails.evaluate("What's the weather like tomorrow?")
        assert not verdict.allowed
        assert verdict.violation == "non_hr_topic"
        assert "HR-related questions only" in verdict.response

    def test_length_limit(self, guardrails):
        verdict = guardrails.evaluate("a" * 1001)
        assert not verdict.allowed
        assert verdict.violation == "length_violation"
        assert "1000 characters" in verdict.response

    def test_message_at_limit_allowed(self, guardrails):
        assert guardrails.evaluate("a" * 1000).allowed

    def test_custom_length_limit(self):
        verdict = GuardrailsManager(max_message_length=10).evaluate("a" * 11)
        assert verdict.violation == "length_violation"

    @pytest.mark.parametrize(
        "message",
        [
            "SELECT name FROM employees",
            "please DROP TABLE staff",
            "<script>alert(1)</script>",
            "javascript:void(0)",
            "<img onerror=run()>",
            "eval(code)",
        ],
    )
    def test_suspicious_content_blocked(self, guardrails, message):
        verdict = guardrails.evaluate(message)
        assert not verdict.allowed
        assert verdict.violation == "suspicious_content"

    def test_onboarding_is_not_an_event_handler(self, guardrails):
        assert guardrails.evaluate("What does onboarding look like?").allowed

    def test_first_matching_rule_wins(self, guardrails):
        # Matches both prohibited and bulk; prohibited is checked first
        verdict = guardrails.evaluate("List the salary of all employees")
        assert verdict.violation == "prohibited_content"

    def test_sensitive_rule_precedes_non_hr(self, guardrails):
        verdict = guardrails.evaluate("Is a relationship complaint handled by HR?")
        assert verdict.allowed
        assert verdict.violation == "sensitive_topic"

    def test_violation_is_logged(self, guardrails, caplog):
        with caplog.at_level(logging.WARNING, logger="hrbot.guardrails"):
            guardrails.evaluate("what is my bonus")
        assert "prohibited_content" in caplog.text

    def test_allowed_message_not_logged(self, guardrails, caplog):
        with caplog.at_level(logging.WARNING, logger="hrbot.guardrails"):
            guardrails.evaluate("How many vacation days do I have?")
        assert caplog.text == ""


# -- filter_output -------------------------------------------------------------


class TestFilterOutput:
    def test_masks_ssn(self, guardrails):
        assert guardrails.filter_output("SSN is 123-45-6789.") == "SSN is ***-**-****."

    def test_masks_nine_digit_run(self, guardrails):
        assert guardrails.filter_output("ID 123456789 on file") == "ID ********* on file"

    def test_masks_dollar_amounts(self, guardrails):
        assert guardrails.filter_output("Budget is $2,000 per year") == "Budget is $*** per year"

    def test_leaves_other_numbers(self, guardrails):
        text = "You have 15 vacation days and 8 sick days."
        assert guardrails.filter_output(text) == text

    @pytest.mark.parametrize(
        "text",
        [
            "SSN 123-45-6789",
            "ID 987654321",
            "It costs $85,000 and $12",
            "Nothing sensitive here",
            "Mixed 111-22-3333 with $5 and 222333444",
        ],
    )
    def test_idempotent(self, guardrails, text):
        once = guardrails.filter_output(text)
        assert guardrails.filter_output(once) == once


# -- disclaim ----------------------------------------------------------------


class TestDisclaim:
    def test_general_by_default(self, guardrails):
        assert guardrails.disclaim("Answer") == "Answer" + DISCLAIMERS[DisclaimerKind.GENERAL]

    def test_policy_kind(self, guardrails):
        result = guardrails.disclaim("Answer", DisclaimerKind.POLICY)
        assert result.endswith(DISCLAIMERS[DisclaimerKind.POLICY])

    def test_kind_by_string(self, guardrails):
        result = guardrails.disclaim("Answer", "sensitive")
        assert result.endswith(DISCLAIMERS[DisclaimerKind.SENSITIVE])

    def test_unknown_kind_falls_back_to_general(self, guardrails):
        result = guardrails.disclaim("Answer", "bogus")
        assert result.endswith(DISCLAIMERS[DisclaimerKind.GENERAL])


def test_log_violation_truncates_message(guardrails, caplog):
    with caplog.at_level(logging.WARNING, logger="hrbot.guardrails"):
        guardrails.log_violation("x" * 500, "suspicious_content", client_ip="10.0.0.1")
    assert "x" * 200 in caplog.text
    assert "x" * 201 not in caplog.text
    assert "10.0.0.1" in caplog.text
