"""Content policy checks for inbound questions and outbound answers.

Inbound messages run through an ordered rule table; the first matching rule
decides the verdict. Outbound text is masked for SSN-shaped numbers and
dollar amounts regardless of how the inbound message was judged.
"""

from __future__ import annotations

import contextlib
import logging
import re
from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum

from hrbot.config import settings

logger = logging.getLogger(__name__)


class DisclaimerKind(StrEnum):
    GENERAL = "general"
    POLICY = "policy"
    SENSITIVE = "sensitive"


DISCLAIMERS: dict[DisclaimerKind, str] = {
    DisclaimerKind.GENERAL: (
        "\n\n*Please note: This information is for general guidance only. "
        "For specific HR matters, contact HR directly.*"
    ),
    DisclaimerKind.POLICY: (
        "\n\n*Disclaimer: Policy information provided is for reference only. "
        "Always refer to the official employee handbook for authoritative policy details.*"
    ),
    DisclaimerKind.SENSITIVE: (
        "\n\n*Important: For sensitive HR matters, please speak directly with HR personnel. "
        "This information should not be considered as official HR advice.*"
    ),
}

SEVERITY: dict[str, str] = {
    "prohibited_content": "medium",
    "bulk_request": "high",
    "sensitive_topic": "low",
    "non_hr_topic": "low",
    "suspicious_content": "high",
    "length_violation": "low",
}

PROHIBITED_TERMS = (
    "salary", "wage", "compensation", "pay", "income", "bonus",
    "ssn", "social security", "personal information", "private",
    "confidential", "secret", "password", "login",
)

SENSITIVE_TERMS = (
    "discrimination", "harassment", "lawsuit", "legal action",
    "termination", "firing", "disciplinary action", "complaint",
)

NON_HR_TERMS = (
    "weather", "sports", "politics", "religion", "personal life",
    "dating", "relationship", "medical advice", "financial advice",
)

BULK_REQUEST_PATTERNS = (
    r"all employees",
    r"entire (database|list|roster)",
    r"everyone('s| in the)",
    r"complete (list|database)",
    r"full (roster|directory)",
)

SUSPICIOUS_PATTERNS = (
    r"\bSELECT\s+.*\bFROM\b",
    r"\bDROP\s+TABLE\b",
    r"\bINSERT\s+INTO\b",
    r"\bUPDATE\s+.*\bSET\b",
    r"\bDELETE\s+FROM\b",
    r"<script[^>]*>",
    r"javascript:",
    r"\bon\w+\s*=",
    r"eval\s*\(",
    r"exec\s*\(",
)

SSN_PATTERN = re.compile(r"\b\d{3}-\d{2}-\d{4}\b")
NINE_DIGIT_PATTERN = re.compile(r"\b\d{9}\b")
DOLLAR_PATTERN = re.compile(r"\$\d+,?\d*")


def _whole_words(terms: tuple[str, ...]) -> tuple[re.Pattern[str], ...]:
    return tuple(re.compile(rf"\b{re.escape(term)}\b", re.IGNORECASE) for term in terms)


def _regexes(patterns: tuple[str, ...]) -> tuple[re.Pattern[str], ...]:
    return tuple(re.compile(p, re.IGNORECASE) for p in patterns)


@dataclass(frozen=True)
class GuardrailVerdict:
    """Outcome of running an inbound message through the rule table."""

    allowed: bool
    response: str | None = None
    requires_disclaimer: bool = False
    disclaimer_kind: DisclaimerKind | None = None
    violation: str | None = None

    @property
    def severity(self) -> str | None:
        if self.violation is None:
            return None
        return SEVERITY.get(self.violation, "medium")


ALLOWED = GuardrailVerdict(allowed=True)


@dataclass(frozen=True)
class GuardrailRule:
    """One row of the ordered rule table: a check and the verdict it yields."""

    violation: str
    check: Callable[[str], bool]
    verdict: GuardrailVerdict


def _any_match(patterns: tuple[re.Pattern[str], ...]) -> Callable[[str], bool]:
    def check(message: str) -> bool:
        return any(p.search(message) for p in patterns)

    return check


def build_rules(max_length: int) -> list[GuardrailRule]:
    """Build the rule table in priority order."""
    return [
        GuardrailRule(
            violation="prohibited_content",
            check=_any_match(_whole_words(PROHIBITED_TERMS)),
            verdict=GuardrailVerdict(
                allowed=False,
                violation="prohibited_content",
                response=(
                    "I'm sorry, but I cannot provide salary or compensation information "
                    "as this is confidential. For questions about your own compensation, "
                    "please contact HR directly or check your employee portal."
                ),
            ),
        ),
        GuardrailRule(
            violation="bulk_request",
            check=_any_match(_regexes(BULK_REQUEST_PATTERNS)),
            verdict=GuardrailVerdict(
                allowed=False,
                violation="bulk_request",
                response=(
                    "I can't provide information about all employees at once for privacy "
                    "reasons. Please ask about specific employees or use more targeted queries."
                ),
            ),
        ),
        GuardrailRule(
            violation="sensitive_topic",
            check=_any_match(_whole_words(SENSITIVE_TERMS)),
            verdict=GuardrailVerdict(
                allowed=True,
                violation="sensitive_topic",
                requires_disclaimer=True,
                disclaimer_kind=DisclaimerKind.SENSITIVE,
            ),
        ),
        GuardrailRule(
            violation="non_hr_topic",
            check=_any_match(_whole_words(NON_HR_TERMS)),
            verdict=GuardrailVerdict(
                allowed=False,
                violation="non_hr_topic",
                response=(
                    "I'm designed to help with HR-related questions only. Please ask about "
                    "company policies, employee information, benefits, or other HR topics. "
                    "How can I assist you with HR matters today?"
                ),
            ),
        ),
        GuardrailRule(
            violation="length_violation",
            check=lambda message: len(message) > max_length,
            verdict=GuardrailVerdict(
                allowed=False,
                violation="length_violation",
                response=(
                    f"Please keep your questions concise (under {max_length} characters). "
                    "How can I help you with a specific HR question?"
                ),
            ),
        ),
        GuardrailRule(
            violation="suspicious_content",
            check=_any_match(_regexes(SUSPICIOUS_PATTERNS)),
            verdict=GuardrailVerdict(
                allowed=False,
                violation="suspicious_content",
                response=(
                    "I detected potentially problematic content in your message. "
                    "Please rephrase your HR question."
                ),
            ),
        ),
    ]


class GuardrailsManager:
    """Evaluates inbound messages and sanitizes outbound answers.

    Args:
        max_message_length: Length limit for inbound messages (default from settings).
    """

    def __init__(self, max_message_length: int | None = None) -> None:
        self.max_message_length = max_message_length or settings.max_message_length
        self.rules = build_rules(self.max_message_length)

    def evaluate(self, message: str) -> GuardrailVerdict:
        """Return the verdict of the first matching rule, or ALLOWED."""
        for rule in self.rules:
            if rule.check(message):
                self.log_violation(message, rule.violation)
                return rule.verdict
        return ALLOWED

    def filter_output(self, text: str) -> str:
        """Mask SSN-shaped numbers and dollar amounts."""
        filtered = SSN_PATTERN.sub("***-**-****", text)
        filtered = NINE_DIGIT_PATTERN.sub("*********", filtered)
        return DOLLAR_PATTERN.sub("$***", filtered)

    def disclaim(self, text: str, kind: DisclaimerKind | str = DisclaimerKind.GENERAL) -> str:
        """Append the disclaimer for ``kind``; unknown kinds get the general one."""
        try:
            kind = DisclaimerKind(kind)
        except ValueError:
            kind = DisclaimerKind.GENERAL
        return text + DISCLAIMERS[kind]

    def log_violation(self, message: str, violation: str, client_ip: str | None = None) -> None:
        """Record a violation for monitoring. Never raises."""
        with contextlib.suppress(Exception):
            logger.warning(
                "Guardrail violation: type=%s severity=%s client=%s message=%r",
                violation,
                SEVERITY.get(violation, "medium"),
                client_ip,
                message[:200],
            )
