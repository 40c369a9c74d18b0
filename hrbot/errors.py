"""Exception hierarchy for the HR assistant.

A guardrail block is not an error: it is a normal terminal outcome of the
agent and is represented by a verdict, not an exception.
"""


class HRBotError(Exception):
    """Base exception for the HR assistant."""


class ValidationError(HRBotError):
    """Raised when an inbound request is malformed.

    Rejected before the agent runs; the caller sees a generic message.
    """

    def __init__(self, details: list[dict] | None = None) -> None:
        self.details = details or []
        super().__init__("Invalid input")


class ToolExecutionError(HRBotError):
    """Raised inside a tool when it cannot produce a result.

    The registry converts it into a failed ToolResult so sibling tool
    calls and the agent loop keep going.
    """


class UpstreamError(HRBotError):
    """Raised when the model backend or remote policy index fails."""

    def __init__(self, service: str, detail: str = "") -> None:
        self.service = service
        self.detail = detail
        message = f"{service} request failed"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
