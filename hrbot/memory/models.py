"""Data models for conversation memory."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Topic(StrEnum):
    VACATION = "vacation"
    SALARY = "salary"
    BENEFITS = "benefits"
    POLICY = "policy"
    PERFORMANCE = "performance"


class Turn(BaseModel):
    """A single conversation message. Never edited once created."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    role: str  # "user" or "assistant"
    content: str
    timestamp: str
    metadata: dict[str, Any] = Field(default_factory=dict)

    def to_api_message(self) -> dict[str, str]:
        """Format for the Claude messages API."""
        return {"role": self.role, "content": self.content}


@dataclass
class SessionContext:
    """Facts inferred from recent user messages.

    Timestamps are epoch seconds from the store's clock.
    """

    current_employee: str | None = None
    last_employee_query: float | None = None
    current_topic: Topic | None = None
    last_topic_query: float | None = None

    def clear(self) -> None:
        self.current_employee = None
        self.last_employee_query = None
        self.current_topic = None
        self.last_topic_query = None

    def copy(self) -> SessionContext:
        return SessionContext(
            current_employee=self.current_employee,
            last_employee_query=self.last_employee_query,
            current_topic=self.current_topic,
            last_topic_query=self.last_topic_query,
        )

    def to_dict(self) -> dict[str, Any]:
        """Only the fields that are set, in API casing."""
        data: dict[str, Any] = {}
        if self.current_employee is not None:
            data["currentEmployee"] = self.current_employee
            data["lastEmployeeQuery"] = self.last_employee_query
        if self.current_topic is not None:
            data["currentTopic"] = str(self.current_topic)
            data["lastTopicQuery"] = self.last_topic_query
        return data


@dataclass
class Session:
    """Conversation state for one session key. Owned by the store."""

    session_id: str
    created_at: float
    last_activity: float
    messages: list[Turn] = field(default_factory=list)
    context: SessionContext = field(default_factory=SessionContext)


@dataclass(frozen=True)
class Conversation:
    """Read-only snapshot of a session returned to callers."""

    messages: tuple[Turn, ...] = ()
    context: SessionContext = field(default_factory=SessionContext)

    def to_api_messages(self) -> list[dict[str, str]]:
        return [turn.to_api_message() for turn in self.messages]

    def to_dict(self) -> dict[str, Any]:
        return {
            "messages": [turn.model_dump() for turn in self.messages],
            "context": self.context.to_dict(),
        }
