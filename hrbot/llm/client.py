"""Async Claude API client used by the agent."""

from __future__ import annotations

import logging
from typing import Any

import anthropic

from hrbot.config import settings
from hrbot.errors import UpstreamError

logger = logging.getLogger(__name__)

_client: anthropic.AsyncAnthropic | None = None


def _get_client() -> anthropic.AsyncAnthropic:
    """Lazily initialize the Anthropic client."""
    global _client  # noqa: PLW0603
    if _client is None:
        _client = anthropic.AsyncAnthropic(api_key=settings.anthropic_api_key)
    return _client


def serialize_content(content: list[Any]) -> list[dict[str, Any]]:
    """Convert SDK content blocks to plain dicts for message history."""
    result: list[dict[str, Any]] = []
    for block in content:
        if block.type == "text":
            result.append({"type": "text", "text": block.text})
        elif block.type == "tool_use":
            result.append({
                "type": "tool_use",
                "id": block.id,
                "name": block.name,
                "input": block.input,
            })
    return result


def response_text(content: list[Any]) -> str:
    """Concatenate the text blocks of a response."""
    return "".join(block.text for block in content if block.type == "text")


async def create_message(
    messages: list[dict[str, Any]],
    *,
    system: str,
    tools: list[dict[str, Any]] | None = None,
    tool_choice: str | None = None,
    model: str | None = None,
    max_tokens: int | None = None,
    temperature: float | None = None,
) -> Any:
    """One non-streaming Claude call.

    Args:
        messages: Conversation in Claude API message format.
        system: System prompt.
        tools: Tool schemas to offer.
        tool_choice: ``"auto"`` to let the model pick tools, ``"none"`` to
            forbid tool use while still sending the schemas (required when
            the history holds tool_use blocks).

    Raises:
        UpstreamError: The API could not be reached or returned an error.
    """
    client = _get_client()
    kwargs: dict[str, Any] = {
        "model": model or settings.chat_model,
        "max_tokens": max_tokens or settings.model_max_tokens,
        "temperature": settings.model_temperature if temperature is None else temperature,
        "system": system,
        "messages": messages,
    }
    if tools:
        kwargs["tools"] = tools
        if tool_choice:
            kwargs["tool_choice"] = {"type": tool_choice}

    try:
        return await client.messages.create(**kwargs)
    except anthropic.APIError as exc:
        logger.error("Claude API error: %s", type(exc).__name__)
        raise UpstreamError("anthropic", type(exc).__name__) from exc
