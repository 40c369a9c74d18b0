"""HR assistant agent: guardrails, Claude tool calling and post-processing.

One inbound message moves through these states::

    PRE_CHECK -> FIRST_CALL -> [TOOL_DISPATCH -> SECOND_CALL] -> POST_PROCESS -> ANSWERED
    PRE_CHECK -> BLOCKED
    FIRST_CALL .. POST_PROCESS -> ERRORED (on any exception)

At most two model calls are made per message. Tool calls requested in the
first reply are executed in order; a failing tool does not stop the others.
The second call sees every tool result and may not call tools again.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from hrbot.config import settings
from hrbot.errors import ToolExecutionError
from hrbot.guardrails import DisclaimerKind, GuardrailsManager, GuardrailVerdict
from hrbot.llm import client as llm
from hrbot.llm.prompt import SYSTEM_PROMPT, build_messages
from hrbot.memory.store import ConversationStore
from hrbot.tools import (
    CalculatorTool,
    EmployeeLookupTool,
    PolicySearchTool,
    ToolRegistry,
    build_registry,
)

logger = logging.getLogger(__name__)

ERROR_MESSAGE = (
    "I apologize, but I'm having trouble processing your request right now. "
    "Please try again in a moment, or contact HR directly if you need immediate assistance."
)

# Tools whose output warrants the general disclaimer.
DISCLAIMER_TOOLS = frozenset({"policy_search", "employee_lookup"})


class AgentState(StrEnum):
    PRE_CHECK = "pre_check"
    FIRST_CALL = "first_call"
    TOOL_DISPATCH = "tool_dispatch"
    SECOND_CALL = "second_call"
    POST_PROCESS = "post_process"
    ANSWERED = "answered"
    BLOCKED = "blocked"
    ERRORED = "errored"


class ResponseType(StrEnum):
    GENERAL = "general"
    POLICY = "policy_response"
    EMPLOYEE = "employee_response"
    CALCULATION = "calculation_response"
    TOOL = "tool_response"
    GUARDRAIL_BLOCK = "guardrail_block"
    ERROR = "error"


# First tool present in this list decides the response type.
RESPONSE_TYPE_PRIORITY: tuple[tuple[str, ResponseType], ...] = (
    ("policy_search", ResponseType.POLICY),
    ("employee_lookup", ResponseType.EMPLOYEE),
    ("calculator", ResponseType.CALCULATION),
)


@dataclass(frozen=True)
class ToolCall:
    call_id: str
    tool_name: str
    arguments: dict[str, Any]


@dataclass(frozen=True)
class ToolCallResult:
    call_id: str
    tool_name: str
    content: dict[str, Any]
    success: bool

    def to_block(self) -> dict[str, Any]:
        """Claude tool_result content block."""
        return {
            "type": "tool_result",
            "tool_use_id": self.call_id,
            "content": json.dumps(self.content, default=str),
            "is_error": not self.success,
        }


@dataclass
class AgentResponse:
    response: str
    type: ResponseType
    sources: list[dict[str, Any]] = field(default_factory=list)
    tools_used: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "response": self.response,
            "type": str(self.type),
            "sources": self.sources,
            "toolsUsed": self.tools_used,
        }


@dataclass
class AgentRun:
    """Trace of one message through the agent; inspectable after the fact."""

    message: str
    session_id: str
    state: AgentState = AgentState.PRE_CHECK
    states: list[AgentState] = field(default_factory=lambda: [AgentState.PRE_CHECK])
    verdict: GuardrailVerdict | None = None
    tool_calls: list[ToolCall] = field(default_factory=list)
    tool_results: list[ToolCallResult] = field(default_factory=list)
    model_calls: int = 0
    final_text: str = ""
    response: AgentResponse | None = None
    error: str | None = None

    def advance(self, state: AgentState) -> None:
        self.state = state
        self.states.append(state)


# ---------------------------------------------------------------------------
# Post-processing helpers
# ---------------------------------------------------------------------------


def extract_sources(results: list[ToolCallResult]) -> list[dict[str, Any]]:
    """Source references from successful tool results, in call order."""
    sources: list[dict[str, Any]] = []
    for result in results:
        if not result.success:
            continue
        content = result.content
        if result.tool_name == "policy_search":
            sources.extend(
                {
                    "type": "policy",
                    "title": policy.get("title"),
                    "section": policy.get("section"),
                    "last_updated": policy.get("last_updated"),
                    "id": policy.get("id"),
                }
                for policy in content.get("results", [])
            )
        elif result.tool_name == "employee_lookup":
            sources.append({
                "type": "employee_data",
                "count": content.get("count"),
                "search_type": content.get("search_type"),
            })
        elif result.tool_name == "calculator":
            sources.append({
                "type": "calculation",
                "calculation_type": content.get("type"),
                "expression": content.get("expression"),
            })
    return sources


def determine_response_type(results: list[ToolCallResult]) -> ResponseType:
    if not results:
        return ResponseType.GENERAL
    names = {r.tool_name for r in results}
    for tool_name, response_type in RESPONSE_TYPE_PRIORITY:
        if tool_name in names:
            return response_type
    return ResponseType.TOOL


# ---------------------------------------------------------------------------
# Agent
# ---------------------------------------------------------------------------


class HRChatbotAgent:
    """Answers HR questions with Claude and the HR tools.

    Args:
        store: Conversation memory; answered turns are appended to it.
        guardrails: Policy engine (default instance if omitted).
        employee_lookup, calculator, policy_search: Tool instances; defaults
            are created from settings.
        registry: Prebuilt registry; built from the tool instances if omitted.
    """

    def __init__(
        self,
        store: ConversationStore,
        guardrails: GuardrailsManager | None = None,
        employee_lookup: EmployeeLookupTool | None = None,
        calculator: CalculatorTool | None = None,
        policy_search: PolicySearchTool | None = None,
        registry: ToolRegistry | None = None,
    ) -> None:
        self.store = store
        self.guardrails = guardrails or GuardrailsManager()
        self.employee_lookup = employee_lookup or EmployeeLookupTool()
        self.calculator = calculator or CalculatorTool()
        self.policy_search = policy_search or PolicySearchTool()
        self.registry = registry or build_registry(
            self.employee_lookup, self.calculator, self.policy_search
        )

    async def process_message(self, message: str, session_id: str = "default") -> AgentResponse:
        """Run the full pipeline and return only the response."""
        run = await self.run(message, session_id)
        return run.response

    async def run(self, message: str, session_id: str = "default") -> AgentRun:
        """Run the full pipeline and return the trace."""
        run = AgentRun(message=message, session_id=session_id)

        run.verdict = self.guardrails.evaluate(message)
        if not run.verdict.allowed:
            run.response = AgentResponse(
                response=run.verdict.response or "", type=ResponseType.GUARDRAIL_BLOCK
            )
            run.advance(AgentState.BLOCKED)
            logger.info("Session %s: message blocked (%s)", session_id, run.verdict.violation)
            return run

        try:
            await self._answer(run)
        except Exception as exc:
            logger.exception("Session %s: agent failed in state %s", session_id, run.state)
            run.error = type(exc).__name__
            run.response = AgentResponse(response=ERROR_MESSAGE, type=ResponseType.ERROR)
            run.advance(AgentState.ERRORED)
            return run

        self.store.append(session_id, "user", message)
        self.store.append(
            session_id,
            "assistant",
            run.response.response,
            {"type": str(run.response.type), "tools_used": run.response.tools_used},
        )
        run.advance(AgentState.ANSWERED)
        return run

    async def _answer(self, run: AgentRun) -> None:
        history = self.store.read(run.session_id)
        messages = build_messages(run.message, history)
        schemas = self.registry.get_schemas()

        run.advance(AgentState.FIRST_CALL)
        first = await llm.create_message(
            messages, system=SYSTEM_PROMPT, tools=schemas, tool_choice="auto"
        )
        run.model_calls += 1
        run.tool_calls = [
            ToolCall(call_id=block.id, tool_name=block.name, arguments=dict(block.input or {}))
            for block in first.content
            if block.type == "tool_use"
        ]

        if run.tool_calls:
            run.advance(AgentState.TOOL_DISPATCH)
            logger.info(
                "Session %s: %d tool call(s): %s",
                run.session_id,
                len(run.tool_calls),
                ", ".join(c.tool_name for c in run.tool_calls),
            )
            run.tool_results = await self.execute_tools(run.tool_calls)

            run.advance(AgentState.SECOND_CALL)
            follow_up = [
                *messages,
                {"role": "assistant", "content": llm.serialize_content(first.content)},
                {"role": "user", "content": [r.to_block() for r in run.tool_results]},
            ]
            second = await llm.create_message(
                follow_up, system=SYSTEM_PROMPT, tools=schemas, tool_choice="none"
            )
            run.model_calls += 1
            run.final_text = llm.response_text(second.content)
        else:
            run.final_text = llm.response_text(first.content)

        run.advance(AgentState.POST_PROCESS)
        run.response = self.format_response(run.final_text, run.tool_results, run.verdict)

    async def execute_tools(self, tool_calls: list[ToolCall]) -> list[ToolCallResult]:
        """Execute each call in order; the registry turns failures into results."""
        results: list[ToolCallResult] = []
        for call in tool_calls:
            result = await self.registry.execute(call.tool_name, call.arguments)
            results.append(
                ToolCallResult(
                    call_id=call.call_id,
                    tool_name=call.tool_name,
                    content=result.to_dict(),
                    success=result.success,
                )
            )
        return results

    def format_response(
        self,
        text: str,
        tool_results: list[ToolCallResult],
        verdict: GuardrailVerdict | None = None,
    ) -> AgentResponse:
        """Filter, disclaim and classify the final model text."""
        filtered = self.guardrails.filter_output(text)

        kinds: list[DisclaimerKind] = []
        if any(r.tool_name in DISCLAIMER_TOOLS for r in tool_results):
            kinds.append(DisclaimerKind.GENERAL)
        if verdict is not None and verdict.requires_disclaimer:
            kinds.append(verdict.disclaimer_kind or DisclaimerKind.GENERAL)
        for kind in dict.fromkeys(kinds):
            filtered = self.guardrails.disclaim(filtered, kind)

        return AgentResponse(
            response=filtered,
            type=determine_response_type(tool_results),
            sources=extract_sources(tool_results),
            tools_used=list(dict.fromkeys(r.tool_name for r in tool_results)),
        )

    # -- Status and canned scenarios --------------------------------------------

    def get_status(self) -> dict[str, Any]:
        names = set(self.registry.tool_names)
        return {
            "initialized": True,
            "tools": {
                name: "available" if name in names else "unavailable"
                for name in ("employee_lookup", "calculator", "policy_search")
            },
            "anthropic_configured": settings.anthropic_configured,
            "vectorize_configured": self.policy_search.remote_configured,
        }

    async def handle_scenario(self, scenario: str, params: dict[str, Any]) -> dict[str, Any]:
        """Run a canned HR flow directly against the tools, without the model."""
        if scenario == "vacation_calculation":
            return await self._vacation_scenario(params["employee_id"], params["days_to_take"])
        if scenario == "employee_benefits":
            return await self._benefits_scenario(params["employee_id"])
        if scenario == "policy_question":
            return await self._policy_scenario(params["query"], params.get("section"))
        msg = f"Unknown scenario: {scenario}"
        raise ValueError(msg)

    async def _vacation_scenario(self, employee_id: str, days_to_take: float) -> dict[str, Any]:
        lookup = await self.employee_lookup.execute(query=str(employee_id), type="id")
        if not lookup.success or not lookup.data["results"]:
            msg = "Employee not found"
            raise ToolExecutionError(msg)

        employee = lookup.data["results"][0]
        balance = float(employee["vacation_balance"] or 0)
        calculation = await self.calculator.execute(
            expression=f"{balance} - {days_to_take}",
            type="vacation_calculation",
            context={"current_balance": balance, "days_to_take": days_to_take},
        )
        if calculation.success:
            formatted = (
                f"{employee['name']} currently has {employee['vacation_balance']} vacation days. "
                f"{calculation.data['explanation']}"
            )
        else:
            formatted = "Unable to calculate vacation balance."
        return {
            "employee": employee,
            "calculation": calculation.to_dict(),
            "formatted_response": formatted,
        }

    async def _benefits_scenario(self, employee_id: str) -> dict[str, Any]:
        result = await self.employee_lookup.get_benefits_info(str(employee_id))
        if not result.success:
            msg = "Unable to retrieve benefits information"
            raise ToolExecutionError(msg)

        benefits = result.data["benefits"]
        lines = [f"Benefits information for {benefits['name']}:", ""]
        for label, key in (
            ("Health Insurance", "health_insurance"),
            ("Dental Insurance", "dental_insurance"),
            ("Vision Insurance", "vision_insurance"),
            ("Life Insurance", "life_insurance"),
            ("Disability Insurance", "disability_insurance"),
            ("Retirement Plan", "retirement_plan"),
        ):
            lines.append(f"• {label}: {benefits.get(key, '')}")
        return {"benefits": benefits, "formatted_response": "\n".join(lines)}

    async def _policy_scenario(self, query: str, section: str | None) -> dict[str, Any]:
        result = await self.policy_search.execute(query=query, section=section)
        if not result.success:
            msg = "Unable to search policies"
            raise ToolExecutionError(msg)

        policies = result.data["results"]
        formatted = self.guardrails.disclaim(
            self.policy_search.format_policy_results(policies), DisclaimerKind.POLICY
        )
        return {"policies": policies, "formatted_response": formatted}
