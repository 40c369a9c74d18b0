"""aiohttp HTTP surface for the chat frontend.

Routes:
    GET    /api/health
    GET    /api/status
    POST   /api/chat
    GET    /api/conversation/{session_id}
    DELETE /api/conversation/{session_id}
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any

import pydantic
from aiohttp import web
from pydantic import BaseModel, ConfigDict, Field, field_validator

from hrbot.agent import AgentState, HRChatbotAgent
from hrbot.config import settings
from hrbot.errors import ValidationError
from hrbot.memory.store import ConversationStore

logger = logging.getLogger(__name__)

AGENT_KEY = web.AppKey("agent", HRChatbotAgent)
STORE_KEY = web.AppKey("store", ConversationStore)

INTERNAL_ERROR = (
    "I apologize, but I encountered an error processing your request. Please try again."
)


class ChatRequest(BaseModel):
    """Body of POST /api/chat."""

    model_config = ConfigDict(populate_by_name=True)

    message: str = Field(min_length=1, max_length=settings.max_message_length)
    session_id: str = Field(default="default", alias="sessionId")

    @field_validator("message", mode="before")
    @classmethod
    def _strip(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value


def _now() -> str:
    return datetime.now(UTC).isoformat()


async def _parse_chat_request(request: web.Request) -> ChatRequest:
    try:
        body = await request.json()
    except ValueError as exc:
        raise ValidationError([{"msg": "Body must be JSON"}]) from exc
    if not isinstance(body, dict):
        raise ValidationError([{"msg": "Body must be a JSON object"}])
    try:
        return ChatRequest.model_validate(body)
    except pydantic.ValidationError as exc:
        details = [{"loc": list(e["loc"]), "msg": e["msg"]} for e in exc.errors()]
        raise ValidationError(details) from exc


async def _health(request: web.Request) -> web.Response:
    """Basic liveness check."""
    return web.json_response({"status": "ok", "timestamp": _now()})


async def _status(request: web.Request) -> web.Response:
    return web.json_response(request.app[AGENT_KEY].get_status())


async def _chat(request: web.Request) -> web.Response:
    """Run one message through the agent."""
    try:
        chat = await _parse_chat_request(request)
    except ValidationError as exc:
        logger.info("Rejected chat request: %s", exc.details)
        return web.json_response({"error": "Invalid input", "details": exc.details}, status=400)

    agent = request.app[AGENT_KEY]
    run = await agent.run(chat.message, chat.session_id)

    if run.state is AgentState.BLOCKED:
        # Keep refused exchanges in history so follow-ups read naturally.
        store = request.app[STORE_KEY]
        store.append(chat.session_id, "user", chat.message)
        store.append(
            chat.session_id,
            "assistant",
            run.response.response,
            {"type": str(run.response.type), "violation": run.verdict.violation},
        )

    return web.json_response({**run.response.to_dict(), "timestamp": _now()})


async def _get_conversation(request: web.Request) -> web.Response:
    session_id = request.match_info["session_id"]
    conversation = request.app[STORE_KEY].read(session_id)
    return web.json_response({"conversation": conversation.to_dict(), "sessionId": session_id})


async def _clear_conversation(request: web.Request) -> web.Response:
    session_id = request.match_info["session_id"]
    request.app[STORE_KEY].clear(session_id)
    return web.json_response({"message": "Conversation cleared", "sessionId": session_id})


@web.middleware
async def _error_middleware(request: web.Request, handler) -> web.StreamResponse:
    """Turn unexpected failures into a generic 500 without internal detail."""
    try:
        return await handler(request)
    except web.HTTPException:
        raise
    except Exception:
        logger.exception("Unhandled error on %s %s", request.method, request.path)
        return web.json_response({"error": INTERNAL_ERROR, "timestamp": _now()}, status=500)


@web.middleware
async def _cors_middleware(request: web.Request, handler) -> web.StreamResponse:
    """Allow the configured frontend origin."""
    if request.method == "OPTIONS":
        response: web.StreamResponse = web.Response(status=204)
    else:
        response = await handler(request)
    response.headers["Access-Control-Allow-Origin"] = settings.frontend_url
    response.headers["Access-Control-Allow-Credentials"] = "true"
    response.headers["Access-Control-Allow-Methods"] = "GET, POST, DELETE, OPTIONS"
    response.headers["Access-Control-Allow-Headers"] = "Content-Type"
    return response


def create_web_app(agent: HRChatbotAgent, store: ConversationStore) -> web.Application:
    """Build the aiohttp Application with routes."""
    app = web.Application(middlewares=[_cors_middleware, _error_middleware])
    app[AGENT_KEY] = agent
    app[STORE_KEY] = store
    app.router.add_get("/api/health", _health)
    app.router.add_get("/api/status", _status)
    app.router.add_post("/api/chat", _chat)
    app.router.add_get("/api/conversation/{session_id}", _get_conversation)
    app.router.add_delete("/api/conversation/{session_id}", _clear_conversation)
    return app


class ChatServer:
    """Manages the aiohttp server and the conversation sweep lifecycle."""

    def __init__(
        self,
        agent: HRChatbotAgent,
        store: ConversationStore,
        host: str | None = None,
        port: int | None = None,
    ) -> None:
        self.agent = agent
        self.store = store
        self.host = host or settings.server_host
        self.port = settings.server_port if port is None else port
        self._runner: web.AppRunner | None = None

    async def start(self) -> None:
        """Start the session sweep and begin listening."""
        await self.store.start()
        app = create_web_app(self.agent, self.store)
        self._runner = web.AppRunner(app)
        await self._runner.setup()
        site = web.TCPSite(self._runner, self.host, self.port)
        await site.start()
        logger.info("HR assistant listening on %s:%d", self.host, self.port)

    async def stop(self) -> None:
        """Shut down the server and cancel the sweep."""
        if self._runner is not None:
            await self._runner.cleanup()
            self._runner = None
            logger.info("HR assistant server stopped")
        await self.store.stop()
