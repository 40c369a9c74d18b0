"""In-memory conversation store with sliding window and idle expiry.

Sessions live only for the process lifetime. Each session keeps the last
``max_messages`` turns plus a small context inferred from user messages.
Idle sessions are removed by a recurring sweep job that the store owns
(``start()`` / ``stop()``).
"""

from __future__ import annotations

import logging
import re
import time
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from hrbot.config import settings
from hrbot.memory.models import Conversation, Session, Topic, Turn

logger = logging.getLogger(__name__)

SWEEP_JOB_ID = "session-sweep"

ROLES = frozenset({"user", "assistant"})

NAME_PATTERN = re.compile(r"\b([A-Z][a-z]+ [A-Z][a-z]+)\b")

# Order matters: the first topic with a matching keyword wins.
TOPIC_KEYWORDS: tuple[tuple[Topic, tuple[str, ...]], ...] = (
    (Topic.VACATION, ("vacation", "time off", "pto", "leave")),
    (Topic.SALARY, ("salary", "pay", "compensation", "wage")),
    (Topic.BENEFITS, ("benefits", "insurance", "health", "dental", "vision")),
    (Topic.POLICY, ("policy", "rule", "procedure", "guideline")),
    (Topic.PERFORMANCE, ("performance", "review", "evaluation", "rating")),
)


def detect_employee(content: str) -> str | None:
    """Return the first ``Firstname Lastname`` pair in the text, if any."""
    match = NAME_PATTERN.search(content)
    return match.group(1) if match else None


def detect_topic(content: str) -> Topic | None:
    """Return the first topic in table order whose keywords appear in the text."""
    lowered = content.lower()
    for topic, keywords in TOPIC_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return topic
    return None


class ConversationStore:
    """Session map keyed by session ID.

    Args:
        max_messages: Turns kept per session (default from settings).
        session_timeout: Idle seconds before a session is swept.
        sweep_interval: Seconds between sweeps.
        context_staleness: Seconds after which inferred context is dropped.
        clock: Returns the current time in epoch seconds.
    """

    def __init__(
        self,
        max_messages: int | None = None,
        session_timeout: float | None = None,
        sweep_interval: float | None = None,
        context_staleness: float | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.max_messages = max_messages or settings.max_messages_per_session
        self.session_timeout = session_timeout or settings.session_timeout_minutes * 60
        self.sweep_interval = sweep_interval or settings.sweep_interval_minutes * 60
        self.context_staleness = context_staleness or settings.context_staleness_minutes * 60
        self._clock = clock
        self._sessions: dict[str, Session] = {}
        self._scheduler: AsyncIOScheduler | None = None

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    @property
    def running(self) -> bool:
        return self._scheduler is not None

    # -- Lifecycle -------------------------------------------------------------

    async def start(self) -> None:
        """Schedule the recurring sweep on the running event loop."""
        if self._scheduler is not None:
            return
        self._scheduler = AsyncIOScheduler()
        self._scheduler.add_job(
            self._run_sweep,
            trigger=IntervalTrigger(seconds=self.sweep_interval),
            id=SWEEP_JOB_ID,
            name="Expire idle sessions",
            replace_existing=True,
        )
        self._scheduler.start()
        logger.info(
            "Session sweep started (every %ds, timeout %ds)",
            self.sweep_interval,
            self.session_timeout,
        )

    async def stop(self) -> None:
        """Cancel the sweep job."""
        if self._scheduler is not None:
            self._scheduler.shutdown(wait=False)
            self._scheduler = None
            logger.info("Session sweep stopped")

    async def _run_sweep(self) -> None:
        self.sweep()

    # -- Operations ------------------------------------------------------------

    def append(
        self,
        session_id: str,
        role: str,
        content: str,
        metadata: dict[str, Any] | None = None,
    ) -> Turn:
        """Append a turn, creating the session on first write."""
        if role not in ROLES:
            msg = f"Unknown role '{role}'"
            raise ValueError(msg)

        now = self._clock()
        session = self._sessions.get(session_id)
        if session is None:
            session = Session(session_id=session_id, created_at=now, last_activity=now)
            self._sessions[session_id] = session
            logger.debug("Created session %s", session_id)

        turn = Turn(
            role=role,
            content=content,
            timestamp=datetime.fromtimestamp(now, UTC).isoformat(),
            metadata=dict(metadata or {}),
        )
        session.messages.append(turn)
        if len(session.messages) > self.max_messages:
            session.messages = session.messages[-self.max_messages :]

        session.last_activity = now
        self._update_context(session, role, content, now)
        return turn

    def read(self, session_id: str) -> Conversation:
        """Snapshot of a session's turns and context. Unknown IDs read as empty."""
        session = self._sessions.get(session_id)
        if session is None:
            return Conversation()

        session.last_activity = self._clock()
        return Conversation(messages=tuple(session.messages), context=session.context.copy())

    def clear(self, session_id: str) -> bool:
        """Delete a session. Returns whether it existed."""
        removed = self._sessions.pop(session_id, None) is not None
        if removed:
            logger.info("Cleared session %s", session_id)
        return removed

    def sweep(self) -> int:
        """Delete sessions idle for longer than the timeout. Returns the count."""
        now = self._clock()
        expired = [
            session_id
            for session_id, session in self._sessions.items()
            if now - session.last_activity > self.session_timeout
        ]
        for session_id in expired:
            self._sessions.pop(session_id, None)
        if expired:
            logger.info("Swept %d idle session(s)", len(expired))
        return len(expired)

    def get_session_info(self, session_id: str) -> dict[str, Any] | None:
        """Summary of a session without touching its activity time."""
        session = self._sessions.get(session_id)
        if session is None:
            return None
        return {
            "messageCount": len(session.messages),
            "created": session.created_at,
            "lastActivity": session.last_activity,
            "context": session.context.to_dict(),
        }

    # -- Internal --------------------------------------------------------------

    def _update_context(self, session: Session, role: str, content: str, now: float) -> None:
        context = session.context
        last_topic = context.last_topic_query
        if last_topic is not None and now - last_topic > self.context_staleness:
            context.clear()

        if role != "user":
            return

        employee = detect_employee(content)
        if employee:
            context.current_employee = employee
            context.last_employee_query = now

        topic = detect_topic(content)
        if topic:
            context.current_topic = topic
            context.last_topic_query = now
