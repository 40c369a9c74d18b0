"""Short-lived conversation memory."""

from hrbot.memory.models import Conversation, Session, SessionContext, Topic, Turn
from hrbot.memory.store import ConversationStore

__all__ = ["Conversation", "ConversationStore", "Session", "SessionContext", "Topic", "Turn"]
