"""HR assistant entry point."""

import asyncio
import contextlib
import logging

from hrbot.config import settings

logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=settings.log_level.upper(),
)
logger = logging.getLogger(__name__)


async def serve() -> None:
    """Wire the store, agent and server, then run until cancelled."""
    from hrbot.agent import HRChatbotAgent
    from hrbot.memory.store import ConversationStore
    from hrbot.server import ChatServer

    if not settings.anthropic_configured:
        logger.warning("ANTHROPIC_API_KEY is empty, chat requests will return errors")

    store = ConversationStore()
    agent = HRChatbotAgent(store)
    server = ChatServer(agent, store)
    await server.start()
    try:
        await asyncio.Event().wait()
    finally:
        await server.stop()


def main() -> None:
    """Start the HR assistant backend."""
    logger.info("Starting HR assistant with model %s...", settings.chat_model)
    with contextlib.suppress(KeyboardInterrupt):
        asyncio.run(serve())


if __name__ == "__main__":
    main()
