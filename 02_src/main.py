"""Main entry point for the chat connection client."""

import asyncio
import os
from pathlib import Path

from dotenv import load_dotenv

from chatconn import ChatConnection, ChatSettings, CursorStore
from chatconn.logging_config import get_logger, setup_logging

logger = get_logger(__name__)


async def run(settings: ChatSettings) -> None:
    """Log in, join the room and report new messages until cancelled."""
    email = os.environ["CHAT_EMAIL"]
    password = os.environ["CHAT_PASSWORD"]
    room_id = int(os.environ["CHAT_ROOM"])
    greeting = os.getenv("CHAT_GREETING")
    poll_interval = float(os.getenv("CHAT_POLL_INTERVAL", "3"))

    store = CursorStore(os.getenv("CHAT_DATABASE_URL"))
    await store.init()
    try:
        async with ChatConnection(settings, cursor_store=store) as chat:
            await chat.login(email, password)
            await chat.join_room(room_id)
            logger.info("Joined room %s", room_id)

            if greeting:
                chat.send_message(room_id, greeting)

            while True:
                for message in await chat.get_new_messages(room_id):
                    logger.info(
                        "[%s] %s: %s",
                        message.room_id,
                        message.username,
                        message.content,
                        extra={"context": {"message_id": message.message_id}},
                    )
                await asyncio.sleep(poll_interval)
    finally:
        await store.close()


def main():
    """Run the client."""
    project_root = Path(__file__).resolve().parent.parent
    load_dotenv(project_root / ".env")
    setup_logging()

    try:
        asyncio.run(run(ChatSettings.from_env()))
    except KeyboardInterrupt:
        logger.info("Interrupted, exiting")


if __name__ == "__main__":
    main()
