"""Chat connection bootstrap and public operations."""

import asyncio
from typing import Protocol

import httpx

from .config import ChatSettings
from .dispatcher import OutboundDispatcher
from .exceptions import LoginError
from .http import RequestExecutor, RetryPolicy, Sleep
from .logging_config import get_logger
from .models import ChatMessage
from .poller import IncrementalPoller
from .session import TokenCache
from .splitting import SplitStrategy
from .storage import ICursorStore

logger = get_logger(__name__)


class IChatConnection(Protocol):
    """A logical connection to the chat service."""

    async def login(self, email: str, password: str) -> None:
        """Log in with the given credentials."""
        ...

    async def join_room(self, room_id: int) -> None:
        """Check the room can be read and posted to, and start tracking it."""
        ...

    def send_message(
        self,
        room_id: int,
        text: str,
        split_strategy: SplitStrategy = SplitStrategy.NONE,
    ) -> None:
        """Queue a message for delivery. Failures are only logged."""
        ...

    async def get_messages(self, room_id: int, count: int) -> list[ChatMessage]:
        """Get the most recent messages of a room."""
        ...

    async def get_new_messages(self, room_id: int) -> list[ChatMessage]:
        """Get the messages posted since the previous call, oldest first."""
        ...

    async def flush(self) -> None:
        """Deliver all queued messages and stop the sender."""
        ...


class ChatConnection:
    """Connection to Stack Overflow chat.

    Usage::

        async with ChatConnection() as chat:
            await chat.login(email, password)
            await chat.join_room(1)
            chat.send_message(1, "Hello")
            new = await chat.get_new_messages(1)

    Messages are only sent once the connection is started, either with
    start() or by entering the context. Until then they wait in the queue.
    """

    def __init__(
        self,
        settings: ChatSettings | None = None,
        client: httpx.AsyncClient | None = None,
        sleep: Sleep = asyncio.sleep,
        cursor_store: ICursorStore | None = None,
    ):
        self._settings = settings or ChatSettings.from_env()
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(follow_redirects=False, timeout=30.0)

        # 1. Executor (leaf)
        self._executor = RequestExecutor(
            self._client,
            RetryPolicy.from_settings(self._settings),
            sleep,
        )
        # 2. Token cache (depends on Executor)
        self._token_cache = TokenCache(self._client, self._executor, self._settings)
        # 3. Dispatcher (depends on Executor + TokenCache)
        self._dispatcher = OutboundDispatcher(
            self._client, self._executor, self._token_cache, self._settings
        )
        # 4. Poller (depends on Executor + TokenCache)
        self._poller = IncrementalPoller(
            self._client,
            self._executor,
            self._token_cache,
            self._settings,
            cursor_store,
        )

    async def __aenter__(self) -> "ChatConnection":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def start(self) -> None:
        """Start the message sender."""
        await self._dispatcher.start()

    async def close(self) -> None:
        """Flush queued messages and release the HTTP client."""
        await self.flush()
        if self._owns_client:
            await self._client.aclose()

    async def login(self, email: str, password: str) -> None:
        """Log in with the given credentials.

        Raises:
            LoginError: if the service does not answer with a redirect.
        """
        logger.info("Logging in as %s...", email)

        fkey = await self._token_cache.fetch_page_token(self._settings.login_url)
        response = await self._client.post(
            self._settings.login_url,
            data={"email": email, "password": password, "fkey": fkey},
            follow_redirects=False,
        )
        if response.status_code != 302:
            raise LoginError(f"Bad login (status {response.status_code}).")

        logger.info("Logged in as %s", email)

    async def join_room(self, room_id: int) -> None:
        """Check the room can be read and posted to, and start tracking it."""
        await self._poller.join(room_id)

    def send_message(
        self,
        room_id: int,
        text: str,
        split_strategy: SplitStrategy = SplitStrategy.NONE,
    ) -> None:
        """Queue a message for delivery. Failures are only logged."""
        if not self._dispatcher.running:
            logger.warning(
                "Sender not started, message to room %s is held until start() or close()",
                room_id,
            )
        self._dispatcher.send(room_id, text, split_strategy)

    async def get_messages(self, room_id: int, count: int) -> list[ChatMessage]:
        """Get the most recent messages of a room."""
        return await self._poller.get_messages(room_id, count)

    async def get_new_messages(self, room_id: int) -> list[ChatMessage]:
        """Get the messages posted since the previous call, oldest first."""
        return await self._poller.get_new_messages(room_id)

    async def flush(self) -> None:
        """Deliver all queued messages and stop the sender."""
        await self._dispatcher.flush()

    @property
    def settings(self) -> ChatSettings:
        return self._settings

    @property
    def token_cache(self) -> TokenCache:
        return self._token_cache

    @property
    def poller(self) -> IncrementalPoller:
        return self._poller

    @property
    def dispatcher(self) -> OutboundDispatcher:
        return self._dispatcher
