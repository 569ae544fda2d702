"""OutboundDispatcher implementation."""

import asyncio
from typing import Protocol

import httpx

from ..config import ChatSettings
from ..http import UNBOUNDED, IRequestExecutor
from ..logging_config import get_logger
from ..models import ChatPost
from ..session import ITokenCache
from ..splitting import SplitStrategy

logger = get_logger(__name__)

# Queued by flush() behind every pending post
_STOP = object()


class IOutboundDispatcher(Protocol):
    """Serializes every outbound post of a connection."""

    async def start(self) -> None:
        """Start the worker task."""
        ...

    def send(self, room_id: int, text: str, split_strategy: SplitStrategy) -> None:
        """Queue a post. Never blocks."""
        ...

    async def flush(self) -> None:
        """Deliver everything queued so far, then stop the worker."""
        ...


class OutboundDispatcher:
    """Single worker draining an unbounded FIFO queue of posts."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        executor: IRequestExecutor,
        token_cache: ITokenCache,
        settings: ChatSettings,
    ):
        self._client = client
        self._executor = executor
        self._token_cache = token_cache
        self._settings = settings
        self._queue: asyncio.Queue = asyncio.Queue()
        self._task: asyncio.Task | None = None
        self._finishing = False
        self._stop_queued = False

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def pending(self) -> int:
        """Number of posts waiting to be sent, not counting the one in flight."""
        size = self._queue.qsize()
        if self._stop_queued:
            size -= 1
        return size

    async def start(self) -> None:
        """Start the worker task."""
        if self.running:
            return
        self._finishing = False
        self._task = asyncio.create_task(self._run(), name="outbound-dispatcher")
        logger.info("OutboundDispatcher started")

    def send(
        self,
        room_id: int,
        text: str,
        split_strategy: SplitStrategy = SplitStrategy.NONE,
    ) -> None:
        """Queue a post. Never blocks."""
        if self._finishing:
            logger.warning("Dispatcher is shutting down, dropping post to room %s", room_id)
            return
        self._queue.put_nowait(ChatPost(room_id, text, split_strategy))

    async def flush(self) -> None:
        """Deliver everything queued so far, then stop the worker."""
        if self._task is None:
            if self._queue.empty():
                return
            # posts were queued before the worker was started
            await self.start()

        task = self._task
        if not self._finishing:
            self._finishing = True
            self._stop_queued = True
            self._queue.put_nowait(_STOP)
        await task
        if self._task is task:
            self._task = None
            logger.info("OutboundDispatcher stopped")

    async def _run(self) -> None:
        while True:
            post = await self._queue.get()
            if post is _STOP:
                self._stop_queued = False
                return

            try:
                await self._deliver(post)
            except Exception as e:
                logger.error(
                    "Problem sending message to room %s: %s. Skipping to next message in queue.",
                    post.room_id,
                    e,
                    exc_info=True,
                )

    async def _deliver(self, post: ChatPost) -> None:
        token = await self._token_cache.get_token(post.room_id)

        if "\n" in post.text:
            # multi-line posts have no length limit
            chunks = [post.text]
        else:
            chunks = post.split_strategy.split(post.text, self._settings.max_message_length)

        url = self._settings.new_message_url(post.room_id)
        for chunk in chunks:
            await self._post_chunk(post.room_id, url, token, chunk)

    async def _post_chunk(self, room_id: int, url: str, token: str, text: str) -> None:
        logger.info("Posting message to room %s: %s", room_id, text)

        request = self._client.build_request("POST", url, data={"text": text, "fkey": token})
        response = await self._executor.execute(
            request, max_retries=UNBOUNDED, expected_status=200
        )
        if response is None:
            logger.error("Message to room %s was not delivered, skipping it.", room_id)
            return

        logger.info("Message received.")
