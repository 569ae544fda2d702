"""IncrementalPoller implementation."""

import asyncio
from typing import Protocol

import httpx

from ..config import ChatSettings
from ..http import IRequestExecutor
from ..logging_config import get_logger
from ..models import ChatMessage, EventsResponse
from ..session import ITokenCache
from ..storage import ICursorStore

logger = get_logger(__name__)


def _message_id(message: ChatMessage) -> int:
    return message.message_id or 0


class IIncrementalPoller(Protocol):
    """Reads messages, remembering per room what was already returned."""

    async def get_messages(self, room_id: int, count: int) -> list[ChatMessage]:
        """Get the most recent messages of a room."""
        ...

    async def get_new_messages(self, room_id: int) -> list[ChatMessage]:
        """Get the messages posted since the previous call, oldest first."""
        ...

    async def join(self, room_id: int) -> None:
        """Check the room is usable and make sure it has a cursor."""
        ...


class IncrementalPoller:
    """Cursor-based poller over the events endpoint."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        executor: IRequestExecutor,
        token_cache: ITokenCache,
        settings: ChatSettings,
        cursor_store: ICursorStore | None = None,
    ):
        self._client = client
        self._executor = executor
        self._token_cache = token_cache
        self._settings = settings
        self._store = cursor_store
        self._cursors: dict[int, int] = {}
        self._room_locks: dict[int, asyncio.Lock] = {}

    def cursor(self, room_id: int) -> int | None:
        """Id of the last message returned for the room, None until primed."""
        return self._cursors.get(room_id)

    async def get_messages(self, room_id: int, count: int) -> list[ChatMessage]:
        """Get the most recent messages of a room, in the order the service returns them."""
        token = await self._token_cache.get_token(room_id)

        request = self._client.build_request(
            "POST",
            self._settings.events_url(room_id),
            data={"mode": "messages", "msgCount": str(count), "fkey": token},
        )
        payload = await self._executor.execute_json(request)
        response = EventsResponse.model_validate(payload)
        return [event.to_message() for event in response.events or []]

    async def get_new_messages(self, room_id: int) -> list[ChatMessage]:
        """Get the messages posted since the previous call, oldest first.

        The first call for a room only records where the room currently
        is and returns nothing.
        """
        lock = self._room_locks.setdefault(room_id, asyncio.Lock())
        async with lock:
            cursor = await self._load_cursor(room_id)
            if cursor is None:
                await self._prime(room_id)
                return []

            window = await self._fetch_window(room_id, cursor)
            new_messages = [m for m in window if _message_id(m) > cursor]
            if not new_messages:
                return []

            await self._advance(room_id, _message_id(new_messages[-1]))
            return new_messages

    async def join(self, room_id: int) -> None:
        """Check the room is usable and make sure it has a cursor.

        With a cursor store, a stored cursor is only loaded, so messages
        that arrived while the client was away are left for the next
        get_new_messages() call.
        """
        if self._store is None:
            await self.get_new_messages(room_id)
            return

        lock = self._room_locks.setdefault(room_id, asyncio.Lock())
        async with lock:
            await self._token_cache.get_token(room_id)
            if await self._load_cursor(room_id) is None:
                await self._prime(room_id)

    async def _load_cursor(self, room_id: int) -> int | None:
        cursor = self._cursors.get(room_id)
        if cursor is None and self._store is not None:
            cursor = await self._store.get_cursor(room_id)
            if cursor is not None:
                logger.info("Resuming room %s after message %s", room_id, cursor)
                self._cursors[room_id] = cursor
        return cursor

    async def _prime(self, room_id: int) -> None:
        messages = await self.get_messages(room_id, 1)
        latest = _message_id(messages[-1]) if messages else 0
        logger.info(
            "Primed room %s at message %s",
            room_id,
            latest,
            extra={"context": {"room_id": room_id, "cursor": latest}},
        )
        await self._advance(room_id, latest)

    async def _fetch_window(self, room_id: int, cursor: int) -> list[ChatMessage]:
        """Widen the request until it reaches back to the cursor. Oldest first."""
        step = self._settings.poll_window_step
        limit = self._settings.max_poll_window
        count = step if limit is None else min(step, limit)
        while True:
            messages = sorted(await self.get_messages(room_id, count), key=_message_id)
            if not messages or _message_id(messages[0]) <= cursor:
                return messages

            # the room has no older messages than these
            if len(messages) < count:
                return messages

            if limit is not None and count >= limit:
                logger.warning(
                    "More than %d messages arrived in room %s since the last poll; "
                    "older ones are skipped.",
                    count,
                    room_id,
                )
                return messages

            count += step
            if limit is not None:
                count = min(count, limit)

    async def _advance(self, room_id: int, message_id: int) -> None:
        previous = self._cursors.get(room_id)
        if previous is not None and message_id <= previous:
            return
        self._cursors[room_id] = message_id
        if self._store is not None:
            await self._store.save_cursor(room_id, message_id)
