"""Per-room "fkey" cache."""

import asyncio
import re
from typing import Protocol

import httpx

from ..config import ChatSettings
from ..exceptions import (
    PageUnavailableError,
    RoomNotPostableError,
    RoomUnavailableError,
    TokenNotFoundError,
)
from ..http import IRequestExecutor
from ..logging_config import get_logger
from ..models import RoomSession

logger = get_logger(__name__)

_FKEY = re.compile(r'value="([0-9a-f]{32})"')

# Missing when the room is inactive or protected
_POST_INPUT_MARKER = '<textarea id="input">'


def parse_token(html: str) -> str | None:
    """Find the fkey in an HTML page."""
    match = _FKEY.search(html)
    return match.group(1) if match else None


def can_post_to_room(html: str) -> bool:
    """Whether the room page has the message input box."""
    return _POST_INPUT_MARKER in html


class ITokenCache(Protocol):
    """Anti-forgery tokens needed to read from and post to rooms."""

    async def get_token(self, room_id: int) -> str:
        """Return the room's fkey, fetching the room page on first use."""
        ...

    async def fetch_page_token(self, url: str) -> str:
        """Fetch a page and return its fkey, without caching."""
        ...

    def invalidate(self, room_id: int) -> None:
        """Forget the room's cached token."""
        ...


class TokenCache:
    """Caches one RoomSession per room for the lifetime of the connection."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        executor: IRequestExecutor,
        settings: ChatSettings,
    ):
        self._client = client
        self._executor = executor
        self._settings = settings
        self._sessions: dict[int, RoomSession] = {}
        self._room_locks: dict[int, asyncio.Lock] = {}

    async def get_token(self, room_id: int) -> str:
        """Return the room's fkey, fetching the room page on first use.

        Concurrent callers for the same room wait for a single fetch;
        other rooms are not blocked.
        """
        session = self._sessions.get(room_id)
        if session:
            return session.token

        lock = self._room_locks.setdefault(room_id, asyncio.Lock())
        async with lock:
            session = self._sessions.get(room_id)
            if session is None:
                session = await self._load_session(room_id)
                self._sessions[room_id] = session
        return session.token

    async def fetch_page_token(self, url: str) -> str:
        """Fetch a page and return its fkey, without caching."""
        response = await self._executor.execute(self._client.build_request("GET", url))
        if response is None:
            raise PageUnavailableError(f"Couldn't load page {url}.")

        token = parse_token(response.text)
        if token is None:
            raise TokenNotFoundError(f'"fkey" field not found on {url}.')
        return token

    def invalidate(self, room_id: int) -> None:
        """Forget the room's cached token so the next call fetches it again."""
        if self._sessions.pop(room_id, None):
            logger.info("Token for room %s invalidated", room_id)

    def session(self, room_id: int) -> RoomSession | None:
        """The cached session of a room, if any."""
        return self._sessions.get(room_id)

    async def _load_session(self, room_id: int) -> RoomSession:
        request = self._client.build_request("GET", self._settings.room_url(room_id))
        response = await self._executor.execute(request)
        if response is None:
            raise RoomUnavailableError(room_id)

        html = response.text
        if not can_post_to_room(html):
            raise RoomNotPostableError(room_id)

        token = parse_token(html)
        if token is None:
            raise TokenNotFoundError(f"Cannot get the fkey of room {room_id}.")

        logger.info("Fetched token for room %s", room_id, extra={"context": {"room_id": room_id}})
        return RoomSession(room_id=room_id, token=token, can_post=True)
