"""Pytest configuration and fixtures."""

import asyncio
import re
import sys
from pathlib import Path
from urllib.parse import parse_qs

import httpx
import pytest
import pytest_asyncio

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

ROOM_TOKEN = "0123456789abcdef0123456789abcdef"
LOGIN_TOKEN = "fedcba9876543210fedcba9876543210"


def html_page(token: str | None, postable: bool = True) -> str:
    """Render a page the way the chat service does, as far as the client cares."""
    parts = ["<html><body><form>"]
    if token:
        parts.append(f'<input id="fkey" name="fkey" type="hidden" value="{token}" />')
    if postable:
        parts.append('<textarea id="input"></textarea>')
    parts.append("</form></body></html>")
    return "".join(parts)


def form_of(request: httpx.Request) -> dict[str, str]:
    """Decode a form-encoded request body."""
    return {k: v[0] for k, v in parse_qs(request.content.decode()).items()}


class FakeChatService:
    """In-memory chat service served through httpx.MockTransport."""

    def __init__(self):
        self.rooms: dict[int, list[dict]] = {}
        self.room_pages: dict[int, str] = {}
        self.posts: list[tuple[int, str]] = []
        self.requests: list[httpx.Request] = []
        self.msg_counts: list[int] = []
        self.login_status = 302
        self.newest_first = False
        self.fail_posts_to: set[int] = set()
        self._next_id = 100

    def add_room(self, room_id: int, postable: bool = True, token: str | None = ROOM_TOKEN) -> None:
        self.rooms[room_id] = []
        self.room_pages[room_id] = html_page(token, postable)

    def add_messages(self, room_id: int, count: int, user_name: str = "alice") -> list[int]:
        """Post `count` messages to a room, returning their ids."""
        ids = []
        for _ in range(count):
            ids.append(self._append(room_id, f"message {self._next_id}", user_name))
        return ids

    def room_page_fetches(self, room_id: int) -> int:
        return sum(1 for r in self.requests if r.url.path == f"/rooms/{room_id}")

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if path == "/users/login":
            if request.method == "GET":
                return httpx.Response(200, text=html_page(LOGIN_TOKEN, postable=False))
            return httpx.Response(self.login_status, headers={"Location": "/"})

        match = re.fullmatch(r"/rooms/(\d+)", path)
        if match:
            page = self.room_pages.get(int(match.group(1)))
            if page is None:
                return httpx.Response(404, text="room not found")
            return httpx.Response(200, text=page)

        match = re.fullmatch(r"/chats/(\d+)/events", path)
        if match:
            room_id = int(match.group(1))
            if room_id not in self.rooms:
                return httpx.Response(404)
            count = int(form_of(request)["msgCount"])
            self.msg_counts.append(count)
            events = self.rooms[room_id][-count:]
            if self.newest_first:
                events = list(reversed(events))
            return httpx.Response(200, json={"ms": 0, "events": events, "time": 0})

        match = re.fullmatch(r"/chats/(\d+)/messages/new", path)
        if match:
            room_id = int(match.group(1))
            if room_id not in self.rooms or room_id in self.fail_posts_to:
                return httpx.Response(404)
            text = form_of(request)["text"]
            self.posts.append((room_id, text))
            message_id = self._append(room_id, text, "bot")
            return httpx.Response(200, json={"id": message_id, "time": 1700000000})

        return httpx.Response(404)

    def _append(self, room_id: int, text: str, user_name: str) -> int:
        message_id = self._next_id
        self._next_id += 1
        self.rooms[room_id].append(
            {
                "event_type": 1,
                "time_stamp": 1700000000 + message_id,
                "content": text,
                "user_id": 42,
                "user_name": user_name,
                "room_id": room_id,
                "message_id": message_id,
            }
        )
        return message_id


class ScriptedTransport(httpx.AsyncBaseTransport):
    """Answers requests from a script of responses and exceptions, in order."""

    def __init__(self, *script):
        self.script = list(script)
        self.requests: list[httpx.Request] = []

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        await request.aread()
        self.requests.append(request)
        item = self.script.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


class SleepRecorder:
    """Stands in for asyncio.sleep, remembering the requested pauses."""

    def __init__(self):
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)
        await asyncio.sleep(0)


@pytest.fixture
def sleeps():
    """Recorded retry pauses."""
    return SleepRecorder()


@pytest.fixture
def settings():
    """Default connection settings."""
    from chatconn.config import ChatSettings

    return ChatSettings()


@pytest.fixture
def chat_service():
    """Fake chat service with one postable room (1) holding no messages."""
    service = FakeChatService()
    service.add_room(1)
    return service


@pytest_asyncio.fixture
async def client(chat_service):
    """HTTP client wired to the fake chat service."""
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(chat_service.handler))
    yield http_client
    await http_client.aclose()


@pytest.fixture
def executor(client, sleeps):
    """Request executor that records its pauses instead of sleeping."""
    from chatconn.http import RequestExecutor, RetryPolicy

    return RequestExecutor(client, RetryPolicy(), sleep=sleeps)


@pytest.fixture
def token_cache(client, executor, settings):
    """Token cache for the fake service."""
    from chatconn.session import TokenCache

    return TokenCache(client, executor, settings)


@pytest.fixture
def poller(client, executor, token_cache, settings):
    """Poller without cursor persistence."""
    from chatconn.poller import IncrementalPoller

    return IncrementalPoller(client, executor, token_cache, settings)


@pytest_asyncio.fixture
async def dispatcher(client, executor, token_cache, settings):
    """Started dispatcher."""
    from chatconn.dispatcher import OutboundDispatcher

    d = OutboundDispatcher(client, executor, token_cache, settings)
    await d.start()
    yield d
    await d.flush()


@pytest_asyncio.fixture
async def cursor_store():
    """Create in-memory cursor store for testing."""
    from chatconn.storage import CursorStore

    store = CursorStore(":memory:")
    await store.init()
    yield store
    await store.close()


@pytest_asyncio.fixture
async def connection(client, settings, sleeps):
    """Started connection to the fake chat service."""
    from chatconn.connection import ChatConnection

    chat = ChatConnection(settings=settings, client=client, sleep=sleeps)
    await chat.start()
    yield chat
    await chat.close()
