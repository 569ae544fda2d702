"""Chat connection client."""

from .config import ChatSettings
from .connection import ChatConnection, IChatConnection
from .dispatcher import IOutboundDispatcher, OutboundDispatcher
from .exceptions import (
    ChatConnectionError,
    LoginError,
    PageUnavailableError,
    ResponseUnavailableError,
    RoomNotPostableError,
    RoomUnavailableError,
    TokenNotFoundError,
)
from .http import UNBOUNDED, IRequestExecutor, RequestExecutor, RetryPolicy
from .models import ChatEvent, ChatMessage, ChatPost, EventsResponse, RoomSession
from .poller import IIncrementalPoller, IncrementalPoller
from .session import ITokenCache, TokenCache
from .splitting import SplitStrategy
from .storage import CursorStore, ICursorStore

__all__ = [
    # Connection
    "ChatConnection",
    "IChatConnection",
    "ChatSettings",
    # Models
    "ChatMessage",
    "ChatPost",
    "RoomSession",
    "ChatEvent",
    "EventsResponse",
    "SplitStrategy",
    # Components
    "IRequestExecutor",
    "RequestExecutor",
    "RetryPolicy",
    "UNBOUNDED",
    "ITokenCache",
    "TokenCache",
    "IOutboundDispatcher",
    "OutboundDispatcher",
    "IIncrementalPoller",
    "IncrementalPoller",
    "ICursorStore",
    "CursorStore",
    # Errors
    "ChatConnectionError",
    "PageUnavailableError",
    "RoomUnavailableError",
    "RoomNotPostableError",
    "TokenNotFoundError",
    "LoginError",
    "ResponseUnavailableError",
]
