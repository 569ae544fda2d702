"""Data models for the chat connection client."""

from .events import ChatEvent, EventsResponse
from .messages import ChatMessage, ChatPost
from .session import RoomSession

__all__ = [
    # Messages
    "ChatMessage",
    "ChatPost",
    # Sessions
    "RoomSession",
    # Wire
    "ChatEvent",
    "EventsResponse",
]
