"""Message-related data models."""

from dataclasses import dataclass
from datetime import datetime

from ..splitting import SplitStrategy


@dataclass(frozen=True)
class ChatMessage:
    """A message posted to a chat room.

    Fields missing from the service's response are left as None.
    """

    message_id: int | None = None
    room_id: int | None = None
    user_id: int | None = None
    username: str | None = None
    content: str | None = None
    edits: int | None = None
    timestamp: datetime | None = None


@dataclass(frozen=True)
class ChatPost:
    """A post waiting in the outbound queue."""

    room_id: int
    text: str
    split_strategy: SplitStrategy = SplitStrategy.NONE
