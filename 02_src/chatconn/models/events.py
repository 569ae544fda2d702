"""Wire models for the chat events endpoint."""

from datetime import datetime

from pydantic import BaseModel

from .messages import ChatMessage


class ChatEvent(BaseModel):
    """One entry of the "events" array."""

    content: str | None = None
    edits: int | None = None
    message_id: int | None = None
    room_id: int | None = None
    time_stamp: int | None = None  # Unix seconds
    user_id: int | None = None
    user_name: str | None = None

    def to_message(self) -> ChatMessage:
        """Map the event onto a ChatMessage."""
        timestamp = None
        if self.time_stamp is not None:
            timestamp = datetime.fromtimestamp(self.time_stamp)

        return ChatMessage(
            message_id=self.message_id,
            room_id=self.room_id,
            user_id=self.user_id,
            username=self.user_name,
            content=self.content,
            edits=self.edits,
            timestamp=timestamp,
        )


class EventsResponse(BaseModel):
    """Response body of POST /chats/{room}/events."""

    events: list[ChatEvent] | None = None
