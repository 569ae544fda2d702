"""Room session model."""

from dataclasses import dataclass


@dataclass(frozen=True)
class RoomSession:
    """Cached authorization for a room."""

    room_id: int
    token: str  # the room's "fkey"
    can_post: bool = True
