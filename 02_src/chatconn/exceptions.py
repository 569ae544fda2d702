"""Errors raised by the chat connection."""


class ChatConnectionError(Exception):
    """Base class for all chat connection errors."""


class PageUnavailableError(ChatConnectionError):
    """A page needed to obtain a token could not be loaded."""


class RoomUnavailableError(PageUnavailableError):
    """The room does not exist."""

    def __init__(self, room_id: int):
        super().__init__(f"Room {room_id} doesn't exist.")
        self.room_id = room_id


class RoomNotPostableError(ChatConnectionError):
    """The room is inactive or protected, so messages cannot be posted to it."""

    def __init__(self, room_id: int):
        super().__init__(
            f"Cannot post to room {room_id}. It's either inactive or protected."
        )
        self.room_id = room_id


class TokenNotFoundError(ChatConnectionError):
    """No "fkey" value was found on a page."""


class LoginError(ChatConnectionError):
    """The credentials were rejected."""


class ResponseUnavailableError(ChatConnectionError):
    """A request expected to return data got no usable response."""
