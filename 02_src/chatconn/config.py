"""Project-level configuration and path helpers."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Union

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
DATA_DIR = PROJECT_ROOT / "03_data"
LOGS_DIR = PROJECT_ROOT / "04_logs"
DEFAULT_DB_PATH = DATA_DIR / "chatconn.db"
DEFAULT_LOG_PATH = LOGS_DIR / "chatconn.log"

DEFAULT_CHAT_BASE_URL = "https://chat.stackoverflow.com"
DEFAULT_LOGIN_URL = "https://stackoverflow.com/users/login"


PathLike = Union[str, Path]


def resolve_db_path(env_value: PathLike | None = None) -> PathLike:
    """Resolve CHAT_DATABASE_URL to an absolute path."""
    if not env_value:
        return DEFAULT_DB_PATH

    if str(env_value) == ":memory:":
        return ":memory:"

    candidate = Path(env_value)
    return candidate if candidate.is_absolute() else PROJECT_ROOT / candidate


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    return float(value) if value else default


def _env_int(name: str, default: int | None) -> int | None:
    value = os.getenv(name)
    return int(value) if value else default


@dataclass(frozen=True)
class ChatSettings:
    """Connection tuning. Durations are in seconds."""

    chat_base_url: str = DEFAULT_CHAT_BASE_URL
    login_url: str = DEFAULT_LOGIN_URL
    retry_pause: float = 5.0
    max_retry_pause: float = 60.0
    rate_limit_pause: float = 5.0  # used when a 409 body carries no wait hint
    max_message_length: int = 500
    poll_window_step: int = 5
    max_poll_window: int | None = None  # None = widen until the cursor is reached

    @classmethod
    def from_env(cls) -> "ChatSettings":
        """Build settings from CHAT_* environment variables."""
        return cls(
            chat_base_url=os.getenv("CHAT_BASE_URL", DEFAULT_CHAT_BASE_URL).rstrip("/"),
            login_url=os.getenv("CHAT_LOGIN_URL", DEFAULT_LOGIN_URL),
            retry_pause=_env_float("CHAT_RETRY_PAUSE", 5.0),
            max_retry_pause=_env_float("CHAT_MAX_RETRY_PAUSE", 60.0),
            rate_limit_pause=_env_float("CHAT_RATE_LIMIT_PAUSE", 5.0),
            max_message_length=_env_int("CHAT_MAX_MESSAGE_LENGTH", 500),
            poll_window_step=_env_int("CHAT_POLL_WINDOW_STEP", 5),
            max_poll_window=_env_int("CHAT_MAX_POLL_WINDOW", None),
        )

    def room_url(self, room_id: int) -> str:
        return f"{self.chat_base_url}/rooms/{room_id}"

    def events_url(self, room_id: int) -> str:
        return f"{self.chat_base_url}/chats/{room_id}/events"

    def new_message_url(self, room_id: int) -> str:
        return f"{self.chat_base_url}/chats/{room_id}/messages/new"
