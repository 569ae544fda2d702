"""SQLite persistence for poll cursors."""

from pathlib import Path
from typing import Protocol

import aiosqlite

from ..config import resolve_db_path


class ICursorStore(Protocol):
    """Remembers the last message id consumed per room across restarts."""

    async def init(self) -> None:
        """Initialize database and create tables."""
        ...

    async def close(self) -> None:
        """Close database connection."""
        ...

    async def save_cursor(self, room_id: int, message_id: int) -> None:
        """Store a room's cursor."""
        ...

    async def get_cursor(self, room_id: int) -> int | None:
        """Get a room's cursor, or None if it was never stored."""
        ...

    async def clear(self) -> None:
        """Forget all cursors."""
        ...


class CursorStore:
    """SQLite cursor store."""

    def __init__(self, db_path: str | Path | None = None):
        self._db_path = resolve_db_path(db_path)
        self._conn: aiosqlite.Connection | None = None

    async def init(self) -> None:
        """Initialize database and create tables."""
        if self._db_path != ":memory:":
            Path(self._db_path).parent.mkdir(parents=True, exist_ok=True)

        self._conn = await aiosqlite.connect(self._db_path)

        schema_path = Path(__file__).parent / "schema.sql"
        with open(schema_path, "r", encoding="utf-8") as f:
            schema_sql = f.read()
        await self._conn.executescript(schema_sql)
        await self._conn.commit()

    async def close(self) -> None:
        """Close database connection."""
        if self._conn:
            await self._conn.close()
            self._conn = None

    async def save_cursor(self, room_id: int, message_id: int) -> None:
        """Store a room's cursor."""
        if not self._conn:
            raise RuntimeError("CursorStore not initialized")

        await self._conn.execute(
            """
            INSERT OR REPLACE INTO poll_cursors (room_id, last_message_id, updated_at)
            VALUES (?, ?, CURRENT_TIMESTAMP)
            """,
            (room_id, message_id),
        )
        await self._conn.commit()

    async def get_cursor(self, room_id: int) -> int | None:
        """Get a room's cursor, or None if it was never stored."""
        if not self._conn:
            raise RuntimeError("CursorStore not initialized")

        cursor = await self._conn.execute(
            "SELECT last_message_id FROM poll_cursors WHERE room_id = ?",
            (room_id,),
        )
        row = await cursor.fetchone()
        return row[0] if row else None

    async def clear(self) -> None:
        """Forget all cursors."""
        if not self._conn:
            raise RuntimeError("CursorStore not initialized")

        await self._conn.execute("DELETE FROM poll_cursors")
        await self._conn.commit()
