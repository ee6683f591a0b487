"""Repository — async CRUD for rooms and messages."""

from __future__ import annotations

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from streamcircle.db.models import Message, Room

HISTORY_LIMIT = 50


class Repository:
    """High-level async data access. Accepts a session from get_session()."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    # ------------------------------------------------------------------
    # Rooms
    # ------------------------------------------------------------------

    async def create_room(
        self,
        name: str,
        slug: str,
        stream_key: str,
        playback_key: str,
    ) -> Room:
        """Create a new, offline room."""
        room = Room(
            name=name,
            slug=slug,
            stream_key=stream_key,
            playback_key=playback_key,
            is_live=False,
        )
        self.session.add(room)
        await self.session.flush()
        return room

    async def list_rooms(self) -> list[Room]:
        """All rooms, newest first."""
        stmt = select(Room).order_by(Room.created_at.desc())
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_room_by_slug(self, slug: str) -> Room | None:
        """Get room by its public slug."""
        stmt = select(Room).where(Room.slug == slug)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_room_by_stream_key(self, stream_key: str) -> Room | None:
        """Get room by its ingest secret."""
        stmt = select(Room).where(Room.stream_key == stream_key)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def set_live(self, room_id: str, is_live: bool) -> None:
        """Update a room's liveness flag."""
        stmt = update(Room).where(Room.id == room_id).values(is_live=is_live)
        await self.session.execute(stmt)
        await self.session.flush()

    async def rotate_keys(
        self,
        room: Room,
        stream_key: str,
        playback_key: str,
    ) -> Room:
        """Replace both secrets. A rotated room is offline until re-published."""
        room.stream_key = stream_key
        room.playback_key = playback_key
        room.is_live = False
        await self.session.flush()
        await self.session.refresh(room)
        return room

    # ------------------------------------------------------------------
    # Messages
    # ------------------------------------------------------------------

    async def add_message(
        self,
        room_id: str,
        author: str,
        content: str,
    ) -> Message:
        """Persist a chat message."""
        msg = Message(room_id=room_id, author=author, content=content)
        self.session.add(msg)
        await self.session.flush()
        return msg

    async def get_recent_messages(
        self,
        room_id: str,
        limit: int = HISTORY_LIMIT,
    ) -> list[Message]:
        """Get most recent messages for a room (newest first)."""
        stmt = (
            select(Message)
            .where(Message.room_id == room_id)
            .order_by(Message.created_at.desc(), Message.id.desc())
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
