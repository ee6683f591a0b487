"""SQLAlchemy async models for streamcircle persistence."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return uuid.uuid4().hex


class Base(DeclarativeBase):
    """Base class for all models."""


class Room(Base):
    """A watch-party room pairing an ingest secret with a viewer secret."""

    __tablename__ = "rooms"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=_new_id)
    slug: Mapped[str] = mapped_column(String(160), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    # Authorizes RTMP ingest
    stream_key: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    # Authorizes viewer socket sessions
    playback_key: Mapped[str] = mapped_column(String(64), nullable=False)
    is_live: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow
    )

    messages: Mapped[list[Message]] = relationship(
        back_populates="room", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        """Return developer-friendly representation of Room."""
        state = "live" if self.is_live else "offline"
        return f"<Room slug={self.slug!r} [{state}]>"


class Message(Base):
    """Chat message posted in a room. Immutable once created."""

    __tablename__ = "messages"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    room_id: Mapped[str] = mapped_column(
        String(32), ForeignKey("rooms.id", ondelete="CASCADE"), nullable=False, index=True
    )
    # Display name claimed by the sender's connection, not a verified identity
    author: Mapped[str] = mapped_column(String(64), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, index=True
    )

    room: Mapped[Room] = relationship(back_populates="messages")

    def __repr__(self) -> str:
        """Return developer-friendly representation of Message."""
        preview = self.content[:40] + "..." if len(self.content) > 40 else self.content
        return f"<Message author={self.author!r} room={self.room_id!r} {preview!r}>"
