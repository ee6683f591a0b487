"""Presence and chat relay for viewer connections.

A viewer connection goes through three states::

    Connecting --authenticate()/join()--> Authenticated --leave()--> Closed

Each authenticated connection gets a ``ViewerSession`` with its own
outbound queue. The relay keeps one channel (a set of sessions) per room
slug and fans frames out by putting them on member queues, so a broadcast
never awaits a slow socket. The transport layer drains the queue.

Chat sends and join snapshots for a room are serialized by a per-room
lock, which keeps broadcasts in persistence order and guarantees a joiner
sees its history before any newer message.
"""

from __future__ import annotations

import asyncio
import logging
import secrets
from dataclasses import dataclass, field
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, ValidationError
from sqlalchemy.exc import SQLAlchemyError

from streamcircle.api.pubsub import RoomStatusEvent, StatusBus
from streamcircle.api.serializers import serialize_message
from streamcircle.db import HISTORY_LIMIT, Repository, get_session
from streamcircle.errors import (
    AuthorizationFailure,
    PersistenceFailure,
    RelayError,
    ValidationFailure,
)

logger = logging.getLogger(__name__)

OUTBOX_SIZE = 256

CHAT_HISTORY = "chat:history"
CHAT_MESSAGE = "chat:message"
STREAM_STATUS = "stream:status"
ACK = "ack"


class Handshake(BaseModel):
    """Claimed identity of a connecting viewer."""

    model_config = ConfigDict(populate_by_name=True)

    slug: Annotated[str, StringConstraints(min_length=3, max_length=160)]
    token: Annotated[str, StringConstraints(min_length=1, max_length=200)]
    display_name: Annotated[
        str, StringConstraints(strip_whitespace=True, min_length=1, max_length=32)
    ] = Field(alias="displayName")


class ChatPayload(BaseModel):
    content: Annotated[
        str, StringConstraints(strip_whitespace=True, min_length=1, max_length=500)
    ]


def frame(event: str, data: Any) -> dict:
    """Wrap a payload in the wire envelope."""
    return {"event": event, "data": data}


@dataclass(eq=False)
class ViewerSession:
    """One authenticated viewer connection."""

    room_id: str
    slug: str
    display_name: str
    playback_token: str
    # None is the close sentinel pushed when the session is evicted
    outbox: asyncio.Queue[dict | None] = field(
        default_factory=lambda: asyncio.Queue(maxsize=OUTBOX_SIZE), repr=False
    )


@dataclass
class SendResult:
    """Outcome of a chat send, reported to the sender only."""

    success: bool
    error: RelayError | None = None

    def as_ack(self) -> dict:
        if self.success:
            return {"success": True}
        reason = self.error.message if self.error else "error"
        return {"success": False, "error": reason}


class Relay:
    """Authenticates viewers, tracks room channels and fans out events."""

    def __init__(self, bus: StatusBus, history_limit: int = HISTORY_LIMIT) -> None:
        self._history_limit = history_limit
        self._channels: dict[str, set[ViewerSession]] = {}
        # One lock per room slug ever joined; bounded by the number of rooms
        self._locks: dict[str, asyncio.Lock] = {}
        # Sessions whose join snapshot is still being read
        self._pending: dict[ViewerSession, list[dict]] = {}
        bus.subscribe(self.on_room_status)

    def members(self, slug: str) -> frozenset[ViewerSession]:
        """Snapshot of the sessions currently in a room's channel."""
        return frozenset(self._channels.get(slug, ()))

    @property
    def channel_count(self) -> int:
        return len(self._channels)

    def _lock_for(self, slug: str) -> asyncio.Lock:
        return self._locks.setdefault(slug, asyncio.Lock())

    # ------------------------------------------------------------------
    # Connection lifecycle
    # ------------------------------------------------------------------

    async def authenticate(
        self,
        slug: str | None,
        token: str | None,
        display_name: str | None,
    ) -> ViewerSession:
        """Check a handshake against the room's current playback key.

        Raises:
            ValidationFailure: the handshake is malformed.
            AuthorizationFailure: unknown room or wrong token.
            PersistenceFailure: the room lookup failed.
        """
        try:
            handshake = Handshake.model_validate(
                {"slug": slug, "token": token, "displayName": display_name}
            )
        except ValidationError as exc:
            raise ValidationFailure("invalid handshake") from exc

        try:
            async with get_session() as s:
                room = await Repository(s).get_room_by_slug(handshake.slug)
        except SQLAlchemyError as exc:
            logger.warning("Room lookup failed for %r", handshake.slug, exc_info=True)
            raise PersistenceFailure() from exc

        if room is None or not secrets.compare_digest(
            room.playback_key.encode(), handshake.token.encode()
        ):
            raise AuthorizationFailure()

        return ViewerSession(
            room_id=room.id,
            slug=room.slug,
            display_name=handshake.display_name,
            playback_token=handshake.token,
        )

    async def join(self, session: ViewerSession) -> None:
        """Add a session to its channel and queue the history and status snapshot.

        Status events published while the snapshot is read are held back and
        delivered after it.
        """
        async with self._lock_for(session.slug):
            self._pending[session] = []
            self._channels.setdefault(session.slug, set()).add(session)
            try:
                async with get_session() as s:
                    repo = Repository(s)
                    room = await repo.get_room_by_slug(session.slug)
                    recent = await repo.get_recent_messages(
                        session.room_id, limit=self._history_limit
                    )
            except SQLAlchemyError as exc:
                self.leave(session)
                logger.warning("History read failed for %s", session.slug, exc_info=True)
                raise PersistenceFailure() from exc

            if room is None or room.id != session.room_id:
                self.leave(session)
                raise AuthorizationFailure()

            deferred = self._pending.pop(session)
            history = [serialize_message(m) for m in reversed(recent)]
            self.deliver(session, frame(CHAT_HISTORY, history))
            self.deliver(session, frame(STREAM_STATUS, {"isLive": room.is_live}))
            for f in deferred:
                self.deliver(session, f)

        logger.debug(
            "%s joined %s (%d online)",
            session.display_name,
            session.slug,
            len(self.members(session.slug)),
        )

    def leave(self, session: ViewerSession) -> None:
        """Remove a session from its channel. Safe to call more than once."""
        self._pending.pop(session, None)
        channel = self._channels.get(session.slug)
        if channel is None:
            return
        channel.discard(session)
        if not channel:
            del self._channels[session.slug]

    # ------------------------------------------------------------------
    # Chat
    # ------------------------------------------------------------------

    async def send_chat(self, session: ViewerSession, payload: Any) -> SendResult:
        """Persist a chat message, then broadcast it to the whole channel.

        Nothing is broadcast unless the message was saved.
        """
        try:
            content = ChatPayload.model_validate(payload).content
        except ValidationError:
            return SendResult(False, ValidationFailure())

        async with self._lock_for(session.slug):
            try:
                async with get_session() as s:
                    msg = await Repository(s).add_message(
                        session.room_id, session.display_name, content
                    )
            except SQLAlchemyError:
                logger.warning(
                    "Could not save message from %s in %s",
                    session.display_name,
                    session.slug,
                    exc_info=True,
                )
                return SendResult(False, PersistenceFailure("could not save message"))

            self._fanout(session.slug, frame(CHAT_MESSAGE, serialize_message(msg)))

        return SendResult(True)

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    def on_room_status(self, event: RoomStatusEvent) -> None:
        """Bus handler: forward a liveness change to the room's channel."""
        try:
            self._fanout(event.slug, frame(STREAM_STATUS, {"isLive": event.is_live}))
        except Exception:
            logger.exception("Dropped status update for %s", event.slug)

    # ------------------------------------------------------------------
    # Delivery
    # ------------------------------------------------------------------

    def deliver(self, session: ViewerSession, payload: dict) -> bool:
        """Queue a frame for one session. Evicts the session if its queue is full."""
        try:
            session.outbox.put_nowait(payload)
            return True
        except asyncio.QueueFull:
            self._evict(session)
            return False

    def _fanout(self, slug: str, payload: dict) -> None:
        for session in list(self._channels.get(slug, ())):
            pending = self._pending.get(session)
            if pending is not None:
                pending.append(payload)
            else:
                self.deliver(session, payload)

    def _evict(self, session: ViewerSession) -> None:
        """Drop a slow consumer and tell its transport to close."""
        self.leave(session)
        while not session.outbox.empty():
            session.outbox.get_nowait()
        session.outbox.put_nowait(None)
        logger.warning(
            "Evicted slow viewer %s from %s", session.display_name, session.slug
        )
