"""Media server publish/unpublish callbacks mapped onto rooms and the status bus."""

from __future__ import annotations

import enum
import logging

from sqlalchemy.exc import SQLAlchemyError

from streamcircle.api.pubsub import RoomStatusEvent, StatusBus
from streamcircle.db import Repository, get_session
from streamcircle.errors import NotFoundFailure, PersistenceFailure

logger = logging.getLogger(__name__)


class WebhookResult(enum.Enum):
    """What a webhook call did."""

    CHANGED = "changed"  # liveness flipped, event published
    UNCHANGED = "unchanged"  # known room already in the requested state
    REJECTED = "rejected"  # unknown stream key on publish
    IGNORED = "ignored"  # unknown key or store failure on unpublish

    @property
    def accepted(self) -> bool:
        return self is not WebhookResult.REJECTED


async def _set_liveness(stream_key: str, is_live: bool) -> RoomStatusEvent | None:
    """Flip a room's flag if needed; None when it already had that value.

    The caller publishes the returned event after the update has committed.

    Raises:
        NotFoundFailure: no room uses this stream key.
        PersistenceFailure: the store could not be read or updated.
    """
    try:
        async with get_session() as s:
            repo = Repository(s)
            room = await repo.get_room_by_stream_key(stream_key)
            if room is None:
                raise NotFoundFailure("unknown stream key")
            if room.is_live == is_live:
                return None
            await repo.set_live(room.id, is_live)
            event = RoomStatusEvent(room_id=room.id, slug=room.slug, is_live=is_live)
    except SQLAlchemyError as exc:
        raise PersistenceFailure() from exc
    return event


async def on_publish(bus: StatusBus, stream_key: str) -> WebhookResult:
    """Stream started. Unknown keys are refused so the media server drops the stream.

    Raises:
        PersistenceFailure: the store could not be read or updated.
    """
    try:
        event = await _set_liveness(stream_key, True)
    except NotFoundFailure:
        logger.warning("Rejected publish for unknown stream key")
        return WebhookResult.REJECTED
    except PersistenceFailure:
        logger.error("Publish callback failed", exc_info=True)
        raise

    if event is None:
        return WebhookResult.UNCHANGED

    logger.info("Room %s is live", event.slug)
    bus.publish(event)
    return WebhookResult.CHANGED


async def on_unpublish(bus: StatusBus, stream_key: str) -> WebhookResult:
    """Stream ended. Never fails: teardown calls are retried by media servers."""
    try:
        event = await _set_liveness(stream_key, False)
    except NotFoundFailure:
        return WebhookResult.IGNORED
    except PersistenceFailure:
        # No retry; the next publish/unpublish pair corrects the flag
        logger.error("Unpublish callback failed, acknowledging anyway", exc_info=True)
        return WebhookResult.IGNORED

    if event is None:
        return WebhookResult.UNCHANGED

    logger.info("Room %s went offline", event.slug)
    bus.publish(event)
    return WebhookResult.CHANGED
