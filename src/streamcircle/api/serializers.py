"""JSON shapes shared by HTTP routes and the realtime relay."""

from __future__ import annotations

from datetime import datetime, timezone

from streamcircle.db.models import Message, Room


def utc_iso(dt: datetime) -> str:
    """Ensure datetime is serialized as UTC with offset."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.isoformat()


def serialize_message(m: Message) -> dict:
    return {
        "id": m.id,
        "author": m.author,
        "content": m.content,
        "createdAt": utc_iso(m.created_at),
    }


def serialize_room(room: Room, hls_base_url: str) -> dict:
    """Public view of a room. Never includes the secrets."""
    return {
        "id": room.id,
        "name": room.name,
        "slug": room.slug,
        "isLive": room.is_live,
        "hlsUrl": f"{hls_base_url}/{room.stream_key}/index.m3u8",
        "createdAt": utc_iso(room.created_at),
        "updatedAt": utc_iso(room.updated_at),
    }


def serialize_admin_keys(room: Room) -> dict:
    return {
        "streamKey": room.stream_key,
        "playbackKey": room.playback_key,
    }
