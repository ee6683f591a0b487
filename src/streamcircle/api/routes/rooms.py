"""Room management endpoints."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, ConfigDict, Field, StringConstraints

from streamcircle.api.auth import require_admin
from streamcircle.api.serializers import (
    serialize_admin_keys,
    serialize_message,
    serialize_room,
)
from streamcircle.db import HISTORY_LIMIT, Repository, Room, get_session
from streamcircle.identifiers import (
    create_slug,
    generate_playback_key,
    generate_stream_key,
)

router = APIRouter(prefix="/rooms", tags=["rooms"])


class CreateRoomBody(BaseModel):
    name: Annotated[str, StringConstraints(strip_whitespace=True, min_length=3, max_length=100)]


class JoinBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    display_name: Annotated[
        str, StringConstraints(strip_whitespace=True, min_length=1, max_length=32)
    ] = Field(alias="displayName")


def _public(request: Request, room: Room) -> dict:
    return serialize_room(room, request.app.state.config.hls_base_url)


async def _get_room_or_404(repo: Repository, slug: str) -> Room:
    room = await repo.get_room_by_slug(slug)
    if room is None:
        raise HTTPException(status_code=404, detail="room not found")
    return room


@router.get("")
async def list_rooms(request: Request) -> dict:
    """All rooms, newest first."""
    async with get_session() as s:
        rooms = await Repository(s).list_rooms()
    return {"rooms": [_public(request, r) for r in rooms]}


@router.post("", status_code=201, dependencies=[Depends(require_admin)])
async def create_room(body: CreateRoomBody, request: Request) -> dict:
    """Create a room and return its secrets to the admin."""
    async with get_session() as s:
        room = await Repository(s).create_room(
            name=body.name,
            slug=create_slug(body.name),
            stream_key=generate_stream_key(),
            playback_key=generate_playback_key(),
        )
    return {"room": _public(request, room), "admin": serialize_admin_keys(room)}


@router.get("/{slug}")
async def get_room(slug: str, request: Request) -> dict:
    async with get_session() as s:
        room = await _get_room_or_404(Repository(s), slug)
    return {"room": _public(request, room)}


@router.post("/{slug}/join")
async def join_room(slug: str, body: JoinBody, request: Request) -> dict:
    """Hand out the room's playback token for a chat connection."""
    async with get_session() as s:
        room = await _get_room_or_404(Repository(s), slug)
    return {
        "room": _public(request, room),
        "chat": {"token": room.playback_key, "displayName": body.display_name},
    }


@router.post("/{slug}/rotate", dependencies=[Depends(require_admin)])
async def rotate_room(slug: str, request: Request) -> dict:
    """Issue new stream and playback keys. The room goes offline."""
    async with get_session() as s:
        repo = Repository(s)
        room = await _get_room_or_404(repo, slug)
        room = await repo.rotate_keys(
            room,
            stream_key=generate_stream_key(),
            playback_key=generate_playback_key(),
        )
    return {"room": _public(request, room), "admin": serialize_admin_keys(room)}


@router.get("/{slug}/messages")
async def get_messages(slug: str) -> dict:
    """Most recent chat messages, oldest first."""
    async with get_session() as s:
        repo = Repository(s)
        room = await _get_room_or_404(repo, slug)
        msgs = await repo.get_recent_messages(room.id, limit=HISTORY_LIMIT)
    return {"messages": [serialize_message(m) for m in reversed(msgs)]}
