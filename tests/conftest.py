"""Shared test fixtures."""

from __future__ import annotations

import asyncio

import pytest

from streamcircle.config import Config
from streamcircle.db import Repository, Room, get_session

MEMORY_DB = "sqlite+aiosqlite://"
ADMIN_TOKEN = "admin-token-for-tests"


@pytest.fixture
def config() -> Config:
    """Config pointing at an in-memory database."""
    return Config(
        admin_token=ADMIN_TOKEN,
        stream_host="https://media.example.com/",
        database_url=MEMORY_DB,
    )


@pytest.fixture
def admin_header() -> dict[str, str]:
    return {"x-admin-token": ADMIN_TOKEN}


async def create_room(
    name: str = "Jam Night",
    slug: str = "jam-night",
    stream_key: str = "stream-key-jam-night",
    playback_key: str = "ABC123",
    is_live: bool = False,
) -> Room:
    """Seed a room directly through the repository."""
    async with get_session() as s:
        repo = Repository(s)
        room = await repo.create_room(
            name=name,
            slug=slug,
            stream_key=stream_key,
            playback_key=playback_key,
        )
        if is_live:
            await repo.set_live(room.id, True)
            room.is_live = True
    return room


def drain(queue: asyncio.Queue) -> list:
    """Pop everything currently queued."""
    items = []
    while not queue.empty():
        items.append(queue.get_nowait())
    return items
