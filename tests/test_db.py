"""Tests for the database layer (models + repository)."""

import pytest
from sqlalchemy.exc import IntegrityError

from conftest import MEMORY_DB, create_room
from streamcircle.db import Repository, close_db, get_session, init_db


@pytest.fixture(autouse=True)
async def db():
    """Create an in-memory SQLite DB for each test."""
    await init_db(MEMORY_DB)
    yield
    await close_db()


# ---------------------------------------------------------------
# Rooms
# ---------------------------------------------------------------

async def test_create_room():
    room = await create_room()
    assert room.id
    assert room.slug == "jam-night"
    assert room.is_live is False
    assert room.created_at is not None


async def test_get_room_by_slug_and_stream_key():
    room = await create_room()
    async with get_session() as s:
        repo = Repository(s)
        by_slug = await repo.get_room_by_slug("jam-night")
        by_key = await repo.get_room_by_stream_key("stream-key-jam-night")
        missing = await repo.get_room_by_stream_key("nope")
    assert by_slug.id == room.id
    assert by_key.id == room.id
    assert missing is None


async def test_slug_is_unique():
    await create_room()
    with pytest.raises(IntegrityError):
        await create_room(stream_key="another-key")


async def test_stream_key_is_unique():
    await create_room()
    with pytest.raises(IntegrityError):
        await create_room(slug="another-slug")


async def test_list_rooms_newest_first():
    await create_room(slug="first", stream_key="k1")
    await create_room(slug="second", stream_key="k2")
    async with get_session() as s:
        rooms = await Repository(s).list_rooms()
    assert [r.slug for r in rooms] == ["second", "first"]


async def test_set_live():
    room = await create_room()
    async with get_session() as s:
        await Repository(s).set_live(room.id, True)
    async with get_session() as s:
        stored = await Repository(s).get_room_by_slug("jam-night")
    assert stored.is_live is True


async def test_rotate_keys_resets_live():
    await create_room(is_live=True)
    async with get_session() as s:
        repo = Repository(s)
        room = await repo.get_room_by_slug("jam-night")
        rotated = await repo.rotate_keys(room, stream_key="new-sk", playback_key="new-pk")
    assert rotated.stream_key == "new-sk"
    assert rotated.playback_key == "new-pk"
    assert rotated.is_live is False

    async with get_session() as s:
        repo = Repository(s)
        assert await repo.get_room_by_stream_key("stream-key-jam-night") is None
        assert (await repo.get_room_by_stream_key("new-sk")).is_live is False


# ---------------------------------------------------------------
# Messages
# ---------------------------------------------------------------

async def test_add_message():
    room = await create_room()
    async with get_session() as s:
        msg = await Repository(s).add_message(room.id, "Alex", "hi")
    assert msg.id is not None
    assert msg.room_id == room.id
    assert msg.author == "Alex"
    assert msg.created_at is not None


async def test_get_recent_messages_newest_first_with_limit():
    room = await create_room()
    async with get_session() as s:
        repo = Repository(s)
        for i in range(5):
            await repo.add_message(room.id, "Alex", f"msg-{i}")

    async with get_session() as s:
        msgs = await Repository(s).get_recent_messages(room.id, limit=3)
    assert [m.content for m in msgs] == ["msg-4", "msg-3", "msg-2"]


async def test_get_recent_messages_scoped_to_room():
    room = await create_room()
    other = await create_room(slug="other", stream_key="other-key")
    async with get_session() as s:
        repo = Repository(s)
        await repo.add_message(room.id, "Alex", "here")
        await repo.add_message(other.id, "Sam", "there")

    async with get_session() as s:
        msgs = await Repository(s).get_recent_messages(room.id)
    assert [m.content for m in msgs] == ["here"]


async def test_message_repr_truncates():
    from streamcircle.db.models import Message

    msg = Message(room_id="r1", author="Alex", content="x" * 60)
    assert "..." in repr(msg)


async def test_init_db_migrates_file_database(tmp_path):
    await close_db()
    db_path = tmp_path / "nested" / "streamcircle.db"
    await init_db(f"sqlite+aiosqlite:///{db_path}")

    room = await create_room()
    async with get_session() as s:
        await Repository(s).add_message(room.id, "Alex", "persisted")

    assert db_path.exists()
    async with get_session() as s:
        msgs = await Repository(s).get_recent_messages(room.id)
    assert [m.content for m in msgs] == ["persisted"]
