"""Database layer for streamcircle — async SQLAlchemy with SQLite (portable)."""

from streamcircle.db.engine import close_db, get_session, init_db
from streamcircle.db.models import Base, Message, Room
from streamcircle.db.repository import HISTORY_LIMIT, Repository

__all__ = [
    "Base",
    "HISTORY_LIMIT",
    "Message",
    "Repository",
    "Room",
    "close_db",
    "get_session",
    "init_db",
]
