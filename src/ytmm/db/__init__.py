"""Database module for durable library state."""

from ytmm.db.engine import DB_FILE, create_db_engine, init_db
from ytmm.db.models import PlaylistRecord, TrackRecord
from ytmm.db.repository import SQLStore

__all__ = [
    "DB_FILE",
    "PlaylistRecord",
    "SQLStore",
    "TrackRecord",
    "create_db_engine",
    "init_db",
]
