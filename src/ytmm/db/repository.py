"""SQLite-backed state store."""

import asyncio
from collections.abc import Iterable

from sqlalchemy import Engine
from sqlmodel import Session, col, select

from ytmm.db.models import PlaylistRecord, TrackRecord
from ytmm.exceptions import PlaylistNotFoundError
from ytmm.models.track import Playlist, Track


def _to_playlist(record: PlaylistRecord) -> Playlist:
    return Playlist.model_validate(record.model_dump())


def _to_track(record: TrackRecord) -> Track:
    return Track.model_validate(record.model_dump())


def _playlist_record(playlist: Playlist) -> PlaylistRecord:
    return PlaylistRecord(**playlist.model_dump())


def _track_record(track: Track) -> TrackRecord:
    data = track.model_dump()
    data["local_path"] = str(track.local_path) if track.local_path else None
    return TrackRecord(**data)


class SQLStore:
    """StateStore persisted with SQLModel.

    Every method opens its own session and commits once, so each call is
    crash-consistent on its own. Queries run in a worker thread to keep the
    event loop responsive.
    """

    def __init__(self, engine: Engine) -> None:
        """Initialize store with database engine."""
        self._engine = engine

    # -- reads ---------------------------------------------------------------

    async def get_playlist(self, playlist_id: str) -> Playlist | None:
        return await asyncio.to_thread(self._get_playlist, playlist_id)

    async def list_playlists(self) -> list[Playlist]:
        return await asyncio.to_thread(self._list_playlists)

    async def get_track(self, track_id: str) -> Track | None:
        return await asyncio.to_thread(self._get_track, track_id)

    async def list_tracks(self, playlist_id: str) -> list[Track]:
        return await asyncio.to_thread(self._list_tracks, playlist_id)

    # -- writes --------------------------------------------------------------

    async def upsert_playlist(self, playlist: Playlist) -> None:
        await asyncio.to_thread(self._upsert_playlist, playlist)

    async def upsert_track(self, track: Track) -> None:
        await asyncio.to_thread(self._upsert_track, track)

    async def remove_tracks(self, track_ids: Iterable[str]) -> int:
        return await asyncio.to_thread(self._remove_tracks, list(track_ids))

    async def remove_playlist(self, playlist_id: str) -> bool:
        return await asyncio.to_thread(self._remove_playlist, playlist_id)

    # -- sync implementations -----------------------------------------------

    def _get_playlist(self, playlist_id: str) -> Playlist | None:
        with Session(self._engine) as session:
            record = session.get(PlaylistRecord, playlist_id)
            return _to_playlist(record) if record else None

    def _list_playlists(self) -> list[Playlist]:
        with Session(self._engine) as session:
            stmt = select(PlaylistRecord).order_by(col(PlaylistRecord.date_added))
            return [_to_playlist(r) for r in session.exec(stmt).all()]

    def _get_track(self, track_id: str) -> Track | None:
        with Session(self._engine) as session:
            record = session.get(TrackRecord, track_id)
            return _to_track(record) if record else None

    def _list_tracks(self, playlist_id: str) -> list[Track]:
        with Session(self._engine) as session:
            stmt = (
                select(TrackRecord)
                .where(TrackRecord.playlist_id == playlist_id)
                .order_by(col(TrackRecord.position))
            )
            return [_to_track(r) for r in session.exec(stmt).all()]

    def _upsert_playlist(self, playlist: Playlist) -> None:
        with Session(self._engine) as session:
            session.merge(_playlist_record(playlist))
            session.commit()

    def _upsert_track(self, track: Track) -> None:
        with Session(self._engine) as session:
            if session.get(PlaylistRecord, track.playlist_id) is None:
                raise PlaylistNotFoundError(f"Playlist not found: {track.playlist_id}")
            session.merge(_track_record(track))
            session.commit()

    def _remove_tracks(self, track_ids: list[str]) -> int:
        if not track_ids:
            return 0
        with Session(self._engine) as session:
            stmt = select(TrackRecord).where(col(TrackRecord.id).in_(track_ids))
            records = session.exec(stmt).all()
            for record in records:
                session.delete(record)
            session.commit()
            return len(records)

    def _remove_playlist(self, playlist_id: str) -> bool:
        with Session(self._engine) as session:
            playlist = session.get(PlaylistRecord, playlist_id)
            if playlist is None:
                return False
            stmt = select(TrackRecord).where(TrackRecord.playlist_id == playlist_id)
            for record in session.exec(stmt).all():
                session.delete(record)
            session.delete(playlist)
            session.commit()
            return True
