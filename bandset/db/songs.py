"""Song library of a group."""

import logging

from sqlalchemy import func

from bandset.db import transaction
from bandset.db.models import RoundItem, SetlistItem, Song
from bandset.db.setlists import RoundItemDAO, SetlistItemDAO
from bandset.errors import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

HARMONICA_TUNINGS = ('C-F-B', 'B-Es-As', 'A-D-G')

SORT_COLUMNS = {
    'title': Song.title,
    'createdAt': Song.created_at,
    'favorite': Song.favorite,
}

SONG_FIELDS = (
    'title', 'lyrics', 'genre', 'key', 'notes', 'favorite',
    'harmonica', 'bas_bariton', 'accordion_tuning', 'instrument',
)


def _check_fields(fields: dict) -> None:
    harmonica = fields.get('harmonica')
    if harmonica is not None and harmonica not in HARMONICA_TUNINGS:
        raise ValidationError(f"Invalid harmonica tuning: {harmonica}")


def list_songs(
    db,
    group_id: int,
    search: str | None = None,
    genre: str | None = None,
    harmonica: str | None = None,
    favorite: bool | None = None,
    sort_by: str | None = None,
    order: str | None = None,
) -> list[Song]:
    query = db.query(Song).filter(Song.group_id == group_id)
    if search:
        query = query.filter(func.lower(Song.title).contains(search.lower()))
    if genre:
        query = query.filter(func.lower(Song.genre).contains(genre.lower()))
    if harmonica:
        query = query.filter(func.lower(Song.harmonica).contains(harmonica.lower()))
    if favorite is not None:
        query = query.filter(Song.favorite.is_(favorite))
    column = SORT_COLUMNS.get(sort_by or 'title')
    if column is None:
        raise ValidationError(f"Cannot sort by {sort_by}")
    column = column.desc() if order == 'desc' else column.asc()
    return query.order_by(column, Song.id.asc()).all()


def get_song(db, group_id: int, song_id: int) -> Song:
    song = db.get(Song, song_id)
    if song is None or song.group_id != group_id:
        raise NotFoundError("Song not found")
    return song


def create_song(db, group_id: int, **fields) -> Song:
    _check_fields(fields)
    with transaction(db):
        song = Song(group_id=group_id, **{k: v for k, v in fields.items() if k in SONG_FIELDS})
        if song.favorite is None:
            song.favorite = False
        db.add(song)
    db.refresh(song)
    return song


def update_song(db, group_id: int, song_id: int, **fields) -> Song:
    _check_fields(fields)
    song = get_song(db, group_id, song_id)
    with transaction(db):
        for name, value in fields.items():
            if name in SONG_FIELDS:
                setattr(song, name, value)
        if song.favorite is None:
            song.favorite = False
    db.refresh(song)
    return song


def toggle_favorite(db, group_id: int, song_id: int) -> Song:
    song = get_song(db, group_id, song_id)
    with transaction(db):
        song.favorite = not song.favorite
    db.refresh(song)
    return song


def delete_song(db, group_id: int, song_id: int) -> None:
    """Delete a song, dropping it from every round and setlist.

    The containers it was removed from are renumbered so their positions
    stay dense."""
    song = get_song(db, group_id, song_id)
    round_ids = [row.round_id for row in db.query(RoundItem.round_id).filter_by(song_id=song_id)]
    performance_ids = [
        row.performance_id for row in db.query(SetlistItem.performance_id).filter_by(song_id=song_id)
    ]
    with transaction(db):
        db.query(RoundItem).filter_by(song_id=song_id).delete(synchronize_session=False)
        db.query(SetlistItem).filter_by(song_id=song_id).delete(synchronize_session=False)
        db.delete(song)
        for round_id in round_ids:
            RoundItemDAO(db).renumber(round_id)
        for performance_id in performance_ids:
            SetlistItemDAO(db).renumber(performance_id)
    logger.info(
        "Deleted song %s (removed from %d rounds, %d setlists)",
        song_id, len(round_ids), len(performance_ids),
    )
