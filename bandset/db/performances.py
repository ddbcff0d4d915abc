"""Scheduled performances, their setlists and performance-session data."""

import datetime as dt
import logging

from bandset.db import as_utc, transaction, utcnow
from bandset.db.models import Membership, Performance, Round
from bandset.db.notifications import schedule_reminders
from bandset.db.setlists import SetlistItemDAO
from bandset.errors import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

PERFORMANCE_FIELDS = ('name', 'description', 'location', 'date', 'duration', 'notes')

SOURCE_PERFORMANCE = 'performance'
SOURCE_ROUND = 'round'


def list_performances(db, group_id: int, date_from: dt.datetime | None = None, date_to: dt.datetime | None = None) -> list[Performance]:
    query = db.query(Performance).filter(Performance.group_id == group_id)
    if date_from is not None:
        query = query.filter(Performance.date >= as_utc(date_from))
    if date_to is not None:
        query = query.filter(Performance.date <= as_utc(date_to))
    return query.order_by(Performance.date.desc(), Performance.id.desc()).all()


def upcoming_performances(db, user_id: int, limit: int = 10) -> list[Performance]:
    """Future performances across every group ``user_id`` belongs to, soonest first."""
    return (
        db.query(Performance)
        .join(Membership, Membership.group_id == Performance.group_id)
        .filter(Membership.user_id == user_id, Performance.date >= utcnow())
        .order_by(Performance.date.asc(), Performance.id.asc())
        .limit(limit)
        .all()
    )


def get_performance(db, group_id: int, performance_id: int) -> Performance:
    performance = db.get(Performance, performance_id)
    if performance is None or performance.group_id != group_id:
        raise NotFoundError("Performance not found")
    return performance


def create_performance(db, group_id: int, **fields) -> Performance:
    """Create a performance with reminders one day and one hour before it."""
    fields['date'] = as_utc(fields.get('date'))
    if fields['date'] is None:
        raise ValidationError("A performance needs a date")
    with transaction(db):
        performance = Performance(
            group_id=group_id, **{k: v for k, v in fields.items() if k in PERFORMANCE_FIELDS}
        )
        db.add(performance)
        db.flush()
        schedule_reminders(db, performance)
    db.refresh(performance)
    logger.info("Created performance %s in group %s on %s", performance.id, group_id, performance.date)
    return performance


def update_performance(db, group_id: int, performance_id: int, **fields) -> Performance:
    """Update the given fields.  A new date replaces the reminders."""
    performance = get_performance(db, group_id, performance_id)
    if 'date' in fields:
        if fields['date'] is None:
            raise ValidationError("A performance needs a date")
        fields['date'] = as_utc(fields['date'])
    with transaction(db):
        for name, value in fields.items():
            if name in PERFORMANCE_FIELDS:
                setattr(performance, name, value)
        if 'date' in fields:
            db.flush()
            schedule_reminders(db, performance)
    db.refresh(performance)
    return performance


def delete_performance(db, group_id: int, performance_id: int) -> None:
    performance = get_performance(db, group_id, performance_id)
    with transaction(db):
        db.delete(performance)
    logger.info("Deleted performance %s", performance_id)


def copy_setlist(db, group_id: int, performance_id: int, source_type: str, source_id: int) -> int:
    """Append the songs of another performance or round to a setlist.

    Songs already in the setlist are skipped; the rest keep their source
    order.  Notes are copied from performance sources.  Returns the number
    of songs added."""
    get_performance(db, group_id, performance_id)
    if source_type == SOURCE_PERFORMANCE:
        source = db.get(Performance, source_id)
        if source is None or source.group_id != group_id:
            raise NotFoundError("Source performance not found")
        entries = [(item.song_id, item.notes) for item in source.setlist]
    elif source_type == SOURCE_ROUND:
        source = db.get(Round, source_id)
        if source is None or source.group_id != group_id:
            raise NotFoundError("Source round not found")
        entries = [(item.song_id, None) for item in source.items]
    else:
        raise ValidationError(f"Unknown source type: {source_type}")
    added = SetlistItemDAO(db).append_songs(performance_id, entries, group_id=group_id)
    logger.info("Copied %d songs from %s %s into performance %s", added, source_type, source_id, performance_id)
    return added


def performance_session(db, group_id: int, round_ids: list[int]) -> dict:
    """Rounds of one group in creation order plus their songs flattened into one running order."""
    rounds = (
        db.query(Round)
        .filter(Round.group_id == group_id, Round.id.in_(round_ids))
        .order_by(Round.created_at.asc(), Round.id.asc())
        .all()
    ) if round_ids else []
    songs = []
    for rnd in rounds:
        for item in rnd.items:
            songs.append({
                'song': item.song,
                'round_name': rnd.name,
                'round_item_id': item.id,
                'position_in_round': item.position,
            })
    return {'rounds': rounds, 'songs': songs}
