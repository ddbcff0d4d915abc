"""Rounds: reusable setlist templates of a group."""

import logging

from bandset.db import transaction
from bandset.db.models import Round
from bandset.db.setlists import RoundItemDAO
from bandset.errors import NotFoundError

logger = logging.getLogger(__name__)


def list_rounds(db, group_id: int) -> list[Round]:
    return (
        db.query(Round)
        .filter(Round.group_id == group_id)
        .order_by(Round.created_at.desc(), Round.id.desc())
        .all()
    )


def get_round(db, group_id: int, round_id: int) -> Round:
    rnd = db.get(Round, round_id)
    if rnd is None or rnd.group_id != group_id:
        raise NotFoundError("Round not found")
    return rnd


def create_round(db, group_id: int, name: str, description: str | None = None, song_ids: list[int] = ()) -> Round:
    """Create a round holding ``song_ids`` in order, all in one transaction."""
    with transaction(db):
        rnd = Round(group_id=group_id, name=name, description=description)
        db.add(rnd)
        db.flush()
        RoundItemDAO(db).reconcile(rnd.id, song_ids)
    db.refresh(rnd)
    logger.info("Created round %s in group %s with %d songs", rnd.id, group_id, len(rnd.items))
    return rnd


def update_round(db, group_id: int, round_id: int, name: str | None = None, description: str | None = None) -> Round:
    rnd = get_round(db, group_id, round_id)
    with transaction(db):
        if name is not None:
            rnd.name = name
        if description is not None:
            rnd.description = description
    db.refresh(rnd)
    return rnd


def delete_round(db, group_id: int, round_id: int) -> None:
    rnd = get_round(db, group_id, round_id)
    with transaction(db):
        db.delete(rnd)
    logger.info("Deleted round %s", round_id)
