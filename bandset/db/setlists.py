"""Ordered song lists: round items and performance setlists.

Both containers keep the same invariants, enforced here rather than by the
callers:

* positions within one container are ``0..n-1`` with no gaps or duplicates;
* a song appears at most once per container.

Every public method runs as a single transaction, so a failure part way
through leaves the container exactly as it was.
"""

import logging
from collections import Counter
from dataclasses import dataclass
from typing import Iterable

from sqlalchemy import func

from bandset.db import transaction
from bandset.db.models import Performance, Round, RoundItem, SetlistItem, Song
from bandset.errors import ConflictError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)


@dataclass
class ReconcileResult:
    created: int = 0
    updated: int = 0
    deleted: int = 0

    @property
    def changed(self) -> bool:
        return bool(self.created or self.updated or self.deleted)


class SetlistDAO:
    """Data access helper for one kind of ordered song container."""

    container_model = None
    item_model = None
    container_fk = None
    label = "Container"

    def __init__(self, db):
        self.db = db

    # ------------------------------------------------------------------
    # Lookups

    def get_container(self, container_id: int, group_id: int | None = None):
        container = self.db.get(self.container_model, container_id)
        if container is None or (group_id is not None and container.group_id != group_id):
            raise NotFoundError(f"{self.label} not found")
        return container

    def list_items(self, container_id: int) -> list:
        fk = getattr(self.item_model, self.container_fk)
        return (
            self.db.query(self.item_model)
            .filter(fk == container_id)
            .order_by(self.item_model.position, self.item_model.id)
            .all()
        )

    def _find_item(self, container_id: int, song_id: int):
        fk = getattr(self.item_model, self.container_fk)
        return (
            self.db.query(self.item_model)
            .filter(fk == container_id, self.item_model.song_id == song_id)
            .first()
        )

    def _require_songs(self, song_ids: Iterable[int], group_id: int) -> None:
        """Raise one :class:`NotFoundError` naming every unknown song id."""
        wanted = set(song_ids)
        if not wanted:
            return
        found = {
            row.id
            for row in self.db.query(Song.id).filter(Song.id.in_(wanted), Song.group_id == group_id)
        }
        missing = sorted(wanted - found)
        if missing:
            raise NotFoundError(f"Song not found: {', '.join(str(i) for i in missing)}")

    def _new_item(self, container_id: int, song_id: int, position: int, notes: str | None = None):
        item = self.item_model(song_id=song_id, position=position, notes=notes)
        setattr(item, self.container_fk, container_id)
        self.db.add(item)
        return item

    def _renumber(self, items: list) -> int:
        updated = 0
        for index, item in enumerate(items):
            if item.position != index:
                item.position = index
                updated += 1
        return updated

    # ------------------------------------------------------------------
    # Mutations

    def reconcile(self, container_id: int, song_ids: list[int], group_id: int | None = None) -> ReconcileResult:
        """Make the container hold exactly ``song_ids``, in that order.

        Items for songs no longer listed are deleted, kept items move to the
        index of their song in ``song_ids`` and missing songs get new items
        without notes.  Repeating the call with the same list changes nothing.
        """
        song_ids = list(song_ids)
        duplicates = sorted(song_id for song_id, count in Counter(song_ids).items() if count > 1)
        if duplicates:
            raise ValidationError(f"Duplicate song ids: {', '.join(str(i) for i in duplicates)}")
        result = ReconcileResult()
        with transaction(self.db):
            container = self.get_container(container_id, group_id)
            self._require_songs(song_ids, container.group_id)
            wanted = {song_id: index for index, song_id in enumerate(song_ids)}

            kept = {}
            for item in self.list_items(container_id):
                if item.song_id not in wanted or item.song_id in kept:
                    self.db.delete(item)
                    result.deleted += 1
                else:
                    kept[item.song_id] = item
            # deletes reach the store before any (container, song) insert
            self.db.flush()

            for song_id, item in kept.items():
                if item.position != wanted[song_id]:
                    item.position = wanted[song_id]
                    result.updated += 1

            for song_id in song_ids:
                if song_id not in kept:
                    self._new_item(container_id, song_id, wanted[song_id])
                    result.created += 1
            self.db.flush()
        if result.changed:
            logger.info(
                "Reconciled %s %s: %d created, %d moved, %d deleted",
                self.label.lower(), container_id, result.created, result.updated, result.deleted,
            )
        return result

    def add_song(
        self,
        container_id: int,
        song_id: int,
        position: int | None = None,
        notes: str | None = None,
        group_id: int | None = None,
    ):
        """Insert ``song_id`` at ``position`` (default: after the last item).

        Items at or after the insert position shift down by one.  Adding a
        song that is already present is a :class:`ConflictError`.
        """
        if position is not None and position < 0:
            raise ValidationError("Position must not be negative")
        with transaction(self.db):
            container = self.get_container(container_id, group_id)
            self._require_songs([song_id], container.group_id)
            if self._find_item(container_id, song_id) is not None:
                raise ConflictError(f"Song {song_id} is already in this {self.label.lower()}")
            fk = getattr(self.item_model, self.container_fk)
            last = (
                self.db.query(func.max(self.item_model.position))
                .filter(fk == container_id)
                .scalar()
            )
            end = 0 if last is None else last + 1
            if position is None or position > end:
                position = end
            for item in self.list_items(container_id):
                if item.position >= position:
                    item.position += 1
            item = self._new_item(container_id, song_id, position, notes)
            self.db.flush()
        self.db.refresh(item)
        logger.info("Added song %s to %s %s at %d", song_id, self.label.lower(), container_id, position)
        return item

    def remove_song(self, container_id: int, song_id: int, group_id: int | None = None) -> bool:
        """Remove ``song_id`` and close the gap.  Absent songs are a no-op."""
        with transaction(self.db):
            self.get_container(container_id, group_id)
            item = self._find_item(container_id, song_id)
            if item is None:
                return False
            self.db.delete(item)
            self.db.flush()
            self._renumber(self.list_items(container_id))
        logger.info("Removed song %s from %s %s", song_id, self.label.lower(), container_id)
        return True

    def update_notes(self, container_id: int, song_id: int, notes: str | None, group_id: int | None = None):
        with transaction(self.db):
            self.get_container(container_id, group_id)
            item = self._find_item(container_id, song_id)
            if item is None:
                raise NotFoundError(f"Song {song_id} is not in this {self.label.lower()}")
            item.notes = notes
        self.db.refresh(item)
        return item

    def append_songs(self, container_id: int, entries: Iterable[tuple[int, str | None]], group_id: int | None = None) -> int:
        """Append ``(song_id, notes)`` pairs that are not present yet.  Returns the count added."""
        added = 0
        with transaction(self.db):
            container = self.get_container(container_id, group_id)
            items = self.list_items(container_id)
            self._renumber(items)
            present = {item.song_id for item in items}
            entries = [(song_id, notes) for song_id, notes in entries]
            self._require_songs([song_id for song_id, _ in entries], container.group_id)
            for song_id, notes in entries:
                if song_id in present:
                    continue
                self._new_item(container_id, song_id, len(items) + added, notes)
                present.add(song_id)
                added += 1
            self.db.flush()
        return added

    def renumber(self, container_id: int) -> int:
        """Renumber positions to ``0..n-1`` inside the caller's transaction."""
        self.db.flush()
        return self._renumber(self.list_items(container_id))

    def normalize(self, container_id: int) -> int:
        """Renumber positions to ``0..n-1`` keeping the current order."""
        with transaction(self.db):
            self.get_container(container_id)
            updated = self.renumber(container_id)
        return updated


class RoundItemDAO(SetlistDAO):
    container_model = Round
    item_model = RoundItem
    container_fk = "round_id"
    label = "Round"


class SetlistItemDAO(SetlistDAO):
    container_model = Performance
    item_model = SetlistItem
    container_fk = "performance_id"
    label = "Performance"


def get_round_dao(db) -> RoundItemDAO:
    return RoundItemDAO(db)


def get_setlist_dao(db) -> SetlistItemDAO:
    return SetlistItemDAO(db)
