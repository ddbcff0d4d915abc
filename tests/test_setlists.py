import datetime as dt

import pytest
from sqlalchemy.exc import OperationalError

from bandset.db import utcnow
from bandset.db.groups import create_group
from bandset.db.models import User
from bandset.db.performances import create_performance
from bandset.db.rounds import create_round
from bandset.db.setlists import RoundItemDAO, SetlistItemDAO
from bandset.db.songs import create_song
from bandset.errors import ConflictError, NotFoundError, TransientStoreError, ValidationError


@pytest.fixture
def group_id(db):
    user = User(username="alice", password_hash="x")
    db.add(user)
    db.commit()
    return create_group(db, user.id, "The Band").id


@pytest.fixture
def songs(db, group_id):
    """Five songs of the group, keyed A..E."""
    return {
        title: create_song(db, group_id, title=title, lyrics="la la", genre="folk").id
        for title in "ABCDE"
    }


@pytest.fixture(params=["round", "performance"])
def container(request, db, group_id):
    if request.param == "round":
        return RoundItemDAO(db), create_round(db, group_id, "Set 1").id
    performance = create_performance(db, group_id, name="Gig", date=utcnow() + dt.timedelta(days=3))
    return SetlistItemDAO(db), performance.id


def layout(dao, container_id):
    return [(item.song_id, item.position) for item in dao.list_items(container_id)]


def test_reconcile_fills_empty_container(container, songs):
    dao, cid = container
    result = dao.reconcile(cid, [songs["A"], songs["B"], songs["C"]])
    assert (result.created, result.updated, result.deleted) == (3, 0, 0)
    assert layout(dao, cid) == [(songs["A"], 0), (songs["B"], 1), (songs["C"], 2)]


def test_reconcile_drops_and_reorders(container, songs):
    dao, cid = container
    dao.reconcile(cid, [songs["A"], songs["B"], songs["C"]])
    result = dao.reconcile(cid, [songs["C"], songs["A"]])
    assert (result.created, result.updated, result.deleted) == (0, 2, 1)
    assert layout(dao, cid) == [(songs["C"], 0), (songs["A"], 1)]


def test_reconcile_adds_moves_and_keeps_notes(container, songs):
    dao, cid = container
    dao.reconcile(cid, [songs["A"], songs["B"]])
    dao.update_notes(cid, songs["A"], "capo 2")
    result = dao.reconcile(cid, [songs["B"], songs["D"], songs["A"]])
    assert (result.created, result.updated, result.deleted) == (1, 2, 0)
    assert layout(dao, cid) == [(songs["B"], 0), (songs["D"], 1), (songs["A"], 2)]
    notes = {item.song_id: item.notes for item in dao.list_items(cid)}
    assert notes == {songs["B"]: None, songs["D"]: None, songs["A"]: "capo 2"}


def test_reconcile_is_idempotent(container, songs):
    dao, cid = container
    order = [songs["E"], songs["A"], songs["C"]]
    dao.reconcile(cid, order)
    before = [(item.id, item.position) for item in dao.list_items(cid)]
    result = dao.reconcile(cid, order)
    assert not result.changed
    assert [(item.id, item.position) for item in dao.list_items(cid)] == before


def test_reconcile_with_empty_list_clears_container(container, songs):
    dao, cid = container
    dao.reconcile(cid, [songs["A"], songs["B"]])
    result = dao.reconcile(cid, [])
    assert result.deleted == 2
    assert layout(dao, cid) == []


def test_reconcile_rejects_duplicate_ids(container, songs):
    dao, cid = container
    dao.reconcile(cid, [songs["A"], songs["B"]])
    with pytest.raises(ValidationError):
        dao.reconcile(cid, [songs["B"], songs["B"]])
    assert layout(dao, cid) == [(songs["A"], 0), (songs["B"], 1)]


def test_reconcile_unknown_song_changes_nothing(container, songs):
    dao, cid = container
    dao.reconcile(cid, [songs["A"], songs["B"]])
    with pytest.raises(NotFoundError) as excinfo:
        dao.reconcile(cid, [songs["B"], 9999, 9998])
    assert excinfo.value.message == "Song not found: 9998, 9999"
    assert layout(dao, cid) == [(songs["A"], 0), (songs["B"], 1)]


def test_reconcile_rejects_song_of_another_group(db, container, songs):
    dao, cid = container
    other = create_group(db, db.query(User).first().id, "Other Band")
    foreign = create_song(db, other.id, title="Foreign", lyrics="x", genre="pop").id
    with pytest.raises(NotFoundError):
        dao.reconcile(cid, [songs["A"], foreign])
    assert layout(dao, cid) == []


def test_reconcile_unknown_container(db, songs):
    with pytest.raises(NotFoundError) as excinfo:
        RoundItemDAO(db).reconcile(12345, [songs["A"]])
    assert excinfo.value.message == "Round not found"


def test_container_of_another_group_is_not_found(container, songs, group_id):
    dao, cid = container
    with pytest.raises(NotFoundError):
        dao.reconcile(cid, [songs["A"]], group_id=group_id + 1)


def test_reconcile_failure_rolls_back_everything(container, songs, monkeypatch):
    dao, cid = container
    dao.reconcile(cid, [songs["A"], songs["B"], songs["C"]])

    def lost_connection(*args, **kwargs):
        raise OperationalError("INSERT", {}, Exception("server closed the connection"))

    monkeypatch.setattr(dao, "_new_item", lost_connection)
    with pytest.raises(TransientStoreError):
        # deletes B, moves C and A, then fails creating D
        dao.reconcile(cid, [songs["C"], songs["A"], songs["D"]])
    assert layout(dao, cid) == [(songs["A"], 0), (songs["B"], 1), (songs["C"], 2)]


def test_add_song_appends_by_default(container, songs):
    dao, cid = container
    first = dao.add_song(cid, songs["A"])
    second = dao.add_song(cid, songs["B"], notes="slow intro")
    assert (first.position, second.position) == (0, 1)
    assert second.notes == "slow intro"


def test_add_song_at_position_shifts_the_rest(container, songs):
    dao, cid = container
    dao.reconcile(cid, [songs["A"], songs["B"], songs["C"]])
    item = dao.add_song(cid, songs["D"], position=1)
    assert item.position == 1
    assert layout(dao, cid) == [(songs["A"], 0), (songs["D"], 1), (songs["B"], 2), (songs["C"], 3)]


def test_add_song_past_the_end_is_clamped(container, songs):
    dao, cid = container
    dao.reconcile(cid, [songs["A"]])
    assert dao.add_song(cid, songs["B"], position=42).position == 1


def test_add_song_rejects_negative_position(container, songs):
    dao, cid = container
    with pytest.raises(ValidationError):
        dao.add_song(cid, songs["A"], position=-1)


def test_add_song_twice_is_a_conflict(container, songs):
    dao, cid = container
    dao.add_song(cid, songs["A"])
    with pytest.raises(ConflictError):
        dao.add_song(cid, songs["A"])
    assert layout(dao, cid) == [(songs["A"], 0)]


def test_add_unknown_song(container):
    dao, cid = container
    with pytest.raises(NotFoundError):
        dao.add_song(cid, 424242)


def test_remove_song_closes_the_gap(container, songs):
    dao, cid = container
    dao.reconcile(cid, [songs["A"], songs["B"], songs["C"]])
    assert dao.remove_song(cid, songs["B"]) is True
    assert layout(dao, cid) == [(songs["A"], 0), (songs["C"], 1)]


def test_remove_absent_song_is_a_no_op(container, songs):
    dao, cid = container
    dao.reconcile(cid, [songs["A"], songs["B"]])
    assert dao.remove_song(cid, songs["C"]) is False
    assert layout(dao, cid) == [(songs["A"], 0), (songs["B"], 1)]


def test_update_notes_of_missing_item(container, songs):
    dao, cid = container
    with pytest.raises(NotFoundError):
        dao.update_notes(cid, songs["A"], "x")


def test_append_songs_skips_present_ones(container, songs):
    dao, cid = container
    dao.reconcile(cid, [songs["B"]])
    added = dao.append_songs(cid, [(songs["A"], "first"), (songs["B"], None), (songs["C"], None)])
    assert added == 2
    assert layout(dao, cid) == [(songs["B"], 0), (songs["A"], 1), (songs["C"], 2)]


def test_normalize_repairs_gaps(db, container, songs):
    dao, cid = container
    dao.reconcile(cid, [songs["A"], songs["B"], songs["C"]])
    for item, position in zip(dao.list_items(cid), (0, 5, 9)):
        item.position = position
    db.commit()
    assert dao.normalize(cid) == 2
    assert layout(dao, cid) == [(songs["A"], 0), (songs["B"], 1), (songs["C"], 2)]


def test_create_round_with_songs(db, group_id, songs):
    rnd = create_round(db, group_id, "Opening", song_ids=[songs["C"], songs["A"]])
    assert [(item.song_id, item.position) for item in rnd.items] == [(songs["C"], 0), (songs["A"], 1)]


def test_create_round_with_unknown_song_is_not_created(db, group_id, songs):
    from bandset.db.rounds import list_rounds

    with pytest.raises(NotFoundError):
        create_round(db, group_id, "Broken", song_ids=[songs["A"], 777])
    assert list_rounds(db, group_id) == []
