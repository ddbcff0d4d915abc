"""Rounds and their ordered song items."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from bandset.api.deps import PathId, group_admin, group_member
from bandset.api.responses import pdf_response
from bandset.api.schemas import (
    AddItemRequest,
    ItemOut,
    NotesUpdate,
    ReorderRequest,
    ReorderResponse,
    RoundCreate,
    RoundOut,
    RoundUpdate,
    Success,
)
from bandset.db import get_db
from bandset.db import rounds as rounds_db
from bandset.db.models import Membership
from bandset.db.setlists import get_round_dao
from bandset.utils.pdf import render_setlist_pdf

router = APIRouter(prefix='/api/groups/{group_id}/rounds', tags=['rounds'])


@router.get('', response_model=list[RoundOut])
def list_rounds(group_id: PathId, membership: Membership = Depends(group_member), db: Session = Depends(get_db)):
    return [RoundOut.model_validate(r) for r in rounds_db.list_rounds(db, group_id)]


@router.post('', response_model=RoundOut, status_code=status.HTTP_201_CREATED)
def create_round(group_id: PathId, body: RoundCreate, membership: Membership = Depends(group_member), db: Session = Depends(get_db)):
    rnd = rounds_db.create_round(db, group_id, body.name.strip(), body.description, body.song_ids)
    return RoundOut.model_validate(rnd)


@router.get('/{round_id}', response_model=RoundOut)
def get_round(group_id: PathId, round_id: PathId, membership: Membership = Depends(group_member), db: Session = Depends(get_db)):
    return RoundOut.model_validate(rounds_db.get_round(db, group_id, round_id))


@router.put('/{round_id}', response_model=RoundOut)
def update_round(
    group_id: PathId,
    round_id: PathId,
    body: RoundUpdate,
    membership: Membership = Depends(group_member),
    db: Session = Depends(get_db),
):
    return RoundOut.model_validate(rounds_db.update_round(db, group_id, round_id, body.name, body.description))


@router.delete('/{round_id}', response_model=Success)
def delete_round(group_id: PathId, round_id: PathId, membership: Membership = Depends(group_admin), db: Session = Depends(get_db)):
    rounds_db.delete_round(db, group_id, round_id)
    return Success()


@router.post('/{round_id}/reorder', response_model=ReorderResponse)
def reorder_items(
    group_id: PathId,
    round_id: PathId,
    body: ReorderRequest,
    membership: Membership = Depends(group_member),
    db: Session = Depends(get_db),
):
    result = get_round_dao(db).reconcile(round_id, body.song_ids, group_id=group_id)
    return ReorderResponse(created=result.created, updated=result.updated, deleted=result.deleted)


@router.post('/{round_id}/songs', response_model=ItemOut, status_code=status.HTTP_201_CREATED)
def add_item(
    group_id: PathId,
    round_id: PathId,
    body: AddItemRequest,
    membership: Membership = Depends(group_member),
    db: Session = Depends(get_db),
):
    item = get_round_dao(db).add_song(round_id, body.song_id, body.position, body.notes, group_id=group_id)
    return ItemOut.model_validate(item)


@router.put('/{round_id}/songs/{song_id}', response_model=ItemOut)
def update_item_notes(
    group_id: PathId,
    round_id: PathId,
    song_id: PathId,
    body: NotesUpdate,
    membership: Membership = Depends(group_member),
    db: Session = Depends(get_db),
):
    item = get_round_dao(db).update_notes(round_id, song_id, body.notes, group_id=group_id)
    return ItemOut.model_validate(item)


@router.delete('/{round_id}/songs/{song_id}', response_model=Success)
def remove_item(
    group_id: PathId,
    round_id: PathId,
    song_id: PathId,
    membership: Membership = Depends(group_member),
    db: Session = Depends(get_db),
):
    get_round_dao(db).remove_song(round_id, song_id, group_id=group_id)
    return Success()


@router.get('/{round_id}/pdf')
def export_pdf(
    group_id: PathId,
    round_id: PathId,
    lyrics: bool = False,
    membership: Membership = Depends(group_member),
    db: Session = Depends(get_db),
):
    rnd = rounds_db.get_round(db, group_id, round_id)
    data = render_setlist_pdf(rnd.name, rnd.items, subtitle=rnd.description, include_lyrics=lyrics)
    return pdf_response(data, rnd.name)
