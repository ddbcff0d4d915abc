"""Performances, their setlists and the live performance session."""

import datetime as dt
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from bandset.api.deps import PathId, get_current_user, group_admin, group_member
from bandset.api.responses import pdf_response
from bandset.api.schemas import (
    AddItemRequest,
    CopySetlistRequest,
    CopySetlistResponse,
    Id,
    ItemOut,
    NotesUpdate,
    PerformanceCreate,
    PerformanceOut,
    PerformanceSessionOut,
    PerformanceUpdate,
    ReorderRequest,
    ReorderResponse,
    RoundOut,
    SessionSongOut,
    SongOut,
    Success,
    UpcomingPerformanceOut,
)
from bandset.db import get_db
from bandset.db import performances as performances_db
from bandset.db.models import Membership, User
from bandset.db.setlists import get_setlist_dao
from bandset.utils.pdf import render_setlist_pdf

router = APIRouter(prefix='/api', tags=['performances'])

GROUP_PREFIX = '/groups/{group_id}/performances'


@router.get('/performances/upcoming', response_model=list[UpcomingPerformanceOut])
def upcoming(
    limit: int = Query(10, ge=1, le=100),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return [
        UpcomingPerformanceOut.model_validate(p)
        for p in performances_db.upcoming_performances(db, user.id, limit=limit)
    ]


@router.get(GROUP_PREFIX, response_model=list[PerformanceOut])
def list_performances(
    group_id: PathId,
    date_from: Optional[dt.datetime] = Query(None, alias='from'),
    date_to: Optional[dt.datetime] = Query(None, alias='to'),
    membership: Membership = Depends(group_member),
    db: Session = Depends(get_db),
):
    performances = performances_db.list_performances(db, group_id, date_from, date_to)
    return [PerformanceOut.model_validate(p) for p in performances]


@router.post(GROUP_PREFIX, response_model=PerformanceOut, status_code=status.HTTP_201_CREATED)
def create_performance(
    group_id: PathId,
    body: PerformanceCreate,
    membership: Membership = Depends(group_member),
    db: Session = Depends(get_db),
):
    performance = performances_db.create_performance(db, group_id, **body.model_dump())
    return PerformanceOut.model_validate(performance)


@router.get(GROUP_PREFIX + '/{performance_id}', response_model=PerformanceOut)
def get_performance(
    group_id: PathId,
    performance_id: PathId,
    membership: Membership = Depends(group_member),
    db: Session = Depends(get_db),
):
    return PerformanceOut.model_validate(performances_db.get_performance(db, group_id, performance_id))


@router.put(GROUP_PREFIX + '/{performance_id}', response_model=PerformanceOut)
def update_performance(
    group_id: PathId,
    performance_id: PathId,
    body: PerformanceUpdate,
    membership: Membership = Depends(group_member),
    db: Session = Depends(get_db),
):
    fields = body.model_dump(exclude_unset=True)
    if fields.get('name', '') is None:
        del fields['name']
    performance = performances_db.update_performance(db, group_id, performance_id, **fields)
    return PerformanceOut.model_validate(performance)


@router.delete(GROUP_PREFIX + '/{performance_id}', response_model=Success)
def delete_performance(
    group_id: PathId,
    performance_id: PathId,
    membership: Membership = Depends(group_admin),
    db: Session = Depends(get_db),
):
    performances_db.delete_performance(db, group_id, performance_id)
    return Success()


#############################
# Setlist
#############################


@router.post(GROUP_PREFIX + '/{performance_id}/setlist/reorder', response_model=ReorderResponse)
def reorder_setlist(
    group_id: PathId,
    performance_id: PathId,
    body: ReorderRequest,
    membership: Membership = Depends(group_member),
    db: Session = Depends(get_db),
):
    result = get_setlist_dao(db).reconcile(performance_id, body.song_ids, group_id=group_id)
    return ReorderResponse(created=result.created, updated=result.updated, deleted=result.deleted)


@router.post(GROUP_PREFIX + '/{performance_id}/setlist/songs', response_model=ItemOut, status_code=status.HTTP_201_CREATED)
def add_setlist_item(
    group_id: PathId,
    performance_id: PathId,
    body: AddItemRequest,
    membership: Membership = Depends(group_member),
    db: Session = Depends(get_db),
):
    item = get_setlist_dao(db).add_song(performance_id, body.song_id, body.position, body.notes, group_id=group_id)
    return ItemOut.model_validate(item)


@router.put(GROUP_PREFIX + '/{performance_id}/setlist/songs/{song_id}', response_model=ItemOut)
def update_setlist_notes(
    group_id: PathId,
    performance_id: PathId,
    song_id: PathId,
    body: NotesUpdate,
    membership: Membership = Depends(group_member),
    db: Session = Depends(get_db),
):
    item = get_setlist_dao(db).update_notes(performance_id, song_id, body.notes, group_id=group_id)
    return ItemOut.model_validate(item)


@router.delete(GROUP_PREFIX + '/{performance_id}/setlist/songs/{song_id}', response_model=Success)
def remove_setlist_item(
    group_id: PathId,
    performance_id: PathId,
    song_id: PathId,
    membership: Membership = Depends(group_member),
    db: Session = Depends(get_db),
):
    get_setlist_dao(db).remove_song(performance_id, song_id, group_id=group_id)
    return Success()


@router.post(GROUP_PREFIX + '/{performance_id}/setlist/copy', response_model=CopySetlistResponse)
def copy_setlist(
    group_id: PathId,
    performance_id: PathId,
    body: CopySetlistRequest,
    membership: Membership = Depends(group_member),
    db: Session = Depends(get_db),
):
    count = performances_db.copy_setlist(db, group_id, performance_id, body.source_type, body.source_id)
    return CopySetlistResponse(count=count)


@router.get(GROUP_PREFIX + '/{performance_id}/pdf')
def export_pdf(
    group_id: PathId,
    performance_id: PathId,
    lyrics: bool = False,
    membership: Membership = Depends(group_member),
    db: Session = Depends(get_db),
):
    performance = performances_db.get_performance(db, group_id, performance_id)
    subtitle = performance.date.strftime('%d/%m/%Y %H:%M')
    if performance.location:
        subtitle += f' - {performance.location}'
    data = render_setlist_pdf(performance.name, performance.setlist, subtitle=subtitle, include_lyrics=lyrics)
    return pdf_response(data, performance.name)


@router.get('/groups/{group_id}/performance-session', response_model=PerformanceSessionOut)
def performance_session(
    group_id: PathId,
    round_ids: list[Id] = Query([], alias='roundIds'),
    membership: Membership = Depends(group_member),
    db: Session = Depends(get_db),
):
    data = performances_db.performance_session(db, group_id, round_ids)
    songs = [
        SessionSongOut(
            **SongOut.model_validate(entry['song']).model_dump(),
            round_name=entry['round_name'],
            round_item_id=entry['round_item_id'],
            position_in_round=entry['position_in_round'],
        )
        for entry in data['songs']
    ]
    return PerformanceSessionOut(rounds=[RoundOut.model_validate(r) for r in data['rounds']], songs=songs)
