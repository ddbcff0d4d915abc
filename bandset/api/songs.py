from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from bandset.api.deps import PathId, group_member
from bandset.api.schemas import SongIn, SongOut, Success
from bandset.db import get_db
from bandset.db import songs as songs_db
from bandset.db.models import Membership

router = APIRouter(prefix='/api/groups/{group_id}/songs', tags=['songs'])


@router.get('', response_model=list[SongOut])
def list_songs(
    group_id: PathId,
    search: Optional[str] = None,
    genre: Optional[str] = None,
    harmonica: Optional[str] = None,
    favorite: Optional[bool] = None,
    sort_by: Literal['title', 'createdAt', 'favorite'] = Query('title', alias='sortBy'),
    order: Literal['asc', 'desc'] = 'asc',
    membership: Membership = Depends(group_member),
    db: Session = Depends(get_db),
):
    songs = songs_db.list_songs(
        db, group_id, search=search, genre=genre, harmonica=harmonica,
        favorite=favorite, sort_by=sort_by, order=order,
    )
    return [SongOut.model_validate(s) for s in songs]


@router.post('', response_model=SongOut, status_code=status.HTTP_201_CREATED)
def create_song(group_id: PathId, body: SongIn, membership: Membership = Depends(group_member), db: Session = Depends(get_db)):
    return SongOut.model_validate(songs_db.create_song(db, group_id, **body.model_dump()))


@router.get('/{song_id}', response_model=SongOut)
def get_song(group_id: PathId, song_id: PathId, membership: Membership = Depends(group_member), db: Session = Depends(get_db)):
    return SongOut.model_validate(songs_db.get_song(db, group_id, song_id))


@router.put('/{song_id}', response_model=SongOut)
def update_song(
    group_id: PathId,
    song_id: PathId,
    body: SongIn,
    membership: Membership = Depends(group_member),
    db: Session = Depends(get_db),
):
    return SongOut.model_validate(songs_db.update_song(db, group_id, song_id, **body.model_dump()))


@router.post('/{song_id}/favorite', response_model=SongOut)
def toggle_favorite(group_id: PathId, song_id: PathId, membership: Membership = Depends(group_member), db: Session = Depends(get_db)):
    return SongOut.model_validate(songs_db.toggle_favorite(db, group_id, song_id))


@router.delete('/{song_id}', response_model=Success)
def delete_song(group_id: PathId, song_id: PathId, membership: Membership = Depends(group_member), db: Session = Depends(get_db)):
    songs_db.delete_song(db, group_id, song_id)
    return Success()
