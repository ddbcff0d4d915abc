"""Request and response models.  JSON field names are camelCase."""

import datetime as dt
from typing import Annotated, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

Harmonica = Literal['C-F-B', 'B-Es-As', 'A-D-G']
InvitableRole = Literal['member', 'admin']

# Primary keys are 32-bit INTEGER columns on PostgreSQL.
MAX_ID = 2**31 - 1
Id = Annotated[int, Field(ge=1, le=MAX_ID)]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class Success(CamelModel):
    success: bool = True


# Auth -------------------------------------------------------------------

class RegisterRequest(CamelModel):
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)
    email: Optional[str] = None
    name: Optional[str] = None


class LoginRequest(CamelModel):
    username: str
    password: str


class UserOut(CamelModel):
    id: int
    username: str
    email: Optional[str] = None
    name: Optional[str] = None


class LoginResponse(CamelModel):
    user: UserOut
    token: str


# Groups -----------------------------------------------------------------

class GroupCreate(CamelModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None


class GroupUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None


class GroupRef(CamelModel):
    id: int
    name: str


class GroupOut(CamelModel):
    id: int
    name: str
    description: Optional[str] = None
    created_at: dt.datetime
    updated_at: dt.datetime


class GroupSummary(GroupOut):
    role: str
    member_count: int
    song_count: int
    performance_count: int


class MemberOut(CamelModel):
    id: int
    user_id: int
    username: str
    name: Optional[str] = None
    email: Optional[str] = None
    role: str
    joined_at: dt.datetime


class GroupDetail(GroupSummary):
    members: list[MemberOut]


class InviteRequest(CamelModel):
    email: str
    role: InvitableRole = 'member'


class RoleUpdate(CamelModel):
    role: InvitableRole


class InvitationOut(CamelModel):
    id: int
    group_id: int
    email: str
    user_id: Optional[int] = None
    role: str
    status: str
    created_at: dt.datetime
    expires_at: dt.datetime
    group: Optional[GroupRef] = None


# Songs ------------------------------------------------------------------

class SongIn(CamelModel):
    title: str = Field(min_length=1)
    lyrics: str = Field(min_length=1)
    genre: str = Field(min_length=1)
    key: Optional[str] = None
    notes: Optional[str] = None
    favorite: bool = False
    harmonica: Optional[Harmonica] = None
    bas_bariton: Optional[str] = None
    accordion_tuning: Optional[str] = None
    instrument: Optional[str] = None


class SongOut(CamelModel):
    id: int
    group_id: int
    title: str
    lyrics: str
    genre: str
    key: Optional[str] = None
    notes: Optional[str] = None
    favorite: bool
    harmonica: Optional[str] = None
    bas_bariton: Optional[str] = None
    accordion_tuning: Optional[str] = None
    instrument: Optional[str] = None
    created_at: dt.datetime
    updated_at: dt.datetime


# Ordered items ----------------------------------------------------------

class ItemOut(CamelModel):
    id: int
    song_id: int
    position: int
    notes: Optional[str] = None
    created_at: dt.datetime
    updated_at: dt.datetime
    song: SongOut


class ReorderRequest(CamelModel):
    song_ids: list[Id]


class ReorderResponse(Success):
    created: int
    updated: int
    deleted: int


class AddItemRequest(CamelModel):
    song_id: Id
    position: Optional[int] = Field(default=None, ge=0)
    notes: Optional[str] = None


class NotesUpdate(CamelModel):
    notes: Optional[str] = None


# Rounds -----------------------------------------------------------------

class RoundCreate(CamelModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    song_ids: list[Id] = []


class RoundUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None


class RoundOut(CamelModel):
    id: int
    group_id: int
    name: str
    description: Optional[str] = None
    created_at: dt.datetime
    updated_at: dt.datetime
    items: list[ItemOut]


# Performances -----------------------------------------------------------

class PerformanceCreate(CamelModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    location: Optional[str] = None
    date: dt.datetime
    duration: Optional[int] = Field(default=None, ge=0)
    notes: Optional[str] = None


class PerformanceUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    location: Optional[str] = None
    date: Optional[dt.datetime] = None
    duration: Optional[int] = Field(default=None, ge=0)
    notes: Optional[str] = None


class ReminderOut(CamelModel):
    id: int
    performance_id: int
    reminder_time: dt.datetime
    sent: bool


class PerformanceOut(CamelModel):
    id: int
    group_id: int
    name: str
    description: Optional[str] = None
    location: Optional[str] = None
    date: dt.datetime
    duration: Optional[int] = None
    notes: Optional[str] = None
    created_at: dt.datetime
    updated_at: dt.datetime
    setlist: list[ItemOut]
    reminders: list[ReminderOut]


class UpcomingPerformanceOut(PerformanceOut):
    group: GroupRef


class CopySetlistRequest(CamelModel):
    source_type: Literal['performance', 'round']
    source_id: Id


class CopySetlistResponse(Success):
    count: int


class SessionSongOut(SongOut):
    round_name: str
    round_item_id: int
    position_in_round: int


class PerformanceSessionOut(CamelModel):
    rounds: list[RoundOut]
    songs: list[SessionSongOut]


# Notifications ----------------------------------------------------------

class SubscribeRequest(CamelModel):
    endpoint: str = Field(min_length=1)
    # Web Push key name, not camel-cased
    p256dh: str = Field(alias='p256dh')
    auth: str


class UnsubscribeRequest(CamelModel):
    endpoint: str = Field(min_length=1)


class SubscriptionOut(CamelModel):
    endpoint: str
    p256dh: str = Field(alias='p256dh')
    auth: str
    created_at: dt.datetime


class PerformanceRef(CamelModel):
    id: int
    name: str
    date: dt.datetime
    location: Optional[str] = None
    group: GroupRef


class ReminderDetailOut(ReminderOut):
    performance: PerformanceRef


class NotificationOut(CamelModel):
    id: int
    message: str
    created_at: dt.datetime
