from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    Boolean,
    ForeignKey,
    DateTime,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from . import Base, utcnow

ROLE_OWNER = "owner"
ROLE_ADMIN = "admin"
ROLE_MEMBER = "member"

INVITATION_PENDING = "pending"
INVITATION_ACCEPTED = "accepted"
INVITATION_DECLINED = "declined"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    username = Column(String, unique=True, index=True, nullable=False)
    email = Column(String, unique=True, index=True, nullable=True)
    name = Column(String, nullable=True)
    password_hash = Column(String, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    memberships = relationship("Membership", back_populates="user", cascade="all, delete-orphan")


class UserSession(Base):
    __tablename__ = "sessions"

    token = Column(String, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    expires_at = Column(DateTime, nullable=False)

    user = relationship("User")


class Group(Base):
    __tablename__ = "groups"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    memberships = relationship("Membership", back_populates="group", cascade="all, delete-orphan")
    invitations = relationship("GroupInvitation", back_populates="group", cascade="all, delete-orphan")
    songs = relationship("Song", back_populates="group", cascade="all, delete-orphan")
    rounds = relationship("Round", back_populates="group", cascade="all, delete-orphan")
    performances = relationship("Performance", back_populates="group", cascade="all, delete-orphan")


class Membership(Base):
    __tablename__ = "memberships"
    __table_args__ = (UniqueConstraint("user_id", "group_id", name="uq_memberships_user_group"),)

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    group_id = Column(Integer, ForeignKey("groups.id", ondelete="CASCADE"), nullable=False)
    role = Column(String, nullable=False, default=ROLE_MEMBER)
    joined_at = Column(DateTime, default=utcnow, nullable=False)

    user = relationship("User", back_populates="memberships")
    group = relationship("Group", back_populates="memberships")


class GroupInvitation(Base):
    __tablename__ = "group_invitations"

    id = Column(Integer, primary_key=True)
    group_id = Column(Integer, ForeignKey("groups.id", ondelete="CASCADE"), nullable=False)
    email = Column(String, nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    invited_by_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    role = Column(String, nullable=False, default=ROLE_MEMBER)
    status = Column(String, nullable=False, default=INVITATION_PENDING)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    expires_at = Column(DateTime, nullable=False)

    group = relationship("Group", back_populates="invitations")


class Song(Base):
    __tablename__ = "songs"

    id = Column(Integer, primary_key=True)
    group_id = Column(Integer, ForeignKey("groups.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String, nullable=False)
    lyrics = Column(Text, nullable=False)
    genre = Column(String, nullable=False)
    key = Column(String, nullable=True)
    notes = Column(Text, nullable=True)
    favorite = Column(Boolean, nullable=False, default=False)
    harmonica = Column(String, nullable=True)
    bas_bariton = Column(String, nullable=True)
    accordion_tuning = Column(String, nullable=True)
    instrument = Column(String, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    group = relationship("Group", back_populates="songs")


class Round(Base):
    __tablename__ = "rounds"

    id = Column(Integer, primary_key=True)
    group_id = Column(Integer, ForeignKey("groups.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    group = relationship("Group", back_populates="rounds")
    items = relationship(
        "RoundItem",
        back_populates="round",
        cascade="all, delete-orphan",
        order_by="RoundItem.position",
    )


class RoundItem(Base):
    __tablename__ = "round_items"
    __table_args__ = (UniqueConstraint("round_id", "song_id", name="uq_round_items_round_song"),)

    id = Column(Integer, primary_key=True)
    round_id = Column(Integer, ForeignKey("rounds.id", ondelete="CASCADE"), nullable=False, index=True)
    song_id = Column(Integer, ForeignKey("songs.id", ondelete="CASCADE"), nullable=False)
    position = Column(Integer, nullable=False)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    round = relationship("Round", back_populates="items")
    song = relationship("Song")


class Performance(Base):
    __tablename__ = "performances"

    id = Column(Integer, primary_key=True)
    group_id = Column(Integer, ForeignKey("groups.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    location = Column(String, nullable=True)
    date = Column(DateTime, nullable=False, index=True)
    duration = Column(Integer, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    group = relationship("Group", back_populates="performances")
    setlist = relationship(
        "SetlistItem",
        back_populates="performance",
        cascade="all, delete-orphan",
        order_by="SetlistItem.position",
    )
    reminders = relationship(
        "PerformanceReminder",
        back_populates="performance",
        cascade="all, delete-orphan",
        order_by="PerformanceReminder.reminder_time",
    )


class SetlistItem(Base):
    __tablename__ = "performance_setlist_items"
    __table_args__ = (
        UniqueConstraint("performance_id", "song_id", name="uq_setlist_items_performance_song"),
    )

    id = Column(Integer, primary_key=True)
    performance_id = Column(
        Integer, ForeignKey("performances.id", ondelete="CASCADE"), nullable=False, index=True
    )
    song_id = Column(Integer, ForeignKey("songs.id", ondelete="CASCADE"), nullable=False)
    position = Column(Integer, nullable=False)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    performance = relationship("Performance", back_populates="setlist")
    song = relationship("Song")


class PerformanceReminder(Base):
    __tablename__ = "performance_reminders"

    id = Column(Integer, primary_key=True)
    performance_id = Column(
        Integer, ForeignKey("performances.id", ondelete="CASCADE"), nullable=False, index=True
    )
    reminder_time = Column(DateTime, nullable=False, index=True)
    sent = Column(Boolean, nullable=False, default=False)

    performance = relationship("Performance", back_populates="reminders")


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    message = Column(Text, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)


class PushSubscription(Base):
    __tablename__ = "push_subscriptions"

    endpoint = Column(String, primary_key=True)
    p256dh = Column(String, nullable=False)
    auth = Column(String, nullable=False)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)


class AuditLog(Base):
    __tablename__ = "logs"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    action = Column(String, nullable=False)
    details = Column("metadata", Text, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
