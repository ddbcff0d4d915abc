"""In-app notifications, push subscriptions and performance reminders."""

import datetime as dt
import logging

from bandset.db import transaction, utcnow
from bandset.db.models import (
    Membership,
    Notification,
    Performance,
    PerformanceReminder,
    PushSubscription,
)
from bandset.errors import NotFoundError

logger = logging.getLogger(__name__)

# Reminders created for every performance, relative to its start
REMINDER_OFFSETS = (dt.timedelta(days=1), dt.timedelta(hours=1))

# Reminders due within this window are reported as pending
PENDING_WINDOW = dt.timedelta(minutes=5)

RECENT_REMINDERS_LIMIT = 50


#############################
# In-app notifications
#############################


def notify_user(db, user_id: int, message: str) -> Notification:
    """Record a notification for ``user_id``.

    Push delivery to the user's subscriptions is handled by an external
    sender; the subscriptions that would be targeted are only logged here."""
    with transaction(db):
        notification = Notification(user_id=user_id, message=message)
        db.add(notification)
    endpoints = db.query(PushSubscription.endpoint).filter_by(user_id=user_id).count()
    if endpoints:
        logger.info("Push for user %s queued to %d subscription(s): %s", user_id, endpoints, message)
    db.refresh(notification)
    return notification


def list_notifications(db, user_id: int) -> list[Notification]:
    return (
        db.query(Notification)
        .filter(Notification.user_id == user_id)
        .order_by(Notification.created_at.desc(), Notification.id.desc())
        .all()
    )


#############################
# Push subscriptions
#############################


def subscribe(db, user_id: int, endpoint: str, p256dh: str, auth: str) -> PushSubscription:
    """Register a push endpoint.  An endpoint held by another user moves to ``user_id``."""
    existing = db.get(PushSubscription, endpoint)
    if existing is not None and existing.user_id == user_id:
        return existing
    with transaction(db):
        if existing is not None:
            db.delete(existing)
            db.flush()
        subscription = PushSubscription(endpoint=endpoint, p256dh=p256dh, auth=auth, user_id=user_id)
        db.add(subscription)
    db.refresh(subscription)
    return subscription


def unsubscribe(db, user_id: int, endpoint: str) -> None:
    with transaction(db):
        db.query(PushSubscription).filter_by(endpoint=endpoint, user_id=user_id).delete(
            synchronize_session=False
        )


def list_subscriptions(db, user_id: int) -> list[PushSubscription]:
    return db.query(PushSubscription).filter_by(user_id=user_id).all()


#############################
# Reminders
#############################


def reminder_times(date: dt.datetime) -> list[dt.datetime]:
    return [date - offset for offset in REMINDER_OFFSETS]


def schedule_reminders(db, performance: Performance) -> None:
    """Replace the reminders of ``performance`` with ones derived from its date.

    Runs inside the caller's transaction."""
    db.query(PerformanceReminder).filter_by(performance_id=performance.id).delete(
        synchronize_session=False
    )
    for when in reminder_times(performance.date):
        db.add(PerformanceReminder(performance_id=performance.id, reminder_time=when, sent=False))


def _visible_reminders(db, user_id: int):
    return (
        db.query(PerformanceReminder)
        .join(Performance, Performance.id == PerformanceReminder.performance_id)
        .join(Membership, Membership.group_id == Performance.group_id)
        .filter(Membership.user_id == user_id)
    )


def pending_reminders(db, user_id: int, now: dt.datetime | None = None) -> list[PerformanceReminder]:
    """Unsent reminders due within :data:`PENDING_WINDOW`."""
    horizon = (now or utcnow()) + PENDING_WINDOW
    return (
        _visible_reminders(db, user_id)
        .filter(PerformanceReminder.sent.is_(False), PerformanceReminder.reminder_time <= horizon)
        .order_by(PerformanceReminder.reminder_time.asc())
        .all()
    )


def recent_reminders(db, user_id: int) -> list[PerformanceReminder]:
    return (
        _visible_reminders(db, user_id)
        .order_by(PerformanceReminder.reminder_time.desc())
        .limit(RECENT_REMINDERS_LIMIT)
        .all()
    )


def mark_reminder_sent(db, user_id: int, reminder_id: int) -> None:
    reminder = _visible_reminders(db, user_id).filter(PerformanceReminder.id == reminder_id).first()
    if reminder is None:
        raise NotFoundError("Reminder not found")
    with transaction(db):
        reminder.sent = True
