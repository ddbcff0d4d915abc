from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from bandset.api.deps import PathId, get_current_user
from bandset.api.schemas import (
    NotificationOut,
    ReminderDetailOut,
    SubscribeRequest,
    SubscriptionOut,
    Success,
    UnsubscribeRequest,
)
from bandset.db import get_db
from bandset.db import notifications as notifications_db
from bandset.db.models import User

router = APIRouter(prefix='/api', tags=['notifications'])


@router.get('/notifications', response_model=list[NotificationOut])
def list_notifications(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return [NotificationOut.model_validate(n) for n in notifications_db.list_notifications(db, user.id)]


@router.post('/push/subscribe', response_model=SubscriptionOut, status_code=status.HTTP_201_CREATED)
def subscribe(body: SubscribeRequest, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    subscription = notifications_db.subscribe(db, user.id, body.endpoint, body.p256dh, body.auth)
    return SubscriptionOut.model_validate(subscription)


@router.post('/push/unsubscribe', response_model=Success)
def unsubscribe(body: UnsubscribeRequest, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    notifications_db.unsubscribe(db, user.id, body.endpoint)
    return Success()


@router.get('/push/subscriptions', response_model=list[SubscriptionOut])
def list_subscriptions(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return [SubscriptionOut.model_validate(s) for s in notifications_db.list_subscriptions(db, user.id)]


@router.get('/reminders/pending', response_model=list[ReminderDetailOut])
def pending_reminders(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return [ReminderDetailOut.model_validate(r) for r in notifications_db.pending_reminders(db, user.id)]


@router.get('/reminders', response_model=list[ReminderDetailOut])
def my_reminders(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return [ReminderDetailOut.model_validate(r) for r in notifications_db.recent_reminders(db, user.id)]


@router.post('/reminders/{reminder_id}/sent', response_model=Success)
def mark_sent(reminder_id: PathId, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    notifications_db.mark_reminder_sent(db, user.id, reminder_id)
    return Success()
