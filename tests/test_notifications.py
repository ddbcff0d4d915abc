import datetime as dt
import json

from bandset.db import utcnow
from bandset.db.models import PerformanceReminder
from bandset.db.notifications import pending_reminders, reminder_times
from test_api import create_group, register, request


def subscribe(client, headers, endpoint="https://push.example.com/abc"):
    payload = {"endpoint": endpoint, "p256dh": "key", "auth": "secret"}
    return request(client, "POST", "/api/push/subscribe", payload, headers)


def test_subscribe_list_and_unsubscribe(client):
    alice = register(client, "alice")
    status, _, body = subscribe(client, alice)
    assert status == 201
    assert json.loads(body)["endpoint"] == "https://push.example.com/abc"
    _, _, body = request(client, "GET", "/api/push/subscriptions", headers=alice)
    assert [s["endpoint"] for s in json.loads(body)] == ["https://push.example.com/abc"]

    status, _, _ = request(client, "POST", "/api/push/unsubscribe", {"endpoint": "https://push.example.com/abc"}, alice)
    assert status == 200
    _, _, body = request(client, "GET", "/api/push/subscriptions", headers=alice)
    assert json.loads(body) == []


def test_endpoint_moves_to_new_user(client):
    alice = register(client, "alice")
    bob = register(client, "bob")
    subscribe(client, alice)
    status, _, _ = subscribe(client, bob)
    assert status == 201
    _, _, body = request(client, "GET", "/api/push/subscriptions", headers=alice)
    assert json.loads(body) == []
    _, _, body = request(client, "GET", "/api/push/subscriptions", headers=bob)
    assert len(json.loads(body)) == 1


def test_subscribe_twice_is_harmless(client):
    alice = register(client, "alice")
    subscribe(client, alice)
    status, _, _ = subscribe(client, alice)
    assert status == 201
    _, _, body = request(client, "GET", "/api/push/subscriptions", headers=alice)
    assert len(json.loads(body)) == 1


def test_pending_reminders_and_mark_sent(client):
    alice = register(client, "alice")
    gid = create_group(client, alice, "Jam")
    soon = utcnow() + dt.timedelta(minutes=62)
    later = utcnow() + dt.timedelta(days=30)
    for name, when in (("Soon", soon), ("Later", later)):
        request(
            client, "POST", f"/api/groups/{gid}/performances",
            {"name": name, "date": when.replace(microsecond=0).isoformat()}, alice,
        )

    status, _, body = request(client, "GET", "/api/reminders/pending", headers=alice)
    assert status == 200
    pending = json.loads(body)
    # the day-before and hour-before reminders of "Soon" are both due
    assert [r["performance"]["name"] for r in pending] == ["Soon", "Soon"]
    assert pending[0]["performance"]["group"] == {"id": gid, "name": "Jam"}

    for reminder in pending:
        status, _, _ = request(client, "POST", f"/api/reminders/{reminder['id']}/sent", headers=alice)
        assert status == 200
    _, _, body = request(client, "GET", "/api/reminders/pending", headers=alice)
    assert json.loads(body) == []

    _, _, body = request(client, "GET", "/api/reminders", headers=alice)
    recent = json.loads(body)
    assert len(recent) == 4
    assert recent[0]["performance"]["name"] == "Later"


def test_reminders_of_other_groups_are_hidden(client, db):
    alice = register(client, "alice")
    mallory = register(client, "mallory")
    gid = create_group(client, alice)
    when = (utcnow() + dt.timedelta(minutes=30)).replace(microsecond=0)
    request(client, "POST", f"/api/groups/{gid}/performances", {"name": "Gig", "date": when.isoformat()}, alice)
    reminder = db.query(PerformanceReminder).first()

    _, _, body = request(client, "GET", "/api/reminders/pending", headers=mallory)
    assert json.loads(body) == []
    status, _, body = request(client, "POST", f"/api/reminders/{reminder.id}/sent", headers=mallory)
    assert status == 404
    assert json.loads(body) == {"error": "Reminder not found"}


def test_pending_window(db, client):
    alice = register(client, "alice")
    gid = create_group(client, alice)
    when = dt.datetime(2031, 5, 1, 20, 0)
    request(client, "POST", f"/api/groups/{gid}/performances", {"name": "Gig", "date": when.isoformat()}, alice)
    user_id = json.loads(request(client, "GET", "/api/me", headers=alice)[2])["id"]
    hour_before = when - dt.timedelta(hours=1)

    early = pending_reminders(db, user_id, now=hour_before - dt.timedelta(minutes=6))
    assert hour_before not in [r.reminder_time for r in early]
    due = pending_reminders(db, user_id, now=hour_before - dt.timedelta(minutes=4))
    assert hour_before in [r.reminder_time for r in due]


def test_reminder_times():
    when = dt.datetime(2030, 1, 2, 12, 0)
    assert reminder_times(when) == [dt.datetime(2030, 1, 1, 12, 0), dt.datetime(2030, 1, 2, 11, 0)]


def test_notifications_require_session(client):
    status, _, _ = request(client, "GET", "/api/notifications")
    assert status == 401
