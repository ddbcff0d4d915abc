import json

from bandset.config import MAX_REQUEST_SIZE
from bandset.db.models import AuditLog


def request(client, method, path, body=None, headers=None):
    res = client.request(method, path, json=body, headers=headers or {})
    return res.status_code, res.headers, res.content


def extract_cookie(headers):
    cookie = headers.get("set-cookie")
    if not cookie:
        return None
    return cookie.split(";", 1)[0]


def register(client, username, password="pw", email=None):
    """Register ``username`` and return bearer headers for it."""
    body = {"username": username, "password": password}
    if email:
        body["email"] = email
    status, _, data = request(client, "POST", "/api/register", body)
    assert status == 201, data
    return {"Authorization": f"Bearer {json.loads(data)['token']}"}


def create_group(client, headers, name="The Band"):
    status, _, body = request(client, "POST", "/api/groups", {"name": name}, headers)
    assert status == 201, body
    return json.loads(body)["id"]


def add_member(client, owner_headers, group_id, username, role="member"):
    """Register ``username``, invite it into the group and accept.  Returns its headers."""
    email = f"{username}@example.com"
    headers = register(client, username, email=email)
    status, _, body = request(
        client, "POST", f"/api/groups/{group_id}/invitations", {"email": email, "role": role}, owner_headers
    )
    assert status == 201, body
    invitation_id = json.loads(body)["id"]
    status, _, body = request(client, "POST", f"/api/invitations/{invitation_id}/accept", headers=headers)
    assert status == 200, body
    return headers


def create_song(client, headers, group_id, title, **fields):
    payload = {"title": title, "lyrics": f"{title} lyrics", "genre": "folk", **fields}
    status, _, body = request(client, "POST", f"/api/groups/{group_id}/songs", payload, headers)
    assert status == 201, body
    return json.loads(body)["id"]


def test_register_and_login(client):
    status, headers, body = request(client, "POST", "/api/register", {"username": "alice", "password": "secret"})
    assert status == 201
    assert json.loads(body)["user"]["username"] == "alice"
    status, headers, body = request(client, "POST", "/api/login", {"username": "alice", "password": "secret"})
    assert status == 200
    cookie = extract_cookie(headers)
    assert cookie and cookie.startswith("session_id=")
    assert len(json.loads(body)["token"]) == 64


def test_session_cookie_authenticates(client):
    request(client, "POST", "/api/register", {"username": "alice", "password": "pw"})
    status, headers, _ = request(client, "POST", "/api/login", {"username": "alice", "password": "pw"})
    client.cookies.clear()
    status, _, body = request(client, "GET", "/api/me", headers={"Cookie": extract_cookie(headers)})
    assert status == 200
    assert json.loads(body)["username"] == "alice"


def test_bearer_token_authenticates(client):
    headers = register(client, "alice")
    client.cookies.clear()
    status, _, body = request(client, "GET", "/api/me", headers=headers)
    assert status == 200
    assert json.loads(body)["username"] == "alice"


def test_login_with_wrong_password(client):
    register(client, "alice", password="right")
    status, _, body = request(client, "POST", "/api/login", {"username": "alice", "password": "wrong"})
    assert status == 401
    assert json.loads(body) == {"error": "Invalid credentials"}


def test_register_duplicate_username(client):
    register(client, "alice")
    status, _, body = request(client, "POST", "/api/register", {"username": "alice", "password": "pw"})
    assert status == 409
    assert json.loads(body)["error"] == "Username already exists"


def test_register_invalid_email(client):
    status, _, body = request(
        client, "POST", "/api/register", {"username": "alice", "password": "pw", "email": "nope"}
    )
    assert status == 400
    assert json.loads(body)["error"] == "Invalid email"


def test_me_requires_session(client):
    status, _, body = request(client, "GET", "/api/me")
    assert status == 401
    assert json.loads(body) == {"error": "Not authenticated"}


def test_logout_invalidates_session(client):
    headers = register(client, "alice")
    status, _, _ = request(client, "POST", "/api/logout", headers=headers)
    assert status == 200
    client.cookies.clear()
    status, _, _ = request(client, "GET", "/api/me", headers=headers)
    assert status == 401


def test_request_validation_error_is_400_with_details(client):
    status, _, body = request(client, "POST", "/api/register", {"username": "alice"})
    assert status == 400
    data = json.loads(body)
    assert data["error"] == "Invalid request"
    assert any(err["loc"][-1] == "password" for err in data["details"])


def test_oversized_body_is_rejected(client):
    res = client.post(
        "/api/login",
        content=b"x" * (MAX_REQUEST_SIZE + 1),
        headers={"Content-Type": "application/json"},
    )
    assert res.status_code == 413
    assert res.json() == {"error": "Request body too large"}


def test_unknown_route_returns_json_error(client):
    status, _, body = request(client, "GET", "/api/does-not-exist")
    assert status == 404
    assert "error" in json.loads(body)


def test_login_events_are_audited(client, db):
    register(client, "alice")
    request(client, "POST", "/api/login", {"username": "alice", "password": "bad"})
    request(client, "POST", "/api/login", {"username": "alice", "password": "pw"})
    actions = [row.action for row in db.query(AuditLog).order_by(AuditLog.id)]
    assert actions == ["register", "login_failed", "login"]
    failed = db.query(AuditLog).filter_by(action="login_failed").one()
    assert failed.user_id is None
    assert json.loads(failed.details) == {"username": "alice"}
