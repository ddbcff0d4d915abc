import datetime as dt
import json
import logging
import secrets

from passlib.context import CryptContext

from bandset.config import SESSION_DURATION
from bandset.db import transaction, utcnow
from bandset.db.models import AuditLog, User, UserSession
from bandset.errors import ConflictError, ValidationError
from bandset.utils import normalize_email

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def generate_session(db, user_id: int, duration_seconds: int = SESSION_DURATION) -> str:
    token = secrets.token_hex(32)
    with transaction(db):
        db.add(UserSession(
            token=token,
            user_id=user_id,
            expires_at=utcnow() + dt.timedelta(seconds=duration_seconds),
        ))
    return token


def get_user_by_session(db, token: str | None) -> User | None:
    """Return the user owning ``token`` and extend the session.

    Expired sessions are purged on every lookup."""
    if not token:
        return None
    now = utcnow()
    with transaction(db):
        db.query(UserSession).filter(UserSession.expires_at <= now).delete(synchronize_session=False)
        session = db.query(UserSession).filter_by(token=token).first()
        if session is None:
            return None
        session.expires_at = now + dt.timedelta(seconds=SESSION_DURATION)
        user_id = session.user_id
    return db.get(User, user_id)


def delete_session(db, token: str) -> None:
    with transaction(db):
        db.query(UserSession).filter(UserSession.token == token).delete(synchronize_session=False)


def register_user(db, username: str, password: str, email: str | None = None, name: str | None = None) -> User:
    username = (username or '').strip()
    if not username or not password:
        raise ValidationError("Username and password are required")
    if email:
        email = normalize_email(email)
    if db.query(User).filter_by(username=username).first():
        raise ConflictError("Username already exists")
    if email and db.query(User).filter_by(email=email).first():
        raise ConflictError("Email already registered")
    with transaction(db):
        user = User(username=username, email=email or None, name=name, password_hash=hash_password(password))
        db.add(user)
    db.refresh(user)
    logger.info("Registered user %s (%s)", user.id, username)
    return user


def authenticate(db, username: str, password: str) -> User | None:
    user = db.query(User).filter_by(username=username).first()
    if not user or not verify_password(password, user.password_hash):
        return None
    return user


def log_event(db, user_id: int | None, action: str, metadata: dict | None = None) -> None:
    """Append an entry to the audit log."""
    with transaction(db):
        db.add(AuditLog(user_id=user_id, action=action, details=json.dumps(metadata or {})))
    logger.info("audit user=%s action=%s %s", user_id, action, metadata or {})
