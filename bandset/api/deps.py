"""Request dependencies: the current user and group role checks."""

from typing import Annotated

from fastapi import Depends, Path, Request
from sqlalchemy.orm import Session

from bandset.api.schemas import MAX_ID
from bandset.auth import get_user_by_session
from bandset.auth.access import verify_group_access
from bandset.db import get_db
from bandset.db.models import Membership, User, ROLE_ADMIN, ROLE_MEMBER, ROLE_OWNER
from bandset.errors import UnauthorizedError

SESSION_COOKIE = 'session_id'

PathId = Annotated[int, Path(ge=1, le=MAX_ID)]


def session_token(request: Request) -> str | None:
    """Read the session token from a bearer header (mobile) or the cookie (web)."""
    header = request.headers.get('Authorization', '')
    if header.lower().startswith('bearer '):
        return header[7:].strip() or None
    return request.cookies.get(SESSION_COOKIE)


def get_current_user(request: Request, db: Session = Depends(get_db)) -> User:
    user = get_user_by_session(db, session_token(request))
    if user is None:
        raise UnauthorizedError('Not authenticated')
    return user


def require_group_role(required_role: str):
    def dependency(
        group_id: PathId,
        user: User = Depends(get_current_user),
        db: Session = Depends(get_db),
    ) -> Membership:
        return verify_group_access(db, user.id, group_id, required_role)

    return dependency


group_member = require_group_role(ROLE_MEMBER)
group_admin = require_group_role(ROLE_ADMIN)
group_owner = require_group_role(ROLE_OWNER)
