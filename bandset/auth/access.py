"""Group roles and the checks run before any group-scoped operation."""

from bandset.db.models import Group, Membership, ROLE_ADMIN, ROLE_MEMBER, ROLE_OWNER
from bandset.errors import ForbiddenError, NotFoundError

ROLE_LEVELS = {ROLE_MEMBER: 1, ROLE_ADMIN: 2, ROLE_OWNER: 3}


def get_membership(db, user_id: int, group_id: int) -> Membership | None:
    return db.query(Membership).filter_by(user_id=user_id, group_id=group_id).first()


def has_role(membership: Membership | None, required_role: str) -> bool:
    if membership is None:
        return False
    return ROLE_LEVELS.get(membership.role, 0) >= ROLE_LEVELS[required_role]


def verify_group_access(db, user_id: int, group_id: int, required_role: str = ROLE_MEMBER) -> Membership:
    """Return the caller's membership if it meets ``required_role``.

    A missing group is :class:`NotFoundError`; a group the caller does not
    belong to, or belongs to with too low a role, is :class:`ForbiddenError`.
    """
    if db.get(Group, group_id) is None:
        raise NotFoundError("Group not found")
    membership = get_membership(db, user_id, group_id)
    if membership is None:
        raise ForbiddenError("You don't have access to this group")
    if not has_role(membership, required_role):
        raise ForbiddenError(f"This action requires the {required_role} role")
    return membership
