"""Groups, memberships and invitations."""

import datetime as dt
import logging

from sqlalchemy import func, or_

from bandset.auth.access import get_membership
from bandset.config import INVITATION_TTL_DAYS
from bandset.db import transaction, utcnow
from bandset.db.models import (
    Group,
    GroupInvitation,
    Membership,
    Performance,
    Song,
    User,
    INVITATION_ACCEPTED,
    INVITATION_DECLINED,
    INVITATION_PENDING,
    ROLE_ADMIN,
    ROLE_MEMBER,
    ROLE_OWNER,
)
from bandset.db.notifications import notify_user
from bandset.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from bandset.utils import normalize_email

logger = logging.getLogger(__name__)

INVITABLE_ROLES = (ROLE_MEMBER, ROLE_ADMIN)


#############################
# Groups
#############################


def create_group(db, owner_id: int, name: str, description: str | None = None) -> Group:
    """Insert a new group with ``owner_id`` as its owner."""
    with transaction(db):
        group = Group(name=name, description=description)
        db.add(group)
        db.flush()
        db.add(Membership(user_id=owner_id, group_id=group.id, role=ROLE_OWNER))
    db.refresh(group)
    logger.info("User %s created group %s", owner_id, group.id)
    return group


def get_groups_for_user(db, user_id: int) -> list[Group]:
    """Return all groups a user is a member of, newest first."""
    return (
        db.query(Group)
        .join(Membership, Membership.group_id == Group.id)
        .filter(Membership.user_id == user_id)
        .order_by(Group.created_at.desc(), Group.id.desc())
        .all()
    )


def group_counts(db, group_id: int) -> dict:
    def count(model, column):
        return db.query(func.count(column)).filter(model.group_id == group_id).scalar()

    return {
        'members': count(Membership, Membership.id),
        'songs': count(Song, Song.id),
        'performances': count(Performance, Performance.id),
    }


def update_group(db, group: Group, name: str | None = None, description: str | None = None) -> Group:
    with transaction(db):
        if name is not None:
            group.name = name
        if description is not None:
            group.description = description
    db.refresh(group)
    return group


def delete_group(db, group: Group) -> None:
    group_id = group.id
    with transaction(db):
        db.delete(group)
    logger.info("Deleted group %s", group_id)


#############################
# Members
#############################


def get_group_members(db, group_id: int) -> list[Membership]:
    return (
        db.query(Membership)
        .filter(Membership.group_id == group_id)
        .order_by(Membership.joined_at.asc(), Membership.id.asc())
        .all()
    )


def _member_in_group(db, group_id: int, member_id: int) -> Membership:
    member = db.get(Membership, member_id)
    if member is None or member.group_id != group_id:
        raise NotFoundError("Member not found")
    return member


def remove_member(db, actor: Membership, member_id: int) -> None:
    """Remove a member.  Owners cannot be removed and admins cannot remove admins."""
    member = _member_in_group(db, actor.group_id, member_id)
    if member.role == ROLE_OWNER:
        raise ForbiddenError("Cannot remove the group owner")
    if actor.role == ROLE_ADMIN and member.role == ROLE_ADMIN:
        raise ForbiddenError("Admins cannot remove other admins")
    with transaction(db):
        db.delete(member)


def leave_group(db, user_id: int, group_id: int) -> None:
    member = get_membership(db, user_id, group_id)
    if member is None:
        raise NotFoundError("You are not a member of this group")
    if member.role == ROLE_OWNER:
        raise ForbiddenError("Owner cannot leave the group. Transfer ownership or delete the group.")
    with transaction(db):
        db.delete(member)


def update_member_role(db, group_id: int, member_id: int, role: str) -> Membership:
    if role not in INVITABLE_ROLES:
        raise ValidationError("Invalid role")
    member = _member_in_group(db, group_id, member_id)
    if member.role == ROLE_OWNER:
        raise ForbiddenError("Cannot change the owner's role")
    with transaction(db):
        member.role = role
    db.refresh(member)
    return member


#############################
# Invitations
#############################


def _find_user_by_email(db, email: str) -> User | None:
    return db.query(User).filter(func.lower(User.email) == email).first()


def invite(db, inviter_id: int, group_id: int, email: str, role: str = ROLE_MEMBER) -> GroupInvitation:
    """Invite ``email`` to the group.

    The invitation is linked to an existing account when one uses that
    address, and that user gets an in-app notification."""
    email = normalize_email(email)
    if role not in INVITABLE_ROLES:
        raise ValidationError("Invalid role")
    invited_user = _find_user_by_email(db, email)
    if invited_user is not None and get_membership(db, invited_user.id, group_id):
        raise ConflictError("User is already a member of this group")
    pending = (
        db.query(GroupInvitation)
        .filter(
            GroupInvitation.group_id == group_id,
            GroupInvitation.email == email,
            GroupInvitation.status == INVITATION_PENDING,
            GroupInvitation.expires_at > utcnow(),
        )
        .first()
    )
    if pending is not None:
        raise ConflictError("User already has a pending invitation")
    group = db.get(Group, group_id)
    with transaction(db):
        invitation = GroupInvitation(
            group_id=group_id,
            email=email,
            user_id=invited_user.id if invited_user else None,
            invited_by_id=inviter_id,
            role=role,
            status=INVITATION_PENDING,
            expires_at=utcnow() + dt.timedelta(days=INVITATION_TTL_DAYS),
        )
        db.add(invitation)
    db.refresh(invitation)
    if invited_user is not None:
        notify_user(db, invited_user.id, f'You have been invited to join "{group.name}"')
    logger.info("User %s invited %s to group %s as %s", inviter_id, email, group_id, role)
    return invitation


def list_invitations(db, group_id: int) -> list[GroupInvitation]:
    return (
        db.query(GroupInvitation)
        .filter(GroupInvitation.group_id == group_id)
        .order_by(GroupInvitation.created_at.desc(), GroupInvitation.id.desc())
        .all()
    )


def _addressed_to(user: User):
    if user.email:
        return or_(GroupInvitation.email == normalize_email(user.email), GroupInvitation.user_id == user.id)
    return GroupInvitation.user_id == user.id


def my_invitations(db, user: User) -> list[GroupInvitation]:
    """Pending, unexpired invitations addressed to ``user``."""
    return (
        db.query(GroupInvitation)
        .filter(
            GroupInvitation.status == INVITATION_PENDING,
            GroupInvitation.expires_at > utcnow(),
            _addressed_to(user),
        )
        .order_by(GroupInvitation.created_at.desc(), GroupInvitation.id.desc())
        .all()
    )


def _pending_invitation(db, user: User, invitation_id: int) -> GroupInvitation:
    invitation = (
        db.query(GroupInvitation)
        .filter(
            GroupInvitation.id == invitation_id,
            GroupInvitation.status == INVITATION_PENDING,
            GroupInvitation.expires_at > utcnow(),
            _addressed_to(user),
        )
        .first()
    )
    if invitation is None:
        raise NotFoundError("Invitation not found or expired")
    return invitation


def accept_invitation(db, user: User, invitation_id: int) -> Membership:
    invitation = _pending_invitation(db, user, invitation_id)
    if get_membership(db, user.id, invitation.group_id):
        raise ConflictError("You are already a member of this group")
    with transaction(db):
        membership = Membership(user_id=user.id, group_id=invitation.group_id, role=invitation.role)
        db.add(membership)
        invitation.status = INVITATION_ACCEPTED
        invitation.user_id = user.id
    db.refresh(membership)
    logger.info("User %s joined group %s", user.id, membership.group_id)
    return membership


def decline_invitation(db, user: User, invitation_id: int) -> None:
    invitation = _pending_invitation(db, user, invitation_id)
    with transaction(db):
        invitation.status = INVITATION_DECLINED

